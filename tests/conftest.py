import pytest


class StubTransport:
    """
    Transport double that replays scripted outcomes.

    Each outcome is bytes (returned), an exception instance (raised) or a
    callable taking the call index and returning either of those.
    """

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def post(self, url, body, headers=None):
        self.calls.append({"url": url, "body": body, "headers": dict(headers or {})})
        index = len(self.calls) - 1
        outcome = self.outcomes[min(index, len(self.outcomes) - 1)]
        if callable(outcome) and not isinstance(outcome, BaseException):
            outcome = outcome(index)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture
def make_transport():
    return StubTransport


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every variable the license settings read"""
    for name in (
        "CREDENTIALS_JSON",
        "CREDENTIALS_FILE",
        "DEFAULT_LICENSE_URL",
        "FORCE_DEFAULT_LICENSE_URL",
        "LICENSE_TIMEOUT",
        "LICENSE_MAX_RETRIES",
        "LICENSE_RESPONSE_FORMAT",
        "DRMTODAY_URL",
        "DRMTODAY_MERCHANT",
        "DRMTODAY_USER_ID",
        "DRMTODAY_SESSION_ID",
        "DRMTODAY_ASSET_ID",
        "DRMTODAY_VARIANT_ID",
        "DRMTODAY_AUTH_TOKEN",
    ):
        monkeypatch.delenv(name, raising=False)
    # point the file lookup at a path that does not exist
    monkeypatch.setattr(
        "drmlicense.utils.credentials.credential_paths",
        lambda: {"explicit": "/nonexistent/credentials.json"},
    )
    return monkeypatch

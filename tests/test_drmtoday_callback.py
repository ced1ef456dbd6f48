import base64
import json
import logging
from urllib.parse import parse_qs, urlsplit

import pytest

from drmlicense.drm.drmtoday_callback import DRMTODAY_TEST, DrmTodayCallback
from drmlicense.drm.schemes import DrmScheme
from drmlicense.drm.types import LicenseRequest, ProvisionRequest
from drmlicense.errors import ConfigurationError, DecodeError, NotFoundError, TransportError

VALID = dict(
    drm_today_url=DRMTODAY_TEST,
    merchant="client_dev",
    asset_id="asset-1",
    variant_id=None,
    user_id="purchase",
    session_id="p0",
)


def make_callback(transport, **overrides):
    kwargs = dict(VALID)
    kwargs.update(overrides)
    return DrmTodayCallback(transport=transport, **kwargs)


class TestConstruction:

    def test_valid_identity(self, make_transport):
        callback = make_callback(make_transport(b""))
        assert callback.merchant == "client_dev"

    @pytest.mark.parametrize("field", ["drm_today_url", "merchant", "user_id", "session_id"])
    @pytest.mark.parametrize("bad", [None, ""])
    def test_missing_mandatory_field(self, make_transport, field, bad):
        with pytest.raises(ConfigurationError):
            make_callback(make_transport(b""), **{field: bad})

    def test_optional_fields_may_be_missing(self, make_transport):
        callback = make_callback(make_transport(b""), asset_id=None, variant_id=None, auth_token=None)
        assert callback.asset_id is None


class TestKeyRequest:

    def test_request_shape(self, make_transport):
        transport = make_transport(b'{"license":"QUJD"}')
        callback = make_callback(transport, variant_id="hd", auth_token="jwt-token")

        result = callback.execute_key_request(
            LicenseRequest(DrmScheme.WIDEVINE, b"challenge", "https://ignored.example.com/")
        )

        assert result == b"ABC"
        call = transport.calls[0]
        parts = urlsplit(call["url"])
        assert f"{parts.scheme}://{parts.netloc}{parts.path}" == DRMTODAY_TEST
        query = parse_qs(parts.query)
        assert len(query["logRequestId"][0]) == 32
        assert query["assetId"] == ["asset-1"]
        assert query["variantId"] == ["hd"]

        headers = call["headers"]
        assert headers["Content-Type"] == "text/xml"
        assert headers["x-dt-auth-token"] == "jwt-token"
        custom = json.loads(base64.b64decode(headers["dt-custom-data"]))
        assert custom == {"userId": "purchase", "sessionId": "p0", "merchant": "client_dev"}
        assert call["body"] == b"challenge"

    @pytest.mark.parametrize("scheme", list(DrmScheme))
    def test_every_scheme_sent_as_xml(self, make_transport, scheme):
        transport = make_transport(b'{"license":"QUJD"}')
        make_callback(transport).execute_key_request(LicenseRequest(scheme, b"c"))
        headers = transport.calls[0]["headers"]
        assert headers["Content-Type"] == "text/xml"
        assert "SOAPAction" not in headers

    def test_variant_omitted_when_absent(self, make_transport):
        transport = make_transport(b'{"license":"QUJD"}')
        make_callback(transport).execute_key_request(LicenseRequest(DrmScheme.WIDEVINE, b"c"))
        query = parse_qs(urlsplit(transport.calls[0]["url"]).query)
        assert "variantId" not in query
        assert "x-dt-auth-token" not in transport.calls[0]["headers"]

    def test_custom_headers_merged(self, make_transport):
        transport = make_transport(b'{"license":"QUJD"}')
        callback = make_callback(transport)
        callback.set_key_request_property("x-dt-auth-token", "override")
        callback.execute_key_request(LicenseRequest(DrmScheme.WIDEVINE, b"c"))
        assert transport.calls[0]["headers"]["x-dt-auth-token"] == "override"

    def test_not_found(self, make_transport, caplog):
        callback = make_callback(make_transport(NotFoundError()))
        with caplog.at_level(logging.INFO, logger="drmlicense"):
            with pytest.raises(NotFoundError):
                callback.execute_key_request(LicenseRequest(DrmScheme.WIDEVINE, b"c"))
        warnings = [r for r in caplog.records if r.name == "drmlicense" and r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "License not found" in warnings[0].getMessage()

    def test_transport_error_logged(self, make_transport, caplog):
        callback = make_callback(make_transport(TransportError(cause=OSError("reset"))))
        with caplog.at_level(logging.INFO, logger="drmlicense"):
            with pytest.raises(TransportError):
                callback.execute_key_request(LicenseRequest(DrmScheme.WIDEVINE, b"c"))
        errors = [r for r in caplog.records if r.name == "drmlicense" and r.levelno == logging.ERROR]
        assert len(errors) == 1
        assert "reset" in errors[0].getMessage()

    def test_unparseable_response(self, make_transport):
        callback = make_callback(make_transport(b"Internal error"))
        with pytest.raises(DecodeError) as exc_info:
            callback.execute_key_request(LicenseRequest(DrmScheme.WIDEVINE, b"c"))
        assert exc_info.value.response_text == "Internal error"


class TestProvisioning:

    def test_provision_request(self, make_transport):
        transport = make_transport(b"provisioned")
        callback = make_callback(transport)
        result = callback.execute_provision_request(ProvisionRequest("https://prov/?k=1", b"abc"))
        assert result == b"provisioned"
        assert transport.calls[0]["url"] == "https://prov/?k=1&signedRequest=abc"
        assert transport.calls[0]["body"] is None

"""
License server configuration.

Settings come from environment variables first and then from the
"license" section of the credentials file. The process-wide callback is
built lazily from them.
"""

import logging
from threading import Lock
from typing import Dict, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from drmlicense.drm.drmtoday_callback import (
    DRMTODAY_CONVENTIONS,
    DRMTODAY_PRODUCTION,
    DRMTODAY_STAGING,
    DRMTODAY_TEST,
    DrmTodayCallback,
)
from drmlicense.drm.header_store import KeyRequestHeaders
from drmlicense.drm.http_callback import HttpLicenseCallback
from drmlicense.drm.schemes import SchemeConventions
from drmlicense.drm.transport import LicenseTransport
from drmlicense.drm.types import ResponseFormat
from drmlicense.errors import ConfigurationError
from drmlicense.utils.credentials import get_section
from drmlicense.utils.env import env_flag, env_str

logger = logging.getLogger(__name__)

DRMTODAY_ENVIRONMENTS = {
    "production": DRMTODAY_PRODUCTION,
    "staging": DRMTODAY_STAGING,
    "test": DRMTODAY_TEST,
}

LicenseCallback = Union[HttpLicenseCallback, DrmTodayCallback]


class DrmTodaySettings(BaseModel):
    url: Optional[str] = None
    merchant: Optional[str] = None
    user_id: Optional[str] = None
    session_id: Optional[str] = None
    asset_id: Optional[str] = None
    variant_id: Optional[str] = None
    auth_token: Optional[str] = None


class LicenseSettings(BaseModel):
    default_license_url: Optional[str] = None
    force_default_license_url: bool = False
    timeout: int = 15
    max_retries: int = 3
    response_format: ResponseFormat = ResponseFormat.JSON_ENVELOPE
    content_types: Dict[str, str] = Field(default_factory=dict)
    key_request_headers: Dict[str, str] = Field(default_factory=dict)
    drmtoday: Optional[DrmTodaySettings] = None

    def sanitized(self) -> Dict:
        """Settings safe for logging: header values and tokens are hidden"""
        data = self.model_dump(mode="json")
        data["key_request_headers"] = sorted(self.key_request_headers)
        if self.drmtoday is not None:
            data["drmtoday"] = {
                key: ("<set>" if key == "auth_token" and value else value)
                for key, value in data["drmtoday"].items()
            }
        return data


_ENV_FIELDS = {
    "DEFAULT_LICENSE_URL": "default_license_url",
    "LICENSE_TIMEOUT": "timeout",
    "LICENSE_MAX_RETRIES": "max_retries",
    "LICENSE_RESPONSE_FORMAT": "response_format",
}

_DRMTODAY_ENV_FIELDS = {
    "DRMTODAY_URL": "url",
    "DRMTODAY_MERCHANT": "merchant",
    "DRMTODAY_USER_ID": "user_id",
    "DRMTODAY_SESSION_ID": "session_id",
    "DRMTODAY_ASSET_ID": "asset_id",
    "DRMTODAY_VARIANT_ID": "variant_id",
    "DRMTODAY_AUTH_TOKEN": "auth_token",
}


def load_license_settings() -> LicenseSettings:
    """
    Build settings from the environment, falling back to the credentials
    file. Environment variables win over file values.

    Raises:
        ConfigurationError: values present but invalid
    """
    raw = dict(get_section("license"))

    for env_name, field in _ENV_FIELDS.items():
        value = env_str(env_name)
        if value is not None:
            raw[field] = value
    force = env_flag("FORCE_DEFAULT_LICENSE_URL")
    if force is not None:
        raw["force_default_license_url"] = force

    drmtoday = dict(raw.get("drmtoday") or {})
    for env_name, field in _DRMTODAY_ENV_FIELDS.items():
        value = env_str(env_name)
        if value is not None:
            drmtoday[field] = value
    if drmtoday.get("url") or drmtoday.get("merchant"):
        url = drmtoday.get("url") or "production"
        drmtoday["url"] = DRMTODAY_ENVIRONMENTS.get(url.lower(), url)
        raw["drmtoday"] = drmtoday
    else:
        raw.pop("drmtoday", None)

    try:
        return LicenseSettings(**raw)
    except ValidationError as e:
        raise ConfigurationError("Invalid license configuration", cause=e)


def build_callback(settings: LicenseSettings) -> LicenseCallback:
    """DRMtoday callback when configured, the generic HTTP callback otherwise"""
    transport = LicenseTransport(timeout=settings.timeout, max_retries=settings.max_retries)
    headers = KeyRequestHeaders(settings.key_request_headers)
    conventions = SchemeConventions(settings.content_types) if settings.content_types else None

    if settings.drmtoday is not None:
        dt = settings.drmtoday
        if settings.content_types:
            conventions = SchemeConventions({**DRMTODAY_CONVENTIONS, **settings.content_types})
        logger.info(f"Using DRMtoday license backend {dt.url} (merchant {dt.merchant})")
        return DrmTodayCallback(
            drm_today_url=dt.url,
            merchant=dt.merchant,
            asset_id=dt.asset_id,
            variant_id=dt.variant_id,
            user_id=dt.user_id,
            session_id=dt.session_id,
            auth_token=dt.auth_token,
            transport=transport,
            headers=headers,
            conventions=conventions,
        )

    logger.info(f"Using HTTP license backend {settings.default_license_url or '<request URL>'}")
    return HttpLicenseCallback(
        settings.default_license_url,
        force_default_license_url=settings.force_default_license_url,
        transport=transport,
        headers=headers,
        conventions=conventions,
        response_format=settings.response_format,
    )


_callback: Optional[LicenseCallback] = None
_lock = Lock()


def get_license_callback() -> LicenseCallback:
    global _callback
    if _callback is None:
        with _lock:
            if _callback is None:
                _callback = build_callback(load_license_settings())
    return _callback


def reset_license_callback(callback: Optional[LicenseCallback] = None) -> None:
    """Drop (or replace) the process-wide callback; used by tests"""
    global _callback
    with _lock:
        _callback = callback

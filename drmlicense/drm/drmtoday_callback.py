"""
License callback for Widevine and the DRMtoday (castLabs) backend.

Instances need a DRMtoday backend URL, usually one of DRMTODAY_PRODUCTION,
DRMTODAY_STAGING or DRMTODAY_TEST, a merchant, and a userId/sessionId pair
that DRMtoday forwards to the configured callback. An authToken can be
given as well when token based authentication is enabled for the backend.

The asset and variant ids are optional. Set the asset id when several keys
(audio/SD/HD) for one asset are handled by the same session.
"""

import logging
from typing import Optional

from drmlicense.drm.header_store import KeyRequestHeaders
from drmlicense.drm.redirects import post_with_redirects
from drmlicense.drm.request_builder import (
    build_key_request_headers,
    build_provision_url,
    build_query_url,
    encode_custom_data,
)
from drmlicense.drm.request_id import generate_request_id
from drmlicense.drm.response_decoder import decode_license
from drmlicense.drm.schemes import CONTENT_TYPE_XML, DrmScheme, SchemeConvention, SchemeConventions
from drmlicense.drm.transport import LicenseTransport
from drmlicense.drm.types import CustomData, LicenseRequest, ProvisionRequest, ResponseFormat
from drmlicense.errors import ConfigurationError, NotFoundError, TransportError
from drmlicense.utils.safe_print import safe_print

logger = logging.getLogger(__name__)

DRMTODAY_PRODUCTION = "https://lic.drmtoday.com/license-proxy-widevine/cenc/"
DRMTODAY_STAGING = "https://lic.staging.drmtoday.com/license-proxy-widevine/cenc/"
DRMTODAY_TEST = "https://lic.test.drmtoday.com/license-proxy-widevine/cenc/"

# The DRMtoday proxy expects text/xml and no action header for every scheme
DRMTODAY_CONVENTIONS = {scheme: SchemeConvention(CONTENT_TYPE_XML) for scheme in DrmScheme}


def _require(value: Optional[str], what: str) -> str:
    if value is None or not str(value).strip():
        raise ConfigurationError(f"No valid {what} specified!")
    return value


class DrmTodayCallback:
    """Key requests always go to DRMtoday, whatever URL the request carries"""

    def __init__(
        self,
        drm_today_url: str,
        merchant: str,
        asset_id: Optional[str] = None,
        variant_id: Optional[str] = None,
        user_id: Optional[str] = None,
        session_id: Optional[str] = None,
        auth_token: Optional[str] = None,
        transport: Optional[LicenseTransport] = None,
        headers: Optional[KeyRequestHeaders] = None,
        conventions: Optional[SchemeConventions] = None,
    ):
        self.drm_today_url = _require(drm_today_url, "DRMtoday backend URL")
        self.merchant = _require(merchant, "merchant")
        self.user_id = _require(user_id, "userId")
        self.session_id = _require(session_id, "sessionId")
        self.asset_id = asset_id
        self.variant_id = variant_id
        self.auth_token = auth_token

        # encoded once so a bad identity fails here rather than per request
        self.custom_data = encode_custom_data(
            CustomData(user_id=self.user_id, session_id=self.session_id, merchant=self.merchant)
        )

        self.transport = transport or LicenseTransport()
        self.key_request_headers = headers if headers is not None else KeyRequestHeaders()
        self.conventions = conventions or SchemeConventions(DRMTODAY_CONVENTIONS)

    def set_key_request_property(self, name: str, value: str) -> None:
        self.key_request_headers.set(name, value)

    def clear_key_request_property(self, name: str) -> None:
        self.key_request_headers.clear(name)

    def clear_all_key_request_properties(self) -> None:
        self.key_request_headers.clear_all()

    def execute_provision_request(self, request: ProvisionRequest) -> bytes:
        url = build_provision_url(request.default_url, request.data)
        return self.transport.post(url, None, None)

    def execute_key_request(self, request: LicenseRequest) -> bytes:
        request_id = generate_request_id()
        url = build_query_url(self.drm_today_url, request_id, self.asset_id, self.variant_id)
        headers = build_key_request_headers(
            request.scheme,
            self.conventions,
            custom_data=self.custom_data,
            auth_token=self.auth_token,
            request_headers=self.key_request_headers,
        )

        logger.info(f"Executing DRMtoday request to : {url}")
        safe_print(f"🔑 [DRMtoday] License request {request_id} for merchant {self.merchant}")
        try:
            body = post_with_redirects(self.transport, url, request.data, headers)
        except NotFoundError:
            safe_print(f"❌ [DRMtoday] License not found ({request_id})", level="WARNING")
            raise
        except TransportError as e:
            safe_print(f"❌ [DRMtoday] Error during license acquisition ({request_id}): {e}", level="ERROR")
            raise

        return decode_license(body, ResponseFormat.JSON_ENVELOPE)

"""
Generic HTTP license client.

Key requests go to the request's own license URL (or the configured
default) with per-scheme headers, the shared custom headers and a fresh
correlation id.
"""

import logging
from typing import Optional

from drmlicense.drm.header_store import KeyRequestHeaders
from drmlicense.drm.redirects import post_with_redirects
from drmlicense.drm.request_builder import (
    build_key_request_headers,
    build_provision_url,
    select_license_url,
)
from drmlicense.drm.request_id import generate_request_id
from drmlicense.drm.response_decoder import decode_license
from drmlicense.drm.schemes import SchemeConventions
from drmlicense.drm.transport import LicenseTransport
from drmlicense.drm.types import LicenseRequest, ProvisionRequest, ResponseFormat
from drmlicense.errors import ConfigurationError, NotFoundError, TransportError

logger = logging.getLogger(__name__)


class HttpLicenseCallback:
    """
    License callback that POSTs key and provisioning requests over HTTP.

    One instance serves many concurrent requests. The only state shared
    between calls is the custom header store.
    """

    def __init__(
        self,
        default_license_url: Optional[str],
        force_default_license_url: bool = False,
        transport: Optional[LicenseTransport] = None,
        headers: Optional[KeyRequestHeaders] = None,
        conventions: Optional[SchemeConventions] = None,
        response_format: ResponseFormat = ResponseFormat.JSON_ENVELOPE,
    ):
        """
        Args:
            default_license_url: Used for key requests without their own
                license URL, or for all of them when forced
            force_default_license_url: Ignore the request's license URL
            transport: Transport to POST with (a new one by default)
            headers: Custom key request header store (a new one by default)
            conventions: Per-scheme content type and action header table
            response_format: How license bytes are carried in the response
        """
        if force_default_license_url and not default_license_url:
            raise ConfigurationError("force_default_license_url requires a default license URL")
        self.default_license_url = default_license_url
        self.force_default_license_url = force_default_license_url
        self.transport = transport or LicenseTransport()
        self.key_request_headers = headers if headers is not None else KeyRequestHeaders()
        self.conventions = conventions or SchemeConventions()
        self.response_format = response_format

    def set_key_request_property(self, name: str, value: str) -> None:
        self.key_request_headers.set(name, value)

    def clear_key_request_property(self, name: str) -> None:
        self.key_request_headers.clear(name)

    def clear_all_key_request_properties(self) -> None:
        self.key_request_headers.clear_all()

    def execute_provision_request(self, request: ProvisionRequest) -> bytes:
        """Single POST, empty body, no redirect following"""
        url = build_provision_url(request.default_url, request.data)
        logger.info(f"Executing provision request to {request.default_url}")
        return self.transport.post(url, b"", None)

    def execute_key_request(self, request: LicenseRequest) -> bytes:
        url = select_license_url(
            request.license_server_url,
            self.default_license_url,
            self.force_default_license_url,
        )
        request_id = generate_request_id()
        headers = build_key_request_headers(
            request.scheme,
            self.conventions,
            request_headers=self.key_request_headers,
            request_id=request_id,
        )

        logger.info(f"Executing {request.scheme.name} key request to {url} (logRequestId={request_id})")
        try:
            body = post_with_redirects(self.transport, url, request.data, headers)
        except NotFoundError:
            logger.warning(f"License not found at {url} (logRequestId={request_id})")
            raise
        except TransportError as e:
            logger.error(f"Error during license acquisition (logRequestId={request_id}): {e}")
            raise

        return decode_license(body, self.response_format)

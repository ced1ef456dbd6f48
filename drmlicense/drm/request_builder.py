"""
Assembles license endpoint URLs and key request headers.
"""

import base64
import json
from typing import Dict, Optional
from urllib.parse import urlencode, urlsplit, urlunsplit

from drmlicense.drm.header_store import KeyRequestHeaders
from drmlicense.drm.schemes import DrmScheme, SchemeConventions
from drmlicense.drm.types import CustomData
from drmlicense.errors import ConfigurationError

CUSTOM_DATA_HEADER = "dt-custom-data"
AUTH_TOKEN_HEADER = "x-dt-auth-token"
REQUEST_ID_HEADER = "logRequestId"

REQUEST_ID_PARAM = "logRequestId"
ASSET_ID_PARAM = "assetId"
VARIANT_ID_PARAM = "variantId"
SIGNED_REQUEST_PARAM = "signedRequest"


def encode_custom_data(custom_data: CustomData) -> str:
    """Compact JSON of the identity fields, base64 without line wrapping"""
    try:
        payload = json.dumps(custom_data.as_dict(), separators=(",", ":"))
    except (TypeError, ValueError) as e:
        raise ConfigurationError("Unable to encode request data", cause=e)
    return base64.b64encode(payload.encode("utf-8")).decode("ascii")


def build_key_request_headers(
    scheme: DrmScheme,
    conventions: Optional[SchemeConventions] = None,
    custom_data: Optional[str] = None,
    auth_token: Optional[str] = None,
    request_headers: Optional[KeyRequestHeaders] = None,
    request_id: Optional[str] = None,
) -> Dict[str, str]:
    """
    Build the header set for a key request.

    Applied in order, later entries overriding earlier ones:
    content type for the scheme, the scheme action header, custom data,
    auth token, then the custom header store. The request id is set last
    so a stored header can never replace it.

    Args:
        scheme: DRM scheme of the key request
        conventions: Scheme lookup table (defaults to the standard one)
        custom_data: Already encoded custom data header value
        auth_token: Optional token for token based authentication
        request_headers: Custom headers shared across key requests
        request_id: Correlation token for this request

    Returns:
        New header dict owned by the caller
    """
    conventions = conventions or SchemeConventions()
    convention = conventions.convention_for(scheme)

    headers: Dict[str, str] = {"Content-Type": convention.content_type}
    if convention.action_header:
        name, value = convention.action_header
        headers[name] = value
    if custom_data:
        headers[CUSTOM_DATA_HEADER] = custom_data
    if auth_token:
        headers[AUTH_TOKEN_HEADER] = auth_token

    if request_headers is not None:
        headers = request_headers.merged_with(headers)
    if request_id:
        headers[REQUEST_ID_HEADER] = request_id
    return headers


def build_query_url(
    base_url: str,
    request_id: str,
    asset_id: Optional[str] = None,
    variant_id: Optional[str] = None,
) -> str:
    """
    Append the request id and, when configured, the asset and variant ids
    to the base license URL. Empty ids are left out entirely.
    """
    params = [(REQUEST_ID_PARAM, request_id)]
    if asset_id:
        params.append((ASSET_ID_PARAM, asset_id))
    if variant_id:
        params.append((VARIANT_ID_PARAM, variant_id))

    parts = urlsplit(base_url)
    query = urlencode(params)
    if parts.query:
        query = f"{parts.query}&{query}"
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def select_license_url(
    request_url: Optional[str],
    default_url: Optional[str],
    force_default: bool = False,
) -> str:
    """Pick the request's own license URL unless forced to the default"""
    url = request_url
    if force_default or not url:
        url = default_url
    if not url:
        raise ConfigurationError("No license server URL in the request and no default URL configured")
    return url


def build_provision_url(default_url: str, data: bytes) -> str:
    """Provisioning sends the signed request as a query parameter, not a body"""
    if not default_url:
        raise ConfigurationError("Provision request has no default URL")
    return f"{default_url}&{SIGNED_REQUEST_PARAM}={data.decode('utf-8', errors='replace')}"

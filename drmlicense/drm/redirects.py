"""
Manual redirect following for license POSTs.

The HTTP stack does not replay a POST body on 307/308, so the license
request is re-issued here, bounded by MAX_MANUAL_REDIRECTS.
"""

import logging
from typing import Dict, Optional
from urllib.parse import urljoin

from drmlicense.errors import InvalidResponseCodeError, RedirectExhaustedError

logger = logging.getLogger(__name__)

MAX_MANUAL_REDIRECTS = 5
REDIRECT_STATUS_CODES = (307, 308)


def get_redirect_url(error: InvalidResponseCodeError) -> Optional[str]:
    """First Location header of the failed response, or None"""
    for name, value in (error.headers or {}).items():
        if name.lower() != "location":
            continue
        if isinstance(value, (list, tuple)):
            value = value[0] if value else None
        elif value:
            # requests folds repeated headers into "a, b"
            value = value.split(",", 1)[0].strip()
        if not value:
            return None
        return urljoin(error.url, value) if error.url else value
    return None


def should_follow(error: InvalidResponseCodeError, redirect_count: int,
                  max_redirects: int = MAX_MANUAL_REDIRECTS) -> bool:
    return error.status_code in REDIRECT_STATUS_CODES and redirect_count < max_redirects


def post_with_redirects(
    transport,
    url: str,
    body: Optional[bytes],
    headers: Optional[Dict[str, str]] = None,
    max_redirects: int = MAX_MANUAL_REDIRECTS,
) -> bytes:
    """
    POST through the transport, re-issuing the same body and headers to
    the Location of each 307/308 response.

    Raises:
        RedirectExhaustedError: A redirect arrived after max_redirects follows
        InvalidResponseCodeError: Any other failed status, or a redirect
            without a Location header
    """
    redirect_count = 0
    while True:
        try:
            return transport.post(url, body, headers)
        except InvalidResponseCodeError as e:
            if e.status_code not in REDIRECT_STATUS_CODES:
                raise
            if not should_follow(e, redirect_count, max_redirects):
                logger.warning(f"Redirect limit ({max_redirects}) reached at {url}")
                raise RedirectExhaustedError(e, redirect_count)
            location = get_redirect_url(e)
            if location is None:
                logger.warning(f"HTTP {e.status_code} from {url} without a Location header")
                raise
            redirect_count += 1
            logger.info(f"Following HTTP {e.status_code} redirect {redirect_count}/{max_redirects}: {location}")
            url = location

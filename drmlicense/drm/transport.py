"""
HTTP transport for license and provisioning exchanges.

One POST per call. Redirects are never followed here; see redirects.py.
"""

import logging
from typing import Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from drmlicense.errors import InvalidResponseCodeError, NotFoundError, TransportError

logger = logging.getLogger(__name__)

NOT_FOUND_STATUS_CODES = (404, 410)


class LicenseTransport:
    """Blocking POST transport backed by a requests session"""

    def __init__(
        self,
        timeout: int = 15,
        max_retries: int = 3,
        session: Optional[requests.Session] = None,
    ):
        self.timeout = timeout
        self.max_retries = max_retries
        self.session = session or self._create_session()

    def _create_session(self) -> requests.Session:
        """Create a requests session with retry strategy"""
        session = requests.Session()

        # POST is not in allowed_methods, so license requests are never
        # replayed on a bad status. connect=0 keeps connection errors from
        # being retried for any method.
        retry_strategy = Retry(
            total=self.max_retries,
            connect=0,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["HEAD", "GET", "OPTIONS"],
            backoff_factor=1,
            raise_on_status=False,
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        return session

    def post(self, url: str, body: Optional[bytes], headers: Optional[Dict[str, str]] = None) -> bytes:
        """
        POST body to url and return the complete response body.

        Args:
            url: Target URL
            body: Request body, sent unmodified (None or b"" for no body)
            headers: Request headers

        Returns:
            Response body bytes

        Raises:
            NotFoundError: Server reported the resource does not exist
            InvalidResponseCodeError: Any other non-2xx status
            TransportError: Network or protocol failure
        """
        logger.debug(f"POST {url} ({len(body or b'')} bytes)")
        try:
            with self.session.post(
                url,
                data=body or None,
                headers=headers or {},
                timeout=self.timeout,
                allow_redirects=False,
            ) as response:
                content = response.content
                status_code = response.status_code
                response_headers = dict(response.headers)
        except requests.exceptions.RequestException as e:
            logger.error(f"License transport error for {url}: {e}")
            raise TransportError(cause=e, url=url)

        logger.debug(f"Received response: {status_code} ({len(content)} bytes)")

        if status_code in NOT_FOUND_STATUS_CODES:
            raise NotFoundError(url=url, status_code=status_code)
        if not 200 <= status_code < 300:
            raise InvalidResponseCodeError(status_code, response_headers, url=url, response_body=content)
        return content

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "LicenseTransport":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

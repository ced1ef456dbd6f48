"""
Error taxonomy for license acquisition.

Every failure raised by the DRM core is a LicenseError carrying an explicit
kind and, where one exists, the underlying cause.
"""

from enum import Enum
from typing import Dict, Optional, Union


class LicenseErrorKind(Enum):
    CONFIGURATION = "configuration"
    NOT_FOUND = "not_found"
    TRANSPORT = "transport"
    REDIRECT_EXHAUSTED = "redirect_exhausted"
    DECODE = "decode"


class LicenseError(Exception):
    """Base class for all license acquisition failures"""

    kind: LicenseErrorKind = LicenseErrorKind.TRANSPORT

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message}: {self.cause}"
        return self.message


class ConfigurationError(LicenseError, ValueError):
    """Missing endpoint or identity configuration. Never retried."""

    kind = LicenseErrorKind.CONFIGURATION


class NotFoundError(LicenseError):
    """The license server reported that the license does not exist"""

    kind = LicenseErrorKind.NOT_FOUND

    def __init__(self, message: str = "License not found", url: Optional[str] = None,
                 status_code: Optional[int] = None, cause: Optional[BaseException] = None):
        super().__init__(message, cause)
        self.url = url
        self.status_code = status_code


class TransportError(LicenseError):
    """Network or protocol failure other than not-found"""

    kind = LicenseErrorKind.TRANSPORT

    def __init__(self, message: str = "Error during license acquisition",
                 cause: Optional[BaseException] = None, url: Optional[str] = None):
        super().__init__(message, cause)
        self.url = url


class InvalidResponseCodeError(TransportError):
    """
    Server answered with a non-2xx status.

    Keeps the status code and response headers so redirect handling can
    inspect the Location header.
    """

    def __init__(
        self,
        status_code: int,
        headers: Optional[Dict[str, Union[str, list]]] = None,
        url: Optional[str] = None,
        response_body: bytes = b"",
    ):
        super().__init__(f"Response code: {status_code}", url=url)
        self.status_code = status_code
        self.headers = dict(headers or {})
        self.response_body = response_body


class RedirectExhaustedError(TransportError):
    """Too many manual redirects; the last redirect response is the cause"""

    kind = LicenseErrorKind.REDIRECT_EXHAUSTED

    def __init__(self, last_error: InvalidResponseCodeError, redirect_count: int):
        super().__init__(
            f"Gave up after {redirect_count} manual redirects",
            cause=last_error,
            url=last_error.url,
        )
        self.redirect_count = redirect_count
        self.status_code = last_error.status_code
        self.headers = last_error.headers


class DecodeError(LicenseError):
    """License response could not be unwrapped; keeps the raw body text"""

    kind = LicenseErrorKind.DECODE

    def __init__(self, message: str, response_text: str = "",
                 cause: Optional[BaseException] = None):
        super().__init__(message, cause)
        self.response_text = response_text

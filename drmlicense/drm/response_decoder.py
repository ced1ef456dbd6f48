"""
Unwraps license bytes from a license server response.
"""

import base64
import binascii
import json
import logging

from drmlicense.drm.types import ResponseFormat
from drmlicense.errors import DecodeError

logger = logging.getLogger(__name__)

LICENSE_FIELD = "license"


def _b64decode_lenient(value: str) -> bytes:
    """Standard base64, tolerating whitespace/line breaks and missing padding"""
    cleaned = "".join(value.split())
    missing_padding = len(cleaned) % 4
    if missing_padding:
        cleaned += "=" * (4 - missing_padding)
    return base64.b64decode(cleaned, validate=True)


def decode_license(
    body: bytes,
    response_format: ResponseFormat = ResponseFormat.JSON_ENVELOPE,
    field: str = LICENSE_FIELD,
) -> bytes:
    """
    Extract the license from a response body.

    RAW returns the body unchanged. JSON_ENVELOPE parses the body as a
    UTF-8 JSON object and base64 decodes the value under field.

    Raises:
        DecodeError: carries the response text for diagnosis
    """
    if response_format is ResponseFormat.RAW:
        return body

    text = body.decode("utf-8", errors="replace")
    try:
        data = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error(f"Error while parsing license response: {text[:500]}")
        raise DecodeError("Error while parsing response", response_text=text, cause=e)

    if not isinstance(data, dict) or field not in data:
        logger.error(f"License response has no '{field}' field: {text[:500]}")
        raise DecodeError(f"Response has no '{field}' field", response_text=text)

    value = data[field]
    if not isinstance(value, str):
        raise DecodeError(f"Response field '{field}' is not a string", response_text=text)

    try:
        return _b64decode_lenient(value)
    except (binascii.Error, ValueError) as e:
        logger.error(f"License field is not valid base64: {value[:100]}")
        raise DecodeError("License is not valid base64", response_text=text, cause=e)

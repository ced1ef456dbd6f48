"""
DRM license acquisition package.
Consolidates request building, transport, redirect handling and response decoding.
"""

from drmlicense.drm.drmtoday_callback import (
    DRMTODAY_PRODUCTION,
    DRMTODAY_STAGING,
    DRMTODAY_TEST,
    DrmTodayCallback,
)
from drmlicense.drm.header_store import KeyRequestHeaders
from drmlicense.drm.http_callback import HttpLicenseCallback
from drmlicense.drm.schemes import DrmScheme, SchemeConvention, SchemeConventions
from drmlicense.drm.transport import LicenseTransport
from drmlicense.drm.types import LicenseRequest, ProvisionRequest, ResponseFormat

__all__ = [
    'DRMTODAY_PRODUCTION',
    'DRMTODAY_STAGING',
    'DRMTODAY_TEST',
    'DrmTodayCallback',
    'HttpLicenseCallback',
    'KeyRequestHeaders',
    'DrmScheme',
    'SchemeConvention',
    'SchemeConventions',
    'LicenseTransport',
    'LicenseRequest',
    'ProvisionRequest',
    'ResponseFormat',
]

"""
Data model for license and provisioning exchanges.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from drmlicense.drm.schemes import DrmScheme


class ResponseFormat(Enum):
    RAW = "raw"  # response body is the license
    JSON_ENVELOPE = "json"  # {"license": "<base64>"}


@dataclass(frozen=True)
class LicenseRequest:
    """Key request produced by the DRM subsystem. The payload is opaque."""
    scheme: DrmScheme
    data: bytes
    license_server_url: Optional[str] = None


@dataclass(frozen=True)
class ProvisionRequest:
    default_url: str
    data: bytes


@dataclass(frozen=True)
class CustomData:
    """Identity fields sent to the license server as custom data"""
    user_id: str
    session_id: str
    merchant: str

    def as_dict(self) -> Dict[str, str]:
        return {
            "userId": self.user_id,
            "sessionId": self.session_id,
            "merchant": self.merchant,
        }

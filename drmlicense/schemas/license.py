from pydantic import BaseModel
from typing import Optional, Dict


class HeaderValue(BaseModel):
    value: str


class HeaderSetResponse(BaseModel):
    headers: Dict[str, str]


class LicenseErrorResponse(BaseModel):
    error: str
    kind: str
    message: str
    status_code: Optional[int] = None
    url: Optional[str] = None
    response_preview: Optional[str] = None

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from fastapi.concurrency import run_in_threadpool
import logging
from typing import Optional

from drmlicense.config.license_config import LicenseCallback, get_license_callback
from drmlicense.drm.schemes import DrmScheme
from drmlicense.drm.types import LicenseRequest, ProvisionRequest
from drmlicense.errors import (
    ConfigurationError,
    DecodeError,
    LicenseError,
    NotFoundError,
)
from drmlicense.schemas.license import HeaderSetResponse, HeaderValue, LicenseErrorResponse

router = APIRouter()
logger = logging.getLogger(__name__)

LICENSE_MEDIA_TYPE = "application/octet-stream"


def _error_detail(e: LicenseError) -> dict:
    detail = LicenseErrorResponse(
        error=type(e).__name__,
        kind=e.kind.value,
        message=str(e),
        status_code=getattr(e, "status_code", None),
        url=getattr(e, "url", None),
    )
    if isinstance(e, DecodeError):
        detail.response_preview = e.response_text[:500]
    return detail.model_dump(exclude_none=True)


def _to_http_exception(e: LicenseError) -> HTTPException:
    """Map the license error taxonomy onto HTTP status codes"""
    if isinstance(e, ConfigurationError):
        status = 500
    elif isinstance(e, NotFoundError):
        status = 404
    else:
        # decode, transport and redirect failures are upstream problems
        status = 502
    return HTTPException(status_code=status, detail=_error_detail(e))


@router.post("/license")
async def acquire_license(
    request: Request,
    scheme: str = Query("widevine", description="Scheme name, alias or system UUID"),
    license_url: Optional[str] = Query(None, description="License server URL carried by the key request"),
    callback: LicenseCallback = Depends(get_license_callback),
):
    data = await request.body()
    if not data:
        raise HTTPException(status_code=400, detail="Empty key request")

    key_request = LicenseRequest(
        scheme=DrmScheme.from_name(scheme),
        data=data,
        license_server_url=license_url,
    )
    logger.info(f"🔑 License request: scheme={key_request.scheme.name} ({len(data)} bytes)")
    try:
        license_bytes = await run_in_threadpool(callback.execute_key_request, key_request)
    except LicenseError as e:
        logger.error(f"❌ License request failed: {e}")
        raise _to_http_exception(e)

    logger.info(f"✅ License acquired ({len(license_bytes)} bytes)")
    return Response(content=license_bytes, media_type=LICENSE_MEDIA_TYPE)


@router.post("/provision")
async def provision(
    request: Request,
    default_url: str = Query(..., description="Provisioning server URL from the DRM subsystem"),
    callback: LicenseCallback = Depends(get_license_callback),
):
    data = await request.body()
    provision_request = ProvisionRequest(default_url=default_url, data=data)
    try:
        response_bytes = await run_in_threadpool(callback.execute_provision_request, provision_request)
    except LicenseError as e:
        logger.error(f"❌ Provision request failed: {e}")
        raise _to_http_exception(e)
    return Response(content=response_bytes, media_type=LICENSE_MEDIA_TYPE)


@router.get("/headers", response_model=HeaderSetResponse)
async def list_headers(callback: LicenseCallback = Depends(get_license_callback)):
    return HeaderSetResponse(headers=callback.key_request_headers.snapshot())


@router.put("/headers/{name}", response_model=HeaderSetResponse)
async def set_header(
    name: str,
    body: HeaderValue,
    callback: LicenseCallback = Depends(get_license_callback),
):
    callback.set_key_request_property(name, body.value)
    logger.info(f"Key request header set: {name}")
    return HeaderSetResponse(headers=callback.key_request_headers.snapshot())


@router.delete("/headers/{name}", response_model=HeaderSetResponse)
async def clear_header(name: str, callback: LicenseCallback = Depends(get_license_callback)):
    callback.clear_key_request_property(name)
    logger.info(f"Key request header cleared: {name}")
    return HeaderSetResponse(headers=callback.key_request_headers.snapshot())


@router.delete("/headers", response_model=HeaderSetResponse)
async def clear_all_headers(callback: LicenseCallback = Depends(get_license_callback)):
    callback.clear_all_key_request_properties()
    logger.info("All key request headers cleared")
    return HeaderSetResponse(headers={})

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import os
import sys
import tempfile
import traceback
import logging
from datetime import datetime

from drmlicense import __version__
from drmlicense.config.license_config import load_license_settings
from drmlicense.errors import LicenseError
from drmlicense.routers import license

# Robust logging configuration with fallback when file writing is not permitted
LOG_FILE_PATH = os.getenv('LOG_FILE', os.path.join(tempfile.gettempdir(), 'license_proxy.log'))
LOG_TO_FILE = os.getenv('LOG_TO_FILE', 'false').lower() in ('1', 'true', 'yes', 'on')
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
FILE_LOG_ENABLED = False

handlers = []

console_handler = logging.StreamHandler(sys.stdout)
formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
console_handler.setFormatter(formatter)
handlers.append(console_handler)

if LOG_TO_FILE:
    try:
        os.makedirs(os.path.dirname(LOG_FILE_PATH), exist_ok=True)
        file_handler = logging.FileHandler(LOG_FILE_PATH, encoding='utf-8')
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)
        FILE_LOG_ENABLED = True
    except OSError:
        # console only when the log file cannot be opened
        FILE_LOG_ENABLED = False

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    handlers=handlers
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="DRM License Proxy",
    description="Forwards DRM key and provisioning requests to a license server",
    version=__version__
)


@app.middleware("http")
async def log_requests_and_responses(request: Request, call_next):
    """Log requests and responses; bodies are opaque DRM payloads and are not logged"""
    start_time = datetime.now()
    logger.info(f"🔍 REQUEST: {request.method} {request.url.path}")
    logger.debug(f"   Query Params: {dict(request.query_params)}")

    response = await call_next(request)

    process_time = (datetime.now() - start_time).total_seconds()
    logger.info(f"✅ RESPONSE: {response.status_code} in {process_time:.3f}s")
    return response


@app.exception_handler(LicenseError)
async def license_exception_handler(request: Request, exc: LicenseError):
    """License errors escaping a route, e.g. bad configuration while building the callback"""
    logger.error(f"❌ {type(exc).__name__} in {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": type(exc).__name__,
            "kind": exc.kind.value,
            "message": str(exc),
            "timestamp": datetime.now().isoformat(),
            "path": str(request.url.path)
        }
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler that logs everything"""
    logger.error("🚨 GLOBAL EXCEPTION HANDLER TRIGGERED")
    logger.error(f"   Request: {request.method} {request.url}")
    logger.error(f"   Exception Type: {type(exc).__name__}")
    logger.error(f"   Exception Message: {str(exc)}")
    logger.error("   Full Traceback:")
    logger.error(traceback.format_exc())

    note = "Check logs for full details"
    if FILE_LOG_ENABLED:
        note = f"Check {LOG_FILE_PATH} for full details"

    return JSONResponse(
        status_code=500,
        content={
            "error": "Unhandled Exception",
            "message": str(exc),
            "type": type(exc).__name__,
            "timestamp": datetime.now().isoformat(),
            "path": str(request.url.path),
            "note": note
        }
    )


app.include_router(license.router, prefix="", tags=["license"])


@app.on_event("startup")
async def startup_diagnostics():
    try:
        logger.info("🔧 Startup diagnostics: loading license settings...")
        settings = load_license_settings()
        logger.info(f"✅ License settings loaded (sanitized): {settings.sanitized()}")
    except LicenseError as e:
        logger.error(f"❌ Startup diagnostics failed while loading license settings: {e}")


@app.get("/")
async def root():
    return {"message": "DRM License Proxy API", "version": __version__}


@app.get("/debug/status")
async def get_debug_status():
    """Server status and sanitized license configuration"""
    status = {
        "status": "running",
        "timestamp": datetime.now().isoformat(),
        "logging": {
            "file_enabled": FILE_LOG_ENABLED,
            "log_file_path": LOG_FILE_PATH,
            "level": LOG_LEVEL,
        },
    }
    try:
        settings = load_license_settings()
        status["backend"] = "drmtoday" if settings.drmtoday else "http"
        status["settings"] = settings.sanitized()
    except LicenseError as e:
        status["backend"] = "unconfigured"
        status["error"] = str(e)
    return status

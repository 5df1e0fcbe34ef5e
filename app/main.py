# app/main.py
from __future__ import annotations
import logging
import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from mangum import Mangum
from sqlalchemy.exc import SQLAlchemyError

# --- Settings / DB ---
from app.core.settings import settings
from app.core.db import init_db
from app.core.errors import AppError, classify_storage_error
from app.core.logging import set_request_id, setup_logging
from app.core.scoring import LEVEL_THRESHOLDS

# --- Routers ---
from app.routers import bulk_import, evaluations, export, health, hierarchy

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# FastAPI app
# -----------------------------------------------------------------------------
API_PREFIX = settings.API_PREFIX

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    root_path=settings.FASTAPI_ROOT_PATH,
)

# -----------------------------------------------------------------------------
# CORS
# -----------------------------------------------------------------------------
ALLOW_ALL_CORS = bool(settings.ALLOW_ALL_CORS or settings.DEBUG)
LOCALHOST_REGEX = r"http://(localhost|127\.0\.0\.1):\d+$"

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if ALLOW_ALL_CORS else settings.CORS_ORIGINS,
    allow_origin_regex=".*" if ALLOW_ALL_CORS else LOCALHOST_REGEX,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "x-request-id"],
    max_age=86400,
)

# -----------------------------------------------------------------------------
# Middleware: request id + JSON UTF-8
# -----------------------------------------------------------------------------
@app.middleware("http")
async def force_utf8_content_type(request: Request, call_next):
    response = await call_next(request)
    ct = response.headers.get("content-type", "")
    if "application/json" in ct.lower() and "charset=" not in ct.lower():
        response.headers["content-type"] = "application/json; charset=utf-8"
    return response


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
    set_request_id(request_id)
    try:
        response = await call_next(request)
    finally:
        set_request_id(None)
    response.headers["x-request-id"] = request_id
    return response

# -----------------------------------------------------------------------------
# Register routers
# -----------------------------------------------------------------------------
app.include_router(health.router,      prefix=API_PREFIX)
app.include_router(hierarchy.router,   prefix=API_PREFIX)
app.include_router(bulk_import.router, prefix=API_PREFIX)
app.include_router(export.router,      prefix=API_PREFIX)
app.include_router(evaluations.router, prefix=API_PREFIX)

# -----------------------------------------------------------------------------
# Health / Meta
# -----------------------------------------------------------------------------
@app.get("/")
def root():
    return {
        "ok": True,
        "service": settings.PROJECT_NAME,
        "prefix": API_PREFIX,
        "docs": "/docs",
        "redoc": "/redoc",
        "build": settings.BUILD_TAG,
    }

@app.get("/healthz")
def healthz():
    return {"ok": True}

@app.get(f"{API_PREFIX}/ping")
def ping():
    return {"ok": True, "prefix": API_PREFIX}

@app.get(f"{API_PREFIX}/levels")
def levels():
    return {"thresholds": LEVEL_THRESHOLDS}

# -----------------------------------------------------------------------------
# Exception handlers
# -----------------------------------------------------------------------------
@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("request failed: %s", exc.message)
    else:
        logger.info("request rejected: %s", exc.message, extra={"status": exc.status_code})
    body = {"error": exc.message}
    if exc.details is not None:
        body["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    details = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"error": "Validation failed", "details": details})


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    message = classify_storage_error(exc)
    logger.exception("storage error: %s", message)
    return JSONResponse(status_code=500, content={"error": message, "details": str(getattr(exc, "orig", None) or exc)})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("unhandled error")
    return JSONResponse(
        status_code=500,
        content={"ok": False, "error": "internal_error", "detail": str(exc)},
    )

# -----------------------------------------------------------------------------
# Startup
# -----------------------------------------------------------------------------
@app.on_event("startup")
def on_startup():
    setup_logging(settings.LOG_LEVEL, settings.LOG_JSON)
    init_db()
    logger.info("startup complete", extra={"build": settings.BUILD_TAG})

# -----------------------------------------------------------------------------
# Lambda handler
# -----------------------------------------------------------------------------
handler = Mangum(app)

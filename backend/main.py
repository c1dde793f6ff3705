import logging
import logging.config

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# ------------------------------------------------------------
# 1. CONFIG & LOGGING
# ------------------------------------------------------------
from app.core.config import settings
from app.core.errors import ClientInputError, INVALID_REQUEST, PaymentsError
from app.tasks.keep_alive import KeepAlive

LOG_LEVEL = "INFO" if settings.is_production else "DEBUG"

logging_config = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
        },
    },
    "loggers": {
        "uvicorn": {"handlers": ["console"], "level": LOG_LEVEL},
        "uvicorn.error": {"handlers": ["console"], "level": LOG_LEVEL},
        "uvicorn.access": {"handlers": ["console"], "level": LOG_LEVEL},
        "safaripay": {"handlers": ["console"], "level": LOG_LEVEL},
    },
}

logging.config.dictConfig(logging_config)
logger = logging.getLogger("safaripay")


# ------------------------------------------------------------
# 2. FASTAPI APP
# ------------------------------------------------------------
app = FastAPI(
    title="KenyaOnABudget Payments API",
    description="Stripe checkout for safari bookings and guide tips.",
    version="1.0.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
)

# ------------------------------------------------------------
# 3. CORS
# ------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ------------------------------------------------------------
# 4. ROUTERS (API ROUTES)
# ------------------------------------------------------------
from app.routers import (
    payment_router,
    system_router,
    tip_router,
    webhooks,
)

app.include_router(system_router.router)
app.include_router(payment_router.router)
app.include_router(tip_router.router, prefix="/api")
app.include_router(webhooks.router, prefix="/api")


# ------------------------------------------------------------
# 5. EXCEPTION HANDLERS
# ------------------------------------------------------------
@app.exception_handler(PaymentsError)
async def payments_error_handler(request: Request, exc: PaymentsError):
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.warning(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")

    content = {"error": exc.public_message(settings.is_production), "code": exc.code}
    if request.url.path.startswith("/api/tip"):
        content = {"success": False, **content}
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body") or "body"
    error = ClientInputError(
        INVALID_REQUEST,
        f"Invalid {field}: {first.get('msg', 'malformed request')}",
        details={"errors": len(errors)},
    )
    return await payments_error_handler(request, error)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    message = "Something went wrong. We're on it." if settings.is_production else str(exc)
    return JSONResponse(
        status_code=500,
        content={
            "error": message,
            "request_id": request.headers.get("X-Request-ID"),
        },
    )


# ------------------------------------------------------------
# 6. STARTUP / SHUTDOWN
# ------------------------------------------------------------
@app.on_event("startup")
async def startup_event():
    logger.info(f"🔥 Payment server started | Env: {settings.ENVIRONMENT} | Port: {settings.PORT}")
    logger.info(f"🌍 Allowed origins: {', '.join(settings.allowed_origins)}")

    if settings.is_production:
        keep_alive = KeepAlive.from_settings(settings)
        keep_alive.start()
        app.state.keep_alive = keep_alive
        logger.info("✅ Keep-alive pings started")


@app.on_event("shutdown")
async def shutdown_event():
    keep_alive = getattr(app.state, "keep_alive", None)
    if keep_alive:
        await keep_alive.stop()


# ------------------------------------------------------------
# 7. REQUEST LOGGING MIDDLEWARE
# ------------------------------------------------------------
@app.middleware("http")
async def log_requests(request: Request, call_next):
    client = request.client.host if request.client else "-"
    logger.info(f"➡️ {client} {request.method} {request.url.path}")
    try:
        response = await call_next(request)
    except Exception as e:
        logger.exception(f"💥 Exception during {request.method} {request.url.path}: {e}")
        raise
    logger.info(f"⬅️ {request.method} {request.url.path} → {response.status_code}")
    return response


# ------------------------------------------------------------
# 8. RUN LOCALLY
# ------------------------------------------------------------
if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info",
        access_log=True
    )

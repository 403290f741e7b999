import os
import sys
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# Ensure local imports resolve
sys.path.append(os.path.dirname(__file__))

# Core
from core.config import settings
from core.config_validator import validate_config_on_startup
from core.errors import AppError
from core.validators import is_email_error
from core.logging_config import logger

# -------------------------------------------------
# Routers
# -------------------------------------------------
from routers.auth import router as auth_router
from routers.users import router as users_router
from routers.billing import router as billing_router
from routers.stripe_webhooks import router as stripe_webhooks_router
from routers.verification import router as verification_router
from routers.invites import router as invites_router
from routers.health import router as health_router


# -------------------------------------------------
# Create the Application
# -------------------------------------------------
def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="1.0.0",
        description="Asine Super Admin API: PM registration and billing",
    )

    # -------------------------------------------------
    # CORS
    # -------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------------------------------
    # Startup
    # -------------------------------------------------
    @app.on_event("startup")
    async def on_startup():
        logger.info("🚀 Starting Asine Admin API")
        validate_config_on_startup(strict=settings.ENV == "production")

    # -------------------------------------------------
    # Error handling
    # -------------------------------------------------
    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"HTTP {exc.status_code} at {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def handle_validation(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        missing = sorted({
            str(err["loc"][-1]) for err in errors
            if err.get("type") == "missing" and err.get("loc")
        })
        if missing:
            message = f"Missing required fields: {', '.join(missing)}"
        elif any(is_email_error(err) for err in errors):
            message = "Invalid email format"
        else:
            invalid = sorted({str(err["loc"][-1]) for err in errors if err.get("loc")})
            message = f"Invalid field: {', '.join(invalid)}"
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": message},
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http(request: Request, exc: StarletteHTTPException):
        if exc.status_code in (401, 403, 500):
            logger.warning(
                f"HTTP {exc.status_code} at {request.url.path}: {exc.detail}"
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unhandled(request: Request, exc: Exception):
        logger.error("Unhandled error at %s", request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    # -------------------------------------------------
    # Register Routers
    # -------------------------------------------------

    # Auth
    app.include_router(auth_router)

    # PM self-service flow
    app.include_router(users_router)
    app.include_router(billing_router)
    app.include_router(stripe_webhooks_router)
    app.include_router(verification_router)

    # Admin
    app.include_router(invites_router)

    # Health
    app.include_router(health_router)

    return app


# Create the global FastAPI instance
app = create_app()

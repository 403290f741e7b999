# routers/health.py

from fastapi import APIRouter

from core.config import settings
from core.supabase_client import ping_supabase

router = APIRouter(
    prefix="/health",
    tags=["Health"],
)


# -----------------------------------------------------
# GET /health/db
# Profile + subscription tables reachable? No auth.
# -----------------------------------------------------
@router.get("/db", summary="Supabase / DB health check")
async def health_db():
    result = ping_supabase()
    return {
        "service": "Supabase",
        "status": result.get("status", "unknown"),
        "details": result,
    }


# -----------------------------------------------------
# GET /health/app
# Liveness plus which integrations have credentials
# -----------------------------------------------------
@router.get("/app", summary="App health check")
async def health_app():
    return {
        "service": settings.PROJECT_NAME,
        "status": "ok",
        "environment": settings.ENV,
        "integrations": {
            "supabase": bool(settings.SUPABASE_URL and settings.SUPABASE_SERVICE_ROLE_KEY),
            "stripe": bool(settings.STRIPE_SECRET_KEY),
            "stripe_test_mode": settings.stripe_test_mode,
            "stripe_webhooks": bool(settings.STRIPE_WEBHOOK_SECRET),
            "mailgun": bool(settings.MAILGUN_API_KEY),
        },
    }

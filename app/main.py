import logging

from fastapi import Depends, FastAPI, status
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.admin import router as admin_router
from app.api.webhooks import router as webhooks_router
from app.core.config import settings
from app.core.logging_config import configure_logging
from app.db.deps import get_db
from app.middleware.correlation_id import CorrelationIdMiddleware
from app.services.conversation import get_engine

configure_logging()

logger = logging.getLogger(__name__)

app = FastAPI(title="ReserveRep")

app.add_middleware(CorrelationIdMiddleware)

# Settings that must be present before serving real guests
PRODUCTION_REQUIRED = {
    "admin_token": "ADMIN_TOKEN is required in production so /admin stays reachable by operators only.",
    "twilio_auth_token": (
        "TWILIO_AUTH_TOKEN is required in production to verify X-Twilio-Signature on /webhook."
    ),
}


def missing_production_settings() -> list[str]:
    """Messages for each required production setting that is unset."""
    return [message for name, message in PRODUCTION_REQUIRED.items() if not getattr(settings, name)]


@app.on_event("startup")
async def startup_event():
    """Fail fast on a misconfigured production deploy, then log the effective config."""
    if settings.app_env == "production":
        problems = missing_production_settings()
        if problems:
            error_message = "Production environment validation failed:\n" + "\n".join(
                f"  - {problem}" for problem in problems
            )
            logger.error(error_message)
            raise RuntimeError(error_message)

    logger.info(
        f"Startup: env={settings.app_env} session_ttl={settings.session_ttl_seconds}s "
        f"signature_verification={bool(settings.twilio_auth_token)} locale={settings.copy_locale}"
    )


@app.get("/", response_class=PlainTextResponse)
def root():
    return "ReserveRep AI is running."


@app.get("/health")
def health():
    """Liveness probe; also reports how many conversations are in memory."""
    return {"ok": True, "active_sessions": len(get_engine().store)}


@app.get("/ready")
def ready(db: Session = Depends(get_db)):
    """
    Readiness probe - checks the record store answers.

    Returns 200 when SELECT 1 succeeds, 503 otherwise.
    """
    try:
        db.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"Readiness check failed: {e}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"ok": False, "database": "disconnected", "error": str(e)},
        )
    return {"ok": True, "database": "connected"}


app.include_router(webhooks_router)
app.include_router(admin_router, prefix="/admin", tags=["admin"])

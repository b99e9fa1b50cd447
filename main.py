import redis
from fastapi import FastAPI, Depends, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from app.database import get_db
from app.core.config import settings
from app.routers import auth, provisioning, onboarding, webhooks
from app.services.status_store import status_store
from app.core.logging_config import logger

# Schema is managed by Alembic

app = FastAPI(
    title="Tenant Onboarding API",
    version="1.0.0",
    redirect_slashes=False  # Disable automatic redirects to prevent POST data loss
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(provisioning.router, prefix="/api/provision", tags=["Provisioning"])
app.include_router(onboarding.router, prefix="/api/onboarding", tags=["Onboarding"])
app.include_router(webhooks.router, prefix="/api/webhooks", tags=["Webhooks"])


@app.get("/health")
async def health_check(db: Session = Depends(get_db)):
    """Database is required; Redis only degrades provisioning progress reporting."""
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service unhealthy"
        )

    try:
        status_store.client.ping()
        redis_state = "connected"
    except redis.exceptions.RedisError as e:
        logger.warning(f"Health check: Redis unavailable: {str(e)}")
        redis_state = "unavailable"

    return {
        "status": "healthy" if redis_state == "connected" else "degraded",
        "database": "connected",
        "redis": redis_state
    }

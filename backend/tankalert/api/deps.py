import logging
import secrets
from typing import Optional
from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from tankalert.config import Settings, get_settings

logger = logging.getLogger(__name__)

# auto_error=False so a missing header becomes our 401 rather than FastAPI's 403
security = HTTPBearer(auto_error=False)


def require_webhook_config(settings: Settings = Depends(get_settings)) -> Settings:
    """Fail fast when the service cannot process a batch at all."""
    missing = []
    if not settings.database_url:
        missing.append("DATABASE_URL")
    if not settings.gasbot_webhook_secret:
        missing.append("GASBOT_WEBHOOK_SECRET")
    if missing:
        logger.error(f"Webhook rejected, missing configuration: {', '.join(missing)}")
        raise HTTPException(status_code=500, detail=f"Server configuration error: missing {', '.join(missing)}")
    return settings


def verify_webhook_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(require_webhook_config),
) -> None:
    if credentials is None:
        raise HTTPException(status_code=401, detail="Missing bearer token", headers={"WWW-Authenticate": "Bearer"})
    expected = settings.gasbot_webhook_secret.encode()
    if not secrets.compare_digest(credentials.credentials.encode(), expected):
        logger.warning("Webhook rejected: invalid bearer token")
        raise HTTPException(status_code=401, detail="Invalid bearer token", headers={"WWW-Authenticate": "Bearer"})

import logging
import time
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from tankalert.api.deps import require_webhook_config, verify_webhook_token
from tankalert.config import Settings
from tankalert.database import get_db
from tankalert.schemas import WebhookResponse
from tankalert.services.ingestion import IngestionPipeline, WEBHOOK_SYNC_TYPE, record_failed_sync

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/gasbot-webhook", response_model=WebhookResponse, response_model_exclude_none=True)
async def gasbot_webhook(
    request: Request,
    settings: Settings = Depends(require_webhook_config),
    _auth: None = Depends(verify_webhook_token),
    db: Session = Depends(get_db)
):
    """Receive a batch of Gasbot device payloads (one object or an array)."""
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Request body must be valid JSON")

    if isinstance(body, dict):
        payloads = [body]
    elif isinstance(body, list):
        payloads = body
    else:
        raise HTTPException(status_code=400, detail="Expected a JSON object or array of objects")

    start = time.monotonic()
    try:
        result = IngestionPipeline(db, settings).process_batch(payloads, sync_type=WEBHOOK_SYNC_TYPE)
    except Exception as e:
        duration = int((time.monotonic() - start) * 1000)
        logger.exception(f"Gasbot webhook failed: {e}")
        record_failed_sync(db, WEBHOOK_SYNC_TYPE, e, duration)
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "Internal server error",
                "message": str(e),
                "duration": duration,
            },
        )

    return result.to_response(settings.max_reported_errors)

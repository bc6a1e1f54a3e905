import logging
import time
from typing import Optional

from tankalert.config import Settings, get_settings
from tankalert.database import SessionLocal
from tankalert.providers import get_provider
from tankalert.services.ingestion import IngestionPipeline, IngestionResult, API_SYNC_TYPE, record_failed_sync

logger = logging.getLogger(__name__)


async def run_gasbot_sync(settings: Optional[Settings] = None, session_factory=SessionLocal, **provider_options) -> Optional[IngestionResult]:
    """
    Pull the current state of every Gasbot location and feed it through the
    ingestion pipeline, exactly as if it had arrived by webhook.
    """
    settings = settings or get_settings()
    if not settings.gasbot_api_configured:
        logger.warning("Gasbot API credentials not configured, skipping pull sync")
        return None

    logger.info("Starting Gasbot API pull sync")
    start = time.monotonic()
    session = session_factory()
    try:
        provider = get_provider(
            "gasbot_api",
            base_url=settings.gasbot_api_url,
            api_key=settings.gasbot_api_key,
            api_secret=settings.gasbot_api_secret,
            timeout=settings.gasbot_api_timeout,
            retry_attempts=settings.gasbot_api_retry_attempts,
            **provider_options,
        )
        try:
            payloads = await provider.fetch_payloads()
        except Exception as e:
            logger.error(f"Gasbot pull sync failed: {e}")
            record_failed_sync(session, API_SYNC_TYPE, e, int((time.monotonic() - start) * 1000))
            return None

        return IngestionPipeline(session, settings).process_batch(payloads, sync_type=API_SYNC_TYPE)
    finally:
        session.close()
        logger.info("Gasbot API pull sync completed")

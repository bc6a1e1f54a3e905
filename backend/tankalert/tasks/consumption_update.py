import logging
from tankalert.database import SessionLocal
from tankalert.services.consumption import ConsumptionCalculator

logger = logging.getLogger(__name__)


def update_consumption_job():
    """
    Scheduled job to refresh regression-based consumption estimates
    for all enabled assets.
    """
    logger.info("Starting scheduled consumption update")
    session = SessionLocal()
    try:
        updated = ConsumptionCalculator(session).recalculate_all(days=7)
        logger.info(f"Updated consumption estimates for {updated} assets")
    except Exception as e:
        logger.error(f"Scheduler job failed: {e}")
        session.rollback()
    finally:
        session.close()
    logger.info("Scheduled consumption update completed")

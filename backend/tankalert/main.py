from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from apscheduler.schedulers.asyncio import AsyncIOScheduler
import logging
import pytz

from tankalert.config import settings
from tankalert.api import webhook, locations, assets, alerts, analytics, sync
from tankalert.tasks.consumption_update import update_consumption_job
from tankalert.tasks.gasbot_sync import run_gasbot_sync


# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Create scheduler
scheduler = AsyncIOScheduler(timezone=pytz.timezone(settings.schedule_timezone))


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting application...")
    if settings.scheduler_enabled:
        scheduler.start()

        scheduler.add_job(
            update_consumption_job,
            'cron',
            hour=3,
            minute=0,
            id='daily_consumption_update',
            replace_existing=True
        )
        logger.info("Scheduled daily consumption update job for 03:00")

        if settings.gasbot_api_configured:
            scheduler.add_job(
                run_gasbot_sync,
                'cron',
                minute=settings.gasbot_sync_minute,
                id='gasbot_api_sync',
                replace_existing=True
            )
            logger.info(f"Scheduled hourly Gasbot API sync at minute {settings.gasbot_sync_minute}")

    yield
    # Shutdown
    logger.info("Shutting down application...")
    if scheduler.running:
        scheduler.shutdown()


app = FastAPI(
    title="TankAlert",
    description="Fuel tank telemetry ingestion, consumption analytics and alerting",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(webhook.router, prefix="/api", tags=["Webhook"])
app.include_router(locations.router, prefix="/api/locations", tags=["Locations"])
app.include_router(assets.router, prefix="/api/assets", tags=["Assets"])
app.include_router(alerts.router, prefix="/api/alerts", tags=["Alerts"])
app.include_router(analytics.router, prefix="/api/analytics", tags=["Analytics"])
app.include_router(sync.router, prefix="/api/sync", tags=["Sync"])


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


@app.get("/")
async def root():
    return {"message": "TankAlert API", "docs": "/docs"}

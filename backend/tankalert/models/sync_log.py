from sqlalchemy import Column, Integer, String, DateTime, Text
from tankalert.database import Base, utcnow


class SyncLog(Base):
    __tablename__ = "agbot_sync_logs"

    id = Column(Integer, primary_key=True, index=True)
    sync_type = Column(String(50), nullable=False, index=True)  # gasbot_webhook, gasbot_api
    status = Column(String(50), default="running")  # running, success, partial, error

    locations_processed = Column(Integer, default=0)
    assets_processed = Column(Integer, default=0)
    readings_processed = Column(Integer, default=0)
    alerts_triggered = Column(Integer, default=0)
    error_count = Column(Integer, default=0)
    error_message = Column(Text, nullable=True)

    duration_ms = Column(Integer, nullable=True)
    started_at = Column(DateTime, default=utcnow)
    completed_at = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<SyncLog(id={self.id}, type='{self.sync_type}', status='{self.status}')>"

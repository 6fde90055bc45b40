"""
Service configuration model: one row per logical sync job.
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean
from sqlalchemy.sql import func
from yieldlens.core.database import Base


class ServiceConfiguration(Base):
    """Schedule settings and run history of a sync job."""

    __tablename__ = "service_configurations"

    id = Column(Integer, primary_key=True, index=True)
    service_name = Column(String(100), unique=True, nullable=False, index=True)  # e.g., "poolDataSync"

    # Descriptive metadata, refreshed from the default catalog on every bootstrap
    display_name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(50), nullable=False, default="sync")  # 'sync', 'monitoring', ...
    priority = Column(Integer, nullable=False, default=2)  # 1 = highest

    # Operator settings, never overwritten by the catalog
    interval_minutes = Column(Integer, nullable=False, default=0)  # 0 = never auto-run
    is_enabled = Column(Boolean, nullable=False, default=True, index=True)

    # Run history
    last_run = Column(DateTime(timezone=True), nullable=True)
    run_count = Column(Integer, nullable=False, default=0)
    error_count = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)
    last_error_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<ServiceConfiguration {self.service_name} every {self.interval_minutes}min enabled={self.is_enabled}>"

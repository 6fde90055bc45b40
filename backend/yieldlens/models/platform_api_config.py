"""
Platform API configuration model.
"""
from sqlalchemy import Column, Integer, String, DateTime, Boolean, JSON
from sqlalchemy.sql import func
from yieldlens.core.database import Base


class PlatformApiConfig(Base):
    """How to reach one external platform API. Credentials live in process config, not here."""

    __tablename__ = "platform_api_configs"

    id = Column(Integer, primary_key=True, index=True)
    platform_id = Column(String(100), unique=True, nullable=False, index=True)  # e.g., "lido"
    name = Column(String(200), nullable=False)  # e.g., "Lido Main API"
    api_type = Column(String(50), nullable=False)  # adapter type id in the registry
    base_url = Column(String(500), nullable=False)
    # endpoints: { "staking": "/v1/protocol/steth/apr/sma", ... }
    endpoints = Column(JSON, nullable=False, default=dict)
    headers = Column(JSON, nullable=True)
    rate_limit_rpm = Column(Integer, nullable=False, default=60)
    timeout_ms = Column(Integer, nullable=False, default=30000)
    is_enabled = Column(Boolean, nullable=False, default=True, index=True)

    # 'healthy', 'unhealthy', 'unknown'
    health_status = Column(String(20), nullable=False, default="unknown")
    last_health_check = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

"""
Platform API endpoints: configured platforms, live data and health checks.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from yieldlens.core.context import AppContext, get_context, get_platform_manager
from yieldlens.core.errors import PlatformNotFoundError
from yieldlens.services.platforms.base import AdapterResult
from yieldlens.services.platforms.manager import PlatformApiManager
from yieldlens.services.sync.jobs import get_platform_data

logger = logging.getLogger(__name__)

router = APIRouter()


class PlatformApiConfigResponse(BaseModel):
    platform_id: str
    name: str
    api_type: str
    base_url: str
    endpoints: Dict[str, str]
    rate_limit_rpm: int
    timeout_ms: int
    is_enabled: bool
    health_status: str
    last_health_check: Optional[datetime] = None
    supported: bool = True

    class Config:
        from_attributes = True


class HealthCheckResponse(BaseModel):
    platform_id: str
    health_status: str


def _require_platform(manager: PlatformApiManager, platform_id: str):
    config = manager.get_api_config(platform_id)
    if config is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Platform not found: {platform_id}",
        )
    return config


@router.get("", response_model=List[PlatformApiConfigResponse])
async def list_platforms(manager: PlatformApiManager = Depends(get_platform_manager)):
    """All configured platforms."""
    result = []
    for config in manager.get_all_api_configs():
        response = PlatformApiConfigResponse.model_validate(config)
        response.supported = manager.registry.is_supported(config.api_type)
        result.append(response)
    return result


@router.get("/{platform_id}/live")
async def get_live_data(platform_id: str, context: AppContext = Depends(get_context)) -> Dict[str, Any]:
    """Cached platform data, fetched on a miss."""
    _require_platform(context.platform_manager, platform_id)
    data = await get_platform_data(context.sync_context, platform_id)
    if data is None:
        return {"available": False}
    return {"available": True, "data": data}


@router.post("/{platform_id}/call", response_model=AdapterResult)
async def call_platform(platform_id: str, manager: PlatformApiManager = Depends(get_platform_manager)):
    """Call the platform API directly, bypassing the cache."""
    _require_platform(manager, platform_id)
    return await manager.execute_platform_api_call(platform_id)


@router.post("/{platform_id}/health", response_model=HealthCheckResponse)
async def check_platform_health(platform_id: str, manager: PlatformApiManager = Depends(get_platform_manager)):
    """Run a health check now and store its outcome."""
    try:
        health_status = await manager.update_health_status(platform_id)
    except PlatformNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return {"platform_id": platform_id, "health_status": health_status}

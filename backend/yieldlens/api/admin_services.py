"""
Admin service configuration API endpoints.
"""
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from yieldlens.core.context import get_scheduler, get_service_config
from yieldlens.core.errors import InvalidConfigurationError, ServiceNotFoundError
from yieldlens.services.scheduler.scheduler_service import SyncScheduler
from yieldlens.services.service_config.service_configuration_service import ServiceConfigurationService

logger = logging.getLogger(__name__)

router = APIRouter()


class ServiceConfigurationResponse(BaseModel):
    service_name: str
    display_name: str
    description: Optional[str] = None
    category: str
    priority: int
    interval_minutes: int
    is_enabled: bool
    last_run: Optional[datetime] = None
    run_count: int
    error_count: int
    last_error: Optional[str] = None
    last_error_at: Optional[datetime] = None
    next_run_time: Optional[datetime] = None

    class Config:
        from_attributes = True


class ServiceUpdateRequest(BaseModel):
    interval_minutes: Optional[int] = None
    is_enabled: Optional[bool] = None


class ServiceRunResponse(BaseModel):
    service_name: str
    status: str  # 'succeeded', 'failed'
    service: ServiceConfigurationResponse


def _to_response(config, scheduler: SyncScheduler) -> ServiceConfigurationResponse:
    response = ServiceConfigurationResponse.model_validate(config)
    response.next_run_time = scheduler.next_run_time(config.service_name)
    return response


@router.get("", response_model=List[ServiceConfigurationResponse])
async def list_services(
    service_config: ServiceConfigurationService = Depends(get_service_config),
    scheduler: SyncScheduler = Depends(get_scheduler),
):
    """All service configurations, highest priority first."""
    return [_to_response(config, scheduler) for config in service_config.get_all_configurations()]


@router.put("/{service_name}", response_model=ServiceConfigurationResponse)
async def update_service(
    service_name: str,
    request: ServiceUpdateRequest,
    service_config: ServiceConfigurationService = Depends(get_service_config),
    scheduler: SyncScheduler = Depends(get_scheduler),
):
    """Change a service's interval or enabled flag and re-arm its timer."""
    try:
        config = service_config.update_configuration(
            service_name,
            interval_minutes=request.interval_minutes,
            is_enabled=request.is_enabled,
        )
    except ServiceNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidConfigurationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    scheduler.reschedule(service_name)
    return _to_response(config, scheduler)


@router.post("/{service_name}/run", response_model=ServiceRunResponse)
async def run_service(
    service_name: str,
    service_config: ServiceConfigurationService = Depends(get_service_config),
    scheduler: SyncScheduler = Depends(get_scheduler),
):
    """Run a service now, regardless of its schedule."""
    try:
        result = await scheduler.run_service(service_name, manual=True)
    except ServiceNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    logger.info(f"Manual run of {service_name}: {result}")
    config = service_config.get_configuration(service_name)
    return {
        "service_name": service_name,
        "status": result,
        "service": _to_response(config, scheduler),
    }

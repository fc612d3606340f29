"""Schedule and delivery settings: public availability and back-office editing"""

from fastapi import APIRouter, Depends, HTTPException, status, Query
from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import date
import logging

from app.database import get_database
from app.api.deps import require_admin
from app.core.config_loader import ConfigLoader, get_config_loader
from app.core.scheduling import (
    store_now,
    decide,
    is_within_operating_hours,
    generate_available_dates,
    generate_time_windows,
)
from app.models.delivery import DeliveryConfig
from app.models.schedule import ScheduleConfig
from app.schemas.common import SuccessResponse
from app.schemas.settings import ScheduleAvailabilityResponse, TimeWindowsResponse

logger = logging.getLogger(__name__)

router = APIRouter()
admin_router = APIRouter()


@router.get("/schedule/availability", response_model=ScheduleAvailabilityResponse)
async def get_schedule_availability(
    db: AsyncIOMotorDatabase = Depends(get_database),
    loader: ConfigLoader = Depends(get_config_loader)
):
    """
    Whether the checkout accepts immediate and/or scheduled orders right now,
    with the dates open for scheduling.
    """
    config = await loader.get_schedule_config(db)
    now = store_now()
    decision = decide(now, config)

    available_dates = []
    if decision.allowScheduled:
        available_dates = generate_available_dates(config, now.date())

    return ScheduleAvailabilityResponse(
        mode=config.mode,
        allowImmediate=decision.allowImmediate,
        allowScheduled=decision.allowScheduled,
        schedulingRequired=decision.schedulingRequired,
        picker=decision.picker,
        withinOperatingHours=is_within_operating_hours(now, config),
        availableDates=available_dates,
        windowDurationMinutes=config.windowDurationMinutes,
    )


@router.get("/schedule/windows", response_model=TimeWindowsResponse)
async def get_time_windows(
    day: date = Query(..., alias="date"),
    db: AsyncIOMotorDatabase = Depends(get_database),
    loader: ConfigLoader = Depends(get_config_loader)
):
    """Bookable time windows of a date between minDaysAhead and maxDaysAhead"""
    config = await loader.get_schedule_config(db)
    date_key = day.isoformat()

    if date_key not in generate_available_dates(config, store_now().date()):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Date {date_key} is not available for scheduling"
        )

    return TimeWindowsResponse(date=date_key, windows=generate_time_windows(config, day))


# Back office

@admin_router.get("/settings/schedule", response_model=ScheduleConfig)
async def get_schedule_settings(
    current_user: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database),
    loader: ConfigLoader = Depends(get_config_loader)
):
    """Current schedule configuration (Admin only)"""
    return await loader.get_schedule_config(db)


@admin_router.put("/settings/schedule", response_model=ScheduleConfig)
async def update_schedule_settings(
    config: ScheduleConfig,
    current_user: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database),
    loader: ConfigLoader = Depends(get_config_loader)
):
    """
    Replace the schedule configuration (Admin only).
    Ranges crossing midnight must be split, e.g. "22:00-23:59" and "00:00-02:00".
    """
    return await loader.save_schedule_config(db, config, current_user["email"])


@admin_router.get("/settings/delivery", response_model=DeliveryConfig)
async def get_delivery_settings(
    current_user: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database),
    loader: ConfigLoader = Depends(get_config_loader)
):
    """Current delivery area configuration (Admin only)"""
    return await loader.get_delivery_config(db)


@admin_router.put("/settings/delivery", response_model=DeliveryConfig)
async def update_delivery_settings(
    config: DeliveryConfig,
    current_user: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database),
    loader: ConfigLoader = Depends(get_config_loader)
):
    """Replace the delivery area configuration (Admin only)"""
    if config.deliveryEnabled and not config.has_store_location:
        logger.warning(f"Delivery enabled without store coordinates by {current_user['email']}")
    return await loader.save_delivery_config(db, config, current_user["email"])


@admin_router.post("/settings/refresh", response_model=SuccessResponse)
async def refresh_settings(
    current_user: dict = Depends(require_admin),
    loader: ConfigLoader = Depends(get_config_loader)
):
    """Drop cached settings so the next request reads them from the database (Admin only)"""
    loader.invalidate()
    return SuccessResponse(message="Settings cache cleared")

"""Schedule availability schemas"""

from pydantic import BaseModel
from typing import List
from app.models.schedule import OperationMode, PickerMode, AvailableTimeWindow


class ScheduleAvailabilityResponse(BaseModel):
    """What the checkout may offer right now"""
    mode: OperationMode
    allowImmediate: bool
    allowScheduled: bool
    schedulingRequired: bool
    picker: PickerMode
    withinOperatingHours: bool
    availableDates: List[str]
    windowDurationMinutes: int


class TimeWindowsResponse(BaseModel):
    """Bookable windows of one date"""
    date: str
    windows: List[AvailableTimeWindow]

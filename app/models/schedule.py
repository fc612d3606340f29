"""Scheduling configuration models"""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Dict
from enum import Enum
from datetime import date
import re


TIME_RANGE_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)-([01]\d|2[0-3]):([0-5]\d)$")
DATE_KEY_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


class OperationMode(str, Enum):
    """How the store accepts orders"""
    IMMEDIATE_ONLY = "immediate-only"
    SCHEDULED_ONLY = "scheduled-only"
    HYBRID = "hybrid"


class SpecialDateMode(str, Enum):
    """Operation mode of a special date override (adds closed)"""
    CLOSED = "closed"
    IMMEDIATE_ONLY = "immediate-only"
    SCHEDULED_ONLY = "scheduled-only"
    HYBRID = "hybrid"


class PickerMode(str, Enum):
    """What the checkout shows for the date/time picker"""
    HIDDEN = "hidden"
    OPTIONAL = "optional"
    REQUIRED = "required"
    CLOSED = "closed"


def split_time_range(time_range: str) -> tuple:
    """Split "HH:MM-HH:MM" into its start and end strings"""
    start, end = time_range.split("-")
    return start, end


def validate_time_range(time_range: str) -> str:
    """
    Validate a "HH:MM-HH:MM" operating range.

    Ranges are same-day intervals: a range crossing midnight must be stored
    as two ranges ("22:00-23:59" and "00:00-02:00" on the next weekday).
    """
    if not isinstance(time_range, str) or not TIME_RANGE_PATTERN.match(time_range):
        raise ValueError(f"Invalid time range '{time_range}', expected HH:MM-HH:MM")
    start, end = split_time_range(time_range)
    if start >= end:
        raise ValueError(f"Invalid time range '{time_range}': start must be before end")
    return time_range


class WeeklySlots(BaseModel):
    """Operating ranges per weekday"""
    monday: List[str] = []
    tuesday: List[str] = []
    wednesday: List[str] = []
    thursday: List[str] = []
    friday: List[str] = []
    saturday: List[str] = []
    sunday: List[str] = []

    @field_validator(*WEEKDAYS)
    @classmethod
    def check_ranges(cls, v: List[str]) -> List[str]:
        return [validate_time_range(r) for r in v]

    def for_weekday(self, weekday: str) -> List[str]:
        return getattr(self, weekday)


class SpecialDateConfig(BaseModel):
    """Override for a single calendar date"""
    mode: SpecialDateMode = SpecialDateMode.CLOSED
    slots: List[str] = []

    @field_validator("slots")
    @classmethod
    def check_slots(cls, v: List[str]) -> List[str]:
        return [validate_time_range(r) for r in v]


class ScheduleConfig(BaseModel):
    """Weekly and holiday schedule of the store"""
    mode: OperationMode = OperationMode.IMMEDIATE_ONLY
    weekly: WeeklySlots = WeeklySlots()
    specialDates: Dict[str, SpecialDateConfig] = {}
    minDaysAhead: int = Field(default=1, ge=0)
    maxDaysAhead: int = Field(default=7, ge=0)
    windowDurationMinutes: int = Field(default=60, gt=0)

    class Config:
        json_schema_extra = {
            "example": {
                "mode": "hybrid",
                "weekly": {
                    "monday": ["08:00-12:00", "14:00-18:00"],
                    "saturday": ["08:00-12:00"],
                    "sunday": []
                },
                "specialDates": {
                    "2025-12-25": {"mode": "closed", "slots": []}
                },
                "minDaysAhead": 1,
                "maxDaysAhead": 7,
                "windowDurationMinutes": 60
            }
        }

    @field_validator("specialDates")
    @classmethod
    def check_date_keys(cls, v: Dict[str, SpecialDateConfig]) -> Dict[str, SpecialDateConfig]:
        for key in v:
            if not DATE_KEY_PATTERN.match(key):
                raise ValueError(f"Invalid special date '{key}', expected YYYY-MM-DD")
            date.fromisoformat(key)
        return v

    @model_validator(mode="after")
    def check_days_ahead(self):
        if self.minDaysAhead > self.maxDaysAhead:
            raise ValueError("minDaysAhead must not be greater than maxDaysAhead")
        return self


def default_schedule_config() -> ScheduleConfig:
    """Schedule used while no configuration has been saved"""
    weekday_slots = ["08:00-12:00", "14:00-18:00"]
    return ScheduleConfig(
        mode=OperationMode.IMMEDIATE_ONLY,
        weekly=WeeklySlots(
            monday=weekday_slots,
            tuesday=weekday_slots,
            wednesday=weekday_slots,
            thursday=weekday_slots,
            friday=weekday_slots,
            saturday=["08:00-12:00"],
            sunday=[],
        ),
        specialDates={},
        minDaysAhead=1,
        maxDaysAhead=7,
        windowDurationMinutes=60,
    )


class AvailableTimeWindow(BaseModel):
    """A bookable slice of an operating range"""
    start: str
    end: str
    date: str
    display: str

    @property
    def key(self) -> str:
        return f"{self.start}-{self.end}"


class ScheduleSelection(BaseModel):
    """Date and window picked by the customer"""
    date: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}$")
    timeWindow: str = Field(pattern=r"^\d{2}:\d{2}-\d{2}:\d{2}$")


class EligibilityDecision(BaseModel):
    """Which kinds of order the store accepts right now"""
    allowImmediate: bool
    allowScheduled: bool
    schedulingRequired: bool

    @property
    def picker(self) -> PickerMode:
        if not self.allowImmediate and not self.allowScheduled:
            return PickerMode.CLOSED
        if not self.allowScheduled:
            return PickerMode.HIDDEN
        if self.schedulingRequired:
            return PickerMode.REQUIRED
        return PickerMode.OPTIONAL

    @property
    def closed(self) -> bool:
        return self.picker == PickerMode.CLOSED

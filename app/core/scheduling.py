"""Operating hours, bookable time windows and order eligibility"""

from datetime import datetime, date, timedelta
from typing import List, Optional, Union, Dict
from zoneinfo import ZoneInfo

from app.config import settings
from app.models.schedule import (
    WEEKDAYS,
    ScheduleConfig,
    SpecialDateConfig,
    SpecialDateMode,
    OperationMode,
    AvailableTimeWindow,
    ScheduleSelection,
    EligibilityDecision,
    split_time_range,
)


def store_now() -> datetime:
    """Current wall-clock time in the store timezone"""
    return datetime.now(ZoneInfo(settings.store_timezone))


def format_date_key(day: date) -> str:
    """Calendar date as "YYYY-MM-DD" """
    return day.strftime("%Y-%m-%d")


def weekday_from_date(day: date) -> str:
    return WEEKDAYS[day.weekday()]


def to_minutes(hhmm: str) -> int:
    hours, minutes = hhmm.split(":")
    return int(hours) * 60 + int(minutes)


def from_minutes(total: int) -> str:
    return f"{total // 60:02d}:{total % 60:02d}"


def _as_date(day: Union[date, str]) -> date:
    if isinstance(day, datetime):
        return day.date()
    if isinstance(day, date):
        return day
    return date.fromisoformat(day)


def special_date_for(config: ScheduleConfig, day: date) -> Optional[SpecialDateConfig]:
    return config.specialDates.get(format_date_key(day))


def ranges_for_date(config: ScheduleConfig, day: date) -> List[str]:
    """
    Operating ranges in effect on a date.

    A special date override replaces the weekly ranges entirely; a closed
    override has no ranges at all.
    """
    override = special_date_for(config, day)
    if override is not None:
        if override.mode == SpecialDateMode.CLOSED:
            return []
        return list(override.slots)
    return list(config.weekly.for_weekday(weekday_from_date(day)))


def is_within_operating_hours(now: datetime, config: ScheduleConfig) -> bool:
    """
    True when `now` falls inside one of the operating ranges of its date.

    Ranges are compared as same-day "HH:MM" strings, inclusive on both ends.
    """
    current_time = now.strftime("%H:%M")
    for time_range in ranges_for_date(config, now.date()):
        start, end = split_time_range(time_range)
        if start <= current_time <= end:
            return True
    return False


def generate_available_dates(config: ScheduleConfig, today: Union[date, str]) -> List[str]:
    """Dates between minDaysAhead and maxDaysAhead (inclusive) that have operating ranges"""
    today = _as_date(today)
    dates = []
    for offset in range(config.minDaysAhead, config.maxDaysAhead + 1):
        day = today + timedelta(days=offset)
        override = special_date_for(config, day)
        if override is not None:
            if override.mode != SpecialDateMode.CLOSED:
                dates.append(format_date_key(day))
        elif config.weekly.for_weekday(weekday_from_date(day)):
            dates.append(format_date_key(day))
    return dates


def generate_time_windows(config: ScheduleConfig, day: Union[date, str]) -> List[AvailableTimeWindow]:
    """
    Split the operating ranges of a date into windows of windowDurationMinutes.

    Windows never extend past the end of their range: a trailing remainder
    shorter than the window duration is dropped.
    """
    day = _as_date(day)
    date_key = format_date_key(day)
    duration = config.windowDurationMinutes

    windows = []
    for time_range in ranges_for_date(config, day):
        start, end = split_time_range(time_range)
        start_minutes = to_minutes(start)
        end_minutes = to_minutes(end)

        i = start_minutes
        while i + duration <= end_minutes:
            window_start = from_minutes(i)
            window_end = from_minutes(i + duration)
            windows.append(AvailableTimeWindow(
                start=window_start,
                end=window_end,
                date=date_key,
                display=f"{window_start} - {window_end}",
            ))
            i += duration
    return windows


def decide(now: datetime, config: ScheduleConfig) -> EligibilityDecision:
    """Whether immediate and scheduled orders are accepted at `now`"""
    if config.mode == OperationMode.SCHEDULED_ONLY:
        return EligibilityDecision(
            allowImmediate=False,
            allowScheduled=True,
            schedulingRequired=True,
        )

    operating = is_within_operating_hours(now, config)

    if config.mode == OperationMode.HYBRID:
        return EligibilityDecision(
            allowImmediate=operating,
            allowScheduled=not operating,
            schedulingRequired=not operating,
        )

    return EligibilityDecision(
        allowImmediate=operating,
        allowScheduled=False,
        schedulingRequired=False,
    )


def validate_schedule_selection(
    config: ScheduleConfig,
    selection: ScheduleSelection,
    today: Union[date, str],
) -> Dict[str, str]:
    """Field errors for a selection that is not among the bookable dates and windows"""
    if selection.date not in generate_available_dates(config, today):
        return {"scheduleSelection.date": f"Date {selection.date} is not available for scheduling"}

    windows = generate_time_windows(config, selection.date)
    if selection.timeWindow not in [window.key for window in windows]:
        return {
            "scheduleSelection.timeWindow": (
                f"Time window {selection.timeWindow} is not available on {selection.date}"
            )
        }
    return {}


def check_eligibility(
    decision: EligibilityDecision,
    selection: Optional[ScheduleSelection],
) -> Dict[str, str]:
    """Field errors for a selection that does not fit the current decision"""
    if selection is None:
        if decision.schedulingRequired:
            return {"scheduleSelection": "Scheduling is required: select a date and a time window"}
        return {}
    if not decision.allowScheduled:
        return {"scheduleSelection": "Scheduled orders are not accepted right now"}
    return {}

import logging
from datetime import date, datetime, timedelta
from typing import List, Optional

from flask import current_app

from domain import schedule
from models.booking import Booking
from models.enums import BookingStatus

logger = logging.getLogger(__name__)


def slot_label(moment: datetime) -> str:
    """Render a slot start the way the booking screens show it, e.g. '9:30 AM'."""
    hour = moment.hour
    period = "PM" if hour >= 12 else "AM"
    display_hour = hour % 12 or 12
    return f"{display_hour}:{moment.minute:02d} {period}"


def slot_grid(day: date, start_hour: int = 8, end_hour: int = 18, interval_minutes: int = 30) -> List[datetime]:
    """Every slot start from start_hour to end_hour inclusive."""
    start = datetime(day.year, day.month, day.day, start_hour)
    end = datetime(day.year, day.month, day.day, end_hour)
    step = timedelta(minutes=interval_minutes)

    slots = []
    current = start
    while current <= end:
        slots.append(current)
        current += step
    return slots

def window_slots(start: datetime, end: datetime, interval_minutes: int = 30) -> List[datetime]:
    """Slot starts inside one working window, start inclusive, end exclusive."""
    step = timedelta(minutes=interval_minutes)
    slots = []
    current = start
    while current < end:
        slots.append(current)
        current += step
    return slots


def available_time_slots(provider_id: int, day: date, now: Optional[datetime] = None) -> List[dict]:
    """
    Bookable grid for one provider and day. The grid comes from the provider's
    weekly schedule for that weekday, or the configured default day when the
    provider has none. A slot is unavailable when it has already started,
    falls inside a blocked time, or the provider holds a non-cancelled booking
    starting at that time.
    """
    cfg = current_app.config
    now = now or datetime.utcnow()
    interval = cfg.get("SLOT_INTERVAL_MINUTES", 30)

    windows = schedule.open_windows(provider_id, day)
    if windows is None:
        grid = slot_grid(
            day,
            cfg.get("SLOT_DAY_START_HOUR", 8),
            cfg.get("SLOT_DAY_END_HOUR", 18),
            interval,
        )
    else:
        grid = sorted({s for start, end in windows for s in window_slots(start, end, interval)})

    day_start, day_end = schedule.day_bounds(day)
    taken = {
        b.scheduled_date.replace(second=0, microsecond=0)
        for b in Booking.query.filter(
            Booking.provider_id == provider_id,
            Booking.status != BookingStatus.CANCELLED.value,
            Booking.scheduled_date >= day_start,
            Booking.scheduled_date < day_end,
        ).all()
    }
    blocked = schedule.list_blocked_times(provider_id, day_start, day_end)
    logger.debug(
        "provider %s on %s: %d taken slots, %d blocked ranges",
        provider_id, day.isoformat(), len(taken), len(blocked),
    )

    return [
        {
            "start": slot.isoformat(),
            "label": slot_label(slot),
            "available": slot > now and slot not in taken and not schedule.is_blocked(slot, blocked),
        }
        for slot in grid
    ]

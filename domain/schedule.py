import logging
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Tuple

from domain.errors import NotFoundError
from domain.validation import validate_availability_input, validate_blocked_time_input
from models import db
from models.schedule import ProviderAvailability, ProviderBlockedTime

logger = logging.getLogger(__name__)


def weekday_index(day: date) -> int:
    """0 = Sunday .. 6 = Saturday, the numbering stored in day_of_week."""
    return (day.weekday() + 1) % 7


def list_availability(provider_id: int, day_of_week: Optional[int] = None) -> List[ProviderAvailability]:
    q = ProviderAvailability.query.filter_by(provider_id=provider_id)
    if day_of_week is not None:
        q = q.filter_by(day_of_week=day_of_week)
    return q.order_by(ProviderAvailability.day_of_week, ProviderAvailability.start_time).all()


def replace_availability(provider_id: int, windows: list) -> List[ProviderAvailability]:
    """Replace the provider's whole weekly schedule. An empty list clears it."""
    parsed = [validate_availability_input(w if isinstance(w, dict) else {}) for w in windows]

    ProviderAvailability.query.filter_by(provider_id=provider_id).delete(synchronize_session=False)
    for fields in parsed:
        db.session.add(ProviderAvailability(provider_id=provider_id, **fields))
    db.session.commit()

    logger.info("provider %s weekly schedule set (%d windows)", provider_id, len(parsed))
    return list_availability(provider_id)


def delete_availability(window_id: int, provider_id: int) -> None:
    window = ProviderAvailability.query.filter_by(id=window_id, provider_id=provider_id).first()
    if window is None:
        raise NotFoundError("Availability window not found")
    db.session.delete(window)
    db.session.commit()


def create_blocked_time(provider_id: int, data: dict) -> ProviderBlockedTime:
    fields = validate_blocked_time_input(data)
    blocked = ProviderBlockedTime(provider_id=provider_id, **fields)
    db.session.add(blocked)
    db.session.commit()
    logger.info("provider %s blocked %s to %s", provider_id, blocked.start_date, blocked.end_date)
    return blocked


def list_blocked_times(provider_id: int, start: Optional[datetime] = None, end: Optional[datetime] = None) -> List[ProviderBlockedTime]:
    """Blocked ranges overlapping [start, end), or all of them when unbounded."""
    q = ProviderBlockedTime.query.filter_by(provider_id=provider_id)
    if start is not None:
        q = q.filter(ProviderBlockedTime.end_date > start)
    if end is not None:
        q = q.filter(ProviderBlockedTime.start_date < end)
    return q.order_by(ProviderBlockedTime.start_date).all()


def delete_blocked_time(blocked_id: int, provider_id: int) -> None:
    blocked = ProviderBlockedTime.query.filter_by(id=blocked_id, provider_id=provider_id).first()
    if blocked is None:
        raise NotFoundError("Blocked time not found")
    db.session.delete(blocked)
    db.session.commit()


def _clock(day: date, hhmm: str) -> datetime:
    hours, minutes = hhmm.split(":")
    return datetime.combine(day, time(int(hours), int(minutes)))


def open_windows(provider_id: int, day: date) -> Optional[List[Tuple[datetime, datetime]]]:
    """
    Working windows for the day as (start, end) pairs. None when the provider
    never set a weekly schedule, so callers fall back to the default day.
    """
    if ProviderAvailability.query.filter_by(provider_id=provider_id).first() is None:
        return None
    return [
        (_clock(day, w.start_time), _clock(day, w.end_time))
        for w in list_availability(provider_id, weekday_index(day))
        if w.is_available
    ]


def is_blocked(moment: datetime, blocked: List[ProviderBlockedTime]) -> bool:
    return any(b.start_date <= moment < b.end_date for b in blocked)


def serialize_availability(w: ProviderAvailability) -> dict:
    return {
        "id": w.id,
        "provider_id": w.provider_id,
        "day_of_week": w.day_of_week,
        "is_available": w.is_available,
        "start_time": w.start_time,
        "end_time": w.end_time,
        "created_at": w.created_at.isoformat() if w.created_at else None,
        "updated_at": w.updated_at.isoformat() if w.updated_at else None,
    }


def serialize_blocked_time(b: ProviderBlockedTime) -> dict:
    return {
        "id": b.id,
        "provider_id": b.provider_id,
        "start_date": b.start_date.isoformat(),
        "end_date": b.end_date.isoformat(),
        "reason": b.reason,
        "created_at": b.created_at.isoformat() if b.created_at else None,
    }


def day_bounds(day: date) -> Tuple[datetime, datetime]:
    start = datetime(day.year, day.month, day.day)
    return start, start + timedelta(days=1)

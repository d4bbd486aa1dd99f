"""
Booking draft: the selections a customer accumulates while stepping through
the booking wizard (vehicle, service, provider, add-ons, date, time, location).

A draft is a plain object owned by whoever drives the wizard. It is created
empty at wizard entry, filled step by step, and cleared by ``reset()`` or by
``domain.bookings.submit_draft``. Nothing here validates or persists; that
happens at submission.

Date and time are the customer's wall clock. ``utc_offset_minutes`` (minutes
east of UTC, e.g. -300 for New York in winter) turns them into the naive UTC
datetime the store keeps.
"""
from datetime import date, datetime, timedelta
from typing import Optional

from domain.pricing import BookingPricing, compute_pricing

_SLOTS = ("vehicle", "service", "provider", "date", "time", "location")


def _identity(item):
    if isinstance(item, dict):
        return item.get("id")
    return getattr(item, "id", None)


def _price(item):
    if isinstance(item, dict):
        return item.get("price")
    return getattr(item, "price", None)


class BookingDraft:
    def __init__(self, utc_offset_minutes: int = 0):
        self.reset()
        self.utc_offset_minutes = utc_offset_minutes

    def reset(self) -> None:
        self.vehicle = None
        self.service = None
        self.provider = None
        self.add_ons = []
        self.date: Optional[date] = None
        self.time: Optional[str] = None
        self.location: Optional[dict] = None
        self.pricing: Optional[BookingPricing] = None

    def set_add_ons(self, add_ons) -> None:
        # keep first occurrence of each identity
        seen = set()
        self.add_ons = []
        for item in add_ons:
            key = _identity(item)
            if key in seen:
                continue
            seen.add(key)
            self.add_ons.append(item)

    def toggle_add_on(self, add_on) -> None:
        key = _identity(add_on)
        if any(_identity(a) == key for a in self.add_ons):
            self.add_ons = [a for a in self.add_ons if _identity(a) != key]
        else:
            self.add_ons = self.add_ons + [add_on]

    def refresh_pricing(self, currency: str = "USD") -> Optional[BookingPricing]:
        if self.service is None:
            self.pricing = None
        else:
            self.pricing = compute_pricing(
                _price(self.service),
                [_price(a) for a in self.add_ons],
                currency=currency,
            )
        return self.pricing

    def missing_selections(self) -> list:
        return [name for name in _SLOTS if getattr(self, name) in (None, "", {})]

    def scheduled_datetime(self) -> Optional[datetime]:
        if self.date is None or not self.time:
            return None
        day = self.date if isinstance(self.date, date) else date.fromisoformat(str(self.date))
        clock = datetime.strptime(self.time.strip().upper(), "%I:%M %p")
        local = datetime(day.year, day.month, day.day, clock.hour, clock.minute)
        return local - timedelta(minutes=self.utc_offset_minutes)

    def to_dict(self) -> dict:
        return {
            "vehicle_id": _identity(self.vehicle) if self.vehicle is not None else None,
            "service_id": _identity(self.service) if self.service is not None else None,
            "provider_id": _identity(self.provider) if self.provider is not None else None,
            "add_on_ids": [_identity(a) for a in self.add_ons],
            "date": self.date.isoformat() if isinstance(self.date, date) else self.date,
            "time": self.time,
            "utc_offset_minutes": self.utc_offset_minutes,
            "location": self.location,
            "pricing": self.pricing.to_dict() if self.pricing else None,
        }

"""
Input checks for the operation layer. Each ``validate_*`` function returns a
cleaned dict or raises ``ValidationError`` listing every problem found, before
anything touches the database.
"""
import re
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from flask import current_app

from domain.errors import ValidationError
from domain.pricing import to_money
from models.enums import BookingStatus, VehicleCategory

SERVICE_CATEGORIES = (
    "basic_wash",
    "premium_wash",
    "full_detail",
    "interior_detail",
    "exterior_detail",
    "paint_correction",
    "ceramic_coating",
)

_YEAR = re.compile(r"^\d{4}$")
_CLOCK = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
TENTH = Decimal("0.1")


def _cfg(name: str, default):
    try:
        return current_app.config.get(name, default)
    except RuntimeError:
        return default


def _text(data: dict, key: str) -> str:
    value = data.get(key)
    return value.strip() if isinstance(value, str) else ""


def _id(data: dict, key: str, errors: List[str]) -> Optional[int]:
    value = data.get(key)
    if isinstance(value, bool):
        value = None
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        errors.append(f"Invalid {key}")
        return None
    if parsed <= 0:
        errors.append(f"Invalid {key}")
        return None
    return parsed


def _money(data: dict, key: str, errors: List[str], label: str) -> Optional[Decimal]:
    value = data.get(key)
    if value is None or isinstance(value, bool):
        errors.append(f"{label} is required")
        return None
    try:
        amount = to_money(value)
    except (InvalidOperation, ValueError, TypeError):
        errors.append(f"{label} must be a number")
        return None
    if amount <= 0:
        errors.append(f"{label} must be positive")
        return None
    return amount


def _coordinate(data: dict, key: str, limit: float, errors: List[str]) -> Optional[float]:
    value = data.get(key)
    if value is None:
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        errors.append(f"Invalid {key}")
        return None
    if not -limit <= parsed <= limit:
        errors.append(f"Invalid {key}")
        return None
    return parsed


def parse_datetime(value) -> datetime:
    """ISO-8601 string to a naive UTC datetime (the store keeps naive UTC)."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    else:
        raise ValueError("empty datetime")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def validate_booking_input(data: dict, now: Optional[datetime] = None) -> dict:
    errors: List[str] = []
    now = now or datetime.utcnow()

    provider_id = _id(data, "provider_id", errors)
    service_id = _id(data, "service_id", errors)
    vehicle_id = _id(data, "vehicle_id", errors)

    scheduled = None
    try:
        scheduled = parse_datetime(data.get("scheduled_date"))
    except (TypeError, ValueError):
        errors.append("Invalid date format")
    if scheduled is not None and scheduled < now.replace(second=0, microsecond=0):
        errors.append("Scheduled date must not be in the past")

    min_len = int(_cfg("BOOKING_LOCATION_MIN_LEN", 5))
    location = _text(data, "location")
    if len(location) < min_len:
        errors.append(f"Location must be at least {min_len} characters")

    total_price = _money(data, "total_price", errors, "Total price")

    latitude = _coordinate(data, "latitude", 90, errors)
    longitude = _coordinate(data, "longitude", 180, errors)

    duration = data.get("estimated_duration", 60)
    try:
        duration = int(duration)
        if duration <= 0:
            raise ValueError
    except (TypeError, ValueError):
        errors.append("Invalid estimated_duration")

    notes = data.get("notes")
    if notes is not None and not isinstance(notes, str):
        errors.append("Invalid notes")

    if errors:
        raise ValidationError("Invalid booking", details=errors)

    return {
        "provider_id": provider_id,
        "service_id": service_id,
        "vehicle_id": vehicle_id,
        "scheduled_date": scheduled,
        "scheduled_time": _text(data, "scheduled_time") or None,
        "location": location,
        "latitude": latitude,
        "longitude": longitude,
        "total_price": total_price,
        "estimated_duration": duration,
        "notes": notes.strip() if isinstance(notes, str) and notes.strip() else None,
    }


def validate_status(value) -> BookingStatus:
    try:
        return BookingStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in BookingStatus)
        raise ValidationError("Invalid status", details=[f"status must be one of: {allowed}"])


def validate_vehicle_input(data: dict, partial: bool = False) -> dict:
    errors: List[str] = []
    out = {}

    for key, label in (("make", "Make"), ("model", "Model")):
        if key in data or not partial:
            value = _text(data, key)
            if not value:
                errors.append(f"{label} is required")
            out[key] = value

    if "year" in data or not partial:
        year = str(data.get("year") or "").strip()
        if not _YEAR.match(year):
            errors.append("Year must be 4 digits")
        out["year"] = year

    if "category" in data or not partial:
        try:
            out["category"] = VehicleCategory(data.get("category")).value
        except ValueError:
            errors.append("category must be one of: " + ", ".join(c.value for c in VehicleCategory))

    for key in ("color", "license_plate"):
        if key in data:
            out[key] = _text(data, key) or None

    if "is_default" in data:
        out["is_default"] = bool(data.get("is_default"))

    if errors:
        raise ValidationError("Invalid vehicle", details=errors)
    return out


def validate_service_input(data: dict, partial: bool = False) -> dict:
    errors: List[str] = []
    out = {}

    if "name" in data or not partial:
        name = _text(data, "name")
        if len(name) < 3:
            errors.append("Service name must be at least 3 characters")
        out["name"] = name

    if "description" in data or not partial:
        description = _text(data, "description")
        if len(description) < 10:
            errors.append("Description must be at least 10 characters")
        out["description"] = description

    if "category" in data or not partial:
        category = _text(data, "category")
        if category not in SERVICE_CATEGORIES:
            errors.append("category must be one of: " + ", ".join(SERVICE_CATEGORIES))
        out["category"] = category

    if "price" in data or not partial:
        out["price"] = _money(data, "price", errors, "Price")

    if "duration" in data or not partial:
        duration = _text(data, "duration")
        if not duration:
            errors.append("Duration is required")
        out["duration"] = duration

    if "is_active" in data:
        out["is_active"] = bool(data.get("is_active"))

    if errors:
        raise ValidationError("Invalid service", details=errors)
    return out


def validate_add_on_input(data: dict) -> dict:
    errors: List[str] = []
    name = _text(data, "name")
    if not name:
        errors.append("Name is required")
    price = _money(data, "price", errors, "Price")

    minutes = data.get("duration_minutes", 0)
    try:
        minutes = int(minutes)
        if minutes < 0:
            raise ValueError
    except (TypeError, ValueError):
        errors.append("Invalid duration_minutes")

    if errors:
        raise ValidationError("Invalid add-on", details=errors)
    return {
        "name": name,
        "description": _text(data, "description") or None,
        "price": price,
        "duration_minutes": minutes,
    }


def validate_rating(value, errors: List[str]) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        errors.append("Rating is required")
        return None
    try:
        rating = Decimal(str(value))
    except InvalidOperation:
        errors.append("Rating must be a number")
        return None
    if not rating.is_finite():
        errors.append("Rating must be a number")
        return None
    if rating < 1 or rating > 5:
        errors.append("Rating must be between 1 and 5")
        return None
    tenths = rating.quantize(TENTH)
    if tenths != rating:
        errors.append("Rating allows at most one decimal place")
        return None
    return tenths


def validate_review_input(data: dict, partial: bool = False) -> dict:
    errors: List[str] = []
    out = {}

    if not partial:
        out["booking_id"] = _id(data, "booking_id", errors)

    if "rating" in data or not partial:
        out["rating"] = validate_rating(data.get("rating"), errors)

    if "comment" in data:
        comment = data.get("comment")
        if comment is not None and not isinstance(comment, str):
            errors.append("Invalid comment")
        else:
            out["comment"] = comment.strip() if comment and comment.strip() else None

    if errors:
        raise ValidationError("Invalid review", details=errors)
    return out


def validate_provider_input(data: dict, partial: bool = False) -> dict:
    errors: List[str] = []
    out = {}

    if "business_name" in data or not partial:
        name = _text(data, "business_name")
        if len(name) < 2:
            errors.append("Business name must be at least 2 characters")
        out["business_name"] = name

    if "service_area" in data or not partial:
        area = _text(data, "service_area")
        if len(area) < 2:
            errors.append("Service area is required")
        out["service_area"] = area

    for key in ("bio", "address", "phone_number"):
        if key in data:
            out[key] = _text(data, key) or None

    if "latitude" in data:
        out["latitude"] = _coordinate(data, "latitude", 90, errors)
    if "longitude" in data:
        out["longitude"] = _coordinate(data, "longitude", 180, errors)

    if "service_radius" in data:
        try:
            radius = int(data.get("service_radius"))
            if radius <= 0:
                raise ValueError
            out["service_radius"] = radius
        except (TypeError, ValueError):
            errors.append("service_radius must be a positive number of meters")

    if errors:
        raise ValidationError("Invalid provider profile", details=errors)
    return out


def validate_availability_input(data: dict) -> dict:
    """One weekly window: day_of_week 0 (Sunday) to 6, HH:MM start before end."""
    errors: List[str] = []
    out = {}

    day = data.get("day_of_week")
    if isinstance(day, bool) or not isinstance(day, int) or not 0 <= day <= 6:
        errors.append("day_of_week must be 0 (Sunday) to 6 (Saturday)")
    out["day_of_week"] = day

    out["is_available"] = bool(data.get("is_available", True))

    for key in ("start_time", "end_time"):
        value = _text(data, key)
        if not _CLOCK.match(value):
            errors.append(f"{key} must be HH:MM")
        out[key] = value

    if not errors and out["start_time"] >= out["end_time"]:
        errors.append("start_time must be before end_time")

    if errors:
        raise ValidationError("Invalid availability", details=errors)
    return out


def validate_blocked_time_input(data: dict) -> dict:
    errors: List[str] = []
    out = {}

    for key in ("start_date", "end_date"):
        try:
            out[key] = parse_datetime(data.get(key))
        except (TypeError, ValueError):
            errors.append(f"Invalid {key}")

    if not errors and out["start_date"] >= out["end_date"]:
        errors.append("start_date must be before end_date")

    reason = data.get("reason")
    if reason is not None and not isinstance(reason, str):
        errors.append("Invalid reason")
    else:
        out["reason"] = reason.strip() if reason and reason.strip() else None

    if errors:
        raise ValidationError("Invalid blocked time", details=errors)
    return out

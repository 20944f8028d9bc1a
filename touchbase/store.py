import logging
from datetime import date

from sqlalchemy.orm import Session

from .config import settings
from .dates import as_date, local_today, validate_month_day
from .models import CHANNELS, Contact, Feedback, Touchpoint, User

logger = logging.getLogger(__name__)

CONTACT_FIELDS = ("name", "relationship", "city", "country", "notes", "cadence_days", "is_pinned")


class NotFound(LookupError):
    pass


# ----------------------------
# Input normalization
# ----------------------------
def _clean(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def split_location(location: str | None) -> tuple:
    """Legacy "City, Country" string -> (city, country)."""
    location = _clean(location)
    if not location:
        return None, None
    parts = [p.strip() for p in location.split(",")]
    city = parts[0] or None
    country = parts[-1] if len(parts) > 1 and parts[-1] else None
    return city, country


def _check_cadence(days) -> int:
    if days is None or int(days) < 1:
        raise ValueError("Cadence must be at least 1 day")
    return int(days)


def _check_touchpoint(channel: str, contact_date, today: date) -> date:
    if channel not in CHANNELS:
        raise ValueError(f"Unknown channel: {channel}")
    contact_date = as_date(contact_date)
    if contact_date > today:
        raise ValueError("Touchpoint date cannot be in the future")
    return contact_date


def _apply_contact_fields(c: Contact, data: dict):
    if "location" in data and not (data.get("city") or data.get("country")):
        data["city"], data["country"] = split_location(data.pop("location"))
    data.pop("location", None)

    if "birthday_month" in data or "birthday_day" in data:
        # a half-given birthday keeps the stored other half
        month = data.pop("birthday_month", c.birthday_month)
        day = data.pop("birthday_day", c.birthday_day)
        if month is None and day is None:
            c.birthday_month = c.birthday_day = None
        else:
            c.birthday_month, c.birthday_day = validate_month_day(month, day)

    for key in CONTACT_FIELDS:
        if key not in data:
            continue
        value = data[key]
        if key == "cadence_days":
            value = _check_cadence(value)
        elif key == "name":
            value = _clean(value)
            if not value:
                raise ValueError("Name is required")
        elif key != "is_pinned":
            value = _clean(value)
        setattr(c, key, value)


# ----------------------------
# Reads (collaborator queries)
# ----------------------------
def list_contacts(db: Session, owner_id: str) -> list[Contact]:
    return list(db.query(Contact).filter(Contact.user_id == owner_id).order_by(Contact.name))


def list_touchpoints(db: Session, contact_ids) -> list[Touchpoint]:
    contact_ids = list(contact_ids)
    if not contact_ids:
        return []
    return list(
        db.query(Touchpoint)
        .filter(Touchpoint.contact_id.in_(contact_ids))
        .order_by(Touchpoint.contact_date.desc(), Touchpoint.created_at.desc())
    )


def get_contact(db: Session, owner_id: str, contact_id: str) -> Contact:
    c = db.query(Contact).filter(Contact.id == contact_id, Contact.user_id == owner_id).first()
    if c is None:
        raise NotFound(f"Contact {contact_id} not found")
    return c


def get_touchpoint(db: Session, owner_id: str, touchpoint_id: str) -> Touchpoint:
    tp = (
        db.query(Touchpoint)
        .join(Contact, Touchpoint.contact_id == Contact.id)
        .filter(Touchpoint.id == touchpoint_id, Contact.user_id == owner_id)
        .first()
    )
    if tp is None:
        raise NotFound(f"Touchpoint {touchpoint_id} not found")
    return tp


# ----------------------------
# Contacts
# ----------------------------
def create_contact(db: Session, owner_id: str, data: dict, last_contact_date=None, today: date | None = None) -> Contact:
    """Insert a contact; an optional last-contact date becomes its first touchpoint."""
    today = today or local_today(settings.TIMEZONE)
    data = dict(data)
    if data.get("cadence_days") is None:
        data["cadence_days"] = get_or_create_user(db, owner_id).default_cadence_days
    c = Contact(user_id=owner_id, is_pinned=False)
    _apply_contact_fields(c, data)
    if not c.name:
        raise ValueError("Name is required")

    initial = _check_touchpoint("other", last_contact_date, today) if last_contact_date else None

    db.add(c)
    db.flush()
    if initial:
        db.add(Touchpoint(
            contact_id=c.id,
            channel="other",
            contact_date=initial,
            note="Initial touchpoint",
        ))
    db.commit()
    db.refresh(c)
    logger.info("[contacts] created %s for user %s", c.id, owner_id)
    return c


def update_contact(db: Session, owner_id: str, contact_id: str, data: dict) -> Contact:
    c = get_contact(db, owner_id, contact_id)
    _apply_contact_fields(c, dict(data))
    db.add(c)
    db.commit()
    db.refresh(c)
    return c


def set_pinned(db: Session, owner_id: str, contact_id: str, pinned: bool) -> Contact:
    return update_contact(db, owner_id, contact_id, {"is_pinned": bool(pinned)})


def delete_contact(db: Session, owner_id: str, contact_id: str):
    c = get_contact(db, owner_id, contact_id)
    db.delete(c)
    db.commit()
    logger.info("[contacts] deleted %s for user %s", contact_id, owner_id)


# ----------------------------
# Touchpoints
# ----------------------------
def log_touchpoint(db: Session, owner_id: str, contact_id: str, channel: str, contact_date=None,
                   note: str | None = None, today: date | None = None) -> Touchpoint:
    today = today or local_today(settings.TIMEZONE)
    c = get_contact(db, owner_id, contact_id)
    tp = Touchpoint(
        contact_id=c.id,
        channel=channel,
        contact_date=_check_touchpoint(channel, contact_date or today, today),
        note=_clean(note),
    )
    db.add(tp)
    db.commit()
    db.refresh(tp)
    return tp


def update_touchpoint(db: Session, owner_id: str, touchpoint_id: str, data: dict,
                      today: date | None = None) -> Touchpoint:
    today = today or local_today(settings.TIMEZONE)
    tp = get_touchpoint(db, owner_id, touchpoint_id)
    channel = data.get("channel") or tp.channel
    tp.contact_date = _check_touchpoint(channel, data.get("contact_date") or tp.contact_date, today)
    tp.channel = channel
    if "note" in data:
        tp.note = _clean(data["note"])
    db.add(tp)
    db.commit()
    db.refresh(tp)
    return tp


def delete_touchpoint(db: Session, owner_id: str, touchpoint_id: str):
    tp = get_touchpoint(db, owner_id, touchpoint_id)
    db.delete(tp)
    db.commit()


# ----------------------------
# Users / settings / feedback
# ----------------------------
def get_or_create_user(db: Session, user_id: str, email: str | None = None) -> User:
    u = db.get(User, user_id)
    if u is None:
        u = User(id=user_id, email=email, default_cadence_days=settings.DEFAULT_CADENCE_DAYS, digest_enabled=True)
        db.add(u)
        db.commit()
        db.refresh(u)
    elif email and not u.email:
        u.email = email
        db.commit()
    return u


def update_settings(db: Session, user_id: str, data: dict) -> User:
    u = get_or_create_user(db, user_id)
    if "name" in data:
        u.name = _clean(data["name"])
    if "email" in data:
        u.email = _clean(data["email"])
    if data.get("default_cadence_days") is not None:
        u.default_cadence_days = _check_cadence(data["default_cadence_days"])
    if "daily_reminder_time" in data:
        u.daily_reminder_time = _check_reminder_time(data["daily_reminder_time"])
    if data.get("digest_enabled") is not None:
        u.digest_enabled = bool(data["digest_enabled"])
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


def _check_reminder_time(value):
    value = _clean(value)
    if value is None:
        return None
    try:
        hour, minute = (int(p) for p in value.split(":"))
    except ValueError:
        raise ValueError(f"Invalid reminder time: {value}") from None
    if not (0 <= hour < 24 and 0 <= minute < 60):
        raise ValueError(f"Invalid reminder time: {value}")
    return f"{hour:02d}:{minute:02d}"


def add_feedback(db: Session, message: str, user_id: str | None = None) -> Feedback:
    message = _clean(message)
    if not message:
        raise ValueError("Feedback message is required")
    fb = Feedback(user_id=user_id, message=message)
    db.add(fb)
    db.commit()
    db.refresh(fb)
    return fb

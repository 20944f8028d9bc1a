import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Integer, Text, Date, DateTime, Boolean, ForeignKey
from sqlalchemy import orm
from sqlalchemy.sql import func

from .db import Base

CHANNELS = ("call", "text", "video", "in_person", "email", "other")


def _now():
    return datetime.now(tz=timezone.utc)


def _uuid() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"
    id = Column(String, primary_key=True)  # issued by the identity provider
    email = Column(String, nullable=True)
    name = Column(String, nullable=True)
    default_cadence_days = Column(Integer, nullable=False, default=30)
    daily_reminder_time = Column(String, nullable=True)  # "HH:MM"
    digest_enabled = Column(Boolean, nullable=False, default=True)
    last_digest_on = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Contact(Base):
    __tablename__ = "contacts"
    id = Column(String, primary_key=True, default=_uuid)
    user_id = Column(String, index=True, nullable=False)
    name = Column(String, nullable=False)
    relationship = Column(String, nullable=True, default="Friend")
    city = Column(String, nullable=True)
    country = Column(String, nullable=True)
    birthday_month = Column(Integer, nullable=True)  # no year, ever
    birthday_day = Column(Integer, nullable=True)
    cadence_days = Column(Integer, nullable=False, default=30)
    notes = Column(Text, nullable=True)
    is_pinned = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now, server_default=func.now())

    touchpoints = orm.relationship(
        "Touchpoint",
        back_populates="contact",
        cascade="all, delete-orphan",
    )

    @property
    def birthday(self):
        if self.birthday_month and self.birthday_day:
            return (self.birthday_month, self.birthday_day)
        return None


class Touchpoint(Base):
    __tablename__ = "touchpoints"
    id = Column(String, primary_key=True, default=_uuid)
    contact_id = Column(String, ForeignKey("contacts.id", ondelete="CASCADE"), index=True, nullable=False)
    channel = Column(String, nullable=False, default="other")  # one of CHANNELS
    contact_date = Column(Date, nullable=False)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now, server_default=func.now())

    contact = orm.relationship("Contact", back_populates="touchpoints")


class Feedback(Base):
    __tablename__ = "feedback"
    id = Column(String, primary_key=True, default=_uuid)
    user_id = Column(String, nullable=True)
    message = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

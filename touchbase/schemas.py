from dataclasses import asdict
from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .due import ContactStatus, DueKind, DueStatus

Channel = Literal["call", "text", "video", "in_person", "email", "other"]


class DueStatusOut(BaseModel):
    kind: DueKind
    days_since_last_contact: int
    days_until_due: int | None = None
    days_overdue: int | None = None
    never_contacted: bool = False
    override: str | None = None
    days_until_birthday: int | None = None

    @classmethod
    def from_status(cls, s: DueStatus) -> "DueStatusOut":
        return cls(**asdict(s))


class TouchpointIn(BaseModel):
    channel: Channel = "call"
    contact_date: date | None = None  # defaults to today
    note: str | None = None


class TouchpointPatch(BaseModel):
    channel: Channel | None = None
    contact_date: date | None = None
    note: str | None = None


class TouchpointOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    contact_id: str
    channel: str
    contact_date: date
    note: str | None = None
    created_at: datetime | None = None


class ContactIn(BaseModel):
    name: str = Field(min_length=1)
    relationship: str | None = "Friend"
    cadence_days: int | None = Field(default=None, ge=1)  # falls back to the user's default
    city: str | None = None
    country: str | None = None
    location: str | None = None  # legacy "City, Country"
    birthday_month: int | None = Field(default=None, ge=1, le=12)
    birthday_day: int | None = Field(default=None, ge=1, le=31)
    notes: str | None = None
    last_contact_date: date | None = None


class ContactPatch(BaseModel):
    name: str | None = None
    relationship: str | None = None
    cadence_days: int | None = Field(default=None, ge=1)
    city: str | None = None
    country: str | None = None
    location: str | None = None
    birthday_month: int | None = Field(default=None, ge=1, le=12)
    birthday_day: int | None = Field(default=None, ge=1, le=31)
    notes: str | None = None
    is_pinned: bool | None = None


class ContactOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    relationship: str | None = None
    cadence_days: int
    city: str | None = None
    country: str | None = None
    birthday_month: int | None = None
    birthday_day: int | None = None
    notes: str | None = None
    is_pinned: bool = False
    created_at: datetime | None = None
    last_touchpoint: TouchpointOut | None = None
    status: DueStatusOut | None = None

    @classmethod
    def from_result(cls, item: ContactStatus) -> "ContactOut":
        out = cls.model_validate(item.contact)
        out.last_touchpoint = TouchpointOut.model_validate(item.last_touchpoint) if item.last_touchpoint else None
        out.status = DueStatusOut.from_status(item.status)
        return out


class ContactDetailOut(ContactOut):
    touchpoints: list[TouchpointOut] = Field(default_factory=list)


class SettingsIn(BaseModel):
    name: str | None = None
    email: str | None = None
    default_cadence_days: int | None = Field(default=None, ge=1)
    daily_reminder_time: str | None = None
    digest_enabled: bool | None = None


class SettingsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str | None = None
    name: str | None = None
    default_cadence_days: int
    daily_reminder_time: str | None = None
    digest_enabled: bool = True


class FeedbackIn(BaseModel):
    message: str = Field(min_length=1)

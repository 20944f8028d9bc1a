"""Due-status engine: who should be reached out to, and how urgently.

Pure functions only. Callers pass "today" in explicitly; a batch must be
judged against a single captured date so that every contact in one listing
sees the same day.

Contacts and touchpoints are read by attribute, so ORM rows and plain
objects both work:

* contact: ``cadence_days``, ``created_at``, ``is_pinned``, ``birthday``
  (``(month, day)`` or ``None``)
* touchpoint: ``contact_date``, optionally ``created_at`` and ``contact_id``
"""

from collections import defaultdict, namedtuple
from dataclasses import dataclass, replace
from datetime import timezone
from enum import Enum

from .dates import as_date, days_between, next_occurrence

COMING_UP_WINDOW_DAYS = 7
BIRTHDAY_WINDOW_DAYS = 7


class DueKind(str, Enum):
    OVERDUE = "overdue"
    COMING_UP = "coming_up"
    ON_TRACK = "on_track"


@dataclass(frozen=True)
class DueStatus:
    kind: DueKind
    days_since_last_contact: int
    days_until_due: int | None = None
    days_overdue: int | None = None
    never_contacted: bool = False
    override: str | None = None  # "pinned" | "birthday"
    days_until_birthday: int | None = None


ContactStatus = namedtuple("ContactStatus", ["contact", "last_touchpoint", "status"])


# ----------------------------
# Touchpoints
# ----------------------------
def _recency_key(tp):
    created = getattr(tp, "created_at", None)
    if created is not None and created.tzinfo is not None:
        created = created.astimezone(timezone.utc).replace(tzinfo=None)
    return (as_date(tp.contact_date), created is not None, created)


def last_touchpoint(touchpoints):
    """Most recent touchpoint by contact_date, or None for an empty history.

    Same-day ties go to the later created_at, then to the later position
    in the input.
    """
    best = None
    best_key = None
    for tp in touchpoints:
        key = _recency_key(tp)
        if best is None or _not_older(key, best_key):
            best, best_key = tp, key
    return best


def _not_older(key, other) -> bool:
    if key[0] != other[0]:
        return key[0] > other[0]
    if key[1] and other[1]:
        return key[2] >= other[2]
    # a stamped row beats an unstamped one; two unstamped rows fall to order
    return key[1] or not other[1]


def group_by_contact(touchpoints) -> dict:
    grouped = defaultdict(list)
    for tp in touchpoints:
        grouped[tp.contact_id].append(tp)
    return dict(grouped)


# ----------------------------
# Classification
# ----------------------------
def classify(contact, last, today, tz: str | None = None) -> DueStatus:
    """Baseline status from cadence math alone.

    With no touchpoint the contact's creation date is the anchor, so a new
    contact only becomes overdue once a full cadence has passed. A future
    anchor counts as contacted today. A timestamp anchor is truncated to its
    calendar date in ``tz``.
    """
    anchor = last.contact_date if last is not None else contact.created_at
    days_since = max(0, days_between(anchor, today, tz))
    days_until_next = contact.cadence_days - days_since
    never = last is None

    if days_until_next < 0:
        return DueStatus(DueKind.OVERDUE, days_since, days_overdue=-days_until_next, never_contacted=never)
    if days_until_next <= COMING_UP_WINDOW_DAYS:
        return DueStatus(DueKind.COMING_UP, days_since, days_until_due=days_until_next, never_contacted=never)
    return DueStatus(DueKind.ON_TRACK, days_since, days_until_due=days_until_next, never_contacted=never)


def apply_overrides(status: DueStatus, contact, today) -> DueStatus:
    """Pin and upcoming-birthday upgrades. Never downgrades a status.

    A pin forces coming_up and leaves the cadence day counts as they were.
    Otherwise a birthday within the window lifts on_track to coming_up.
    The birthday countdown is reported either way.
    """
    birthday = getattr(contact, "birthday", None)
    if birthday:
        days_until = next_occurrence(birthday[0], birthday[1], today).days_until
        status = replace(status, days_until_birthday=days_until)

    if getattr(contact, "is_pinned", False):
        return replace(status, kind=DueKind.COMING_UP, override="pinned")
    if not birthday:
        return status

    if status.kind is DueKind.ON_TRACK and 0 <= days_until <= BIRTHDAY_WINDOW_DAYS:
        return replace(status, kind=DueKind.COMING_UP, override="birthday")
    return status


def due_status(contact, touchpoints, today, tz: str | None = None) -> tuple:
    last = last_touchpoint(touchpoints)
    return last, apply_overrides(classify(contact, last, today, tz), contact, today)


# ----------------------------
# Batches
# ----------------------------
def evaluate(contacts, touchpoints_by_contact: dict, today, tz: str | None = None) -> list[ContactStatus]:
    today = as_date(today, tz)
    results = []
    for c in contacts:
        last, status = due_status(c, touchpoints_by_contact.get(c.id, ()), today, tz)
        results.append(ContactStatus(c, last, status))
    return results


_KIND_RANK = {DueKind.OVERDUE: 0, DueKind.COMING_UP: 1, DueKind.ON_TRACK: 2}


def _sort_key(item: ContactStatus):
    s = item.status
    if s.kind is DueKind.OVERDUE:
        urgency = -(s.days_overdue or 0)
    elif s.days_until_due is not None:
        urgency = s.days_until_due
    else:
        urgency = -(s.days_overdue or 0)
    return (_KIND_RANK[s.kind], urgency, (getattr(item.contact, "name", "") or "").lower())


def due_order(items) -> list[ContactStatus]:
    """Overdue first (most overdue on top), then coming up, then on track."""
    return sorted(items, key=_sort_key)


def filter_kind(items, kind) -> list[ContactStatus]:
    if kind is None:
        return list(items)
    kind = DueKind(kind)
    return [i for i in items if i.status.kind is kind]

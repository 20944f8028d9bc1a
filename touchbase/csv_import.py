# touchbase/csv_import.py
import logging
import re

import pandas as pd
from sqlalchemy.orm import Session

from . import store
from .db import engine, SessionLocal, Base
from .dates import InvalidDateKind, validate_month_day

logger = logging.getLogger(__name__)

HEADER_MAP = {
    "name": "name",
    "full name": "name",
    "relationship": "relationship",
    "cadence": "cadence_days",
    "cadence days": "cadence_days",
    "city": "city",
    "country": "country",
    "location": "location",
    "birthday": "birthday",
    "notes": "notes",
    "last contact": "last_contact_date",
    "last contact date": "last_contact_date",
}

_MONTH_DAY = re.compile(r"^\s*(\d{1,2})[-/](\d{1,2})\s*$")


def normalize_cols(df: pd.DataFrame) -> pd.DataFrame:
    lower_map = {c.lower().strip().replace("_", " "): c for c in df.columns}
    rename = {}
    for norm, orig in lower_map.items():
        if norm in HEADER_MAP:
            rename[orig] = HEADER_MAP[norm]
    return df.rename(columns=rename)


def parse_birthday(value):
    """"MM-DD", "MM/DD" or any full date -> (month, day); the year is dropped."""
    if value is None or pd.isna(value) or not str(value).strip():
        return None, None
    m = _MONTH_DAY.match(str(value))
    if m:
        return validate_month_day(int(m.group(1)), int(m.group(2)))
    try:
        ts = pd.to_datetime(str(value).strip())
    except (ValueError, OverflowError):
        raise InvalidDateKind(f"Unrecognized birthday: {value!r}") from None
    return ts.month, ts.day


def _text(row, col):
    v = row.get(col)
    if v is None or pd.isna(v):
        return None
    v = str(v).strip()
    return v or None


def _row_to_contact(row) -> tuple:
    month, day = parse_birthday(row.get("birthday"))
    data = {
        "name": _text(row, "name"),
        "relationship": _text(row, "relationship") or "Friend",
        "city": _text(row, "city"),
        "country": _text(row, "country"),
        "notes": _text(row, "notes"),
    }
    if _text(row, "location"):
        data["location"] = _text(row, "location")
    if month is not None:
        data["birthday_month"], data["birthday_day"] = month, day
    cadence = row.get("cadence_days")
    if cadence is not None and not pd.isna(cadence) and str(cadence).strip():
        data["cadence_days"] = int(float(cadence))
    last = _text(row, "last_contact_date")
    last_date = pd.to_datetime(last).date() if last else None
    return data, last_date


def import_csv(path: str, owner_id: str) -> int:
    Base.metadata.create_all(bind=engine)
    df = pd.read_csv(path, dtype=str)

    # Normalize headers and ensure name presence
    df = normalize_cols(df)
    if "name" not in df.columns:
        raise ValueError("CSV must contain a Name column (any casing).")

    df["name"] = df["name"].astype(str).str.strip()
    df = df[df["name"].notna() & df["name"].ne("") & df["name"].ne("nan")].copy()

    # Same name twice in one file (any casing) is the same person
    df["_key"] = df["name"].str.lower()
    df = df.drop_duplicates(subset=["_key"], keep="first").reset_index(drop=True)

    db: Session = SessionLocal()
    count, errors = 0, 0
    try:
        existing = {c.name.lower() for c in store.list_contacts(db, owner_id)}
        for _, row in df.iterrows():
            if row["_key"] in existing:
                logger.info("[import] skipping existing contact %s", row["name"])
                continue
            try:
                data, last_date = _row_to_contact(row)
                store.create_contact(db, owner_id, data, last_contact_date=last_date)
                existing.add(row["_key"])
                count += 1
            except ValueError as e:
                db.rollback()
                errors += 1
                logger.warning("[import] row %r rejected: %s", row["name"], e)

        logger.info("[import] imported %d contacts (%d rejected)", count, errors)
    finally:
        db.close()
    return count

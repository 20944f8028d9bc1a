from datetime import date

import pytest

from touchbase import store
from touchbase.csv_import import import_csv, normalize_cols, parse_birthday
from touchbase.dates import InvalidDateKind

CSV = """Name,Relationship,Cadence Days,Location,Birthday,Notes,Last Contact
Ana Souza,Friend,14,"Lisbon, Portugal",03-04,met at climbing,2024-01-10
Ben Ito,,,,1990-12-25,,
ana souza,Family,7,,,,
,Friend,30,,,,
Cleo,Mentor,abc,,,,
Dee,Friend,30,,02/30,,
"""


@pytest.fixture
def csv_path(tmp_path):
    p = tmp_path / "contacts.csv"
    p.write_text(CSV)
    return p


def test_parse_birthday_formats():
    assert parse_birthday("03-04") == (3, 4)
    assert parse_birthday("7/9") == (7, 9)
    assert parse_birthday("1990-12-25") == (12, 25)
    assert parse_birthday("") == (None, None)
    assert parse_birthday(None) == (None, None)
    with pytest.raises(InvalidDateKind):
        parse_birthday("02-30")
    with pytest.raises(InvalidDateKind):
        parse_birthday("not a date")


def test_normalize_cols_is_case_insensitive():
    import pandas as pd

    df = normalize_cols(pd.DataFrame(columns=["NAME", "cadence_days", "Last Contact Date", "extra"]))
    assert list(df.columns) == ["name", "cadence_days", "last_contact_date", "extra"]


def test_import_csv(session_factory, csv_path):
    count = import_csv(str(csv_path), "u1")
    # lowercase duplicate of Ana is dropped; blank name, bad cadence and bad birthday are rejected
    db = session_factory()
    try:
        contacts = {c.name: c for c in store.list_contacts(db, "u1")}
        assert count == len(contacts)
        assert set(contacts) == {"Ana Souza", "Ben Ito"}

        ana = contacts["Ana Souza"]
        assert ana.cadence_days == 14
        assert (ana.city, ana.country) == ("Lisbon", "Portugal")
        assert ana.birthday == (3, 4)
        tps = store.list_touchpoints(db, [ana.id])
        assert [t.contact_date for t in tps] == [date(2024, 1, 10)]

        ben = contacts["Ben Ito"]
        assert ben.relationship == "Friend"
        assert ben.birthday == (12, 25)
        assert store.list_touchpoints(db, [ben.id]) == []
    finally:
        db.close()


def test_import_skips_existing_contacts(session_factory, csv_path):
    import_csv(str(csv_path), "u1")
    assert import_csv(str(csv_path), "u1") == 0


def test_import_requires_name_column(session_factory, tmp_path):
    p = tmp_path / "bad.csv"
    p.write_text("Email\nx@example.com\n")
    with pytest.raises(ValueError):
        import_csv(str(p), "u1")

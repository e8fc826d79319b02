from __future__ import annotations

from datetime import date, datetime

from stock_import.parsers.dates import (
    excel_serial_to_date,
    is_date_in_past,
    is_valid_ship_date,
    normalize_ship_date,
    parse_date,
)


def test_excel_serial_conversion():
    assert excel_serial_to_date(45000) == "2023-03-15"
    assert excel_serial_to_date("45000") == "2023-03-15"
    assert excel_serial_to_date(12) is None
    assert excel_serial_to_date(True) is None
    assert excel_serial_to_date("abc") is None


def test_parse_date_text_forms():
    assert parse_date("2030-03-15") == date(2030, 3, 15)
    assert parse_date("2030-03-15T00:00:00") == date(2030, 3, 15)
    assert parse_date("3/15/2030") == date(2030, 3, 15)
    assert parse_date("3/15/30") == date(2030, 3, 15)
    assert parse_date("3/15/99") == date(1999, 3, 15)
    # first part > 12 means day first
    assert parse_date("25/12/2030") == date(2030, 12, 25)
    assert parse_date("04/05/2030", day_first=True) == date(2030, 5, 4)
    assert parse_date("45000") == date(2023, 3, 15)


def test_parse_date_objects_and_placeholders():
    assert parse_date(datetime(2030, 1, 2, 10, 0)) == date(2030, 1, 2)
    assert parse_date(date(2030, 1, 2)) == date(2030, 1, 2)
    for token in ("TBD", "n/a", "", "-", None, False):
        assert parse_date(token) is None
    assert parse_date("2/30/2030") is None


def test_normalize_and_validity():
    assert normalize_ship_date("6/1/2030") == "2030-06-01"
    assert normalize_ship_date("soon") is None
    assert is_valid_ship_date("2030-06-01")
    assert not is_valid_ship_date("TBD")


def test_is_date_in_past():
    today = date(2026, 1, 1)
    assert is_date_in_past("2025-12-31", today)
    assert not is_date_in_past("2026-01-01", today)
    assert not is_date_in_past("TBD", today)

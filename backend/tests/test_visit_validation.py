"""Tests for per-row visit validation."""
from datetime import date, datetime, time

from app.services.messages import Messages
from app.services.spreadsheet import VisitImportRow
from app.services.visit_validation import parse_date, parse_time, validate_row

TR = Messages("tr")
EN = Messages("en")


def _row(**overrides) -> VisitImportRow:
    values = dict(
        row_number=2,
        customer_code="CUS-1",
        customer_name="Anadolu Gıda",
        branch_code="",
        branch_name="Merkez",
        date_value="2025-01-15",
        time_value="09:30",
        visit_type="Periyodik",
    )
    values.update(overrides)
    return VisitImportRow(**values)


def test_complete_row_is_valid_and_parsed():
    result = validate_row(_row(), TR)

    assert result.is_valid
    assert result.errors == []
    assert result.scheduled_date == date(2025, 1, 15)
    assert result.scheduled_time == time(9, 30)


def test_code_alone_identifies_customer_and_branch():
    result = validate_row(_row(customer_name="", branch_code="BR-1", branch_name=""), TR)
    assert result.is_valid


def test_every_missing_field_is_reported_with_row_number():
    row = VisitImportRow(row_number=7)

    result = validate_row(row, TR)

    assert not result.is_valid
    assert result.errors == [
        "Satır 7: Müşteri kodu veya adı zorunludur",
        "Satır 7: Şube kodu veya adı zorunludur",
        "Satır 7: Tarih zorunludur",
        "Satır 7: Saat zorunludur",
        "Satır 7: Ziyaret türü zorunludur",
    ]
    assert result.error_message == "\n".join(result.errors)


def test_malformed_date_differs_from_missing_date():
    malformed = validate_row(_row(date_value="2025-13-45"), TR)
    missing = validate_row(_row(date_value=None), TR)

    assert malformed.errors == ["Satır 2: Geçersiz tarih formatı (YYYY-AA-GG olmalı): 2025-13-45"]
    assert missing.errors == ["Satır 2: Tarih zorunludur"]


def test_malformed_time_is_reported():
    result = validate_row(_row(time_value="25:99"), TR)
    assert result.errors == ["Satır 2: Geçersiz saat formatı (SS:DD olmalı): 25:99"]


def test_errors_accumulate_instead_of_stopping_at_first():
    result = validate_row(_row(branch_name="", date_value="yarın", time_value=""), TR)
    assert len(result.errors) == 3


def test_english_messages():
    result = validate_row(_row(date_value=None), EN)
    assert result.errors == ["Row 2: Date is required"]


def test_parse_date_formats():
    assert parse_date("15.01.2025") == date(2025, 1, 15)
    assert parse_date("15/01/2025") == date(2025, 1, 15)
    assert parse_date("2025/01/15") == date(2025, 1, 15)
    assert parse_date("2025-01-15 00:00:00") == date(2025, 1, 15)
    assert parse_date("2025-01-15 09:30") == date(2025, 1, 15)
    assert parse_date(datetime(2025, 1, 15, 8, 0)) == date(2025, 1, 15)
    assert parse_date(date(2025, 1, 15)) == date(2025, 1, 15)
    assert parse_date(45672) == date(2025, 1, 15)  # Excel serial
    assert parse_date("31.02.2025") is None
    assert parse_date(True) is None


def test_parse_time_formats():
    assert parse_time("09:30") == time(9, 30)
    assert parse_time("09:30:15") == time(9, 30, 15)
    assert parse_time("14.45") == time(14, 45)
    assert parse_time(time(8, 0)) == time(8, 0)
    assert parse_time(datetime(2025, 1, 1, 16, 5)) == time(16, 5)
    assert parse_time(0.5) == time(12, 0)  # Excel day fraction
    assert parse_time(1.5) is None
    assert parse_time("noon") is None

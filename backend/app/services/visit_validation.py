"""Per-row validation for the visit import.

Validation never raises: a row is valid when its error list is empty. All
problems of a row are collected so the user can fix them in one pass.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any

from openpyxl.utils.datetime import from_excel

from app.services.messages import Messages
from app.services.spreadsheet import VisitImportRow

DATE_FORMATS = (
    "%Y-%m-%d", "%d.%m.%Y", "%d/%m/%Y", "%Y/%m/%d",
    "%Y-%m-%d %H:%M:%S", "%Y-%m-%d %H:%M",
)
TIME_FORMATS = ("%H:%M", "%H:%M:%S", "%H.%M")

ERROR_SEPARATOR = "\n"


@dataclass
class ValidatedVisitRow:
    row: VisitImportRow
    scheduled_date: date | None = None
    scheduled_time: time | None = None
    errors: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def error_message(self) -> str:
        return ERROR_SEPARATOR.join(self.errors)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if _is_number(value):
        # unformatted Excel serial
        try:
            converted = from_excel(value)
        except (OverflowError, ValueError):
            return None
        return converted.date() if isinstance(converted, datetime) else None
    raw = str(value).strip() if value is not None else ""
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(raw, fmt).date()
        except ValueError:
            continue
    return None


def parse_time(value: Any) -> time | None:
    if isinstance(value, datetime):
        return value.time()
    if isinstance(value, time):
        return value
    if _is_number(value):
        if not 0 <= value < 1:
            return None
        converted = from_excel(value)
        return converted if isinstance(converted, time) else None
    raw = str(value).strip() if value is not None else ""
    for fmt in TIME_FORMATS:
        try:
            return datetime.strptime(raw, fmt).time()
        except ValueError:
            continue
    return None


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_row(row: VisitImportRow, messages: Messages) -> ValidatedVisitRow:
    result = ValidatedVisitRow(row=row)
    n = row.row_number

    def missing(field_key: str) -> None:
        result.errors.append(messages.for_row(n, "required", field=messages(field_key)))

    if not (row.customer_code or row.customer_name):
        missing("field.customer")
    if not (row.branch_code or row.branch_name):
        missing("field.branch")

    if _is_blank(row.date_value):
        missing("field.date")
    else:
        result.scheduled_date = parse_date(row.date_value)
        if result.scheduled_date is None:
            result.errors.append(messages.for_row(n, "invalid_date", value=row.date_value))

    if _is_blank(row.time_value):
        missing("field.time")
    else:
        result.scheduled_time = parse_time(row.time_value)
        if result.scheduled_time is None:
            result.errors.append(messages.for_row(n, "invalid_time", value=row.time_value))

    if not row.visit_type:
        missing("field.visit_type")

    return result

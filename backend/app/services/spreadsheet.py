"""Spreadsheet parsing for the visit import: .xlsx/.xlsm via openpyxl, .csv via the csv module.

Only the first worksheet is read. Row 1 is the header; headers are matched
against Turkish and English aliases so both the downloadable template and
hand-made sheets work.
"""
import csv
import io
import logging
from dataclasses import dataclass
from typing import Any
from zipfile import BadZipFile

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font
from openpyxl.utils.exceptions import InvalidFileException

logger = logging.getLogger(__name__)

HEADER_ROW = 1
EXCEL_EXTENSIONS = {"xlsx", "xlsm"}
CSV_EXTENSIONS = {"csv"}
CSV_ENCODINGS = ("utf-8-sig", "cp1254")
CSV_DELIMITERS = (",", ";", "\t")

# First alias of each field is the template header.
COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "customer_code": ("Müşteri Kodu", "customerCode", "customer code"),
    "customer_name": ("Müşteri Adı", "Müşteri", "customerName", "customer", "customer name"),
    "branch_code": ("Şube Kodu", "branchCode", "branch code"),
    "branch_name": ("Şube Adı", "Şube", "branchName", "branch", "branch name"),
    "operator": ("Operatör", "operator", "operatorName", "operator name"),
    "date": ("Tarih", "date", "scheduledDate", "scheduled date"),
    "time": ("Saat", "time", "scheduledTime", "scheduled time"),
    "visit_type": ("Ziyaret Türü", "visitType", "visit type", "serviceType", "service type"),
    "notes": ("Notlar", "notes", "Not"),
}

TEMPLATE_COLUMN_WIDTHS = {
    "customer_code": 15,
    "customer_name": 30,
    "branch_code": 15,
    "branch_name": 30,
    "operator": 20,
    "date": 12,
    "time": 8,
    "visit_type": 15,
    "notes": 40,
}

TEMPLATE_SAMPLE_ROW = {
    "customer_code": "CUS-10001",
    "customer_name": "Örnek Müşteri",
    "branch_code": "BR-001",
    "branch_name": "Merkez Şube",
    "operator": "Ahmet Yılmaz",
    "date": "2025-01-15",
    "time": "09:30",
    "visit_type": "Periyodik",
    "notes": "Depo alanı kontrol edilecek",
}


class SpreadsheetError(ValueError):
    """The upload cannot be turned into rows.

    ``reason`` is a message catalogue key (``file_empty``, ``file_unreadable``,
    ``file_unsupported``, ``file_too_large``, ``too_many_rows``); ``params``
    fill its placeholders.
    """

    def __init__(self, reason: str, **params: Any):
        super().__init__(reason)
        self.reason = reason
        self.params = params


@dataclass(frozen=True)
class VisitImportRow:
    """One data line of the sheet. ``row_number`` is the real sheet row (header is row 1)."""

    row_number: int
    customer_code: str = ""
    customer_name: str = ""
    branch_code: str = ""
    branch_name: str = ""
    operator: str = ""
    date_value: Any = None
    time_value: Any = None
    visit_type: str = ""
    notes: str = ""


# ─── Cell helpers ───

def _clean_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).replace("\xa0", " ").strip()


def _clean_code(value: Any) -> str:
    raw = _clean_text(value)
    if raw.endswith(".0") and raw[:-2].isdigit():
        return raw[:-2]
    return raw


def _clean_raw(value: Any) -> Any:
    if isinstance(value, str):
        return _clean_text(value) or None
    return value


def _is_blank_line(values: tuple) -> bool:
    return all(_clean_text(v) == "" for v in values)


# dotted and dotless i fold to "i" so "TARİH" matches "Tarih"
_I_FOLD = str.maketrans({"İ": "i", "I": "i", "ı": "i", "\u0307": None})


def _header_key(value: Any) -> str:
    return "".join(ch for ch in _clean_text(value).translate(_I_FOLD).casefold() if ch not in " _-")



_HEADER_LOOKUP = {
    _header_key(alias): field
    for field, aliases in COLUMN_ALIASES.items()
    for alias in aliases
}


# ─── Readers ───

def _read_excel(content: bytes) -> list[tuple]:
    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, BadZipFile, KeyError, ValueError, OSError) as exc:
        logger.info("Rejected workbook upload: %s", exc)
        raise SpreadsheetError("file_unreadable") from exc
    try:
        if not workbook.worksheets:
            raise SpreadsheetError("file_unreadable")
        return [tuple(row) for row in workbook.worksheets[0].iter_rows(values_only=True)]
    finally:
        workbook.close()


def _decode(content: bytes) -> str:
    for encoding in CSV_ENCODINGS:
        try:
            return content.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise SpreadsheetError("file_unreadable")


def _read_csv(content: bytes) -> list[tuple]:
    text = _decode(content)
    header_line = text.split("\n", 1)[0]
    # Excel in Turkish locales saves with ";"
    delimiter = max(CSV_DELIMITERS, key=header_line.count)
    try:
        return [tuple(row) for row in csv.reader(io.StringIO(text), delimiter=delimiter)]
    except csv.Error as exc:
        raise SpreadsheetError("file_unreadable") from exc


# ─── Public API ───

def parse_visit_spreadsheet(
    content: bytes,
    filename: str,
    max_rows: int | None = None,
) -> list[VisitImportRow]:
    """Turn an uploaded file into import rows.

    Raises SpreadsheetError when the file is empty, unreadable, not .xlsx,
    .xlsm or .csv, has no recognisable header, has no data rows, or exceeds
    ``max_rows``.
    Completely blank lines are skipped without shifting row numbers.
    """
    if not content:
        raise SpreadsheetError("file_empty")

    extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if extension in EXCEL_EXTENSIONS:
        table = _read_excel(content)
    elif extension in CSV_EXTENSIONS:
        table = _read_csv(content)
    else:
        raise SpreadsheetError("file_unsupported", extension=extension or "?")

    if all(_is_blank_line(values) for values in table):
        raise SpreadsheetError("file_empty")

    columns = {
        index: _HEADER_LOOKUP[_header_key(header)]
        for index, header in enumerate(table[0])
        if _header_key(header) in _HEADER_LOOKUP
    }
    if not columns:
        raise SpreadsheetError("file_unreadable")

    rows: list[VisitImportRow] = []
    for row_number, values in enumerate(table[1:], start=HEADER_ROW + 1):
        if _is_blank_line(values):
            continue
        cells = {field: values[index] for index, field in columns.items() if index < len(values)}
        rows.append(
            VisitImportRow(
                row_number=row_number,
                customer_code=_clean_code(cells.get("customer_code")),
                customer_name=_clean_text(cells.get("customer_name")),
                branch_code=_clean_code(cells.get("branch_code")),
                branch_name=_clean_text(cells.get("branch_name")),
                operator=_clean_text(cells.get("operator")),
                date_value=_clean_raw(cells.get("date")),
                time_value=_clean_raw(cells.get("time")),
                visit_type=_clean_text(cells.get("visit_type")),
                notes=_clean_text(cells.get("notes")),
            )
        )

    if not rows:
        raise SpreadsheetError("file_empty")
    if max_rows is not None and len(rows) > max_rows:
        raise SpreadsheetError("too_many_rows", limit=max_rows)

    logger.debug("Parsed %d visit rows from %s", len(rows), filename)
    return rows


def build_template() -> bytes:
    """Import template: header row plus one sample line, as .xlsx bytes."""
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Ziyaretler"

    fields = list(COLUMN_ALIASES)
    sheet.append([COLUMN_ALIASES[f][0] for f in fields])
    sheet.append([TEMPLATE_SAMPLE_ROW[f] for f in fields])

    for cell in sheet[HEADER_ROW]:
        cell.font = Font(bold=True)
    for column_cells, field in zip(sheet.iter_cols(min_row=1, max_row=1), fields):
        sheet.column_dimensions[column_cells[0].column_letter].width = TEMPLATE_COLUMN_WIDTHS[field]

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()

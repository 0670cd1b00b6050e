"""User-facing message catalogue for the visit import (Turkish and English)."""
from app.core.config import settings

SUPPORTED_LANGUAGES = ("tr", "en")

CATALOG: dict[str, dict[str, str]] = {
    "tr": {
        "row_prefix": "Satır {row}: ",
        "field.customer": "Müşteri kodu veya adı",
        "field.branch": "Şube kodu veya adı",
        "field.date": "Tarih",
        "field.time": "Saat",
        "field.visit_type": "Ziyaret türü",
        "required": "{field} zorunludur",
        "invalid_date": "Geçersiz tarih formatı (YYYY-AA-GG olmalı): {value}",
        "invalid_time": "Geçersiz saat formatı (SS:DD olmalı): {value}",
        "customer_not_found": "Müşteri bulunamadı: {name}{code} (satır {row})",
        "branch_not_found": "Şube bulunamadı: {name}{code} - Müşteri: {customer} (satır {row})",
        "insert_failed": "Ziyaret kaydedilemedi (satır {row}): {detail}",
        "file_empty": "Excel dosyası boş veya geçersiz format",
        "file_unreadable": "Excel dosyası okunamadı. Lütfen şablona uygun bir dosya kullanın.",
        "file_unsupported": "Desteklenmeyen dosya türü (.{extension}). Yalnızca .xlsx, .xlsm ve .csv dosyaları kabul edilir.",
        "file_too_large": "Dosya çok büyük (en fazla {limit} bayt)",
        "too_many_rows": "Dosyada çok fazla satır var (en fazla {limit})",
        "company_not_found": "Şirket bulunamadı",
        "import_in_progress": "Devam eden bir içe aktarma işlemi var, lütfen bekleyin",
        "summary_success": "{count} ziyaret başarıyla eklendi",
        "summary_error": "{count} ziyaret eklenemedi",
    },
    "en": {
        "row_prefix": "Row {row}: ",
        "field.customer": "Customer code or name",
        "field.branch": "Branch code or name",
        "field.date": "Date",
        "field.time": "Time",
        "field.visit_type": "Visit type",
        "required": "{field} is required",
        "invalid_date": "Invalid date format (expected YYYY-MM-DD): {value}",
        "invalid_time": "Invalid time format (expected HH:MM): {value}",
        "customer_not_found": "Customer not found: {name}{code} (row {row})",
        "branch_not_found": "Branch not found: {name}{code} - Customer: {customer} (row {row})",
        "insert_failed": "Visit could not be saved (row {row}): {detail}",
        "file_empty": "Excel file is empty or has an invalid format",
        "file_unreadable": "Excel file could not be read. Please use the import template.",
        "file_unsupported": "Unsupported file type (.{extension}). Only .xlsx, .xlsm and .csv files are accepted.",
        "file_too_large": "File is too large (at most {limit} bytes)",
        "too_many_rows": "File has too many rows (at most {limit})",
        "company_not_found": "Company not found",
        "import_in_progress": "An import is already running, please wait",
        "summary_success": "{count} visits imported successfully",
        "summary_error": "{count} visits could not be imported",
    },
}


class Messages:
    """Formats catalogue entries for one language."""

    def __init__(self, language: str = "tr"):
        self.language = language if language in CATALOG else "tr"
        self._entries = CATALOG[self.language]

    def __call__(self, key: str, **params) -> str:
        return self._entries[key].format(**params)

    def for_row(self, row: int, key: str, **params) -> str:
        return self("row_prefix", row=row) + self(key, **params)

    def code_suffix(self, code: str | None) -> str:
        return f" ({code})" if code else ""


def pick_language(accept_language: str | None) -> str:
    """First supported primary tag from an Accept-Language header, else the configured default."""
    if accept_language:
        for part in accept_language.split(","):
            tag = part.split(";")[0].strip().lower()[:2]
            if tag in SUPPORTED_LANGUAGES:
                return tag
    return settings.IMPORT_LANGUAGE


def get_messages(accept_language: str | None = None) -> Messages:
    return Messages(pick_language(accept_language))

"""Bulk visit import: turns parsed spreadsheet rows into scheduled visits.

Rows are processed one after another. Each row either creates exactly one
``applications`` record or records one error message; a bad row never stops
the run. Every insert runs inside its own SAVEPOINT so a failed row leaves
nothing behind, and the caller commits once at the end.
"""
import logging
import random
import uuid
from collections.abc import Callable, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from sqlalchemy.exc import DataError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.application import Application
from app.services.entity_resolver import ResolvedEntities, resolve_row
from app.services.messages import Messages
from app.services.spreadsheet import SpreadsheetError, VisitImportRow
from app.services.visit_validation import ValidatedVisitRow, validate_row

logger = logging.getLogger(__name__)

CODE_MIN = 10000
CODE_MAX = 99999


# ─── Result types ───

@dataclass(frozen=True)
class ImportScope:
    """Tenant and actor for one run, resolved once before the row loop."""

    company_id: uuid.UUID
    user_id: uuid.UUID


@dataclass(frozen=True)
class RowOutcome:
    row_number: int
    application_code: str | None = None
    error: str | None = None


@dataclass
class ImportSummary:
    success_count: int = 0
    error_count: int = 0
    error_messages: list[str] = field(default_factory=list)
    application_codes: list[str] = field(default_factory=list)

    def add(self, outcome: RowOutcome) -> "ImportSummary":
        if outcome.error is None:
            self.success_count += 1
            self.application_codes.append(outcome.application_code)
        else:
            self.error_count += 1
            self.error_messages.append(outcome.error)
        return self


# ─── Application codes ───

class ApplicationCodeGenerator:
    """``APP-`` + 5 random digits, never repeating a code within one run."""

    def __init__(self, prefix: str | None = None, rng: random.Random | None = None):
        self.prefix = settings.APPLICATION_CODE_PREFIX if prefix is None else prefix
        self._rng = rng or random.SystemRandom()
        self._issued: set[str] = set()

    def __call__(self) -> str:
        while True:
            code = f"{self.prefix}{self._rng.randint(CODE_MIN, CODE_MAX)}"
            if code not in self._issued:
                self._issued.add(code)
                return code


def _store_error_text(exc: IntegrityError | DataError) -> str:
    text = str(exc.orig) if exc.orig is not None else str(exc)
    return text.strip().splitlines()[0] if text.strip() else type(exc).__name__


def _is_code_collision(exc: Exception) -> bool:
    return isinstance(exc, IntegrityError) and "application_code" in str(exc.orig)


# ─── Concurrency guard ───

_active_imports: set[uuid.UUID] = set()


class ImportInProgressError(RuntimeError):
    def __init__(self, company_id: uuid.UUID):
        super().__init__(f"Visit import already running for company {company_id}")
        self.company_id = company_id


@asynccontextmanager
async def exclusive_import(company_id: uuid.UUID):
    """Refuse a second import for the same company while one is running in this process."""
    if company_id in _active_imports:
        raise ImportInProgressError(company_id)
    _active_imports.add(company_id)
    try:
        yield
    finally:
        _active_imports.discard(company_id)


# ─── Row pipeline ───

def build_visit(
    scope: ImportScope,
    validated: ValidatedVisitRow,
    entities: ResolvedEntities,
    application_code: str,
) -> Application:
    row = validated.row
    return Application(
        company_id=scope.company_id,
        customer_id=entities.customer_id,
        branch_id=entities.branch_id,
        operator_id=entities.operator_id,
        application_code=application_code,
        scheduled_date=validated.scheduled_date,
        scheduled_time=validated.scheduled_time,
        service_types=[row.visit_type],
        notes=row.notes or None,
        status="scheduled",
        created_by=scope.user_id,
    )


async def insert_visit(
    db: AsyncSession,
    scope: ImportScope,
    validated: ValidatedVisitRow,
    entities: ResolvedEntities,
    messages: Messages,
    next_code: Callable[[], str],
    attempts: int,
) -> RowOutcome:
    row_number = validated.row.row_number
    for attempt in range(1, max(attempts, 1) + 1):
        visit = build_visit(scope, validated, entities, next_code())
        try:
            async with db.begin_nested():
                db.add(visit)
        except (IntegrityError, DataError) as exc:
            if _is_code_collision(exc) and attempt < attempts:
                logger.info("Application code %s already taken, retrying", visit.application_code)
                continue
            return RowOutcome(
                row_number,
                error=messages("insert_failed", row=row_number, detail=_store_error_text(exc)),
            )
        return RowOutcome(row_number, application_code=visit.application_code)


async def import_row(
    db: AsyncSession,
    scope: ImportScope,
    row: VisitImportRow,
    messages: Messages,
    next_code: Callable[[], str],
    attempts: int,
) -> RowOutcome:
    validated = validate_row(row, messages)
    if not validated.is_valid:
        return RowOutcome(row.row_number, error=validated.error_message)

    resolution = await resolve_row(db, scope.company_id, row)
    if resolution.customer is None:
        return RowOutcome(
            row.row_number,
            error=messages(
                "customer_not_found",
                name=row.customer_name,
                code=messages.code_suffix(row.customer_code),
                row=row.row_number,
            ),
        )
    if resolution.branch is None:
        return RowOutcome(
            row.row_number,
            error=messages(
                "branch_not_found",
                name=row.branch_name,
                code=messages.code_suffix(row.branch_code),
                customer=resolution.customer.name,
                row=row.row_number,
            ),
        )

    return await insert_visit(
        db, scope, validated, resolution.entities, messages, next_code, attempts
    )


async def import_visits(
    db: AsyncSession,
    scope: ImportScope,
    rows: Sequence[VisitImportRow],
    messages: Messages,
    next_code: Callable[[], str] | None = None,
    attempts: int | None = None,
) -> ImportSummary:
    """Process every row and return the aggregate summary. Does not commit."""
    if not rows:
        raise SpreadsheetError("file_empty")

    next_code = next_code or ApplicationCodeGenerator()
    attempts = settings.APPLICATION_CODE_ATTEMPTS if attempts is None else attempts

    logger.info("Visit import started: company=%s rows=%d", scope.company_id, len(rows))
    summary = ImportSummary()
    for row in rows:
        outcome = await import_row(db, scope, row, messages, next_code, attempts)
        if outcome.error is not None:
            logger.warning("Visit import row %d failed: %s", outcome.row_number, outcome.error)
        summary.add(outcome)

    logger.info(
        "Visit import finished: company=%s success=%d errors=%d",
        scope.company_id, summary.success_count, summary.error_count,
    )
    return summary


def summary_notifications(summary: ImportSummary, messages: Messages) -> list[tuple[str, str]]:
    """(level, text) pairs: success count, error count, then one per failed row."""
    notes: list[tuple[str, str]] = []
    if summary.success_count > 0:
        notes.append(("success", messages("summary_success", count=summary.success_count)))
    if summary.error_count > 0:
        notes.append(("error", messages("summary_error", count=summary.error_count)))
        notes.extend(("error", message) for message in summary.error_messages)
    return notes

"""Tests for the visit import orchestrator.

Resolution is patched out; the session is a small fake whose savepoints can be
told to fail, which is all the orchestrator needs from the database.
"""
import random
import uuid
from contextlib import asynccontextmanager
from datetime import date, time
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import DataError, IntegrityError

from app.services.entity_resolver import Resolution
from app.services.messages import Messages
from app.services.spreadsheet import SpreadsheetError, VisitImportRow
from app.services.visit_import import (
    ApplicationCodeGenerator,
    ImportInProgressError,
    ImportScope,
    ImportSummary,
    RowOutcome,
    _active_imports,
    exclusive_import,
    import_visits,
    summary_notifications,
)

COMPANY_ID = uuid.UUID("5b0c1f8e-3f43-4f3c-9d59-2f6c9f0a1111")
USER_ID = uuid.UUID("f96955d0-752f-4e0c-b1dc-d26d8dd1460e")
SCOPE = ImportScope(company_id=COMPANY_ID, user_id=USER_ID)
TR = Messages("tr")


# ─── Fakes ────────────────────────────────────────────────────────────────────

class FakeRecord:
    def __init__(self, name: str):
        self.id = uuid.uuid4()
        self.name = name


class FakeSession:
    """Records added objects; ``failures`` are raised by successive savepoints."""

    def __init__(self, failures=()):
        self.added = []
        self.failures = list(failures)
        self.commit = AsyncMock()

    def add(self, obj):
        self.added.append(obj)

    @asynccontextmanager
    async def begin_nested(self):
        yield
        if self.failures:
            failure = self.failures.pop(0)
            if failure is not None:
                self.added.pop()
                raise failure


def _collision():
    return IntegrityError(
        "INSERT INTO applications",
        {},
        Exception('duplicate key value violates unique constraint "applications_application_code_key"'),
    )


def _row(n: int, **overrides) -> VisitImportRow:
    values = dict(
        row_number=n,
        customer_name="Anadolu Gıda",
        branch_name="Merkez",
        date_value="2025-01-15",
        time_value="09:30",
        visit_type="Periyodik",
    )
    values.update(overrides)
    return VisitImportRow(**values)


def _resolved(customer_name="Anadolu Gıda"):
    return Resolution(customer=FakeRecord(customer_name), branch=FakeRecord("Merkez Şube"))


def _codes(*codes):
    return iter(codes).__next__


# ─── Orchestrator ─────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_all_rows_imported():
    db = FakeSession()
    resolution = _resolved()
    rows = [_row(2, notes="Mutfak"), _row(3), _row(4)]

    with patch("app.services.visit_import.resolve_row", AsyncMock(return_value=resolution)):
        summary = await import_visits(db, SCOPE, rows, TR, next_code=_codes("APP-11111", "APP-22222", "APP-33333"))

    assert summary.success_count == 3
    assert summary.error_count == 0
    assert summary.error_messages == []
    assert summary.application_codes == ["APP-11111", "APP-22222", "APP-33333"]
    assert len(db.added) == 3

    visit = db.added[0]
    assert visit.company_id == COMPANY_ID
    assert visit.customer_id == resolution.customer.id
    assert visit.branch_id == resolution.branch.id
    assert visit.operator_id is None
    assert visit.scheduled_date == date(2025, 1, 15)
    assert visit.scheduled_time == time(9, 30)
    assert visit.service_types == ["Periyodik"]
    assert visit.notes == "Mutfak"
    assert visit.status == "scheduled"
    assert visit.created_by == USER_ID
    assert db.added[1].notes is None
    db.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_unmatched_operator_still_creates_unassigned_visit():
    db = FakeSession()
    resolution = Resolution(customer=FakeRecord("Anadolu"), branch=FakeRecord("Merkez"), operator=None)

    with patch("app.services.visit_import.resolve_row", AsyncMock(return_value=resolution)):
        summary = await import_visits(db, SCOPE, [_row(2, operator="Hayalet Operatör")], TR)

    assert summary.success_count == 1
    assert summary.error_count == 0
    assert db.added[0].operator_id is None


@pytest.mark.asyncio
async def test_matched_operator_is_assigned():
    db = FakeSession()
    operator = FakeRecord("Ahmet Yılmaz")
    resolution = Resolution(customer=FakeRecord("Anadolu"), branch=FakeRecord("Merkez"), operator=operator)

    with patch("app.services.visit_import.resolve_row", AsyncMock(return_value=resolution)):
        await import_visits(db, SCOPE, [_row(2, operator="Ahmet")], TR)

    assert db.added[0].operator_id == operator.id


@pytest.mark.asyncio
async def test_unknown_customer_is_reported_and_others_continue():
    db = FakeSession()
    resolve = AsyncMock(side_effect=[_resolved(), Resolution(), _resolved()])
    rows = [_row(2), _row(3, customer_name="Bilinmeyen Ltd", customer_code="X-9"), _row(4)]

    with patch("app.services.visit_import.resolve_row", resolve):
        summary = await import_visits(db, SCOPE, rows, TR, next_code=_codes("APP-1", "APP-2"))

    assert summary.success_count == 2
    assert summary.error_count == 1
    assert summary.error_messages == ["Müşteri bulunamadı: Bilinmeyen Ltd (X-9) (satır 3)"]
    assert len(db.added) == 2


@pytest.mark.asyncio
async def test_unknown_branch_names_the_resolved_customer():
    db = FakeSession()
    resolution = Resolution(customer=FakeRecord("Anadolu Gıda A.Ş."))

    with patch("app.services.visit_import.resolve_row", AsyncMock(return_value=resolution)):
        summary = await import_visits(db, SCOPE, [_row(5, branch_name="Ankara")], TR)

    assert summary.error_messages == [
        "Şube bulunamadı: Ankara - Müşteri: Anadolu Gıda A.Ş. (satır 5)"
    ]
    assert db.added == []


@pytest.mark.asyncio
async def test_invalid_row_never_reaches_resolution():
    db = FakeSession()
    resolve = AsyncMock(return_value=_resolved())

    with patch("app.services.visit_import.resolve_row", resolve):
        summary = await import_visits(db, SCOPE, [_row(2, date_value="2025-13-45", time_value="")], TR)

    resolve.assert_not_awaited()
    assert summary.error_count == 1
    assert summary.error_messages == [
        "Satır 2: Geçersiz tarih formatı (YYYY-AA-GG olmalı): 2025-13-45\nSatır 2: Saat zorunludur"
    ]


@pytest.mark.asyncio
async def test_insert_failure_is_a_row_error():
    fk_error = IntegrityError(
        "INSERT INTO applications", {}, Exception('insert violates foreign key constraint "fk_branch"')
    )
    db = FakeSession(failures=[fk_error, None])

    with patch("app.services.visit_import.resolve_row", AsyncMock(return_value=_resolved())):
        summary = await import_visits(db, SCOPE, [_row(2), _row(3)], TR, next_code=_codes("APP-1", "APP-2"))

    assert summary.success_count == 1
    assert summary.application_codes == ["APP-2"]
    assert summary.error_messages == [
        'Ziyaret kaydedilemedi (satır 2): insert violates foreign key constraint "fk_branch"'
    ]


@pytest.mark.asyncio
async def test_data_error_is_a_row_error():
    db = FakeSession(failures=[DataError("INSERT", {}, Exception("value too long for type character varying(100)"))])

    with patch("app.services.visit_import.resolve_row", AsyncMock(return_value=_resolved())):
        summary = await import_visits(db, SCOPE, [_row(2)], TR)

    assert summary.error_count == 1
    assert "value too long" in summary.error_messages[0]


@pytest.mark.asyncio
async def test_code_collision_is_retried_with_a_new_code():
    db = FakeSession(failures=[_collision(), None])

    with patch("app.services.visit_import.resolve_row", AsyncMock(return_value=_resolved())):
        summary = await import_visits(
            db, SCOPE, [_row(2)], TR, next_code=_codes("APP-11111", "APP-22222"), attempts=3
        )

    assert summary.success_count == 1
    assert summary.application_codes == ["APP-22222"]
    assert [v.application_code for v in db.added] == ["APP-22222"]


@pytest.mark.asyncio
async def test_code_collision_gives_up_after_attempts():
    db = FakeSession(failures=[_collision(), _collision()])

    with patch("app.services.visit_import.resolve_row", AsyncMock(return_value=_resolved())):
        summary = await import_visits(db, SCOPE, [_row(2)], TR, next_code=_codes("APP-1", "APP-2"), attempts=2)

    assert summary.success_count == 0
    assert summary.error_count == 1
    assert summary.error_messages[0].startswith("Ziyaret kaydedilemedi (satır 2): ")


@pytest.mark.asyncio
async def test_empty_row_list_is_rejected():
    with pytest.raises(SpreadsheetError) as exc_info:
        await import_visits(FakeSession(), SCOPE, [], TR)
    assert exc_info.value.reason == "file_empty"


@pytest.mark.asyncio
async def test_database_outage_propagates():
    from sqlalchemy.exc import OperationalError

    failing = AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("connection lost")))
    with patch("app.services.visit_import.resolve_row", failing):
        with pytest.raises(OperationalError):
            await import_visits(FakeSession(), SCOPE, [_row(2)], TR)


# ─── Codes ────────────────────────────────────────────────────────────────────

def test_generated_codes_have_prefix_and_five_digits():
    generate = ApplicationCodeGenerator(prefix="APP-", rng=random.Random(7))
    for _ in range(50):
        code = generate()
        assert code.startswith("APP-")
        assert 10000 <= int(code[4:]) <= 99999


def test_generator_never_repeats_within_a_run():
    rng = random.Random()
    rng.randint = lambda a, b: next(values)
    values = iter([12345, 12345, 12345, 54321])

    generate = ApplicationCodeGenerator(prefix="APP-", rng=rng)

    assert generate() == "APP-12345"
    assert generate() == "APP-54321"


# ─── Summary & notifications ──────────────────────────────────────────────────

def test_summary_fold_counts_outcomes():
    summary = ImportSummary()
    summary.add(RowOutcome(2, application_code="APP-1"))
    summary.add(RowOutcome(3, error="boom"))
    summary.add(RowOutcome(4, application_code="APP-2"))

    assert summary.success_count + summary.error_count == 3
    assert summary.error_count == len(summary.error_messages)
    assert summary.application_codes == ["APP-1", "APP-2"]


def test_notifications_for_mixed_result():
    summary = ImportSummary(success_count=2, error_count=1, error_messages=["Satır 3: Tarih zorunludur"])

    assert summary_notifications(summary, TR) == [
        ("success", "2 ziyaret başarıyla eklendi"),
        ("error", "1 ziyaret eklenemedi"),
        ("error", "Satır 3: Tarih zorunludur"),
    ]


def test_notifications_skip_zero_counts():
    assert summary_notifications(ImportSummary(success_count=3), Messages("en")) == [
        ("success", "3 visits imported successfully"),
    ]


# ─── Concurrency guard ────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_second_import_for_same_company_is_refused():
    other_company = uuid.uuid4()

    async with exclusive_import(COMPANY_ID):
        with pytest.raises(ImportInProgressError):
            async with exclusive_import(COMPANY_ID):
                pass
        async with exclusive_import(other_company):
            pass

    assert COMPANY_ID not in _active_imports


@pytest.mark.asyncio
async def test_guard_released_after_failure():
    with pytest.raises(RuntimeError):
        async with exclusive_import(COMPANY_ID):
            raise RuntimeError("boom")

    async with exclusive_import(COMPANY_ID):
        pass

"""Maps the codes and names typed into an import row to stored records.

Customer and branch are found with ordered lookup strategies: exact code
first, then a case-insensitive partial name match. The first strategy that
yields exactly one record wins. A lookup that matches several records counts
as no match, so an ambiguous name never picks an arbitrary customer.

Nothing here raises for "not found"; the caller decides what a missing
customer or branch means. Database errors propagate unchanged.
"""
import logging
import uuid
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import TypeVar

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.customer import Branch, Customer
from app.models.operator import Operator
from app.services.spreadsheet import VisitImportRow

logger = logging.getLogger(__name__)

T = TypeVar("T")

# (session, scope id, row) -> match or None. Scope is the company for
# customers and operators, the resolved customer for branches.
LookupStrategy = Callable[[AsyncSession, uuid.UUID, VisitImportRow], Awaitable[T | None]]


@dataclass(frozen=True)
class ResolvedEntities:
    customer_id: uuid.UUID
    branch_id: uuid.UUID
    operator_id: uuid.UUID | None = None


@dataclass
class Resolution:
    customer: Customer | None = None
    branch: Branch | None = None
    operator: Operator | None = None

    @property
    def entities(self) -> ResolvedEntities | None:
        if self.customer is None or self.branch is None:
            return None
        return ResolvedEntities(
            customer_id=self.customer.id,
            branch_id=self.branch.id,
            operator_id=self.operator.id if self.operator is not None else None,
        )


# ─── Query helpers ───

def _contains(column, text: str):
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return column.ilike(f"%{escaped}%", escape="\\")


async def _single_match(db: AsyncSession, stmt: Select, what: str, term: str):
    matches = (await db.execute(stmt.limit(2))).scalars().all()
    if len(matches) > 1:
        logger.info("Ambiguous %s lookup for %r; treating as not found", what, term)
        return None
    return matches[0] if matches else None


# ─── Customer strategies ───

async def customer_by_code(db: AsyncSession, company_id: uuid.UUID, row: VisitImportRow) -> Customer | None:
    if not row.customer_code:
        return None
    stmt = select(Customer).where(
        Customer.company_id == company_id,
        Customer.customer_code == row.customer_code,
    )
    return await _single_match(db, stmt, "customer code", row.customer_code)


async def customer_by_name(db: AsyncSession, company_id: uuid.UUID, row: VisitImportRow) -> Customer | None:
    if not row.customer_name:
        return None
    stmt = select(Customer).where(
        Customer.company_id == company_id,
        _contains(Customer.name, row.customer_name),
    )
    return await _single_match(db, stmt, "customer name", row.customer_name)


# ─── Branch strategies ───

async def branch_by_code(db: AsyncSession, customer_id: uuid.UUID, row: VisitImportRow) -> Branch | None:
    if not row.branch_code:
        return None
    stmt = select(Branch).where(
        Branch.customer_id == customer_id,
        Branch.branch_code == row.branch_code,
    )
    return await _single_match(db, stmt, "branch code", row.branch_code)


async def branch_by_name(db: AsyncSession, customer_id: uuid.UUID, row: VisitImportRow) -> Branch | None:
    if not row.branch_name:
        return None
    stmt = select(Branch).where(
        Branch.customer_id == customer_id,
        _contains(Branch.name, row.branch_name),
    )
    return await _single_match(db, stmt, "branch name", row.branch_name)


CUSTOMER_LOOKUPS: tuple[LookupStrategy[Customer], ...] = (customer_by_code, customer_by_name)
BRANCH_LOOKUPS: tuple[LookupStrategy[Branch], ...] = (branch_by_code, branch_by_name)


async def first_match(
    lookups: Sequence[LookupStrategy[T]],
    db: AsyncSession,
    scope_id: uuid.UUID,
    row: VisitImportRow,
) -> T | None:
    """Run lookups in order and return the first hit."""
    for lookup in lookups:
        match = await lookup(db, scope_id, row)
        if match is not None:
            return match
    return None


# ─── Operator ───

async def find_operator(db: AsyncSession, company_id: uuid.UUID, row: VisitImportRow) -> Operator | None:
    """Best effort: only approved, active operators of the company are considered."""
    if not row.operator:
        return None
    stmt = select(Operator).where(
        Operator.company_id == company_id,
        Operator.status == "approved",
        Operator.is_active.is_(True),
        _contains(Operator.name, row.operator),
    )
    operator = await _single_match(db, stmt, "operator name", row.operator)
    if operator is None:
        logger.info("Row %d: operator %r not matched, visit left unassigned", row.row_number, row.operator)
    return operator


async def resolve_row(db: AsyncSession, company_id: uuid.UUID, row: VisitImportRow) -> Resolution:
    customer = await first_match(CUSTOMER_LOOKUPS, db, company_id, row)
    if customer is None:
        return Resolution()

    branch = await first_match(BRANCH_LOOKUPS, db, customer.id, row)
    if branch is None:
        return Resolution(customer=customer)

    operator = await find_operator(db, company_id, row)
    return Resolution(customer=customer, branch=branch, operator=operator)

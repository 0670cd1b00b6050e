"""Scheduled visit listing for the current company."""
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.deps import get_request_messages, require_company, require_role
from app.db.session import get_session
from app.models.application import Application
from app.schemas.visit import VisitListItem, VisitListResponse
from app.services.messages import Messages

router = APIRouter()


@router.get("", response_model=VisitListResponse, summary="List the company's scheduled visits (COMPANY)")
async def list_visits(
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: Annotated[object, Depends(require_role("COMPANY"))],
    messages: Annotated[Messages, Depends(get_request_messages)],
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
    status: str | None = Query(default=None),
    date_from: date | None = Query(default=None),
    date_to: date | None = Query(default=None),
):
    company = await require_company(db, current_user, messages)

    filters = [Application.company_id == company.id]
    if status:
        filters.append(Application.status == status)
    if date_from:
        filters.append(Application.scheduled_date >= date_from)
    if date_to:
        filters.append(Application.scheduled_date <= date_to)

    count_stmt = select(func.count()).select_from(Application).where(*filters)
    total = (await db.execute(count_stmt)).scalar_one()

    stmt = (
        select(Application)
        .options(
            selectinload(Application.customer),
            selectinload(Application.branch),
            selectinload(Application.operator),
        )
        .where(*filters)
        .order_by(Application.scheduled_date.desc(), Application.scheduled_time.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    visits = (await db.execute(stmt)).scalars().all()

    items = [
        VisitListItem(
            id=v.id,
            application_code=v.application_code,
            scheduled_date=v.scheduled_date,
            scheduled_time=v.scheduled_time,
            status=v.status,
            service_types=v.service_types or [],
            notes=v.notes,
            customer_name=v.customer.name if v.customer else None,
            branch_name=v.branch.name if v.branch else None,
            operator_name=v.operator.name if v.operator else None,
            created_at=v.created_at,
        )
        for v in visits
    ]
    return VisitListResponse(items=items, total=total, page=page, page_size=page_size)

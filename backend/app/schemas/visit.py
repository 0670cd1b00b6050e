"""Pydantic schemas for scheduled visit listings."""
import uuid
from datetime import date, datetime, time

from pydantic import BaseModel, ConfigDict


class VisitListItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    application_code: str
    scheduled_date: date
    scheduled_time: time
    status: str
    service_types: list[str]
    notes: str | None = None
    customer_name: str | None = None
    branch_name: str | None = None
    operator_name: str | None = None
    created_at: datetime | None = None


class VisitListResponse(BaseModel):
    items: list[VisitListItem]
    total: int
    page: int
    page_size: int

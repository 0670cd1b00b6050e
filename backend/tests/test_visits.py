"""Tests for the scheduled visit listing."""
import uuid
from datetime import date, datetime, time, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import AsyncClient, ASGITransport

from app.core.deps import get_current_user
from app.db.session import get_session
from app.main import app


class FakeUser:
    def __init__(self):
        self.id = uuid.UUID("f96955d0-752f-4e0c-b1dc-d26d8dd1460e")
        self.email = "firma@example.com"
        self.role = "COMPANY"
        self.is_active = True


class Named:
    def __init__(self, name):
        self.id = uuid.uuid4()
        self.name = name


class FakeVisit:
    def __init__(self):
        self.id = uuid.uuid4()
        self.application_code = "APP-48213"
        self.scheduled_date = date(2025, 1, 15)
        self.scheduled_time = time(9, 30)
        self.status = "scheduled"
        self.service_types = ["Periyodik"]
        self.notes = None
        self.customer = Named("Anadolu Gıda")
        self.branch = Named("Merkez Şube")
        self.operator = None
        self.created_at = datetime(2025, 1, 10, 8, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_list_visits_returns_company_visits():
    company_result = MagicMock()
    company_result.scalar_one_or_none.return_value = Named("Demo İlaçlama")
    count_result = MagicMock()
    count_result.scalar_one.return_value = 1
    list_result = MagicMock()
    list_result.scalars.return_value.all.return_value = [FakeVisit()]

    mock_session = AsyncMock()
    mock_session.execute = AsyncMock(side_effect=[company_result, count_result, list_result])

    async def _session():
        yield mock_session

    async def _user():
        return FakeUser()

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_current_user] = _user
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/api/v1/visits", params={"date_from": "2025-01-01"})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    item = data["items"][0]
    assert item["application_code"] == "APP-48213"
    assert item["customer_name"] == "Anadolu Gıda"
    assert item["branch_name"] == "Merkez Şube"
    assert item["operator_name"] is None
    assert item["scheduled_time"] == "09:30:00"

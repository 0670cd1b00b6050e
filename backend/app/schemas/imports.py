"""Pydantic schemas for the bulk visit import."""
from pydantic import BaseModel


class ImportNotification(BaseModel):
    level: str  # success, error
    message: str


class VisitImportResult(BaseModel):
    success_count: int
    error_count: int
    error_messages: list[str]
    application_codes: list[str] = []
    notifications: list[ImportNotification] = []

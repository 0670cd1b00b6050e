"""Audit log helper — append-only writes to audit_logs table."""
import json
import logging
import uuid
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit import AuditLog

logger = logging.getLogger(__name__)


def log(
    db: AsyncSession,
    action: str,
    entity_type: str,
    entity_id: uuid.UUID | str | None = None,
    actor_id: uuid.UUID | str | None = None,
    actor_email: str | None = None,
    company_id: uuid.UUID | str | None = None,
    after: Any | None = None,
    notes: str | None = None,
) -> AuditLog:
    """Stage a single audit log entry on the session.

    Args:
        db: Session the entry is added to. Nothing is flushed here; the entry
            is written with the caller's transaction.
        action: Short verb, e.g. 'user_login', 'visits.imported'.
        entity_type: Table/domain name, e.g. 'user', 'application'.
        entity_id: PK of the affected record, if there is a single one.
        actor_id: User who performed the action (None for system actions).
        actor_email: Denormalised email (preserved if user is later deleted).
        company_id: Tenant the action happened in.
        after: Dict snapshot of the outcome (JSON-serialisable).
        notes: Free-text annotation.
    """
    entry = AuditLog(
        actor_id=uuid.UUID(str(actor_id)) if actor_id else None,
        actor_email=actor_email,
        company_id=uuid.UUID(str(company_id)) if company_id else None,
        action=action,
        entity_type=entity_type,
        entity_id=uuid.UUID(str(entity_id)) if entity_id else None,
        after_state=json.dumps(after, default=str) if after is not None else None,
        notes=notes,
    )
    db.add(entry)
    logger.debug("Audit: %s %s/%s", action, entity_type, entity_id)
    return entry

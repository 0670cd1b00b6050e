"""Bulk import endpoints for scheduled visits (Excel / CSV)."""
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, status
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.deps import get_request_messages, require_company, require_role
from app.core.limiter import limiter
from app.db.session import get_session
from app.schemas.imports import ImportNotification, VisitImportResult
from app.services import audit as audit_svc
from app.services.messages import Messages
from app.services.spreadsheet import SpreadsheetError, build_template, parse_visit_spreadsheet
from app.services.visit_import import (
    ImportInProgressError,
    ImportScope,
    exclusive_import,
    import_visits,
    summary_notifications,
)

logger = logging.getLogger(__name__)

router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
TEMPLATE_FILENAME = "ziyaret-import-sablonu.xlsx"


# ─── POST /import/visits ───

@router.post(
    "/visits",
    response_model=VisitImportResult,
    summary="Bulk import scheduled visits from an Excel or CSV file (COMPANY)",
)
@limiter.limit(settings.IMPORT_RATE_LIMIT)
async def import_visit_file(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: Annotated[object, Depends(require_role("COMPANY"))],
    messages: Annotated[Messages, Depends(get_request_messages)],
    file: UploadFile = File(...),
):
    content = await file.read()
    try:
        if len(content) > settings.IMPORT_MAX_FILE_BYTES:
            raise SpreadsheetError("file_too_large", limit=settings.IMPORT_MAX_FILE_BYTES)
        rows = parse_visit_spreadsheet(content, file.filename or "", max_rows=settings.IMPORT_MAX_ROWS)
    except SpreadsheetError as exc:
        logger.info("Visit import rejected (%s): %s", exc.reason, file.filename)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=messages(exc.reason, **exc.params),
        )

    company = await require_company(db, current_user, messages)
    scope = ImportScope(company_id=company.id, user_id=current_user.id)

    try:
        async with exclusive_import(company.id):
            summary = await import_visits(db, scope, rows, messages)
            audit_svc.log(
                db,
                action="visits.imported",
                entity_type="application",
                actor_id=current_user.id,
                actor_email=current_user.email,
                company_id=company.id,
                after={
                    "file_name": file.filename,
                    "rows": len(rows),
                    "success_count": summary.success_count,
                    "error_count": summary.error_count,
                },
            )
            await db.commit()
    except ImportInProgressError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=messages("import_in_progress"),
        )

    return VisitImportResult(
        success_count=summary.success_count,
        error_count=summary.error_count,
        error_messages=summary.error_messages,
        application_codes=summary.application_codes,
        notifications=[
            ImportNotification(level=level, message=text)
            for level, text in summary_notifications(summary, messages)
        ],
    )


# ─── GET /import/visits/template ───

@router.get("/visits/template", summary="Download the visit import template (COMPANY)")
async def download_visit_template(
    current_user: Annotated[object, Depends(require_role("COMPANY"))],
):
    return StreamingResponse(
        iter([build_template()]),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={TEMPLATE_FILENAME}"},
    )

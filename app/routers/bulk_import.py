# app/routers/bulk_import.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlmodel import Session

from app.core.db import get_session
from app.core.errors import ImportValidationError
from app.core.import_rows import parse_rows_for_import, validate_sheet
from app.core.reconciler import reconcile
from app.core.security import require_admin, require_superuser
from app.core.session_token import SessionUser
from app.core.spreadsheet import read_table
from app.models.schemas import BulkImportRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/questions/bulk-import", tags=["bulk-import"])

COMPLETED = "ID-based bulk import completed successfully"


@router.post("")
def bulk_import(
    payload: BulkImportRequest,
    session: Session = Depends(get_session),
    user: SessionUser = Depends(require_superuser),
):
    rows = parse_rows_for_import(payload.questions)
    logger.info("bulk import requested", extra={"user_id": user.user_id, "rows": len(rows)})
    result = reconcile(
        session,
        rows,
        replace_existing=payload.replace_existing,
        dedupe_by_name=payload.dedupe_by_name,
    )
    return {"message": COMPLETED, "results": result.to_response()}


async def _read_sheet(file: UploadFile, property_type_id: Optional[int]):
    content = await file.read()
    table = read_table(file.filename or "", content)
    return validate_sheet(table, default_property_type_id=property_type_id)


@router.post("/validate")
async def validate_upload(
    file: UploadFile = File(...),
    property_type_id: Optional[int] = Form(None, alias="propertyTypeId"),
    _admin: SessionUser = Depends(require_admin),
):
    """Pre-flight check only; nothing is written."""
    report = await _read_sheet(file, property_type_id)
    return report.to_dict()


@router.post("/upload")
async def upload_sheet(
    file: UploadFile = File(...),
    replace_existing: bool = Form(False, alias="replaceExisting"),
    dedupe_by_name: bool = Form(False, alias="dedupeByName"),
    property_type_id: Optional[int] = Form(None, alias="propertyTypeId"),
    session: Session = Depends(get_session),
    user: SessionUser = Depends(require_superuser),
):
    """Validate the sheet, then import only its valid rows."""
    report = await _read_sheet(file, property_type_id)
    invalid = [item.to_dict() for item in report.invalid]
    if not report.valid:
        raise ImportValidationError("No valid rows to import", details=invalid)

    logger.info(
        "sheet upload",
        extra={"user_id": user.user_id, "file_name": file.filename, "valid": len(report.valid), "invalid": len(invalid)},
    )
    result = reconcile(session, report.rows, replace_existing=replace_existing, dedupe_by_name=dedupe_by_name)
    return {
        "message": COMPLETED,
        "results": result.to_response(),
        "invalid": invalid,
        "summary": report.summary(),
    }

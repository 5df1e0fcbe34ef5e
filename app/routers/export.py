# app/routers/export.py
from io import BytesIO
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlmodel import Session

from app.core.db import get_session
from app.core.security import require_admin
from app.core.session_token import SessionUser
from app.core.template import render

router = APIRouter(prefix="/questions", tags=["export"])


@router.get("/template")
def download_template(
    type: str = Query("template", pattern="^(template|export)$"),
    property_type_id: Optional[int] = Query(None, alias="propertyTypeId"),
    format: str = Query("xlsx", pattern="^(xlsx|csv)$"),
    session: Session = Depends(get_session),
    _admin: SessionUser = Depends(require_admin),
):
    """Blank annotated template, or a full export with real ids for round-tripping."""
    content, media_type, filename = render(session, kind=type, fmt=format, property_type_id=property_type_id)
    return StreamingResponse(
        BytesIO(content),
        media_type=media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Content-Length": str(len(content)),
        },
    )

# app/routers/health.py
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlmodel import Session

from app.core.db import get_session
from app.core.settings import settings

router = APIRouter(prefix="", tags=["health"])


@router.get("/health")
def health(session: Session = Depends(get_session)):
    # storage errors propagate to the SQLAlchemy handler (500 + classified message)
    session.execute(text("SELECT 1"))
    return {"ok": True, "db": "ok", "build": settings.BUILD_TAG}

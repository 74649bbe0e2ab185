"""Liveness endpoint."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session

from fluencyjet.api.deps import get_db


router = APIRouter(tags=["health"])


@router.get("/health")
def health(db: Session = Depends(get_db)) -> JSONResponse:
    try:
        db.execute(text("SELECT 1"))
    except DBAPIError as exc:
        logger.error(f"Health check database ping failed: {exc}")
        return JSONResponse(status_code=503, content={"ok": False, "database": "unavailable"})
    return JSONResponse(content={"ok": True, "database": "ok"})

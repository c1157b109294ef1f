# orgstruct/routers/system.py
import logging
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from orgstruct.core.config import get_settings, Settings
from orgstruct.core.security import require_operator_key
from orgstruct.db import get_db

router = APIRouter(tags=["System"])
logger = logging.getLogger("orgstruct.http")


@router.get("/health", summary="Liveness and database reachability",
            responses={503: {"description": "Database unreachable"}})
def health(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as err:
        logger.error("health check failed", extra={"op": "handler.health", "error": str(err)})
        return JSONResponse(status_code=503, content={"status": "degraded", "database": "unreachable"})
    return {"status": "ok", "database": "ok"}


@router.get("/info", summary="Build and storage details for operators",
            dependencies=[Depends(require_operator_key)])
def info(settings: Settings = Depends(get_settings), db: Session = Depends(get_db)):
    bind = db.get_bind()
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "env": settings.ENV,
        "database": bind.url.get_backend_name(),
        "max_depth": settings.MAX_DEPTH,
    }

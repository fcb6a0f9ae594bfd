"""Monitoring router - Health and database probes behind a shared secret"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ... import config
from ...database import get_db
from .service import MonitoringService, bearer_token, secret_matches

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Monitoring"])

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


def get_monitoring_service(db: Session = Depends(get_db)) -> MonitoringService:
    """Dependency injection for MonitoringService"""
    return MonitoringService(db)


@router.get("/health")
async def health_check(
    authorization: Optional[str] = Header(None),
    x_health_secret: Optional[str] = Header(None),
    secret: Optional[str] = Query(None),
    service: MonitoringService = Depends(get_monitoring_service),
):
    """Database, auth configuration and runtime checks"""
    if not secret_matches(
        config.HEALTH_CHECK_SECRET, bearer_token(authorization), x_health_secret, secret
    ):
        logger.warning("🚫 Unauthorized health check attempt")
        raise HTTPException(status_code=401, detail="Unauthorized")

    report, healthy = service.health()
    return JSONResponse(
        content=report, status_code=200 if healthy else 503, headers=NO_CACHE_HEADERS
    )


@router.get("/monitoring/database")
async def database_monitor(
    authorization: Optional[str] = Header(None),
    x_monitoring_secret: Optional[str] = Header(None),
    secret: Optional[str] = Query(None),
    service: MonitoringService = Depends(get_monitoring_service),
):
    """Row counts per table and query latency"""
    if not secret_matches(
        config.MONITORING_SECRET, bearer_token(authorization), x_monitoring_secret, secret
    ):
        logger.warning("🚫 Unauthorized database monitoring attempt")
        raise HTTPException(status_code=401, detail="Unauthorized")

    stats, healthy = service.database_stats()
    return JSONResponse(
        content=stats, status_code=200 if healthy else 503, headers=NO_CACHE_HEADERS
    )

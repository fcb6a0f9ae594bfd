"""Monitoring service - Health probes and database statistics"""

import logging
import platform
import sys
import time
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, text
from sqlalchemy.orm import Session

from ...config import APP_VERSION, ENVIRONMENT, FIREBASE_PROJECT_ID, IS_PRODUCTION
from ...models import (
    Booking,
    BookingService,
    CarBrand,
    Company,
    CustomerVehicle,
    Payment,
    Service,
    ServiceExtra,
    User,
)

logger = logging.getLogger(__name__)

STARTED_AT = time.time()

# Tables reported by the database monitor
MONITORED_TABLES = {
    "companies": Company,
    "users": User,
    "services": Service,
    "serviceExtras": ServiceExtra,
    "carBrands": CarBrand,
    "vehicles": CustomerVehicle,
    "bookings": Booking,
    "bookingServices": BookingService,
    "payments": Payment,
}


def secret_matches(expected: Optional[str], *candidates: Optional[str]) -> bool:
    """True when no secret is configured or any supplied credential matches it"""
    if not expected:
        return True
    return any(candidate == expected for candidate in candidates if candidate)


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.startswith("Bearer "):
        return authorization[len("Bearer "):].strip()
    return None


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _memory_usage() -> dict:
    if sys.platform == "win32":
        return {}
    import resource

    usage = resource.getrusage(resource.RUSAGE_SELF)
    # ru_maxrss is bytes on macOS and kilobytes elsewhere
    divisor = 1024 * 1024 if sys.platform == "darwin" else 1024
    return {"maxRssMb": round(usage.ru_maxrss / divisor, 1)}


class MonitoringService:
    """Runs the health checks behind /health and /monitoring/database"""

    def __init__(self, db: Session):
        self.db = db

    def check_database(self) -> dict:
        start = time.perf_counter()
        try:
            self.db.execute(text("SELECT 1"))
            elapsed = int((time.perf_counter() - start) * 1000)
            return {
                "status": "healthy",
                "responseTime": f"{elapsed}ms",
                "details": {"connected": True},
            }
        except Exception as e:
            logger.error(f"❌ Database health check failed: {str(e)}")
            return {
                "status": "unhealthy",
                "error": "Database connection failed",
                "details": {"connected": False},
            }

    @staticmethod
    def check_auth() -> dict:
        configured = bool(FIREBASE_PROJECT_ID)
        return {
            "status": "healthy" if configured else "unhealthy",
            "details": {"hasProjectId": configured, "isProduction": IS_PRODUCTION},
            **({} if configured else {"error": "FIREBASE_PROJECT_ID is not configured"}),
        }

    @staticmethod
    def check_system() -> dict:
        return {
            "status": "healthy",
            "details": {
                "pythonVersion": platform.python_version(),
                "platform": sys.platform,
                "uptime": f"{int(time.time() - STARTED_AT)}s",
                "memory": _memory_usage(),
                "environment": ENVIRONMENT,
            },
        }

    def health(self) -> tuple[dict, bool]:
        """Returns the health report and whether every check passed"""
        start = time.perf_counter()
        checks = {
            "database": self.check_database(),
            "auth": self.check_auth(),
            "system": self.check_system(),
        }
        healthy = all(check["status"] == "healthy" for check in checks.values())
        if not healthy:
            failing = [name for name, check in checks.items() if check["status"] != "healthy"]
            logger.warning(f"⚠️ Health check failing: {', '.join(failing)}")

        report = {
            "status": "healthy" if healthy else "unhealthy",
            "timestamp": _timestamp(),
            "responseTime": f"{int((time.perf_counter() - start) * 1000)}ms",
            "checks": checks,
            "version": APP_VERSION,
            "environment": ENVIRONMENT,
        }
        return report, healthy

    def database_stats(self) -> tuple[dict, bool]:
        start = time.perf_counter()
        try:
            counts = {
                name: self.db.query(func.count()).select_from(model).scalar()
                for name, model in MONITORED_TABLES.items()
            }
        except Exception as e:
            logger.error(f"❌ Database monitoring query failed: {str(e)}")
            return {
                "status": "unhealthy",
                "timestamp": _timestamp(),
                "error": "Database query failed",
            }, False

        return {
            "status": "healthy",
            "timestamp": _timestamp(),
            "latency": f"{int((time.perf_counter() - start) * 1000)}ms",
            "tables": counts,
            "totalRows": sum(counts.values()),
        }, True

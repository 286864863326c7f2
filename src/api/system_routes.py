"""
System health API routes
"""

from fastapi import APIRouter
from pydantic import BaseModel
from typing import Optional
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)

# Response models
class SystemHealthResponse(BaseModel):
    status: str
    hub_url: str
    run_in_progress: bool
    run_count: int
    last_run_at: Optional[datetime]
    last_run_error: Optional[str]
    devices_failing: Optional[int]
    timestamp: datetime

def create_system_routes(runner, config):
    """Create system monitoring routes"""
    router = APIRouter(prefix="/api/system", tags=["system"])

    @router.get("/health", response_model=SystemHealthResponse)
    async def system_health():
        """System health check"""
        report = runner.last_report
        last_error = report.error if report else None

        if report is None:
            status = "starting"
        elif last_error:
            status = "degraded"
        else:
            status = "healthy"

        return SystemHealthResponse(
            status=status,
            hub_url=config['hub']['base_url'],
            run_in_progress=runner.is_running,
            run_count=runner.run_count,
            last_run_at=runner.last_run_at,
            last_run_error=last_error,
            devices_failing=report.nok_count if report and not last_error else None,
            timestamp=datetime.now(timezone.utc)
        )

    return router

"""
Monitoring report API routes
"""

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime
import logging

from services.liveness_monitor import report_to_dict

logger = logging.getLogger(__name__)

# Response models
class ReconciliationEntry(BaseModel):
    device_id: str
    name: str
    wake_state: str
    wake_attempted: bool
    recovered_after_wake: bool
    missing: bool

class MonitorReportResponse(BaseModel):
    ok_count: int
    nok_count: int
    woken_attempted: int
    woken_succeeded: int
    low_battery_count: int
    failing_devices: List[str]
    low_battery_devices: List[str]
    any_failing: bool
    threshold_minutes: int
    validation_delay_seconds: int
    router_count: Optional[int] = None
    end_device_count: Optional[int] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    error: Optional[str] = None
    reconciliation: List[ReconciliationEntry] = []

def create_monitor_routes(runner):
    """Create monitoring routes; runner exposes last_report, is_running and run_once()"""
    router = APIRouter(prefix="/api/monitor", tags=["monitor"])

    @router.get("/report", response_model=MonitorReportResponse)
    async def get_last_report():
        """Get the report of the most recent monitoring run"""
        if runner.last_report is None:
            raise HTTPException(status_code=404, detail="No monitoring run has completed yet")
        return MonitorReportResponse(**report_to_dict(runner.last_report))

    @router.post("/run", response_model=MonitorReportResponse)
    async def trigger_run():
        """Run the monitor now and return its report"""
        if runner.is_running:
            raise HTTPException(status_code=409, detail="A monitoring run is already in progress")
        try:
            report = await runner.run_once()
        except Exception as e:
            logger.error(f"Error running monitor: {e}")
            raise HTTPException(status_code=500, detail=str(e))
        return MonitorReportResponse(**report_to_dict(report))

    return router

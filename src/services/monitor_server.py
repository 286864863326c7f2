"""
Monitor Server - Main orchestrator for the periodic liveness monitor and its status API
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, Optional
import uvicorn

# Local imports
from config_loader import load_config, setup_logging
from devices.directory import HubDirectory
from http_helper import create_hub_session
from api.main_api import MonitorAPI
from monitoring.models import MonitorReport
from services.liveness_monitor import LivenessMonitor
from tags.sink import create_tag_sink

logger = logging.getLogger(__name__)

class MonitorServer:
    """Owns the hub session, runs the monitor periodically and serves the status API"""

    def __init__(self, config_path: str = "config/config.yaml", config: Optional[Dict] = None):
        self.config = config if config is not None else load_config(config_path)
        setup_logging(self.config)

        self.session = None
        self.directory: Optional[HubDirectory] = None
        self.monitor: Optional[LivenessMonitor] = None

        self.api = MonitorAPI(self, self.config)

        self.running = False
        self.tasks = []
        self._run_lock: Optional[asyncio.Lock] = None  # created on the serving loop

        self.last_report: Optional[MonitorReport] = None
        self.last_run_at: Optional[datetime] = None
        self.run_count = 0

    @property
    def hub_url(self) -> str:
        return self.config['hub']['base_url']

    @property
    def is_running(self) -> bool:
        return self._run_lock is not None and self._run_lock.locked()

    async def _open(self):
        """Create the run lock, the hub session and the monitor bound to it"""
        if self._run_lock is None:
            self._run_lock = asyncio.Lock()
        if self.session is not None:
            return
        hub = self.config['hub']
        self.session = create_hub_session(hub['timeout_seconds'], hub.get('verify_ssl', True))
        self.directory = HubDirectory(hub, self.session)
        tag_sink = create_tag_sink(self.config['tags'], self.session)
        self.monitor = LivenessMonitor(self.config, self.directory, tag_sink)
        logger.info(f"Hub directory ready at {self.hub_url}")

    async def _close(self):
        if self.session is not None and not self.session.closed:
            await self.session.close()
        self.session = None

    async def start(self):
        """Start the monitoring loop and the HTTP API"""
        logger.info("Starting Hub Device Liveness Monitor...")

        try:
            await self._open()
            self.running = True

            self.tasks = [asyncio.create_task(self._monitoring_service())]
            logger.info(f"All services started successfully ({len(self.tasks)} background tasks)")

            if self.config['api']['enabled']:
                await self._start_api_server()
            else:
                await asyncio.gather(*self.tasks)

        except Exception as e:
            logger.error(f"Server startup failed: {e}")
            await self.stop()
            raise

    async def stop(self):
        """Stop all server services gracefully"""
        logger.info("Stopping server...")
        self.running = False

        for task in self.tasks:
            task.cancel()

        if self.tasks:
            await asyncio.gather(*self.tasks, return_exceptions=True)
        self.tasks = []

        await self._close()
        logger.info(f"Server stopped after {self.run_count} monitoring run(s)")

    async def run_once(self, threshold_expr: Optional[str] = None, delay_expr: Optional[str] = None) -> MonitorReport:
        """Execute a single monitoring run; runs never overlap"""
        await self._open()
        async with self._run_lock:
            report = await self.monitor.run(threshold_expr, delay_expr)
            self.last_report = report
            self.last_run_at = datetime.now(timezone.utc)
            self.run_count += 1
            return report

    async def run_single(self, threshold_expr: Optional[str] = None, delay_expr: Optional[str] = None) -> MonitorReport:
        """One run for command-line use; the session is closed afterwards"""
        try:
            return await self.run_once(threshold_expr, delay_expr)
        finally:
            await self._close()

    async def _monitoring_service(self):
        """Background service for periodic liveness checks"""
        monitor_config = self.config['monitor']
        check_interval = monitor_config['interval_minutes'] * 60

        logger.info(f"Monitoring service started (every {check_interval/60} minutes)")

        first = monitor_config.get('run_on_startup', True)
        while self.running:
            try:
                if not first:
                    await asyncio.sleep(check_interval)
                    if not self.running:
                        break
                first = False

                report = await self.run_once()
                if report.error:
                    logger.warning(f"Monitoring run ended with error: {report.error}")
                elif report.any_failing:
                    logger.warning(f"{report.nok_count} device(s) not reporting")

            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Monitoring service error: {e}")

    async def _start_api_server(self):
        """Start the FastAPI server"""
        config = uvicorn.Config(
            self.api.app,
            host=self.config['api']['host'],
            port=self.config['api']['port'],
            log_level="info",
            access_log=False  # We handle our own logging
        )

        server = uvicorn.Server(config)

        logger.info(f"Starting API server on {self.config['api']['host']}:{self.config['api']['port']}")
        logger.info(f"API documentation: http://localhost:{self.config['api']['port']}/docs")

        await server.serve()

"""
Main FastAPI application setup
Local HTTP API exposing the liveness monitor's last report, on-demand runs and health
"""

from fastapi import FastAPI
from typing import Dict
import logging

# Import modular route factories
from .monitor_routes import create_monitor_routes
from .system_routes import create_system_routes

logger = logging.getLogger(__name__)

class MonitorAPI:
    """Local HTTP API for the liveness monitor"""

    def __init__(self, runner, config: Dict):
        self.runner = runner
        self.config = config
        self.app = FastAPI(
            title="Hub Device Liveness Monitor",
            description="Local API for device staleness reports and wake-then-verify runs",
            version="1.0.0"
        )
        self._setup_routes()

    def _setup_routes(self):
        """Setup FastAPI routes using modular approach"""
        self.app.include_router(create_monitor_routes(self.runner))
        self.app.include_router(create_system_routes(self.runner, self.config))

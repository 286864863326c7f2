"""
ASGI entry point for uvicorn
This module exposes the FastAPI app for use with uvicorn command line
"""

import asyncio
import logging
import os

from services.monitor_server import MonitorServer

config_path = os.environ.get('CONFIG_FILE', 'config/config.yaml')

# Loads configuration and sets up logging
server = MonitorServer(config_path=config_path)

logger = logging.getLogger(__name__)

# Expose the FastAPI app for uvicorn
app = server.api.app

@app.on_event("startup")
async def startup_event():
    """Start the periodic monitoring loop alongside the API"""
    logger.info("Starting up application...")
    server.running = True
    server.tasks.append(asyncio.create_task(server._monitoring_service()))

@app.on_event("shutdown")
async def shutdown_event():
    """Clean up resources on shutdown"""
    logger.info("Shutting down application...")
    await server.stop()
    logger.info("Application shut down complete")

logger.info("ASGI app ready for uvicorn")

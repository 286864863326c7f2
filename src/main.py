"""
Hub Device Liveness Monitor - Main Entry Point

Usage:
    python main.py                  # periodic monitor + status API
    RUN_ONCE=1 python main.py 2h    # single run, threshold 2h
    RUN_ONCE=1 python main.py "[30m,3s]"
"""

import asyncio
import signal
import sys
import logging
import os

from monitoring.durations import split_duration_args
from services.monitor_server import MonitorServer

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_DEVICES_FAILING = 1
EXIT_ERROR = 2

async def run_once(config_path: str, args) -> int:
    """Single monitoring run; exit status reflects the outcome"""
    durations = split_duration_args(args)
    threshold_expr = durations[0] if len(durations) > 0 else None
    delay_expr = durations[1] if len(durations) > 1 else None

    try:
        server = MonitorServer(config_path=config_path)
    except Exception as e:
        logger.error(f"Cannot start monitor: {e}")
        return EXIT_ERROR

    report = await server.run_single(threshold_expr, delay_expr)

    if report.error:
        return EXIT_ERROR
    return EXIT_DEVICES_FAILING if report.any_failing else EXIT_OK

async def main():
    """Main entry point"""

    # Handle graceful shutdown
    server = None

    def signal_handler(signum, frame):
        logger.info(f"Received signal {signum}, shutting down...")
        if server:
            asyncio.create_task(server.stop())

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        config_path = os.environ.get('CONFIG_FILE', 'config/config.yaml')
        logger.info(f"Using configuration file name from environment: {config_path}")

        server = MonitorServer(config_path=config_path)
        await server.start()

    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt")
    except Exception as e:
        logger.error(f"Server failed: {e}")
        return EXIT_ERROR
    finally:
        if server:
            await server.stop()

    return EXIT_OK

def cli():
    config_path = os.environ.get('CONFIG_FILE', 'config/config.yaml')
    try:
        if os.environ.get('RUN_ONCE', '').lower() in ('1', 'true', 'yes'):
            exit_code = asyncio.run(run_once(config_path, sys.argv[1:]))
        else:
            exit_code = asyncio.run(main())
        sys.exit(exit_code)
    except KeyboardInterrupt:
        print("\nMonitor stopped by user")
        sys.exit(EXIT_OK)

if __name__ == "__main__":
    cli()

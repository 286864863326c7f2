# HTTP Helper for hub connections
# Session configuration for the hub's local Web API and outbound webhooks

import aiohttp
import logging

logger = logging.getLogger(__name__)

def create_hub_session(timeout_seconds: float = 10, verify_ssl: bool = True) -> aiohttp.ClientSession:
    """
    Create properly configured aiohttp session for hub connections
    Connection count is capped so a wake fan-out cannot flood the hub
    """
    connector = aiohttp.TCPConnector(
        ssl=verify_ssl,
        limit=20,                   # Total connection pool limit
        limit_per_host=10,          # Max concurrent requests to the hub
        force_close=False           # Keep connections alive between directory calls
    )

    if not verify_ssl:
        logger.warning("SSL verification disabled for hub session")

    return aiohttp.ClientSession(
        connector=connector,
        timeout=aiohttp.ClientTimeout(total=timeout_seconds)
    )

"""
Flow tag publishing
Report values are pushed to the automation system as named tags
"""

import logging
from typing import Any, Dict, Optional
import aiohttp

logger = logging.getLogger(__name__)

class TagSink:
    async def tag(self, name: str, value: Any) -> None:
        raise NotImplementedError

    async def publish(self, tags: Dict[str, Any]) -> int:
        """Publish every tag; failures are logged and do not stop the rest. Returns the failure count"""
        failures = 0
        for name, value in tags.items():
            try:
                await self.tag(name, value)
            except Exception as e:
                failures += 1
                logger.error(f"[TAGS] Failed to publish {name}: {e}")
        return failures

class LoggingTagSink(TagSink):
    """Writes tags to the log only"""

    async def tag(self, name: str, value: Any) -> None:
        logger.info(f"[TAG] {name} = {value!r}")

class WebhookTagSink(TagSink):
    """POSTs {"name", "value"} to a webhook for each tag"""

    def __init__(self, url: str, session: aiohttp.ClientSession, timeout_seconds: float = 10):
        self.url = url
        self.session = session
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    async def tag(self, name: str, value: Any) -> None:
        async with self.session.post(self.url, json={"name": name, "value": value}, timeout=self.timeout) as resp:
            if not 200 <= resp.status < 300:
                text = await resp.text()
                raise RuntimeError(f"Webhook HTTP {resp.status}: {text[:200]}")

def create_tag_sink(config: Dict, session: Optional[aiohttp.ClientSession] = None) -> TagSink:
    """Build the sink selected by the tags config section"""
    kind = config.get('sink', 'log')
    if kind == 'webhook':
        if not config.get('webhook_url') or session is None:
            logger.warning("Webhook tag sink needs webhook_url and a session - falling back to log sink")
            return LoggingTagSink()
        logger.info(f"Publishing tags to webhook {config['webhook_url']}")
        return WebhookTagSink(config['webhook_url'], session, config.get('timeout_seconds', 10))
    return LoggingTagSink()

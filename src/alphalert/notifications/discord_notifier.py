"""
Discord Notifier - pushes accepted signals to a channel webhook
"""

from typing import Optional

import aiohttp
import structlog

log = structlog.get_logger()


class DiscordNotifier:
    """
    Send alerts via a Discord webhook
    Webhook URL comes from the DISCORD_WEBHOOK_URL environment variable
    """

    def __init__(self, webhook_url: Optional[str], username_prefix: str = "Alphalert",
                 avatar_url: Optional[str] = None, timeout: float = 10):
        self.webhook_url = webhook_url
        self.username_prefix = username_prefix
        self.avatar_url = avatar_url
        self.timeout = aiohttp.ClientTimeout(total=timeout)

        if not self.webhook_url:
            log.warning("discord_webhook_missing")
            self.enabled = False
        else:
            self.enabled = True
            log.info("discord_notifier_initialized", username_prefix=username_prefix)

    async def publish(self, content: str, token_symbol: str = '???') -> bool:
        """
        Post one message. Returns True on success; failures are logged, never retried.
        """
        if not self.enabled:
            log.debug("discord_disabled", message=content[:50])
            return False

        payload = {
            'content': content,
            'username': f"{self.username_prefix} | {token_symbol}",
        }
        if self.avatar_url:
            payload['avatar_url'] = self.avatar_url

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(self.webhook_url, json=payload) as response:
                    if 200 <= response.status < 300:
                        log.debug("discord_sent", message_length=len(content))
                        return True

                    text = await response.text()
                    log.error("discord_failed", status=response.status, body=text[:200])
                    return False

        except Exception as e:
            log.error("discord_error", error=str(e))
            return False

"""
Discord Seen Store - recovers already-notified tokens from the alert channel

Webhook messages carry the token address as "**CA:** `<address>`", so the
channel history doubles as a durable record of what was sent.
"""

import asyncio
import re
from typing import Dict, List, Optional

import aiohttp
import structlog

from ..exceptions import RecoveryError

log = structlog.get_logger()

DISCORD_API = "https://discord.com/api/v10"

CA_PATTERN = re.compile(r"\*\*CA:\*\*\s*`([A-Za-z0-9]+)`")
PLAIN_CA_PATTERN = re.compile(r"`([A-HJ-NP-Za-km-z1-9]{32,44})`")  # base58 Solana address


def _match_address(text: Optional[str]) -> Optional[str]:
    if not text:
        return None
    match = CA_PATTERN.search(text) or PLAIN_CA_PATTERN.search(text)
    return match.group(1) if match else None


def extract_token_address(message: Dict) -> Optional[str]:
    """
    Pull the token address out of one channel message.
    Message content is checked first, then embeds.
    """
    address = _match_address(message.get('content'))
    if address:
        return address

    for embed in message.get('embeds') or []:
        parts = [embed.get('title') or '', embed.get('description') or '']
        parts.extend(f.get('value') or '' for f in embed.get('fields') or [])
        address = _match_address(' '.join(parts))
        if address:
            return address

    return None


class DiscordSeenStore:
    """
    Reads the alert channel's recent history with a bot token.

    The bot needs the MESSAGE CONTENT intent, otherwise content comes back
    empty and nothing is recovered.
    """

    def __init__(self, bot_token: Optional[str], channel_id: Optional[str],
                 message_limit: int = 100, timeout: float = 10):
        self.bot_token = bot_token
        self.channel_id = channel_id
        self.message_limit = message_limit
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.enabled = bool(bot_token and channel_id)

        if not self.enabled:
            log.warning("discord_seen_store_disabled",
                       has_token=bool(bot_token),
                       has_channel_id=bool(channel_id))

    async def load(self) -> List[str]:
        if not self.enabled:
            return []

        url = f"{DISCORD_API}/channels/{self.channel_id}/messages"
        params = {'limit': self.message_limit}
        headers = {'Authorization': f"Bot {self.bot_token}"}

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.get(url, params=params, headers=headers) as response:
                    if response.status != 200:
                        raise RecoveryError(f"Discord API error: {response.status}")
                    messages = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise RecoveryError(f"Discord request failed: {e}") from e

        tokens = []
        for message in messages if isinstance(messages, list) else []:
            address = extract_token_address(message)
            if address:
                tokens.append(address)

        if tokens:
            log.info("seen_tokens_recovered", count=len(tokens))
        else:
            log.warning("no_seen_tokens_recovered",
                       messages=len(messages) if isinstance(messages, list) else 0,
                       hint="check MESSAGE CONTENT intent")

        return tokens

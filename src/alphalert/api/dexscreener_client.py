"""
DexScreener Client - current market snapshot for delivery enrichment
"""

from typing import Dict, Optional

import aiohttp
import structlog

from ..models import MarketSnapshot

log = structlog.get_logger()


class DexScreenerClient:
    """
    Looks up the most liquid pair for a token.
    Any failure yields None; the snapshot never affects scoring.
    """

    def __init__(self, config: Dict):
        self.endpoint = config.get('dexscreener_endpoint', 'https://api.dexscreener.com').rstrip('/')
        self.chain_slug = config.get('chain_slug', 'solana')
        self.timeout = aiohttp.ClientTimeout(total=config.get('request_timeout', 10))

    async def fetch_snapshot(self, token_address: str) -> Optional[MarketSnapshot]:
        try:
            url = f"{self.endpoint}/latest/dex/tokens/{token_address}"

            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.get(url) as response:
                    if response.status != 200:
                        log.warning("dexscreener_fetch_failed",
                                   token=token_address[:8],
                                   status=response.status)
                        return None
                    data = await response.json(content_type=None)

            return MarketSnapshot.from_dexscreener((data or {}).get('pairs') or [], self.chain_slug)

        except Exception as e:
            log.error("dexscreener_error", token=token_address[:8], error=str(e))
            return None

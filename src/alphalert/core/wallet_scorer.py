"""
Wallet Scorer - how good are this wallet's recent entries?

For each recently traded token we locate the entry on the token's candle
chart, label the price action around it and look the label pair up in
the score matrix. The wallet score is the mean over all entries.
"""

import asyncio
import time
from typing import Awaitable, Callable, Dict, List, Optional

import structlog

from ..models import Candle, TradeRecord, WalletScore
from .score_matrix import score_entry

log = structlog.get_logger()

DAY_MS = 24 * 60 * 60 * 1000


def _now_ms() -> int:
    return int(time.time() * 1000)


def closest_candle(candles: List[Candle], price: float) -> Candle:
    """
    Candle whose close is nearest to the given price (first one wins ties).

    Stand-in for the entry timestamp, which trade summaries don't expose.
    """
    return min(candles, key=lambda c: abs(c.close - price))


class WalletScorer:
    """
    Scores one wallet from its trade history and candle data

    Usage:
        scorer = WalletScorer(history_provider=okx, price_provider=okx)
        score = await scorer.score_wallet(address)
    """

    def __init__(self, history_provider, price_provider, config: Optional[Dict] = None,
                 now_ms: Callable[[], int] = _now_ms,
                 sleep: Callable[[float], Awaitable] = asyncio.sleep):
        config = config or {}
        self.history_provider = history_provider
        self.price_provider = price_provider
        self.history_limit = config.get('history_limit', 10)
        self.history_days = config.get('history_days', 7)
        self.max_tokens_scored = config.get('max_tokens_scored', 6)
        self.max_buy_weight = config.get('max_buy_weight', 3)
        self.candle_bar = config.get('candle_bar', '15m')
        self.candle_limit = config.get('candle_limit', 300)
        self.token_pause_ms = config.get('token_pause_ms', 20)
        self.now_ms = now_ms
        self.sleep = sleep

    def recent_records(self, records: List[TradeRecord]) -> List[TradeRecord]:
        cutoff = self.now_ms() - self.history_days * DAY_MS
        return [r for r in records if r.latest_trade_time and r.latest_trade_time >= cutoff]

    async def _fetch_trades(self, wallet_address: str, limit: int) -> List[TradeRecord]:
        try:
            return await self.history_provider.fetch_trades(wallet_address, limit)
        except Exception as e:
            log.warning("trade_history_unavailable", wallet=wallet_address[:8], error=str(e))
            return []

    async def _fetch_candles(self, token_address: str) -> List[Candle]:
        try:
            return await self.price_provider.fetch_candles(token_address, self.candle_bar, self.candle_limit)
        except Exception as e:
            log.warning("candles_unavailable", token=token_address[:8], error=str(e))
            return []

    async def score_wallet(self, wallet_address: str,
                           max_tokens_considered: Optional[int] = None) -> WalletScore:
        """
        Average entry score over the wallet's recent trades.

        Each usable entry is recorded min(buy_count, max_buy_weight) times.
        Returns sample_count=0 when there is nothing to score.
        """
        limit = max_tokens_considered if max_tokens_considered is not None else self.history_limit
        records = await self._fetch_trades(wallet_address, limit)

        recent = self.recent_records(records)
        if not recent:
            log.debug("wallet_no_recent_trades",
                     wallet=wallet_address[:8],
                     total_records=len(records))
            return WalletScore(wallet_address=wallet_address)

        scores: List[int] = []

        for record in recent[:self.max_tokens_scored]:
            if record.buy_count > 0 and record.buy_average_price > 0:
                candles = await self._fetch_candles(record.token_address)

                if candles:
                    entry = closest_candle(candles, record.buy_average_price)
                    score = score_entry(record.buy_average_price, entry.timestamp, candles)
                    scores.extend([score] * min(record.buy_count, self.max_buy_weight))

            await self.sleep(self.token_pause_ms / 1000)

        if not scores:
            return WalletScore(wallet_address=wallet_address)

        average = sum(scores) / len(scores)

        log.debug("wallet_scored",
                 wallet=wallet_address[:8],
                 avg_score=f"{average:.2f}",
                 samples=len(scores))

        return WalletScore(wallet_address=wallet_address,
                           average_score=average,
                           sample_count=len(scores))

"""
Signal Poller - time-boxed polling loop that ties everything together

Each tick pulls one batch from the signal feed, scores every signal not
yet notified, and pushes the accepted ones to Discord. The loop stops
before it would overrun its wall-clock budget.
"""

import asyncio
import time
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Optional

import structlog

from .core.signal_aggregator import SignalAggregator
from .core.wallet_scorer import WalletScorer
from .exceptions import FeedError
from .models import Activity, PollSummary, SignalResult, WalletRef, WalletScore
from .notifications.formatting import build_signal_message
from .storage.dedup_cache import DedupCache

log = structlog.get_logger()


class SchedulerState(str, Enum):
    IDLE = 'idle'
    POLLING = 'polling'
    WAITING = 'waiting'
    STOPPED = 'stopped'


class SignalPoller:
    """
    Polls the smart-money feed and forwards first-seen, well-scored signals

    Collaborators:
        feed               fetch_batch(page_size), fetch_wallet_set(activity)
        snapshot_provider  fetch_snapshot(token) -> MarketSnapshot | None
        notifier           publish(content, token_symbol) -> bool
        seen_store         load() -> [token]  (optional)

    clock (monotonic seconds) and sleep are injectable so tests can run
    the loop without real delays.
    """

    def __init__(self, feed, snapshot_provider, notifier,
                 wallet_scorer: WalletScorer,
                 aggregator: SignalAggregator,
                 cache: Optional[DedupCache] = None,
                 seen_store=None,
                 config: Optional[Dict] = None,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], Awaitable] = asyncio.sleep):
        config = config or {}
        self.feed = feed
        self.snapshot_provider = snapshot_provider
        self.notifier = notifier
        self.wallet_scorer = wallet_scorer
        self.aggregator = aggregator
        self.cache = cache if cache is not None else DedupCache()
        self.seen_store = seen_store

        self.page_size = config.get('page_size', 15)
        self.max_wallets = config.get('max_wallets', 8)
        self.max_duration_ms = config.get('max_duration_ms', 55000)
        self.poll_interval_ms = config.get('poll_interval_ms', 1000)
        self.signal_pause_ms = config.get('signal_pause_ms', 100)

        self.clock = clock
        self.sleep = sleep
        self.state = SchedulerState.IDLE
        self.started_at = clock()

        log.info("signal_poller_initialized",
                max_wallets=self.max_wallets,
                max_duration_ms=self.max_duration_ms,
                poll_interval_ms=self.poll_interval_ms)

    def _elapsed_ms(self, since: float) -> float:
        return (self.clock() - since) * 1000

    async def ensure_seeded(self):
        """
        Seed the dedup cache from the seen store once per process.
        A failing store leaves the cache empty.
        """
        if self.cache.seeded:
            return

        if self.seen_store is None:
            log.warning("no_seen_store", dedup="in_memory_only")
            self.cache.load([])
            return

        try:
            tokens = await self.seen_store.load()
        except Exception as e:
            log.warning("seen_tokens_recovery_failed", error=str(e))
            tokens = []

        self.cache.load(tokens)

    async def score_wallets(self, wallets: List[WalletRef]) -> List[WalletScore]:
        """
        Score wallets concurrently. A wallet whose scoring blew up counts as no data.
        """
        outcomes = await asyncio.gather(
            *(self.wallet_scorer.score_wallet(w.address) for w in wallets),
            return_exceptions=True
        )

        scores = []
        for wallet, outcome in zip(wallets, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                log.warning("wallet_scoring_error", wallet=wallet.address[:8], error=str(outcome))
                scores.append(WalletScore(wallet_address=wallet.address))
            else:
                scores.append(outcome)
        return scores

    async def _fetch_snapshot(self, token_address: str):
        try:
            return await self.snapshot_provider.fetch_snapshot(token_address)
        except Exception as e:
            log.warning("market_snapshot_unavailable", token=token_address[:8], error=str(e))
            return None

    async def process_signal(self, activity: Activity, dry_run: bool = False) -> Optional[SignalResult]:
        """
        Score -> aggregate -> (accepted) enrich + deliver -> mark seen.

        Raises FeedError if the wallet set can't be fetched; the caller
        aborts the tick in that case.
        """
        token = activity.token_address

        if token in self.cache:
            return None

        log.info("signal_processing",
                symbol=activity.token_symbol,
                token=token[:8])

        wallets = await self.feed.fetch_wallet_set(activity)

        if not wallets:
            log.info("signal_has_no_wallets", token=token[:8])
            return SignalResult(
                token_address=token,
                symbol=activity.token_symbol,
                score=None,
                wallet_count=0,
                holders=activity.holders,
                accepted=False,
                reason="no_wallets",
            )

        wallet_scores = await self.score_wallets(wallets[:self.max_wallets])
        decision = self.aggregator.aggregate(wallet_scores)

        log.info("signal_scored",
                token=token[:8],
                avg_score=f"{decision.aggregate_score:.2f}" if decision.aggregate_score is not None else None,
                wallets_scored=decision.wallets_scored,
                wallets_total=len(wallet_scores))

        if not decision.accepted:
            log.info("signal_rejected", token=token[:8], reason=decision.reason)
            return SignalResult(
                token_address=token,
                symbol=activity.token_symbol,
                score=decision.aggregate_score,
                wallet_count=len(wallets),
                holders=activity.holders,
                accepted=False,
                reason=decision.reason,
            )

        snapshot = await self._fetch_snapshot(token)

        if snapshot is None:
            # Not marked seen: the next poll gets another chance
            log.info("signal_no_market_data", token=token[:8])
            return SignalResult(
                token_address=token,
                symbol=activity.token_symbol,
                score=decision.aggregate_score,
                wallet_count=len(wallets),
                holders=activity.holders,
                accepted=True,
                reason="no_market_data",
            )

        message = build_signal_message(token, snapshot, activity.holders)

        if dry_run:
            log.info("signal_dry_run", symbol=snapshot.symbol, message=message)
            sent = True
            reason = "dry_run"
        else:
            sent = await self.notifier.publish(message, snapshot.symbol)
            reason = "delivered" if sent else "delivery_failed"
            if sent:
                log.info("signal_sent", symbol=snapshot.symbol, token=token[:8])
            else:
                log.warning("signal_send_failed", symbol=snapshot.symbol, token=token[:8])

        self.cache.add(token)

        return SignalResult(
            token_address=token,
            symbol=snapshot.symbol,
            score=decision.aggregate_score,
            wallet_count=len(wallets),
            holders=activity.holders,
            accepted=True,
            sent=sent,
            reason=reason,
        )

    async def run_once(self, dry_run: bool = False) -> List[SignalResult]:
        """
        One tick: fetch a batch and process every unseen signal in order.
        Never raises; a feed failure ends the tick early.
        """
        await self.ensure_seeded()

        try:
            activities = await self.feed.fetch_batch(self.page_size)
        except FeedError as e:
            log.error("signal_feed_error", error=str(e))
            return []

        results: List[SignalResult] = []

        for activity in activities:
            if activity.token_address in self.cache:
                continue

            try:
                result = await self.process_signal(activity, dry_run=dry_run)
            except FeedError as e:
                log.error("poll_tick_aborted", token=activity.token_address[:8], error=str(e))
                break
            except Exception as e:
                log.error("signal_processing_error", token=activity.token_address[:8], error=str(e))
                result = None

            if result is not None:
                results.append(result)

            await self.sleep(self.signal_pause_ms / 1000)

        log.info("poll_tick_complete",
                activities=len(activities),
                processed=len(results),
                seen_tokens=len(self.cache))

        return results

    async def run_for_budget(self, max_duration_ms: Optional[float] = None,
                             poll_interval_ms: Optional[float] = None,
                             dry_run: bool = False) -> PollSummary:
        """
        Poll repeatedly until the budget is spent.

        No tick starts once the budget is used up, and no wait is scheduled
        that would end past it. A tick already running is allowed to finish.
        """
        if max_duration_ms is None:
            max_duration_ms = self.max_duration_ms
        if poll_interval_ms is None:
            poll_interval_ms = self.poll_interval_ms

        start = self.clock()
        tick_count = 0
        all_results: List[SignalResult] = []

        log.info("poll_loop_started",
                max_duration_ms=max_duration_ms,
                poll_interval_ms=poll_interval_ms,
                dry_run=dry_run)

        await self.ensure_seeded()

        while True:
            elapsed = self._elapsed_ms(start)

            if elapsed >= max_duration_ms:
                log.info("poll_time_limit_reached", ticks=tick_count)
                break

            self.state = SchedulerState.POLLING
            tick_count += 1
            log.info("poll_tick_started", tick=tick_count, elapsed_s=round(elapsed / 1000, 1))

            try:
                results = await self.run_once(dry_run=dry_run)
            except Exception as e:
                log.error("poll_tick_error", tick=tick_count, error=str(e))
                results = []
            all_results.extend(results)

            pass_duration = self._elapsed_ms(start) - elapsed

            if elapsed + pass_duration + poll_interval_ms >= max_duration_ms:
                log.info("poll_no_time_for_next_tick", ticks=tick_count)
                break

            wait_ms = max(0, poll_interval_ms - pass_duration)
            if wait_ms > 0:
                self.state = SchedulerState.WAITING
                await self.sleep(wait_ms / 1000)

        self.state = SchedulerState.STOPPED
        summary = PollSummary(
            tick_count=tick_count,
            results=all_results,
            elapsed_ms=self._elapsed_ms(start),
        )

        log.info("poll_loop_complete",
                ticks=tick_count,
                signals_processed=summary.signals_processed,
                signals_sent=summary.signals_sent,
                seen_tokens=len(self.cache))

        return summary

    async def watch(self, dry_run: bool = False, cycles: Optional[int] = None):
        """
        Back-to-back budgeted loops in one process (cron-style), sharing the
        dedup cache. Runs forever unless cycles is given.
        """
        completed = 0
        while cycles is None or completed < cycles:
            await self.run_for_budget(dry_run=dry_run)
            completed += 1
            log.info("watch_cycle_complete", cycle=completed, **self.status())

    def status(self) -> Dict:
        return {
            'seen_token_count': len(self.cache),
            'seeded': self.cache.seeded,
            'state': self.state.value,
            'uptime_seconds': round(self.clock() - self.started_at, 1),
        }

    def reset_seen(self) -> Dict:
        previous = self.cache.reset()
        return {
            'previous_count': previous,
            'current_count': len(self.cache),
        }

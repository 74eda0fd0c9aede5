"""
Signal Aggregator - turns per-wallet scores into an accept/reject decision
"""

from typing import Dict, Iterable, Optional

import structlog

from ..models import AggregateDecision, WalletScore

log = structlog.get_logger()


class SignalAggregator:
    """
    Hard filter on the mean wallet score.

    Wallets without scoreable history are left out instead of being
    counted as zeros. Every remaining wallet has equal weight.
    """

    def __init__(self, min_score: float = 0, max_score: float = 2, tolerance: float = 0.01):
        self.min_score = min_score
        self.max_score = max_score
        self.tolerance = tolerance

        log.info("signal_aggregator_initialized",
                min_score=min_score,
                max_score=max_score,
                tolerance=tolerance)

    @classmethod
    def from_config(cls, config: Optional[Dict]) -> 'SignalAggregator':
        config = config or {}
        return cls(
            min_score=config.get('min_score', 0),
            max_score=config.get('max_score', 2),
            tolerance=config.get('score_tolerance', 0.01),
        )

    def in_band(self, score: float) -> bool:
        return self.min_score - self.tolerance <= score <= self.max_score + self.tolerance

    def aggregate(self, wallet_scores: Iterable[WalletScore]) -> AggregateDecision:
        with_data = [w for w in wallet_scores if w.sample_count > 0]

        if not with_data:
            return AggregateDecision(
                accepted=False,
                aggregate_score=None,
                wallets_scored=0,
                reason="No wallet trading history available",
            )

        avg_score = sum(w.average_score for w in with_data) / len(with_data)

        if not self.in_band(avg_score):
            return AggregateDecision(
                accepted=False,
                aggregate_score=avg_score,
                wallets_scored=len(with_data),
                reason=f"Score {avg_score:.2f} outside range [{self.min_score}, {self.max_score}]",
            )

        return AggregateDecision(
            accepted=True,
            aggregate_score=avg_score,
            wallets_scored=len(with_data),
            reason=f"Score {avg_score:.2f} within range [{self.min_score}, {self.max_score}]",
        )

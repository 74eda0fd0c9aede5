"""Scoring core: entry classification, score matrix, wallet scoring, aggregation"""

from .entry_classifier import AfterContext, BeforeContext, classify_after, classify_before, window_extremes
from .score_matrix import SCORE_MATRIX, score_buy, score_entry
from .wallet_scorer import WalletScorer, closest_candle
from .signal_aggregator import SignalAggregator

__all__ = [
    'AfterContext',
    'BeforeContext',
    'classify_after',
    'classify_before',
    'window_extremes',
    'SCORE_MATRIX',
    'score_buy',
    'score_entry',
    'WalletScorer',
    'closest_candle',
    'SignalAggregator',
]

"""
Score Matrix - (before, after) context pair -> entry score in [-2, 2]

Buying weakness or a quiet chart that then runs is rewarded; buying after
a pump that then keeps falling is punished hardest.
"""

from typing import Dict, Iterable, Union

from ..models import Candle
from .entry_classifier import (
    AfterContext,
    BeforeContext,
    classify_after,
    classify_before,
    window_extremes,
)

_NEUTRAL_ROW = {
    AfterContext.MOON: 2,
    AfterContext.PUMP: 1,
    AfterContext.FLAT: 0,
    AfterContext.DIP: -1,
    AfterContext.DUMP: -2,
}

SCORE_MATRIX: Dict[BeforeContext, Dict[AfterContext, int]] = {
    BeforeContext.DUMPED_TO: dict(_NEUTRAL_ROW),
    BeforeContext.FELL_TO: dict(_NEUTRAL_ROW),
    BeforeContext.FLAT: dict(_NEUTRAL_ROW),
    BeforeContext.ROSE_TO: {
        AfterContext.MOON: 1,
        AfterContext.PUMP: 0,
        AfterContext.FLAT: -1,
        AfterContext.DIP: -2,
        AfterContext.DUMP: -2,
    },
    BeforeContext.PUMPED_TO: {
        AfterContext.MOON: 0,
        AfterContext.PUMP: -1,
        AfterContext.FLAT: -1,
        AfterContext.DIP: -2,
        AfterContext.DUMP: -2,
    },
}


def score_buy(before: Union[BeforeContext, str], after: Union[AfterContext, str]) -> int:
    """Look up the matrix; unknown labels score 0"""
    try:
        return SCORE_MATRIX[BeforeContext(before)][AfterContext(after)]
    except (KeyError, ValueError):
        return 0


def score_entry(entry_price: float, entry_time: int, candles: Iterable[Candle]) -> int:
    """
    Score a single entry against the candles around it
    """
    before_min, before_max, after_min, after_max = window_extremes(candles, entry_time, entry_price)
    before_ctx = classify_before(entry_price, before_min, before_max)
    after_ctx = classify_after(entry_price, after_min, after_max)
    return score_buy(before_ctx, after_ctx)

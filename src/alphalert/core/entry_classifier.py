"""
Entry Classifier - labels the price action around a wallet's entry

Before the entry we ask "did the wallet buy into strength or weakness?",
after the entry "what did price do next?". Both use the same 25% / 10%
thresholds, checked strongest first. Equal moves fall through to flat.
"""

import math
from enum import Enum
from typing import Iterable, Tuple

from ..models import Candle

LOOKBACK_MS = 8 * 60 * 60 * 1000     # 8 hours
LOOKFORWARD_MS = 24 * 60 * 60 * 1000  # 24 hours

STRONG_MOVE_PCT = 25
MOVE_PCT = 10


def _pct(numerator: float, denominator: float) -> float:
    # Zero denominators follow IEEE semantics: +-inf, or nan for 0/0 (never matches a threshold)
    if denominator == 0:
        return math.nan if numerator == 0 else math.copysign(math.inf, numerator)
    return numerator / denominator * 100


class BeforeContext(str, Enum):
    PUMPED_TO = 'pumped_to'
    ROSE_TO = 'rose_to'
    FLAT = 'flat'
    FELL_TO = 'fell_to'
    DUMPED_TO = 'dumped_to'


class AfterContext(str, Enum):
    MOON = 'moon'
    PUMP = 'pump'
    FLAT = 'flat'
    DIP = 'dip'
    DUMP = 'dump'


def classify_before(entry_price: float, window_min: float, window_max: float) -> BeforeContext:
    """
    Classify how price arrived at the entry over the lookback window
    """
    rise_to_entry = _pct(entry_price - window_min, window_min)
    fall_to_entry = _pct(window_max - entry_price, window_max)

    if rise_to_entry > STRONG_MOVE_PCT and rise_to_entry > fall_to_entry:
        return BeforeContext.PUMPED_TO
    if rise_to_entry > MOVE_PCT and rise_to_entry > fall_to_entry:
        return BeforeContext.ROSE_TO
    if fall_to_entry > STRONG_MOVE_PCT and fall_to_entry > rise_to_entry:
        return BeforeContext.DUMPED_TO
    if fall_to_entry > MOVE_PCT and fall_to_entry > rise_to_entry:
        return BeforeContext.FELL_TO
    return BeforeContext.FLAT


def classify_after(entry_price: float, window_min: float, window_max: float) -> AfterContext:
    """
    Classify what price did over the lookforward window
    """
    pct_up = _pct(window_max - entry_price, entry_price)
    pct_down = _pct(entry_price - window_min, entry_price)

    if pct_up > STRONG_MOVE_PCT and pct_up > pct_down:
        return AfterContext.MOON
    if pct_up > MOVE_PCT and pct_up > pct_down:
        return AfterContext.PUMP
    if pct_down > STRONG_MOVE_PCT and pct_down > pct_up:
        return AfterContext.DUMP
    if pct_down > MOVE_PCT and pct_down > pct_up:
        return AfterContext.DIP
    return AfterContext.FLAT


def _extremes(candles: Iterable[Candle], default: float) -> Tuple[float, float]:
    lows = []
    highs = []
    for c in candles:
        lows.append(c.low)
        highs.append(c.high)
    if not lows:
        return default, default
    return min(lows), max(highs)


def window_extremes(candles: Iterable[Candle], entry_time: int,
                    entry_price: float) -> Tuple[float, float, float, float]:
    """
    Low/high extremes of the lookback and lookforward windows.
    Returns: (before_min, before_max, after_min, after_max)

    An empty window collapses to the entry price, which classifies as flat.
    """
    candles = list(candles)
    before = [c for c in candles
              if entry_time - LOOKBACK_MS <= c.timestamp < entry_time]
    after = [c for c in candles
             if entry_time < c.timestamp <= entry_time + LOOKFORWARD_MS]

    before_min, before_max = _extremes(before, entry_price)
    after_min, after_max = _extremes(after, entry_price)
    return before_min, before_max, after_min, after_max

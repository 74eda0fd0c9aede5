"""
Message formatting for Discord alerts
"""

import math
import time
from typing import Optional

from ..models import MarketSnapshot


def _missing(value) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def format_number(num: Optional[float]) -> str:
    """Dollar amount with B/M/K suffix"""
    if _missing(num):
        return '???'
    if num >= 1_000_000_000:
        return f"${num / 1_000_000_000:.2f}B"
    if num >= 1_000_000:
        return f"${num / 1_000_000:.2f}M"
    if num >= 1_000:
        return f"${num / 1_000:.2f}K"
    if num >= 1:
        return f"${num:.2f}"
    return f"${num:.6f}"


def format_price(price: Optional[float]) -> str:
    if _missing(price) or not price:
        return '???'
    if price >= 1:
        return f"{price:.4f}"
    if price >= 0.0001:
        return f"{price:.6f}"
    if price >= 0.00000001:
        return f"{price:.10f}"
    return f"{price:.4e}"


def format_pct(pct: Optional[float]) -> str:
    if _missing(pct):
        return '0%'
    sign = '+' if pct >= 0 else ''
    return f"{sign}{pct:.1f}%"


def format_age(timestamp_ms: Optional[int], now_ms: Optional[int] = None) -> str:
    """Age of a pair from its creation time (epoch ms)"""
    if not timestamp_ms:
        return '???'
    if now_ms is None:
        now_ms = int(time.time() * 1000)

    mins = (now_ms - timestamp_ms) / (1000 * 60)
    hours = mins / 60
    days = hours / 24

    if mins < 60:
        return f"{math.floor(mins)}m"
    if hours < 24:
        return f"{hours:.1f}h"
    if days < 7:
        return f"{days:.1f}d"
    return f"{math.floor(days / 7)}w"


def build_signal_message(token_address: str, snapshot: MarketSnapshot,
                         holders: Optional[int] = None, now_ms: Optional[int] = None) -> str:
    """
    Alert body. The "**CA:**" line is what the seen store parses back.
    """
    pc = snapshot.price_change
    vol = snapshot.volume

    lines = [
        f"**CA:** `{token_address}`",
        f"**Price:** {format_price(snapshot.price)}",
        f"**MC:** {format_number(snapshot.market_cap)}",
        f"**Age:** {format_age(snapshot.pair_created_at, now_ms)}",
        f"**Liq:** {format_number(snapshot.liquidity)}",
        f"**Holders:** {holders or '???'}",
        '',
        '**Price Change:**',
        f"`5m: {format_pct(pc.get('m5'))} | 1h: {format_pct(pc.get('h1'))} | "
        f"6h: {format_pct(pc.get('h6'))} | 24h: {format_pct(pc.get('h24'))}`",
        '',
        '**Volume:**',
        f"`5m: {format_number(vol.get('m5'))} | 1h: {format_number(vol.get('h1'))} | "
        f"6h: {format_number(vol.get('h6'))} | 24h: {format_number(vol.get('h24'))}`",
    ]

    return '\n'.join(lines)

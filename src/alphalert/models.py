"""
Typed entities for the signal pipeline

Every payload that comes back from an external API is converted here,
at the boundary, so the scoring code never touches raw dicts.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

TOKEN_KEY_SEPARATOR = '!@#'


def _parse_float(value: Any) -> Optional[float]:
    """None for anything that is not a finite number"""
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def _to_float(value: Any, default: float = 0.0) -> float:
    result = _parse_float(value)
    return default if result is None else result


def _to_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        # "12.0" style strings
        as_float = _to_float(value, float(default))
        return int(as_float)


@dataclass(frozen=True)
class Candle:
    """One OHLC price point (timestamp in epoch milliseconds)"""
    timestamp: int
    open: float
    high: float
    low: float
    close: float

    @classmethod
    def from_okx(cls, row: List) -> Optional['Candle']:
        """Row format: [ts, open, high, low, close, ...]"""
        if not isinstance(row, (list, tuple)) or len(row) < 5:
            return None
        try:
            timestamp = int(row[0])
        except (TypeError, ValueError):
            return None
        # A garbled price would read as a real 0 and skew the windows
        prices = [_parse_float(v) for v in row[1:5]]
        if any(p is None for p in prices):
            return None
        open_, high, low, close = prices
        return cls(timestamp=timestamp, open=open_, high=high, low=low, close=close)


@dataclass(frozen=True)
class TradeRecord:
    """A wallet's historical position in one token"""
    token_address: str
    buy_average_price: float
    buy_count: int
    latest_trade_time: int  # epoch ms, 0 when unknown

    @classmethod
    def from_okx(cls, raw: Dict) -> Optional['TradeRecord']:
        if not isinstance(raw, dict):
            return None
        token_address = raw.get('tokenContractAddress')
        if not token_address:
            return None
        return cls(
            token_address=token_address,
            buy_average_price=_to_float(raw.get('buyAvgPrice')),
            buy_count=max(0, _to_int(raw.get('totalTxBuy'))),
            latest_trade_time=_to_int(raw.get('latestTime')),
        )


@dataclass(frozen=True)
class WalletScore:
    """
    Wallet-level entry quality.

    sample_count == 0 means "no data", which is not the same thing as an
    average score of 0.
    """
    wallet_address: str
    average_score: float = 0.0
    sample_count: int = 0

    @property
    def has_data(self) -> bool:
        return self.sample_count > 0


@dataclass(frozen=True)
class WalletRef:
    address: str

    @classmethod
    def from_okx(cls, raw: Dict) -> Optional['WalletRef']:
        if not isinstance(raw, dict):
            return None
        address = raw.get('walletAddress') or raw.get('address')
        if not address:
            return None
        return cls(address=address)


@dataclass(frozen=True)
class Activity:
    """One smart-money buy signal surfaced by the feed"""
    token_address: str
    batch_id: str
    batch_index: str
    token_symbol: str = '???'
    holders: Optional[int] = None

    @classmethod
    def from_okx(cls, raw: Dict, token_info: Optional[Dict] = None) -> Optional['Activity']:
        if not isinstance(raw, dict):
            return None
        token_key = raw.get('tokenKey')
        if not isinstance(token_key, str):
            return None
        parts = token_key.split(TOKEN_KEY_SEPARATOR)
        if len(parts) < 2 or not parts[1]:
            return None

        if not isinstance(token_info, dict):
            token_info = {}
        holders = token_info.get('currentHolders')

        return cls(
            token_address=parts[1],
            batch_id=str(raw.get('batchId', '')),
            batch_index=str(raw.get('batchIndex', '')),
            token_symbol=token_info.get('tokenSymbol') or '???',
            holders=_to_int(holders) if holders not in (None, '') else None,
        )


@dataclass(frozen=True)
class MarketSnapshot:
    """Current market data used to enrich a delivered signal"""
    price: float = 0.0
    price_native: float = 0.0
    market_cap: float = 0.0
    liquidity: float = 0.0
    price_change: Dict[str, float] = field(default_factory=dict)
    volume: Dict[str, float] = field(default_factory=dict)
    symbol: str = '???'
    name: str = 'Unknown'
    pair_address: Optional[str] = None
    dex_id: Optional[str] = None
    pair_created_at: Optional[int] = None

    @classmethod
    def from_dexscreener(cls, pairs: List[Dict], chain_slug: str = 'solana') -> Optional['MarketSnapshot']:
        """
        Pick the most liquid pair on the given chain.
        Returns None when the token has no pair on that chain.
        """
        candidates = [p for p in pairs or [] if isinstance(p, dict) and p.get('chainId') == chain_slug]
        if not candidates:
            return None

        main_pair = max(candidates, key=lambda p: _to_float((p.get('liquidity') or {}).get('usd')))

        price_change = main_pair.get('priceChange') or {}
        volume = main_pair.get('volume') or {}
        base_token = main_pair.get('baseToken') or {}
        created_at = main_pair.get('pairCreatedAt')

        return cls(
            price=_to_float(main_pair.get('priceUsd')),
            price_native=_to_float(main_pair.get('priceNative')),
            market_cap=_to_float(main_pair.get('marketCap')) or _to_float(main_pair.get('fdv')),
            liquidity=_to_float((main_pair.get('liquidity') or {}).get('usd')),
            price_change={k: _to_float(price_change.get(k)) for k in ('m5', 'h1', 'h6', 'h24')},
            volume={k: _to_float(volume.get(k)) for k in ('m5', 'h1', 'h6', 'h24')},
            symbol=base_token.get('symbol') or '???',
            name=base_token.get('name') or 'Unknown',
            pair_address=main_pair.get('pairAddress'),
            dex_id=main_pair.get('dexId'),
            pair_created_at=_to_int(created_at) if created_at else None,
        )


@dataclass(frozen=True)
class AggregateDecision:
    accepted: bool
    aggregate_score: Optional[float]
    wallets_scored: int
    reason: str


@dataclass
class SignalResult:
    """Outcome of processing one signal in a tick"""
    token_address: str
    symbol: str
    score: Optional[float]
    wallet_count: int
    holders: Optional[int]
    accepted: bool
    sent: bool = False
    reason: str = ''

    def to_dict(self) -> Dict:
        return {
            'address': self.token_address,
            'symbol': self.symbol,
            'score': f"{self.score:.2f}" if self.score is not None else None,
            'wallet_count': self.wallet_count,
            'holders': self.holders,
            'accepted': self.accepted,
            'sent': self.sent,
            'reason': self.reason,
        }


@dataclass
class PollSummary:
    tick_count: int
    results: List[SignalResult]
    elapsed_ms: float

    @property
    def signals_sent(self) -> int:
        return sum(1 for r in self.results if r.sent)

    @property
    def signals_processed(self) -> int:
        return len(self.results)

    def to_dict(self, seen_token_count: Optional[int] = None) -> Dict:
        return {
            'tick_count': self.tick_count,
            'elapsed_ms': round(self.elapsed_ms),
            'signals_sent': self.signals_sent,
            'signals_processed': self.signals_processed,
            'seen_token_count': seen_token_count,
            'results': [r.to_dict() for r in self.results],
        }

"""In-memory collaborators and a fake HTTP session for the tests"""

from types import SimpleNamespace
from typing import Dict, List, Optional

from alphalert.exceptions import FeedError
from alphalert.models import Activity, Candle, MarketSnapshot, TradeRecord, WalletRef, WalletScore


class FakeClock:
    """Monotonic clock whose sleep just moves time forward"""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: List[float] = []

    def time(self) -> float:
        return self.now

    def advance_ms(self, ms: float):
        self.now += ms / 1000

    async def sleep(self, seconds: float):
        self.sleeps.append(seconds)
        self.now += seconds


class FakeFeed:
    def __init__(self, batches: Optional[List] = None, wallets: Optional[Dict] = None,
                 clock: Optional[FakeClock] = None, batch_cost_ms: float = 0):
        # Each batch entry is a list of activities or an exception to raise
        self.batches = list(batches or [])
        self.wallets = wallets or {}
        self.clock = clock
        self.batch_cost_ms = batch_cost_ms
        self.batch_calls = 0
        self.wallet_calls: List[str] = []

    async def fetch_batch(self, page_size: int = 15) -> List[Activity]:
        self.batch_calls += 1
        if self.clock is not None:
            self.clock.advance_ms(self.batch_cost_ms)
        if not self.batches:
            return []
        batch = self.batches.pop(0)
        if isinstance(batch, Exception):
            raise batch
        return batch

    async def fetch_wallet_set(self, activity: Activity) -> List[WalletRef]:
        self.wallet_calls.append(activity.token_address)
        wallets = self.wallets.get(activity.token_address, [])
        if isinstance(wallets, Exception):
            raise wallets
        return [WalletRef(address=w) for w in wallets]


class FakeScorer:
    def __init__(self, scores: Dict):
        # wallet -> (average_score, sample_count) or an exception
        self.scores = scores
        self.calls: List[str] = []

    async def score_wallet(self, wallet_address: str, max_tokens_considered=None) -> WalletScore:
        self.calls.append(wallet_address)
        value = self.scores.get(wallet_address, (0.0, 0))
        if isinstance(value, Exception):
            raise value
        avg, count = value
        return WalletScore(wallet_address=wallet_address, average_score=avg, sample_count=count)


class FakeSnapshots:
    def __init__(self, snapshots: Optional[Dict] = None, default: Optional[MarketSnapshot] = None):
        self.snapshots = snapshots or {}
        self.default = default
        self.calls: List[str] = []

    async def fetch_snapshot(self, token_address: str) -> Optional[MarketSnapshot]:
        self.calls.append(token_address)
        return self.snapshots.get(token_address, self.default)


class FakeNotifier:
    def __init__(self, succeed: bool = True, fail_on: Optional[str] = None):
        self.succeed = succeed
        self.fail_on = fail_on
        self.published: List[Dict] = []

    async def publish(self, content: str, token_symbol: str = '???') -> bool:
        if self.fail_on and self.fail_on in content:
            raise RuntimeError("webhook exploded")
        self.published.append({'content': content, 'symbol': token_symbol})
        return self.succeed


class FakeSeenStore:
    def __init__(self, tokens: Optional[List[str]] = None, error: Optional[Exception] = None):
        self.tokens = tokens or []
        self.error = error
        self.calls = 0

    async def load(self) -> List[str]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.tokens)


class FakeHistory:
    def __init__(self, records: Dict[str, List[TradeRecord]], error: Optional[Exception] = None):
        self.records = records
        self.error = error
        self.calls: List = []

    async def fetch_trades(self, wallet_address: str, limit: int = 30) -> List[TradeRecord]:
        self.calls.append((wallet_address, limit))
        if self.error is not None:
            raise self.error
        return self.records.get(wallet_address, [])[:limit]


class FakePrices:
    def __init__(self, candles: Dict[str, List[Candle]]):
        self.candles = candles
        self.calls: List[str] = []

    async def fetch_candles(self, token_address: str, bar: str = '15m', limit: int = 300) -> List[Candle]:
        self.calls.append(token_address)
        value = self.candles.get(token_address, [])
        if isinstance(value, Exception):
            raise value
        return value


class FakeResponse:
    """Just enough of aiohttp.ClientResponse for the clients"""

    def __init__(self, status: int = 200, payload=None, text: str = ''):
        self.status = status
        self.payload = payload
        self.body = text
        self.request_info = SimpleNamespace(real_url='http://test.invalid')
        self.history = ()

    async def json(self, content_type='application/json'):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload

    async def text(self) -> str:
        return self.body

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """
    Stands in for aiohttp.ClientSession. Each request takes the next queued
    FakeResponse, or raises it when an exception is queued.
    """

    def __init__(self, responses: Optional[List] = None):
        self.responses = list(responses or [])
        self.requests: List[Dict] = []
        self.closed = False

    def _request(self, method: str, url: str, kwargs: Dict):
        self.requests.append({'method': method, 'url': url, **kwargs})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def get(self, url: str, **kwargs):
        return self._request('GET', url, kwargs)

    def post(self, url: str, **kwargs):
        return self._request('POST', url, kwargs)

    async def close(self):
        self.closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.closed = True
        return False


def activity(token: str, symbol: str = 'TKN', holders: Optional[int] = 1200) -> Activity:
    return Activity(token_address=token, batch_id='1', batch_index='0',
                    token_symbol=symbol, holders=holders)


def snapshot(symbol: str = 'PEPE') -> MarketSnapshot:
    return MarketSnapshot(
        price=0.00123,
        market_cap=250_000,
        liquidity=40_000,
        price_change={'m5': 1.5, 'h1': -3.0, 'h6': 12.0, 'h24': 40.0},
        volume={'m5': 900, 'h1': 12_000, 'h6': 80_000, 'h24': 310_000},
        symbol=symbol,
        name='Pepe',
    )


__all__ = [
    'FakeClock', 'FakeFeed', 'FakeScorer', 'FakeSnapshots', 'FakeNotifier',
    'FakeSeenStore', 'FakeHistory', 'FakePrices', 'FakeResponse', 'FakeSession',
    'FeedError', 'activity', 'snapshot',
]

"""
OKX Web3 Client - smart-money signal feed, wallet trade history and candles
"""

import asyncio
import time
from typing import Dict, List, Optional

import aiohttp
import structlog

from ..exceptions import FeedError
from ..models import Activity, Candle, TradeRecord, WalletRef

log = structlog.get_logger()

ACTIVITY_PATH = "/priapi/v1/dx/market/v2/smartmoney/signal/filter-activity-overview"
SIGNAL_DETAIL_PATH = "/priapi/v1/dx/market/v2/smartmoney/signal-detail"
TRADING_HISTORY_PATH = "/priapi/v1/dx/market/v2/pnl/token-list"
CANDLES_PATH = "/priapi/v5/dex/token/market/dex-token-hlc-candles"

SIGNAL_LABELS = [1, 2, 3]  # Smart Money, Influencers, Whales
BUY_TREND = '1'


def _cache_buster() -> int:
    return int(time.time() * 1000)


def _ok(payload: Dict) -> bool:
    # Candle endpoint answers with code "0", the others with 0
    return isinstance(payload, dict) and payload.get('code') in (0, '0')


def _error_message(payload: Dict) -> str:
    if not isinstance(payload, dict):
        return 'malformed response'
    return payload.get('error_message') or payload.get('msg') or f"code {payload.get('code')}"


def _data(payload: Dict) -> Dict:
    data = payload.get('data')
    return data if isinstance(data, dict) else {}


def _items(section: Dict, key: str) -> List:
    items = section.get(key)
    return items if isinstance(items, list) else []


class OKXClient:
    """
    Async client for the OKX DEX market API

    Serves as signal feed, trade history provider and price provider.
    Feed calls raise FeedError; history and candle calls return [] on failure.
    """

    def __init__(self, config: Dict):
        self.endpoint = config.get('okx_endpoint', 'https://web3.okx.com').rstrip('/')
        self.chain_id = config.get('chain_id', 501)
        self.page_size = config.get('page_size', 15)
        self.timeout = aiohttp.ClientTimeout(total=config.get('request_timeout', 10))
        self.session: Optional[aiohttp.ClientSession] = None

        log.info("okx_client_initialized",
                endpoint=self.endpoint,
                chain_id=self.chain_id)

    async def __aenter__(self):
        self.session = aiohttp.ClientSession(
            timeout=self.timeout,
            headers={'Content-Type': 'application/json'}
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.session:
            await self.session.close()
            self.session = None

    async def _get_json(self, path: str, params: Dict) -> Dict:
        params = {**params, 't': _cache_buster()}
        async with self.session.get(f"{self.endpoint}{path}", params=params) as response:
            if response.status != 200:
                raise aiohttp.ClientResponseError(
                    response.request_info, response.history,
                    status=response.status, message=f"HTTP {response.status}"
                )
            return await response.json(content_type=None)

    async def fetch_batch(self, page_size: Optional[int] = None) -> List[Activity]:
        """
        Latest buy signals for the configured chain
        """
        body = {
            'chainId': self.chain_id,
            'trend': BUY_TREND,
            'signalLabelList': SIGNAL_LABELS,
            'protocolIdList': [],
            'tokenMetricsFilter': {},
            'signalMetricsFilter': {},
            'pageSize': page_size or self.page_size,
        }

        try:
            url = f"{self.endpoint}{ACTIVITY_PATH}"
            async with self.session.post(url, params={'t': _cache_buster()}, json=body) as response:
                if response.status != 200:
                    raise FeedError(f"Signal feed HTTP {response.status}")
                payload = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise FeedError(f"Signal feed request failed: {e}") from e

        if not _ok(payload):
            raise FeedError(f"OKX API error: {_error_message(payload)}")

        data = _data(payload)
        token_info = data.get('tokenInfo')
        if not isinstance(token_info, dict):
            token_info = {}

        activities = []
        for raw in _items(data, 'activityList'):
            token_key = raw.get('tokenKey') if isinstance(raw, dict) else None
            info = token_info.get(token_key) if isinstance(token_key, str) else None
            activity = Activity.from_okx(raw, info)
            if activity is None:
                log.debug("activity_skipped_malformed", token_key=repr(token_key))
                continue
            activities.append(activity)

        log.info("signal_batch_fetched", count=len(activities))
        return activities

    async def fetch_wallet_set(self, activity: Activity) -> List[WalletRef]:
        """
        Wallets behind one signal
        """
        params = {
            'chainId': self.chain_id,
            'tokenContractAddress': activity.token_address,
            'batchId': activity.batch_id,
            'batchIndex': activity.batch_index,
        }

        try:
            payload = await self._get_json(SIGNAL_DETAIL_PATH, params)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise FeedError(f"Signal detail request failed: {e}") from e

        if not _ok(payload):
            raise FeedError(f"Signal detail error: {_error_message(payload)}")

        wallets = []
        for raw in _items(_data(payload), 'addresses'):
            ref = WalletRef.from_okx(raw)
            if ref is not None:
                wallets.append(ref)
        return wallets

    async def fetch_trades(self, wallet_address: str, limit: int = 30) -> List[TradeRecord]:
        """
        Wallet's per-token trade summaries, most recent first
        """
        params = {
            'walletAddress': wallet_address,
            'chainId': self.chain_id,
            'isAsc': 'false',
            'sortType': 1,  # by time; 2 sorts by PnL
            'offset': 0,
            'limit': limit,
        }

        try:
            payload = await self._get_json(TRADING_HISTORY_PATH, params)
        except Exception as e:
            log.warning("trading_history_fetch_error", wallet=wallet_address[:8], error=str(e))
            return []

        if not _ok(payload):
            log.debug("trading_history_unavailable", wallet=wallet_address[:8], reason=_error_message(payload))
            return []

        records = []
        for raw in _items(_data(payload), 'tokenList'):
            record = TradeRecord.from_okx(raw)
            if record is not None:
                records.append(record)
        return records

    async def fetch_candles(self, token_address: str, bar: str = '15m', limit: int = 300) -> List[Candle]:
        """
        OHLC candles for a token
        """
        params = {
            'chainId': self.chain_id,
            'address': token_address,
            'bar': bar,
            'limit': limit,
        }

        try:
            payload = await self._get_json(CANDLES_PATH, params)
        except Exception as e:
            log.warning("candles_fetch_error", token=token_address[:8], error=str(e))
            return []

        if not _ok(payload):
            return []

        candles = []
        for row in _items(payload, 'data'):
            candle = Candle.from_okx(row)
            if candle is not None:
                candles.append(candle)
        return candles

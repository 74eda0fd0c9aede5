"""Tests for converting raw API payloads into typed entities."""

from alphalert.core.score_matrix import score_entry
from alphalert.models import Activity, Candle, MarketSnapshot, PollSummary, SignalResult, TradeRecord, WalletRef

HOUR_MS = 60 * 60 * 1000


def test_activity_from_token_key() -> None:
    raw = {'tokenKey': '501!@#Mint111', 'batchId': 12, 'batchIndex': 3}
    info = {'tokenSymbol': 'WIF', 'currentHolders': '1520'}

    act = Activity.from_okx(raw, info)

    assert act.token_address == 'Mint111'
    assert act.batch_id == '12'
    assert act.batch_index == '3'
    assert act.token_symbol == 'WIF'
    assert act.holders == 1520


def test_activity_without_usable_token_key() -> None:
    assert Activity.from_okx({'tokenKey': 'Mint111'}) is None
    assert Activity.from_okx({}) is None
    assert Activity.from_okx({'tokenKey': 12345}) is None
    assert Activity.from_okx(['501!@#Mint111']) is None


def test_activity_ignores_token_info_that_is_not_a_mapping() -> None:
    act = Activity.from_okx({'tokenKey': '501!@#Mint111'}, ['WIF'])
    assert act.token_address == 'Mint111'
    assert act.token_symbol == '???'
    assert act.holders is None


def test_activity_defaults_without_token_info() -> None:
    act = Activity.from_okx({'tokenKey': '501!@#Mint111'})
    assert act.token_symbol == '???'
    assert act.holders is None


def test_trade_record_garbled_fields_become_zero() -> None:
    record = TradeRecord.from_okx({
        'tokenContractAddress': 'Mint111',
        'buyAvgPrice': 'n/a',
        'totalTxBuy': '4',
        'latestTime': '1700000000000',
    })
    assert record.buy_average_price == 0.0
    assert record.buy_count == 4
    assert record.latest_trade_time == 1700000000000

    assert TradeRecord.from_okx({'buyAvgPrice': '1'}) is None


def test_candle_from_row() -> None:
    candle = Candle.from_okx(['1700000000000', '1.0', '2.5', '0.5', '1.5', '999'])
    assert candle == Candle(timestamp=1700000000000, open=1.0, high=2.5, low=0.5, close=1.5)
    assert Candle.from_okx(['1700000000000', '1.0']) is None
    assert Candle.from_okx(['soon', '1', '1', '1', '1']) is None


def test_candle_with_garbled_price_is_dropped() -> None:
    assert Candle.from_okx(['1700000000000', '99', '101', 'n/a', '100']) is None
    assert Candle.from_okx(['1700000000000', None, '1', '1', '1']) is None
    assert Candle.from_okx(['1700000000000', '1', 'NaN', '1', '1']) is None
    assert Candle.from_okx(['1700000000000', '1', '1', '1', 'inf']) is None


def test_garbled_candle_does_not_skew_the_entry_score() -> None:
    entry = 100 * HOUR_MS
    rows = [
        [entry - HOUR_MS, '99', '101', 'n/a', '100'],
        [entry, '100', '100', '100', '100'],
        [entry + HOUR_MS, '100', '140', '100', '135'],
    ]
    candles = [c for c in (Candle.from_okx(r) for r in rows) if c is not None]

    assert len(candles) == 2
    # flat before, moon after
    assert score_entry(100, entry, candles) == 2


def test_wallet_ref_prefers_wallet_address() -> None:
    assert WalletRef.from_okx({'walletAddress': 'A', 'address': 'B'}).address == 'A'
    assert WalletRef.from_okx({'address': 'B'}).address == 'B'
    assert WalletRef.from_okx({}) is None
    assert WalletRef.from_okx('W1') is None


def test_snapshot_picks_most_liquid_pair_on_chain() -> None:
    pairs = [
        {'chainId': 'solana', 'priceUsd': '0.1', 'liquidity': {'usd': 1000}, 'baseToken': {'symbol': 'LOW'}},
        {'chainId': 'ethereum', 'priceUsd': '9', 'liquidity': {'usd': 10_000_000}, 'baseToken': {'symbol': 'ETHX'}},
        {
            'chainId': 'solana',
            'priceUsd': '0.2',
            'fdv': 500000,
            'liquidity': {'usd': 50000},
            'priceChange': {'m5': 1.5, 'h24': -20},
            'volume': {'h1': 1234},
            'baseToken': {'symbol': 'HIGH', 'name': 'High Liq'},
            'pairCreatedAt': 1699990000000,
        },
    ]

    snap = MarketSnapshot.from_dexscreener(pairs, 'solana')

    assert snap.symbol == 'HIGH'
    assert snap.price == 0.2
    assert snap.market_cap == 500000  # falls back to fdv
    assert snap.liquidity == 50000
    assert snap.price_change == {'m5': 1.5, 'h1': 0.0, 'h6': 0.0, 'h24': -20.0}
    assert snap.volume['h1'] == 1234
    assert snap.pair_created_at == 1699990000000


def test_snapshot_none_without_pairs_on_chain() -> None:
    assert MarketSnapshot.from_dexscreener([], 'solana') is None
    assert MarketSnapshot.from_dexscreener([{'chainId': 'base'}], 'solana') is None


def test_poll_summary_counts() -> None:
    results = [
        SignalResult('A', 'AAA', 1.234, 3, 10, accepted=True, sent=True),
        SignalResult('B', 'BBB', -1.0, 2, None, accepted=False),
    ]
    summary = PollSummary(tick_count=2, results=results, elapsed_ms=1500.4)

    data = summary.to_dict(seen_token_count=7)

    assert data['signals_sent'] == 1
    assert data['signals_processed'] == 2
    assert data['seen_token_count'] == 7
    assert data['elapsed_ms'] == 1500
    assert data['results'][0]['score'] == '1.23'

"""
Main entry point for the signal feed
"""

import argparse
import asyncio
import json
import sys
from typing import Dict, Optional

import structlog
from dotenv import load_dotenv

from .api.dexscreener_client import DexScreenerClient
from .api.okx_client import OKXClient
from .config import load_config
from .core.signal_aggregator import SignalAggregator
from .core.wallet_scorer import WalletScorer
from .notifications.discord_notifier import DiscordNotifier
from .poller import SignalPoller
from .storage.dedup_cache import DedupCache
from .storage.discord_seen_store import DiscordSeenStore

log = structlog.get_logger()


def configure_logging(pretty: bool = False):
    renderer = structlog.dev.ConsoleRenderer() if pretty else structlog.processors.JSONRenderer()
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            renderer
        ],
        # Keep stdout for the JSON summary
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def build_poller(config: Dict, okx: OKXClient, cache: Optional[DedupCache] = None) -> SignalPoller:
    """
    Wire the poller with real clients. okx must already be entered.
    """
    api_config = config['api']
    scoring_config = config['scoring']
    discord_config = config['discord']

    notifier = DiscordNotifier(
        webhook_url=discord_config.get('webhook_url'),
        username_prefix=discord_config.get('username_prefix', 'Alphalert'),
        avatar_url=discord_config.get('avatar_url'),
        timeout=api_config.get('request_timeout', 10),
    )

    seen_store = DiscordSeenStore(
        bot_token=discord_config.get('bot_token'),
        channel_id=discord_config.get('channel_id'),
        message_limit=discord_config.get('recovery_message_limit', 100),
        timeout=api_config.get('request_timeout', 10),
    )

    return SignalPoller(
        feed=okx,
        snapshot_provider=DexScreenerClient(api_config),
        notifier=notifier,
        wallet_scorer=WalletScorer(okx, okx, scoring_config),
        aggregator=SignalAggregator.from_config(scoring_config),
        cache=cache,
        seen_store=seen_store,
        config={
            'page_size': api_config.get('page_size', 15),
            'max_wallets': scoring_config.get('max_wallets', 8),
            **(config.get('poller') or {}),
        },
    )


async def cmd_poll(config: Dict, args) -> Dict:
    async with OKXClient(config['api']) as okx:
        poller = build_poller(config, okx)
        summary = await poller.run_for_budget(
            max_duration_ms=args.duration_ms,
            poll_interval_ms=args.interval_ms,
            dry_run=args.dry_run,
        )
        return summary.to_dict(seen_token_count=len(poller.cache))


async def cmd_once(config: Dict, args) -> Dict:
    async with OKXClient(config['api']) as okx:
        poller = build_poller(config, okx)
        results = await poller.run_once(dry_run=args.dry_run)
        return {
            'signals_sent': sum(1 for r in results if r.sent),
            'signals_processed': len(results),
            'seen_token_count': len(poller.cache),
            'results': [r.to_dict() for r in results],
        }


async def cmd_watch(config: Dict, args) -> Dict:
    async with OKXClient(config['api']) as okx:
        poller = build_poller(config, okx)
        try:
            await poller.watch(dry_run=args.dry_run)
        except asyncio.CancelledError:
            log.info("watch_cancelled")
        return poller.status()


COMMANDS = {
    'poll': cmd_poll,
    'once': cmd_once,
    'watch': cmd_watch,
}


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Smart-money signal feed -> Discord")
    parser.add_argument('--config', default='config/config.yaml', help='Path to YAML config')
    parser.add_argument('--pretty', action='store_true', help='Human-readable logs')

    sub = parser.add_subparsers(dest='command', required=True)

    poll = sub.add_parser('poll', help='Run one time-boxed polling loop')
    poll.add_argument('--duration-ms', type=int, default=None, help='Loop budget (default from config)')
    poll.add_argument('--interval-ms', type=int, default=None, help='Poll interval (default from config)')
    poll.add_argument('--dry-run', action='store_true', help='Score and render, but do not post')

    once = sub.add_parser('once', help='Run a single poll')
    once.add_argument('--dry-run', action='store_true')

    watch = sub.add_parser('watch', help='Repeat polling loops until interrupted')
    watch.add_argument('--dry-run', action='store_true')

    return parser.parse_args(argv)


def run(argv=None):
    """Console script entry"""
    # Load environment variables FIRST
    load_dotenv()

    args = parse_args(argv)
    configure_logging(pretty=args.pretty)

    config = load_config(args.config)
    log.info("signal_feed_starting", command=args.command, config=args.config)

    try:
        output = asyncio.run(COMMANDS[args.command](config, args))
    except KeyboardInterrupt:
        log.info("shutdown_requested")
        return 0

    print(json.dumps(output, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(run())

"""
Configuration - YAML settings merged over built-in defaults, secrets from .env
"""

import copy
import os
from pathlib import Path
from typing import Dict, Optional, Union

import structlog
import yaml

log = structlog.get_logger()


DEFAULT_CONFIG: Dict = {
    'api': {
        'okx_endpoint': 'https://web3.okx.com',
        'dexscreener_endpoint': 'https://api.dexscreener.com',
        'chain_id': 501,
        'chain_slug': 'solana',
        'page_size': 15,
        'request_timeout': 10,
    },
    'scoring': {
        'min_score': 0,
        'max_score': 2,
        'score_tolerance': 0.01,
        'max_wallets': 8,
        'history_limit': 10,
        'history_days': 7,
        'max_tokens_scored': 6,
        'max_buy_weight': 3,
        'candle_bar': '15m',
        'candle_limit': 300,
        'token_pause_ms': 20,
    },
    'poller': {
        'max_duration_ms': 55000,
        'poll_interval_ms': 1000,
        'signal_pause_ms': 100,
    },
    'discord': {
        'webhook_url': None,
        'channel_id': None,
        'bot_token': None,
        'username_prefix': 'Alphalert',
        'avatar_url': 'https://i.imgur.com/4M34hi2.png',
        'recovery_message_limit': 100,
    },
}

# Environment variable -> (section, key)
ENV_OVERRIDES = {
    'DISCORD_WEBHOOK_URL': ('discord', 'webhook_url'),
    'DISCORD_CHANNEL_ID': ('discord', 'channel_id'),
    'DISCORD_BOT_TOKEN': ('discord', 'bot_token'),
}


def _deep_merge(base: Dict, override: Dict) -> Dict:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        elif value is None and isinstance(merged.get(key), dict):
            # An empty section ("poller:" with no body) keeps its defaults
            continue
        else:
            merged[key] = value
    return merged


def load_config(path: Optional[Union[str, Path]] = None) -> Dict:
    """
    Load configuration from a YAML file and the environment.

    Every key is optional: whatever the file omits falls back to
    DEFAULT_CONFIG. A missing file is not an error. Secrets are only ever
    read from the environment (call load_dotenv() first).
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    if path is not None:
        config_path = Path(path)
        if config_path.exists():
            with open(config_path, 'r') as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                raise ValueError(f"Config file {config_path} must contain a mapping")
            config = _deep_merge(config, data)
            log.info("config_loaded", path=str(config_path))
        else:
            log.warning("config_file_missing", path=str(config_path), using_defaults=True)

    for env_name, (section, key) in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            config[section][key] = value

    return config

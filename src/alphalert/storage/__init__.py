"""Storage module"""

from .dedup_cache import DedupCache
from .discord_seen_store import DiscordSeenStore, extract_token_address

__all__ = ['DedupCache', 'DiscordSeenStore', 'extract_token_address']

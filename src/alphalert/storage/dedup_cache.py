"""
Dedup Cache - tokens already notified during this process lifetime
"""

from typing import Iterable, Optional, Set

import structlog

log = structlog.get_logger()


class DedupCache:
    """
    In-memory set of notified token addresses plus a "seeded" flag.

    Owned by the poller and passed in explicitly, so tests can start from
    any state. Not safe to share between concurrently running pollers.
    """

    def __init__(self, tokens: Optional[Iterable[str]] = None, seeded: bool = False):
        self.tokens: Set[str] = set(tokens or ())
        self.seeded = seeded

    def __contains__(self, token: str) -> bool:
        return token in self.tokens

    def __len__(self) -> int:
        return len(self.tokens)

    def contains(self, token: str) -> bool:
        return token in self.tokens

    def add(self, token: str):
        self.tokens.add(token)

    def load(self, initial_tokens: Iterable[str]) -> bool:
        """
        Seed from a recovery source. Only the first call has an effect.
        Returns True if this call seeded the cache.
        """
        if self.seeded:
            return False

        self.tokens.update(initial_tokens)
        self.seeded = True

        log.info("dedup_cache_seeded", tokens=len(self.tokens))
        return True

    def reset(self) -> int:
        """
        Forget every token. The cache stays seeded.
        Returns the number of tokens dropped.
        """
        previous = len(self.tokens)
        self.tokens.clear()

        log.info("dedup_cache_reset", previous_count=previous)
        return previous

"""
Exceptions raised across module boundaries

Transient fetch failures (trade history, candles, market snapshots) are
never raised: the clients log them and return an empty result instead.
"""


class AlphalertError(Exception):
    """Base class for all alphalert errors"""


class FeedError(AlphalertError):
    """The signal feed (batch or wallet-set fetch) could not be read"""


class RecoveryError(AlphalertError):
    """Previously-notified tokens could not be recovered at startup"""

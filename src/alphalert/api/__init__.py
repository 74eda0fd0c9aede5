"""API clients"""

from .okx_client import OKXClient
from .dexscreener_client import DexScreenerClient

__all__ = ['OKXClient', 'DexScreenerClient']

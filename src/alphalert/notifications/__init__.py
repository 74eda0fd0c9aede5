"""Notifications module"""

from .discord_notifier import DiscordNotifier
from .formatting import build_signal_message, format_age, format_number, format_pct, format_price

__all__ = [
    'DiscordNotifier',
    'build_signal_message',
    'format_age',
    'format_number',
    'format_pct',
    'format_price',
]

"""
Alphalert - smart-money signal feed with wallet entry-quality scoring
"""

from .poller import SchedulerState, SignalPoller

__all__ = ['SchedulerState', 'SignalPoller']
__version__ = '0.1.0'

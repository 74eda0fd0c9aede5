"""
Main entry point for the signal feed
"""

import sys

from alphalert.main import run


if __name__ == "__main__":
    sys.exit(run())

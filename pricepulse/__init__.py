"""
PricePulse
Watches asset prices and alerts subscribers when a move crosses their threshold.
"""

__version__ = "1.0.0"

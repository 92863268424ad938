"""
SwapGuard: pre-trade manipulation guard and post-trade pool rebalancer.
"""

__version__ = "0.1.0"

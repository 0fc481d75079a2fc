"""
Bank Account Test Menu

A validated bank account value object with available and present balances,
a live-instance registry, and an interactive console menu for exercising them.
"""

__version__ = "1.0.0"

"""
tradebot: an automated exchange trading bot.

Polls markets on a fixed cycle, hands market state to pluggable strategies
and relays their orders to the exchange through ccxt.
"""

__version__ = "1.0.0"

"""Market implementations."""

from stdmarket.market.base import Market
from stdmarket.market.standard import StandardMarket, TradeReceipt, create_market

__all__ = [
    "Market",
    "StandardMarket",
    "TradeReceipt",
    "create_market",
]

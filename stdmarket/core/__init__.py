"""Market core - checked arithmetic, fees, stages, inventory and the host chain."""

from stdmarket.core.chain import Chain
from stdmarket.core.fees import FEE_RANGE, TradeCost, calc_market_fee, quote_trade
from stdmarket.core.inventory import SignedInventory
from stdmarket.core.stage import MarketStage, StageController

__all__ = [
    "Chain",
    "FEE_RANGE",
    "TradeCost",
    "calc_market_fee",
    "quote_trade",
    "SignedInventory",
    "MarketStage",
    "StageController",
]

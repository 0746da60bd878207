"""Market maker interface and deterministic reference oracles."""

from stdmarket.pricing.base import MarketMaker
from stdmarket.pricing.fixed import PRICE_SCALE, FixedPriceMarketMaker, ScriptedMarketMaker

__all__ = [
    "MarketMaker",
    "PRICE_SCALE",
    "FixedPriceMarketMaker",
    "ScriptedMarketMaker",
]

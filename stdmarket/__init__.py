"""
stdmarket - Standard Prediction Market Simulator

A single-market escrow that converts collateral into a full set of outcome
tokens and trades them against a pluggable market maker, charging a fee
for the market creator. Runs on an in-memory host chain that gives every
market operation all-or-nothing semantics.
"""

__version__ = "0.1.0"

from stdmarket.core.chain import Chain
from stdmarket.core.fees import FEE_RANGE, calc_market_fee
from stdmarket.core.stage import MarketStage
from stdmarket.ledger.outcome import CategoricalEvent
from stdmarket.ledger.token import StandardToken
from stdmarket.market.standard import StandardMarket, create_market

__all__ = [
    "Chain",
    "FEE_RANGE",
    "calc_market_fee",
    "MarketStage",
    "CategoricalEvent",
    "StandardToken",
    "StandardMarket",
    "create_market",
]

"""
Market Notifications

Immutable records appended to the chain log when a market operation
completes. They carry no behaviour; a rolled back operation removes the
records it emitted.
"""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class MarketEvent:
    """Base notification: emitting market and block."""
    market: str
    block_number: int


@dataclass(frozen=True)
class FundingCompleted(MarketEvent):
    funding: int = 0


@dataclass(frozen=True)
class ClosingCompleted(MarketEvent):
    pass


@dataclass(frozen=True)
class FeesWithdrawn(MarketEvent):
    fees: int = 0


@dataclass(frozen=True)
class TradeCompleted(MarketEvent):
    """
    A trade settled.

    Attributes:
        transactor: Trading identity
        outcome_token_amounts: Applied trade vector
        gross_cost: Oracle cost before fee
        fee: Market fee charged
    """
    transactor: str = ""
    outcome_token_amounts: Tuple[int, ...] = ()
    gross_cost: int = 0
    fee: int = 0


@dataclass(frozen=True)
class OutcomePurchased(MarketEvent):
    buyer: str = ""
    outcome_index: int = 0
    amount: int = 0
    outcome_token_cost: int = 0
    fee: int = 0


@dataclass(frozen=True)
class OutcomeSold(MarketEvent):
    seller: str = ""
    outcome_index: int = 0
    amount: int = 0
    outcome_token_profit: int = 0
    fee: int = 0


@dataclass(frozen=True)
class OutcomeShortSold(MarketEvent):
    buyer: str = ""
    outcome_index: int = 0
    amount: int = 0
    cost: int = 0

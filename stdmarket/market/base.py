"""
Base Market Interface

Common surface of a single-event market: lifecycle transitions driven by
the creator and trading operations open to everyone while funded.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Sequence

from stdmarket.core.stage import MarketStage


class Market(ABC):
    """Abstract market over one outcome ledger."""

    address: str

    @property
    @abstractmethod
    def stage(self) -> MarketStage:
        """Current lifecycle stage."""

    @abstractmethod
    def fund(self, caller: str, funding: int) -> None:
        """Escrow `funding` collateral and mint the initial claim set."""

    @abstractmethod
    def close(self, caller: str) -> None:
        """Return remaining claims to the creator and stop trading."""

    @abstractmethod
    def withdraw_fees(self, caller: str) -> int:
        """Sweep accrued collateral fees to the creator."""

    @abstractmethod
    def trade(self, caller: str, outcome_token_amounts: Sequence[int], collateral_limit: int) -> int:
        """Settle a signed multi-outcome trade; returns the net cost."""

    @abstractmethod
    def buy(self, caller: str, outcome_index: int, amount: int, max_cost: int) -> int:
        """Buy one outcome; returns the cost paid."""

    @abstractmethod
    def sell(self, caller: str, outcome_index: int, amount: int, min_profit: int) -> int:
        """Sell one outcome; returns the collateral received."""

    @abstractmethod
    def short_sell(self, caller: str, outcome_index: int, amount: int, min_profit: int) -> int:
        """Buy every outcome except one; returns the net cost."""

    @abstractmethod
    def calc_market_fee(self, outcome_token_cost: int) -> int:
        """Fee charged on a non-negative cost."""

    @abstractmethod
    def get_status(self) -> Dict[str, Any]:
        """Snapshot of market state."""

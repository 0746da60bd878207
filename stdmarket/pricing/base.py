"""
Market Maker Interface

A market maker prices trades. Given the market (whose
`net_outcome_tokens_sold` it may read) and a signed trade vector, it
returns the signed collateral cost of the trade before fees: positive when
the trader pays, negative when the market pays out. It never mutates the
market.
"""

from abc import ABC, abstractmethod
from typing import List, Sequence


class MarketMaker(ABC):
    """Pricing oracle consumed by the trade engine."""

    @abstractmethod
    def calc_net_cost(self, market, outcome_token_amounts: Sequence[int]) -> int:
        """
        Signed cost of applying `outcome_token_amounts` to `market`.

        Args:
            market: Market being traded (read-only)
            outcome_token_amounts: Signed amount per outcome

        Returns:
            Signed collateral cost before fees
        """

    def calc_cost(self, market, outcome_index: int, amount: int) -> int:
        """Cost of buying `amount` of one outcome."""
        return self.calc_net_cost(market, _single(market, outcome_index, amount))

    def calc_profit(self, market, outcome_index: int, amount: int) -> int:
        """Collateral received for selling `amount` of one outcome."""
        return -self.calc_net_cost(market, _single(market, outcome_index, -amount))


def _single(market, outcome_index: int, amount: int) -> List[int]:
    amounts = [0] * market.outcome_count
    amounts[outcome_index] = amount
    return amounts

"""
Reference Market Makers

Two deterministic oracles for tests, examples and simulations. Neither is
a pricing curve: `ScriptedMarketMaker` replays predetermined costs and
`FixedPriceMarketMaker` charges a constant price per outcome token.
"""

from collections import deque
from typing import Deque, Iterable, List, Sequence, Tuple

from stdmarket.errors import InvalidConfigError, InvalidInputError
from stdmarket.pricing.base import MarketMaker


# Prices are integers over PRICE_SCALE (1_000_000 = one collateral unit)
PRICE_SCALE: int = 1_000_000


class ScriptedMarketMaker(MarketMaker):
    """
    Returns queued costs in order, one per pricing query.

    Attributes:
        queries: (inventory seen, trade vector) per answered query
    """

    def __init__(self, costs: Iterable[int] = ()):
        self._costs: Deque[int] = deque(costs)
        self.queries: List[Tuple[Tuple[int, ...], Tuple[int, ...]]] = []

    def push(self, *costs: int) -> None:
        """Queue more costs."""
        self._costs.extend(costs)

    @property
    def pending(self) -> int:
        return len(self._costs)

    def calc_net_cost(self, market, outcome_token_amounts: Sequence[int]) -> int:
        if not self._costs:
            raise InvalidInputError("No scripted cost left for this query")
        self.queries.append(
            (tuple(market.net_outcome_tokens_sold), tuple(outcome_token_amounts))
        )
        return self._costs.popleft()


class FixedPriceMarketMaker(MarketMaker):
    """
    Constant per-outcome prices.

    cost = sum(amount_i * price_i) / PRICE_SCALE, rounded towards positive
    infinity so rounding never favours the trader.
    """

    def __init__(self, prices: Sequence[int]):
        if not prices:
            raise InvalidConfigError("At least one price required")
        if any(p < 0 or p > PRICE_SCALE for p in prices):
            raise InvalidConfigError(f"Prices must lie in [0, {PRICE_SCALE}]")
        self.prices = tuple(prices)

    @classmethod
    def uniform(cls, outcome_count: int) -> "FixedPriceMarketMaker":
        """Equal price for every outcome, summing to at most one unit."""
        return cls([PRICE_SCALE // outcome_count] * outcome_count)

    def calc_net_cost(self, market, outcome_token_amounts: Sequence[int]) -> int:
        if len(outcome_token_amounts) != len(self.prices):
            raise InvalidInputError(
                f"Expected {len(self.prices)} amounts, got {len(outcome_token_amounts)}"
            )
        scaled = sum(a * p for a, p in zip(outcome_token_amounts, self.prices))
        # ceiling division: -(-x // y)
        return -(-scaled // PRICE_SCALE)

"""
Market Fee Calculator

Fees are an integer fraction of the oracle's gross trade cost:

    fee = floor(cost * fee_rate / FEE_RANGE)

with FEE_RANGE = 1_000_000 representing 100%. The fee is always computed on
the magnitude of the gross cost and always added to it, so it raises what a
buyer pays and lowers what a seller receives.
"""

from dataclasses import dataclass

from stdmarket.core.arith import checked_add, magnitude, to_int, to_uint, uint_mul


# =============================================================================
# Constants
# =============================================================================

FEE_RANGE: int = 1_000_000  # 100%


@dataclass(frozen=True)
class TradeCost:
    """
    Cost breakdown of one trade.

    Attributes:
        gross_cost: Oracle's signed settlement figure (positive = caller pays)
        fee: Non-negative market fee
        net_cost: gross_cost + fee
    """
    gross_cost: int
    fee: int

    @property
    def net_cost(self) -> int:
        """Signed collateral exchanged including fee."""
        return checked_add(self.gross_cost, self.fee)


def calc_market_fee(cost: int, fee_rate: int) -> int:
    """
    Calculate the fee charged on a non-negative cost.

    Args:
        cost: Unsigned cost amount
        fee_rate: Fee numerator over FEE_RANGE

    Returns:
        floor(cost * fee_rate / FEE_RANGE)

    Examples:
        >>> calc_market_fee(50, 20_000)
        1
        >>> calc_market_fee(48, 20_000)
        0
    """
    cost = to_uint(cost, "cost")
    return uint_mul(cost, fee_rate) // FEE_RANGE


def quote_trade(gross_cost: int, fee_rate: int) -> TradeCost:
    """
    Apply the market fee to a signed gross cost.

    Args:
        gross_cost: Oracle cost (negative when the market pays out)
        fee_rate: Fee numerator over FEE_RANGE

    Returns:
        TradeCost with the fee computed on |gross_cost|
    """
    gross_cost = to_int(gross_cost, "gross_cost")
    fee = calc_market_fee(magnitude(gross_cost), fee_rate)
    return TradeCost(gross_cost=gross_cost, fee=to_int(fee, "fee"))

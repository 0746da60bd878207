"""
Trading Simulation

Runs one market through its whole lifecycle with randomly generated
traders: fund, a stream of random multi-outcome trades against a fixed
price market maker, fee withdrawal and close. Rejected trades (slippage,
missing balances, exhausted inventory) are counted by error code rather
than aborting the run.
"""

from __future__ import annotations
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import structlog

from stdmarket.core.arith import UINT256_MAX
from stdmarket.core.chain import Chain
from stdmarket.errors import MarketError
from stdmarket.ledger.token import StandardToken
from stdmarket.market.standard import create_market
from stdmarket.pricing.fixed import FixedPriceMarketMaker


logger = structlog.get_logger(__name__)

CREATOR = "creator"


# =============================================================================
# Simulation Results
# =============================================================================

@dataclass
class SimulationResult:
    """
    Per-step record of a simulated market.

    Attributes:
        n_trades: Trades attempted
        outcome_count: Outcomes in the market
        funding: Initial funding
        fee: Fee numerator
        inventory_history: Net outcome tokens sold after every attempt
        fee_balance_history: Market collateral balance after every attempt
        net_costs: Net cost of every accepted trade
        rejections: Rejected attempts by error code
        fees_withdrawn: Collateral swept to the creator at the end
        final_status: Market status after closing
    """
    n_trades: int
    outcome_count: int
    funding: int
    fee: int
    inventory_history: List[List[int]] = field(default_factory=list)
    fee_balance_history: List[int] = field(default_factory=list)
    net_costs: List[int] = field(default_factory=list)
    rejections: Dict[str, int] = field(default_factory=dict)
    fees_withdrawn: int = 0
    final_status: Dict[str, Any] = field(default_factory=dict)

    @property
    def accepted(self) -> int:
        return len(self.net_costs)

    @property
    def rejected(self) -> int:
        return sum(self.rejections.values())

    @property
    def acceptance_rate(self) -> float:
        return self.accepted / self.n_trades if self.n_trades else 0.0

    def get_stats(self) -> dict:
        """Summary statistics."""
        costs = np.array(self.net_costs, dtype=float) if self.net_costs else np.zeros(1)
        return {
            "n_trades": self.n_trades,
            "accepted": self.accepted,
            "rejected": self.rejected,
            "acceptance_rate": self.acceptance_rate,
            "rejections": dict(self.rejections),
            "fees_withdrawn": self.fees_withdrawn,
            "mean_net_cost": float(costs.mean()),
            "total_collateral_in": int(sum(c for c in self.net_costs if c > 0)),
            "total_collateral_out": int(-sum(c for c in self.net_costs if c < 0)),
            "final_inventory": self.inventory_history[-1] if self.inventory_history else [],
        }


# =============================================================================
# Simulation
# =============================================================================

def simulate_trading(
    n_trades: int = 200,
    outcome_count: int = 2,
    funding: int = 10_000,
    fee: int = 20_000,
    prices: Optional[Sequence[int]] = None,
    n_traders: int = 5,
    max_trade: int = 100,
    trader_balance: int = 100_000,
    close_market: bool = True,
    seed: Optional[int] = None,
) -> SimulationResult:
    """
    Simulate random trading on one market.

    Args:
        n_trades: Number of trades to attempt
        outcome_count: Number of outcomes
        funding: Creator's initial funding
        fee: Fee numerator over FEE_RANGE
        prices: Fixed outcome prices over PRICE_SCALE (uniform if None)
        n_traders: Number of trading identities
        max_trade: Largest absolute amount per outcome per trade
        trader_balance: Collateral minted to each trader
        close_market: Close the market at the end of the run
        seed: Random seed for reproducibility

    Returns:
        SimulationResult
    """
    rng = np.random.default_rng(seed)

    chain = Chain()
    collateral = StandardToken(chain, "collateral")
    maker = (
        FixedPriceMarketMaker(prices) if prices is not None
        else FixedPriceMarketMaker.uniform(outcome_count)
    )
    market = create_market(chain, CREATOR, collateral, outcome_count, maker, fee=fee)

    collateral.mint(CREATOR, funding)
    collateral.approve(CREATOR, market.address, funding)
    market.fund(CREATOR, funding)

    traders = [f"trader_{i}" for i in range(n_traders)]
    for trader in traders:
        collateral.mint(trader, trader_balance)
        collateral.approve(trader, market.address, UINT256_MAX)
        for index in range(outcome_count):
            market.event.outcome_token(index).approve(trader, market.address, UINT256_MAX)

    result = SimulationResult(
        n_trades=n_trades,
        outcome_count=outcome_count,
        funding=funding,
        fee=fee,
    )
    rejections: Counter = Counter()

    for _ in range(n_trades):
        trader = traders[int(rng.integers(n_traders))]
        amounts = rng.integers(-max_trade, max_trade + 1, size=outcome_count)
        # Roughly half the outcomes untouched per trade
        amounts = amounts * (rng.random(outcome_count) < 0.5)
        vector = [int(a) for a in amounts]

        try:
            net_cost = market.trade(trader, vector, 0)
        except MarketError as exc:
            rejections[exc.error_code] += 1
        else:
            result.net_costs.append(net_cost)

        result.inventory_history.append(list(market.net_outcome_tokens_sold))
        result.fee_balance_history.append(collateral.balance_of(market.address))
        chain.advance_block()

    result.rejections = dict(rejections)
    result.fees_withdrawn = market.withdraw_fees(CREATOR)
    if close_market:
        market.close(CREATOR)
    result.final_status = market.get_status()

    logger.info(
        "simulation_finished",
        trades=n_trades,
        accepted=result.accepted,
        rejected=result.rejected,
        fees=result.fees_withdrawn,
    )
    return result


def compare_fee_rates(
    fee_rates: Sequence[int],
    n_trades: int = 200,
    seed: Optional[int] = None,
    **kwargs,
) -> Dict[int, dict]:
    """
    Run the same random trade stream under several fee rates.

    Returns:
        Dictionary mapping fee rate to summary statistics
    """
    results = {}
    for fee in fee_rates:
        sim = simulate_trading(n_trades=n_trades, fee=fee, seed=seed, **kwargs)
        results[fee] = sim.get_stats()
    return results

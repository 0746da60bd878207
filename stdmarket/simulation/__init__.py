"""Market simulations and the simulation runner."""

from stdmarket.simulation.scenario import (
    SimulationResult,
    compare_fee_rates,
    simulate_trading,
)

__all__ = [
    "SimulationResult",
    "compare_fee_rates",
    "simulate_trading",
]

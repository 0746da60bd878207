"""Charts for market simulation results."""

from stdmarket.visualization.inventory_plot import (
    plot_fee_accrual,
    plot_inventory_history,
    plot_market_summary,
)

__all__ = [
    "plot_fee_accrual",
    "plot_inventory_history",
    "plot_market_summary",
]

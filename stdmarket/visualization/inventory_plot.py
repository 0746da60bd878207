"""
Market Simulation Visualization

Charts of net outcome inventory and fee accrual over a simulated run.
"""

from typing import Optional, Tuple

import numpy as np
import matplotlib.pyplot as plt

from stdmarket.simulation.scenario import SimulationResult


# Colors
COLORS = {
    'fees': '#2ecc71',      # Green
    'zero': '#95a5a6',      # Gray
}

OUTCOME_COLORS = [
    '#3498db',  # Blue
    '#e74c3c',  # Red
    '#f1c40f',  # Yellow
    '#9b59b6',  # Purple
    '#1abc9c',  # Teal
    '#e67e22',  # Orange
]


def plot_inventory_history(
    result: SimulationResult,
    ax: Optional[plt.Axes] = None,
    title: str = "Net Outcome Tokens Sold",
) -> plt.Axes:
    """
    Plot per-outcome net inventory after every trade attempt.

    Args:
        result: Simulation result
        ax: Axes to draw on (new figure if None)
        title: Axes title

    Returns:
        matplotlib Axes
    """
    if ax is None:
        _, ax = plt.subplots(figsize=(10, 5))

    history = np.array(result.inventory_history, dtype=float).reshape(-1, result.outcome_count)
    steps = np.arange(len(history))

    for index in range(result.outcome_count):
        ax.plot(
            steps,
            history[:, index],
            color=OUTCOME_COLORS[index % len(OUTCOME_COLORS)],
            label=f'Outcome {index}',
            linewidth=1.5,
        )

    ax.axhline(0, color=COLORS['zero'], linewidth=1, linestyle='--')
    ax.set_xlabel('Trade Attempt', fontsize=12)
    ax.set_ylabel('Net Tokens Sold', fontsize=12)
    ax.set_title(title, fontsize=12)
    ax.legend(loc='upper left')
    ax.grid(True, alpha=0.3)
    return ax


def plot_fee_accrual(
    result: SimulationResult,
    ax: Optional[plt.Axes] = None,
    title: str = "Accrued Fees",
) -> plt.Axes:
    """
    Plot the market's collateral balance (accrued fees) over the run.

    Returns:
        matplotlib Axes
    """
    if ax is None:
        _, ax = plt.subplots(figsize=(10, 5))

    fees = np.array(result.fee_balance_history, dtype=float)
    steps = np.arange(len(fees))

    ax.fill_between(steps, 0, fees, color=COLORS['fees'], alpha=0.3)
    ax.plot(steps, fees, color=COLORS['fees'], linewidth=2)
    ax.set_xlabel('Trade Attempt', fontsize=12)
    ax.set_ylabel('Collateral', fontsize=12)
    ax.set_title(title, fontsize=12)
    ax.grid(True, alpha=0.3)
    return ax


def plot_market_summary(
    result: SimulationResult,
    figsize: Tuple[int, int] = (14, 6),
    save_path: Optional[str] = None,
) -> plt.Figure:
    """
    Inventory and fee charts side by side.

    Args:
        result: Simulation result
        figsize: Figure size
        save_path: Path to save (optional)

    Returns:
        matplotlib Figure
    """
    fig, axes = plt.subplots(1, 2, figsize=figsize)
    plot_inventory_history(result, ax=axes[0])
    plot_fee_accrual(result, ax=axes[1])

    stats = result.get_stats()
    fig.suptitle(
        f"{stats['accepted']}/{stats['n_trades']} trades settled, "
        f"{stats['fees_withdrawn']} collateral in fees",
        fontsize=14,
        fontweight='bold',
    )
    plt.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches='tight')

    return fig

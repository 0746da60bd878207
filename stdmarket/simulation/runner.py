"""
Simulation Runner

CLI entry point for running market simulations.
"""

import argparse
import json
from pathlib import Path

from stdmarket.config import get_settings
from stdmarket.logging import setup_logging
from stdmarket.simulation.scenario import compare_fee_rates, simulate_trading


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        description="Standard Market Simulator - random trading on one market"
    )

    parser.add_argument(
        "-n", "--trades",
        type=int,
        default=settings.simulation_trades,
        help=f"Number of trades to attempt (default: {settings.simulation_trades})"
    )

    parser.add_argument(
        "-s", "--seed",
        type=int,
        default=settings.simulation_seed,
        help="Random seed for reproducibility"
    )

    parser.add_argument(
        "--outcomes",
        type=int,
        default=2,
        help="Number of outcomes (default: 2)"
    )

    parser.add_argument(
        "--fee",
        type=int,
        default=settings.default_fee,
        help=f"Fee numerator over 1000000 (default: {settings.default_fee})"
    )

    parser.add_argument(
        "--funding",
        type=int,
        default=settings.default_funding,
        help=f"Initial market funding (default: {settings.default_funding})"
    )

    parser.add_argument(
        "--max-trade",
        type=int,
        default=100,
        help="Largest amount per outcome per trade (default: 100)"
    )

    parser.add_argument(
        "--compare-fees",
        type=int,
        nargs="+",
        default=None,
        help="Compare several fee numerators on the same trade stream"
    )

    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        help="Output file for results (JSON)"
    )

    parser.add_argument(
        "--plot",
        type=str,
        default=None,
        help="Save inventory and fee charts to this path"
    )

    return parser


def main(argv=None):
    """Main entry point for simulation runner."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_json)
    args = build_parser().parse_args(argv)

    print("=" * 60)
    print("Standard Market Simulator")
    print("=" * 60)

    if args.compare_fees:
        print("\nComparing fee rates...")
        results = compare_fee_rates(
            args.compare_fees,
            n_trades=args.trades,
            seed=args.seed,
            outcome_count=args.outcomes,
            funding=args.funding,
            max_trade=args.max_trade,
        )

        print("\nFee Comparison:")
        print("-" * 60)
        for fee, stats in results.items():
            print(f"\nFEE {fee / 10_000:.2f}%:")
            print(f"  Accepted:       {stats['accepted']}/{stats['n_trades']}")
            print(f"  Fees withdrawn: {stats['fees_withdrawn']}")

    else:
        print(f"\nRunning {args.trades} trades...")
        result = simulate_trading(
            n_trades=args.trades,
            outcome_count=args.outcomes,
            funding=args.funding,
            fee=args.fee,
            max_trade=args.max_trade,
            seed=args.seed,
        )
        results = result.get_stats()

        print("\nResults:")
        print("-" * 40)
        print(f"Accepted trades:  {results['accepted']}")
        print(f"Rejected trades:  {results['rejected']}")
        print(f"Fees withdrawn:   {results['fees_withdrawn']}")
        print(f"Final inventory:  {results['final_inventory']}")

        if results["rejections"]:
            print("\nRejections:")
            for code, count in sorted(results["rejections"].items()):
                print(f"  {code}: {count}")

        if args.plot:
            from stdmarket.visualization.inventory_plot import plot_market_summary
            plot_market_summary(result, save_path=args.plot)
            print(f"\nChart saved to: {args.plot}")

    if args.output:
        output_path = Path(args.output)
        with open(output_path, 'w') as f:
            json.dump(results, f, indent=2, default=str)
        print(f"\nResults saved to: {output_path}")

    print("\n" + "=" * 60)


if __name__ == "__main__":
    main()

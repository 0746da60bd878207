#!/usr/bin/env python3
"""
Standard Market Walkthrough

Follows one two-outcome market through its lifecycle: funding, a buy,
a sell back, a rejected trade, a short sale, fee withdrawal and close.

Usage:
    python examples/market_walkthrough.py
"""

import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from stdmarket.core.arith import UINT256_MAX
from stdmarket.core.chain import Chain
from stdmarket.errors import MarketError
from stdmarket.ledger.token import StandardToken
from stdmarket.logging import setup_logging
from stdmarket.market.standard import create_market
from stdmarket.pricing.fixed import FixedPriceMarketMaker


CREATOR = "creator"
ALICE = "alice"


def print_header(title: str):
    """Print a section header."""
    print()
    print("=" * 70)
    print(f"  {title}")
    print("=" * 70)
    print()


def print_balances(market, *owners):
    collateral = market.collateral_token
    for owner in owners:
        outcomes = market.event.get_outcome_token_distribution(owner)
        print(f"  {owner:<10} collateral={collateral.balance_of(owner):<8} outcomes={outcomes}")


def main():
    setup_logging("WARNING")

    chain = Chain()
    collateral = StandardToken(chain, "collateral")
    maker = FixedPriceMarketMaker([600_000, 400_000])
    market = create_market(chain, CREATOR, collateral, 2, maker, fee=20_000)

    print_header("1. Funding")
    collateral.mint(CREATOR, 1000)
    collateral.approve(CREATOR, market.address, 1000)
    market.fund(CREATOR, 1000)
    print(f"  Market {market.address} is {market.stage.name}")
    print_balances(market, market.address, CREATOR)

    collateral.mint(ALICE, 10_000)
    collateral.approve(ALICE, market.address, UINT256_MAX)
    for index in range(market.outcome_count):
        market.event.outcome_token(index).approve(ALICE, market.address, UINT256_MAX)

    print_header("2. Alice buys 100 of outcome 0 (price 0.60, fee 2%)")
    cost = market.buy(ALICE, 0, 100, max_cost=70)
    print(f"  Paid {cost} collateral")
    print(f"  Inventory: {list(market.net_outcome_tokens_sold)}")
    print_balances(market, market.address, ALICE)

    print_header("3. Alice sells 50 back")
    profit = market.sell(ALICE, 0, 50)
    print(f"  Received {profit} collateral")
    print(f"  Inventory: {list(market.net_outcome_tokens_sold)}")

    print_header("4. A trade over its collateral limit is rolled back")
    before = collateral.balance_of(ALICE)
    try:
        market.trade(ALICE, [0, 500], collateral_limit=100)
    except MarketError as exc:
        print(f"  Rejected: {exc.error_code} ({exc})")
    print(f"  Alice collateral unchanged: {collateral.balance_of(ALICE) == before}")

    print_header("5. Alice shorts outcome 1")
    cost = market.short_sell(ALICE, 1, 100)
    print(f"  Position cost {cost} collateral")
    print_balances(market, ALICE)

    print_header("6. Creator withdraws fees and closes")
    fees = market.withdraw_fees(CREATOR)
    market.close(CREATOR)
    print(f"  Fees withdrawn: {fees}")
    print(f"  Market is {market.stage.name}")
    print_balances(market, market.address, CREATOR)

    print()
    print(f"  {len(chain.logs)} notifications emitted:")
    for entry in chain.logs:
        print(f"    {type(entry).__name__}")
    print()


if __name__ == "__main__":
    main()

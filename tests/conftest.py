"""Shared fixtures: a chain, a collateral token and a two-outcome market."""

import pytest
import structlog
from structlog.testing import capture_logs

from stdmarket.core.arith import UINT256_MAX
from stdmarket.core.chain import Chain
from stdmarket.ledger.outcome import CategoricalEvent
from stdmarket.ledger.token import StandardToken
from stdmarket.logging import setup_logging
from stdmarket.market.standard import StandardMarket
from stdmarket.pricing.fixed import ScriptedMarketMaker


CREATOR = "creator"
ALICE = "alice"
BOB = "bob"
FEE = 20_000      # 2%
FUNDING = 1000


@pytest.fixture
def chain():
    return Chain()


@pytest.fixture
def collateral(chain):
    return StandardToken(chain, "collateral")


@pytest.fixture
def event(chain, collateral):
    return CategoricalEvent(chain, collateral, 2)


@pytest.fixture
def maker():
    return ScriptedMarketMaker()


@pytest.fixture
def market(chain, event, maker):
    return StandardMarket(chain, CREATOR, event, maker, fee=FEE, address="market")


@pytest.fixture
def funded_market(market, collateral):
    collateral.mint(CREATOR, FUNDING)
    collateral.approve(CREATOR, market.address, FUNDING)
    market.fund(CREATOR, FUNDING)
    return market


@pytest.fixture
def add_trader(collateral):
    """Give a trader collateral and unlimited allowances towards a market."""
    def _add(market, trader, balance=10_000):
        collateral.mint(trader, balance)
        collateral.approve(trader, market.address, UINT256_MAX)
        for index in range(market.outcome_count):
            market.event.outcome_token(index).approve(trader, market.address, UINT256_MAX)
        return trader
    return _add


@pytest.fixture
def state_of(chain, collateral):
    """Capture every observable balance, stage and inventory of a market."""
    def _state(market, *holders):
        parties = (market.address, market.event.address, market.creator) + holders
        tokens = [collateral] + [
            market.event.outcome_token(i) for i in range(market.outcome_count)
        ]
        return {
            "stage": market.stage,
            "funding": market.funding,
            "inventory": market.net_outcome_tokens_sold,
            "balances": {
                (t.address, p): t.balance_of(p) for t in tokens for p in parties
            },
            "supplies": [t.total_supply for t in tokens],
            "logs": list(chain.logs),
        }
    return _state


@pytest.fixture
def captured_logs():
    """Collect structlog entries at debug level."""
    setup_logging("DEBUG")
    with capture_logs() as logs:
        yield logs
    structlog.reset_defaults()

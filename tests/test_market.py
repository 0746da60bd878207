"""
Tests for the market lifecycle: construction, funding, closing and fee withdrawal.
"""

import itertools

import pytest

from stdmarket.core.arith import UINT256_MAX
from stdmarket.core.chain import Chain
from stdmarket.core.events import ClosingCompleted, FeesWithdrawn, FundingCompleted, TradeCompleted
from stdmarket.core.stage import MarketStage
from stdmarket.errors import (
    InvalidConfigError,
    InvalidInputError,
    InvalidStageError,
    TransferFailedError,
    UnauthorizedError,
)
from stdmarket.ledger.outcome import CategoricalEvent
from stdmarket.ledger.token import StandardToken
from stdmarket.market.standard import StandardMarket, create_market
from stdmarket.pricing.fixed import FixedPriceMarketMaker

from conftest import ALICE, CREATOR, FEE, FUNDING


class TestConstruction:
    """Tests for market construction."""

    def test_initial_state(self, market, chain):
        """Test a new market is unfunded with zero inventory."""
        assert market.stage is MarketStage.CREATED
        assert market.creator == CREATOR
        assert market.fee == FEE
        assert market.funding == 0
        assert market.outcome_count == 2
        assert market.net_outcome_tokens_sold == (0, 0)
        assert market.created_at == chain.block_number

    def test_created_at_block(self, chain, event, maker):
        """Test the creation block is recorded and the address derived."""
        chain.advance_block(42)
        market = StandardMarket(chain, CREATOR, event, maker)
        assert market.created_at == 42
        assert market.address.startswith("market:")

    def test_missing_event(self, chain, maker):
        """Test a market needs an outcome ledger."""
        with pytest.raises(InvalidConfigError):
            StandardMarket(chain, CREATOR, None, maker)

    def test_missing_market_maker(self, chain, event):
        """Test a market needs a market maker."""
        with pytest.raises(InvalidConfigError):
            StandardMarket(chain, CREATOR, event, None)

    @pytest.mark.parametrize("fee", [-1, 1_000_000, 2_000_000])
    def test_fee_out_of_range(self, chain, event, maker, fee):
        """Test fees outside [0, FEE_RANGE) are rejected."""
        with pytest.raises(InvalidConfigError):
            StandardMarket(chain, CREATOR, event, maker, fee=fee)

    def test_highest_fee_accepted(self, chain, event, maker):
        """Test the largest valid fee is FEE_RANGE - 1."""
        market = StandardMarket(chain, CREATOR, event, maker, fee=999_999)
        assert market.fee == 999_999

    def test_empty_creator(self, chain, event, maker):
        """Test a market needs a creator."""
        with pytest.raises(InvalidConfigError):
            StandardMarket(chain, "", event, maker)

    def test_calc_market_fee(self, market):
        """Test the market applies its own fee rate."""
        assert market.calc_market_fee(50) == 1
        assert market.calc_market_fee(48) == 0

    def test_create_market(self):
        """Test the factory wires an event and a market."""
        chain = Chain()
        collateral = StandardToken(chain, "collateral")
        market = create_market(
            chain, CREATOR, collateral, 4, FixedPriceMarketMaker.uniform(4),
            fee=100, address="m",
        )
        assert isinstance(market.event, CategoricalEvent)
        assert market.outcome_count == 4
        assert market.collateral_token is collateral
        assert market.address == "m"


class TestFund:
    """Tests for funding."""

    def test_fund(self, funded_market, collateral, chain):
        """Test funding escrows collateral and mints a full set to the market."""
        market = funded_market

        assert market.stage is MarketStage.FUNDED
        assert market.funding == FUNDING
        assert market.event.get_outcome_token_distribution(market.address) == [FUNDING, FUNDING]
        assert collateral.balance_of(CREATOR) == 0
        assert collateral.balance_of(market.address) == 0
        assert collateral.balance_of(market.event.address) == FUNDING
        assert chain.events_of(FundingCompleted) == [
            FundingCompleted("market", 0, funding=FUNDING)
        ]

    def test_fund_zero(self, market):
        """Test zero funding is allowed and yields an empty market."""
        market.fund(CREATOR, 0)
        assert market.stage is MarketStage.FUNDED
        assert market.event.get_outcome_token_distribution(market.address) == [0, 0]

    def test_fund_twice(self, funded_market, collateral):
        """Test funding is one-shot."""
        collateral.mint(CREATOR, FUNDING)
        collateral.approve(CREATOR, funded_market.address, FUNDING)
        with pytest.raises(InvalidStageError):
            funded_market.fund(CREATOR, FUNDING)
        assert funded_market.funding == FUNDING
        assert collateral.balance_of(CREATOR) == FUNDING

    def test_fund_not_creator(self, market, collateral):
        """Test only the creator may fund."""
        collateral.mint(ALICE, FUNDING)
        collateral.approve(ALICE, market.address, FUNDING)
        with pytest.raises(UnauthorizedError):
            market.fund(ALICE, FUNDING)
        assert market.stage is MarketStage.CREATED

    def test_fund_without_collateral(self, market, state_of):
        """Test funding without collateral changes nothing."""
        before = state_of(market)
        with pytest.raises(TransferFailedError):
            market.fund(CREATOR, FUNDING)
        assert state_of(market) == before

    @pytest.mark.parametrize("funding", [-5, -1, 1.5, "1000"])
    def test_fund_malformed_amount(self, market, collateral, state_of, funding):
        """Test negative or non-integer funding is malformed input."""
        collateral.mint(CREATOR, FUNDING)
        collateral.approve(CREATOR, market.address, FUNDING)
        before = state_of(market)

        with pytest.raises(InvalidInputError):
            market.fund(CREATOR, funding)

        assert state_of(market) == before

    def test_fund_mint_failure_is_atomic(self, chain, maker):
        """Test a rejected mint returns the already pulled collateral."""

        class EventBlockingToken(StandardToken):
            def transfer_from(self, spender, owner, to, value):
                if spender == "event":
                    return False
                return super().transfer_from(spender, owner, to, value)

        collateral = EventBlockingToken(chain, "collateral")
        event = CategoricalEvent(chain, collateral, 2)
        market = StandardMarket(chain, CREATOR, event, maker, fee=FEE, address="market")
        collateral.mint(CREATOR, FUNDING)
        collateral.approve(CREATOR, market.address, FUNDING)

        with pytest.raises(TransferFailedError):
            market.fund(CREATOR, FUNDING)

        assert market.stage is MarketStage.CREATED
        assert market.funding == 0
        assert collateral.balance_of(CREATOR) == FUNDING
        assert collateral.balance_of(market.address) == 0
        assert collateral.allowance(CREATOR, market.address) == FUNDING
        assert collateral.allowance(market.address, event.address) == 0
        assert chain.logs == []


class TestClose:
    """Tests for closing."""

    def test_close_returns_full_set(self, funded_market, chain):
        """Test closing an untraded market returns the whole claim set."""
        funded_market.close(CREATOR)

        event = funded_market.event
        assert funded_market.stage is MarketStage.CLOSED
        assert event.get_outcome_token_distribution(CREATOR) == [FUNDING, FUNDING]
        assert event.get_outcome_token_distribution(funded_market.address) == [0, 0]
        assert len(chain.events_of(ClosingCompleted)) == 1

    def test_close_before_fund(self, market):
        """Test an unfunded market cannot close."""
        with pytest.raises(InvalidStageError):
            market.close(CREATOR)

    def test_close_twice(self, funded_market):
        """Test closing is one-shot."""
        funded_market.close(CREATOR)
        with pytest.raises(InvalidStageError):
            funded_market.close(CREATOR)

    def test_close_not_creator(self, funded_market):
        """Test only the creator may close."""
        with pytest.raises(UnauthorizedError):
            funded_market.close(ALICE)
        assert funded_market.stage is MarketStage.FUNDED

    def test_close_partial_sweep_rolled_back(self, funded_market, monkeypatch, state_of):
        """Test a failed transfer of the second outcome undoes the first."""
        before = state_of(funded_market)
        monkeypatch.setattr(
            funded_market.event.outcome_token(1), "transfer", lambda *args: False
        )

        with pytest.raises(TransferFailedError):
            funded_market.close(CREATOR)

        assert state_of(funded_market) == before
        assert funded_market.stage_history[-1][0] is MarketStage.FUNDED


class TestWithdrawFees:
    """Tests for fee withdrawal."""

    def test_withdraw_before_funding(self, market):
        """Test withdrawal has no stage precondition."""
        assert market.withdraw_fees(CREATOR) == 0

    def test_withdraw_not_creator(self, funded_market):
        """Test only the creator may withdraw fees."""
        with pytest.raises(UnauthorizedError):
            funded_market.withdraw_fees(ALICE)

    def test_withdraw_sweeps_balance(self, funded_market, collateral, chain):
        """Test withdrawal moves the whole collateral balance."""
        collateral.mint(funded_market.address, 7)
        assert funded_market.withdraw_fees(CREATOR) == 7
        assert collateral.balance_of(CREATOR) == 7
        assert collateral.balance_of(funded_market.address) == 0
        assert chain.events_of(FeesWithdrawn)[-1].fees == 7

    def test_withdraw_repeatedly(self, funded_market, collateral):
        """Test a second withdrawal finds nothing left."""
        collateral.mint(funded_market.address, 3)
        assert funded_market.withdraw_fees(CREATOR) == 3
        assert funded_market.withdraw_fees(CREATOR) == 0

    def test_withdraw_after_close(self, funded_market, collateral):
        """Test fees can still be withdrawn once closed."""
        funded_market.close(CREATOR)
        collateral.mint(funded_market.address, 2)
        assert funded_market.withdraw_fees(CREATOR) == 2


class TestStageMonotonicity:
    """Every call sequence visits stages in order and never regresses."""

    OPERATIONS = ["fund", "trade", "close", "withdraw"]

    @pytest.mark.parametrize("sequence", list(itertools.product(OPERATIONS, repeat=3)))
    def test_call_sequences(self, sequence):
        """Test stages only ever advance one step at a time."""
        chain = Chain()
        collateral = StandardToken(chain, "collateral")
        market = create_market(
            chain, CREATOR, collateral, 2, FixedPriceMarketMaker.uniform(2), fee=FEE,
        )
        collateral.mint(CREATOR, FUNDING)
        collateral.approve(CREATOR, market.address, FUNDING)
        collateral.mint(ALICE, FUNDING)
        collateral.approve(ALICE, market.address, UINT256_MAX)

        calls = {
            "fund": lambda: market.fund(CREATOR, FUNDING),
            "trade": lambda: market.trade(ALICE, [10, 0], 0),
            "close": lambda: market.close(CREATOR),
            "withdraw": lambda: market.withdraw_fees(CREATOR),
        }
        observed = [market.stage]
        for name in sequence:
            expected_ok = {
                "fund": market.stage is MarketStage.CREATED,
                "trade": market.stage is MarketStage.FUNDED,
                "close": market.stage is MarketStage.FUNDED,
                "withdraw": True,
            }[name]
            if expected_ok:
                calls[name]()
            else:
                with pytest.raises(InvalidStageError):
                    calls[name]()
            observed.append(market.stage)

        values = [s.value for s in observed]
        assert values == sorted(values)
        assert all(b - a <= 1 for a, b in zip(values, values[1:]))
        assert [s for s, _ in market.stage_history] == \
            list(MarketStage)[:market.stage.value + 1]


class TestConcreteScenario:
    """Two outcomes, 2% fee, funding 1000."""

    def test_buy_sell_withdraw(self, funded_market, maker, collateral, chain, add_trader):
        """Test the buy, sell back and withdrawal walkthrough."""
        add_trader(funded_market, ALICE)
        event = funded_market.event

        maker.push(50)
        assert funded_market.trade(ALICE, [100, 0], 0) == 51
        assert event.get_outcome_token_distribution(ALICE) == [100, 0]
        assert collateral.balance_of(ALICE) == 10_000 - 51
        assert funded_market.net_outcome_tokens_sold == (100, 0)

        maker.push(-48)
        assert funded_market.trade(ALICE, [-100, 0], 0) == -48
        assert event.get_outcome_token_distribution(ALICE) == [0, 0]
        assert collateral.balance_of(ALICE) == 10_000 - 51 + 48
        assert funded_market.net_outcome_tokens_sold == (0, 0)

        assert funded_market.withdraw_fees(CREATOR) == 1
        assert collateral.balance_of(CREATOR) == 1

        trades = chain.events_of(TradeCompleted)
        assert [(t.gross_cost, t.fee) for t in trades] == [(50, 1), (-48, 0)]
        assert trades[0].transactor == ALICE
        assert trades[0].outcome_token_amounts == (100, 0)

    def test_market_balances_after_scenario(self, funded_market, maker, collateral, add_trader):
        """Test custody balances after buying and selling back."""
        add_trader(funded_market, ALICE)
        maker.push(50, -48)
        funded_market.trade(ALICE, [100, 0], 0)
        funded_market.trade(ALICE, [-100, 0], 0)

        event = funded_market.event
        assert event.get_outcome_token_distribution(funded_market.address) == [1002, 1002]
        assert collateral.balance_of(event.address) == 1002
        assert collateral.balance_of(funded_market.address) == 1

    def test_status(self, funded_market):
        """Test the status snapshot of a funded market."""
        status = funded_market.get_status()
        assert status["stage"] == "FUNDED"
        assert status["outcome_balances"] == [FUNDING, FUNDING]
        assert status["collateral_balance"] == 0

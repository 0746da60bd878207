"""
Standard Market

A single market over one categorical event. The creator funds it with
collateral, which is converted into a full set of outcome tokens held by
the market. Traders then exchange outcome tokens against the market at
prices set by a market maker, paying a fee on every trade. The creator
eventually closes the market to recover the remaining outcome tokens, and
can sweep accrued fees at any time.

Every public operation runs inside a chain transaction: guards are checked
first, inventory changes are staged with checked arithmetic before any
transfer, and the staged state is committed only once every transfer has
gone through. Any failure rolls back the whole operation.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple
import hashlib
import numbers

import structlog

from stdmarket.config import MarketConfig
from stdmarket.core.arith import magnitude, to_int, to_uint, uint_sub
from stdmarket.core.chain import Chain
from stdmarket.core.events import (
    ClosingCompleted,
    FeesWithdrawn,
    FundingCompleted,
    OutcomePurchased,
    OutcomeShortSold,
    OutcomeSold,
    TradeCompleted,
)
from stdmarket.core.fees import TradeCost, calc_market_fee, quote_trade
from stdmarket.core.inventory import SignedInventory
from stdmarket.core.stage import MarketStage, StageController
from stdmarket.errors import (
    InvalidConfigError,
    InvalidInputError,
    MarketError,
    ReentrancyError,
    SlippageExceededError,
    TransferFailedError,
)
from stdmarket.ledger.outcome import CategoricalEvent, OutcomeLedger
from stdmarket.ledger.token import Token
from stdmarket.market.base import Market
from stdmarket.pricing.base import MarketMaker


logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class TradeReceipt:
    """Settled trade: who traded what, at which cost."""
    transactor: str
    outcome_token_amounts: Tuple[int, ...]
    cost: TradeCost

    @property
    def gross_cost(self) -> int:
        return self.cost.gross_cost

    @property
    def fee(self) -> int:
        return self.cost.fee

    @property
    def net_cost(self) -> int:
        return self.cost.net_cost


class StandardMarket(Market):
    """
    Funded market maker escrow for one event.

    Attributes:
        chain: Host chain providing atomic execution
        creator: Identity allowed to fund, close and withdraw fees
        created_at: Block number at construction
        event: Outcome ledger issuing claims against collateral
        market_maker: Pricing oracle
        fee: Fee numerator over FEE_RANGE
        funding: Collateral committed at funding
        address: Market identity on every ledger
    """

    def __init__(
        self,
        chain: Chain,
        creator: str,
        event: OutcomeLedger,
        market_maker: MarketMaker,
        fee: int = 0,
        address: Optional[str] = None,
    ):
        if chain is None:
            raise InvalidConfigError("Market requires a host chain")
        if event is None:
            raise InvalidConfigError("Market requires an outcome ledger")
        if market_maker is None:
            raise InvalidConfigError("Market requires a market maker")
        config = MarketConfig.build(creator=creator, fee=fee)

        self.chain = chain
        self.creator = config.creator
        self.fee = config.fee
        self.event = event
        self.market_maker = market_maker
        self.created_at = chain.block_number
        self.address = address or _derive_address(creator, event.address, chain.block_number)
        self.funding = 0

        self._stages = StageController(self.creator, chain.block_number)
        # Outcome count is captured once; the vector length never changes
        self._inventory = SignedInventory(event.outcome_count)
        self._entered = False

        logger.info(
            "market_created",
            market=self.address,
            creator=self.creator,
            outcomes=self.outcome_count,
            fee=self.fee,
        )

    # =========================================================================
    # Views
    # =========================================================================

    @property
    def stage(self) -> MarketStage:
        return self._stages.stage

    @property
    def stage_history(self) -> List[Tuple[MarketStage, int]]:
        return list(self._stages.history)

    @property
    def outcome_count(self) -> int:
        return self._inventory.outcome_count

    @property
    def net_outcome_tokens_sold(self) -> Tuple[int, ...]:
        return self._inventory.snapshot()

    @property
    def collateral_token(self) -> Token:
        return self.event.collateral_token

    def calc_market_fee(self, outcome_token_cost: int) -> int:
        return calc_market_fee(outcome_token_cost, self.fee)

    def get_status(self) -> Dict[str, Any]:
        return {
            "market": self.address,
            "stage": self.stage.name,
            "creator": self.creator,
            "fee": self.fee,
            "funding": self.funding,
            "net_outcome_tokens_sold": list(self.net_outcome_tokens_sold),
            "collateral_balance": self.collateral_token.balance_of(self.address),
            "outcome_balances": [
                self.event.outcome_token(i).balance_of(self.address)
                for i in range(self.outcome_count)
            ],
        }

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def fund(self, caller: str, funding: int) -> None:
        """
        Escrow `funding` collateral and mint one full claim set with it.

        Raises:
            UnauthorizedError: If caller is not the creator
            InvalidStageError: If the market is not CREATED
            InvalidInputError: If funding is negative or not an integer
            TransferFailedError: If collateral or minting is rejected
        """
        with self._guarded("fund"):
            self._stages.require_creator(caller)
            self._stages.require_stage(MarketStage.CREATED)
            funding = to_uint(_non_negative(funding, "funding"), "funding")

            self._buy_claim_sets(caller, payment=funding, claim_sets=funding)
            self._set_attr("funding", funding)
            self._advance_stage(MarketStage.FUNDED)
            self.chain.emit(FundingCompleted(self.address, self.chain.block_number, funding=funding))

        logger.info("market_funded", market=self.address, funding=funding)

    def close(self, caller: str) -> None:
        """
        Return every remaining outcome token to the creator.

        Raises:
            UnauthorizedError: If caller is not the creator
            InvalidStageError: If the market is not FUNDED
            TransferFailedError: If any outcome transfer is rejected
        """
        with self._guarded("close"):
            self._stages.require_creator(caller)
            self._stages.require_stage(MarketStage.FUNDED)

            returned = []
            for index in range(self.outcome_count):
                token = self.event.outcome_token(index)
                balance = token.balance_of(self.address)
                if not token.transfer(self.address, self.creator, balance):
                    raise TransferFailedError(
                        f"Could not return {balance} of outcome {index} to creator"
                    )
                returned.append(balance)
            self._advance_stage(MarketStage.CLOSED)
            self.chain.emit(ClosingCompleted(self.address, self.chain.block_number))

        logger.info("market_closed", market=self.address, returned=returned)

    def withdraw_fees(self, caller: str) -> int:
        """
        Transfer the market's entire collateral balance to the creator.

        Outside an operation the market only ever holds fee collateral.

        Returns:
            Amount withdrawn
        """
        with self._guarded("withdraw_fees"):
            self._stages.require_creator(caller)
            token = self.collateral_token
            fees = token.balance_of(self.address)
            if not token.transfer(self.address, self.creator, fees):
                raise TransferFailedError(f"Could not withdraw {fees} fees")
            self.chain.emit(FeesWithdrawn(self.address, self.chain.block_number, fees=fees))

        logger.info("fees_withdrawn", market=self.address, fees=fees)
        return fees

    # =========================================================================
    # Trading
    # =========================================================================

    def trade(
        self,
        caller: str,
        outcome_token_amounts: Sequence[int],
        collateral_limit: int = 0,
    ) -> int:
        """
        Settle a signed multi-outcome trade.

        Args:
            caller: Trading identity
            outcome_token_amounts: Per outcome, positive to buy from the
                market, negative to sell to it
            collateral_limit: Positive caps the cost, negative demands a
                refund, zero disables the check

        Returns:
            Net cost including fee (negative when the caller is paid)
        """
        with self._guarded("trade"):
            self._stages.require_stage(MarketStage.FUNDED)
            receipt = self._trade(caller, outcome_token_amounts, collateral_limit)
            self.chain.emit(TradeCompleted(
                self.address,
                self.chain.block_number,
                transactor=caller,
                outcome_token_amounts=receipt.outcome_token_amounts,
                gross_cost=receipt.gross_cost,
                fee=receipt.fee,
            ))

        self._log_trade("trade", receipt)
        return receipt.net_cost

    def buy(self, caller: str, outcome_index: int, amount: int, max_cost: int) -> int:
        """Buy `amount` of one outcome paying at most `max_cost`."""
        with self._guarded("buy"):
            self._stages.require_stage(MarketStage.FUNDED)
            receipt = self._buy(caller, outcome_index, amount, max_cost)

        self._log_trade("buy", receipt)
        return receipt.net_cost

    def sell(self, caller: str, outcome_index: int, amount: int, min_profit: int = 0) -> int:
        """Sell `amount` of one outcome; `min_profit` of zero disables the limit."""
        with self._guarded("sell"):
            self._stages.require_stage(MarketStage.FUNDED)
            receipt = self._sell(caller, outcome_index, amount, min_profit)

        self._log_trade("sell", receipt)
        return -receipt.net_cost

    def short_sell(self, caller: str, outcome_index: int, amount: int, min_profit: int = 0) -> int:
        """
        Take a position against one outcome.

        The caller pays `amount` collateral for a full claim set, the market
        sells the chosen outcome back on the caller's behalf, and the caller
        keeps `amount` of every other outcome plus the sale proceeds.

        Returns:
            Collateral the position cost: amount minus sale proceeds
        """
        with self._guarded("short_sell"):
            self._stages.require_stage(MarketStage.FUNDED)
            amount = _non_negative(amount, "amount")
            self._single_outcome(outcome_index, amount)

            self._buy_claim_sets(caller, payment=amount, claim_sets=amount)
            outcome = self.event.outcome_token(outcome_index)
            if not outcome.approve(self.address, self.address, amount):
                raise TransferFailedError(f"Could not approve outcome {outcome_index} for resale")
            receipt = self._sell(self.address, outcome_index, amount, min_profit)
            profit = -receipt.net_cost
            cost = uint_sub(amount, profit)

            for index in range(self.outcome_count):
                if index == outcome_index:
                    continue
                if not self.event.outcome_token(index).transfer(self.address, caller, amount):
                    raise TransferFailedError(f"Could not deliver outcome {index} to {caller}")
            if not self.collateral_token.transfer(self.address, caller, profit):
                raise TransferFailedError(f"Could not pay {profit} sale proceeds to {caller}")

            self.chain.emit(OutcomeShortSold(
                self.address,
                self.chain.block_number,
                buyer=caller,
                outcome_index=outcome_index,
                amount=amount,
                cost=cost,
            ))

        logger.info(
            "trade_settled",
            market=self.address,
            operation="short_sell",
            transactor=caller,
            outcome_index=outcome_index,
            amount=amount,
            cost=cost,
        )
        return cost

    # =========================================================================
    # Settlement engine
    # =========================================================================

    def _trade(
        self,
        transactor: str,
        outcome_token_amounts: Sequence[int],
        collateral_limit: int,
    ) -> TradeReceipt:
        amounts = self._inventory.validate_vector(outcome_token_amounts)
        collateral_limit = to_int(collateral_limit, "collateral_limit")
        staged = self._inventory.stage(amounts)

        # 1-2. price the trade and add the fee
        gross_cost = self.market_maker.calc_net_cost(self, amounts)
        cost = quote_trade(gross_cost, self.fee)
        net_cost = cost.net_cost

        # 3. single-sided limit check; a negative limit is still an upper bound
        if collateral_limit != 0 and net_cost > collateral_limit:
            raise SlippageExceededError(
                f"Net cost {net_cost} exceeds collateral limit {collateral_limit}",
                detail=f"gross={cost.gross_cost} fee={cost.fee}",
            )

        # 4. caller pays: mint the claim sets the outgoing transfers draw on
        if cost.gross_cost > 0:
            self._buy_claim_sets(transactor, payment=net_cost, claim_sets=cost.gross_cost)

        # 5. per-outcome exchange
        for index, amount in enumerate(amounts):
            if amount == 0:
                continue
            token = self.event.outcome_token(index)
            if amount < 0:
                moved = token.transfer_from(self.address, transactor, self.address, -amount)
            else:
                moved = token.transfer(self.address, transactor, amount)
            if not moved:
                raise TransferFailedError(
                    f"Outcome {index} transfer of {amount} failed for {transactor}"
                )

        # 6. market pays: redeem surplus claim sets, refund the caller
        if cost.gross_cost < 0:
            self.event.sell_all_outcomes(self.address, magnitude(cost.gross_cost))
            if net_cost < 0 and not self.collateral_token.transfer(
                self.address, transactor, magnitude(net_cost)
            ):
                raise TransferFailedError(f"Could not pay {-net_cost} to {transactor}")

        self._commit_inventory(staged)
        return TradeReceipt(transactor, amounts, cost)

    def _buy(self, buyer: str, outcome_index: int, amount: int, max_cost: int) -> TradeReceipt:
        amount = _non_negative(amount, "amount")
        amounts = self._single_outcome(outcome_index, amount)
        if to_int(max_cost, "max_cost") <= 0:
            raise InvalidInputError(f"max_cost must be positive, got {max_cost}")

        receipt = self._trade(buyer, amounts, max_cost)
        if receipt.net_cost < 0 or receipt.gross_cost < 0:
            raise InvalidInputError(
                f"Purchase of outcome {outcome_index} was priced as a payout",
                detail=f"gross={receipt.gross_cost}",
            )
        self.chain.emit(OutcomePurchased(
            self.address,
            self.chain.block_number,
            buyer=buyer,
            outcome_index=outcome_index,
            amount=amount,
            outcome_token_cost=receipt.gross_cost,
            fee=receipt.fee,
        ))
        return receipt

    def _sell(self, seller: str, outcome_index: int, amount: int, min_profit: int) -> TradeReceipt:
        amount = _non_negative(amount, "amount")
        amounts = self._single_outcome(outcome_index, -amount)
        min_profit = _non_negative(min_profit, "min_profit")

        receipt = self._trade(seller, amounts, -min_profit)
        if receipt.net_cost > 0 or receipt.gross_cost > 0:
            raise InvalidInputError(
                f"Sale of outcome {outcome_index} was priced as a charge",
                detail=f"gross={receipt.gross_cost}",
            )
        self.chain.emit(OutcomeSold(
            self.address,
            self.chain.block_number,
            seller=seller,
            outcome_index=outcome_index,
            amount=amount,
            outcome_token_profit=-receipt.gross_cost,
            fee=receipt.fee,
        ))
        return receipt

    def _single_outcome(self, outcome_index: int, amount: int) -> List[int]:
        """Trade vector with `amount` at `outcome_index` and zero elsewhere."""
        if isinstance(outcome_index, bool) or not isinstance(outcome_index, numbers.Integral):
            raise InvalidInputError(f"Outcome index must be an integer, got {outcome_index!r}")
        if not 0 <= outcome_index < self.outcome_count:
            raise InvalidInputError(
                f"Outcome index {outcome_index} outside [0, {self.outcome_count})"
            )
        amounts = [0] * self.outcome_count
        amounts[outcome_index] = to_int(amount, "amount")
        return amounts

    def _buy_claim_sets(self, payer: str, payment: int, claim_sets: int) -> None:
        """Pull `payment` collateral from payer and mint `claim_sets` full sets."""
        token = self.collateral_token
        pulled = token.transfer_from(self.address, payer, self.address, payment)
        if not (pulled and token.approve(self.address, self.event.address, claim_sets)):
            raise TransferFailedError(
                f"Could not collect {payment} collateral from {payer}",
                detail=f"balance={token.balance_of(payer)} "
                       f"allowance={token.allowance(payer, self.address)}",
            )
        self.event.buy_all_outcomes(self.address, claim_sets)

    # =========================================================================
    # Atomic execution
    # =========================================================================

    @contextmanager
    def _guarded(self, operation: str) -> Iterator[None]:
        """Serialize, reject re-entry, and roll back on any failure."""
        try:
            with self.chain.transaction():
                if self._entered:
                    raise ReentrancyError(f"{operation} re-entered market {self.address}")
                self._entered = True
                try:
                    yield
                finally:
                    self._entered = False
        except MarketError as exc:
            logger.debug("operation_rejected", market=self.address, operation=operation, **exc.to_dict())
            raise

    def _set_attr(self, name: str, value) -> None:
        previous = getattr(self, name)
        setattr(self, name, value)
        self.chain.record(lambda: setattr(self, name, previous))

    def _commit_inventory(self, totals: Sequence[int]) -> None:
        previous = self._inventory.snapshot()
        self._inventory.commit(totals)
        self.chain.record(lambda: self._inventory.commit(previous))

    def _advance_stage(self, target: MarketStage) -> None:
        previous = self._stages.advance(target, self.chain.block_number)
        self.chain.record(lambda: self._stages.rewind(previous))

    def _log_trade(self, operation: str, receipt: TradeReceipt) -> None:
        logger.info(
            "trade_settled",
            market=self.address,
            operation=operation,
            transactor=receipt.transactor,
            amounts=list(receipt.outcome_token_amounts),
            gross_cost=receipt.gross_cost,
            fee=receipt.fee,
            net_cost=receipt.net_cost,
        )


# =============================================================================
# Helpers
# =============================================================================

def _non_negative(value: int, name: str) -> int:
    value = to_int(value, name)
    if value < 0:
        raise InvalidInputError(f"{name} must not be negative, got {value}")
    return value


def _derive_address(creator: str, event_address: str, block_number: int) -> str:
    digest = hashlib.sha256(
        f"market_{creator}_{event_address}_{block_number}".encode()
    ).hexdigest()[:16]
    return f"market:{digest}"


def create_market(
    chain: Chain,
    creator: str,
    collateral_token: Token,
    outcome_count: int,
    market_maker: MarketMaker,
    fee: int = 0,
    event_address: str = "event",
    address: Optional[str] = None,
) -> StandardMarket:
    """
    Create a categorical event and an unfunded market on top of it.

    Returns:
        StandardMarket in stage CREATED
    """
    event = CategoricalEvent(chain, collateral_token, outcome_count, address=event_address)
    return StandardMarket(chain, creator, event, market_maker, fee=fee, address=address)

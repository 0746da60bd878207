"""
Outcome-Issuing Ledger

A categorical event escrows collateral and issues one token per outcome.
Buying a full set costs one unit of collateral per unit of every outcome;
selling a full set burns one unit of every outcome and returns the
collateral. Market makers hold their inventory in these outcome tokens.
"""

from abc import ABC, abstractmethod
from typing import List

import structlog

from stdmarket.core.arith import to_uint
from stdmarket.core.chain import Chain
from stdmarket.errors import InvalidConfigError, InvalidInputError, TransferFailedError
from stdmarket.ledger.token import StandardToken, Token


logger = structlog.get_logger(__name__)

MIN_OUTCOMES: int = 2
MAX_OUTCOMES: int = 255  # outcome indices fit a single byte


class OutcomeToken(StandardToken):
    """Outcome claim token; only its event issues and revokes supply."""

    def __init__(self, chain: Chain, event_address: str, index: int):
        super().__init__(chain, address=f"{event_address}:outcome:{index}")
        self.event_address = event_address
        self.index = index


class OutcomeLedger(ABC):
    """Interface the market consumes for outcome claims."""

    address: str

    @property
    @abstractmethod
    def outcome_count(self) -> int:
        """Number of mutually-exclusive outcomes."""

    @property
    @abstractmethod
    def collateral_token(self) -> Token:
        """Token backing every claim set."""

    @abstractmethod
    def outcome_token(self, index: int) -> Token:
        """Claim token for outcome `index`."""

    @abstractmethod
    def buy_all_outcomes(self, buyer: str, collateral_amount: int) -> None:
        """Escrow collateral from `buyer` and issue a full claim set to it."""

    @abstractmethod
    def sell_all_outcomes(self, seller: str, amount: int) -> None:
        """Burn a full claim set held by `seller` and return collateral."""


class CategoricalEvent(OutcomeLedger):
    """
    In-memory categorical event.

    Attributes:
        chain: Host chain
        address: Event identity, holds escrowed collateral
        outcome_tokens: One OutcomeToken per outcome
    """

    def __init__(
        self,
        chain: Chain,
        collateral_token: Token,
        outcome_count: int,
        address: str = "event",
    ):
        if collateral_token is None:
            raise InvalidConfigError("Event requires a collateral token")
        if not MIN_OUTCOMES <= outcome_count <= MAX_OUTCOMES:
            raise InvalidConfigError(
                f"Outcome count {outcome_count} outside [{MIN_OUTCOMES}, {MAX_OUTCOMES}]"
            )
        self.chain = chain
        self.address = address
        self._collateral_token = collateral_token
        self.outcome_tokens: List[OutcomeToken] = [
            OutcomeToken(chain, address, i) for i in range(outcome_count)
        ]

    @property
    def outcome_count(self) -> int:
        return len(self.outcome_tokens)

    @property
    def collateral_token(self) -> Token:
        return self._collateral_token

    def outcome_token(self, index: int) -> Token:
        if not 0 <= index < len(self.outcome_tokens):
            raise InvalidInputError(f"No outcome {index} on {self.address}")
        return self.outcome_tokens[index]

    def buy_all_outcomes(self, buyer: str, collateral_amount: int) -> None:
        """
        Issue `collateral_amount` of every outcome token to `buyer`.

        Raises:
            TransferFailedError: If the collateral cannot be pulled from buyer
        """
        amount = to_uint(collateral_amount, "collateral_amount")
        if not self._collateral_token.transfer_from(self.address, buyer, self.address, amount):
            raise TransferFailedError(
                f"Event could not collect {amount} collateral from {buyer}"
            )
        for token in self.outcome_tokens:
            token.mint(buyer, amount)
        logger.debug("outcomes_issued", event_address=self.address, holder=buyer, amount=amount)

    def sell_all_outcomes(self, seller: str, amount: int) -> None:
        """
        Revoke `amount` of every outcome token from `seller`, paying back collateral.

        Raises:
            TransferFailedError: If seller lacks a full set or collateral payout fails
        """
        amount = to_uint(amount, "amount")
        for token in self.outcome_tokens:
            token.burn(seller, amount)
        if not self._collateral_token.transfer(self.address, seller, amount):
            raise TransferFailedError(
                f"Event could not return {amount} collateral to {seller}"
            )
        logger.debug("outcomes_revoked", event_address=self.address, holder=seller, amount=amount)

    def get_outcome_token_distribution(self, owner: str) -> List[int]:
        """Balance of every outcome token held by `owner`."""
        return [token.balance_of(owner) for token in self.outcome_tokens]

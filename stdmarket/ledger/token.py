"""
Fungible Token Ledger

`Token` is the interface the market consumes for collateral and outcome
tokens. `StandardToken` is the in-memory implementation used by tests and
simulations: boolean success on every movement, never raising for a
rejected transfer, every write journaled through the chain so a failed
market operation restores balances and allowances exactly.
"""

from abc import ABC, abstractmethod
from typing import Dict, Tuple

from stdmarket.core.arith import UINT256_MAX
from stdmarket.core.chain import Chain
from stdmarket.errors import ArithmeticOverflowError, TransferFailedError


def _valid_amount(value) -> bool:
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and 0 <= value <= UINT256_MAX
    )


class Token(ABC):
    """
    Fungible token interface.

    Every method takes the acting identity explicitly.
    """

    address: str

    @abstractmethod
    def transfer(self, sender: str, to: str, value: int) -> bool:
        """Move `value` from `sender` to `to`."""

    @abstractmethod
    def transfer_from(self, spender: str, owner: str, to: str, value: int) -> bool:
        """Move `value` from `owner` to `to` using `spender`'s allowance."""

    @abstractmethod
    def approve(self, owner: str, spender: str, value: int) -> bool:
        """Set `spender`'s allowance over `owner`'s balance."""

    @abstractmethod
    def balance_of(self, owner: str) -> int:
        """Current balance of `owner`."""

    @abstractmethod
    def allowance(self, owner: str, spender: str) -> int:
        """Remaining allowance of `spender` over `owner`."""


class StandardToken(Token):
    """
    In-memory token with journaled balances.

    Attributes:
        chain: Host chain journaling every write
        address: Token identity
        total_supply: Sum of all balances
    """

    def __init__(self, chain: Chain, address: str = "token"):
        self.chain = chain
        self.address = address
        self.total_supply = 0
        self._balances: Dict[str, int] = {}
        self._allowances: Dict[Tuple[str, str], int] = {}

    # =========================================================================
    # Views
    # =========================================================================

    def balance_of(self, owner: str) -> int:
        return self._balances.get(owner, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    # =========================================================================
    # Movements
    # =========================================================================

    def transfer(self, sender: str, to: str, value: int) -> bool:
        if not _valid_amount(value) or self.balance_of(sender) < value:
            return False
        self._move(sender, to, value)
        return True

    def transfer_from(self, spender: str, owner: str, to: str, value: int) -> bool:
        if not _valid_amount(value):
            return False
        allowed = self.allowance(owner, spender)
        if self.balance_of(owner) < value or allowed < value:
            return False
        self.chain.write(self._allowances, (owner, spender), allowed - value)
        self._move(owner, to, value)
        return True

    def approve(self, owner: str, spender: str, value: int) -> bool:
        if not _valid_amount(value):
            return False
        self.chain.write(self._allowances, (owner, spender), value)
        return True

    def _move(self, sender: str, to: str, value: int) -> None:
        self.chain.write(self._balances, sender, self.balance_of(sender) - value)
        self.chain.write(self._balances, to, self.balance_of(to) + value)

    # =========================================================================
    # Issuance
    # =========================================================================

    def mint(self, to: str, value: int) -> None:
        """
        Create `value` new tokens for `to`.

        Raises:
            ArithmeticOverflowError: If the supply would leave uint256
        """
        if not _valid_amount(value) or self.total_supply + value > UINT256_MAX:
            raise ArithmeticOverflowError(f"Cannot mint {value} on {self.address}")
        self._set_supply(self.total_supply + value)
        self.chain.write(self._balances, to, self.balance_of(to) + value)

    def burn(self, owner: str, value: int) -> None:
        """
        Destroy `value` tokens held by `owner`.

        Raises:
            TransferFailedError: If `owner` holds less than `value`
        """
        if not _valid_amount(value) or self.balance_of(owner) < value:
            raise TransferFailedError(
                f"{owner} cannot burn {value} {self.address}",
                detail=f"balance={self.balance_of(owner)}",
            )
        self._set_supply(self.total_supply - value)
        self.chain.write(self._balances, owner, self.balance_of(owner) - value)

    def _set_supply(self, supply: int) -> None:
        previous = self.total_supply
        self.total_supply = supply
        self.chain.record(lambda: setattr(self, "total_supply", previous))

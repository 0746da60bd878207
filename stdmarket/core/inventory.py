"""
Signed Inventory Ledger

Tracks, per outcome, the net amount of outcome tokens the market has sold
to traders (positive) or bought back from them (negative). The pricing
oracle reads these totals to price the next trade.

Updates are two-phase: `stage()` computes the new totals with checked
arithmetic without touching the ledger, and `commit()` installs them once
every external transfer of the trade has gone through.
"""

from typing import List, Sequence, Tuple

from stdmarket.core.arith import checked_add, to_int
from stdmarket.errors import InvalidInputError


class SignedInventory:
    """Per-outcome running net of outcome tokens sold."""

    def __init__(self, outcome_count: int):
        if outcome_count < 1:
            raise InvalidInputError(f"Outcome count must be positive, got {outcome_count}")
        self._sold: List[int] = [0] * outcome_count

    def __len__(self) -> int:
        return len(self._sold)

    def __getitem__(self, index: int) -> int:
        return self._sold[index]

    @property
    def outcome_count(self) -> int:
        return len(self._sold)

    def snapshot(self) -> Tuple[int, ...]:
        """Immutable copy of the current totals."""
        return tuple(self._sold)

    def validate_vector(self, amounts: Sequence[int]) -> Tuple[int, ...]:
        """
        Check a trade vector against this ledger.

        Raises:
            InvalidInputError: On length mismatch or non-integer entries
        """
        if len(amounts) != len(self._sold):
            raise InvalidInputError(
                f"Trade vector has {len(amounts)} entries, market has {len(self._sold)} outcomes"
            )
        return tuple(to_int(a, f"outcome amount {i}") for i, a in enumerate(amounts))

    def stage(self, amounts: Sequence[int]) -> Tuple[int, ...]:
        """
        Compute the totals after applying `amounts`.

        Does not modify the ledger.
        """
        amounts = self.validate_vector(amounts)
        return tuple(checked_add(s, a) for s, a in zip(self._sold, amounts))

    def commit(self, totals: Sequence[int]) -> None:
        """Install previously staged totals."""
        if len(totals) != len(self._sold):
            raise InvalidInputError("Staged totals do not match outcome count")
        self._sold = list(totals)

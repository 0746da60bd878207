"""
Market Lifecycle Stages

A market moves strictly forward through three stages:

    CREATED --fund--> FUNDED --close--> CLOSED

Stages never regress and never skip. The StageController owns the current
stage and the creator identity and exposes the guards every market
operation runs before touching any external ledger.
"""

from enum import Enum
from typing import Dict, List, Optional, Tuple

from stdmarket.errors import InvalidStageError, UnauthorizedError


class MarketStage(Enum):
    """Lifecycle stage of a market."""
    CREATED = 0   # Deployed, awaiting funding
    FUNDED = 1    # Trading open
    CLOSED = 2    # Residual claims returned to creator


# The only legal transitions
TRANSITIONS: Dict[MarketStage, MarketStage] = {
    MarketStage.CREATED: MarketStage.FUNDED,
    MarketStage.FUNDED: MarketStage.CLOSED,
}


def next_stage(stage: MarketStage) -> Optional[MarketStage]:
    """Return the stage that follows `stage`, or None for a terminal stage."""
    return TRANSITIONS.get(stage)


def validate_transition(current: MarketStage, target: MarketStage) -> None:
    """
    Check that `current -> target` is a legal transition.

    Raises:
        InvalidStageError: For any regression, skip or self-transition
    """
    if next_stage(current) is not target:
        raise InvalidStageError(
            f"Cannot move market from {current.name} to {target.name}"
        )


class StageController:
    """
    Stage state machine plus the creator guard.

    Attributes:
        creator: Identity allowed to fund, close and withdraw fees
        stage: Current lifecycle stage
        history: (stage, block_number) pairs, one per stage entered
    """

    def __init__(self, creator: str, block_number: int = 0):
        self.creator = creator
        self.stage = MarketStage.CREATED
        self.history: List[Tuple[MarketStage, int]] = [(MarketStage.CREATED, block_number)]

    def require_stage(self, expected: MarketStage) -> None:
        """Raise InvalidStageError unless the market is at `expected`."""
        if self.stage is not expected:
            raise InvalidStageError(
                f"Market is {self.stage.name}, operation requires {expected.name}"
            )

    def require_creator(self, caller: str) -> None:
        """Raise UnauthorizedError unless `caller` is the creator."""
        if caller != self.creator:
            raise UnauthorizedError(f"{caller} is not the market creator")

    def advance(self, target: MarketStage, block_number: int = 0) -> MarketStage:
        """
        Move to `target` after validating the transition.

        Returns:
            The stage that was left
        """
        validate_transition(self.stage, target)
        previous = self.stage
        self.stage = target
        self.history.append((target, block_number))
        return previous

    def rewind(self, stage: MarketStage) -> None:
        """Undo the most recent advance back to `stage`. Chain rollback only."""
        if len(self.history) > 1 and self.history[-1][0] is self.stage:
            self.history.pop()
        self.stage = stage

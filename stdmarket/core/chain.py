"""
Simulated Host Chain

Provides the execution envelope market operations rely on:

- Serialization: one operation at a time, across threads.
- Atomicity: every state write made through the chain is journaled, and a
  transaction that raises replays the journal backwards, restoring the
  exact pre-call state of every participating ledger.
- Block numbers and an append-only notification log.

Nested transactions act as savepoints: an inner failure rewinds to the
inner mark, the outer transaction decides whether to continue.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, List, MutableMapping, Optional, Type

import structlog

from stdmarket.core.events import MarketEvent


logger = structlog.get_logger(__name__)

_MISSING = object()


class Chain:
    """
    In-memory host ledger.

    Attributes:
        block_number: Current block height
        logs: Notifications emitted by committed operations
    """

    def __init__(self, block_number: int = 0):
        self.block_number = block_number
        self.logs: List[MarketEvent] = []
        self._journal: List[Callable[[], None]] = []
        self._depth = 0
        self._lock = threading.RLock()

    # =========================================================================
    # Blocks
    # =========================================================================

    def advance_block(self, blocks: int = 1) -> None:
        """Advance the block height."""
        self.block_number += blocks

    # =========================================================================
    # Transactions
    # =========================================================================

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    @contextmanager
    def transaction(self) -> Iterator[Chain]:
        """
        Run a block of ledger writes all-or-nothing.

        Any exception escaping the block undoes every journaled write made
        since the block was entered, then propagates unchanged.
        """
        with self._lock:
            mark = len(self._journal)
            self._depth += 1
            try:
                yield self
            except BaseException as exc:
                undone = self._rollback(mark)
                logger.debug(
                    "transaction_rolled_back",
                    depth=self._depth,
                    writes_undone=undone,
                    error=type(exc).__name__,
                )
                raise
            else:
                if self._depth == 1:
                    self._journal.clear()
            finally:
                self._depth -= 1

    def _rollback(self, mark: int) -> int:
        undo = self._journal[mark:]
        del self._journal[mark:]
        for action in reversed(undo):
            action()
        return len(undo)

    def record(self, undo: Callable[[], None]) -> None:
        """
        Register an undo action for a write just performed.

        Writes outside any transaction are final and not journaled.
        """
        if self._depth:
            self._journal.append(undo)

    def write(self, mapping: MutableMapping, key, value) -> None:
        """Set mapping[key] = value, journaling the previous entry."""
        previous = mapping.get(key, _MISSING)
        mapping[key] = value

        def undo() -> None:
            if previous is _MISSING:
                mapping.pop(key, None)
            else:
                mapping[key] = previous

        self.record(undo)

    # =========================================================================
    # Notifications
    # =========================================================================

    def emit(self, event: MarketEvent) -> None:
        """Append a notification to the log."""
        self.logs.append(event)
        self.record(self.logs.pop)

    def events_of(self, event_type: Type[MarketEvent], market: Optional[str] = None) -> List[MarketEvent]:
        """Logged notifications of one type, optionally for one market."""
        return [
            e for e in self.logs
            if isinstance(e, event_type) and (market is None or e.market == market)
        ]

    def get_status(self) -> Dict:
        return {
            "block_number": self.block_number,
            "log_entries": len(self.logs),
            "in_transaction": self.in_transaction,
        }

"""Reference token and outcome ledgers backed by the host chain."""

from stdmarket.ledger.token import Token, StandardToken
from stdmarket.ledger.outcome import OutcomeLedger, OutcomeToken, CategoricalEvent

__all__ = [
    "Token",
    "StandardToken",
    "OutcomeLedger",
    "OutcomeToken",
    "CategoricalEvent",
]

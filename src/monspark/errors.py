"""Domain error taxonomy.

Validation and business-rule errors are raised before any chain write and
leave no side effects. Chain errors carry the node's message. Routers map
these to HTTP status codes at the boundary.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for all domain errors."""


class ValidationError(LedgerError, ValueError):
    """Missing or malformed input. Never reaches the chain."""


class NotEligible(LedgerError):
    """The user has no gas credit to allocate."""


class AlreadyCompleted(LedgerError):
    """The quest is already completed on chain for this user."""


class InvalidStateTransition(LedgerError, ValueError):
    """A status update would move a record backwards."""


class NotFoundError(LedgerError, LookupError):
    """Lookup exhausted both the chain and the local ledger."""


class ChainConfigurationError(LedgerError, RuntimeError):
    """Contract addresses or signer could not be resolved at startup."""


class ChainReadError(LedgerError):
    """A read-only contract call failed."""


class ChainWriteError(LedgerError):
    """A submitted transaction reverted, timed out, or the node call failed."""


class CompletionFailed(ChainWriteError):
    """The on-chain quest completion did not go through."""


class EventNotFound(LedgerError):
    """The transaction succeeded but the expected event is missing from its receipt.

    Points at an ABI or contract version mismatch; never retried.
    """

    def __init__(self, event_name: str, tx_hash: str) -> None:
        super().__init__(f"{event_name} event not found in receipt of {tx_hash}")
        self.event_name = event_name
        self.tx_hash = tx_hash

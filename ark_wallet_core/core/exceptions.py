"""
Application-level exceptions.

Validation errors (ClassificationInvalid, LimitViolation) are raised
synchronously and block the triggering action. Background failures
(ReconciliationTickFailure) are logged by the loop and never propagate.
"""

from __future__ import annotations


class WalletCoreError(Exception):
    """Base class for all errors raised by this package."""


class ClassificationInvalid(WalletCoreError):
    """Destination could not be parsed or belongs to another Ark server."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class LimitViolation(WalletCoreError):
    """Amount is outside the venue's limit window."""

    def __init__(self, kind: str, venue: str, amount: int, bound: int) -> None:
        super().__init__(f"amount {amount} is {kind} for {venue} (limit {bound})")
        self.kind = kind
        self.venue = venue
        self.amount = amount
        self.bound = bound


class PersistenceFailure(WalletCoreError):
    """A read or write against the local store failed."""


class ReconciliationTickFailure(WalletCoreError):
    """A reconciliation tick was abandoned; carries the step that failed."""

    def __init__(self, step: str, cause: BaseException) -> None:
        super().__init__(f"reconciliation step '{step}' failed: {cause}")
        self.step = step
        self.cause = cause


class SwapProviderFailure(WalletCoreError):
    """The swap provider rejected or failed a routing call."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation
        self.message = message


class ServerUnreachable(WalletCoreError):
    """The Ark server did not answer after all retries."""

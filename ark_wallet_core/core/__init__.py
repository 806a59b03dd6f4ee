"""
Core utilities: error taxonomy and shared constants.

Used across the classifier, limits engine, lifecycle manager, persistence
layer and reconciliation loop.
"""

from ark_wallet_core.core.exceptions import (
    ClassificationInvalid,
    LimitViolation,
    PersistenceFailure,
    ReconciliationTickFailure,
    ServerUnreachable,
    SwapProviderFailure,
    WalletCoreError,
)

__all__ = [
    "ClassificationInvalid",
    "LimitViolation",
    "PersistenceFailure",
    "ReconciliationTickFailure",
    "ServerUnreachable",
    "SwapProviderFailure",
    "WalletCoreError",
]

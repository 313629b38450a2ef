"""Credit ledger and statistics reconciliation."""
from deployment_tracker_core.ledger.client import LedgerClient, LedgerError
from deployment_tracker_core.ledger.reconcile import (
    ReconciliationClient,
    account_delta_id,
    failure_delta_id,
    final_delta_id,
)

__all__ = [
    "LedgerClient",
    "LedgerError",
    "ReconciliationClient",
    "account_delta_id",
    "failure_delta_id",
    "final_delta_id",
]

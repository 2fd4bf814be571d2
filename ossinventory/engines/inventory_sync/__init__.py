"""Inventory sync engine — policy-gated, retrying upload to the inventory service."""

from ossinventory.engines.inventory_sync.client import InventoryServiceClient
from ossinventory.engines.inventory_sync.models import (
    ComplianceResult,
    PolicyRejection,
    SyncOutcome,
    SyncResult,
    SyncState,
)
from ossinventory.engines.inventory_sync.report import write_policy_report
from ossinventory.engines.inventory_sync.retry import RetryOutcome, attempt
from ossinventory.engines.inventory_sync.runner import InventorySyncRunner

__all__ = [
    "ComplianceResult",
    "InventoryServiceClient",
    "InventorySyncRunner",
    "PolicyRejection",
    "RetryOutcome",
    "SyncOutcome",
    "SyncResult",
    "SyncState",
    "attempt",
    "write_policy_report",
]

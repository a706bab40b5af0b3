"""Business logic services."""

from advisy.services.catalog import ProductResolutionError, ProductResolver
from advisy.services.commission import (
    CommissionSplitError,
    build_allocator,
    create_commission,
    update_commission_total,
)
from advisy.services.commission_allocator import CommissionAllocator
from advisy.services.contract_reconciler import ContractReconciler, DetectedProduct
from advisy.services.contracts import create_manual_contract
from advisy.services.scan_validation import ScanValidator

__all__ = [
    "CommissionAllocator",
    "CommissionSplitError",
    "ContractReconciler",
    "DetectedProduct",
    "ProductResolutionError",
    "ProductResolver",
    "ScanValidator",
    "build_allocator",
    "create_commission",
    "create_manual_contract",
    "update_commission_total",
]

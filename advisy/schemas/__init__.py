"""Pydantic schemas for request/response validation."""

from advisy.schemas.commission import (
    AllocateRequest,
    AllocationResponse,
    CommissionAmountUpdate,
    CommissionCreate,
    CommissionPartIn,
    CommissionResponse,
    PartRequest,
    PartResponse,
    RejectionResponse,
)
from advisy.schemas.contract import (
    ContractCreate,
    DetectedProductIn,
    PolicyResponse,
    ReconcileRequest,
    ReconcileResponse,
    SkippedGroupResponse,
)
from advisy.schemas.scan import ScanValidateRequest, ScanValidateResponse

__all__ = [
    # Commission
    "AllocateRequest",
    "AllocationResponse",
    "CommissionAmountUpdate",
    "CommissionCreate",
    "CommissionPartIn",
    "CommissionResponse",
    "PartRequest",
    "PartResponse",
    "RejectionResponse",
    # Contract
    "ContractCreate",
    "DetectedProductIn",
    "PolicyResponse",
    "ReconcileRequest",
    "ReconcileResponse",
    "SkippedGroupResponse",
    # Scan
    "ScanValidateRequest",
    "ScanValidateResponse",
]

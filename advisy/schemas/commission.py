"""Commission schemas."""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from advisy.services.commission_allocator import RejectionReason


class PartRequest(BaseModel):
    """Collaborator requested in a split; no rate means the default rate."""

    agent_id: int
    rate: Optional[float] = Field(None, ge=0, le=100)


class AllocateRequest(BaseModel):
    """Preview the split of a commission."""

    total_amount: float = Field(0, ge=0)
    category: Optional[str] = Field(None, max_length=50)
    policy_id: Optional[int] = None
    assigned_agent_id: Optional[int] = None
    parts: List[PartRequest] = Field(default_factory=list)


class PartResponse(BaseModel):
    agent_id: int
    agent_name: Optional[str] = None
    rate: float
    amount: float
    is_manager: bool = False

    model_config = {"from_attributes": True}


class RejectionResponse(BaseModel):
    agent_id: int
    reason: RejectionReason


class AllocationResponse(BaseModel):
    """Split computed in memory, nothing persisted."""

    total_amount: float
    total_rate: float
    remaining_rate: float
    parts: List[PartResponse]
    rejected: List[RejectionResponse] = Field(default_factory=list)


class CommissionPartIn(BaseModel):
    agent_id: int
    rate: float = Field(..., ge=0, le=100)


class CommissionCreate(BaseModel):
    """Submitted commission with its final split."""

    policy_id: int
    amount: float = Field(..., ge=0)
    type: str = Field("acquisition", max_length=30)
    status: str = Field("due", max_length=20)
    commission_date: Optional[date] = Field(None, alias="date")
    notes: Optional[str] = Field(None, max_length=2000)
    parts: List[CommissionPartIn] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class CommissionAmountUpdate(BaseModel):
    amount: float = Field(..., ge=0)


class CommissionResponse(BaseModel):
    id: int
    policy_id: int
    amount: float
    total_amount: Optional[float]
    type: str
    status: str
    commission_date: Optional[date] = None
    period_month: Optional[int] = None
    period_year: Optional[int] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    parts: List[PartResponse] = Field(default_factory=list)

    model_config = {"from_attributes": True}

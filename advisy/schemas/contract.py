"""Contract (policy) schemas."""

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field

from advisy.services.contract_reconciler import DetectedProduct, Generation


class DetectedProductIn(BaseModel):
    """Product line as read from a scanned document."""

    company: Optional[str] = Field(None, max_length=255)
    product_name: Optional[str] = Field(None, max_length=255)
    product_category: Optional[str] = Field(None, max_length=50)
    premium_monthly: Optional[float] = None
    franchise: Optional[float] = None
    policy_number: Optional[str] = Field(None, max_length=100)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    duration_years: Optional[int] = Field(None, ge=0)

    def to_detected(self) -> DetectedProduct:
        return DetectedProduct(**self.model_dump())


class ReconcileRequest(BaseModel):
    client_id: Optional[int] = None
    category_hint: Optional[str] = Field(None, max_length=50)
    termination: bool = False
    new_products: List[DetectedProductIn] = Field(default_factory=list)
    old_products: List[DetectedProductIn] = Field(default_factory=list)


class PolicyResponse(BaseModel):
    id: int
    client_id: Optional[int]
    product_id: int
    policy_number: Optional[str]
    status: str
    start_date: date
    end_date: Optional[date]
    premium_monthly: Optional[float]
    premium_yearly: Optional[float]
    deductible: Optional[float]
    currency: str
    company_name: Optional[str]
    product_type: Optional[str]
    products_data: Optional[list] = None
    notes: Optional[str]

    model_config = {"from_attributes": True}


class SkippedGroupResponse(BaseModel):
    company_key: str
    generation: Generation
    reason: str

    model_config = {"from_attributes": True}


class ReconcileResponse(BaseModel):
    created_count: int
    skipped_count: int
    created: List[PolicyResponse]
    skipped: List[SkippedGroupResponse]


class ContractCreate(BaseModel):
    """Single contract entered by hand."""

    client_id: int
    product_id: int
    start_date: date
    category: Optional[str] = Field(None, max_length=50)
    policy_number: Optional[str] = Field(None, max_length=100)
    status: str = Field("active", max_length=20)
    premium_monthly: Optional[float] = Field(None, ge=0)
    lamal_amount: Optional[float] = Field(None, ge=0)
    lca_amount: Optional[float] = Field(None, ge=0)
    duration_years: Optional[int] = Field(None, ge=0)
    deductible: Optional[float] = Field(None, ge=0)
    lamal_franchise: Optional[float] = Field(None, ge=0)
    products: List[DetectedProductIn] = Field(default_factory=list)
    notes: Optional[str] = Field(None, max_length=2000)

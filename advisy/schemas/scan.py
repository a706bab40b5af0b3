"""IA-Scan validation schemas."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from advisy.schemas.contract import PolicyResponse, SkippedGroupResponse


class ScanValidateRequest(BaseModel):
    """Broker corrections and the steps to run."""

    edited_values: Dict[str, Optional[str]] = Field(default_factory=dict)
    create_contract: bool = True
    create_suivi: bool = True
    link_document: bool = True


class ScanValidateResponse(BaseModel):
    scan_id: int
    client_id: int
    created_items: List[str]
    family_member_count: int = 0
    policies: List[PolicyResponse] = Field(default_factory=list)
    skipped: List[SkippedGroupResponse] = Field(default_factory=list)
    document_id: Optional[int] = None
    suivi_id: Optional[int] = None

"""IA-Scan API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from advisy.api.dependencies import get_session_context
from advisy.context import SessionContext
from advisy.db import get_db
from advisy.schemas.contract import PolicyResponse, SkippedGroupResponse
from advisy.schemas.scan import ScanValidateRequest, ScanValidateResponse
from advisy.services.scan_validation import (
    ScanAlreadyValidatedError,
    ScanNotFoundError,
    ScanValidator,
    ValidationOptions,
)

router = APIRouter(prefix="/scans", tags=["IA Scan"])


@router.post("/{scan_id}/validate", response_model=ScanValidateResponse)
async def validate_scan(
    scan_id: int,
    data: ScanValidateRequest,
    db: AsyncSession = Depends(get_db),
    context: SessionContext = Depends(get_session_context),
):
    """Turn a reviewed scan into a client, its policies and a follow-up."""
    options = ValidationOptions(
        create_contract=data.create_contract,
        create_suivi=data.create_suivi,
        link_document=data.link_document,
    )
    try:
        outcome = await ScanValidator(db, context).validate(scan_id, data.edited_values, options)
    except ScanNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ScanAlreadyValidatedError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    await db.commit()

    report = outcome.report
    return ScanValidateResponse(
        scan_id=scan_id,
        client_id=outcome.client.id,
        created_items=outcome.created_items,
        family_member_count=len(outcome.family_members),
        policies=[PolicyResponse.model_validate(p) for p in report.created] if report else [],
        skipped=[SkippedGroupResponse.model_validate(s) for s in report.skipped] if report else [],
        document_id=outcome.document.id if outcome.document else None,
        suivi_id=outcome.suivi.id if outcome.suivi else None,
    )

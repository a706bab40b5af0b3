"""Contract API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from advisy.api.dependencies import get_session_context
from advisy.context import SessionContext
from advisy.db import get_db
from advisy.models import AuditAction
from advisy.schemas.contract import (
    ContractCreate,
    PolicyResponse,
    ReconcileRequest,
    ReconcileResponse,
    SkippedGroupResponse,
)
from advisy.services.contract_reconciler import ClientNotFoundError, ContractReconciler
from advisy.services.contracts import ContractError, create_manual_contract
from advisy.utils.audit import log_action

router = APIRouter(prefix="/contracts", tags=["Contracts"])


@router.post("/reconcile", response_model=ReconcileResponse)
async def reconcile_contracts(
    data: ReconcileRequest,
    db: AsyncSession = Depends(get_db),
    context: SessionContext = Depends(get_session_context),
):
    """
    Create one policy per company from detected products.

    Groups that cannot be resolved or inserted are reported as skipped;
    the others are still created.
    """
    reconciler = ContractReconciler(db, context)
    try:
        report = await reconciler.reconcile(
            data.client_id,
            [p.to_detected() for p in data.new_products],
            [p.to_detected() for p in data.old_products],
            category_hint=data.category_hint,
            termination=data.termination,
        )
    except ClientNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    await log_action(
        db,
        context,
        AuditAction.POLICIES_RECONCILED,
        target_type="client",
        target_id=data.client_id,
        action_metadata={
            "policy_ids": [p.id for p in report.created],
            "skipped": [s.company_key for s in report.skipped],
            "termination": data.termination,
        },
    )
    await db.commit()

    return ReconcileResponse(
        created_count=report.created_count,
        skipped_count=report.skipped_count,
        created=[PolicyResponse.model_validate(p) for p in report.created],
        skipped=[SkippedGroupResponse.model_validate(s) for s in report.skipped],
    )


@router.post("", response_model=PolicyResponse, status_code=status.HTTP_201_CREATED)
async def create_contract(
    data: ContractCreate,
    db: AsyncSession = Depends(get_db),
    context: SessionContext = Depends(get_session_context),
):
    """Create a single contract entered by hand."""
    try:
        policy = await create_manual_contract(
            db,
            context,
            client_id=data.client_id,
            product_id=data.product_id,
            start_date=data.start_date,
            category=data.category,
            policy_number=data.policy_number,
            status=data.status,
            premium_monthly=data.premium_monthly,
            lamal_amount=data.lamal_amount,
            lca_amount=data.lca_amount,
            duration_years=data.duration_years,
            deductible=data.deductible,
            lamal_franchise=data.lamal_franchise,
            products=[p.to_detected() for p in data.products],
            notes=data.notes,
        )
    except ContractError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    await db.commit()
    return PolicyResponse.model_validate(policy)

"""Commission API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from advisy.api.dependencies import get_session_context
from advisy.context import SessionContext
from advisy.db import get_db
from advisy.schemas.commission import (
    AllocateRequest,
    AllocationResponse,
    CommissionAmountUpdate,
    CommissionCreate,
    CommissionResponse,
    PartResponse,
    RejectionResponse,
)
from advisy.services.commission import (
    CommissionNotFoundError,
    CommissionSplitError,
    PolicyNotFoundError,
    build_allocator,
    create_commission,
    get_assigned_agent_id,
    get_commission,
    get_policy,
    get_policy_category,
    update_commission_total,
)

router = APIRouter(prefix="/commissions", tags=["Commissions"])


@router.post("/allocate", response_model=AllocationResponse)
async def allocate_commission(
    data: AllocateRequest,
    db: AsyncSession = Depends(get_db),
    context: SessionContext = Depends(get_session_context),
):
    """
    Preview a commission split.

    Without requested parts the split is seeded from the agent assigned
    to the policy's client. Nothing is persisted.
    """
    category = data.category
    assigned_agent_id = data.assigned_agent_id
    if data.policy_id is not None:
        if not await get_policy(db, context, data.policy_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Policy {data.policy_id} not found")
        if category is None:
            category = await get_policy_category(db, context, data.policy_id)
        if assigned_agent_id is None:
            assigned_agent_id = await get_assigned_agent_id(db, context, data.policy_id)

    allocator, rejections = await build_allocator(
        db,
        context,
        data.total_amount,
        category,
        assigned_agent_id=assigned_agent_id,
        requested=[(p.agent_id, p.rate) for p in data.parts],
    )

    return AllocationResponse(
        total_amount=allocator.total_amount,
        total_rate=allocator.total_rate,
        remaining_rate=allocator.remaining_rate,
        parts=[PartResponse.model_validate(p) for p in allocator.parts],
        rejected=[
            RejectionResponse(agent_id=agent_id, reason=result.reason)
            for agent_id, result in rejections
        ],
    )


@router.post("", response_model=CommissionResponse, status_code=status.HTTP_201_CREATED)
async def submit_commission(
    data: CommissionCreate,
    db: AsyncSession = Depends(get_db),
    context: SessionContext = Depends(get_session_context),
):
    """Create a commission and its split."""
    try:
        commission = await create_commission(
            db,
            context,
            policy_id=data.policy_id,
            amount=data.amount,
            parts=data.parts,
            commission_type=data.type,
            status=data.status,
            commission_date=data.commission_date,
            notes=data.notes,
        )
    except PolicyNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except CommissionSplitError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    await db.commit()

    commission = await get_commission(db, context, commission.id)
    return CommissionResponse.model_validate(commission)


@router.patch("/{commission_id}/amount", response_model=CommissionResponse)
async def change_commission_amount(
    commission_id: int,
    data: CommissionAmountUpdate,
    db: AsyncSession = Depends(get_db),
    context: SessionContext = Depends(get_session_context),
):
    """Change the commission total; part amounts follow their rates."""
    try:
        await update_commission_total(db, context, commission_id, data.amount)
    except CommissionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    await db.commit()

    commission = await get_commission(db, context, commission_id)
    return CommissionResponse.model_validate(commission)

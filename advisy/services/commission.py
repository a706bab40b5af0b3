"""
Commission persistence.

The split is worked out in memory by CommissionAllocator while the
broker edits the form; parts are written to commission_part_agent
only when the commission is submitted.
"""

import logging
from datetime import date
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from advisy.context import SessionContext
from advisy.models import (
    COLLABORATOR_TYPE,
    AuditAction,
    Client,
    Commission,
    CommissionPartAgent,
    InsuranceProduct,
    Policy,
)
from advisy.services.commission_allocator import (
    MAX_TOTAL_RATE,
    AllocationResult,
    Collaborator,
    CommissionAllocator,
    part_amount,
)
from advisy.utils.audit import log_action

logger = logging.getLogger(__name__)


class CommissionSplitError(ValueError):
    """Submitted parts break the split rules (unknown or duplicate agent, > 100%)."""


class PolicyNotFoundError(LookupError):
    pass


class CommissionNotFoundError(LookupError):
    pass


async def load_roster(db: AsyncSession, context: SessionContext) -> List[Collaborator]:
    """Collaborators of the tenant, sorted by first name."""
    result = await db.execute(
        select(Client)
        .where(
            Client.type_adresse == COLLABORATOR_TYPE,
            Client.tenant_id == context.tenant_id,
        )
        .order_by(Client.first_name, Client.id)
    )
    return [Collaborator.from_record(c) for c in result.scalars().all()]


async def get_policy(db: AsyncSession, context: SessionContext, policy_id: int) -> Optional[Policy]:
    result = await db.execute(
        select(Policy).where(Policy.id == policy_id, Policy.tenant_id == context.tenant_id)
    )
    return result.scalar_one_or_none()


async def get_policy_category(db: AsyncSession, context: SessionContext, policy_id: int) -> Optional[str]:
    """Catalog category of the policy's main product."""
    result = await db.execute(
        select(InsuranceProduct.category)
        .join(Policy, Policy.product_id == InsuranceProduct.id)
        .where(Policy.id == policy_id, Policy.tenant_id == context.tenant_id)
    )
    return result.scalar_one_or_none()


async def get_assigned_agent_id(db: AsyncSession, context: SessionContext, policy_id: int) -> Optional[int]:
    """Agent in charge of the client holding the policy."""
    result = await db.execute(
        select(Client.assigned_agent_id)
        .join(Policy, Policy.client_id == Client.id)
        .where(Policy.id == policy_id, Policy.tenant_id == context.tenant_id)
    )
    return result.scalar_one_or_none()


async def build_allocator(
    db: AsyncSession,
    context: SessionContext,
    total_amount: float,
    category: Optional[str] = None,
    assigned_agent_id: Optional[int] = None,
    requested: Sequence[Tuple[int, Optional[float]]] = (),
) -> Tuple[CommissionAllocator, List[Tuple[int, AllocationResult]]]:
    """
    Replay a split the way the commission form builds it.

    With no requested parts the split is seeded from the assigned agent;
    otherwise each (agent_id, rate) is added in order. Rejected requests
    are returned alongside the allocator.
    """
    roster = await load_roster(db, context)
    allocator = CommissionAllocator(context, roster, total_amount, category)

    rejections = []
    if not requested:
        allocator.auto_populate_from_assignment(assigned_agent_id)
    for agent_id, rate in requested:
        result = allocator.add_part(agent_id, rate)
        if result.rejected:
            rejections.append((agent_id, result))

    return allocator, rejections


def _check_split(parts: Sequence, roster_ids: set) -> None:
    seen = set()
    total_rate = 0.0
    for part in parts:
        if part.agent_id not in roster_ids:
            raise CommissionSplitError(f"Agent {part.agent_id} is not a collaborator of the tenant")
        if part.agent_id in seen:
            raise CommissionSplitError(f"Agent {part.agent_id} appears twice in the split")
        if part.rate < 0:
            raise CommissionSplitError(f"Negative rate for agent {part.agent_id}")
        seen.add(part.agent_id)
        total_rate += part.rate
    if total_rate > MAX_TOTAL_RATE:
        raise CommissionSplitError(f"Split totals {total_rate:g}%, above {MAX_TOTAL_RATE:g}%")


async def create_commission(
    db: AsyncSession,
    context: SessionContext,
    policy_id: int,
    amount: float,
    parts: Sequence,
    commission_type: str = "acquisition",
    status: str = "due",
    commission_date: Optional[date] = None,
    notes: Optional[str] = None,
) -> Commission:
    """
    Persist a commission and its parts.

    Args:
        parts: objects exposing agent_id and rate (CommissionPart, schemas)

    Raises:
        PolicyNotFoundError: policy unknown in the tenant
        CommissionSplitError: agent outside the roster, duplicate agent
            or rates above 100%
    """
    policy = await get_policy(db, context, policy_id)
    if not policy:
        raise PolicyNotFoundError(f"Policy {policy_id} not found")

    roster = await load_roster(db, context)
    _check_split(parts, {c.id for c in roster})

    commission = Commission(
        tenant_id=context.tenant_id,
        policy_id=policy_id,
        amount=amount,
        total_amount=amount,
        type=commission_type,
        status=status,
        commission_date=commission_date,
        period_month=commission_date.month if commission_date else None,
        period_year=commission_date.year if commission_date else None,
        notes=notes,
    )
    db.add(commission)
    await db.flush()

    for part in parts:
        db.add(CommissionPartAgent(
            commission_id=commission.id,
            agent_id=part.agent_id,
            rate=part.rate,
            amount=part_amount(amount, part.rate),
        ))
    await db.flush()

    await log_action(
        db,
        context,
        AuditAction.COMMISSION_CREATED,
        target_type="commission",
        target_id=commission.id,
        action_metadata={
            "policy_id": policy_id,
            "amount": amount,
            "parts": [{"agent_id": p.agent_id, "rate": p.rate} for p in parts],
        },
    )

    logger.info(f"Commission {commission.id} created on policy {policy_id} with {len(parts)} parts")
    return commission


async def get_commission(db: AsyncSession, context: SessionContext, commission_id: int) -> Optional[Commission]:
    result = await db.execute(
        select(Commission)
        .where(Commission.id == commission_id, Commission.tenant_id == context.tenant_id)
        .options(selectinload(Commission.parts))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def update_commission_total(
    db: AsyncSession,
    context: SessionContext,
    commission_id: int,
    new_total: float,
) -> Commission:
    """Change the commission amount; part rates stay, amounts follow."""
    commission = await get_commission(db, context, commission_id)
    if not commission:
        raise CommissionNotFoundError(f"Commission {commission_id} not found")

    old_amount = commission.amount
    commission.amount = new_total
    commission.total_amount = new_total
    for part in commission.parts:
        part.amount = part_amount(new_total, part.rate)
    await db.flush()

    await log_action(
        db,
        context,
        AuditAction.COMMISSION_UPDATED,
        target_type="commission",
        target_id=commission.id,
        action_metadata={"old_amount": old_amount, "new_amount": new_total},
    )
    return commission

"""
Manual contract entry.

The contract form asks for different premium fields per category:
health splits the monthly premium into LAMal and LCA, life carries a
duration in years, everything else a single premium and deductible.
"""

import logging
from datetime import date
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from advisy.config import settings
from advisy.context import SessionContext
from advisy.models import AuditAction, InsuranceCompany, InsuranceProduct, Policy, PolicyStatus
from advisy.services.contract_reconciler import (
    ClientNotFoundError,
    DetectedProduct,
    get_tenant_client,
    resolve_policy_deductible,
)
from advisy.utils.audit import log_action
from advisy.utils.categories import HEALTH, LIFE, normalize_category

logger = logging.getLogger(__name__)


class ContractError(ValueError):
    pass


def _chf(value: float) -> str:
    return f"{value:g}"


def add_years(start: date, years: int) -> date:
    """Same day `years` later; 29 February falls back to 28."""
    try:
        return start.replace(year=start.year + years)
    except ValueError:
        return start.replace(year=start.year + years, day=28)


def health_notes(lamal: float, lca: float, notes: Optional[str] = None) -> str:
    header = f"LAMal: {_chf(lamal)} CHF, LCA: {_chf(lca)} CHF"
    return f"{header}\n{notes}" if notes else header


async def create_manual_contract(
    db: AsyncSession,
    context: SessionContext,
    client_id: int,
    product_id: int,
    start_date: date,
    category: Optional[str] = None,
    policy_number: Optional[str] = None,
    status: str = PolicyStatus.ACTIVE.value,
    premium_monthly: Optional[float] = None,
    lamal_amount: Optional[float] = None,
    lca_amount: Optional[float] = None,
    duration_years: Optional[int] = None,
    deductible: Optional[float] = None,
    lamal_franchise: Optional[float] = None,
    products: Sequence[DetectedProduct] = (),
    notes: Optional[str] = None,
) -> Policy:
    """
    Create one policy from the contract form.

    Health: premium = LAMal + LCA, both amounts recorded in the notes.
    Life: the end date is start_date + duration_years.
    Deductible: the LAMal franchise when given, else the explicit value,
    else the one derived from the detected products.

    Raises:
        ContractError: product unknown, or client not in the tenant
    """
    try:
        await get_tenant_client(db, context, client_id)
    except ClientNotFoundError as e:
        raise ContractError(str(e))
    product = await db.get(InsuranceProduct, product_id)
    if not product:
        raise ContractError(f"Product {product_id} not found")

    company = await db.get(InsuranceCompany, product.company_id)
    kind = normalize_category(category or product.category)
    end_date = None
    full_notes = notes

    if kind == HEALTH:
        lamal = lamal_amount or 0.0
        lca = lca_amount or 0.0
        monthly = lamal + lca
        full_notes = health_notes(lamal, lca, notes)
    elif kind == LIFE:
        monthly = premium_monthly or 0.0
        if duration_years and duration_years > 0:
            end_date = add_years(start_date, duration_years)
            full_notes = f"Durée: {duration_years} ans" + (f"\n{notes}" if notes else "")
    else:
        monthly = premium_monthly or 0.0

    if lamal_franchise is not None:
        deductible = lamal_franchise
    elif deductible is None:
        deductible = resolve_policy_deductible(list(products))

    policy = Policy(
        tenant_id=context.tenant_id,
        client_id=client_id,
        product_id=product_id,
        policy_number=policy_number or None,
        status=status,
        start_date=start_date,
        end_date=end_date,
        premium_monthly=monthly,
        premium_yearly=monthly * 12,
        deductible=deductible or None,
        currency=settings.default_currency,
        company_name=company.name if company else None,
        product_type=product.category,
        products_data=None,
        notes=full_notes or None,
    )
    db.add(policy)
    await db.flush()

    await log_action(
        db,
        context,
        AuditAction.CONTRACT_CREATED,
        target_type="policy",
        target_id=policy.id,
        action_metadata={"client_id": client_id, "product_id": product_id, "category": kind},
    )
    logger.info(f"Contract {policy.id} created for client {client_id} ({kind}, {monthly:.2f}/month)")
    return policy

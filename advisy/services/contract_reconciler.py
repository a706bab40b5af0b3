"""
Reconciliation of IA-scan detected products into policies.

A scanned offer or contract lists several products, possibly from
several companies, split into the current ("old") and the proposed
("new") contract sets. Each set yields one policy per company:
- products are grouped by lower-cased, trimmed company name
- every product is resolved against the catalog (see catalog.py)
- premiums add up, the deductible comes from the first product
- old policies are flagged "resilie" when the scan is a termination

Groups are independent: an unresolvable group or a failed insert is
logged and skipped, the others are still created.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from advisy.config import settings
from advisy.context import SessionContext
from advisy.models import Client, Policy, PolicyStatus
from advisy.services.catalog import ProductResolutionError, ProductResolver
from advisy.utils.categories import is_health_or_life
from advisy.utils.parsing import clean_text

logger = logging.getLogger(__name__)

UNKNOWN_COMPANY_KEY = "unknown"
MULTI_PRODUCT_TYPE = "multi"
TERMINATION_MARKER = "À RÉSILIER"


class ClientNotFoundError(LookupError):
    pass


class Generation(str, Enum):
    """Contract set a detected product belongs to."""
    OLD = "old"
    NEW = "new"


@dataclass
class DetectedProduct:
    """Product line read from a scanned document."""

    company: Optional[str] = None
    product_name: Optional[str] = None
    product_category: Optional[str] = None
    premium_monthly: Optional[float] = None
    franchise: Optional[float] = None
    policy_number: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    duration_years: Optional[int] = None

    @property
    def company_key(self) -> str:
        return company_key(self.company)


@dataclass
class PolicyDraft:
    """In-memory policy built from one company group."""

    company_key: str
    company_name: Optional[str]
    generation: Generation
    product_id: int
    products_data: List[dict]
    premium_monthly: float
    premium_yearly: float
    product_type: Optional[str]
    deductible: Optional[float]
    policy_number: Optional[str]
    start_date: date
    end_date: Optional[date]
    notes: str
    status: str

    def to_row(self, client_id: Optional[int], tenant_id: Optional[str], currency: str = "CHF") -> dict:
        """Payload of the policies table."""
        return {
            "tenant_id": tenant_id,
            "client_id": client_id,
            "product_id": self.product_id,
            "policy_number": self.policy_number,
            "status": self.status,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "premium_monthly": self.premium_monthly,
            "premium_yearly": self.premium_yearly,
            "deductible": self.deductible,
            "currency": currency,
            "company_name": self.company_name,
            "product_type": self.product_type,
            "products_data": self.products_data,
            "notes": self.notes,
        }


@dataclass
class SkippedGroup:
    company_key: str
    generation: Generation
    reason: str


@dataclass
class ReconciliationReport:
    """What a reconciliation created and what it had to leave out."""

    created: List[Policy] = field(default_factory=list)
    drafts: List[PolicyDraft] = field(default_factory=list)
    skipped: List[SkippedGroup] = field(default_factory=list)

    @property
    def created_count(self) -> int:
        return len(self.created)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)


def company_key(company: Optional[str]) -> str:
    """Grouping key: lower-cased, trimmed company name."""
    key = (company or "").strip().lower()
    return key or UNKNOWN_COMPANY_KEY


def group_by_company(products: Iterable[DetectedProduct]) -> Dict[str, List[DetectedProduct]]:
    """Group products by company key, keeping input order inside each group."""
    groups: Dict[str, List[DetectedProduct]] = {}
    for product in products:
        groups.setdefault(product.company_key, []).append(product)
    return groups


def build_notes(names: Sequence[str], terminated: bool, today: Optional[date] = None) -> str:
    today = today or date.today()
    lines = [
        " + ".join(names),
        f"Contrat importé via IA Scan le {today.strftime('%d.%m.%Y')}",
    ]
    if terminated:
        lines.append(TERMINATION_MARKER)
    return "\n".join(line for line in lines if line)


def resolve_policy_deductible(
    products: Sequence[DetectedProduct],
    lamal_franchise: Optional[float] = None,
) -> Optional[float]:
    """
    Deductible of a single-contract submission.

    Priority: LAMal franchise, then the only product's deductible, then
    the first product outside health and life.
    """
    if lamal_franchise is not None:
        return lamal_franchise
    if len(products) == 1:
        return products[0].franchise
    for product in products:
        if not is_health_or_life(product.product_category):
            return product.franchise
    return None


async def get_tenant_client(db: AsyncSession, context: SessionContext, client_id: int) -> Client:
    """Client of the current tenant, or ClientNotFoundError."""
    result = await db.execute(
        select(Client).where(Client.id == client_id, Client.tenant_id == context.tenant_id)
    )
    client = result.scalar_one_or_none()
    if not client:
        raise ClientNotFoundError(f"Client {client_id} not found")
    return client


class ContractReconciler:
    """
    Turns detected products into persisted policies.

    Usage:
        reconciler = ContractReconciler(db, context)
        report = await reconciler.reconcile(client.id, new_products, old_products,
                                            category_hint="health", termination=True)
        # report.created_count, report.skipped
    """

    def __init__(
        self,
        db: AsyncSession,
        context: SessionContext,
        resolver: Optional[ProductResolver] = None,
    ) -> None:
        self.db = db
        self.context = context
        self.resolver = resolver or ProductResolver(db, context)

    async def build_draft(
        self,
        group: Sequence[DetectedProduct],
        generation: Generation = Generation.NEW,
        category_hint: Optional[str] = None,
        termination: bool = False,
    ) -> Optional[PolicyDraft]:
        """
        Assemble the policy of one company group.

        Returns None when no member resolves to a catalog product.
        """
        if not group:
            return None

        first = group[0]
        products_data = []
        main_product_id = None

        for product in group:
            try:
                product_id = await self.resolver.resolve_or_create_product(
                    product.product_name,
                    product.company,
                    product.product_category or category_hint,
                )
            except ProductResolutionError as e:
                logger.warning(f"Product '{product.product_name}' of '{first.company_key}' unresolved: {e}")
                product_id = None

            if main_product_id is None and product_id:
                main_product_id = product_id

            products_data.append({
                "productId": product_id,
                "name": product.product_name,
                "category": product.product_category,
                "premium": product.premium_monthly,
                "deductible": product.franchise,
                "durationYears": product.duration_years,
            })

        if main_product_id is None:
            return None

        premium_monthly = sum(p.premium_monthly or 0 for p in group)
        terminated = termination and generation == Generation.OLD

        return PolicyDraft(
            company_key=first.company_key,
            company_name=clean_text(first.company),
            generation=generation,
            product_id=main_product_id,
            products_data=products_data,
            premium_monthly=premium_monthly,
            premium_yearly=premium_monthly * 12,
            product_type=first.product_category if len(group) == 1 else MULTI_PRODUCT_TYPE,
            deductible=first.franchise,
            policy_number=first.policy_number,
            start_date=first.start_date or date.today(),
            end_date=first.end_date,
            notes=build_notes([p.product_name for p in group if p.product_name], terminated),
            status=PolicyStatus.RESILIE.value if terminated else PolicyStatus.ACTIVE.value,
        )

    async def reconcile(
        self,
        client_id: Optional[int],
        new_products: Iterable[DetectedProduct],
        old_products: Iterable[DetectedProduct] = (),
        category_hint: Optional[str] = None,
        termination: bool = False,
    ) -> ReconciliationReport:
        """
        Create one policy per company and contract set.

        Raises:
            ClientNotFoundError: client_id is not a client of the tenant
        """
        if client_id is not None:
            await get_tenant_client(self.db, self.context, client_id)

        report = ReconciliationReport()

        for generation, products in ((Generation.OLD, old_products), (Generation.NEW, new_products)):
            for key, group in group_by_company(products).items():
                draft = await self.build_draft(group, generation, category_hint, termination)
                if draft is None:
                    logger.warning(f"Skipping {generation.value} group '{key}': no product resolved")
                    report.skipped.append(SkippedGroup(key, generation, "unresolved_product"))
                    continue

                policy = await self._insert(draft, client_id)
                if policy is None:
                    report.skipped.append(SkippedGroup(key, generation, "insert_failed"))
                    continue

                report.drafts.append(draft)
                report.created.append(policy)

        logger.info(
            f"Reconciled client {client_id}: {report.created_count} policies created, "
            f"{report.skipped_count} groups skipped"
        )
        return report

    async def _insert(self, draft: PolicyDraft, client_id: Optional[int]) -> Optional[Policy]:
        policy = Policy(**draft.to_row(client_id, self.context.tenant_id, settings.default_currency))
        try:
            async with self.db.begin_nested():
                self.db.add(policy)
                await self.db.flush()
        except SQLAlchemyError as e:
            logger.error(f"Policy insert failed for {draft.generation.value} group '{draft.company_key}': {e}")
            return None
        return policy

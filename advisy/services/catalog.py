"""
Product/company resolution against the insurance catalog.

Product names read by the IA scan rarely match the catalog exactly
("LAMal Basic", "Assurance de base LAMal", "KVG Grundversicherung").
Resolution order:
1. Best alias match (score descending, lowest catalog id on ties)
2. Company by case-insensitive substring, created when missing
3. New product flagged source="ia_scan" for later review
4. Any active product when creation fails
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import and_, func, literal, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from advisy.config import settings
from advisy.context import SessionContext
from advisy.models import AuditAction, InsuranceCompany, InsuranceProduct
from advisy.utils.audit import log_action
from advisy.utils.categories import normalize_category
from advisy.utils.parsing import clean_text
from advisy.utils.settings import get_setting

logger = logging.getLogger(__name__)

UNKNOWN_COMPANY = "Compagnie inconnue"
UNKNOWN_PRODUCT = "Produit inconnu"
DEFAULT_PRODUCT_CATEGORY = "LAMal"
DEFAULT_PRODUCT_SUBCATEGORY = "base"
DEFAULT_COMPANY_CATEGORY = "health"

EXACT_SCORE = 1.0
ALIAS_EXACT_SCORE = 0.95
CONTAINS_SCORE = 0.8
ALIAS_CONTAINS_SCORE = 0.75
TOKEN_OVERLAP_WEIGHT = 0.6
CATEGORY_BONUS = 0.05

# Catalog names shorter than this only match as a substring of the search
MIN_REVERSE_MATCH_LENGTH = 4

_TOKEN = re.compile(r"[\w']+")


class ProductResolutionError(Exception):
    """No product could be matched, created or borrowed from the catalog."""


@dataclass(frozen=True)
class ProductMatch:
    """Catalog hit for a searched product name."""

    product_id: int
    product_name: str
    match_score: float


def _normalize(text: str) -> str:
    return " ".join(text.lower().split())


def _tokens(text: str) -> set:
    return set(_TOKEN.findall(text.lower()))


def score_product(
    search_term: str,
    product_name: str,
    aliases: List[str],
    product_category: Optional[str] = None,
    category_hint: Optional[str] = None,
) -> float:
    """
    Similarity between a searched name and a catalog product.

    Exact name 1.0, exact alias 0.95, containment 0.8 (0.75 via alias),
    otherwise the share of searched tokens found in the name or aliases
    weighted by 0.6. A matching category adds 0.05, capped at 1.0.
    """
    term = _normalize(search_term)
    if not term:
        return 0.0

    name = _normalize(product_name)
    alias_names = [_normalize(a) for a in aliases if a]

    if term == name:
        score = EXACT_SCORE
    elif term in alias_names:
        score = ALIAS_EXACT_SCORE
    elif name and (term in name or name in term):
        score = CONTAINS_SCORE
    elif any(a and (term in a or a in term) for a in alias_names):
        score = ALIAS_CONTAINS_SCORE
    else:
        wanted = _tokens(term)
        known = _tokens(name)
        for alias in alias_names:
            known |= _tokens(alias)
        score = TOKEN_OVERLAP_WEIGHT * len(wanted & known) / len(wanted) if wanted else 0.0

    if score > 0 and category_hint and product_category:
        if normalize_category(product_category) == normalize_category(category_hint):
            score += CATEGORY_BONUS

    return min(score, EXACT_SCORE)


def _company_name_filter(name: str):
    """
    Catalog name contains the searched name, or the other way round.

    The reverse direction ("Helsana Versicherungen AG" finding "Helsana")
    needs a catalog name of at least MIN_REVERSE_MATCH_LENGTH characters.
    """
    return or_(
        InsuranceCompany.name.ilike(f"%{name}%"),
        and_(
            func.length(InsuranceCompany.name) >= MIN_REVERSE_MATCH_LENGTH,
            literal(name).ilike(literal("%") + InsuranceCompany.name + literal("%")),
        ),
    )


class ProductResolver:
    """Find-or-create access to the shared product catalog."""

    def __init__(self, db: AsyncSession, context: SessionContext) -> None:
        self.db = db
        self.context = context

    async def find_product_by_alias(
        self,
        search_term: str,
        company_name: Optional[str] = None,
        category_hint: Optional[str] = None,
    ) -> List[ProductMatch]:
        """
        Score active catalog products against a searched name.

        Returns matches above the configured minimum score, best first;
        equal scores keep catalog insertion order.
        """
        term = clean_text(search_term)
        if not term:
            return []

        query = (
            select(InsuranceProduct)
            .join(InsuranceProduct.company)
            .where(InsuranceProduct.status == "active")
            .options(selectinload(InsuranceProduct.aliases))
            .order_by(InsuranceProduct.id)
        )
        company = clean_text(company_name)
        if company:
            query = query.where(_company_name_filter(company))

        result = await self.db.execute(query)
        products = result.scalars().all()

        min_score = await get_setting(
            self.db, "ia_scan_min_match_score", settings.ia_scan_min_match_score
        )

        matches = []
        for product in products:
            score = score_product(
                term,
                product.name,
                [a.alias for a in product.aliases],
                product.category,
                category_hint,
            )
            if score >= min_score:
                matches.append(ProductMatch(product.id, product.name, round(score, 4)))

        # Stable sort over id-ordered rows: ties resolve to the oldest product
        matches.sort(key=lambda m: -m.match_score)
        return matches

    async def find_company(self, name: Optional[str]) -> Optional[InsuranceCompany]:
        company_name = clean_text(name) or UNKNOWN_COMPANY
        result = await self.db.execute(
            select(InsuranceCompany)
            .where(_company_name_filter(company_name))
            .order_by(InsuranceCompany.id)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def find_or_create_company(self, name: Optional[str]) -> InsuranceCompany:
        """Resolve a company by name, creating an active one when missing."""
        company = await self.find_company(name)
        if company:
            return company

        company = InsuranceCompany(
            name=clean_text(name) or UNKNOWN_COMPANY,
            status="active",
            category=DEFAULT_COMPANY_CATEGORY,
        )
        self.db.add(company)
        await self.db.flush()
        logger.info(f"Created insurance company '{company.name}' (id={company.id})")
        return company

    async def resolve_or_create_product(
        self,
        product_name: Optional[str],
        company_name: Optional[str],
        category_hint: Optional[str] = None,
    ) -> int:
        """
        Return the catalog id for an extracted product.

        Raises:
            ProductResolutionError: creation failed and the catalog holds
                no active product to fall back on.
        """
        name = clean_text(product_name) or UNKNOWN_PRODUCT

        matches = await self.find_product_by_alias(name, company_name, category_hint)
        if matches:
            best = matches[0]
            logger.debug(
                f"Matched '{name}' to product {best.product_id} "
                f"'{best.product_name}' (score={best.match_score})"
            )
            return best.product_id

        try:
            async with self.db.begin_nested():
                company = await self.find_or_create_company(company_name)
                product = InsuranceProduct(
                    company_id=company.id,
                    name=name,
                    category=category_hint or DEFAULT_PRODUCT_CATEGORY,
                    subcategory=DEFAULT_PRODUCT_SUBCATEGORY,
                    status="active",
                    source="ia_scan",
                )
                self.db.add(product)
                await self.db.flush()
        except SQLAlchemyError as e:
            logger.warning(
                f"Could not create product '{name}' for '{company_name}': {e}. "
                f"Falling back to an existing product"
            )
            fallback_id = await self._any_active_product_id()
            if fallback_id is None:
                raise ProductResolutionError(
                    f"No product available for '{name}' ({company_name or 'unknown company'})"
                ) from e
            logger.warning(f"Product '{name}' resolved to fallback product {fallback_id}")
            return fallback_id

        await log_action(
            self.db,
            self.context,
            AuditAction.PRODUCT_AUTO_CREATED,
            target_type="product",
            target_id=product.id,
            action_metadata={"name": name, "company": company.name, "source": "ia_scan"},
        )
        logger.info(f"Created product '{name}' (id={product.id}) for company '{company.name}'")
        return product.id

    async def _any_active_product_id(self) -> Optional[int]:
        result = await self.db.execute(
            select(InsuranceProduct.id)
            .where(InsuranceProduct.status == "active")
            .order_by(InsuranceProduct.id)
            .limit(1)
        )
        return result.scalar_one_or_none()

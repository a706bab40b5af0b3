"""
Seed the insurance catalog and a small collaborator team.

Usage:
    python scripts/seed_catalog.py --tenant <tenant-id>

Or with custom DATABASE_URL:
    DATABASE_URL="postgresql://..." python scripts/seed_catalog.py

This script creates (skipping rows that already exist):
- Swiss health and life insurers with their main products and aliases
- An agent and a manager with commission rates
"""

import asyncio
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from advisy.config import settings
from advisy.models import (
    COLLABORATOR_TYPE,
    Client,
    InsuranceCompany,
    InsuranceProduct,
    ProductAlias,
)


CATALOG = [
    {
        "company": "CSS Assurance",
        "category": "health",
        "products": [
            ("LAMal Standard", "LAMal", "base", ["Assurance de base", "KVG Grundversicherung"]),
            ("myFlex Economy", "LCA", "complementaire", ["myFlex"]),
        ],
    },
    {
        "company": "AXA",
        "category": "life",
        "products": [
            ("SmartFlex 3a", "life", "3a", ["Prévoyance 3a", "Pilier 3a"]),
            ("Protection ménage", "menage", None, ["RC ménage"]),
        ],
    },
    {
        "company": "Groupe Mutuel",
        "category": "health",
        "products": [
            ("Basis LAMal", "LAMal", "base", ["PrimaFlex"]),
        ],
    },
]

TEAM = [
    {
        "first_name": "Marc",
        "last_name": "Dubois",
        "email": "marc.dubois@example.ch",
        "commission_rate": 50,
        "commission_rate_lca": 40,
        "commission_rate_vie": 45,
        "manager_commission_rate_lca": 10,
        "manager_commission_rate_vie": 15,
    },
    {
        "first_name": "Julie",
        "last_name": "Favre",
        "email": "julie.favre@example.ch",
        "commission_rate": 30,
        "commission_rate_lca": 25,
    },
]


async def seed_company(db: AsyncSession, entry: dict) -> InsuranceCompany:
    result = await db.execute(
        select(InsuranceCompany).where(InsuranceCompany.name == entry["company"])
    )
    company = result.scalar_one_or_none()
    if company:
        print(f"Company already exists: {company.name}")
        return company

    company = InsuranceCompany(name=entry["company"], category=entry["category"], status="active")
    db.add(company)
    await db.flush()
    print(f"Created company: {company.name}")

    for name, category, subcategory, aliases in entry["products"]:
        product = InsuranceProduct(
            company_id=company.id,
            name=name,
            category=category,
            subcategory=subcategory,
            status="active",
            source="import",
        )
        db.add(product)
        await db.flush()
        for alias in aliases:
            db.add(ProductAlias(product_id=product.id, alias=alias))
        print(f"  + product {name} ({len(aliases)} aliases)")

    return company


async def seed_team(db: AsyncSession, tenant_id: str) -> None:
    """Julie reports to Marc; Marc carries the manager override rates."""
    members = {}
    for entry in TEAM:
        result = await db.execute(
            select(Client).where(Client.email == entry["email"], Client.tenant_id == tenant_id)
        )
        member = result.scalar_one_or_none()
        if not member:
            member = Client(tenant_id=tenant_id, type_adresse=COLLABORATOR_TYPE, status="actif", **entry)
            db.add(member)
            await db.flush()
            print(f"Created collaborator: {member.display_name}")
        members[entry["email"]] = member

    julie = members["julie.favre@example.ch"]
    julie.manager_id = members["marc.dubois@example.ch"].id


async def seed_all(tenant_id: str):
    """Seed catalog and team."""
    print(f"\nConnecting to database...")
    print(f"URL: {settings.database_url[:50]}...")

    engine = create_async_engine(settings.database_url, echo=False)
    async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session() as db:
        print("\n=== Catalog ===\n")
        for entry in CATALOG:
            await seed_company(db, entry)

        print("\n=== Team ===\n")
        await seed_team(db, tenant_id)

        await db.commit()

    print("\nSeed complete.")
    await engine.dispose()


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Seed catalog and team for Advisy")
    parser.add_argument("--tenant", default=settings.default_tenant_id, help="Tenant id of the seeded team")

    args = parser.parse_args()
    if not args.tenant:
        parser.error("--tenant is required when DEFAULT_TENANT_ID is not set")

    asyncio.run(seed_all(args.tenant))

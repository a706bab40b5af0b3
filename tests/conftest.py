"""
Pytest configuration and fixtures.
"""

from datetime import date

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from advisy.context import Role, SessionContext
from advisy.models import (
    COLLABORATOR_TYPE,
    Base,
    Client,
    InsuranceCompany,
    InsuranceProduct,
    Policy,
    ProductAlias,
)


# Test database URL (use SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TENANT_ID = "tenant-1"


@pytest_asyncio.fixture
async def db_engine():
    """Create test database engine."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    # pysqlite's own transaction handling breaks SAVEPOINT; emit BEGIN ourselves
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """Create test database session."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session


@pytest.fixture
def context():
    return SessionContext(tenant_id=TENANT_ID, user_id="user-1", role=Role.AGENT)


@pytest_asyncio.fixture
async def catalog(db_session):
    """
    Small catalog:
    CSS Assurance: LAMal Standard (alias "Assurance de base"), myFlex Economy
    AXA: SmartFlex 3a
    """
    css = InsuranceCompany(name="CSS Assurance", category="health")
    axa = InsuranceCompany(name="AXA", category="life")
    db_session.add_all([css, axa])
    await db_session.flush()

    lamal = InsuranceProduct(company_id=css.id, name="LAMal Standard", category="LAMal", subcategory="base")
    flex = InsuranceProduct(company_id=css.id, name="myFlex Economy", category="LCA")
    smart = InsuranceProduct(company_id=axa.id, name="SmartFlex 3a", category="life", subcategory="3a")
    db_session.add_all([lamal, flex, smart])
    await db_session.flush()

    db_session.add(ProductAlias(product_id=lamal.id, alias="Assurance de base"))
    await db_session.commit()

    return {"css": css, "axa": axa, "lamal": lamal, "flex": flex, "smart": smart}


@pytest_asyncio.fixture
async def team(db_session):
    """
    Julie (agent, reports to Marc) and Marc (manager), plus Paul without rates.
    """
    marc = Client(
        tenant_id=TENANT_ID,
        type_adresse=COLLABORATOR_TYPE,
        first_name="Marc",
        last_name="Dubois",
        commission_rate=20,
        manager_commission_rate_lca=10,
        manager_commission_rate_vie=15,
    )
    db_session.add(marc)
    await db_session.flush()

    julie = Client(
        tenant_id=TENANT_ID,
        type_adresse=COLLABORATOR_TYPE,
        first_name="Julie",
        last_name="Favre",
        commission_rate=50,
        commission_rate_lca=40,
        commission_rate_vie=45,
        manager_id=marc.id,
    )
    paul = Client(
        tenant_id=TENANT_ID,
        type_adresse=COLLABORATOR_TYPE,
        first_name="Paul",
        last_name="Morel",
    )
    db_session.add_all([julie, paul])
    await db_session.commit()

    return {"marc": marc, "julie": julie, "paul": paul}


@pytest_asyncio.fixture
async def client_record(db_session, team):
    """Prospect followed by Julie."""
    client = Client(
        tenant_id=TENANT_ID,
        first_name="Anna",
        last_name="Keller",
        assigned_agent_id=team["julie"].id,
    )
    db_session.add(client)
    await db_session.commit()
    return client


@pytest_asyncio.fixture
async def policy(db_session, catalog, client_record):
    """Health policy of Anna on LAMal Standard."""
    policy = Policy(
        tenant_id=TENANT_ID,
        client_id=client_record.id,
        product_id=catalog["lamal"].id,
        status="active",
        start_date=date(2025, 1, 1),
        premium_monthly=350.0,
        premium_yearly=4200.0,
    )
    db_session.add(policy)
    await db_session.commit()
    return policy

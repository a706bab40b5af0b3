"""
Tests for commission persistence.
"""

from datetime import date
from types import SimpleNamespace

import pytest
from sqlalchemy import func, select

from advisy.context import Role, SessionContext
from advisy.models import AuditAction, AuditLog, Client, Commission, CommissionPartAgent, COLLABORATOR_TYPE
from advisy.services.commission import (
    CommissionNotFoundError,
    CommissionSplitError,
    PolicyNotFoundError,
    build_allocator,
    create_commission,
    get_assigned_agent_id,
    get_commission,
    get_policy_category,
    load_roster,
    update_commission_total,
)
from advisy.services.commission_allocator import RejectionReason


def _part(agent_id, rate):
    return SimpleNamespace(agent_id=agent_id, rate=rate)


class TestRoster:
    @pytest.mark.asyncio
    async def test_only_collaborators_of_tenant(self, db_session, context, team, client_record):
        db_session.add(Client(tenant_id="tenant-2", type_adresse=COLLABORATOR_TYPE, first_name="Zoe"))
        await db_session.flush()

        roster = await load_roster(db_session, context)

        assert [c.first_name for c in roster] == ["Julie", "Marc", "Paul"]

    @pytest.mark.asyncio
    async def test_policy_lookups(self, db_session, context, policy, team):
        assert await get_policy_category(db_session, context, policy.id) == "LAMal"
        assert await get_assigned_agent_id(db_session, context, policy.id) == team["julie"].id


class TestBuildAllocator:
    @pytest.mark.asyncio
    async def test_seeded_from_assigned_agent(self, db_session, context, team):
        allocator, rejections = await build_allocator(
            db_session, context, 1000, "LAMal", assigned_agent_id=team["julie"].id
        )

        assert [(p.agent_id, p.rate) for p in allocator.parts] == [
            (team["julie"].id, 40.0),
            (team["marc"].id, 10.0),
        ]
        assert rejections == []

    @pytest.mark.asyncio
    async def test_requested_parts_and_rejections(self, db_session, context, team):
        allocator, rejections = await build_allocator(
            db_session,
            context,
            1000,
            "auto",
            assigned_agent_id=team["julie"].id,
            requested=[(team["marc"].id, 70), (team["paul"].id, None), (team["julie"].id, 40)],
        )

        assert [p.agent_id for p in allocator.parts] == [team["marc"].id]
        assert [(agent_id, r.reason) for agent_id, r in rejections] == [
            (team["paul"].id, RejectionReason.NO_RATE),
            (team["julie"].id, RejectionReason.RATE_EXCEEDED),
        ]


class TestCreateCommission:
    @pytest.mark.asyncio
    async def test_persists_commission_and_parts(self, db_session, context, team, policy):
        commission = await create_commission(
            db_session,
            context,
            policy.id,
            1200,
            [_part(team["julie"].id, 40), _part(team["marc"].id, 10)],
            commission_date=date(2025, 4, 15),
        )

        parts = (await db_session.execute(
            select(CommissionPartAgent).where(CommissionPartAgent.commission_id == commission.id)
        )).scalars().all()
        assert [(p.agent_id, p.rate, p.amount) for p in parts] == [
            (team["julie"].id, 40, 480.0),
            (team["marc"].id, 10, 120.0),
        ]
        assert commission.tenant_id == context.tenant_id
        assert commission.total_amount == 1200
        assert (commission.period_month, commission.period_year) == (4, 2025)

        log = (await db_session.execute(select(AuditLog))).scalar_one()
        assert log.action == AuditAction.COMMISSION_CREATED
        assert log.target_id == commission.id

    @pytest.mark.asyncio
    async def test_duplicate_agent_rejected(self, db_session, context, team, policy):
        with pytest.raises(CommissionSplitError):
            await create_commission(
                db_session, context, policy.id, 1000,
                [_part(team["julie"].id, 40), _part(team["julie"].id, 10)],
            )
        assert await db_session.scalar(select(func.count()).select_from(Commission)) == 0

    @pytest.mark.asyncio
    async def test_over_one_hundred_rejected(self, db_session, context, team, policy):
        with pytest.raises(CommissionSplitError):
            await create_commission(
                db_session, context, policy.id, 1000,
                [_part(team["julie"].id, 60), _part(team["paul"].id, 41)],
            )

    @pytest.mark.asyncio
    async def test_unknown_policy(self, db_session, context, team):
        with pytest.raises(PolicyNotFoundError):
            await create_commission(db_session, context, 404, 1000, [])

    @pytest.mark.asyncio
    async def test_agent_outside_roster_rejected(self, db_session, context, team, policy):
        outsider = Client(tenant_id="tenant-2", type_adresse=COLLABORATOR_TYPE, first_name="Zoe", commission_rate=30)
        db_session.add(outsider)
        await db_session.flush()

        with pytest.raises(CommissionSplitError):
            await create_commission(
                db_session, context, policy.id, 1000,
                [_part(team["julie"].id, 40), _part(outsider.id, 30)],
            )
        with pytest.raises(CommissionSplitError):
            await create_commission(db_session, context, policy.id, 1000, [_part(404, 10)])

    @pytest.mark.asyncio
    async def test_policy_of_other_tenant(self, db_session, team, policy):
        other = SessionContext(tenant_id="tenant-2", user_id="user-2", role=Role.AGENT)

        with pytest.raises(PolicyNotFoundError):
            await create_commission(db_session, other, policy.id, 1000, [])
        assert await get_policy_category(db_session, other, policy.id) is None
        assert await get_assigned_agent_id(db_session, other, policy.id) is None


class TestUpdateTotal:
    @pytest.mark.asyncio
    async def test_recomputes_part_amounts(self, db_session, context, team, policy):
        commission = await create_commission(
            db_session, context, policy.id, 1000,
            [_part(team["julie"].id, 40), _part(team["marc"].id, 10)],
        )
        await db_session.commit()

        updated = await update_commission_total(db_session, context, commission.id, 2000)

        assert updated.amount == 2000
        assert [(p.rate, p.amount) for p in updated.parts] == [(40, 800.0), (10, 200.0)]
        actions = (await db_session.execute(select(AuditLog.action).order_by(AuditLog.id))).scalars().all()
        assert actions == [AuditAction.COMMISSION_CREATED, AuditAction.COMMISSION_UPDATED]

    @pytest.mark.asyncio
    async def test_unknown_commission(self, db_session, context):
        with pytest.raises(CommissionNotFoundError):
            await update_commission_total(db_session, context, 404, 10)

    @pytest.mark.asyncio
    async def test_commission_of_other_tenant(self, db_session, context, team, policy):
        commission = await create_commission(
            db_session, context, policy.id, 1000, [_part(team["julie"].id, 40)],
        )
        await db_session.commit()
        other = SessionContext(tenant_id="tenant-2", user_id="user-2", role=Role.AGENT)

        with pytest.raises(CommissionNotFoundError):
            await update_commission_total(db_session, other, commission.id, 1)
        assert await get_commission(db_session, other, commission.id) is None

        refreshed = await get_commission(db_session, context, commission.id)
        assert refreshed.amount == 1000

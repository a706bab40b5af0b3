"""
Commission split between collaborators.

Rules:
- The rates of all parts of a commission never exceed 100%
- Default agent rate: category rate (health -> commission_rate_lca,
  life -> commission_rate_vie), else the generic commission_rate
- An agent's manager is seated with its override rate
  (manager_commission_rate_lca / _vie, no generic fallback) when agent
  and manager fit together in the remaining rate
- amount = total_amount * rate / 100, recomputed on every change

Rejections are returned, never raised: the form re-renders from
the result without a try/except.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional

from advisy.context import SessionContext
from advisy.utils.categories import HEALTH, LIFE, normalize_category

MAX_TOTAL_RATE = 100.0
MANAGER_SUFFIX = " (Manager)"


def part_amount(total_amount: float, rate: float) -> float:
    """Amount of a part: rate percent of the total."""
    return total_amount * rate / 100


class RejectionReason(str, Enum):
    """Why an allocation request left the parts unchanged."""
    DUPLICATE_AGENT = "duplicate_agent"
    UNKNOWN_AGENT = "unknown_agent"
    NO_RATE = "no_rate"
    RATE_EXCEEDED = "rate_exceeded"
    INVALID_RATE = "invalid_rate"


@dataclass(frozen=True)
class Collaborator:
    """Roster entry: an agent or manager with configured rates (percent)."""

    id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    commission_rate: Optional[float] = None
    commission_rate_lca: Optional[float] = None
    commission_rate_vie: Optional[float] = None
    manager_id: Optional[int] = None
    manager_commission_rate_lca: Optional[float] = None
    manager_commission_rate_vie: Optional[float] = None

    @property
    def display_name(self) -> str:
        full_name = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return full_name or self.email or str(self.id)

    @classmethod
    def from_record(cls, record) -> "Collaborator":
        """Build from any object exposing the clients table columns."""
        return cls(
            id=record.id,
            first_name=record.first_name,
            last_name=record.last_name,
            email=record.email,
            commission_rate=record.commission_rate,
            commission_rate_lca=record.commission_rate_lca,
            commission_rate_vie=record.commission_rate_vie,
            manager_id=record.manager_id,
            manager_commission_rate_lca=record.manager_commission_rate_lca,
            manager_commission_rate_vie=record.manager_commission_rate_vie,
        )


@dataclass
class CommissionPart:
    """Share of the commission allocated to one collaborator."""

    agent_id: int
    agent_name: str
    rate: float
    amount: float
    is_manager: bool = False


@dataclass
class AllocationResult:
    """Outcome of a mutating allocator call."""

    added: List[CommissionPart] = field(default_factory=list)
    rejected: bool = False
    reason: Optional[RejectionReason] = None
    manager_skipped: bool = False

    @property
    def applied(self) -> bool:
        return not self.rejected

    @classmethod
    def reject(cls, reason: RejectionReason) -> "AllocationResult":
        return cls(rejected=True, reason=reason)


ManagerLookup = Callable[[Collaborator], Optional[Collaborator]]


def agent_rate_for(agent: Collaborator, category: str) -> float:
    """Default rate of an agent for the given normalized category."""
    if category == HEALTH and agent.commission_rate_lca:
        return float(agent.commission_rate_lca)
    if category == LIFE and agent.commission_rate_vie:
        return float(agent.commission_rate_vie)
    return float(agent.commission_rate or 0)


def manager_rate_for(manager: Collaborator, agent: Collaborator, category: str) -> float:
    """
    Override rate of a manager on the agent's business.

    The manager row's own setting wins; the agent row's setting is used
    when the manager row leaves it empty. Categories other than health
    and life carry no override.
    """
    if category == HEALTH:
        rate = manager.manager_commission_rate_lca
        if rate is None:
            rate = agent.manager_commission_rate_lca
    elif category == LIFE:
        rate = manager.manager_commission_rate_vie
        if rate is None:
            rate = agent.manager_commission_rate_vie
    else:
        return 0.0
    return float(rate or 0)


class CommissionAllocator:
    """
    Maintains the parts of one commission.

    Usage:
        allocator = CommissionAllocator(context, roster, total_amount=1200, category="health")
        result = allocator.add_part(agent_id)
        if result.rejected:
            # result.reason tells why
        allocator.recompute_amounts(1500)
    """

    def __init__(
        self,
        context: SessionContext,
        roster: Iterable[Collaborator],
        total_amount: float = 0.0,
        category: Optional[str] = None,
    ) -> None:
        self.context = context
        self._roster: Dict[int, Collaborator] = {c.id: c for c in roster}
        self._parts: List[CommissionPart] = []
        self._total_amount = float(total_amount or 0)
        self.category = normalize_category(category)

    # ── Read helpers ─────────────────────────────────────

    @property
    def parts(self) -> List[CommissionPart]:
        return [replace(p) for p in self._parts]

    @property
    def total_amount(self) -> float:
        return self._total_amount

    @property
    def total_rate(self) -> float:
        return sum(p.rate for p in self._parts)

    @property
    def remaining_rate(self) -> float:
        return MAX_TOTAL_RATE - self.total_rate

    def has_part(self, agent_id: int) -> bool:
        return self._find(agent_id) is not None

    def to_rows(self, commission_id: int) -> List[dict]:
        """Rows of the commission_part_agent table."""
        return [
            {
                "commission_id": commission_id,
                "agent_id": p.agent_id,
                "rate": p.rate,
                "amount": p.amount,
            }
            for p in self._parts
        ]

    # ── Mutations ────────────────────────────────────────

    def add_part(self, agent_id: int, requested_rate: Optional[float] = None) -> AllocationResult:
        """Seat an agent, and its manager when both fit in the remaining rate."""
        if self.has_part(agent_id):
            return AllocationResult.reject(RejectionReason.DUPLICATE_AGENT)

        agent = self._roster.get(agent_id)
        if agent is None:
            return AllocationResult.reject(RejectionReason.UNKNOWN_AGENT)

        if requested_rate is None or requested_rate <= 0:
            rate = agent_rate_for(agent, self.category)
        else:
            rate = float(requested_rate)

        if rate <= 0:
            return AllocationResult.reject(RejectionReason.NO_RATE)

        remaining = self.remaining_rate
        if rate > remaining:
            return AllocationResult.reject(RejectionReason.RATE_EXCEEDED)

        result = AllocationResult(added=[self._seat(agent, rate)])

        manager = self._roster_manager(agent)
        if manager is not None and not self.has_part(manager.id):
            manager_rate = manager_rate_for(manager, agent, self.category)
            if manager_rate > 0:
                if rate + manager_rate <= remaining:
                    result.added.append(self._seat(manager, manager_rate, is_manager=True))
                else:
                    result.manager_skipped = True

        result.added = [replace(p) for p in result.added]
        return result

    def update_part_rate(self, agent_id: int, new_rate: float) -> AllocationResult:
        """Change the rate of a seated collaborator."""
        part = self._find(agent_id)
        if part is None:
            return AllocationResult.reject(RejectionReason.UNKNOWN_AGENT)
        if new_rate < 0:
            return AllocationResult.reject(RejectionReason.INVALID_RATE)

        others = sum(p.rate for p in self._parts if p.agent_id != agent_id)
        if new_rate + others > MAX_TOTAL_RATE:
            return AllocationResult.reject(RejectionReason.RATE_EXCEEDED)

        part.rate = float(new_rate)
        part.amount = self._amount(part.rate)
        return AllocationResult(added=[replace(part)])

    def remove_part(self, agent_id: int) -> None:
        """Drop a part. A manager seated with the agent stays."""
        self._parts = [p for p in self._parts if p.agent_id != agent_id]

    def recompute_amounts(self, new_total_amount: float) -> None:
        """Apply a new commission total to every part."""
        self._total_amount = float(new_total_amount or 0)
        for part in self._parts:
            part.amount = self._amount(part.rate)

    def auto_populate_from_assignment(
        self,
        assigned_agent_id: Optional[int],
        manager_lookup: Optional[ManagerLookup] = None,
    ) -> List[CommissionPart]:
        """
        Seed an empty split from the client's assigned agent.

        Runs only on an empty roster, so the manager override is added
        without checking the remaining rate.
        """
        if self._parts or assigned_agent_id is None:
            return []

        agent = self._roster.get(assigned_agent_id)
        if agent is None:
            return []

        added = [self._seat(agent, agent_rate_for(agent, self.category))]

        lookup = manager_lookup or self._roster_manager
        manager = lookup(agent)
        if manager is not None and manager.id != agent.id:
            manager_rate = manager_rate_for(manager, agent, self.category)
            if manager_rate > 0:
                added.append(self._seat(manager, manager_rate, is_manager=True))

        return [replace(p) for p in added]

    def reset(self) -> None:
        self._parts = []

    # ── Internals ────────────────────────────────────────

    def _find(self, agent_id: int) -> Optional[CommissionPart]:
        for part in self._parts:
            if part.agent_id == agent_id:
                return part
        return None

    def _roster_manager(self, agent: Collaborator) -> Optional[Collaborator]:
        if agent.manager_id is None or agent.manager_id == agent.id:
            return None
        return self._roster.get(agent.manager_id)

    def _amount(self, rate: float) -> float:
        return part_amount(self._total_amount, rate)

    def _seat(self, collaborator: Collaborator, rate: float, is_manager: bool = False) -> CommissionPart:
        name = collaborator.display_name
        if is_manager:
            name += MANAGER_SUFFIX
        part = CommissionPart(
            agent_id=collaborator.id,
            agent_name=name,
            rate=float(rate),
            amount=self._amount(rate),
            is_manager=is_manager,
        )
        self._parts.append(part)
        return part

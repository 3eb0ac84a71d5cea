from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Literal, Optional
from uuid import UUID

from ..snapshot.models import Owner

Verdict = Literal["warn", "clear"]

ActionType = Literal[
    "start_timer",
    "warn",
    "clear",
    "status",
    "tempban",
    "permban",
]


@dataclass(frozen=True)
class OwnerVerdict:
    """What happens to one violating owner this pass."""

    owner: Owner
    verdict: Verdict
    # Timer start this pass is measured from; None when no timer applies.
    timer_started_at: Optional[int] = None
    start_timer: bool = False
    notify: bool = False


@dataclass(frozen=True)
class ClearPlan:
    owner: Owner
    # Counter values after this pass's increment.
    violations: int
    bans: Optional[int]
    action: Literal["status", "tempban", "permban"]
    remaining_bans: int = 0


@dataclass(frozen=True)
class PassPlan:
    now: int
    verdicts: tuple[OwnerVerdict, ...]
    clears: tuple[ClearPlan, ...]

    @property
    def micro_owners(self) -> frozenset[UUID]:
        return frozenset(v.owner.id for v in self.verdicts if v.verdict == "warn")

    @property
    def cleared_owners(self) -> frozenset[UUID]:
        return frozenset(c.owner.id for c in self.clears)


@dataclass(frozen=True)
class EnforcementAction:
    action_type: ActionType
    owner_id: UUID
    owner_name: str
    params: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PassResult:
    path: str
    skipped: bool = False
    bricks_scanned: int = 0
    violators: int = 0
    warned: int = 0
    cleared: int = 0
    bans_issued: int = 0
    bricks_restored: int = 0
    timers_removed: int = 0
    duration_ms: float = 0.0
    actions: tuple[EnforcementAction, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data.pop("actions")
        return data

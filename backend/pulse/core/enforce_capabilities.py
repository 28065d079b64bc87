"""Capability Enforcement — explicit actor context checked by every command.

Invariants:
    - Every command receives an ActorContext; there is no ambient "current user"
    - Mutations on classes, ledger, settings and automation require MASTER
    - A student may only act on their own student id (self-service payments)
    - An actor never touches another academy's collections
    - Violations raise AuthorizationError, never silently no-op

Design Decisions:
    - Frozen dataclass: context cannot be altered while a command runs
    - system_actor() is a MASTER of one academy, used by the automation loop
"""

from dataclasses import dataclass

from pulse.core.domain_types import AcademyId, ActorRole, StudentId
from pulse.core.errors import AuthorizationError, ErrorContext

SYSTEM_ACTOR_ID = "system"


@dataclass(frozen=True)
class ActorContext:
    actor_id: str
    academy_id: AcademyId
    role: ActorRole
    student_id: StudentId | None = None

    @property
    def is_master(self) -> bool:
        return self.role == ActorRole.MASTER


def system_actor(academy_id: str) -> ActorContext:
    return ActorContext(SYSTEM_ACTOR_ID, academy_id, ActorRole.MASTER)


def require_academy(ctx: ActorContext, academy_id: str, command: str) -> None:
    if ctx.academy_id != academy_id:
        raise AuthorizationError(
            command, ctx.actor_id, ErrorContext(academy_id=academy_id),
        )


def require_master(ctx: ActorContext, academy_id: str, command: str) -> None:
    """Central capability check for privileged commands."""
    require_academy(ctx, academy_id, command)
    if not ctx.is_master:
        raise AuthorizationError(
            command, ctx.actor_id, ErrorContext(academy_id=academy_id),
        )


def require_self_or_master(
    ctx: ActorContext, academy_id: str, student_id: str, command: str,
) -> None:
    """Masters act on anyone; students only on themselves."""
    require_academy(ctx, academy_id, command)
    if ctx.is_master:
        return
    if ctx.student_id is None or ctx.student_id != student_id:
        raise AuthorizationError(
            command, ctx.actor_id, ErrorContext(academy_id=academy_id),
        )

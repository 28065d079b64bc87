"""API Dependencies — session registry lookup and actor context from headers.

Invariants:
    - Every academy route resolves its AcademySession through get_registry
    - The actor is built from X-Actor-* headers on every request; missing or
      malformed headers are a 400 before any service runs
    - X-Academy-Id defaults to the path academy; a mismatch is left for the
      capability check to reject (403)

Design Decisions:
    - Registry lives on app.state (set in lifespan) and is reached through a
      dependency so tests swap it with dependency_overrides
    - Credentials are out of scope: headers are trusted as set by the gateway
"""

from fastapi import Depends, Header, Request

from pulse.core.domain_types import ActorRole
from pulse.core.enforce_capabilities import ActorContext
from pulse.services.academy_session import AcademySession
from pulse.services.session_registry import AcademySessionRegistry


def get_registry(request: Request) -> AcademySessionRegistry:
    return request.app.state.registry


async def get_academy_session(
    academy_id: str,
    registry: AcademySessionRegistry = Depends(get_registry),
) -> AcademySession:
    return await registry.get_or_open(academy_id)


def get_actor(
    academy_id: str,
    x_actor_id: str = Header(min_length=1, max_length=64),
    x_actor_role: ActorRole = Header(),
    x_student_id: str | None = Header(None, max_length=64),
    x_academy_id: str | None = Header(None, max_length=64),
) -> ActorContext:
    return ActorContext(
        actor_id=x_actor_id,
        academy_id=x_academy_id or academy_id,
        role=x_actor_role,
        student_id=x_student_id,
    )

from __future__ import annotations

import uuid
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.errors import ForbiddenError
from taskflow.models.enums import TeamRole
from taskflow.models.team_member import TeamMember


TEAM_MANAGERS = (TeamRole.owner, TeamRole.admin)
TEAM_OWNER_ONLY = (TeamRole.owner,)


async def get_membership(db: AsyncSession, *, team_id: uuid.UUID, user_id: uuid.UUID) -> TeamMember | None:
    return (
        await db.execute(select(TeamMember).where(TeamMember.team_id == team_id, TeamMember.user_id == user_id))
    ).scalar_one_or_none()


def ensure_member(membership: TeamMember | None, message: str = "Not a member of this team") -> TeamMember:
    if membership is None:
        raise ForbiddenError(message)
    return membership


def ensure_team_role(
    membership: TeamMember | None,
    roles: Iterable[TeamRole],
    message: str = "Insufficient permissions",
) -> TeamMember:
    if membership is None or membership.role not in tuple(roles):
        raise ForbiddenError(message)
    return membership


async def require_membership(db: AsyncSession, *, team_id: uuid.UUID, user) -> TeamMember:
    return ensure_member(await get_membership(db, team_id=team_id, user_id=user.id))


async def require_role(
    db: AsyncSession,
    *,
    team_id: uuid.UUID,
    user,
    roles: Iterable[TeamRole],
    message: str = "Insufficient permissions",
) -> TeamMember:
    membership = await get_membership(db, team_id=team_id, user_id=user.id)
    return ensure_team_role(membership, roles, message)

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.api.access import TEAM_OWNER_ONLY, ensure_member, get_membership, require_role
from taskflow.db import commit_or_conflict
from taskflow.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from taskflow.models.enums import InvitationStatus, PrivacyLevel, TeamRole
from taskflow.models.team import Team
from taskflow.models.team_invitation import TeamInvitation
from taskflow.models.team_member import TeamMember
from taskflow.models.user import User


TEAM_NAME_MAX_LENGTH = 255
DUPLICATE_TEAM_NAME = "You already have a team with this name"
ASSIGNABLE_ROLES = (TeamRole.member, TeamRole.admin)


@dataclass
class TeamDetail:
    team: Team
    role: TeamRole
    owner_name: str | None = None
    owner_email: str | None = None
    members: list[tuple[TeamMember, str | None, str | None]] = field(default_factory=list)
    pending_invitations: int = 0


def clean_team_name(name: str | None) -> str:
    if not isinstance(name, str) or not name.strip():
        raise BadRequestError("Team name is required")
    name = name.strip()
    if len(name) > TEAM_NAME_MAX_LENGTH:
        raise BadRequestError(f"Team name must be {TEAM_NAME_MAX_LENGTH} characters or less")
    return name


def _clean_description(description: str | None) -> str | None:
    if description is None:
        return None
    return description.strip() or None


async def _owner_has_team_named(
    db: AsyncSession, *, owner_id: uuid.UUID, name: str, exclude_team_id: uuid.UUID | None = None
) -> bool:
    stmt = select(Team.id).where(Team.owner_id == owner_id, Team.name == name)
    if exclude_team_id is not None:
        stmt = stmt.where(Team.id != exclude_team_id)
    return (await db.execute(stmt.limit(1))).scalar_one_or_none() is not None


async def create_team(
    db: AsyncSession,
    *,
    user,
    name: str,
    description: str | None = None,
    privacy_level: PrivacyLevel = PrivacyLevel.private,
    now: datetime | None = None,
) -> Team:
    """Create a team and its owner membership in a single commit."""
    now = now or datetime.now(timezone.utc)
    name = clean_team_name(name)
    if await _owner_has_team_named(db, owner_id=user.id, name=name):
        raise ConflictError(DUPLICATE_TEAM_NAME)

    team = Team(
        name=name,
        description=_clean_description(description),
        owner_id=user.id,
        privacy_level=privacy_level,
        created_at=now,
        updated_at=now,
    )
    db.add(team)
    await db.flush()
    db.add(TeamMember(team_id=team.id, user_id=user.id, role=TeamRole.owner, joined_at=now))
    await commit_or_conflict(db, DUPLICATE_TEAM_NAME)
    return team


async def list_teams(db: AsyncSession, *, user) -> list[tuple[Team, TeamRole]]:
    rows = (
        await db.execute(
            select(Team, TeamMember.role)
            .join(TeamMember, TeamMember.team_id == Team.id)
            .where(TeamMember.user_id == user.id)
            .order_by(Team.created_at)
        )
    ).all()
    return [(team, role) for team, role in rows]


async def get_team_detail(
    db: AsyncSession, *, user, team_id: uuid.UUID, now: datetime | None = None
) -> TeamDetail:
    now = now or datetime.now(timezone.utc)
    membership = await get_membership(db, team_id=team_id, user_id=user.id)
    if membership is None:
        raise NotFoundError("Team not found or access denied")

    row = (
        await db.execute(
            select(Team, User.name, User.email).outerjoin(User, User.id == Team.owner_id).where(Team.id == team_id)
        )
    ).first()
    if row is None:
        raise NotFoundError("Team not found")
    team, owner_name, owner_email = row

    members = (
        await db.execute(
            select(TeamMember, User.name, User.email)
            .outerjoin(User, User.id == TeamMember.user_id)
            .where(TeamMember.team_id == team_id)
            .order_by(TeamMember.joined_at)
        )
    ).all()

    pending = (
        await db.execute(
            select(func.count(TeamInvitation.id)).where(
                TeamInvitation.team_id == team_id,
                TeamInvitation.status == InvitationStatus.pending,
                TeamInvitation.expires_at >= now,
            )
        )
    ).scalar_one()

    return TeamDetail(
        team=team,
        role=membership.role,
        owner_name=owner_name,
        owner_email=owner_email,
        members=[(member, name, email) for member, name, email in members],
        pending_invitations=pending or 0,
    )


async def get_team(db: AsyncSession, *, team_id: uuid.UUID) -> Team:
    team = (await db.execute(select(Team).where(Team.id == team_id))).scalar_one_or_none()
    if team is None:
        raise NotFoundError("Team not found")
    return team


async def update_team(
    db: AsyncSession,
    *,
    user,
    team_id: uuid.UUID,
    name: str | None = None,
    description: str | None = None,
    privacy_level: PrivacyLevel | None = None,
) -> Team:
    await require_role(db, team_id=team_id, user=user, roles=TEAM_OWNER_ONLY, message="Only team owner can update the team")
    team = await get_team(db, team_id=team_id)

    if name is not None:
        name = clean_team_name(name)
        if name != team.name and await _owner_has_team_named(
            db, owner_id=team.owner_id, name=name, exclude_team_id=team.id
        ):
            raise ConflictError(DUPLICATE_TEAM_NAME)
        team.name = name
    if description is not None:
        team.description = _clean_description(description)
    if privacy_level is not None:
        team.privacy_level = privacy_level
    team.updated_at = datetime.now(timezone.utc)

    await commit_or_conflict(db, DUPLICATE_TEAM_NAME)
    return team


async def delete_team(db: AsyncSession, *, user, team_id: uuid.UUID) -> None:
    await require_role(db, team_id=team_id, user=user, roles=TEAM_OWNER_ONLY, message="Only team owner can delete the team")
    team = await get_team(db, team_id=team_id)
    await db.delete(team)
    await db.commit()


async def _get_target_membership(db: AsyncSession, *, team_id: uuid.UUID, user_id: uuid.UUID) -> TeamMember:
    target = await get_membership(db, team_id=team_id, user_id=user_id)
    if target is None:
        raise NotFoundError("User is not a member of this team")
    return target


async def remove_member(db: AsyncSession, *, actor, team_id: uuid.UUID, target_user_id: uuid.UUID) -> None:
    membership = ensure_member(await get_membership(db, team_id=team_id, user_id=actor.id))
    # Leaving a team is a different flow; this path never removes the caller.
    if actor.id == target_user_id:
        raise BadRequestError("Cannot remove yourself from the team")
    if membership.role != TeamRole.owner:
        raise ForbiddenError("Only team owner can remove members")

    target = await _get_target_membership(db, team_id=team_id, user_id=target_user_id)
    if target.role == TeamRole.owner:
        raise BadRequestError("Cannot remove the team owner")

    await db.delete(target)
    await db.commit()


async def update_member_role(
    db: AsyncSession,
    *,
    actor,
    team_id: uuid.UUID,
    target_user_id: uuid.UUID,
    role: TeamRole | str,
) -> TeamMember:
    if role not in ASSIGNABLE_ROLES:
        raise BadRequestError("Invalid role. Must be 'member' or 'admin'")

    membership = ensure_member(await get_membership(db, team_id=team_id, user_id=actor.id))
    if membership.role != TeamRole.owner:
        raise ForbiddenError("Only team owner can update member roles")

    target = await _get_target_membership(db, team_id=team_id, user_id=target_user_id)
    if target.role == TeamRole.owner:
        raise BadRequestError("Cannot change owner role")

    target.role = TeamRole(role)
    await db.commit()
    return target

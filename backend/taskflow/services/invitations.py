"""Team invitation lifecycle.

Stored transitions only leave ``pending``: to ``accepted``, ``declined`` or
``cancelled``. Expiry is never written; an invitation whose ``expires_at`` has
passed is treated as expired wherever it is read or acted on, even though its
stored status still says pending.
"""

from __future__ import annotations

import logging
import secrets
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.api.access import TEAM_MANAGERS, get_membership, require_membership, require_role
from taskflow.config import settings
from taskflow.db import commit_or_conflict
from taskflow.errors import BadRequestError, ConflictError, ExpiredError, ForbiddenError, InternalError, NotFoundError
from taskflow.models.enums import InvitationStatus, TeamRole
from taskflow.models.team import Team
from taskflow.models.team_invitation import TeamInvitation
from taskflow.models.team_member import TeamMember
from taskflow.models.user import User
from taskflow.services.email import EmailResult, send_team_invitation_email
from taskflow.services.teams import get_team


logger = logging.getLogger(__name__)

DUPLICATE_INVITATION = "Invitation already sent to this email"
ALREADY_MEMBER = "You are already a member of this team"
RESPONSE_ACTIONS = ("accept", "decline")

InvitationSender = Callable[..., Awaitable[EmailResult]]


@dataclass
class InvitationDetail:
    invitation: TeamInvitation
    team_name: str | None
    team_description: str | None
    inviter_name: str | None
    inviter_email: str | None


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_expired(invitation: TeamInvitation, now: datetime) -> bool:
    return as_utc(now) > as_utc(invitation.expires_at)


def effective_status(invitation: TeamInvitation, now: datetime | None = None) -> InvitationStatus:
    """Only a pending invitation can lapse; answered ones keep their stored status."""
    now = now or datetime.now(timezone.utc)
    if invitation.status == InvitationStatus.pending and is_expired(invitation, now):
        return InvitationStatus.expired
    return invitation.status


def ensure_open(invitation: TeamInvitation, now: datetime) -> None:
    # Expiry wins over the stored status.
    if is_expired(invitation, now):
        raise ExpiredError("Invitation has expired")
    if invitation.status != InvitationStatus.pending:
        raise BadRequestError(f"Invitation has already been {invitation.status.value}")


def normalize_email(email: str | None) -> str:
    if not isinstance(email, str) or "@" not in email:
        raise BadRequestError("Valid email is required")
    return email.strip().lower()


def generate_invitation_token() -> str:
    return secrets.token_hex(32)


def build_invitation_url(token: str) -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}/invitations/{token}"


def inviter_display_name(user) -> str:
    return getattr(user, "name", None) or getattr(user, "email", None) or "A team member"


async def _notify(
    send: InvitationSender,
    *,
    invitation: TeamInvitation,
    team: Team,
    inviter,
) -> EmailResult:
    try:
        return await send(
            to=invitation.invited_email,
            team_name=team.name,
            inviter_name=inviter_display_name(inviter),
            invitation_url=build_invitation_url(invitation.token),
            expires_at=invitation.expires_at,
        )
    except Exception as exc:
        logger.exception("Invitation email sender raised for invitation %s", invitation.id)
        return EmailResult(success=False, error=str(exc))


async def _get_team_invitation(db: AsyncSession, *, team_id: uuid.UUID, invitation_id: uuid.UUID) -> TeamInvitation:
    invitation = (
        await db.execute(
            select(TeamInvitation).where(TeamInvitation.id == invitation_id, TeamInvitation.team_id == team_id)
        )
    ).scalar_one_or_none()
    if invitation is None:
        raise NotFoundError("Invitation not found")
    return invitation


async def create_invitation(
    db: AsyncSession,
    *,
    actor,
    team_id: uuid.UUID,
    email: str,
    send: InvitationSender = send_team_invitation_email,
    now: datetime | None = None,
) -> TeamInvitation:
    """Open an invitation and try to email it.

    The stored row is the source of truth: a failed delivery is logged and
    the invitation stays, so the link can be resent or shared by hand.
    """
    now = now or datetime.now(timezone.utc)
    email = normalize_email(email)
    await require_role(db, team_id=team_id, user=actor, roles=TEAM_MANAGERS)
    team = await get_team(db, team_id=team_id)

    existing = (
        await db.execute(
            select(TeamInvitation.id)
            .where(
                TeamInvitation.team_id == team_id,
                TeamInvitation.invited_email == email,
                TeamInvitation.status == InvitationStatus.pending,
            )
            .limit(1)
        )
    ).scalar_one_or_none()
    if existing is not None:
        raise ConflictError(DUPLICATE_INVITATION)

    invitation = TeamInvitation(
        team_id=team_id,
        invited_email=email,
        invited_by=actor.id,
        token=generate_invitation_token(),
        status=InvitationStatus.pending,
        expires_at=now + timedelta(days=settings.INVITATION_EXPIRE_DAYS),
        created_at=now,
        updated_at=now,
    )
    db.add(invitation)
    await commit_or_conflict(db, DUPLICATE_INVITATION)

    result = await _notify(send, invitation=invitation, team=team, inviter=actor)
    if not result.success:
        logger.error("Invitation %s created but email delivery failed: %s", invitation.id, result.error)
    return invitation


async def list_invitations(
    db: AsyncSession, *, actor, team_id: uuid.UUID
) -> tuple[Team, list[TeamInvitation]]:
    await require_membership(db, team_id=team_id, user=actor)
    team = await get_team(db, team_id=team_id)
    invitations = (
        await db.execute(
            select(TeamInvitation).where(TeamInvitation.team_id == team_id).order_by(TeamInvitation.created_at)
        )
    ).scalars().all()
    return team, list(invitations)


async def load_invitation_detail(db: AsyncSession, *, token: str) -> InvitationDetail:
    """Look up an invitation by token whatever its state."""
    row = (
        await db.execute(
            select(TeamInvitation, Team.name, Team.description, User.name, User.email)
            .outerjoin(Team, Team.id == TeamInvitation.team_id)
            .outerjoin(User, User.id == TeamInvitation.invited_by)
            .where(TeamInvitation.token == token)
        )
    ).first()
    if row is None:
        raise NotFoundError("Invitation not found")
    invitation, team_name, team_description, inviter_name, inviter_email = row
    return InvitationDetail(
        invitation=invitation,
        team_name=team_name,
        team_description=team_description,
        inviter_name=inviter_name,
        inviter_email=inviter_email,
    )


async def get_invitation_detail(db: AsyncSession, *, token: str, now: datetime | None = None) -> InvitationDetail:
    """Look up an invitation that can still be answered."""
    now = now or datetime.now(timezone.utc)
    detail = await load_invitation_detail(db, token=token)
    ensure_open(detail.invitation, now)
    return detail


async def resend_invitation(
    db: AsyncSession,
    *,
    actor,
    team_id: uuid.UUID,
    invitation_id: uuid.UUID,
    send: InvitationSender = send_team_invitation_email,
) -> TeamInvitation:
    """Send the same link again; token and expiry are left untouched."""
    await require_role(
        db, team_id=team_id, user=actor, roles=TEAM_MANAGERS, message="Not authorized to resend invitations"
    )
    invitation = await _get_team_invitation(db, team_id=team_id, invitation_id=invitation_id)
    if invitation.status != InvitationStatus.pending:
        raise BadRequestError("Invitation is not pending")
    team = await get_team(db, team_id=team_id)

    result = await _notify(send, invitation=invitation, team=team, inviter=actor)
    if not result.success:
        logger.error("Resending invitation %s failed: %s", invitation.id, result.error)
        raise InternalError("Failed to send email")
    return invitation


async def cancel_invitation(
    db: AsyncSession,
    *,
    actor,
    team_id: uuid.UUID,
    invitation_id: uuid.UUID,
    now: datetime | None = None,
) -> TeamInvitation:
    now = now or datetime.now(timezone.utc)
    await require_role(
        db, team_id=team_id, user=actor, roles=TEAM_MANAGERS, message="Not authorized to cancel invitations"
    )
    invitation = await _get_team_invitation(db, team_id=team_id, invitation_id=invitation_id)
    if invitation.status != InvitationStatus.pending:
        raise BadRequestError("Invitation is not pending")

    invitation.status = InvitationStatus.cancelled
    invitation.updated_at = now
    await db.commit()
    return invitation


async def respond_to_invitation(
    db: AsyncSession,
    *,
    user,
    token: str,
    action: str,
    now: datetime | None = None,
) -> TeamInvitation:
    now = now or datetime.now(timezone.utc)
    if action not in RESPONSE_ACTIONS:
        raise BadRequestError("Action must be 'accept' or 'decline'")

    invitation = (
        await db.execute(select(TeamInvitation).where(TeamInvitation.token == token))
    ).scalar_one_or_none()
    if invitation is None:
        raise NotFoundError("Invitation not found")
    ensure_open(invitation, now)
    # Compared as stored; the address was lower-cased when the invitation was created.
    if user.email != invitation.invited_email:
        raise ForbiddenError("This invitation was sent to a different email address")

    if action == "accept":
        if await get_membership(db, team_id=invitation.team_id, user_id=user.id) is not None:
            raise ConflictError(ALREADY_MEMBER)
        db.add(TeamMember(team_id=invitation.team_id, user_id=user.id, role=TeamRole.member, joined_at=now))
        invitation.status = InvitationStatus.accepted
        invitation.updated_at = now
        await commit_or_conflict(db, ALREADY_MEMBER)
    else:
        invitation.status = InvitationStatus.declined
        invitation.updated_at = now
        await db.commit()
    return invitation

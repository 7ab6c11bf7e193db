from __future__ import annotations

import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.api.deps import get_current_user
from taskflow.db import get_db
from taskflow.errors import AppError, ExpiredError
from taskflow.models.enums import InvitationStatus
from taskflow.schemas.invitation import (
    InvitationCreate,
    InvitationCreatedOut,
    InvitationDetailOut,
    InvitationDetailResponse,
    InvitationOut,
    InvitationResponse,
    InvitationResponseOut,
    InvitationTeamOut,
    TeamInvitationsResponse,
)
from taskflow.schemas.team import MessageOut
from taskflow.services import invitations as invitation_service


# Mounted under /teams; token routes live on ``router`` under /invitations.
team_router = APIRouter()
router = APIRouter()


@team_router.post("/{team_id}/invite", response_model=InvitationCreatedOut, status_code=status.HTTP_201_CREATED)
async def invite_member(
    team_id: uuid.UUID,
    payload: InvitationCreate,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> InvitationCreatedOut:
    invitation = await invitation_service.create_invitation(db, actor=user, team_id=team_id, email=payload.email)
    return InvitationCreatedOut(
        id=invitation.id,
        email=invitation.invited_email,
        expires_at=invitation.expires_at,
        token=invitation.token,
    )


@team_router.get("/{team_id}/invitations", response_model=TeamInvitationsResponse)
async def list_team_invitations(
    team_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> TeamInvitationsResponse:
    team, invitations = await invitation_service.list_invitations(db, actor=user, team_id=team_id)
    now = datetime.now(timezone.utc)
    return TeamInvitationsResponse(
        invitations=[
            InvitationOut(
                id=inv.id,
                invited_email=inv.invited_email,
                status=invitation_service.effective_status(inv, now),
                created_at=inv.created_at,
                expires_at=inv.expires_at,
            )
            for inv in invitations
        ],
        team=InvitationTeamOut(
            id=team.id,
            name=team.name,
            description=team.description,
            privacy_level=team.privacy_level,
        ),
    )


@team_router.delete("/{team_id}/invitations/{invitation_id}", response_model=MessageOut)
async def cancel_invitation(
    team_id: uuid.UUID,
    invitation_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> MessageOut:
    await invitation_service.cancel_invitation(db, actor=user, team_id=team_id, invitation_id=invitation_id)
    return MessageOut(message="Invitation cancelled successfully")


@team_router.post("/{team_id}/invitations/{invitation_id}/resend", response_model=MessageOut)
async def resend_invitation(
    team_id: uuid.UUID,
    invitation_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> MessageOut:
    await invitation_service.resend_invitation(db, actor=user, team_id=team_id, invitation_id=invitation_id)
    return MessageOut(message="Invitation resent successfully")


@router.get("/{token}", response_model=InvitationDetailResponse)
async def get_invitation(token: str, db: AsyncSession = Depends(get_db)) -> InvitationDetailResponse:
    now = datetime.now(timezone.utc)
    detail = await invitation_service.load_invitation_detail(db, token=token)
    inv = detail.invitation
    body = InvitationDetailResponse(
        invitation=InvitationDetailOut(
            id=inv.id,
            team_id=inv.team_id,
            invited_email=inv.invited_email,
            status=invitation_service.effective_status(inv, now),
            expires_at=inv.expires_at,
            created_at=inv.created_at,
            team_name=detail.team_name,
            team_description=detail.team_description,
            inviter_name=detail.inviter_name,
            inviter_email=detail.inviter_email,
        )
    )
    try:
        invitation_service.ensure_open(inv, now)
    except ExpiredError as exc:
        body.invitation.status = InvitationStatus.expired
        exc.payload = body.model_dump(mode="json")
        raise
    except AppError as exc:
        exc.payload = body.model_dump(mode="json")
        raise
    return body


@router.post("/{token}", response_model=InvitationResponseOut)
async def respond_to_invitation(
    token: str,
    payload: InvitationResponse,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> InvitationResponseOut:
    invitation = await invitation_service.respond_to_invitation(db, user=user, token=token, action=payload.action)
    if payload.action == "accept":
        return InvitationResponseOut(message="Successfully joined the team", team_id=invitation.team_id)
    return InvitationResponseOut(message="Invitation declined")

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.api.deps import get_current_user
from taskflow.db import get_db
from taskflow.models.team import Team
from taskflow.models.team_member import TeamMember
from taskflow.schemas.team import (
    MemberRoleUpdate,
    MessageOut,
    TeamCreate,
    TeamDetailOut,
    TeamDetailResponse,
    TeamMemberOut,
    TeamOut,
    TeamUpdate,
    TeamWithRoleOut,
)
from taskflow.services import teams as team_service


router = APIRouter()


def _team_out(team: Team) -> TeamOut:
    return TeamOut(
        id=team.id,
        name=team.name,
        description=team.description,
        owner_id=team.owner_id,
        privacy_level=team.privacy_level,
        created_at=team.created_at,
        updated_at=team.updated_at,
    )


def _member_out(member: TeamMember, user_name: str | None = None, user_email: str | None = None) -> TeamMemberOut:
    return TeamMemberOut(
        id=member.id,
        user_id=member.user_id,
        role=member.role,
        joined_at=member.joined_at,
        user_name=user_name,
        user_email=user_email,
    )


@router.get("", response_model=list[TeamWithRoleOut])
async def list_teams(
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> list[TeamWithRoleOut]:
    rows = await team_service.list_teams(db, user=user)
    return [TeamWithRoleOut(**_team_out(team).model_dump(), role=role) for team, role in rows]


@router.post("", response_model=TeamOut, status_code=status.HTTP_201_CREATED)
async def create_team(
    payload: TeamCreate,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> TeamOut:
    team = await team_service.create_team(
        db,
        user=user,
        name=payload.name,
        description=payload.description,
        privacy_level=payload.privacy_level,
    )
    return _team_out(team)


@router.get("/{team_id}", response_model=TeamDetailResponse)
async def get_team(
    team_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> TeamDetailResponse:
    detail = await team_service.get_team_detail(db, user=user, team_id=team_id)
    members = [_member_out(member, name, email) for member, name, email in detail.members]
    return TeamDetailResponse(
        team=TeamDetailOut(
            **_team_out(detail.team).model_dump(),
            owner_name=detail.owner_name,
            owner_email=detail.owner_email,
            member_count=len(members),
            invitation_count=detail.pending_invitations,
            user_role=detail.role,
        ),
        members=members,
        pending_invitations=detail.pending_invitations,
    )


@router.patch("/{team_id}", response_model=TeamOut)
async def update_team(
    team_id: uuid.UUID,
    payload: TeamUpdate,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> TeamOut:
    team = await team_service.update_team(
        db,
        user=user,
        team_id=team_id,
        name=payload.name,
        description=payload.description,
        privacy_level=payload.privacy_level,
    )
    return _team_out(team)


@router.delete("/{team_id}", response_model=MessageOut)
async def delete_team(
    team_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> MessageOut:
    await team_service.delete_team(db, user=user, team_id=team_id)
    return MessageOut(message="Team deleted successfully")


@router.put("/{team_id}/members/{user_id}", response_model=TeamMemberOut)
async def update_member_role(
    team_id: uuid.UUID,
    user_id: uuid.UUID,
    payload: MemberRoleUpdate,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> TeamMemberOut:
    member = await team_service.update_member_role(
        db, actor=user, team_id=team_id, target_user_id=user_id, role=payload.role
    )
    return _member_out(member)


@router.delete("/{team_id}/members/{user_id}", response_model=MessageOut)
async def remove_member(
    team_id: uuid.UUID,
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> MessageOut:
    await team_service.remove_member(db, actor=user, team_id=team_id, target_user_id=user_id)
    return MessageOut(message="Member removed successfully")

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.api.deps import get_current_user
from taskflow.db import get_db
from taskflow.models.team_template import TeamTemplate
from taskflow.schemas.team_template import (
    OfficialUpdate,
    TeamTemplateListItemOut,
    TeamTemplateMessageOut,
    TeamTemplateOut,
    TeamTemplateShare,
)
from taskflow.services import sharing


router = APIRouter()


def _share_out(share: TeamTemplate) -> TeamTemplateOut:
    return TeamTemplateOut(
        id=share.id,
        team_id=share.team_id,
        template_id=share.template_id,
        shared_by=share.shared_by,
        shared_at=share.shared_at,
        is_official=share.is_official,
        status=share.status,
    )


@router.get("/{team_id}/templates", response_model=list[TeamTemplateListItemOut])
async def list_team_templates(
    team_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> list[TeamTemplateListItemOut]:
    rows = await sharing.list_team_templates(db, user=user, team_id=team_id)
    return [
        TeamTemplateListItemOut(
            **_share_out(share).model_dump(),
            template_title=template.title,
            template_owner_id=template.user_id,
            template_created_at=template.created_at,
            template_updated_at=template.updated_at,
            shared_by_name=shared_by_name,
            shared_by_email=shared_by_email,
        )
        for share, template, shared_by_name, shared_by_email in rows
    ]


@router.post("/{team_id}/templates", response_model=TeamTemplateMessageOut, status_code=status.HTTP_201_CREATED)
async def share_template(
    team_id: uuid.UUID,
    payload: TeamTemplateShare,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> TeamTemplateMessageOut:
    share = await sharing.share_template(db, user=user, team_id=team_id, template_id=payload.template_id)
    return TeamTemplateMessageOut(message="Template shared successfully", team_template=_share_out(share))


@router.delete("/{team_id}/templates/{template_id}", response_model=TeamTemplateMessageOut)
async def unshare_template(
    team_id: uuid.UUID,
    template_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> TeamTemplateMessageOut:
    share = await sharing.unshare_template(db, actor=user, team_id=team_id, template_id=template_id)
    return TeamTemplateMessageOut(message="Template removed from team", team_template=_share_out(share))


@router.put("/{team_id}/templates/{template_id}/official", response_model=TeamTemplateMessageOut)
async def set_official(
    team_id: uuid.UUID,
    template_id: uuid.UUID,
    payload: OfficialUpdate,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> TeamTemplateMessageOut:
    share = await sharing.set_official(
        db, actor=user, team_id=team_id, template_id=template_id, is_official=payload.is_official
    )
    message = "Template marked as official" if share.is_official else "Template unmarked as official"
    return TeamTemplateMessageOut(message=message, team_template=_share_out(share))

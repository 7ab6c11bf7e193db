from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.api.deps import get_current_user
from taskflow.db import get_db
from taskflow.models.checklist_template import ChecklistStep, ChecklistTemplate
from taskflow.schemas.engagement import (
    FavoriteCreate,
    FavoriteListItemOut,
    FavoriteOut,
    FeedbackCreate,
    FeedbackListItemOut,
    FeedbackOut,
)
from taskflow.schemas.team import MessageOut
from taskflow.schemas.template import (
    StepOut,
    TemplateListItemOut,
    TemplateOut,
    TemplateWithStepsOut,
    TemplateWrite,
)
from taskflow.services import sharing, templates as template_service


router = APIRouter()


def _template_out(template: ChecklistTemplate) -> TemplateOut:
    return TemplateOut(
        id=template.id,
        user_id=template.user_id,
        title=template.title,
        created_at=template.created_at,
        updated_at=template.updated_at,
    )


def _step_out(step: ChecklistStep) -> StepOut:
    return StepOut(id=step.id, template_id=step.template_id, step_text=step.step_text, order_index=step.order_index)


async def _with_steps(db: AsyncSession, template: ChecklistTemplate) -> TemplateWithStepsOut:
    steps = await template_service.get_template_steps(db, template_id=template.id)
    return TemplateWithStepsOut(template=_template_out(template), steps=[_step_out(s) for s in steps])


@router.get("", response_model=list[TemplateListItemOut])
async def list_templates(
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> list[TemplateListItemOut]:
    rows = await template_service.list_templates(db, user=user)
    return [
        TemplateListItemOut(**_template_out(template).model_dump(), step_count=step_count)
        for template, step_count in rows
    ]


@router.post("", response_model=TemplateWithStepsOut, status_code=status.HTTP_201_CREATED)
async def create_template(
    payload: TemplateWrite,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> TemplateWithStepsOut:
    template = await template_service.create_template(
        db, user=user, title=payload.title, step_texts=[step.text for step in payload.steps]
    )
    return await _with_steps(db, template)


# Declared before "/{template_id}" so "favorites" is not parsed as an id.
@router.get("/favorites", response_model=list[FavoriteListItemOut])
async def list_favorites(
    team_id: uuid.UUID | None = Query(default=None, alias="teamId"),
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> list[FavoriteListItemOut]:
    rows = await sharing.list_favorites(db, user=user, team_id=team_id)
    return [
        FavoriteListItemOut(
            id=favorite.id,
            user_id=favorite.user_id,
            template_id=favorite.template_id,
            team_id=favorite.team_id,
            created_at=favorite.created_at,
            template_title=template.title,
            template_owner_id=template.user_id,
            template_owner_name=owner_name,
            template_owner_email=owner_email,
        )
        for favorite, template, owner_name, owner_email in rows
    ]


@router.get("/{template_id}", response_model=TemplateWithStepsOut)
async def get_template(
    template_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> TemplateWithStepsOut:
    template = await template_service.get_visible_template(db, user=user, template_id=template_id)
    return await _with_steps(db, template)


@router.put("/{template_id}", response_model=TemplateWithStepsOut)
async def update_template(
    template_id: uuid.UUID,
    payload: TemplateWrite,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> TemplateWithStepsOut:
    template = await template_service.update_template(
        db,
        user=user,
        template_id=template_id,
        title=payload.title,
        step_texts=[step.text for step in payload.steps],
    )
    return await _with_steps(db, template)


@router.delete("/{template_id}", response_model=MessageOut)
async def delete_template(
    template_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> MessageOut:
    await template_service.delete_template(db, user=user, template_id=template_id)
    return MessageOut(message="Template deleted successfully")


@router.post("/{template_id}/favorite", response_model=FavoriteOut, status_code=status.HTTP_201_CREATED)
async def add_favorite(
    template_id: uuid.UUID,
    payload: FavoriteCreate | None = None,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> FavoriteOut:
    team_id = payload.team_id if payload is not None else None
    favorite = await sharing.add_favorite(db, user=user, template_id=template_id, team_id=team_id)
    return FavoriteOut(
        id=favorite.id,
        user_id=favorite.user_id,
        template_id=favorite.template_id,
        team_id=favorite.team_id,
        created_at=favorite.created_at,
    )


@router.delete("/{template_id}/favorite", response_model=MessageOut)
async def remove_favorite(
    template_id: uuid.UUID,
    team_id: uuid.UUID | None = Query(default=None, alias="teamId"),
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> MessageOut:
    await sharing.remove_favorite(db, user=user, template_id=template_id, team_id=team_id)
    return MessageOut(message="Template removed from favorites")


@router.get("/{template_id}/feedback", response_model=list[FeedbackListItemOut])
async def list_feedback(
    template_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> list[FeedbackListItemOut]:
    rows = await sharing.list_feedback(db, user=user, template_id=template_id)
    return [
        FeedbackListItemOut(
            id=feedback.id,
            template_id=feedback.template_id,
            user_id=feedback.user_id,
            team_id=feedback.team_id,
            comment=feedback.comment,
            rating=feedback.rating,
            created_at=feedback.created_at,
            user_name=user_name,
            user_email=user_email,
        )
        for feedback, user_name, user_email in rows
    ]


@router.post("/{template_id}/feedback", response_model=FeedbackOut, status_code=status.HTTP_201_CREATED)
async def add_feedback(
    template_id: uuid.UUID,
    payload: FeedbackCreate,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> FeedbackOut:
    feedback = await sharing.add_feedback(
        db,
        user=user,
        template_id=template_id,
        comment=payload.comment,
        rating=payload.rating,
        team_id=payload.team_id,
    )
    return FeedbackOut(
        id=feedback.id,
        template_id=feedback.template_id,
        user_id=feedback.user_id,
        team_id=feedback.team_id,
        comment=feedback.comment,
        rating=feedback.rating,
        created_at=feedback.created_at,
    )

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.errors import BadRequestError, NotFoundError
from taskflow.models.checklist_template import ChecklistStep, ChecklistTemplate
from taskflow.models.enums import TeamTemplateStatus
from taskflow.models.team_member import TeamMember
from taskflow.models.team_template import TeamTemplate


def clean_template_input(title: str | None, step_texts: list[str] | None) -> tuple[str, list[str]]:
    if not title or not title.strip():
        raise BadRequestError("Title is required")
    if not step_texts:
        raise BadRequestError("At least one step is required")
    cleaned: list[str] = []
    for index, text in enumerate(step_texts, start=1):
        if not text or not text.strip():
            raise BadRequestError(f"Step {index} text is required")
        cleaned.append(text.strip())
    return title.strip(), cleaned


async def get_owned_template(db: AsyncSession, *, user, template_id: uuid.UUID) -> ChecklistTemplate:
    template = (
        await db.execute(
            select(ChecklistTemplate).where(ChecklistTemplate.id == template_id, ChecklistTemplate.user_id == user.id)
        )
    ).scalar_one_or_none()
    if template is None:
        raise NotFoundError("Template not found")
    return template


async def get_visible_template(db: AsyncSession, *, user, template_id: uuid.UUID) -> ChecklistTemplate:
    """Owner always sees a template; anyone else only through an active share
    with a team they belong to. Invisible and missing look the same."""
    template = (await db.execute(select(ChecklistTemplate).where(ChecklistTemplate.id == template_id))).scalar_one_or_none()
    if template is None:
        raise NotFoundError("Template not found")
    if template.user_id == user.id:
        return template

    shared = (
        await db.execute(
            select(TeamTemplate.id)
            .join(TeamMember, TeamMember.team_id == TeamTemplate.team_id)
            .where(
                TeamTemplate.template_id == template_id,
                TeamTemplate.status == TeamTemplateStatus.active,
                TeamMember.user_id == user.id,
            )
            .limit(1)
        )
    ).scalar_one_or_none()
    if shared is None:
        raise NotFoundError("Template not found")
    return template


async def create_template(db: AsyncSession, *, user, title: str, step_texts: list[str]) -> ChecklistTemplate:
    title, step_texts = clean_template_input(title, step_texts)
    template = ChecklistTemplate(user_id=user.id, title=title)
    db.add(template)
    await db.flush()
    db.add_all(
        [
            ChecklistStep(template_id=template.id, step_text=text, order_index=index)
            for index, text in enumerate(step_texts)
        ]
    )
    await db.commit()
    await db.refresh(template)
    return template


async def list_templates(db: AsyncSession, *, user) -> list[tuple[ChecklistTemplate, int]]:
    step_count = (
        select(func.count(ChecklistStep.id))
        .where(ChecklistStep.template_id == ChecklistTemplate.id)
        .correlate(ChecklistTemplate)
        .scalar_subquery()
    )
    rows = (
        await db.execute(
            select(ChecklistTemplate, step_count)
            .where(ChecklistTemplate.user_id == user.id)
            .order_by(ChecklistTemplate.created_at.desc())
        )
    ).all()
    return [(template, count or 0) for template, count in rows]


async def get_template_steps(db: AsyncSession, *, template_id: uuid.UUID) -> list[ChecklistStep]:
    return list(
        (
            await db.execute(
                select(ChecklistStep)
                .where(ChecklistStep.template_id == template_id)
                .order_by(ChecklistStep.order_index)
            )
        )
        .scalars()
        .all()
    )


async def update_template(
    db: AsyncSession,
    *,
    user,
    template_id: uuid.UUID,
    title: str,
    step_texts: list[str],
) -> ChecklistTemplate:
    """Replace title and steps.

    Old steps are deleted; the database cascade removes the instance steps
    that referenced them.
    """
    title, step_texts = clean_template_input(title, step_texts)
    template = await get_owned_template(db, user=user, template_id=template_id)

    template.title = title
    template.updated_at = datetime.now(timezone.utc)
    await db.execute(delete(ChecklistStep).where(ChecklistStep.template_id == template_id))
    db.add_all(
        [
            ChecklistStep(template_id=template_id, step_text=text, order_index=index)
            for index, text in enumerate(step_texts)
        ]
    )
    await db.commit()
    await db.refresh(template)
    return template


async def delete_template(db: AsyncSession, *, user, template_id: uuid.UUID) -> None:
    template = await get_owned_template(db, user=user, template_id=template_id)
    await db.delete(template)
    await db.commit()

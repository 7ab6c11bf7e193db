from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.api.access import TEAM_MANAGERS, require_membership, require_role
from taskflow.db import commit_or_conflict
from taskflow.errors import BadRequestError, ConflictError, NotFoundError
from taskflow.models.checklist_template import ChecklistTemplate
from taskflow.models.enums import TeamTemplateStatus
from taskflow.models.team_template import TeamTemplate
from taskflow.models.template_favorite import TemplateFavorite
from taskflow.models.template_feedback import TemplateFeedback
from taskflow.models.user import User
from taskflow.services.templates import get_owned_template, get_visible_template


ALREADY_SHARED = "Template is already shared with this team"
ALREADY_FAVORITED = "Template is already in your favorites"
ALREADY_REVIEWED = "You have already provided feedback for this template"
RATING_RANGE = (1, 5)


def _team_clause(column, team_id: uuid.UUID | None):
    # NULL never equals NULL in SQL, so the personal (no team) case needs IS NULL.
    return column.is_(None) if team_id is None else column == team_id


async def _get_active_share(db: AsyncSession, *, team_id: uuid.UUID, template_id: uuid.UUID) -> TeamTemplate | None:
    return (
        await db.execute(
            select(TeamTemplate).where(
                TeamTemplate.team_id == team_id,
                TeamTemplate.template_id == template_id,
                TeamTemplate.status == TeamTemplateStatus.active,
            )
        )
    ).scalar_one_or_none()


async def list_team_templates(db: AsyncSession, *, user, team_id: uuid.UUID) -> list[tuple]:
    """Active shares of a team, official ones first, newest first within each group."""
    await require_membership(db, team_id=team_id, user=user)
    rows = (
        await db.execute(
            select(TeamTemplate, ChecklistTemplate, User.name, User.email)
            .join(ChecklistTemplate, ChecklistTemplate.id == TeamTemplate.template_id)
            .outerjoin(User, User.id == TeamTemplate.shared_by)
            .where(TeamTemplate.team_id == team_id, TeamTemplate.status == TeamTemplateStatus.active)
            .order_by(TeamTemplate.is_official.desc(), TeamTemplate.shared_at.desc())
        )
    ).all()
    return [tuple(row) for row in rows]


async def share_template(
    db: AsyncSession,
    *,
    user,
    team_id: uuid.UUID,
    template_id: uuid.UUID,
    now: datetime | None = None,
) -> TeamTemplate:
    now = now or datetime.now(timezone.utc)
    await require_membership(db, team_id=team_id, user=user)
    try:
        await get_owned_template(db, user=user, template_id=template_id)
    except NotFoundError:
        raise NotFoundError("Template not found or not owned by user") from None

    if await _get_active_share(db, team_id=team_id, template_id=template_id) is not None:
        raise ConflictError(ALREADY_SHARED)

    share = TeamTemplate(
        team_id=team_id,
        template_id=template_id,
        shared_by=user.id,
        shared_at=now,
        is_official=False,
        status=TeamTemplateStatus.active,
        created_at=now,
        updated_at=now,
    )
    db.add(share)
    await commit_or_conflict(db, ALREADY_SHARED)
    return share


async def unshare_template(
    db: AsyncSession,
    *,
    actor,
    team_id: uuid.UUID,
    template_id: uuid.UUID,
    now: datetime | None = None,
) -> TeamTemplate:
    now = now or datetime.now(timezone.utc)
    await require_role(db, team_id=team_id, user=actor, roles=TEAM_MANAGERS)
    share = await _get_active_share(db, team_id=team_id, template_id=template_id)
    if share is None:
        raise NotFoundError("Template not found or already removed")

    # Soft delete; the row stays for history.
    share.status = TeamTemplateStatus.removed
    share.updated_at = now
    await db.commit()
    return share


async def set_official(
    db: AsyncSession,
    *,
    actor,
    team_id: uuid.UUID,
    template_id: uuid.UUID,
    is_official: bool,
    now: datetime | None = None,
) -> TeamTemplate:
    now = now or datetime.now(timezone.utc)
    await require_role(db, team_id=team_id, user=actor, roles=TEAM_MANAGERS)
    share = await _get_active_share(db, team_id=team_id, template_id=template_id)
    if share is None:
        raise NotFoundError("Template not found")

    share.is_official = bool(is_official)
    share.updated_at = now
    await db.commit()
    return share


async def add_favorite(
    db: AsyncSession,
    *,
    user,
    template_id: uuid.UUID,
    team_id: uuid.UUID | None = None,
) -> TemplateFavorite:
    await get_visible_template(db, user=user, template_id=template_id)
    if team_id is not None:
        await require_membership(db, team_id=team_id, user=user)

    existing = (
        await db.execute(
            select(TemplateFavorite.id).where(
                TemplateFavorite.user_id == user.id,
                TemplateFavorite.template_id == template_id,
                _team_clause(TemplateFavorite.team_id, team_id),
            )
        )
    ).scalar_one_or_none()
    if existing is not None:
        raise ConflictError(ALREADY_FAVORITED)

    favorite = TemplateFavorite(
        user_id=user.id,
        template_id=template_id,
        team_id=team_id,
        created_at=datetime.now(timezone.utc),
    )
    db.add(favorite)
    await commit_or_conflict(db, ALREADY_FAVORITED)
    return favorite


async def _find_favorite(
    db: AsyncSession, *, user_id: uuid.UUID, template_id: uuid.UUID, team_id: uuid.UUID | None
) -> TemplateFavorite | None:
    return (
        await db.execute(
            select(TemplateFavorite).where(
                TemplateFavorite.user_id == user_id,
                TemplateFavorite.template_id == template_id,
                _team_clause(TemplateFavorite.team_id, team_id),
            )
        )
    ).scalar_one_or_none()


async def remove_favorite(
    db: AsyncSession,
    *,
    user,
    template_id: uuid.UUID,
    team_id: uuid.UUID | None = None,
) -> TemplateFavorite:
    """Remove the team-scoped favorite when a team is given, else the personal one.

    A team-scoped request falls back to the personal favorite when no
    team-scoped row exists.
    """
    favorite = None
    if team_id is not None:
        favorite = await _find_favorite(db, user_id=user.id, template_id=template_id, team_id=team_id)
    if favorite is None:
        favorite = await _find_favorite(db, user_id=user.id, template_id=template_id, team_id=None)
    if favorite is None:
        raise NotFoundError("Template not found in favorites")

    await db.delete(favorite)
    await db.commit()
    return favorite


async def list_favorites(db: AsyncSession, *, user, team_id: uuid.UUID | None = None) -> list[tuple]:
    stmt = (
        select(TemplateFavorite, ChecklistTemplate, User.name, User.email)
        .join(ChecklistTemplate, ChecklistTemplate.id == TemplateFavorite.template_id)
        .outerjoin(User, User.id == ChecklistTemplate.user_id)
        .where(TemplateFavorite.user_id == user.id)
    )
    if team_id is not None:
        stmt = stmt.where(TemplateFavorite.team_id == team_id)
    rows = (await db.execute(stmt.order_by(TemplateFavorite.created_at.desc()))).all()
    return [tuple(row) for row in rows]


def clean_feedback(comment: str | None, rating: int | None) -> tuple[str, int | None]:
    if not isinstance(comment, str) or not comment.strip():
        raise BadRequestError("Comment is required")
    if rating is not None and not (RATING_RANGE[0] <= rating <= RATING_RANGE[1]):
        raise BadRequestError("Rating must be between 1 and 5")
    return comment.strip(), rating


async def add_feedback(
    db: AsyncSession,
    *,
    user,
    template_id: uuid.UUID,
    comment: str,
    rating: int | None = None,
    team_id: uuid.UUID | None = None,
) -> TemplateFeedback:
    comment, rating = clean_feedback(comment, rating)
    await get_visible_template(db, user=user, template_id=template_id)
    if team_id is not None:
        await require_membership(db, team_id=team_id, user=user)

    existing = (
        await db.execute(
            select(TemplateFeedback.id).where(
                TemplateFeedback.user_id == user.id,
                TemplateFeedback.template_id == template_id,
                _team_clause(TemplateFeedback.team_id, team_id),
            )
        )
    ).scalar_one_or_none()
    if existing is not None:
        raise ConflictError(ALREADY_REVIEWED)

    feedback = TemplateFeedback(
        template_id=template_id,
        user_id=user.id,
        team_id=team_id,
        comment=comment,
        rating=rating,
        created_at=datetime.now(timezone.utc),
    )
    db.add(feedback)
    await commit_or_conflict(db, ALREADY_REVIEWED)
    return feedback


async def list_feedback(db: AsyncSession, *, user, template_id: uuid.UUID) -> list[tuple]:
    await get_visible_template(db, user=user, template_id=template_id)
    rows = (
        await db.execute(
            select(TemplateFeedback, User.name, User.email)
            .join(User, User.id == TemplateFeedback.user_id)
            .where(TemplateFeedback.template_id == template_id)
            .order_by(TemplateFeedback.created_at.desc())
        )
    ).all()
    return [tuple(row) for row in rows]

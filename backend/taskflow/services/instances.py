"""Checklist instances: running copies of a template with per-step completion.

An instance references its template rather than copying it. At start time one
instance-step row is created for every template step, so step *membership* is
snapshotted while step text is always read live from the template.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from taskflow.errors import NotFoundError
from taskflow.models.checklist_instance import ChecklistInstance, ChecklistInstanceStep
from taskflow.models.checklist_template import ChecklistTemplate
from taskflow.models.enums import InstanceStatus


@dataclass(frozen=True)
class Progress:
    progress: int
    completed_steps: int
    total_steps: int


def percent(completed: int, total: int) -> int:
    """Whole-number percentage, halves rounded up; 0 when there is nothing to do."""
    if total <= 0:
        return 0
    return (200 * completed + total) // (2 * total)


def compute_progress(steps: Iterable) -> Progress:
    steps = list(steps)
    completed = sum(1 for step in steps if step.is_completed)
    return Progress(progress=percent(completed, len(steps)), completed_steps=completed, total_steps=len(steps))


def ordered_steps(instance: ChecklistInstance) -> list[ChecklistInstanceStep]:
    def _key(row: ChecklistInstanceStep):
        order_index = row.step.order_index if row.step is not None else None
        return (order_index is None, order_index or 0, str(row.step_id))

    return sorted(instance.steps, key=_key)


def _instance_options():
    return (
        selectinload(ChecklistInstance.template),
        selectinload(ChecklistInstance.steps).selectinload(ChecklistInstanceStep.step),
    )


async def start_instance(
    db: AsyncSession,
    *,
    user,
    template_id: uuid.UUID,
    now: datetime | None = None,
) -> ChecklistInstance:
    now = now or datetime.now(timezone.utc)
    # Only the owner may start a run; shares do not grant it.
    template = (
        await db.execute(
            select(ChecklistTemplate)
            .where(ChecklistTemplate.id == template_id, ChecklistTemplate.user_id == user.id)
            .options(selectinload(ChecklistTemplate.steps))
        )
    ).scalar_one_or_none()
    if template is None:
        raise NotFoundError("Template not found")

    instance = ChecklistInstance(
        template_id=template.id,
        user_id=user.id,
        status=InstanceStatus.in_progress,
        started_at=now,
        completed_at=None,
    )
    db.add(instance)
    await db.flush()

    steps = sorted(template.steps, key=lambda step: step.order_index)
    if steps:
        db.add_all(
            [
                ChecklistInstanceStep(
                    instance_id=instance.id,
                    step_id=step.id,
                    is_completed=False,
                    completed_at=None,
                )
                for step in steps
            ]
        )
    await db.commit()
    return instance


async def get_instance(db: AsyncSession, *, user, instance_id: uuid.UUID) -> ChecklistInstance:
    instance = (
        await db.execute(
            select(ChecklistInstance)
            .where(ChecklistInstance.id == instance_id, ChecklistInstance.user_id == user.id)
            .options(*_instance_options())
        )
    ).scalar_one_or_none()
    if instance is None:
        raise NotFoundError("Checklist instance not found")
    return instance


async def list_instances(db: AsyncSession, *, user) -> list[ChecklistInstance]:
    return list(
        (
            await db.execute(
                select(ChecklistInstance)
                .where(ChecklistInstance.user_id == user.id)
                .options(*_instance_options())
                .order_by(ChecklistInstance.started_at.desc())
            )
        )
        .scalars()
        .all()
    )


async def _get_owned_instance(db: AsyncSession, *, user, instance_id: uuid.UUID) -> ChecklistInstance:
    instance = (
        await db.execute(
            select(ChecklistInstance).where(ChecklistInstance.id == instance_id, ChecklistInstance.user_id == user.id)
        )
    ).scalar_one_or_none()
    if instance is None:
        raise NotFoundError("Checklist instance not found")
    return instance


async def set_step_completion(
    db: AsyncSession,
    *,
    user,
    instance_id: uuid.UUID,
    step_id: uuid.UUID,
    is_completed: bool,
    now: datetime | None = None,
) -> ChecklistInstanceStep:
    """Mark one step done or not done.

    ``step_id`` is the template step id. Writing ``True`` always stamps
    ``completed_at`` with the current time, even if the step was already done.
    """
    now = now or datetime.now(timezone.utc)
    await _get_owned_instance(db, user=user, instance_id=instance_id)

    row = (
        await db.execute(
            select(ChecklistInstanceStep).where(
                ChecklistInstanceStep.instance_id == instance_id,
                ChecklistInstanceStep.step_id == step_id,
            )
        )
    ).scalar_one_or_none()
    if row is None:
        raise NotFoundError("Step not found")

    row.is_completed = is_completed
    row.completed_at = now if is_completed else None
    await db.commit()
    return row


async def complete_instance(
    db: AsyncSession,
    *,
    user,
    instance_id: uuid.UUID,
    now: datetime | None = None,
) -> ChecklistInstance:
    """Close the run regardless of how many steps are done.

    Completing an already completed instance refreshes ``completed_at``.
    """
    now = now or datetime.now(timezone.utc)
    instance = await _get_owned_instance(db, user=user, instance_id=instance_id)
    instance.status = InstanceStatus.completed
    instance.completed_at = now
    await db.commit()
    return instance

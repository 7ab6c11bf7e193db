from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.api.deps import get_current_user
from taskflow.db import get_db
from taskflow.errors import BadRequestError
from taskflow.models.checklist_instance import ChecklistInstance, ChecklistInstanceStep
from taskflow.schemas.checklist import (
    ChecklistAction,
    ChecklistInstanceDetailOut,
    ChecklistInstanceOut,
    ChecklistInstanceStepDetailOut,
    ChecklistInstanceStepOut,
    ChecklistProgressOut,
    ChecklistStart,
    StepCompletionUpdate,
)
from taskflow.services import instances as instance_service


router = APIRouter()


def _instance_out(instance: ChecklistInstance) -> ChecklistInstanceOut:
    return ChecklistInstanceOut(
        id=instance.id,
        template_id=instance.template_id,
        user_id=instance.user_id,
        status=instance.status,
        started_at=instance.started_at,
        completed_at=instance.completed_at,
    )


def _step_out(row: ChecklistInstanceStep) -> ChecklistInstanceStepOut:
    return ChecklistInstanceStepOut(
        id=row.id,
        instance_id=row.instance_id,
        step_id=row.step_id,
        is_completed=row.is_completed,
        completed_at=row.completed_at,
    )


def _progress_out(instance: ChecklistInstance) -> ChecklistProgressOut:
    progress = instance_service.compute_progress(instance.steps)
    return ChecklistProgressOut(
        **_instance_out(instance).model_dump(),
        template_title=instance.template.title if instance.template is not None else None,
        progress=progress.progress,
        total_steps=progress.total_steps,
        completed_steps=progress.completed_steps,
    )


def _detail_out(instance: ChecklistInstance) -> ChecklistInstanceDetailOut:
    steps = [
        ChecklistInstanceStepDetailOut(
            **_step_out(row).model_dump(),
            step_text=row.step.step_text if row.step is not None else None,
            order_index=row.step.order_index if row.step is not None else None,
        )
        for row in instance_service.ordered_steps(instance)
    ]
    return ChecklistInstanceDetailOut(**_progress_out(instance).model_dump(), steps=steps)


@router.post("", response_model=ChecklistInstanceOut, status_code=status.HTTP_201_CREATED)
async def start_checklist(
    payload: ChecklistStart,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> ChecklistInstanceOut:
    instance = await instance_service.start_instance(db, user=user, template_id=payload.template_id)
    return _instance_out(instance)


@router.get("", response_model=list[ChecklistProgressOut])
async def list_checklists(
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> list[ChecklistProgressOut]:
    instances = await instance_service.list_instances(db, user=user)
    return [_progress_out(instance) for instance in instances]


@router.get("/{instance_id}", response_model=ChecklistInstanceDetailOut)
async def get_checklist(
    instance_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> ChecklistInstanceDetailOut:
    instance = await instance_service.get_instance(db, user=user, instance_id=instance_id)
    return _detail_out(instance)


@router.put("/{instance_id}", response_model=ChecklistInstanceOut)
async def update_checklist(
    instance_id: uuid.UUID,
    payload: ChecklistAction,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> ChecklistInstanceOut:
    if payload.action != "complete":
        raise BadRequestError("Invalid action")
    instance = await instance_service.complete_instance(db, user=user, instance_id=instance_id)
    return _instance_out(instance)


@router.put("/{instance_id}/steps/{step_id}", response_model=ChecklistInstanceStepOut)
async def update_checklist_step(
    instance_id: uuid.UUID,
    step_id: uuid.UUID,
    payload: StepCompletionUpdate,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> ChecklistInstanceStepOut:
    row = await instance_service.set_step_completion(
        db, user=user, instance_id=instance_id, step_id=step_id, is_completed=payload.is_completed
    )
    return _step_out(row)

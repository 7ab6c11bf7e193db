from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from taskflow.models.enums import InstanceStatus


class ChecklistStart(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    template_id: uuid.UUID = Field(alias="templateId")


class ChecklistAction(BaseModel):
    action: str


class StepCompletionUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_completed: bool = Field(alias="isCompleted")


class ChecklistInstanceOut(BaseModel):
    id: uuid.UUID
    template_id: uuid.UUID
    user_id: uuid.UUID
    status: InstanceStatus
    started_at: datetime | None = None
    completed_at: datetime | None = None


class ChecklistInstanceStepOut(BaseModel):
    id: uuid.UUID
    instance_id: uuid.UUID
    step_id: uuid.UUID
    is_completed: bool
    completed_at: datetime | None = None


class ChecklistInstanceStepDetailOut(ChecklistInstanceStepOut):
    step_text: str | None = None
    order_index: int | None = None


class ChecklistProgressOut(ChecklistInstanceOut):
    template_title: str | None = None
    progress: int
    total_steps: int
    completed_steps: int


class ChecklistInstanceDetailOut(ChecklistProgressOut):
    steps: list[ChecklistInstanceStepDetailOut]

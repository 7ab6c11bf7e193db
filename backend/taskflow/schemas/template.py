from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel


class StepIn(BaseModel):
    text: str


class TemplateWrite(BaseModel):
    title: str
    steps: list[StepIn]


class TemplateOut(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TemplateListItemOut(TemplateOut):
    step_count: int


class StepOut(BaseModel):
    id: uuid.UUID
    template_id: uuid.UUID
    step_text: str
    order_index: int


class TemplateWithStepsOut(BaseModel):
    template: TemplateOut
    steps: list[StepOut]

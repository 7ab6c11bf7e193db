from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from taskflow.models.enums import TeamTemplateStatus


class TeamTemplateShare(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    template_id: uuid.UUID = Field(alias="templateId")


class OfficialUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_official: bool = Field(alias="isOfficial")


class TeamTemplateOut(BaseModel):
    id: uuid.UUID
    team_id: uuid.UUID
    template_id: uuid.UUID
    shared_by: uuid.UUID
    shared_at: datetime | None = None
    is_official: bool
    status: TeamTemplateStatus


class TeamTemplateListItemOut(TeamTemplateOut):
    template_title: str
    template_owner_id: uuid.UUID
    template_created_at: datetime | None = None
    template_updated_at: datetime | None = None
    shared_by_name: str | None = None
    shared_by_email: str | None = None


class TeamTemplateMessageOut(BaseModel):
    message: str
    team_template: TeamTemplateOut

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class FavoriteCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    team_id: uuid.UUID | None = Field(default=None, alias="teamId")


class FavoriteOut(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    template_id: uuid.UUID
    team_id: uuid.UUID | None = None
    created_at: datetime | None = None


class FavoriteListItemOut(FavoriteOut):
    template_title: str
    template_owner_id: uuid.UUID
    template_owner_name: str | None = None
    template_owner_email: str | None = None


class FeedbackCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    comment: str
    rating: int | None = None
    team_id: uuid.UUID | None = Field(default=None, alias="teamId")


class FeedbackOut(BaseModel):
    id: uuid.UUID
    template_id: uuid.UUID
    user_id: uuid.UUID
    team_id: uuid.UUID | None = None
    comment: str
    rating: int | None = None
    created_at: datetime | None = None


class FeedbackListItemOut(FeedbackOut):
    user_name: str | None = None
    user_email: str | None = None

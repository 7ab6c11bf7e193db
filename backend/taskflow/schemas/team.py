from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from taskflow.models.enums import PrivacyLevel, TeamRole


class TeamCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str | None = None
    privacy_level: PrivacyLevel = Field(default=PrivacyLevel.private, alias="privacyLevel")


class TeamUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str | None = None
    description: str | None = None
    privacy_level: PrivacyLevel | None = Field(default=None, alias="privacyLevel")


class TeamOut(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None = None
    owner_id: uuid.UUID
    privacy_level: PrivacyLevel
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TeamWithRoleOut(TeamOut):
    role: TeamRole


class TeamMemberOut(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    role: TeamRole
    joined_at: datetime | None = None
    user_name: str | None = None
    user_email: str | None = None


class TeamDetailOut(TeamOut):
    owner_name: str | None = None
    owner_email: str | None = None
    member_count: int
    invitation_count: int
    user_role: TeamRole


class TeamDetailResponse(BaseModel):
    team: TeamDetailOut
    members: list[TeamMemberOut]
    pending_invitations: int


class MemberRoleUpdate(BaseModel):
    role: str


class MessageOut(BaseModel):
    message: str

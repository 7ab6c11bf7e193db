from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, EmailStr

from taskflow.models.enums import InvitationStatus, PrivacyLevel


class InvitationCreate(BaseModel):
    email: EmailStr


class InvitationCreatedOut(BaseModel):
    id: uuid.UUID
    email: str
    expires_at: datetime
    token: str


class InvitationOut(BaseModel):
    id: uuid.UUID
    invited_email: str
    status: InvitationStatus
    created_at: datetime | None = None
    expires_at: datetime


class InvitationTeamOut(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None = None
    privacy_level: PrivacyLevel


class TeamInvitationsResponse(BaseModel):
    invitations: list[InvitationOut]
    team: InvitationTeamOut


class InvitationDetailOut(BaseModel):
    id: uuid.UUID
    team_id: uuid.UUID
    invited_email: str
    status: InvitationStatus
    expires_at: datetime
    created_at: datetime | None = None
    team_name: str | None = None
    team_description: str | None = None
    inviter_name: str | None = None
    inviter_email: str | None = None


class InvitationDetailResponse(BaseModel):
    invitation: InvitationDetailOut


class InvitationResponse(BaseModel):
    action: str


class InvitationResponseOut(BaseModel):
    message: str
    team_id: uuid.UUID | None = None

from __future__ import annotations

import enum


class InstanceStatus(str, enum.Enum):
    in_progress = "in_progress"
    completed = "completed"
    # Reserved; nothing transitions an instance into it yet.
    paused = "paused"


class TeamRole(str, enum.Enum):
    owner = "owner"
    admin = "admin"
    member = "member"
    viewer = "viewer"


class PrivacyLevel(str, enum.Enum):
    private = "private"
    public = "public"


class InvitationStatus(str, enum.Enum):
    pending = "pending"
    accepted = "accepted"
    declined = "declined"
    expired = "expired"
    cancelled = "cancelled"


class TeamTemplateStatus(str, enum.Enum):
    active = "active"
    removed = "removed"

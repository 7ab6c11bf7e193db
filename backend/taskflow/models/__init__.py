from taskflow.models.checklist_instance import ChecklistInstance, ChecklistInstanceStep
from taskflow.models.checklist_template import ChecklistStep, ChecklistTemplate
from taskflow.models.team import Team
from taskflow.models.team_invitation import TeamInvitation
from taskflow.models.team_member import TeamMember
from taskflow.models.team_template import TeamTemplate
from taskflow.models.template_favorite import TemplateFavorite
from taskflow.models.template_feedback import TemplateFeedback
from taskflow.models.user import User

__all__ = [
    "ChecklistInstance",
    "ChecklistInstanceStep",
    "ChecklistStep",
    "ChecklistTemplate",
    "Team",
    "TeamInvitation",
    "TeamMember",
    "TeamTemplate",
    "TemplateFavorite",
    "TemplateFeedback",
    "User",
]

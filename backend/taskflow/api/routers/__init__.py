from fastapi import APIRouter

from taskflow.api.routers.auth import router as auth_router
from taskflow.api.routers.checklists import router as checklists_router
from taskflow.api.routers.invitations import router as invitations_router
from taskflow.api.routers.invitations import team_router as team_invitations_router
from taskflow.api.routers.team_templates import router as team_templates_router
from taskflow.api.routers.teams import router as teams_router
from taskflow.api.routers.templates import router as templates_router


api_router = APIRouter()
api_router.include_router(auth_router, prefix="/auth", tags=["auth"])
api_router.include_router(templates_router, prefix="/templates", tags=["templates"])
api_router.include_router(checklists_router, prefix="/checklists", tags=["checklists"])
api_router.include_router(teams_router, prefix="/teams", tags=["teams"])
api_router.include_router(team_invitations_router, prefix="/teams", tags=["invitations"])
api_router.include_router(team_templates_router, prefix="/teams", tags=["team-templates"])
api_router.include_router(invitations_router, prefix="/invitations", tags=["invitations"])

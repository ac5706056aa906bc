from fastapi import APIRouter
from app.api.v1.endpoints import (
    auth, health, users, projects, ledger, project_groups, teamlead, employee
)

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(users.router, prefix="/users", tags=["users"])

# Resource endpoints
api_router.include_router(projects.router, prefix="/projects", tags=["projects"])
api_router.include_router(ledger.router, prefix="/projects", tags=["project-ledger"])
api_router.include_router(project_groups.router, prefix="/project-groups", tags=["project-groups"])

# Role workspaces
api_router.include_router(teamlead.router, prefix="/teamlead", tags=["teamlead"])
api_router.include_router(employee.router, prefix="/employee", tags=["employee"])

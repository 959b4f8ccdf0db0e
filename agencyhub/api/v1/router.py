# agencyhub/api/v1/router.py
from fastapi import APIRouter

from agencyhub.api.v1.endpoints import (
    auth,
    clients,
    custom_requests,
    roles,
    sales,
    team_members,
)

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(clients.router, prefix="/clients", tags=["clients"])
api_router.include_router(custom_requests.router, prefix="/custom-requests", tags=["custom-requests"])
api_router.include_router(sales.router, prefix="/sales", tags=["sales"])
api_router.include_router(roles.router, prefix="/roles", tags=["roles"])
api_router.include_router(team_members.router, prefix="/team-members", tags=["team-members"])

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from agencyhub.core.database import get_db
from agencyhub.core.security import decode_token
from agencyhub.models.team_member import TeamMember
from agencyhub.schemas.access import EffectiveAccessResponse
from agencyhub.schemas.team_member import TeamMemberResponse
from agencyhub.services.permission_service import refresh_access, resolve_access

router = APIRouter()

bearer_scheme = HTTPBearer(auto_error=False)


@router.get("/health", tags=["auth"])
async def auth_health_check() -> dict:
    """
    Simple health check for the auth module.
    """
    return {"status": "auth-ok"}


def get_current_member(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> TeamMember:
    """
    Dependency to retrieve the acting team member from the bearer token.

    Tokens are issued by the hosted auth backend; `sub` is the member id.
    Deactivated members are returned too: they resolve to no permissions.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_token(credentials.credentials)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        member_id = UUID(str(payload.get("sub")))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    member = db.query(TeamMember).filter(TeamMember.id == member_id).first()
    if not member:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Team member not found",
        )
    return member


@router.get("/me", response_model=TeamMemberResponse, tags=["auth"])
def read_current_member(
    current_member: TeamMember = Depends(get_current_member),
) -> TeamMemberResponse:
    """
    Return the current authenticated team member.
    """
    return TeamMemberResponse.model_validate(current_member)


@router.get("/me/access", response_model=EffectiveAccessResponse, tags=["auth"])
def read_current_access(
    current_member: TeamMember = Depends(get_current_member),
    db: Session = Depends(get_db),
) -> EffectiveAccessResponse:
    """
    Effective permissions and hierarchy flags for the current member.
    """
    return EffectiveAccessResponse.from_access(resolve_access(db, current_member))


@router.post("/me/access/refresh", response_model=EffectiveAccessResponse, tags=["auth"])
def refresh_current_access(
    current_member: TeamMember = Depends(get_current_member),
    db: Session = Depends(get_db),
) -> EffectiveAccessResponse:
    """
    Re-read the member row and resolve access again (after a role change).
    """
    return EffectiveAccessResponse.from_access(refresh_access(db, current_member.id))

from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from supabase import AsyncClient
from supabase_auth import User

from teamhub.db.database import get_membership_store, get_service_client
from teamhub.db.store import MembershipStore
from teamhub.services.invitation_service import InvitationService
from teamhub.services.team_service import TeamService

security = HTTPBearer()


def get_supabase_service_client() -> AsyncClient:
    """Get the Supabase service client."""
    return get_service_client()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    service_client: AsyncClient = Depends(get_supabase_service_client),
) -> User:
    """Resolve the bearer token to a Supabase Auth user."""
    if not credentials or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token"
        )

    token = credentials.credentials
    try:
        user = await service_client.auth.get_user(token)
    except Exception:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token"
        )

    if not user or not user.user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid user"
        )

    return user.user


async def get_current_user_id(user: User = Depends(get_current_user)) -> UUID:
    return UUID(user.id)


async def get_current_user_email(
    user: User = Depends(get_current_user),
) -> Optional[str]:
    return user.email


def get_team_service(
    store: MembershipStore = Depends(get_membership_store),
) -> TeamService:
    return TeamService(store)


def get_invitation_service(
    store: MembershipStore = Depends(get_membership_store),
    team_service: TeamService = Depends(get_team_service),
) -> InvitationService:
    return InvitationService(store, team_service)

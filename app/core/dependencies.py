"""
Core dependencies for route protection and ownership checks
"""

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.database.supabase_client import get_supabase
from app.modules.auth.service import AuthService
from app.modules.profiles.service import ProfileService
from supabase import Client
from typing import Dict, Any
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()


def _get_request_cache(request: Request) -> Dict[str, Any]:
    """Return request-scoped cache (subscription tier)."""
    if not hasattr(request.state, "access_cache"):
        request.state.access_cache = {}
    return request.state.access_cache


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_current_user_id(
    credentials: HTTPAuthorizationCredentials = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    token = credentials.credentials
    user_data = auth_service.get_current_user(token)
    return user_data


def get_subscription_tier(
    request: Request,
    current_user: dict = Depends(get_current_user_id),
    supabase: Client = Depends(get_supabase)
) -> str:
    """Caller's subscription tier from profiles. Cached for the duration of the request."""
    cache = _get_request_cache(request)
    if "tier" not in cache:
        cache["tier"] = ProfileService(supabase).get_subscription_tier(current_user["id"])
    return cache["tier"]


def check_journal_entry_access(
    entry_id: str,
    user_data: dict,
    supabase: Client,
    columns: str = "id, user_id"
) -> Dict[str, Any]:
    """Return the journal entry if it belongs to the caller; 404 when missing, 403 when owned by someone else."""
    result = supabase.table("journal_entries")\
        .select(columns)\
        .eq("id", entry_id)\
        .maybe_single()\
        .execute()
    if not result or not result.data:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Journal entry not found"
        )
    if result.data.get("user_id") != user_data["id"]:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have access to this journal entry"
        )
    return result.data

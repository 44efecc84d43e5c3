from fastapi import APIRouter, Depends, Query
from app.database.supabase_client import get_supabase
from app.modules.community.schemas import (
    CommunityPostCreate, CommunityPostListResponse, CommunityPostItemResponse
)
from app.modules.community.service import CommunityService
from app.core.dependencies import get_current_user_id
from supabase import Client
from typing import Optional, Dict

router = APIRouter(prefix="/community", tags=["community"])


def get_community_service(supabase: Client = Depends(get_supabase)) -> CommunityService:
    return CommunityService(supabase)


@router.get("/posts", response_model=CommunityPostListResponse)
async def list_posts(
    limit: int = Query(20, ge=1),
    cursor: Optional[str] = None,
    category: Optional[str] = None,
    q: Optional[str] = None,
    current_user: Dict = Depends(get_current_user_id),
    service: CommunityService = Depends(get_community_service)
):
    """List community posts (keyset pagination on created_at, id)"""
    return service.list_posts(current_user["id"], limit=limit, cursor=cursor, category=category, q=q)


@router.post("/posts", response_model=CommunityPostItemResponse, status_code=201)
async def create_post(
    post_data: CommunityPostCreate,
    current_user: Dict = Depends(get_current_user_id),
    service: CommunityService = Depends(get_community_service)
):
    """Create a community post"""
    return CommunityPostItemResponse(item=service.create_post(current_user["id"], post_data))


@router.get("/posts/{post_id}", response_model=CommunityPostItemResponse)
async def get_post(
    post_id: str,
    current_user: Dict = Depends(get_current_user_id),
    service: CommunityService = Depends(get_community_service)
):
    """Get a community post"""
    return CommunityPostItemResponse(item=service.get_post(post_id, current_user["id"]))


@router.delete("/posts/{post_id}", status_code=204)
async def delete_post(
    post_id: str,
    current_user: Dict = Depends(get_current_user_id),
    service: CommunityService = Depends(get_community_service)
):
    """Delete your own community post"""
    service.delete_post(post_id, current_user["id"])
    return None

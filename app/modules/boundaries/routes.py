from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.boundaries.schemas import BoundaryCreate, BoundaryUpdate, BoundaryResponse
from app.modules.boundaries.service import BoundaryService
from app.core.dependencies import get_current_user_id
from supabase import Client
from typing import List, Optional, Dict

router = APIRouter(prefix="/boundaries", tags=["boundaries"])


def get_boundary_service(supabase: Client = Depends(get_supabase)) -> BoundaryService:
    return BoundaryService(supabase)


@router.post("", response_model=BoundaryResponse, status_code=201)
async def create_boundary(
    boundary_data: BoundaryCreate,
    current_user: Dict = Depends(get_current_user_id),
    service: BoundaryService = Depends(get_boundary_service)
):
    """Create a boundary"""
    return service.create_boundary(current_user["id"], boundary_data)


@router.get("", response_model=List[BoundaryResponse])
async def list_boundaries(
    status: Optional[str] = None,
    category: Optional[str] = None,
    current_user: Dict = Depends(get_current_user_id),
    service: BoundaryService = Depends(get_boundary_service)
):
    """List the caller's boundaries"""
    return service.list_boundaries(current_user["id"], status=status, category=category)


@router.get("/{boundary_id}", response_model=BoundaryResponse)
async def get_boundary(
    boundary_id: str,
    current_user: Dict = Depends(get_current_user_id),
    service: BoundaryService = Depends(get_boundary_service)
):
    """Get a boundary"""
    return service.get_boundary(boundary_id, current_user["id"])


@router.put("/{boundary_id}", response_model=BoundaryResponse)
async def update_boundary(
    boundary_id: str,
    boundary_data: BoundaryUpdate,
    current_user: Dict = Depends(get_current_user_id),
    service: BoundaryService = Depends(get_boundary_service)
):
    """Update a boundary"""
    return service.update_boundary(boundary_id, current_user["id"], boundary_data)


@router.post("/{boundary_id}/review", response_model=BoundaryResponse)
async def review_boundary(
    boundary_id: str,
    current_user: Dict = Depends(get_current_user_id),
    service: BoundaryService = Depends(get_boundary_service)
):
    """Mark a boundary as reviewed"""
    return service.mark_reviewed(boundary_id, current_user["id"])


@router.delete("/{boundary_id}", status_code=204)
async def delete_boundary(
    boundary_id: str,
    current_user: Dict = Depends(get_current_user_id),
    service: BoundaryService = Depends(get_boundary_service)
):
    """Delete a boundary"""
    service.delete_boundary(boundary_id, current_user["id"])
    return None

from supabase import Client
from fastapi import HTTPException
from app.modules.boundaries.schemas import BoundaryCreate, BoundaryUpdate, BoundaryResponse
from datetime import datetime
from typing import List, Optional


def _is_active(status: str) -> bool:
    return status != "needs-attention"


class BoundaryService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def create_boundary(self, user_id: str, boundary_data: BoundaryCreate) -> BoundaryResponse:
        """Create a boundary"""
        try:
            now = datetime.utcnow().isoformat()
            result = self.supabase.table("boundaries").insert({
                "user_id": user_id,
                "title": boundary_data.title,
                "description": boundary_data.description,
                "category": boundary_data.category,
                "priority": boundary_data.priority,
                "status": boundary_data.status,
                "is_active": _is_active(boundary_data.status),
                "last_reviewed": now
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create boundary")

            return BoundaryResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_boundary(self, boundary_id: str, user_id: str) -> BoundaryResponse:
        """Get a boundary owned by user_id"""
        try:
            result = self.supabase.table("boundaries")\
                .select("*")\
                .eq("id", boundary_id)\
                .eq("user_id", user_id)\
                .maybe_single()\
                .execute()

            if not result or not result.data:
                raise HTTPException(status_code=404, detail="Boundary not found")

            return BoundaryResponse(**result.data)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_boundaries(
        self,
        user_id: str,
        status: Optional[str] = None,
        category: Optional[str] = None
    ) -> List[BoundaryResponse]:
        """List the user's boundaries"""
        try:
            query = self.supabase.table("boundaries")\
                .select("*")\
                .eq("user_id", user_id)
            if status:
                query = query.eq("status", status)
            if category:
                query = query.eq("category", category)

            result = query.order("created_at", desc=True).execute()
            return [BoundaryResponse(**b) for b in result.data or []]
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_boundary(self, boundary_id: str, user_id: str, boundary_data: BoundaryUpdate) -> BoundaryResponse:
        """Update a boundary"""
        try:
            update_data = boundary_data.model_dump(exclude_unset=True, exclude_none=True)
            if not update_data:
                return self.get_boundary(boundary_id, user_id)
            if "status" in update_data:
                update_data["is_active"] = _is_active(update_data["status"])
            update_data["updated_at"] = datetime.utcnow().isoformat()

            result = self.supabase.table("boundaries")\
                .update(update_data)\
                .eq("id", boundary_id)\
                .eq("user_id", user_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Boundary not found")

            return BoundaryResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def mark_reviewed(self, boundary_id: str, user_id: str) -> BoundaryResponse:
        """Stamp last_reviewed"""
        try:
            now = datetime.utcnow().isoformat()
            result = self.supabase.table("boundaries")\
                .update({"last_reviewed": now, "updated_at": now})\
                .eq("id", boundary_id)\
                .eq("user_id", user_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Boundary not found")

            return BoundaryResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_boundary(self, boundary_id: str, user_id: str) -> bool:
        """Delete a boundary"""
        try:
            result = self.supabase.table("boundaries")\
                .delete()\
                .eq("id", boundary_id)\
                .eq("user_id", user_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Boundary not found")

            return True
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

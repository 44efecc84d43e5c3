from supabase import Client
from fastapi import HTTPException
from app.modules.community.schemas import CommunityPostCreate, CommunityPostResponse, CommunityPostListResponse
from app.core.pagination import apply_keyset, encode_cursor
from typing import Dict, Optional
import logging

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 50


def _to_response(post: Dict, viewer_id: Optional[str] = None) -> CommunityPostResponse:
    """Anonymous posts only reveal their author to the author."""
    data = dict(post)
    if data.get("is_anonymous") and data.get("author_id") != viewer_id:
        data["author_id"] = None
    return CommunityPostResponse(**data)


def _search_term(q: str) -> str:
    # PostgREST or_ filters use commas and parentheses as separators
    return "".join(ch for ch in q if ch not in ",()").strip()


class CommunityService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_posts(
        self,
        viewer_id: str,
        limit: int = 20,
        cursor: Optional[str] = None,
        category: Optional[str] = None,
        q: Optional[str] = None
    ) -> CommunityPostListResponse:
        """Newest posts first, paged by (created_at, id)."""
        try:
            limit = min(max(limit, 1), MAX_PAGE_SIZE)
            query = self.supabase.table("community_posts").select("*")
            query = apply_keyset(query, cursor).limit(limit)
            if category:
                query = query.eq("category", category)
            term = _search_term(q) if q else ""
            if term:
                query = query.or_(f"title.ilike.%{term}%,content.ilike.%{term}%")

            result = query.execute()
            posts = result.data or []
            return CommunityPostListResponse(
                items=[_to_response(p, viewer_id) for p in posts],
                next_cursor=encode_cursor(posts, limit)
            )
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Failed to list community posts: {e}")
            raise HTTPException(status_code=500, detail="Failed to list posts")

    def get_post(self, post_id: str, viewer_id: str) -> CommunityPostResponse:
        try:
            result = self.supabase.table("community_posts")\
                .select("*")\
                .eq("id", post_id)\
                .maybe_single()\
                .execute()

            if not result or not result.data:
                raise HTTPException(status_code=404, detail="Post not found")

            return _to_response(result.data, viewer_id)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def create_post(self, author_id: str, post_data: CommunityPostCreate) -> CommunityPostResponse:
        """Create a post. Title and content must be non-blank."""
        title = post_data.title.strip()
        content = post_data.content.strip()
        if not title or not content:
            raise HTTPException(status_code=400, detail="Title and content are required")
        category = post_data.category.strip() if post_data.category else None

        try:
            result = self.supabase.table("community_posts").insert({
                "author_id": author_id,
                "title": title,
                "content": content,
                "is_anonymous": post_data.is_anonymous,
                "category": category or None
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create post")

            logger.info(f"Community post {result.data[0].get('id')} created")
            return _to_response(result.data[0], author_id)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Failed to create community post: {e}")
            raise HTTPException(status_code=500, detail="Failed to create post")

    def delete_post(self, post_id: str, author_id: str) -> bool:
        """Delete a post. Only its author may delete it."""
        try:
            existing = self.supabase.table("community_posts")\
                .select("id, author_id")\
                .eq("id", post_id)\
                .maybe_single()\
                .execute()

            if not existing or not existing.data:
                raise HTTPException(status_code=404, detail="Post not found")
            if existing.data.get("author_id") != author_id:
                raise HTTPException(status_code=403, detail="Only the author can delete this post")

            self.supabase.table("community_posts")\
                .delete()\
                .eq("id", post_id)\
                .eq("author_id", author_id)\
                .execute()
            return True
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Failed to delete community post {post_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to delete post")

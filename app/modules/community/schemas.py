from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime


class CommunityPostCreate(BaseModel):
    title: str
    content: str
    is_anonymous: bool = False
    category: Optional[str] = None


class CommunityPostResponse(BaseModel):
    id: str
    author_id: Optional[str] = None
    title: str
    content: str
    is_anonymous: bool = False
    category: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CommunityPostListResponse(BaseModel):
    items: List[CommunityPostResponse]
    next_cursor: Optional[str] = None


class CommunityPostItemResponse(BaseModel):
    item: CommunityPostResponse

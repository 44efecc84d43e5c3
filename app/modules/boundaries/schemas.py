from pydantic import BaseModel, Field
from typing import Optional, Literal
from datetime import datetime

BoundaryCategory = Literal["communication", "emotional", "physical", "time", "social", "workplace"]
BoundaryPriority = Literal["high", "medium", "low"]
BoundaryStatus = Literal["active", "working-on", "needs-attention"]


class BoundaryCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    category: BoundaryCategory
    priority: BoundaryPriority = "medium"
    status: BoundaryStatus = "active"


class BoundaryUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    category: Optional[BoundaryCategory] = None
    priority: Optional[BoundaryPriority] = None
    status: Optional[BoundaryStatus] = None


class BoundaryResponse(BaseModel):
    id: str
    user_id: str
    title: str
    description: Optional[str] = None
    category: str
    priority: str
    status: str
    is_active: bool = True
    last_reviewed: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

from pydantic import BaseModel
from typing import Optional


class CurrentUserResponse(BaseModel):
    id: Optional[str] = None
    email: Optional[str] = None
    subscription_tier: Optional[str] = None

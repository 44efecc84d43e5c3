from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


class JournalEntryCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    incident_date: str
    incident_time: Optional[str] = None
    location: Optional[str] = None
    safety_rating: int = Field(3, ge=1, le=5)
    mood_rating: Optional[int] = Field(None, ge=1, le=10)
    abuse_types: List[str] = []
    behavior_categories: List[str] = []
    emotional_state_before: Optional[str] = None
    emotional_state_after: Optional[str] = None
    evidence_notes: Optional[str] = None
    witnesses: List[str] = []
    trigger_level: Optional[int] = Field(None, ge=1, le=5)
    is_evidence: bool = False
    is_draft: bool = False


class JournalEntryUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    incident_date: Optional[str] = None
    incident_time: Optional[str] = None
    location: Optional[str] = None
    safety_rating: Optional[int] = Field(None, ge=1, le=5)
    mood_rating: Optional[int] = Field(None, ge=1, le=10)
    abuse_types: Optional[List[str]] = None
    behavior_categories: Optional[List[str]] = None
    emotional_state_before: Optional[str] = None
    emotional_state_after: Optional[str] = None
    evidence_notes: Optional[str] = None
    witnesses: Optional[List[str]] = None
    trigger_level: Optional[int] = Field(None, ge=1, le=5)
    is_evidence: Optional[bool] = None
    is_draft: Optional[bool] = None


class JournalEntryResponse(BaseModel):
    id: str
    user_id: str
    title: str
    description: Optional[str] = None
    incident_date: Optional[str] = None
    incident_time: Optional[str] = None
    location: Optional[str] = None
    safety_rating: Optional[int] = None
    mood_rating: Optional[int] = None
    abuse_types: Optional[List[str]] = None
    behavior_categories: Optional[List[str]] = None
    emotional_state_before: Optional[str] = None
    emotional_state_after: Optional[str] = None
    evidence_notes: Optional[str] = None
    witnesses: Optional[List[str]] = None
    trigger_level: Optional[int] = None
    is_evidence: bool = False
    is_draft: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

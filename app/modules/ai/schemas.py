from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime


class SuggestTitleRequest(BaseModel):
    text: str = ""
    n: int = 5


class SuggestTitleResponse(BaseModel):
    success: bool = True
    suggestions: List[str]
    cached: Optional[bool] = None


class SuggestMetadataRequest(BaseModel):
    text: str = ""
    limit: int = 3
    locale: str = "en"


class TitleSuggestion(BaseModel):
    text: str
    confidence: float
    rationale: str = ""


class TaggedSuggestion(BaseModel):
    key: str
    confidence: float
    evidence: List[str] = []


class SuggestMetadataResponse(BaseModel):
    success: bool = True
    model: str
    title_suggestions: List[TitleSuggestion]
    abuse_types: List[TaggedSuggestion]
    behavior_categories: List[TaggedSuggestion]
    warnings: List[str]
    cached: Optional[bool] = None


class CopingContext(BaseModel):
    mood: Optional[float] = None
    anxiety: Optional[float] = None
    energy: Optional[float] = None
    preferred_categories: List[str] = []
    note: Optional[str] = None


class CopingStrategiesRequest(BaseModel):
    context: CopingContext = Field(default_factory=CopingContext)


class CopingStrategy(BaseModel):
    strategy_name: str
    description: str
    category: str
    effectiveness_rating: int
    rationale: Optional[str] = None


class CopingStrategiesResponse(BaseModel):
    suggestions: List[CopingStrategy]
    source: str = "ai"


class PatternAnalysisRequest(BaseModel):
    date_range_start: Optional[str] = None
    date_range_end: Optional[str] = None
    analysis_type: str = "abuse_patterns"


class AnalysisPeriod(BaseModel):
    start: Optional[str] = None
    end: Optional[str] = None


class PatternAnalysisMetadata(BaseModel):
    entries_analyzed: int
    analysis_period: AnalysisPeriod


class PatternAnalysisResponse(BaseModel):
    success: bool = True
    analysis_id: Optional[str] = None
    analysis: Dict[str, Any]
    metadata: PatternAnalysisMetadata


class ChatTurn(BaseModel):
    role: str = "user"
    content: str = ""


class ChatRequest(BaseModel):
    message: str = ""
    context: str = "general"
    conversation_history: List[ChatTurn] = []
    conversation_id: Optional[str] = None


class ChatUsageInfo(BaseModel):
    subscription_tier: str
    monthly_limit: int
    remaining: int


class ChatResponse(BaseModel):
    success: bool = True
    response: str
    context: str
    conversation_id: str
    usage_info: ChatUsageInfo


class ChatUsageResponse(BaseModel):
    success: bool = True
    usage_info: ChatUsageInfo


class ConversationSummary(BaseModel):
    id: str
    title: Optional[str] = None
    context_type: Optional[str] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ConversationListResponse(BaseModel):
    items: List[ConversationSummary]
    next_cursor: Optional[str] = None


class ConversationMessage(BaseModel):
    id: str
    role: str
    content: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ConversationMessagesResponse(BaseModel):
    items: List[ConversationMessage]
    next_cursor: Optional[str] = None

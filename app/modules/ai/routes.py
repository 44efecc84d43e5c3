from fastapi import APIRouter, Depends, Query
from app.database.supabase_client import get_supabase
from app.modules.ai.gemini_client import GeminiClient, get_gemini_client
from app.modules.ai.schemas import (
    SuggestTitleRequest, SuggestTitleResponse, SuggestMetadataRequest, SuggestMetadataResponse,
    CopingStrategiesRequest, CopingStrategiesResponse, PatternAnalysisRequest, PatternAnalysisResponse,
    ChatRequest, ChatResponse, ChatUsageResponse, ConversationListResponse, ConversationMessagesResponse
)
from app.modules.ai.service import AIService
from app.core.dependencies import get_current_user_id, get_subscription_tier
from supabase import Client
from typing import Dict, Optional

router = APIRouter(prefix="/ai", tags=["ai"])


def get_ai_service(
    supabase: Client = Depends(get_supabase),
    gemini: GeminiClient = Depends(get_gemini_client)
) -> AIService:
    return AIService(supabase, gemini)


@router.post("/suggest-title", response_model=SuggestTitleResponse, response_model_exclude_none=True)
def suggest_title(
    request: SuggestTitleRequest,
    current_user: Dict = Depends(get_current_user_id),
    tier: str = Depends(get_subscription_tier),
    service: AIService = Depends(get_ai_service)
):
    """Suggest journal entry titles"""
    return service.suggest_titles(current_user["id"], tier, request.text, request.n)


@router.post("/suggest-metadata", response_model=SuggestMetadataResponse, response_model_exclude_none=True)
def suggest_metadata(
    request: SuggestMetadataRequest,
    current_user: Dict = Depends(get_current_user_id),
    tier: str = Depends(get_subscription_tier),
    service: AIService = Depends(get_ai_service)
):
    """Suggest titles, abuse types and behavior categories (paid plans)"""
    return service.suggest_metadata(current_user["id"], tier, request.text, request.limit, request.locale)


@router.post("/suggest-coping-strategies", response_model=CopingStrategiesResponse, response_model_exclude_none=True)
def suggest_coping_strategies(
    request: CopingStrategiesRequest,
    current_user: Dict = Depends(get_current_user_id),
    service: AIService = Depends(get_ai_service)
):
    """Suggest coping strategies for the user's current state"""
    return service.suggest_coping_strategies(request.context)


@router.post("/pattern-analysis", response_model=PatternAnalysisResponse)
def pattern_analysis(
    request: PatternAnalysisRequest,
    current_user: Dict = Depends(get_current_user_id),
    tier: str = Depends(get_subscription_tier),
    service: AIService = Depends(get_ai_service)
):
    """Analyze abuse patterns across journal entries"""
    return service.analyze_patterns(current_user["id"], tier, request)


@router.post("/chat", response_model=ChatResponse)
def chat(
    request: ChatRequest,
    current_user: Dict = Depends(get_current_user_id),
    tier: str = Depends(get_subscription_tier),
    service: AIService = Depends(get_ai_service)
):
    """Send a message to the AI coach"""
    return service.chat(current_user["id"], tier, request)


@router.get("/chat/usage", response_model=ChatUsageResponse)
def chat_usage(
    current_user: Dict = Depends(get_current_user_id),
    tier: str = Depends(get_subscription_tier),
    service: AIService = Depends(get_ai_service)
):
    """Remaining AI interactions this month"""
    return service.chat_usage(current_user["id"], tier)


@router.get("/threads", response_model=ConversationListResponse)
def list_threads(
    limit: int = Query(20, ge=1),
    cursor: Optional[str] = None,
    current_user: Dict = Depends(get_current_user_id),
    service: AIService = Depends(get_ai_service)
):
    """List chat threads"""
    return service.list_conversations(current_user["id"], limit=limit, cursor=cursor)


@router.get("/thread-messages", response_model=ConversationMessagesResponse)
def list_thread_messages(
    conversation_id: str,
    limit: int = Query(30, ge=1),
    cursor: Optional[str] = None,
    current_user: Dict = Depends(get_current_user_id),
    service: AIService = Depends(get_ai_service)
):
    """List messages in a chat thread"""
    return service.list_conversation_messages(current_user["id"], conversation_id, limit=limit, cursor=cursor)

from supabase import Client
from fastapi import HTTPException
from app.config import settings
from app.config.tiers_config import UNLIMITED, normalize_tier
from app.core.exceptions import FeatureLimitExceeded, GeminiError
from app.core.pagination import apply_keyset, encode_cursor
from app.modules.ai.gemini_client import GeminiClient, model_for_tier, parse_json_array, parse_json_object
from app.modules.ai import prompts
from app.modules.ai.coping_templates import COPING_CATEGORIES, templates_for
from app.modules.ai.schemas import (
    SuggestTitleResponse, SuggestMetadataResponse, TitleSuggestion, TaggedSuggestion,
    CopingContext, CopingStrategy, CopingStrategiesResponse,
    PatternAnalysisRequest, PatternAnalysisResponse, PatternAnalysisMetadata, AnalysisPeriod,
    ChatRequest, ChatResponse, ChatUsageInfo, ChatUsageResponse,
    ConversationSummary, ConversationListResponse, ConversationMessage, ConversationMessagesResponse
)
from app.modules.usage.service import UsageService
from typing import Any, Dict, List, Optional
from datetime import datetime
import time
import logging

logger = logging.getLogger(__name__)

# Per-process cache of AI suggestions keyed by user, text hash and options
_SUGGESTION_CACHE: Dict[str, tuple] = {}
_SUGGESTION_CACHE_MAX_SIZE = 1000

FALLBACK_TITLE = "Journal Entry"
PATTERN_ENTRY_LIMIT = 50
PATTERN_CONFIDENCE_SCORE = 0.85

CHAT_HISTORY_MESSAGES = 12
CHAT_HISTORY_CHARS = 8000
CHAT_TITLE_LENGTH = 60
MAX_THREAD_PAGE_SIZE = 50
MAX_MESSAGE_PAGE_SIZE = 100


def fnv1a_hash(text: str) -> str:
    """32-bit FNV-1a of the text, as lowercase hex."""
    h = 0x811c9dc5
    for ch in text:
        h ^= ord(ch)
        h = (h * 0x01000193) & 0xFFFFFFFF
    return format(h, "x")


def clear_suggestion_cache():
    _SUGGESTION_CACHE.clear()


def _cache_get(key: str) -> Optional[Any]:
    entry = _SUGGESTION_CACHE.get(key)
    if not entry:
        return None
    value, expiry = entry
    if time.monotonic() >= expiry:
        del _SUGGESTION_CACHE[key]
        return None
    return value


def _cache_set(key: str, value: Any):
    if len(_SUGGESTION_CACHE) >= _SUGGESTION_CACHE_MAX_SIZE:
        _SUGGESTION_CACHE.clear()
    _SUGGESTION_CACHE[key] = (value, time.monotonic() + settings.ai_title_cache_ttl_seconds)


def _clamp(value: Any, low: float, high: float, default: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return max(low, min(high, number))


def _tagged(items: Any, allowed: List[str]) -> List[TaggedSuggestion]:
    if not isinstance(items, list):
        return []
    tagged = []
    for item in items:
        if not isinstance(item, dict):
            continue
        key = item.get("key").strip() if isinstance(item.get("key"), str) else ""
        if key not in allowed:
            continue
        evidence = item.get("evidence") if isinstance(item.get("evidence"), list) else []
        tagged.append(TaggedSuggestion(
            key=key,
            confidence=_clamp(item.get("confidence"), 0, 1, 0),
            evidence=[str(e)[:140] for e in evidence[:3]],
        ))
    return tagged[:5]


class AIService:
    def __init__(self, supabase: Client, gemini: GeminiClient):
        self.supabase = supabase
        self.gemini = gemini
        self.usage_service = UsageService(supabase)

    def suggest_titles(self, user_id: str, tier: str, text: str, n: int = 5) -> SuggestTitleResponse:
        """Suggest incident titles for a journal description."""
        if not isinstance(text, str) or len(text.strip()) < 8:
            raise HTTPException(status_code=400, detail="Provide a valid description text (min 8 chars)")
        tier = normalize_tier(tier)
        count = min(max(n, 3), 7)
        self.usage_service.enforce_feature_limit(user_id, tier, "ai_interactions", "monthly_count")

        cache_key = f"title:{user_id}:{fnv1a_hash(text)}:{count}"
        cached = _cache_get(cache_key)
        if cached is not None:
            return SuggestTitleResponse(suggestions=cached, cached=True)

        model = model_for_tier(tier)
        raw = self.gemini.generate(prompts.title_prompt(text, count), model=model, temperature=0.5, max_output_tokens=512)
        parsed = parse_json_array(raw) or []
        suggestions = [s.strip() for s in parsed if isinstance(s, str) and s.strip()][:count]
        if not suggestions:
            suggestions = [FALLBACK_TITLE]

        self.usage_service.record_feature_usage(user_id, "ai_interactions", "monthly_count", 1, {
            "feature": "suggest_title",
            "text_length": len(text),
            "model": model,
        })
        _cache_set(cache_key, suggestions)
        return SuggestTitleResponse(suggestions=suggestions)

    def suggest_metadata(self, user_id: str, tier: str, text: str, limit: int = 3, locale: str = "en") -> SuggestMetadataResponse:
        """Suggest titles, abuse types and behavior categories. Paid tiers only."""
        if not isinstance(text, str) or len(text.strip()) < 10:
            raise HTTPException(status_code=400, detail="Provide a valid description text (min 10 chars)")
        tier = normalize_tier(tier)
        if tier == "foundation":
            raise FeatureLimitExceeded(
                "AI Assist is available on Recovery and Empowerment plans",
                upgrade_required="recovery",
                status_code=403,
            )
        self.usage_service.enforce_feature_limit(user_id, tier, "ai_interactions", "monthly_count")

        title_count = min(max(limit, 1), 5)
        cache_key = f"metadata:{user_id}:{fnv1a_hash(text)}:{title_count}:{tier}"
        cached = _cache_get(cache_key)
        if cached is not None:
            return cached.model_copy(update={"cached": True})

        model = model_for_tier(tier)
        raw = self.gemini.generate(prompts.metadata_prompt(text, title_count), model=model, temperature=0.5, max_output_tokens=512)
        parsed = parse_json_object(raw)
        if parsed is None:
            logger.warning(f"Unparseable metadata suggestion reply for user {user_id}")
            parsed = {
                "title_suggestions": [{"text": FALLBACK_TITLE, "confidence": 0.3, "rationale": "Fallback default"}],
                "abuse_types": [],
                "behavior_categories": [],
                "warnings": ["PARSING_FALLBACK"],
            }

        titles = parsed.get("title_suggestions")
        if isinstance(titles, list):
            title_suggestions = [
                TitleSuggestion(
                    text=str((t.get("text") if isinstance(t, dict) else None) or FALLBACK_TITLE)[:80],
                    confidence=_clamp(t.get("confidence") if isinstance(t, dict) else None, 0, 1, 0),
                    rationale=str((t.get("rationale") if isinstance(t, dict) else None) or ""),
                )
                for t in titles
            ][:title_count]
        else:
            title_suggestions = [TitleSuggestion(text=FALLBACK_TITLE, confidence=0.3)]
        warnings = parsed.get("warnings")
        warnings = [str(w) for w in warnings][:5] if isinstance(warnings, list) else []

        self.usage_service.record_feature_usage(user_id, "ai_interactions", "monthly_count", 1, {
            "feature": "suggest_metadata",
            "text_length": len(text),
            "model": model,
            "locale": locale,
        })
        result = SuggestMetadataResponse(
            model=model,
            title_suggestions=title_suggestions,
            abuse_types=_tagged(parsed.get("abuse_types"), prompts.ABUSE_TYPES),
            behavior_categories=_tagged(parsed.get("behavior_categories"), prompts.BEHAVIOR_CATEGORIES),
            warnings=warnings,
        )
        _cache_set(cache_key, result)
        return result

    def suggest_coping_strategies(self, context: CopingContext) -> CopingStrategiesResponse:
        """Coping strategies for the user's current state; static templates when the reply is unusable."""
        raw = self.gemini.generate(
            prompts.coping_prompt(context.model_dump()),
            model=settings.gemini_paid_tier_model,
            temperature=0.6,
            max_output_tokens=1024,
        )
        parsed = parse_json_object(raw)
        items = parsed.get("suggestions") if parsed else None
        suggestions = []
        if isinstance(items, list):
            for item in items[:5]:
                if not isinstance(item, dict):
                    continue
                category = str(item.get("category"))
                suggestions.append(CopingStrategy(
                    strategy_name=str(item.get("strategy_name") or "Suggested Strategy"),
                    description=str(item.get("description") or "A practical coping step."),
                    category=category if category in COPING_CATEGORIES else "other",
                    effectiveness_rating=int(_clamp(item.get("effectiveness_rating") or 3, 1, 5, 3)),
                    rationale=str(item["rationale"]) if item.get("rationale") else None,
                ))
        if suggestions:
            return CopingStrategiesResponse(suggestions=suggestions)

        logger.warning("Coping strategy reply had no usable structure, serving templates")
        return CopingStrategiesResponse(
            suggestions=[CopingStrategy(**t) for t in templates_for(context.preferred_categories)],
            source="templates",
        )

    def analyze_patterns(self, user_id: str, tier: str, request: PatternAnalysisRequest) -> PatternAnalysisResponse:
        """Run an AI pattern analysis over the user's recent journal entries and store it."""
        tier = normalize_tier(tier)
        self.usage_service.enforce_feature_limit(
            user_id, tier, "pattern_analysis", "monthly_count",
            message="Pattern analysis limit reached for your subscription tier",
        )

        try:
            query = self.supabase.table("journal_entries")\
                .select("title, description, incident_date, abuse_types, safety_rating, "
                        "emotional_state_before, emotional_state_after, location")\
                .eq("user_id", user_id)\
                .order("incident_date", desc=True)
            if request.date_range_start:
                query = query.gte("incident_date", request.date_range_start)
            if request.date_range_end:
                query = query.lte("incident_date", request.date_range_end)
            entries = query.limit(PATTERN_ENTRY_LIMIT).execute().data or []
        except Exception as e:
            logger.error(f"Failed to fetch journal entries for {user_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch journal entries")

        if not entries:
            raise HTTPException(status_code=400, detail="No journal entries found for analysis")

        model = model_for_tier(tier)
        raw = self.gemini.generate(
            prompts.pattern_analysis_prompt(entries), model=model, temperature=0.3, max_output_tokens=2048
        )
        analysis = parse_json_object(raw)
        if analysis is None:
            raise GeminiError("Failed to analyze patterns - please try again")
        analysis.setdefault("patterns_identified", [])
        analysis.setdefault("insights", {})
        analysis.setdefault("recommendations", [])
        analysis.setdefault("risk_assessment", {})

        period = AnalysisPeriod(
            start=request.date_range_start or entries[-1].get("incident_date"),
            end=request.date_range_end or entries[0].get("incident_date"),
        )
        analysis_id = None
        try:
            saved = self.supabase.table("pattern_analysis")\
                .insert({
                    "user_id": user_id,
                    "analysis_type": request.analysis_type,
                    "analysis_period_start": period.start,
                    "analysis_period_end": period.end,
                    "patterns_identified": analysis["patterns_identified"],
                    "insights": analysis["insights"],
                    "recommendations": analysis["recommendations"],
                    "risk_assessment": analysis["risk_assessment"],
                    "confidence_score": PATTERN_CONFIDENCE_SCORE,
                    "data_points_analyzed": len(entries),
                    "ai_model_version": model,
                })\
                .execute()
            if saved.data:
                analysis_id = saved.data[0].get("id")
        except Exception as e:
            # The analysis is still returned when it cannot be stored
            logger.error(f"Failed to save pattern analysis for {user_id}: {e}")

        patterns = analysis["patterns_identified"]
        self.usage_service.record_feature_usage(user_id, "pattern_analysis", "monthly_count", 1, {
            "analysis_type": request.analysis_type,
            "entries_analyzed": len(entries),
            "patterns_found": len(patterns) if isinstance(patterns, list) else 0,
        })
        return PatternAnalysisResponse(
            analysis_id=analysis_id,
            analysis=analysis,
            metadata=PatternAnalysisMetadata(entries_analyzed=len(entries), analysis_period=period),
        )

    def _chat_usage_info(self, tier: str, monthly_limit: int, used: int) -> ChatUsageInfo:
        remaining = UNLIMITED if monthly_limit == UNLIMITED else max(0, monthly_limit - used)
        return ChatUsageInfo(subscription_tier=tier, monthly_limit=monthly_limit, remaining=remaining)

    def chat_usage(self, user_id: str, tier: str) -> ChatUsageResponse:
        """The caller's AI interaction allowance for this month."""
        tier = normalize_tier(tier)
        monthly_limit = self.usage_service.get_plan_limit(tier, "ai_interactions", "monthly_count")
        used = 0
        if monthly_limit != UNLIMITED:
            try:
                used = self.usage_service.count_usage_this_month(user_id, "ai_interactions")
            except Exception as e:
                logger.error(f"Failed to count AI usage for {user_id}: {e}")
                raise HTTPException(status_code=500, detail="Failed to read usage")
        return ChatUsageResponse(usage_info=self._chat_usage_info(tier, monthly_limit, used))

    def _owned_conversation(self, conversation_id: str, user_id: str) -> Dict[str, Any]:
        try:
            result = self.supabase.table("ai_conversations")\
                .select("id, user_id")\
                .eq("id", conversation_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            logger.error(f"Failed to load conversation {conversation_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to load conversation")
        if not result or not result.data or result.data.get("user_id") != user_id:
            raise HTTPException(status_code=404, detail="Conversation not found")
        return result.data

    def _chat_reply(self, prompt: str, model: str) -> str:
        try:
            return self.gemini.generate(prompt, model=model, temperature=0.7, max_output_tokens=1024)
        except GeminiError as e:
            # Paid models can be rejected for keys without access; the free model usually works
            rejected = "400" in e.message or "bad request" in e.message.lower()
            if not rejected or model == settings.gemini_free_tier_model:
                raise
            logger.warning(f"Chat model {model} rejected the request, retrying with the free tier model")
            return self.gemini.generate(
                prompt, model=settings.gemini_free_tier_model, temperature=0.7, max_output_tokens=1024
            )

    def chat(self, user_id: str, tier: str, request: ChatRequest) -> ChatResponse:
        """Answer one chat message and store both turns in a conversation thread."""
        message = request.message.strip() if isinstance(request.message, str) else ""
        if not message:
            raise HTTPException(status_code=400, detail="Message is required")
        tier = normalize_tier(tier)
        context = request.context if request.context in prompts.CHAT_CONTEXTS else "general"

        monthly_limit = self.usage_service.get_plan_limit(tier, "ai_interactions", "monthly_count")
        current_usage = self.usage_service.enforce_feature_limit(
            user_id, tier, "ai_interactions", "monthly_count", monthly_limit=monthly_limit
        )
        if request.conversation_id:
            self._owned_conversation(request.conversation_id, user_id)

        history = []
        total_chars = 0
        for turn in request.conversation_history[-CHAT_HISTORY_MESSAGES:]:
            if total_chars + len(turn.content) > CHAT_HISTORY_CHARS:
                break
            history.append({"role": "assistant" if turn.role == "assistant" else "user", "content": turn.content})
            total_chars += len(turn.content)

        model = model_for_tier(tier)
        reply = self._chat_reply(prompts.chat_prompt(message, history, context), model)

        now = datetime.utcnow().isoformat()
        conversation_id = request.conversation_id
        try:
            if conversation_id:
                self.supabase.table("ai_conversations")\
                    .update({"updated_at": now})\
                    .eq("id", conversation_id)\
                    .eq("user_id", user_id)\
                    .execute()
            else:
                created = self.supabase.table("ai_conversations").insert({
                    "user_id": user_id,
                    "title": message[:CHAT_TITLE_LENGTH],
                    "context_type": context,
                    "updated_at": now,
                }).execute()
                if not created.data:
                    raise HTTPException(status_code=500, detail="Failed to create conversation")
                conversation_id = created.data[0]["id"]
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Failed to store conversation for {user_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to create conversation")

        try:
            self.supabase.table("ai_messages").insert([
                {
                    "conversation_id": conversation_id,
                    "user_id": user_id,
                    "role": role,
                    "content": content,
                    "metadata": {"context_type": context},
                }
                for role, content in (("user", message), ("assistant", reply))
            ]).execute()
        except Exception as e:
            # The reply is still returned when the thread cannot be stored
            logger.error(f"Failed to store chat messages in {conversation_id}: {e}")

        self.usage_service.record_feature_usage(user_id, "ai_interactions", "monthly_count", 1, {
            "feature": "ai_chat",
            "context_type": context,
            "message_length": len(message),
            "response_length": len(reply),
            "model": model,
        })
        return ChatResponse(
            response=reply,
            context=context,
            conversation_id=conversation_id,
            usage_info=self._chat_usage_info(tier, monthly_limit, current_usage + 1),
        )

    def list_conversations(self, user_id: str, limit: int = 20, cursor: Optional[str] = None) -> ConversationListResponse:
        """The caller's chat threads, most recently active first."""
        limit = min(max(limit, 1), MAX_THREAD_PAGE_SIZE)
        try:
            query = self.supabase.table("ai_conversations")\
                .select("id, title, context_type, updated_at")\
                .eq("user_id", user_id)
            rows = apply_keyset(query, cursor, column="updated_at").limit(limit).execute().data or []
        except Exception as e:
            logger.error(f"Failed to list conversations for {user_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to load threads")
        return ConversationListResponse(
            items=[ConversationSummary(**row) for row in rows],
            next_cursor=encode_cursor(rows, limit, column="updated_at"),
        )

    def list_conversation_messages(
        self,
        user_id: str,
        conversation_id: str,
        limit: int = 30,
        cursor: Optional[str] = None
    ) -> ConversationMessagesResponse:
        """Messages of one of the caller's threads, newest first."""
        self._owned_conversation(conversation_id, user_id)
        limit = min(max(limit, 1), MAX_MESSAGE_PAGE_SIZE)
        try:
            query = self.supabase.table("ai_messages")\
                .select("id, role, content, created_at")\
                .eq("conversation_id", conversation_id)
            rows = apply_keyset(query, cursor).limit(limit).execute().data or []
        except Exception as e:
            logger.error(f"Failed to list messages of {conversation_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to load messages")
        return ConversationMessagesResponse(
            items=[ConversationMessage(**row) for row in rows],
            next_cursor=encode_cursor(rows, limit),
        )

"""Prompt builders for the Gemini-backed journaling helpers."""

from typing import Any, Dict, List

ABUSE_TYPES = [
    "gaslighting", "love_bombing", "silent_treatment", "triangulation", "projection",
    "hoovering", "smear_campaign", "financial_abuse", "emotional_manipulation",
    "isolation", "misscommitment",
]

BEHAVIOR_CATEGORIES = [
    "verbal_abuse", "emotional_manipulation", "gaslighting", "isolation", "financial_control",
    "physical_intimidation", "surveillance", "threats", "love_bombing", "silent_treatment",
    "blame_shifting", "projection",
]


def title_prompt(text: str, count: int) -> str:
    return f'''Role: Trauma-informed journaling assistant with expertise in recognizing manipulation patterns (e.g., gaslighting, blame-shifting, DARVO, intermittent reinforcement, silent treatment, triangulation). Do NOT diagnose or label people; avoid clinical claims. Focus on the user's lived experience.

Task: Suggest {count} concise, specific, and compassionate incident titles that reflect the core pattern or theme present in the text.

Style constraints:
- 4 to 10 words each, neutral and non-blaming.
- Prefer clear pattern words when appropriate (e.g., "Gaslighting", "Blame Shifting", "DARVO Response", "Invalidation", "Stonewalling", "Love Bombing").
- Avoid names or sensitive identifiers. No diagnosis or labels about a person.
- No emojis, no quotes, no markdown.

Return ONLY a compact JSON array of strings. Nothing else.

Journal text:
"""
{text}
"""

If context is too thin, return a safe generic like ["Journal Entry"]. Ensure strictly valid JSON.'''


def metadata_prompt(text: str, limit: int) -> str:
    return f'''You assist a trauma-informed journaling app for survivors. Do not diagnose or label people. Infer likely behavior categories from the text conservatively and only from the allowed lists.
Return STRICT JSON only, no markdown, in this schema:
{{
  "title_suggestions": [{{"text": string, "confidence": number, "rationale": string}}],
  "abuse_types": [{{"key": string, "confidence": number, "evidence": string[]}}],
  "behavior_categories": [{{"key": string, "confidence": number, "evidence": string[]}}],
  "warnings": string[]
}}
Constraints:
- Titles: {limit} options, <= 60 chars, neutral, compassionate, no names.
- abuse_types keys must be from: {", ".join(ABUSE_TYPES)}
- behavior_categories keys must be from: {", ".join(BEHAVIOR_CATEGORIES)}
- confidence is 0-1. Include short evidence quotes when possible.
- If text is too short/ambiguous, add a warning like "LOW_CONTEXT".
User text:
"""
{text}
"""'''


def coping_prompt(context: Dict[str, Any]) -> str:
    preferred = context.get("preferred_categories") or []
    preferred_line = f"Preferred categories: {', '.join(preferred)}" if preferred else "Preferred categories: none specified"
    mood = context.get("mood")
    anxiety = context.get("anxiety")
    energy = context.get("energy")
    note = context.get("note")
    lines = [
        f"Mood: {mood}/10" if mood is not None else "Mood: n/a",
        f"Anxiety: {anxiety}/10" if anxiety is not None else "Anxiety: n/a",
        f"Energy: {energy}/10" if energy is not None else "Energy: n/a",
        preferred_line,
    ]
    note_line = f"User note: {str(note)[:500]}" if note else "User note: n/a"
    return f'''You are a trauma-informed coach. Suggest practical coping strategies tailored to the user's current state.
{"; ".join(lines)}. {note_line}.
Return STRICT JSON with this shape:
{{
  "suggestions": [
    {{
      "strategy_name": "string",
      "description": "1-3 short sentences with concrete steps",
      "category": "breathing|grounding|physical|creative|emotional|other",
      "effectiveness_rating": 1-5,
      "rationale": "why this may help"
    }}
  ]
}}
Keep items actionable and safe. Avoid clinical claims or diagnoses. Limit to 3-5 items.'''


def _entry_block(index: int, entry: Dict[str, Any]) -> str:
    abuse_types = entry.get("abuse_types") or []
    return (
        f"Entry {index}:\n"
        f"Date: {entry.get('incident_date')}\n"
        f"Title: {entry.get('title')}\n"
        f"Description: {entry.get('description')}\n"
        f"Abuse Types: {', '.join(abuse_types)}\n"
        f"Safety Rating: {entry.get('safety_rating')}/5\n"
        f"Emotional State Before: {entry.get('emotional_state_before') or 'Not specified'}\n"
        f"Emotional State After: {entry.get('emotional_state_after') or 'Not specified'}\n"
        f"Location: {entry.get('location') or 'Not specified'}\n"
    )


def pattern_analysis_prompt(entries: List[Dict[str, Any]]) -> str:
    blocks = "\n".join(_entry_block(i + 1, entry) for i, entry in enumerate(entries))
    return f'''You are an AI specialist in narcissistic abuse pattern recognition. Analyze the following journal entries and provide a comprehensive pattern analysis.

Journal Entries:
{blocks}

Please provide a JSON response with the following structure:
{{
  "patterns_identified": [
    {{
      "type": "pattern_name",
      "frequency": number_of_occurrences,
      "severity": "low|medium|high",
      "description": "detailed_description",
      "examples": ["example1", "example2"]
    }}
  ],
  "insights": {{
    "summary": "overall_summary",
    "risk_level": "low|medium|high|critical",
    "trends": ["trend1", "trend2"],
    "recommendations": ["rec1", "rec2"]
  }},
  "recommendations": [
    {{
      "priority": "low|medium|high|urgent",
      "category": "safety|healing|documentation|support",
      "action": "specific_action",
      "description": "detailed_description"
    }}
  ],
  "risk_assessment": {{
    "overall_risk": "low|medium|high|critical",
    "escalation_indicators": ["indicator1", "indicator2"],
    "safety_concerns": ["concern1", "concern2"],
    "immediate_actions": ["action1", "action2"]
  }}
}}

Focus on identifying cycles, escalation patterns, triggers, and provide trauma-informed recommendations.'''


_CHAT_BASE = (
    "You are a compassionate AI coach specialized in helping survivors of narcissistic abuse. "
    "You are trauma-informed, validating, and focused on empowerment and healing."
)

CHAT_CONTEXTS = {
    "general": f"{_CHAT_BASE} Provide supportive guidance and validation.",
    "crisis": f"{_CHAT_BASE} This is a crisis situation. Prioritize safety and provide immediate support resources.",
    "pattern-analysis": f"{_CHAT_BASE} Help identify patterns in abusive behavior and provide insights.",
    "mind-reset": f"{_CHAT_BASE} Help reframe negative thoughts and provide coping strategies.",
    "grey-rock": f"{_CHAT_BASE} Provide guidance on the grey rock technique for minimizing conflict.",
}


def chat_prompt(message: str, history: List[Dict[str, str]], context: str = "general") -> str:
    """System prompt, prior turns as 'User:'/'Assistant:' lines, then the new message."""
    lines = [CHAT_CONTEXTS.get(context, CHAT_CONTEXTS["general"])]
    for turn in history:
        speaker = "Assistant" if turn["role"] == "assistant" else "User"
        lines.append(f"{speaker}: {turn['content']}")
    lines.append(f"User: {message}")
    return "\n\n".join(lines)

"""
Subscription Tiers and Feature Limits Configuration
This config defines the per-tier limit table for every metered feature.
Used by the usage gates at request time and by the seed script that
populates the feature_limits table.
"""

UNLIMITED = -1

TIERS = ["foundation", "recovery", "empowerment"]
DEFAULT_TIER = "foundation"

# Define metered features and how their limit is expressed
FEATURES = {
    # Core quotas
    "ai_interactions": {
        "limit_type": "monthly_count",
        "description": "AI coach, title and metadata suggestions"
    },
    "transcription_minutes": {
        "limit_type": "minutes",
        "description": "Audio transcription minutes"
    },
    "pattern_analysis": {
        "limit_type": "monthly_count",
        "description": "AI pattern analysis runs"
    },
    "storage": {
        "limit_type": "storage_mb",
        "description": "Evidence storage (MB)"
    },
    # Additional feature gates
    "journal_entries": {
        "limit_type": "monthly_count",
        "description": "Journal entries"
    },
    "mind_reset_sessions": {
        "limit_type": "monthly_count",
        "description": "Mind reset sessions"
    },
    "boundary_builder": {
        "limit_type": "monthly_count",
        "description": "Boundary builder"
    },
    "grey_rock_messages": {
        "limit_type": "monthly_count",
        "description": "Grey rock practice messages"
    },
    "community_posts": {
        "limit_type": "monthly_count",
        "description": "Community posts"
    },
    "wellness": {
        "limit_type": "monthly_count",
        "description": "Wellness check-ins"
    },
}

# Limit values per tier; UNLIMITED means no cap
TIER_LIMITS = {
    "foundation": {
        "ai_interactions": 10,
        "transcription_minutes": 30,
        "pattern_analysis": 2,
        "storage": 100,
        "journal_entries": UNLIMITED,
        "mind_reset_sessions": 10,
        "boundary_builder": 5,
        "grey_rock_messages": 20,
        "community_posts": 10,
        "wellness": UNLIMITED,
    },
    "recovery": {
        "ai_interactions": 100,
        "transcription_minutes": 300,
        "pattern_analysis": 20,
        "storage": UNLIMITED,
        "journal_entries": UNLIMITED,
        "mind_reset_sessions": UNLIMITED,
        "boundary_builder": UNLIMITED,
        "grey_rock_messages": UNLIMITED,
        "community_posts": UNLIMITED,
        "wellness": UNLIMITED,
    },
    "empowerment": {feature: UNLIMITED for feature in FEATURES},
}

# Audio transcriptions are metered as ai_interactions rows tagged in usage_metadata
TRANSCRIPTION_MONTHLY_LIMITS = {
    "foundation": 10,
    "recovery": 100,
    "empowerment": UNLIMITED,
}


def normalize_tier(tier):
    """Map unknown or missing tiers to the free tier."""
    return tier if tier in TIERS else DEFAULT_TIER


def get_limit(tier: str, feature_name: str) -> int:
    return TIER_LIMITS[normalize_tier(tier)].get(feature_name, UNLIMITED)


def get_upgrade_tier(tier: str) -> str:
    """Tier to suggest when a limit is hit."""
    return "recovery" if normalize_tier(tier) == "foundation" else "empowerment"


def get_feature_limit_rows():
    """
    Returns the rows for the feature_limits table
    Format: [
        {"subscription_tier": "foundation", "feature_name": "ai_interactions",
         "limit_type": "monthly_count", "limit_value": 10},
        ...
    ]
    """
    rows = []
    for tier in TIERS:
        for feature_name, feature_config in FEATURES.items():
            rows.append({
                "subscription_tier": tier,
                "feature_name": feature_name,
                "limit_type": feature_config["limit_type"],
                "limit_value": get_limit(tier, feature_name),
            })
    return rows


# Export the rows for use in seed scripts
FEATURE_LIMIT_ROWS = get_feature_limit_rows()

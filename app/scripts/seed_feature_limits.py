"""
Seed Feature Limits Script
This script populates the feature_limits table from the tier config.
Can be run manually after a pricing change or as part of a deploy.
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from app.config.tiers_config import FEATURE_LIMIT_ROWS
from app.database.supabase_client import get_supabase
from supabase import Client
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def seed_feature_limits(supabase: Client, rows=None):
    """Insert or update one feature_limits row per tier x feature"""
    logger.info("Seeding feature limits...")

    rows = FEATURE_LIMIT_ROWS if rows is None else rows
    created_count = 0
    updated_count = 0

    for row in rows:
        label = f"{row['subscription_tier']}/{row['feature_name']}"
        try:
            existing = supabase.table("feature_limits")\
                .select("id, limit_value")\
                .eq("subscription_tier", row["subscription_tier"])\
                .eq("feature_name", row["feature_name"])\
                .eq("limit_type", row["limit_type"])\
                .execute()

            if existing.data:
                if existing.data[0].get("limit_value") == row["limit_value"]:
                    continue
                supabase.table("feature_limits")\
                    .update({"limit_value": row["limit_value"]})\
                    .eq("id", existing.data[0]["id"])\
                    .execute()
                updated_count += 1
                logger.debug(f"Updated limit: {label} = {row['limit_value']}")
            else:
                supabase.table("feature_limits").insert(row).execute()
                created_count += 1
                logger.debug(f"Created limit: {label} = {row['limit_value']}")
        except Exception as e:
            logger.error(f"Error processing feature limit {label}: {e}")

    logger.info(f"Feature limits seeded: {created_count} created, {updated_count} updated")
    return created_count + updated_count


def main():
    """Main function to seed feature limits"""
    try:
        supabase = get_supabase()
        count = seed_feature_limits(supabase)
        logger.info(f"Seeding completed successfully! {count} rows changed")
    except Exception as e:
        logger.error(f"Error during seeding: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()

"""Business logic services: campaign manager, post manager, analytics rollup."""
from truck_social.services.campaign_service import create_campaign, add_post, reconcile_post_ids
from truck_social.services.post_service import create_post, mark_platform_published, mark_platform_failed
from truck_social.services.analytics_service import get_truck_analytics

__all__ = [
    "create_campaign",
    "add_post",
    "reconcile_post_ids",
    "create_post",
    "mark_platform_published",
    "mark_platform_failed",
    "get_truck_analytics",
]

"""Truck-level social analytics: rollup over published posts in a date window."""
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from truck_social.db import as_utc
from truck_social.exceptions import ValidationError
from truck_social.logging_config import get_logger
from truck_social.models import SocialPost
from truck_social.schemas.enums import PlatformEnum, PostStatusEnum
from truck_social.services.persistence import storage_errors

logger = get_logger(__name__)

TOP_POSTS_LIMIT = 5


def _targets(post: SocialPost, platform: str) -> bool:
    return any(e.get("name") == platform for e in (post.platforms or []))


def summarize_posts(posts: List[SocialPost]) -> Dict[str, Any]:
    """Totals, average engagement rate, top posts and per-platform breakdown for a list of posts."""
    total_reach = sum(p.reach or 0 for p in posts)
    total_engagement = sum(p.engagement or 0 for p in posts)
    by_platform: Dict[str, Dict[str, int]] = {}
    for platform in PlatformEnum:
        subset = [p for p in posts if _targets(p, platform.value)]
        by_platform[platform.value] = {
            "posts": len(subset),
            "reach": sum(p.reach or 0 for p in subset),
            "engagement": sum(p.engagement or 0 for p in subset),
        }
    return {
        "total_posts": len(posts),
        "total_reach": total_reach,
        "total_engagement": total_engagement,
        "total_impressions": sum(p.impressions or 0 for p in posts),
        "avg_engagement_rate": round(total_engagement / total_reach * 100, 2) if total_reach > 0 else 0.0,
        "top_posts": sorted(posts, key=lambda p: p.engagement or 0, reverse=True)[:TOP_POSTS_LIMIT],
        "performance_by_platform": by_platform,
    }


async def get_truck_analytics(
    db: AsyncSession,
    truck_id: str,
    start_date: datetime,
    end_date: datetime,
    platform: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Aggregate published posts with published_time in [start_date, end_date].
    platform: only posts that targeted this platform.
    """
    start, end = as_utc(start_date), as_utc(end_date)
    if start is None or end is None or start > end:
        raise ValidationError("start_date must not be after end_date", code="invalid_window")
    if platform:
        try:
            platform = PlatformEnum(platform).value
        except ValueError as e:
            raise ValidationError(f"Unknown platform: {platform}", code="invalid_platform") from e

    q = (
        select(SocialPost)
        .where(
            SocialPost.truck_id == truck_id,
            SocialPost.status == PostStatusEnum.PUBLISHED.value,
            SocialPost.published_time >= start,
            SocialPost.published_time <= end,
        )
        .order_by(SocialPost.published_time, SocialPost.id)
    )
    async with storage_errors("get_truck_analytics"):
        r = await db.execute(q)
        posts = list(r.scalars().all())
    if platform:
        posts = [p for p in posts if _targets(p, platform)]

    summary = summarize_posts(posts)
    logger.info(
        "analytics.truck_summary",
        truck_id=truck_id,
        platform=platform,
        total_posts=summary["total_posts"],
        total_reach=summary["total_reach"],
    )
    return summary

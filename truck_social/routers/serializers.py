"""ORM row -> response schema, including derived fields computed at read time."""
from datetime import datetime
from typing import Optional

from truck_social.db import as_utc, utcnow
from truck_social.models import Campaign, SocialPost
from truck_social.schemas.campaign import (
    CampaignAnalyticsOut,
    CampaignBudget,
    CampaignGoals,
    CampaignOut,
)
from truck_social.schemas.social_post import PlatformEntryOut, PostAnalyticsOut, PostImage, PostOut
from truck_social.services.campaign_service import days_remaining, effective_status, progress
from truck_social.services.post_service import engagement_rate


def campaign_out(c: Campaign, now: Optional[datetime] = None) -> CampaignOut:
    """Serialize a campaign; progress/days_remaining/effective_status use one `now`."""
    now = now or utcnow()
    return CampaignOut(
        id=c.id,
        truck_id=c.truck_id,
        owner_id=c.owner_id,
        name=c.name,
        description=c.description,
        type=c.type,
        status=c.status,
        effective_status=effective_status(c, now),
        start_date=as_utc(c.start_date),
        end_date=as_utc(c.end_date),
        goals=CampaignGoals(
            target_reach=c.target_reach,
            target_engagement=c.target_engagement,
            target_sales=c.target_sales,
            target_new_customers=c.target_new_customers,
        ),
        budget=CampaignBudget(total=c.budget_total, spent=c.budget_spent, currency=c.budget_currency or "USD"),
        platforms=list(c.platforms or []),
        hashtags=list(c.hashtags or []),
        keywords=list(c.keywords or []),
        promotion=c.promotion,
        contest=c.contest,
        analytics=CampaignAnalyticsOut(
            total_posts=c.total_posts,
            total_reach=c.total_reach,
            total_engagement=c.total_engagement,
            total_clicks=c.total_clicks,
            conversion_rate=c.conversion_rate,
            roi=c.roi,
            new_followers=c.new_followers,
            last_updated=as_utc(c.analytics_updated_at),
        ),
        post_ids=list(c.post_ids or []),
        progress=progress(c, now),
        days_remaining=days_remaining(c, now),
        version=c.version,
        created_at=as_utc(c.created_at),
        updated_at=as_utc(c.updated_at),
    )


def post_out(p: SocialPost) -> PostOut:
    """Serialize a social post with its engagement_rate."""
    return PostOut(
        id=p.id,
        truck_id=p.truck_id,
        owner_id=p.owner_id,
        text=p.text,
        hashtags=list(p.hashtags or []),
        mentions=list(p.mentions or []),
        images=[PostImage(**img) for img in (p.images or [])],
        link=p.link,
        status=p.status,
        scheduled_time=as_utc(p.scheduled_time),
        published_time=as_utc(p.published_time),
        platforms=[PlatformEntryOut(**entry) for entry in (p.platforms or [])],
        is_template=p.is_template,
        template_name=p.template_name,
        template_category=p.template_category,
        analytics=PostAnalyticsOut(
            impressions=p.impressions,
            reach=p.reach,
            engagement=p.engagement,
            likes=p.likes,
            comments=p.comments,
            shares=p.shares,
            saves=p.saves,
            clicks=p.clicks,
            engagement_rate=engagement_rate(p),
            last_updated=as_utc(p.analytics_updated_at),
        ),
        ai_generated=p.ai_generated,
        ai_prompt=p.ai_prompt,
        campaign_id=p.campaign_id,
        campaign_name=p.campaign_name,
        version=p.version,
        created_at=as_utc(p.created_at),
        updated_at=as_utc(p.updated_at),
    )

"""Truck-scoped read endpoints: content calendar, templates, analytics rollup."""
from datetime import datetime, timedelta

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from truck_social.db import as_utc, get_db, utcnow
from truck_social.routers.serializers import post_out
from truck_social.schemas.social_post import (
    CalendarResponse,
    DefaultTemplateOut,
    PlatformPerformance,
    TemplatesResponse,
    TruckAnalyticsResponse,
)
from truck_social.services import analytics_service, post_service
from truck_social.services.default_templates import default_templates

router = APIRouter(prefix="/api/social", tags=["social"])

CALENDAR_DEFAULT_DAYS = 30


@router.get("/calendar/{truck_id}", response_model=CalendarResponse)
async def get_calendar(
    truck_id: str,
    start_date: datetime | None = Query(None, description="Default: now"),
    end_date: datetime | None = Query(None, description="Default: start_date + 30 days"),
    db: AsyncSession = Depends(get_db),
) -> CalendarResponse:
    """Scheduled posts in [start_date, end_date], ascending by scheduled_time."""
    start = as_utc(start_date) or utcnow()
    end = as_utc(end_date) or start + timedelta(days=CALENDAR_DEFAULT_DAYS)
    posts = await post_service.get_scheduled_posts(db, truck_id, start, end)
    return CalendarResponse(
        truck_id=truck_id,
        start_date=start,
        end_date=end,
        posts=[post_out(p) for p in posts],
    )


@router.get("/templates/{truck_id}", response_model=TemplatesResponse)
async def get_templates(
    truck_id: str,
    category: str | None = Query(None, description="daily-special | location-update | new-menu | ..."),
    db: AsyncSession = Depends(get_db),
) -> TemplatesResponse:
    """The truck's own templates (newest first) plus the built-in starters."""
    templates = await post_service.get_templates(db, truck_id, category=category)
    return TemplatesResponse(
        truck_id=truck_id,
        templates=[post_out(p) for p in templates],
        default_templates=[DefaultTemplateOut(**t) for t in default_templates(category)],
    )


@router.get("/analytics/{truck_id}", response_model=TruckAnalyticsResponse)
async def get_truck_analytics(
    truck_id: str,
    start_date: datetime | None = Query(None, description="Default: end_date - 30 days"),
    end_date: datetime | None = Query(None, description="Default: now"),
    platform: str | None = Query(None, description="facebook | instagram | twitter | tiktok | linkedin"),
    db: AsyncSession = Depends(get_db),
) -> TruckAnalyticsResponse:
    """Rollup of published posts in the window, optionally one platform."""
    end = as_utc(end_date) or utcnow()
    start = as_utc(start_date) or end - timedelta(days=CALENDAR_DEFAULT_DAYS)
    summary = await analytics_service.get_truck_analytics(db, truck_id, start, end, platform=platform)
    return TruckAnalyticsResponse(
        truck_id=truck_id,
        start_date=start,
        end_date=end,
        platform=platform,
        total_posts=summary["total_posts"],
        total_reach=summary["total_reach"],
        total_engagement=summary["total_engagement"],
        total_impressions=summary["total_impressions"],
        avg_engagement_rate=summary["avg_engagement_rate"],
        top_posts=[post_out(p) for p in summary["top_posts"]],
        performance_by_platform={
            name: PlatformPerformance(**stats) for name, stats in summary["performance_by_platform"].items()
        },
    )

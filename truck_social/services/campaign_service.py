"""
Campaign manager: lifecycle, analytics merge, post linking and derived fields.
- progress / days_remaining / effective_status are pure and never written back.
- Every mutation goes through mutate_with_retry (optimistic CAS on campaigns.version).
- post_ids <-> social_posts.campaign_id is a best-effort link; reconcile_post_ids repairs it.
"""
import math
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Union
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from truck_social.db import as_utc, utcnow
from truck_social.exceptions import ValidationError
from truck_social.logging_config import get_logger
from truck_social.models import Campaign, SocialPost
from truck_social.schemas.campaign import (
    CampaignAnalyticsPatch,
    CampaignCreateRequest,
    CampaignUpdateRequest,
)
from truck_social.schemas.enums import CampaignStatusEnum
from truck_social.services.persistence import (
    coerce_uuid,
    load_row,
    mutate_with_retry,
    storage_errors,
)
from truck_social.services.validation import parse_fields, unique_strings

logger = get_logger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60

# Analytics fields a metrics patch may overwrite
ANALYTICS_FIELDS = (
    "total_reach",
    "total_engagement",
    "total_clicks",
    "conversion_rate",
    "roi",
    "new_followers",
)
# Columns update_campaign may touch directly
_SIMPLE_FIELDS = ("name", "description", "start_date", "end_date")
_REQUIRED_FIELDS = ("name", "type", "status", "start_date", "end_date")


# --- Derived fields ---


def progress(campaign: Campaign, now: Optional[datetime] = None) -> int:
    """
    Percentage of the campaign window elapsed, clamped to 0..100.
    0 before start_date, 100 after end_date, else round-half-up(100 * elapsed / span).
    """
    now = as_utc(now) or utcnow()
    start = as_utc(campaign.start_date)
    end = as_utc(campaign.end_date)
    if now < start:
        return 0
    if now > end:
        return 100
    span = (end - start).total_seconds()
    if span <= 0:
        return 100
    elapsed = (now - start).total_seconds()
    return max(0, min(100, math.floor(elapsed / span * 100 + 0.5)))


def days_remaining(campaign: Campaign, now: Optional[datetime] = None) -> int:
    """Whole days left until end_date (partial days count as one); 0 once the window has passed."""
    now = as_utc(now) or utcnow()
    end = as_utc(campaign.end_date)
    if now > end:
        return 0
    return max(0, math.ceil((end - now).total_seconds() / SECONDS_PER_DAY))


def effective_status(campaign: Campaign, now: Optional[datetime] = None) -> str:
    """Stored status, except an active campaign past its end_date reads as completed."""
    now = as_utc(now) or utcnow()
    if campaign.status == CampaignStatusEnum.ACTIVE.value and now > as_utc(campaign.end_date):
        return CampaignStatusEnum.COMPLETED.value
    return campaign.status


def _check_window(start: Optional[datetime], end: Optional[datetime]) -> None:
    if start is None or end is None:
        raise ValidationError("start_date and end_date are required", code="campaign_window_missing")
    if as_utc(start) > as_utc(end):
        raise ValidationError(
            "start_date must not be after end_date",
            code="campaign_window_inverted",
            extra={"start_date": as_utc(start).isoformat(), "end_date": as_utc(end).isoformat()},
        )


def _goal_columns(goals: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: goals[k] for k in ("target_reach", "target_engagement", "target_sales", "target_new_customers") if k in goals}


def _budget_columns(budget: Mapping[str, Any]) -> Dict[str, Any]:
    out = {f"budget_{k}": budget[k] for k in ("total", "spent", "currency") if k in budget}
    if out.get("budget_currency") is None:
        out.pop("budget_currency", None)
    return out


# --- Commands ---


async def create_campaign(
    db: AsyncSession,
    fields: Union[CampaignCreateRequest, Mapping[str, Any]],
) -> Campaign:
    """
    Validate and insert a campaign.
    Analytics start at zero, post_ids empty, status draft unless given.
    Raises ValidationError for missing fields, bad enums or start_date > end_date.
    """
    data = parse_fields(CampaignCreateRequest, fields)
    _check_window(data.start_date, data.end_date)

    campaign = Campaign(
        truck_id=data.truck_id,
        owner_id=data.owner_id,
        name=data.name,
        description=data.description,
        type=data.type.value,
        status=data.status.value,
        start_date=as_utc(data.start_date),
        end_date=as_utc(data.end_date),
        platforms=unique_strings(data.platforms),
        hashtags=unique_strings(data.hashtags),
        keywords=unique_strings(data.keywords),
        promotion=data.promotion.model_dump() if data.promotion else None,
        contest=data.contest.model_dump() if data.contest else None,
        total_posts=0,
        total_reach=0,
        total_engagement=0,
        total_clicks=0,
        conversion_rate=0.0,
        roi=0.0,
        new_followers=0,
        post_ids=[],
        **_goal_columns(data.goals.model_dump()),
        **_budget_columns(data.budget.model_dump()),
    )
    async with storage_errors("create_campaign"):
        db.add(campaign)
        await db.flush()
    logger.info(
        "campaign.created",
        campaign_id=str(campaign.id),
        truck_id=campaign.truck_id,
        type=campaign.type,
        status=campaign.status,
    )
    return campaign


async def get_campaign(db: AsyncSession, campaign_id: Union[str, UUID]) -> Campaign:
    """Load one campaign; NotFoundError if absent."""
    cid = coerce_uuid(campaign_id, "campaign_id")
    async with storage_errors("get_campaign"):
        return await load_row(db, Campaign, cid)


async def list_campaigns(
    db: AsyncSession,
    truck_id: str,
    status: Optional[str] = None,
) -> List[Campaign]:
    """Campaigns of a truck, newest first, optionally filtered by stored status."""
    q = select(Campaign).where(Campaign.truck_id == truck_id)
    if status:
        try:
            q = q.where(Campaign.status == CampaignStatusEnum(status).value)
        except ValueError as e:
            raise ValidationError(f"Unknown campaign status: {status}", code="invalid_status") from e
    q = q.order_by(Campaign.created_at.desc(), Campaign.id)
    async with storage_errors("list_campaigns"):
        r = await db.execute(q)
        return list(r.scalars().all())


async def update_campaign(
    db: AsyncSession,
    campaign_id: Union[str, UUID],
    patch: Union[CampaignUpdateRequest, Mapping[str, Any]],
) -> Campaign:
    """
    Partial update of descriptive, lifecycle, goal, budget and platform fields.
    The merged start/end window is re-validated. Analytics and post_ids are not writable here.
    """
    cid = coerce_uuid(campaign_id, "campaign_id")
    changes = parse_fields(CampaignUpdateRequest, patch).model_dump(exclude_unset=True, mode="python")
    for key in _REQUIRED_FIELDS:
        if key in changes and changes[key] is None:
            raise ValidationError(f"{key} cannot be cleared", code="required_field")

    def _apply(row: Campaign) -> Optional[Dict[str, Any]]:
        values: Dict[str, Any] = {}
        for key in _SIMPLE_FIELDS:
            if key in changes:
                values[key] = changes[key]
        for key in ("start_date", "end_date"):
            if key in values:
                values[key] = as_utc(values[key])
        if "type" in changes:
            values["type"] = changes["type"].value
        if "status" in changes:
            values["status"] = changes["status"].value
        for key in ("platforms", "hashtags", "keywords"):
            if key in changes:
                values[key] = unique_strings(changes[key] or [])
        for key in ("promotion", "contest"):
            if key in changes:
                values[key] = changes[key]
        if changes.get("goals") is not None:
            values.update(_goal_columns(changes["goals"]))
        if changes.get("budget") is not None:
            values.update(_budget_columns(changes["budget"]))
        _check_window(values.get("start_date", row.start_date), values.get("end_date", row.end_date))
        return values or None

    campaign = await mutate_with_retry(db, Campaign, cid, _apply, operation="update_campaign")
    logger.info("campaign.updated", campaign_id=str(cid), fields=sorted(changes))
    return campaign


async def update_analytics(
    db: AsyncSession,
    campaign_id: Union[str, UUID],
    metrics_patch: Union[CampaignAnalyticsPatch, Mapping[str, Any]],
) -> Campaign:
    """
    Shallow-merge metrics into the campaign analytics and stamp analytics_updated_at.
    With budget_spent > 0 and revenue in the patch: roi = (revenue - spent) / spent * 100.
    Otherwise roi is left as is (or as patched).
    """
    cid = coerce_uuid(campaign_id, "campaign_id")
    metrics = parse_fields(CampaignAnalyticsPatch, metrics_patch).model_dump(exclude_none=True)

    def _merge(row: Campaign) -> Dict[str, Any]:
        values: Dict[str, Any] = {k: metrics[k] for k in ANALYTICS_FIELDS if k in metrics}
        spent = row.budget_spent or 0
        revenue = metrics.get("revenue")
        if spent > 0 and revenue is not None:
            values["roi"] = (revenue - spent) / spent * 100
        values["analytics_updated_at"] = utcnow()
        return values

    campaign = await mutate_with_retry(db, Campaign, cid, _merge, operation="campaign_update_analytics")
    logger.info("campaign.analytics_updated", campaign_id=str(cid), fields=sorted(metrics), roi=campaign.roi)
    return campaign


async def add_post(
    db: AsyncSession,
    campaign_id: Union[str, UUID],
    post_id: Union[str, UUID],
) -> Campaign:
    """
    Append post_id to post_ids and bump total_posts, once.
    A post already linked is a no-op; concurrent calls never double count.
    """
    cid = coerce_uuid(campaign_id, "campaign_id")
    pid = str(post_id).strip()
    if not pid:
        raise ValidationError("post_id is required", code="post_id_missing")

    def _append(row: Campaign) -> Optional[Dict[str, Any]]:
        if pid in (row.post_ids or []):
            return None
        return {"post_ids": [*(row.post_ids or []), pid], "total_posts": (row.total_posts or 0) + 1}

    campaign = await mutate_with_retry(db, Campaign, cid, _append, operation="campaign_add_post")
    logger.info("campaign.post_linked", campaign_id=str(cid), post_id=pid, total_posts=campaign.total_posts)
    return campaign


async def reconcile_post_ids(db: AsyncSession, campaign_id: Union[str, UUID]) -> Campaign:
    """
    Rebuild post_ids and total_posts from social_posts.campaign_id (post creation order).
    Ids of removed posts are dropped; posts linked only from their side are added.
    """
    cid = coerce_uuid(campaign_id, "campaign_id")
    async with storage_errors("reconcile_post_ids"):
        r = await db.execute(
            select(SocialPost.id)
            .where(SocialPost.campaign_id == cid)
            .order_by(SocialPost.created_at, SocialPost.id)
        )
        linked = [str(pid) for pid in r.scalars().all()]

    diff: Dict[str, int] = {}

    def _rebuild(row: Campaign) -> Optional[Dict[str, Any]]:
        current = list(row.post_ids or [])
        diff["added"] = len(set(linked) - set(current))
        diff["removed"] = len(set(current) - set(linked))
        if current == linked and row.total_posts == len(linked):
            return None
        return {"post_ids": linked, "total_posts": len(linked)}

    campaign = await mutate_with_retry(db, Campaign, cid, _rebuild, operation="reconcile_post_ids")
    logger.info("campaign.post_ids_reconciled", campaign_id=str(cid), total_posts=campaign.total_posts, **diff)
    return campaign


# --- Queries ---


async def get_active_campaigns(
    db: AsyncSession,
    truck_id: str,
    now: Optional[datetime] = None,
) -> List[Campaign]:
    """Campaigns with status=active and start_date <= now <= end_date, by start_date."""
    now = as_utc(now) or utcnow()
    q = (
        select(Campaign)
        .where(
            Campaign.truck_id == truck_id,
            Campaign.status == CampaignStatusEnum.ACTIVE.value,
            Campaign.start_date <= now,
            Campaign.end_date >= now,
        )
        .order_by(Campaign.start_date, Campaign.id)
    )
    async with storage_errors("get_active_campaigns"):
        r = await db.execute(q)
        return list(r.scalars().all())

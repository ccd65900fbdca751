"""
Post manager: social post lifecycle, per-platform publish bookkeeping, analytics and template queries.
- Overall status flips to published only when every platform entry is published.
- A platform failure is recorded on its entry; the overall status is not derived from failures.
- Templates stay draft: they are never scheduled or published.
"""
import math
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from truck_social.config import get_settings
from truck_social.db import as_utc, utcnow
from truck_social.exceptions import ConflictError, NotFoundError, ValidationError
from truck_social.logging_config import get_logger
from truck_social.models import Campaign, SocialPost
from truck_social.schemas.enums import PlatformStatusEnum, PostStatusEnum
from truck_social.schemas.social_post import (
    PostAnalyticsPatch,
    PostCreateRequest,
    PostUpdateRequest,
)
from truck_social.services import campaign_service
from truck_social.services.persistence import (
    coerce_uuid,
    compare_and_swap,
    load_row,
    mutate_with_retry,
    storage_errors,
)
from truck_social.services.validation import parse_fields, unique_strings

logger = get_logger(__name__)

# Instagram caption limit
MAX_TEXT_LENGTH = 2200

ANALYTICS_FIELDS = ("impressions", "reach", "engagement", "likes", "comments", "shares", "saves", "clicks")
_CONTENT_FIELDS = ("text", "link", "template_name", "template_category", "ai_generated", "ai_prompt")
_CREATABLE_STATUSES = (PostStatusEnum.DRAFT.value, PostStatusEnum.SCHEDULED.value)
_LOCKED_STATUSES = (PostStatusEnum.PUBLISHED.value, PostStatusEnum.DELETED.value)


def engagement_rate(post: SocialPost) -> float:
    """100 * engagement / reach rounded to 2 decimals; exactly 0 when reach is 0."""
    reach = post.reach or 0
    if reach <= 0:
        return 0.0
    return round((post.engagement or 0) / reach * 100, 2)


def _check_text(text: Optional[str]) -> None:
    if text is not None and len(text) > MAX_TEXT_LENGTH:
        raise ValidationError(
            f"text exceeds {MAX_TEXT_LENGTH} characters",
            code="text_too_long",
            extra={"length": len(text), "max_length": MAX_TEXT_LENGTH},
        )


def _platform_entries(
    targets: List[Any],
    existing: Optional[List[Dict[str, Any]]] = None,
) -> List[Dict[str, Any]]:
    """
    Build the platforms list from targets (name unique).
    Entries already present in existing keep their recorded publish state.
    """
    names = [t.name.value if hasattr(t.name, "value") else str(t.name) for t in targets]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise ValidationError(
            "platform names must be unique",
            code="duplicate_platform",
            extra={"duplicates": duplicates},
        )
    previous = {e.get("name"): e for e in (existing or [])}
    entries = []
    for name in names:
        if name in previous:
            entries.append(dict(previous[name]))
        else:
            entries.append({
                "name": name,
                "post_id": None,
                "status": PlatformStatusEnum.PENDING.value,
                "error": None,
                "url": None,
            })
    return entries


def _find_platform(entries: List[Dict[str, Any]], platform_name: str, post_id: UUID) -> int:
    for i, entry in enumerate(entries):
        if entry.get("name") == platform_name:
            return i
    raise NotFoundError(
        f"Post was never targeted at platform {platform_name}",
        code="platform_not_targeted",
        extra={"post_id": str(post_id), "platform": platform_name},
    )


# --- Commands ---


async def create_post(
    db: AsyncSession,
    fields: Union[PostCreateRequest, Mapping[str, Any]],
) -> SocialPost:
    """
    Validate and insert a post (status draft, or scheduled when scheduled_time is set).
    An explicit status=scheduled without scheduled_time is rejected.
    With campaign_id: the post is linked into the campaign via add_post. A missing campaign
    keeps the weak reference and is only logged.
    """
    data = parse_fields(PostCreateRequest, fields)
    _check_text(data.text)
    platforms = _platform_entries(data.platforms)

    scheduled_time = as_utc(data.scheduled_time)
    if data.status is not None:
        status = data.status.value
    else:
        status = PostStatusEnum.SCHEDULED.value if scheduled_time else PostStatusEnum.DRAFT.value
    if status not in _CREATABLE_STATUSES:
        raise ValidationError(
            f"New posts start as draft or scheduled, not {status}",
            code="invalid_initial_status",
        )
    if status == PostStatusEnum.SCHEDULED.value and scheduled_time is None:
        raise ValidationError("scheduled posts need a scheduled_time", code="scheduled_time_missing")
    if data.is_template and (status != PostStatusEnum.DRAFT.value or scheduled_time is not None):
        raise ValidationError("Templates cannot be scheduled", code="template_not_schedulable")

    campaign: Optional[Campaign] = None
    if data.campaign_id is not None:
        try:
            campaign = await campaign_service.get_campaign(db, data.campaign_id)
        except NotFoundError:
            logger.warning("post.campaign_missing", campaign_id=str(data.campaign_id), truck_id=data.truck_id)

    post = SocialPost(
        truck_id=data.truck_id,
        owner_id=data.owner_id,
        text=data.text,
        hashtags=unique_strings(data.hashtags),
        mentions=unique_strings(data.mentions),
        images=[img.model_dump() for img in data.images],
        link=data.link,
        status=status,
        scheduled_time=scheduled_time,
        platforms=platforms,
        is_template=data.is_template,
        template_name=data.template_name,
        template_category=data.template_category,
        ai_generated=data.ai_generated,
        ai_prompt=data.ai_prompt,
        campaign_id=data.campaign_id,
        campaign_name=data.campaign_name or (campaign.name if campaign else None),
        **{k: 0 for k in ANALYTICS_FIELDS},
    )
    async with storage_errors("create_post"):
        db.add(post)
        await db.flush()

    if campaign is not None:
        await campaign_service.add_post(db, campaign.id, post.id)

    logger.info(
        "post.created",
        post_id=str(post.id),
        truck_id=post.truck_id,
        status=post.status,
        platforms=[p["name"] for p in platforms],
        is_template=post.is_template,
        campaign_id=str(post.campaign_id) if post.campaign_id else None,
    )
    return post


async def update_post(
    db: AsyncSession,
    post_id: Union[str, UUID],
    patch: Union[PostUpdateRequest, Mapping[str, Any]],
) -> SocialPost:
    """
    Partial update of content, platforms, template and AI fields.
    Published and deleted posts are rejected; only a draft can become a template.
    Dropping the still-pending platforms of a partly published post publishes it.
    """
    pid = coerce_uuid(post_id, "post_id")
    req = parse_fields(PostUpdateRequest, patch)
    changes = req.model_dump(exclude_unset=True)
    if "text" in changes:
        _check_text(changes["text"])
    if "ai_generated" in changes and changes["ai_generated"] is None:
        raise ValidationError("ai_generated cannot be null", code="required_field")

    def _apply(row: SocialPost) -> Optional[Dict[str, Any]]:
        if row.status in _LOCKED_STATUSES:
            raise ValidationError(
                f"Cannot edit {row.status} posts",
                code="post_locked",
                extra={"post_id": str(pid), "status": row.status},
            )
        values: Dict[str, Any] = {k: changes[k] for k in _CONTENT_FIELDS if k in changes}
        for key in ("hashtags", "mentions"):
            if key in changes:
                values[key] = unique_strings(changes[key] or [])
        if "images" in changes:
            values["images"] = [img.model_dump() for img in (req.images or [])]
        if "platforms" in changes:
            entries = _platform_entries(req.platforms or [], row.platforms)
            values["platforms"] = entries
            if entries and all(e.get("status") == PlatformStatusEnum.PUBLISHED.value for e in entries):
                values["status"] = PostStatusEnum.PUBLISHED.value
                values["published_time"] = utcnow()
        if changes.get("is_template") is not None:
            if changes["is_template"] and row.status != PostStatusEnum.DRAFT.value:
                raise ValidationError("Only draft posts can become templates", code="template_not_schedulable")
            values["is_template"] = changes["is_template"]
        elif "is_template" in changes:
            raise ValidationError("is_template cannot be null", code="required_field")
        return values or None

    post = await mutate_with_retry(db, SocialPost, pid, _apply, operation="update_post")
    logger.info("post.updated", post_id=str(pid), fields=sorted(changes))
    return post


async def schedule_post(
    db: AsyncSession,
    post_id: Union[str, UUID],
    scheduled_time: datetime,
) -> SocialPost:
    """Set scheduled_time and status=scheduled. Templates, published and deleted posts are rejected."""
    pid = coerce_uuid(post_id, "post_id")
    when = as_utc(scheduled_time)
    if when is None:
        raise ValidationError("scheduled_time is required", code="scheduled_time_missing")

    def _schedule(row: SocialPost) -> Optional[Dict[str, Any]]:
        if row.is_template:
            raise ValidationError("Templates cannot be scheduled", code="template_not_schedulable")
        if row.status in _LOCKED_STATUSES:
            raise ValidationError(
                f"Cannot schedule {row.status} posts",
                code="post_locked",
                extra={"post_id": str(pid), "status": row.status},
            )
        if row.status == PostStatusEnum.SCHEDULED.value and as_utc(row.scheduled_time) == when:
            return None
        return {"status": PostStatusEnum.SCHEDULED.value, "scheduled_time": when}

    post = await mutate_with_retry(db, SocialPost, pid, _schedule, operation="schedule_post")
    logger.info("post.scheduled", post_id=str(pid), scheduled_time=when.isoformat())
    return post


async def delete_post(db: AsyncSession, post_id: Union[str, UUID]) -> str:
    """
    Published (and already deleted) posts are soft-deleted: status=deleted, row kept.
    Any other post is removed. Returns "soft" or "hard".
    The campaign's post_ids is not touched; reconcile_post_ids drops removed ids.
    """
    pid = coerce_uuid(post_id, "post_id")
    attempts = get_settings().occ_max_retries
    async with storage_errors("delete_post"):
        for attempt in range(1, attempts + 1):
            row = await load_row(db, SocialPost, pid, fresh=True)
            seen = row.version
            if row.status == PostStatusEnum.DELETED.value:
                return "soft"
            if row.status == PostStatusEnum.PUBLISHED.value:
                if await compare_and_swap(db, row, {"status": PostStatusEnum.DELETED.value}, seen):
                    await db.refresh(row)
                    logger.info("post.soft_deleted", post_id=str(pid))
                    return "soft"
            else:
                r = await db.execute(
                    delete(SocialPost)
                    .where(SocialPost.id == pid, SocialPost.version == seen)
                    .execution_options(synchronize_session=False)
                )
                if r.rowcount == 1:
                    db.expunge(row)
                    logger.info("post.deleted", post_id=str(pid), campaign_id=str(row.campaign_id) if row.campaign_id else None)
                    return "hard"
            logger.info("occ.conflict_retry", operation="delete_post", id=str(pid), attempt=attempt)
    raise ConflictError("Concurrent updates kept colliding during delete_post", extra={"id": str(pid)})


async def update_analytics(
    db: AsyncSession,
    post_id: Union[str, UUID],
    metrics_patch: Union[PostAnalyticsPatch, Mapping[str, Any]],
) -> SocialPost:
    """Shallow-merge metrics (omitted fields keep their value) and stamp analytics_updated_at."""
    pid = coerce_uuid(post_id, "post_id")
    metrics = parse_fields(PostAnalyticsPatch, metrics_patch).model_dump(exclude_none=True)

    def _merge(row: SocialPost) -> Dict[str, Any]:
        values: Dict[str, Any] = {k: metrics[k] for k in ANALYTICS_FIELDS if k in metrics}
        values["analytics_updated_at"] = utcnow()
        return values

    post = await mutate_with_retry(db, SocialPost, pid, _merge, operation="post_update_analytics")
    logger.info("post.analytics_updated", post_id=str(pid), fields=sorted(metrics))
    return post


async def mark_platform_published(
    db: AsyncSession,
    post_id: Union[str, UUID],
    platform_name: str,
    external_post_id: str,
    url: Optional[str] = None,
) -> SocialPost:
    """
    Record a successful publish on one platform entry (post_id, status=published, url).
    When every entry is published the post becomes published with published_time=now;
    otherwise the overall status is left unchanged.
    NotFoundError if the post never targeted platform_name.
    """
    pid = coerce_uuid(post_id, "post_id")
    name = str(getattr(platform_name, "value", platform_name))
    if not external_post_id:
        raise ValidationError("external_post_id is required", code="external_post_id_missing")

    def _publish(row: SocialPost) -> Optional[Dict[str, Any]]:
        if row.is_template:
            raise ValidationError("Templates are never published", code="template_not_publishable")
        if row.status == PostStatusEnum.DELETED.value:
            raise ValidationError("Post is deleted", code="post_locked", extra={"post_id": str(pid)})
        entries = [dict(e) for e in (row.platforms or [])]
        idx = _find_platform(entries, name, pid)
        entries[idx].update(
            post_id=external_post_id,
            status=PlatformStatusEnum.PUBLISHED.value,
            url=url,
            error=None,
        )
        values: Dict[str, Any] = {}
        if entries != list(row.platforms or []):
            values["platforms"] = entries
        all_published = all(e.get("status") == PlatformStatusEnum.PUBLISHED.value for e in entries)
        if all_published and row.status != PostStatusEnum.PUBLISHED.value:
            values["status"] = PostStatusEnum.PUBLISHED.value
            values["published_time"] = utcnow()
        return values or None

    post = await mutate_with_retry(db, SocialPost, pid, _publish, operation="mark_platform_published")
    logger.info(
        "post.platform_published",
        post_id=str(pid),
        platform=name,
        external_post_id=external_post_id,
        status=post.status,
    )
    return post


async def mark_platform_failed(
    db: AsyncSession,
    post_id: Union[str, UUID],
    platform_name: str,
    error: str,
) -> SocialPost:
    """
    Record a publisher error on one platform entry (status=failed, error).
    The overall post status is not changed by platform failures.
    """
    pid = coerce_uuid(post_id, "post_id")
    name = str(getattr(platform_name, "value", platform_name))
    if not error:
        raise ValidationError("error message is required", code="error_missing")

    def _fail(row: SocialPost) -> Optional[Dict[str, Any]]:
        if row.is_template:
            raise ValidationError("Templates are never published", code="template_not_publishable")
        if row.status == PostStatusEnum.DELETED.value:
            raise ValidationError("Post is deleted", code="post_locked", extra={"post_id": str(pid)})
        entries = [dict(e) for e in (row.platforms or [])]
        idx = _find_platform(entries, name, pid)
        if entries[idx].get("status") == PlatformStatusEnum.PUBLISHED.value:
            raise ValidationError(
                f"Platform {name} already published",
                code="platform_already_published",
                extra={"post_id": str(pid), "platform": name},
            )
        entries[idx].update(status=PlatformStatusEnum.FAILED.value, error=error)
        if entries == list(row.platforms or []):
            return None
        return {"platforms": entries}

    post = await mutate_with_retry(db, SocialPost, pid, _fail, operation="mark_platform_failed")
    logger.warning("post.platform_failed", post_id=str(pid), platform=name, error=error)
    return post


# --- Queries ---


async def get_post(db: AsyncSession, post_id: Union[str, UUID]) -> SocialPost:
    """Load one post; NotFoundError if absent."""
    pid = coerce_uuid(post_id, "post_id")
    async with storage_errors("get_post"):
        return await load_row(db, SocialPost, pid)


async def list_posts(
    db: AsyncSession,
    truck_id: str,
    status: Optional[str] = None,
    is_template: Optional[bool] = None,
    page: int = 1,
    limit: Optional[int] = None,
) -> Tuple[List[SocialPost], int]:
    """Posts of a truck, newest first, paginated. Returns (page items, total matching)."""
    settings = get_settings()
    limit = min(limit or settings.default_page_size, settings.max_page_size)
    if page < 1 or limit < 1:
        raise ValidationError("page and limit must be >= 1", code="invalid_pagination")
    conditions = [SocialPost.truck_id == truck_id]
    if status:
        try:
            conditions.append(SocialPost.status == PostStatusEnum(status).value)
        except ValueError as e:
            raise ValidationError(f"Unknown post status: {status}", code="invalid_status") from e
    if is_template is not None:
        conditions.append(SocialPost.is_template == is_template)

    async with storage_errors("list_posts"):
        total = (await db.execute(select(func.count(SocialPost.id)).where(*conditions))).scalar() or 0
        r = await db.execute(
            select(SocialPost)
            .where(*conditions)
            .order_by(SocialPost.created_at.desc(), SocialPost.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(r.scalars().all()), total


def total_pages(total: int, limit: int) -> int:
    """Number of pages for total items at limit per page."""
    return math.ceil(total / limit) if limit > 0 else 0


async def get_scheduled_posts(
    db: AsyncSession,
    truck_id: str,
    start_date: datetime,
    end_date: datetime,
) -> List[SocialPost]:
    """Posts with status=scheduled and start_date <= scheduled_time <= end_date, ascending by scheduled_time."""
    start, end = as_utc(start_date), as_utc(end_date)
    if start is None or end is None or start > end:
        raise ValidationError("start_date must not be after end_date", code="invalid_window")
    q = (
        select(SocialPost)
        .where(
            SocialPost.truck_id == truck_id,
            SocialPost.status == PostStatusEnum.SCHEDULED.value,
            SocialPost.scheduled_time >= start,
            SocialPost.scheduled_time <= end,
        )
        .order_by(SocialPost.scheduled_time.asc(), SocialPost.id)
    )
    async with storage_errors("get_scheduled_posts"):
        r = await db.execute(q)
        return list(r.scalars().all())


async def get_templates(
    db: AsyncSession,
    truck_id: str,
    category: Optional[str] = None,
) -> List[SocialPost]:
    """Template posts of a truck, newest first, optionally one template_category."""
    q = select(SocialPost).where(SocialPost.truck_id == truck_id, SocialPost.is_template.is_(True))
    if category:
        q = q.where(SocialPost.template_category == category)
    q = q.order_by(SocialPost.created_at.desc(), SocialPost.id)
    async with storage_errors("get_templates"):
        r = await db.execute(q)
        return list(r.scalars().all())

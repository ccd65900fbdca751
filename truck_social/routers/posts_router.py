"""Social post API: CRUD, scheduling, analytics merge, per-platform publish callbacks."""
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from truck_social.config import get_settings
from truck_social.db import get_db
from truck_social.routers.serializers import post_out
from truck_social.schemas.common import Pagination
from truck_social.schemas.enums import PlatformEnum
from truck_social.schemas.social_post import (
    PlatformFailedRequest,
    PlatformPublishedRequest,
    PostAnalyticsPatch,
    PostCreateRequest,
    PostDeleteResponse,
    PostOut,
    PostScheduleRequest,
    PostsListResponse,
    PostUpdateRequest,
)
from truck_social.services import post_service
from truck_social.utils.query_params import ensure_optional_bool_query

router = APIRouter(prefix="/api/social/posts", tags=["posts"])


@router.post("", response_model=PostOut, status_code=status.HTTP_201_CREATED)
async def post_social_post(
    payload: PostCreateRequest,
    db: AsyncSession = Depends(get_db),
) -> PostOut:
    """Create a post; campaign_id links it into the campaign's post_ids."""
    post = await post_service.create_post(db, payload)
    return post_out(post)


@router.get("", response_model=PostsListResponse)
async def get_social_posts(
    truck_id: str = Query(..., min_length=1, description="Truck id"),
    status: str | None = Query(None, description="draft | scheduled | published | failed | deleted"),
    is_template: bool | str | None = Query(None, description="true: templates only, false: exclude templates"),
    page: int = Query(1, ge=1),
    limit: int | None = Query(None, ge=1),
    db: AsyncSession = Depends(get_db),
) -> PostsListResponse:
    """Posts of a truck, newest first, paginated."""
    settings = get_settings()
    effective_limit = min(limit or settings.default_page_size, settings.max_page_size)
    posts, total = await post_service.list_posts(
        db,
        truck_id=truck_id,
        status=status,
        is_template=ensure_optional_bool_query(is_template),
        page=page,
        limit=effective_limit,
    )
    return PostsListResponse(
        truck_id=truck_id,
        posts=[post_out(p) for p in posts],
        pagination=Pagination(
            current_page=page,
            total_pages=post_service.total_pages(total, effective_limit),
            total_items=total,
        ),
    )


@router.get("/{post_id}", response_model=PostOut)
async def get_social_post(
    post_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> PostOut:
    post = await post_service.get_post(db, post_id)
    return post_out(post)


@router.patch("/{post_id}", response_model=PostOut)
async def patch_social_post(
    post_id: UUID,
    payload: PostUpdateRequest,
    db: AsyncSession = Depends(get_db),
) -> PostOut:
    """Partial update. Published/deleted posts -> 400 post_locked."""
    post = await post_service.update_post(db, post_id, payload)
    return post_out(post)


@router.delete("/{post_id}", response_model=PostDeleteResponse)
async def delete_social_post(
    post_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> PostDeleteResponse:
    """Published posts are soft-deleted (status=deleted); others are removed."""
    mode = await post_service.delete_post(db, post_id)
    return PostDeleteResponse(post_id=post_id, deleted=mode)


@router.post("/{post_id}/schedule", response_model=PostOut)
async def post_schedule(
    post_id: UUID,
    payload: PostScheduleRequest,
    db: AsyncSession = Depends(get_db),
) -> PostOut:
    """Set scheduled_time and status=scheduled."""
    post = await post_service.schedule_post(db, post_id, payload.scheduled_time)
    return post_out(post)


@router.patch("/{post_id}/analytics", response_model=PostOut)
async def patch_post_analytics(
    post_id: UUID,
    payload: PostAnalyticsPatch,
    db: AsyncSession = Depends(get_db),
) -> PostOut:
    """Merge metrics reported by the analytics collector."""
    post = await post_service.update_analytics(db, post_id, payload)
    return post_out(post)


@router.post("/{post_id}/platforms/{platform}/published", response_model=PostOut)
async def post_platform_published(
    post_id: UUID,
    platform: PlatformEnum,
    payload: PlatformPublishedRequest,
    db: AsyncSession = Depends(get_db),
) -> PostOut:
    """Publisher callback: one platform went live. Post becomes published once all have."""
    post = await post_service.mark_platform_published(
        db,
        post_id,
        platform.value,
        external_post_id=payload.external_post_id,
        url=payload.url,
    )
    return post_out(post)


@router.post("/{post_id}/platforms/{platform}/failed", response_model=PostOut)
async def post_platform_failed(
    post_id: UUID,
    platform: PlatformEnum,
    payload: PlatformFailedRequest,
    db: AsyncSession = Depends(get_db),
) -> PostOut:
    """Publisher callback: record the platform error; overall status unchanged."""
    post = await post_service.mark_platform_failed(db, post_id, platform.value, error=payload.error)
    return post_out(post)

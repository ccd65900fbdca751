"""Social post request/response schemas."""
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from truck_social.schemas.common import Pagination
from truck_social.schemas.enums import PlatformEnum, PostStatusEnum


class PostImage(BaseModel):
    """One image attached to a post (order is display order)."""

    url: str = Field(..., min_length=1)
    alt: Optional[str] = None
    width: Optional[int] = Field(None, gt=0)
    height: Optional[int] = Field(None, gt=0)


class PlatformTarget(BaseModel):
    """A platform the post should be published to. A bare string is accepted as the name."""

    name: PlatformEnum


def _coerce_platform_targets(value: Any) -> Any:
    if isinstance(value, list):
        return [{"name": v} if isinstance(v, str) else v for v in value]
    return value


class PlatformEntryOut(BaseModel):
    """Per-platform publish state."""

    name: str
    post_id: Optional[str] = None
    status: str
    error: Optional[str] = None
    url: Optional[str] = None


class PostCreateRequest(BaseModel):
    """
    Body for POST /api/social/posts.
    status defaults to draft, or scheduled when scheduled_time is given.
    Text length and platform uniqueness are checked by the manager.
    """

    truck_id: str = Field(..., min_length=1, max_length=64)
    owner_id: str = Field(..., min_length=1, max_length=64)
    text: Optional[str] = None
    hashtags: List[str] = Field(default_factory=list)
    mentions: List[str] = Field(default_factory=list)
    images: List[PostImage] = Field(default_factory=list)
    link: Optional[str] = None
    platforms: List[PlatformTarget] = Field(default_factory=list)
    status: Optional[PostStatusEnum] = None
    scheduled_time: Optional[datetime] = None
    is_template: bool = False
    template_name: Optional[str] = Field(None, max_length=255)
    template_category: Optional[str] = Field(None, max_length=64, description="daily-special | location-update | new-menu | ...")
    ai_generated: bool = False
    ai_prompt: Optional[str] = None
    campaign_id: Optional[UUID] = None
    campaign_name: Optional[str] = Field(None, max_length=255)

    model_config = {"extra": "forbid"}

    @field_validator("platforms", mode="before")
    @classmethod
    def platform_names(cls, v: Any) -> Any:
        """Allow ["instagram", ...] as shorthand for [{"name": "instagram"}, ...]."""
        return _coerce_platform_targets(v)


class PostUpdateRequest(BaseModel):
    """
    Body for PATCH /api/social/posts/{id}. Published and deleted posts are not editable.
    Scheduling goes through POST /{id}/schedule; publish state through the platform endpoints.
    """

    text: Optional[str] = None
    hashtags: Optional[List[str]] = None
    mentions: Optional[List[str]] = None
    images: Optional[List[PostImage]] = None
    link: Optional[str] = None
    platforms: Optional[List[PlatformTarget]] = None
    is_template: Optional[bool] = None
    template_name: Optional[str] = Field(None, max_length=255)
    template_category: Optional[str] = Field(None, max_length=64)
    ai_generated: Optional[bool] = None
    ai_prompt: Optional[str] = None

    model_config = {"extra": "forbid"}

    @field_validator("platforms", mode="before")
    @classmethod
    def platform_names(cls, v: Any) -> Any:
        """Allow ["instagram", ...] as shorthand for [{"name": "instagram"}, ...]."""
        return _coerce_platform_targets(v)


class PostScheduleRequest(BaseModel):
    """Body for POST /api/social/posts/{id}/schedule."""

    scheduled_time: datetime


class PostAnalyticsPatch(BaseModel):
    """Metrics patch from the analytics collector (shallow merge)."""

    impressions: Optional[int] = Field(None, ge=0)
    reach: Optional[int] = Field(None, ge=0)
    engagement: Optional[int] = Field(None, ge=0)
    likes: Optional[int] = Field(None, ge=0)
    comments: Optional[int] = Field(None, ge=0)
    shares: Optional[int] = Field(None, ge=0)
    saves: Optional[int] = Field(None, ge=0)
    clicks: Optional[int] = Field(None, ge=0)

    model_config = {"extra": "forbid"}


class PlatformPublishedRequest(BaseModel):
    """Publisher callback: the platform accepted the post."""

    external_post_id: str = Field(..., min_length=1, max_length=255)
    url: Optional[str] = None


class PlatformFailedRequest(BaseModel):
    """Publisher callback: the platform rejected the post."""

    error: str = Field(..., min_length=1)


class PostAnalyticsOut(BaseModel):
    """Post analytics counters."""

    impressions: int
    reach: int
    engagement: int
    likes: int
    comments: int
    shares: int
    saves: int
    clicks: int
    engagement_rate: float
    last_updated: Optional[datetime] = None


class PostOut(BaseModel):
    """Social post in API responses."""

    id: UUID
    truck_id: str
    owner_id: str
    text: Optional[str] = None
    hashtags: List[str]
    mentions: List[str]
    images: List[PostImage]
    link: Optional[str] = None
    status: str
    scheduled_time: Optional[datetime] = None
    published_time: Optional[datetime] = None
    platforms: List[PlatformEntryOut]
    is_template: bool
    template_name: Optional[str] = None
    template_category: Optional[str] = None
    analytics: PostAnalyticsOut
    ai_generated: bool
    ai_prompt: Optional[str] = None
    campaign_id: Optional[UUID] = None
    campaign_name: Optional[str] = None
    version: int
    created_at: datetime
    updated_at: datetime


class PostsListResponse(BaseModel):
    """Response for GET /api/social/posts."""

    truck_id: str
    posts: List[PostOut]
    pagination: Pagination


class PostDeleteResponse(BaseModel):
    """Response for DELETE /api/social/posts/{id}: soft (published posts) or hard delete."""

    post_id: UUID
    deleted: str


class CalendarResponse(BaseModel):
    """Scheduled posts in a window, ascending by scheduled_time."""

    truck_id: str
    start_date: datetime
    end_date: datetime
    posts: List[PostOut]


class DefaultTemplateOut(BaseModel):
    """Built-in starter template."""

    name: str
    category: str
    text: str
    hashtags: List[str]


class TemplatesResponse(BaseModel):
    """Custom templates of the truck plus the built-in ones."""

    truck_id: str
    templates: List[PostOut]
    default_templates: List[DefaultTemplateOut]


class PlatformPerformance(BaseModel):
    """Rollup for one platform."""

    posts: int
    reach: int
    engagement: int


class TruckAnalyticsResponse(BaseModel):
    """Response for GET /api/social/analytics/{truck_id}."""

    truck_id: str
    start_date: datetime
    end_date: datetime
    platform: Optional[str] = None
    total_posts: int
    total_reach: int
    total_engagement: int
    total_impressions: int
    avg_engagement_rate: float
    top_posts: List[PostOut]
    performance_by_platform: Dict[str, PlatformPerformance]

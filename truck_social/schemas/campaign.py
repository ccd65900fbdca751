"""Campaign request/response schemas."""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from truck_social.schemas.enums import CampaignStatusEnum, CampaignTypeEnum, PlatformEnum


class CampaignGoals(BaseModel):
    """Advisory targets; never enforced."""

    target_reach: Optional[int] = Field(None, ge=0)
    target_engagement: Optional[int] = Field(None, ge=0)
    target_sales: Optional[float] = Field(None, ge=0)
    target_new_customers: Optional[int] = Field(None, ge=0)


class CampaignBudget(BaseModel):
    """Paid-ads budget."""

    total: Optional[float] = Field(None, ge=0)
    spent: Optional[float] = Field(None, ge=0)
    currency: str = Field("USD", min_length=3, max_length=8)


class PromotionDetails(BaseModel):
    """Promotion sub-document (free-form)."""

    discount_type: Optional[str] = Field(None, description="percentage | fixed | bogo | ...")
    discount_value: Optional[float] = None
    promo_code: Optional[str] = None
    terms: Optional[str] = None


class ContestDetails(BaseModel):
    """Contest sub-document (free-form)."""

    rules: Optional[str] = None
    prizes: List[str] = Field(default_factory=list)
    entry_methods: List[str] = Field(default_factory=list, description="follow | like | comment | share | tag")
    winner_selection: Optional[str] = Field(None, description="random | judged | most-likes")
    winners_count: Optional[int] = Field(None, ge=0)


class CampaignCreateRequest(BaseModel):
    """Body for POST /api/social/campaigns. start_date <= end_date is checked by the manager."""

    truck_id: str = Field(..., min_length=1, max_length=64)
    owner_id: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    type: CampaignTypeEnum
    status: CampaignStatusEnum = CampaignStatusEnum.DRAFT
    start_date: datetime
    end_date: datetime
    goals: CampaignGoals = Field(default_factory=CampaignGoals)
    budget: CampaignBudget = Field(default_factory=CampaignBudget)
    platforms: List[PlatformEnum] = Field(default_factory=list)
    hashtags: List[str] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)
    promotion: Optional[PromotionDetails] = None
    contest: Optional[ContestDetails] = None

    model_config = {"extra": "forbid"}


class CampaignUpdateRequest(BaseModel):
    """Body for PATCH /api/social/campaigns/{id}. Only provided fields change; analytics/post_ids are not writable."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    type: Optional[CampaignTypeEnum] = None
    status: Optional[CampaignStatusEnum] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    goals: Optional[CampaignGoals] = None
    budget: Optional[CampaignBudget] = None
    platforms: Optional[List[PlatformEnum]] = None
    hashtags: Optional[List[str]] = None
    keywords: Optional[List[str]] = None
    promotion: Optional[PromotionDetails] = None
    contest: Optional[ContestDetails] = None

    model_config = {"extra": "forbid"}


class CampaignAnalyticsPatch(BaseModel):
    """
    Metrics patch (shallow merge). Omitted fields keep their value.
    revenue is not stored: with budget.spent > 0 it recomputes roi.
    total_posts is owned by add_post / reconcile and is not patchable.
    """

    total_reach: Optional[int] = Field(None, ge=0)
    total_engagement: Optional[int] = Field(None, ge=0)
    total_clicks: Optional[int] = Field(None, ge=0)
    conversion_rate: Optional[float] = Field(None, ge=0)
    roi: Optional[float] = None
    new_followers: Optional[int] = Field(None, ge=0)
    revenue: Optional[float] = Field(None, ge=0)

    model_config = {"extra": "forbid"}


class CampaignAddPostRequest(BaseModel):
    """Body for POST /api/social/campaigns/{id}/posts."""

    post_id: str = Field(..., min_length=1, max_length=64)


class CampaignAnalyticsOut(BaseModel):
    """Campaign analytics counters."""

    total_posts: int
    total_reach: int
    total_engagement: int
    total_clicks: int
    conversion_rate: float
    roi: float
    new_followers: int
    last_updated: Optional[datetime] = None


class CampaignOut(BaseModel):
    """Campaign with derived fields (progress, days_remaining, effective_status)."""

    id: UUID
    truck_id: str
    owner_id: str
    name: str
    description: Optional[str] = None
    type: str
    status: str
    effective_status: str
    start_date: datetime
    end_date: datetime
    goals: CampaignGoals
    budget: CampaignBudget
    platforms: List[str]
    hashtags: List[str]
    keywords: List[str]
    promotion: Optional[PromotionDetails] = None
    contest: Optional[ContestDetails] = None
    analytics: CampaignAnalyticsOut
    post_ids: List[str]
    progress: int
    days_remaining: int
    version: int
    created_at: datetime
    updated_at: datetime


class CampaignsListResponse(BaseModel):
    """Response for GET /api/social/campaigns."""

    truck_id: str
    campaigns: List[CampaignOut]

"""Pydantic request/response schemas."""
from truck_social.schemas.common import ErrorResponse, Pagination
from truck_social.schemas.enums import (
    CampaignStatusEnum,
    CampaignTypeEnum,
    PlatformEnum,
    PlatformStatusEnum,
    PostStatusEnum,
)
from truck_social.schemas.campaign import (
    CampaignCreateRequest,
    CampaignUpdateRequest,
    CampaignAnalyticsPatch,
    CampaignOut,
)
from truck_social.schemas.social_post import (
    PostCreateRequest,
    PostUpdateRequest,
    PostAnalyticsPatch,
    PostOut,
)

__all__ = [
    "ErrorResponse",
    "Pagination",
    "CampaignStatusEnum",
    "CampaignTypeEnum",
    "PlatformEnum",
    "PlatformStatusEnum",
    "PostStatusEnum",
    "CampaignCreateRequest",
    "CampaignUpdateRequest",
    "CampaignAnalyticsPatch",
    "CampaignOut",
    "PostCreateRequest",
    "PostUpdateRequest",
    "PostAnalyticsPatch",
    "PostOut",
]

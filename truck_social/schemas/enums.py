"""Enumerations shared by campaign and post schemas."""
from enum import Enum


class PlatformEnum(str, Enum):
    """Supported social platforms."""

    INSTAGRAM = "instagram"
    FACEBOOK = "facebook"
    TWITTER = "twitter"
    LINKEDIN = "linkedin"
    TIKTOK = "tiktok"


class CampaignTypeEnum(str, Enum):
    """Campaign type."""

    PROMOTION = "promotion"
    CONTEST = "contest"
    EVENT = "event"
    SEASONAL = "seasonal"
    PRODUCT_LAUNCH = "product-launch"
    AWARENESS = "awareness"


class CampaignStatusEnum(str, Enum):
    """Campaign lifecycle status (owner-driven)."""

    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PostStatusEnum(str, Enum):
    """Overall post status."""

    DRAFT = "draft"
    SCHEDULED = "scheduled"
    PUBLISHED = "published"
    FAILED = "failed"
    DELETED = "deleted"


class PlatformStatusEnum(str, Enum):
    """Status of one platform entry of a post."""

    PENDING = "pending"
    PUBLISHED = "published"
    FAILED = "failed"

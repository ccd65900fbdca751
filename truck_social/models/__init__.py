"""SQLAlchemy models for the social scheduling service."""
from truck_social.models.campaign import Campaign
from truck_social.models.social_post import SocialPost

__all__ = [
    "Campaign",
    "SocialPost",
]

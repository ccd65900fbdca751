"""API routers."""
from truck_social.routers.health_router import router as health_router
from truck_social.routers.campaigns_router import router as campaigns_router
from truck_social.routers.posts_router import router as posts_router
from truck_social.routers.social_router import router as social_router

__all__ = [
    "health_router",
    "campaigns_router",
    "posts_router",
    "social_router",
]

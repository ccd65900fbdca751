"""Social post model: content targeted at one or more social platforms."""
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import Boolean, DateTime, Index, Integer, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from truck_social.db import Base, utcnow
from truck_social.models.types import JsonDocument


class SocialPost(Base):
    """
    Social post of a food truck.
    status: draft | scheduled | published | failed | deleted (deleted = soft delete).
    platforms: [{"name", "post_id", "status", "error", "url"}], one entry per targeted platform.
    campaign_id: weak reference to campaigns.id (no FK; the campaign does not own its posts).
    """

    __tablename__ = "social_posts"
    __table_args__ = (
        Index("ix_social_posts_truck_status_scheduled", "truck_id", "status", "scheduled_time"),
        Index("ix_social_posts_truck_template", "truck_id", "is_template"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    truck_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False)

    # Content
    text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    hashtags: Mapped[List[str]] = mapped_column(JsonDocument, default=list, nullable=False)
    mentions: Mapped[List[str]] = mapped_column(JsonDocument, default=list, nullable=False)
    images: Mapped[List[Dict[str, Any]]] = mapped_column(JsonDocument, default=list, nullable=False)
    link: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)

    # Scheduling
    status: Mapped[str] = mapped_column(String(32), default="draft", nullable=False)
    scheduled_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    published_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    platforms: Mapped[List[Dict[str, Any]]] = mapped_column(JsonDocument, default=list, nullable=False)

    # Template (never scheduled or published)
    is_template: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    template_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    template_category: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    # Analytics
    impressions: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    reach: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    engagement: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    likes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    comments: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    shares: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    saves: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    clicks: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    analytics_updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # AI provenance (metadata only)
    ai_generated: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    ai_prompt: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    campaign_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid(as_uuid=True), nullable=True, index=True)
    campaign_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
    )

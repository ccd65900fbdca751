"""Campaign model: time-boxed marketing initiative owned by a truck."""
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import DateTime, Float, Index, Integer, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from truck_social.db import Base, utcnow
from truck_social.models.types import JsonDocument


class Campaign(Base):
    """
    Campaign of a food truck.
    type: promotion | contest | event | seasonal | product-launch | awareness.
    status: draft | active | paused | completed | cancelled (changed only by the owner).
    post_ids: denormalized forward index of SocialPost ids (best effort, see reconcile_post_ids).
    version: optimistic-concurrency counter, bumped by every UPDATE.
    """

    __tablename__ = "campaigns"
    __table_args__ = (
        Index("ix_campaigns_truck_status_window", "truck_id", "status", "start_date", "end_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    truck_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    status: Mapped[str] = mapped_column(String(32), default="draft", nullable=False)
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # Goals (advisory)
    target_reach: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    target_engagement: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    target_sales: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    target_new_customers: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Budget (paid ads)
    budget_total: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    budget_spent: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    budget_currency: Mapped[str] = mapped_column(String(8), default="USD", nullable=False)

    platforms: Mapped[List[str]] = mapped_column(JsonDocument, default=list, nullable=False)
    hashtags: Mapped[List[str]] = mapped_column(JsonDocument, default=list, nullable=False)
    keywords: Mapped[List[str]] = mapped_column(JsonDocument, default=list, nullable=False)
    # {discount_type, discount_value, promo_code, terms}
    promotion: Mapped[Optional[Dict[str, Any]]] = mapped_column(JsonDocument, nullable=True)
    # {rules, prizes, entry_methods, winner_selection, winners_count}
    contest: Mapped[Optional[Dict[str, Any]]] = mapped_column(JsonDocument, nullable=True)

    # Analytics (written by update_analytics / add_post / reconcile_post_ids only)
    total_posts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_reach: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_engagement: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_clicks: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    conversion_rate: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    roi: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    new_followers: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    analytics_updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    post_ids: Mapped[List[str]] = mapped_column(JsonDocument, default=list, nullable=False)

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

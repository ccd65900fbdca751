"""Campaign API: create, list, update, analytics merge, post linking, reconciliation."""
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from truck_social.db import get_db, utcnow
from truck_social.routers.serializers import campaign_out
from truck_social.schemas.campaign import (
    CampaignAddPostRequest,
    CampaignAnalyticsPatch,
    CampaignCreateRequest,
    CampaignOut,
    CampaignsListResponse,
    CampaignUpdateRequest,
)
from truck_social.services import campaign_service

router = APIRouter(prefix="/api/social/campaigns", tags=["campaigns"])


@router.post("", response_model=CampaignOut, status_code=status.HTTP_201_CREATED)
async def post_campaign(
    payload: CampaignCreateRequest,
    db: AsyncSession = Depends(get_db),
) -> CampaignOut:
    """Create a campaign (status defaults to draft). start_date > end_date -> 400."""
    campaign = await campaign_service.create_campaign(db, payload)
    return campaign_out(campaign)


@router.get("", response_model=CampaignsListResponse)
async def get_campaigns(
    truck_id: str = Query(..., min_length=1, description="Truck id"),
    status: str | None = Query(None, description="draft | active | paused | completed | cancelled"),
    db: AsyncSession = Depends(get_db),
) -> CampaignsListResponse:
    """Campaigns of a truck, newest first."""
    campaigns = await campaign_service.list_campaigns(db, truck_id=truck_id, status=status)
    now = utcnow()
    return CampaignsListResponse(truck_id=truck_id, campaigns=[campaign_out(c, now) for c in campaigns])


@router.get("/active", response_model=CampaignsListResponse)
async def get_active_campaigns(
    truck_id: str = Query(..., min_length=1, description="Truck id"),
    db: AsyncSession = Depends(get_db),
) -> CampaignsListResponse:
    """Campaigns with status=active whose window contains now."""
    now = utcnow()
    campaigns = await campaign_service.get_active_campaigns(db, truck_id=truck_id, now=now)
    return CampaignsListResponse(truck_id=truck_id, campaigns=[campaign_out(c, now) for c in campaigns])


@router.get("/{campaign_id}", response_model=CampaignOut)
async def get_campaign(
    campaign_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> CampaignOut:
    """One campaign with progress, days_remaining and effective_status."""
    campaign = await campaign_service.get_campaign(db, campaign_id)
    return campaign_out(campaign)


@router.patch("/{campaign_id}", response_model=CampaignOut)
async def patch_campaign(
    campaign_id: UUID,
    payload: CampaignUpdateRequest,
    db: AsyncSession = Depends(get_db),
) -> CampaignOut:
    """Partial update; the merged start/end window is re-validated."""
    campaign = await campaign_service.update_campaign(db, campaign_id, payload)
    return campaign_out(campaign)


@router.patch("/{campaign_id}/analytics", response_model=CampaignOut)
async def patch_campaign_analytics(
    campaign_id: UUID,
    payload: CampaignAnalyticsPatch,
    db: AsyncSession = Depends(get_db),
) -> CampaignOut:
    """
    Merge metrics from the analytics collector; revenue recomputes roi when budget.spent > 0.
    total_posts is not accepted here (422): it follows post linking and /reconcile.
    """
    campaign = await campaign_service.update_analytics(db, campaign_id, payload)
    return campaign_out(campaign)


@router.post("/{campaign_id}/posts", response_model=CampaignOut)
async def post_campaign_post(
    campaign_id: UUID,
    payload: CampaignAddPostRequest,
    db: AsyncSession = Depends(get_db),
) -> CampaignOut:
    """Link a post id into the campaign (idempotent)."""
    campaign = await campaign_service.add_post(db, campaign_id, payload.post_id)
    return campaign_out(campaign)


@router.post("/{campaign_id}/reconcile", response_model=CampaignOut)
async def post_campaign_reconcile(
    campaign_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> CampaignOut:
    """Rebuild post_ids/total_posts from the posts that reference this campaign."""
    campaign = await campaign_service.reconcile_post_ids(db, campaign_id)
    return campaign_out(campaign)

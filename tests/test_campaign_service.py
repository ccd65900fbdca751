"""
Campaign manager against SQLite:
- create: defaults, window validation, enum validation.
- add_post: idempotent, no lost update when another writer wins the version race.
- update_analytics: shallow merge, ROI from revenue when budget.spent > 0.
- get_active_campaigns, reconcile_post_ids, update_campaign.
- driver failures surface as StorageError.
"""
import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import update
from sqlalchemy.exc import OperationalError

from truck_social.exceptions import ConflictError, NotFoundError, StorageError, ValidationError
from truck_social.models import Campaign
from truck_social.services import campaign_service, persistence, post_service


def _utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_create_campaign_defaults(make_campaign) -> None:
    c = await make_campaign(platforms=["instagram", "instagram", "facebook"], hashtags=["tacos", " tacos "])
    assert c.status == "draft"
    assert c.version == 1
    assert c.post_ids == []
    assert (c.total_posts, c.total_reach, c.total_engagement, c.roi) == (0, 0, 0, 0.0)
    assert c.platforms == ["instagram", "facebook"]
    assert c.hashtags == ["tacos"]
    assert c.budget_currency == "USD"


@pytest.mark.asyncio
async def test_create_campaign_rejects_inverted_window(make_campaign) -> None:
    with pytest.raises(ValidationError) as exc:
        await make_campaign(start_date=_utc(2024, 6, 11), end_date=_utc(2024, 6, 1))
    assert exc.value.code == "campaign_window_inverted"


@pytest.mark.asyncio
async def test_create_campaign_rejects_unknown_type_and_missing_name(db) -> None:
    with pytest.raises(ValidationError) as exc:
        await campaign_service.create_campaign(
            db,
            {
                "truck_id": "t",
                "owner_id": "o",
                "type": "flash-mob",
                "start_date": _utc(2024, 6, 1),
                "end_date": _utc(2024, 6, 2),
            },
        )
    assert exc.value.code == "invalid_fields"
    locs = {tuple(e["loc"]) for e in exc.value.extra["errors"]}
    assert ("type",) in locs
    assert ("name",) in locs


@pytest.mark.asyncio
async def test_get_campaign_not_found_and_malformed_id(db) -> None:
    with pytest.raises(NotFoundError) as exc:
        await campaign_service.get_campaign(db, uuid.uuid4())
    assert exc.value.code == "campaigns_not_found"
    with pytest.raises(ValidationError) as exc:
        await campaign_service.get_campaign(db, "not-a-uuid")
    assert exc.value.code == "invalid_id"


@pytest.mark.asyncio
async def test_add_post_is_idempotent(make_campaign, db) -> None:
    c = await make_campaign()
    await campaign_service.add_post(db, c.id, "post-1")
    c = await campaign_service.add_post(db, c.id, "post-1")
    assert c.post_ids == ["post-1"]
    assert c.total_posts == 1
    assert c.version == 2

    c = await campaign_service.add_post(db, c.id, "post-2")
    assert c.post_ids == ["post-1", "post-2"]
    assert c.total_posts == 2


@pytest.mark.asyncio
@pytest.mark.parametrize("synchronize", [False, "fetch"])
async def test_add_post_retries_after_losing_version_race(make_campaign, db, monkeypatch, synchronize) -> None:
    """
    Another writer links a post between our read and write; both links survive.
    With "fetch" the competing write also refreshes our in-memory row (version included);
    the guard must still compare against the version we read.
    """
    c = await make_campaign()
    original = persistence.compare_and_swap
    calls = {"n": 0}

    async def racing_cas(session, row, values, seen_version):
        calls["n"] += 1
        if calls["n"] == 1:
            await session.execute(
                update(Campaign)
                .where(Campaign.id == row.id)
                .values(post_ids=["other"], total_posts=1, version=Campaign.version + 1)
                .execution_options(synchronize_session=synchronize)
            )
        return await original(session, row, values, seen_version)

    monkeypatch.setattr(persistence, "compare_and_swap", racing_cas)
    c = await campaign_service.add_post(db, c.id, "mine")
    assert calls["n"] == 2
    assert c.post_ids == ["other", "mine"]
    assert c.total_posts == 2
    assert c.version == 3


@pytest.mark.asyncio
async def test_persistent_conflict_raises_conflict_error(make_campaign, db, monkeypatch) -> None:
    c = await make_campaign()
    cas = AsyncMock(return_value=False)
    monkeypatch.setattr(persistence, "compare_and_swap", cas)
    with pytest.raises(ConflictError):
        await campaign_service.add_post(db, c.id, "p")
    assert cas.await_count == 5


@pytest.mark.asyncio
async def test_update_analytics_merges_and_computes_roi(make_campaign, db) -> None:
    c = await make_campaign(budget={"total": 500, "spent": 100})
    c = await campaign_service.update_analytics(db, c.id, {"total_reach": 1000, "total_engagement": 80})
    assert c.analytics_updated_at is not None
    assert c.roi == 0.0

    c = await campaign_service.update_analytics(db, c.id, {"total_clicks": 12, "revenue": 250})
    assert c.total_reach == 1000
    assert c.total_engagement == 80
    assert c.total_clicks == 12
    assert c.roi == pytest.approx(150.0)


@pytest.mark.asyncio
async def test_update_analytics_without_spend_leaves_roi(make_campaign, db) -> None:
    c = await make_campaign()
    c = await campaign_service.update_analytics(db, c.id, {"revenue": 400})
    assert c.roi == 0.0
    c = await campaign_service.update_analytics(db, c.id, {"roi": 12.5})
    assert c.roi == 12.5


@pytest.mark.asyncio
async def test_update_analytics_rejects_unknown_metric(make_campaign, db) -> None:
    c = await make_campaign()
    with pytest.raises(ValidationError):
        await campaign_service.update_analytics(db, c.id, {"total_posts": 99})


@pytest.mark.asyncio
async def test_get_active_campaigns(make_campaign, db) -> None:
    now = _utc(2024, 6, 6)
    later = await make_campaign(name="later", status="active", start_date=_utc(2024, 6, 3), end_date=_utc(2024, 6, 30))
    first = await make_campaign(name="first", status="active")
    await make_campaign(name="draft", status="draft")
    await make_campaign(name="ended", status="active", start_date=_utc(2024, 5, 1), end_date=_utc(2024, 5, 31))
    await make_campaign(name="other truck", status="active", truck_id="truck-2")

    active = await campaign_service.get_active_campaigns(db, "truck-1", now=now)
    assert [c.id for c in active] == [first.id, later.id]


@pytest.mark.asyncio
async def test_update_campaign_revalidates_window(make_campaign, db) -> None:
    c = await make_campaign()
    with pytest.raises(ValidationError) as exc:
        await campaign_service.update_campaign(db, c.id, {"end_date": _utc(2024, 5, 1)})
    assert exc.value.code == "campaign_window_inverted"

    c = await campaign_service.update_campaign(db, c.id, {"status": "active", "name": "Summer Birria"})
    assert c.status == "active"
    assert c.name == "Summer Birria"
    assert c.version == 2

    with pytest.raises(ValidationError):
        await campaign_service.update_campaign(db, c.id, {"name": None})


@pytest.mark.asyncio
async def test_reconcile_post_ids_drops_removed_posts(make_campaign, make_post, db) -> None:
    c = await make_campaign()
    kept = await make_post(campaign_id=c.id)
    removed = await make_post(campaign_id=c.id)
    c = await campaign_service.get_campaign(db, c.id)
    assert c.post_ids == [str(kept.id), str(removed.id)]

    assert await post_service.delete_post(db, removed.id) == "hard"
    c = await campaign_service.get_campaign(db, c.id)
    assert c.total_posts == 2

    c = await campaign_service.reconcile_post_ids(db, c.id)
    assert c.post_ids == [str(kept.id)]
    assert c.total_posts == 1


@pytest.mark.asyncio
async def test_list_campaigns_filters_status(make_campaign, db) -> None:
    await make_campaign(name="a", status="active")
    await make_campaign(name="b")
    drafts = await campaign_service.list_campaigns(db, "truck-1", status="draft")
    assert [c.name for c in drafts] == ["b"]
    with pytest.raises(ValidationError):
        await campaign_service.list_campaigns(db, "truck-1", status="archived")


@pytest.mark.asyncio
async def test_driver_failure_surfaces_as_storage_error(make_campaign, db, monkeypatch) -> None:
    """A dropped connection is a retryable StorageError, not a raw driver exception."""
    c = await make_campaign()
    down = OperationalError("SELECT ...", {}, ConnectionRefusedError("connection refused"))
    monkeypatch.setattr(db, "execute", AsyncMock(side_effect=down))

    with pytest.raises(StorageError) as exc:
        await campaign_service.list_campaigns(db, "truck-1")
    assert exc.value.code == "storage_unavailable"
    assert exc.value.extra == {"operation": "list_campaigns"}
    assert isinstance(exc.value.__cause__, OperationalError)

    with pytest.raises(StorageError):
        await campaign_service.add_post(db, c.id, "p")

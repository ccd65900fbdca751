"""
Post manager against SQLite:
- create validation (text length, unique platforms, template rules).
- per-platform publish: overall status flips only when every entry is published.
- failures recorded per entry, overall status unchanged.
- calendar/template queries ordering, pagination, soft vs hard delete.
"""
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import update

from truck_social.db import as_utc
from truck_social.exceptions import NotFoundError, ValidationError
from truck_social.models import SocialPost
from truck_social.services import post_service


def _utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def _entry(post: SocialPost, name: str) -> dict:
    return next(e for e in post.platforms if e["name"] == name)


@pytest.mark.asyncio
async def test_create_post_defaults(make_post) -> None:
    post = await make_post(hashtags=["tacos", "tacos", "birria"])
    assert post.status == "draft"
    assert post.hashtags == ["tacos", "birria"]
    assert [e["name"] for e in post.platforms] == ["instagram", "facebook"]
    assert all(e["status"] == "pending" and e["post_id"] is None for e in post.platforms)
    assert post.reach == 0 and post.engagement == 0

    scheduled = await make_post(scheduled_time=_utc(2030, 1, 1, 12))
    assert scheduled.status == "scheduled"


@pytest.mark.asyncio
async def test_text_length_limit(make_post) -> None:
    assert (await make_post(text="x" * 2200)).text == "x" * 2200
    with pytest.raises(ValidationError) as exc:
        await make_post(text="x" * 2201)
    assert exc.value.code == "text_too_long"


@pytest.mark.asyncio
async def test_platform_names_unique_and_known(make_post) -> None:
    with pytest.raises(ValidationError) as exc:
        await make_post(platforms=["instagram", "instagram"])
    assert exc.value.code == "duplicate_platform"
    with pytest.raises(ValidationError) as exc:
        await make_post(platforms=["myspace"])
    assert exc.value.code == "invalid_fields"


@pytest.mark.asyncio
async def test_create_post_rejects_published_status(make_post) -> None:
    with pytest.raises(ValidationError) as exc:
        await make_post(status="published")
    assert exc.value.code == "invalid_initial_status"


@pytest.mark.asyncio
async def test_templates_cannot_be_scheduled(make_post, db) -> None:
    with pytest.raises(ValidationError) as exc:
        await make_post(is_template=True, scheduled_time=_utc(2030, 1, 1))
    assert exc.value.code == "template_not_schedulable"

    template = await make_post(is_template=True, template_name="Taco Tuesday", template_category="daily-special")
    with pytest.raises(ValidationError):
        await post_service.schedule_post(db, template.id, _utc(2030, 1, 1))
    with pytest.raises(ValidationError) as exc:
        await post_service.mark_platform_published(db, template.id, "instagram", "ig-1")
    assert exc.value.code == "template_not_publishable"


@pytest.mark.asyncio
async def test_post_with_missing_campaign_keeps_reference(make_post) -> None:
    missing = uuid.uuid4()
    post = await make_post(campaign_id=missing)
    assert post.campaign_id == missing


@pytest.mark.asyncio
async def test_post_with_campaign_is_linked(make_campaign, make_post, db) -> None:
    campaign = await make_campaign()
    post = await make_post(campaign_id=campaign.id)
    assert post.campaign_name == "Summer Tacos"
    assert campaign.post_ids == [str(post.id)]
    assert campaign.total_posts == 1


@pytest.mark.asyncio
async def test_publish_all_platforms_flips_status(make_post, db) -> None:
    post = await make_post(scheduled_time=_utc(2030, 1, 1, 12))

    post = await post_service.mark_platform_published(db, post.id, "instagram", "ig-123", url="https://ig/p/123")
    assert post.status == "scheduled"
    assert post.published_time is None
    ig = _entry(post, "instagram")
    assert (ig["status"], ig["post_id"], ig["url"]) == ("published", "ig-123", "https://ig/p/123")
    assert _entry(post, "facebook")["status"] == "pending"

    post = await post_service.mark_platform_published(db, post.id, "facebook", "fb-456")
    assert post.status == "published"
    assert post.published_time is not None
    assert all(e["status"] == "published" for e in post.platforms)


@pytest.mark.asyncio
async def test_publish_order_does_not_matter(make_post, db, monkeypatch) -> None:
    fixed = _utc(2030, 1, 1, 12, 5)
    monkeypatch.setattr(post_service, "utcnow", lambda: fixed)
    a = await make_post()
    b = await make_post()

    await post_service.mark_platform_published(db, a.id, "instagram", "ig-a")
    a = await post_service.mark_platform_published(db, a.id, "facebook", "fb-a")
    await post_service.mark_platform_published(db, b.id, "facebook", "fb-b")
    b = await post_service.mark_platform_published(db, b.id, "instagram", "ig-b")

    assert a.status == b.status == "published"
    assert as_utc(a.published_time) == as_utc(b.published_time) == fixed


@pytest.mark.asyncio
async def test_publish_untargeted_platform_is_not_found(make_post, db) -> None:
    post = await make_post()
    with pytest.raises(NotFoundError) as exc:
        await post_service.mark_platform_published(db, post.id, "twitter", "tw-1")
    assert exc.value.code == "platform_not_targeted"
    with pytest.raises(NotFoundError):
        await post_service.mark_platform_published(db, uuid.uuid4(), "instagram", "ig-1")


@pytest.mark.asyncio
async def test_platform_failure_keeps_overall_status(make_post, db) -> None:
    post = await make_post(scheduled_time=_utc(2030, 1, 1, 12))
    post = await post_service.mark_platform_failed(db, post.id, "instagram", "token expired")
    assert post.status == "scheduled"
    ig = _entry(post, "instagram")
    assert (ig["status"], ig["error"]) == ("failed", "token expired")

    post = await post_service.mark_platform_published(db, post.id, "instagram", "ig-9")
    assert _entry(post, "instagram")["error"] is None
    with pytest.raises(ValidationError) as exc:
        await post_service.mark_platform_failed(db, post.id, "instagram", "late error")
    assert exc.value.code == "platform_already_published"


@pytest.mark.asyncio
async def test_get_scheduled_posts_window_and_order(make_post, db) -> None:
    t1, t2, t3 = _utc(2030, 1, 2, 9), _utc(2030, 1, 3, 9), _utc(2030, 1, 4, 9)
    p3 = await make_post(scheduled_time=t3)
    p1 = await make_post(scheduled_time=t1)
    p2 = await make_post(scheduled_time=t2)
    await make_post(scheduled_time=_utc(2030, 2, 1))
    await make_post()
    await make_post(scheduled_time=t2, truck_id="truck-2")

    posts = await post_service.get_scheduled_posts(db, "truck-1", _utc(2030, 1, 1), _utc(2030, 1, 31))
    assert [p.id for p in posts] == [p1.id, p2.id, p3.id]

    with pytest.raises(ValidationError):
        await post_service.get_scheduled_posts(db, "truck-1", _utc(2030, 1, 31), _utc(2030, 1, 1))


@pytest.mark.asyncio
async def test_get_templates_newest_first(make_post, db) -> None:
    old = await make_post(is_template=True, template_name="old", template_category="daily-special")
    new = await make_post(is_template=True, template_name="new", template_category="new-menu")
    await make_post()
    base = _utc(2024, 1, 1)
    for post, offset in ((old, 0), (new, 1)):
        await db.execute(
            update(SocialPost).where(SocialPost.id == post.id).values(created_at=base + timedelta(days=offset))
        )

    templates = await post_service.get_templates(db, "truck-1")
    assert [t.id for t in templates] == [new.id, old.id]
    daily = await post_service.get_templates(db, "truck-1", category="daily-special")
    assert [t.id for t in daily] == [old.id]


@pytest.mark.asyncio
async def test_list_posts_pagination(make_post, db) -> None:
    for _ in range(5):
        await make_post()
    await make_post(is_template=True, template_name="t")

    page, total = await post_service.list_posts(db, "truck-1", is_template=False, page=3, limit=2)
    assert total == 5
    assert len(page) == 1
    assert post_service.total_pages(total, 2) == 3

    templates, total = await post_service.list_posts(db, "truck-1", is_template=True)
    assert total == 1 and templates[0].is_template


@pytest.mark.asyncio
async def test_update_post_locked_once_published(make_post, db) -> None:
    post = await make_post(platforms=["instagram"])
    post = await post_service.update_post(db, post.id, {"text": "Now with salsa verde", "platforms": ["instagram", "tiktok"]})
    assert post.text == "Now with salsa verde"
    assert [e["name"] for e in post.platforms] == ["instagram", "tiktok"]

    await post_service.mark_platform_published(db, post.id, "instagram", "ig-1")
    post = await post_service.mark_platform_published(db, post.id, "tiktok", "tt-1")
    assert post.status == "published"
    with pytest.raises(ValidationError) as exc:
        await post_service.update_post(db, post.id, {"text": "edit"})
    assert exc.value.code == "post_locked"


@pytest.mark.asyncio
async def test_update_analytics_merges(make_post, db) -> None:
    post = await make_post()
    await post_service.update_analytics(db, post.id, {"reach": 200, "engagement": 25})
    post = await post_service.update_analytics(db, post.id, {"likes": 20})
    assert (post.reach, post.engagement, post.likes) == (200, 25, 20)
    assert post.analytics_updated_at is not None
    assert post_service.engagement_rate(post) == 12.5


@pytest.mark.asyncio
async def test_delete_draft_is_hard_and_published_is_soft(make_post, db) -> None:
    draft = await make_post()
    assert await post_service.delete_post(db, draft.id) == "hard"
    with pytest.raises(NotFoundError):
        await post_service.get_post(db, draft.id)

    published = await make_post(platforms=["instagram"])
    await post_service.mark_platform_published(db, published.id, "instagram", "ig-1")
    assert await post_service.delete_post(db, published.id) == "soft"
    post = await post_service.get_post(db, published.id)
    assert post.status == "deleted"
    assert await post_service.delete_post(db, published.id) == "soft"


@pytest.mark.asyncio
async def test_scheduled_status_requires_scheduled_time(make_post, db) -> None:
    """A scheduled post without a time would never show up on the calendar."""
    with pytest.raises(ValidationError) as exc:
        await make_post(status="scheduled")
    assert exc.value.code == "scheduled_time_missing"

    post = await make_post(status="scheduled", scheduled_time=_utc(2030, 1, 1, 12))
    posts = await post_service.get_scheduled_posts(db, "truck-1", _utc(2000, 1, 1), _utc(2100, 1, 1))
    assert [p.id for p in posts] == [post.id]


@pytest.mark.asyncio
async def test_dropping_pending_platform_publishes_post(make_post, db, monkeypatch) -> None:
    fixed = _utc(2030, 1, 1, 12, 30)
    monkeypatch.setattr(post_service, "utcnow", lambda: fixed)
    post = await make_post(scheduled_time=_utc(2030, 1, 1, 12))
    await post_service.mark_platform_published(db, post.id, "instagram", "ig-1")

    post = await post_service.update_post(db, post.id, {"platforms": ["instagram"]})
    assert [(e["name"], e["status"]) for e in post.platforms] == [("instagram", "published")]
    assert post.status == "published"
    assert as_utc(post.published_time) == fixed


@pytest.mark.asyncio
async def test_clearing_platforms_does_not_publish(make_post, db) -> None:
    post = await make_post(scheduled_time=_utc(2030, 1, 1, 12))
    post = await post_service.update_post(db, post.id, {"platforms": []})
    assert post.platforms == []
    assert post.status == "scheduled"


@pytest.mark.asyncio
async def test_platform_failure_rejected_for_templates_and_deleted_posts(make_post, db) -> None:
    template = await make_post(is_template=True, template_name="Taco Tuesday")
    with pytest.raises(ValidationError) as exc:
        await post_service.mark_platform_failed(db, template.id, "instagram", "token expired")
    assert exc.value.code == "template_not_publishable"

    post = await make_post(platforms=["instagram", "facebook"])
    await post_service.mark_platform_published(db, post.id, "instagram", "ig-1")
    await post_service.mark_platform_published(db, post.id, "facebook", "fb-1")
    assert await post_service.delete_post(db, post.id) == "soft"
    with pytest.raises(ValidationError) as exc:
        await post_service.mark_platform_failed(db, post.id, "facebook", "late error")
    assert exc.value.code == "post_locked"

"""Tests for garment, tag and statistics services."""

from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from smartwardrobe.api.v1.schemas.garment import GarmentCreate, GarmentUpdate
from smartwardrobe.api.v1.schemas.tag import TagCreate, TagUpdate
from smartwardrobe.core.exceptions import ConflictException, ResourceNotFoundException
from smartwardrobe.models.garment import GarmentStatus
from smartwardrobe.services.garment import GarmentService
from smartwardrobe.services.stats import StatsService
from smartwardrobe.services.tag import TagService

USER = "user-1"
OTHER_USER = "user-2"


@pytest.mark.asyncio
async def test_create_garment_defaults(db: AsyncSession) -> None:
    garment = await GarmentService().create_garment(
        db, USER, GarmentCreate(name="Oxford", category="Shirts", cost=49.5)
    )

    assert garment.id is not None
    assert garment.user_id == USER
    assert garment.status == GarmentStatus.CLEAN.value
    assert garment.usage_count == 0
    assert garment.tags == []
    assert garment.created_at is not None


@pytest.mark.asyncio
async def test_create_garment_with_foreign_tag_fails(db: AsyncSession) -> None:
    foreign_tag = await TagService().create_tag(db, OTHER_USER, TagCreate(name="Work"))

    with pytest.raises(ResourceNotFoundException):
        await GarmentService().create_garment(
            db, USER, GarmentCreate(name="Oxford", category="Shirts", tag_ids=[foreign_tag.id])
        )


@pytest.mark.asyncio
async def test_update_garment_replaces_tags(db: AsyncSession) -> None:
    tags = TagService()
    summer = await tags.create_tag(db, USER, TagCreate(name="Summer"))
    work = await tags.create_tag(db, USER, TagCreate(name="Work"))
    service = GarmentService()
    garment = await service.create_garment(
        db, USER, GarmentCreate(name="Oxford", category="Shirts", tag_ids=[summer.id])
    )

    updated = await service.update_garment(
        db, garment.id, USER, GarmentUpdate(color="Blue", tag_ids=[work.id])
    )

    assert updated.color == "Blue"
    assert updated.name == "Oxford"
    assert [t.name for t in updated.tags] == ["Work"]


@pytest.mark.asyncio
async def test_garments_are_scoped_to_their_owner(db: AsyncSession) -> None:
    service = GarmentService()
    garment = await service.create_garment(db, USER, GarmentCreate(name="Oxford", category="Shirts"))

    assert await service.get_garment(db, garment.id, OTHER_USER) is None
    with pytest.raises(ResourceNotFoundException):
        await service.update_garment(db, garment.id, OTHER_USER, GarmentUpdate(color="Red"))
    with pytest.raises(ResourceNotFoundException):
        await service.delete_garment(db, garment.id, OTHER_USER)
    with pytest.raises(ResourceNotFoundException):
        await service.mark_garment_worn(db, garment.id, OTHER_USER)


@pytest.mark.asyncio
async def test_get_garments_filters(db: AsyncSession) -> None:
    tags = TagService()
    summer = await tags.create_tag(db, USER, TagCreate(name="Summer"))
    service = GarmentService()
    linen = await service.create_garment(
        db, USER, GarmentCreate(name="Linen Shirt", category="Shirts", tag_ids=[summer.id])
    )
    jeans = await service.create_garment(
        db,
        USER,
        GarmentCreate(name="Jeans", category="Pants", brand="Levi's", status=GarmentStatus.DIRTY),
    )
    await service.create_garment(db, OTHER_USER, GarmentCreate(name="Linen Pants", category="Pants"))

    assert [g.id for g in await service.get_garments(db, USER, category="shirts")] == [linen.id]
    assert [g.id for g in await service.get_garments(db, USER, status=GarmentStatus.DIRTY)] == [jeans.id]
    assert [g.id for g in await service.get_garments(db, USER, tag="SUMMER")] == [linen.id]
    assert [g.id for g in await service.get_garments(db, USER, search="levi")] == [jeans.id]
    assert [g.id for g in await service.get_garments(db, USER, search="linen")] == [linen.id]
    assert len(await service.get_garments(db, USER, limit=1)) == 1


@pytest.mark.asyncio
async def test_mark_garment_worn_increments_usage(db: AsyncSession) -> None:
    service = GarmentService()
    garment = await service.create_garment(db, USER, GarmentCreate(name="Oxford", category="Shirts"))

    await service.mark_garment_worn(db, garment.id, USER)
    worn = await service.mark_garment_worn(db, garment.id, USER)

    assert worn.usage_count == 2
    assert worn.last_worn_at is not None


@pytest.mark.asyncio
async def test_tag_names_are_unique_per_user_ignoring_case(db: AsyncSession) -> None:
    service = TagService()
    await service.create_tag(db, USER, TagCreate(name="Summer"))

    with pytest.raises(ConflictException):
        await service.create_tag(db, USER, TagCreate(name="summer"))

    other = await service.create_tag(db, OTHER_USER, TagCreate(name="Summer"))
    assert other.user_id == OTHER_USER


@pytest.mark.asyncio
async def test_rename_tag_to_taken_name_conflicts(db: AsyncSession) -> None:
    service = TagService()
    await service.create_tag(db, USER, TagCreate(name="Summer"))
    work = await service.create_tag(db, USER, TagCreate(name="Work"))

    with pytest.raises(ConflictException):
        await service.update_tag(db, work.id, USER, TagUpdate(name="SUMMER"))

    renamed = await service.update_tag(db, work.id, USER, TagUpdate(name="work", color="#123456"))
    assert renamed.name == "work"
    assert renamed.color == "#123456"


@pytest.mark.asyncio
async def test_get_tags_counts_garments(db: AsyncSession) -> None:
    tags = TagService()
    summer = await tags.create_tag(db, USER, TagCreate(name="Summer"))
    await tags.create_tag(db, USER, TagCreate(name="Archive"))
    garments = GarmentService()
    await garments.create_garment(db, USER, GarmentCreate(name="A", category="Shirts", tag_ids=[summer.id]))
    await garments.create_garment(db, USER, GarmentCreate(name="B", category="Shirts", tag_ids=[summer.id]))

    counts = [(tag.name, count) for tag, count in await tags.get_tags(db, USER)]

    assert counts == [("Archive", 0), ("Summer", 2)]


@pytest.mark.asyncio
async def test_delete_tag_keeps_garments(db: AsyncSession) -> None:
    tags = TagService()
    summer = await tags.create_tag(db, USER, TagCreate(name="Summer"))
    garments = GarmentService()
    garment = await garments.create_garment(
        db, USER, GarmentCreate(name="A", category="Shirts", tag_ids=[summer.id])
    )

    await tags.delete_tag(db, summer.id, USER)

    reloaded = await garments.get_garment(db, garment.id, USER)
    assert reloaded is not None
    assert reloaded.tags == []
    with pytest.raises(ResourceNotFoundException):
        await tags.delete_tag(db, summer.id, USER)


@pytest.mark.asyncio
async def test_stats(db: AsyncSession) -> None:
    service = GarmentService()
    shirt = await service.create_garment(db, USER, GarmentCreate(name="Oxford", category="Shirts", cost=40))
    tee = await service.create_garment(db, USER, GarmentCreate(name="Tee", category="Shirts", cost=10.5))
    jeans = await service.create_garment(db, USER, GarmentCreate(name="Jeans", category="Pants"))
    await service.create_garment(db, USER, GarmentCreate(name="Scarf", category="Accessories", cost=5))
    await service.create_garment(db, OTHER_USER, GarmentCreate(name="Coat", category="Outerwear", cost=300))
    for garment_id in (jeans.id, jeans.id, jeans.id, shirt.id, shirt.id, tee.id):
        await service.mark_garment_worn(db, garment_id, USER)

    stats = await StatsService.get_stats(db, USER)

    assert stats.total_items == 4
    assert stats.total_value == pytest.approx(55.5)
    assert [(c.category, c.count) for c in stats.category_breakdown] == [
        ("Shirts", 2),
        ("Accessories", 1),
        ("Pants", 1),
    ]
    assert [(w.name, w.usage_count) for w in stats.most_worn_items] == [
        ("Jeans", 3),
        ("Oxford", 2),
        ("Tee", 1),
    ]


@pytest.mark.asyncio
async def test_stats_for_empty_wardrobe(db: AsyncSession) -> None:
    stats = await StatsService.get_stats(db, USER)

    assert stats.total_items == 0
    assert stats.total_value == 0
    assert stats.category_breakdown == []
    assert stats.most_worn_items == []

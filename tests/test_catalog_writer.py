"""Tests for the product save sequence against the Redis row store."""

import pytest

from src.services.catalog.errors import StoreError, WriteError
from src.services.catalog.reader import CatalogReader
from src.services.catalog.writer import CatalogWriter
from src.services.storage.row_store import RedisRowStore


class _FailingImageInsertStore(RedisRowStore):
    async def insert_images(self, product_id, rows):
        raise StoreError("images table unavailable")


class _FailingImageDeleteStore(RedisRowStore):
    async def delete_images(self, product_id):
        raise StoreError("images table unavailable")


class _FailingProductInsertStore(RedisRowStore):
    async def insert_product(self, fields):
        raise StoreError("products table unavailable")


def _image_view(product):
    return [(image.url, image.display_order) for image in product.images]


@pytest.mark.asyncio
async def test_create_without_images(row_store, submission):
    product = await CatalogWriter(row_store).save(submission, [])

    assert product.id
    assert product.images == []
    listed = await CatalogReader(row_store).list_products()
    assert [entry.title for entry in listed] == ["Gold Ring"]
    assert listed[0].primary_image is None


@pytest.mark.asyncio
async def test_round_trip_keeps_fields_and_image_order(row_store, submission, make_images):
    images = make_images("a", "b", "c")

    saved = await CatalogWriter(row_store).save(submission, images)
    loaded = await CatalogReader(row_store).load_one(saved.id)

    assert loaded.title == submission.title
    assert loaded.price == submission.price
    assert loaded.sku == submission.sku
    assert loaded.stock == submission.stock
    assert loaded.tags == submission.tags
    assert loaded.is_featured == submission.is_featured
    assert [image.url for image in loaded.images] == [image.url for image in images]
    assert [image.display_order for image in loaded.images] == [0, 1, 2]
    assert _image_view(loaded) == _image_view(saved)


@pytest.mark.asyncio
async def test_update_reorders_and_drops_images(row_store, redis_client, submission, make_images):
    writer = CatalogWriter(row_store)
    a, b, c = make_images("a", "b", "c")
    created = await writer.save(submission, [a, b, c])

    await writer.save(submission, [c, a], created.id)
    loaded = await CatalogReader(row_store).load_one(created.id)

    assert _image_view(loaded) == [(c.url, 0), (a.url, 1)]
    stored_rows = await redis_client.lrange(f"catalog:product:{created.id}:images", 0, -1)
    assert len(stored_rows) == 2
    assert not any(b.url in row for row in stored_rows)


@pytest.mark.asyncio
async def test_update_keeps_identity_and_creation_time(row_store, submission, make_images):
    writer = CatalogWriter(row_store)
    created = await writer.save(submission, make_images("a"))
    changed = submission.model_copy(update={"title": "Rose Gold Ring", "stock": 0})

    updated = await writer.save(changed, [], created.id)

    assert updated.id == created.id
    assert updated.created_at == created.created_at
    assert updated.title == "Rose Gold Ring"
    assert updated.stock == 0
    assert updated.images == []


@pytest.mark.asyncio
async def test_repeated_update_is_idempotent(row_store, submission, make_images):
    writer = CatalogWriter(row_store)
    reader = CatalogReader(row_store)
    created = await writer.save(submission, make_images("x"))
    images = make_images("a", "b")

    await writer.save(submission, images, created.id)
    first = await reader.load_one(created.id)
    await writer.save(submission, images, created.id)
    second = await reader.load_one(created.id)

    assert first == second
    assert len(await reader.list_products()) == 1


@pytest.mark.asyncio
async def test_product_insert_failure_leaves_nothing_behind(redis_client, submission, make_images):
    store = _FailingProductInsertStore(redis_client)

    with pytest.raises(WriteError) as exc_info:
        await CatalogWriter(store).save(submission, make_images("a"))

    assert exc_info.value.step == "product"
    assert exc_info.value.product_id is None
    assert await store.count_products() == 0


@pytest.mark.asyncio
async def test_image_insert_failure_leaves_product_without_images(
    redis_client, submission, make_images
):
    images = make_images("a", "b")

    with pytest.raises(WriteError) as exc_info:
        await CatalogWriter(_FailingImageInsertStore(redis_client)).save(submission, images)

    error = exc_info.value
    assert error.step == "images"
    assert error.product_id is not None

    healthy = RedisRowStore(redis_client)
    stranded = await CatalogReader(healthy).load_one(error.product_id)
    assert stranded.images == []

    # Resuming against the carried id converges to the requested state.
    resumed = await CatalogWriter(healthy).save(submission, images, error.product_id)
    assert resumed.id == error.product_id
    assert _image_view(await CatalogReader(healthy).load_one(error.product_id)) == [
        (images[0].url, 0),
        (images[1].url, 1),
    ]
    assert await healthy.count_products() == 1


@pytest.mark.asyncio
async def test_image_cleanup_failure_stops_after_product_update(
    row_store, redis_client, submission, make_images
):
    created = await CatalogWriter(row_store).save(submission, make_images("a"))
    changed = submission.model_copy(update={"title": "Renamed"})

    with pytest.raises(WriteError) as exc_info:
        await CatalogWriter(_FailingImageDeleteStore(redis_client)).save(
            changed, make_images("b"), created.id
        )

    assert exc_info.value.step == "images"
    loaded = await CatalogReader(row_store).load_one(created.id)
    assert loaded.title == "Renamed"
    assert [image.alt_text for image in loaded.images] == ["a"]


@pytest.mark.asyncio
async def test_update_of_unknown_product_is_not_found(row_store, submission, make_images):
    with pytest.raises(WriteError) as exc_info:
        await CatalogWriter(row_store).save(submission, make_images("a"), "missing")

    assert exc_info.value.step == "product"
    assert exc_info.value.not_found is True
    assert await row_store.fetch_product("missing") is None

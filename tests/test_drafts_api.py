"""Tests for editing sessions: uploads, removals and saving."""

from urllib.parse import urlparse

import pytest
from fakeredis import FakeServer
from fakeredis import aioredis as fakeredis

from src.main import app
from src.services.catalog.errors import StoreError
from src.services.catalog.upload_orchestrator import UploadOrchestrator, get_upload_orchestrator
from src.services.storage.redis_client import get_redis_client
from src.services.storage.row_store import RedisRowStore, get_row_store

FORM = {
    "title": "Gold Ring",
    "price": "199.99",
    "sku": "GR-1",
    "stock": "5",
    "tags": "gold, ring",
    "is_featured": True,
}


class _FailingImageInsertStore(RedisRowStore):
    async def insert_images(self, product_id, rows):
        raise StoreError("images table unavailable")


async def _open_draft(client, **payload):
    response = await client.post("/drafts", json=payload)
    assert response.status_code == 201
    return response.json()


async def _upload(client, draft_id, *files, title="Gold Ring"):
    return await client.post(
        f"/drafts/{draft_id}/images",
        files=[("files", file) for file in files],
        data={"title": title},
    )


@pytest.mark.asyncio
async def test_upload_appends_images_and_serves_them(client):
    draft = await _open_draft(client)

    response = await _upload(
        client,
        draft["draft_id"],
        ("front.png", b"front-bytes", "image/png"),
        ("back.jpg", b"back-bytes", "image/jpeg"),
    )

    assert response.status_code == 200
    body = response.json()
    images = body["draft"]["images"]
    assert [image["url"] for image in images] == [result["url"] for result in body["results"]]
    assert all(image["alt_text"] == "Gold Ring" for image in images)

    served = await client.get(urlparse(images[1]["url"]).path)
    assert served.status_code == 200
    assert served.content == b"back-bytes"
    assert served.headers["content-type"] == "image/jpeg"


@pytest.mark.asyncio
async def test_partial_upload_failure_keeps_stored_files(client):
    draft = await _open_draft(client)

    response = await _upload(
        client,
        draft["draft_id"],
        ("ok.png", b"ok", "image/png"),
        ("notes.txt", b"text", "text/plain"),
    )

    assert response.status_code == 502
    detail = response.json()["detail"]
    assert detail["message"] == "Error uploading images"
    assert [result["error"] for result in detail["results"]] == [None, "File is not an image"]

    stored = (await client.get(f"/drafts/{draft['draft_id']}")).json()
    assert [image["url"] for image in stored["images"]] == [detail["results"][0]["url"]]


@pytest.mark.asyncio
async def test_remove_image_by_index(client):
    draft = await _open_draft(client)
    await _upload(
        client,
        draft["draft_id"],
        ("a.png", b"a", "image/png"),
        ("b.png", b"b", "image/png"),
    )
    before = (await client.get(f"/drafts/{draft['draft_id']}")).json()["images"]

    response = await client.delete(f"/drafts/{draft['draft_id']}/images/0")

    assert response.status_code == 200
    assert response.json()["images"] == before[1:]
    assert (await client.delete(f"/drafts/{draft['draft_id']}/images/5")).status_code == 404


@pytest.mark.asyncio
async def test_save_new_draft_then_edit_seeds_images(client):
    draft = await _open_draft(client)
    await _upload(
        client,
        draft["draft_id"],
        ("a.png", b"a", "image/png"),
        ("b.png", b"b", "image/png"),
    )

    saved = await client.post(f"/drafts/{draft['draft_id']}/save", json=FORM)

    assert saved.status_code == 200
    product = saved.json()
    assert product["is_featured"] is True
    assert [image["display_order"] for image in product["images"]] == [0, 1]

    editing = await _open_draft(client, product_id=product["id"])
    assert editing["product_id"] == product["id"]
    assert editing["title"] == "Gold Ring"
    assert [image["url"] for image in editing["images"]] == [
        image["url"] for image in product["images"]
    ]


@pytest.mark.asyncio
async def test_saving_twice_from_a_draft_updates_the_same_product(client):
    draft = await _open_draft(client)

    first = (await client.post(f"/drafts/{draft['draft_id']}/save", json=FORM)).json()
    second = (
        await client.post(
            f"/drafts/{draft['draft_id']}/save", json={**FORM, "title": "Gold Band"}
        )
    ).json()

    assert second["id"] == first["id"]
    products = (await client.get("/products")).json()["products"]
    assert [product["title"] for product in products] == ["Gold Band"]


@pytest.mark.asyncio
async def test_failed_image_step_is_resumed_by_saving_again(client, redis_client):
    draft = await _open_draft(client)
    await _upload(client, draft["draft_id"], ("a.png", b"a", "image/png"))

    app.dependency_overrides[get_row_store] = lambda: _FailingImageInsertStore(redis_client)
    try:
        failed = await client.post(f"/drafts/{draft['draft_id']}/save", json=FORM)
    finally:
        app.dependency_overrides.pop(get_row_store, None)

    assert failed.status_code == 502
    detail = failed.json()["detail"]
    assert detail["step"] == "images"
    stranded = (await client.get(f"/products/{detail['product_id']}")).json()
    assert stranded["images"] == []

    retried = await client.post(f"/drafts/{draft['draft_id']}/save", json=FORM)

    assert retried.status_code == 200
    assert retried.json()["id"] == detail["product_id"]
    assert len(retried.json()["images"]) == 1
    assert len((await client.get("/products")).json()["products"]) == 1


@pytest.mark.asyncio
async def test_save_rejects_invalid_form(client):
    draft = await _open_draft(client)

    response = await client.post(
        f"/drafts/{draft['draft_id']}/save", json={**FORM, "stock": "-1"}
    )

    assert response.status_code == 422
    assert response.json()["detail"]["field"] == "stock"


@pytest.mark.asyncio
async def test_unknown_draft_and_product(client):
    assert (await client.get("/drafts/missing")).status_code == 404
    assert (await client.delete("/drafts/missing")).status_code == 404
    assert (await client.post("/drafts", json={"product_id": "missing"})).status_code == 404


@pytest.mark.asyncio
async def test_discard_draft(client):
    draft = await _open_draft(client)

    response = await client.delete(f"/drafts/{draft['draft_id']}")

    assert response.status_code == 204
    assert (await client.get(f"/drafts/{draft['draft_id']}")).status_code == 404


@pytest.mark.asyncio
async def test_oversized_upload_is_rejected_without_storing(client, blob_store, blob_client):
    app.dependency_overrides[get_upload_orchestrator] = lambda: UploadOrchestrator(
        blob_store, max_bytes=4
    )
    draft = await _open_draft(client)
    try:
        response = await _upload(
            client,
            draft["draft_id"],
            ("big.png", b"0123456789", "image/png"),
            ("small.png", b"tiny", "image/png"),
        )
    finally:
        app.dependency_overrides.pop(get_upload_orchestrator, None)

    assert response.status_code == 502
    results = response.json()["detail"]["results"]
    assert [result["error"] for result in results] == ["File is too large", None]
    assert len(await blob_client.keys("*")) == 2


@pytest.mark.asyncio
async def test_draft_routes_answer_503_when_redis_is_down(client, redis_client):
    server = FakeServer()
    server.connected = False
    app.dependency_overrides[get_redis_client] = lambda: fakeredis.FakeRedis(
        server=server, decode_responses=True
    )
    try:
        response = await client.get("/drafts/any")
    finally:
        app.dependency_overrides[get_redis_client] = lambda: redis_client

    assert response.status_code == 503
    assert response.json() == {"detail": "Storage is unavailable"}

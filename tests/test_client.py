"""Client-side optimistic cache, API client and feed poller"""

import asyncio

import httpx
import pytest

from collage.client import (
    ApiError,
    CollageClient,
    FeedPoller,
    ImageState,
    ListenerRegistry,
    OptimisticImageCache,
)
from collage.main import app
from collage.services.images import encode_data_uri


def view(image_id="img-1", up=3, down=1, rating=None, fav=False):
    v = {"id": image_id, "thumbs_up": up, "thumbs_down": down, "is_favorited": fav}
    if rating:
        v["user_rating"] = rating
    return v


# --- ImageState / OptimisticImageCache --------------------------------------

def test_vote_is_exclusive():
    s = ImageState.from_view(view(up=3, down=1, rating="thumbs_up"))
    flipped = s.with_vote("thumbs_down")
    assert (flipped.thumbs_up, flipped.thumbs_down, flipped.user_rating) == (2, 2, "thumbs_down")
    assert flipped.with_vote("thumbs_down") is flipped

    with pytest.raises(ValueError):
        s.with_vote("meh")


def test_second_click_dropped_while_in_flight():
    cache = OptimisticImageCache([view()])
    snapshot = cache.begin_rating("img-1", "thumbs_up")
    assert snapshot == ImageState("img-1", 3, 1, None, False)
    assert cache.get("img-1").thumbs_up == 4

    assert cache.begin_rating("img-1", "thumbs_down") is None
    assert cache.get("img-1").thumbs_up == 4
    assert cache.get("img-1").thumbs_down == 1

    cache.commit_rating("img-1")
    assert not cache.rating_in_flight("img-1")
    assert cache.begin_rating("img-1", "thumbs_down") is not None


def test_rollback_restores_exact_snapshot():
    cache = OptimisticImageCache([view(up=5, down=2, rating="thumbs_down")])
    before = cache.get("img-1")
    cache.begin_rating("img-1", "thumbs_up")
    cache.rollback_rating("img-1")
    assert cache.get("img-1") == before
    assert not cache.rating_in_flight("img-1")


def test_rating_rollback_keeps_favorite_change():
    cache = OptimisticImageCache([view()])
    cache.begin_rating("img-1", "thumbs_up")
    cache.begin_favorite("img-1", True)
    cache.commit_favorite("img-1")
    cache.rollback_rating("img-1")
    assert cache.get("img-1").thumbs_up == 3
    assert cache.get("img-1").is_favorited is True


def test_favorite_rollback():
    cache = OptimisticImageCache([view(fav=True)])
    cache.begin_favorite("img-1", False)
    assert cache.get("img-1").is_favorited is False
    assert cache.begin_favorite("img-1", True) is None
    cache.rollback_favorite("img-1")
    assert cache.get("img-1").is_favorited is True


def test_reconcile_respects_pending_requests():
    cache = OptimisticImageCache([view("a"), view("b"), view("gone")])
    cache.begin_rating("a", "thumbs_up")

    cache.reconcile([view("a", up=10), view("b", up=10), view("new")])

    # Pending image keeps its optimistic state until the request settles
    assert cache.get("a").thumbs_up == 4
    assert cache.get("b").thumbs_up == 10
    assert "new" in cache
    assert "gone" not in cache
    assert len(cache) == 3

    cache.commit_rating("a")
    cache.reconcile([view("a", up=10)])
    assert cache.get("a").thumbs_up == 10


# --- ListenerRegistry -------------------------------------------------------

def test_listener_registry():
    registry = ListenerRegistry()
    seen = []

    def broken(payload):
        raise RuntimeError("listener bug")

    registry.subscribe(broken)
    unsubscribe = registry.subscribe(seen.append)
    registry.publish(1)
    assert seen == [1]

    unsubscribe()
    unsubscribe()
    registry.publish(2)
    assert seen == [1]
    assert len(registry) == 1


# --- CollageClient ----------------------------------------------------------

@pytest.fixture
async def api(db):
    async with CollageClient("http://test", transport=httpx.ASGITransport(app=app)) as c:
        yield c


@pytest.mark.asyncio
async def test_client_end_to_end(api, png_bytes):
    await api.register("Alice", "alice@example.com", "TestPassword123")
    await api.login("alice@example.com", "TestPassword123")
    image_id = await api.create_image("a park", "A sunny park", encode_data_uri(png_bytes))

    await api.refresh()
    assert api.cache.get(image_id) == ImageState(image_id, 0, 0, None, False)

    assert await api.rate(image_id, "thumbs_up") is True
    assert api.cache.get(image_id).thumbs_up == 1
    assert await api.set_favorite(image_id, True) is True

    views = await api.refresh(filter_by="favorites")
    assert [v["id"] for v in views] == [image_id]
    assert api.cache.get(image_id) == ImageState(image_id, 1, 0, "thumbs_up", True)

    await api.delete_image(image_id)
    assert await api.refresh() == []
    assert image_id not in api.cache


@pytest.mark.asyncio
async def test_client_surfaces_errors(api):
    with pytest.raises(ApiError) as exc:
        await api.login("nobody@example.com", "whatever1")
    assert exc.value.status_code == 401


@pytest.mark.asyncio
async def test_failed_rating_rolls_back():
    def handler(request):
        return httpx.Response(500, json={"detail": "Internal server error"})

    cache = OptimisticImageCache([view()])
    before = cache.get("img-1")
    async with CollageClient("http://test", transport=httpx.MockTransport(handler), cache=cache) as c:
        with pytest.raises(ApiError):
            await c.rate("img-1", "thumbs_down")
    assert cache.get("img-1") == before
    assert not cache.rating_in_flight("img-1")


@pytest.mark.asyncio
async def test_overlapping_click_is_dropped():
    gate = asyncio.Event()
    calls = []

    async def handler(request):
        calls.append(request.url.path)
        await gate.wait()
        return httpx.Response(200, json={"success": True, "thumbs_up": 4, "thumbs_down": 1})

    cache = OptimisticImageCache([view()])
    async with CollageClient("http://test", transport=httpx.MockTransport(handler), cache=cache) as c:
        first = asyncio.create_task(c.rate("img-1", "thumbs_up"))
        while not calls:
            await asyncio.sleep(0)
        assert await c.rate("img-1", "thumbs_down") is False
        gate.set()
        assert await first is True

    assert calls == ["/api/images/img-1/rate"]
    assert cache.get("img-1").user_rating == "thumbs_up"


@pytest.mark.asyncio
async def test_rate_and_favorite_uncached_image():
    def handler(request):
        return httpx.Response(200, json={"success": True})

    cache = OptimisticImageCache()
    async with CollageClient("http://test", transport=httpx.MockTransport(handler), cache=cache) as c:
        assert await c.rate("just-created", "thumbs_up") is True
        assert await c.set_favorite("just-created", True) is True

    assert cache.get("just-created") == ImageState("just-created", 1, 0, "thumbs_up", True)
    assert not cache.rating_in_flight("just-created")


@pytest.mark.asyncio
async def test_failed_rating_on_uncached_image_rolls_back():
    def handler(request):
        return httpx.Response(503, json={"detail": "unavailable"})

    cache = OptimisticImageCache()
    async with CollageClient("http://test", transport=httpx.MockTransport(handler), cache=cache) as c:
        with pytest.raises(ApiError):
            await c.rate("just-created", "thumbs_down")

    assert cache.get("just-created") == ImageState("just-created")


# --- FeedPoller -------------------------------------------------------------

class ScriptedClient:
    """Returns queued feeds, each released by its own event."""

    def __init__(self):
        self.cache = OptimisticImageCache()
        self.pending = []

    async def list_images(self, sort_by, filter_by):
        release = asyncio.Event()
        slot = {"release": release, "views": None}
        self.pending.append(slot)
        await release.wait()
        return slot["views"]


@pytest.mark.asyncio
async def test_poller_discards_stale_refresh():
    client = ScriptedClient()
    published = []
    poller = FeedPoller(client, interval=60)
    poller.listeners.subscribe(published.append)

    older = asyncio.create_task(poller.refresh())
    newer = asyncio.create_task(poller.refresh())
    while len(client.pending) < 2:
        await asyncio.sleep(0)

    client.pending[1]["views"] = [view("fresh")]
    client.pending[1]["release"].set()
    assert await newer == [view("fresh")]

    client.pending[0]["views"] = [view("stale")]
    client.pending[0]["release"].set()
    assert await older is None

    assert published == [[view("fresh")]]
    assert "fresh" in client.cache
    assert "stale" not in client.cache


@pytest.mark.asyncio
async def test_poller_loop_survives_errors():
    class FlakyClient:
        def __init__(self):
            self.cache = OptimisticImageCache()
            self.calls = 0

        async def list_images(self, sort_by, filter_by):
            self.calls += 1
            if self.calls == 1:
                raise ApiError(503, "unavailable")
            return [view("img-1")]

    client = FlakyClient()
    got = asyncio.Event()
    poller = FeedPoller(client, interval=0.01)
    poller.listeners.subscribe(lambda views: got.set())

    poller.start()
    assert poller.running
    await asyncio.wait_for(got.wait(), timeout=2)
    await poller.stop()

    assert not poller.running
    assert client.calls >= 2
    assert "img-1" in client.cache

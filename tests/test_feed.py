"""Feed composition: sorting, filtering, owner names and favorite flags"""

import uuid

import pytest

from collage.models.user import User
from collage.services.favorites import add_favorite
from collage.services.feed import count_images, get_image, get_images
from collage.services.ratings import submit_rating
from tests.helpers import make_image


@pytest.mark.asyncio
async def test_default_order_is_newest_first(make_user):
    u = await make_user()
    old = await make_image(u.id, minutes=0)
    new = await make_image(u.id, minutes=10)

    views = await get_images()
    assert [v.id for v in views] == [str(new.id), str(old.id)]


@pytest.mark.asyncio
async def test_thumbs_up_sort_breaks_ties_by_recency(make_user):
    u = await make_user()
    a = await make_image(u.id, minutes=1, thumbs_up=5)
    b = await make_image(u.id, minutes=2, thumbs_up=5)
    c = await make_image(u.id, minutes=3, thumbs_up=1)
    d = await make_image(u.id, minutes=0, thumbs_up=9)

    views = await get_images(sort_by="thumbs_up_desc")
    assert [v.id for v in views] == [str(d.id), str(b.id), str(a.id), str(c.id)]


@pytest.mark.asyncio
async def test_favorites_filter(make_user):
    me = await make_user()
    other = await make_user("Bob")
    liked = await make_image(other.id, minutes=1)
    await make_image(other.id, minutes=2)
    await add_favorite(str(me.id), str(liked.id))
    # Someone else's favorite doesn't count as mine
    other_fav = await make_image(me.id, minutes=3)
    await add_favorite(str(other.id), str(other_fav.id))

    views = await get_images(str(me.id), filter_by="favorites")
    assert [v.id for v in views] == [str(liked.id)]
    assert views[0].is_favorited is True
    assert await count_images(str(me.id), "favorites") == 1


@pytest.mark.asyncio
async def test_favorites_without_user_is_empty(make_user):
    u = await make_user()
    img = await make_image(u.id)
    await add_favorite(str(u.id), str(img.id))

    assert await get_images(None, filter_by="favorites") == []


@pytest.mark.asyncio
async def test_anonymous_feed_has_no_personal_fields(make_user):
    u = await make_user()
    await make_image(u.id)

    view = (await get_images())[0]
    assert view.is_favorited is None
    assert view.user_rating is None
    assert "is_favorited" not in view.model_dump(exclude_none=True)


@pytest.mark.asyncio
async def test_personal_fields_for_signed_in_user(make_user):
    me = await make_user()
    a = await make_image(me.id, minutes=1)
    b = await make_image(me.id, minutes=2)
    await add_favorite(str(me.id), str(a.id))
    await submit_rating(str(b.id), str(me.id), "thumbs_down")

    views = {v.id: v for v in await get_images(str(me.id))}
    assert views[str(a.id)].is_favorited is True
    assert views[str(a.id)].user_rating is None
    assert views[str(b.id)].is_favorited is False
    assert views[str(b.id)].user_rating == "thumbs_down"
    assert views[str(b.id)].thumbs_down == 1


@pytest.mark.asyncio
async def test_owner_name_and_fallback(make_user):
    u = await make_user("Alice")
    mine = await make_image(u.id, minutes=1)
    ghost_id = uuid.uuid4()
    orphan = await make_image(ghost_id, minutes=2)

    views = {v.id: v for v in await get_images()}
    assert views[str(mine.id)].user_name == "Alice"
    # Owner row missing: image still listed, name falls back to the id
    assert views[str(orphan.id)].user_name == str(ghost_id)


@pytest.mark.asyncio
async def test_owner_deleted_later(make_user):
    u = await make_user("Carol")
    img = await make_image(u.id)
    await User.filter(id=u.id).delete()

    view = await get_image(str(img.id))
    assert view is not None
    assert view.user_name == str(u.id)


@pytest.mark.asyncio
async def test_pagination(make_user):
    u = await make_user()
    imgs = [await make_image(u.id, minutes=i) for i in range(5)]

    page = await get_images(limit=2, offset=1)
    assert [v.id for v in page] == [str(imgs[3].id), str(imgs[2].id)]
    assert await count_images() == 5


@pytest.mark.asyncio
async def test_image_url_points_at_media(make_user):
    u = await make_user()
    img = await make_image(u.id)

    view = await get_image(str(img.id))
    assert view.image_url == f"/media/{img.id}.png"


@pytest.mark.asyncio
@pytest.mark.parametrize("kwargs", [{"sort_by": "random"}, {"filter_by": "mine"}])
async def test_unknown_criteria_rejected(db, kwargs):
    with pytest.raises(ValueError):
        await get_images(**kwargs)

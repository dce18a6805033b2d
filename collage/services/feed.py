"""
Image feed composer

Builds the read model served to the collage: images joined with their owner's
display name, the cached rating totals and, for a signed-in user, whether the
user has favorited each image.
"""

from typing import List, Optional
from collage.models.image import Image
from collage.models.user import User
from collage.models.favorite import Favorite
from collage.models.rating import Rating
from collage.schemas.image import ImageView

SORT_ORDERS = {
    # created_at always breaks ties, id makes the order total
    "created_at_desc": ("-created_at", "-id"),
    "thumbs_up_desc": ("-thumbs_up", "-created_at", "-id"),
}
FILTERS = ("all", "favorites")

DEFAULT_SORT = "created_at_desc"
DEFAULT_FILTER = "all"


def image_url(image: Image) -> str:
    return f"/media/{image.image_filename}"


def _build_query(current_user_id: Optional[str], sort_by: str, filter_by: str):
    if sort_by not in SORT_ORDERS:
        raise ValueError(f"Invalid sortBy: {sort_by!r}")
    if filter_by not in FILTERS:
        raise ValueError(f"Invalid filterBy: {filter_by!r}")

    query = Image.all()
    if filter_by == "favorites":
        query = query.filter(favorites__user_id=current_user_id)
    return query.order_by(*SORT_ORDERS[sort_by])


async def count_images(
    current_user_id: Optional[str] = None,
    filter_by: str = DEFAULT_FILTER,
) -> int:
    if filter_by == "favorites" and not current_user_id:
        return 0
    return await _build_query(current_user_id, DEFAULT_SORT, filter_by).count()


async def get_images(
    current_user_id: Optional[str] = None,
    sort_by: str = DEFAULT_SORT,
    filter_by: str = DEFAULT_FILTER,
    limit: Optional[int] = None,
    offset: int = 0,
) -> List[ImageView]:
    """Compose the feed.

    Args:
        current_user_id: signed-in user, or None for an anonymous feed
        sort_by: ``created_at_desc`` or ``thumbs_up_desc``
        filter_by: ``all`` or ``favorites``; favorites without a user
            yields nothing, rejecting that request is the caller's job
        limit: page size, None for everything
        offset: number of images to skip

    Raises:
        ValueError: unknown sort or filter
    """
    query = _build_query(current_user_id, sort_by, filter_by)
    if filter_by == "favorites" and not current_user_id:
        return []
    if offset:
        query = query.offset(offset)
    if limit is not None:
        query = query.limit(limit)
    images = await query

    return await _compose(images, current_user_id)


async def get_image(image_id: str, current_user_id: Optional[str] = None) -> Optional[ImageView]:
    image = await Image.get_or_none(id=image_id)
    if image is None:
        return None
    views = await _compose([image], current_user_id)
    return views[0]


async def _compose(images: List[Image], current_user_id: Optional[str]) -> List[ImageView]:
    if not images:
        return []

    # Left join on owners: a missing user row falls back to the owner id
    owner_ids = {str(i.owner_id) for i in images}
    names = {
        str(row["id"]): row["name"]
        for row in await User.filter(id__in=list(owner_ids)).values("id", "name")
    }

    favorited = set()
    votes = {}
    if current_user_id:
        rows = await Favorite.filter(
            user_id=current_user_id,
            image_id__in=[i.id for i in images],
        ).values_list("image_id", flat=True)
        favorited = {str(r) for r in rows}
        votes = {
            str(r["image_id"]): r["rating_type"]
            for r in await Rating.filter(
                user_id=current_user_id,
                image_id__in=[i.id for i in images],
            ).values("image_id", "rating_type")
        }

    views = []
    for image in images:
        owner_id = str(image.owner_id)
        view = ImageView(
            id=str(image.id),
            user_id=owner_id,
            user_name=names.get(owner_id) or owner_id,
            original_prompt=image.original_prompt,
            enhanced_prompt=image.enhanced_prompt,
            image_url=image_url(image),
            thumbs_up=image.thumbs_up,
            thumbs_down=image.thumbs_down,
            created_at=image.created_at,
        )
        if current_user_id:
            view.is_favorited = str(image.id) in favorited
            vote = votes.get(str(image.id))
            view.user_rating = getattr(vote, "value", vote)
        views.append(view)
    return views

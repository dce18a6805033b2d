"""
Rating ledger

One rating row per (user, image). The thumbs_up/thumbs_down columns on the
image are caches of the ledger and are recounted inside the same transaction
as every vote.
"""

import logging
from typing import Optional
from tortoise.transactions import in_transaction
from collage.models.image import Image
from collage.models.rating import Rating, RatingType
from collage.services.metrics import record_rating

logger = logging.getLogger(__name__)


def parse_rating_type(value) -> RatingType:
    try:
        return RatingType(value)
    except ValueError:
        raise ValueError(f"Invalid rating type: {value!r}")


async def submit_rating(image_id: str, user_id: str, rating_type) -> int:
    """Replace the user's rating on an image and recount the image's totals.

    Returns the number of image rows updated: 0 when the image does not
    exist (nothing is written), 1 otherwise.
    """
    rating_type = parse_rating_type(rating_type)

    async with in_transaction() as conn:
        # Row lock serializes concurrent raters (ignored on SQLite,
        # which already serializes writers)
        image = await Image.filter(id=image_id).select_for_update().using_db(conn).first()
        if image is None:
            logger.debug("Rating skipped, image %s not found", image_id)
            return 0

        await Rating.filter(image_id=image_id, user_id=user_id).using_db(conn).delete()
        await Rating.create(image_id=image_id, user_id=user_id, rating_type=rating_type, using_db=conn)

        thumbs_up = await Rating.filter(
            image_id=image_id, rating_type=RatingType.THUMBS_UP
        ).using_db(conn).count()
        thumbs_down = await Rating.filter(
            image_id=image_id, rating_type=RatingType.THUMBS_DOWN
        ).using_db(conn).count()
        updated = await Image.filter(id=image_id).using_db(conn).update(
            thumbs_up=thumbs_up, thumbs_down=thumbs_down
        )

    logger.info(
        "Rated image %s %s by %s (up=%s down=%s)",
        image_id, rating_type.value, user_id, thumbs_up, thumbs_down,
    )
    record_rating(rating_type.value)
    return updated


async def get_user_rating(image_id: str, user_id: str) -> Optional[str]:
    rating = await Rating.filter(image_id=image_id, user_id=user_id).first()
    return rating.rating_type.value if rating else None


async def recount(image_id: str) -> tuple[int, int]:
    """Count the ledger for an image without touching the cached totals."""
    up = await Rating.filter(image_id=image_id, rating_type=RatingType.THUMBS_UP).count()
    down = await Rating.filter(image_id=image_id, rating_type=RatingType.THUMBS_DOWN).count()
    return up, down

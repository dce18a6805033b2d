"""Favorite ledger: existence of a (user, image) row is the favorite flag."""

import logging
from collage.models.favorite import Favorite
from collage.services.metrics import record_favorite

logger = logging.getLogger(__name__)


async def add_favorite(user_id: str, image_id: str) -> bool:
    """Favorite an image.

    Returns:
        True if a row was inserted, False if it was already favorited
    """
    _, created = await Favorite.get_or_create(user_id=user_id, image_id=image_id)
    if not created:
        logger.debug("Already favorited: image %s by %s", image_id, user_id)
        return False
    logger.info("Added favorite: image %s by %s", image_id, user_id)
    record_favorite("add")
    return True


async def remove_favorite(user_id: str, image_id: str) -> bool:
    """Unfavorite an image. Removing a missing favorite is not an error.

    Returns:
        True if a row was deleted, False if it was not favorited
    """
    deleted = await Favorite.filter(user_id=user_id, image_id=image_id).delete()
    if deleted:
        logger.info("Removed favorite: image %s by %s", image_id, user_id)
        record_favorite("remove")
    else:
        logger.debug("Not favorited: image %s by %s", image_id, user_id)
    return deleted > 0


async def is_favorited(user_id: str, image_id: str) -> bool:
    return await Favorite.filter(user_id=user_id, image_id=image_id).exists()

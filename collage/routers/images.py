# collage/routers/images.py

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from collage.config import settings
from collage.models.image import Image
from collage.schemas.image import (
    ImageCreated,
    NewImagePayload,
    RatePayload,
    RateResult,
    UserRating,
)
from collage.services import feed, favorites, images, ratings
from collage.services.security import AuthUser, optional_user, require_user

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api/images", tags=["images"])


def _image_id(image_id: str) -> str:
    # Malformed ids can't exist, so they are reported like any missing image
    try:
        return str(UUID(image_id))
    except ValueError:
        raise HTTPException(status_code=404, detail="Image not found")


def _max_data_uri_length() -> int:
    # Room for the "data:<mime>;base64," prefix
    return (settings.MAX_IMAGE_BYTES + 2) // 3 * 4 + 256


async def _existing_image(image_id: str) -> Image:
    image = await Image.get_or_none(id=_image_id(image_id))
    if image is None:
        raise HTTPException(status_code=404, detail="Image not found")
    return image


@router.get("")
async def list_images(
    response: Response,
    sortBy: str = Query(feed.DEFAULT_SORT),
    filterBy: str = Query(feed.DEFAULT_FILTER),
    limit: Optional[int] = Query(None, ge=1, le=500),
    offset: int = Query(0, ge=0),
    auth: Optional[AuthUser] = Depends(optional_user),
):
    if filterBy == "favorites" and auth is None:
        raise HTTPException(status_code=401, detail="Sign in to see favorites")

    user_id = auth.user_id if auth else None
    try:
        views = await feed.get_images(user_id, sortBy, filterBy, limit=limit, offset=offset)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    response.headers["X-Total-Count"] = str(await feed.count_images(user_id, filterBy))
    return [v.model_dump(mode="json", exclude_none=True) for v in views]


# Method: create_image()
@router.post("", response_model=ImageCreated)
async def create_image(payload: NewImagePayload, auth: AuthUser = Depends(require_user)):
    # Base64 inflates by 4/3; refuse oversized bodies before decoding them
    if len(payload.image_data_uri) > _max_data_uri_length():
        raise HTTPException(status_code=413, detail=f"Image exceeds {settings.MAX_IMAGE_BYTES} bytes")
    try:
        data = images.decode_data_uri(payload.image_data_uri)
        image_id = await images.add_image(
            auth.user_id,
            payload.original_prompt,
            payload.enhanced_prompt,
            data,
        )
    except images.ImageTooLarge as e:
        raise HTTPException(status_code=413, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ImageCreated(imageId=image_id)


@router.get("/{image_id}")
async def get_image(image_id: str, auth: Optional[AuthUser] = Depends(optional_user)):
    view = await feed.get_image(_image_id(image_id), auth.user_id if auth else None)
    if view is None:
        raise HTTPException(status_code=404, detail="Image not found")
    return view.model_dump(mode="json", exclude_none=True)


# Method: delete_image()
@router.delete("/{image_id}")
async def delete_image(image_id: str, auth: AuthUser = Depends(require_user)):
    deleted = await images.delete_image(_image_id(image_id), auth.user_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Image not found or not owned")
    return {"success": True}


# Method: rate_image()
@router.post("/{image_id}/rate", response_model=RateResult)
async def rate_image(image_id: str, payload: RatePayload, auth: AuthUser = Depends(require_user)):
    image_id = _image_id(image_id)
    updated = await ratings.submit_rating(image_id, auth.user_id, payload.ratingType)
    if not updated:
        raise HTTPException(status_code=404, detail="Image not found")
    image = await Image.get(id=image_id)
    return RateResult(thumbs_up=image.thumbs_up, thumbs_down=image.thumbs_down)


@router.get("/{image_id}/rating", response_model=UserRating)
async def my_rating(image_id: str, auth: AuthUser = Depends(require_user)):
    return UserRating(ratingType=await ratings.get_user_rating(_image_id(image_id), auth.user_id))


# Method: favorite_image()
@router.post("/{image_id}/favorite")
async def favorite_image(image_id: str, auth: AuthUser = Depends(require_user)):
    image = await _existing_image(image_id)
    await favorites.add_favorite(auth.user_id, str(image.id))
    return {"success": True}


@router.delete("/{image_id}/favorite")
async def unfavorite_image(image_id: str, auth: AuthUser = Depends(require_user)):
    await favorites.remove_favorite(auth.user_id, _image_id(image_id))
    return {"success": True}

from pydantic import BaseModel, Field
from typing import Literal, Optional
from datetime import datetime


class ImageView(BaseModel):
    id: str
    user_id: str
    user_name: str
    original_prompt: str
    enhanced_prompt: str
    image_url: str
    thumbs_up: int = 0
    thumbs_down: int = 0
    created_at: datetime
    # Only present when the feed was composed for a signed-in user
    is_favorited: Optional[bool] = None
    user_rating: Optional[Literal["thumbs_up", "thumbs_down"]] = None


class NewImagePayload(BaseModel):
    original_prompt: str = Field(min_length=1)
    enhanced_prompt: str = Field(min_length=1)
    image_data_uri: str = Field(min_length=1)


class ImageCreated(BaseModel):
    success: bool = True
    imageId: str


class RatePayload(BaseModel):
    ratingType: Literal["thumbs_up", "thumbs_down"]


class RateResult(BaseModel):
    success: bool = True
    thumbs_up: int
    thumbs_down: int


class UserRating(BaseModel):
    ratingType: Optional[Literal["thumbs_up", "thumbs_down"]] = None


class GeneratePayload(BaseModel):
    prompt: str = Field(min_length=1, max_length=4000)


class GenerateResult(BaseModel):
    enhanced_prompt: str
    image_data_uri: str


class RatingsSummary(BaseModel):
    summary: str
    image_count: int

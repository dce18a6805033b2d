from enum import Enum
from tortoise import fields
from .base import BaseModel


class RatingType(str, Enum):
    THUMBS_UP = "thumbs_up"
    THUMBS_DOWN = "thumbs_down"


class Rating(BaseModel):
    image = fields.ForeignKeyField("models.Image", related_name="ratings", on_delete=fields.CASCADE)
    user_id = fields.UUIDField(index=True)
    rating_type = fields.CharEnumField(RatingType, max_length=16)

    class Meta:
        table = "ratings"
        unique_together = ("image", "user_id")

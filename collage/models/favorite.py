from tortoise import fields
from .base import BaseModel

class Favorite(BaseModel):
    image = fields.ForeignKeyField("models.Image", related_name="favorites", on_delete=fields.CASCADE)
    user_id = fields.UUIDField(index=True)

    class Meta:
        table = "favorites"
        unique_together = ("user_id", "image")

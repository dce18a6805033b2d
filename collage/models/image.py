from tortoise import fields
from .base import BaseModel

class Image(BaseModel):
    # Plain column, not a foreign key: images outlive a missing owner row
    owner_id = fields.UUIDField(index=True)
    original_prompt = fields.TextField()
    enhanced_prompt = fields.TextField()
    image_filename = fields.CharField(max_length=255)
    content_type = fields.CharField(max_length=100, default="image/png")
    thumbs_up = fields.IntField(default=0)
    thumbs_down = fields.IntField(default=0)

    class Meta:
        table = "images"

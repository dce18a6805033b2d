from tortoise import fields
from tortoise.models import Model


class BaseModel(Model):
    id = fields.UUIDField(pk=True)
    created_at = fields.DatetimeField(auto_now_add=True, index=True)
    modified_at = fields.DatetimeField(auto_now=True)

    class Meta:
        abstract = True

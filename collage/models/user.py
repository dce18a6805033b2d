from tortoise import fields
from .base import BaseModel

class User(BaseModel):
    email = fields.CharField(max_length=255, unique=True, index=True)
    name = fields.CharField(max_length=255, null=True)
    password_hash = fields.CharField(max_length=255)

    class Meta:
        table = "users"

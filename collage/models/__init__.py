# Import all models for Tortoise ORM registration
from .base import BaseModel
from .user import User
from .session import Session
from .image import Image
from .rating import Rating, RatingType
from .favorite import Favorite

__all__ = [
    "BaseModel",
    "User",
    "Session",
    "Image",
    "Rating",
    "RatingType",
    "Favorite",
]

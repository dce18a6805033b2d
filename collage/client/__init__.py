from .api import ApiError, CollageClient
from .cache import ImageState, OptimisticImageCache
from .listeners import ListenerRegistry
from .poller import FeedPoller

__all__ = [
    "ApiError",
    "CollageClient",
    "FeedPoller",
    "ImageState",
    "ListenerRegistry",
    "OptimisticImageCache",
]

from fastapi import APIRouter

from .auth import router as auth_router
from .images import router as images_router
from .generate import router as generate_router
from .pages import router as pages_router
from .health import router as health_router
from .media import router as media_router


def build_router() -> APIRouter:
    router = APIRouter()
    router.include_router(auth_router)
    router.include_router(images_router)
    router.include_router(generate_router)
    router.include_router(pages_router)
    router.include_router(health_router)
    router.include_router(media_router)
    return router


# Export module-level router so collage.main can import it
router = build_router()

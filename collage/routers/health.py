import logging

from fastapi import APIRouter, Response
from tortoise import Tortoise

from collage.services.storage import storage

log = logging.getLogger(__name__)

router = APIRouter(prefix="/ops", tags=["ops"])


@router.get("/db-health")
async def db_health(response: Response):
    """Database and media directory readiness."""
    checks = {"db_ok": True, "storage_ok": storage.base.is_dir()}
    try:
        await Tortoise.get_connection("default").execute_query("SELECT 1")
    except Exception as e:
        log.warning("Database health check failed: %s", e)
        checks["db_ok"] = False
        checks["error"] = str(e)
    if not (checks["db_ok"] and checks["storage_ok"]):
        response.status_code = 503
    return checks

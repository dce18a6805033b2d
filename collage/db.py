import asyncio
import logging
from pathlib import Path
from tortoise import Tortoise
from collage.config import settings, MODELS

_logger = logging.getLogger("db")


def _tortoise_url(url: str | None = None) -> str:
    """Normalize database URL for Tortoise ORM."""
    url = (url or settings.DATABASE_URL).strip().strip('"').strip("'")
    # Normalize to tortoise "postgres://" style
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgres://", 1)
    if url.startswith("sqlite://") and not url.endswith(":memory:"):
        # Make sure the directory holding the SQLite file exists
        db_path = Path(url.replace("sqlite://", "", 1))
        db_path.parent.mkdir(parents=True, exist_ok=True)
    return url


def build_tortoise_config(url: str | None = None) -> dict:
    return {
        "connections": {"default": _tortoise_url(url)},
        "apps": {
            "models": {
                "models": MODELS,
                "default_connection": "default",
            }
        },
        "use_tz": True,
        "timezone": "UTC",
    }


async def init_db(url: str | None = None, max_retries: int = 3, delay_seconds: float = 0.5) -> None:
    """Initialize database with retry logic in the current event loop."""
    config = build_tortoise_config(url)
    for attempt in range(1, max_retries + 1):
        try:
            await Tortoise.init(config=config)
            await Tortoise.generate_schemas(safe=True)
            _logger.info("Database initialized successfully")
            return
        except Exception as exc:
            if attempt == max_retries:
                _logger.error("Database unavailable after %s attempts: %s", attempt, exc)
                raise
            _logger.info(
                "DB init failed (attempt %s/%s): %s; retrying in %.1fs",
                attempt,
                max_retries,
                exc,
                delay_seconds,
            )
            await asyncio.sleep(delay_seconds)


async def close_db() -> None:
    """Close database connections in the current event loop."""
    await Tortoise.close_connections()

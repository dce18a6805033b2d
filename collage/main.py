import logging
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path

import sentry_sdk
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from collage import __version__
from collage.config import settings
from collage.core.middleware import ErrorEnvelopeMiddleware, LoginRequiredMiddleware, SecurityHeadersMiddleware
from collage.core.rate_limit import limiter
from collage.db import init_db, close_db
from collage.routers import router
from collage.services.metrics import metrics_middleware, metrics_endpoint

STATIC_DIR = Path(__file__).resolve().parent / "static"

# Logging setup
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

# Initialize Sentry if DSN is provided
if settings.SENTRY_DSN:
    sentry_sdk.init(dsn=settings.SENTRY_DSN, traces_sample_rate=0.1, environment=settings.APP_ENV)


# Method: lifespan()
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logging.info("Starting Prompt Collage...")
    # Secret guard for production deployments
    env = (settings.APP_ENV or "").strip().lower()
    if env == "production":
        v = settings.JWT_SECRET
        if not v or "change-me" in v or len(v) < 32:
            raise RuntimeError("Insecure JWT_SECRET; set a real secret in production")
    await init_db()

    yield

    # Shutdown
    logging.info("Shutting down Prompt Collage...")
    await close_db()
    logging.info("Database connections closed")


app = FastAPI(
    title="Prompt Collage API",
    description="Community collage of AI-generated images with ratings and favorites",
    version=__version__,
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Malformed or missing fields are a plain 400
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


app.include_router(router)
app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

# Middleware setup, innermost first
app.add_middleware(LoginRequiredMiddleware)
app.add_middleware(GZipMiddleware, minimum_size=1024)
app.add_middleware(ErrorEnvelopeMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(SecurityHeadersMiddleware)

# Prometheus metrics unless METRICS_ENABLED=0
metrics_middleware(app)


@app.get("/metrics", include_in_schema=False)
async def prometheus_metrics():
    return await metrics_endpoint()


# Universal health endpoint (always present)
@app.get("/health")
async def health():
    return {"status": "healthy", "timestamp": datetime.now().isoformat()}


def main():
    uvicorn.run("collage.main:app", host="0.0.0.0", port=8000, log_level="info")


if __name__ == "__main__":
    main()

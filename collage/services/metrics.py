"""
Prometheus metrics for the collage service
"""

import time
import os
from fastapi import Request
from fastapi.responses import Response
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

REQUESTS_TOTAL = Counter(
    "collage_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"]
)

REQUEST_DURATION = Histogram(
    "collage_http_request_seconds",
    "Request duration in seconds",
    ["method", "path"]
)

IMAGES_CREATED = Counter(
    "collage_images_created_total",
    "Total images stored",
    ["status"]
)

RATINGS_SUBMITTED = Counter(
    "collage_ratings_submitted_total",
    "Total ratings submitted",
    ["rating_type"]
)

FAVORITES_CHANGED = Counter(
    "collage_favorites_changed_total",
    "Total favorite additions and removals",
    ["action"]
)

ENABLED = os.getenv("METRICS_ENABLED", "1") == "1"


async def metrics_endpoint():
    """Prometheus metrics endpoint"""
    if not ENABLED:
        return Response(b"metrics disabled", media_type="text/plain")
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


def metrics_middleware(app):
    """Add metrics middleware to FastAPI app"""
    if not ENABLED:
        return

    @app.middleware("http")
    async def _metrics(request: Request, call_next):
        start = time.time()
        response = await call_next(request)

        # Label by route template so ids don't explode cardinality
        route = request.scope.get("route")
        path = getattr(route, "path", None) or "unmatched"
        REQUESTS_TOTAL.labels(
            method=request.method,
            path=path,
            status=str(response.status_code)
        ).inc()

        REQUEST_DURATION.labels(
            method=request.method,
            path=path
        ).observe(time.time() - start)

        return response


def record_image_created(status: str):
    if ENABLED:
        IMAGES_CREATED.labels(status=status).inc()


def record_rating(rating_type: str):
    if ENABLED:
        RATINGS_SUBMITTED.labels(rating_type=rating_type).inc()


def record_favorite(action: str):
    if ENABLED:
        FAVORITES_CHANGED.labels(action=action).inc()

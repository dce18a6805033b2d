import logging

from fastapi import APIRouter, Depends, HTTPException

from collage.models.image import Image
from collage.schemas.image import GeneratePayload, GenerateResult, RatingsSummary
from collage.services.genai import GenAIClient, GenAINotConfigured, GenerationError, get_genai_client
from collage.services.security import AuthUser, require_user

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["generate"])

SUMMARY_LIMIT = 50


@router.post("/generate", response_model=GenerateResult)
async def generate(
    payload: GeneratePayload,
    auth: AuthUser = Depends(require_user),
    client: GenAIClient = Depends(get_genai_client),
):
    """Enhance the prompt and generate an image; the caller stores it via POST /api/images."""
    try:
        enhanced, data_uri = await client.enhance_and_generate(payload.prompt.strip())
    except GenAINotConfigured as e:
        raise HTTPException(status_code=503, detail=str(e))
    except GenerationError as e:
        log.warning("Generation failed for user %s: %s", auth.user_id, e)
        raise HTTPException(status_code=502, detail=str(e))
    return GenerateResult(enhanced_prompt=enhanced, image_data_uri=data_uri)


@router.post("/ratings/summary", response_model=RatingsSummary)
async def ratings_summary(
    auth: AuthUser = Depends(require_user),
    client: GenAIClient = Depends(get_genai_client),
):
    rated = await Image.filter(thumbs_up__gt=0).order_by("-thumbs_up", "-created_at").limit(SUMMARY_LIMIT)
    disliked = await Image.filter(thumbs_down__gt=0).order_by("-thumbs_down", "-created_at").limit(SUMMARY_LIMIT)
    seen = {}
    for image in list(rated) + list(disliked):
        seen.setdefault(str(image.id), image)
    if not seen:
        return RatingsSummary(summary="No rated images yet.", image_count=0)

    rows = [
        {
            "id": image_id,
            "prompt": image.enhanced_prompt,
            "thumbs_up": image.thumbs_up,
            "thumbs_down": image.thumbs_down,
        }
        for image_id, image in seen.items()
    ]
    try:
        summary = await client.summarize_ratings(rows)
    except GenAINotConfigured as e:
        raise HTTPException(status_code=503, detail=str(e))
    except GenerationError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return RatingsSummary(summary=summary, image_count=len(rows))

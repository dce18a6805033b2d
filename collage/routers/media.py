from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse

from collage.services.storage import storage

router = APIRouter(tags=["media"])


@router.get("/media/{filename}")
async def media(filename: str):
    try:
        path = storage.path_for(filename)
    except ValueError:
        raise HTTPException(status_code=404, detail="Not found")
    if not path.exists():
        raise HTTPException(status_code=404, detail="Not found")
    return FileResponse(path, headers={"Cache-Control": "public, max-age=86400"})

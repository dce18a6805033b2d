from pathlib import Path

from fastapi import APIRouter
from fastapi.responses import HTMLResponse, RedirectResponse

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

router = APIRouter(tags=["pages"], include_in_schema=False)


def _page(name: str) -> HTMLResponse:
    return HTMLResponse((TEMPLATES_DIR / f"{name}.html").read_text(encoding="utf-8"))


@router.get("/")
async def index():
    return RedirectResponse(url="/collage", status_code=307)


@router.get("/login")
async def login_page():
    return _page("login")


@router.get("/register")
async def register_page():
    return _page("register")


# /prompt and /collage are guarded by LoginRequiredMiddleware
@router.get("/prompt")
async def prompt_page():
    return _page("prompt")


@router.get("/collage")
async def collage_page():
    return _page("collage")

import logging
from datetime import timedelta

from fastapi import APIRouter, HTTPException, Depends, Body, Request, Response
from tortoise.exceptions import IntegrityError

from collage.config import settings
from collage.core.rate_limit import limiter
from collage.models.user import User
from collage.schemas.auth import RegisterPayload, LoginPayload, TokenOut, UserOut, RegisterOut
from collage.services.security import (
    SESSION_COOKIE,
    AuthUser,
    create_session,
    create_token,
    hash_password,
    require_user,
    revoke_session,
    verify_password,
)

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _cookie_settings():
    return {
        "httponly": True,
        "secure": (settings.APP_ENV or "").strip().lower() == "production",
        "samesite": "lax",
    }


async def _start_session(response: Response, user_id: str) -> None:
    session = await create_session(user_id)
    response.set_cookie(
        key=SESSION_COOKIE,
        value=session.token,
        max_age=int(timedelta(days=settings.SESSION_DAYS).total_seconds()),
        **_cookie_settings(),
    )


# Method: register()
@router.post("/register", response_model=RegisterOut, status_code=201)
@limiter.limit(settings.AUTH_RATE_LIMIT)
async def register(
    request: Request,
    response: Response,
    payload: RegisterPayload = Body(...),
):
    """Create an account and sign the new user in."""
    email = payload.email.lower()
    if await User.filter(email=email).exists():
        raise HTTPException(status_code=409, detail="Email already in use")

    try:
        user = await User.create(
            email=email,
            name=payload.name.strip(),
            password_hash=hash_password(payload.password),
        )
    except IntegrityError:
        # Lost a race against a concurrent registration
        raise HTTPException(status_code=409, detail="Email already in use")

    log.info("Registered user %s", user.id)
    await _start_session(response, str(user.id))
    return RegisterOut(user=UserOut(id=str(user.id), email=user.email, name=user.name))


# Method: login()
@router.post("/login", response_model=TokenOut)
@limiter.limit(settings.AUTH_RATE_LIMIT)
async def login(
    request: Request,
    response: Response,
    payload: LoginPayload = Body(...),
):
    user = await User.filter(email=payload.email.lower()).first()
    if not user or not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    await _start_session(response, str(user.id))
    return TokenOut(access_token=create_token(str(user.id)))


# Method: logout()
@router.post("/logout")
async def logout(request: Request, response: Response):
    await revoke_session(request.cookies.get(SESSION_COOKIE))
    response.delete_cookie(SESSION_COOKIE)
    return {"success": True}


@router.get("/me", response_model=UserOut)
async def me(auth: AuthUser = Depends(require_user)):
    user = await User.get_or_none(id=auth.user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return UserOut(id=str(user.id), email=user.email, name=user.name)

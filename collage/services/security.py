import datetime as dt
import logging
import secrets
from typing import Optional
from jose import jwt, JWTError
from fastapi import HTTPException, status, Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from argon2 import PasswordHasher
from argon2.exceptions import VerificationError, InvalidHashError
from collage.config import settings
from collage.models.user import User
from collage.models.session import Session

log = logging.getLogger(__name__)

SESSION_COOKIE = "session_token"

bearer = HTTPBearer(auto_error=False)
ph = PasswordHasher()


class AuthUser:
    def __init__(self, user_id: str, name: Optional[str] = None):
        self.user_id = user_id
        self.name = name


def _jwt_secret() -> str:
    if not settings.JWT_SECRET or len(settings.JWT_SECRET.strip()) < 32:
        raise ValueError("JWT_SECRET must be at least 32 characters long")
    return settings.JWT_SECRET


def create_token(user_id: str) -> str:
    now = dt.datetime.now(dt.timezone.utc)
    exp = now + dt.timedelta(minutes=settings.ACCESS_TOKEN_EXPIRES_MIN)
    payload = {"sub": user_id, "iat": int(now.timestamp()), "exp": int(exp.timestamp())}
    return jwt.encode(payload, _jwt_secret(), algorithm="HS256")


def decode_token(token: str) -> str:
    """Return the user id carried by an access token, raising JWTError if invalid."""
    payload = jwt.decode(
        token,
        _jwt_secret(),
        algorithms=["HS256"],
        options={"leeway": 30},  # 30s clock skew tolerance
    )
    return str(payload["sub"])


async def create_session(user_id: str) -> Session:
    token = secrets.token_urlsafe(32)
    expires_at = dt.datetime.now(dt.timezone.utc) + dt.timedelta(days=settings.SESSION_DAYS)
    return await Session.create(user_id=user_id, token=token, revoked=False, expires_at=expires_at)


async def session_user_id(token: Optional[str]) -> Optional[str]:
    """Resolve a session cookie value to a user id, or None if it is unusable."""
    if not token:
        return None
    session = await Session.get_or_none(token=token, revoked=False)
    if not session:
        return None
    if session.expires_at and session.expires_at < dt.datetime.now(dt.timezone.utc):
        return None
    return str(session.user_id)


async def revoke_session(token: Optional[str]) -> None:
    if token:
        await Session.filter(token=token).update(revoked=True)


def verify_password(pw: str, pw_hash: str) -> bool:
    try:
        return ph.verify(pw_hash, pw)
    except (VerificationError, InvalidHashError):
        return False


def hash_password(pw: str) -> str:
    return ph.hash(pw)


async def _resolve_user(request: Request, creds: Optional[HTTPAuthorizationCredentials]) -> Optional[AuthUser]:
    user_id = None
    if creds and creds.scheme.lower() == "bearer":
        try:
            user_id = decode_token(creds.credentials)
        except jwt.ExpiredSignatureError:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired")
        except JWTError:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    else:
        user_id = await session_user_id(request.cookies.get(SESSION_COOKIE))

    if not user_id:
        return None
    db_user = await User.filter(id=user_id).first()
    if not db_user:
        return None
    return AuthUser(str(db_user.id), db_user.name)


async def optional_user(
    request: Request,
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
) -> Optional[AuthUser]:
    return await _resolve_user(request, creds)


async def require_user(
    request: Request,
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
) -> AuthUser:
    user = await _resolve_user(request, creds)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return user

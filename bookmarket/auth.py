# bookmarket/auth.py
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from fastapi import Depends, HTTPException, Request, Response, status
from jose import JWTError, jwt
from loguru import logger

from .config import Settings
from .deps import get_app_settings, get_user_store
from .errors import StorageError, ValidationError
from .schemas import SafeUser, sanitize_user
from .store import UserStore


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8")[:72], hashed_password.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash.
        return False


def hash_password(password: str) -> str:
    password_bytes = password.encode("utf-8")
    if len(password_bytes) > 72:
        password_bytes = password_bytes[:72]
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password_bytes, salt)
    return hashed.decode("utf-8")


def create_session_token(user_id: int, settings: Settings) -> str:
    expire = datetime.now(timezone.utc) + timedelta(seconds=settings.cookie_max_age)
    to_encode = {"sub": str(user_id), "exp": expire}
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)


def read_session_token(token: str, settings: Settings) -> Optional[int]:
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject.isdigit():
        return None
    return int(subject)


async def resolve_session(token: Optional[str], users: UserStore, settings: Settings) -> Optional[SafeUser]:
    """Map a session token to the user it identifies, or ``None``."""
    if not token:
        return None
    user_id = read_session_token(token, settings)
    if user_id is None:
        return None
    try:
        user = await users.get(user_id)
    except (StorageError, ValidationError):
        logger.bind(user_id=user_id).exception("session.resolve_failed")
        return None
    return sanitize_user(user) if user is not None else None


async def authenticate_user(users: UserStore, email: str, password: str) -> Optional[SafeUser]:
    user = await users.get_by_email(email)
    if not user or not verify_password(password, user.password):
        return None
    return sanitize_user(user)


def set_auth_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        key=settings.cookie_name,
        value=token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        max_age=settings.cookie_max_age,
        path="/",
    )


def clear_auth_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(settings.cookie_name, path="/")


def get_token_from_cookie(request: Request, settings: Settings) -> Optional[str]:
    return request.cookies.get(settings.cookie_name)


async def get_optional_user(
    request: Request,
    response: Response,
    users: UserStore = Depends(get_user_store),
    settings: Settings = Depends(get_app_settings),
) -> Optional[SafeUser]:
    token = get_token_from_cookie(request, settings)
    user = await resolve_session(token, users, settings)
    if token and user is None:
        clear_auth_cookie(response, settings)
    return user


async def get_current_user(
    request: Request,
    user: Optional[SafeUser] = Depends(get_optional_user),
    settings: Settings = Depends(get_app_settings),
) -> SafeUser:
    if user is None:
        headers = {"WWW-Authenticate": "Cookie"}
        if get_token_from_cookie(request, settings):
            expired = Response()
            clear_auth_cookie(expired, settings)
            headers["set-cookie"] = expired.headers["set-cookie"]
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers=headers,
        )
    return user

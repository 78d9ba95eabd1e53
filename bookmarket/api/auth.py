# bookmarket/api/auth.py
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from .. import actions
from ..auth import clear_auth_cookie, create_session_token, get_current_user, set_auth_cookie
from ..config import Settings
from ..deps import get_app_settings, get_user_store
from ..schemas import SafeUser
from ..store import UserStore
from .books import result_response

router = APIRouter(prefix="/auth", tags=["🔐 Auth"])


@router.post(
    "/login",
    summary="Log in",
    description="""
    Checks `email` and `password` and, on success, sets the `auth` session cookie.

    **Errors:** 400 with `field_errors` for malformed input, 401 for wrong credentials.
    """,
)
async def login(
    payload: Dict[str, Any] = Body(...),
    users: UserStore = Depends(get_user_store),
    settings: Settings = Depends(get_app_settings),
):
    result = await actions.login(users, payload)
    response = result_response(result)
    if result.success and result.user is not None:
        set_auth_cookie(response, create_session_token(result.user.id, settings), settings)
    return response


@router.post("/logout", summary="Log out")
async def logout(settings: Settings = Depends(get_app_settings)):
    response = JSONResponse({"success": True, "message": "Logged out."})
    clear_auth_cookie(response, settings)
    return response


@router.get("/me", response_model=SafeUser, summary="Current user")
async def me(current_user: SafeUser = Depends(get_current_user)):
    return current_user

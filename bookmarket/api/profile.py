# bookmarket/api/profile.py
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from .. import actions
from ..auth import get_current_user
from ..deps import get_user_store
from ..schemas import SafeUser
from ..store import UserStore
from .books import result_response

router = APIRouter(prefix="/profile", tags=["👤 Profile"])


@router.get("/", response_model=SafeUser, summary="Show my profile")
async def read_profile(current_user: SafeUser = Depends(get_current_user)):
    return current_user


@router.put(
    "/",
    summary="Update my profile",
    description="Changes `name` and/or `email`; omitted fields keep their value.",
)
async def update_profile(
    payload: Dict[str, Any] = Body(...),
    users: UserStore = Depends(get_user_store),
    current_user: SafeUser = Depends(get_current_user),
):
    result = await actions.update_profile(users, current_user, payload)
    return result_response(result)

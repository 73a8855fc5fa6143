from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from mobileshop.api.deps import get_access_token, get_current_user, get_sessions
from mobileshop.api.errors import to_http
from mobileshop.domain.errors import StorefrontError
from mobileshop.domain.models import User
from mobileshop.services.session import SessionRegistry

router = APIRouter(prefix="/session", tags=["session"])


@router.get("/me", response_model=User)
def me(user: Optional[User] = Depends(get_current_user)):
    if user is None:
        raise HTTPException(status_code=401, detail="Sign in required")
    return user


@router.post("/logout", status_code=204)
def logout(
    token: Optional[str] = Depends(get_access_token),
    sessions: SessionRegistry = Depends(get_sessions),
):
    if not token:
        raise HTTPException(status_code=401, detail="Sign in required")
    try:
        sessions.sign_out(token)
    except StorefrontError as e:
        raise to_http(e, "Failed to sign out")

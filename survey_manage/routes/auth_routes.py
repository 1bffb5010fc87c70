import time

import jwt
from fastapi import APIRouter, HTTPException, Request, Response

from ..session import (
    COOKIE_NAME,
    issue_tokens,
    verify_refresh,
    set_refresh_cookie,
    clear_refresh_cookie,
)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/refresh")
def refresh(request: Request, response: Response):
    cookie = request.cookies.get(COOKIE_NAME)
    if not cookie:
        raise HTTPException(status_code=401, detail="missing refresh cookie")

    try:
        payload = verify_refresh(cookie)
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired refresh token")
    user = {"sub": payload["sub"], "username": payload.get("username")}

    access, access_exp, refresh_new, refresh_exp = issue_tokens(user)
    set_refresh_cookie(response, refresh_new, refresh_exp)
    return {
        "token_type": "Bearer",
        "access_token": access,
        "expires_in": access_exp - int(time.time()),
    }


@router.post("/logout")
def logout(response: Response):
    clear_refresh_cookie(response)
    return {"ok": True}

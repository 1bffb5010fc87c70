# Helpers for issuing/verifying access & refresh tokens
# and setting/clearing the refresh cookie.

from __future__ import annotations
import os, time, secrets
from typing import Any, Dict, Tuple
import jwt  # PyJWT

# ---- Config ----------------------------------------------------------------

APP_JWT_SECRET = os.environ.get("APP_JWT_SECRET")
APP_REFRESH_SECRET = os.environ.get("APP_REFRESH_SECRET")
if not APP_JWT_SECRET or not APP_REFRESH_SECRET:
    raise RuntimeError("APP_JWT_SECRET and APP_REFRESH_SECRET must be set")

ISS = os.getenv("APP_JWT_ISS", "http://localhost:8000")
AUD = os.getenv("APP_JWT_AUD", "survey-manage")

ACCESS_TTL = int(os.getenv("ACCESS_TOKEN_TTL_SECONDS", "900"))  # 15m
REFRESH_TTL = int(os.getenv("REFRESH_TOKEN_TTL_SECONDS", "2592000"))  # 30d

COOKIE_NAME = os.getenv("REFRESH_COOKIE_NAME", "refresh")
COOKIE_PATH = os.getenv("REFRESH_COOKIE_PATH", "/api/auth/refresh")
COOKIE_SAMESITE = os.getenv("REFRESH_COOKIE_SAMESITE", "Lax")  # "None" for cross-site
COOKIE_SECURE = os.getenv("REFRESH_COOKIE_SECURE", "false").lower() == "true"
COOKIE_HTTPONLY = os.getenv("REFRESH_COOKIE_HTTPONLY", "true").lower() == "true"


def _now_epoch() -> int:
    return int(time.time())


def _payload(user: Dict[str, Any], iat: int, exp: int, typ: str) -> Dict[str, Any]:
    return {
        "iss": ISS,
        "aud": AUD,
        "iat": iat,
        "exp": exp,
        "sub": user["sub"],
        "username": user.get("username"),
        "typ": typ,
    }


# ---- Public API ------------------------------------------------------------


def issue_tokens(user: Dict[str, Any]) -> Tuple[str, int, str, int]:
    """
    Returns: (access_token, access_exp_epoch, refresh_token, refresh_exp_epoch)
    Both tokens carry sub/username so /refresh can rebuild the access token.
    """
    iat = _now_epoch()
    access_exp = iat + ACCESS_TTL
    refresh_exp = iat + REFRESH_TTL

    access_token = jwt.encode(_payload(user, iat, access_exp, "access"), APP_JWT_SECRET, algorithm="HS256")

    refresh_payload = _payload(user, iat, refresh_exp, "refresh")
    refresh_payload["jti"] = secrets.token_urlsafe(24)
    refresh_token = jwt.encode(refresh_payload, APP_REFRESH_SECRET, algorithm="HS256")

    return access_token, access_exp, refresh_token, refresh_exp


def _verify(token: str, secret: str, typ: str) -> Dict[str, Any]:
    payload = jwt.decode(
        token,
        secret,
        algorithms=["HS256"],
        audience=AUD,
        issuer=ISS,
        options={"require": ["exp", "iat", "aud", "iss", "sub"]},
    )
    if payload.get("typ") != typ:
        raise jwt.InvalidTokenError("wrong token type")
    return payload


def verify_access(token: str) -> Dict[str, Any]:
    return _verify(token, APP_JWT_SECRET, "access")


def verify_refresh(token: str) -> Dict[str, Any]:
    return _verify(token, APP_REFRESH_SECRET, "refresh")


def set_refresh_cookie(response, refresh_token: str, refresh_exp_epoch: int) -> None:
    response.set_cookie(
        key=COOKIE_NAME,
        value=refresh_token,
        path=COOKIE_PATH,
        secure=COOKIE_SECURE,
        httponly=COOKIE_HTTPONLY,
        samesite=COOKIE_SAMESITE,
        expires=refresh_exp_epoch,
    )


def clear_refresh_cookie(response) -> None:
    response.delete_cookie(
        key=COOKIE_NAME,
        path=COOKIE_PATH,
        secure=COOKIE_SECURE,
        httponly=COOKIE_HTTPONLY,
        samesite=COOKIE_SAMESITE,
    )

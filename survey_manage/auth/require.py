import logging

import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..session import verify_access

log = logging.getLogger("auth")

bearer = HTTPBearer(auto_error=False)


def require_auth(creds: HTTPAuthorizationCredentials = Depends(bearer)):
    if not creds or creds.scheme.lower() != "bearer":
        raise HTTPException(status_code=401, detail="Missing bearer token")
    try:
        return verify_access(creds.credentials)
    except jwt.PyJWTError as e:
        log.warning("Rejected access token: %s", e)
        raise HTTPException(status_code=401, detail="Invalid or expired token")

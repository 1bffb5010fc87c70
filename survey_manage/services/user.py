from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict

from ..errors import CommonError, ErrorCode


@dataclass(frozen=True)
class UserData:
    user_id: str
    username: str

    def to_dict(self) -> Dict[str, Any]:
        return {"_id": self.user_id, "username": self.username}


class UserService:
    def check_login(self, claims: Dict[str, Any]) -> UserData:
        """
        Turn verified token claims into the caller identity passed to services.
        """
        sub = claims.get("sub")
        if not sub:
            raise CommonError("login required", ErrorCode.NO_AUTH)
        return UserData(user_id=str(sub), username=str(claims.get("username") or sub))

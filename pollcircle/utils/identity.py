from dataclasses import dataclass
from typing import Optional

from flask_jwt_extended import get_jwt, get_jwt_identity

ANONYMOUS_DISPLAY_NAME = "Anonymous User"


@dataclass(frozen=True)
class CurrentUser:
    id: str
    display_name: Optional[str] = None
    email: Optional[str] = None

    @property
    def label(self) -> str:
        return self.display_name or self.email or ANONYMOUS_DISPLAY_NAME


def resolve_current_user() -> CurrentUser:
    """
    Identity of the caller from the verified JWT.
    Use behind @jwt_required(); `name` and `email` claims are optional.
    """
    claims = get_jwt() or {}
    return CurrentUser(
        id=str(get_jwt_identity()),
        display_name=claims.get("name") or None,
        email=claims.get("email") or None,
    )

import logging

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from smartclass.core.config import Settings
from smartclass.core.deps import get_app_settings, get_db
from smartclass.core.errors import ForbiddenError, UnauthorizedError
from smartclass.core.security import decode_access_token
from smartclass.models.user import User

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> User:
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Access token required")

    try:
        payload = decode_access_token(
            credentials.credentials, settings.SECRET_KEY, settings.ALGORITHM
        )
        user_id = int(payload["sub"])
    except (jwt.InvalidTokenError, KeyError, TypeError, ValueError) as exc:
        logger.info("Rejected bearer token: %s", exc)
        raise ForbiddenError("Invalid token")

    user = db.get(User, user_id)
    if user is None or user.status != "active":
        raise ForbiddenError("Invalid token")
    return user

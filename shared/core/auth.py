import hmac
from datetime import datetime, timedelta, timezone
from typing import Optional
from fastapi import Depends, Header, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from pydantic import ValidationError
from shared.utils.app_status_code import AppStatusCode
from shared.utils.enums import UserAccountType
from shared.core.config import settings
from shared.helpers.json_response_helper import error_response
from shared.core.schemas import UserToken

# Tokens are issued by the external auth service; this module only verifies them.
security = HTTPBearer(auto_error=False)
BEARER_CHALLENGE = {"WWW-Authenticate": "Bearer"}


def create_access_token(data: dict, expires_minutes: Optional[int] = None):
    payload = data.copy()
    minutes = expires_minutes or settings.JWT_EXPIRE_MINUTES
    payload["exp"] = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def verify_token(token: str) -> UserToken:
    """Verify and decode a JWT token."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET,
                             algorithms=[settings.JWT_ALGORITHM])
        return UserToken(**payload)
    except JWTError:
        return error_response(
            message="Invalid or expired token",
            status_code=AppStatusCode.AUTHENTICATION_TOKEN_EXPIRED,
            http_status=status.HTTP_401_UNAUTHORIZED,
            headers=BEARER_CHALLENGE,
        )
    except ValidationError:
        return error_response(
            message="Invalid token structure",
            status_code=AppStatusCode.AUTHENTICATION_TOKEN_INVALID,
            http_status=status.HTTP_401_UNAUTHORIZED,
            headers=BEARER_CHALLENGE,
        )


def validate_current_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> UserToken:
    if credentials is None:
        return error_response(
            message="Not authenticated",
            status_code=AppStatusCode.AUTHENTICATION_TOKEN_INVALID,
            http_status=status.HTTP_401_UNAUTHORIZED,
            headers=BEARER_CHALLENGE,
        )
    return verify_token(credentials.credentials)


def require_role(*roles: UserAccountType):
    allowed = {role.value for role in roles}

    def dependency(current_user: UserToken = Depends(validate_current_token)) -> UserToken:
        if current_user.role.lower() not in allowed:
            return error_response(
                message=f"Access forbidden: {' or '.join(sorted(allowed))} only",
                status_code=AppStatusCode.AUTHENTICATION_ROLE_INVALID,
                http_status=status.HTTP_403_FORBIDDEN
            )
        return current_user

    return dependency


allow_admin = require_role(UserAccountType.ADMIN)
allow_driver = require_role(UserAccountType.DRIVER)


def allow_cron_or_admin(
    x_api_key: Optional[str] = Header(None),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[UserToken]:
    """Scheduled jobs and webhooks present the shared secret; anyone else must be an admin."""
    if x_api_key is not None and credentials is None:
        if settings.CRON_SECRET and hmac.compare_digest(
                x_api_key.encode("utf-8"), settings.CRON_SECRET.encode("utf-8")):
            return None
        return error_response(
            message="Invalid API key",
            status_code=AppStatusCode.AUTHENTICATION_KEY_INVALID,
            http_status=status.HTTP_401_UNAUTHORIZED,
        )
    return allow_admin(validate_current_token(credentials))

"""
Admin authentication dependencies.
"""
import hmac

from fastapi import HTTPException, Security
from fastapi.security import APIKeyQuery

from app.core.config import settings

# Shared secret is passed as ?token=...
ADMIN_TOKEN_PARAM = "token"

# Security scheme
admin_token_query = APIKeyQuery(name=ADMIN_TOKEN_PARAM, auto_error=False)


def get_admin_auth(token: str | None = Security(admin_token_query)) -> bool:
    """
    Verify the admin token query parameter.

    Admin endpoints stay locked when ADMIN_TOKEN is not configured.

    Args:
        token: Value of the ?token= query parameter

    Returns:
        True if authenticated

    Raises:
        HTTPException: 403 if the token is missing, wrong, or not configured
    """
    if not settings.admin_token or not token:
        raise HTTPException(status_code=403, detail="Unauthorized")

    if not hmac.compare_digest(token.encode("utf-8"), settings.admin_token.encode("utf-8")):
        raise HTTPException(status_code=403, detail="Unauthorized")

    return True

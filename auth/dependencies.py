"""
FastAPI dependencies for authentication.

Provides ``get_token_service`` and ``bearer_token``, used by the auth
routes and by any route that needs the caller's identity.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from auth.errors import UnauthorizedError
from auth.service import TokenService

# auto_error=False so a missing header is a 401 from the service, not a 403
_bearer_scheme = HTTPBearer(auto_error=False)


def get_token_service(request: Request) -> TokenService:
    """Return the ``TokenService`` built at application startup."""
    return request.app.state.token_service


async def bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> Optional[str]:
    """Extract the raw Bearer token, or ``None`` when absent."""
    if credentials is None:
        return None
    return credentials.credentials


async def get_current_user(
    token: Optional[str] = Depends(bearer_token),
    service: TokenService = Depends(get_token_service),
) -> Dict[str, Any]:
    """
    Verify the Bearer token and return its embedded identity claim.
    """
    if not token:
        raise UnauthorizedError("missing token")
    user = service.decode(token).get("user")
    if not isinstance(user, dict):
        raise UnauthorizedError("token carries no identity")
    return user

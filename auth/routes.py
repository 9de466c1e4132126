"""
Auth API routes: login, refresh.

Route prefix: /api/auth
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends

from auth.dependencies import bearer_token, get_current_user, get_token_service
from auth.models import AuthTokenResponse, ErrorResponse, LoginRequest
from auth.service import TokenService

router = APIRouter(tags=["auth"])

_ERROR_RESPONSES: Dict[int | str, Dict[str, Any]] = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
}


@router.post("/login", response_model=AuthTokenResponse, responses=_ERROR_RESPONSES)
async def login(
    req: LoginRequest,
    service: TokenService = Depends(get_token_service),
) -> Dict[str, str]:
    """Exchange username + password for an auth token."""
    return await service.login(req)


@router.post("/refresh", response_model=AuthTokenResponse, responses=_ERROR_RESPONSES)
async def refresh(
    token: Optional[str] = Depends(bearer_token),
    service: TokenService = Depends(get_token_service),
) -> Dict[str, str]:
    """Re-issue the Bearer token with a later expiry."""
    return await service.refresh(token)


@router.get("/me")
async def me(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    """Return the identity claim of the current token."""
    return user

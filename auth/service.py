"""
Token service: credential login and token refresh.

Tokens are HS256 JWTs carrying the sanitized identity under ``user``, the
username as ``sub``, and integer ``iat`` / ``exp`` claims.  The signing
secret is handed in by the caller; nothing here reads global config.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
import time
from typing import Any, Dict, Optional

import jwt as pyjwt

from auth.errors import BadRequestError, UnauthorizedError
from auth.models import IdentityClaim, LoginRequest
from auth.store import CredentialStore

logger = logging.getLogger(__name__)

DEFAULT_EXPIRY_SECONDS = 86400


class TokenService:
    def __init__(
        self,
        store: CredentialStore,
        secret: str,
        *,
        expiry_seconds: int = DEFAULT_EXPIRY_SECONDS,
        algorithm: str = "HS256",
        refresh_from_store: bool = True,
    ) -> None:
        if not secret:
            raise ValueError("A signing secret is required")
        if expiry_seconds <= 0:
            raise ValueError("expiry_seconds must be positive")
        self.store = store
        self._secret = secret
        self.expiry_seconds = expiry_seconds
        self.algorithm = algorithm
        self.refresh_from_store = refresh_from_store

    # ── Signing ───────────────────────────────────────────────────────

    def sign(
        self,
        user: Dict[str, Any],
        subject: str,
        *,
        expires_at: Optional[int] = None,
    ) -> str:
        """Sign a token for ``user`` with a fresh ``iat`` and ``exp``."""
        issued_at = int(time.time())
        payload = {
            "user": user,
            "sub": subject,
            "iat": issued_at,
            "exp": expires_at if expires_at is not None else issued_at + self.expiry_seconds,
            "jti": secrets.token_hex(8),
        }
        return pyjwt.encode(payload, self._secret, algorithm=self.algorithm)

    def decode(self, token: str) -> Dict[str, Any]:
        """Verify signature and expiry, returning the payload.

        Raises ``UnauthorizedError`` for any invalid token.
        """
        try:
            return pyjwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "sub"]},
            )
        except pyjwt.ExpiredSignatureError as exc:
            raise UnauthorizedError("token expired") from exc
        except pyjwt.InvalidSignatureError as exc:
            raise UnauthorizedError("bad signature") from exc
        except pyjwt.InvalidTokenError as exc:
            raise UnauthorizedError(f"invalid token: {exc}") from exc

    # ── Operations ────────────────────────────────────────────────────

    async def login(self, credential: LoginRequest) -> Dict[str, str]:
        """Authenticate ``credential`` and return ``{"authToken": ...}``."""
        if not credential.username or not credential.password:
            raise BadRequestError("username and password are required")

        record = await self.store.find_by_username_or_email(
            credential.username, credential.email
        )
        if record is None:
            logger.warning("Login rejected: unknown user %s", credential.username)
            raise UnauthorizedError("unknown user")
        if record.username != credential.username:
            logger.warning("Login rejected: %s resolved to another user", credential.username)
            raise UnauthorizedError("username mismatch")
        # bcrypt is CPU-bound; keep it off the event loop
        matches = await asyncio.to_thread(
            self.store.verify_password, credential.password, record.password_digest
        )
        if not matches:
            logger.warning("Login rejected: bad password for %s", credential.username)
            raise UnauthorizedError("bad password")

        identity = IdentityClaim.from_record(record)
        token = self.sign(identity.to_claim(), credential.username)
        logger.info("Login: %s (%s)", credential.username, record.id)
        return {"authToken": token}

    async def refresh(self, token: Optional[str]) -> Dict[str, str]:
        """Re-issue a still-valid token with a later expiry."""
        if not token:
            raise UnauthorizedError("missing token")

        payload = self.decode(token)
        subject = payload["sub"]

        if self.refresh_from_store:
            record = await self.store.find_by_username(subject)
            if record is None:
                logger.warning("Refresh rejected: user %s no longer exists", subject)
                raise UnauthorizedError("unknown user")
            user = IdentityClaim.from_record(record).to_claim()
        else:
            user = payload.get("user")
            if not isinstance(user, dict):
                raise UnauthorizedError("token carries no identity")

        expires_at = max(int(time.time()) + self.expiry_seconds, int(payload["exp"]) + 1)
        new_token = self.sign(user, subject, expires_at=expires_at)
        logger.info("Refreshed token for %s", subject)
        return {"authToken": new_token}

"""
Credential store: user record lookup and password digest handling.

``TokenService`` only talks to the ``CredentialStore`` protocol; the
SQLAlchemy implementation below is what the application wires in.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional, Protocol

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from auth.models import UserRecord
from auth.password import hash_password, verify_password
from database.models import User

logger = logging.getLogger(__name__)


class CredentialStore(Protocol):
    async def find_by_username_or_email(
        self, username: Optional[str], email: Optional[str]
    ) -> Optional[UserRecord]: ...

    async def find_by_username(self, username: str) -> Optional[UserRecord]: ...

    def verify_password(self, candidate: str, digest: str) -> bool: ...

    def hash_password(self, plain: str) -> str: ...


def _to_record(user: User) -> UserRecord:
    return UserRecord(
        id=user.id,
        username=user.username,
        email=user.email,
        password_digest=user.password,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


class SqlCredentialStore:
    """Credential store backed by the ``users`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def find_by_username_or_email(
        self, username: Optional[str], email: Optional[str]
    ) -> Optional[UserRecord]:
        """Look a user up by username, or by email when no username is given.

        When both are given the email must belong to the same record.
        """
        if username:
            stmt = select(User).where(User.username == username)
        elif email:
            stmt = select(User).where(User.email == email)
        else:
            return None

        async with self._session_factory() as session:
            result = await session.execute(stmt)
            user = result.scalar_one_or_none()

        if user is None:
            return None
        if username and email and user.email != email:
            return None
        return _to_record(user)

    async def find_by_username(self, username: str) -> Optional[UserRecord]:
        async with self._session_factory() as session:
            result = await session.execute(select(User).where(User.username == username))
            user = result.scalar_one_or_none()
        return _to_record(user) if user is not None else None

    def verify_password(self, candidate: str, digest: str) -> bool:
        return verify_password(candidate, digest)

    def hash_password(self, plain: str) -> str:
        return hash_password(plain)

    async def create_user(self, username: str, email: str, password: str) -> UserRecord:
        """Insert a new user with a hashed password.

        Raises ``ValueError`` if the username or email is already taken.
        """
        user = User(
            id=uuid.uuid4(),
            username=username,
            email=email,
            password=self.hash_password(password),
        )
        async with self._session_factory() as session:
            session.add(user)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise ValueError(f"Username or email already registered: {username}") from exc
            await session.refresh(user)

        logger.info("Created user %s (%s)", username, user.id)
        return _to_record(user)

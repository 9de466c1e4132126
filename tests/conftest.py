"""
Shared fixtures: an in-memory credential store and a wired test app.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Dict, Optional

import pytest
from fastapi.testclient import TestClient

from auth.models import UserRecord
from auth.password import hash_password, verify_password
from auth.service import TokenService
from config.settings import Settings

SECRET = "test-jwt-secret-for-unit-tests"
USER_ID = "333333333333333333333333"
USERNAME = "exampleUser"
EMAIL = "example@user.com"
PASSWORD = "examplePass"


class MemoryCredentialStore:
    """Dict-backed store with real bcrypt digests (low work factor)."""

    def __init__(self) -> None:
        self.records: Dict[str, UserRecord] = {}
        self.lookups = 0

    def add(self, username: str, email: str, password: str, user_id: Optional[str] = None) -> UserRecord:
        now = datetime.now(timezone.utc)
        record = UserRecord(
            id=user_id or str(uuid.uuid4()),
            username=username,
            email=email,
            password_digest=self.hash_password(password),
            created_at=now,
            updated_at=now,
        )
        self.records[username] = record
        return record

    async def find_by_username_or_email(self, username, email):
        self.lookups += 1
        if username:
            record = self.records.get(username)
            if record is not None and email and record.email != email:
                return None
            return record
        for record in self.records.values():
            if email and record.email == email:
                return record
        return None

    async def find_by_username(self, username):
        self.lookups += 1
        return self.records.get(username)

    def verify_password(self, candidate, digest):
        return verify_password(candidate, digest)

    def hash_password(self, plain):
        return hash_password(plain, rounds=4)


@pytest.fixture
def store():
    s = MemoryCredentialStore()
    s.add(USERNAME, EMAIL, PASSWORD, user_id=USER_ID)
    return s


@pytest.fixture
def service(store):
    return TokenService(store, SECRET, expiry_seconds=60)


@pytest.fixture
def settings():
    return Settings(_env_file=None, jwt_secret=SECRET, jwt_expiry_seconds=60)


@pytest.fixture
def client(settings, store):
    from main import create_app

    return TestClient(create_app(settings=settings, store=store))

"""
Pytest configuration and shared fixtures for Registrar tests.
"""

import re
from datetime import date

import pytest

from registrar.matching.models import CandidateRecord, IdentityInput
from registrar.matching.store import InMemoryCandidateStore


@pytest.fixture
def stored_student() -> CandidateRecord:
    """A stored student whose contact details are in normalized form."""
    return CandidateRecord(
        id="dup-1",
        phone_number="9876543210",
        email="test@example.com",
        first_name="Rahul",
        last_name="Sharma",
        date_of_birth=date(2001, 5, 14),
    )


@pytest.fixture
def unrelated_student() -> CandidateRecord:
    """A stored student sharing nothing with the other fixtures."""
    return CandidateRecord(
        id="other-1",
        phone_number="9123456780",
        email="priya.nair@example.org",
        first_name="Priya",
        last_name="Nair",
        date_of_birth=date(1999, 11, 2),
    )


@pytest.fixture
def candidate_store(stored_student, unrelated_student) -> InMemoryCandidateStore:
    """In-memory store with two unrelated students."""
    return InMemoryCandidateStore([stored_student, unrelated_student])


@pytest.fixture
def contact_identity() -> IdentityInput:
    """Phone and email of dup-1, formatted differently."""
    return IdentityInput(phone_number="+91 9876543210", email="Test@Example.com")


class FakeRedis:
    """
    Dict-backed stand-in for the redis.asyncio client calls the cache makes.

    Expiry follows the `now` attribute, which tests advance by hand. SCAN
    supports prefix patterns ("<escaped prefix>*") and pages by `count`.
    """

    def __init__(self):
        self.now = 0.0
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self._expires: dict[str, float] = {}
        self.scan_calls = 0
        self.last_match = None
        self._scan_keys: list[str] = []

    def _expire(self) -> None:
        for key in [k for k, at in self._expires.items() if at <= self.now]:
            self.data.pop(key, None)
            self.ttls.pop(key, None)
            del self._expires[key]

    async def get(self, key):
        self._expire()
        return self.data.get(key)

    async def setex(self, key, ttl, value):
        if not isinstance(ttl, int):
            raise TypeError("SETEX expects whole seconds")
        self.data[key] = value
        self.ttls[key] = ttl
        self._expires[key] = self.now + ttl
        return True

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
            self._expires.pop(key, None)
        return removed

    async def scan(self, cursor=0, match=None, count=None):
        self.scan_calls += 1
        self.last_match = match
        self._expire()
        if cursor == 0:
            # Keys present for the whole iteration are returned exactly once
            prefix = re.sub(r"\\(.)", r"\1", match[:-1]) if match else ""
            self._scan_keys = sorted(k for k in self.data if k.startswith(prefix))
        batch = count or 10
        page = self._scan_keys[cursor:cursor + batch]
        next_cursor = cursor + batch if cursor + batch < len(self._scan_keys) else 0
        return next_cursor, page

    async def ping(self):
        return True

    async def aclose(self):
        return None


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()

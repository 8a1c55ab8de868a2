# tests/conftest.py

"""
Pytest configuration and shared fixtures.

Supabase is replaced by an in-memory fake: tables are lists of dicts and
the query builder understands the subset of PostgREST calls the API makes.
Auth calls are Mocks so tests can both inspect and break them.
"""

import os

os.environ.setdefault("ENV", "test")

import itertools
import re
import uuid
from collections import defaultdict
from types import SimpleNamespace
from typing import Generator
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from core.rate_limiter import access_request_limiter
from core.recovery import RecoveryFlagService, get_recovery_service
from core.session import SessionStore
from dependencies.auth import get_db, get_session_store
from main import create_app


# ============================================================
# Fake PostgREST query builder
# ============================================================
_clock = itertools.count(1)


def _ilike(pattern: str):
    regex = "".join(
        ".*" if ch == "%" else "." if ch == "_" else re.escape(ch)
        for ch in str(pattern)
    )
    return re.compile(regex, re.IGNORECASE)


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.op = "select"
        self.payload = None
        self.filters = []
        self._order = None
        self._limit = None
        self._single = False

    # -- operations ---------------------------------------
    def select(self, *_columns):
        return self

    def insert(self, payload):
        self.op, self.payload = "insert", payload
        return self

    def update(self, payload):
        self.op, self.payload = "update", payload
        return self

    def upsert(self, payload):
        self.op, self.payload = "upsert", payload
        return self

    def delete(self):
        self.op = "delete"
        return self

    # -- filters ------------------------------------------
    def eq(self, column, value):
        self.filters.append(("eq", column, value))
        return self

    def gte(self, column, value):
        self.filters.append(("gte", column, value))
        return self

    def ilike(self, column, pattern):
        self.filters.append(("ilike", column, pattern))
        return self

    def in_(self, column, values):
        self.filters.append(("in", column, list(values)))
        return self

    def order(self, column, desc=False):
        self._order = (column, desc)
        return self

    def limit(self, n):
        self._limit = n
        return self

    def single(self):
        self._single = True
        return self

    maybe_single = single

    # -- execution ----------------------------------------
    def _matches(self, row) -> bool:
        for kind, column, value in self.filters:
            current = row.get(column)
            if kind == "eq" and str(current) != str(value):
                return False
            if kind == "gte" and (current is None or str(current) < str(value)):
                return False
            if kind == "ilike" and (current is None or not _ilike(value).fullmatch(str(current))):
                return False
            if kind == "in" and str(current) not in {str(v) for v in value}:
                return False
        return True

    def execute(self):
        self.db.queries.append(SimpleNamespace(table=self.table, op=self.op, filters=list(self.filters)))

        failure = self.db.failures.get((self.table, self.op))
        if failure is not None:
            raise failure

        rows = self.db.tables[self.table]

        if self.op == "insert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            data = [self.db._store(self.table, item) for item in items]

        elif self.op == "upsert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            data = []
            for item in items:
                existing = next((r for r in rows if str(r.get("id")) == str(item.get("id"))), None)
                if existing is not None:
                    existing.update(item)
                    data.append(dict(existing))
                else:
                    data.append(self.db._store(self.table, item))

        elif self.op == "update":
            data = []
            for row in rows:
                if self._matches(row):
                    row.update(self.payload)
                    data.append(dict(row))

        elif self.op == "delete":
            data = [dict(r) for r in rows if self._matches(r)]
            self.db.tables[self.table] = [r for r in rows if not self._matches(r)]

        else:
            data = [dict(r) for r in rows if self._matches(r)]
            if self._order:
                column, desc = self._order
                present = [r for r in data if r.get(column) is not None]
                missing = [r for r in data if r.get(column) is None]
                present.sort(key=lambda r: str(r[column]), reverse=desc)
                data = present + missing
            if self._limit is not None:
                data = data[: self._limit]

        if self._single:
            data = data[0] if data else None
        return SimpleNamespace(data=data)


# ============================================================
# Fake Supabase Auth
# ============================================================
class FakeAuth:
    def __init__(self):
        self.users = {}
        self.passwords = {}
        self.tokens = {}

        self.get_user = Mock(side_effect=self._get_user)
        self.sign_in_with_password = Mock(side_effect=self._sign_in)
        self.reset_password_for_email = Mock(return_value=None)
        self.verify_otp = Mock()
        self.on_auth_state_change = Mock()

        self.admin = Mock()
        self.admin.invite_user_by_email.return_value = SimpleNamespace(user=None)
        self.admin.update_user_by_id.return_value = SimpleNamespace(user=None)
        self.admin.sign_out.return_value = None

    def register(self, email, password="correct-horse", metadata=None):
        user = SimpleNamespace(id=str(uuid.uuid4()), email=email, user_metadata=metadata or {})
        token = f"token-{user.id}"
        self.users[user.id] = user
        self.passwords[email.lower()] = (password, user)
        self.tokens[token] = user
        return user, token

    def _get_user(self, token):
        user = self.tokens.get(token)
        if user is None:
            raise Exception("invalid JWT: unable to parse or verify signature")
        return SimpleNamespace(user=user)

    def _sign_in(self, credentials):
        entry = self.passwords.get(credentials["email"].lower())
        if entry is None or entry[0] != credentials["password"]:
            raise Exception("Invalid login credentials")
        user = entry[1]
        token = next(t for t, u in self.tokens.items() if u is user)
        session = SimpleNamespace(access_token=token, refresh_token="refresh", expires_in=3600)
        return SimpleNamespace(session=session, user=user)


class FakeSupabase:
    def __init__(self):
        self.tables = defaultdict(list)
        self.queries = []
        self.failures = {}
        self.auth = FakeAuth()
        self.functions = Mock()
        self.functions.invoke.return_value = {"id": "email-1"}

    def table(self, name):
        return FakeQuery(self, name)

    def _store(self, table, item):
        row = dict(item)
        row.setdefault("id", str(uuid.uuid4()))
        row.setdefault("created_at", f"2025-01-01T00:00:00.{next(_clock):06d}+00:00")
        self.tables[table].append(row)
        return dict(row)

    def seed(self, table, **fields):
        return self._store(table, fields)

    def rows(self, table, **where):
        return [
            r for r in self.tables[table]
            if all(str(r.get(k)) == str(v) for k, v in where.items())
        ]


# ============================================================
# Fixtures
# ============================================================
@pytest.fixture
def db() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def recovery() -> RecoveryFlagService:
    return RecoveryFlagService()


@pytest.fixture
def store(db, recovery) -> SessionStore:
    return SessionStore(client_factory=lambda: db, recovery=recovery, ttl_seconds=60)


@pytest.fixture(scope="function")
def app(db, store, recovery):
    """Test application wired to the in-memory Supabase."""
    application = create_app()
    application.dependency_overrides[get_db] = lambda: db
    application.dependency_overrides[get_session_store] = lambda: store
    application.dependency_overrides[get_recovery_service] = lambda: recovery
    return application


@pytest.fixture(scope="function")
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(autouse=True)
def reset_rate_limits():
    access_request_limiter.reset()
    yield
    access_request_limiter.reset()


# -----------------------------------------------------
# Tenant data helpers
# -----------------------------------------------------
@pytest.fixture
def make_org(db):
    def _make(name="Alpha Chapter", chapter=None, suspended=False, **extra):
        return db.seed("organizations", name=name, chapter=chapter, is_suspended=suspended, **extra)
    return _make


@pytest.fixture
def make_user(db):
    """
    Registers an auth user and, when `org` is given, their roster row and
    profile. Returns a namespace with the user, member row and auth headers.
    """
    def _make(
        email,
        org=None,
        role="Member",
        status="Active",
        permissions=None,
        setup_complete=True,
        with_profile=True,
        full_name=None,
    ):
        user, token = db.auth.register(email)
        member = None
        if org is not None:
            member = db.seed(
                "members",
                org_id=org["id"],
                email=email,
                full_name=full_name or email.split("@")[0].title(),
                role=role,
                status=status,
                permissions=permissions,
            )
            if with_profile:
                db.seed(
                    "profiles",
                    id=user.id,
                    organization_id=org["id"],
                    role=role,
                    full_name=member["full_name"],
                    is_setup_complete=setup_complete,
                )
        return SimpleNamespace(
            user=user,
            token=token,
            member=member,
            headers={"Authorization": f"Bearer {token}"},
        )
    return _make

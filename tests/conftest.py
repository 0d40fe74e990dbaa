from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path
from uuid import UUID, uuid4

import pytest

from business_settings.adapters.memory_store import InMemorySettingsStore
from business_settings.adapters.sqlite.migrator import SQLiteMigrator
from business_settings.adapters.sqlite.repos import SQLiteSettingsStore
from business_settings.components.settings import SettingsService
from business_settings.domain.errors import DirectoryLookupError
from business_settings.rules.loader import load_rules
from business_settings.rules.models import Rules

PROJECT_ROOT = Path(__file__).resolve().parent.parent
T0 = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, now: datetime = T0) -> None:
        self._now = now

    def now_utc(self) -> datetime:
        return self._now

    def advance(self, **kwargs: float) -> datetime:
        self._now = self._now + timedelta(**kwargs)
        return self._now

    def set(self, now: datetime) -> None:
        self._now = now


class FakeDirectory:
    """Representative directory with explicit parents and support actors."""

    def __init__(self) -> None:
        self.parents: dict[UUID, UUID] = {}
        self.rep_business: dict[UUID, UUID] = {}
        self.support: set[UUID] = set()
        self.fail_lookups = False
        self.lookup_count = 0

    def add_business(self, business_id: UUID, parent_rep_id: UUID) -> None:
        self.parents[business_id] = parent_rep_id
        self.rep_business[parent_rep_id] = business_id

    def add_rep(self, business_id: UUID, rep_id: UUID) -> None:
        self.rep_business[rep_id] = business_id

    def get_parent_representative(self, business_id: UUID) -> UUID | None:
        self.lookup_count += 1
        if self.fail_lookups:
            raise DirectoryLookupError("directory unavailable")
        return self.parents.get(business_id)

    def is_support_actor(self, user_id: UUID) -> bool:
        self.lookup_count += 1
        if self.fail_lookups:
            raise DirectoryLookupError("directory unavailable")
        return user_id in self.support

    def get_business_id_for_rep(self, rep_id: UUID) -> UUID | None:
        return self.rep_business.get(rep_id)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def business_id() -> UUID:
    return uuid4()


@pytest.fixture
def parent_rep_id() -> UUID:
    return uuid4()


@pytest.fixture
def support_id() -> UUID:
    return uuid4()


@pytest.fixture
def directory(business_id: UUID, parent_rep_id: UUID, support_id: UUID) -> FakeDirectory:
    d = FakeDirectory()
    d.add_business(business_id, parent_rep_id)
    d.support.add(support_id)
    return d


@pytest.fixture
def store() -> InMemorySettingsStore:
    return InMemorySettingsStore()


@pytest.fixture
def service(
    store: InMemorySettingsStore, directory: FakeDirectory, clock: FakeClock
) -> SettingsService:
    return SettingsService(store, directory, clock)


@pytest.fixture
def rules_path() -> Path:
    return PROJECT_ROOT / "rules.yaml"


@pytest.fixture
def rules(rules_path: Path) -> Rules:
    return load_rules(rules_path)


@pytest.fixture
def migrations_dir() -> str:
    return str(PROJECT_ROOT / "migrations")


@pytest.fixture
def sqlite_db_path(tmp_path: Path, migrations_dir: str) -> str:
    """Fresh, fully migrated SQLite database."""
    db_path = str(tmp_path / "settings.db")
    SQLiteMigrator(db_path, migrations_dir).run_migrations()
    return db_path


@pytest.fixture
def sqlite_store(sqlite_db_path: str) -> SQLiteSettingsStore:
    return SQLiteSettingsStore(sqlite_db_path)

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from business_settings.adapters.clock import SystemClock
from business_settings.adapters.dev_directory import InMemoryRepresentativeDirectory
from business_settings.adapters.expiry_scheduler import DndExpiryScheduler
from business_settings.adapters.sqlite.repos import SQLiteSettingsStore
from business_settings.components.settings import SettingsService, create_settings_service
from business_settings.rules.models import Rules

if TYPE_CHECKING:
    from business_settings.ports.clock import ClockPort
    from business_settings.ports.directory import RepresentativeDirectoryPort


@dataclass
class ServiceContext:
    settings_service: SettingsService
    store: SQLiteSettingsStore
    directory: RepresentativeDirectoryPort
    scheduler: DndExpiryScheduler
    rules: Rules
    clock: ClockPort

    @classmethod
    def create(
        cls,
        db_path: str,
        rules: Rules,
        directory: RepresentativeDirectoryPort | None = None,
        clock: ClockPort | None = None,
    ) -> ServiceContext:
        # Adapters
        store = SQLiteSettingsStore(db_path)
        directory = directory or InMemoryRepresentativeDirectory()
        clock = clock or SystemClock()

        # Services
        settings_service = create_settings_service(store, directory, clock, rules)
        scheduler = DndExpiryScheduler(
            settings_service,
            interval_seconds=rules.scheduler.interval_seconds,
            error_backoff_seconds=rules.scheduler.error_backoff_seconds,
            run_on_start=rules.scheduler.run_on_start,
        )

        return cls(
            settings_service=settings_service,
            store=store,
            directory=directory,
            scheduler=scheduler,
            rules=rules,
            clock=clock,
        )

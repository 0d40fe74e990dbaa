# Protocol interfaces for adapters; no implementations here

from business_settings.ports.clock import ClockPort
from business_settings.ports.directory import RepresentativeDirectoryPort
from business_settings.ports.repo import SettingsStorePort

__all__ = [
    "ClockPort",
    "RepresentativeDirectoryPort",
    "SettingsStorePort",
]

"""
Settings component - Business and representative settings.

Entry points for the outer layer. ``create_settings_service`` wires the
service from loaded rules; ``run`` dispatches a typed input to the matching
service operation.

Invariants:
- Only the parent representative mutates business settings
- Only the owning representative mutates rep settings
- Only support actors extend DnD mode
- Active DnD implies enabled_at < expires_at
- Auto-expiry leaves modified_by_user_id as the last human modifier
"""

from __future__ import annotations

from typing import Any

from business_settings.ports.clock import ClockPort
from business_settings.ports.directory import RepresentativeDirectoryPort
from business_settings.ports.repo import SettingsStorePort
from business_settings.rules.models import Rules

from ._impl import SettingsService
from .models import (
    ExtendDndModeInput,
    GetBusinessSettingsInput,
    GetDndStatusInput,
    GetEffectiveSettingsInput,
    GetPrivateReviewsStatusInput,
    GetRepSettingsInput,
    ProcessExpiredDndModesInput,
    UpdateBusinessSettingsInput,
    UpdateRepSettingsInput,
)

SettingsInput = (
    GetBusinessSettingsInput
    | UpdateBusinessSettingsInput
    | ExtendDndModeInput
    | GetDndStatusInput
    | GetPrivateReviewsStatusInput
    | ProcessExpiredDndModesInput
    | GetRepSettingsInput
    | UpdateRepSettingsInput
    | GetEffectiveSettingsInput
)


def create_settings_service(
    store: SettingsStorePort,
    directory: RepresentativeDirectoryPort,
    clock: ClockPort | None = None,
    rules: Rules | None = None,
) -> SettingsService:
    """
    Create a settings service.

    Args:
        store: Settings store
        directory: Representative directory
        clock: Optional clock
        rules: Optional rules; built-in defaults when omitted

    Returns:
        Configured SettingsService
    """
    if rules is None:
        return SettingsService(store, directory, clock)

    return SettingsService(
        store,
        directory,
        clock,
        dnd_rules=rules.dnd,
        notification_defaults=rules.rep_defaults.notifications,
        private_reviews_rules=rules.private_reviews,
    )


def run(inp: SettingsInput, *, service: SettingsService) -> Any:
    """
    Main entry point for the settings component.

    Dispatches to the service operation matching the input type. Typed
    SettingsError subclasses propagate to the caller unchanged.
    """
    if isinstance(inp, GetBusinessSettingsInput):
        return service.get_business_settings(inp.business_id)
    elif isinstance(inp, UpdateBusinessSettingsInput):
        return service.update_business_settings(inp.business_id, inp.request, inp.actor_id)
    elif isinstance(inp, ExtendDndModeInput):
        return service.extend_dnd_mode(inp.business_id, inp.additional_hours, inp.actor_id)
    elif isinstance(inp, GetDndStatusInput):
        return service.get_dnd_status(inp.business_id)
    elif isinstance(inp, GetPrivateReviewsStatusInput):
        return service.get_private_reviews_status(inp.business_id)
    elif isinstance(inp, ProcessExpiredDndModesInput):
        return service.process_expired_dnd_modes()
    elif isinstance(inp, GetRepSettingsInput):
        return service.get_rep_settings(inp.business_rep_id)
    elif isinstance(inp, UpdateRepSettingsInput):
        return service.update_rep_settings(inp.business_rep_id, inp.request, inp.actor_id)
    elif isinstance(inp, GetEffectiveSettingsInput):
        return service.get_effective_settings(inp.business_rep_id)
    else:
        raise ValueError(f"Unknown input type: {type(inp)}")

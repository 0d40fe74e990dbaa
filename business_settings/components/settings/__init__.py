"""
Settings component - Business settings, rep settings and DnD lifecycle.
"""

from ._impl import SettingsService
from .component import create_settings_service, run
from .models import (
    ExpiryBatchResult,
    ExpiryFailure,
    ExtendDndModeInput,
    GetBusinessSettingsInput,
    GetDndStatusInput,
    GetEffectiveSettingsInput,
    GetPrivateReviewsStatusInput,
    GetRepSettingsInput,
    ProcessExpiredDndModesInput,
    UpdateBusinessSettingsInput,
    UpdateBusinessSettingsRequest,
    UpdateRepSettingsInput,
    UpdateRepSettingsRequest,
)

__all__ = [
    # Component entry points
    "run",
    "create_settings_service",
    # Service
    "SettingsService",
    # Requests
    "UpdateBusinessSettingsRequest",
    "UpdateRepSettingsRequest",
    # Inputs
    "GetBusinessSettingsInput",
    "UpdateBusinessSettingsInput",
    "ExtendDndModeInput",
    "GetDndStatusInput",
    "GetPrivateReviewsStatusInput",
    "ProcessExpiredDndModesInput",
    "GetRepSettingsInput",
    "UpdateRepSettingsInput",
    "GetEffectiveSettingsInput",
    # Outputs
    "ExpiryBatchResult",
    "ExpiryFailure",
]

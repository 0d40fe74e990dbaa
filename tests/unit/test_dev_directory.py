"""
In-memory representative directory tests.
"""

from __future__ import annotations

from uuid import uuid4

from business_settings.adapters.dev_directory import InMemoryRepresentativeDirectory
from business_settings.components.settings import SettingsService, UpdateBusinessSettingsRequest
from business_settings.domain.patch import SetTo


class TestRegisterRep:
    def test_first_rep_becomes_parent(self) -> None:
        directory = InMemoryRepresentativeDirectory()
        business_id, first, second = uuid4(), uuid4(), uuid4()

        directory.register_rep(business_id, first)
        directory.register_rep(business_id, second)

        assert directory.get_parent_representative(business_id) == first
        assert directory.get_business_id_for_rep(first) == business_id
        assert directory.get_business_id_for_rep(second) == business_id

    def test_unknown_lookups_return_none(self) -> None:
        directory = InMemoryRepresentativeDirectory()

        assert directory.get_parent_representative(uuid4()) is None
        assert directory.get_business_id_for_rep(uuid4()) is None


class TestSupportActors:
    def test_add_support_actor(self) -> None:
        directory = InMemoryRepresentativeDirectory()
        actor = uuid4()

        assert directory.is_support_actor(actor) is False
        directory.add_support_actor(actor)
        assert directory.is_support_actor(actor) is True

    def test_registered_support_actor_can_extend(self, store, clock) -> None:
        directory = InMemoryRepresentativeDirectory()
        business_id, parent, support = uuid4(), uuid4(), uuid4()
        directory.register_rep(business_id, parent)
        directory.add_support_actor(support)
        service = SettingsService(store, directory, clock)
        service.update_business_settings(
            business_id,
            UpdateBusinessSettingsRequest(
                dnd_mode_enabled=SetTo(True), dnd_mode_duration_hours=SetTo(4)
            ),
            parent,
        )

        view = service.extend_dnd_mode(business_id, 2, support)

        assert view.settings.dnd_extension_count == 1

"""
Tests for edit-session construction and teardown.
"""

from __future__ import annotations

from area_access.hierarchy.schema import AreaSelection, Responsibility, WizardSession
from area_access.wizard.changes import detect_changes
from area_access.wizard.session import (
    clear_edit_session,
    determine_responsibility,
    ensure_edit_session,
    start_create_session,
    start_edit_session,
)

RMA_ACCOUNT = {
    "id": 42,
    "admin": False,
    "firstName": "Ada",
    "lastName": "Lovelace",
    "email": "ada@example.org",
    "jobTitle": "Engineer",
    "organisation": "Bristol City Council",
    "telephoneNumber": "0117 000 0000",
    "areas": [
        {"areaId": 6, "primary": True},
        {"areaId": 9, "primary": False},
    ],
}


class TestDetermineResponsibility:
    def test_from_primary_area(self, index):
        areas = [{"areaId": 3, "primary": False}, {"areaId": 6, "primary": True}]
        assert determine_responsibility(index, areas) == Responsibility.RMA

    def test_falls_back_to_first_area(self, index):
        assert determine_responsibility(index, [{"areaId": 1}]) == Responsibility.EA

    def test_unknown_or_administrative(self, index):
        assert determine_responsibility(index, [{"areaId": 404, "primary": True}]) is None
        assert determine_responsibility(index, [{"areaId": 99, "primary": True}]) is None
        assert determine_responsibility(index, []) is None
        assert determine_responsibility(None, [{"areaId": 6}]) is None

    def test_malformed_areas(self, index):
        assert determine_responsibility(index, [{"primary": True}]) is None
        areas = [{"primary": True}, {"areaId": 6, "primary": True}]
        assert determine_responsibility(index, areas) == Responsibility.RMA


class TestStartEditSession:
    def test_rma_account(self, index):
        session = start_edit_session(index, RMA_ACCOUNT, 42)
        assert session.edit_mode
        assert session.journey_started
        assert session.editing_id == "42"
        assert session.responsibility == Responsibility.RMA
        assert session.first_name == "Ada"
        assert session.telephone_number == "0117 000 0000"
        assert session.main_area_id == "6"
        assert session.ea_areas == ["1", "2"]
        assert session.pso_areas == ["3", "5"]

    def test_snapshot_matches_session(self, index):
        session = start_edit_session(index, RMA_ACCOUNT, "42")
        assert session.original_data.areas == session.areas
        assert session.original_data.responsibility == Responsibility.RMA
        assert not detect_changes(session).has_changes

    def test_pso_account_gets_ea_picks_only(self, index):
        account = {**RMA_ACCOUNT, "areas": [{"areaId": 4, "primary": True}]}
        session = start_edit_session(index, account, 42)
        assert session.responsibility == Responsibility.PSO
        assert session.ea_areas == ["1"]
        assert session.pso_areas == []

    def test_ea_account_has_no_picks(self, index):
        account = {**RMA_ACCOUNT, "areas": [{"areaId": 2, "primary": True}]}
        session = start_edit_session(index, account, 42)
        assert session.responsibility == Responsibility.EA
        assert session.ea_areas == []

    def test_admin_account_carries_no_areas(self, index):
        account = {**RMA_ACCOUNT, "admin": True}
        session = start_edit_session(index, account, 42)
        assert session.admin
        assert session.areas == []
        assert session.ea_areas == []
        assert len(session.original_data.areas) == 2
        assert not detect_changes(session).has_changes

    def test_snake_case_account(self, index):
        account = {"first_name": "Ada", "job_title": "Engineer", "areas": [{"area_id": "6"}]}
        session = start_edit_session(index, account, 7)
        assert session.first_name == "Ada"
        assert session.job_title == "Engineer"
        assert session.areas == [AreaSelection(area_id="6")]

    def test_malformed_account_area_is_skipped(self, index):
        account = {**RMA_ACCOUNT, "areas": [{"primary": True}, {"areaId": 6, "primary": True}]}
        session = start_edit_session(index, account, 42)
        assert session.areas == [AreaSelection(area_id="6", primary=True)]
        assert session.responsibility == Responsibility.RMA
        assert not detect_changes(session).has_changes

    def test_only_malformed_areas(self, index):
        session = start_edit_session(index, {"areas": [{"primary": True}]}, 1)
        assert session.areas == []
        assert session.responsibility is None
        assert session.original_data.areas == []

    def test_missing_account(self, index):
        session = start_edit_session(index, None, 1)
        assert session.edit_mode
        assert session.editing_id == "1"
        assert session.first_name is None
        assert session.original_data is not None
        assert not detect_changes(session).has_changes


class TestSessionLifecycle:
    def test_create_session(self):
        session = start_create_session()
        assert session.journey_started
        assert not session.edit_mode
        assert session.original_data is None

    def test_ensure_reuses_matching_session(self, index):
        existing = start_edit_session(index, RMA_ACCOUNT, 42)
        edited = existing.model_copy(update={"first_name": "Augusta"})
        assert ensure_edit_session(index, edited, RMA_ACCOUNT, "42") is edited

    def test_ensure_replaces_other_session(self, index):
        other = start_edit_session(index, RMA_ACCOUNT, 41)
        session = ensure_edit_session(index, other, RMA_ACCOUNT, 42)
        assert session is not other
        assert session.editing_id == "42"

    def test_ensure_replaces_create_session(self, index):
        session = ensure_edit_session(index, start_create_session(), RMA_ACCOUNT, 42)
        assert session.edit_mode

    def test_clear(self, index):
        assert clear_edit_session(start_edit_session(index, RMA_ACCOUNT, 42)) is None
        create = WizardSession(journey_started=True)
        assert clear_edit_session(create) is create
        assert clear_edit_session(None) is None

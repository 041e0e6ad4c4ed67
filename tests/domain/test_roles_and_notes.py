"""
Tests for caller roles, the role permission matrix, audit notes, and
record helpers.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from agency_kernel.domain.notes import append_note, format_entry, note_entries
from agency_kernel.domain.records import Agent, Counsellor, Course
from agency_kernel.domain.results import CascadeAction, CascadeOutcome, StatusChangeResult
from agency_kernel.domain.roles import Action, Caller, CallerRole
from agency_kernel.domain.status import EntityKind, status_value, ApplicationStatus


class TestCallerFromRecords:
    def test_top_level_agent(self):
        caller = Caller.from_agent(Agent(user_id="agent-1", name="A", email=""))
        assert caller.role is CallerRole.AGENT
        assert caller.top_agent_id == "agent-1"
        assert caller.is_privileged

    def test_sub_agent(self):
        caller = Caller.from_agent(Agent(user_id="sub-1", name="S", email="", super_agent="agent-1"))
        assert caller.role is CallerRole.SUB_AGENT
        assert caller.top_agent_id == "agent-1"
        assert caller.parent_id == "agent-1"
        assert not caller.is_privileged

    def test_counsellor(self):
        counsellor = Counsellor(
            id="c-1", user_id="coun-1", name="C", email="", phone="",
            parent_id="sub-1", agent_id="agent-1", slot=1,
        )
        caller = Caller.from_counsellor(counsellor)
        assert caller.role is CallerRole.COUNSELLOR
        assert caller.top_agent_id == "agent-1"
        assert caller.parent_id == "sub-1"
        assert not caller.is_privileged


class TestPermissionMatrix:
    def test_agent_may_do_everything(self):
        agent = Caller("agent-1", CallerRole.AGENT, "agent-1")
        assert all(agent.can(action) for action in Action)

    @pytest.mark.parametrize("action", list(Action))
    def test_counsellor_may_do_nothing(self, action):
        assert not Caller("coun-1", CallerRole.COUNSELLOR, "agent-1").can(action)

    def test_sub_agent_permissions(self):
        sub = Caller("sub-1", CallerRole.SUB_AGENT, "agent-1", "agent-1")
        assert sub.can(Action.CREATE_APPLICATION)
        assert sub.can(Action.CHANGE_APPLICATION_STATUS)
        assert sub.can(Action.CHANGE_TRANSACTION_STATUS)
        assert sub.can(Action.MANAGE_COUNSELLORS)
        assert not sub.can(Action.CHANGE_COMMISSION_STATUS)
        assert not sub.can(Action.EDIT_COMMISSION)
        assert not sub.can(Action.EDIT_TRANSACTION)
        assert not sub.can(Action.CREATE_SUB_AGENT)


class TestNotes:
    T1 = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    T2 = datetime(2024, 1, 2, 9, 30, tzinfo=timezone.utc)

    def test_first_entry(self):
        assert append_note(None, "created", self.T1) == "[2024-01-01T12:00:00+00:00] created"

    def test_append_uses_blank_line_separator(self):
        notes = append_note(append_note("", "created", self.T1), "updated", self.T2)
        assert notes == (
            "[2024-01-01T12:00:00+00:00] created\n\n"
            "[2024-01-02T09:30:00+00:00] updated"
        )

    def test_parse_entries(self):
        notes = append_note(append_note(None, "created", self.T1), "updated", self.T2)
        entries = note_entries(notes)
        assert [e.message for e in entries] == ["created", "updated"]
        assert entries[0].timestamp == self.T1
        assert entries[1].timestamp == self.T2

    def test_free_text_is_not_an_entry(self):
        notes = "Student called about fees.\n\n" + format_entry("created", self.T1)
        assert len(note_entries(notes)) == 1

    def test_bad_timestamp_skipped(self):
        assert note_entries("[yesterday] something happened") == []

    def test_empty(self):
        assert note_entries(None) == []
        assert note_entries("") == []


class TestRecords:
    def test_first_year_fee_from_number(self):
        course = Course(id="c", course_name="BSc", fees={"firstYear": 50000})
        assert course.first_year_fee == Decimal("50000")

    def test_first_year_fee_from_string(self):
        course = Course(id="c", course_name="BSc", fees={"firstYear": "1250.50"})
        assert course.first_year_fee == Decimal("1250.50")

    def test_first_year_fee_missing(self):
        assert Course(id="c", course_name="BSc").first_year_fee is None
        assert Course(id="c", course_name="BSc", fees={"total": 10}).first_year_fee is None

    def test_agent_top_agent_id(self):
        assert Agent("agent-1", "A", "").top_agent_id == "agent-1"
        assert Agent("sub-1", "S", "", super_agent="agent-1").top_agent_id == "agent-1"


class TestResults:
    def test_default_cascade_is_not_applicable(self):
        result = StatusChangeResult(
            success=True,
            entity_kind=EntityKind.APPLICATION,
            entity_id="app-1",
            from_status="Verified",
            to_status="Documents Uploaded",
        )
        assert result.cascade.action is CascadeAction.NOT_APPLICABLE
        assert not result.cascade_failed

    def test_failed_outcome(self):
        assert CascadeOutcome(action=CascadeAction.FAILED).failed

    def test_status_value(self):
        assert status_value(ApplicationStatus.DOCUMENTS_UPLOADED) == "Documents Uploaded"
        assert status_value("Completed") == "Completed"

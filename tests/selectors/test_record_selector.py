"""
Tests for RecordSelector: visibility scopes translated into SQL.

Covers:
- Role-scoped application, transaction and commission listings
- Counsellor transaction scope through the linked application (EXISTS)
- Denied scopes return nothing
- get_scoped hides records outside the scope
"""

from decimal import Decimal

import pytest

from agency_kernel.domain.status import EntityKind
from agency_kernel.domain.visibility import VisibilityScope, resolve_scope
from agency_kernel.selectors import RecordSelector


@pytest.fixture
def selector(session):
    return RecordSelector(session)


@pytest.fixture
def records(store, hierarchy, make_application):
    """
    app_agent   -- entered by agent-1, no sub-agent, counsellor coun-1
    app_sub1    -- entered by sub-1 for itself
    app_sub2    -- entered by agent-1, assigned to sub-2
    app_other   -- belongs to agent-2
    Each has a transaction; app_sub1 also has a commission.
    """
    app_agent = make_application(counsellor_id="coun-1")
    app_sub1 = make_application(created_by="sub-1", subagent_id="sub-1")
    app_sub2 = make_application(subagent_id="sub-2")
    app_other = make_application(superagent_id="agent-2", created_by="agent-2")

    txns = {}
    for app in (app_agent, app_sub1, app_sub2, app_other):
        txns[app.id] = store.insert_entity(
            EntityKind.TRANSACTION,
            {
                "application_id": app.id,
                "student_name": app.student_name,
                "amount": Decimal("50000.00"),
                "status": "Pending",
                "agent_id": app.superagent_id,
                "subagent_id": app.subagent_id,
            },
        )
    commission = store.insert_entity(
        EntityKind.COMMISSION,
        {
            "application_id": app_sub1.id,
            "transaction_id": txns[app_sub1.id].id,
            "amount": Decimal("5000.00"),
            "status": "pending",
            "agent_id": "agent-1",
            "subagent_id": "sub-1",
        },
    )
    return {
        "app_agent": app_agent,
        "app_sub1": app_sub1,
        "app_sub2": app_sub2,
        "app_other": app_other,
        "txns": txns,
        "commission": commission,
    }


def _ids(rows):
    return {row.id for row in rows}


class TestApplicationListing:
    def test_agent_sees_own_hierarchy(self, selector, hierarchy, records):
        rows = selector.list_applications(resolve_scope(hierarchy.agent, EntityKind.APPLICATION))
        assert _ids(rows) == {records["app_agent"].id, records["app_sub1"].id, records["app_sub2"].id}

    def test_sub_agent_sees_created_or_assigned(self, selector, hierarchy, records):
        rows = selector.list_applications(resolve_scope(hierarchy.sub_agent, EntityKind.APPLICATION))
        assert _ids(rows) == {records["app_sub1"].id}

        rows = selector.list_applications(resolve_scope(hierarchy.sub_agent_2, EntityKind.APPLICATION))
        assert _ids(rows) == {records["app_sub2"].id}

    def test_counsellor_sees_top_agents_applications(self, selector, hierarchy, records):
        rows = selector.list_applications(resolve_scope(hierarchy.counsellor, EntityKind.APPLICATION))
        assert records["app_other"].id not in _ids(rows)
        assert len(rows) == 3

    def test_other_agent_isolated(self, selector, hierarchy, records):
        rows = selector.list_applications(resolve_scope(hierarchy.other_agent, EntityKind.APPLICATION))
        assert _ids(rows) == {records["app_other"].id}


class TestTransactionListing:
    def test_agent(self, selector, hierarchy, records):
        rows = selector.list_transactions(resolve_scope(hierarchy.agent, EntityKind.TRANSACTION))
        assert len(rows) == 3
        assert records["txns"][records["app_other"].id].id not in _ids(rows)

    def test_sub_agent_only_where_named(self, selector, hierarchy, records):
        rows = selector.list_transactions(resolve_scope(hierarchy.sub_agent, EntityKind.TRANSACTION))
        assert _ids(rows) == {records["txns"][records["app_sub1"].id].id}

    def test_counsellor_through_assigned_application(self, selector, hierarchy, records):
        rows = selector.list_transactions(resolve_scope(hierarchy.counsellor, EntityKind.TRANSACTION))
        assert _ids(rows) == {records["txns"][records["app_agent"].id].id}


class TestCommissionListing:
    def test_sub_agent_sees_own(self, selector, hierarchy, records):
        rows = selector.list_commissions(resolve_scope(hierarchy.sub_agent, EntityKind.COMMISSION))
        assert _ids(rows) == {records["commission"].id}

    def test_sibling_sees_none(self, selector, hierarchy, records):
        assert selector.list_commissions(resolve_scope(hierarchy.sub_agent_2, EntityKind.COMMISSION)) == []

    def test_counsellor_denied(self, selector, hierarchy, records):
        assert selector.list_commissions(resolve_scope(hierarchy.counsellor, EntityKind.COMMISSION)) == []


class TestGetScoped:
    def test_visible_record_returned(self, selector, hierarchy, records):
        app_id = records["app_sub1"].id
        scope = resolve_scope(hierarchy.sub_agent, EntityKind.APPLICATION)
        assert selector.get_scoped(EntityKind.APPLICATION, app_id, scope).id == app_id

    def test_invisible_record_is_none(self, selector, hierarchy, records):
        scope = resolve_scope(hierarchy.sub_agent_2, EntityKind.APPLICATION)
        assert selector.get_scoped(EntityKind.APPLICATION, records["app_sub1"].id, scope) is None

    def test_missing_record_is_none(self, selector, hierarchy, records):
        scope = resolve_scope(hierarchy.agent, EntityKind.APPLICATION)
        assert selector.get_scoped(EntityKind.APPLICATION, "no-such-app", scope) is None

    def test_denied_scope(self, selector, records):
        scope = VisibilityScope.deny(EntityKind.COMMISSION)
        assert selector.get_scoped(EntityKind.COMMISSION, records["commission"].id, scope) is None

    def test_kind_mismatch_rejected(self, selector, hierarchy, records):
        scope = resolve_scope(hierarchy.agent, EntityKind.APPLICATION)
        with pytest.raises(ValueError):
            selector.get_scoped(EntityKind.TRANSACTION, "txn-1", scope)

    def test_non_workflow_kind_rejected(self, selector, hierarchy):
        scope = VisibilityScope(EntityKind.COLLEGE, ())
        with pytest.raises(ValueError):
            selector.scope_filter(scope)

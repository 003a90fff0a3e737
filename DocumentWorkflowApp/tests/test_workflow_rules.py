"""Transition table, ownership checks and merge semantics (no database)."""

import pytest
from hypothesis import given, strategies as st
from rest_framework.exceptions import ValidationError

from DocumentWorkflowApp.core.choices import DocumentStatus, FieldOwner
from DocumentWorkflowApp.domain import workflow
from DocumentWorkflowApp.domain.workflow import Action

SLOTS = {"Name": FieldOwner.STUDENT, "Group": FieldOwner.STUDENT, "OrderNo": FieldOwner.TEACHER}

field_names = st.text(alphabet="abcdefghij", min_size=1, max_size=4)
scalars = st.one_of(st.text(max_size=10), st.integers(), st.booleans())
payloads = st.dictionaries(field_names, scalars, max_size=6)


@pytest.mark.parametrize("status, action, allowed", [
    (DocumentStatus.AWAITING_INPUT, Action.SUBMIT, True),
    (DocumentStatus.SENT_BACK, Action.SUBMIT, True),
    (DocumentStatus.SUBMITTED, Action.SUBMIT, False),
    (DocumentStatus.SUBMITTED, Action.APPROVE, True),
    (DocumentStatus.SUBMITTED, Action.REJECT, True),
    (DocumentStatus.AWAITING_INPUT, Action.APPROVE, False),
    (DocumentStatus.APPROVED_BY_TEACHER, Action.FINALIZE, True),
    (DocumentStatus.SUBMITTED, Action.FINALIZE, False),
    (DocumentStatus.COMPLETED, Action.FINALIZE, False),
    (DocumentStatus.COMPLETED, Action.SUBMIT, False),
])
def test_transition_table(status, action, allowed):
    assert workflow.can_transition(status, action) is allowed


def test_completed_is_terminal_with_no_actions():
    assert workflow.is_terminal(DocumentStatus.COMPLETED)
    assert workflow.allowed_actions(DocumentStatus.COMPLETED) == []
    assert not workflow.is_terminal(DocumentStatus.APPROVED_BY_TEACHER)


def test_unknown_action_is_not_allowed():
    assert workflow.can_transition(DocumentStatus.SUBMITTED, "delete") is False


def test_ownership_accepts_own_fields():
    workflow.check_field_ownership(SLOTS, {"Name": "A", "Group": "B"}, FieldOwner.STUDENT)
    workflow.check_field_ownership(SLOTS, {"OrderNo": 7}, FieldOwner.TEACHER)


def test_ownership_rejects_foreign_and_unknown_fields():
    with pytest.raises(ValidationError) as exc:
        workflow.check_field_ownership(SLOTS, {"Name": "A", "OrderNo": 1, "Bogus": "x"}, FieldOwner.STUDENT)
    errors = exc.value.detail["data"]
    assert set(errors) == {"OrderNo", "Bogus"}


def test_missing_fields_in_template_order():
    assert workflow.missing_fields(SLOTS, {"Group": "B"}) == ["Name", "OrderNo"]
    assert workflow.missing_fields(SLOTS, {"Name": "", "Group": "B", "OrderNo": 0}) == []


def test_merge_is_shallow_last_write_wins():
    assert workflow.merge_data({"a": 1, "b": 2}, {"b": 3, "c": 4}) == {"a": 1, "b": 3, "c": 4}
    assert workflow.merge_data(None, None) == {}


@given(existing=payloads, incoming=payloads)
def test_merge_properties(existing, incoming):
    """Incoming keys win, untouched keys survive, inputs are not mutated."""
    before = dict(existing)
    merged = workflow.merge_data(existing, incoming)
    assert existing == before
    assert set(merged) == set(existing) | set(incoming)
    for key, value in incoming.items():
        assert merged[key] == value
    for key in set(existing) - set(incoming):
        assert merged[key] == existing[key]


@given(payload=payloads)
def test_merge_is_idempotent(payload):
    once = workflow.merge_data({}, payload)
    assert workflow.merge_data(once, payload) == once

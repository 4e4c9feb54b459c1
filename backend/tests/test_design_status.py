"""
Tests for design review status transitions.
"""

import pytest

from configurator.design_status import (
    DesignStatus,
    InvalidTransition,
    allowed_transitions,
    parse_status,
    transition,
)


class TestAllowedTransitions:
    """Tests for the buttons offered per status."""

    @pytest.mark.parametrize("current,expected", [
        ("draft", ["pending"]),
        ("pending", ["approved", "rejected"]),
        ("rejected", ["pending"]),
        ("approved", ["in_production"]),
        ("in_production", ["completed"]),
        ("completed", []),
    ])
    def test_table(self, current, expected):
        assert allowed_transitions(current) == expected

    def test_missing_status_is_pending(self):
        assert allowed_transitions(None) == ["approved", "rejected"]
        assert parse_status("") is DesignStatus.PENDING


class TestTransition:
    """Tests for status changes requested through the API."""

    def test_legal_transition(self):
        assert transition("pending", "approved") is DesignStatus.APPROVED

    def test_case_and_whitespace_tolerated(self):
        assert transition(" Approved ", "IN_PRODUCTION") is DesignStatus.IN_PRODUCTION

    def test_same_status_is_a_no_op(self):
        assert transition("completed", "completed") is DesignStatus.COMPLETED

    def test_rejected_can_be_resubmitted(self):
        assert transition("rejected", "pending") is DesignStatus.PENDING

    def test_skipping_states_is_refused(self):
        with pytest.raises(InvalidTransition) as exc:
            transition("pending", "completed")

        assert exc.value.current == "pending"
        assert exc.value.requested == "completed"

    def test_completed_is_terminal(self):
        with pytest.raises(InvalidTransition):
            transition("completed", "pending")

    def test_unknown_requested_status(self):
        with pytest.raises(InvalidTransition) as exc:
            transition("pending", "shipped")

        assert exc.value.requested == "shipped"

    def test_unknown_current_status(self):
        with pytest.raises(InvalidTransition):
            transition("archived", "pending")

    def test_invalid_transition_is_a_value_error(self):
        with pytest.raises(ValueError):
            transition("draft", "approved")

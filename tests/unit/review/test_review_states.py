"""Tests for the review state table and state machine."""

import pytest
from uuid import uuid4

from reviewflow.core.review.states import (
    ReviewStatus, ReviewAction, CommentType, Party,
    TRANSITION_RULES, REVIEWED_STATES, OPEN_STATES,
    STATUS_SORT_ORDER, NO_REVIEW_SORT_ORDER,
    can_transition, get_target_state, get_transition_rule,
)
from reviewflow.core.review.machine import ReviewStateMachine, is_blank
from reviewflow.core.review.errors import (
    AuthorizationError, InvalidStateError, ValidationError,
)


class TestReviewStates:
    """Test state definitions."""

    def test_status_values(self):
        assert {s.value for s in ReviewStatus} == {"pending", "approved", "rejected"}

    def test_comment_types(self):
        assert {c.value for c in CommentType} == {
            "assignment", "rejection", "re-request", "approval", "general", "field-comment",
        }

    def test_reviewed_states_carry_timestamp(self):
        assert REVIEWED_STATES == {ReviewStatus.APPROVED, ReviewStatus.REJECTED}

    def test_open_states(self):
        assert OPEN_STATES == {ReviewStatus.PENDING, ReviewStatus.REJECTED}

    def test_sort_order(self):
        """Approved sorts first, documents without a review last."""
        assert STATUS_SORT_ORDER["approved"] < STATUS_SORT_ORDER["pending"]
        assert STATUS_SORT_ORDER["pending"] < STATUS_SORT_ORDER["rejected"]
        assert STATUS_SORT_ORDER["rejected"] < NO_REVIEW_SORT_ORDER


class TestTransitionRules:
    """Test the transition table."""

    def test_assign_from_none(self):
        assert can_transition(None, ReviewAction.ASSIGN)
        assert get_target_state(None, ReviewAction.ASSIGN) == ReviewStatus.PENDING

    def test_pending_transitions(self):
        assert get_target_state(ReviewStatus.PENDING, ReviewAction.APPROVE) == ReviewStatus.APPROVED
        assert get_target_state(ReviewStatus.PENDING, ReviewAction.REJECT) == ReviewStatus.REJECTED
        assert not can_transition(ReviewStatus.PENDING, ReviewAction.RE_REQUEST)

    def test_rejected_transitions(self):
        assert get_target_state(ReviewStatus.REJECTED, ReviewAction.RE_REQUEST) == ReviewStatus.PENDING
        assert not can_transition(ReviewStatus.REJECTED, ReviewAction.APPROVE)
        assert not can_transition(ReviewStatus.REJECTED, ReviewAction.REJECT)

    def test_approved_is_final(self):
        for action in ReviewAction:
            assert not can_transition(ReviewStatus.APPROVED, action)

    def test_rule_parties(self):
        assert get_transition_rule(ReviewStatus.PENDING, ReviewAction.APPROVE).actor == Party.REVIEWER
        assert get_transition_rule(ReviewStatus.PENDING, ReviewAction.REJECT).actor == Party.REVIEWER
        assert get_transition_rule(ReviewStatus.REJECTED, ReviewAction.RE_REQUEST).actor == Party.REQUESTER

    def test_required_comments(self):
        required = {r.action for r in TRANSITION_RULES if r.requires_comment}
        assert required == {ReviewAction.REJECT, ReviewAction.RE_REQUEST}


class TestReviewStateMachine:
    """Test state machine transitions."""

    @pytest.fixture
    def parties(self):
        return uuid4(), uuid4()

    def _machine(self, state, parties):
        reviewer, requester = parties
        return ReviewStateMachine(uuid4(), state, assigned_to=reviewer, assigned_by=requester)

    def test_initial_state(self, parties):
        machine = self._machine(ReviewStatus.PENDING, parties)
        assert machine.state == ReviewStatus.PENDING

    def test_approve_sets_reviewed_at(self, parties):
        reviewer, _ = parties
        machine = self._machine(ReviewStatus.PENDING, parties)

        record = machine.transition(ReviewAction.APPROVE, user_id=reviewer)

        assert machine.state == ReviewStatus.APPROVED
        assert record["from_state"] == ReviewStatus.PENDING
        assert record["to_state"] == ReviewStatus.APPROVED
        assert record["comment_type"] == CommentType.APPROVAL
        assert record["reviewed_at"] is not None

    def test_reject_requires_reason(self, parties):
        reviewer, _ = parties
        machine = self._machine(ReviewStatus.PENDING, parties)

        with pytest.raises(ValidationError):
            machine.transition(ReviewAction.REJECT, user_id=reviewer, comment="   ")
        assert machine.state == ReviewStatus.PENDING

    def test_re_request_clears_reviewed_at(self, parties):
        _, requester = parties
        machine = self._machine(ReviewStatus.REJECTED, parties)

        record = machine.transition(ReviewAction.RE_REQUEST, user_id=requester, comment="fixed")

        assert machine.state == ReviewStatus.PENDING
        assert record["reviewed_at"] is None

    def test_wrong_party_rejected_before_state_check(self, parties):
        """A stranger gets an authorization error even on a non-pending review."""
        machine = self._machine(ReviewStatus.APPROVED, parties)

        with pytest.raises(AuthorizationError):
            machine.transition(ReviewAction.APPROVE, user_id=uuid4())

    def test_requester_cannot_approve(self, parties):
        _, requester = parties
        machine = self._machine(ReviewStatus.PENDING, parties)

        with pytest.raises(AuthorizationError, match="assigned reviewer"):
            machine.transition(ReviewAction.APPROVE, user_id=requester)

    def test_reviewer_cannot_re_request(self, parties):
        reviewer, _ = parties
        machine = self._machine(ReviewStatus.REJECTED, parties)

        with pytest.raises(AuthorizationError):
            machine.transition(ReviewAction.RE_REQUEST, user_id=reviewer, comment="again")

    def test_approve_non_pending(self, parties):
        reviewer, _ = parties
        machine = self._machine(ReviewStatus.REJECTED, parties)

        with pytest.raises(InvalidStateError, match="Only pending reviews can be approved"):
            machine.transition(ReviewAction.APPROVE, user_id=reviewer)

    def test_re_request_non_rejected(self, parties):
        _, requester = parties
        machine = self._machine(ReviewStatus.PENDING, parties)

        with pytest.raises(InvalidStateError):
            machine.transition(ReviewAction.RE_REQUEST, user_id=requester, comment="again")

    def test_can_perform(self, parties):
        reviewer, requester = parties
        machine = self._machine(ReviewStatus.PENDING, parties)

        assert machine.can_perform(ReviewAction.APPROVE, reviewer)
        assert not machine.can_perform(ReviewAction.APPROVE, requester)
        assert not machine.can_perform(ReviewAction.RE_REQUEST, requester)


def test_is_blank():
    assert is_blank(None)
    assert is_blank("")
    assert is_blank(" \n\t")
    assert not is_blank(" x ")

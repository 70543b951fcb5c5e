"""
Tests for the review state machines.

Tests cover:
- Transition tables for submissions and person suggestions
- Conditional update (compare-and-swap) semantics
- Action parsing
"""

import pytest

from apps.core.exceptions import StatusError, ValidationError
from apps.moderation.models import PersonSuggestion, Submission
from apps.moderation.state_machine import (
    ReviewAction,
    ReviewStateMachine,
    SubmissionState,
    SuggestionState,
)


# ============================================================================
# Transition tables
# ============================================================================

class TestTransitionTables:

    def setup_method(self):
        self.submissions = ReviewStateMachine.for_submissions()
        self.suggestions = ReviewStateMachine.for_suggestions()

    def test_pending_submission_targets(self):
        assert self.submissions.get_valid_transitions('pending') == {
            SubmissionState.APPROVED,
            SubmissionState.REJECTED,
            SubmissionState.REVISION_REQUESTED,
        }

    def test_revision_goes_back_to_pending(self):
        assert self.submissions.can_transition('revision_requested', 'pending')
        assert self.suggestions.can_transition('revision_requested', 'pending')

    def test_terminal_states(self):
        assert SubmissionState.APPROVED.is_terminal
        assert SubmissionState.REJECTED.is_terminal
        assert not SubmissionState.PENDING.is_terminal
        assert SuggestionState.PUBLISHED.is_terminal
        assert not SuggestionState.APPROVED.is_terminal
        assert self.submissions.get_valid_transitions('approved') == set()

    def test_only_approved_suggestion_can_be_published(self):
        assert self.suggestions.can_transition('approved', 'published')
        assert not self.suggestions.can_transition('pending', 'published')

    def test_unknown_state(self):
        with pytest.raises(ValueError):
            SubmissionState.from_string('archived')


class TestReviewAction:

    @pytest.mark.parametrize('value', ['approve', 'reject', 'request_revision'])
    def test_known_actions(self, value):
        assert ReviewAction.from_string(value).value == value

    @pytest.mark.parametrize('value', ['', None, 'APPROVE', 'publish'])
    def test_unknown_actions(self, value):
        with pytest.raises(ValidationError):
            ReviewAction.from_string(value)

    def test_only_revision_requires_note(self):
        assert ReviewAction.REQUEST_REVISION.requires_note
        assert not ReviewAction.APPROVE.requires_note
        assert not ReviewAction.REJECT.requires_note


# ============================================================================
# Conditional update
# ============================================================================

@pytest.mark.django_db
class TestTransition:

    def test_applies_status_and_fields(self, submission_factory, moderator):
        submission = submission_factory()
        machine = ReviewStateMachine.for_submissions()

        rows = machine.transition(
            submission.pk, SubmissionState.PENDING, SubmissionState.REJECTED,
            moderator=moderator, moderator_note='нет',
        )

        assert rows == 1
        submission.refresh_from_db()
        assert submission.status == 'rejected'
        assert submission.moderator_id == moderator.pk
        assert submission.moderator_note == 'нет'

    def test_invalid_transition(self, submission_factory):
        submission = submission_factory(status='approved')
        machine = ReviewStateMachine.for_submissions()

        with pytest.raises(StatusError):
            machine.transition(submission.pk, SubmissionState.APPROVED, SubmissionState.PENDING)

    def test_stale_expected_status_matches_nothing(self, submission_factory):
        submission = submission_factory()
        Submission.objects.filter(pk=submission.pk).update(status='approved')
        machine = ReviewStateMachine.for_submissions()

        with pytest.raises(StatusError):
            machine.transition(submission.pk, SubmissionState.PENDING, SubmissionState.REJECTED)

        submission.refresh_from_db()
        assert submission.status == 'approved'

    def test_second_reviewer_loses(self, submission_factory):
        submission = submission_factory()
        machine = ReviewStateMachine.for_submissions()

        machine.transition(submission.pk, SubmissionState.PENDING, SubmissionState.APPROVED)
        with pytest.raises(StatusError):
            machine.transition(submission.pk, SubmissionState.PENDING, SubmissionState.REJECTED)

        submission.refresh_from_db()
        assert submission.status == 'approved'

    def test_guard_conditions(self, suggestion_factory, person):
        suggestion = suggestion_factory()
        PersonSuggestion.objects.filter(pk=suggestion.pk).update(published_person=person)
        machine = ReviewStateMachine.for_suggestions()

        with pytest.raises(StatusError):
            machine.transition(
                suggestion.pk, SuggestionState.APPROVED, SuggestionState.PUBLISHED,
                guard={'published_person__isnull': True},
            )

    def test_ensure_status(self, submission_factory):
        machine = ReviewStateMachine.for_submissions()
        submission = submission_factory(status='draft')

        with pytest.raises(StatusError) as exc_info:
            machine.ensure_status(submission, SubmissionState.PENDING)

        assert exc_info.value.error_details == {'status': 'draft'}

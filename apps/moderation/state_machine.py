"""
Review State Machines.

Two small, fixed state machines govern moderated content:

Submissions:
    draft → pending → approved
                    → rejected
                    → revision_requested → pending

Person suggestions:
    pending → approved → published
            → rejected
            → revision_requested → pending

Transitions are applied as a single conditional UPDATE guarded by the
expected current status (compare-and-swap). Two reviewers racing on the same
row cannot both win: the loser's UPDATE matches zero rows and surfaces as a
StatusError instead of silently overwriting the winner's decision.

Usage:
    machine = ReviewStateMachine.for_submissions()
    machine.transition(submission.pk, SubmissionState.PENDING,
                       SubmissionState.APPROVED, moderator=user)
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional, Set, Type

from django.db import models
from django.utils import timezone

from apps.core.exceptions import StatusError, ValidationError

logger = logging.getLogger(__name__)


class SubmissionState(str, Enum):
    """Valid states of a user submission."""
    DRAFT = 'draft'
    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'
    REVISION_REQUESTED = 'revision_requested'

    @classmethod
    def from_string(cls, value: str) -> 'SubmissionState':
        for state in cls:
            if state.value == value:
                return state
        raise ValueError(f"Unknown submission state: {value}")

    @property
    def is_terminal(self) -> bool:
        return self in (SubmissionState.APPROVED, SubmissionState.REJECTED)


class SuggestionState(str, Enum):
    """Valid states of a person suggestion."""
    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'
    REVISION_REQUESTED = 'revision_requested'
    PUBLISHED = 'published'

    @classmethod
    def from_string(cls, value: str) -> 'SuggestionState':
        for state in cls:
            if state.value == value:
                return state
        raise ValueError(f"Unknown suggestion state: {value}")

    @property
    def is_terminal(self) -> bool:
        return self in (SuggestionState.PUBLISHED, SuggestionState.REJECTED)


class ReviewAction(str, Enum):
    """Moderator decisions on a pending item."""
    APPROVE = 'approve'
    REJECT = 'reject'
    REQUEST_REVISION = 'request_revision'

    @classmethod
    def from_string(cls, value: Optional[str]) -> 'ReviewAction':
        for action in cls:
            if action.value == value:
                return action
        raise ValidationError(
            "Action must be one of: approve, reject, request_revision",
            field='action',
        )

    @property
    def requires_note(self) -> bool:
        return self is ReviewAction.REQUEST_REVISION


SUBMISSION_TRANSITIONS: Dict[SubmissionState, Set[SubmissionState]] = {
    SubmissionState.DRAFT: {SubmissionState.PENDING},
    SubmissionState.PENDING: {
        SubmissionState.APPROVED,
        SubmissionState.REJECTED,
        SubmissionState.REVISION_REQUESTED,
    },
    SubmissionState.REVISION_REQUESTED: {SubmissionState.PENDING},
    SubmissionState.APPROVED: set(),  # Terminal state
    SubmissionState.REJECTED: set(),  # Terminal state
}

SUGGESTION_TRANSITIONS: Dict[SuggestionState, Set[SuggestionState]] = {
    SuggestionState.PENDING: {
        SuggestionState.APPROVED,
        SuggestionState.REJECTED,
        SuggestionState.REVISION_REQUESTED,
    },
    SuggestionState.APPROVED: {SuggestionState.PUBLISHED},
    SuggestionState.REVISION_REQUESTED: {SuggestionState.PENDING},
    SuggestionState.REJECTED: set(),  # Terminal state
    SuggestionState.PUBLISHED: set(),  # Terminal state
}

SUBMISSION_REVIEW_TARGETS = {
    ReviewAction.APPROVE: SubmissionState.APPROVED,
    ReviewAction.REJECT: SubmissionState.REJECTED,
    ReviewAction.REQUEST_REVISION: SubmissionState.REVISION_REQUESTED,
}

SUGGESTION_REVIEW_TARGETS = {
    ReviewAction.APPROVE: SuggestionState.APPROVED,
    ReviewAction.REJECT: SuggestionState.REJECTED,
    ReviewAction.REQUEST_REVISION: SuggestionState.REVISION_REQUESTED,
}


class ReviewStateMachine:
    """
    Validates and applies status transitions for one moderated model.

    The machine holds no per-object state; it is safe to share between
    requests and threads.
    """

    def __init__(
        self,
        model: Type[models.Model],
        transitions: Dict[Enum, Set[Enum]],
        state_enum: Type[Enum],
        label: str,
    ):
        self.model = model
        self.transitions = transitions
        self.state_enum = state_enum
        self.label = label

    @classmethod
    def for_submissions(cls) -> 'ReviewStateMachine':
        from .models import Submission
        return cls(Submission, SUBMISSION_TRANSITIONS, SubmissionState, 'Submission')

    @classmethod
    def for_suggestions(cls) -> 'ReviewStateMachine':
        from .models import PersonSuggestion
        return cls(PersonSuggestion, SUGGESTION_TRANSITIONS, SuggestionState, 'PersonSuggestion')

    def can_transition(self, current, target) -> bool:
        current = self.state_enum.from_string(current) if isinstance(current, str) else current
        target = self.state_enum.from_string(target) if isinstance(target, str) else target
        return target in self.transitions.get(current, set())

    def get_valid_transitions(self, current) -> Set[Enum]:
        current = self.state_enum.from_string(current) if isinstance(current, str) else current
        return self.transitions.get(current, set()).copy()

    def ensure_status(self, obj, expected, message: Optional[str] = None):
        """Pre-write check of the observed status; raises StatusError on mismatch."""
        if obj.status != expected.value:
            raise StatusError(
                message or f"Only {self.label} objects with {expected.value} status can be reviewed",
                details={'status': obj.status},
            )

    def transition(
        self,
        pk: Any,
        from_state,
        to_state,
        guard: Optional[Dict[str, Any]] = None,
        **fields,
    ) -> int:
        """
        Move row ``pk`` from ``from_state`` to ``to_state``.

        ``guard`` adds extra filter conditions to the conditional update and
        ``fields`` are written alongside the new status. Raises StatusError
        when the transition is not allowed or when the row is no longer in
        ``from_state`` (a concurrent reviewer got there first).
        """
        if not self.can_transition(from_state, to_state):
            raise StatusError(
                f"Invalid transition from {from_state.value} to {to_state.value}. "
                f"Valid targets: {sorted(s.value for s in self.get_valid_transitions(from_state))}"
            )

        fields.setdefault('updated_at', timezone.now())
        rows = self.model.objects.filter(
            pk=pk, status=from_state.value, **(guard or {})
        ).update(status=to_state.value, **fields)

        if rows == 0:
            logger.warning(
                "%s %s lost transition race: expected %s",
                self.label, pk, from_state.value,
            )
            raise StatusError(
                f"{self.label} {pk} is no longer {from_state.value}",
                details={'expected_status': from_state.value},
            )

        logger.info(f"{self.label} {pk} transitioned: {from_state.value} → {to_state.value}")
        return rows

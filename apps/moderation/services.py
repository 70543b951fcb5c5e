"""
Review and publish services.

Each public operation validates its input and the observed status before
opening a transaction, then performs every write (status change, production
rows, reputation, audit entry) inside one ``transaction.atomic`` block.
Staged uploads are moved only after commit, by a Celery task, so a rolled
back operation never touches the file system.

Error propagation:
- typed errors (ValidationError, NotFoundError, StatusError, DuplicateUrlError,
  AlreadyPublishedError) reach the caller unchanged, also when raised inside
  the transaction (which is rolled back first);
- anything else rolls back and is re-raised as ServerError chained to the cause.
"""

import logging
import posixpath
from dataclasses import dataclass
from typing import Any, Dict, Optional

from django.db import transaction
from django.utils import timezone

from apps.core.exceptions import (
    AlreadyPublishedError,
    DuplicateUrlError,
    NotFoundError,
    PeoplesException,
    ServerError,
    StatusError,
    ValidationError,
)
from apps.core.middleware import celery_request_id_headers
from apps.encyclopedia.models import History, Person, Photo, Structure

from . import audit, reputation
from .markup import render_markup
from .models import ModerationLogEntry, PersonSuggestion, Submission
from .routing import route, stages_photo
from .slugs import person_slug, person_url
from .state_machine import (
    ReviewAction,
    ReviewStateMachine,
    SubmissionState,
    SuggestionState,
    SUBMISSION_REVIEW_TARGETS,
    SUGGESTION_REVIEW_TARGETS,
)

logger = logging.getLogger(__name__)

EPIGRAPH_FALLBACK_LENGTH = 200


@dataclass
class ReviewOutcome:
    """Result of a review: the refreshed object and the transition made."""
    instance: Any
    action: ReviewAction
    old_status: str
    new_status: str
    published_id: Optional[int] = None


def _clean_note(note: Optional[str]) -> str:
    return (note or '').strip()


def _require_note(action: ReviewAction, note: str):
    if action.requires_note and not note:
        raise ValidationError(
            "A note is required when requesting a revision",
            field='note',
        )


def _run_atomic(operation: str, target_id, func):
    """Run ``func`` in a transaction, translating untyped failures to ServerError."""
    try:
        with transaction.atomic():
            return func()
    except PeoplesException:
        raise
    except Exception as exc:
        logger.exception("%s failed for %s; rolled back", operation, target_id)
        raise ServerError(f"{operation} failed: {exc}", cause=exc) from exc


# =============================================================================
# Submission review
# =============================================================================

class SubmissionReviewer:
    """
    Moderator decision on a pending submission.

    On approve the section router writes the production row and the
    submitter earns a section-specific bonus; on reject a small penalty is
    applied; request_revision needs a note and leaves reputation alone.
    """

    def __init__(self):
        self.machine = ReviewStateMachine.for_submissions()

    def review(self, submission_id: int, action: str, note: Optional[str], moderator) -> ReviewOutcome:
        action = ReviewAction.from_string(action)
        note = _clean_note(note)

        try:
            submission = Submission.objects.select_related('section').get(pk=submission_id)
        except Submission.DoesNotExist:
            raise NotFoundError("Submission not found", details={'submission_id': submission_id})

        self.machine.ensure_status(
            submission, SubmissionState.PENDING,
            "Only submissions with pending status can be reviewed",
        )
        _require_note(action, note)

        target = SUBMISSION_REVIEW_TARGETS[action]

        def apply():
            self.machine.transition(
                submission.pk,
                SubmissionState.PENDING,
                target,
                moderator=moderator,
                moderator_note=note or None,
                reviewed_at=timezone.now(),
            )

            published_id = None
            if action is ReviewAction.APPROVE:
                published_id = route(submission)
                Submission.objects.filter(pk=submission.pk).update(published_id=published_id)
                if stages_photo(submission):
                    transaction.on_commit(lambda: schedule_photo_relocation(submission.person_id))
                reputation.adjust(submission.user_id, reputation.approve_points(submission.section_id))
            elif action is ReviewAction.REJECT:
                reputation.adjust(submission.user_id, reputation.REJECT_PENALTY)

            audit.record(
                moderator.pk,
                action.value,
                ModerationLogEntry.TARGET_SUBMISSION,
                submission.pk,
                note,
            )
            return published_id

        published_id = _run_atomic("Review", submission.pk, apply)

        submission.refresh_from_db()
        return ReviewOutcome(
            instance=submission,
            action=action,
            old_status=SubmissionState.PENDING.value,
            new_status=target.value,
            published_id=published_id,
        )


# =============================================================================
# Person suggestion review
# =============================================================================

PERSON_REVIEW_POINTS = {
    ReviewAction.APPROVE: reputation.PERSON_APPROVE_POINTS,
    ReviewAction.REJECT: reputation.REJECT_PENALTY,
    ReviewAction.REQUEST_REVISION: 0,
}


class PersonSuggestionReviewer:
    """Moderator decision on a pending person suggestion. Never writes a person."""

    def __init__(self):
        self.machine = ReviewStateMachine.for_suggestions()

    def review(self, suggestion_id: int, action: str, note: Optional[str], moderator) -> ReviewOutcome:
        action = ReviewAction.from_string(action)
        note = _clean_note(note)

        try:
            suggestion = PersonSuggestion.objects.get(pk=suggestion_id)
        except PersonSuggestion.DoesNotExist:
            raise NotFoundError("Person suggestion not found", details={'suggestion_id': suggestion_id})

        self.machine.ensure_status(
            suggestion, SuggestionState.PENDING,
            "Only pending suggestions can be reviewed",
        )
        _require_note(action, note)

        target = SUGGESTION_REVIEW_TARGETS[action]

        def apply():
            self.machine.transition(
                suggestion.pk,
                SuggestionState.PENDING,
                target,
                moderator=moderator,
                moderator_note=note or None,
                reviewed_at=timezone.now(),
            )
            reputation.adjust(suggestion.user_id, PERSON_REVIEW_POINTS[action])
            audit.record(
                moderator.pk,
                action.value,
                ModerationLogEntry.TARGET_PERSON_SUGGESTION,
                suggestion.pk,
                note,
            )

        _run_atomic("Person review", suggestion.pk, apply)

        suggestion.refresh_from_db()
        return ReviewOutcome(
            instance=suggestion,
            action=action,
            old_status=SuggestionState.PENDING.value,
            new_status=target.value,
        )


# =============================================================================
# Publishing
# =============================================================================

def person_epigraph(suggestion) -> str:
    """Title/rank, else the suggestion epigraph, else the start of the biography."""
    for candidate in (suggestion.title, suggestion.epigraph):
        if candidate and candidate.strip():
            return candidate.strip()
    return (suggestion.biography or '')[:EPIGRAPH_FALLBACK_LENGTH]


class PersonPublisher:
    """
    Creates the production person for an approved suggestion.

    Staged photos are not moved here: the person is written with no photo and
    the article photo as a staged Photo row. Once the transaction commits,
    ``relocate_published_photos`` moves the files and backfills both.
    """

    def __init__(self):
        self.machine = ReviewStateMachine.for_suggestions()

    def _load(self, suggestion_id: int, structure_id: int):
        try:
            suggestion = PersonSuggestion.objects.get(pk=suggestion_id)
        except PersonSuggestion.DoesNotExist:
            raise NotFoundError("Person suggestion not found", details={'suggestion_id': suggestion_id})

        if suggestion.published_person_id or suggestion.status == SuggestionState.PUBLISHED.value:
            raise AlreadyPublishedError(details={'person_id': suggestion.published_person_id})
        self.machine.ensure_status(
            suggestion, SuggestionState.APPROVED,
            "Only approved suggestions can be published",
        )

        try:
            structure = Structure.objects.get(pk=structure_id)
        except Structure.DoesNotExist:
            raise NotFoundError("Section not found", details={'kod_structure': structure_id})

        return suggestion, structure

    def _create_person(self, suggestion, structure, slug: str, url: str, epigraph: str) -> Person:
        full_name_engl = ''
        if suggestion.has_english_name:
            full_name_engl = f"{suggestion.name_engl.strip()} {suggestion.surname_engl.strip()}"

        return Person.objects.create(
            structure=structure,
            name_rus=suggestion.name_rus,
            surname_rus=suggestion.surname_rus,
            full_name_rus=suggestion.full_name_rus,
            name_engl=suggestion.name_engl,
            surname_engl=suggestion.surname_engl,
            full_name_engl=full_name_engl,
            epigraph=epigraph,
            date_in=suggestion.date_in,
            date_out=suggestion.date_out,
            gender=suggestion.gender or None,
            town_in=suggestion.town_in or None,
            cc2born=suggestion.cc2born or None,
            cc2dead=suggestion.cc2dead or None,
            cc2=suggestion.cc2 or None,
            photo=None,
            url=url,
            path=slug,
            is_approved=True,
        )

    def publish(self, suggestion_id: int, structure_id: int, custom_slug: Optional[str], admin) -> Dict[str, Any]:
        suggestion, structure = self._load(suggestion_id, structure_id)

        slug = person_slug(suggestion, custom_slug)
        url = person_url(structure, slug)
        if Person.objects.filter(url=url).exists():
            raise DuplicateUrlError(
                "A person with this URL already exists; preview the slug and choose another",
                field='custom_slug',
                details={'url': url, 'slug': slug},
            )

        def apply():
            epigraph = person_epigraph(suggestion)
            person = self._create_person(suggestion, structure, slug, url, epigraph)

            if suggestion.article_photo:
                Photo.objects.create(
                    person=person,
                    name_photo=posixpath.basename(suggestion.article_photo),
                    path_photo=posixpath.dirname(suggestion.article_photo),
                    description=suggestion.full_name_rus,
                    is_staged=True,
                )

            history = History.objects.create(
                person=person,
                content=render_markup(suggestion.biography),
                epigraph=epigraph,
                url_name=slug,
            )

            try:
                self.machine.transition(
                    suggestion.pk,
                    SuggestionState.APPROVED,
                    SuggestionState.PUBLISHED,
                    guard={'published_person__isnull': True},
                    published_person=person,
                    published_at=timezone.now(),
                )
            except StatusError:
                raise AlreadyPublishedError()

            reputation.adjust(suggestion.user_id, reputation.PUBLISH_POINTS)
            audit.record(
                admin.pk,
                'publish',
                ModerationLogEntry.TARGET_PERSON_SUGGESTION,
                suggestion.pk,
                f"Person created: id={person.pk}",
            )

            if suggestion.person_photo or suggestion.article_photo:
                transaction.on_commit(lambda: schedule_photo_relocation(person.pk, suggestion.pk))

            return person, history

        person, history = _run_atomic("Publish", suggestion.pk, apply)

        logger.info("Published suggestion %s as person %s at %s", suggestion.pk, person.pk, url)
        return {
            'person_id': person.pk,
            'history_id': history.pk,
            'suggestion_id': suggestion.pk,
            'slug': slug,
            'url': url,
            'old_status': SuggestionState.APPROVED.value,
            'new_status': SuggestionState.PUBLISHED.value,
        }


def schedule_photo_relocation(person_id: int, suggestion_id: Optional[int] = None):
    """Queue the move of the person's staged photos; runs after commit."""
    from .tasks import relocate_published_photos

    relocate_published_photos.apply_async(
        args=[person_id, suggestion_id],
        headers=celery_request_id_headers(),
    )

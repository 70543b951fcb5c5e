"""
Celery tasks that move staged photos into production storage after commit.
"""

import logging
import posixpath
from typing import Any, Dict, Optional

from celery import shared_task

from apps.encyclopedia.models import Person, Photo

from .models import PersonSuggestion
from .storage import FileMoveError, move_to_production

logger = logging.getLogger(__name__)


def relocate_photos(person: Person, suggestion: Optional[PersonSuggestion] = None) -> Dict[str, Any]:
    """
    Move the still-staged photos of ``person`` into production storage.

    Backfills ``Person.photo`` from the suggestion's person photo and
    un-stages every staged Photo row. Each file is handled on its own; a
    failure leaves that reference staged and is reported in ``failed``.
    """
    moved = []
    failed = []

    if not person.photo and suggestion is not None and suggestion.person_photo:
        try:
            path = move_to_production(suggestion.person_photo, person.pk, person_url=person.url)
        except FileMoveError as exc:
            logger.warning("Person photo of %s not relocated: %s", person.pk, exc)
            failed.append(suggestion.person_photo)
        else:
            Person.objects.filter(pk=person.pk, photo__isnull=True).update(photo=posixpath.basename(path))
            moved.append(path)

    for photo in person.photos.filter(is_staged=True):
        staged = posixpath.join(photo.path_photo, photo.name_photo)
        try:
            path = move_to_production(staged, person.pk, person_url=person.url)
        except FileMoveError as exc:
            logger.warning("Photo %s of person %s not relocated: %s", photo.pk, person.pk, exc)
            failed.append(staged)
            continue
        Photo.objects.filter(pk=photo.pk).update(
            name_photo=posixpath.basename(path),
            path_photo=posixpath.dirname(path),
            is_staged=False,
        )
        moved.append(path)

    return {'person_id': person.pk, 'moved': moved, 'failed': failed}


@shared_task(bind=True, max_retries=3)
def relocate_published_photos(self, person_id: int, suggestion_id: Optional[int] = None):
    try:
        person = Person.objects.get(pk=person_id)
        suggestion = None
        if suggestion_id is not None:
            suggestion = PersonSuggestion.objects.filter(pk=suggestion_id).first()

        result = relocate_photos(person, suggestion)
        if result['failed']:
            raise FileMoveError(f"{len(result['failed'])} photo(s) still staged for person {person_id}")

        logger.info("Relocated %d photo(s) for person %s", len(result['moved']), person_id)
        return result
    except Person.DoesNotExist:
        logger.error("Person %s not found for photo relocation", person_id)
        return {"error": "not_found", "person_id": person_id}
    except Exception as exc:
        logger.error("Photo relocation failed for person %s: %s", person_id, exc)
        raise self.retry(exc=exc, countdown=60 * (self.request.retries + 1))


@shared_task
def backfill_staged_photos(limit: int = 200):
    """
    Re-enqueue relocation for persons whose photos are still staged.

    Picks up published suggestions whose person has no photo yet, and any
    person with staged Photo rows (photo and news approvals, or moves that
    failed earlier).
    """
    targets: Dict[int, Optional[int]] = {}

    suggestions = (
        PersonSuggestion.objects
        .filter(
            status='published',
            published_person__isnull=False,
            published_person__photo__isnull=True,
        )
        .exclude(person_photo__isnull=True)
        .exclude(person_photo='')
        .values_list('published_person_id', 'id')[:limit]
    )
    for person_id, suggestion_id in suggestions:
        targets[person_id] = suggestion_id

    staged_person_ids = (
        Photo.objects
        .filter(is_staged=True, person__isnull=False)
        .values_list('person_id', flat=True)
        .distinct()[:limit]
    )
    for person_id in staged_person_ids:
        if person_id not in targets:
            targets[person_id] = (
                PersonSuggestion.objects
                .filter(published_person_id=person_id)
                .values_list('id', flat=True)
                .first()
            )

    for person_id, suggestion_id in targets.items():
        relocate_published_photos.delay(person_id, suggestion_id)

    logger.info("Queued photo relocation for %d person(s)", len(targets))
    return {"queued": len(targets)}

"""
Tests for photo relocation Celery tasks.

Tests cover:
- relocate_photos: person photo backfill, staged Photo rows, partial failure
- relocate_published_photos: missing person, failure surfaces for retry
- backfill_staged_photos: re-enqueues persons with staged photos
"""

from unittest.mock import patch

import pytest

from apps.encyclopedia.models import Person, Photo
from apps.moderation.storage import FileMoveError
from apps.moderation.tasks import backfill_staged_photos, relocate_photos, relocate_published_photos


@pytest.fixture
def published(suggestion_factory, person):
    suggestion = suggestion_factory(status='published', person_photo='in/face.jpg', published_person=person)
    return person, suggestion


def stage(photo_roots, *relative_paths):
    for relative in relative_paths:
        path = photo_roots.PHOTO_STAGING_ROOT / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b'x')


# ============================================================================
# relocate_photos
# ============================================================================

@pytest.mark.django_db
class TestRelocatePhotos:

    def test_moves_person_photo_and_staged_rows(self, photo_roots, published):
        person, suggestion = published
        stage(photo_roots, 'in/face.jpg', 'in/art.jpg')
        photo = Photo.objects.create(person=person, name_photo='art.jpg', path_photo='in', is_staged=True)

        result = relocate_photos(person, suggestion)

        assert result['failed'] == []
        assert sorted(result['moved']) == ['art/music/petrov/art.jpg', 'art/music/petrov/face.jpg']
        person.refresh_from_db()
        photo.refresh_from_db()
        assert person.photo == 'face.jpg'
        assert photo.is_staged is False
        assert photo.path_photo == 'art/music/petrov'

    def test_partial_failure_keeps_reference_staged(self, photo_roots, published):
        person, suggestion = published
        stage(photo_roots, 'in/face.jpg')
        photo = Photo.objects.create(person=person, name_photo='lost.jpg', path_photo='in', is_staged=True)

        result = relocate_photos(person, suggestion)

        assert result['moved'] == ['art/music/petrov/face.jpg']
        assert result['failed'] == ['in/lost.jpg']
        photo.refresh_from_db()
        assert photo.is_staged is True
        assert photo.path_photo == 'in'

    def test_existing_person_photo_not_overwritten(self, photo_roots, published):
        person, suggestion = published
        person.photo = 'old.jpg'
        person.save()

        result = relocate_photos(person, suggestion)

        assert result == {'person_id': person.pk, 'moved': [], 'failed': []}
        person.refresh_from_db()
        assert person.photo == 'old.jpg'

    def test_unstaged_rows_ignored(self, photo_roots, person):
        Photo.objects.create(person=person, name_photo='done.jpg', path_photo='art/music/petrov')

        assert relocate_photos(person)['moved'] == []


# ============================================================================
# Task entry points
# ============================================================================

@pytest.mark.django_db
class TestRelocatePublishedPhotosTask:

    def test_success(self, photo_roots, published):
        person, suggestion = published
        stage(photo_roots, 'in/face.jpg')

        result = relocate_published_photos(person.pk, suggestion.pk)

        assert result['moved'] == ['art/music/petrov/face.jpg']

    def test_missing_person(self):
        result = relocate_published_photos(424242)

        assert result == {'error': 'not_found', 'person_id': 424242}

    def test_failure_is_raised_for_retry(self, photo_roots, published):
        person, suggestion = published

        with pytest.raises(FileMoveError):
            relocate_published_photos(person.pk, suggestion.pk)


@pytest.mark.django_db
class TestBackfillStagedPhotos:

    def test_queues_persons_with_pending_photos(self, published, structure):
        person, suggestion = published
        other = Person.objects.create(structure=structure, url='https://www.peoples.ru/art/music/o/')
        Photo.objects.create(person=other, name_photo='x.jpg', path_photo='in', is_staged=True)

        with patch('apps.moderation.tasks.relocate_published_photos.delay') as delay:
            result = backfill_staged_photos()

        assert result == {'queued': 2}
        calls = {c.args for c in delay.call_args_list}
        assert calls == {(person.pk, suggestion.pk), (other.pk, None)}

    def test_nothing_to_do(self, person):
        with patch('apps.moderation.tasks.relocate_published_photos.delay') as delay:
            assert backfill_staged_photos() == {'queued': 0}
        delay.assert_not_called()

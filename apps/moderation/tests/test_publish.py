"""
Tests for publishing an approved person suggestion.

Tests cover:
- Person, biography and staged photo rows written together
- Custom slug handling and duplicate URL rejection
- Idempotence: a second publish never creates a second person
- Status and lookup preconditions
- Rollback on unexpected failures
- Post-commit photo relocation scheduling
"""

from unittest.mock import patch

import pytest

from apps.core.exceptions import (
    AlreadyPublishedError,
    DuplicateUrlError,
    NotFoundError,
    ServerError,
    StatusError,
)
from apps.encyclopedia.models import History, Person, Photo
from apps.moderation.models import ModerationLogEntry, PersonSuggestion
from apps.moderation.services import PersonPublisher, person_epigraph
from apps.moderation.slugs import person_url

from .conftest import reputation_of


def publish(suggestion, structure, admin, custom_slug=None):
    return PersonPublisher().publish(suggestion.pk, structure.pk, custom_slug, admin)


# ============================================================================
# Happy path
# ============================================================================

@pytest.mark.django_db
class TestPublish:

    def test_creates_person_and_biography(self, suggestion_factory, structure, site_admin, submitter):
        suggestion = suggestion_factory(title='Композитор', cc2='RU', gender='m')

        result = publish(suggestion, structure, site_admin)

        person = Person.objects.get(pk=result['person_id'])
        assert person.full_name_rus == 'Иван Иванов'
        assert person.structure_id == structure.pk
        assert person.url == 'https://www.peoples.ru/art/music/ivan-ivanov/'
        assert person.path == 'ivan-ivanov'
        assert person.epigraph == 'Композитор'
        assert person.cc2 == 'RU'
        assert person.photo is None
        assert person.is_approved is True

        history = History.objects.get(pk=result['history_id'])
        assert history.person_id == person.pk
        assert history.url_name == 'ivan-ivanov'
        assert history.content == '<h1>Детство</h1>\n<p>Родился в <strong>Москве</strong>.</p>'

        suggestion.refresh_from_db()
        assert suggestion.status == 'published'
        assert suggestion.published_person_id == person.pk
        assert suggestion.published_at is not None

        assert reputation_of(submitter) == 20 + 10
        entry = ModerationLogEntry.objects.get(target_id=suggestion.pk)
        assert entry.action == 'publish'
        assert entry.target_type == 'person_suggestion'
        assert entry.moderator_id == site_admin.pk
        assert entry.note == f"Person created: id={person.pk}"

        assert result == {
            'person_id': person.pk,
            'history_id': history.pk,
            'suggestion_id': suggestion.pk,
            'slug': 'ivan-ivanov',
            'url': person.url,
            'old_status': 'approved',
            'new_status': 'published',
        }

    def test_custom_slug(self, suggestion_factory, structure, site_admin):
        result = publish(suggestion_factory(), structure, site_admin, custom_slug='Custom Name')

        assert result['slug'] == 'custom-name'
        assert result['url'].endswith('/custom-name/')
        assert Person.objects.get(pk=result['person_id']).path == 'custom-name'

    def test_english_name_copied(self, suggestion_factory, structure, site_admin):
        suggestion = suggestion_factory(name_engl='Ivan', surname_engl='Ivanoff')

        result = publish(suggestion, structure, site_admin)

        person = Person.objects.get(pk=result['person_id'])
        assert person.full_name_engl == 'Ivan Ivanoff'
        assert result['slug'] == 'ivan-ivanoff'

    def test_article_photo_written_as_staged_row(self, suggestion_factory, structure, site_admin):
        suggestion = suggestion_factory(article_photo='2024/05/art.jpg')

        result = publish(suggestion, structure, site_admin)

        photo = Photo.objects.get(person_id=result['person_id'])
        assert photo.name_photo == 'art.jpg'
        assert photo.path_photo == '2024/05'
        assert photo.is_staged is True
        assert photo.description == 'Иван Иванов'


class TestPersonEpigraph:

    def test_title_first(self):
        suggestion = PersonSuggestion(title=' Генерал ', epigraph='Эпиграф', biography='Био')
        assert person_epigraph(suggestion) == 'Генерал'

    def test_epigraph_second(self):
        suggestion = PersonSuggestion(title='', epigraph='Эпиграф', biography='Био')
        assert person_epigraph(suggestion) == 'Эпиграф'

    def test_biography_prefix_last(self):
        suggestion = PersonSuggestion(title='', epigraph='  ', biography='х' * 500)
        assert person_epigraph(suggestion) == 'х' * 200


# ============================================================================
# Preconditions and idempotence
# ============================================================================

@pytest.mark.django_db
class TestPublishPreconditions:

    def test_second_publish_is_rejected(self, suggestion_factory, structure, site_admin, submitter):
        suggestion = suggestion_factory()
        publish(suggestion, structure, site_admin)

        with pytest.raises(AlreadyPublishedError):
            publish(suggestion, structure, site_admin, custom_slug='another')

        assert Person.objects.count() == 1
        assert History.objects.count() == 1
        assert reputation_of(submitter) == 20 + 10
        assert ModerationLogEntry.objects.filter(action='publish').count() == 1

    def test_published_status_without_person_is_already_published(
        self, suggestion_factory, structure, site_admin
    ):
        suggestion = suggestion_factory(status='published')

        with pytest.raises(AlreadyPublishedError):
            publish(suggestion, structure, site_admin)

    @pytest.mark.parametrize('status', ['pending', 'rejected', 'revision_requested'])
    def test_only_approved_can_be_published(self, suggestion_factory, structure, site_admin, status):
        suggestion = suggestion_factory(status=status)

        with pytest.raises(StatusError):
            publish(suggestion, structure, site_admin)

        assert Person.objects.count() == 0

    def test_duplicate_url_rejected_before_writes(self, suggestion_factory, structure, site_admin, submitter):
        Person.objects.create(
            structure=structure,
            full_name_rus='Иван Иванов',
            url=person_url(structure, 'ivan-ivanov'),
            path='ivan-ivanov',
        )
        suggestion = suggestion_factory()

        with pytest.raises(DuplicateUrlError) as exc_info:
            publish(suggestion, structure, site_admin)

        assert exc_info.value.field == 'custom_slug'
        assert Person.objects.count() == 1
        assert History.objects.count() == 0
        suggestion.refresh_from_db()
        assert suggestion.status == 'approved'
        assert reputation_of(submitter) == 20
        assert ModerationLogEntry.objects.count() == 0

    def test_duplicate_url_avoided_with_custom_slug(self, suggestion_factory, structure, site_admin):
        Person.objects.create(structure=structure, url=person_url(structure, 'ivan-ivanov'))

        result = publish(suggestion_factory(), structure, site_admin, custom_slug='ivan-ivanov-2')

        assert result['url'].endswith('/ivan-ivanov-2/')

    def test_missing_structure(self, suggestion_factory, site_admin):
        suggestion = suggestion_factory()

        with pytest.raises(NotFoundError):
            PersonPublisher().publish(suggestion.pk, 9999, None, site_admin)

        suggestion.refresh_from_db()
        assert suggestion.status == 'approved'

    def test_missing_suggestion(self, structure, site_admin):
        with pytest.raises(NotFoundError):
            PersonPublisher().publish(9999, structure.pk, None, site_admin)


# ============================================================================
# Atomicity
# ============================================================================

@pytest.mark.django_db
class TestPublishAtomicity:

    def test_failure_after_person_insert_rolls_back(self, suggestion_factory, structure, site_admin, submitter):
        suggestion = suggestion_factory(article_photo='a.jpg')

        with patch('apps.moderation.services.History.objects.create', side_effect=RuntimeError('boom')):
            with pytest.raises(ServerError):
                publish(suggestion, structure, site_admin)

        assert Person.objects.count() == 0
        assert Photo.objects.count() == 0
        suggestion.refresh_from_db()
        assert suggestion.status == 'approved'
        assert suggestion.published_person_id is None
        assert reputation_of(submitter) == 20
        assert ModerationLogEntry.objects.count() == 0

    def test_concurrent_publish_loses_cleanly(self, suggestion_factory, structure, site_admin):
        suggestion = suggestion_factory()
        original_filter = PersonSuggestion.objects.filter

        def racing_filter(*args, **kwargs):
            if 'published_person__isnull' in kwargs:
                PersonSuggestion.objects.all().update(status='published')
            return original_filter(*args, **kwargs)

        with patch.object(PersonSuggestion.objects, 'filter', side_effect=racing_filter):
            with pytest.raises(AlreadyPublishedError):
                publish(suggestion, structure, site_admin)

        assert Person.objects.count() == 0
        assert History.objects.count() == 0


# ============================================================================
# Photo relocation scheduling
# ============================================================================

@pytest.mark.django_db
class TestPhotoRelocationScheduling:

    def test_no_photos_schedules_nothing(
        self, suggestion_factory, structure, site_admin, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks() as callbacks:
            publish(suggestion_factory(), structure, site_admin)

        assert callbacks == []

    def test_relocation_queued_after_commit(
        self, suggestion_factory, structure, site_admin, django_capture_on_commit_callbacks
    ):
        suggestion = suggestion_factory(person_photo='face.jpg')

        with django_capture_on_commit_callbacks() as callbacks:
            result = publish(suggestion, structure, site_admin)

        assert len(callbacks) == 1
        with patch('apps.moderation.tasks.relocate_published_photos.apply_async') as apply_async:
            callbacks[0]()

        apply_async.assert_called_once()
        assert apply_async.call_args.kwargs['args'] == [result['person_id'], suggestion.pk]

    def test_rolled_back_publish_schedules_nothing(
        self, suggestion_factory, structure, site_admin, django_capture_on_commit_callbacks
    ):
        suggestion = suggestion_factory(person_photo='face.jpg')

        with django_capture_on_commit_callbacks() as callbacks:
            with patch('apps.moderation.services.audit.record', side_effect=RuntimeError('down')):
                with pytest.raises(ServerError):
                    publish(suggestion, structure, site_admin)

        assert callbacks == []

    def test_relocation_moves_files(
        self, suggestion_factory, structure, site_admin, photo_roots, django_capture_on_commit_callbacks
    ):
        staging = photo_roots.PHOTO_STAGING_ROOT
        (staging / 'p').mkdir()
        (staging / 'p' / 'face.jpg').write_bytes(b'face')
        (staging / 'p' / 'art.jpg').write_bytes(b'art')
        suggestion = suggestion_factory(person_photo='p/face.jpg', article_photo='p/art.jpg')

        with django_capture_on_commit_callbacks(execute=True):
            result = publish(suggestion, structure, site_admin)

        person = Person.objects.get(pk=result['person_id'])
        assert person.photo == 'face.jpg'
        photo = Photo.objects.get(person=person)
        assert photo.is_staged is False
        assert photo.path_photo == 'art/music/ivan-ivanov'
        production = photo_roots.PHOTO_PRODUCTION_ROOT / 'art/music/ivan-ivanov'
        assert (production / 'face.jpg').exists()
        assert (production / 'art.jpg').exists()

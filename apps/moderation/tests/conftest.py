"""
Shared fixtures for moderation tests.
"""

import pytest
from rest_framework.test import APIClient

from apps.core.models import UserProfile
from apps.encyclopedia.models import Person, Section, SectionId, Structure
from apps.moderation.models import PersonSuggestion, Submission


def make_user(django_user_model, username, role=UserProfile.ROLE_USER, reputation=0):
    user = django_user_model.objects.create_user(username=username, password='pass')
    UserProfile.objects.filter(user=user).update(role=role, reputation=reputation)
    return django_user_model.objects.get(pk=user.pk)


def reputation_of(user):
    return UserProfile.objects.get(user=user).reputation


@pytest.fixture
def submitter(db, django_user_model):
    return make_user(django_user_model, 'author', reputation=20)


@pytest.fixture
def moderator(db, django_user_model):
    return make_user(django_user_model, 'moder', role=UserProfile.ROLE_MODERATOR)


@pytest.fixture
def site_admin(db, django_user_model):
    return make_user(django_user_model, 'chief', role=UserProfile.ROLE_ADMIN)


@pytest.fixture
def sections(db):
    """Every bespoke section plus one generic and one misconfigured section."""
    tables = {
        SectionId.BIOGRAPHY: 'histories',
        SectionId.PHOTO: 'photo',
        SectionId.NEWS: 'news',
        SectionId.FORUM: 'peoples_forum',
        SectionId.SONG: 'songs',
        SectionId.FACT: 'Facts',
        SectionId.POEM: 'poetry',
    }
    created = {
        section_id: Section.objects.create(id=section_id, name=section_id.label, table_name=table)
        for section_id, table in tables.items()
    }
    created['aphorisms'] = Section.objects.create(id=30, name='Афоризмы', table_name='aphorisms')
    created['missing'] = Section.objects.create(id=31, name='Пропавшая', table_name='no_such_table')
    return created


@pytest.fixture
def structure(db):
    return Structure.objects.create(url='art/music', name_url='Музыканты >')


@pytest.fixture
def person(db, structure):
    return Person.objects.create(
        structure=structure,
        name_rus='Пётр',
        surname_rus='Петров',
        full_name_rus='Пётр Петров',
        url='https://www.peoples.ru/art/music/petrov/',
        path='petrov',
        is_approved=True,
    )


@pytest.fixture
def submission_factory(submitter, sections):
    def create(section_id=SectionId.BIOGRAPHY, status='pending', **kwargs):
        defaults = {
            'user': submitter,
            'section_id': int(section_id),
            'title': 'Моя История',
            'content': '<p>Текст</p>',
            'epigraph': 'Эпиграф',
            'status': status,
        }
        defaults.update(kwargs)
        return Submission.objects.create(**defaults)
    return create


@pytest.fixture
def suggestion_factory(submitter):
    def create(status='approved', **kwargs):
        defaults = {
            'user': submitter,
            'name_rus': 'Иван',
            'surname_rus': 'Иванов',
            'biography': '# Детство\n\nРодился в **Москве**.',
            'status': status,
        }
        defaults.update(kwargs)
        return PersonSuggestion.objects.create(**defaults)
    return create


@pytest.fixture
def photo_roots(settings, tmp_path):
    """Point staging and production photo roots at a temporary directory."""
    settings.PHOTO_STAGING_ROOT = tmp_path / 'uploads'
    settings.PHOTO_PRODUCTION_ROOT = tmp_path / 'photo'
    settings.PHOTO_STAGING_ROOT.mkdir()
    settings.PHOTO_PRODUCTION_ROOT.mkdir()
    return settings


@pytest.fixture
def api_client():
    return APIClient()

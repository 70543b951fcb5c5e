"""
Section router: turns an approved submission into a production row.

Each section with its own table shape has a dedicated insert function in
SECTION_HANDLERS. Every other section goes through GenericSink, which only
writes to tables of the encyclopedia app whose shape it can verify.

All inserts run inside the caller's review transaction and touch only the
database. Uploaded photos are recorded as staged Photo rows; the caller
moves the files once the transaction has committed.
"""

import logging
import posixpath
from typing import Callable, Dict, Optional, Type

from django.apps import apps as django_apps
from django.core.exceptions import FieldDoesNotExist, FieldError
from django.db import DatabaseError, models, transaction
from django.utils import timezone

from apps.encyclopedia.models import (
    Fact,
    ForumPost,
    History,
    News,
    Photo,
    Poem,
    SectionId,
    Song,
)

from .markup import wrap_paragraphs
from .slugs import article_slug

logger = logging.getLogger(__name__)

PHOTO_SECTIONS = frozenset({SectionId.PHOTO, SectionId.NEWS})


def stages_photo(submission) -> bool:
    """True when approving ``submission`` leaves an upload to relocate after commit."""
    return bool(
        submission.photo_path
        and submission.person_id
        and submission.section_id in PHOTO_SECTIONS
    )


# =============================================================================
# Section-specific inserts
# =============================================================================

def insert_biography(submission) -> int:
    history = History.objects.create(
        person_id=submission.person_id,
        content=submission.content,
        epigraph=submission.epigraph,
        url_name=article_slug(submission.title),
    )
    return history.pk


def insert_photo(submission) -> int:
    path = submission.photo_path or ''
    photo = Photo.objects.create(
        person_id=submission.person_id,
        name_photo=posixpath.basename(path),
        path_photo=posixpath.dirname(path),
        is_staged=bool(path),
    )
    return photo.pk


def insert_news(submission) -> int:
    """
    News item with paragraph-wrapped body and a ``<slug>.shtml`` path.

    An uploaded photo is linked through a staged Photo row. Relocation keeps
    the file name, so ``name_photo`` is final from the start.
    """
    staged = submission.photo_path if submission.person_id else None
    name_photo = posixpath.basename(staged) if staged else None

    news = News.objects.create(
        person_id=submission.person_id,
        title=submission.title,
        title_article=submission.title,
        description=submission.epigraph,
        article=wrap_paragraphs(submission.content),
        path=article_slug(submission.title) + '.shtml',
        name_photo=name_photo,
        is_approved=True,
        user_id=submission.user_id,
    )

    if staged:
        Photo.objects.create(
            person_id=submission.person_id,
            news=news,
            name_photo=name_photo,
            path_photo=posixpath.dirname(staged),
            description=submission.title,
            is_staged=True,
        )
    return news.pk


def insert_forum_post(submission) -> int:
    post = ForumPost.objects.create(
        person_id=submission.person_id,
        title=submission.title,
        message=submission.content,
        user_id=submission.user_id,
    )
    return post.pk


def insert_song(submission) -> int:
    song = Song.objects.create(
        person_id=submission.person_id,
        name=submission.title,
        text=submission.content,
        is_approved=True,
    )
    return song.pk


def insert_fact(submission) -> int:
    fact = Fact.objects.create(
        person_id=submission.person_id,
        title=submission.title,
        text=submission.content,
        is_approved=True,
    )
    return fact.pk


def insert_poem(submission) -> int:
    poem = Poem.objects.create(
        person_id=submission.person_id,
        name=submission.title,
        text=submission.content,
        is_approved=True,
    )
    return poem.pk


SECTION_HANDLERS: Dict[int, Callable] = {
    SectionId.BIOGRAPHY: insert_biography,
    SectionId.PHOTO: insert_photo,
    SectionId.NEWS: insert_news,
    SectionId.FORUM: insert_forum_post,
    SectionId.SONG: insert_song,
    SectionId.FACT: insert_fact,
    SectionId.POEM: insert_poem,
}


# =============================================================================
# Generic sink
# =============================================================================

class GenericSink:
    """
    Insert ``(person, title, content, date_registration)`` into a section table.

    The table named by the section configuration is looked up among the
    encyclopedia models (never interpolated into SQL). Unknown tables,
    mismatched shapes and database errors yield no production id.
    """

    REQUIRED_FIELDS = ('title', 'content', 'date_registration')

    def __init__(self, section):
        self.section = section

    @staticmethod
    def allowed_models() -> Dict[str, Type[models.Model]]:
        return {
            model._meta.db_table: model
            for model in django_apps.get_app_config('encyclopedia').get_models()
        }

    def resolve_model(self) -> Optional[Type[models.Model]]:
        table_name = (self.section.table_name or '').strip()
        if not table_name:
            return None
        return self.allowed_models().get(table_name)

    def person_field(self, model: Type[models.Model]) -> Optional[models.Field]:
        column = self.section.fk_column or 'KodPersons'
        for model_field in model._meta.concrete_fields:
            if model_field.column == column:
                return model_field
        return None

    def insert(self, submission) -> Optional[int]:
        model = self.resolve_model()
        if model is None:
            logger.warning(
                "Section %s has no usable production table (%r); submission %s approved without a record",
                self.section.pk, self.section.table_name, submission.pk,
            )
            return None

        fk = self.person_field(model)
        try:
            for name in self.REQUIRED_FIELDS:
                model._meta.get_field(name)
        except FieldDoesNotExist:
            fk = None
        if fk is None:
            logger.warning(
                "Table %s does not match the generic section shape; submission %s approved without a record",
                model._meta.db_table, submission.pk,
            )
            return None

        values = {
            fk.attname: submission.person_id,
            'title': submission.title,
            'content': submission.content,
            'date_registration': timezone.now(),
        }
        try:
            with transaction.atomic():
                row = model.objects.create(**values)
        except (TypeError, FieldError, DatabaseError) as exc:
            logger.warning(
                "Generic insert into %s failed for submission %s: %s",
                model._meta.db_table, submission.pk, exc,
            )
            return None
        return row.pk


def route(submission) -> Optional[int]:
    """Create the production row for an approved submission; returns its id or None."""
    handler = SECTION_HANDLERS.get(submission.section_id)
    if handler is not None:
        return handler(submission)
    return GenericSink(submission.section).insert(submission)

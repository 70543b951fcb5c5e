"""
Moderation models: user submissions, person suggestions and the audit log.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone

from apps.core.fields import LegacyCharField, LegacyTextField
from apps.core.models import BaseModel


class Submission(BaseModel):
    """
    A user-authored piece of content awaiting review.

    ``section`` decides which production table an approval writes to;
    ``published_id`` is the id of that production row.
    """

    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('pending', 'Pending Review'),
        ('approved', 'Approved'),
        ('rejected', 'Rejected'),
        ('revision_requested', 'Revision Requested'),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='submissions',
        verbose_name='Submitter',
    )
    section = models.ForeignKey(
        'encyclopedia.Section',
        on_delete=models.PROTECT,
        related_name='submissions',
    )
    person = models.ForeignKey(
        'encyclopedia.Person',
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name='submissions',
        db_column='KodPersons',
        help_text='Person the content is about'
    )

    title = LegacyCharField(max_length=500, blank=True)
    content = LegacyTextField(blank=True)
    epigraph = LegacyTextField(blank=True, null=True)
    source_url = models.URLField(max_length=1000, blank=True, null=True)
    photo_path = models.CharField(
        max_length=500,
        blank=True,
        null=True,
        help_text='Staged upload path, relative to the staging root'
    )

    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default='draft',
        db_index=True,
    )
    moderator = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name='moderated_submissions',
    )
    moderator_note = LegacyTextField(blank=True, null=True)
    published_id = models.IntegerField(
        null=True,
        blank=True,
        help_text='Id of the production row created on approval'
    )
    reviewed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'user_submissions'
        ordering = ['created_at']
        indexes = [
            models.Index(fields=['status', 'created_at']),
        ]

    def __str__(self):
        return f"Submission {self.pk}: {self.title[:50]}"


class PersonSuggestion(BaseModel):
    """
    A proposed new person entry.

    A moderator approves it; an admin separately publishes it, which creates
    the production person.
    """

    STATUS_CHOICES = [
        ('pending', 'Pending Review'),
        ('approved', 'Approved'),
        ('rejected', 'Rejected'),
        ('revision_requested', 'Revision Requested'),
        ('published', 'Published'),
    ]

    GENDER_CHOICES = [
        ('m', 'Male'),
        ('f', 'Female'),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='person_suggestions',
        verbose_name='Submitter',
    )

    name_rus = LegacyCharField(max_length=100, blank=True, db_column='NameRus')
    surname_rus = LegacyCharField(max_length=100, blank=True, db_column='SurNameRus')
    name_engl = LegacyCharField(max_length=100, blank=True, db_column='NameEngl')
    surname_engl = LegacyCharField(max_length=100, blank=True, db_column='SurNameEngl')

    biography = LegacyTextField(blank=True, help_text='Lightweight markup')
    title = LegacyCharField(max_length=255, blank=True, help_text='Title or rank')
    epigraph = LegacyTextField(blank=True)

    date_in = models.DateField(null=True, blank=True, db_column='DateIn')
    date_out = models.DateField(null=True, blank=True, db_column='DateOut')
    town_in = LegacyCharField(max_length=255, blank=True, db_column='TownIn')
    cc2born = models.CharField(max_length=2, blank=True)
    cc2dead = models.CharField(max_length=2, blank=True)
    cc2 = models.CharField(max_length=2, blank=True)
    gender = models.CharField(max_length=1, choices=GENDER_CHOICES, blank=True)

    person_photo = models.CharField(max_length=500, blank=True, null=True)
    article_photo = models.CharField(max_length=500, blank=True, null=True)

    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default='pending',
        db_index=True,
    )
    moderator = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name='moderated_person_suggestions',
    )
    moderator_note = LegacyTextField(blank=True, null=True)
    reviewed_at = models.DateTimeField(null=True, blank=True)

    published_person = models.OneToOneField(
        'encyclopedia.Person',
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name='suggestion',
    )
    published_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'user_person_suggestions'
        ordering = ['created_at']

    def __str__(self):
        return f"PersonSuggestion {self.pk}: {self.full_name_rus}"

    @property
    def full_name_rus(self):
        return f"{self.name_rus} {self.surname_rus}".strip()

    @property
    def has_english_name(self):
        return bool(self.name_engl.strip() and self.surname_engl.strip())


class AppendOnlyError(Exception):
    """Raised on any attempt to modify or delete an audit log entry."""


class ModerationLogEntry(models.Model):
    """
    Append-only record of a moderation decision.

    One row per committed state transition; rows are never updated or
    deleted.
    """

    TARGET_SUBMISSION = 'submission'
    TARGET_PERSON_SUGGESTION = 'person_suggestion'

    moderator = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        on_delete=models.SET_NULL,
        related_name='moderation_log',
    )
    action = models.CharField(max_length=32, db_index=True)
    target_type = models.CharField(max_length=32)
    target_id = models.IntegerField()
    note = LegacyTextField(blank=True, null=True)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        db_table = 'users_moderation_log'
        ordering = ['-created_at']
        verbose_name_plural = 'moderation log entries'
        indexes = [
            models.Index(fields=['target_type', 'target_id']),
        ]

    def __str__(self):
        return f"{self.action} {self.target_type}#{self.target_id}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise AppendOnlyError("Moderation log entries cannot be modified")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise AppendOnlyError("Moderation log entries cannot be deleted")

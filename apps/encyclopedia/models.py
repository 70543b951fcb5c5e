"""
Production models for the encyclopedia.

These tables are the public site's data. Rows are created only by the
moderation pipeline (apps.moderation), never directly by users. Table and
column names match the legacy schema.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone

from apps.core.fields import LegacyCharField, LegacyTextField


class SectionId(models.IntegerChoices):
    """Sections with a dedicated production insert procedure."""
    BIOGRAPHY = 2, 'Biography'
    PHOTO = 3, 'Photo'
    NEWS = 4, 'News'
    FORUM = 5, 'Forum'
    SONG = 7, 'Song'
    FACT = 8, 'Fact'
    POEM = 19, 'Poem'


class Section(models.Model):
    """
    Content section configuration.

    Read-only from the pipeline's point of view: maps a section id to the
    production table that approved content of that section lands in.
    """

    id = models.IntegerField(primary_key=True)
    name = LegacyCharField(max_length=100, db_column='nameRus')
    name_eng = models.CharField(max_length=100, blank=True, db_column='nameEng')
    table_name = models.CharField(
        max_length=64,
        blank=True,
        help_text='Production table receiving approved content of this section'
    )
    fk_column = models.CharField(
        max_length=64,
        blank=True,
        default='KodPersons',
        help_text='Column in the production table referencing the person'
    )
    is_active = models.BooleanField(default=True, db_column='working')

    class Meta:
        db_table = 'peoples_section'
        ordering = ['id']

    def __str__(self):
        return f"{self.id}: {self.name}"


class Structure(models.Model):
    """A node of the site catalogue; persons are published under one."""

    id = models.AutoField(primary_key=True, db_column='Structure_id')
    url = models.CharField(max_length=255, db_column='URL', help_text='Path such as art/music')
    name_url = LegacyCharField(max_length=255, blank=True, db_column='NameURL')

    class Meta:
        db_table = 'structure'
        ordering = ['id']

    def __str__(self):
        return self.display_name or self.url

    @property
    def display_name(self):
        return (self.name_url or '').strip(' >')


class Person(models.Model):
    """An encyclopedia person entry."""

    id = models.AutoField(primary_key=True, db_column='Persons_id')
    structure = models.ForeignKey(
        Structure,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name='persons',
        db_column='KodStructure',
    )

    name_rus = LegacyCharField(max_length=100, blank=True, db_column='NameRus')
    surname_rus = LegacyCharField(max_length=100, blank=True, db_column='SurNameRus')
    full_name_rus = LegacyCharField(max_length=255, blank=True, db_column='FullNameRus')
    name_engl = LegacyCharField(max_length=100, blank=True, db_column='NameEngl')
    surname_engl = LegacyCharField(max_length=100, blank=True, db_column='SurNameEngl')
    full_name_engl = LegacyCharField(max_length=255, blank=True, db_column='FullNameEngl')

    epigraph = LegacyTextField(blank=True, db_column='Epigraph')
    date_in = models.DateField(null=True, blank=True, db_column='DateIn')
    date_out = models.DateField(null=True, blank=True, db_column='DateOut')
    gender = models.CharField(max_length=1, blank=True, null=True)
    town_in = LegacyCharField(max_length=255, blank=True, null=True, db_column='TownIn')
    cc2born = models.CharField(max_length=2, blank=True, null=True)
    cc2dead = models.CharField(max_length=2, blank=True, null=True)
    cc2 = models.CharField(max_length=2, blank=True, null=True)

    photo = models.CharField(max_length=255, blank=True, null=True, db_column='NamePhoto')
    url = models.CharField(max_length=500, blank=True, db_index=True, db_column='AllUrlInSity')
    path = models.CharField(max_length=255, blank=True)
    is_approved = models.BooleanField(default=False, db_column='approve')
    date_registration = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'persons'
        ordering = ['id']

    def __str__(self):
        return self.full_name_rus or self.full_name_engl or f"Person {self.pk}"


class History(models.Model):
    """Biography article of a person."""

    person = models.ForeignKey(
        Person,
        null=True,
        on_delete=models.CASCADE,
        related_name='histories',
        db_column='KodPersons',
    )
    content = LegacyTextField(blank=True, db_column='Content')
    epigraph = LegacyTextField(blank=True, null=True, db_column='Epigraph')
    url_name = models.CharField(max_length=255, blank=True, null=True, db_column='NameURLArticle')
    date_pub = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'histories'
        verbose_name_plural = 'histories'


class News(models.Model):

    person = models.ForeignKey(
        Person, null=True, on_delete=models.CASCADE, related_name='news', db_column='KodPersons'
    )
    title = LegacyCharField(max_length=500, blank=True)
    title_article = LegacyCharField(max_length=500, blank=True)
    description = LegacyTextField(blank=True, null=True)
    article = LegacyTextField(blank=True)
    path = models.CharField(max_length=255, blank=True)
    name_photo = models.CharField(max_length=255, blank=True, null=True, db_column='NamePhoto')
    is_approved = models.BooleanField(default=False, db_column='approve')
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, on_delete=models.SET_NULL, db_column='user_id'
    )
    date = models.DateTimeField(default=timezone.now)
    date_registration = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'news'
        verbose_name_plural = 'news'


class Photo(models.Model):
    """
    A photo attached to a person (and optionally to a news item).

    ``is_staged`` rows still point into the upload staging area; the photo
    relocation task moves the file and clears the flag.
    """

    person = models.ForeignKey(
        Person, null=True, on_delete=models.CASCADE, related_name='photos', db_column='KodPersons'
    )
    news = models.ForeignKey(
        News, null=True, blank=True, on_delete=models.SET_NULL, related_name='photos', db_column='KodNews'
    )
    name_photo = models.CharField(max_length=255, blank=True, db_column='NamePhoto')
    path_photo = models.CharField(max_length=500, blank=True)
    description = LegacyTextField(blank=True, null=True, db_column='DescrPhoto')
    is_staged = models.BooleanField(default=False)
    date_registration = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'photo'


class ForumPost(models.Model):

    person = models.ForeignKey(
        Person, null=True, on_delete=models.CASCADE, related_name='forum_posts', db_column='KodPersons'
    )
    title = LegacyCharField(max_length=500, blank=True, db_column='Title')
    message = LegacyTextField(blank=True, db_column='Message')
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, on_delete=models.SET_NULL, db_column='id_user'
    )
    date_registration = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'peoples_forum'


class Song(models.Model):

    person = models.ForeignKey(
        Person, null=True, on_delete=models.CASCADE, related_name='songs', db_column='KodPersons'
    )
    name = LegacyCharField(max_length=500, blank=True, db_column='NameSong')
    text = LegacyTextField(blank=True, db_column='song')
    is_approved = models.BooleanField(default=False, db_column='approve')
    date_registration = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'songs'


class Fact(models.Model):

    person = models.ForeignKey(
        Person, null=True, on_delete=models.CASCADE, related_name='facts', db_column='KodPersons'
    )
    title = LegacyCharField(max_length=500, blank=True, db_column='Title')
    text = LegacyTextField(blank=True, db_column='Facts_txt')
    is_approved = models.BooleanField(default=False, db_column='approve')
    date_registration = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'Facts'


class Poem(models.Model):

    person = models.ForeignKey(
        Person, null=True, on_delete=models.CASCADE, related_name='poems', db_column='KodPersons'
    )
    name = LegacyCharField(max_length=500, blank=True, db_column='NamePoetry')
    text = LegacyTextField(blank=True, db_column='Poetry')
    is_approved = models.BooleanField(default=False, db_column='approve')
    date_registration = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'poetry'


class Aphorism(models.Model):
    """Plain (person, title, content) table served by the generic section insert."""

    person = models.ForeignKey(
        Person, null=True, on_delete=models.CASCADE, related_name='aphorisms', db_column='KodPersons'
    )
    title = LegacyCharField(max_length=500, blank=True)
    content = LegacyTextField(blank=True)
    date_registration = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'aphorisms'

"""
Model fields for columns stored in the legacy single-byte encoding.
"""

from django.db import models

from .encoding import from_db, to_db


class LegacyTextMixin:
    """Route every read and write through the legacy encoding bridge."""

    def get_prep_value(self, value):
        value = super().get_prep_value(value)
        if isinstance(value, str):
            return to_db(value)
        return value

    def from_db_value(self, value, expression, connection):
        return from_db(value)


class LegacyCharField(LegacyTextMixin, models.CharField):
    pass


class LegacyTextField(LegacyTextMixin, models.TextField):
    pass

"""
Legacy encoding bridge.

The production database stores text in a single-byte Cyrillic encoding
(cp1251 by default) while the application works with Python ``str``.
Conversion happens only at the persistence edge: the legacy model fields
in ``apps.core.fields`` call ``to_db`` before writing and ``from_db`` after
reading. Nothing else in the code base should need these helpers.
"""

import logging
import unicodedata
from typing import Optional, Union

from django.conf import settings

logger = logging.getLogger(__name__)

DEFAULT_LEGACY_ENCODING = 'cp1251'


def legacy_encoding() -> str:
    return getattr(settings, 'LEGACY_DB_ENCODING', DEFAULT_LEGACY_ENCODING)


def _representable(char: str, encoding: str) -> bool:
    try:
        char.encode(encoding)
    except UnicodeEncodeError:
        return False
    return True


def _transliterate_char(char: str, encoding: str) -> str:
    # Decompose accented letters and keep whatever base survives
    decomposed = unicodedata.normalize('NFKD', char)
    kept = ''.join(
        c for c in decomposed
        if not unicodedata.combining(c) and _representable(c, encoding)
    )
    return kept


def to_db(text: Optional[str]) -> Optional[str]:
    """
    Restrict ``text`` to what the legacy encoding can store.

    Unrepresentable characters are transliterated where a plain base letter
    exists and dropped otherwise.
    """
    if text is None or text == '':
        return text

    encoding = legacy_encoding()
    try:
        text.encode(encoding)
        return text
    except UnicodeEncodeError:
        pass

    converted = ''.join(
        char if _representable(char, encoding) else _transliterate_char(char, encoding)
        for char in text
    )
    logger.debug("Text narrowed to %s: %d -> %d chars", encoding, len(text), len(converted))
    return converted


def from_db(value: Union[str, bytes, memoryview, None]) -> Optional[str]:
    """Decode a raw legacy value; text values pass through unchanged."""
    if value is None:
        return None
    if isinstance(value, memoryview):
        value = value.tobytes()
    if isinstance(value, bytes):
        return value.decode(legacy_encoding(), errors='ignore')
    return value


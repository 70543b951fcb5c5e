"""
File-move service: relocate staged uploads into a person's photo directory.
"""

import logging
import re
import shutil
from pathlib import Path
from typing import Optional

from django.conf import settings

logger = logging.getLogger(__name__)

VARIANT_PREFIXES = ('thumb_', 'card_')

_SCHEME_HOST_RE = re.compile(r'^https?://[^/]+/')


class FileMoveError(Exception):
    """A staged file could not be moved to production storage."""


def person_directory(person_url: str) -> str:
    """'https://www.peoples.ru/art/music/ivanov/' -> 'art/music/ivanov'"""
    return _SCHEME_HOST_RE.sub('', person_url or '').strip('/')


def _staging_root() -> Path:
    return Path(settings.PHOTO_STAGING_ROOT)


def _production_root() -> Path:
    return Path(settings.PHOTO_PRODUCTION_ROOT)


def resolve_staged(staged_path: str) -> Path:
    """Absolute path of a staged upload; refuses paths escaping the staging root."""
    root = _staging_root().resolve()
    candidate = (root / staged_path.lstrip('/')).resolve()
    if root != candidate and root not in candidate.parents:
        raise FileMoveError(f"Staged path outside staging area: {staged_path}")
    return candidate


def move_to_production(staged_path: str, person_id: int, person_url: Optional[str] = None) -> str:
    """
    Move a staged photo and its thumb_/card_ variants under the person's directory.

    ``person_url`` skips the database lookup when the caller already has it.
    Returns the path relative to PHOTO_PRODUCTION_ROOT, e.g.
    ``art/music/ivanov/1700000000_ab12.jpg``. Raises FileMoveError.
    """
    if not staged_path:
        raise FileMoveError("No staged file given")

    if person_url is None:
        from apps.encyclopedia.models import Person
        person_url = (
            Person.objects.filter(pk=person_id).values_list('url', flat=True).first()
        )

    directory = person_directory(person_url)
    if not directory:
        raise FileMoveError(f"Person not found or has no URL path: {person_id}")

    source = resolve_staged(staged_path)
    if not source.is_file():
        raise FileMoveError(f"Staged file not found: {source}")

    target_dir = _production_root() / directory
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        shutil.move(str(source), str(target_dir / source.name))
    except OSError as exc:
        raise FileMoveError(f"Failed to move {source} to {target_dir}: {exc}") from exc

    for prefix in VARIANT_PREFIXES:
        variant = source.with_name(prefix + source.name)
        if not variant.is_file():
            continue
        try:
            shutil.move(str(variant), str(target_dir / variant.name))
        except OSError as exc:
            logger.warning("Could not move photo variant %s: %s", variant, exc)

    logger.info("Moved %s to %s", staged_path, target_dir)
    return f"{directory}/{source.name}"

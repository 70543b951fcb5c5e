"""
Slug engine and person URL conflict resolver.

Slugs are lower-case Latin identifiers built from Russian or English text:
    slugify("Иванов Иван")  -> "ivanov-ivan"
    article_slug("Моя История") -> "moya-istoriya"

The resolver is read-only: it reports near-duplicate person URLs and proposes
a free numeric suffix, but never reserves anything. Uniqueness is re-checked
at publish time.
"""

import logging
import re
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from django.conf import settings

from apps.core.exceptions import NotFoundError

logger = logging.getLogger(__name__)


TRANSLIT_TABLE = {
    'а': 'a', 'б': 'b', 'в': 'v', 'г': 'g', 'д': 'd', 'е': 'e', 'ё': 'yo',
    'ж': 'zh', 'з': 'z', 'и': 'i', 'й': 'y', 'к': 'k', 'л': 'l', 'м': 'm',
    'н': 'n', 'о': 'o', 'п': 'p', 'р': 'r', 'с': 's', 'т': 't', 'у': 'u',
    'ф': 'f', 'х': 'kh', 'ц': 'ts', 'ч': 'ch', 'ш': 'sh', 'щ': 'shch',
    'ъ': '', 'ы': 'y', 'ь': '', 'э': 'e', 'ю': 'yu', 'я': 'ya',
}
TRANSLIT_TABLE.update({
    upper: (latin.capitalize() if latin else '')
    for upper, latin in ((k.upper(), v) for k, v in list(TRANSLIT_TABLE.items()))
})

_NON_SLUG_RE = re.compile(r'[^a-z0-9]+')


# =============================================================================
# Pure slug functions
# =============================================================================

def transliterate(text: str) -> str:
    """Replace Russian letters with their Latin spelling; other characters are kept."""
    return ''.join(TRANSLIT_TABLE.get(ch, ch) for ch in text or '')


def hyphenate(text: str) -> str:
    """Lower-case and collapse every run of non [a-z0-9] characters to one hyphen."""
    return _NON_SLUG_RE.sub('-', (text or '').lower()).strip('-')


def slugify(text: str, fallback: Optional[str] = None) -> str:
    slug = hyphenate(transliterate(text))
    if slug:
        return slug
    return fallback or f"item-{int(time.time())}"


def article_slug(title: str, max_length: Optional[int] = None) -> str:
    """
    Slug for biography and news articles.

    Long slugs are cut at ``max_length``; if the cut leaves a hyphen in the
    last 40 % of the string, the slug is cut back to that hyphen so words
    are not split.
    """
    if max_length is None:
        max_length = settings.ARTICLE_SLUG_MAX_LENGTH

    slug = hyphenate(transliterate(title))
    if not slug:
        return f"article-{int(time.time())}"

    if len(slug) > max_length:
        slug = slug[:max_length]
        last_hyphen = slug.rfind('-')
        if last_hyphen > max_length * 0.6:
            slug = slug[:last_hyphen]
        slug = slug.strip('-')
    return slug


def person_slug(suggestion, custom_slug: Optional[str] = None) -> str:
    """
    Pick the slug for a person about to be published.

    Precedence: the admin-supplied custom slug, then the English name pair
    (already Latin, so only hyphenated), then the transliterated Russian name.
    """
    fallback = f"person-{suggestion.pk}"

    if custom_slug and custom_slug.strip():
        return slugify(custom_slug, fallback=fallback)

    if suggestion.has_english_name:
        slug = hyphenate(f"{suggestion.name_engl.strip()} {suggestion.surname_engl.strip()}")
        if slug:
            return slug

    return slugify(f"{suggestion.name_rus} {suggestion.surname_rus}", fallback=fallback)


def person_url(structure, slug: str) -> str:
    base = settings.PERSON_URL_BASE.rstrip('/') + '/'
    path = (structure.url or '').strip('/')
    return f"{base}{path}/{slug}/" if path else f"{base}{slug}/"


# =============================================================================
# Conflict resolver
# =============================================================================

@dataclass
class SlugConflict:
    id: int
    name_rus: str
    name_eng: str
    url: str
    epigraph: str
    approved: bool


@dataclass
class SlugPreview:
    """Result of a slug preview; advisory only."""
    slug: str
    full_url: str
    structure_name: str
    exact_match: bool
    suggested_slug: Optional[str] = None
    conflicts: List[SlugConflict] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class SlugConflictResolver:
    """
    Looks up existing persons that collide with a candidate URL.

    All queries are bounded: the near-duplicate search returns at most
    ``conflict_limit`` rows and suffix probing stops at ``probe_limit``.
    """

    def __init__(self, conflict_limit: Optional[int] = None, probe_limit: Optional[int] = None):
        self.conflict_limit = conflict_limit or settings.SLUG_CONFLICT_LIMIT
        self.probe_limit = probe_limit or settings.SLUG_SUFFIX_PROBE_LIMIT

    def url_exists(self, url: str) -> bool:
        from apps.encyclopedia.models import Person
        return Person.objects.filter(url=url).exists()

    def find_conflicts(self, slug: str) -> List[SlugConflict]:
        from apps.encyclopedia.models import Person

        rows = (
            Person.objects
            .filter(url__contains=f"/{slug}")
            .order_by('id')[:self.conflict_limit]
        )
        return [
            SlugConflict(
                id=person.id,
                name_rus=person.full_name_rus,
                name_eng=person.full_name_engl,
                url=person.url,
                epigraph=person.epigraph,
                approved=person.is_approved,
            )
            for person in rows
        ]

    def suggest_alternative(self, structure, slug: str) -> Optional[str]:
        """First ``slug-N`` (N = 2..probe_limit) whose URL is unused, else None."""
        for n in range(2, self.probe_limit + 1):
            candidate = f"{slug}-{n}"
            if not self.url_exists(person_url(structure, candidate)):
                return candidate
        logger.warning("No free suffix for slug %s up to -%d", slug, self.probe_limit)
        return None

    def preview(self, suggestion, structure, custom_slug: Optional[str] = None) -> SlugPreview:
        slug = person_slug(suggestion, custom_slug)
        full_url = person_url(structure, slug)
        exact_match = self.url_exists(full_url)

        return SlugPreview(
            slug=slug,
            full_url=full_url,
            structure_name=structure.display_name,
            exact_match=exact_match,
            suggested_slug=self.suggest_alternative(structure, slug) if exact_match else None,
            conflicts=self.find_conflicts(slug),
        )


def preview_person_slug(suggestion_id: int, structure_id: int, custom_slug: Optional[str] = None) -> SlugPreview:
    """Read-only slug preview for a person suggestion."""
    from apps.encyclopedia.models import Structure
    from .models import PersonSuggestion

    try:
        suggestion = PersonSuggestion.objects.get(pk=suggestion_id)
    except PersonSuggestion.DoesNotExist:
        raise NotFoundError("Suggestion not found", details={'suggestion_id': suggestion_id})

    try:
        structure = Structure.objects.get(pk=structure_id)
    except Structure.DoesNotExist:
        raise NotFoundError("Section not found", details={'kod_structure': structure_id})

    return SlugConflictResolver().preview(suggestion, structure, custom_slug)

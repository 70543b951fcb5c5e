"""
Reputation ledger.

Reputation lives on UserProfile and only changes as a side effect of a
moderation outcome. The stored value never goes below zero.
"""

import logging

from django.db.models import F, Value
from django.db.models.functions import Greatest

from apps.core.models import UserProfile
from apps.encyclopedia.models import SectionId

logger = logging.getLogger(__name__)


# Submission approval bonus per section; unlisted sections get the default.
SECTION_APPROVE_POINTS = {
    SectionId.BIOGRAPHY: 15,
    SectionId.NEWS: 10,
    SectionId.PHOTO: 5,
}
DEFAULT_APPROVE_POINTS = 5

REJECT_PENALTY = -2
PERSON_APPROVE_POINTS = 5
PUBLISH_POINTS = 10


def approve_points(section_id: int) -> int:
    return SECTION_APPROVE_POINTS.get(section_id, DEFAULT_APPROVE_POINTS)


def adjust(user_id: int, delta: int) -> int:
    """
    Add ``delta`` to the user's reputation, floored at zero.

    Runs as one UPDATE so concurrent adjustments do not lose each other.
    Returns the number of profiles updated (0 when the user has none).
    """
    if not delta:
        return 0

    rows = UserProfile.objects.filter(user_id=user_id).update(
        reputation=Greatest(F('reputation') + delta, Value(0))
    )
    if rows:
        logger.info("Reputation of user %s adjusted by %+d", user_id, delta)
    else:
        logger.warning("No profile for user %s; reputation %+d not applied", user_id, delta)
    return rows

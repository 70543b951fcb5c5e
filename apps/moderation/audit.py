"""
Audit log: one append-only ModerationLogEntry per committed decision.
"""

import logging
from typing import Optional

from .models import ModerationLogEntry

logger = logging.getLogger(__name__)


def record(
    actor_id: Optional[int],
    action: str,
    target_type: str,
    target_id: int,
    note: Optional[str] = None,
) -> ModerationLogEntry:
    """Append an entry. Must be called inside the transaction of the decision it records."""
    entry = ModerationLogEntry.objects.create(
        moderator_id=actor_id,
        action=action,
        target_type=target_type,
        target_id=target_id,
        note=note or None,
    )
    logger.debug("Audit: %s %s#%s by user %s", action, target_type, target_id, actor_id)
    return entry

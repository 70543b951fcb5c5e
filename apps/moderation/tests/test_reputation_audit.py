"""
Tests for the reputation ledger and the append-only audit log.
"""

import pytest

from apps.core.models import UserProfile
from apps.encyclopedia.models import SectionId
from apps.moderation import audit, reputation
from apps.moderation.models import AppendOnlyError, ModerationLogEntry

from .conftest import reputation_of


class TestApprovePoints:

    @pytest.mark.parametrize('section_id,points', [
        (SectionId.BIOGRAPHY, 15),
        (SectionId.NEWS, 10),
        (SectionId.PHOTO, 5),
        (SectionId.SONG, 5),
        (42, 5),
    ])
    def test_points_per_section(self, section_id, points):
        assert reputation.approve_points(section_id) == points


@pytest.mark.django_db
class TestAdjust:

    def test_positive_delta(self, submitter):
        assert reputation.adjust(submitter.pk, 15) == 1
        assert reputation_of(submitter) == 35

    def test_floor_at_zero(self, submitter):
        UserProfile.objects.filter(user=submitter).update(reputation=1)

        reputation.adjust(submitter.pk, reputation.REJECT_PENALTY)

        assert reputation_of(submitter) == 0

    def test_zero_delta_is_noop(self, submitter):
        assert reputation.adjust(submitter.pk, 0) == 0
        assert reputation_of(submitter) == 20

    def test_unknown_user(self):
        assert reputation.adjust(424242, 5) == 0


@pytest.mark.django_db
class TestAuditLog:

    def test_record(self, moderator):
        entry = audit.record(moderator.pk, 'approve', ModerationLogEntry.TARGET_SUBMISSION, 7, '')

        entry.refresh_from_db()
        assert entry.moderator_id == moderator.pk
        assert entry.action == 'approve'
        assert entry.target_id == 7
        assert entry.note is None
        assert entry.created_at is not None

    def test_entries_cannot_be_modified(self, moderator):
        entry = audit.record(moderator.pk, 'reject', ModerationLogEntry.TARGET_SUBMISSION, 1, 'x')
        entry.note = 'rewritten'

        with pytest.raises(AppendOnlyError):
            entry.save()

        entry.refresh_from_db()
        assert entry.note == 'x'

    def test_entries_cannot_be_deleted(self, moderator):
        entry = audit.record(moderator.pk, 'reject', ModerationLogEntry.TARGET_SUBMISSION, 1)

        with pytest.raises(AppendOnlyError):
            entry.delete()

        assert ModerationLogEntry.objects.filter(pk=entry.pk).exists()

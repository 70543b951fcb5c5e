"""
Moderation API serializers.
"""

from rest_framework import serializers

from .models import ModerationLogEntry, PersonSuggestion, Submission


# ============================================================================
# Request Serializers
# ============================================================================

class SubmissionReviewRequestSerializer(serializers.Serializer):
    submission_id = serializers.IntegerField(min_value=1)
    action = serializers.CharField()
    note = serializers.CharField(required=False, allow_blank=True, allow_null=True, default='')


class PersonReviewRequestSerializer(serializers.Serializer):
    suggestion_id = serializers.IntegerField(min_value=1)
    action = serializers.CharField()
    note = serializers.CharField(required=False, allow_blank=True, allow_null=True, default='')


class PersonPublishRequestSerializer(serializers.Serializer):
    """Shared by the slug preview and the publish endpoints."""
    suggestion_id = serializers.IntegerField(min_value=1)
    kod_structure = serializers.IntegerField(min_value=1)
    custom_slug = serializers.CharField(
        required=False, allow_blank=True, allow_null=True, max_length=255
    )


# ============================================================================
# Response Serializers
# ============================================================================

class SubmissionSerializer(serializers.ModelSerializer):
    """Submission with the joined display fields the queue shows."""

    section_id = serializers.IntegerField(read_only=True)
    section_name = serializers.CharField(source='section.name', read_only=True)
    person_id = serializers.IntegerField(read_only=True)
    person_name = serializers.CharField(source='person.full_name_rus', read_only=True, default=None)
    user_id = serializers.IntegerField(read_only=True)
    submitter_username = serializers.CharField(source='user.username', read_only=True)
    submitter_display_name = serializers.SerializerMethodField()
    submitter_reputation = serializers.SerializerMethodField()
    moderator_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Submission
        fields = [
            'id',
            'user_id',
            'submitter_username',
            'submitter_display_name',
            'submitter_reputation',
            'section_id',
            'section_name',
            'person_id',
            'person_name',
            'title',
            'content',
            'epigraph',
            'source_url',
            'photo_path',
            'status',
            'moderator_id',
            'moderator_note',
            'published_id',
            'created_at',
            'updated_at',
            'reviewed_at',
        ]
        read_only_fields = fields

    def get_submitter_display_name(self, obj):
        profile = getattr(obj.user, 'profile', None)
        return profile.display_name if profile else ''

    def get_submitter_reputation(self, obj):
        profile = getattr(obj.user, 'profile', None)
        return profile.reputation if profile else 0


class PersonSuggestionSerializer(serializers.ModelSerializer):

    user_id = serializers.IntegerField(read_only=True)
    submitter_username = serializers.CharField(source='user.username', read_only=True)
    full_name_rus = serializers.CharField(read_only=True)
    moderator_id = serializers.IntegerField(read_only=True)
    published_person_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = PersonSuggestion
        fields = [
            'id',
            'user_id',
            'submitter_username',
            'name_rus',
            'surname_rus',
            'full_name_rus',
            'name_engl',
            'surname_engl',
            'title',
            'epigraph',
            'biography',
            'date_in',
            'date_out',
            'town_in',
            'cc2born',
            'cc2dead',
            'cc2',
            'gender',
            'person_photo',
            'article_photo',
            'status',
            'moderator_id',
            'moderator_note',
            'reviewed_at',
            'published_person_id',
            'published_at',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class ModerationLogEntrySerializer(serializers.ModelSerializer):

    moderator_username = serializers.CharField(source='moderator.username', read_only=True, default=None)

    class Meta:
        model = ModerationLogEntry
        fields = [
            'id',
            'moderator_id',
            'moderator_username',
            'action',
            'target_type',
            'target_id',
            'note',
            'created_at',
        ]
        read_only_fields = fields

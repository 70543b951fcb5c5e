"""
Admin interface for the moderation pipeline.

Status changes go through the review API so that reputation and the audit
log stay consistent; the admin only exposes them read-only.
"""

from django.contrib import admin

from .models import ModerationLogEntry, PersonSuggestion, Submission


@admin.register(Submission)
class SubmissionAdmin(admin.ModelAdmin):
    list_display = ['id', 'title', 'section', 'user', 'status', 'published_id', 'created_at', 'reviewed_at']
    list_filter = ['status', 'section']
    search_fields = ['title', 'user__username']
    raw_id_fields = ['user', 'person', 'moderator']
    readonly_fields = ['status', 'moderator', 'moderator_note', 'published_id', 'reviewed_at', 'created_at', 'updated_at']


@admin.register(PersonSuggestion)
class PersonSuggestionAdmin(admin.ModelAdmin):
    list_display = ['id', 'full_name_rus', 'name_engl', 'surname_engl', 'user', 'status', 'published_person', 'created_at']
    list_filter = ['status', 'gender']
    search_fields = ['name_rus', 'surname_rus', 'name_engl', 'surname_engl', 'user__username']
    raw_id_fields = ['user', 'moderator', 'published_person']
    readonly_fields = [
        'status', 'moderator', 'moderator_note', 'reviewed_at',
        'published_person', 'published_at', 'created_at', 'updated_at',
    ]


@admin.register(ModerationLogEntry)
class ModerationLogEntryAdmin(admin.ModelAdmin):
    list_display = ['created_at', 'moderator', 'action', 'target_type', 'target_id', 'note']
    list_filter = ['action', 'target_type']
    search_fields = ['moderator__username', 'note']
    date_hierarchy = 'created_at'

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

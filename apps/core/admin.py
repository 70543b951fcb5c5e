from django.contrib import admin

from .models import UserProfile


@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = ['user', 'role', 'display_name', 'reputation', 'updated_at']
    list_filter = ['role']
    search_fields = ['user__username', 'user__email', 'display_name']
    readonly_fields = ['reputation', 'created_at', 'updated_at']
    raw_id_fields = ['user']

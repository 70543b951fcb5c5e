"""
Admin interface for production records.
"""

from django.contrib import admin

from .models import Section, Structure, Person, History, Photo


@admin.register(Section)
class SectionAdmin(admin.ModelAdmin):
    list_display = ['id', 'name', 'name_eng', 'table_name', 'fk_column', 'is_active']
    list_filter = ['is_active']


@admin.register(Structure)
class StructureAdmin(admin.ModelAdmin):
    list_display = ['id', 'url', 'name_url']
    search_fields = ['url', 'name_url']


class HistoryInline(admin.StackedInline):
    model = History
    extra = 0
    fields = ['url_name', 'epigraph', 'content', 'date_pub']


class PhotoInline(admin.TabularInline):
    model = Photo
    fk_name = 'person'
    extra = 0
    fields = ['name_photo', 'path_photo', 'is_staged', 'date_registration']


@admin.register(Person)
class PersonAdmin(admin.ModelAdmin):
    list_display = ['id', 'full_name_rus', 'full_name_engl', 'url', 'is_approved', 'date_registration']
    list_filter = ['is_approved', 'gender']
    search_fields = ['full_name_rus', 'full_name_engl', 'url']
    raw_id_fields = ['structure']
    inlines = [HistoryInline, PhotoInline]

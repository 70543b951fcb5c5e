"""
Moderation API URLs, mounted at /api/moderate/ in config/urls.py.
"""

from django.urls import path

from .views import (
    ModerationLogView,
    ModerationQueueView,
    ModerationStatsView,
    PersonPushView,
    PersonQueueView,
    PersonReviewView,
    PersonSlugCheckView,
    SubmissionReviewView,
)

app_name = 'moderation'

urlpatterns = [
    # Decisions
    path('review/', SubmissionReviewView.as_view(), name='review'),
    path('person-review/', PersonReviewView.as_view(), name='person-review'),

    # Publishing (admin only)
    path('person-check-slug/', PersonSlugCheckView.as_view(), name='person-check-slug'),
    path('person-push/', PersonPushView.as_view(), name='person-push'),

    # Read-only
    path('queue/', ModerationQueueView.as_view(), name='queue'),
    path('person-queue/', PersonQueueView.as_view(), name='person-queue'),
    path('log/', ModerationLogView.as_view(), name='log'),
    path('stats/', ModerationStatsView.as_view(), name='stats'),
]

"""
Moderation API views.

POST /api/moderate/review/             - Review a submission (moderator)
POST /api/moderate/person-review/      - Review a person suggestion (moderator)
POST /api/moderate/person-check-slug/  - Preview a person slug (admin)
POST /api/moderate/person-push/        - Publish a person suggestion (admin)
GET  /api/moderate/queue/              - Submission queue (moderator)
GET  /api/moderate/person-queue/       - Person suggestion queue (moderator)
GET  /api/moderate/log/                - Moderation audit log (moderator)
GET  /api/moderate/stats/              - Dashboard counters (moderator)
"""

import logging
from datetime import datetime, time

from django.db.models import Count, Q
from django.utils import timezone
from django.utils.dateparse import parse_date
from rest_framework import generics
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView

from apps.core.exceptions import ValidationError, success_response
from apps.core.permissions import IsAdmin, IsModerator

from .models import ModerationLogEntry, PersonSuggestion, Submission
from .serializers import (
    ModerationLogEntrySerializer,
    PersonPublishRequestSerializer,
    PersonReviewRequestSerializer,
    PersonSuggestionSerializer,
    SubmissionReviewRequestSerializer,
    SubmissionSerializer,
)
from .services import PersonPublisher, PersonSuggestionReviewer, SubmissionReviewer
from .slugs import preview_person_slug
from .state_machine import ReviewAction, SubmissionState, SuggestionState

logger = logging.getLogger(__name__)


class ModerationPagination(PageNumberPagination):
    page_size = 25
    page_size_query_param = 'page_size'
    max_page_size = 100


def _start_of_today():
    return timezone.make_aware(datetime.combine(timezone.localdate(), time.min))


def _int_param(request, name):
    value = request.query_params.get(name)
    if value in (None, ''):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer", field=name)


def _date_param(request, name):
    value = request.query_params.get(name)
    if value in (None, ''):
        return None
    try:
        parsed = parse_date(value)
    except ValueError:
        parsed = None
    if parsed is None:
        raise ValidationError(f"{name} must be a date (YYYY-MM-DD)", field=name)
    return parsed


# ============================================================================
# Review / publish
# ============================================================================

class SubmissionReviewView(APIView):
    """
    Approve, reject or request revision of a pending submission.

    Body: {"submission_id": 1, "action": "approve", "note": "..."}
    """
    permission_classes = [IsAuthenticated, IsModerator]

    def post(self, request):
        serializer = SubmissionReviewRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        outcome = SubmissionReviewer().review(
            data['submission_id'], data['action'], data.get('note'), request.user
        )
        return success_response({
            **SubmissionSerializer(outcome.instance).data,
            'old_status': outcome.old_status,
            'new_status': outcome.new_status,
        })


class PersonReviewView(APIView):
    """Body: {"suggestion_id": 1, "action": "approve", "note": "..."}"""
    permission_classes = [IsAuthenticated, IsModerator]

    def post(self, request):
        serializer = PersonReviewRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        outcome = PersonSuggestionReviewer().review(
            data['suggestion_id'], data['action'], data.get('note'), request.user
        )
        return success_response({
            **PersonSuggestionSerializer(outcome.instance).data,
            'action': outcome.action.value,
            'old_status': outcome.old_status,
            'new_status': outcome.new_status,
        })


class PersonSlugCheckView(APIView):
    """
    Read-only preview of the URL a suggestion would be published under.

    Body: {"suggestion_id": 1, "kod_structure": 5, "custom_slug": "optional"}
    """
    permission_classes = [IsAuthenticated, IsAdmin]

    def post(self, request):
        serializer = PersonPublishRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        preview = preview_person_slug(
            data['suggestion_id'], data['kod_structure'], data.get('custom_slug')
        )
        return success_response(preview.to_dict())


class PersonPushView(APIView):
    """Body: {"suggestion_id": 1, "kod_structure": 5, "custom_slug": "optional"}"""
    permission_classes = [IsAuthenticated, IsAdmin]

    def post(self, request):
        serializer = PersonPublishRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = PersonPublisher().publish(
            data['suggestion_id'], data['kod_structure'], data.get('custom_slug'), request.user
        )
        return success_response(result, status_code=201)


# ============================================================================
# Queues and stats
# ============================================================================

class ModerationQueueView(generics.ListAPIView):
    """
    Submissions awaiting moderation, oldest first.

    Query params: status (default pending), section_id, user_id, page, page_size
    """
    permission_classes = [IsAuthenticated, IsModerator]
    serializer_class = SubmissionSerializer
    pagination_class = ModerationPagination

    def get_queryset(self):
        status_filter = self.request.query_params.get('status') or SubmissionState.PENDING.value
        valid = {state.value for state in SubmissionState}
        if status_filter not in valid:
            raise ValidationError(f"Unknown status: {status_filter}", field='status')

        queryset = (
            Submission.objects
            .select_related('section', 'person', 'user', 'user__profile')
            .filter(status=status_filter)
            .order_by('created_at', 'id')
        )

        section_id = _int_param(self.request, 'section_id')
        if section_id is not None:
            queryset = queryset.filter(section_id=section_id)

        user_id = _int_param(self.request, 'user_id')
        if user_id is not None:
            queryset = queryset.filter(user_id=user_id)

        return queryset


class PersonQueueView(generics.ListAPIView):
    permission_classes = [IsAuthenticated, IsModerator]
    serializer_class = PersonSuggestionSerializer
    pagination_class = ModerationPagination

    def get_queryset(self):
        status_filter = self.request.query_params.get('status') or SuggestionState.PENDING.value
        valid = {state.value for state in SuggestionState}
        if status_filter not in valid:
            raise ValidationError(f"Unknown status: {status_filter}", field='status')

        return (
            PersonSuggestion.objects
            .select_related('user')
            .filter(status=status_filter)
            .order_by('created_at', 'id')
        )


class ModerationLogView(generics.ListAPIView):
    """
    Moderation decisions, newest first.

    Query params: moderator_id, action, target_type, date_from, date_to
    (inclusive, YYYY-MM-DD), page, page_size
    """
    permission_classes = [IsAuthenticated, IsModerator]
    serializer_class = ModerationLogEntrySerializer
    pagination_class = ModerationPagination

    def get_queryset(self):
        queryset = ModerationLogEntry.objects.select_related('moderator').order_by('-created_at', '-id')

        moderator_id = _int_param(self.request, 'moderator_id')
        if moderator_id is not None:
            queryset = queryset.filter(moderator_id=moderator_id)

        for name in ('action', 'target_type'):
            value = self.request.query_params.get(name)
            if value:
                queryset = queryset.filter(**{name: value})

        date_from = _date_param(self.request, 'date_from')
        date_to = _date_param(self.request, 'date_to')
        if date_from and date_to and date_from > date_to:
            raise ValidationError("date_from must not be after date_to", field='date_from')
        if date_from:
            queryset = queryset.filter(created_at__date__gte=date_from)
        if date_to:
            queryset = queryset.filter(created_at__date__lte=date_to)

        return queryset


class ModerationStatsView(APIView):
    """Counters for the moderation dashboard."""
    permission_classes = [IsAuthenticated, IsModerator]

    def get(self, request):
        today = _start_of_today()
        pending = SubmissionState.PENDING.value

        by_section = (
            Submission.objects
            .filter(status=pending)
            .values('section_id', 'section__name')
            .annotate(count=Count('id'))
            .order_by('-count', 'section_id')
        )

        actions = [action.value for action in ReviewAction]
        activity = (
            ModerationLogEntry.objects
            .filter(created_at__gte=today, action__in=actions)
            .values('moderator_id', 'moderator__username')
            .annotate(
                approved=Count('id', filter=Q(action=ReviewAction.APPROVE.value)),
                rejected=Count('id', filter=Q(action=ReviewAction.REJECT.value)),
                revisions=Count('id', filter=Q(action=ReviewAction.REQUEST_REVISION.value)),
            )
            .order_by('moderator_id')
        )

        return success_response({
            'queue_size': Submission.objects.filter(status=pending).count(),
            'approved_today': Submission.objects.filter(
                status=SubmissionState.APPROVED.value, reviewed_at__gte=today
            ).count(),
            'rejected_today': Submission.objects.filter(
                status=SubmissionState.REJECTED.value, reviewed_at__gte=today
            ).count(),
            'person_queue_size': PersonSuggestion.objects.filter(
                status=SuggestionState.PENDING.value
            ).count(),
            'by_section': [
                {
                    'section_id': row['section_id'],
                    'section_name': row['section__name'],
                    'count': row['count'],
                }
                for row in by_section
            ],
            'moderation_activity': [
                {
                    'moderator_id': row['moderator_id'],
                    'username': row['moderator__username'],
                    'approved': row['approved'],
                    'rejected': row['rejected'],
                    'revisions': row['revisions'],
                }
                for row in activity
            ],
        })

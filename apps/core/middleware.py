"""
Request correlation.

Every API request gets a request ID (incoming X-Request-ID when it is a
valid UUID, otherwise a fresh one). Once the role gate has let a user
through, the acting user's id joins the context. Both end up on every log
line and travel with Celery tasks, so a moderation decision can be traced
from the HTTP request through the transaction log lines to the photo
relocation task it schedules.

Usage:
    MIDDLEWARE = [
        ...
        'apps.core.middleware.RequestIDMiddleware',
    ]
"""

import uuid
import threading
import logging
from django.utils.deprecation import MiddlewareMixin

logger = logging.getLogger(__name__)

_request_context = threading.local()


def get_request_id():
    """Current request ID, or None outside of a request context."""
    return getattr(_request_context, 'request_id', None)


def get_request_user_id():
    return getattr(_request_context, 'user_id', None)


def set_request_context(request_id, user_id=None):
    _request_context.request_id = request_id
    _request_context.user_id = user_id


def bind_request_user(user):
    """Attach the authenticated actor to the current context."""
    if user is not None and user.is_authenticated:
        _request_context.user_id = str(user.pk)


def clear_request_context():
    _request_context.request_id = None
    _request_context.user_id = None


def _valid_uuid(value):
    try:
        uuid.UUID(value)
    except (ValueError, TypeError, AttributeError):
        return False
    return True


class RequestIDMiddleware(MiddlewareMixin):
    """
    Exposes the request ID as ``request.request_id`` and echoes it back in
    the X-Request-ID response header.

    JWT authentication happens inside DRF views, after this middleware, so
    the user id is bound later by the permission classes.
    """

    REQUEST_ID_HEADER = 'HTTP_X_REQUEST_ID'
    RESPONSE_HEADER = 'X-Request-ID'

    def process_request(self, request):
        request_id = request.META.get(self.REQUEST_ID_HEADER)
        if not _valid_uuid(request_id):
            request_id = str(uuid.uuid4())

        set_request_context(request_id)
        bind_request_user(getattr(request, 'user', None))
        request.request_id = request_id

    def process_response(self, request, response):
        request_id = getattr(request, 'request_id', None)
        if request_id:
            response[self.RESPONSE_HEADER] = request_id

        clear_request_context()
        return response


class RequestIDFilter(logging.Filter):
    """
    Adds ``request_id`` and ``user_id`` to log records ('-' when unknown).

    LOGGING = {
        'filters': {'request_id': {'()': 'apps.core.middleware.RequestIDFilter'}},
        ...
    }
    """

    def filter(self, record):
        record.request_id = get_request_id() or '-'
        record.user_id = get_request_user_id() or '-'
        return True


def celery_request_id_headers():
    """Headers to pass to Celery tasks for correlation."""
    headers = {}
    request_id = get_request_id()
    if request_id:
        headers['request_id'] = request_id
    user_id = get_request_user_id()
    if user_id:
        headers['user_id'] = user_id
    return headers


def setup_celery_request_context(headers):
    """Restore the request context inside a Celery task from its headers."""
    set_request_context(
        headers.get('request_id') or str(uuid.uuid4()),
        headers.get('user_id'),
    )

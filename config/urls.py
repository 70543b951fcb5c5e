"""
URL configuration for the Peoples moderation project.
"""

from django.contrib import admin
from django.urls import path, include

from apps.core.urls import auth_urlpatterns

urlpatterns = [
    path('admin/', admin.site.urls),
    # Auth endpoints
    path('api/auth/', include((auth_urlpatterns, 'auth'))),
    # Moderation and publishing
    path('api/moderate/', include('apps.moderation.urls')),
]

# Customize admin site
admin.site.site_header = "Peoples Administration"
admin.site.site_title = "Peoples Admin Portal"
admin.site.index_title = "Moderation and encyclopedia data"

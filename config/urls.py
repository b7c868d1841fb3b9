"""
URL configuration for the JamSesh practice backend.
"""

from django.conf import settings
from django.conf.urls.static import static
from django.urls import path, include

urlpatterns = [
    path("api/", include("src.api.urls")),
    path("api/", include("src.library.urls")),
    path("api/", include("src.loops.urls")),
    path("api/", include("src.studio.urls")),
    path("api/", include("src.social.urls")),
]

# Serve media files in development
if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)

"""
API URL routing.
"""

from django.urls import path

from .auth_views import LoginView, RefreshView, SignUpView
from .views import FileDetailView, FileUploadView, HealthView

urlpatterns = [
    path("health/", HealthView.as_view(), name="health"),
    # Auth endpoints
    path("auth/signup/", SignUpView.as_view(), name="auth-signup"),
    path("auth/login/", LoginView.as_view(), name="auth-login"),
    path("auth/refresh/", RefreshView.as_view(), name="auth-refresh"),
    # File store endpoints
    path("files/", FileUploadView.as_view(), name="file-upload"),
    path("files/<path:path>", FileDetailView.as_view(), name="file-detail"),
]

"""URL routing for the composition API."""

from django.urls import path
from . import views

urlpatterns = [
    path("compositions/", views.CompositionListView.as_view(), name="composition-list"),
    path(
        "compositions/<uuid:composition_id>/",
        views.CompositionDetailView.as_view(),
        name="composition-detail",
    ),
    path(
        "compositions/<uuid:composition_id>/tracks/",
        views.TrackListView.as_view(),
        name="composition-tracks",
    ),
    path(
        "compositions/<uuid:composition_id>/tracks/<uuid:track_id>/",
        views.TrackDetailView.as_view(),
        name="composition-track-detail",
    ),
    path(
        "compositions/<uuid:composition_id>/export/",
        views.CompositionExportView.as_view(),
        name="composition-export",
    ),
]

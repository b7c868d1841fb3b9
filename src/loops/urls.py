"""URL routing for the loop catalog API."""

from django.urls import path
from . import views

urlpatterns = [
    path("loops/", views.LoopListView.as_view(), name="loop-list"),
    path("loops/facets/", views.LoopFacetsView.as_view(), name="loop-facets"),
    path("loops/<uuid:loop_id>/", views.LoopDetailView.as_view(), name="loop-detail"),
    path("loops/<uuid:loop_id>/star/", views.LoopStarView.as_view(), name="loop-star"),
    path("loops/<uuid:loop_id>/compatible/", views.CompatibleLoopsView.as_view(), name="loop-compatible"),
    path("loops/<uuid:loop_id>/analyse/", views.LoopAnalyseView.as_view(), name="loop-analyse"),
]

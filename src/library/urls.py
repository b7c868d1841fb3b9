"""URL routing for the practice library API."""

from django.urls import path
from . import views

urlpatterns = [
    path("songs/", views.SongListView.as_view(), name="song-list"),
    path("songs/<uuid:song_id>/", views.SongDetailView.as_view(), name="song-detail"),
    path("songs/<uuid:song_id>/parts/", views.PartListView.as_view(), name="part-list"),
    path("songs/<uuid:song_id>/parts/<uuid:part_id>/", views.PartDetailView.as_view(), name="part-detail"),
    path(
        "songs/<uuid:song_id>/parts/<uuid:part_id>/recordings/",
        views.RecordingUploadView.as_view(),
        name="recording-upload",
    ),
    path("recordings/<uuid:recording_id>/", views.RecordingDetailView.as_view(), name="recording-detail"),
    path("recordings/<uuid:recording_id>/waveform/", views.WaveformView.as_view(), name="recording-waveform"),
    path("clips/", views.ClipListView.as_view(), name="clip-list"),
    path("song-search/", views.SongSearchView.as_view(), name="song-search"),
    path("song-parts/", views.StandardPartsView.as_view(), name="standard-parts"),
    path("quick-upload/", views.QuickUploadSessionView.as_view(), name="quick-upload"),
    path("quick-upload/clips/", views.QuickUploadClipListView.as_view(), name="quick-upload-clips"),
    path(
        "quick-upload/clips/<uuid:clip_id>/",
        views.QuickUploadClipDetailView.as_view(),
        name="quick-upload-clip-detail",
    ),
    path("quick-upload/finish/", views.QuickUploadFinishView.as_view(), name="quick-upload-finish"),
]

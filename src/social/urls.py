"""URL routing for the social API."""

from django.urls import path
from . import views

urlpatterns = [
    path("profile/", views.ProfileView.as_view(), name="profile"),
    path("users/search/", views.UserSearchView.as_view(), name="user-search"),
    path("users/<int:user_id>/recordings/", views.UserRecordingsView.as_view(), name="user-recordings"),
    path("friends/", views.FriendListView.as_view(), name="friend-list"),
    path("friends/<int:user_id>/", views.FriendDetailView.as_view(), name="friend-detail"),
    path("feed/", views.FeedView.as_view(), name="feed"),
    path("recordings/<uuid:recording_id>/share/", views.ShareRecordingView.as_view(), name="recording-share"),
    path(
        "public-recordings/<uuid:public_recording_id>/like/",
        views.LikeRecordingView.as_view(),
        name="public-recording-like",
    ),
    path("groups/", views.GroupListView.as_view(), name="group-list"),
    path("groups/<uuid:group_id>/", views.GroupDetailView.as_view(), name="group-detail"),
    path("groups/<uuid:group_id>/members/", views.GroupMembersView.as_view(), name="group-members"),
    path("groups/<uuid:group_id>/songs/", views.GroupSongListView.as_view(), name="group-songs"),
    path("groups/<uuid:group_id>/progress/", views.GroupProgressListView.as_view(), name="group-progress"),
    path(
        "groups/<uuid:group_id>/progress/<uuid:progress_id>/reactions/",
        views.ReactionView.as_view(),
        name="group-progress-reactions",
    ),
    path("groups/<uuid:group_id>/jam-list/", views.JamListView.as_view(), name="group-jam-list"),
]

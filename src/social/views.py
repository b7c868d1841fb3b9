"""API views for profiles, friends, the shared feed and practice groups."""

import logging
import uuid
from pathlib import PurePosixPath

from django.contrib.auth.models import User
from django.core.files.storage import default_storage
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from src.library.models import Recording
from src.tasks.notifications import notify_user
from .models import Group, GroupProgress, Profile, PublicRecording
from .permissions import IsGroupMember
from .serializers import (
    GroupCreateSerializer,
    GroupProgressSerializer,
    GroupSerializer,
    GroupSongSerializer,
    ProfileSerializer,
    ProgressPostSerializer,
    PublicProfileSerializer,
    PublicRecordingSerializer,
    ReactionSerializer,
)

logger = logging.getLogger(__name__)


def validation_error(errors) -> Response:
    return Response(
        {"error": "validation_error", "message": errors},
        status=status.HTTP_400_BAD_REQUEST,
    )


def not_found(what: str) -> Response:
    return Response({"error": f"{what} not found"}, status=status.HTTP_404_NOT_FOUND)


class ProfileView(APIView):
    """GET or PATCH /api/profile/ — the signed-in user's profile."""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(ProfileSerializer(Profile.for_user(request.user)).data)

    def patch(self, request):
        profile = Profile.for_user(request.user)
        serializer = ProfileSerializer(profile, data=request.data, partial=True)
        if not serializer.is_valid():
            return validation_error(serializer.errors)
        serializer.save()
        return Response(serializer.data)


class UserSearchView(APIView):
    """GET /api/users/search/?q= — other users by username."""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        profiles = Profile.search(request.query_params.get("q", ""), exclude_user=request.user)
        return Response(PublicProfileSerializer(profiles[:50], many=True).data)


class UserRecordingsView(APIView):
    """GET /api/users/{user_id}/recordings/ — a user's shared recordings, newest first."""

    permission_classes = [IsAuthenticated]

    def get(self, request, user_id):
        recordings = PublicRecording.objects.filter(user_id=user_id).order_by("-created_at")
        return Response(PublicRecordingSerializer(recordings, many=True).data)


class FriendListView(APIView):
    """GET /api/friends/ — who I follow. POST {"user_id": ...} — follow someone."""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        profile = Profile.for_user(request.user)
        friends = Profile.objects.filter(user__in=profile.friends.all()).order_by("username")
        return Response(PublicProfileSerializer(friends, many=True).data)

    def post(self, request):
        try:
            friend = User.objects.get(id=int(request.data.get("user_id")))
        except (TypeError, ValueError):
            return validation_error("user_id must be an integer")
        except User.DoesNotExist:
            return not_found("User")

        try:
            Profile.for_user(request.user).add_friend(friend)
        except ValueError as e:
            return validation_error(str(e))

        return Response(PublicProfileSerializer(Profile.for_user(friend)).data, status=status.HTTP_201_CREATED)


class FriendDetailView(APIView):
    """DELETE /api/friends/{user_id}/ — stop following someone."""

    permission_classes = [IsAuthenticated]

    def delete(self, request, user_id):
        friend = User.objects.filter(id=user_id).first()
        if friend is None:
            return not_found("User")
        Profile.for_user(request.user).remove_friend(friend)
        return Response(status=status.HTTP_204_NO_CONTENT)


class FeedView(APIView):
    """GET /api/feed/ — recordings shared by friends, newest first."""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        feed = Profile.for_user(request.user).feed()
        return Response(PublicRecordingSerializer(feed[:100], many=True).data)


class ShareRecordingView(APIView):
    """POST /api/recordings/{recording_id}/share/ — publish a take to the feed."""

    permission_classes = [IsAuthenticated]

    def post(self, request, recording_id):
        recording = Recording.get_or_none(request.user, recording_id)
        if recording is None:
            return not_found("Recording")
        if not recording.file_path:
            return validation_error("Recording has no media file to share")

        shared = PublicRecording.share(recording)
        notify_user(request.user.id, f"Shared {shared.song_title} – {shared.part_name}")
        return Response(PublicRecordingSerializer(shared).data, status=status.HTTP_201_CREATED)


class LikeRecordingView(APIView):
    """POST /api/public-recordings/{public_recording_id}/like/."""

    permission_classes = [IsAuthenticated]

    def post(self, request, public_recording_id):
        shared = PublicRecording.objects.filter(id=public_recording_id).first()
        if shared is None:
            return not_found("Recording")
        shared.like()
        return Response(PublicRecordingSerializer(shared).data)


class GroupListView(APIView):
    """GET /api/groups/ — my groups, newest first. POST — create a group."""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        groups = Group.objects.for_member(request.user).prefetch_related("members")
        return Response(GroupSerializer(groups, many=True).data)

    def post(self, request):
        serializer = GroupCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer.errors)
        data = serializer.validated_data

        members = list(User.objects.filter(id__in=data["member_ids"]))
        if len(members) != len(set(data["member_ids"])):
            return validation_error("member_ids contains unknown users")

        group = Group.objects.create_group(
            request.user, data["name"], description=data["description"], members=members,
        )

        cover = data.get("cover_photo")
        if cover is not None:
            ext = PurePosixPath(cover.name).suffix.lower() or ".jpg"
            saved_path = default_storage.save(f"groups/{group.id}/cover-{uuid.uuid4().hex[:8]}{ext}", cover)
            group.cover_photo_url = default_storage.url(saved_path)
            group.save(update_fields=["cover_photo_url"])

        logger.info(f"User {request.user.id} created group {group.id} with {len(members) + 1} members")
        return Response(GroupSerializer(group).data, status=status.HTTP_201_CREATED)


class GroupView(APIView):
    """Base for endpoints under /api/groups/{group_id}/ that members only may use."""

    permission_classes = [IsAuthenticated, IsGroupMember]

    def get_group(self, request, group_id) -> Group | None:
        group = Group.get_or_none(group_id)
        if group is not None:
            self.check_object_permissions(request, group)
        return group


class GroupDetailView(GroupView):
    """GET /api/groups/{group_id}/."""

    def get(self, request, group_id):
        group = self.get_group(request, group_id)
        if group is None:
            return not_found("Group")
        return Response(GroupSerializer(group).data)


class GroupMembersView(GroupView):
    """GET /api/groups/{group_id}/members/ — members and the songs each can play."""

    def get(self, request, group_id):
        group = self.get_group(request, group_id)
        if group is None:
            return not_found("Group")
        return Response(group.member_infos())


class GroupSongListView(GroupView):
    """GET /api/groups/{group_id}/songs/. POST — add a song (e.g. a search suggestion)."""

    def get(self, request, group_id):
        group = self.get_group(request, group_id)
        if group is None:
            return not_found("Group")
        songs = group.songs.prefetch_related("member_progress")
        return Response(GroupSongSerializer(songs, many=True).data)

    def post(self, request, group_id):
        group = self.get_group(request, group_id)
        if group is None:
            return not_found("Group")

        serializer = GroupSongSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer.errors)
        data = serializer.validated_data

        song = group.add_song(request.user, data["title"], data["artist"], data.get("artwork_url", ""))
        return Response(GroupSongSerializer(song).data, status=status.HTTP_201_CREATED)


class GroupProgressListView(GroupView):
    """GET /api/groups/{group_id}/progress/ — newest first. POST — share an update."""

    def get(self, request, group_id):
        group = self.get_group(request, group_id)
        if group is None:
            return not_found("Group")
        return Response(GroupProgressSerializer(group.progress_updates.all(), many=True).data)

    def post(self, request, group_id):
        group = self.get_group(request, group_id)
        if group is None:
            return not_found("Group")

        serializer = ProgressPostSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer.errors)
        data = serializer.validated_data

        song = group.songs.filter(id=data["song_id"]).first()
        if song is None:
            return not_found("Song")

        progress = group.post_progress(
            request.user, song, data["progress_text"],
            video_url=data["video_url"], audio_url=data["audio_url"],
        )
        return Response(GroupProgressSerializer(progress).data, status=status.HTTP_201_CREATED)


class ReactionView(GroupView):
    """
    GET /api/groups/{group_id}/progress/{progress_id}/reactions/?emoji= — have I reacted?
    POST {"emoji": ...} — react. DELETE ?emoji= — take the reaction back.
    """

    def _get_progress(self, request, group_id, progress_id) -> GroupProgress | None:
        group = self.get_group(request, group_id)
        if group is None:
            return None
        return group.progress_updates.filter(id=progress_id).first()

    def _emoji(self, request):
        serializer = ReactionSerializer(data={"emoji": request.data.get("emoji") or request.query_params.get("emoji")})
        serializer.is_valid()
        return serializer

    def get(self, request, group_id, progress_id):
        progress = self._get_progress(request, group_id, progress_id)
        if progress is None:
            return not_found("Progress")
        serializer = self._emoji(request)
        if serializer.errors:
            return validation_error(serializer.errors)
        emoji = serializer.validated_data["emoji"]
        return Response({"emoji": emoji, "reacted": progress.has_reacted(request.user, emoji)})

    def post(self, request, group_id, progress_id):
        progress = self._get_progress(request, group_id, progress_id)
        if progress is None:
            return not_found("Progress")
        serializer = self._emoji(request)
        if serializer.errors:
            return validation_error(serializer.errors)

        created = progress.add_reaction(request.user, serializer.validated_data["emoji"])
        return Response(
            {"reaction_counts": progress.reaction_counts},
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )

    def delete(self, request, group_id, progress_id):
        progress = self._get_progress(request, group_id, progress_id)
        if progress is None:
            return not_found("Progress")
        serializer = self._emoji(request)
        if serializer.errors:
            return validation_error(serializer.errors)

        progress.remove_reaction(request.user, serializer.validated_data["emoji"])
        return Response({"reaction_counts": progress.reaction_counts})


class JamListView(GroupView):
    """GET /api/groups/{group_id}/jam-list/?min_members=2."""

    def get(self, request, group_id):
        group = self.get_group(request, group_id)
        if group is None:
            return not_found("Group")
        try:
            min_members = int(request.query_params.get("min_members", 2))
        except ValueError:
            return validation_error("min_members must be an integer")
        return Response(group.jam_list(min_members=max(1, min_members)))

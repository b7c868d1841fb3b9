"""API views for the practice library: songs, parts, recordings and quick upload."""

import logging
import urllib.error
import uuid

from django.core.files.storage import default_storage
from rest_framework import status
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from src.tasks.notifications import notify_user
from src.tools.audio import SUPPORTED_MIME_TYPES, extension_for, mime_type_for, probe_duration
from src.tools.waveform import DEFAULT_SAMPLE_COUNT, stored_waveform
from . import song_search
from .models import (
    QuickUploadClip,
    QuickUploadSession,
    Recording,
    SortOption,
    Song,
    StandardSongPart,
    all_clips,
)
from .serializers import (
    ClipIdentifySerializer,
    ClipSerializer,
    PartInputSerializer,
    PartStatusSerializer,
    QuickUploadClipSerializer,
    QuickUploadSessionSerializer,
    RecordingSerializer,
    RecordingUpdateSerializer,
    RecordingUploadSerializer,
    SongInputSerializer,
    SongPartSerializer,
    SongSerializer,
    SongUpdateSerializer,
)

logger = logging.getLogger(__name__)

MAX_WAVEFORM_SAMPLES = 2000


def validation_error(errors) -> Response:
    return Response(
        {"error": "validation_error", "message": errors},
        status=status.HTTP_400_BAD_REQUEST,
    )


def not_found(what: str) -> Response:
    return Response({"error": f"{what} not found"}, status=status.HTTP_404_NOT_FOUND)


def unsupported_format(mime_type: str) -> Response:
    return Response(
        {"error": "unsupported_format", "message": f"Cannot decode {mime_type or 'unknown type'}"},
        status=status.HTTP_422_UNPROCESSABLE_ENTITY,
    )


def upload_mime_type(upload, declared: str = "") -> str:
    """Declared type first, then the upload's content type, then its extension."""
    for candidate in (declared, getattr(upload, "content_type", "")):
        if candidate in SUPPORTED_MIME_TYPES:
            return candidate
    return declared or mime_type_for(upload.name) or ""


def save_upload(upload, folder: str, mime_type: str) -> str:
    """Store an uploaded file under a fresh name and return its storage path."""
    return default_storage.save(f"{folder}/{uuid.uuid4()}{extension_for(mime_type)}", upload)


class SongListView(APIView):
    """
    GET /api/songs/?q=&sort=&view= — list the library.
    POST /api/songs/ — add a song, or a part to an existing matching song.
    """

    permission_classes = [IsAuthenticated]

    def get(self, request):
        songs = Song.objects.filter(user=request.user)
        if request.query_params.get("view") == "studio":
            songs = songs.in_progress()
        songs = songs.search(request.query_params.get("q", "").strip())

        sort = request.query_params.get("sort", SortOption.RECENTLY_UPDATED)
        if sort not in SortOption.values:
            sort = SortOption.RECENTLY_UPDATED
        songs = songs.sorted_by(sort).prefetch_related("parts__recordings")

        return Response(SongSerializer(songs, many=True).data)

    def post(self, request):
        serializer = SongInputSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer.errors)
        data = serializer.validated_data

        song, part, created = Song.objects.add_or_update(
            request.user,
            data["title"],
            data["artist"],
            data["part_name"],
            part_status=data["part_status"],
            album_color=data["album_color"],
            artwork_url=data["artwork_url"],
        )
        if created:
            notify_user(request.user.id, f'Created "{song.title}" with part "{part.name}"')
        else:
            notify_user(request.user.id, f'Added "{part.name}" to "{song.title}"')

        return Response(
            SongSerializer(song).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )


class SongDetailView(APIView):
    """GET, PATCH or DELETE /api/songs/{song_id}/."""

    permission_classes = [IsAuthenticated]

    def get(self, request, song_id):
        song = Song.get_or_none(request.user, song_id)
        if song is None:
            return not_found("Song")
        return Response(SongSerializer(song).data)

    def patch(self, request, song_id):
        song = Song.get_or_none(request.user, song_id)
        if song is None:
            return not_found("Song")

        serializer = SongUpdateSerializer(song, data=request.data, partial=True)
        if not serializer.is_valid():
            return validation_error(serializer.errors)
        serializer.save()
        return Response(SongSerializer(song).data)

    def delete(self, request, song_id):
        song = Song.get_or_none(request.user, song_id)
        if song is None:
            return not_found("Song")

        title = song.title
        song.delete_with_media()
        notify_user(request.user.id, f'Deleted "{title}" and all associated recordings')
        return Response(status=status.HTTP_204_NO_CONTENT)


class PartListView(APIView):
    """POST /api/songs/{song_id}/parts/ — add a part to a song."""

    permission_classes = [IsAuthenticated]

    def post(self, request, song_id):
        song = Song.get_or_none(request.user, song_id)
        if song is None:
            return not_found("Song")

        serializer = PartInputSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer.errors)

        part = song.add_part(serializer.validated_data["name"], serializer.validated_data["status"])
        notify_user(request.user.id, f'Added "{part.name}" to "{song.title}"')
        return Response(SongPartSerializer(part).data, status=status.HTTP_201_CREATED)


class PartDetailView(APIView):
    """PATCH (status) or DELETE /api/songs/{song_id}/parts/{part_id}/."""

    permission_classes = [IsAuthenticated]

    def _get_part(self, request, song_id, part_id):
        song = Song.get_or_none(request.user, song_id)
        if song is None:
            return None
        return song.parts.filter(id=part_id).first()

    def patch(self, request, song_id, part_id):
        part = self._get_part(request, song_id, part_id)
        if part is None:
            return not_found("Part")

        serializer = PartStatusSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer.errors)
        part.set_status(serializer.validated_data["status"])
        return Response(SongPartSerializer(part).data)

    def delete(self, request, song_id, part_id):
        part = self._get_part(request, song_id, part_id)
        if part is None:
            return not_found("Part")
        part.delete_with_media()
        return Response(status=status.HTTP_204_NO_CONTENT)


class RecordingUploadView(APIView):
    """POST /api/songs/{song_id}/parts/{part_id}/recordings/ — save a take."""

    permission_classes = [IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser]

    def post(self, request, song_id, part_id):
        song = Song.get_or_none(request.user, song_id)
        part = song.parts.filter(id=part_id).first() if song else None
        if part is None:
            return not_found("Part")

        serializer = RecordingUploadSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer.errors)
        data = serializer.validated_data

        mime_type = upload_mime_type(data["file"], data["mime_type"])
        if mime_type not in SUPPORTED_MIME_TYPES:
            return unsupported_format(mime_type)

        saved_path = save_upload(data["file"], "recordings", mime_type)
        recording = part.add_recording(
            file_path=saved_path,
            type=data["type"],
            note=data["note"],
            recorded_at=data.get("recorded_at"),
            duration_seconds=probe_duration(saved_path),
        )
        logger.info(f"Saved recording {recording.id} to part {part.id}")
        notify_user(request.user.id, f"Saved recording to {song.title} – {part.name}")

        return Response(RecordingSerializer(recording).data, status=status.HTTP_201_CREATED)


class RecordingDetailView(APIView):
    """GET, PATCH (note, loop region) or DELETE /api/recordings/{recording_id}/."""

    permission_classes = [IsAuthenticated]

    def get(self, request, recording_id):
        recording = Recording.get_or_none(request.user, recording_id)
        if recording is None:
            return not_found("Recording")
        return Response(RecordingSerializer(recording).data)

    def patch(self, request, recording_id):
        recording = Recording.get_or_none(request.user, recording_id)
        if recording is None:
            return not_found("Recording")

        serializer = RecordingUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer.errors)
        data = serializer.validated_data

        # Region first so a rejected region leaves the take untouched
        if data.get("is_loop") is False:
            recording.clear_loop_region()
        elif data.get("is_loop") or "loop_start_time" in data or "loop_end_time" in data:
            start = data.get("loop_start_time", recording.loop_start_time)
            end = data.get("loop_end_time", recording.loop_end_time)
            try:
                recording.set_loop_region(start, end)
            except ValueError as e:
                return validation_error(str(e))

        if "note" in data:
            recording.note = data["note"]
            recording.save(update_fields=["note"])

        return Response(RecordingSerializer(recording).data)

    def delete(self, request, recording_id):
        recording = Recording.get_or_none(request.user, recording_id)
        if recording is None:
            return not_found("Recording")
        recording.delete_with_media()
        notify_user(request.user.id, "Recording deleted")
        return Response(status=status.HTTP_204_NO_CONTENT)


class WaveformView(APIView):
    """GET /api/recordings/{recording_id}/waveform/?samples=100."""

    permission_classes = [IsAuthenticated]

    def get(self, request, recording_id):
        recording = Recording.get_or_none(request.user, recording_id)
        if recording is None:
            return not_found("Recording")

        try:
            sample_count = int(request.query_params.get("samples", DEFAULT_SAMPLE_COUNT))
        except ValueError:
            return validation_error("samples must be an integer")
        if not 1 <= sample_count <= MAX_WAVEFORM_SAMPLES:
            return validation_error(f"samples must be between 1 and {MAX_WAVEFORM_SAMPLES}")

        if recording.file_path:
            peaks = stored_waveform(recording.file_path, sample_count)
        else:
            peaks = [0.0] * sample_count
        return Response({"recording_id": str(recording.id), "samples": peaks})


class ClipListView(APIView):
    """GET /api/clips/?q= — every recording with its song and part."""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        clips = all_clips(request.user, request.query_params.get("q", "").strip())
        return Response(ClipSerializer(clips, many=True).data)


class SongSearchView(APIView):
    """GET /api/song-search/?q=&limit= — song suggestions from iTunes."""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        try:
            limit = int(request.query_params.get("limit", song_search.DEFAULT_LIMIT))
        except ValueError:
            return validation_error("limit must be an integer")

        try:
            results = song_search.search(request.query_params.get("q", ""), limit=max(1, min(limit, 200)))
        except (urllib.error.URLError, TimeoutError, ValueError) as e:
            logger.warning(f"Song search failed: {e}")
            return Response(
                {"error": "service_unavailable", "message": "Song search unavailable"},
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )
        return Response([r.to_dict() for r in results])


class StandardPartsView(APIView):
    """GET /api/song-parts/ — suggested part names."""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response([choice.value for choice in StandardSongPart])


class QuickUploadSessionView(APIView):
    """GET /api/quick-upload/ — current session. DELETE — clear it."""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        session = QuickUploadSession.for_user(request.user)
        return Response(QuickUploadSessionSerializer(session).data)

    def delete(self, request):
        QuickUploadSession.for_user(request.user).clear()
        return Response(status=status.HTTP_204_NO_CONTENT)


class QuickUploadClipListView(APIView):
    """POST /api/quick-upload/clips/ — add a clip to the session."""

    permission_classes = [IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser]

    def post(self, request):
        upload = request.FILES.get("file")
        if not upload:
            return validation_error("file is required")

        mime_type = upload_mime_type(upload, request.data.get("mime_type", ""))
        if mime_type not in SUPPORTED_MIME_TYPES:
            return unsupported_format(mime_type)

        duration = request.data.get("duration", "")
        saved_path = save_upload(upload, "quick-upload", mime_type)
        if duration in ("", None):
            duration = probe_duration(saved_path) or 0.0
        try:
            duration = float(duration)
        except (TypeError, ValueError):
            default_storage.delete(saved_path)
            return validation_error("duration must be a number")

        clip = QuickUploadSession.for_user(request.user).add_clip(saved_path, duration)
        return Response(QuickUploadClipSerializer(clip).data, status=status.HTTP_201_CREATED)


class QuickUploadClipDetailView(APIView):
    """PATCH (identify) or DELETE /api/quick-upload/clips/{clip_id}/."""

    permission_classes = [IsAuthenticated]

    def _get_clip(self, request, clip_id):
        return QuickUploadClip.objects.filter(id=clip_id, session__user=request.user).first()

    def patch(self, request, clip_id):
        clip = self._get_clip(request, clip_id)
        if clip is None:
            return not_found("Clip")

        serializer = ClipIdentifySerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer.errors)
        data = serializer.validated_data

        song = None
        if data.get("song_id"):
            song = Song.get_or_none(request.user, data["song_id"])
            if song is None:
                return not_found("Song")

        clip.identify(data["song_title"], data["song_artist"], data["part_name"], song=song)
        return Response(QuickUploadClipSerializer(clip).data)

    def delete(self, request, clip_id):
        clip = self._get_clip(request, clip_id)
        if clip is None:
            return not_found("Clip")
        clip.session.delete_clip(clip)
        return Response(status=status.HTTP_204_NO_CONTENT)


class QuickUploadFinishView(APIView):
    """POST /api/quick-upload/finish/ — save identified clips to the library."""

    permission_classes = [IsAuthenticated]

    def post(self, request):
        session = QuickUploadSession.for_user(request.user)
        recordings = session.finish()
        if recordings:
            noun = "recording" if len(recordings) == 1 else "recordings"
            notify_user(request.user.id, f"Saved {len(recordings)} {noun} to your library")
        return Response({
            "saved": len(recordings),
            "recordings": RecordingSerializer(recordings, many=True).data,
        })

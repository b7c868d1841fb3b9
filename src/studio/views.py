"""API views for compositions and their tracks."""

import logging

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from src.library.models import Recording
from .models import Composition
from .serializers import CompositionSerializer, CompositionTrackSerializer, TrackAddSerializer

logger = logging.getLogger(__name__)


def validation_error(errors) -> Response:
    return Response(
        {"error": "validation_error", "message": errors},
        status=status.HTTP_400_BAD_REQUEST,
    )


def not_found(what: str) -> Response:
    return Response({"error": f"{what} not found"}, status=status.HTTP_404_NOT_FOUND)


class CompositionListView(APIView):
    """GET /api/compositions/ — newest first. POST — create one."""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        compositions = Composition.objects.filter(user=request.user).prefetch_related("tracks")
        return Response(CompositionSerializer(compositions, many=True).data)

    def post(self, request):
        serializer = CompositionSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer.errors)
        composition = serializer.save(user=request.user)
        return Response(CompositionSerializer(composition).data, status=status.HTTP_201_CREATED)


class CompositionDetailView(APIView):
    """GET, PATCH (title, duration) or DELETE /api/compositions/{composition_id}/."""

    permission_classes = [IsAuthenticated]

    def get(self, request, composition_id):
        composition = Composition.get_or_none(request.user, composition_id)
        if composition is None:
            return not_found("Composition")
        return Response(CompositionSerializer(composition).data)

    def patch(self, request, composition_id):
        composition = Composition.get_or_none(request.user, composition_id)
        if composition is None:
            return not_found("Composition")

        serializer = CompositionSerializer(composition, data=request.data, partial=True)
        if not serializer.is_valid():
            return validation_error(serializer.errors)
        serializer.save()
        return Response(CompositionSerializer(composition).data)

    def delete(self, request, composition_id):
        composition = Composition.get_or_none(request.user, composition_id)
        if composition is None:
            return not_found("Composition")
        composition.delete_with_media()
        return Response(status=status.HTTP_204_NO_CONTENT)


class TrackListView(APIView):
    """POST /api/compositions/{composition_id}/tracks/ — place a recording."""

    permission_classes = [IsAuthenticated]

    def post(self, request, composition_id):
        composition = Composition.get_or_none(request.user, composition_id)
        if composition is None:
            return not_found("Composition")

        serializer = TrackAddSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer.errors)

        recording = Recording.get_or_none(request.user, serializer.validated_data["recording_id"])
        if recording is None:
            return not_found("Recording")

        track = composition.add_track(recording)
        return Response(CompositionTrackSerializer(track).data, status=status.HTTP_201_CREATED)


class TrackDetailView(APIView):
    """PATCH or DELETE /api/compositions/{composition_id}/tracks/{track_id}/."""

    permission_classes = [IsAuthenticated]

    def _get_track(self, request, composition_id, track_id):
        composition = Composition.get_or_none(request.user, composition_id)
        if composition is None:
            return None
        return composition.tracks.filter(id=track_id).first()

    def patch(self, request, composition_id, track_id):
        track = self._get_track(request, composition_id, track_id)
        if track is None:
            return not_found("Track")

        serializer = CompositionTrackSerializer(track, data=request.data, partial=True)
        if not serializer.is_valid():
            return validation_error(serializer.errors)
        serializer.save()
        return Response(serializer.data)

    def delete(self, request, composition_id, track_id):
        track = self._get_track(request, composition_id, track_id)
        if track is None:
            return not_found("Track")
        track.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


class CompositionExportView(APIView):
    """POST /api/compositions/{composition_id}/export/ — render the mixdown."""

    permission_classes = [IsAuthenticated]

    def post(self, request, composition_id):
        composition = Composition.get_or_none(request.user, composition_id)
        if composition is None:
            return not_found("Composition")

        if not composition.tracks.exists():
            return validation_error("Composition has no tracks")

        task_id = composition.queue_export()
        if task_id is None:
            return Response(
                {"error": "service_unavailable", "message": "Export service unavailable"},
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )

        logger.info(f"Queued export task {task_id} for composition {composition.id}")
        return Response(
            {"id": str(composition.id), "export_status": composition.export_status, "task_id": task_id},
            status=status.HTTP_202_ACCEPTED,
        )

"""API views for the loop catalog."""

import logging

from pydantic import ValidationError
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from src.library.models import delete_stored_file
from src.tools.audio import probe_duration
from .catalog import LoopFilter, available_keys, available_part_types, available_tags, find_compatible_loops
from .models import Loop
from .serializers import LoopCreateSerializer, LoopSerializer, LoopUpdateSerializer

logger = logging.getLogger(__name__)


def validation_error(errors) -> Response:
    return Response(
        {"error": "validation_error", "message": errors},
        status=status.HTTP_400_BAD_REQUEST,
    )


def loop_not_found() -> Response:
    return Response({"error": "Loop not found"}, status=status.HTTP_404_NOT_FOUND)


class LoopListView(APIView):
    """
    GET /api/loops/ — filtered catalog.

    Query: part_type, bpm_min, bpm_max, key, tag (repeatable), starred,
    imported, q. Without any of them every loop is returned.

    POST /api/loops/ — add an imported loop.
    """

    permission_classes = [IsAuthenticated]

    def get(self, request):
        try:
            loop_filter = LoopFilter.from_query_params(request.query_params)
        except ValidationError as e:
            return validation_error(e.errors(include_url=False, include_context=False))

        loops = loop_filter.apply(Loop.objects.filter(user=request.user))
        return Response(LoopSerializer(loops, many=True).data)

    def post(self, request):
        serializer = LoopCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer.errors)
        data = dict(serializer.validated_data)

        if data.get("length_seconds") is None:
            data["length_seconds"] = probe_duration(data["file_path"]) or 0.0

        loop = Loop.objects.create(user=request.user, **data)
        if loop.bpm is None or loop.key is None:
            loop.queue_analysis()
            loop.refresh_from_db()
        else:
            loop.analysis_status = Loop.AnalysisStatus.COMPLETE
            loop.save(update_fields=["analysis_status"])

        return Response(LoopSerializer(loop).data, status=status.HTTP_201_CREATED)


class LoopFacetsView(APIView):
    """GET /api/loops/facets/ — distinct part types, keys and tags for filter pickers."""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        loops = list(Loop.objects.filter(user=request.user))
        return Response({
            "part_types": available_part_types(loops),
            "keys": available_keys(loops),
            "tags": available_tags(loops),
        })


class LoopDetailView(APIView):
    """GET, PATCH (bpm, key, tags, is_starred) or DELETE /api/loops/{loop_id}/."""

    permission_classes = [IsAuthenticated]

    def get(self, request, loop_id):
        loop = Loop.get_or_none(request.user, loop_id)
        if loop is None:
            return loop_not_found()
        return Response(LoopSerializer(loop).data)

    def patch(self, request, loop_id):
        loop = Loop.get_or_none(request.user, loop_id)
        if loop is None:
            return loop_not_found()

        serializer = LoopUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer.errors)
        loop.update_metadata(**serializer.validated_data)
        return Response(LoopSerializer(loop).data)

    def delete(self, request, loop_id):
        loop = Loop.get_or_none(request.user, loop_id)
        if loop is None:
            return loop_not_found()

        # Derived loops share their recording's file
        if loop.recording_id is None:
            delete_stored_file(loop.file_path)
        loop.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


class LoopStarView(APIView):
    """POST /api/loops/{loop_id}/star/ — toggle the star."""

    permission_classes = [IsAuthenticated]

    def post(self, request, loop_id):
        loop = Loop.get_or_none(request.user, loop_id)
        if loop is None:
            return loop_not_found()
        loop.toggle_star()
        return Response(LoopSerializer(loop).data)


class CompatibleLoopsView(APIView):
    """GET /api/loops/{loop_id}/compatible/ — loops in a matching key and tempo."""

    permission_classes = [IsAuthenticated]

    def get(self, request, loop_id):
        loop = Loop.get_or_none(request.user, loop_id)
        if loop is None:
            return loop_not_found()
        candidates = Loop.objects.filter(user=request.user)
        return Response(LoopSerializer(find_compatible_loops(loop, candidates), many=True).data)


class LoopAnalyseView(APIView):
    """POST /api/loops/{loop_id}/analyse/ — run analysis again."""

    permission_classes = [IsAuthenticated]

    def post(self, request, loop_id):
        loop = Loop.get_or_none(request.user, loop_id)
        if loop is None:
            return loop_not_found()

        loop.analysis_status = Loop.AnalysisStatus.PENDING
        loop.analysis_error = ""
        loop.save(update_fields=["analysis_status", "analysis_error"])

        task_id = loop.queue_analysis()
        if task_id is None:
            return Response(
                {"error": "service_unavailable", "message": "Analysis service unavailable"},
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )
        logger.info(f"Queued analysis task {task_id} for loop {loop.id}")
        return Response(
            {"id": str(loop.id), "analysis_status": loop.analysis_status, "task_id": task_id},
            status=status.HTTP_202_ACCEPTED,
        )

"""
API views for service health and the per-user file store.
"""

import logging

from django.conf import settings
from django.http import HttpResponse
from rest_framework import status
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from src.agents.registry import get_all_agents
from src.tools.audio import mime_type_for
from . import files

logger = logging.getLogger(__name__)


class HealthView(APIView):
    """GET /api/health/ — server availability check."""

    permission_classes = []
    authentication_classes = []

    def get(self, request):
        try:
            agents = [a.name for a in get_all_agents()]
        except Exception:
            return Response(
                {"status": "error", "message": "Agents unavailable"},
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )

        return Response({
            "status": "ok",
            "version": getattr(settings, "JAMSESH_VERSION", "0.0.0"),
            "agents": agents,
        })


class FileUploadView(APIView):
    """
    Upload a file to the caller's folder.

    POST /api/files/
    Body: multipart/form-data with 'path' and 'file' fields

    Returns:
        {"path": "<path>", "storage_path": "users/<id>/<path>", "url": "..."}
    """

    permission_classes = [IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser]

    def post(self, request):
        uploaded = request.FILES.get("file")
        if uploaded is None:
            return Response(
                {"error": "No file provided"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        path = request.data.get("path") or uploaded.name
        try:
            saved_path, url = files.upload(request.user.id, path, uploaded)
        except ValueError as e:
            return Response(
                {"error": "validation_error", "message": str(e)},
                status=status.HTTP_400_BAD_REQUEST,
            )

        return Response(
            {"path": path, "storage_path": saved_path, "url": url},
            status=status.HTTP_201_CREATED,
        )


class FileDetailView(APIView):
    """
    Download or delete a file in the caller's folder.

    GET /api/files/{path}
    DELETE /api/files/{path}
    """

    permission_classes = [IsAuthenticated]

    def get(self, request, path):
        try:
            data = files.download(request.user.id, path)
        except ValueError as e:
            return Response(
                {"error": "validation_error", "message": str(e)},
                status=status.HTTP_400_BAD_REQUEST,
            )
        except FileNotFoundError:
            return Response({"error": "File not found"}, status=status.HTTP_404_NOT_FOUND)
        except files.FileTooLarge as e:
            return Response(
                {"error": "file_too_large", "message": str(e)},
                status=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            )

        return HttpResponse(data, content_type=mime_type_for(path) or "application/octet-stream")

    def delete(self, request, path):
        try:
            deleted = files.delete(request.user.id, path)
        except ValueError as e:
            return Response(
                {"error": "validation_error", "message": str(e)},
                status=status.HTTP_400_BAD_REQUEST,
            )
        if not deleted:
            return Response({"error": "File not found"}, status=status.HTTP_404_NOT_FOUND)
        return Response(status=status.HTTP_204_NO_CONTENT)

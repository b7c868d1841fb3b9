"""Request/response shapes for the composition API."""

from rest_framework import serializers

from .models import Composition, CompositionTrack


class CompositionTrackSerializer(serializers.ModelSerializer):
    recording_id = serializers.PrimaryKeyRelatedField(source="recording", read_only=True)

    class Meta:
        model = CompositionTrack
        fields = ["id", "recording_id", "start_time", "volume", "is_muted", "track_color", "position"]
        read_only_fields = ["id", "recording_id", "position"]


class CompositionSerializer(serializers.ModelSerializer):
    tracks = CompositionTrackSerializer(many=True, read_only=True)
    export_url = serializers.CharField(read_only=True)

    class Meta:
        model = Composition
        fields = [
            "id", "title", "created_date", "duration", "tracks",
            "export_status", "export_url", "export_error",
        ]
        read_only_fields = ["id", "created_date", "tracks", "export_status", "export_url", "export_error"]


class TrackAddSerializer(serializers.Serializer):
    recording_id = serializers.UUIDField()

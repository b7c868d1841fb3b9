"""Request/response shapes for the loop catalog API."""

from rest_framework import serializers

from .models import Loop


class LoopSerializer(serializers.ModelSerializer):
    recording_id = serializers.PrimaryKeyRelatedField(source="recording", read_only=True)
    file_url = serializers.CharField(read_only=True)

    class Meta:
        model = Loop
        fields = [
            "id", "recording_id", "song_id", "song_title", "song_artist", "part_type",
            "length_seconds", "date_created", "bpm", "key", "tags", "file_path", "file_url",
            "is_imported", "shared_by", "is_starred", "analysis_status", "analysis_error",
        ]
        read_only_fields = fields


class TagListField(serializers.ListField):
    child = serializers.CharField(max_length=50)

    def to_internal_value(self, data):
        # Trimmed, blanks dropped, first occurrence wins
        tags = []
        for tag in super().to_internal_value(data):
            tag = tag.strip()
            if tag and tag not in tags:
                tags.append(tag)
        return tags


class LoopCreateSerializer(serializers.Serializer):
    """Body of POST /api/loops/ for loops imported from elsewhere."""

    song_title = serializers.CharField(max_length=255)
    song_artist = serializers.CharField(max_length=255)
    part_type = serializers.CharField(max_length=100)
    file_path = serializers.CharField(max_length=500)
    length_seconds = serializers.FloatField(required=False, min_value=0)
    song_id = serializers.UUIDField(required=False, allow_null=True)
    bpm = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    key = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=10)
    tags = TagListField(required=False, default=list)
    is_imported = serializers.BooleanField(required=False, default=True)
    shared_by = serializers.CharField(required=False, allow_blank=True, default="", max_length=150)

    def validate_key(self, value):
        return value or None


class LoopUpdateSerializer(serializers.Serializer):
    bpm = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    key = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=10)
    tags = TagListField(required=False)
    is_starred = serializers.BooleanField(required=False)

    def validate_key(self, value):
        return value or None

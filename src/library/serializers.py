"""Request/response shapes for the practice library API."""

from rest_framework import serializers

from .models import QuickUploadClip, QuickUploadSession, Recording, Song, SongPart


class LenientChoiceField(serializers.ChoiceField):
    """Choice field that maps unknown raw values to a default instead of failing."""

    def __init__(self, choices, fallback, **kwargs):
        self.fallback = fallback
        if "required" not in kwargs:
            kwargs.setdefault("default", fallback)
        super().__init__(choices, **kwargs)

    def to_internal_value(self, data):
        if data in ("", None) or str(data) not in self.choice_strings_to_values:
            return self.fallback
        return super().to_internal_value(data)


class RecordingSerializer(serializers.ModelSerializer):
    file_url = serializers.CharField(read_only=True)

    class Meta:
        model = Recording
        fields = [
            "id", "type", "recorded_at", "note", "file_path", "file_url",
            "duration_seconds", "is_loop", "loop_start_time", "loop_end_time",
        ]
        read_only_fields = fields


class SongPartSerializer(serializers.ModelSerializer):
    recordings = RecordingSerializer(many=True, read_only=True)

    class Meta:
        model = SongPart
        fields = ["id", "name", "status", "recordings"]
        read_only_fields = fields


class SongSerializer(serializers.ModelSerializer):
    parts = SongPartSerializer(many=True, read_only=True)
    completion_percentage = serializers.IntegerField(read_only=True)
    is_fully_learned = serializers.BooleanField(read_only=True)

    class Meta:
        model = Song
        fields = [
            "id", "title", "artist", "artwork_url", "album_color", "date_added",
            "completion_percentage", "is_fully_learned", "parts",
        ]
        read_only_fields = fields


class SongInputSerializer(serializers.Serializer):
    """Body of POST /api/songs/."""

    title = serializers.CharField(max_length=255)
    artist = serializers.CharField(max_length=255)
    part_name = serializers.CharField(max_length=100)
    part_status = LenientChoiceField(SongPart.Status.choices, SongPart.Status.LEARNING)
    album_color = LenientChoiceField(Song.AlbumColor.choices, Song.AlbumColor.PURPLE)
    artwork_url = serializers.URLField(max_length=500, required=False, allow_blank=True, default="")

    def validate_title(self, value):
        if not value.strip():
            raise serializers.ValidationError("title must not be blank")
        return value.strip()

    def validate_artist(self, value):
        if not value.strip():
            raise serializers.ValidationError("artist must not be blank")
        return value.strip()


class SongUpdateSerializer(serializers.ModelSerializer):
    album_color = LenientChoiceField(Song.AlbumColor.choices, Song.AlbumColor.PURPLE, required=False)

    class Meta:
        model = Song
        fields = ["title", "artist", "artwork_url", "album_color"]


class PartInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    status = LenientChoiceField(SongPart.Status.choices, SongPart.Status.LEARNING)


class PartStatusSerializer(serializers.Serializer):
    status = LenientChoiceField(SongPart.Status.choices, SongPart.Status.LEARNING)


class RecordingUploadSerializer(serializers.Serializer):
    """Multipart body of a new take."""

    file = serializers.FileField()
    type = LenientChoiceField(Recording.Type.choices, Recording.Type.AUDIO)
    note = serializers.CharField(required=False, allow_blank=True, default="")
    recorded_at = serializers.DateTimeField(required=False)
    mime_type = serializers.CharField(required=False, allow_blank=True, default="")


class RecordingUpdateSerializer(serializers.Serializer):
    note = serializers.CharField(required=False, allow_blank=True)
    is_loop = serializers.BooleanField(required=False)
    loop_start_time = serializers.FloatField(required=False, allow_null=True, min_value=0)
    loop_end_time = serializers.FloatField(required=False, allow_null=True, min_value=0)

    def validate(self, attrs):
        start = attrs.get("loop_start_time")
        end = attrs.get("loop_end_time")
        if start is not None and end is not None and start >= end:
            raise serializers.ValidationError("loop_start_time must be before loop_end_time")
        return attrs


class ClipSerializer(serializers.Serializer):
    """A recording with the song and part it belongs to."""

    id = serializers.UUIDField(source="recording.id")
    recording = RecordingSerializer()
    song_id = serializers.UUIDField(source="song.id")
    song_title = serializers.CharField(source="song.title")
    song_artist = serializers.CharField(source="song.artist")
    album_color = serializers.CharField(source="song.album_color")
    part_id = serializers.UUIDField(source="part.id")
    part_name = serializers.CharField(source="part.name")


class QuickUploadClipSerializer(serializers.ModelSerializer):
    song_id = serializers.PrimaryKeyRelatedField(source="song", read_only=True)

    class Meta:
        model = QuickUploadClip
        fields = [
            "id", "file_path", "duration", "recorded_at", "is_identified",
            "song_id", "song_title", "song_artist", "part_name",
        ]
        read_only_fields = fields


class QuickUploadSessionSerializer(serializers.ModelSerializer):
    clips = QuickUploadClipSerializer(many=True, read_only=True)
    progress = serializers.FloatField(read_only=True)

    class Meta:
        model = QuickUploadSession
        fields = ["started_at", "last_modified", "progress", "clips"]
        read_only_fields = fields


class ClipIdentifySerializer(serializers.Serializer):
    song_id = serializers.UUIDField(required=False, allow_null=True)
    song_title = serializers.CharField(max_length=255)
    song_artist = serializers.CharField(max_length=255)
    part_name = serializers.CharField(max_length=100)

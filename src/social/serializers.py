"""Request/response shapes for the social API."""

from rest_framework import serializers

from .models import REACTION_EMOJIS, Group, GroupProgress, GroupSong, Profile, PublicRecording


class ProfileSerializer(serializers.ModelSerializer):
    id = serializers.IntegerField(source="user_id", read_only=True)

    class Meta:
        model = Profile
        fields = ["id", "username", "email", "bio", "photo_url"]
        read_only_fields = ["id", "email"]

    def validate_username(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Username cannot be blank")
        user = self.instance.user if self.instance is not None else None
        if Profile.username_taken(value, exclude_user=user):
            raise serializers.ValidationError("Username already taken")
        return value


class PublicProfileSerializer(serializers.ModelSerializer):
    id = serializers.IntegerField(source="user_id", read_only=True)

    class Meta:
        model = Profile
        fields = ["id", "username", "bio", "photo_url"]
        read_only_fields = fields


class PublicRecordingSerializer(serializers.ModelSerializer):
    user_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = PublicRecording
        fields = [
            "id", "user_id", "username", "song_title", "artist_name", "part_name",
            "duration", "likes", "file_url", "created_at",
        ]
        read_only_fields = fields


class GroupSerializer(serializers.ModelSerializer):
    member_ids = serializers.SerializerMethodField()
    created_by_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Group
        fields = ["id", "name", "description", "cover_photo_url", "member_ids", "created_by_id", "created_date"]
        read_only_fields = fields

    def get_member_ids(self, group):
        return sorted(m.id for m in group.members.all())


class GroupCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    cover_photo = serializers.FileField(required=False)
    member_ids = serializers.ListField(child=serializers.IntegerField(), required=False, default=list)

    def validate_name(self, value):
        if not value.strip():
            raise serializers.ValidationError("name must not be blank")
        return value.strip()


class GroupSongSerializer(serializers.ModelSerializer):
    added_by_id = serializers.IntegerField(read_only=True)
    member_progress_ids = serializers.SerializerMethodField()

    class Meta:
        model = GroupSong
        fields = ["id", "title", "artist", "artwork_url", "added_by_id", "added_date", "member_progress_ids"]
        read_only_fields = ["id", "added_by_id", "added_date", "member_progress_ids"]

    def get_member_progress_ids(self, song):
        return sorted(m.id for m in song.member_progress.all())


class GroupProgressSerializer(serializers.ModelSerializer):
    song_id = serializers.UUIDField(read_only=True)
    posted_by_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = GroupProgress
        fields = [
            "id", "song_id", "song_title", "song_artist", "posted_by_id", "posted_by_username",
            "posted_date", "progress_text", "video_url", "audio_url", "reaction_counts",
        ]
        read_only_fields = fields


class ProgressPostSerializer(serializers.Serializer):
    song_id = serializers.UUIDField()
    progress_text = serializers.CharField()
    video_url = serializers.URLField(required=False, allow_blank=True, default="")
    audio_url = serializers.URLField(required=False, allow_blank=True, default="")


class ReactionSerializer(serializers.Serializer):
    emoji = serializers.ChoiceField(choices=REACTION_EMOJIS)

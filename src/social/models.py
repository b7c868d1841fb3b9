"""Models for profiles, shared recordings and practice groups."""

import logging
import uuid

from django.contrib.auth.models import User
from django.db import models, transaction
from django.db.models import Count, F
from django.db.models.functions import Lower
from django.utils import timezone

logger = logging.getLogger(__name__)

REACTION_EMOJIS = ["👍", "🔥", "🎸", "❤️", "🎵"]


class Profile(models.Model):
    """Public face of a user: username, photo and who they follow."""

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name="profile")
    username = models.CharField(max_length=150)
    email = models.EmailField(blank=True)
    bio = models.TextField(blank=True)
    photo_url = models.URLField(max_length=500, blank=True)
    # One-directional: adding a friend does not add you to their list
    friends = models.ManyToManyField(User, blank=True, related_name="friend_of")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(Lower("username"), name="unique_profile_username_ci"),
        ]

    def __str__(self):
        return self.username

    @classmethod
    def for_user(cls, user: User) -> "Profile":
        profile, created = cls.objects.get_or_create(
            user=user,
            defaults={"username": lambda: cls.free_username(user), "email": user.email},
        )
        if created:
            logger.info(f"Created profile for user {user.id} as {profile.username}")
        return profile

    @classmethod
    def username_taken(cls, username: str, exclude_user: User | None = None) -> bool:
        """True if any other account or profile holds the name, ignoring case."""
        users = User.objects.filter(username__iexact=username)
        profiles = cls.objects.filter(username__iexact=username)
        if exclude_user is not None:
            users = users.exclude(pk=exclude_user.pk)
            profiles = profiles.exclude(user=exclude_user)
        return users.exists() or profiles.exists()

    @classmethod
    def free_username(cls, user: User) -> str:
        """The account's username, or a suffixed one when a profile already holds it."""
        candidate = user.username
        suffix = 0
        while cls.objects.filter(username__iexact=candidate).exists():
            suffix += 1
            candidate = f"{user.username}-{user.id}" if suffix == 1 else f"{user.username}-{user.id}-{suffix}"
        return candidate

    @classmethod
    def search(cls, query: str, exclude_user: User):
        """Profiles whose username contains the query, ignoring case."""
        query = query.strip()
        if not query:
            return cls.objects.none()
        return cls.objects.filter(username__icontains=query).exclude(user=exclude_user).order_by("username")

    def add_friend(self, friend: User) -> None:
        if friend.id == self.user_id:
            raise ValueError("cannot add yourself as a friend")
        self.friends.add(friend)

    def remove_friend(self, friend: User) -> None:
        self.friends.remove(friend)

    def feed(self):
        """Public recordings of everyone this user follows, newest first."""
        return PublicRecording.objects.filter(user__in=self.friends.all()).order_by("-created_at")


class PublicRecording(models.Model):
    """A take shared to the social feed."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4)
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="public_recordings")
    recording = models.ForeignKey(
        "library.Recording",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="shares",
    )

    username = models.CharField(max_length=150)
    song_title = models.CharField(max_length=255)
    artist_name = models.CharField(max_length=255)
    part_name = models.CharField(max_length=100)
    duration = models.FloatField(default=0)
    likes = models.PositiveIntegerField(default=0)
    file_url = models.URLField(max_length=500, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.username}: {self.song_title} ({self.part_name})"

    @classmethod
    def share(cls, recording) -> "PublicRecording":
        """Publish a library recording to its owner's followers."""
        part = recording.part
        song = part.song
        return cls.objects.create(
            user=song.user,
            recording=recording,
            username=Profile.for_user(song.user).username,
            song_title=song.title,
            artist_name=song.artist,
            part_name=part.name,
            duration=recording.duration_seconds or 0,
            file_url=recording.file_url,
        )

    def like(self) -> int:
        PublicRecording.objects.filter(id=self.id).update(likes=F("likes") + 1)
        self.refresh_from_db(fields=["likes"])
        return self.likes


class GroupQuerySet(models.QuerySet):

    def for_member(self, user: User):
        return self.filter(members=user).order_by("-created_date")

    def create_group(
        self,
        creator: User,
        name: str,
        description: str = "",
        cover_photo_url: str = "",
        members=(),
    ) -> "Group":
        """Create a group; the creator is always a member."""
        with transaction.atomic():
            group = self.create(
                name=name,
                description=description,
                cover_photo_url=cover_photo_url,
                created_by=creator,
            )
            group.members.add(creator, *members)
        return group


class Group(models.Model):
    """Friends practising a shared song list together."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    cover_photo_url = models.URLField(max_length=500, blank=True)
    members = models.ManyToManyField(User, related_name="practice_groups")
    created_by = models.ForeignKey(User, on_delete=models.CASCADE, related_name="created_groups")
    created_date = models.DateTimeField(default=timezone.now)

    objects = GroupQuerySet.as_manager()

    class Meta:
        ordering = ["-created_date"]

    def __str__(self):
        return self.name

    @classmethod
    def get_or_none(cls, group_id) -> "Group | None":
        try:
            return cls.objects.get(id=group_id)
        except (cls.DoesNotExist, ValueError):
            return None

    def is_member(self, user: User) -> bool:
        return self.members.filter(id=user.id).exists()

    def member_infos(self) -> list[dict]:
        """Members with the ids of the group songs each one can play."""
        songs = list(self.songs.prefetch_related("member_progress"))
        infos = []
        for member in self.members.select_related("profile").order_by("username"):
            profile = getattr(member, "profile", None)
            infos.append({
                "id": member.id,
                "username": profile.username if profile else member.username,
                "photo_url": profile.photo_url if profile and profile.photo_url else None,
                "songs_can_play": [
                    str(song.id) for song in songs
                    if any(m.id == member.id for m in song.member_progress.all())
                ],
            })
        return infos

    def add_song(self, user: User, title: str, artist: str, artwork_url: str = "") -> "GroupSong":
        return self.songs.create(title=title, artist=artist, artwork_url=artwork_url or "", added_by=user)

    def post_progress(
        self,
        user: User,
        song: "GroupSong",
        progress_text: str,
        video_url: str = "",
        audio_url: str = "",
    ) -> "GroupProgress":
        """Share a practice update; the poster now counts as able to play the song."""
        with transaction.atomic():
            progress = self.progress_updates.create(
                song=song,
                song_title=song.title,
                song_artist=song.artist,
                posted_by=user,
                posted_by_username=Profile.for_user(user).username,
                progress_text=progress_text,
                video_url=video_url or "",
                audio_url=audio_url or "",
            )
            song.member_progress.add(user)
        return progress

    def jam_list(self, min_members: int = 2) -> list[dict]:
        """Songs at least `min_members` members can play, most popular first."""
        songs = (
            self.songs.annotate(member_count=Count("member_progress", distinct=True))
            .filter(member_count__gte=min_members)
            .order_by("-member_count", "title")
        )
        return [
            {
                "id": str(song.id),
                "title": song.title,
                "artist": song.artist,
                "artwork_url": song.artwork_url or None,
                "member_count": song.member_count,
            }
            for song in songs
        ]


class GroupSong(models.Model):
    """A song on a group's shared list."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4)
    group = models.ForeignKey(Group, on_delete=models.CASCADE, related_name="songs")
    title = models.CharField(max_length=255)
    artist = models.CharField(max_length=255)
    artwork_url = models.URLField(max_length=500, blank=True)
    added_by = models.ForeignKey(User, on_delete=models.CASCADE, related_name="+")
    added_date = models.DateTimeField(default=timezone.now)
    # Members who have posted progress on this song
    member_progress = models.ManyToManyField(User, blank=True, related_name="+")

    class Meta:
        ordering = ["-added_date"]

    def __str__(self):
        return f"{self.title} - {self.artist}"


class GroupProgress(models.Model):
    """A member's practice update on a group song."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4)
    group = models.ForeignKey(Group, on_delete=models.CASCADE, related_name="progress_updates")
    song = models.ForeignKey(GroupSong, on_delete=models.CASCADE, related_name="progress_updates")
    song_title = models.CharField(max_length=255)
    song_artist = models.CharField(max_length=255)
    posted_by = models.ForeignKey(User, on_delete=models.CASCADE, related_name="+")
    posted_by_username = models.CharField(max_length=150)
    posted_date = models.DateTimeField(default=timezone.now)
    progress_text = models.TextField()
    video_url = models.URLField(max_length=500, blank=True)
    audio_url = models.URLField(max_length=500, blank=True)
    reaction_counts = models.JSONField(default=dict, blank=True)

    class Meta:
        ordering = ["-posted_date"]

    def __str__(self):
        return f"{self.posted_by_username} on {self.song_title}: {self.progress_text[:40]}"

    def has_reacted(self, user: User, emoji: str) -> bool:
        return self.reactions.filter(user=user, emoji=emoji).exists()

    def add_reaction(self, user: User, emoji: str) -> bool:
        """
        React once per emoji. Returns False when the reaction already existed.

        Raises:
            ValueError: If the emoji is not one of REACTION_EMOJIS
        """
        if emoji not in REACTION_EMOJIS:
            raise ValueError(f"Unsupported reaction: {emoji}")
        with transaction.atomic():
            locked = GroupProgress.objects.select_for_update().get(id=self.id)
            _, created = locked.reactions.get_or_create(user=user, emoji=emoji)
            if created:
                counts = dict(locked.reaction_counts)
                counts[emoji] = counts.get(emoji, 0) + 1
                locked.reaction_counts = counts
                locked.save(update_fields=["reaction_counts"])
        self.reaction_counts = locked.reaction_counts
        return created

    def remove_reaction(self, user: User, emoji: str) -> bool:
        """Returns False when there was nothing to remove."""
        with transaction.atomic():
            locked = GroupProgress.objects.select_for_update().get(id=self.id)
            deleted, _ = locked.reactions.filter(user=user, emoji=emoji).delete()
            if deleted:
                counts = dict(locked.reaction_counts)
                remaining = counts.get(emoji, 0) - 1
                if remaining > 0:
                    counts[emoji] = remaining
                else:
                    counts.pop(emoji, None)
                locked.reaction_counts = counts
                locked.save(update_fields=["reaction_counts"])
        self.reaction_counts = locked.reaction_counts
        return bool(deleted)


class GroupReaction(models.Model):
    """One member's emoji on a progress update."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4)
    progress = models.ForeignKey(GroupProgress, on_delete=models.CASCADE, related_name="reactions")
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="+")
    emoji = models.CharField(max_length=16)
    created_date = models.DateTimeField(default=timezone.now)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["progress", "user", "emoji"], name="unique_reaction_per_emoji"),
        ]

    def __str__(self):
        return f"{self.emoji} by {self.user_id} on {self.progress_id}"

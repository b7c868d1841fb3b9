"""Models for the practice library: songs, their parts and recorded takes."""

import logging
import uuid
from dataclasses import dataclass

from django.contrib.auth.models import User
from django.db import models, transaction
from django.db.models import F, Max, Q
from django.db.models.functions import Lower
from django.utils import timezone

logger = logging.getLogger(__name__)


class StandardSongPart(models.TextChoices):
    INTRO = "Intro"
    RIFF = "Riff"
    CHORDS = "Chords"
    BRIDGE = "Bridge"
    SOLO = "Solo"
    OUTRO = "Outro"


class SortOption(models.TextChoices):
    RECENTLY_UPDATED = "recently_updated"
    TITLE_ASC = "title_asc"
    TITLE_DESC = "title_desc"
    ARTIST_ASC = "artist_asc"
    ARTIST_DESC = "artist_desc"
    DATE_ADDED = "date_added"


def delete_stored_file(storage_path: str | None) -> None:
    """Remove a media file, ignoring files that are already gone."""
    from django.core.files.storage import default_storage

    if not storage_path:
        return
    try:
        if default_storage.exists(storage_path):
            default_storage.delete(storage_path)
    except OSError as e:
        logger.warning(f"Could not delete {storage_path}: {e}")


class SongQuerySet(models.QuerySet):

    def search(self, query: str):
        """Songs whose title or artist contains the query, ignoring case."""
        if not query:
            return self
        return self.filter(Q(title__icontains=query) | Q(artist__icontains=query))

    def in_progress(self):
        """Songs with at least one part still being learned."""
        learning = SongPart.objects.filter(status=SongPart.Status.LEARNING).values("song_id")
        return self.filter(id__in=learning)

    def sorted_by(self, option: str):
        if option == SortOption.TITLE_ASC:
            return self.order_by(Lower("title"), "id")
        if option == SortOption.TITLE_DESC:
            return self.order_by(Lower("title").desc(), "-id")
        if option == SortOption.ARTIST_ASC:
            return self.order_by(Lower("artist"), "id")
        if option == SortOption.ARTIST_DESC:
            return self.order_by(Lower("artist").desc(), "-id")
        if option == SortOption.DATE_ADDED:
            return self.order_by("-date_added", "-id")
        # Most recent recording first; songs never recorded go last
        return self.annotate(
            last_recorded=Max("parts__recordings__recorded_at"),
        ).order_by(F("last_recorded").desc(nulls_last=True), "-id")

    def find_existing(self, title: str, artist: str) -> "Song | None":
        return self.filter(title__iexact=title.strip(), artist__iexact=artist.strip()).first()

    def add_song(
        self,
        user: User,
        title: str,
        artist: str,
        part_name: str,
        part_status: str = "learning",
        album_color: str = "purple",
        artwork_url: str = "",
    ) -> "Song":
        """Create a song together with its first part."""
        with transaction.atomic():
            song = self.create(
                user=user,
                title=title,
                artist=artist,
                album_color=album_color,
                artwork_url=artwork_url or "",
            )
            song.parts.create(name=part_name, status=part_status)
        return song

    def add_or_update(
        self,
        user: User,
        title: str,
        artist: str,
        part_name: str,
        part_status: str = "learning",
        album_color: str = "purple",
        artwork_url: str = "",
    ) -> tuple["Song", "SongPart", bool]:
        """
        Append a part to the user's matching song, or create the song.

        Title and artist are trimmed and matched without regard to case.

        Returns:
            (song, part, created) where created is True for a new song
        """
        title = title.strip()
        artist = artist.strip()
        with transaction.atomic():
            existing = self.filter(user=user).find_existing(title, artist)
            if existing is not None:
                part = existing.add_part(part_name, part_status)
                return existing, part, False

            song = self.add_song(
                user, title, artist, part_name,
                part_status=part_status, album_color=album_color, artwork_url=artwork_url,
            )
        return song, song.parts.get(), True


class Song(models.Model):
    """A song in a user's practice library."""

    class AlbumColor(models.TextChoices):
        PURPLE = "purple"
        BLUE = "blue"
        ORANGE = "orange"
        GREEN = "green"
        FUCHSIA = "fuchsia"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4)
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="songs")

    title = models.CharField(max_length=255)
    artist = models.CharField(max_length=255)
    artwork_url = models.URLField(max_length=500, blank=True)
    album_color = models.CharField(max_length=20, choices=AlbumColor.choices, default=AlbumColor.PURPLE)

    date_added = models.DateTimeField(default=timezone.now)

    objects = SongQuerySet.as_manager()

    class Meta:
        ordering = ["title"]

    def __str__(self):
        return f"{self.title} - {self.artist}"

    @classmethod
    def get_or_none(cls, user: User, song_id) -> "Song | None":
        try:
            return cls.objects.get(id=song_id, user=user)
        except (cls.DoesNotExist, ValueError):
            return None

    # ----- Progress -----

    @property
    def completion_percentage(self) -> int:
        parts = list(self.parts.all())
        if not parts:
            return 0
        complete = sum(1 for p in parts if p.status == SongPart.Status.COMPLETE)
        return int(complete / len(parts) * 100)

    @property
    def is_fully_learned(self) -> bool:
        parts = list(self.parts.all())
        return bool(parts) and all(p.status == SongPart.Status.COMPLETE for p in parts)

    @property
    def last_recorded_at(self):
        dates = [r.recorded_at for p in self.parts.all() for r in p.recordings.all()]
        return max(dates) if dates else None

    # ----- Mutations -----

    def add_part(self, name: str, status: str = "learning") -> "SongPart":
        return self.parts.create(name=name, status=status)

    def delete_with_media(self) -> None:
        """Delete the song, its parts, recordings, derived loops and media files."""
        for recording in Recording.objects.filter(part__song=self):
            delete_stored_file(recording.file_path)
        self.delete()


class SongPart(models.Model):
    """A structural segment of a song (intro, solo, ...) being learned."""

    class Status(models.TextChoices):
        LEARNING = "learning"
        COMPLETE = "complete"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4)
    song = models.ForeignKey(Song, on_delete=models.CASCADE, related_name="parts")

    name = models.CharField(max_length=100)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.LEARNING)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]

    def __str__(self):
        return f"{self.song.title} / {self.name} ({self.status})"

    def set_status(self, status: str) -> None:
        self.status = status
        self.save(update_fields=["status"])

    def add_recording(
        self,
        file_path: str = "",
        type: str = "audio",
        note: str = "",
        recorded_at=None,
        duration_seconds: float | None = None,
    ) -> "Recording":
        """
        Attach a take to this part and derive a loop from it.

        The loop is created only when the take has a media file.
        """
        from src.loops.models import Loop

        recording = self.recordings.create(
            file_path=file_path or "",
            type=type,
            note=note,
            recorded_at=recorded_at or timezone.now(),
            duration_seconds=duration_seconds,
        )
        loop = Loop.objects.create_from_recording(recording)
        if loop is not None:
            # The worker must be able to read the loop row
            transaction.on_commit(loop.queue_analysis)
        return recording

    def delete_with_media(self) -> None:
        for recording in self.recordings.all():
            delete_stored_file(recording.file_path)
        self.delete()


class Recording(models.Model):
    """An audio or video take attached to a song part."""

    class Type(models.TextChoices):
        VIDEO = "video"
        AUDIO = "audio"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4)
    part = models.ForeignKey(SongPart, on_delete=models.CASCADE, related_name="recordings")

    type = models.CharField(max_length=10, choices=Type.choices, default=Type.AUDIO)
    recorded_at = models.DateTimeField(default=timezone.now)
    note = models.TextField(blank=True)
    file_path = models.CharField(max_length=500, blank=True)
    duration_seconds = models.FloatField(null=True, blank=True)

    # Loop region chosen in the loop editor
    is_loop = models.BooleanField(default=False)
    loop_start_time = models.FloatField(null=True, blank=True)
    loop_end_time = models.FloatField(null=True, blank=True)

    class Meta:
        ordering = ["-recorded_at"]

    def __str__(self):
        return f"{self.type} take of {self.part_id} ({self.recorded_at:%Y-%m-%d})"

    @classmethod
    def get_or_none(cls, user: User, recording_id) -> "Recording | None":
        try:
            return cls.objects.select_related("part__song").get(id=recording_id, part__song__user=user)
        except (cls.DoesNotExist, ValueError):
            return None

    @property
    def song(self) -> Song:
        return self.part.song

    @property
    def file_url(self) -> str:
        from django.core.files.storage import default_storage

        return default_storage.url(self.file_path) if self.file_path else ""

    def set_loop_region(self, start: float | None, end: float | None) -> None:
        """Mark the take as a loop between start and end seconds."""
        if start is not None and end is not None and not 0 <= start < end:
            raise ValueError("loop start must be >= 0 and before loop end")
        self.is_loop = True
        self.loop_start_time = start
        self.loop_end_time = end
        self.save(update_fields=["is_loop", "loop_start_time", "loop_end_time"])

    def clear_loop_region(self) -> None:
        self.is_loop = False
        self.loop_start_time = None
        self.loop_end_time = None
        self.save(update_fields=["is_loop", "loop_start_time", "loop_end_time"])

    def delete_with_media(self) -> None:
        """Delete the take, its media file and the loop derived from it."""
        delete_stored_file(self.file_path)
        self.delete()


class QuickUploadSession(models.Model):
    """A bulk recording session whose clips are identified afterwards."""

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name="quick_upload_session")
    started_at = models.DateTimeField(default=timezone.now)
    last_modified = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Quick upload for {self.user.username} ({self.clips.count()} clips)"

    @classmethod
    def for_user(cls, user: User) -> "QuickUploadSession":
        session, _ = cls.objects.get_or_create(user=user)
        return session

    @property
    def identified_clips(self):
        return self.clips.filter(is_identified=True)

    @property
    def unidentified_clips(self):
        return self.clips.filter(is_identified=False)

    @property
    def progress(self) -> float:
        total = self.clips.count()
        if not total:
            return 0.0
        return self.identified_clips.count() / total

    def touch(self) -> None:
        self.save(update_fields=["last_modified"])

    def add_clip(self, file_path: str, duration: float, recorded_at=None) -> "QuickUploadClip":
        clip = self.clips.create(
            file_path=file_path,
            duration=duration,
            recorded_at=recorded_at or timezone.now(),
        )
        self.touch()
        return clip

    def delete_clip(self, clip: "QuickUploadClip") -> None:
        delete_stored_file(clip.file_path)
        clip.delete()
        self.touch()

    def clear(self) -> None:
        """Delete every clip and its file, restarting the session."""
        for clip in self.clips.all():
            delete_stored_file(clip.file_path)
        self.clips.all().delete()
        self.started_at = timezone.now()
        self.save(update_fields=["started_at", "last_modified"])

    def finish(self) -> list[Recording]:
        """
        Save every identified clip into the library, then clear the session.

        Files of saved clips now belong to their recordings and are kept.
        """
        saved = []
        with transaction.atomic():
            for clip in self.identified_clips.order_by("recorded_at"):
                part = clip.target_part()
                if part is None:
                    continue
                saved.append(part.add_recording(
                    file_path=clip.file_path,
                    type=Recording.Type.AUDIO,
                    note="Quick upload",
                    recorded_at=clip.recorded_at,
                    duration_seconds=clip.duration,
                ))
                clip.delete()
            self.clear()
        logger.info(f"Quick upload for user {self.user_id} saved {len(saved)} recordings")
        return saved


class QuickUploadClip(models.Model):
    """A take recorded during a quick upload session."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4)
    session = models.ForeignKey(QuickUploadSession, on_delete=models.CASCADE, related_name="clips")

    file_path = models.CharField(max_length=500)
    duration = models.FloatField(default=0)
    recorded_at = models.DateTimeField(default=timezone.now)

    is_identified = models.BooleanField(default=False)
    song = models.ForeignKey(Song, on_delete=models.SET_NULL, null=True, blank=True, related_name="+")
    song_title = models.CharField(max_length=255, blank=True)
    song_artist = models.CharField(max_length=255, blank=True)
    part_name = models.CharField(max_length=100, blank=True)

    class Meta:
        ordering = ["-recorded_at"]

    def identify(self, song_title: str, song_artist: str, part_name: str, song: Song | None = None) -> None:
        self.is_identified = True
        self.song = song
        self.song_title = song_title
        self.song_artist = song_artist
        self.part_name = part_name
        self.save(update_fields=["is_identified", "song", "song_title", "song_artist", "part_name"])
        self.session.touch()

    def target_part(self) -> SongPart | None:
        """The part this clip should be saved to, creating song or part as needed."""
        if not (self.song_title and self.song_artist and self.part_name):
            return None
        if self.song is not None:
            part = self.song.parts.filter(name=self.part_name).first()
            return part or self.song.add_part(self.part_name, SongPart.Status.LEARNING)
        _, part, _ = Song.objects.add_or_update(
            self.session.user,
            self.song_title,
            self.song_artist,
            self.part_name,
            part_status=SongPart.Status.LEARNING,
        )
        return part


@dataclass(frozen=True)
class Clip:
    """A recording shown together with the song and part it belongs to."""

    recording: Recording
    part: SongPart
    song: Song


def all_clips(user: User, query: str = "") -> list[Clip]:
    """Every recording of the user's library, newest first.

    The query matches song title, artist or part name, ignoring case.
    """
    recordings = Recording.objects.filter(part__song__user=user).select_related("part__song")
    if query:
        recordings = recordings.filter(
            Q(part__song__title__icontains=query)
            | Q(part__song__artist__icontains=query)
            | Q(part__name__icontains=query)
        )
    return [
        Clip(recording=r, part=r.part, song=r.part.song)
        for r in recordings.order_by("-recorded_at", "-id")
    ]

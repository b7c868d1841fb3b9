"""Models for the loop catalog."""

import logging
import uuid

from django.contrib.auth.models import User
from django.db import models
from django.utils import timezone

from src.tools.audio import probe_duration

logger = logging.getLogger(__name__)


class LoopQuerySet(models.QuerySet):

    def create_from_recording(self, recording) -> "Loop | None":
        """
        Derive a catalog loop from a recorded take.

        Takes without a media file produce no loop. The length comes from the
        take's probed duration, or from the file itself (0 when unreadable).
        """
        if not recording.file_path:
            logger.info(f"Recording {recording.id} has no file, skipping loop creation")
            return None

        length = recording.duration_seconds
        if length is None:
            length = probe_duration(recording.file_path) or 0.0

        part = recording.part
        song = part.song
        return self.create(
            user=song.user,
            recording=recording,
            song_id=song.id,
            song_title=song.title,
            song_artist=song.artist,
            part_type=part.name,
            length_seconds=length,
            date_created=recording.recorded_at,
            file_path=recording.file_path,
        )


class Loop(models.Model):
    """A reusable, taggable catalog entry derived from a recording or imported."""

    class AnalysisStatus(models.TextChoices):
        PENDING = "pending"
        ANALYZING = "analyzing"
        COMPLETE = "complete"
        FAILED = "failed"

    UPDATABLE_FIELDS = ("bpm", "key", "tags", "is_starred")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4)
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="loops")
    # Deleting the take removes the loop; imported loops have no take
    recording = models.ForeignKey(
        "library.Recording",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="loops",
    )

    song_id = models.UUIDField(null=True, blank=True)
    song_title = models.CharField(max_length=255)
    song_artist = models.CharField(max_length=255)
    part_type = models.CharField(max_length=100)
    length_seconds = models.FloatField(default=0)
    date_created = models.DateTimeField(default=timezone.now)

    bpm = models.PositiveIntegerField(null=True, blank=True)
    key = models.CharField(max_length=10, null=True, blank=True)
    tags = models.JSONField(default=list, blank=True)

    file_path = models.CharField(max_length=500)
    is_imported = models.BooleanField(default=False)
    shared_by = models.CharField(max_length=150, blank=True)
    is_starred = models.BooleanField(default=False)

    analysis_status = models.CharField(
        max_length=20, choices=AnalysisStatus.choices, default=AnalysisStatus.PENDING,
    )
    analysis_error = models.TextField(blank=True)
    analyzed_at = models.DateTimeField(null=True, blank=True)

    objects = LoopQuerySet.as_manager()

    class Meta:
        ordering = ["-date_created"]

    def __str__(self):
        return f"{self.song_title} / {self.part_type} loop ({self.bpm or '?'} BPM)"

    @classmethod
    def get_or_none(cls, user: User, loop_id) -> "Loop | None":
        try:
            return cls.objects.get(id=loop_id, user=user)
        except (cls.DoesNotExist, ValueError):
            return None

    @property
    def file_url(self) -> str:
        from django.core.files.storage import default_storage

        return default_storage.url(self.file_path) if self.file_path else ""

    def update_metadata(self, **changes) -> list[str]:
        """
        Apply user edits. Only bpm, key, tags and is_starred can change.

        Returns:
            Names of the fields that were saved
        """
        fields = [name for name in self.UPDATABLE_FIELDS if name in changes]
        for name in fields:
            setattr(self, name, changes[name])
        if fields:
            self.save(update_fields=fields)
        return fields

    def toggle_star(self) -> bool:
        self.is_starred = not self.is_starred
        self.save(update_fields=["is_starred"])
        return self.is_starred

    def mark_analyzing(self) -> None:
        self.analysis_status = self.AnalysisStatus.ANALYZING
        self.analysis_error = ""
        self.save(update_fields=["analysis_status", "analysis_error"])

    def mark_failed(self, error: str) -> None:
        self.analysis_status = self.AnalysisStatus.FAILED
        self.analysis_error = error
        self.save(update_fields=["analysis_status", "analysis_error"])

    def apply_analysis(self, bpm: int | None, key: str | None, tags: list[str]) -> None:
        """Store analysis output. Values the user already set are kept."""
        if self.bpm is None:
            self.bpm = bpm
        if not self.key:
            self.key = key
        self.tags = list(self.tags) + [t for t in tags if t not in self.tags]
        self.analysis_status = self.AnalysisStatus.COMPLETE
        self.analysis_error = ""
        self.analyzed_at = timezone.now()
        self.save(update_fields=["bpm", "key", "tags", "analysis_status", "analysis_error", "analyzed_at"])

    def queue_analysis(self) -> str | None:
        """Queue background analysis task. Returns task_id or None on failure."""
        from .tasks import analyse_loop
        try:
            result = analyse_loop.delay(str(self.id))
            return result.id
        except Exception as e:
            logger.error(f"Failed to queue analysis for loop {self.id}: {e}")
            self.mark_failed(f"Failed to queue analysis: {e}")
            return None

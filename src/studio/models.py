"""Models for multi-track compositions built from recordings."""

import logging
import uuid

from django.contrib.auth.models import User
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Max
from django.utils import timezone

logger = logging.getLogger(__name__)


class Composition(models.Model):
    """A timeline of recordings mixed into one piece."""

    class ExportStatus(models.TextChoices):
        IDLE = "idle"
        PENDING = "pending"
        RENDERING = "rendering"
        COMPLETE = "complete"
        FAILED = "failed"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4)
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="compositions")

    title = models.CharField(max_length=255)
    created_date = models.DateTimeField(default=timezone.now)
    # Length of the mix in seconds; 0 lets the tracks decide
    duration = models.FloatField(default=0, validators=[MinValueValidator(0)])

    export_status = models.CharField(max_length=20, choices=ExportStatus.choices, default=ExportStatus.IDLE)
    export_path = models.CharField(max_length=500, blank=True)
    export_error = models.TextField(blank=True)
    exported_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_date"]

    def __str__(self):
        return f"{self.title} ({self.tracks.count()} tracks)"

    @classmethod
    def get_or_none(cls, user: User, composition_id) -> "Composition | None":
        try:
            return cls.objects.get(id=composition_id, user=user)
        except (cls.DoesNotExist, ValueError):
            return None

    @property
    def export_url(self) -> str:
        from django.core.files.storage import default_storage

        return default_storage.url(self.export_path) if self.export_path else ""

    def add_track(self, recording) -> "CompositionTrack":
        """Append a recording at time 0, full volume, unmuted."""
        last = self.tracks.aggregate(last=Max("position"))["last"]
        return self.tracks.create(
            recording=recording,
            position=0 if last is None else last + 1,
        )

    def delete_with_media(self) -> None:
        from src.library.models import delete_stored_file

        delete_stored_file(self.export_path)
        self.delete()

    def mark_export(self, export_status: str, error: str = "") -> None:
        self.export_status = export_status
        self.export_error = error
        self.save(update_fields=["export_status", "export_error"])

    def queue_export(self) -> str | None:
        """Queue background mixdown. Returns task_id or None on failure."""
        from .tasks import export_composition

        self.mark_export(self.ExportStatus.PENDING)
        try:
            result = export_composition.delay(str(self.id))
            return result.id
        except Exception as e:
            logger.error(f"Failed to queue export for composition {self.id}: {e}")
            self.mark_export(self.ExportStatus.FAILED, f"Failed to queue export: {e}")
            return None


class CompositionTrack(models.Model):
    """A recording placed on a composition's timeline."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4)
    composition = models.ForeignKey(Composition, on_delete=models.CASCADE, related_name="tracks")
    recording = models.ForeignKey(
        "library.Recording",
        on_delete=models.CASCADE,
        related_name="composition_tracks",
    )

    start_time = models.FloatField(default=0, validators=[MinValueValidator(0)])
    volume = models.FloatField(default=1.0, validators=[MinValueValidator(0), MaxValueValidator(1)])
    is_muted = models.BooleanField(default=False)
    track_color = models.CharField(max_length=20, default="purple")
    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["position"]

    def __str__(self):
        return f"Track {self.position} of {self.composition_id} @ {self.start_time:.2f}s"

    @property
    def loop_region(self) -> tuple[float, float | None] | None:
        """Region to repeat when the recording is flagged as a loop."""
        recording = self.recording
        if not recording.is_loop:
            return None
        return (recording.loop_start_time or 0.0, recording.loop_end_time)

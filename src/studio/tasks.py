"""Celery tasks for composition mixdown."""

import logging

from celery import shared_task
from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.utils import timezone

from src.library.models import delete_stored_file
from src.tasks.notifications import notify_job
from src.tools.audio import load_audio
from src.tools.mixdown import MixSource, encode_wav, render_mix
from .models import Composition

logger = logging.getLogger(__name__)


def build_sources(composition: Composition, sample_rate: int) -> list[MixSource]:
    """Decode every audible track with a media file into a mix source."""
    sources = []
    tracks = composition.tracks.select_related("recording")
    for track in tracks:
        if track.is_muted or not track.recording.file_path:
            continue
        audio = load_audio(track.recording.file_path, target_sr=sample_rate, mono=True)

        region = track.loop_region
        if region is not None:
            start, end = region
            region = (start, audio.duration if end is None else end)

        sources.append(MixSource(
            samples=audio.samples,
            start_time=track.start_time,
            volume=track.volume,
            loop_region=region,
        ))
    return sources


@shared_task(bind=True, max_retries=3, default_retry_delay=30)
def export_composition(self, composition_id: str):
    """
    Render a composition to a WAV file in storage.

    Args:
        composition_id: The composition UUID as a string
    """
    try:
        composition = Composition.objects.get(id=composition_id)
    except Composition.DoesNotExist:
        logger.error(f"Composition {composition_id} not found")
        return

    composition.mark_export(Composition.ExportStatus.RENDERING)
    notify_job(composition.user_id, "mixdown", composition.id, Composition.ExportStatus.RENDERING)

    try:
        sample_rate = getattr(settings, "MIXDOWN_SAMPLE_RATE", 44100)
        sources = build_sources(composition, sample_rate)
        if not sources:
            raise ValueError("Composition has no audible tracks")

        mix = render_mix(sources, composition.duration, sample_rate)
        wav = encode_wav(mix, sample_rate)

        delete_stored_file(composition.export_path)
        saved_path = default_storage.save(f"mixdowns/{composition.id}.wav", ContentFile(wav.read()))

        composition.export_path = saved_path
        composition.export_status = Composition.ExportStatus.COMPLETE
        composition.export_error = ""
        composition.exported_at = timezone.now()
        composition.save(update_fields=["export_path", "export_status", "export_error", "exported_at"])

        logger.info(f"Composition {composition_id} exported to {saved_path} ({len(mix) / sample_rate:.1f}s)")
        notify_job(composition.user_id, "mixdown", composition.id, Composition.ExportStatus.COMPLETE)

    except Exception as e:
        logger.exception(f"Error exporting composition {composition_id}: {e}")
        composition.mark_export(Composition.ExportStatus.FAILED, str(e))
        notify_job(composition.user_id, "mixdown", composition.id, Composition.ExportStatus.FAILED, str(e))

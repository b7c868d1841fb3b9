"""Celery tasks for loop analysis."""

import logging

from celery import shared_task
from django.conf import settings

from src.agents.key import KeyAgent
from src.agents.rhythm import RhythmAgent
from src.agents.spectral import SpectralAgent
from src.tasks.notifications import notify_job
from src.tools.audio import load_audio
from .descriptors import generate_descriptors
from .models import Loop

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3, default_retry_delay=30)
def analyse_loop(self, loop_id: str):
    """
    Estimate BPM, key and descriptor tags for a loop and store them.

    Args:
        loop_id: The loop UUID as a string
    """
    try:
        loop = Loop.objects.get(id=loop_id)
    except Loop.DoesNotExist:
        logger.error(f"Loop {loop_id} not found")
        return

    loop.mark_analyzing()
    notify_job(loop.user_id, "loop_analysis", loop.id, Loop.AnalysisStatus.ANALYZING)

    try:
        audio = load_audio(
            loop.file_path,
            target_sr=getattr(settings, "LOOP_ANALYSIS_SAMPLE_RATE", 22050),
            mono=True,
        )

        rhythm = RhythmAgent().analyse(audio.samples, audio.sample_rate)
        key = KeyAgent().analyse(audio.samples, audio.sample_rate)
        spectral = SpectralAgent().analyse(audio.samples, audio.sample_rate)

        if not rhythm.success:
            raise RuntimeError(f"Rhythm analysis failed: {rhythm.error}")
        if not key.success:
            raise RuntimeError(f"Key analysis failed: {key.error}")

        tempo = rhythm.data.get("tempo_bpm") or 0
        bpm = int(round(tempo)) if tempo > 0 else None
        tags = generate_descriptors(rhythm.data, spectral.data if spectral.success else None)

        loop.apply_analysis(bpm=bpm, key=key.data.get("key"), tags=tags)
        logger.info(f"Loop {loop_id} analysis complete: bpm={loop.bpm} key={loop.key}")
        notify_job(loop.user_id, "loop_analysis", loop.id, Loop.AnalysisStatus.COMPLETE)

    except Exception as e:
        logger.exception(f"Error analysing loop {loop_id}: {e}")
        loop.mark_failed(str(e))
        notify_job(loop.user_id, "loop_analysis", loop.id, Loop.AnalysisStatus.FAILED, str(e))

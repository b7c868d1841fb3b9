"""Audio file loading for stored recordings, loops and uploads."""

import io
import logging
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Optional

import numpy as np
import soundfile as sf

logger = logging.getLogger(__name__)

# Container formats libsndfile cannot read directly; decoded through pydub/ffmpeg
MIME_TO_FORMAT = {
    "audio/mp4": "mp4",
    "audio/m4a": "m4a",
    "audio/x-m4a": "m4a",
    "audio/webm": "webm",
    "audio/aac": "aac",
    "video/mp4": "mp4",
    "video/quicktime": "mov",
}

SUPPORTED_MIME_TYPES = {
    "audio/wav", "audio/wave", "audio/x-wav",
    "audio/mp3", "audio/mpeg",
    "audio/flac",
    "audio/ogg",
    *MIME_TO_FORMAT.keys(),
}

EXTENSION_TO_MIME = {
    ".wav": "audio/wav",
    ".mp3": "audio/mpeg",
    ".flac": "audio/flac",
    ".ogg": "audio/ogg",
    ".m4a": "audio/m4a",
    ".mp4": "audio/mp4",
    ".aac": "audio/aac",
    ".webm": "audio/webm",
    ".mov": "video/quicktime",
}

MIME_TO_EXTENSION = {
    "audio/wav": ".wav", "audio/wave": ".wav", "audio/x-wav": ".wav",
    "audio/mp3": ".mp3", "audio/mpeg": ".mp3",
    "audio/flac": ".flac", "audio/ogg": ".ogg",
    "audio/mp4": ".mp4", "audio/m4a": ".m4a", "audio/x-m4a": ".m4a",
    "audio/webm": ".webm", "audio/aac": ".aac",
    "video/mp4": ".mp4", "video/quicktime": ".mov",
}


@dataclass
class AudioData:
    """Decoded audio samples."""

    samples: np.ndarray
    sample_rate: int
    duration: float
    channels: int
    storage_path: Optional[str] = None


def mime_type_for(path: str) -> Optional[str]:
    """Guess the MIME type of a stored file from its extension."""
    return EXTENSION_TO_MIME.get(PurePosixPath(path).suffix.lower())


def extension_for(mime_type: str) -> str:
    return MIME_TO_EXTENSION.get(mime_type, ".bin")


def convert_to_wav(file_obj: io.BytesIO, mime_type: str) -> io.BytesIO:
    """Decode a container format (m4a, mp4, ...) to WAV with pydub/ffmpeg.

    Raises:
        ValueError: If the mime_type has no container conversion
    """
    fmt = MIME_TO_FORMAT.get(mime_type)
    if fmt is None:
        raise ValueError(f"Unsupported mime type for conversion: {mime_type}")
    from pydub import AudioSegment

    segment = AudioSegment.from_file(file_obj, format=fmt)
    wav_buffer = io.BytesIO()
    segment.export(wav_buffer, format="wav")
    wav_buffer.seek(0)
    return wav_buffer


def read_stored(storage_path: str) -> io.BytesIO:
    """Read a file from the default storage backend into memory."""
    from django.core.files.storage import default_storage

    if not default_storage.exists(storage_path):
        raise FileNotFoundError(f"Audio file not found: {storage_path}")
    with default_storage.open(storage_path, "rb") as f:
        return io.BytesIO(f.read())


def load_audio(
    source: str | io.BytesIO,
    target_sr: Optional[int] = None,
    mono: bool = True,
    mime_type: Optional[str] = None,
) -> AudioData:
    """
    Load audio from a storage path or an in-memory buffer.

    Args:
        source: Storage path (resolved through default_storage) or BytesIO
        target_sr: Resample to this rate (None keeps the original)
        mono: Mix down to a single channel
        mime_type: Overrides the type guessed from the storage path

    Returns:
        AudioData with samples shaped (n,) when mono
    """
    storage_path = None
    if isinstance(source, io.BytesIO):
        buffer = source
    else:
        storage_path = source
        mime_type = mime_type or mime_type_for(source)
        buffer = read_stored(source)

    if mime_type in MIME_TO_FORMAT:
        buffer = convert_to_wav(buffer, mime_type)

    samples, sample_rate = sf.read(buffer, always_2d=True)
    channels = samples.shape[1]

    if mono:
        samples = np.mean(samples, axis=1) if channels > 1 else samples[:, 0]
        channels = 1

    if target_sr is not None and target_sr != sample_rate:
        import librosa

        samples = librosa.resample(
            np.ascontiguousarray(samples.T if samples.ndim > 1 else samples),
            orig_sr=sample_rate,
            target_sr=target_sr,
        )
        if samples.ndim > 1:
            samples = samples.T
        sample_rate = target_sr

    return AudioData(
        samples=samples,
        sample_rate=sample_rate,
        duration=len(samples) / sample_rate,
        channels=channels,
        storage_path=storage_path,
    )


def probe_duration(storage_path: str) -> Optional[float]:
    """Length in seconds of a stored audio file, or None when unreadable."""
    try:
        return load_audio(storage_path).duration
    except Exception as e:
        logger.warning(f"Could not read duration of {storage_path}: {e}")
        return None

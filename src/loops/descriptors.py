"""Rule-based loop tags from analysis results."""

# Spectral centroid thresholds in Hz
BRIGHT_CENTROID_HZ = 3000
DARK_CENTROID_HZ = 1500


def rhythm_descriptors(rhythm: dict) -> list[str]:
    """
    Tags describing tempo and feel.

    Args:
        rhythm: Rhythm agent data with tempo_bpm, swing, steadiness, upbeat
    """
    descriptors = []
    bpm = rhythm.get("tempo_bpm", 0)
    swing = rhythm.get("swing", 0)
    steadiness = rhythm.get("steadiness", 0)

    if bpm > 140:
        descriptors.append("driving")
    elif bpm < 90:
        descriptors.append("laid-back")
    else:
        descriptors.append("moderate-tempo")

    if swing > 0.4:
        descriptors.append("swung")
    elif swing < 0.1:
        descriptors.append("straight")

    if steadiness > 0.8:
        descriptors.append("steady")
    elif steadiness < 0.4:
        descriptors.append("loose")

    if rhythm.get("upbeat", False):
        descriptors.append("upbeat-start")

    return descriptors


def spectral_descriptors(spectral: dict) -> list[str]:
    """Tags describing brightness and texture."""
    descriptors = []
    centroid = spectral.get("spectral_centroid", {}).get("mean")
    if centroid is not None:
        if centroid > BRIGHT_CENTROID_HZ:
            descriptors.append("bright")
        elif centroid < DARK_CENTROID_HZ:
            descriptors.append("warm")

    if spectral.get("spectral_flatness", {}).get("interpretation") == "noisy":
        descriptors.append("noisy")

    return descriptors


def generate_descriptors(rhythm: dict | None, spectral: dict | None) -> list[str]:
    """Combined tags; a missing analysis contributes nothing."""
    descriptors = rhythm_descriptors(rhythm) if rhythm else []
    if spectral:
        descriptors.extend(spectral_descriptors(spectral))
    return descriptors

import io
import shutil

import django
import numpy as np
import pytest
import soundfile as sf
from django.conf import settings

TEST_MEDIA_ROOT = "/tmp/jamsesh_test_media"


def pytest_configure():
    """Configure Django settings before tests."""
    if not settings.configured:
        settings.configure(
            DEBUG=True,
            SECRET_KEY="test-secret-key-for-testing-only",
            DATABASES={
                "default": {
                    "ENGINE": "django.db.backends.sqlite3",
                    "NAME": ":memory:",
                }
            },
            INSTALLED_APPS=[
                "django.contrib.auth",
                "django.contrib.contenttypes",
                "rest_framework",
                "src.api",
                "src.library",
                "src.loops",
                "src.studio",
                "src.social",
            ],
            DEFAULT_AUTO_FIELD="django.db.models.BigAutoField",
            USE_TZ=True,
            ROOT_URLCONF="config.urls",
            REST_FRAMEWORK={
                "DEFAULT_AUTHENTICATION_CLASSES": [
                    "rest_framework_simplejwt.authentication.JWTAuthentication",
                ],
                "DEFAULT_PERMISSION_CLASSES": [
                    "rest_framework.permissions.IsAuthenticated",
                ],
                "UNAUTHENTICATED_USER": None,
            },
            AUTH_PASSWORD_VALIDATORS=[
                {
                    "NAME": "django.contrib.auth.password_validation.MinimumLengthValidator",
                    "OPTIONS": {"min_length": 8},
                },
                {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
            ],
            CACHES={
                "default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"},
            },
            CHANNEL_LAYERS={
                "default": {"BACKEND": "channels.layers.InMemoryChannelLayer"},
            },
            JAMSESH_VERSION="1.0.0",
            SONG_SEARCH_URL="https://itunes.apple.com/search",
            SONG_SEARCH_CACHE_SECONDS=60,
            FILE_DOWNLOAD_MAX_BYTES=1024 * 1024,
            LOOP_ANALYSIS_SAMPLE_RATE=22050,
            MIXDOWN_SAMPLE_RATE=8000,
            MEDIA_ROOT=TEST_MEDIA_ROOT,
            MEDIA_URL="media/",
            STATIC_URL="static/",
            STATICFILES_DIRS=["/tmp/test_static"],
            TEMPLATES=[{
                "BACKEND": "django.template.backends.django.DjangoTemplates",
                "DIRS": [],
                "APP_DIRS": True,
                "OPTIONS": {"context_processors": []},
            }],
        )
    django.setup()

    # Queue Celery tasks in memory instead of contacting a broker
    from celery import current_app
    current_app.conf.broker_url = "memory://"
    current_app.conf.task_always_eager = False


def pytest_sessionstart(session):
    """Create database tables for in-memory SQLite test DB."""
    from django.core.management import call_command

    call_command("migrate", "--run-syncdb", verbosity=0)


def pytest_sessionfinish(session, exitstatus):
    shutil.rmtree(TEST_MEDIA_ROOT, ignore_errors=True)


def make_wav_bytes(samples=None, sample_rate=8000):
    """Encode samples (default: 1s of 440 Hz) as WAV bytes."""
    if samples is None:
        t = np.arange(sample_rate) / sample_rate
        samples = 0.5 * np.sin(2 * np.pi * 440 * t)
    buf = io.BytesIO()
    sf.write(buf, np.asarray(samples, dtype=np.float32), sample_rate, format="WAV")
    return buf.getvalue()


@pytest.fixture
def wav_bytes():
    return make_wav_bytes()

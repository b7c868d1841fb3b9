import uuid

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("library", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Loop",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, primary_key=True, serialize=False)),
                ("song_id", models.UUIDField(blank=True, null=True)),
                ("song_title", models.CharField(max_length=255)),
                ("song_artist", models.CharField(max_length=255)),
                ("part_type", models.CharField(max_length=100)),
                ("length_seconds", models.FloatField(default=0)),
                ("date_created", models.DateTimeField(default=django.utils.timezone.now)),
                ("bpm", models.PositiveIntegerField(blank=True, null=True)),
                ("key", models.CharField(blank=True, max_length=10, null=True)),
                ("tags", models.JSONField(blank=True, default=list)),
                ("file_path", models.CharField(max_length=500)),
                ("is_imported", models.BooleanField(default=False)),
                ("shared_by", models.CharField(blank=True, max_length=150)),
                ("is_starred", models.BooleanField(default=False)),
                (
                    "analysis_status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("analyzing", "Analyzing"),
                            ("complete", "Complete"),
                            ("failed", "Failed"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("analysis_error", models.TextField(blank=True)),
                ("analyzed_at", models.DateTimeField(blank=True, null=True)),
                (
                    "recording",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="loops",
                        to="library.recording",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="loops",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-date_created"],
            },
        ),
    ]

import uuid6
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="PaymentEvent",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid6.uuid7, editable=False, primary_key=True, serialize=False
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("event_id", models.CharField(max_length=255, unique=True)),
                ("event_type", models.CharField(max_length=100)),
                ("reference", models.CharField(blank=True, default="", max_length=255)),
                (
                    "outcome",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("applied", "Applied"),
                            ("unchanged", "Unchanged"),
                            ("ignored", "Ignored"),
                            ("unknown_reference", "Unknown reference"),
                            ("unhandled_type", "Unhandled type"),
                        ],
                        default="",
                        max_length=20,
                    ),
                ),
                ("payload", models.JSONField(default=dict)),
            ],
            options={
                "db_table": "payment_events",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["reference"], name="payment_events_reference_idx"),
                ],
            },
        ),
    ]

import django.db.models.deletion
import uuid6
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("orders", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="TrackingEvent",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid6.uuid7, editable=False, primary_key=True, serialize=False
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("Order Placed", "Order Placed"),
                            ("Cutting Started", "Cutting Started"),
                            ("Cutting Completed", "Cutting Completed"),
                            ("Sewing Started", "Sewing Started"),
                            ("Sewing Completed", "Sewing Completed"),
                            ("Finishing Started", "Finishing Started"),
                            ("Finishing Completed", "Finishing Completed"),
                            ("QC Checked", "QC Checked"),
                            ("Packed", "Packed"),
                            ("Shipped", "Shipped"),
                            ("Out for Delivery", "Out for Delivery"),
                            ("Delivered", "Delivered"),
                        ],
                        max_length=30,
                    ),
                ),
                ("location", models.CharField(max_length=255)),
                ("notes", models.TextField(blank=True, default="")),
                ("images", models.JSONField(blank=True, default=list)),
                (
                    "estimated_completion_date",
                    models.DateTimeField(blank=True, default=None, null=True),
                ),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="tracking_events",
                        to="orders.order",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="tracking_events",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "tracking_events",
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(
                        fields=["order", "-created_at"], name="tracking_order_created_idx"
                    ),
                ],
            },
        ),
    ]

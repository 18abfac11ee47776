import django.core.validators
import django.db.models.deletion
import uuid6
from decimal import Decimal

from django.conf import settings
from django.db import migrations, models

import modules.products.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid6.uuid7, editable=False, primary_key=True, serialize=False
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=100)),
                ("description", models.TextField(blank=True, default="", max_length=1000)),
                (
                    "category",
                    models.CharField(
                        choices=[
                            ("Shirt", "Shirt"),
                            ("Pant", "Pant"),
                            ("Jacket", "Jacket"),
                            ("Suits", "Suits"),
                            ("Accessories", "Accessories"),
                            ("Dress", "Dress"),
                            ("Skirt", "Skirt"),
                            ("T-Shirt", "T-Shirt"),
                            ("Other", "Other"),
                        ],
                        default="Other",
                        max_length=20,
                    ),
                ),
                (
                    "price",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.01"))],
                    ),
                ),
                ("available_quantity", models.PositiveIntegerField(default=0)),
                (
                    "minimum_order_quantity",
                    models.PositiveIntegerField(
                        default=1,
                        validators=[django.core.validators.MinValueValidator(1)],
                    ),
                ),
                (
                    "payment_options",
                    models.JSONField(default=modules.products.models.default_payment_options),
                ),
                ("images", models.JSONField(blank=True, default=list)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="products",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "products",
                "ordering": ["name"],
                "indexes": [
                    models.Index(fields=["category"], name="products_category_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("price__gt", 0)),
                        name="products_price_positive",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("available_quantity__gte", 0)),
                        name="products_available_non_negative",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("minimum_order_quantity__gte", 1)),
                        name="products_min_order_positive",
                    ),
                ],
            },
        ),
    ]

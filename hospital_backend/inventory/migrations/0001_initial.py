import uuid
from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Medicine",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("medicine_id", models.PositiveIntegerField(unique=True)),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                ("category", models.CharField(blank=True, max_length=100)),
                ("strength", models.CharField(blank=True, max_length=100)),
                ("manufacturer", models.CharField(blank=True, max_length=255)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["medicine_id"],
                "indexes": [
                    models.Index(fields=["name"], name="inv_medicine_name_idx"),
                    models.Index(fields=["category"], name="inv_medicine_category_idx"),
                    models.Index(fields=["is_active", "name"], name="inv_medicine_active_name_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("medicine_id__gt", 0)),
                        name="chk_medicine_id_gt_zero",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Batch",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("batch_number", models.CharField(max_length=128, unique=True)),
                ("bill_id", models.CharField(blank=True, max_length=128)),
                ("overall_price", models.DecimalField(decimal_places=2, max_digits=14)),
                (
                    "miscellaneous_amount",
                    models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14),
                ),
                ("is_draft", models.BooleanField(default=False)),
                ("finalized_at", models.DateTimeField(blank=True, null=True)),
                ("draft_note", models.TextField(blank=True)),
                ("attachments", models.JSONField(blank=True, default=list)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="inventory_batches",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["is_draft", "created_at"], name="inv_batch_draft_created_idx"),
                    models.Index(fields=["bill_id"], name="inv_batch_bill_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("miscellaneous_amount__gte", 0)),
                        name="chk_batch_misc_gte_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("overall_price__gte", 0)),
                        name="chk_batch_overall_gte_zero",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="BatchMedicine",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("position", models.PositiveIntegerField(default=0)),
                ("medicine_id", models.PositiveIntegerField()),
                ("medicine_name", models.CharField(max_length=255)),
                ("quantity", models.PositiveIntegerField()),
                ("price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("total_amount", models.DecimalField(decimal_places=2, max_digits=14)),
                ("expiry_date", models.DateField()),
                ("date_of_purchase", models.DateField()),
                ("reorder_level", models.PositiveIntegerField(default=0)),
                (
                    "batch",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="medicines",
                        to="inventory.batch",
                    ),
                ),
            ],
            options={
                "ordering": ["position"],
                "indexes": [
                    models.Index(fields=["medicine_id"], name="inv_line_medicine_id_idx"),
                    models.Index(fields=["medicine_name"], name="inv_line_medicine_name_idx"),
                    models.Index(fields=["expiry_date"], name="inv_line_expiry_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("batch", "medicine_id"),
                        name="unique_medicine_per_batch",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("quantity__gt", 0)),
                        name="chk_batchmedicine_qty_gt_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("price__gt", 0)),
                        name="chk_batchmedicine_price_gt_zero",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="DiscardRecord",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("medicine_id", models.PositiveIntegerField()),
                ("medicine_name", models.CharField(max_length=255)),
                ("batch_id", models.UUIDField()),
                ("batch_number", models.CharField(max_length=128)),
                ("quantity_discarded", models.PositiveIntegerField()),
                ("price_per_unit", models.DecimalField(decimal_places=2, max_digits=12)),
                ("total_value", models.DecimalField(decimal_places=2, max_digits=14)),
                ("expiry_date", models.DateField()),
                ("reason", models.CharField(default="Expired", max_length=255)),
                ("discarded_at", models.DateTimeField(auto_now_add=True)),
                (
                    "discarded_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="discard_records",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-discarded_at"],
                "indexes": [
                    models.Index(fields=["discarded_at"], name="inv_discard_at_idx"),
                    models.Index(fields=["medicine_id", "discarded_at"], name="inv_discard_med_at_idx"),
                    models.Index(fields=["batch_id"], name="inv_discard_batch_idx"),
                    models.Index(fields=["discarded_by", "discarded_at"], name="inv_discard_user_at_idx"),
                ],
            },
        ),
    ]

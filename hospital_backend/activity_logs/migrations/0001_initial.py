import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="ActivityLog",
            fields=[
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                ("batch_id", models.UUIDField(db_index=True)),
                ("batch_number", models.CharField(db_index=True, max_length=128)),
                (
                    "action",
                    models.CharField(
                        choices=[
                            ("CREATED", "Created"),
                            ("FINALIZED", "Finalized"),
                            ("UPDATED", "Updated"),
                            ("DELETED", "Deleted"),
                        ],
                        max_length=16,
                    ),
                ),
                ("details", models.CharField(max_length=500)),
                ("timestamp", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("changes", models.JSONField(blank=True, default=list)),
                (
                    "owner",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="batch_activity_logs",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-timestamp", "-id"],
                "indexes": [
                    models.Index(fields=["batch_id", "timestamp"], name="alog_batch_ts_idx"),
                    models.Index(fields=["batch_number", "timestamp"], name="alog_batch_number_ts_idx"),
                    models.Index(fields=["owner", "timestamp"], name="alog_owner_ts_idx"),
                ],
            },
        ),
    ]

from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="WorldStateEntry",
            fields=[
                (
                    "key",
                    models.CharField(
                        help_text="Ledger key, e.g. Good12 or GoodSequence.",
                        max_length=255,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "value",
                    models.BinaryField(
                        blank=True,
                        help_text="Latest committed value. Null once deleted.",
                        null=True,
                    ),
                ),
                (
                    "version",
                    models.PositiveBigIntegerField(
                        default=0,
                        help_text="Number of committed modifications of this key.",
                    ),
                ),
                ("is_deleted", models.BooleanField(default=False)),
                ("updated_tx_id", models.CharField(max_length=64)),
            ],
            options={
                "db_table": "tracechain_world_state",
                "ordering": ["key"],
                "indexes": [
                    models.Index(
                        fields=["is_deleted", "key"],
                        name="idx_ws_live_key",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="KeyModificationRecord",
            fields=[
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                ("key", models.CharField(max_length=255)),
                ("version", models.PositiveBigIntegerField()),
                ("value", models.BinaryField(blank=True, null=True)),
                ("tx_id", models.CharField(max_length=64)),
                ("committed_at", models.DateTimeField()),
                ("is_delete", models.BooleanField(default=False)),
            ],
            options={
                "db_table": "tracechain_key_history",
                "ordering": ["key", "version"],
                "indexes": [
                    models.Index(
                        fields=["key", "version"],
                        name="idx_key_history_lookup",
                    )
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("key", "version"),
                        name="uq_key_history_version",
                    )
                ],
            },
        ),
    ]

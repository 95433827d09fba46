from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="PersonMap",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("foreign_id", models.CharField(db_index=True, max_length=128)),
                ("local_id", models.PositiveBigIntegerField()),
                ("local_entity_type", models.CharField(max_length=100)),
                ("created", models.DateTimeField(auto_now_add=True)),
                ("changed", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "autotag_person_map",
                "ordering": ["id"],
                "indexes": [models.Index(fields=["local_entity_type", "local_id"], name="person_map_local_idx")],
            },
        ),
        migrations.AddConstraint(
            model_name="personmap",
            constraint=models.UniqueConstraint(fields=("local_id", "local_entity_type"), name="person_map_unique_local_entity"),
        ),
        migrations.CreateModel(
            name="QueueItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("queue_name", models.CharField(choices=[("autotag_process_person", "Process person"), ("autotag_detect_faces", "Detect faces"), ("autotag_deleted_entity", "Deleted entity")], max_length=64)),
                ("entity_type", models.CharField(max_length=100)),
                ("entity_id", models.PositiveBigIntegerField()),
                ("field_name", models.CharField(blank=True, default="", max_length=100)),
                ("attempts", models.PositiveIntegerField(default=0)),
                ("last_error", models.TextField(blank=True, default="")),
                ("created", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "db_table": "autotag_queue",
                "ordering": ["id"],
                "indexes": [models.Index(fields=["queue_name", "id"], name="queue_item_queue_idx")],
            },
        ),
        migrations.AddConstraint(
            model_name="queueitem",
            constraint=models.UniqueConstraint(fields=("queue_name", "entity_type", "entity_id", "field_name"), name="queue_item_unique_work"),
        ),
    ]

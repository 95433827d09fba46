from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("autotag", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="queueitem",
            name="claimed_at",
            field=models.DateTimeField(blank=True, null=True),
        ),
        migrations.AddField(
            model_name="queueitem",
            name="version",
            field=models.PositiveIntegerField(default=0),
        ),
    ]

from django.db import migrations, models

import generation.registry


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Template",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "action_slug",
                    models.CharField(
                        choices=generation.registry.action_choices(), max_length=64, unique=True
                    ),
                ),
                ("name", models.CharField(max_length=120)),
                ("file", models.FileField(upload_to="templates/")),
                ("active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["name"],
                "permissions": [
                    ("download_full_document", "Can download full (unmasked) documents"),
                ],
            },
        ),
    ]

from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("auth", "0012_alter_user_first_name_max_length"),
    ]

    operations = [
        migrations.CreateModel(
            name="StickyNote",
            fields=[
                ("id", models.CharField(editable=False, max_length=32, primary_key=True, serialize=False)),
                ("tag", models.CharField(max_length=64)),
                ("content", models.TextField()),
                ("grid_x", models.PositiveIntegerField(default=0)),
                ("grid_y", models.PositiveIntegerField(default=0)),
                ("grid_w", models.PositiveIntegerField(default=16)),
                ("grid_h", models.PositiveIntegerField(default=16)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("owner", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="sticky_notes", to="auth.user")),
            ],
            options={
                "indexes": [
                    models.Index(fields=["owner", "created_at"], name="sticky_note_owner_created_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="StickyNoteTag",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("tag", models.CharField(max_length=64)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("note", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="tag_rows", to="notes.stickynote")),
                ("owner", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="sticky_note_tags", to="auth.user")),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(fields=("note", "tag"), name="uniq_sticky_note_tag"),
                ],
                "indexes": [
                    models.Index(fields=["owner", "tag"], name="sticky_note_tag_owner_idx"),
                ],
            },
        ),
    ]

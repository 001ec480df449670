from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("notes", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="stickynote",
            name="layout_locked",
            field=models.BooleanField(default=False),
        ),
    ]

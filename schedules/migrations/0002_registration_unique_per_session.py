from django.db import migrations, models


class Migration(migrations.Migration):
    """Allow one registration per session instead of one per schedule."""

    dependencies = [
        ("schedules", "0001_initial"),
    ]

    operations = [
        migrations.AlterUniqueTogether(
            name="registration",
            unique_together=set(),
        ),
        migrations.AddConstraint(
            model_name="registration",
            constraint=models.UniqueConstraint(
                fields=("user", "schedule", "session"),
                name="unique_registration_per_session",
            ),
        ),
        migrations.AddIndex(
            model_name="registration",
            index=models.Index(
                fields=["schedule", "session", "payment_status"],
                name="registration_seat_count_idx",
            ),
        ),
        migrations.AddIndex(
            model_name="registration",
            index=models.Index(fields=["user", "-created_at"], name="registration_user_created_idx"),
        ),
    ]

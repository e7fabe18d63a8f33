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
            name="ClassSeries",
            fields=[
                ("id", models.CharField(max_length=64, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                ("instructor", models.CharField(blank=True, max_length=255)),
                ("days", models.JSONField(blank=True, default=list)),
                ("start_time", models.CharField(blank=True, max_length=8)),
                ("end_time", models.CharField(blank=True, max_length=8)),
                ("member_ids", models.JSONField(blank=True, default=list)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["created_at"],
                "verbose_name_plural": "class series",
            },
        ),
        migrations.CreateModel(
            name="Event",
            fields=[
                ("id", models.CharField(max_length=64, primary_key=True, serialize=False)),
                ("title", models.CharField(max_length=255)),
                (
                    "event_type",
                    models.CharField(
                        choices=[
                            ("exam", "Exam"),
                            ("tournament", "Tournament"),
                            ("seminar", "Seminar"),
                            ("social", "Social"),
                        ],
                        max_length=20,
                    ),
                ),
                ("date", models.DateField()),
                ("time", models.CharField(blank=True, max_length=8)),
                ("duration_minutes", models.PositiveIntegerField(blank=True, null=True)),
                ("registrant_ids", models.JSONField(blank=True, default=list)),
                ("description", models.TextField(blank=True)),
            ],
            options={
                "ordering": ["date", "time"],
                "indexes": [models.Index(fields=["date"], name="academy_eve_date_6f1c2a_idx")],
            },
        ),
        migrations.CreateModel(
            name="Rank",
            fields=[
                ("id", models.CharField(max_length=64, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=100)),
                ("required_attendance", models.PositiveIntegerField(default=0)),
                ("ordinal", models.PositiveIntegerField(unique=True)),
                ("color", models.CharField(blank=True, max_length=20)),
            ],
            options={
                "ordering": ["ordinal"],
            },
        ),
        migrations.CreateModel(
            name="Member",
            fields=[
                ("id", models.CharField(max_length=64, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                ("email", models.EmailField(blank=True, max_length=254)),
                ("phone", models.CharField(blank=True, max_length=40)),
                ("rank_id", models.CharField(blank=True, max_length=64)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("active", "Active"),
                            ("debtor", "Debtor"),
                            ("exam_ready", "Exam ready"),
                            ("suspended", "Suspended"),
                            ("inactive", "Inactive"),
                        ],
                        default="active",
                        max_length=20,
                    ),
                ),
                ("attendance_count", models.PositiveIntegerField(default=0)),
                ("last_attendance_date", models.DateField(blank=True, null=True)),
                ("class_ids", models.JSONField(blank=True, default=list)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "user",
                    models.OneToOneField(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="academy_member",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "indexes": [models.Index(fields=["status"], name="academy_mem_status_3b9e4d_idx")],
            },
        ),
        migrations.CreateModel(
            name="AttendanceEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("class_id", models.CharField(max_length=64)),
                ("date", models.DateField()),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("present", "Present"),
                            ("late", "Late"),
                            ("excused", "Excused"),
                            ("absent", "Absent"),
                        ],
                        max_length=20,
                    ),
                ),
                ("recorded_at", models.DateTimeField()),
                ("reason", models.TextField(blank=True, null=True)),
                (
                    "member",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="attendance_entries",
                        to="academy.member",
                    ),
                ),
            ],
            options={
                "ordering": ["-date", "id"],
                "indexes": [
                    models.Index(fields=["class_id", "date"], name="academy_att_class_i_8d2f61_idx")
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("member", "class_id", "date"),
                        name="unique_attendance_per_class_day",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="PromotionRecord",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("position", models.PositiveIntegerField(default=0)),
                ("rank_name", models.CharField(max_length=100)),
                ("promoted_on", models.DateField()),
                ("notes", models.TextField(blank=True)),
                (
                    "member",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="promotion_records",
                        to="academy.member",
                    ),
                ),
            ],
            options={
                "ordering": ["position"],
            },
        ),
        migrations.CreateModel(
            name="SessionOverride",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("position", models.PositiveIntegerField(default=0)),
                ("date", models.DateField()),
                (
                    "kind",
                    models.CharField(
                        choices=[
                            ("cancel", "Cancel"),
                            ("move", "Move"),
                            ("reschedule", "Reschedule"),
                            ("instructor", "Instructor substitution"),
                        ],
                        max_length=20,
                    ),
                ),
                ("new_date", models.DateField(blank=True, null=True)),
                ("new_start_time", models.CharField(blank=True, max_length=8)),
                ("new_end_time", models.CharField(blank=True, max_length=8)),
                ("new_instructor", models.CharField(blank=True, max_length=255)),
                (
                    "series",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="overrides",
                        to="academy.classseries",
                    ),
                ),
            ],
            options={
                "ordering": ["position"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("series", "date"), name="unique_override_per_series_day"
                    )
                ],
            },
        ),
    ]

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

import DocumentWorkflowApp.documents.fields


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Document",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=200)),
                ("template_name", models.CharField(max_length=100)),
                ("template_snapshot", models.JSONField()),
                ("student_email", models.EmailField(db_index=True, max_length=254)),
                ("status", DocumentWorkflowApp.documents.fields.DocumentStatusField(
                    choices=[
                        ("AWAITING_INPUT", "Awaiting input"),
                        ("SUBMITTED", "Submitted"),
                        ("SENT_BACK", "Sent back for revision"),
                        ("APPROVED_BY_TEACHER", "Approved by teacher"),
                        ("COMPLETED", "Completed"),
                    ],
                    db_index=True,
                    default="AWAITING_INPUT",
                    max_length=32,
                )),
                ("submitted_data", models.JSONField(blank=True, default=dict)),
                ("review_comment", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("teacher", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="created_documents",
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                "ordering": ["-updated_at", "-id"],
            },
        ),
    ]

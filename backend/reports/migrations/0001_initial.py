import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("accounts", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="ReportCategory",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=100, unique=True, verbose_name="Name")),
                ("icon", models.CharField(blank=True, default="", max_length=50, verbose_name="Icon")),
                ("description", models.TextField(blank=True, default="", verbose_name="Description")),
                ("is_active", models.BooleanField(default=True, verbose_name="Active")),
                ("responsible_roles", models.ManyToManyField(blank=True, related_name="responsible_categories", to="accounts.role", verbose_name="Responsible Roles")),
            ],
            options={
                "verbose_name": "report category",
                "verbose_name_plural": "report categories",
                "ordering": ["id"],
            },
        ),
        migrations.CreateModel(
            name="Report",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("title", models.CharField(max_length=200, verbose_name="Title")),
                ("description", models.TextField(blank=True, default="", verbose_name="Description")),
                ("is_public", models.BooleanField(default=True, help_text="When false the reporter's identity is hidden from other users.", verbose_name="Public")),
                ("latitude", models.FloatField(validators=[django.core.validators.MinValueValidator(-90.0), django.core.validators.MaxValueValidator(90.0)], verbose_name="Latitude")),
                ("longitude", models.FloatField(validators=[django.core.validators.MinValueValidator(-180.0), django.core.validators.MaxValueValidator(180.0)], verbose_name="Longitude")),
                ("status", models.CharField(choices=[("Pending Approval", "Pending Approval"), ("Assigned", "Assigned"), ("In Progress", "In Progress"), ("Rejected", "Rejected"), ("Resolved", "Resolved")], db_index=True, default="Pending Approval", max_length=20, verbose_name="Status")),
                ("status_reason", models.TextField(blank=True, default="", verbose_name="Status Reason")),
                ("category", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="reports", to="reports.reportcategory", verbose_name="Category")),
                ("reporter", models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="submitted_reports", to=settings.AUTH_USER_MODEL, verbose_name="Reporter")),
                ("assigned_from", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="reports_assigned_by_me", to=settings.AUTH_USER_MODEL, verbose_name="Assigned From")),
                ("assigned_to", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="assigned_reports", to=settings.AUTH_USER_MODEL, verbose_name="Assigned To")),
                ("maintainer", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="maintained_reports", to=settings.AUTH_USER_MODEL, verbose_name="Maintainer")),
                ("updated_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="updated_reports", to=settings.AUTH_USER_MODEL, verbose_name="Updated By")),
            ],
            options={
                "verbose_name": "report",
                "verbose_name_plural": "reports",
                "ordering": ["-updated_at", "-id"],
                "indexes": [
                    models.Index(fields=["status", "category"], name="report_status_category_idx"),
                    models.Index(fields=["-updated_at"], name="report_updated_at_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ReportPhoto",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("position", models.PositiveSmallIntegerField(validators=[django.core.validators.MinValueValidator(1)], verbose_name="Position")),
                ("public_url", models.CharField(max_length=500, verbose_name="Public URL")),
                ("storage_path", models.CharField(max_length=500, verbose_name="Storage Path")),
                ("report", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="photos", to="reports.report", verbose_name="Report")),
            ],
            options={
                "verbose_name": "report photo",
                "verbose_name_plural": "report photos",
                "ordering": ["report", "position"],
                "constraints": [
                    models.UniqueConstraint(fields=("report", "position"), name="unique_report_photo_position"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ReportComment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("text", models.TextField(verbose_name="Text")),
                ("report", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="comments", to="reports.report", verbose_name="Report")),
                ("commenter", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="report_comments", to=settings.AUTH_USER_MODEL, verbose_name="Commenter")),
            ],
            options={
                "verbose_name": "comment",
                "verbose_name_plural": "comments",
                "ordering": ["created_at", "id"],
            },
        ),
    ]

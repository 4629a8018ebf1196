"""
Reports app models.

Defines the report lifecycle entities: the category catalog, the report
itself, its ordered photos and the internal staff comments.

Status values are stored verbatim ("Pending Approval", "In Progress", ...)
because clients display and filter on them directly.
"""

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from core.models import TimeStampedModel


class ReportStatus(models.TextChoices):
    """
    Report workflow states.

    Pending Approval → Assigned | Rejected; Assigned → In Progress;
    In Progress → Resolved.  Rejected and Resolved are terminal.
    """

    PENDING_APPROVAL = "Pending Approval", "Pending Approval"
    ASSIGNED = "Assigned", "Assigned"
    IN_PROGRESS = "In Progress", "In Progress"
    REJECTED = "Rejected", "Rejected"
    RESOLVED = "Resolved", "Resolved"


TERMINAL_STATUSES = frozenset({ReportStatus.REJECTED, ReportStatus.RESOLVED})


class ReportCategory(models.Model):
    """
    Fixed taxonomy reports are filed against.

    ``responsible_roles`` links a category to the technical-office roles
    that handle it; the officers holding those roles are the candidates
    for assignment.
    """

    name = models.CharField(
        max_length=100,
        unique=True,
        verbose_name="Name",
    )
    icon = models.CharField(
        max_length=50,
        blank=True,
        default="",
        verbose_name="Icon",
    )
    description = models.TextField(
        blank=True,
        default="",
        verbose_name="Description",
    )
    is_active = models.BooleanField(
        default=True,
        verbose_name="Active",
    )
    responsible_roles = models.ManyToManyField(
        "accounts.Role",
        blank=True,
        related_name="responsible_categories",
        verbose_name="Responsible Roles",
    )

    class Meta:
        verbose_name = "report category"
        verbose_name_plural = "report categories"
        ordering = ["id"]

    def __str__(self):
        return self.name


class Report(TimeStampedModel):
    """
    A citizen-filed issue report.

    Consistency between ``status`` and the assignment fields is
    maintained by ``reports.services``: Assigned implies ``assigned_to``
    and ``assigned_from``; In Progress implies ``maintainer``;
    ``status_reason`` is non-empty only when Rejected.
    Accounts holding an open assignment cannot be deleted
    (``UserManagementService.delete_user``), so the SET_NULL on
    ``assigned_to`` and ``maintainer`` only fires for closed reports.
    """

    category = models.ForeignKey(
        ReportCategory,
        on_delete=models.PROTECT,
        related_name="reports",
        verbose_name="Category",
    )
    title = models.CharField(
        max_length=200,
        verbose_name="Title",
    )
    description = models.TextField(
        blank=True,
        default="",
        verbose_name="Description",
    )
    is_public = models.BooleanField(
        default=True,
        verbose_name="Public",
        help_text="When false the reporter's identity is hidden from other users.",
    )
    latitude = models.FloatField(
        validators=[MinValueValidator(-90.0), MaxValueValidator(90.0)],
        verbose_name="Latitude",
    )
    longitude = models.FloatField(
        validators=[MinValueValidator(-180.0), MaxValueValidator(180.0)],
        verbose_name="Longitude",
    )
    status = models.CharField(
        max_length=20,
        choices=ReportStatus.choices,
        default=ReportStatus.PENDING_APPROVAL,
        db_index=True,
        verbose_name="Status",
    )
    status_reason = models.TextField(
        blank=True,
        default="",
        verbose_name="Status Reason",
    )

    # ── People ───────────────────────────────────────────────────────
    reporter = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="submitted_reports",
        verbose_name="Reporter",
    )
    assigned_from = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="reports_assigned_by_me",
        verbose_name="Assigned From",
    )
    assigned_to = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assigned_reports",
        verbose_name="Assigned To",
    )
    maintainer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="maintained_reports",
        verbose_name="Maintainer",
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="updated_reports",
        verbose_name="Updated By",
    )

    class Meta:
        verbose_name = "report"
        verbose_name_plural = "reports"
        ordering = ["-updated_at", "-id"]
        indexes = [
            models.Index(fields=["status", "category"], name="report_status_category_idx"),
            models.Index(fields=["-updated_at"], name="report_updated_at_idx"),
        ]

    def __str__(self):
        return f"Report #{self.pk}: {self.title} [{self.status}]"

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class ReportPhoto(models.Model):
    """One photo of a report; ``position`` is 1-based and order-significant."""

    report = models.ForeignKey(
        Report,
        on_delete=models.CASCADE,
        related_name="photos",
        verbose_name="Report",
    )
    position = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1)],
        verbose_name="Position",
    )
    public_url = models.CharField(
        max_length=500,
        verbose_name="Public URL",
    )
    storage_path = models.CharField(
        max_length=500,
        verbose_name="Storage Path",
    )

    class Meta:
        verbose_name = "report photo"
        verbose_name_plural = "report photos"
        ordering = ["report", "position"]
        constraints = [
            models.UniqueConstraint(
                fields=["report", "position"],
                name="unique_report_photo_position",
            ),
        ]

    def __str__(self):
        return f"Photo {self.position} of Report #{self.report_id}"


class ReportComment(TimeStampedModel):
    """Internal staff note on a report; only its author may edit or delete it."""

    report = models.ForeignKey(
        Report,
        on_delete=models.CASCADE,
        related_name="comments",
        verbose_name="Report",
    )
    commenter = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="report_comments",
        verbose_name="Commenter",
    )
    text = models.TextField(verbose_name="Text")

    class Meta:
        verbose_name = "comment"
        verbose_name_plural = "comments"
        ordering = ["created_at", "id"]

    def __str__(self):
        return f"Comment #{self.pk} on Report #{self.report_id}"

"""
Reports app serializers.

Request serializers validate and coerce client input; response
serializers render the two report projections:

* ``ReportSummarySerializer`` — map pins and "my reports".
* ``ReportDetailSerializer``  — single report, staff search and queues.

All domain rules live in ``services.py``.
"""

from __future__ import annotations

from django.conf import settings
from rest_framework import serializers

from accounts.serializers import UserBriefSerializer
from core.serializers import PaginationQuerySerializer

from .models import Report, ReportCategory, ReportComment, ReportPhoto, ReportStatus

# Statuses the generic status endpoint may set
SETTABLE_STATUSES = [ReportStatus.ASSIGNED, ReportStatus.REJECTED]


# ═══════════════════════════════════════════════════════════════════
#  Category / Photo
# ═══════════════════════════════════════════════════════════════════


class ReportCategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = ReportCategory
        fields = ["id", "name", "icon", "description"]
        read_only_fields = fields


class ReportPhotoSerializer(serializers.ModelSerializer):
    class Meta:
        model = ReportPhoto
        fields = ["position", "public_url"]
        read_only_fields = fields


# ═══════════════════════════════════════════════════════════════════
#  Report Request Serializers
# ═══════════════════════════════════════════════════════════════════


class ReportSubmitSerializer(serializers.Serializer):
    """
    Multipart body of ``POST /api/reports/``.

    ``photos`` is optional and repeated once per file; the order of the
    parts becomes the display order.
    """

    title = serializers.CharField(max_length=200)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    category_id = serializers.IntegerField(min_value=1)
    latitude = serializers.FloatField(min_value=-90.0, max_value=90.0)
    longitude = serializers.FloatField(min_value=-180.0, max_value=180.0)
    is_public = serializers.BooleanField(required=False, default=True)
    photos = serializers.ListField(
        child=serializers.ImageField(),
        required=False,
        default=list,
        max_length=settings.REPORTS_MAX_PHOTOS,
        help_text="Up to %d image files." % settings.REPORTS_MAX_PHOTOS,
    )


class ReportFilterSerializer(PaginationQuerySerializer):
    """Query parameters of the staff report search."""

    status = serializers.ChoiceField(choices=ReportStatus.choices, required=False)
    is_public = serializers.BooleanField(required=False, allow_null=True, default=None)
    category_id = serializers.IntegerField(required=False, min_value=1)


class ReportMapFilterSerializer(serializers.Serializer):
    """``?status=...`` may be repeated; omitted means the default map statuses."""

    status = serializers.ListField(
        child=serializers.ChoiceField(choices=ReportStatus.choices),
        required=False,
        default=list,
    )


class ReportStatusUpdateSerializer(serializers.Serializer):
    """
    Body of ``PATCH /api/reports/{id}/status/``.

    Only ``Assigned`` and ``Rejected`` can be requested here; the rest of
    the lifecycle is driven by the dedicated actions.
    """

    status = serializers.ChoiceField(choices=SETTABLE_STATUSES)
    status_reason = serializers.CharField(required=False, allow_blank=True, default="")
    assigned_to_id = serializers.IntegerField(required=False, min_value=1)


class AssignOfficerSerializer(serializers.Serializer):
    assigned_to_id = serializers.IntegerField(
        required=False,
        min_value=1,
        help_text="Technical officer to assign; omitted means pick automatically.",
    )


class AssignMaintainerSerializer(serializers.Serializer):
    maintainer_id = serializers.IntegerField(min_value=1)


# ═══════════════════════════════════════════════════════════════════
#  Report Response Serializers
# ═══════════════════════════════════════════════════════════════════


class ReportSummarySerializer(serializers.ModelSerializer):
    """Lightweight projection: no people, only the first photo."""

    category = ReportCategorySerializer(read_only=True)
    cover_photo_url = serializers.SerializerMethodField()

    class Meta:
        model = Report
        fields = [
            "id",
            "title",
            "status",
            "category",
            "latitude",
            "longitude",
            "is_public",
            "cover_photo_url",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_cover_photo_url(self, obj: Report) -> str | None:
        photos = list(obj.photos.all())
        return photos[0].public_url if photos else None


class ReportDetailSerializer(serializers.ModelSerializer):
    """
    Full projection with every person resolved.

    The reporter of a non-public report is only shown to the reporter
    and to staff (admin or municipality).
    """

    category = ReportCategorySerializer(read_only=True)
    photos = ReportPhotoSerializer(many=True, read_only=True)
    reporter = serializers.SerializerMethodField()
    assigned_from = UserBriefSerializer(read_only=True)
    assigned_to = UserBriefSerializer(read_only=True)
    maintainer = UserBriefSerializer(read_only=True)
    updated_by = UserBriefSerializer(read_only=True)

    class Meta:
        model = Report
        fields = [
            "id",
            "title",
            "description",
            "status",
            "status_reason",
            "category",
            "latitude",
            "longitude",
            "is_public",
            "photos",
            "reporter",
            "assigned_from",
            "assigned_to",
            "maintainer",
            "updated_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_reporter(self, obj: Report) -> dict | None:
        if obj.reporter is None:
            return None
        if not obj.is_public:
            request = self.context.get("request")
            viewer = getattr(request, "user", None)
            allowed = viewer is not None and viewer.is_authenticated and (
                viewer.pk == obj.reporter_id
                or viewer.is_admin
                or viewer.is_municipality
            )
            if not allowed:
                return None
        return UserBriefSerializer(obj.reporter).data


# ═══════════════════════════════════════════════════════════════════
#  Comments
# ═══════════════════════════════════════════════════════════════════


class CommentWriteSerializer(serializers.Serializer):
    text = serializers.CharField(max_length=2000)


class CommentSerializer(serializers.ModelSerializer):
    commenter = UserBriefSerializer(read_only=True)

    class Meta:
        model = ReportComment
        fields = ["id", "report", "commenter", "text", "created_at", "updated_at"]
        read_only_fields = fields

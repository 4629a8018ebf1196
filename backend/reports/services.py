"""
Reports Service Layer.

This module is the **single source of truth** for all business logic
within the ``reports`` app.  Views validate input through serializers,
call one method here, and serialise whatever comes back.

Architecture
------------
- ``ReportCategoryService``   — category catalog and responsible officers.
- ``PhotoStorageService``     — uploads / best-effort deletes of photo bytes.
- ``ReportQueryService``      — summary/detail projections, search, work queues.
- ``ReportSubmissionService`` — citizen report + photos, in one transaction.
- ``ReportWorkflowService``   — the status state machine and assignment chain.
- ``ReportCommentService``    — internal staff comments.

State machine
-------------
``ALLOWED_TRANSITIONS`` is the complete set of legal ``(from, to)`` moves.
Every mutation checks, in order: the caller's tier/role, the request
input, the move against ``ALLOWED_TRANSITIONS`` (``InvalidTransition``
otherwise), then any ownership rule on the locked row.
"""

from __future__ import annotations

import logging
import os
import uuid
from dataclasses import dataclass
from typing import Any, Iterable

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.files.storage import default_storage
from django.core.files.uploadedfile import UploadedFile
from django.db import transaction
from django.db.models import Count, Q, QuerySet

from accounts.models import RoleType, UserType
from core.domain.access import (
    require_admin_or_municipality,
    require_citizen,
    require_owner,
    require_role,
)
from core.domain.exceptions import (
    DomainError,
    NotFound,
    ServiceUnavailable,
)
from core.domain.pagination import PaginatedResult, paginate
from core.domain.transactions import atomic_transition

from .models import Report, ReportCategory, ReportComment, ReportPhoto, ReportStatus

logger = logging.getLogger(__name__)

User = get_user_model()

MSG_REPORT_NOT_FOUND = "The report does not exist."
MSG_CATEGORY_NOT_FOUND = "The category does not exist."
MSG_COMMENT_NOT_FOUND = "The comment does not exist."
MSG_REASON_REQUIRED = "Status reason is required when rejecting a report."

PHOTO_UPLOAD_DIR = "reports"


# ═══════════════════════════════════════════════════════════════════
#  State machine
# ═══════════════════════════════════════════════════════════════════

# (from, to) → action that performs the move
ALLOWED_TRANSITIONS: dict[tuple[str, str], str] = {
    (ReportStatus.PENDING_APPROVAL, ReportStatus.ASSIGNED): "assign to technical officer",
    (ReportStatus.PENDING_APPROVAL, ReportStatus.REJECTED): "reject",
    (ReportStatus.ASSIGNED, ReportStatus.IN_PROGRESS): "assign to external maintainer",
    (ReportStatus.IN_PROGRESS, ReportStatus.RESOLVED): "mark resolved",
}

# Statuses still waiting on someone's action
OPEN_STATUSES = (ReportStatus.ASSIGNED, ReportStatus.IN_PROGRESS)

# What the public map shows when the caller names no statuses
DEFAULT_MAP_STATUSES = (
    ReportStatus.ASSIGNED,
    ReportStatus.IN_PROGRESS,
    ReportStatus.RESOLVED,
)


def allowed_sources(target: str) -> set[str]:
    """Statuses from which ``target`` can be reached in one move."""
    return {src for (src, dst) in ALLOWED_TRANSITIONS if dst == target}


def _get_report(report_id: int) -> Report:
    try:
        return Report.objects.get(pk=report_id)
    except Report.DoesNotExist:
        raise NotFound(MSG_REPORT_NOT_FOUND)


# ═══════════════════════════════════════════════════════════════════
#  Category Service
# ═══════════════════════════════════════════════════════════════════


class ReportCategoryService:
    """Read access to the fixed category taxonomy."""

    @staticmethod
    def list_active_categories() -> QuerySet[ReportCategory]:
        return ReportCategory.objects.filter(is_active=True).order_by("id")

    @staticmethod
    def get_active_category(category_id: int) -> ReportCategory:
        """Raise ``NotFound`` for unknown or deactivated categories."""
        try:
            return ReportCategory.objects.get(pk=category_id, is_active=True)
        except ReportCategory.DoesNotExist:
            raise NotFound(MSG_CATEGORY_NOT_FOUND)

    @staticmethod
    def technical_officers_for(category_id: int) -> QuerySet:
        """Municipality users holding a technical-officer role responsible for the category."""
        return (
            User.objects.filter(
                user_type=UserType.MUNICIPALITY,
                roles__role_type=RoleType.TECHNICAL_OFFICER,
                roles__responsible_categories__pk=category_id,
            )
            .distinct()
            .prefetch_related("roles")
            .order_by("id")
        )

    @staticmethod
    def list_technical_officers(category_id: int, requesting_user: Any) -> QuerySet:
        """
        ``GET categories/{id}/technical-officers/`` — admin or municipality.

        Raises
        ------
        NotFound
            If the category does not exist.
        """
        require_admin_or_municipality(requesting_user)
        if not ReportCategory.objects.filter(pk=category_id).exists():
            raise NotFound(MSG_CATEGORY_NOT_FOUND)
        return ReportCategoryService.technical_officers_for(category_id)


# ═══════════════════════════════════════════════════════════════════
#  Photo Storage Service
# ═══════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class StoredPhoto:
    storage_path: str
    public_url: str


class PhotoStorageService:
    """
    Thin wrapper over Django's ``default_storage``.

    Any backend failure during upload becomes ``ServiceUnavailable``
    (503); objects already written by the same call are removed first.
    Deletion is best-effort: failures are logged, never raised.
    """

    @staticmethod
    def upload_photos(photos: Iterable[UploadedFile]) -> list[StoredPhoto]:
        stored: list[StoredPhoto] = []
        for upload in photos:
            ext = os.path.splitext(upload.name or "")[1].lower()
            name = f"{PHOTO_UPLOAD_DIR}/{uuid.uuid4().hex}{ext}"
            path = None
            try:
                path = default_storage.save(name, upload)
                url = default_storage.url(path)
            except Exception as exc:
                if path is not None:
                    stored.append(StoredPhoto(storage_path=path, public_url=""))
                PhotoStorageService.discard(stored)
                logger.error("Photo upload of %s failed: %s", upload.name, exc)
                raise ServiceUnavailable(
                    f"{upload.name}: Cannot upload the provided file to the photo storage."
                ) from exc
            stored.append(StoredPhoto(storage_path=path, public_url=url))
        return stored

    @staticmethod
    def discard(stored: Iterable[StoredPhoto]) -> None:
        for photo in stored:
            try:
                default_storage.delete(photo.storage_path)
            except Exception as exc:
                logger.warning(
                    "Could not delete orphaned photo %s: %s",
                    photo.storage_path,
                    exc,
                )


# ═══════════════════════════════════════════════════════════════════
#  Query Service
# ═══════════════════════════════════════════════════════════════════


class ReportQueryService:
    """
    Read-side access to reports through two explicit projections:

    * **summary** — the report row and its category (map pins, "my
      reports").
    * **detail** — every user reference eagerly joined and the photos
      prefetched (single report, staff search, work queues).
    """

    @staticmethod
    def summary_queryset() -> QuerySet[Report]:
        return Report.objects.select_related("category").prefetch_related("photos")

    @staticmethod
    def detail_queryset() -> QuerySet[Report]:
        return (
            Report.objects
            .select_related(
                "category",
                "reporter",
                "assigned_from",
                "assigned_to",
                "maintainer",
                "updated_by",
            )
            .prefetch_related("photos")
        )

    @staticmethod
    def get_report_detail(report_id: int) -> Report:
        """Public read of one report.  Raises ``NotFound``."""
        try:
            return ReportQueryService.detail_queryset().get(pk=report_id)
        except Report.DoesNotExist:
            raise NotFound(MSG_REPORT_NOT_FOUND)

    @staticmethod
    def search_reports(filters: dict[str, Any], requesting_user: Any) -> PaginatedResult:
        """
        Return one page of reports matching every supplied filter.

        Parameters
        ----------
        filters : dict
            Cleaned data from ``ReportFilterSerializer``: optional
            ``status``, ``is_public`` and ``category_id`` plus
            ``page_num`` / ``page_size``.
        requesting_user : User
            Must be an admin or municipality user.

        Returns
        -------
        PaginatedResult[Report]
            Most recently updated first.
        """
        require_admin_or_municipality(requesting_user)

        qs = ReportQueryService.detail_queryset()
        if filters.get("status"):
            qs = qs.filter(status=filters["status"])
        if filters.get("is_public") is not None:
            qs = qs.filter(is_public=filters["is_public"])
        if filters.get("category_id") is not None:
            qs = qs.filter(category_id=filters["category_id"])

        return paginate(
            qs.order_by("-updated_at", "-id"),
            page_num=filters["page_num"],
            page_size=filters["page_size"],
        )

    @staticmethod
    def list_my_reports(requesting_user: Any) -> QuerySet[Report]:
        """Reports filed by the calling citizen, newest update first."""
        require_citizen(requesting_user)
        return (
            ReportQueryService.summary_queryset()
            .filter(reporter=requesting_user)
            .order_by("-updated_at", "-id")
        )

    @staticmethod
    def list_map_reports(statuses: Iterable[str] | None = None) -> QuerySet[Report]:
        """Public map pins; defaults to reports that have been approved."""
        wanted = list(statuses) if statuses else list(DEFAULT_MAP_STATUSES)
        return (
            ReportQueryService.summary_queryset()
            .filter(status__in=wanted)
            .order_by("-updated_at", "-id")
        )

    @staticmethod
    def list_assigned_to_officer(requesting_user: Any) -> QuerySet[Report]:
        """Open reports assigned to the calling technical officer."""
        require_role(requesting_user, RoleType.TECHNICAL_OFFICER)
        return (
            ReportQueryService.detail_queryset()
            .filter(assigned_to=requesting_user, status__in=OPEN_STATUSES)
            .order_by("-updated_at", "-id")
        )

    @staticmethod
    def list_assigned_to_maintainer(requesting_user: Any) -> QuerySet[Report]:
        """Reports the calling external maintainer is working on."""
        require_role(requesting_user, RoleType.EXTERNAL_MAINTAINER)
        return (
            ReportQueryService.detail_queryset()
            .filter(maintainer=requesting_user, status=ReportStatus.IN_PROGRESS)
            .order_by("-updated_at", "-id")
        )


# ═══════════════════════════════════════════════════════════════════
#  Submission Service
# ═══════════════════════════════════════════════════════════════════


class ReportSubmissionService:
    """Citizen-side creation of reports."""

    @staticmethod
    def submit_report(
        validated_data: dict[str, Any],
        photos: list[UploadedFile],
        requesting_user: Any,
    ) -> Report:
        """
        File a new report in ``Pending Approval``.

        Photo bytes are uploaded first; the report row and its photo rows
        are then written in a single transaction.  If that transaction
        fails the uploaded objects are deleted (best effort) and the
        error propagates.

        Parameters
        ----------
        validated_data : dict
            ``title``, ``description``, ``category_id``, ``latitude``,
            ``longitude``, ``is_public`` from ``ReportSubmitSerializer``.
        photos : list[UploadedFile]
            Up to ``settings.REPORTS_MAX_PHOTOS`` images, in display order.
        requesting_user : User
            Must be a citizen.

        Raises
        ------
        PermissionDenied
            If the caller is not a citizen.
        NotFound
            If the category is unknown or inactive.
        DomainError
            If too many photos are supplied.
        ServiceUnavailable
            If the photo storage fails.
        """
        require_citizen(requesting_user)

        max_photos = settings.REPORTS_MAX_PHOTOS
        if len(photos) > max_photos:
            raise DomainError(f"A report can have at most {max_photos} photos.")

        category = ReportCategoryService.get_active_category(validated_data["category_id"])

        stored = PhotoStorageService.upload_photos(photos)
        try:
            with transaction.atomic():
                report = Report.objects.create(
                    category=category,
                    title=validated_data["title"],
                    description=validated_data.get("description", ""),
                    is_public=validated_data.get("is_public", True),
                    latitude=validated_data["latitude"],
                    longitude=validated_data["longitude"],
                    status=ReportStatus.PENDING_APPROVAL,
                    reporter=requesting_user,
                    updated_by=requesting_user,
                )
                ReportPhoto.objects.bulk_create([
                    ReportPhoto(
                        report=report,
                        position=position,
                        storage_path=photo.storage_path,
                        public_url=photo.public_url,
                    )
                    for position, photo in enumerate(stored, start=1)
                ])
        except Exception:
            PhotoStorageService.discard(stored)
            raise

        logger.info(
            "Report #%d filed by citizen #%d in category %s with %d photo(s)",
            report.pk,
            requesting_user.pk,
            category.name,
            len(stored),
        )
        return ReportQueryService.detail_queryset().get(pk=report.pk)


# ═══════════════════════════════════════════════════════════════════
#  Workflow Service
# ═══════════════════════════════════════════════════════════════════


class ReportWorkflowService:
    """
    Caller-initiated status transitions.  Nothing moves automatically.

    Each method returns the report re-read through the detail projection.
    """

    @staticmethod
    def update_status(
        report_id: int,
        validated_data: dict[str, Any],
        performed_by: Any,
    ) -> Report:
        """
        ``PATCH reports/{id}/status/`` — dispatch to the matching action.

        ``Assigned`` routes to ``assign_to_technical_officer`` (with the
        optional ``assigned_to_id``); ``Rejected`` routes to ``reject``.
        """
        target = validated_data["status"]
        if target == ReportStatus.ASSIGNED:
            return ReportWorkflowService.assign_to_technical_officer(
                report_id,
                performed_by,
                assigned_to_id=validated_data.get("assigned_to_id"),
            )
        if target == ReportStatus.REJECTED:
            return ReportWorkflowService.reject(
                report_id,
                validated_data.get("status_reason", ""),
                performed_by,
            )
        raise DomainError(f"Status '{target}' cannot be set through this operation.")

    @staticmethod
    def assign_to_technical_officer(
        report_id: int,
        performed_by: Any,
        assigned_to_id: int | None = None,
    ) -> Report:
        """
        Pending Approval → Assigned.

        When ``assigned_to_id`` is omitted, the technical officer
        responsible for the report's category with the fewest open
        assignments is chosen (ties broken by lowest id).

        Raises
        ------
        PermissionDenied
            If the caller is not admin or municipality.
        NotFound
            If the report or the named officer does not exist.
        InvalidTransition
            If the report is not Pending Approval.
        DomainError
            If the named user is not a technical officer, or no officer
            is responsible for the category.
        """
        require_admin_or_municipality(performed_by)
        report = _get_report(report_id)

        def changes(locked: Report) -> dict[str, Any]:
            if assigned_to_id is not None:
                officer = ReportWorkflowService._resolve_technical_officer(assigned_to_id)
            else:
                officer = ReportWorkflowService._pick_technical_officer(locked.category_id)
            return {
                "assigned_to": officer,
                "assigned_from": performed_by,
                "updated_by": performed_by,
            }

        report = atomic_transition(
            instance=report,
            target_status=ReportStatus.ASSIGNED,
            allowed_sources=allowed_sources(ReportStatus.ASSIGNED),
            changes=changes,
        )
        logger.info(
            "Report #%d assigned to technical officer #%d by #%d",
            report.pk,
            report.assigned_to_id,
            performed_by.pk,
        )
        return ReportQueryService.get_report_detail(report.pk)

    @staticmethod
    def reject(report_id: int, status_reason: str | None, performed_by: Any) -> Report:
        """
        Pending Approval → Rejected.

        A blank or whitespace-only reason fails with ``DomainError``
        before the report is read.
        """
        require_admin_or_municipality(performed_by)
        reason = (status_reason or "").strip()
        if not reason:
            raise DomainError(MSG_REASON_REQUIRED)

        report = atomic_transition(
            instance=_get_report(report_id),
            target_status=ReportStatus.REJECTED,
            allowed_sources=allowed_sources(ReportStatus.REJECTED),
            changes={"status_reason": reason, "updated_by": performed_by},
        )
        logger.info("Report #%d rejected by #%d", report.pk, performed_by.pk)
        return ReportQueryService.get_report_detail(report.pk)

    @staticmethod
    def assign_to_maintainer(report_id: int, maintainer_id: int, performed_by: Any) -> Report:
        """
        Assigned → In Progress.  Only technical officers may hand a
        report to an external maintainer.

        Raises
        ------
        PermissionDenied
            If the caller does not hold the technical-officer role.
        NotFound
            If the report or the maintainer does not exist.
        InvalidTransition
            If the report is not Assigned.
        DomainError
            If the target user is not an external maintainer.
        """
        require_role(performed_by, RoleType.TECHNICAL_OFFICER)
        report = _get_report(report_id)

        def changes(locked: Report) -> dict[str, Any]:
            return {
                "maintainer": ReportWorkflowService._resolve_maintainer(maintainer_id),
                "updated_by": performed_by,
            }

        report = atomic_transition(
            instance=report,
            target_status=ReportStatus.IN_PROGRESS,
            allowed_sources=allowed_sources(ReportStatus.IN_PROGRESS),
            changes=changes,
        )
        logger.info(
            "Report #%d handed to maintainer #%d by technical officer #%d",
            report.pk,
            maintainer_id,
            performed_by.pk,
        )
        return ReportQueryService.get_report_detail(report.pk)

    @staticmethod
    def mark_resolved(report_id: int, performed_by: Any) -> Report:
        """
        In Progress → Resolved.  Only the maintainer recorded on the
        report may close it; the state check runs first.
        """
        def only_assigned_maintainer(locked: Report) -> None:
            require_owner(
                performed_by,
                locked.maintainer_id,
                "Only the maintainer assigned to this report can resolve it.",
            )

        report = atomic_transition(
            instance=_get_report(report_id),
            target_status=ReportStatus.RESOLVED,
            allowed_sources=allowed_sources(ReportStatus.RESOLVED),
            guard=only_assigned_maintainer,
            changes={"updated_by": performed_by},
        )
        logger.info("Report #%d resolved by maintainer #%d", report.pk, performed_by.pk)
        return ReportQueryService.get_report_detail(report.pk)

    # ── Assignment target resolution ────────────────────────────────

    @staticmethod
    def _resolve_technical_officer(user_id: int) -> Any:
        try:
            officer = User.objects.get(pk=user_id)
        except User.DoesNotExist:
            raise NotFound("The user does not exist.")
        if not (officer.is_municipality and officer.has_role(RoleType.TECHNICAL_OFFICER)):
            raise DomainError("Reports can only be assigned to a technical officer.")
        return officer

    @staticmethod
    def _pick_technical_officer(category_id: int) -> Any:
        officer = (
            ReportCategoryService.technical_officers_for(category_id)
            .annotate(
                open_reports=Count(
                    "assigned_reports",
                    filter=Q(assigned_reports__status__in=OPEN_STATUSES),
                    distinct=True,
                ),
            )
            .order_by("open_reports", "id")
            .first()
        )
        if officer is None:
            raise DomainError("No technical officer is responsible for this report's category.")
        return officer

    @staticmethod
    def _resolve_maintainer(user_id: int) -> Any:
        try:
            maintainer = User.objects.get(pk=user_id)
        except User.DoesNotExist:
            raise NotFound("The maintainer does not exist.")
        if not (maintainer.is_municipality and maintainer.has_role(RoleType.EXTERNAL_MAINTAINER)):
            raise DomainError("Reports can only be handed to an external maintainer.")
        return maintainer


# ═══════════════════════════════════════════════════════════════════
#  Comment Service
# ═══════════════════════════════════════════════════════════════════


class ReportCommentService:
    """
    Internal comments exchanged by staff on a report.

    Any admin or municipality user may read and add comments; only the
    author may edit or delete one.
    """

    @staticmethod
    def list_comments(report_id: int, requesting_user: Any) -> QuerySet[ReportComment]:
        require_admin_or_municipality(requesting_user)
        report = _get_report(report_id)
        return (
            ReportComment.objects
            .filter(report=report)
            .select_related("commenter")
            .order_by("created_at", "id")
        )

    @staticmethod
    def add_comment(report_id: int, text: str, performed_by: Any) -> ReportComment:
        require_admin_or_municipality(performed_by)
        report = _get_report(report_id)
        comment = ReportComment.objects.create(
            report=report,
            commenter=performed_by,
            text=text,
        )
        logger.info("Comment #%d added to report #%d by #%d", comment.pk, report.pk, performed_by.pk)
        return comment

    @staticmethod
    @transaction.atomic
    def edit_comment(
        report_id: int,
        comment_id: int,
        text: str,
        performed_by: Any,
    ) -> ReportComment:
        comment = ReportCommentService._get_comment(report_id, comment_id)
        require_owner(performed_by, comment.commenter_id, "You can edit only your own comments.")
        comment.text = text
        comment.save(update_fields=["text", "updated_at"])
        logger.info("Comment #%d edited by #%d", comment.pk, performed_by.pk)
        return comment

    @staticmethod
    @transaction.atomic
    def delete_comment(report_id: int, comment_id: int, performed_by: Any) -> None:
        comment = ReportCommentService._get_comment(report_id, comment_id)
        require_owner(performed_by, comment.commenter_id, "You can delete only your own comments.")
        comment.delete()
        logger.info("Comment #%d deleted by #%d", comment_id, performed_by.pk)

    @staticmethod
    def _get_comment(report_id: int, comment_id: int) -> ReportComment:
        _get_report(report_id)
        try:
            return (
                ReportComment.objects
                .select_related("commenter")
                .get(pk=comment_id, report_id=report_id)
            )
        except ReportComment.DoesNotExist:
            raise NotFound(MSG_COMMENT_NOT_FOUND)

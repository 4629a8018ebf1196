"""
Unit tests for ``core.domain`` (pagination, the exception handler and
the state-transition helper) plus the public constants endpoint.
"""

from __future__ import annotations

import pytest
from django.urls import reverse
from rest_framework import exceptions as drf_exceptions

from core.domain.exception_handler import GENERIC_ERROR_MESSAGE, domain_exception_handler
from core.domain.exceptions import (
    Conflict,
    DomainError,
    InvalidTransition,
    NotFound,
    PermissionDenied,
    ServiceUnavailable,
)
from core.domain.pagination import compute_total_pages, paginate
from core.domain.transactions import atomic_transition


# ════════════════════════════════════════════════════════════════════
#  Pagination
# ════════════════════════════════════════════════════════════════════

class TestComputeTotalPages:

    @pytest.mark.parametrize(
        "total_items,page_size,expected",
        [
            (0, 10, 0),
            (1, 10, 1),
            (10, 10, 1),
            (11, 10, 2),
            (25, 5, 5),
            (7, 3, 3),
        ],
    )
    def test_ceiling_division(self, total_items, page_size, expected):
        assert compute_total_pages(total_items, page_size) == expected

    def test_zero_page_size_is_rejected(self):
        with pytest.raises(ValueError):
            compute_total_pages(5, 0)


@pytest.mark.django_db
class TestPaginate:

    @pytest.fixture()
    def users(self, create_user):
        return [create_user(username=f"page_user_{i:02d}") for i in range(7)]

    def queryset(self):
        from accounts.models import User
        return User.objects.filter(username__startswith="page_user_").order_by("username")

    def test_middle_page(self, users):
        result = paginate(self.queryset(), page_num=2, page_size=3)

        assert result.total_items == 7
        assert result.total_pages == 3
        assert [u.username for u in result.items] == ["page_user_03", "page_user_04", "page_user_05"]

    def test_last_page_is_short(self, users):
        result = paginate(self.queryset(), page_num=3, page_size=3)
        assert [u.username for u in result.items] == ["page_user_06"]

    def test_page_past_the_end_is_empty(self, users):
        result = paginate(self.queryset(), page_num=9, page_size=3)

        assert result.items == []
        assert result.total_items == 7
        assert result.page_num == 9

    def test_empty_queryset(self, db):
        result = paginate(self.queryset(), page_num=1, page_size=10)
        assert (result.total_items, result.total_pages, result.items) == (0, 0, [])

    @pytest.mark.parametrize("page_num,page_size", [(0, 10), (1, 0), (-1, 5)])
    def test_invalid_arguments(self, db, page_num, page_size):
        with pytest.raises(ValueError):
            paginate(self.queryset(), page_num=page_num, page_size=page_size)


# ════════════════════════════════════════════════════════════════════
#  Exception handler
# ════════════════════════════════════════════════════════════════════

class TestDomainExceptionHandler:

    @pytest.mark.parametrize(
        "exc,expected_status",
        [
            (PermissionDenied(), 401),
            (NotFound("The report does not exist."), 404),
            (Conflict("The username already exists."), 409),
            (InvalidTransition(current="Rejected", target="Assigned"), 409),
            (ServiceUnavailable("a.jpg: Cannot upload the provided file."), 503),
            (DomainError("Bad input."), 400),
        ],
    )
    def test_domain_errors_map_to_status(self, exc, expected_status):
        resp = domain_exception_handler(exc, {"view": "test"})

        assert resp.status_code == expected_status
        assert resp.data == {"error": str(exc), "status": expected_status}

    def test_invalid_transition_message_names_both_states(self):
        exc = InvalidTransition(current="Rejected", target="Assigned")
        assert "'Rejected'" in str(exc)
        assert "'Assigned'" in str(exc)

    def test_drf_errors_keep_their_own_shape(self):
        resp = domain_exception_handler(
            drf_exceptions.ValidationError({"title": ["This field is required."]}),
            {"view": "test"},
        )
        assert resp.status_code == 400
        assert resp.data == {"title": ["This field is required."]}

    def test_unexpected_errors_are_masked(self, settings):
        settings.DEBUG = False
        resp = domain_exception_handler(RuntimeError("db password is hunter2"), {"view": "test"})

        assert resp.status_code == 500
        assert resp.data == {"error": GENERIC_ERROR_MESSAGE, "status": 500}

    def test_unexpected_errors_are_shown_in_debug(self, settings):
        settings.DEBUG = True
        resp = domain_exception_handler(RuntimeError("boom"), {"view": "test"})
        assert resp.data["error"] == "boom"


# ════════════════════════════════════════════════════════════════════
#  atomic_transition
# ════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestAtomicTransition:

    @pytest.fixture()
    def report(self, create_user):
        from reports.models import Report, ReportCategory
        category = ReportCategory.objects.create(name="Transition Category")
        return Report.objects.create(
            category=category,
            title="Transition",
            latitude=1.0,
            longitude=1.0,
            reporter=create_user(),
        )

    def test_applies_status_and_changes(self, report):
        from reports.models import ReportStatus

        updated = atomic_transition(
            instance=report,
            target_status=ReportStatus.REJECTED,
            allowed_sources={ReportStatus.PENDING_APPROVAL},
            changes={"status_reason": "Spam"},
        )

        report.refresh_from_db()
        assert updated.status == report.status == ReportStatus.REJECTED
        assert report.status_reason == "Spam"

    def test_callable_changes_receive_locked_row(self, report):
        from reports.models import ReportStatus

        seen = []

        def changes(locked):
            seen.append(locked.status)
            return {"status_reason": "computed"}

        atomic_transition(
            instance=report,
            target_status=ReportStatus.REJECTED,
            allowed_sources={ReportStatus.PENDING_APPROVAL},
            changes=changes,
        )
        assert seen == [ReportStatus.PENDING_APPROVAL]

    def test_wrong_source_raises_without_running_guard(self, report):
        from reports.models import ReportStatus

        def guard(locked):
            raise AssertionError("guard must not run")

        with pytest.raises(InvalidTransition):
            atomic_transition(
                instance=report,
                target_status=ReportStatus.RESOLVED,
                allowed_sources={ReportStatus.IN_PROGRESS},
                guard=guard,
            )
        report.refresh_from_db()
        assert report.status == ReportStatus.PENDING_APPROVAL

    def test_guard_failure_leaves_row_untouched(self, report):
        from reports.models import ReportStatus

        def guard(locked):
            raise PermissionDenied("nope")

        with pytest.raises(PermissionDenied):
            atomic_transition(
                instance=report,
                target_status=ReportStatus.REJECTED,
                allowed_sources={ReportStatus.PENDING_APPROVAL},
                guard=guard,
                changes={"status_reason": "never saved"},
            )
        report.refresh_from_db()
        assert report.status_reason == ""

    def test_deleted_row_raises_not_found(self, report):
        from reports.models import ReportStatus

        report_copy = type(report).objects.get(pk=report.pk)
        report.delete()

        with pytest.raises(NotFound, match="The report does not exist."):
            atomic_transition(
                instance=report_copy,
                target_status=ReportStatus.REJECTED,
                allowed_sources={ReportStatus.PENDING_APPROVAL},
            )


# ════════════════════════════════════════════════════════════════════
#  System constants endpoint
# ════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestSystemConstants:

    def test_constants_are_public(self, api_client):
        resp = api_client.get(reverse("core:system-constants"))

        assert resp.status_code == 200
        statuses = [item["value"] for item in resp.data["report_statuses"]]
        assert statuses == ["Pending Approval", "Assigned", "In Progress", "Rejected", "Resolved"]
        assert {item["value"] for item in resp.data["user_types"]} == {"citizen", "municipality", "admin"}
        assert resp.data["max_photos_per_report"] == 3

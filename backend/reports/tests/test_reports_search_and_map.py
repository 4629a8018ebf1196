"""
Integration tests — staff report search, the public map and the
category → technical officer lookup.

Endpoints under test:
    GET /api/reports/                              (reports:report-list)
    GET /api/reports/map/                          (reports:report-map)
    GET /api/categories/{id}/technical-officers/   (reports:category-technical-officers)
"""

from __future__ import annotations

from datetime import timedelta

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from accounts.models import Role, RoleType, UserType
from reports.models import Report, ReportCategory, ReportStatus

User = get_user_model()

PASSWORD = "S3arch!Pass"


class TestReportSearch(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.roads = ReportCategory.objects.create(name="Search Roads")
        cls.green = ReportCategory.objects.create(name="Search Green")
        cls.staff = User.objects.create_user(
            username="search_staff",
            password=PASSWORD,
            user_type=UserType.MUNICIPALITY,
        )
        cls.citizen = User.objects.create_user(username="search_citizen", password=PASSWORD)

        # Seven reports with strictly increasing updated_at.
        specs = [
            (cls.roads, ReportStatus.PENDING_APPROVAL, True),
            (cls.roads, ReportStatus.PENDING_APPROVAL, False),
            (cls.roads, ReportStatus.ASSIGNED, True),
            (cls.green, ReportStatus.PENDING_APPROVAL, True),
            (cls.green, ReportStatus.REJECTED, True),
            (cls.green, ReportStatus.RESOLVED, False),
            (cls.roads, ReportStatus.IN_PROGRESS, True),
        ]
        base = timezone.now() - timedelta(days=1)
        cls.reports = []
        for i, (category, report_status, is_public) in enumerate(specs):
            report = Report.objects.create(
                category=category,
                title=f"Search report {i}",
                latitude=45.0 + i / 100,
                longitude=7.6,
                status=report_status,
                is_public=is_public,
                reporter=cls.citizen,
            )
            Report.objects.filter(pk=report.pk).update(updated_at=base + timedelta(minutes=i))
            cls.reports.append(report)

    def setUp(self):
        self.client = APIClient()
        self.url = reverse("reports:report-list")

    def login_as(self, user) -> None:
        resp = self.client.post(
            reverse("accounts:login"),
            {"username": user.username, "password": PASSWORD},
            format="json",
        )
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {resp.data['access']}")

    def test_newest_update_first(self):
        self.login_as(self.staff)
        resp = self.client.get(self.url)

        self.assertEqual(resp.status_code, status.HTTP_200_OK, msg=resp.data)
        self.assertEqual(resp.data["total_items"], 7)
        self.assertEqual(
            [item["id"] for item in resp.data["items"]],
            [r.pk for r in reversed(self.reports)],
        )

    def test_pagination(self):
        self.login_as(self.staff)
        resp = self.client.get(self.url, {"page_num": 2, "page_size": 3})

        self.assertEqual(resp.data["page_num"], 2)
        self.assertEqual(resp.data["page_size"], 3)
        self.assertEqual(resp.data["total_pages"], 3)
        self.assertEqual(
            [item["id"] for item in resp.data["items"]],
            [self.reports[3].pk, self.reports[2].pk, self.reports[1].pk],
        )

    def test_filters_combine(self):
        self.login_as(self.staff)
        resp = self.client.get(self.url, {
            "status": ReportStatus.PENDING_APPROVAL,
            "category_id": self.roads.pk,
            "is_public": "true",
        })

        self.assertEqual([item["id"] for item in resp.data["items"]], [self.reports[0].pk])

    def test_is_public_false_filter(self):
        self.login_as(self.staff)
        resp = self.client.get(self.url, {"is_public": "false"})

        self.assertEqual(
            {item["id"] for item in resp.data["items"]},
            {self.reports[1].pk, self.reports[5].pk},
        )

    def test_no_match_gives_zero_pages(self):
        self.login_as(self.staff)
        resp = self.client.get(self.url, {"category_id": 999999})

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["total_items"], 0)
        self.assertEqual(resp.data["total_pages"], 0)
        self.assertEqual(resp.data["items"], [])

    def test_unknown_status_value_returns_400(self):
        self.login_as(self.staff)
        resp = self.client.get(self.url, {"status": "Closed"})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_page_size_above_limit_returns_400(self):
        self.login_as(self.staff)
        resp = self.client.get(self.url, {"page_size": 101})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_citizen_cannot_search(self):
        self.login_as(self.citizen)
        resp = self.client.get(self.url)
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

    # ── Map ─────────────────────────────────────────────────────────

    def test_map_defaults_to_approved_reports(self):
        resp = self.client.get(reverse("reports:report-map"))

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(
            {item["id"] for item in resp.data},
            {self.reports[2].pk, self.reports[5].pk, self.reports[6].pk},
        )
        self.assertIn("cover_photo_url", resp.data[0])

    def test_map_accepts_repeated_status(self):
        resp = self.client.get(
            reverse("reports:report-map"),
            {"status": [ReportStatus.REJECTED, ReportStatus.RESOLVED]},
        )

        self.assertEqual(
            {item["id"] for item in resp.data},
            {self.reports[4].pk, self.reports[5].pk},
        )

    def test_map_rejects_unknown_status(self):
        resp = self.client.get(reverse("reports:report-map"), {"status": "Closed"})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)


class TestCategoryTechnicalOfficers(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.category = ReportCategory.objects.create(name="Officers Sewers")
        office = Role.objects.create(role_type=RoleType.TECHNICAL_OFFICER, label="Officers Sewer Office")
        office.responsible_categories.add(cls.category)
        unrelated = Role.objects.create(role_type=RoleType.TECHNICAL_OFFICER, label="Officers Parks Office")

        cls.officer = User.objects.create_user(
            username="cat_officer",
            password=PASSWORD,
            user_type=UserType.MUNICIPALITY,
        )
        cls.officer.roles.add(office)
        cls.parks_officer = User.objects.create_user(
            username="cat_parks",
            password=PASSWORD,
            user_type=UserType.MUNICIPALITY,
        )
        cls.parks_officer.roles.add(unrelated)
        cls.citizen = User.objects.create_user(username="cat_citizen", password=PASSWORD)

    def setUp(self):
        self.client = APIClient()

    def login_as(self, user) -> None:
        resp = self.client.post(
            reverse("accounts:login"),
            {"username": user.username, "password": PASSWORD},
            format="json",
        )
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {resp.data['access']}")

    def url(self, pk: int) -> str:
        return reverse("reports:category-technical-officers", kwargs={"pk": pk})

    def test_lists_only_responsible_officers(self):
        self.login_as(self.parks_officer)
        resp = self.client.get(self.url(self.category.pk))

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual([u["username"] for u in resp.data], ["cat_officer"])

    def test_unknown_category_returns_404(self):
        self.login_as(self.officer)
        resp = self.client.get(self.url(999999))
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_citizen_gets_401(self):
        self.login_as(self.citizen)
        resp = self.client.get(self.url(self.category.pk))
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

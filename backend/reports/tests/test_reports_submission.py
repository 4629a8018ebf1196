"""
Integration tests — citizen report submission and public reads.

Endpoints under test:
    POST /api/reports/              (reports:report-list, multipart)
    GET  /api/reports/{id}/         (reports:report-detail, public)
    GET  /api/reports/mine/         (reports:report-mine)
    GET  /api/categories/           (reports:category-list, public)

Photo bytes go to Django's ``InMemoryStorage``; storage failures are
simulated by patching ``reports.services.default_storage``.
"""

from __future__ import annotations

from unittest import mock

from django.contrib.auth import get_user_model
from django.core.files.storage import default_storage
from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import IntegrityError
from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from accounts.models import UserType
from reports.models import Report, ReportCategory, ReportPhoto, ReportStatus

User = get_user_model()

PASSWORD = "Subm1ssion!Pass"

IN_MEMORY_STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.InMemoryStorage"},
    "staticfiles": {"BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage"},
}

# Smallest valid GIF (1x1 pixel)
GIF_BYTES = (
    b"GIF89a\x01\x00\x01\x00\x80\x00\x00\x00\x00\x00\xff\xff\xff!\xf9\x04"
    b"\x01\x00\x00\x00\x00,\x00\x00\x00\x00\x01\x00\x01\x00\x00\x02\x02D\x01\x00;"
)


def _photo(name: str = "photo.gif") -> SimpleUploadedFile:
    return SimpleUploadedFile(name, GIF_BYTES, content_type="image/gif")


@override_settings(STORAGES=IN_MEMORY_STORAGES)
class TestReportSubmission(TestCase):
    """A citizen files a report with zero to three photos."""

    @classmethod
    def setUpTestData(cls):
        cls.category = ReportCategory.objects.create(name="Submission Potholes")
        cls.inactive_category = ReportCategory.objects.create(
            name="Submission Retired",
            is_active=False,
        )
        cls.citizen = User.objects.create_user(
            username="sub_citizen",
            password=PASSWORD,
            first_name="Paola",
            last_name="Gallo",
        )
        cls.officer = User.objects.create_user(
            username="sub_officer",
            password=PASSWORD,
            user_type=UserType.MUNICIPALITY,
        )

    def setUp(self):
        self.client = APIClient()
        self.list_url = reverse("reports:report-list")

    def login_as(self, user) -> None:
        resp = self.client.post(
            reverse("accounts:login"),
            {"username": user.username, "password": PASSWORD},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK, msg=f"Login failed for {user.username}")
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {resp.data['access']}")

    def payload(self, **overrides) -> dict:
        base = {
            "title": "Deep pothole on Via Roma",
            "description": "Right in front of number 12.",
            "category_id": self.category.pk,
            "latitude": "45.0703",
            "longitude": "7.6869",
        }
        base.update(overrides)
        return base

    # ── Success paths ───────────────────────────────────────────────

    def test_submit_with_photos_returns_201(self):
        self.login_as(self.citizen)
        resp = self.client.post(
            self.list_url,
            self.payload(photos=[_photo("a.gif"), _photo("b.gif")]),
            format="multipart",
        )

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, msg=resp.data)
        self.assertEqual(resp.data["status"], ReportStatus.PENDING_APPROVAL)
        self.assertEqual(resp.data["category"]["id"], self.category.pk)
        self.assertEqual(resp.data["reporter"]["id"], self.citizen.pk)
        self.assertEqual([p["position"] for p in resp.data["photos"]], [1, 2])

        report = Report.objects.get(pk=resp.data["id"])
        self.assertEqual(report.updated_by, self.citizen)
        for photo in report.photos.all():
            self.assertTrue(photo.storage_path.startswith("reports/"))
            self.assertTrue(photo.storage_path.endswith(".gif"))
            self.assertTrue(default_storage.exists(photo.storage_path))

    def test_submit_without_photos(self):
        self.login_as(self.citizen)
        resp = self.client.post(self.list_url, self.payload(), format="multipart")

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, msg=resp.data)
        self.assertEqual(resp.data["photos"], [])
        self.assertTrue(resp.data["is_public"])

    def test_submit_accepts_json_without_photos(self):
        self.login_as(self.citizen)
        payload = self.payload(latitude=45.07, longitude=7.68, is_public=False)
        resp = self.client.post(self.list_url, payload, format="json")

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, msg=resp.data)
        self.assertFalse(resp.data["is_public"])

    # ── Validation ──────────────────────────────────────────────────

    def test_more_than_three_photos_returns_400(self):
        self.login_as(self.citizen)
        photos = [_photo(f"p{i}.gif") for i in range(4)]
        resp = self.client.post(self.list_url, self.payload(photos=photos), format="multipart")

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("photos", resp.data)
        self.assertFalse(Report.objects.exists())

    def test_non_image_upload_returns_400(self):
        self.login_as(self.citizen)
        bogus = SimpleUploadedFile("notes.txt", b"not an image", content_type="text/plain")
        resp = self.client.post(self.list_url, self.payload(photos=[bogus]), format="multipart")

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_out_of_range_latitude_returns_400(self):
        self.login_as(self.citizen)
        resp = self.client.post(self.list_url, self.payload(latitude="91"), format="multipart")

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("latitude", resp.data)

    def test_blank_title_returns_400(self):
        self.login_as(self.citizen)
        resp = self.client.post(self.list_url, self.payload(title="   "), format="multipart")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown_category_returns_404(self):
        self.login_as(self.citizen)
        resp = self.client.post(self.list_url, self.payload(category_id=987654), format="multipart")

        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.data["error"], "The category does not exist.")

    def test_inactive_category_returns_404(self):
        self.login_as(self.citizen)
        resp = self.client.post(
            self.list_url,
            self.payload(category_id=self.inactive_category.pk),
            format="multipart",
        )
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    # ── Authorization ───────────────────────────────────────────────

    def test_anonymous_submit_returns_401(self):
        resp = self.client.post(self.list_url, self.payload(), format="multipart")
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_municipality_user_cannot_submit(self):
        self.login_as(self.officer)
        resp = self.client.post(self.list_url, self.payload(), format="multipart")

        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(resp.data["error"], "This operation can be performed only by a citizen.")

    # ── Storage failures ────────────────────────────────────────────

    def test_storage_failure_returns_503_and_writes_nothing(self):
        self.login_as(self.citizen)
        with mock.patch("reports.services.default_storage") as storage:
            storage.save.side_effect = OSError("bucket unreachable")
            resp = self.client.post(
                self.list_url,
                self.payload(photos=[_photo("broken.gif")]),
                format="multipart",
            )

        self.assertEqual(resp.status_code, status.HTTP_503_SERVICE_UNAVAILABLE, msg=resp.data)
        self.assertIn("broken.gif", resp.data["error"])
        self.assertFalse(Report.objects.exists())
        self.assertFalse(ReportPhoto.objects.exists())

    def test_second_upload_failure_removes_the_first(self):
        self.login_as(self.citizen)
        with mock.patch("reports.services.default_storage") as storage:
            storage.save.side_effect = ["reports/first.gif", OSError("quota exceeded")]
            storage.url.return_value = "/media/reports/first.gif"
            resp = self.client.post(
                self.list_url,
                self.payload(photos=[_photo("one.gif"), _photo("two.gif")]),
                format="multipart",
            )

        self.assertEqual(resp.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        storage.delete.assert_called_once_with("reports/first.gif")

    def test_database_failure_discards_uploaded_photos(self):
        self.login_as(self.citizen)
        with mock.patch("reports.services.default_storage") as storage, \
                mock.patch.object(ReportPhoto.objects, "bulk_create", side_effect=IntegrityError("boom")):
            storage.save.return_value = "reports/orphan.gif"
            storage.url.return_value = "/media/reports/orphan.gif"
            resp = self.client.post(
                self.list_url,
                self.payload(photos=[_photo("orphan.gif")]),
                format="multipart",
            )

        self.assertEqual(resp.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        storage.delete.assert_called_once_with("reports/orphan.gif")
        self.assertFalse(Report.objects.exists())


class TestPublicReads(TestCase):
    """Single-report reads and the category list need no login."""

    @classmethod
    def setUpTestData(cls):
        cls.category = ReportCategory.objects.create(name="Public Reads Lighting")
        cls.citizen = User.objects.create_user(username="pub_citizen", password=PASSWORD)
        cls.neighbour = User.objects.create_user(username="pub_neighbour", password=PASSWORD)
        cls.public_report = Report.objects.create(
            category=cls.category,
            title="Broken street lamp",
            latitude=45.0,
            longitude=7.6,
            reporter=cls.citizen,
        )
        cls.private_report = Report.objects.create(
            category=cls.category,
            title="Flickering lamp",
            latitude=45.1,
            longitude=7.7,
            is_public=False,
            reporter=cls.citizen,
        )

    def setUp(self):
        self.client = APIClient()

    def login_as(self, user) -> None:
        resp = self.client.post(
            reverse("accounts:login"),
            {"username": user.username, "password": PASSWORD},
            format="json",
        )
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {resp.data['access']}")

    def detail_url(self, report) -> str:
        return reverse("reports:report-detail", kwargs={"pk": report.pk})

    def test_anonymous_can_read_public_report(self):
        resp = self.client.get(self.detail_url(self.public_report))

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["reporter"]["username"], "pub_citizen")

    def test_private_report_hides_reporter_from_others(self):
        resp = self.client.get(self.detail_url(self.private_report))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertIsNone(resp.data["reporter"])

        self.login_as(self.neighbour)
        resp = self.client.get(self.detail_url(self.private_report))
        self.assertIsNone(resp.data["reporter"])

    def test_private_report_shows_reporter_to_themselves(self):
        self.login_as(self.citizen)
        resp = self.client.get(self.detail_url(self.private_report))
        self.assertEqual(resp.data["reporter"]["id"], self.citizen.pk)

    def test_unknown_report_returns_404(self):
        resp = self.client.get(reverse("reports:report-detail", kwargs={"pk": 555555}))

        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.data, {"error": "The report does not exist.", "status": 404})

    def test_mine_lists_only_own_reports(self):
        Report.objects.create(
            category=self.category,
            title="Someone else's report",
            latitude=45.2,
            longitude=7.5,
            reporter=self.neighbour,
        )
        self.login_as(self.citizen)
        resp = self.client.get(reverse("reports:report-mine"))

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(
            {item["id"] for item in resp.data},
            {self.public_report.pk, self.private_report.pk},
        )
        self.assertNotIn("reporter", resp.data[0])

    def test_category_list_is_public_and_hides_inactive(self):
        ReportCategory.objects.create(name="Public Reads Retired", is_active=False)
        resp = self.client.get(reverse("reports:category-list"))

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        names = [c["name"] for c in resp.data]
        self.assertIn("Public Reads Lighting", names)
        self.assertIn("Public Lighting", names)
        self.assertNotIn("Public Reads Retired", names)

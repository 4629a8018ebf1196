"""
Reports app URL configuration.

Included at ``/api/`` by the project URLconf.

Route Hierarchy
---------------
  GET  /api/categories/                          → public category list
  GET  /api/categories/{id}/technical-officers/  → responsible officers

  /api/reports/                                  → search (GET) / submit (POST)
  /api/reports/{id}/                             → retrieve (public)

  ── Lists ───────────────────────────────────────────────────────
  GET  /api/reports/mine/
  GET  /api/reports/map/                         → public
  GET  /api/reports/assigned/
  GET  /api/reports/maintenance/

  ── Workflow @actions ───────────────────────────────────────────
  PATCH /api/reports/{id}/status/                → Assigned | Rejected
  POST  /api/reports/{id}/assign/
  POST  /api/reports/{id}/assign-maintainer/
  POST  /api/reports/{id}/resolve/

  ── Comments ────────────────────────────────────────────────────
  GET / POST     /api/reports/{id}/comments/
  PATCH / DELETE /api/reports/{id}/comments/{comment_pk}/
"""

from rest_framework.routers import DefaultRouter

from .views import CategoryViewSet, ReportViewSet

app_name = "reports"

router = DefaultRouter()
router.register(prefix=r"categories", viewset=CategoryViewSet, basename="category")
router.register(prefix=r"reports", viewset=ReportViewSet, basename="report")

urlpatterns = router.urls

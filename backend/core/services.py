"""
Core app services — **Service Layer**.

Cross-app, read-only helpers.  Models and choice classes of other apps
are imported inside the methods that need them so that loading ``core``
never triggers an import cycle.
"""

from __future__ import annotations

from typing import Any

from django.conf import settings


# ════════════════════════════════════════════════════════════════════
#  System Constants Service
# ════════════════════════════════════════════════════════════════════

class SystemConstantsService:
    """
    Gathers all system-wide choice enumerations into a single dict for
    the client.

    This service is **stateless** — it does not depend on the requesting
    user.  All constants are public information.
    """

    @staticmethod
    def get_constants() -> dict[str, Any]:
        """Return all system constants as a dict."""
        from accounts.models import RoleType, UserType
        from reports.models import ReportStatus

        to_list = SystemConstantsService._choices_to_list

        return {
            "report_statuses": to_list(ReportStatus),
            "user_types": to_list(UserType),
            "role_types": to_list(RoleType),
            "max_photos_per_report": settings.REPORTS_MAX_PHOTOS,
        }

    @staticmethod
    def _choices_to_list(
        choices_class: type,
    ) -> list[dict[str, str]]:
        """
        Convert a Django ``TextChoices`` class to a list of
        ``{"value": ..., "label": ...}`` dicts.
        """
        return [
            {"value": str(value), "label": str(label)}
            for value, label in choices_class.choices
        ]

"""
Core app serializers.

Shared request/response serializers:

* ``PaginationQuerySerializer`` — validates ``page_num`` / ``page_size``
  for every paginated endpoint.  Subclass it to add filters.
* ``PaginatedResultSerializer`` / ``paginated_serializer`` — the response
  envelope around one page of items.
* ``SystemConstantsSerializer`` — response schema of the constants view.

These serializers work with plain Python objects produced by the service
layer and never import models from other apps.
"""

from __future__ import annotations

from django.conf import settings
from rest_framework import serializers

from core.domain.pagination import (
    DEFAULT_PAGE_NUM,
    DEFAULT_PAGE_SIZE,
    PaginatedResult,
)


# ════════════════════════════════════════════════════════════════════
#  Pagination
# ════════════════════════════════════════════════════════════════════

class PaginationQuerySerializer(serializers.Serializer):
    """Validates the page/size query parameters."""

    page_num = serializers.IntegerField(
        required=False,
        min_value=1,
        default=DEFAULT_PAGE_NUM,
        help_text="1-based page index.",
    )
    page_size = serializers.IntegerField(
        required=False,
        min_value=1,
        max_value=getattr(settings, "PAGINATION_MAX_PAGE_SIZE", 100),
        default=DEFAULT_PAGE_SIZE,
        help_text="Number of items per page.",
    )


class PaginatedResultSerializer(serializers.Serializer):
    """
    Envelope for one page of results.

    Use ``paginated_serializer(ItemSerializer)`` to get a concrete
    subclass whose ``items`` field renders with ``ItemSerializer``.
    """

    page_num = serializers.IntegerField()
    page_size = serializers.IntegerField()
    total_items = serializers.IntegerField()
    total_pages = serializers.IntegerField()
    items = serializers.ListField()


_PAGINATED_CACHE: dict[type, type] = {}


def paginated_serializer(item_serializer_class: type) -> type:
    """
    Build (once per item serializer) a ``PaginatedResultSerializer``
    subclass that nests ``item_serializer_class`` under ``items``.
    """
    cached = _PAGINATED_CACHE.get(item_serializer_class)
    if cached is not None:
        return cached

    name = item_serializer_class.__name__.removesuffix("Serializer")
    cls = type(
        f"Paginated{name}Serializer",
        (PaginatedResultSerializer,),
        {"items": item_serializer_class(many=True)},
    )
    _PAGINATED_CACHE[item_serializer_class] = cls
    return cls


def serialize_page(
    result: PaginatedResult,
    item_serializer_class: type,
    context: dict | None = None,
) -> dict:
    """Render ``result`` with its items serialized by ``item_serializer_class``."""
    serializer = paginated_serializer(item_serializer_class)(
        result, context=context or {},
    )
    return serializer.data


# ════════════════════════════════════════════════════════════════════
#  System Constants
# ════════════════════════════════════════════════════════════════════

class ChoiceItemSerializer(serializers.Serializer):
    """
    A single choice option.

    Example::

        {"value": "Pending Approval", "label": "Pending Approval"}
    """

    value = serializers.CharField()
    label = serializers.CharField()


class SystemConstantsSerializer(serializers.Serializer):
    """Every enumeration the client needs to build dropdowns and filters."""

    report_statuses = ChoiceItemSerializer(many=True)
    user_types = ChoiceItemSerializer(many=True)
    role_types = ChoiceItemSerializer(many=True)
    max_photos_per_report = serializers.IntegerField()

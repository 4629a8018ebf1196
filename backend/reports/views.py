"""
Reports app views.

Thin views: validate with a serializer, call one service method, wrap
the result in a ``Response``.  Authorization lives in ``services.py``;
the only view-level permission decision is which endpoints are public.

View Map
--------
- ``CategoryViewSet`` — /categories/ (public list, technical officers)
- ``ReportViewSet``   — /reports/    (submit, search, retrieve, queues,
                        status transitions, comments)
"""

from __future__ import annotations

from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
)
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from accounts.serializers import UserDetailSerializer
from core.serializers import paginated_serializer, serialize_page

from .models import ReportStatus
from .serializers import (
    AssignMaintainerSerializer,
    AssignOfficerSerializer,
    CommentSerializer,
    CommentWriteSerializer,
    ReportCategorySerializer,
    ReportDetailSerializer,
    ReportFilterSerializer,
    ReportMapFilterSerializer,
    ReportStatusUpdateSerializer,
    ReportSubmitSerializer,
    ReportSummarySerializer,
)
from .services import (
    ReportCategoryService,
    ReportCommentService,
    ReportQueryService,
    ReportSubmissionService,
    ReportWorkflowService,
)


# ═══════════════════════════════════════════════════════════════════
#  Category ViewSet
# ═══════════════════════════════════════════════════════════════════


class CategoryViewSet(viewsets.ViewSet):
    """
    /api/categories/

    The category list is public so the submission form can be rendered
    before login.
    """

    permission_classes = [IsAuthenticated]
    lookup_value_regex = r"\d+"

    def get_permissions(self):
        if self.action == "list":
            return [AllowAny()]
        return super().get_permissions()

    @extend_schema(
        summary="List report categories",
        responses={200: OpenApiResponse(response=ReportCategorySerializer(many=True), description="Active categories.")},
        tags=["Categories"],
    )
    def list(self, request: Request) -> Response:
        categories = ReportCategoryService.list_active_categories()
        return Response(ReportCategorySerializer(categories, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Technical officers responsible for a category",
        responses={
            200: OpenApiResponse(response=UserDetailSerializer(many=True), description="Officers."),
            401: OpenApiResponse(description="Caller is not staff."),
            404: OpenApiResponse(description="Category not found."),
        },
        tags=["Categories"],
    )
    @action(detail=True, methods=["get"], url_path="technical-officers")
    def technical_officers(self, request: Request, pk: str = None) -> Response:
        """GET /api/categories/{id}/technical-officers/"""
        officers = ReportCategoryService.list_technical_officers(int(pk), request.user)
        return Response(UserDetailSerializer(officers, many=True).data, status=status.HTTP_200_OK)


# ═══════════════════════════════════════════════════════════════════
#  Report ViewSet
# ═══════════════════════════════════════════════════════════════════


class ReportViewSet(viewsets.ViewSet):
    """
    /api/reports/

    Report lifecycle.  Retrieving one report and the map are public;
    everything else requires a JWT.  Who may do what is decided by the
    service layer.
    """

    permission_classes = [IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser, JSONParser]
    lookup_value_regex = r"\d+"

    PUBLIC_ACTIONS = {"retrieve", "map_reports"}

    def get_permissions(self):
        if self.action in self.PUBLIC_ACTIONS:
            return [AllowAny()]
        return super().get_permissions()

    def _detail(self, request: Request, report) -> dict:
        return ReportDetailSerializer(report, context={"request": request}).data

    # ── Collection ───────────────────────────────────────────────────

    @extend_schema(
        summary="Search reports (staff)",
        parameters=[
            OpenApiParameter("status", str, enum=ReportStatus.values),
            OpenApiParameter("is_public", bool),
            OpenApiParameter("category_id", int),
            OpenApiParameter("page_num", int, description="1-based page (default 1)."),
            OpenApiParameter("page_size", int, description="Items per page (default 10)."),
        ],
        responses={
            200: OpenApiResponse(response=paginated_serializer(ReportDetailSerializer), description="One page of reports."),
            401: OpenApiResponse(description="Caller is not staff."),
        },
        tags=["Reports"],
    )
    def list(self, request: Request) -> Response:
        filter_serializer = ReportFilterSerializer(data=request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        result = ReportQueryService.search_reports(filter_serializer.validated_data, request.user)
        return Response(
            serialize_page(result, ReportDetailSerializer, context={"request": request}),
            status=status.HTTP_200_OK,
        )

    @extend_schema(
        summary="Submit a report (citizen)",
        request={"multipart/form-data": ReportSubmitSerializer},
        responses={
            201: OpenApiResponse(response=ReportDetailSerializer, description="Report filed."),
            400: OpenApiResponse(description="Validation error."),
            401: OpenApiResponse(description="Caller is not a citizen."),
            404: OpenApiResponse(description="Category not found."),
            503: OpenApiResponse(description="Photo storage unavailable."),
        },
        tags=["Reports"],
    )
    def create(self, request: Request) -> Response:
        serializer = ReportSubmitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        photos = data.pop("photos", [])
        report = ReportSubmissionService.submit_report(data, photos, request.user)
        return Response(self._detail(request, report), status=status.HTTP_201_CREATED)

    @extend_schema(
        summary="Retrieve a report",
        responses={
            200: OpenApiResponse(response=ReportDetailSerializer, description="Report."),
            404: OpenApiResponse(description="Report not found."),
        },
        tags=["Reports"],
    )
    def retrieve(self, request: Request, pk: str = None) -> Response:
        report = ReportQueryService.get_report_detail(int(pk))
        return Response(self._detail(request, report), status=status.HTTP_200_OK)

    # ── Lists ────────────────────────────────────────────────────────

    @extend_schema(
        summary="My reports (citizen)",
        responses={200: OpenApiResponse(response=ReportSummarySerializer(many=True), description="Own reports.")},
        tags=["Reports"],
    )
    @action(detail=False, methods=["get"], url_path="mine")
    def mine(self, request: Request) -> Response:
        reports = ReportQueryService.list_my_reports(request.user)
        return Response(ReportSummarySerializer(reports, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Reports on the public map",
        parameters=[
            OpenApiParameter(
                "status", str, many=True, enum=ReportStatus.values,
                description="Repeatable; defaults to Assigned, In Progress and Resolved.",
            ),
        ],
        responses={200: OpenApiResponse(response=ReportSummarySerializer(many=True), description="Map pins.")},
        tags=["Reports"],
    )
    @action(detail=False, methods=["get"], url_path="map", url_name="map")
    def map_reports(self, request: Request) -> Response:
        filter_serializer = ReportMapFilterSerializer(data=request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        reports = ReportQueryService.list_map_reports(filter_serializer.validated_data["status"])
        return Response(ReportSummarySerializer(reports, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Reports assigned to me (technical officer)",
        responses={200: OpenApiResponse(response=ReportDetailSerializer(many=True), description="Open assignments.")},
        tags=["Reports"],
    )
    @action(detail=False, methods=["get"], url_path="assigned")
    def assigned(self, request: Request) -> Response:
        reports = ReportQueryService.list_assigned_to_officer(request.user)
        return Response(
            ReportDetailSerializer(reports, many=True, context={"request": request}).data,
            status=status.HTTP_200_OK,
        )

    @extend_schema(
        summary="Reports I am maintaining (external maintainer)",
        responses={200: OpenApiResponse(response=ReportDetailSerializer(many=True), description="Reports in progress.")},
        tags=["Reports"],
    )
    @action(detail=False, methods=["get"], url_path="maintenance")
    def maintenance(self, request: Request) -> Response:
        reports = ReportQueryService.list_assigned_to_maintainer(request.user)
        return Response(
            ReportDetailSerializer(reports, many=True, context={"request": request}).data,
            status=status.HTTP_200_OK,
        )

    # ── Workflow ─────────────────────────────────────────────────────

    @extend_schema(
        summary="Approve (assign) or reject a pending report",
        request=ReportStatusUpdateSerializer,
        responses={
            200: OpenApiResponse(response=ReportDetailSerializer, description="Updated report."),
            400: OpenApiResponse(description="Missing reason or no eligible officer."),
            401: OpenApiResponse(description="Caller is not staff."),
            404: OpenApiResponse(description="Report or officer not found."),
            409: OpenApiResponse(description="Invalid state transition."),
        },
        tags=["Workflow"],
    )
    @action(detail=True, methods=["patch"], url_path="status", url_name="status")
    def update_status(self, request: Request, pk: str = None) -> Response:
        serializer = ReportStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        report = ReportWorkflowService.update_status(int(pk), serializer.validated_data, request.user)
        return Response(self._detail(request, report), status=status.HTTP_200_OK)

    @extend_schema(
        summary="Assign to a technical officer",
        request=AssignOfficerSerializer,
        responses={
            200: OpenApiResponse(response=ReportDetailSerializer, description="Assigned report."),
            400: OpenApiResponse(description="Target is not a technical officer."),
            401: OpenApiResponse(description="Caller is not staff."),
            404: OpenApiResponse(description="Report or officer not found."),
            409: OpenApiResponse(description="Report is not pending approval."),
        },
        tags=["Workflow"],
    )
    @action(detail=True, methods=["post"], url_path="assign")
    def assign(self, request: Request, pk: str = None) -> Response:
        serializer = AssignOfficerSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        report = ReportWorkflowService.assign_to_technical_officer(
            int(pk),
            request.user,
            assigned_to_id=serializer.validated_data.get("assigned_to_id"),
        )
        return Response(self._detail(request, report), status=status.HTTP_200_OK)

    @extend_schema(
        summary="Hand over to an external maintainer",
        request=AssignMaintainerSerializer,
        responses={
            200: OpenApiResponse(response=ReportDetailSerializer, description="Report in progress."),
            400: OpenApiResponse(description="Target is not an external maintainer."),
            401: OpenApiResponse(description="Caller is not a technical officer."),
            404: OpenApiResponse(description="Report or maintainer not found."),
            409: OpenApiResponse(description="Report is not assigned."),
        },
        tags=["Workflow"],
    )
    @action(detail=True, methods=["post"], url_path="assign-maintainer", url_name="assign-maintainer")
    def assign_maintainer(self, request: Request, pk: str = None) -> Response:
        serializer = AssignMaintainerSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        report = ReportWorkflowService.assign_to_maintainer(
            int(pk),
            serializer.validated_data["maintainer_id"],
            request.user,
        )
        return Response(self._detail(request, report), status=status.HTTP_200_OK)

    @extend_schema(
        summary="Mark resolved (assigned maintainer)",
        request=None,
        responses={
            200: OpenApiResponse(response=ReportDetailSerializer, description="Resolved report."),
            401: OpenApiResponse(description="Caller is not the report's maintainer."),
            404: OpenApiResponse(description="Report not found."),
            409: OpenApiResponse(description="Report is not in progress."),
        },
        tags=["Workflow"],
    )
    @action(detail=True, methods=["post"], url_path="resolve")
    def resolve(self, request: Request, pk: str = None) -> Response:
        report = ReportWorkflowService.mark_resolved(int(pk), request.user)
        return Response(self._detail(request, report), status=status.HTTP_200_OK)

    # ── Comments ─────────────────────────────────────────────────────

    @extend_schema(
        methods=["GET"],
        summary="List internal comments",
        responses={200: OpenApiResponse(response=CommentSerializer(many=True), description="Comments, oldest first.")},
        tags=["Comments"],
    )
    @extend_schema(
        methods=["POST"],
        summary="Add an internal comment",
        request=CommentWriteSerializer,
        responses={
            201: OpenApiResponse(response=CommentSerializer, description="Comment created."),
            401: OpenApiResponse(description="Caller is not staff."),
            404: OpenApiResponse(description="Report not found."),
        },
        tags=["Comments"],
    )
    @action(detail=True, methods=["get", "post"], url_path="comments")
    def comments(self, request: Request, pk: str = None) -> Response:
        if request.method == "GET":
            comments = ReportCommentService.list_comments(int(pk), request.user)
            return Response(CommentSerializer(comments, many=True).data, status=status.HTTP_200_OK)

        serializer = CommentWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        comment = ReportCommentService.add_comment(
            int(pk),
            serializer.validated_data["text"],
            request.user,
        )
        return Response(CommentSerializer(comment).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        methods=["PATCH"],
        summary="Edit own comment",
        request=CommentWriteSerializer,
        responses={
            200: OpenApiResponse(response=CommentSerializer, description="Updated comment."),
            401: OpenApiResponse(description="Not the author."),
            404: OpenApiResponse(description="Report or comment not found."),
        },
        tags=["Comments"],
    )
    @extend_schema(
        methods=["DELETE"],
        summary="Delete own comment",
        responses={
            204: OpenApiResponse(description="Deleted."),
            401: OpenApiResponse(description="Not the author."),
            404: OpenApiResponse(description="Report or comment not found."),
        },
        tags=["Comments"],
    )
    @action(
        detail=True,
        methods=["patch", "delete"],
        url_path=r"comments/(?P<comment_pk>\d+)",
        url_name="comment-detail",
    )
    def comment_detail(self, request: Request, pk: str = None, comment_pk: str = None) -> Response:
        if request.method == "DELETE":
            ReportCommentService.delete_comment(int(pk), int(comment_pk), request.user)
            return Response(status=status.HTTP_204_NO_CONTENT)

        serializer = CommentWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        comment = ReportCommentService.edit_comment(
            int(pk),
            int(comment_pk),
            serializer.validated_data["text"],
            request.user,
        )
        return Response(CommentSerializer(comment).data, status=status.HTTP_200_OK)

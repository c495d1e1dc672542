"""API views for the sales campaigns module."""
from __future__ import annotations

import logging
from datetime import timedelta

from django.db.models import Count
from django.utils import timezone
from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from api.v1.permissions import IsAdminOrManager, IsManagerOrReadOnly
from campaigns.campaign_serializers import (
    BulkTargetsSerializer,
    CampaignProgressSerializer,
    CampaignSerializer,
    CampaignStatusSerializer,
    CampaignSummarySerializer,
    EmployeeRankingGroupSerializer,
    EmployeeSalesQuerySerializer,
    EmployeeSalesRowSerializer,
    ParticipantSerializer,
    SalesPeriodSerializer,
    StoreRankingGroupSerializer,
)
from campaigns.models import Campaign, Participant, SalesPeriod
from campaigns.reporting import ProductFilters
from campaigns.services import CampaignProgressService, employee_sales_lookup
from core.export import rows_to_csv_response
from stores.services import parse_uuid_list

logger = logging.getLogger(__name__)

DEFAULT_LOOKUP_DAYS = 30


def _truthy(value) -> bool:
    return str(value or "").strip().lower() in ("1", "true", "yes", "on")


STORE_RANKING_CSV_COLUMNS = [
    ("group_id", "Groupe"),
    ("rank", "Rang"),
    (lambda e: e.participant.store.number, "Boutique"),
    (lambda e: e.participant.store.name, "Nom"),
    ("target", "Objectif"),
    ("realized", "Realise"),
    (lambda e: f"{e.percent:.2f}", "% objectif"),
    ("headcount", "Effectif"),
    (lambda e: f"{e.average_per_employee:.2f}", "Moyenne par employe"),
]


# ────────────────────────────────────────────────────────────
# Campaigns
# ────────────────────────────────────────────────────────────

class CampaignViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    mixins.UpdateModelMixin,
    viewsets.GenericViewSet,
):
    """
    Campaigns are never deleted through the API: close or deactivate them.

    GET list returns active campaigns only unless ``?include_inactive=1``.
    """

    serializer_class = CampaignSerializer
    search_fields = ["name", "description"]
    ordering_fields = ["end_date", "start_date", "name", "created_at"]
    ordering = ["end_date", "name"]

    WRITE_ACTIONS = ("create", "update", "partial_update", "set_status", "assign_targets", "refresh")

    def get_permissions(self):
        if self.action in self.WRITE_ACTIONS:
            return [permissions.IsAuthenticated(), IsAdminOrManager()]
        return [permissions.IsAuthenticated()]

    def get_queryset(self):
        qs = Campaign.objects.select_related("created_by").annotate(
            participant_count=Count("participants"),
        )
        if self.action in ("list", "summaries") and not _truthy(
            self.request.query_params.get("include_inactive")
        ):
            qs = qs.filter(status=Campaign.Status.ACTIVE)
        return qs.order_by("end_date", "name")

    def perform_create(self, serializer):
        campaign = serializer.save(created_by=self.request.user, status=Campaign.Status.ACTIVE)
        logger.info("Campaign %s created by %s", campaign.pk, self.request.user.pk)

    def _service(self, campaign) -> CampaignProgressService:
        return CampaignProgressService(campaign)

    @action(detail=True, methods=["post"], url_path="status")
    def set_status(self, request, pk=None):
        campaign = self.get_object()
        serializer = CampaignStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        campaign.status = serializer.validated_data["status"]
        campaign.save(update_fields=["status", "updated_at"])
        logger.info("Campaign %s status -> %s", campaign.pk, campaign.status)
        return Response(CampaignSerializer(campaign, context={"request": request}).data)

    @action(detail=True, methods=["post"], url_path="targets")
    def assign_targets(self, request, pk=None):
        """Bulk upsert of participants: ``[{store, group_id, target_*}, ...]``."""
        campaign = self.get_object()
        payload = request.data
        if isinstance(payload, list):
            payload = {"targets": payload}
        serializer = BulkTargetsSerializer(data=payload)
        serializer.is_valid(raise_exception=True)
        participants = serializer.save(campaign=campaign)
        return Response(
            ParticipantSerializer(participants, many=True).data,
            status=status.HTTP_200_OK,
        )

    @action(detail=True, methods=["get"], url_path="store-ranking")
    def store_ranking(self, request, pk=None):
        campaign = self.get_object()
        group_id = request.query_params.get("group") or None
        result = self._service(campaign).store_ranking(group_id=group_id)

        if request.query_params.get("export") == "csv":
            entries = [entry for group in result.groups for entry in group.entries]
            return rows_to_csv_response(
                entries,
                STORE_RANKING_CSV_COLUMNS,
                f"classement_boutiques_{campaign.start_date:%Y%m%d}",
            )

        return Response(
            {
                "campaign": str(campaign.pk),
                "goal_type": campaign.goal_type,
                "groups": StoreRankingGroupSerializer(result.groups, many=True).data,
                "notice": result.notice,
            }
        )

    @action(detail=True, methods=["get"], url_path="employee-ranking")
    def employee_ranking(self, request, pk=None):
        campaign = self.get_object()
        group_id = request.query_params.get("group") or None
        result = self._service(campaign).employee_ranking(group_id=group_id)
        return Response(
            {
                "campaign": str(campaign.pk),
                "goal_type": campaign.goal_type,
                "groups": EmployeeRankingGroupSerializer(result.groups, many=True).data,
                "notice": result.notice,
            }
        )

    @action(detail=True, methods=["get"])
    def progress(self, request, pk=None):
        campaign = self.get_object()
        progress, notice = self._service(campaign).progress()
        data = CampaignProgressSerializer(progress).data
        data["notice"] = notice
        return Response(data)

    @action(detail=True, methods=["post"])
    def refresh(self, request, pk=None):
        campaign = self.get_object()

        from campaigns.tasks import refresh_campaign_realized

        refresh_campaign_realized.delay(campaign_id=str(campaign.pk))
        return Response(
            {"detail": f"Rafraichissement lance pour la campagne {campaign.name}."},
            status=status.HTTP_202_ACCEPTED,
        )

    @action(detail=False, methods=["get"])
    def summaries(self, request):
        today = timezone.localdate()
        rows = [
            CampaignProgressService(campaign).summary(today=today)
            for campaign in self.filter_queryset(self.get_queryset())
        ]
        return Response(
            CampaignSummarySerializer(rows, many=True, context={"request": request}).data
        )


# ────────────────────────────────────────────────────────────
# Participants
# ────────────────────────────────────────────────────────────

class ParticipantViewSet(viewsets.ModelViewSet):
    """Single-participant CRUD. ``?campaign=<id>`` and ``?group=<id>`` filter."""

    serializer_class = ParticipantSerializer
    permission_classes = [IsManagerOrReadOnly]
    search_fields = ["store__name", "store__number", "store_code"]
    ordering_fields = ["group_id", "store_code", "target_value", "target_quantity"]

    def get_queryset(self):
        qs = Participant.objects.select_related("store", "campaign").order_by("group_id", "store__number")
        try:
            campaign_ids = parse_uuid_list(self.request.query_params.get("campaign"))
        except ValueError as exc:
            raise ValidationError({"campaign": str(exc)})
        if campaign_ids:
            qs = qs.filter(campaign_id__in=campaign_ids)
        group_id = self.request.query_params.get("group")
        if group_id:
            qs = qs.filter(group_id=group_id)
        return qs


# ────────────────────────────────────────────────────────────
# Sales periods
# ────────────────────────────────────────────────────────────

class SalesPeriodViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = SalesPeriodSerializer
    queryset = SalesPeriod.objects.filter(is_active=True).order_by("-start_date")
    ordering_fields = ["start_date", "end_date"]

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context["today"] = timezone.localdate()
        return context

    @action(detail=False, methods=["get"])
    def current(self, request):
        period = SalesPeriod.current()
        if period is None:
            raise NotFound("Aucune periode commerciale active.")
        return Response(self.get_serializer(period).data)


# ────────────────────────────────────────────────────────────
# Employee sales lookup (external API)
# ────────────────────────────────────────────────────────────

class EmployeeSalesReportView(APIView):
    """
    GET /api/v1/reporting/employee-sales/?start_date=&end_date=&suppliers=&brands=...

    Defaults to the current sales period, else the last 30 days.
    """

    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        query = EmployeeSalesQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        params = query.validated_data

        start_date, end_date = params.get("start_date"), params.get("end_date")
        if start_date is None or end_date is None:
            period = SalesPeriod.current()
            today = timezone.localdate()
            if period is not None:
                start_date = start_date or period.start_date
                end_date = end_date or period.end_date
            else:
                end_date = end_date or today
                start_date = start_date or end_date - timedelta(days=DEFAULT_LOOKUP_DAYS)
            if end_date < start_date:
                raise ValidationError(
                    {"end_date": "La date de fin doit etre posterieure ou egale a la date de debut."}
                )

        filters = ProductFilters.build(
            supplier_ids=params.get("suppliers"),
            brand_ids=params.get("brands"),
            family_ids=params.get("families"),
            group_ids=params.get("groups"),
            product_codes=params.get("products"),
        )
        report = employee_sales_lookup(start_date, end_date, filters)
        return Response(
            {
                "start_date": start_date.isoformat(),
                "end_date": end_date.isoformat(),
                "rows": EmployeeSalesRowSerializer(report.rows, many=True).data,
                "totals": {
                    "quantity": f"{report.total_quantity:.2f}",
                    "value": f"{report.total_value:.2f}",
                    "average_ticket": f"{report.average_ticket:.2f}",
                },
                "notice": report.notice,
            }
        )

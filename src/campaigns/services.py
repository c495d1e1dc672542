"""Campaign progress service.

Glue between the ORM (campaigns, participants, stores), the reporting API
client and the pure aggregation functions. Reporting outages are never fatal
for read paths: results degrade to zero and carry a ``notice`` for the UI.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from campaigns.aggregation import (
    ZERO,
    CampaignProgress,
    compute_campaign_progress,
    compute_employee_ranking,
    compute_store_ranking,
    normalize_store_code,
)
from campaigns.reporting import ReportingError, get_reporting_client

logger = logging.getLogger(__name__)

REPORTING_UNAVAILABLE_NOTICE = (
    "Les donnees de ventes sont momentanement indisponibles : "
    "les realisations sont affichees a zero."
)

QUANTITY_STEP = Decimal("0.001")
VALUE_STEP = Decimal("0.01")
# Participant.realized_* are max_digits=14 columns.
MAX_REALIZED_QUANTITY = Decimal("1e11")
MAX_REALIZED_VALUE = Decimal("1e12")


@dataclass
class RankingResult:
    groups: list = field(default_factory=list)
    notice: str | None = None


@dataclass
class EmployeeSalesReport:
    rows: list = field(default_factory=list)
    total_quantity: Decimal = ZERO
    total_value: Decimal = ZERO
    notice: str | None = None

    @property
    def average_ticket(self) -> Decimal:
        if self.total_quantity > 0:
            return self.total_value / self.total_quantity
        return ZERO


# ────────────────────────────────────────────────────────────
# Refresh sequencing
# ────────────────────────────────────────────────────────────

def start_refresh(campaign) -> int:
    """Bump the campaign's refresh sequence and return the new token."""
    from campaigns.models import Campaign

    Campaign.objects.filter(pk=campaign.pk).update(refresh_sequence=F("refresh_sequence") + 1)
    campaign.refresh_from_db(fields=["refresh_sequence"])
    return campaign.refresh_sequence


def is_current_refresh(campaign, token: int) -> bool:
    from campaigns.models import Campaign

    return Campaign.objects.filter(pk=campaign.pk, refresh_sequence=token).exists()


# ────────────────────────────────────────────────────────────
# Service
# ────────────────────────────────────────────────────────────

class CampaignProgressService:
    """Targets + reported actuals for one campaign."""

    def __init__(self, campaign, client=None) -> None:
        self.campaign = campaign
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = get_reporting_client()
        return self._client

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    def participants(self, group_id: str | None = None) -> list:
        qs = self.campaign.participants.select_related("store").order_by("group_id", "store__number")
        if group_id:
            qs = qs.filter(group_id=group_id)
        return list(qs)

    def fetch_store_sales(self):
        """Return ``(records, notice)``; ``notice`` is set when the API failed."""
        campaign = self.campaign
        try:
            records = self.client.fetch_store_sales(
                campaign.start_date,
                campaign.end_date,
                campaign.product_filters,
            )
        except ReportingError as exc:
            logger.warning("Store sales unavailable for campaign=%s: %s", campaign.pk, exc)
            return [], REPORTING_UNAVAILABLE_NOTICE
        return records, None

    def fetch_employee_sales(self):
        campaign = self.campaign
        try:
            records = self.client.fetch_employee_sales(
                campaign.start_date,
                campaign.end_date,
                campaign.product_filters,
            )
        except ReportingError as exc:
            logger.warning("Employee sales unavailable for campaign=%s: %s", campaign.pk, exc)
            return [], REPORTING_UNAVAILABLE_NOTICE
        return records, None

    # ------------------------------------------------------------------
    # Rankings
    # ------------------------------------------------------------------

    def _headcounts(self, participants) -> dict:
        from stores.services import headcounts_for

        by_store = headcounts_for({p.store_id for p in participants})
        return {
            normalize_store_code(p.store_code): by_store.get(p.store_id, 0)
            for p in participants
        }

    def store_ranking(self, group_id: str | None = None) -> RankingResult:
        participants = self.participants(group_id)
        if not participants:
            return RankingResult()
        records, notice = self.fetch_store_sales()
        groups = compute_store_ranking(
            participants,
            records,
            self.campaign.goal_type,
            headcounts=self._headcounts(participants),
        )
        return RankingResult(groups=groups, notice=notice)

    def employee_ranking(self, group_id: str | None = None) -> RankingResult:
        participants = self.participants(group_id)
        if not participants:
            return RankingResult()
        records, notice = self.fetch_employee_sales()
        groups = compute_employee_ranking(participants, records, self.campaign.goal_type)
        return RankingResult(groups=groups, notice=notice)

    # ------------------------------------------------------------------
    # Progress bar and summary
    # ------------------------------------------------------------------

    def _entries(self):
        participants = self.participants()
        if not participants:
            return [], None
        records, notice = self.fetch_store_sales()
        groups = compute_store_ranking(participants, records, self.campaign.goal_type)
        return [entry for group in groups for entry in group.entries], notice

    def _progress_from(self, entries, today) -> CampaignProgress:
        campaign = self.campaign
        return compute_campaign_progress(
            sum((e.realized for e in entries), ZERO),
            sum((e.target for e in entries), ZERO),
            campaign.start_date,
            campaign.end_date,
            today or timezone.localdate(),
        )

    def progress(self, today=None):
        """Return ``(CampaignProgress, notice)`` for the campaign progress bar."""
        entries, notice = self._entries()
        return self._progress_from(entries, today), notice

    def summary(self, today=None) -> dict:
        entries, notice = self._entries()
        progress = self._progress_from(entries, today)
        return {
            "campaign": self.campaign,
            "participant_count": len(entries),
            "stores_with_sales": sum(1 for e in entries if e.realized > 0),
            "realized_quantity": sum((e.net_quantity for e in entries), ZERO),
            "realized_value": sum((e.net_value for e in entries), ZERO),
            "target_total": progress.target,
            "progress": progress,
            "notice": notice,
        }

    # ------------------------------------------------------------------
    # Cached realized
    # ------------------------------------------------------------------

    def refresh_cached_realized(self) -> int:
        """Write fresh actuals onto the campaign's participants.

        Returns the number of participants updated, or 0 when a newer
        refresh started while this one was fetching. ``ReportingError``
        propagates to the caller.
        """
        from campaigns.models import Campaign, Participant

        campaign = self.campaign
        token = start_refresh(campaign)
        participants = self.participants()
        if not participants:
            return 0

        records = self.client.fetch_store_sales(
            campaign.start_date,
            campaign.end_date,
            campaign.product_filters,
        )
        groups = compute_store_ranking(participants, records, campaign.goal_type)

        now = timezone.now()
        updated = []
        for group in groups:
            for entry in group.entries:
                participant = entry.participant
                if (
                    abs(entry.net_quantity) >= MAX_REALIZED_QUANTITY
                    or abs(entry.net_value) >= MAX_REALIZED_VALUE
                ):
                    logger.warning(
                        "Skipping out-of-range realized for campaign=%s store_code=%s "
                        "(quantity=%s, value=%s)",
                        campaign.pk,
                        entry.store_code,
                        entry.net_quantity,
                        entry.net_value,
                    )
                    continue
                participant.realized_quantity = entry.net_quantity.quantize(QUANTITY_STEP)
                participant.realized_value = entry.net_value.quantize(VALUE_STEP)
                participant.realized_at = now
                updated.append(participant)

        with transaction.atomic():
            current = (
                Campaign.objects.select_for_update()
                .filter(pk=campaign.pk, refresh_sequence=token)
                .exists()
            )
            if not current:
                logger.info(
                    "Discarding superseded refresh for campaign=%s (token=%s)",
                    campaign.pk,
                    token,
                )
                return 0
            Participant.objects.bulk_update(
                updated,
                ["realized_quantity", "realized_value", "realized_at"],
            )

        logger.info("Refreshed realized for campaign=%s (%d participants)", campaign.pk, len(updated))
        return len(updated)


# ────────────────────────────────────────────────────────────
# Standalone employee sales lookup
# ────────────────────────────────────────────────────────────

def employee_sales_lookup(start_date, end_date, filters=None, client=None) -> EmployeeSalesReport:
    """Employee sales over an arbitrary range, outside any campaign."""
    client = client or get_reporting_client()
    try:
        records = client.fetch_employee_sales(start_date, end_date, filters)
    except ReportingError as exc:
        logger.warning("Employee sales lookup failed (%s - %s): %s", start_date, end_date, exc)
        return EmployeeSalesReport(notice=REPORTING_UNAVAILABLE_NOTICE)

    return EmployeeSalesReport(
        rows=records,
        total_quantity=sum((r.net_quantity for r in records), ZERO),
        total_value=sum((r.net_value for r in records), ZERO),
    )

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from campaigns.aggregation import AT_RISK, BEHIND
from campaigns.models import Campaign, Participant
from campaigns.reporting import ProductFilters
from campaigns.services import (
    REPORTING_UNAVAILABLE_NOTICE,
    CampaignProgressService,
    employee_sales_lookup,
    is_current_refresh,
    start_refresh,
)
from stores.models import StoreUser


@pytest.mark.django_db
def test_store_ranking_merges_targets_with_actuals(campaign, participants, fake_client):
    result = CampaignProgressService(campaign).store_ranking()

    assert result.notice is None
    group = result.groups[0]
    assert [(e.participant.store.number, e.rank) for e in group.entries] == [("12", 1), ("34", 2)]
    assert group.entries[0].percent == Decimal("100")
    assert group.entries[1].percent == Decimal("80")
    assert round(group.percent, 2) == Decimal("93.33")


@pytest.mark.django_db
def test_store_ranking_passes_campaign_filters(campaign, participants, fake_client):
    CampaignProgressService(campaign).store_ranking()

    kind, start, end, filters = fake_client.calls[0]
    assert (kind, start, end) == ("store", date(2024, 6, 1), date(2024, 6, 30))
    assert filters == ProductFilters.build(supplier_ids=["10", "11"])


@pytest.mark.django_db
def test_store_ranking_includes_headcounts(campaign, participants, fake_client, store_user_sales):
    result = CampaignProgressService(campaign).store_ranking()

    by_number = {e.participant.store.number: e for e in result.groups[0].entries}
    assert by_number["12"].headcount == 1
    assert by_number["12"].average_per_employee == Decimal("100")
    assert by_number["34"].headcount == 0


@pytest.mark.django_db
def test_store_ranking_headcount_skips_admins(campaign, participants, fake_client, store, admin_user):
    StoreUser.objects.create(store=store, user=admin_user)

    result = CampaignProgressService(campaign).store_ranking()

    by_number = {e.participant.store.number: e for e in result.groups[0].entries}
    assert by_number["12"].headcount == 0


@pytest.mark.django_db
def test_reporting_outage_degrades_to_zero_with_notice(campaign, participants, fake_client):
    fake_client.error = "boom"

    result = CampaignProgressService(campaign).store_ranking()

    assert result.notice == REPORTING_UNAVAILABLE_NOTICE
    assert all(e.realized == Decimal("0") for e in result.groups[0].entries)


@pytest.mark.django_db
def test_group_filter_limits_participants(campaign, participants, fake_client):
    Participant.objects.filter(pk=participants[1].pk).update(group_id="2")

    result = CampaignProgressService(campaign).store_ranking(group_id="2")

    assert [g.group_id for g in result.groups] == ["2"]
    assert len(result.groups[0].entries) == 1


@pytest.mark.django_db
def test_campaign_without_participants_skips_reporting(campaign, fake_client):
    result = CampaignProgressService(campaign).store_ranking()

    assert result.groups == []
    assert fake_client.calls == []


@pytest.mark.django_db
def test_employee_ranking(campaign, participants, fake_client):
    result = CampaignProgressService(campaign).employee_ranking()

    entries = result.groups[0].entries
    assert [(e.record.employee_name, e.rank) for e in entries] == [("Ana", 1), ("Bruno", 2)]
    assert result.groups[0].total_realized == Decimal("130")


@pytest.mark.django_db
def test_progress_sums_realized_and_targets(campaign, participants, fake_client):
    progress, notice = CampaignProgressService(campaign).progress(today=date(2024, 6, 30))

    assert notice is None
    assert progress.realized == Decimal("140")
    assert progress.target == Decimal("150")
    assert progress.percent_time == Decimal("100")
    assert progress.status == AT_RISK


@pytest.mark.django_db
def test_progress_for_quantity_goal(campaign, participants, fake_client):
    campaign.goal_type = Campaign.GoalType.QUANTITY
    campaign.save()

    progress, _ = CampaignProgressService(campaign).progress(today=date(2024, 6, 30))

    assert progress.realized == Decimal("14")
    assert progress.target == Decimal("15")


@pytest.mark.django_db
def test_summary(campaign, participants, fake_client):
    summary = CampaignProgressService(campaign).summary(today=date(2024, 6, 30))

    assert summary["participant_count"] == 2
    assert summary["stores_with_sales"] == 2
    assert summary["realized_value"] == Decimal("140")
    assert summary["realized_quantity"] == Decimal("14")
    assert summary["target_total"] == Decimal("150")
    assert summary["notice"] is None


@pytest.mark.django_db
def test_summary_notice_when_reporting_down(campaign, participants, fake_client):
    fake_client.error = "timeout"

    summary = CampaignProgressService(campaign).summary(today=date(2024, 6, 30))

    assert summary["notice"] == REPORTING_UNAVAILABLE_NOTICE
    assert summary["progress"].status == BEHIND


# ────────────────────────────────────────────────────────────
# Cached realized refresh
# ────────────────────────────────────────────────────────────

@pytest.mark.django_db
def test_refresh_cached_realized_writes_participants(campaign, participants, fake_client):
    updated = CampaignProgressService(campaign).refresh_cached_realized()

    assert updated == 2
    first = Participant.objects.get(pk=participants[0].pk)
    assert first.realized_value == Decimal("100.00")
    assert first.realized_quantity == Decimal("10.000")
    assert first.realized_at is not None
    assert first.percent_of_target == Decimal("100")


@pytest.mark.django_db
def test_refresh_cached_realized_skips_out_of_range_figures(campaign, participants, fake_client):
    fake_client.store_records[0] = replace(fake_client.store_records[0], gross_value=Decimal("1e15"))

    updated = CampaignProgressService(campaign).refresh_cached_realized()

    assert updated == 1
    skipped = Participant.objects.get(pk=participants[0].pk)
    assert skipped.realized_value == Decimal("0")
    assert skipped.realized_at is None
    assert Participant.objects.get(pk=participants[1].pk).realized_value == Decimal("40.00")


@pytest.mark.django_db
def test_refresh_tokens_increase(campaign):
    first = start_refresh(campaign)
    second = start_refresh(campaign)

    assert second == first + 1
    assert is_current_refresh(campaign, second)
    assert not is_current_refresh(campaign, first)


@pytest.mark.django_db
def test_superseded_refresh_is_discarded(campaign, participants, fake_client):
    original_fetch = fake_client.fetch_store_sales

    def fetch_while_newer_refresh_starts(*args, **kwargs):
        start_refresh(Campaign.objects.get(pk=campaign.pk))
        return original_fetch(*args, **kwargs)

    fake_client.fetch_store_sales = fetch_while_newer_refresh_starts

    updated = CampaignProgressService(campaign).refresh_cached_realized()

    assert updated == 0
    first = Participant.objects.get(pk=participants[0].pk)
    assert first.realized_value == Decimal("0")
    assert first.realized_at is None


# ────────────────────────────────────────────────────────────
# Employee sales lookup
# ────────────────────────────────────────────────────────────

@pytest.mark.django_db
def test_employee_sales_lookup_totals(fake_client):
    report = employee_sales_lookup(date(2024, 6, 1), date(2024, 6, 30), ProductFilters(), client=fake_client)

    assert len(report.rows) == 2
    assert report.total_quantity == Decimal("5")
    assert report.total_value == Decimal("130")
    assert report.average_ticket == Decimal("26")
    assert report.notice is None


@pytest.mark.django_db
def test_employee_sales_lookup_outage(fake_client):
    fake_client.error = "down"

    report = employee_sales_lookup(date(2024, 6, 1), date(2024, 6, 30), client=fake_client)

    assert report.rows == []
    assert report.notice == REPORTING_UNAVAILABLE_NOTICE

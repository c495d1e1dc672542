"""Tests for campaign Celery tasks."""
from datetime import date, timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from campaigns.models import Campaign, Participant
from campaigns.reporting import ReportingError
from campaigns.tasks import (
    close_expired_campaigns,
    refresh_active_campaigns,
    refresh_campaign_realized,
)

pytestmark = pytest.mark.django_db


def test_refresh_campaign_realized_updates_cache(campaign, participants, fake_client):
    updated = refresh_campaign_realized(campaign_id=str(campaign.pk))

    assert updated == 2
    participant = Participant.objects.get(pk=participants[1].pk)
    assert participant.realized_value == Decimal("40.00")


def test_refresh_campaign_realized_unknown_campaign(db):
    assert refresh_campaign_realized(campaign_id="00000000-0000-0000-0000-000000000000") == 0


def test_refresh_campaign_realized_retries_on_reporting_error(campaign, participants, fake_client):
    fake_client.error = "503"

    with pytest.raises(ReportingError):
        refresh_campaign_realized(campaign_id=str(campaign.pk))


def test_refresh_active_campaigns_continues_after_failure(campaign, participants, fake_client, monkeypatch):
    healthy = Campaign.objects.create(
        name="Saine",
        start_date=date(2024, 6, 1),
        end_date=date(2024, 6, 30),
    )
    Participant.objects.create(campaign=healthy, store=participants[0].store, target_value=Decimal("10"))
    Campaign.objects.create(
        name="Inactive",
        start_date=date(2024, 6, 1),
        end_date=date(2024, 6, 30),
        status=Campaign.Status.INACTIVE,
    )

    from campaigns.services import CampaignProgressService

    original = CampaignProgressService.refresh_cached_realized

    def flaky_refresh(service):
        if service.campaign.pk == campaign.pk:
            raise ReportingError("boom")
        return original(service)

    monkeypatch.setattr(CampaignProgressService, "refresh_cached_realized", flaky_refresh)

    assert refresh_active_campaigns() == 1
    assert Participant.objects.get(campaign=healthy).realized_value == Decimal("100.00")


def test_close_expired_campaigns():
    today = timezone.localdate()
    expired = Campaign.objects.create(
        name="Terminee",
        start_date=today - timedelta(days=30),
        end_date=today - timedelta(days=1),
    )
    running = Campaign.objects.create(
        name="En cours",
        start_date=today - timedelta(days=1),
        end_date=today,
    )

    assert close_expired_campaigns() == 1

    expired.refresh_from_db()
    running.refresh_from_db()
    assert expired.status == Campaign.Status.CLOSED
    assert running.status == Campaign.Status.ACTIVE

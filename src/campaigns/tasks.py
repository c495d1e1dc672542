"""Celery tasks for the sales campaigns module."""
from __future__ import annotations

import logging

from celery import shared_task
from django.utils import timezone

from campaigns.reporting import ReportingError

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3, default_retry_delay=30)
def refresh_campaign_realized(self, *, campaign_id: str):
    """Refresh the cached realized figures of one campaign's participants."""
    from campaigns.models import Campaign
    from campaigns.services import CampaignProgressService

    campaign = Campaign.objects.filter(pk=campaign_id).first()
    if campaign is None:
        logger.warning("refresh_campaign_realized: campaign %s not found", campaign_id)
        return 0

    try:
        updated = CampaignProgressService(campaign).refresh_cached_realized()
    except ReportingError as exc:
        logger.warning("refresh_campaign_realized failed for campaign=%s: %s", campaign_id, exc)
        raise self.retry(exc=exc)
    return updated


@shared_task
def refresh_active_campaigns():
    """Scheduled (Celery Beat): refresh every active campaign."""
    from campaigns.models import Campaign
    from campaigns.services import CampaignProgressService

    campaigns = Campaign.objects.filter(status=Campaign.Status.ACTIVE)
    refreshed = 0
    for campaign in campaigns:
        try:
            CampaignProgressService(campaign).refresh_cached_realized()
            refreshed += 1
        except Exception:
            logger.warning(
                "Realized refresh failed for campaign=%s", campaign.pk, exc_info=True,
            )
    logger.info("refresh_active_campaigns: %d campaign(s) refreshed", refreshed)
    return refreshed


@shared_task
def close_expired_campaigns():
    """Scheduled daily (Celery Beat): close active campaigns past their end date."""
    from campaigns.models import Campaign

    today = timezone.localdate()
    closed = Campaign.objects.filter(
        status=Campaign.Status.ACTIVE,
        end_date__lt=today,
    ).update(status=Campaign.Status.CLOSED, updated_at=timezone.now())
    if closed:
        logger.info("close_expired_campaigns: %d campaign(s) closed", closed)
    return closed

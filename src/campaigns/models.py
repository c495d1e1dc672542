"""Models for the sales campaigns module."""
from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from campaigns import aggregation
from campaigns.reporting import ProductFilters
from core.models import TimeStampedModel


class Campaign(TimeStampedModel):
    """A sales campaign with per-store targets.

    The product filter lists restrict which sales the reporting API counts
    toward the campaign; an empty list means "no restriction".
    """

    class GoalType(models.TextChoices):
        QUANTITY = aggregation.QUANTITY, "Quantite"
        VALUE = aggregation.VALUE, "Valeur"

    class Status(models.TextChoices):
        ACTIVE = "ACTIVE", "Active"
        INACTIVE = "INACTIVE", "Inactive"
        CLOSED = "CLOSED", "Cloturee"

    name = models.CharField("nom", max_length=200)
    description = models.TextField("description", blank=True, default="")
    start_date = models.DateField("date de debut")
    end_date = models.DateField("date de fin")
    goal_type = models.CharField(
        "type d'objectif",
        max_length=10,
        choices=GoalType.choices,
        default=GoalType.VALUE,
    )
    status = models.CharField(
        "statut",
        max_length=10,
        choices=Status.choices,
        default=Status.ACTIVE,
        db_index=True,
    )
    no_targets = models.BooleanField(
        "sans objectifs",
        default=False,
        help_text="Campagne de suivi uniquement : aucune cible par boutique.",
    )
    supplier_ids = models.JSONField("fournisseurs", default=list, blank=True)
    brand_ids = models.JSONField("marques", default=list, blank=True)
    family_ids = models.JSONField("familles", default=list, blank=True)
    group_ids = models.JSONField("groupes de produits", default=list, blank=True)
    product_codes = models.JSONField("codes produits", default=list, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_campaigns",
        verbose_name="cree par",
    )
    refresh_sequence = models.PositiveIntegerField(
        "sequence de rafraichissement",
        default=0,
        editable=False,
    )

    class Meta:
        verbose_name = "campagne"
        verbose_name_plural = "campagnes"
        ordering = ["end_date", "name"]

    def __str__(self) -> str:
        return f"{self.name} ({self.start_date:%d/%m/%Y} - {self.end_date:%d/%m/%Y})"

    def clean(self) -> None:
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValidationError(
                "La date de fin doit etre posterieure ou egale a la date de debut."
            )

    @property
    def is_quantity_goal(self) -> bool:
        return self.goal_type == self.GoalType.QUANTITY

    @property
    def product_filters(self) -> ProductFilters:
        return ProductFilters.build(
            supplier_ids=self.supplier_ids,
            brand_ids=self.brand_ids,
            family_ids=self.family_ids,
            group_ids=self.group_ids,
            product_codes=self.product_codes,
        )


class Participant(TimeStampedModel):
    """A store taking part in a campaign, with its targets.

    ``realized_*`` is a cache of the last refresh against the reporting API;
    it can be stale and may be negative when returns exceed sales.
    """

    campaign = models.ForeignKey(
        Campaign,
        on_delete=models.CASCADE,
        related_name="participants",
        verbose_name="campagne",
    )
    store = models.ForeignKey(
        "stores.Store",
        on_delete=models.PROTECT,
        related_name="campaign_participations",
        verbose_name="boutique",
    )
    store_code = models.CharField(
        "code boutique",
        max_length=20,
        blank=True,
        help_text="Code de la boutique dans l'API de ventes (numero par defaut).",
    )
    group_id = models.CharField("groupe", max_length=20, default="1", db_index=True)
    target_quantity = models.DecimalField(
        "objectif quantite",
        max_digits=14,
        decimal_places=3,
        default=Decimal("0"),
        validators=[MinValueValidator(Decimal("0"))],
    )
    target_value = models.DecimalField(
        "objectif valeur",
        max_digits=14,
        decimal_places=2,
        default=Decimal("0"),
        validators=[MinValueValidator(Decimal("0"))],
    )
    realized_quantity = models.DecimalField(
        "quantite realisee", max_digits=14, decimal_places=3, default=Decimal("0"),
    )
    realized_value = models.DecimalField(
        "valeur realisee", max_digits=14, decimal_places=2, default=Decimal("0"),
    )
    realized_at = models.DateTimeField("realise mis a jour le", null=True, blank=True)

    class Meta:
        verbose_name = "boutique participante"
        verbose_name_plural = "boutiques participantes"
        ordering = ["group_id", "store_code"]
        constraints = [
            models.UniqueConstraint(
                fields=["campaign", "store"],
                name="uniq_participant_campaign_store",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.store} / {self.campaign.name} (groupe {self.group_id})"

    def save(self, *args, **kwargs):
        if not self.store_code and self.store_id:
            self.store_code = self.store.number
        super().save(*args, **kwargs)

    def clean(self) -> None:
        if self.target_quantity is not None and self.target_quantity < 0:
            raise ValidationError({"target_quantity": "L'objectif ne peut pas etre negatif."})
        if self.target_value is not None and self.target_value < 0:
            raise ValidationError({"target_value": "L'objectif ne peut pas etre negatif."})

    @property
    def target(self) -> Decimal:
        return aggregation.target_for(self.campaign.goal_type, self)

    @property
    def realized(self) -> Decimal:
        return aggregation.realized_for(
            self.campaign.goal_type,
            aggregation.to_decimal(self.realized_quantity),
            aggregation.to_decimal(self.realized_value),
        )

    @property
    def percent_of_target(self) -> Decimal:
        return aggregation.percent_of(self.realized, self.target)


class SalesPeriod(TimeStampedModel):
    """A commercial period, used as the default range of sales lookups."""

    CURRENT = "current"
    PAST = "past"
    FUTURE = "future"

    start_date = models.DateField("date de debut")
    end_date = models.DateField("date de fin")
    description = models.CharField("description", max_length=200, blank=True, default="")
    is_active = models.BooleanField("active", default=True)

    class Meta:
        verbose_name = "periode commerciale"
        verbose_name_plural = "periodes commerciales"
        ordering = ["-start_date"]

    def __str__(self) -> str:
        return self.description or self.label

    def clean(self) -> None:
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValidationError(
                "La date de fin doit etre posterieure ou egale a la date de debut."
            )

    @property
    def label(self) -> str:
        return f"{self.start_date:%m/%Y} - {self.end_date:%m/%Y}"

    def status(self, today=None) -> str:
        today = today or timezone.localdate()
        if self.start_date <= today <= self.end_date:
            return self.CURRENT
        if self.end_date < today:
            return self.PAST
        return self.FUTURE

    @classmethod
    def current(cls, today=None):
        """Active period containing ``today``, else the most recent active one."""
        today = today or timezone.localdate()
        active = cls.objects.filter(is_active=True)
        period = active.filter(start_date__lte=today, end_date__gte=today).order_by("-start_date").first()
        if period is not None:
            return period
        return active.filter(start_date__lte=today).order_by("-end_date").first()

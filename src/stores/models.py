"""Models for the stores app."""
import uuid

from django.conf import settings
from django.db import models

from core.models import TimeStampedModel


class Store(TimeStampedModel):
    """A physical store taking part in sales campaigns.

    ``number`` is the store's business identifier; it is also the default
    code used to correlate the store with the sales-reporting API.
    """

    number = models.CharField("numero", max_length=20, unique=True)
    name = models.CharField("nom", max_length=255)
    region = models.CharField("region", max_length=120, blank=True, default="")
    is_active = models.BooleanField("active", default=True)

    class Meta:
        ordering = ["number"]
        verbose_name = "Boutique"
        verbose_name_plural = "Boutiques"

    def __str__(self):
        return f"{self.number} - {self.name}"


class StoreUser(models.Model):
    """Links a user to one or more stores."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    store = models.ForeignKey(
        Store,
        on_delete=models.CASCADE,
        related_name="store_users",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="store_users",
    )
    is_default = models.BooleanField(
        default=False,
        help_text="If True, this store is the user's default store.",
    )

    class Meta:
        unique_together = [("store", "user")]
        verbose_name = "Utilisateur boutique"
        verbose_name_plural = "Utilisateurs boutique"

    def __str__(self):
        return f"{self.user} - {self.store}"

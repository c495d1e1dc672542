import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("stores", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Campaign",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="cree le")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="modifie le")),
                ("name", models.CharField(max_length=200, verbose_name="nom")),
                ("description", models.TextField(blank=True, default="", verbose_name="description")),
                ("start_date", models.DateField(verbose_name="date de debut")),
                ("end_date", models.DateField(verbose_name="date de fin")),
                (
                    "goal_type",
                    models.CharField(
                        choices=[("QUANTITY", "Quantite"), ("VALUE", "Valeur")],
                        default="VALUE",
                        max_length=10,
                        verbose_name="type d'objectif",
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[("ACTIVE", "Active"), ("INACTIVE", "Inactive"), ("CLOSED", "Cloturee")],
                        db_index=True,
                        default="ACTIVE",
                        max_length=10,
                        verbose_name="statut",
                    ),
                ),
                (
                    "no_targets",
                    models.BooleanField(
                        default=False,
                        help_text="Campagne de suivi uniquement : aucune cible par boutique.",
                        verbose_name="sans objectifs",
                    ),
                ),
                ("supplier_ids", models.JSONField(blank=True, default=list, verbose_name="fournisseurs")),
                ("brand_ids", models.JSONField(blank=True, default=list, verbose_name="marques")),
                ("family_ids", models.JSONField(blank=True, default=list, verbose_name="familles")),
                ("group_ids", models.JSONField(blank=True, default=list, verbose_name="groupes de produits")),
                ("product_codes", models.JSONField(blank=True, default=list, verbose_name="codes produits")),
                (
                    "refresh_sequence",
                    models.PositiveIntegerField(
                        default=0, editable=False, verbose_name="sequence de rafraichissement",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="created_campaigns",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="cree par",
                    ),
                ),
            ],
            options={
                "verbose_name": "campagne",
                "verbose_name_plural": "campagnes",
                "ordering": ["end_date", "name"],
            },
        ),
        migrations.CreateModel(
            name="SalesPeriod",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="cree le")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="modifie le")),
                ("start_date", models.DateField(verbose_name="date de debut")),
                ("end_date", models.DateField(verbose_name="date de fin")),
                ("description", models.CharField(blank=True, default="", max_length=200, verbose_name="description")),
                ("is_active", models.BooleanField(default=True, verbose_name="active")),
            ],
            options={
                "verbose_name": "periode commerciale",
                "verbose_name_plural": "periodes commerciales",
                "ordering": ["-start_date"],
            },
        ),
        migrations.CreateModel(
            name="Participant",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="cree le")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="modifie le")),
                (
                    "store_code",
                    models.CharField(
                        blank=True,
                        help_text="Code de la boutique dans l'API de ventes (numero par defaut).",
                        max_length=20,
                        verbose_name="code boutique",
                    ),
                ),
                ("group_id", models.CharField(db_index=True, default="1", max_length=20, verbose_name="groupe")),
                (
                    "target_quantity",
                    models.DecimalField(
                        decimal_places=3,
                        default=Decimal("0"),
                        max_digits=14,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                        verbose_name="objectif quantite",
                    ),
                ),
                (
                    "target_value",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0"),
                        max_digits=14,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                        verbose_name="objectif valeur",
                    ),
                ),
                (
                    "realized_quantity",
                    models.DecimalField(
                        decimal_places=3, default=Decimal("0"), max_digits=14, verbose_name="quantite realisee",
                    ),
                ),
                (
                    "realized_value",
                    models.DecimalField(
                        decimal_places=2, default=Decimal("0"), max_digits=14, verbose_name="valeur realisee",
                    ),
                ),
                ("realized_at", models.DateTimeField(blank=True, null=True, verbose_name="realise mis a jour le")),
                (
                    "campaign",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="participants",
                        to="campaigns.campaign",
                        verbose_name="campagne",
                    ),
                ),
                (
                    "store",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="campaign_participations",
                        to="stores.store",
                        verbose_name="boutique",
                    ),
                ),
            ],
            options={
                "verbose_name": "boutique participante",
                "verbose_name_plural": "boutiques participantes",
                "ordering": ["group_id", "store_code"],
                "constraints": [
                    models.UniqueConstraint(fields=("campaign", "store"), name="uniq_participant_campaign_store"),
                ],
            },
        ),
    ]

"""DRF Serializers for the sales campaigns module."""
from __future__ import annotations

from decimal import Decimal, InvalidOperation

from rest_framework import serializers

from campaigns.aggregation import to_decimal
from campaigns.models import Campaign, Participant, SalesPeriod
from stores.models import Store
from stores.services import parse_id_list


# ────────────────────────────────────────────────────────────
# Fields
# ────────────────────────────────────────────────────────────

class LenientDecimalField(serializers.DecimalField):
    """Decimal input where blank or malformed values count as 0.

    Range validators (``min_value`` ...) still apply to the coerced value.
    """

    def __init__(self, **kwargs):
        kwargs.setdefault("max_digits", 14)
        kwargs.setdefault("decimal_places", 2)
        kwargs.setdefault("min_value", Decimal("0"))
        kwargs.setdefault("required", False)
        kwargs.setdefault("default", Decimal("0"))
        super().__init__(**kwargs)

    def validate_empty_values(self, data):
        if data is None:
            return True, Decimal("0")
        return super().validate_empty_values(data)

    def to_internal_value(self, data):
        value = to_decimal(data)
        if self.decimal_places is not None:
            try:
                value = value.quantize(Decimal(1).scaleb(-self.decimal_places))
            except InvalidOperation:
                # Too many digits to round; let max_digits validation reject it.
                pass
        return super().to_internal_value(value)


class CommaSeparatedListField(serializers.ListField):
    """Accepts ``["1", "2"]`` or ``"1,2"``; always returns a list of strings."""

    child = serializers.CharField(max_length=60)

    def to_internal_value(self, data):
        return super().to_internal_value(parse_id_list(data))


# ────────────────────────────────────────────────────────────
# Campaigns
# ────────────────────────────────────────────────────────────

class CampaignSerializer(serializers.ModelSerializer):
    supplier_ids = CommaSeparatedListField(required=False)
    brand_ids = CommaSeparatedListField(required=False)
    family_ids = CommaSeparatedListField(required=False)
    group_ids = CommaSeparatedListField(required=False)
    product_codes = CommaSeparatedListField(required=False)
    participant_count = serializers.SerializerMethodField()
    created_by_name = serializers.SerializerMethodField()

    class Meta:
        model = Campaign
        fields = [
            "id", "name", "description", "start_date", "end_date",
            "goal_type", "status", "no_targets",
            "supplier_ids", "brand_ids", "family_ids", "group_ids", "product_codes",
            "participant_count", "created_by", "created_by_name",
            "created_at", "updated_at",
        ]
        read_only_fields = ["id", "status", "created_by", "created_at", "updated_at"]

    def get_participant_count(self, obj) -> int:
        count = getattr(obj, "participant_count", None)
        if count is None:
            count = obj.participants.count()
        return count

    def get_created_by_name(self, obj) -> str:
        user = obj.created_by
        if user is None:
            return ""
        return user.get_full_name() or user.email

    def validate(self, attrs):
        start = attrs.get("start_date", getattr(self.instance, "start_date", None))
        end = attrs.get("end_date", getattr(self.instance, "end_date", None))
        if start and end and end < start:
            raise serializers.ValidationError(
                {"end_date": "La date de fin doit etre posterieure ou egale a la date de debut."}
            )
        return attrs


class CampaignStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Campaign.Status.choices)


# ────────────────────────────────────────────────────────────
# Participants (targets)
# ────────────────────────────────────────────────────────────

class ParticipantSerializer(serializers.ModelSerializer):
    store_number = serializers.CharField(source="store.number", read_only=True)
    store_name = serializers.CharField(source="store.name", read_only=True)
    store_code = serializers.CharField(max_length=20, required=False, allow_blank=True)
    group_id = serializers.CharField(max_length=20, required=False, default="1")
    target_quantity = LenientDecimalField(decimal_places=3)
    target_value = LenientDecimalField()
    percent_of_target = serializers.DecimalField(
        max_digits=None, decimal_places=2, read_only=True,
    )

    class Meta:
        model = Participant
        fields = [
            "id", "campaign", "store", "store_number", "store_name", "store_code",
            "group_id", "target_quantity", "target_value",
            "realized_quantity", "realized_value", "realized_at", "percent_of_target",
        ]
        read_only_fields = ["id", "realized_quantity", "realized_value", "realized_at"]


class ParticipantTargetSerializer(serializers.Serializer):
    """One row of a bulk target assignment."""

    store = serializers.PrimaryKeyRelatedField(queryset=Store.objects.all())
    store_code = serializers.CharField(max_length=20, required=False, allow_blank=True)
    group_id = serializers.CharField(max_length=20, required=False, default="1")
    target_quantity = LenientDecimalField(decimal_places=3)
    target_value = LenientDecimalField()

    def validate_group_id(self, value: str) -> str:
        value = (value or "").strip()
        return value or "1"


class BulkTargetsSerializer(serializers.Serializer):
    targets = ParticipantTargetSerializer(many=True, allow_empty=False)

    def validate_targets(self, rows):
        store_ids = [row["store"].pk for row in rows]
        if len(store_ids) != len(set(store_ids)):
            raise serializers.ValidationError("Chaque boutique ne peut apparaitre qu'une fois.")
        return rows

    def save(self, campaign):
        saved = []
        for row in self.validated_data["targets"]:
            store = row["store"]
            participant, _ = Participant.objects.update_or_create(
                campaign=campaign,
                store=store,
                defaults={
                    "store_code": (row.get("store_code") or "").strip() or store.number,
                    "group_id": row["group_id"],
                    "target_quantity": row["target_quantity"],
                    "target_value": row["target_value"],
                },
            )
            saved.append(participant)
        return saved


# ────────────────────────────────────────────────────────────
# Rankings & progress (read-only, built from aggregation results)
# ────────────────────────────────────────────────────────────

def _amount_field(**kwargs):
    return serializers.DecimalField(max_digits=None, decimal_places=2, read_only=True, **kwargs)


class RankedStoreSerializer(serializers.Serializer):
    rank = serializers.IntegerField()
    participant_id = serializers.UUIDField(source="participant.id")
    store_id = serializers.UUIDField(source="participant.store_id")
    store_number = serializers.CharField(source="participant.store.number")
    store_name = serializers.CharField(source="participant.store.name")
    region = serializers.CharField(source="participant.store.region")
    store_code = serializers.CharField()
    target = _amount_field()
    realized = _amount_field()
    percent = _amount_field()
    net_quantity = _amount_field()
    net_value = _amount_field()
    has_sales_record = serializers.BooleanField()
    headcount = serializers.IntegerField(allow_null=True)
    average_per_employee = _amount_field(allow_null=True)


class StoreRankingGroupSerializer(serializers.Serializer):
    group_id = serializers.CharField()
    total_realized = _amount_field()
    total_target = _amount_field()
    percent = _amount_field()
    entries = RankedStoreSerializer(many=True)


class RankedEmployeeSerializer(serializers.Serializer):
    rank = serializers.IntegerField()
    employee_id = serializers.CharField(source="record.employee_id")
    employee_name = serializers.CharField(source="record.employee_name")
    store_code = serializers.CharField(source="record.store_code")
    store_name = serializers.CharField(source="record.store_name")
    realized = _amount_field()
    net_quantity = _amount_field(source="record.net_quantity")
    net_value = _amount_field(source="record.net_value")


class EmployeeRankingGroupSerializer(serializers.Serializer):
    group_id = serializers.CharField()
    total_realized = _amount_field()
    entries = RankedEmployeeSerializer(many=True)


class CampaignProgressSerializer(serializers.Serializer):
    realized = _amount_field()
    target = _amount_field()
    percent_realized = _amount_field()
    percent_time = _amount_field()
    elapsed_days = serializers.IntegerField()
    total_days = serializers.IntegerField()
    status = serializers.CharField()


class CampaignSummarySerializer(serializers.Serializer):
    campaign = CampaignSerializer()
    participant_count = serializers.IntegerField()
    stores_with_sales = serializers.IntegerField()
    realized_quantity = _amount_field()
    realized_value = _amount_field()
    target_total = _amount_field()
    progress = CampaignProgressSerializer()
    notice = serializers.CharField(allow_null=True)


# ────────────────────────────────────────────────────────────
# Sales periods & employee sales lookup
# ────────────────────────────────────────────────────────────

class SalesPeriodSerializer(serializers.ModelSerializer):
    label = serializers.CharField(read_only=True)
    status = serializers.SerializerMethodField()

    class Meta:
        model = SalesPeriod
        fields = ["id", "start_date", "end_date", "description", "is_active", "label", "status"]

    def get_status(self, obj) -> str:
        return obj.status(self.context.get("today"))


class EmployeeSalesQuerySerializer(serializers.Serializer):
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
    suppliers = CommaSeparatedListField(required=False)
    brands = CommaSeparatedListField(required=False)
    families = CommaSeparatedListField(required=False)
    groups = CommaSeparatedListField(required=False)
    products = CommaSeparatedListField(required=False)

    def validate(self, attrs):
        start = attrs.get("start_date")
        end = attrs.get("end_date")
        if start and end and end < start:
            raise serializers.ValidationError(
                {"end_date": "La date de fin doit etre posterieure ou egale a la date de debut."}
            )
        return attrs


class EmployeeSalesRowSerializer(serializers.Serializer):
    employee_id = serializers.CharField()
    employee_name = serializers.CharField()
    store_code = serializers.CharField()
    store_name = serializers.CharField()
    gross_quantity = _amount_field()
    returned_quantity = _amount_field()
    net_quantity = _amount_field()
    gross_value = _amount_field()
    returned_value = _amount_field()
    net_value = _amount_field()
    average_ticket = _amount_field()

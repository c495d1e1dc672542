"""Django admin configuration for the sales campaigns module."""
from django.contrib import admin

from campaigns.models import Campaign, Participant, SalesPeriod


class ParticipantInline(admin.TabularInline):
    model = Participant
    extra = 0
    raw_id_fields = ("store",)
    fields = (
        "store", "store_code", "group_id", "target_quantity", "target_value",
        "realized_quantity", "realized_value", "realized_at",
    )
    readonly_fields = ("realized_quantity", "realized_value", "realized_at")


@admin.register(Campaign)
class CampaignAdmin(admin.ModelAdmin):
    list_display = ("name", "start_date", "end_date", "goal_type", "status", "no_targets")
    list_filter = ("status", "goal_type", "no_targets")
    search_fields = ("name", "description")
    date_hierarchy = "start_date"
    readonly_fields = ("id", "refresh_sequence", "created_by", "created_at", "updated_at")
    inlines = [ParticipantInline]


@admin.register(Participant)
class ParticipantAdmin(admin.ModelAdmin):
    list_display = ("campaign", "store", "group_id", "target_quantity", "target_value", "realized_at")
    list_filter = ("group_id", "campaign__status")
    search_fields = ("campaign__name", "store__name", "store__number", "store_code")
    raw_id_fields = ("campaign", "store")
    list_select_related = ("campaign", "store")


@admin.register(SalesPeriod)
class SalesPeriodAdmin(admin.ModelAdmin):
    list_display = ("description", "start_date", "end_date", "is_active")
    list_filter = ("is_active",)
    ordering = ("-start_date",)

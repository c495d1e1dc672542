"""Django admin configuration for the stores app."""
from django.contrib import admin

from stores.models import Store, StoreUser


class StoreUserInline(admin.TabularInline):
    model = StoreUser
    extra = 0
    raw_id_fields = ("user",)


@admin.register(Store)
class StoreAdmin(admin.ModelAdmin):
    list_display = ("number", "name", "region", "is_active", "created_at")
    list_filter = ("is_active", "region")
    search_fields = ("number", "name", "region")
    readonly_fields = ("id", "created_at", "updated_at")
    inlines = [StoreUserInline]
    list_per_page = 50


@admin.register(StoreUser)
class StoreUserAdmin(admin.ModelAdmin):
    list_display = ("user", "store", "is_default")
    list_filter = ("is_default", "store")
    search_fields = (
        "user__email",
        "user__first_name",
        "user__last_name",
        "store__name",
        "store__number",
    )
    raw_id_fields = ("user", "store")
    list_select_related = ("user", "store")

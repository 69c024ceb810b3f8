from django.contrib import admin
from unfold.admin import ModelAdmin, TabularInline

from venues import models


class PassAllocationRuleInline(TabularInline):  # type: ignore[misc]
    model = models.PassAllocationRule
    extra = 0
    fields = ["user_group", "pass_type", "quantity", "period", "auto_renew"]


@admin.register(models.Venue)
class VenueAdmin(ModelAdmin):  # type: ignore[misc]
    list_display = ["name", "venue_type", "timezone", "pass_transfer_enabled", "allow_auto_registration"]
    list_filter = ["venue_type", "pass_transfer_enabled", "allow_auto_registration"]
    search_fields = ["name", "address"]
    inlines = [PassAllocationRuleInline]


@admin.register(models.UserVenueAssociation)
class UserVenueAssociationAdmin(ModelAdmin):  # type: ignore[misc]
    list_display = ["user", "venue", "user_group", "role", "status", "created_at"]
    list_filter = ["status", "role", "user_group", "venue"]
    search_fields = ["user__username", "user__email", "venue__name"]
    autocomplete_fields = ["user", "venue"]


@admin.register(models.PassType)
class PassTypeAdmin(ModelAdmin):  # type: ignore[misc]
    list_display = ["name", "venue", "validity_hours", "transferable"]
    list_filter = ["transferable", "venue"]
    search_fields = ["name", "venue__name"]


@admin.register(models.PassAllocationRule)
class PassAllocationRuleAdmin(ModelAdmin):  # type: ignore[misc]
    list_display = ["venue", "user_group", "pass_type", "quantity", "period", "auto_renew"]
    list_filter = ["period", "auto_renew", "user_group", "venue"]

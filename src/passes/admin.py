from django.contrib import admin
from unfold.admin import ModelAdmin

from passes import models


@admin.register(models.Pass)
class PassAdmin(ModelAdmin):  # type: ignore[misc]
    list_display = ["id", "owner", "venue", "pass_type", "status", "valid_from", "valid_until", "receipt_id"]
    list_filter = ["status", "venue", "pass_type"]
    search_fields = ["id", "owner__username", "owner__email", "receipt_id"]
    date_hierarchy = "created_at"
    # Status only changes through the ledger.
    readonly_fields = ["status", "current_rotation", "receipt_id", "created_at", "updated_at"]
    raw_id_fields = ["owner"]


@admin.register(models.TransferRecord)
class TransferRecordAdmin(ModelAdmin):  # type: ignore[misc]
    list_display = ["source_pass", "new_pass", "from_user", "to_user", "status", "created_at"]
    search_fields = ["source_pass__id", "new_pass__id", "from_user__username", "to_user__username"]
    readonly_fields = [f.name for f in models.TransferRecord._meta.fields]

    def has_add_permission(self, request: object) -> bool:
        return False


@admin.register(models.RedemptionRecord)
class RedemptionRecordAdmin(ModelAdmin):  # type: ignore[misc]
    list_display = ["pass_obj", "venue", "staff", "status", "created_at"]
    list_filter = ["venue"]
    readonly_fields = [f.name for f in models.RedemptionRecord._meta.fields]

    def has_add_permission(self, request: object) -> bool:
        return False

from django.contrib import admin
from unfold.admin import ModelAdmin

from notary.models import NotarizationRequest


@admin.register(NotarizationRequest)
class NotarizationRequestAdmin(ModelAdmin):  # type: ignore[misc]
    list_display = ["id", "kind", "pass_obj", "status", "attempts", "receipt_id", "updated_at"]
    list_filter = ["status", "kind"]
    search_fields = ["id", "receipt_id", "pass_obj__id"]
    readonly_fields = ["payload", "attempts", "last_error", "completed_at", "created_at", "updated_at"]

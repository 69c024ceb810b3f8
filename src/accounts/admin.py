"""Admin interface for accounts app."""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from unfold.admin import ModelAdmin, TabularInline

from accounts.models import QueueSkipUser
from venues.models import UserVenueAssociation


class UserVenueAssociationInline(TabularInline):  # type: ignore[misc]
    """Inline for the user's venue associations."""

    model = UserVenueAssociation
    extra = 0
    fields = ["venue", "user_group", "role", "status"]


@admin.register(QueueSkipUser)
class QueueSkipUserAdmin(UserAdmin, ModelAdmin):  # type: ignore[type-arg,misc]
    list_display = ["username", "email", "government_id", "web3_address", "is_staff", "is_active", "date_joined"]
    list_filter = ["is_staff", "is_superuser", "is_active", "date_joined", "last_login"]
    search_fields = ["username", "first_name", "last_name", "email", "government_id", "sso_id", "web3_address"]
    ordering = ["-date_joined"]
    readonly_fields = ["id", "date_joined", "last_login"]

    fieldsets = (
        ("Personal Information", {"fields": ("id", ("username", "email"), ("first_name", "last_name"))}),
        ("Identities", {"fields": ("government_id", "sso_id", "web3_address")}),
        ("Authentication", {"fields": ("password", ("date_joined", "last_login"))}),
        ("Permissions", {"fields": ("is_active", "is_staff", "is_superuser", "groups"), "classes": ["collapse"]}),
    )

    inlines = [UserVenueAssociationInline]

from django.apps import AppConfig


class VenuesConfig(AppConfig):
    """Configuration for the venues app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "venues"
    verbose_name = "Venues"

from django.apps import AppConfig


class LiveConfig(AppConfig):
    """Configuration for the live notification channel."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "live"
    verbose_name = "Live Notifications"

from django.apps import AppConfig


class NotaryConfig(AppConfig):
    """Configuration for the external ledger notarization queue."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "notary"
    verbose_name = "Ledger Notarization"

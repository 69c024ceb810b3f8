"""Django app configuration for passes."""

import atexit

from django.apps import AppConfig


class PassesConfig(AppConfig):
    """Configuration for the passes app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "passes"
    verbose_name = "Passes"

    def ready(self) -> None:
        from passes.service.rotation_scheduler import shutdown_scheduler

        atexit.register(shutdown_scheduler)

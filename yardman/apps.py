"""Django app configuration for Yardman."""

from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class YardmanConfig(AppConfig):
    """Configuration for Yardman app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "yardman"
    verbose_name = _("Storage Yard")

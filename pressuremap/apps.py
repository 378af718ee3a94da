from django.apps import AppConfig


class PressureMapConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "pressuremap"
    verbose_name = "Pressure maps"

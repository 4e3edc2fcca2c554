from django.apps import AppConfig


class PowerGridConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "powergrid"
    verbose_name = "Power grid"

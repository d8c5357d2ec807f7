from django.apps import AppConfig


class UamsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "uams"
    verbose_name = "Utility asset management"

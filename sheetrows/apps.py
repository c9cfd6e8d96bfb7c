from django.apps import AppConfig


class SheetrowsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "sheetrows"
    verbose_name = "Sheet rows"

from django.apps import AppConfig


class PdfTemplatesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "pdftemplates"
    verbose_name = "PDF templates"

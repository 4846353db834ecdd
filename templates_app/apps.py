from django.apps import AppConfig

from generation.schema import SchemaCache


class TemplatesAppConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "templates_app"
    verbose_name = "Document templates"

    # field schemas extracted from uploaded templates, keyed by action slug
    schema_cache = SchemaCache()

    def ready(self):
        from . import signals  # noqa: F401

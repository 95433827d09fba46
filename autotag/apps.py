from django.apps import AppConfig


class AutotagConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "autotag"
    verbose_name = "Image auto tag"

    def ready(self):
        from autotag import signals
        signals.connect()

from django.apps import AppConfig


class AcademyConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "academy"
    verbose_name = "Academy Schedule & Attendance"

    def ready(self):
        """Import signals when the app is ready"""
        import academy.signals  # noqa: F401

from django.apps import AppConfig


class EmissionsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'emissions'
    verbose_name = 'Scope Emissions'

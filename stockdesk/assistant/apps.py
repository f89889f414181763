from django.apps import AppConfig


class AssistantConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'stockdesk.assistant'
    verbose_name = 'Help assistant'

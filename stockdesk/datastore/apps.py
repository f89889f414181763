from django.apps import AppConfig


class DatastoreConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'stockdesk.datastore'
    verbose_name = 'Data store gateway'

from django.apps import AppConfig


class DbManagerConfig(AppConfig):
    name = 'dbmanager'
    verbose_name = 'Database manager'

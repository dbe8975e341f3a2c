from django.apps import AppConfig


class DataImportsConfig(AppConfig):
    name = 'dataimports'
    verbose_name = 'Data imports'

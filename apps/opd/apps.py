# opd/apps.py
from django.apps import AppConfig


class OpdConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.opd'
    verbose_name = 'OPD Management'

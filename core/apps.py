import logging
from django.apps import AppConfig
from django.db import connection

logger = logging.getLogger(__name__)


class CoreConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'core'
    verbose_name = 'Core (Institutions & Departments)'

    def ready(self):
        logger.info('DB=%s', connection.vendor)

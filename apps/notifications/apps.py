# apps/notifications/apps.py

from django.apps import AppConfig


class NotificationsConfig(AppConfig):
    """Configuração da app Notifications"""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.notifications'
    verbose_name = 'Notificações'

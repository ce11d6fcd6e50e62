# apps/realtime/apps.py

import logging

from django.apps import AppConfig, apps

logger = logging.getLogger(__name__)


class RealtimeConfig(AppConfig):
    """Configuração da app Realtime"""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.realtime'
    verbose_name = 'Realtime - Salas e eventos'

    broadcaster = None

    def ready(self):
        """
        Cria o broadcaster do processo e o liga ao channel layer padrão
        Sem CHANNEL_LAYERS ele fica parado e cada publish falha
        """
        from channels.layers import get_channel_layer
        from .broadcaster import Broadcaster

        self.broadcaster = Broadcaster()
        layer = get_channel_layer()
        if layer is None:
            logger.warning("⚠️ CHANNEL_LAYERS não configurado - broadcaster parado")
            return

        self.broadcaster.start(layer)


def get_broadcaster():
    """Broadcaster do processo atual"""
    return apps.get_app_config('realtime').broadcaster

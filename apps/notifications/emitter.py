# apps/notifications/emitter.py

import logging

from apps.core.models import Notification
from apps.core.utils import serializar_notificacao
from apps.realtime.apps import get_broadcaster
from apps.realtime.broadcaster import user_room

logger = logging.getLogger(__name__)


class NotificationEmitter:
    """
    Único ponto que cria notificações

    Persiste o rascunho, relê com as referências populadas e publica
    na sala do destinatário. Se o publish falhar a linha já está gravada.
    """

    def __init__(self, broadcaster=None):
        self._broadcaster = broadcaster

    @property
    def broadcaster(self):
        return self._broadcaster or get_broadcaster()

    def emit(self, draft, sender, project=None, task=None) -> Notification:
        notificacao = Notification.objects.create(
            recipient_id=draft.recipient_id,
            sender=sender,
            project=project,
            task=task,
            type=draft.type,
            message=draft.message,
        )
        notificacao = self._recarregar(notificacao.pk)
        logger.info(f"🔔 {draft.type} para usuário {draft.recipient_id}")

        self.broadcaster.publish(
            user_room(draft.recipient_id),
            'newNotification',
            serializar_notificacao(notificacao),
        )
        return notificacao

    def emit_updated(self, notificacao):
        self.broadcaster.publish(
            user_room(notificacao.recipient_id),
            'notificationUpdated',
            serializar_notificacao(notificacao),
        )

    def emit_all_read(self, usuario):
        self.broadcaster.publish(user_room(usuario.pk), 'allNotificationsRead')

    def _recarregar(self, pk):
        return Notification.objects.select_related(
            'sender', 'project', 'task'
        ).get(pk=pk)

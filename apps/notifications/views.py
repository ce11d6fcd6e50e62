# apps/notifications/views.py

import logging

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods

from apps.core.exceptions import PermissionDenied
from apps.core.models import Notification
from apps.core.permissions import api_view, buscar_ou_404, requer_login_api
from apps.core.utils import serializar_notificacao
from apps.realtime.outcome import MutationOutcome

from .emitter import NotificationEmitter

logger = logging.getLogger(__name__)


def _notificacoes():
    return Notification.objects.select_related('sender', 'project', 'task')


@require_GET
@api_view
@requer_login_api
def listar_notificacoes(request):
    """Notificações do usuário, mais recentes primeiro"""
    notificacoes = _notificacoes().filter(recipient=request.user)
    return JsonResponse([serializar_notificacao(n) for n in notificacoes], safe=False)


@csrf_exempt
@require_http_methods(['PUT'])
@api_view
@requer_login_api
def marcar_como_lida(request, notification_id):
    """
    Marca uma notificação como lida

    Idempotente: se já estiver lida não grava nem publica de novo.
    """
    notificacao = buscar_ou_404(_notificacoes(), notification_id, 'Notification')
    if notificacao.recipient_id != request.user.pk:
        raise PermissionDenied('Not authorized to update this notification')

    if notificacao.is_read:
        return JsonResponse({
            'message': 'Notification already marked as read',
            'notification': serializar_notificacao(notificacao),
        })

    notificacao.is_read = True
    notificacao.save(update_fields=['is_read'])

    outcome = MutationOutcome(result=notificacao)
    outcome.attempt('notificationUpdated', NotificationEmitter().emit_updated, notificacao)

    return JsonResponse({
        'message': 'Notification marked as read',
        'notification': serializar_notificacao(notificacao),
    })


@csrf_exempt
@require_http_methods(['PUT'])
@api_view
@requer_login_api
def marcar_todas_como_lidas(request):
    atualizadas = Notification.objects.filter(
        recipient=request.user, is_read=False
    ).update(is_read=True)
    logger.info(f"📬 {atualizadas} notificações marcadas como lidas para {request.user.username}")

    outcome = MutationOutcome(result=atualizadas)
    outcome.attempt('allNotificationsRead', NotificationEmitter().emit_all_read, request.user)

    return JsonResponse({'message': 'All notifications marked as read', 'updated': atualizadas})

# apps/board/consumers.py

import json
import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer
from django.conf import settings

from apps.core.models import Message, Project
from apps.core.utils import serializar_mensagem
from apps.realtime.apps import get_broadcaster
from apps.realtime.broadcaster import BroadcasterNotInitialized, project_room, user_room
from apps.realtime.outcome import MutationOutcome

logger = logging.getLogger(__name__)


class CommandRejected(Exception):
    """Comando do cliente recusado, devolvido só para quem enviou"""


class SyncConsumer(AsyncWebsocketConsumer):
    """
    Consumer WebSocket único para sincronização em tempo real

    Funcionalidades:
    - Entrada e saída de salas de projeto e da sala pessoal
    - Chat do projeto (persistido e publicado como newMessage)
    - Heartbeat via ping/pong
    - Repasse dos eventos das salas como {"type", "message"}
    """

    async def connect(self):
        """
        Aceita apenas usuários autenticados
        A entrada em salas é feita depois, por comando do cliente
        """
        self.user = self.scope['user']

        if not self.user.is_authenticated:
            logger.warning("❌ Conexão WebSocket rejeitada - usuário não autenticado")
            await self.close()
            return

        self.broadcaster = get_broadcaster()
        await self.accept()
        await self.send_event('connected', {
            'userId': str(self.user.pk),
            'heartbeatInterval': settings.HIVE_WS_HEARTBEAT_INTERVAL,
        })

        logger.info(f"✅ WebSocket conectado - {self.user.username}")

    async def disconnect(self, close_code):
        """
        Remove a conexão de todas as salas imediatamente
        """
        if hasattr(self, 'broadcaster') and self.broadcaster.started:
            await self.broadcaster.leave_all(self.channel_name)
            logger.info(f"🔌 WebSocket desconectado - {self.user.username}")

    async def receive(self, text_data=None, bytes_data=None):
        """
        Recebe comandos do cliente
        Erros voltam apenas para quem enviou o comando
        """
        try:
            data = json.loads(text_data or '')
        except json.JSONDecodeError:
            logger.error(f"❌ JSON inválido recebido via WebSocket de {self.user.username}")
            await self.send_error(None, 'Invalid JSON')
            return

        if not isinstance(data, dict):
            await self.send_error(None, 'Invalid command')
            return

        command = data.get('type')
        handler = self.handlers().get(command)
        if handler is None:
            await self.send_error(command, 'Unknown command')
            return

        try:
            await handler(data)
        except CommandRejected as e:
            logger.warning(f"⚠️ Comando {command} recusado para {self.user.username}: {e}")
            await self.send_error(command, str(e))
        except BroadcasterNotInitialized:
            logger.exception(f"❌ Broadcaster indisponível no comando {command}")
            await self.send_error(command, 'Realtime service unavailable')

    def handlers(self):
        return {
            'ping': self.handle_ping,
            'joinProject': self.handle_join_project,
            'leaveProject': self.handle_leave_project,
            'joinUserRoom': self.handle_join_user_room,
            'sendMessage': self.handle_send_message,
        }

    # === Comandos do cliente ===

    async def handle_ping(self, data):
        await self.send(text_data=json.dumps({'type': 'pong'}))

    async def handle_join_project(self, data):
        project_id = self.parse_id(data.get('projectId'), 'projectId')
        if not await self.check_project_access(project_id):
            raise CommandRejected('Not authorized to join this project')

        await self.broadcaster.join(project_room(project_id), self.channel_name)
        logger.info(f"👥 {self.user.username} entrou na sala do projeto {project_id}")

    async def handle_leave_project(self, data):
        project_id = self.parse_id(data.get('projectId'), 'projectId')
        await self.broadcaster.leave(project_room(project_id), self.channel_name)

    async def handle_join_user_room(self, data):
        user_id = self.parse_id(data.get('userId'), 'userId')
        if user_id != self.user.pk:
            raise CommandRejected('Cannot join another user\'s room')

        await self.broadcaster.join(user_room(user_id), self.channel_name)

    async def handle_send_message(self, data):
        """
        Persiste a mensagem e publica newMessage na sala do projeto
        Não há eco direto: o remetente recebe pela sala, se estiver nela.
        Depois de gravada, falha na publicação só é logada.
        """
        project_id = self.parse_id(data.get('projectId'), 'projectId')
        sender_id = self.parse_id(data.get('sender'), 'sender')
        content = data.get('content')

        if sender_id != self.user.pk:
            raise CommandRejected('Sender does not match the authenticated user')
        if not isinstance(content, str) or not content.strip():
            raise CommandRejected('Message content is required')
        if not await self.check_project_access(project_id):
            raise CommandRejected('Not authorized to post in this project')

        mensagem = await self.save_message(project_id, content.strip())
        outcome = MutationOutcome(result=mensagem)
        await outcome.aattempt(
            'newMessage', self.broadcaster.apublish, project_room(project_id), 'newMessage', mensagem,
        )
        return outcome

    # === Eventos das salas ===

    async def room_event(self, event):
        """
        Repassa um evento publicado pelo broadcaster
        """
        await self.send_event(event['event'], event.get('payload'))

    # === Métodos auxiliares ===

    async def send_event(self, event, payload=None):
        await self.send(text_data=json.dumps({
            'type': event,
            'message': payload,
        }))

    async def send_error(self, command, error):
        await self.send_event('error', {'command': command, 'error': error})

    def parse_id(self, value, field):
        if isinstance(value, bool):
            raise CommandRejected(f'Invalid {field}')
        if isinstance(value, int):
            return value
        if isinstance(value, str) and value.isdigit():
            return int(value)
        raise CommandRejected(f'Invalid {field}')

    @database_sync_to_async
    def check_project_access(self, project_id):
        """
        Verifica se usuário é dono ou membro do projeto
        """
        try:
            projeto = Project.objects.get(pk=project_id)
        except Project.DoesNotExist:
            return False
        return projeto.has_participant(self.user)

    @database_sync_to_async
    def save_message(self, project_id, content):
        mensagem = Message.objects.create(
            project_id=project_id,
            sender=self.user,
            content=content,
        )
        mensagem = Message.objects.select_related('sender').get(pk=mensagem.pk)
        return serializar_mensagem(mensagem)

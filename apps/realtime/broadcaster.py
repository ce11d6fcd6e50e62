# apps/realtime/broadcaster.py

"""
Broadcaster - registro sala -> conexões e entrega de eventos nomeados

Uma sala é um grupo do channel layer. Conexões são identificadas pelo
channel_name do consumer. A entrega é at-most-once: quem não está na
sala no momento do publish não recebe o evento, e não há replay.
"""

import logging
from collections import defaultdict
from typing import Any, Optional, Set

from asgiref.sync import async_to_sync

logger = logging.getLogger(__name__)

# Tipo da mensagem de grupo, despachado para SyncConsumer.room_event
TIPO_EVENTO_SALA = 'room.event'


class BroadcasterNotInitialized(RuntimeError):
    """Uso do broadcaster antes de start() ou depois de close()"""

    def __init__(self, message='Broadcaster not initialized'):
        super().__init__(message)


def project_room(project_id) -> str:
    """Sala do projeto (lógica project:{id})"""
    return f'project_{project_id}'


def user_room(user_id) -> str:
    """Sala pessoal do usuário (lógica user:{id})"""
    return f'user_{user_id}'


class Broadcaster:
    """
    Broadcaster encapsulado sobre um channel layer

    - join/leave idempotentes, uma conexão pode estar em várias salas
    - leave_all remove a conexão de todas as salas (desconexão)
    - publish/apublish entregam {'type': evento, 'message': payload}
      aos membros atuais da sala
    """

    def __init__(self, layer=None):
        # Atributos privados - encapsulados
        self._layer = None
        self._salas = defaultdict(set)
        if layer is not None:
            self.start(layer)

    # =================== CICLO DE VIDA ===================

    def start(self, layer):
        if layer is None:
            raise BroadcasterNotInitialized('No channel layer configured')
        self._layer = layer
        logger.info(f"📡 Broadcaster iniciado com {layer.__class__.__name__}")

    def close(self):
        self._layer = None
        self._salas.clear()
        logger.info("📴 Broadcaster encerrado")

    @property
    def started(self) -> bool:
        return self._layer is not None

    @property
    def layer(self):
        if self._layer is None:
            raise BroadcasterNotInitialized()
        return self._layer

    # =================== SALAS ===================

    async def join(self, room: str, connection: str):
        """Adiciona a conexão à sala (idempotente)"""
        await self.layer.group_add(room, connection)
        self._salas[connection].add(room)
        logger.debug(f"➕ {connection} entrou em {room}")

    async def leave(self, room: str, connection: str):
        """Remove a conexão da sala, tolerando quem não estava nela"""
        await self.layer.group_discard(room, connection)
        salas = self._salas.get(connection)
        if salas is not None:
            salas.discard(room)
            if not salas:
                del self._salas[connection]
        logger.debug(f"➖ {connection} saiu de {room}")

    async def leave_all(self, connection: str):
        """Remove a conexão de todas as salas, sem período de carência"""
        layer = self.layer
        for room in self._salas.pop(connection, set()):
            await layer.group_discard(room, connection)

    def rooms_of(self, connection: str) -> Set[str]:
        return set(self._salas.get(connection, set()))

    def members(self, room: str) -> Set[str]:
        """Conexões deste processo presentes na sala"""
        return {conexao for conexao, salas in self._salas.items() if room in salas}

    # =================== PUBLICAÇÃO ===================

    async def apublish(self, room: str, event: str, payload: Optional[Any] = None):
        """Entrega o evento aos membros atuais da sala"""
        await self.layer.group_send(room, {
            'type': TIPO_EVENTO_SALA,
            'event': event,
            'payload': payload,
        })
        logger.debug(f"📣 {event} -> {room}")

    def publish(self, room: str, event: str, payload: Optional[Any] = None):
        """Versão síncrona para views e serviços"""
        if not self.started:
            raise BroadcasterNotInitialized()
        async_to_sync(self.apublish)(room, event, payload)

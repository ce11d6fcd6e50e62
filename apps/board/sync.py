# apps/board/sync.py

"""
Reconciliação do estado do cliente

Mantém as listas locais (board de tarefas, chat e bandeja de
notificações) coerentes com os eventos recebidos das salas, sem refetch.
Usado por clientes Python e pelos testes de ponta a ponta.
"""

import logging
from collections import OrderedDict
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

# Colunas do board, na ordem de exibição
ORDEM_STATUS = ('To Do', 'In Progress', 'Done')


def _mesmo_id(a, b) -> bool:
    return a is not None and b is not None and str(a) == str(b)


class TaskBoard:
    """Tarefas do projeto visualizado"""

    def __init__(self, tasks: Optional[List[Dict]] = None):
        self.tasks = list(tasks or [])

    def _indice(self, task_id) -> Optional[int]:
        for i, tarefa in enumerate(self.tasks):
            if _mesmo_id(tarefa.get('id'), task_id):
                return i
        return None

    def get(self, task_id) -> Optional[Dict]:
        indice = self._indice(task_id)
        return None if indice is None else self.tasks[indice]

    def add_local(self, task: Dict):
        """Inserção otimista, confirmada depois pelo taskCreated de mesmo id"""
        self.apply_created(task)

    def apply_created(self, task: Dict):
        if self._indice(task.get('id')) is None:
            self.tasks.append(task)

    def apply_updated(self, task: Dict):
        indice = self._indice(task.get('id'))
        if indice is None:
            # Criação perdida
            self.tasks.append(task)
        else:
            self.tasks[indice] = task

    def apply_deleted(self, task_id):
        indice = self._indice(task_id)
        if indice is not None:
            del self.tasks[indice]

    def clear(self):
        self.tasks = []

    def by_status(self) -> 'OrderedDict[str, List[Dict]]':
        """Colunas na ordem fixa do board"""
        colunas = OrderedDict((status, []) for status in ORDEM_STATUS)
        for tarefa in self.tasks:
            colunas.setdefault(tarefa.get('status'), []).append(tarefa)
        return colunas


class ChatTranscript:
    """Mensagens na ordem de chegada"""

    def __init__(self, messages: Optional[List[Dict]] = None):
        self.messages = list(messages or [])

    def append(self, message: Dict):
        self.messages.append(message)

    def clear(self):
        self.messages = []


class NotificationTray:
    """Notificações, mais recentes primeiro"""

    def __init__(self, notifications: Optional[List[Dict]] = None):
        self.notifications = list(notifications or [])

    def prepend(self, notification: Dict):
        self.notifications.insert(0, notification)

    def replace(self, notification: Dict):
        for i, atual in enumerate(self.notifications):
            if _mesmo_id(atual.get('id'), notification.get('id')):
                self.notifications[i] = notification
                return

    def mark_all_read(self):
        for notificacao in self.notifications:
            notificacao['isRead'] = True

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self.notifications if not n.get('isRead'))


class ClientSyncSession:
    """
    Estado de um cliente conectado ao ws/sync/

    handshake() devolve os comandos de entrada em salas para cada
    (re)conexão: primeiro a sala do usuário, depois a do projeto.
    Eventos perdidos durante a queda não são recuperados.
    """

    def __init__(self, user_id, project_id=None):
        self.user_id = str(user_id)
        self.project_id = None if project_id is None else str(project_id)
        self.project: Optional[Dict] = None
        self.board = TaskBoard()
        self.transcript = ChatTranscript()
        self.tray = NotificationTray()

    def handshake(self) -> List[Dict]:
        comandos = [{'type': 'joinUserRoom', 'userId': self.user_id}]
        if self.project_id is not None:
            comandos.append({'type': 'joinProject', 'projectId': self.project_id})
        return comandos

    def view_project(self, project_id) -> List[Dict]:
        """Troca o projeto visualizado e devolve os comandos de sala"""
        comandos = []
        if self.project_id is not None:
            comandos.append({'type': 'leaveProject', 'projectId': self.project_id})
        self.project_id = str(project_id)
        self.project = None
        self.board.clear()
        self.transcript.clear()
        comandos.append({'type': 'joinProject', 'projectId': self.project_id})
        return comandos

    def apply(self, frame: Dict) -> bool:
        """
        Aplica um frame {"type", "message"} recebido do servidor
        Retorna False para tipos que não alteram o estado
        """
        handler = self._handlers().get(frame.get('type'))
        if handler is None:
            return False
        handler(frame.get('message'))
        return True

    def _handlers(self):
        return {
            'taskCreated': self.board.apply_created,
            'taskUpdated': self.board.apply_updated,
            'taskDeleted': self.board.apply_deleted,
            'newMessage': self.transcript.append,
            'newNotification': self.tray.prepend,
            'notificationUpdated': self.tray.replace,
            'allNotificationsRead': lambda _: self.tray.mark_all_read(),
            'projectUpdated': self._project_updated,
            'projectDeleted': self._project_deleted,
        }

    def _project_updated(self, project: Dict):
        if _mesmo_id(project.get('id'), self.project_id):
            self.project = project

    def _project_deleted(self, project_id):
        if _mesmo_id(project_id, self.project_id):
            logger.info(f"🗑️ Projeto {project_id} removido - limpando estado local")
            self.project = None
            self.board.clear()
            self.transcript.clear()

# apps/board/services.py

"""
Serviços de mutação do board

Cada operação grava (fase 1), relê a entidade populada, publica um
evento na sala do projeto e só então roda a decisão de notificações
(fase 2, best effort). O retorno é sempre um MutationOutcome.
"""

import logging
import mimetypes

from django.db import transaction

from apps.core.exceptions import ValidationFailed
from apps.core.forms import AUSENTE
from apps.core.models import Attachment, Project, Task
from apps.core.permissions import HivePermissions
from apps.core.utils import serializar_projeto, serializar_tarefa
from apps.notifications import decisions
from apps.notifications.emitter import NotificationEmitter
from apps.realtime.apps import get_broadcaster
from apps.realtime.broadcaster import project_room
from apps.realtime.outcome import MutationOutcome

logger = logging.getLogger(__name__)

# Nome do campo na API -> atributo do modelo
CAMPOS_TAREFA = {
    'title': 'title',
    'description': 'description',
    'status': 'status',
    'priority': 'priority',
    'dueDate': 'due_date',
}


def carregar_tarefa(pk):
    """Tarefa com todas as referências populadas"""
    return Task.objects.select_related(
        'project', 'assigned_to', 'created_by'
    ).prefetch_related('attachments').get(pk=pk)


def carregar_projeto(pk):
    return Project.objects.select_related('owner').prefetch_related('members').get(pk=pk)


class BaseMutationService:
    """Acesso encapsulado ao broadcaster e ao emissor"""

    def __init__(self, broadcaster=None, emitter=None):
        self._broadcaster = broadcaster
        self._emitter = emitter

    @property
    def broadcaster(self):
        return self._broadcaster or get_broadcaster()

    @property
    def emitter(self):
        return self._emitter or NotificationEmitter(self.broadcaster)

    def _publicar(self, outcome, project_id, evento, payload):
        outcome.attempt(evento, self.broadcaster.publish, project_room(project_id), evento, payload)

    def _notificar(self, outcome, rascunhos, ator, projeto, tarefa=None):
        for rascunho in rascunhos:
            outcome.attempt(
                f'notify:{rascunho.type}:{rascunho.recipient_id}',
                self.emitter.emit, rascunho, ator, projeto, tarefa,
            )


class TaskService(BaseMutationService):
    """Criação, edição, remoção e anexos de tarefas"""

    def create_task(self, projeto, ator, dados, responsavel=AUSENTE) -> MutationOutcome:
        if responsavel is not AUSENTE and responsavel is not None:
            self._validar_responsavel(responsavel, projeto)

        tarefa = Task(project=projeto, created_by=ator)
        for campo_api, valor in dados.items():
            setattr(tarefa, CAMPOS_TAREFA[campo_api], valor)
        if responsavel is not AUSENTE:
            tarefa.assigned_to = responsavel
        tarefa.save()
        logger.info(f"📝 Tarefa criada: {tarefa.title} ({projeto.name}) por {ator.username}")

        tarefa = carregar_tarefa(tarefa.pk)
        outcome = MutationOutcome(result=tarefa)
        self._publicar(outcome, projeto.pk, 'taskCreated', serializar_tarefa(tarefa))

        rascunhos = decisions.decide_task_notifications(
            decisions.CREATE, ator.pk, ator.username,
            after=decisions.TaskSnapshot.from_task(tarefa),
        )
        self._notificar(outcome, rascunhos, ator, tarefa.project, tarefa)
        return outcome

    def update_task(self, tarefa, ator, dados, responsavel=AUSENTE) -> MutationOutcome:
        # Reenviar o responsável atual não é uma nova atribuição
        if responsavel is not AUSENTE and responsavel is not None \
                and responsavel.pk != tarefa.assigned_to_id:
            self._validar_responsavel(responsavel, tarefa.project)

        antes = decisions.TaskSnapshot.from_task(tarefa)
        for campo_api, valor in dados.items():
            setattr(tarefa, CAMPOS_TAREFA[campo_api], valor)
        if responsavel is not AUSENTE:
            tarefa.assigned_to = responsavel
        tarefa.save()
        logger.info(f"✏️ Tarefa atualizada: {tarefa.title} por {ator.username}")

        tarefa = carregar_tarefa(tarefa.pk)
        outcome = MutationOutcome(result=tarefa)
        self._publicar(outcome, tarefa.project_id, 'taskUpdated', serializar_tarefa(tarefa))

        rascunhos = decisions.decide_task_notifications(
            decisions.UPDATE, ator.pk, ator.username,
            before=antes, after=decisions.TaskSnapshot.from_task(tarefa),
        )
        self._notificar(outcome, rascunhos, ator, tarefa.project, tarefa)
        return outcome

    def delete_task(self, tarefa, ator) -> MutationOutcome:
        antes = decisions.TaskSnapshot.from_task(tarefa)
        projeto = tarefa.project
        tarefa_id = str(tarefa.pk)

        tarefa.delete()
        logger.info(f"🗑️ Tarefa removida: {antes.title} por {ator.username}")

        outcome = MutationOutcome(result=tarefa_id)
        self._publicar(outcome, projeto.pk, 'taskDeleted', tarefa_id)

        rascunhos = decisions.decide_task_notifications(
            decisions.DELETE, ator.pk, ator.username, before=antes,
        )
        self._notificar(outcome, rascunhos, ator, projeto, None)
        return outcome

    def add_attachment(self, tarefa, ator, arquivo) -> MutationOutcome:
        mimetype = getattr(arquivo, 'content_type', None) \
            or mimetypes.guess_type(arquivo.name)[0] \
            or 'application/octet-stream'
        anexo = Attachment(task=tarefa, filename=arquivo.name, mimetype=mimetype)
        anexo.file.save(arquivo.name, arquivo, save=True)
        logger.info(f"📎 Anexo {anexo.filename} adicionado a {tarefa.title} por {ator.username}")

        tarefa = carregar_tarefa(tarefa.pk)
        outcome = MutationOutcome(result=(anexo, tarefa))
        self._publicar(outcome, tarefa.project_id, 'taskUpdated', serializar_tarefa(tarefa))

        rascunhos = decisions.decide_task_notifications(
            decisions.ATTACHMENT, ator.pk, ator.username,
            after=decisions.TaskSnapshot.from_task(tarefa),
        )
        self._notificar(outcome, rascunhos, ator, tarefa.project, tarefa)
        return outcome

    def _validar_responsavel(self, usuario, projeto):
        if not HivePermissions.pode_ser_responsavel(usuario, projeto):
            raise ValidationFailed('Assigned user is not a member of this project')


class ProjectService(BaseMutationService):
    """Criação, edição e remoção de projetos"""

    def create_project(self, ator, dados, membros=None) -> MutationOutcome:
        with transaction.atomic():
            projeto = Project.objects.create(
                owner=ator,
                name=dados['name'],
                description=dados.get('description', ''),
            )
            if membros:
                projeto.members.set(membros)
        logger.info(f"📁 Projeto criado: {projeto.name} por {ator.username}")

        projeto = carregar_projeto(projeto.pk)
        outcome = MutationOutcome(result=projeto)
        self._publicar(outcome, projeto.pk, 'projectCreated', serializar_projeto(projeto))

        rascunhos = decisions.decide_member_notifications(
            ator.pk, ator.username, projeto.name, [], [m.pk for m in membros or []],
        )
        self._notificar(outcome, rascunhos, ator, projeto)
        return outcome

    def update_project(self, projeto, ator, dados, membros=None) -> MutationOutcome:
        membros_antes = [m.pk for m in projeto.members.all()]

        with transaction.atomic():
            for campo, valor in dados.items():
                setattr(projeto, campo, valor)
            projeto.save()
            if membros is not None:
                projeto.members.set(membros)
        logger.info(f"✏️ Projeto atualizado: {projeto.name} por {ator.username}")

        projeto = carregar_projeto(projeto.pk)
        outcome = MutationOutcome(result=projeto)
        self._publicar(outcome, projeto.pk, 'projectUpdated', serializar_projeto(projeto))

        if membros is not None:
            rascunhos = decisions.decide_member_notifications(
                ator.pk, ator.username, projeto.name, membros_antes, [m.pk for m in membros],
            )
            self._notificar(outcome, rascunhos, ator, projeto)
        return outcome

    def delete_project(self, projeto, ator) -> MutationOutcome:
        projeto_id = str(projeto.pk)
        nome = projeto.name

        # Cascata: tarefas, anexos e mensagens
        projeto.delete()
        logger.info(f"🗑️ Projeto removido: {nome} por {ator.username}")

        outcome = MutationOutcome(result=projeto_id)
        self._publicar(outcome, projeto_id, 'projectDeleted', projeto_id)
        return outcome

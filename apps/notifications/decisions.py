# apps/notifications/decisions.py

"""
Decisão de notificações

Funções puras: recebem o estado anterior, o novo estado, o ator e o
tipo de mutação e devolvem rascunhos de notificação. Nada aqui toca o
banco ou o broadcaster. O ator nunca é notificado.
"""

from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional

CREATE = 'create'
UPDATE = 'update'
DELETE = 'delete'
ATTACHMENT = 'attachment'


@dataclass(frozen=True)
class TaskSnapshot:
    """Estado de uma tarefa no instante da mutação"""

    id: Optional[int]
    title: str
    project_name: str
    status: str = 'To Do'
    description: str = ''
    priority: str = 'Medium'
    due_date: Optional[date] = None
    assignee_id: Optional[int] = None

    @classmethod
    def from_task(cls, tarefa):
        return cls(
            id=tarefa.pk,
            title=tarefa.title,
            project_name=tarefa.project.name,
            status=tarefa.status,
            description=tarefa.description,
            priority=tarefa.priority,
            due_date=tarefa.due_date,
            assignee_id=tarefa.assigned_to_id,
        )

    def details_differ(self, other: 'TaskSnapshot') -> bool:
        return (
            self.title != other.title
            or self.description != other.description
            or self.priority != other.priority
            or self.due_date != other.due_date
        )


@dataclass(frozen=True)
class NotificationDraft:
    recipient_id: int
    type: str
    message: str


def _draft(recipient_id, tipo, mensagem):
    return NotificationDraft(recipient_id=recipient_id, type=tipo, message=mensagem)


def decide_task_notifications(kind: str, actor_id: int, actor_name: str,
                              before: Optional[TaskSnapshot] = None,
                              after: Optional[TaskSnapshot] = None) -> List[NotificationDraft]:
    """
    Rascunhos gerados por uma mutação de tarefa

    create e attachment usam `after`, delete usa `before`,
    update compara os dois.
    """
    if kind == CREATE:
        if after.assignee_id is not None and after.assignee_id != actor_id:
            return [_draft(
                after.assignee_id, 'task_assigned',
                f'You\'ve been assigned to new task: "{after.title}" in project "{after.project_name}".',
            )]
        return []

    if kind == DELETE:
        if before.assignee_id is not None and before.assignee_id != actor_id:
            return [_draft(
                before.assignee_id, 'task_deleted',
                f'Your assigned task: "{before.title}" was deleted by {actor_name} '
                f'from project "{before.project_name}".',
            )]
        return []

    if kind == ATTACHMENT:
        if after.assignee_id is not None and after.assignee_id != actor_id:
            return [_draft(
                after.assignee_id, 'task_updated',
                f'{actor_name} added an attachment to your task: "{after.title}" '
                f'in project "{after.project_name}".',
            )]
        return []

    if kind == UPDATE:
        return _decide_update(actor_id, actor_name, before, after)

    raise ValueError(f'Unknown mutation kind: {kind}')


def _decide_update(actor_id, actor_name, before, after):
    rascunhos = []

    if before.assignee_id != after.assignee_id:
        if after.assignee_id is not None and after.assignee_id != actor_id:
            rascunhos.append(_draft(
                after.assignee_id, 'task_assigned',
                f'You\'ve been assigned to task: "{after.title}" in project "{after.project_name}".',
            ))
        if before.assignee_id is not None and before.assignee_id != actor_id:
            rascunhos.append(_draft(
                before.assignee_id, 'task_unassigned',
                f'You\'ve been unassigned from task: "{after.title}" in project "{after.project_name}".',
            ))
        return rascunhos

    # Responsável inalterado: no máximo uma notificação
    if after.assignee_id is None or after.assignee_id == actor_id:
        return rascunhos

    if before.status != after.status:
        rascunhos.append(_draft(
            after.assignee_id, 'task_status_change',
            f'{actor_name} changed status of your task "{after.title}" to "{after.status}" '
            f'in project "{after.project_name}".',
        ))
    elif before.details_differ(after):
        rascunhos.append(_draft(
            after.assignee_id, 'task_updated',
            f'{actor_name} updated details of your task: "{after.title}" '
            f'in project "{after.project_name}".',
        ))

    return rascunhos


def decide_member_notifications(actor_id: int, actor_name: str, project_name: str,
                                previous_member_ids: Iterable[int],
                                new_member_ids: Iterable[int]) -> List[NotificationDraft]:
    """Um project_member_added para cada membro novo que não seja o ator"""
    anteriores = set(previous_member_ids)
    return [
        _draft(
            member_id, 'project_member_added',
            f'{actor_name} added you to project "{project_name}".',
        )
        for member_id in sorted(set(new_member_ids) - anteriores)
        if member_id != actor_id
    ]

# apps/core/utils.py

"""
Serialização dos modelos para JSON (eventos em tempo real e API)

Todas as referências saem "populadas" e todos os ids são strings,
para que o cliente compare ids sem se preocupar com o tipo.
"""

from typing import Dict, List, Optional

from django.db.models import Count


def _id(valor) -> Optional[str]:
    return None if valor is None else str(valor)


def _iso(data) -> Optional[str]:
    return data.isoformat() if data else None


def serializar_usuario(usuario) -> Optional[Dict]:
    if usuario is None:
        return None
    return {'id': _id(usuario.pk), 'username': usuario.username}


def serializar_usuario_completo(usuario) -> Dict:
    """Usado nas respostas de autenticação"""
    return {
        'id': _id(usuario.pk),
        'username': usuario.username,
        'email': usuario.email,
    }


def serializar_projeto(projeto) -> Dict:
    return {
        'id': _id(projeto.pk),
        'name': projeto.name,
        'description': projeto.description,
        'owner': serializar_usuario(projeto.owner),
        'members': [serializar_usuario(m) for m in projeto.members.all()],
        'createdAt': _iso(projeto.criado_em),
        'updatedAt': _iso(projeto.atualizado_em),
    }


def serializar_anexo(anexo) -> Dict:
    return {
        'id': _id(anexo.pk),
        'filename': anexo.filename,
        'filePath': anexo.file.url if anexo.file else None,
        'mimetype': anexo.mimetype,
        'uploadedAt': _iso(anexo.uploaded_at),
    }


def serializar_tarefa(tarefa) -> Dict:
    return {
        'id': _id(tarefa.pk),
        'project': {'id': _id(tarefa.project_id), 'name': tarefa.project.name},
        'title': tarefa.title,
        'description': tarefa.description,
        'status': tarefa.status,
        'priority': tarefa.priority,
        'dueDate': _iso(tarefa.due_date),
        'assignedTo': serializar_usuario(tarefa.assigned_to),
        'createdBy': serializar_usuario(tarefa.created_by),
        'attachments': [serializar_anexo(a) for a in tarefa.attachments.all()],
        'createdAt': _iso(tarefa.criado_em),
        'updatedAt': _iso(tarefa.atualizado_em),
    }


def serializar_notificacao(notificacao) -> Dict:
    projeto = notificacao.project
    tarefa = notificacao.task
    return {
        'id': _id(notificacao.pk),
        'recipient': _id(notificacao.recipient_id),
        'sender': serializar_usuario(notificacao.sender),
        'project': {'id': _id(projeto.pk), 'name': projeto.name} if projeto else None,
        'task': {'id': _id(tarefa.pk), 'title': tarefa.title} if tarefa else None,
        'type': notificacao.type,
        'message': notificacao.message,
        'isRead': notificacao.is_read,
        'createdAt': _iso(notificacao.criado_em),
    }


def serializar_mensagem(mensagem) -> Dict:
    return {
        'id': _id(mensagem.pk),
        'project': _id(mensagem.project_id),
        'sender': serializar_usuario(mensagem.sender),
        'content': mensagem.content,
        'timestamp': _iso(mensagem.timestamp),
    }


def montar_resumo_dashboard(projeto) -> Dict[str, List[Dict]]:
    """
    Contagem de tarefas por status e por responsável

    Só aparecem os grupos que têm tarefas. Status seguem a ordem
    das colunas do board, tarefas sem responsável viram "Unassigned".
    """
    from .models import Task

    tarefas = Task.objects.filter(project=projeto)

    por_status = {
        linha['status']: linha['count']
        for linha in tarefas.values('status').annotate(count=Count('id'))
    }
    tasks_by_status = [
        {'status': status, 'count': por_status[status]}
        for status, _ in Task.STATUS_CHOICES
        if status in por_status
    ]

    tasks_by_assignee = [
        {
            'assigneeId': _id(linha['assigned_to']),
            'username': linha['assigned_to__username'] or 'Unassigned',
            'count': linha['count'],
        }
        for linha in tarefas.values('assigned_to', 'assigned_to__username')
        .annotate(count=Count('id'))
        .order_by('assigned_to__username')
    ]

    return {
        'tasksByStatus': tasks_by_status,
        'tasksByAssignee': tasks_by_assignee,
    }

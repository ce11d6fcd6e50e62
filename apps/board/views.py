# apps/board/views.py

import logging

from django.db.models import Q
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from apps.core.exceptions import ValidationFailed
from apps.core.forms import (
    AttachmentForm,
    ProjectForm,
    TaskForm,
    resolver_membros,
    resolver_responsavel,
    validar_nome_projeto,
)
from apps.core.models import Message, Project, Task
from apps.core.permissions import (
    api_view,
    buscar_ou_404,
    garantir_acesso_projeto,
    garantir_acesso_tarefa,
    garantir_dono_projeto,
    ler_json,
    requer_login_api,
)
from apps.core.utils import (
    montar_resumo_dashboard,
    serializar_anexo,
    serializar_mensagem,
    serializar_projeto,
    serializar_tarefa,
)

from .services import ProjectService, TaskService

logger = logging.getLogger(__name__)


def _projetos():
    return Project.objects.select_related('owner').prefetch_related('members')


def _tarefas():
    return Task.objects.select_related(
        'project', 'assigned_to', 'created_by'
    ).prefetch_related('attachments')


# =================== PROJETOS ===================

@csrf_exempt
@require_http_methods(['GET', 'POST'])
@api_view
@requer_login_api
def projetos_view(request):
    """
    GET: projetos onde o usuário é dono ou membro
    POST: cria projeto com o usuário como dono
    """
    if request.method == 'GET':
        projetos = _projetos().filter(
            Q(owner=request.user) | Q(members=request.user)
        ).distinct()
        return JsonResponse([serializar_projeto(p) for p in projetos], safe=False)

    dados = ler_json(request)
    campos = ProjectForm(dados).dados_validos()
    membros = resolver_membros(dados, request.user)
    validar_nome_projeto(request.user, campos['name'])

    outcome = ProjectService().create_project(request.user, campos, membros)
    return JsonResponse(serializar_projeto(outcome.result), status=201)


@csrf_exempt
@require_http_methods(['GET', 'PUT', 'DELETE'])
@api_view
@requer_login_api
def projeto_detalhe_view(request, project_id):
    projeto = buscar_ou_404(_projetos(), project_id, 'Project')

    if request.method == 'GET':
        garantir_acesso_projeto(request.user, projeto)
        return JsonResponse(serializar_projeto(projeto))

    garantir_dono_projeto(request.user, projeto)

    if request.method == 'DELETE':
        ProjectService().delete_project(projeto, request.user)
        return JsonResponse({'message': 'Project removed'})

    dados = ler_json(request)
    campos = ProjectForm(dados, parcial=True).dados_validos()
    membros = resolver_membros(dados, projeto.owner)
    if 'name' in campos:
        validar_nome_projeto(projeto.owner, campos['name'], projeto)

    outcome = ProjectService().update_project(projeto, request.user, campos, membros)
    return JsonResponse(serializar_projeto(outcome.result))


@require_GET
@api_view
@requer_login_api
def dashboard_resumo_view(request, project_id):
    projeto = buscar_ou_404(Project.objects.all(), project_id, 'Project')
    garantir_acesso_projeto(request.user, projeto)
    return JsonResponse(montar_resumo_dashboard(projeto))


@require_GET
@api_view
@requer_login_api
def chat_historico_view(request, project_id):
    """Mensagens do projeto em ordem cronológica"""
    projeto = buscar_ou_404(Project.objects.all(), project_id, 'Project')
    garantir_acesso_projeto(request.user, projeto)

    mensagens = Message.objects.filter(project=projeto).select_related('sender')
    return JsonResponse([serializar_mensagem(m) for m in mensagens], safe=False)


# =================== TAREFAS ===================

@csrf_exempt
@require_http_methods(['GET', 'POST'])
@api_view
@requer_login_api
def tarefas_projeto_view(request, project_id):
    """
    GET: tarefas do projeto com ?search= e ?status= (All = sem filtro)
    POST: cria tarefa no projeto
    """
    projeto = buscar_ou_404(Project.objects.select_related('owner'), project_id, 'Project')
    garantir_acesso_projeto(request.user, projeto)

    if request.method == 'GET':
        tarefas = _tarefas().filter(project=projeto)

        busca = request.GET.get('search', '').strip()
        if busca:
            tarefas = tarefas.filter(
                Q(title__icontains=busca) | Q(description__icontains=busca)
            )

        status = request.GET.get('status', '').strip()
        if status and status != 'All':
            if status not in dict(Task.STATUS_CHOICES):
                raise ValidationFailed('Invalid status filter')
            tarefas = tarefas.filter(status=status)

        return JsonResponse([serializar_tarefa(t) for t in tarefas], safe=False)

    dados = ler_json(request)
    campos = TaskForm(dados).dados_validos()
    responsavel = resolver_responsavel(dados)

    outcome = TaskService().create_task(projeto, request.user, campos, responsavel)
    return JsonResponse(serializar_tarefa(outcome.result), status=201)


@csrf_exempt
@require_http_methods(['GET', 'PUT', 'DELETE'])
@api_view
@requer_login_api
def tarefa_detalhe_view(request, task_id):
    tarefa = buscar_ou_404(_tarefas(), task_id, 'Task')
    garantir_acesso_tarefa(request.user, tarefa)

    if request.method == 'GET':
        return JsonResponse(serializar_tarefa(tarefa))

    if request.method == 'DELETE':
        outcome = TaskService().delete_task(tarefa, request.user)
        return JsonResponse({'message': 'Task removed', 'id': outcome.result})

    dados = ler_json(request)
    campos = TaskForm(dados, parcial=True).dados_validos()
    responsavel = resolver_responsavel(dados)

    outcome = TaskService().update_task(tarefa, request.user, campos, responsavel)
    return JsonResponse(serializar_tarefa(outcome.result))


@csrf_exempt
@require_POST
@api_view
@requer_login_api
def upload_anexo_view(request, task_id):
    """Recebe multipart com o campo 'attachment'"""
    tarefa = buscar_ou_404(_tarefas(), task_id, 'Task')
    garantir_acesso_tarefa(request.user, tarefa)

    form = AttachmentForm(request.POST, request.FILES)
    if not form.is_valid():
        erros = form.errors.get('attachment')
        raise ValidationFailed(erros[0] if erros else 'No file uploaded')

    outcome = TaskService().add_attachment(tarefa, request.user, form.cleaned_data['attachment'])
    anexo, tarefa = outcome.result
    return JsonResponse({
        'message': 'File uploaded successfully',
        'attachment': serializar_anexo(anexo),
        'task': serializar_tarefa(tarefa),
    })

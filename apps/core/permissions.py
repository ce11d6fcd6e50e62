# apps/core/permissions.py

import json
import logging
from functools import wraps

from django.conf import settings
from django.http import JsonResponse

from .exceptions import HiveError, NotAuthenticated, NotFound, PermissionDenied, ValidationFailed

logger = logging.getLogger(__name__)


class HivePermissions:
    """
    Sistema de permissões do Hive Board
    Baseado em participação no projeto: dono ou membro
    """

    @staticmethod
    def is_owner(user, projeto):
        """Verifica se é o dono do projeto"""
        return projeto.is_owner(user)

    @staticmethod
    def tem_acesso_projeto(user, projeto):
        """Dono ou membro podem ler o projeto, o board e o chat"""
        return projeto.has_participant(user)

    @staticmethod
    def pode_editar_projeto(user, projeto):
        """Apenas o dono altera ou remove o projeto"""
        return projeto.is_owner(user)

    @staticmethod
    def tem_acesso_tarefa(user, tarefa):
        """
        Acesso às rotas de tarefa

        Com HIVE_ENFORCE_TASK_MEMBERSHIP desligado qualquer usuário
        autenticado pode operar a tarefa.
        """
        if not user.is_authenticated:
            return False
        if not settings.HIVE_ENFORCE_TASK_MEMBERSHIP:
            return True
        return tarefa.project.has_participant(user)

    @staticmethod
    def pode_ser_responsavel(user, projeto):
        """Responsável precisa participar do projeto quando a regra está ativa"""
        if not settings.HIVE_ENFORCE_ASSIGNEE_MEMBERSHIP:
            return True
        return projeto.has_participant(user)


# Verificações que levantam erros de domínio

def garantir_acesso_projeto(user, projeto):
    if not HivePermissions.tem_acesso_projeto(user, projeto):
        raise PermissionDenied('Not authorized to access this project')


def garantir_dono_projeto(user, projeto):
    if not HivePermissions.pode_editar_projeto(user, projeto):
        raise PermissionDenied('Only the project owner can perform this action')


def garantir_acesso_tarefa(user, tarefa):
    if not HivePermissions.tem_acesso_tarefa(user, tarefa):
        raise PermissionDenied('Not authorized to access this task')


def buscar_ou_404(queryset, pk, nome='Resource'):
    """
    Busca por id numérico

    Id malformado é erro de validação, id inexistente é 404.
    """
    try:
        pk = int(pk)
    except (TypeError, ValueError):
        raise ValidationFailed(f'Invalid {nome.lower()} id')

    try:
        return queryset.get(pk=pk)
    except queryset.model.DoesNotExist:
        raise NotFound(f'{nome} not found')


def ler_json(request):
    """Corpo JSON da requisição como dict"""
    if not request.body:
        return {}
    try:
        dados = json.loads(request.body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationFailed('Invalid JSON body')
    if not isinstance(dados, dict):
        raise ValidationFailed('JSON body must be an object')
    return dados


# Decoradores para views

def api_view(view_func):
    """
    Decorador das views JSON

    Converte erros de domínio em {"success": false, "error": ...} com o
    status correspondente. Erros inesperados viram 500 e são logados.
    """

    @wraps(view_func)
    def wrapped_view(request, *args, **kwargs):
        try:
            return view_func(request, *args, **kwargs)
        except HiveError as e:
            return JsonResponse({'success': False, 'error': e.message}, status=e.status_code)
        except Exception as e:
            logger.exception(f"❌ Erro inesperado em {request.method} {request.path}")
            erro = str(e) if settings.DEBUG else 'Server error'
            return JsonResponse({'success': False, 'error': erro}, status=500)

    return wrapped_view


def requer_login_api(view_func):
    """
    Decorador que requer usuário autenticado
    Levanta NotAuthenticated (401) ao invés de redirecionar
    """

    @wraps(view_func)
    def wrapped_view(request, *args, **kwargs):
        if not request.user.is_authenticated:
            raise NotAuthenticated()
        return view_func(request, *args, **kwargs)

    return wrapped_view

# apps/core/views.py

import logging

from django.conf import settings
from django.contrib.auth import login, logout
from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from .auth_service import auth_service  # Importando nosso serviço encapsulado
from .exceptions import NotAuthenticated, ValidationFailed
from .models import User
from .permissions import api_view, ler_json
from .utils import serializar_usuario_completo

logger = logging.getLogger(__name__)


def _resposta_autenticada(request, usuario, status=200):
    """
    Corpo {success, token, userId, username, email} e cookie com o token
    A sessão do Django também é aberta para clientes de navegador
    """
    token = auth_service.emitir_token(usuario)
    login(request, usuario, backend='django.contrib.auth.backends.ModelBackend')

    dados = serializar_usuario_completo(usuario)
    resposta = JsonResponse({
        'success': True,
        'token': token,
        'userId': dados['id'],
        'username': dados['username'],
        'email': dados['email'],
    }, status=status)
    resposta.set_cookie(
        settings.HIVE_TOKEN_COOKIE,
        token,
        max_age=auth_service.max_age,
        httponly=True,
        samesite='Lax',
        secure=not settings.DEBUG,
    )
    return resposta


@csrf_exempt
@require_POST
@api_view
def registro_view(request):
    """
    Registro de novo usuário

    Toda validação e criação fica no serviço encapsulado
    """
    sucesso, mensagem, usuario = auth_service.registrar_usuario(ler_json(request))
    if not sucesso:
        raise ValidationFailed(mensagem)

    return _resposta_autenticada(request, usuario, status=201)


@csrf_exempt
@require_POST
@api_view
def login_view(request):
    dados = ler_json(request)
    email, password = dados.get('email'), dados.get('password')
    if not isinstance(email, str) or not isinstance(password, str) or not email or not password:
        raise ValidationFailed('Please enter all fields')

    sucesso, mensagem, usuario = auth_service.fazer_login(email, password)
    if not sucesso:
        raise NotAuthenticated(mensagem)

    logger.info(f"🔑 Login: {usuario.username}")
    return _resposta_autenticada(request, usuario)


@csrf_exempt
@require_http_methods(['GET', 'POST'])
@api_view
def logout_view(request):
    """
    Encerra a sessão e apaga o cookie do token
    O token em si continua válido até expirar
    """
    if request.user.is_authenticated:
        logger.info(f"👋 Logout: {request.user.username}")
    logout(request)

    resposta = JsonResponse({'success': True, 'message': 'Logged out successfully'})
    resposta.delete_cookie(settings.HIVE_TOKEN_COOKIE)
    return resposta


@require_GET
def health_check(request):
    """
    Health check para monitoramento
    """
    try:
        # Verificar conexão com banco
        User.objects.count()

        # Verificar cache (Redis em produção)
        from django.core.cache import cache
        cache.set('health_check', 'ok', 60)
        cache.get('health_check')

        status = {
            'status': 'healthy',
            'database': 'ok',
            'cache': 'ok',
            'timestamp': timezone.now().isoformat(),
            'version': '0.1.0'
        }

        return JsonResponse(status)

    except Exception as e:
        logger.exception("❌ Health check falhou")
        status = {
            'status': 'unhealthy',
            'error': str(e),
            'timestamp': timezone.now().isoformat(),
            'version': '0.1.0'
        }

        return JsonResponse(status, status=500)

# apps/core/middleware.py

import logging

from django.conf import settings

from .auth_service import auth_service

logger = logging.getLogger(__name__)


def extrair_token(request):
    """Token do header Authorization: Bearer ou do cookie"""
    cabecalho = request.META.get('HTTP_AUTHORIZATION', '')
    if cabecalho.startswith('Bearer '):
        return cabecalho[len('Bearer '):].strip()
    return request.COOKIES.get(settings.HIVE_TOKEN_COOKIE)


class TokenAuthenticationMiddleware:
    """
    Middleware que autentica requisições pelo token assinado

    Atua depois do AuthenticationMiddleware: se houver token válido ele
    define request.user, senão a sessão do Django continua valendo.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        token = extrair_token(request)
        if token:
            usuario = auth_service.resolver_token(token)
            if usuario is not None:
                request.user = usuario
            else:
                logger.debug(f"Token rejeitado em {request.path}")

        return self.get_response(request)

# apps/realtime/middleware.py

import logging
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from django.conf import settings

logger = logging.getLogger(__name__)


@database_sync_to_async
def resolver_usuario(token):
    from apps.core.auth_service import auth_service
    return auth_service.resolver_token(token)


def extrair_token_scope(scope):
    """Token da query string (?token=) ou do cookie da conexão"""
    query = parse_qs(scope.get('query_string', b'').decode())
    tokens = query.get('token')
    if tokens:
        return tokens[0]
    return scope.get('cookies', {}).get(settings.HIVE_TOKEN_COOKIE)


class TokenAuthMiddleware(BaseMiddleware):
    """
    Autentica a conexão WebSocket pelo token assinado

    Fica dentro do AuthMiddlewareStack: se o token for válido ele
    substitui scope['user'], senão vale o usuário da sessão.
    """

    async def __call__(self, scope, receive, send):
        token = extrair_token_scope(scope)
        if token:
            usuario = await resolver_usuario(token)
            if usuario is not None:
                scope = dict(scope, user=usuario)
            else:
                logger.warning("❌ Token WebSocket inválido ou expirado")

        return await super().__call__(scope, receive, send)

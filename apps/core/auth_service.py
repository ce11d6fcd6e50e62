# apps/core/auth_service.py

"""
Serviço de Autenticação - Encapsula registro, login e o token de identidade

O token é assinado com a SECRET_KEY (django.core.signing) e expira
após HIVE_TOKEN_MAX_AGE segundos. Ele é aceito tanto nas rotas HTTP
quanto na conexão WebSocket.
"""

import logging
from typing import Dict, Optional, Tuple

from django.conf import settings
from django.contrib.auth import authenticate
from django.core import signing
from django.db.models import Q

from .models import User

logger = logging.getLogger(__name__)


class AuthenticationService:
    """
    Serviço encapsulado para gerenciar identidade

    - Registro com unicidade de username/email
    - Login por email + senha
    - Emissão e validação do token assinado
    """

    def __init__(self, max_age: Optional[int] = None, salt: Optional[str] = None):
        # Atributos privados - encapsulados
        self._max_age = max_age
        self._salt = salt

    @property
    def max_age(self) -> int:
        return self._max_age or settings.HIVE_TOKEN_MAX_AGE

    @property
    def salt(self) -> str:
        return self._salt or settings.HIVE_TOKEN_SALT

    def registrar_usuario(self, dados: Dict) -> Tuple[bool, str, Optional[User]]:
        """
        Cria novo usuário com validações encapsuladas

        Returns:
            Tuple[sucesso, mensagem, usuario_criado]
        """
        validacao_ok, erro_validacao = self._validar_dados_registro(dados)
        if not validacao_ok:
            return False, erro_validacao, None

        username = dados['username'].strip()
        email = self._normalizar_email(dados['email'])

        if self._usuario_existe(username, email):
            return False, 'User with that email or username already exists', None

        usuario = User.objects.create_user(
            username=username,
            email=email,
            password=dados['password'],  # Django já faz hash automaticamente
        )
        logger.info(f"👤 Usuário registrado: {usuario.username}")
        return True, 'User registered', usuario

    def fazer_login(self, email: str, password: str) -> Tuple[bool, str, Optional[User]]:
        """
        Autentica por email + senha

        Returns:
            Tuple[sucesso, mensagem, usuario]
        """
        if not email or not password:
            return False, 'Please enter all fields', None

        usuario = self._autenticar_usuario(self._normalizar_email(email), password)
        if usuario is None:
            logger.warning(f"⚠️ Tentativa de login falhada para: {email}")
            return False, 'Invalid credentials', None

        return True, f"Welcome, {usuario.username}!", usuario

    def emitir_token(self, usuario: User) -> str:
        """Gera token assinado com o id do usuário"""
        return signing.dumps({'id': usuario.pk}, salt=self.salt)

    def resolver_token(self, token: str) -> Optional[User]:
        """
        Valida o token e retorna o usuário

        Retorna None se o token estiver malformado, expirado ou o
        usuário não existir mais.
        """
        if not token:
            return None

        try:
            dados = signing.loads(token, salt=self.salt, max_age=self.max_age)
        except signing.SignatureExpired:
            logger.info("⌛ Token expirado")
            return None
        except signing.BadSignature:
            logger.warning("❌ Token com assinatura inválida")
            return None

        try:
            return User.objects.get(pk=dados.get('id'), is_active=True)
        except (User.DoesNotExist, ValueError, TypeError):
            return None

    # =================== MÉTODOS PRIVADOS (ENCAPSULADOS) ===================

    def _validar_dados_registro(self, dados: Dict) -> Tuple[bool, str]:
        """Valida dados de entrada do registro"""
        for campo in ['username', 'email', 'password']:
            valor = dados.get(campo)
            if not isinstance(valor, str) or not valor.strip():
                return False, 'Please enter all fields'

        email = dados['email'].strip()
        if '@' not in email or '.' not in email.split('@')[-1]:
            return False, 'Invalid email'

        username = dados['username'].strip()
        if ' ' in username or len(username) < 3:
            return False, 'Username must have at least 3 characters and no spaces'

        return True, ''

    def _normalizar_email(self, email: str) -> str:
        return (email or '').strip().lower()

    def _usuario_existe(self, username: str, email: str) -> bool:
        return User.objects.filter(
            Q(username=username) | Q(email=email)
        ).exists()

    def _autenticar_usuario(self, email: str, password: str) -> Optional[User]:
        """Autentica pelo email, resolvendo o username do backend padrão"""
        try:
            user_obj = User.objects.get(email=email, is_active=True)
        except User.DoesNotExist:
            return None

        return authenticate(username=user_obj.username, password=password)


# Instância global do serviço
auth_service = AuthenticationService()

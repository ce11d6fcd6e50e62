# apps/core/exceptions.py

"""
Erros de domínio do caminho principal (antes de qualquer escrita)

Cada erro carrega o status HTTP que o decorator api_view devolve.
Erros do caminho de efeitos colaterais (broadcast/notificação) não
usam estas classes: são contidos em MutationOutcome.
"""


class HiveError(Exception):
    """Base dos erros de domínio"""

    status_code = 400
    default_message = 'Requisição inválida'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailed(HiveError):
    """Campo obrigatório ausente, id malformado ou valor fora do enum"""

    status_code = 400
    default_message = 'Dados inválidos'


class NotAuthenticated(HiveError):
    status_code = 401
    default_message = 'Not authorized, no token provided'


class PermissionDenied(HiveError):
    """Ator sem direito sobre o recurso"""

    status_code = 403
    default_message = 'Not authorized'


class NotFound(HiveError):
    status_code = 404
    default_message = 'Not found'

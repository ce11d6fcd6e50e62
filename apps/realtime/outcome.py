# apps/realtime/outcome.py

"""
Resultado de uma mutação em duas fases

Fase 1 (commit) precisa dar certo, senão a operação falha.
Fase 2 (broadcast e notificações) é best effort: cada etapa é tentada
isoladamente, falhas são logadas e registradas, nunca propagadas.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, List

logger = logging.getLogger(__name__)


@dataclass
class SideEffectError:
    step: str
    error: str


@dataclass
class MutationOutcome:
    result: Any
    side_effect_errors: List[SideEffectError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.side_effect_errors

    def attempt(self, step: str, func, *args, **kwargs):
        """Executa uma etapa de efeito colateral sem deixar o erro escapar"""
        try:
            return func(*args, **kwargs)
        except Exception as e:
            logger.exception(f"⚠️ Efeito colateral falhou: {step}")
            self.side_effect_errors.append(SideEffectError(step=step, error=str(e)))
            return None

    async def aattempt(self, step: str, func, *args, **kwargs):
        """Versão assíncrona de attempt, para os consumers"""
        try:
            return await func(*args, **kwargs)
        except Exception as e:
            logger.exception(f"⚠️ Efeito colateral falhou: {step}")
            self.side_effect_errors.append(SideEffectError(step=step, error=str(e)))
            return None

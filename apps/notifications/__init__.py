# apps/notifications/__init__.py

"""
Notifications - Notificações por usuário

Funcionalidades:
- Decisão pura de quem recebe o quê após cada mutação
- Emissor que persiste e publica na sala do usuário
- API de leitura e marcação como lida
"""

# apps/__init__.py

"""
Hive Board - Aplicações Django

Este pacote contém todas as aplicações do sistema:
- core: Models principais, autenticação e permissões
- realtime: Broadcaster de salas sobre o channel layer
- board: API do Kanban, chat e WebSocket de sincronização
- notifications: Decisão, emissão e leitura de notificações
"""

__version__ = '0.1.0'
__author__ = 'Equipe Hive'

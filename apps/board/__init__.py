# apps/board/__init__.py

"""
Board - Aplicação Kanban do Hive Board

Funcionalidades:
- API JSON de projetos, tarefas, anexos, chat e dashboard
- Serviços de mutação com broadcast e notificações
- WebSocket de sincronização (salas, chat, heartbeat)
- Camada de reconciliação do estado do cliente
"""

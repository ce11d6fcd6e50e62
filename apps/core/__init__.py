# apps/core/__init__.py

"""
Core - Aplicação principal do Hive Board

Contém:
- Models (User, Project, Task, Attachment, Notification, Message)
- Autenticação por token assinado
- Sistema de permissões e erros de domínio
- Serialização para a API e para os eventos em tempo real
- Comando de seed para desenvolvimento
"""

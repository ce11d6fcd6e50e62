# apps/realtime/__init__.py

"""
Realtime - Salas e entrega de eventos

Funcionalidades:
- Broadcaster sobre o channel layer (salas de projeto e de usuário)
- Autenticação da conexão WebSocket por token
"""

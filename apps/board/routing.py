# apps/board/routing.py

from django.urls import re_path
from . import consumers

# Rota WebSocket única - salas são escolhidas por comando do cliente
websocket_urlpatterns = [
    re_path(r'ws/sync/$', consumers.SyncConsumer.as_asgi()),
]

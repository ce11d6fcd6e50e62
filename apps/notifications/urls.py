# apps/notifications/urls.py

from django.urls import path

from . import views

app_name = 'notifications'

urlpatterns = [
    path('', views.listar_notificacoes, name='listar'),
    path('mark-all-read/', views.marcar_todas_como_lidas, name='marcar_todas'),
    path('<str:notification_id>/read/', views.marcar_como_lida, name='marcar_lida'),
]

# apps/board/urls.py

from django.urls import path

from . import views

app_name = 'board'

urlpatterns = [
    # Projetos
    path('projects/', views.projetos_view, name='projetos'),
    path('projects/<str:project_id>/', views.projeto_detalhe_view, name='projeto_detalhe'),
    path('projects/<str:project_id>/dashboard-summary/', views.dashboard_resumo_view, name='dashboard_resumo'),
    path('projects/<str:project_id>/chat/', views.chat_historico_view, name='chat_historico'),

    # Tarefas
    path('projects/<str:project_id>/tasks/', views.tarefas_projeto_view, name='tarefas_projeto'),
    path('tasks/<str:task_id>/', views.tarefa_detalhe_view, name='tarefa_detalhe'),
    path('tasks/<str:task_id>/upload/', views.upload_anexo_view, name='upload_anexo'),
]

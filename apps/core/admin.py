# apps/core/admin.py

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.db.models import Count
from django.utils.html import format_html

from .models import Attachment, Message, Notification, Project, Task, User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Admin customizado para o modelo User"""

    list_display = ['username', 'email', 'is_active', 'is_staff', 'date_joined']
    list_filter = ['is_staff', 'is_active', 'date_joined']
    search_fields = ['username', 'email']
    ordering = ['-date_joined']

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('username', 'email', 'password1', 'password2'),
        }),
    )


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    """Admin para gerenciamento de projetos"""

    list_display = ['name', 'owner', 'membros_count', 'tarefas_count', 'criado_em']
    list_filter = ['criado_em']
    search_fields = ['name', 'description', 'owner__username']
    filter_horizontal = ['members']
    readonly_fields = ['criado_em', 'atualizado_em']

    fieldsets = (
        ('Informações Básicas', {
            'fields': ('name', 'description')
        }),
        ('Equipe', {
            'fields': ('owner', 'members')
        }),
        ('Datas', {
            'fields': ('criado_em', 'atualizado_em'),
            'classes': ('collapse',)
        })
    )

    def get_queryset(self, request):
        return super().get_queryset(request).annotate(
            _membros=Count('members', distinct=True),
            _tarefas=Count('tasks', distinct=True),
        )

    def membros_count(self, obj):
        return obj._membros

    membros_count.short_description = 'Membros'

    def tarefas_count(self, obj):
        return obj._tarefas

    tarefas_count.short_description = 'Tarefas'


class AttachmentInline(admin.TabularInline):
    model = Attachment
    extra = 0
    readonly_fields = ['uploaded_at']


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    """Admin para tarefas do board"""

    list_display = ['title', 'project', 'status_badge', 'priority', 'assigned_to', 'due_date']
    list_filter = ['status', 'priority', 'project']
    search_fields = ['title', 'description']
    raw_id_fields = ['assigned_to', 'created_by']
    readonly_fields = ['criado_em', 'atualizado_em']
    inlines = [AttachmentInline]

    def status_badge(self, obj):
        """Exibe o status com badge colorido"""
        cores = {
            'To Do': '#6B7280',  # cinza
            'In Progress': '#F59E0B',  # amarelo
            'Done': '#10B981',  # verde
        }
        cor = cores.get(obj.status, '#6B7280')
        return format_html(
            '<span style="background-color: {}; color: white; '
            'padding: 3px 8px; border-radius: 4px; font-size: 11px;">{}</span>',
            cor, obj.get_status_display()
        )

    status_badge.short_description = 'Status'


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ['type', 'recipient', 'sender', 'is_read', 'criado_em']
    list_filter = ['type', 'is_read']
    search_fields = ['message', 'recipient__username']
    readonly_fields = ['criado_em']


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ['project', 'sender', 'timestamp']
    search_fields = ['content', 'sender__username']
    readonly_fields = ['timestamp']

# apps/core/models.py

from django.contrib.auth.models import AbstractUser
from django.db import models
from django.db.models import Q


class User(AbstractUser):
    """
    Modelo de usuário customizado

    Âncora de identidade para dono, membros, autoria e responsável.
    username e email são únicos, o email é sempre normalizado.
    """

    email = models.EmailField(unique=True)

    criado_em = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'usuario'

    def save(self, *args, **kwargs):
        """Normaliza o email antes de gravar"""
        if self.email:
            self.email = self.email.strip().lower()
        super().save(*args, **kwargs)

    def get_projetos_acessiveis(self):
        """
        Retorna projetos que o usuário pode acessar (dono OU membro)
        """
        return Project.objects.filter(
            Q(owner=self) | Q(members=self)
        ).distinct()

    def __str__(self):
        return self.username


class Project(models.Model):
    """Projeto - agregador de tarefas e do chat"""

    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, default='')
    owner = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='projetos_criados'
    )
    # O dono nunca entra neste conjunto
    members = models.ManyToManyField(
        User,
        related_name='projetos_membro',
        blank=True
    )
    criado_em = models.DateTimeField(auto_now_add=True)
    atualizado_em = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'projeto'
        ordering = ['-criado_em']
        constraints = [
            models.UniqueConstraint(fields=['owner', 'name'], name='projeto_nome_unico_por_dono'),
        ]

    def __str__(self):
        return f"{self.name} ({self.owner.username})"

    def is_owner(self, user):
        return user.is_authenticated and self.owner_id == user.pk

    def has_participant(self, user):
        """Dono ou membro"""
        if not user.is_authenticated:
            return False
        if self.owner_id == user.pk:
            return True
        return self.members.filter(pk=user.pk).exists()


class Task(models.Model):
    """Tarefa do board Kanban"""

    STATUS_TODO = 'To Do'
    STATUS_IN_PROGRESS = 'In Progress'
    STATUS_DONE = 'Done'

    # Ordem fixa das colunas do board
    STATUS_CHOICES = [
        (STATUS_TODO, 'To Do'),
        (STATUS_IN_PROGRESS, 'In Progress'),
        (STATUS_DONE, 'Done'),
    ]

    PRIORITY_CHOICES = [
        ('Low', 'Low'),
        ('Medium', 'Medium'),
        ('High', 'High'),
    ]

    project = models.ForeignKey(
        Project,
        on_delete=models.CASCADE,
        related_name='tasks'
    )
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, default='')
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_TODO
    )
    priority = models.CharField(
        max_length=10,
        choices=PRIORITY_CHOICES,
        default='Medium'
    )
    due_date = models.DateField(null=True, blank=True)
    assigned_to = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='tarefas_atribuidas'
    )
    created_by = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='tarefas_criadas'
    )
    criado_em = models.DateTimeField(auto_now_add=True)
    atualizado_em = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'tarefa'
        ordering = ['criado_em']
        indexes = [
            models.Index(fields=['project', 'status'], name='tarefa_project_status_idx'),
        ]

    def __str__(self):
        return f"{self.title} [{self.status}]"


def caminho_anexo(instance, filename):
    return f"anexos/tarefa_{instance.task_id}/{filename}"


class Attachment(models.Model):
    """Arquivo anexado a uma tarefa"""

    task = models.ForeignKey(
        Task,
        on_delete=models.CASCADE,
        related_name='attachments'
    )
    filename = models.CharField(max_length=255)
    file = models.FileField(upload_to=caminho_anexo)
    mimetype = models.CharField(max_length=100)
    uploaded_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'anexo'
        ordering = ['uploaded_at']

    def __str__(self):
        return self.filename


class Notification(models.Model):
    """
    Notificação para um usuário

    Criada apenas pelo NotificationEmitter como efeito colateral
    de mutações em tarefas e projetos. Só muda para marcar como lida.
    """

    TYPE_CHOICES = [
        ('task_assigned', 'Task assigned'),
        ('task_unassigned', 'Task unassigned'),
        ('task_status_change', 'Task status change'),
        ('task_updated', 'Task updated'),
        ('task_deleted', 'Task deleted'),
        ('task_created', 'Task created'),
        ('new_message', 'New message'),
        ('project_member_added', 'Project member added'),
    ]

    recipient = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='notificacoes'
    )
    sender = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='notificacoes_enviadas'
    )
    project = models.ForeignKey(
        Project,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='notificacoes'
    )
    task = models.ForeignKey(
        Task,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='notificacoes'
    )
    type = models.CharField(max_length=30, choices=TYPE_CHOICES)
    message = models.TextField()
    is_read = models.BooleanField(default=False)
    criado_em = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'notificacao'
        ordering = ['-criado_em', '-id']
        indexes = [
            models.Index(fields=['recipient', '-criado_em'], name='notificacao_recipient_data_idx'),
        ]

    def __str__(self):
        return f"{self.type} -> {self.recipient.username}"


class Message(models.Model):
    """Mensagem do chat de um projeto (append-only)"""

    project = models.ForeignKey(
        Project,
        on_delete=models.CASCADE,
        related_name='mensagens'
    )
    sender = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='mensagens'
    )
    content = models.TextField()
    timestamp = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'mensagem'
        ordering = ['timestamp', 'id']

    def __str__(self):
        return f"Mensagem de {self.sender.username} em {self.timestamp:%d/%m/%Y}"

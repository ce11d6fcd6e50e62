# apps/core/management/commands/seed.py

from django.core.management.base import BaseCommand
from django.db import connection, transaction

from apps.core.models import Project, Task, User

USUARIOS_DEMO = [
    ('alice', 'alice@hive.local'),
    ('bruno', 'bruno@hive.local'),
    ('carla', 'carla@hive.local'),
]

TAREFAS_DEMO = [
    ('Configurar repositório', 'Done', 'High', 'alice'),
    ('Desenhar board Kanban', 'In Progress', 'Medium', 'bruno'),
    ('Escrever testes do chat', 'To Do', 'Medium', 'carla'),
    ('Revisar notificações', 'To Do', 'Low', None),
]


class Command(BaseCommand):
    help = 'Cria dados de demonstração (usuários, projeto e tarefas) - idempotente'

    def add_arguments(self, parser):
        parser.add_argument(
            '--password',
            default='hive12345',
            help='Senha dos usuários de demonstração',
        )

    def handle(self, *args, **options):
        self.stdout.write('🌱 Criando dados de demonstração...')

        self._testar_conectividade_banco()

        with transaction.atomic():
            usuarios = self._criar_usuarios(options['password'])
            projeto = self._criar_projeto(usuarios)
            self._criar_tarefas(projeto, usuarios)

        self.stdout.write(
            self.style.SUCCESS(
                '\n✅ DADOS DE DEMONSTRAÇÃO PRONTOS!\n'
                f'  👤 Usuários: {", ".join(usuarios)}\n'
                f'  📁 Projeto: {projeto.name} (id {projeto.pk})\n'
                f'  📝 Tarefas: {projeto.tasks.count()}\n'
            )
        )

    def _testar_conectividade_banco(self):
        """Testa conectividade básica"""
        self.stdout.write('  🔗 Testando conectividade do banco...')

        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()

    def _criar_usuarios(self, password):
        usuarios = {}
        for username, email in USUARIOS_DEMO:
            usuario, criado = User.objects.get_or_create(
                username=username,
                defaults={'email': email},
            )
            if criado:
                usuario.set_password(password)
                usuario.save()
                self.stdout.write(f'    ✅ Usuário criado: {username}')
            usuarios[username] = usuario
        return usuarios

    def _criar_projeto(self, usuarios):
        projeto, criado = Project.objects.get_or_create(
            owner=usuarios['alice'],
            name='Projeto Demo',
            defaults={'description': 'Projeto de demonstração do Hive Board'},
        )
        projeto.members.add(usuarios['bruno'], usuarios['carla'])
        if criado:
            self.stdout.write(f'    ✅ Projeto criado: {projeto.name}')
        return projeto

    def _criar_tarefas(self, projeto, usuarios):
        for title, status, priority, responsavel in TAREFAS_DEMO:
            _, criada = Task.objects.get_or_create(
                project=projeto,
                title=title,
                defaults={
                    'status': status,
                    'priority': priority,
                    'assigned_to': usuarios.get(responsavel),
                    'created_by': usuarios['alice'],
                },
            )
            if criada:
                self.stdout.write(f'    ✅ Tarefa criada: {title}')

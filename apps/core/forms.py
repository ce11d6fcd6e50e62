# apps/core/forms.py

from django import forms
from django.conf import settings

from .exceptions import ValidationFailed
from .models import Project, Task, User

# Aceita tanto "2024-05-01" quanto o ISO completo enviado pelo navegador
FORMATOS_DATA = [
    '%Y-%m-%d',
    '%Y-%m-%dT%H:%M:%S',
    '%Y-%m-%dT%H:%M:%SZ',
    '%Y-%m-%dT%H:%M:%S.%fZ',
]


class JsonForm(forms.Form):
    """
    Formulário alimentado por um corpo JSON

    Em modo parcial só os campos presentes no corpo são devolvidos,
    assim um PUT altera apenas o que o cliente enviou.
    """

    obrigatorios = ()

    def __init__(self, dados, parcial=False):
        self.parcial = parcial
        campos_presentes = {k: v for k, v in dados.items() if k in self.base_fields}
        super().__init__(data=campos_presentes)

    def dados_validos(self):
        """
        Retorna os campos limpos ou levanta ValidationFailed
        com a primeira mensagem de erro
        """
        if not self.is_valid():
            campo, erros = next(iter(self.errors.items()))
            raise ValidationFailed(f"{campo}: {erros[0]}")

        limpos = {}
        for campo in self.base_fields:
            presente = campo in self.data
            if not presente and self.parcial:
                continue
            if not presente and campo not in self.obrigatorios:
                continue

            valor = self.cleaned_data.get(campo)
            if campo in self.obrigatorios and not valor:
                raise ValidationFailed(f"{campo} is required")
            limpos[campo] = valor

        return limpos


class TaskForm(JsonForm):
    """Campos editáveis de uma tarefa (assignedTo é tratado à parte)"""

    obrigatorios = ('title',)

    title = forms.CharField(max_length=200, required=False)
    description = forms.CharField(required=False)
    status = forms.ChoiceField(choices=Task.STATUS_CHOICES, required=False)
    priority = forms.ChoiceField(choices=Task.PRIORITY_CHOICES, required=False)
    dueDate = forms.DateField(input_formats=FORMATOS_DATA, required=False)

    def clean_status(self):
        status = self.cleaned_data.get('status')
        if 'status' in self.data and not status:
            raise forms.ValidationError('Invalid status')
        return status

    def clean_priority(self):
        priority = self.cleaned_data.get('priority')
        if 'priority' in self.data and not priority:
            raise forms.ValidationError('Invalid priority')
        return priority


class ProjectForm(JsonForm):
    """Nome e descrição do projeto (members é tratado à parte)"""

    obrigatorios = ('name',)

    name = forms.CharField(max_length=200, required=False)
    description = forms.CharField(required=False)


class AttachmentForm(forms.Form):
    """Upload multipart com o campo 'attachment'"""

    attachment = forms.FileField()

    def clean_attachment(self):
        arquivo = self.cleaned_data['attachment']
        if arquivo.size > settings.HIVE_ATTACHMENT_MAX_SIZE:
            raise forms.ValidationError('File too large')
        return arquivo


# =================== CAMPOS DE REFERÊNCIA ===================

AUSENTE = object()


def resolver_responsavel(dados):
    """
    Interpreta o campo assignedTo

    Retorna AUSENTE quando a chave não veio, None para desatribuir
    ou o User. Qualquer outro valor é erro de validação.
    """
    if 'assignedTo' not in dados:
        return AUSENTE

    valor = dados['assignedTo']
    if valor is None:
        return None

    if isinstance(valor, bool):
        raise ValidationFailed('Invalid assignedTo id')
    if isinstance(valor, int):
        pk = valor
    elif isinstance(valor, str) and valor.isdigit():
        pk = int(valor)
    else:
        raise ValidationFailed('Invalid assignedTo id')

    try:
        return User.objects.get(pk=pk, is_active=True)
    except User.DoesNotExist:
        raise ValidationFailed('Assigned user not found')


def resolver_membros(dados, dono):
    """
    Converte a lista de usernames em Users

    Retorna None quando a chave não veio. O dono nunca entra no conjunto.
    """
    if 'members' not in dados:
        return None

    nomes = dados['members']
    if nomes is None:
        nomes = []
    if not isinstance(nomes, list) or not all(isinstance(n, str) for n in nomes):
        raise ValidationFailed('members must be a list of usernames')

    nomes = {n.strip() for n in nomes if n.strip()}
    usuarios = list(User.objects.filter(username__in=nomes))
    encontrados = {u.username for u in usuarios}
    faltando = sorted(nomes - encontrados)
    if faltando:
        raise ValidationFailed(f"Unknown users: {', '.join(faltando)}")

    return [u for u in usuarios if u.pk != dono.pk]


def validar_nome_projeto(dono, nome, projeto=None):
    """Nome do projeto é único por dono"""
    existentes = Project.objects.filter(owner=dono, name=nome)
    if projeto is not None:
        existentes = existentes.exclude(pk=projeto.pk)
    if existentes.exists():
        raise ValidationFailed('You already have a project with this name')

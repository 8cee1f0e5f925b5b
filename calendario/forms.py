# calendario/forms.py
import re
from datetime import datetime, time

from django import forms
from django.utils import timezone

from .models import (
    NivelCompartilhamento, NomeFormulario, Recorrencia, StatusReserva, StatusSala,
    TipoContrato, limites_dia_inteiro, para_api_datetime,
)
from .permissoes import MODULO_CALENDARIO, ROTULOS, Capacidade
from .services.recorrencia import opcoes_escopo
from .utils.dinheiro import centavos_para_api, formatar_campo, para_centavos

ESTADOS = [
    ('', '--'),
    ('AC', 'AC'), ('AL', 'AL'), ('AP', 'AP'), ('AM', 'AM'), ('BA', 'BA'),
    ('CE', 'CE'), ('DF', 'DF'), ('ES', 'ES'), ('GO', 'GO'), ('MA', 'MA'),
    ('MT', 'MT'), ('MS', 'MS'), ('MG', 'MG'), ('PA', 'PA'), ('PB', 'PB'),
    ('PR', 'PR'), ('PE', 'PE'), ('PI', 'PI'), ('RJ', 'RJ'), ('RN', 'RN'),
    ('RS', 'RS'), ('RO', 'RO'), ('RR', 'RR'), ('SC', 'SC'), ('SP', 'SP'),
    ('SE', 'SE'), ('TO', 'TO')
]

COR_RE = re.compile(r'^#[0-9a-fA-F]{6}$')


class CampoReais(forms.CharField):
    """Input "1.234,56" -> int em centavos."""

    def __init__(self, *args, **kwargs):
        kwargs.setdefault('widget', forms.TextInput(attrs={'placeholder': '0,00', 'inputmode': 'decimal'}))
        super().__init__(*args, **kwargs)

    def prepare_value(self, value):
        if isinstance(value, int) and not isinstance(value, bool):
            return formatar_campo(value)
        return value

    def to_python(self, value):
        value = super().to_python(value)
        if value in self.empty_values:
            return None
        try:
            centavos = para_centavos(value)
        except ValueError:
            raise forms.ValidationError("Informe um valor válido (ex.: 1.234,56).")
        if centavos < 0:
            raise forms.ValidationError("O valor não pode ser negativo.")
        return centavos


def _validar_cor(cor):
    if not COR_RE.match(cor or ''):
        raise forms.ValidationError("Cor inválida. Use o formato #RRGGBB.")
    return cor.lower()


def _choices(itens, vazio=None):
    choices = [(str(i.id), i.nome) for i in itens]
    if vazio is not None:
        choices.insert(0, ('', vazio))
    return choices


# ---------------------------------------------------------------------
# Autenticação
# ---------------------------------------------------------------------
class LoginForm(forms.Form):
    email = forms.EmailField(widget=forms.EmailInput(attrs={'placeholder': 'seu@email.com', 'autofocus': True}))
    senha = forms.CharField(widget=forms.PasswordInput(attrs={'placeholder': 'Senha'}))


class AlterarSenhaForm(forms.Form):
    senha_atual = forms.CharField(label="Senha atual", widget=forms.PasswordInput)
    nova_senha = forms.CharField(label="Nova senha", min_length=6, widget=forms.PasswordInput)
    confirmacao = forms.CharField(label="Confirmar nova senha", widget=forms.PasswordInput)

    def clean(self):
        cleaned = super().clean()
        nova = cleaned.get('nova_senha')
        confirmacao = cleaned.get('confirmacao')
        if nova and confirmacao and nova != confirmacao:
            self.add_error('confirmacao', "As senhas não conferem.")
        if nova and nova == cleaned.get('senha_atual'):
            self.add_error('nova_senha', "A nova senha deve ser diferente da atual.")
        return cleaned


# ---------------------------------------------------------------------
# Período (data + hora ou dia inteiro)
# ---------------------------------------------------------------------
class PeriodoForm(forms.Form):
    all_day = forms.BooleanField(label="Dia inteiro", required=False)
    data_inicio = forms.DateField(label="Data de início", widget=forms.DateInput(attrs={'type': 'date'}))
    hora_inicio = forms.TimeField(label="Hora de início", required=False,
                                  widget=forms.TimeInput(attrs={'type': 'time'}))
    data_fim = forms.DateField(label="Data de término", widget=forms.DateInput(attrs={'type': 'date'}))
    hora_fim = forms.TimeField(label="Hora de término", required=False,
                               widget=forms.TimeInput(attrs={'type': 'time'}))

    def clean(self):
        cleaned = super().clean()
        di, df = cleaned.get('data_inicio'), cleaned.get('data_fim')
        if not di or not df:
            return cleaned

        if not cleaned.get('all_day'):
            if not cleaned.get('hora_inicio'):
                self.add_error('hora_inicio', "Informe a hora de início.")
            if not cleaned.get('hora_fim'):
                self.add_error('hora_fim', "Informe a hora de término.")
            if self.errors:
                return cleaned

        inicio, fim = self.periodo(cleaned)
        if fim < inicio:
            self.add_error('data_fim', "O término deve ser igual ou posterior ao início.")
        return cleaned

    def periodo(self, cleaned=None):
        """(início, fim) aware; dia inteiro vai de 00:00:00 a 23:59:59."""
        cleaned = cleaned if cleaned is not None else self.cleaned_data
        if cleaned.get('all_day'):
            return limites_dia_inteiro(cleaned['data_inicio'], cleaned['data_fim'])
        return (
            timezone.make_aware(datetime.combine(cleaned['data_inicio'], cleaned.get('hora_inicio') or time.min)),
            timezone.make_aware(datetime.combine(cleaned['data_fim'], cleaned.get('hora_fim') or time.min)),
        )

    @staticmethod
    def inicial_periodo(inicio, fim, all_day):
        return {
            'all_day': all_day,
            'data_inicio': inicio.date() if inicio else None,
            'hora_inicio': None if all_day or not inicio else inicio.time().replace(second=0, microsecond=0),
            'data_fim': fim.date() if fim else None,
            'hora_fim': None if all_day or not fim else fim.time().replace(second=0, microsecond=0),
        }


# ---------------------------------------------------------------------
# Eventos
# ---------------------------------------------------------------------
class EventoForm(PeriodoForm):
    titulo = forms.CharField(label="Título", max_length=200)
    descricao = forms.CharField(label="Descrição", required=False, widget=forms.Textarea(attrs={'rows': 3}))
    tipo_evento_id = forms.TypedChoiceField(label="Tipo de evento", coerce=int)
    nivel_compartilhamento = forms.TypedChoiceField(
        label="Compartilhamento", coerce=int,
        choices=NivelCompartilhamento.choices, initial=NivelCompartilhamento.LOCAL,
    )
    inscricao_ativa = forms.BooleanField(label="Inscrição online ativa", required=False)
    nome_formulario = forms.TypedChoiceField(
        label="Formulário de inscrição", coerce=int, required=False, empty_value=None,
        choices=[('', '---------')] + NomeFormulario.choices,
    )
    slug = forms.SlugField(label="Slug (link público)", required=False, max_length=120)

    def __init__(self, *args, tipos_evento=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.tipos_evento = {t.id: t for t in tipos_evento}
        self.fields['tipo_evento_id'].choices = _choices(tipos_evento, vazio='Selecione...')

    def clean(self):
        cleaned = super().clean()
        if cleaned.get('inscricao_ativa'):
            if cleaned.get('nome_formulario') is None:
                self.add_error('nome_formulario', "Escolha o formulário de inscrição.")
            if not cleaned.get('slug'):
                self.add_error('slug', "Informe o slug do link de inscrição.")
        return cleaned

    def dados_basicos(self):
        c = self.cleaned_data
        inicio, fim = self.periodo()
        return {
            'titulo': c['titulo'],
            'descricao': c.get('descricao') or '',
            'dataInicio': para_api_datetime(inicio),
            'dataFim': para_api_datetime(fim),
            'allDay': bool(c.get('all_day')),
            'tipoEventoId': c['tipo_evento_id'],
            'inscricaoAtiva': bool(c.get('inscricao_ativa')),
            'nomeFormulario': c.get('nome_formulario') if c.get('inscricao_ativa') else None,
            'slug': c.get('slug') or None,
            'nivelCompartilhamento': c['nivel_compartilhamento'],
        }

    def payload_atualizacao(self, evento):
        dados = self.dados_basicos()
        dados['id'] = evento.id
        return dados

    @classmethod
    def inicial(cls, evento):
        dados = cls.inicial_periodo(evento.inicio, evento.fim, evento.all_day)
        dados.update({
            'titulo': evento.titulo,
            'descricao': evento.descricao,
            'tipo_evento_id': evento.tipo_evento_id,
            'nivel_compartilhamento': int(evento.nivel_compartilhamento),
            'inscricao_ativa': evento.inscricao_ativa,
            'nome_formulario': int(evento.nome_formulario) if evento.nome_formulario is not None else '',
            'slug': evento.slug or '',
        })
        return dados


class EventoCriacaoForm(EventoForm):
    recorrencia = forms.TypedChoiceField(
        label="Repetição", coerce=int, choices=Recorrencia.choices, initial=Recorrencia.NAO_REPETE,
    )
    fim_recorrencia = forms.DateField(label="Repetir até", required=False,
                                      widget=forms.DateInput(attrs={'type': 'date'}))

    vincular_sala = forms.BooleanField(label="Vincular sala", required=False)
    tipo_de_sala_id = forms.TypedChoiceField(label="Tipo de sala", coerce=int, required=False, empty_value=None)
    descricao_sala = forms.CharField(label="Descrição da sala", required=False, max_length=200)

    interessado_id = forms.TypedChoiceField(label="Contratante", coerce=int, required=False, empty_value=None)
    novo_interessado = forms.BooleanField(label="Cadastrar novo contratante", required=False)

    valor_total = CampoReais(label="Valor total", required=False)
    valor_sinal = CampoReais(label="Valor do sinal", required=False)
    data_vencimento_sinal = forms.DateField(label="Vencimento do sinal", required=False,
                                            widget=forms.DateInput(attrs={'type': 'date'}))
    quantidade_participantes = forms.IntegerField(label="Participantes", required=False, min_value=0)
    numero_parcelas = forms.IntegerField(label="Número de parcelas", required=False, min_value=0, max_value=48)
    primeiro_vencimento = forms.DateField(label="Primeiro vencimento", required=False,
                                          widget=forms.DateInput(attrs={'type': 'date'}))
    observacoes = forms.CharField(label="Observações", required=False, widget=forms.Textarea(attrs={'rows': 2}))

    def __init__(self, *args, tipos_de_sala=(), interessados=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['tipo_de_sala_id'].choices = _choices(tipos_de_sala, vazio='Selecione...')
        self.fields['interessado_id'].choices = _choices(interessados, vazio='Nenhum')

    def clean(self):
        cleaned = super().clean()

        recorrencia = cleaned.get('recorrencia')
        if recorrencia and recorrencia != Recorrencia.NAO_REPETE:
            fim_rec = cleaned.get('fim_recorrencia')
            if not fim_rec:
                self.add_error('fim_recorrencia', "Informe até quando o evento se repete.")
            elif cleaned.get('data_inicio') and fim_rec < cleaned['data_inicio']:
                self.add_error('fim_recorrencia', "A data final da repetição deve ser após o início.")

        if cleaned.get('vincular_sala'):
            if not cleaned.get('tipo_de_sala_id'):
                self.add_error('tipo_de_sala_id', "Escolha o tipo de sala.")
            if not cleaned.get('descricao_sala'):
                self.add_error('descricao_sala', "Descreva a reserva da sala.")

        tipo = self.tipos_evento.get(cleaned.get('tipo_evento_id'))
        if tipo is not None and tipo.exige_contrato:
            if not cleaned.get('interessado_id') and not cleaned.get('novo_interessado'):
                self.add_error('interessado_id', "Este tipo de evento exige um contratante.")
            total = cleaned.get('valor_total')
            sinal = cleaned.get('valor_sinal')
            if total is None:
                self.add_error('valor_total', "Informe o valor total do contrato.")
            elif sinal is not None and sinal > total:
                self.add_error('valor_sinal', "O sinal não pode ser maior que o valor total.")
            if (cleaned.get('numero_parcelas') or 0) > 0 and not cleaned.get('primeiro_vencimento'):
                self.add_error('primeiro_vencimento', "Informe o vencimento da primeira parcela.")
        return cleaned

    @property
    def exige_contrato(self):
        tipo = self.tipos_evento.get(self.cleaned_data.get('tipo_evento_id'))
        return bool(tipo and tipo.exige_contrato)

    def payload_criacao(self, interessado_id=None, parcelas=()):
        """Corpo do POST /Eventos (sala nova, contratante e contrato opcionais)."""
        c = self.cleaned_data
        dados = self.dados_basicos()
        recorrencia = c.get('recorrencia') or Recorrencia.NAO_REPETE
        dados['recorrencia'] = int(recorrencia)
        dados['fimRecorrencia'] = (
            c['fim_recorrencia'].isoformat()
            if recorrencia != Recorrencia.NAO_REPETE and c.get('fim_recorrencia') else None
        )

        dados['novaSala'] = None
        if c.get('vincular_sala'):
            dados['novaSala'] = {
                'descricao': c['descricao_sala'],
                'tipoDeSalaId': c['tipo_de_sala_id'],
                'dataInicio': dados['dataInicio'],
                'dataFim': dados['dataFim'],
                'allDay': dados['allDay'],
            }

        interessado_id = interessado_id or c.get('interessado_id')
        dados['interessadoId'] = interessado_id
        dados['reserva'] = None
        if self.exige_contrato and interessado_id:
            sinal_venc = c.get('data_vencimento_sinal')
            dados['reserva'] = {
                'valorTotal': centavos_para_api(c.get('valor_total') or 0),
                'valorSinal': centavos_para_api(c.get('valor_sinal') or 0),
                'dataVencimentoSinal': sinal_venc.isoformat() if sinal_venc else None,
                'quantidadeParticipantes': c.get('quantidade_participantes') or 0,
                'observacoes': c.get('observacoes') or None,
                'parcelas': [p.to_api() for p in parcelas] or None,
            }
        return dados


# ---------------------------------------------------------------------
# Salas
# ---------------------------------------------------------------------
class SalaForm(PeriodoForm):
    tipo_de_sala_id = forms.TypedChoiceField(label="Tipo de sala", coerce=int)
    descricao = forms.CharField(label="Descrição", max_length=200)
    status = forms.TypedChoiceField(label="Situação", coerce=int, choices=StatusSala.choices,
                                    initial=StatusSala.APROVADO)

    def __init__(self, *args, tipos_de_sala=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['tipo_de_sala_id'].choices = _choices(tipos_de_sala, vazio='Selecione...')

    def payload(self, sala=None):
        c = self.cleaned_data
        inicio, fim = self.periodo()
        dados = {
            'descricao': c['descricao'],
            'dataInicio': para_api_datetime(inicio),
            'dataFim': para_api_datetime(fim),
            'allDay': bool(c.get('all_day')),
            'tipoDeSalaId': c['tipo_de_sala_id'],
            'status': c['status'],
        }
        if sala is not None:
            dados['id'] = sala.id
            dados['dataCriacao'] = para_api_datetime(sala.data_criacao or timezone.now())
            if sala.email_solicitante:
                dados['emailSolicitante'] = sala.email_solicitante
        return dados

    @classmethod
    def inicial(cls, sala):
        dados = cls.inicial_periodo(sala.inicio, sala.fim, sala.all_day)
        dados.update({
            'tipo_de_sala_id': sala.tipo_de_sala_id,
            'descricao': sala.descricao or '',
            'status': int(sala.status),
        })
        return dados


# ---------------------------------------------------------------------
# Tipos
# ---------------------------------------------------------------------
class TipoEventoForm(forms.Form):
    nome = forms.CharField(label="Nome", max_length=100)
    cor = forms.CharField(label="Cor", max_length=7, initial="#3b82f6",
                          widget=forms.TextInput(attrs={'type': 'color'}))
    categoria_contrato = forms.TypedChoiceField(label="Contrato", coerce=int,
                                                choices=TipoContrato.choices, initial=TipoContrato.NENHUM)

    def clean_cor(self):
        return _validar_cor(self.cleaned_data.get('cor'))

    def payload(self, tipo=None):
        dados = {k: self.cleaned_data[k] for k in self.fields}
        if 'categoria_contrato' in dados:
            dados['categoriaContrato'] = dados.pop('categoria_contrato')
        elif tipo is not None:
            dados['categoriaContrato'] = int(tipo.categoria_contrato)
        if tipo is not None:
            dados['id'] = tipo.id
        return dados


class TipoEventoEdicaoForm(TipoEventoForm):
    """Modal de edição: só nome e cor."""
    categoria_contrato = None


class TipoDeSalaForm(forms.Form):
    nome = forms.CharField(label="Nome", max_length=100)
    cor = forms.CharField(label="Cor", max_length=7, initial="#22c55e",
                          widget=forms.TextInput(attrs={'type': 'color'}))
    capacidade = forms.IntegerField(label="Capacidade", min_value=0, initial=0)
    localizacao = forms.CharField(label="Localização", required=False, max_length=200)
    descricao = forms.CharField(label="Descrição", required=False, widget=forms.Textarea(attrs={'rows': 2}))
    equipamentos = forms.CharField(label="Equipamentos", required=False,
                                   help_text="Separe os itens por vírgula.")
    disponivel = forms.BooleanField(label="Disponível", required=False, initial=True)

    def clean_cor(self):
        return _validar_cor(self.cleaned_data.get('cor'))

    def clean_equipamentos(self):
        texto = self.cleaned_data.get('equipamentos') or ''
        return [e.strip() for e in texto.split(',') if e.strip()]

    def payload(self, tipo=None):
        dados = dict(tipo.to_api()) if tipo is not None else {}
        dados.update({k: self.cleaned_data[k] for k in self.fields})
        return dados

    @classmethod
    def inicial(cls, tipo):
        return {
            'nome': tipo.nome,
            'cor': tipo.cor,
            'capacidade': tipo.capacidade,
            'localizacao': tipo.localizacao or '',
            'descricao': tipo.descricao or '',
            'equipamentos': ', '.join(tipo.equipamentos),
            'disponivel': tipo.disponivel,
        }


class TipoDeSalaEdicaoForm(TipoDeSalaForm):
    """Modal de edição: nome, cor e capacidade."""
    localizacao = None
    descricao = None
    equipamentos = None
    disponivel = None


# ---------------------------------------------------------------------
# Interessados (contratantes)
# ---------------------------------------------------------------------
class InteressadoForm(forms.Form):
    nome = forms.CharField(label="Nome", max_length=200)
    documento = forms.CharField(label="CPF/CNPJ", max_length=18,
                                widget=forms.TextInput(attrs={'placeholder': '000.000.000-00'}))
    telefone = forms.CharField(label="Telefone", max_length=20,
                               widget=forms.TextInput(attrs={'placeholder': '(00) 00000-0000'}))
    email = forms.EmailField(label="E-mail")
    email_financeiro = forms.EmailField(label="E-mail financeiro", required=False)
    cep = forms.CharField(label="CEP", max_length=10, required=False,
                          widget=forms.TextInput(attrs={'placeholder': '00000-000'}))
    rua = forms.CharField(label="Rua", max_length=200, required=False)
    numero = forms.CharField(label="Número", max_length=10, required=False)
    bairro = forms.CharField(label="Bairro", max_length=100, required=False)
    cidade = forms.CharField(label="Cidade", max_length=100, required=False)
    estado = forms.ChoiceField(label="Estado", choices=ESTADOS, required=False)
    ponto_referencia = forms.CharField(label="Ponto de referência", max_length=200, required=False)

    def clean_documento(self):
        doc = re.sub(r'\D', '', self.cleaned_data.get('documento', ''))
        if len(doc) not in (11, 14):
            raise forms.ValidationError("Informe um CPF (11 dígitos) ou CNPJ (14 dígitos).")
        return doc

    def clean_cep(self):
        cep = re.sub(r'\D', '', self.cleaned_data.get('cep', ''))
        if cep and len(cep) != 8:
            raise forms.ValidationError("CEP deve ter 8 dígitos.")
        return cep or None

    def clean_nome(self):
        return self.cleaned_data.get('nome', '').strip()

    def payload(self, interessado=None):
        dados = {k: v if v != '' else None for k, v in self.cleaned_data.items()}
        dados['pontoReferencia'] = dados.pop('ponto_referencia')
        dados['emailFinanceiro'] = dados.pop('email_financeiro')
        if interessado is not None:
            dados['id'] = interessado.id
        return dados

    @classmethod
    def inicial(cls, interessado):
        return {f: getattr(interessado, f) or '' for f in cls.base_fields}


# ---------------------------------------------------------------------
# Reserva (contrato) e parcelas
# ---------------------------------------------------------------------
class ReservaForm(forms.Form):
    status = forms.TypedChoiceField(label="Situação", coerce=int, choices=StatusReserva.choices)
    valor_total = CampoReais(label="Valor total", required=False)
    valor_sinal = CampoReais(label="Valor do sinal", required=False)
    data_vencimento_sinal = forms.DateField(label="Vencimento do sinal", required=False,
                                            widget=forms.DateInput(attrs={'type': 'date'}))
    quantidade_participantes = forms.IntegerField(label="Participantes", required=False, min_value=0)
    nome_padre_responsavel = forms.CharField(label="Padre responsável", required=False, max_length=150)
    observacoes = forms.CharField(label="Observações", required=False, widget=forms.Textarea(attrs={'rows': 3}))

    def clean_nome_padre_responsavel(self):
        return (self.cleaned_data.get('nome_padre_responsavel') or '').strip()

    def clean(self):
        cleaned = super().clean()
        total = cleaned.get('valor_total')
        sinal = cleaned.get('valor_sinal')
        if total is not None and sinal is not None and sinal > total:
            self.add_error('valor_sinal', "O sinal não pode ser maior que o valor total.")
        return cleaned

    @classmethod
    def inicial(cls, reserva):
        return {
            'status': int(reserva.status),
            'valor_total': reserva.valor_total,
            'valor_sinal': reserva.valor_sinal,
            'data_vencimento_sinal': reserva.data_vencimento_sinal,
            'quantidade_participantes': reserva.quantidade_participantes,
            'nome_padre_responsavel': reserva.nome_padre_responsavel or '',
            'observacoes': reserva.observacoes or '',
        }


class ParcelaForm(forms.Form):
    id = forms.IntegerField(widget=forms.HiddenInput, required=False)
    numero = forms.IntegerField(widget=forms.HiddenInput)
    data_vencimento = forms.DateField(label="Vencimento", widget=forms.DateInput(attrs={'type': 'date'}))
    is_sinal = forms.BooleanField(label="Sinal", required=False)


ParcelaFormSet = forms.formset_factory(ParcelaForm, extra=0)


def parcelas_iniciais(parcelas):
    return [
        {'id': p.id, 'numero': p.numero, 'data_vencimento': p.data_vencimento, 'is_sinal': p.is_sinal}
        for p in parcelas
    ]


# ---------------------------------------------------------------------
# Usuários
# ---------------------------------------------------------------------
def _choices_acessos():
    return [
        (c.claim, ROTULOS.get(c, c.claim))
        for c in Capacidade.do_modulo(MODULO_CALENDARIO)
    ]


class UsuarioCadastroForm(forms.Form):
    nome = forms.CharField(label="Nome", max_length=150)
    email = forms.EmailField(label="E-mail")
    claims = forms.MultipleChoiceField(label="Permissões", required=False,
                                       widget=forms.CheckboxSelectMultiple)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['claims'].choices = _choices_acessos()


class UsuarioAcessosForm(forms.Form):
    nome = forms.CharField(label="Nome", max_length=150)
    acessos = forms.MultipleChoiceField(label="Permissões no calendário", required=False,
                                        widget=forms.CheckboxSelectMultiple)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['acessos'].choices = _choices_acessos()


# ---------------------------------------------------------------------
# Escopo de recorrência
# ---------------------------------------------------------------------
class EscopoForm(forms.Form):
    escopo = forms.TypedChoiceField(coerce=int, widget=forms.RadioSelect)

    def __init__(self, *args, tipo, **kwargs):
        super().__init__(*args, **kwargs)
        self.tipo = tipo
        self.opcoes = opcoes_escopo(tipo)
        self.fields['escopo'].choices = [(o['valor'], o['rotulo']) for o in self.opcoes]


# ---------------------------------------------------------------------
# Ficha de inscrição pública (preparação para o batismo)
# ---------------------------------------------------------------------
class FichaBatismoForm(forms.Form):
    SEXO_CHOICES = [('', '---------'), ('M', 'Masculino'), ('F', 'Feminino')]

    nome = forms.CharField(label="Nome completo", max_length=150)
    sexo = forms.ChoiceField(label="Sexo", choices=SEXO_CHOICES)
    data_nascimento = forms.DateField(label="Data de nascimento", widget=forms.DateInput(attrs={'type': 'date'}))
    cpf = forms.CharField(label="CPF", max_length=14, required=False,
                          widget=forms.TextInput(attrs={'placeholder': '000.000.000-00'}))
    email = forms.EmailField(label="E-mail")
    telefone = forms.CharField(label="Telefone", max_length=20,
                               widget=forms.TextInput(attrs={'placeholder': '(00) 00000-0000'}))
    cep = forms.CharField(label="CEP", max_length=10, required=False)
    endereco = forms.CharField(label="Endereço", max_length=200, required=False)
    numero = forms.CharField(label="Número", max_length=10, required=False)
    bairro = forms.CharField(label="Bairro", max_length=100, required=False)
    cidade = forms.CharField(label="Cidade", max_length=100, required=False)
    estado = forms.ChoiceField(label="Estado", choices=ESTADOS, required=False)
    nome_mae = forms.CharField(label="Nome da mãe", max_length=150)
    nome_pai = forms.CharField(label="Nome do pai", max_length=150, required=False)

    def clean_nome(self):
        return self.cleaned_data.get('nome', '').strip().title()

    def clean_cpf(self):
        cpf = re.sub(r'\D', '', self.cleaned_data.get('cpf', ''))
        if cpf and len(cpf) != 11:
            raise forms.ValidationError("CPF deve ter 11 dígitos.")
        return cpf or None

    def clean_data_nascimento(self):
        d = self.cleaned_data.get('data_nascimento')
        if d and d > timezone.localdate():
            raise forms.ValidationError("Data de nascimento no futuro.")
        return d

    def payload(self, evento_id):
        c = self.cleaned_data
        return {
            'eventoId': evento_id,
            'nome': c['nome'],
            'sexo': c['sexo'],
            'dataNascimento': c['data_nascimento'].isoformat(),
            'cpf': c.get('cpf'),
            'email': c['email'],
            'telefone': c['telefone'],
            'cep': c.get('cep') or None,
            'endereco': c.get('endereco') or None,
            'numero': c.get('numero') or None,
            'bairro': c.get('bairro') or None,
            'cidade': c.get('cidade') or None,
            'estado': c.get('estado') or None,
            'nomeMae': c['nome_mae'],
            'nomePai': c.get('nome_pai') or '',
            'maeFalecida': False,
            'paiFalecido': False,
        }

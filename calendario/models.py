# calendario/models.py
"""
Entidades da agenda. Não há tabelas locais: tudo vem da API remota e é
reconstruído a cada requisição (``from_api``) e devolvido em ``to_api``.
Valores monetários em centavos (ver ``utils.dinheiro``).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone as dt_tz
from typing import Optional

from django.db import models
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from .utils.dinheiro import centavos_para_api, para_centavos


# ---------------------------------------------------------------------
# Enumerações (valores iguais aos da API)
# ---------------------------------------------------------------------
class TipoContrato(models.IntegerChoices):
    NENHUM    = 0, "Nenhum"
    CASAMENTO = 1, "Casamento"
    DIVERSO   = 2, "Diverso"


class NivelCompartilhamento(models.IntegerChoices):
    LOCAL           = 0, "Local"
    ENTRE_PAROQUIAS = 1, "Entre Paróquias"
    DIOCESE         = 2, "Diocese"


class NomeFormulario(models.IntegerChoices):
    PREPARACAO_BATISMO    = 0, "Preparação para o Batismo"
    PREPARACAO_MATRIMONIO = 1, "Preparação para o Matrimônio"
    CATEQUESE             = 2, "Catequese"


class Recorrencia(models.IntegerChoices):
    NAO_REPETE     = 0, "Não se repete"
    DIARIAMENTE    = 1, "Diariamente"
    SEMANALMENTE   = 2, "Semanalmente"
    QUINZENALMENTE = 3, "Quinzenalmente"
    MENSALMENTE    = 4, "Mensalmente"


class StatusSala(models.IntegerChoices):
    PENDENTE  = 0, "Pendente"
    APROVADO  = 1, "Aprovado"
    REJEITADO = 2, "Rejeitado"
    CANCELADO = 3, "Cancelado"


class StatusReserva(models.IntegerChoices):
    PENDENTE   = 0, "Pendente"
    CONFIRMADO = 1, "Confirmado"
    RECUSADO   = 2, "Recusado"
    EXPIRADO   = 3, "Expirado"


# ---------------------------------------------------------------------
# Conversões de data
# ---------------------------------------------------------------------
def parse_api_datetime(valor) -> Optional[datetime]:
    """Timestamp da API -> datetime aware no fuso local. Naive = horário local."""
    if not valor:
        return None
    if isinstance(valor, datetime):
        dt = valor
    else:
        dt = parse_datetime(str(valor))
        if dt is None:
            d = parse_date(str(valor))
            if d is None:
                return None
            dt = datetime.combine(d, time.min)
    if timezone.is_naive(dt):
        dt = timezone.make_aware(dt)
    return timezone.localtime(dt)


def parse_api_date(valor) -> Optional[date]:
    if not valor:
        return None
    if isinstance(valor, date) and not isinstance(valor, datetime):
        return valor
    dt = parse_api_datetime(valor)
    return dt.date() if dt else None


def para_api_datetime(dt: Optional[datetime]) -> Optional[str]:
    """datetime -> ISO-8601 UTC com sufixo Z."""
    if dt is None:
        return None
    if timezone.is_naive(dt):
        dt = timezone.make_aware(dt)
    return dt.astimezone(dt_tz.utc).strftime("%Y-%m-%dT%H:%M:%S.000Z")


def limites_dia_inteiro(inicio: date, fim: date) -> tuple[datetime, datetime]:
    """Evento de dia inteiro: 00:00:00 do primeiro dia a 23:59:59 do último (horário local)."""
    return (
        timezone.make_aware(datetime.combine(inicio, time(0, 0, 0))),
        timezone.make_aware(datetime.combine(fim, time(23, 59, 59))),
    )


def _enum(cls, valor, padrao):
    try:
        return cls(int(valor))
    except (TypeError, ValueError):
        return padrao


# ---------------------------------------------------------------------
# Tipos (categorias)
# ---------------------------------------------------------------------
@dataclass
class TipoEvento:
    id: int
    nome: str
    cor: str = "#6b7280"
    categoria_contrato: TipoContrato = TipoContrato.NENHUM

    @classmethod
    def from_api(cls, d: dict) -> "TipoEvento":
        return cls(
            id=d.get("id"),
            nome=d.get("nome") or "",
            cor=d.get("cor") or "#6b7280",
            categoria_contrato=_enum(TipoContrato, d.get("categoriaContrato"), TipoContrato.NENHUM),
        )

    def to_api(self) -> dict:
        dados = {"nome": self.nome, "cor": self.cor, "categoriaContrato": int(self.categoria_contrato)}
        if self.id:
            dados["id"] = self.id
        return dados

    @property
    def exige_contrato(self) -> bool:
        return self.categoria_contrato != TipoContrato.NENHUM


@dataclass
class TipoDeSala:
    id: int
    nome: str
    cor: str = "#22c55e"
    capacidade: int = 0
    localizacao: Optional[str] = None
    descricao: Optional[str] = None
    equipamentos: list[str] = field(default_factory=list)
    disponivel: bool = True

    @classmethod
    def from_api(cls, d: dict) -> "TipoDeSala":
        return cls(
            id=d.get("id"),
            nome=d.get("nome") or "",
            cor=d.get("cor") or "#22c55e",
            capacidade=int(d.get("capacidade") or 0),
            localizacao=d.get("localizacao"),
            descricao=d.get("descricao"),
            equipamentos=list(d.get("equipamentos") or []),
            disponivel=bool(d.get("disponivel", True)),
        )

    def to_api(self) -> dict:
        dados = {
            "nome": self.nome,
            "cor": self.cor,
            "capacidade": self.capacidade,
            "localizacao": self.localizacao,
            "descricao": self.descricao,
            "equipamentos": self.equipamentos,
            "disponivel": self.disponivel,
        }
        if self.id:
            dados["id"] = self.id
        return dados


# ---------------------------------------------------------------------
# Sala (reserva de sala)
# ---------------------------------------------------------------------
@dataclass
class Sala:
    id: int
    inicio: datetime
    fim: datetime
    all_day: bool = False
    tipo_de_sala_id: Optional[int] = None
    descricao: Optional[str] = None
    status: StatusSala = StatusSala.PENDENTE
    tipo_de_sala: Optional[TipoDeSala] = None
    email_solicitante: Optional[str] = None
    data_criacao: Optional[datetime] = None

    @classmethod
    def from_api(cls, d: dict) -> "Sala":
        tipo = d.get("tipoDeSala")
        return cls(
            id=d.get("id"),
            descricao=d.get("descricao"),
            inicio=parse_api_datetime(d.get("dataInicio")),
            fim=parse_api_datetime(d.get("dataFim")) or parse_api_datetime(d.get("dataInicio")),
            all_day=bool(d.get("allDay")),
            tipo_de_sala_id=d.get("tipoDeSalaId"),
            tipo_de_sala=TipoDeSala.from_api(tipo) if isinstance(tipo, dict) else None,
            status=_enum(StatusSala, d.get("status"), StatusSala.PENDENTE),
            email_solicitante=d.get("emailSolicitante"),
            data_criacao=parse_api_datetime(d.get("dataCriacao")),
        )

    def to_api(self) -> dict:
        dados = {
            "descricao": self.descricao or "",
            "dataInicio": para_api_datetime(self.inicio),
            "dataFim": para_api_datetime(self.fim),
            "allDay": self.all_day,
            "tipoDeSalaId": self.tipo_de_sala_id,
            "status": int(self.status),
            "dataCriacao": para_api_datetime(self.data_criacao or timezone.now()),
        }
        if self.id:
            dados["id"] = self.id
        if self.email_solicitante:
            dados["emailSolicitante"] = self.email_solicitante
        return dados


# ---------------------------------------------------------------------
# Interessado (contratante)
# ---------------------------------------------------------------------
_CAMPOS_INTERESSADO = {
    "nome": "nome",
    "documento": "documento",
    "cep": "cep",
    "rua": "rua",
    "numero": "numero",
    "bairro": "bairro",
    "cidade": "cidade",
    "estado": "estado",
    "ponto_referencia": "pontoReferencia",
    "telefone": "telefone",
    "email": "email",
    "email_financeiro": "emailFinanceiro",
}


@dataclass
class Interessado:
    id: Optional[int]
    nome: str
    documento: str = ""
    telefone: str = ""
    email: str = ""
    cep: Optional[str] = None
    rua: Optional[str] = None
    numero: Optional[str] = None
    bairro: Optional[str] = None
    cidade: Optional[str] = None
    estado: Optional[str] = None
    ponto_referencia: Optional[str] = None
    email_financeiro: Optional[str] = None

    @classmethod
    def from_api(cls, d: dict) -> "Interessado":
        kwargs = {attr: d.get(chave) for attr, chave in _CAMPOS_INTERESSADO.items()}
        for obrigatorio in ("nome", "documento", "telefone", "email"):
            kwargs[obrigatorio] = kwargs[obrigatorio] or ""
        return cls(id=d.get("id"), **kwargs)

    def to_api(self) -> dict:
        dados = {chave: getattr(self, attr) for attr, chave in _CAMPOS_INTERESSADO.items()}
        if self.id:
            dados["id"] = self.id
        return dados


# ---------------------------------------------------------------------
# Reserva (contrato) e parcelas
# ---------------------------------------------------------------------
@dataclass
class Parcela:
    numero: int
    valor: int  # centavos
    data_vencimento: date
    is_sinal: bool = False
    id: int = 0

    @classmethod
    def from_api(cls, d: dict) -> "Parcela":
        return cls(
            id=d.get("id") or 0,
            numero=int(d.get("numeroParcela") or 0),
            valor=para_centavos(d.get("valor")),
            data_vencimento=parse_api_date(d.get("dataVencimento")),
            is_sinal=bool(d.get("isSinal")),
        )

    def to_api(self) -> dict:
        return {
            "id": self.id,
            "numeroParcela": self.numero,
            "valor": centavos_para_api(self.valor),
            "dataVencimento": self.data_vencimento.isoformat() if self.data_vencimento else None,
            "isSinal": self.is_sinal,
        }


@dataclass
class Reserva:
    id: int
    evento_id: Optional[int] = None
    interessado_id: Optional[int] = None
    status: StatusReserva = StatusReserva.PENDENTE
    token_confirmacao: str = ""
    dados_preenchidos: bool = False
    observacoes: Optional[str] = None
    valor_total: Optional[int] = None   # centavos
    valor_sinal: Optional[int] = None   # centavos
    data_vencimento_sinal: Optional[date] = None
    quantidade_participantes: Optional[int] = None
    nome_padre_responsavel: Optional[str] = None
    documento_padre: Optional[str] = None
    nome_interessado: Optional[str] = None
    titulo_evento: Optional[str] = None
    data_expiracao: Optional[datetime] = None
    parcelas: list[Parcela] = field(default_factory=list)

    @classmethod
    def from_api(cls, d: dict) -> "Reserva":
        valor_total = d.get("valorTotal")
        valor_sinal = d.get("valorSinal")
        evento = d.get("evento") if isinstance(d.get("evento"), dict) else {}
        interessado = d.get("interessado") if isinstance(d.get("interessado"), dict) else {}
        return cls(
            id=d.get("id"),
            evento_id=d.get("eventoId"),
            interessado_id=d.get("interessadoId"),
            status=_status_reserva(d.get("status")),
            token_confirmacao=d.get("tokenConfirmacao") or "",
            dados_preenchidos=bool(d.get("dadosPreenchidos")),
            observacoes=d.get("observacoes"),
            valor_total=para_centavos(valor_total) if valor_total is not None else None,
            valor_sinal=para_centavos(valor_sinal) if valor_sinal is not None else None,
            data_vencimento_sinal=parse_api_date(d.get("dataVencimentoSinal")),
            quantidade_participantes=d.get("quantidadeParticipantes"),
            nome_padre_responsavel=d.get("nomePadreResponsavel"),
            documento_padre=d.get("documentoPadre"),
            nome_interessado=d.get("nomeInteressado") or interessado.get("nome"),
            titulo_evento=d.get("tituloEvento") or evento.get("titulo"),
            data_expiracao=parse_api_datetime(d.get("dataExpiracao")),
            parcelas=[Parcela.from_api(p) for p in (d.get("parcelas") or [])],
        )

    def to_api(self) -> dict:
        return {
            "id": self.id,
            "eventoId": self.evento_id,
            "interessadoId": self.interessado_id,
            "status": int(self.status),
            "tokenConfirmacao": self.token_confirmacao,
            "dataExpiracao": para_api_datetime(self.data_expiracao),
            "dadosPreenchidos": self.dados_preenchidos,
            "nomeInteressado": self.nome_interessado,
            "tituloEvento": self.titulo_evento,
            "valorTotal": centavos_para_api(self.valor_total),
            "valorSinal": centavos_para_api(self.valor_sinal),
            "dataVencimentoSinal": self.data_vencimento_sinal.isoformat() if self.data_vencimento_sinal else None,
            "quantidadeParticipantes": self.quantidade_participantes,
            "nomePadreResponsavel": self.nome_padre_responsavel,
            "documentoPadre": self.documento_padre,
            "observacoes": self.observacoes,
            "parcelas": [p.to_api() for p in self.parcelas],
        }


def _status_reserva(valor) -> StatusReserva:
    # a API às vezes devolve o nome ("Confirmado") em vez do número
    if isinstance(valor, str) and not valor.isdigit():
        for membro in StatusReserva:
            if membro.name.lower() == valor.strip().lower():
                return membro
        return StatusReserva.PENDENTE
    return _enum(StatusReserva, valor, StatusReserva.PENDENTE)


# ---------------------------------------------------------------------
# Evento
# ---------------------------------------------------------------------
@dataclass
class Evento:
    id: int
    titulo: str
    inicio: datetime
    fim: datetime
    all_day: bool = False
    descricao: str = ""
    tipo_evento_id: Optional[int] = None
    tipo_evento: Optional[TipoEvento] = None
    inscricao_ativa: bool = False
    nome_formulario: Optional[NomeFormulario] = None
    slug: Optional[str] = None
    nivel_compartilhamento: NivelCompartilhamento = NivelCompartilhamento.LOCAL
    filial_id: Optional[int] = None
    recorrencia: Recorrencia = Recorrencia.NAO_REPETE
    fim_recorrencia: Optional[date] = None
    evento_pai_id: Optional[int] = None
    sala: Optional[Sala] = None
    interessado_id: Optional[int] = None
    interessado: Optional[Interessado] = None
    reserva: Optional[Reserva] = None

    @classmethod
    def from_api(cls, d: dict) -> "Evento":
        tipo = d.get("tipoEvento")
        sala = d.get("sala")
        interessado = d.get("interessado")
        reserva = d.get("reserva")
        nome_formulario = d.get("nomeFormulario")
        inicio = parse_api_datetime(d.get("dataInicio"))
        return cls(
            id=d.get("id"),
            titulo=d.get("titulo") or "",
            descricao=d.get("descricao") or "",
            inicio=inicio,
            fim=parse_api_datetime(d.get("dataFim")) or inicio,
            all_day=bool(d.get("allDay")),
            tipo_evento_id=d.get("tipoEventoId"),
            tipo_evento=TipoEvento.from_api(tipo) if isinstance(tipo, dict) else None,
            inscricao_ativa=bool(d.get("inscricaoAtiva")),
            nome_formulario=_enum(NomeFormulario, nome_formulario, None) if nome_formulario is not None else None,
            slug=d.get("slug"),
            nivel_compartilhamento=_enum(NivelCompartilhamento, d.get("nivelCompartilhamento"),
                                         NivelCompartilhamento.LOCAL),
            filial_id=d.get("filialId"),
            recorrencia=_enum(Recorrencia, d.get("recorrencia"), Recorrencia.NAO_REPETE),
            fim_recorrencia=parse_api_date(d.get("fimRecorrencia")),
            evento_pai_id=d.get("eventoPaiId"),
            sala=Sala.from_api(sala) if isinstance(sala, dict) and sala.get("id") else None,
            interessado_id=d.get("interessadoId"),
            interessado=Interessado.from_api(interessado) if isinstance(interessado, dict) else None,
            reserva=Reserva.from_api(reserva) if isinstance(reserva, dict) else None,
        )

    @property
    def cor(self) -> str:
        return self.tipo_evento.cor if self.tipo_evento else "#6b7280"

    @property
    def e_recorrente(self) -> bool:
        """Raiz de série (tem regra) ou ocorrência gerada (tem pai)."""
        return self.recorrencia != Recorrencia.NAO_REPETE or self.evento_pai_id is not None

    def to_api(self) -> dict:
        """Corpo do PUT de atualização."""
        return {
            "id": self.id,
            "titulo": self.titulo,
            "descricao": self.descricao,
            "dataInicio": para_api_datetime(self.inicio),
            "dataFim": para_api_datetime(self.fim),
            "allDay": self.all_day,
            "tipoEventoId": self.tipo_evento_id,
            "inscricaoAtiva": self.inscricao_ativa,
            "nomeFormulario": int(self.nome_formulario) if self.nome_formulario is not None else None,
            "slug": self.slug or None,
            "nivelCompartilhamento": int(self.nivel_compartilhamento),
        }


# ---------------------------------------------------------------------
# Inscrição (ficha de batismo)
# ---------------------------------------------------------------------
@dataclass
class FichaInscricao:
    id: int
    evento_id: int
    nome: str
    email: str = ""
    telefone: str = ""
    nome_pai: str = ""
    nome_mae: str = ""
    data_nascimento: Optional[date] = None
    sexo: str = ""
    cidade: Optional[str] = None

    @classmethod
    def from_api(cls, d: dict) -> "FichaInscricao":
        return cls(
            id=d.get("id"),
            evento_id=d.get("eventoId"),
            nome=d.get("nome") or "",
            email=d.get("email") or "",
            telefone=d.get("telefone") or "",
            nome_pai=d.get("nomePai") or "",
            nome_mae=d.get("nomeMae") or "",
            data_nascimento=parse_api_date(d.get("dataNascimento")),
            sexo=d.get("sexo") or "",
            cidade=d.get("cidade"),
        )


# ---------------------------------------------------------------------
# Usuários e acessos
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class Acesso:
    modulo: str
    acesso: str

    def to_api(self) -> dict:
        return {"modulo": self.modulo, "acesso": self.acesso}


@dataclass
class Usuario:
    email: str
    nome: str
    acessos: list[Acesso] = field(default_factory=list)

    @classmethod
    def from_api(cls, d: dict) -> "Usuario":
        return cls(
            email=d.get("email") or "",
            nome=d.get("nome") or "",
            acessos=[Acesso(a.get("modulo") or "", a.get("acesso") or "") for a in (d.get("acessos") or [])],
        )

    def acessos_do_modulo(self, modulo: str) -> list[str]:
        return [a.acesso for a in self.acessos if a.modulo == modulo]

    def com_acessos_do_modulo(self, modulo: str, acessos: list[str]) -> list[Acesso]:
        """Substitui só o subconjunto do módulo, preservando os demais."""
        outros = [a for a in self.acessos if a.modulo != modulo]
        return outros + [Acesso(modulo, a) for a in acessos]

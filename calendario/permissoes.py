# calendario/permissoes.py
"""
Capacidades do usuário, derivadas das claims do token.

Cada capacidade é um par (recurso, ação) de um módulo; a string que vem no
token ("EventoCriar", "SalaAprovar" ...) é montada a partir do enum, nunca
digitada à mão. Não há hierarquia: cada ação exige a sua própria claim.
"""
from __future__ import annotations

import enum
import logging
from functools import wraps
from typing import Iterable, Mapping

from django.contrib import messages
from django.shortcuts import redirect

logger = logging.getLogger(__name__)

MODULO_CALENDARIO = "Calendario"
MODULO_AUTENTICACAO = "Autenticacao"


class Recurso(str, enum.Enum):
    EVENTO = "Evento"
    TIPO_EVENTO = "TipoEvento"
    SALA = "Sala"
    TIPO_SALA = "TipoSala"
    INTERESSADO = "Interessado"
    RESERVA = "Reserva"
    INSCRICAO = "Inscricao"
    ADMIN = "Admin"
    USUARIO = "Usuario"


class Acao(str, enum.Enum):
    LER = "Ler"
    CRIAR = "Criar"
    EDITAR = "Editar"
    EXCLUIR = "Excluir"
    APROVAR = "Aprovar"
    TOTAL = ""        # Admin: a claim é só o nome do recurso
    LISTAR = "Listar"


class Capacidade(enum.Enum):
    EVENTO_LER = (MODULO_CALENDARIO, Recurso.EVENTO, Acao.LER)
    EVENTO_CRIAR = (MODULO_CALENDARIO, Recurso.EVENTO, Acao.CRIAR)
    EVENTO_EDITAR = (MODULO_CALENDARIO, Recurso.EVENTO, Acao.EDITAR)
    EVENTO_EXCLUIR = (MODULO_CALENDARIO, Recurso.EVENTO, Acao.EXCLUIR)

    TIPO_EVENTO_LER = (MODULO_CALENDARIO, Recurso.TIPO_EVENTO, Acao.LER)
    TIPO_EVENTO_CRIAR = (MODULO_CALENDARIO, Recurso.TIPO_EVENTO, Acao.CRIAR)
    TIPO_EVENTO_EDITAR = (MODULO_CALENDARIO, Recurso.TIPO_EVENTO, Acao.EDITAR)
    TIPO_EVENTO_EXCLUIR = (MODULO_CALENDARIO, Recurso.TIPO_EVENTO, Acao.EXCLUIR)

    SALA_LER = (MODULO_CALENDARIO, Recurso.SALA, Acao.LER)
    SALA_CRIAR = (MODULO_CALENDARIO, Recurso.SALA, Acao.CRIAR)
    SALA_EDITAR = (MODULO_CALENDARIO, Recurso.SALA, Acao.EDITAR)
    SALA_EXCLUIR = (MODULO_CALENDARIO, Recurso.SALA, Acao.EXCLUIR)
    SALA_APROVAR = (MODULO_CALENDARIO, Recurso.SALA, Acao.APROVAR)

    TIPO_SALA_LER = (MODULO_CALENDARIO, Recurso.TIPO_SALA, Acao.LER)
    TIPO_SALA_CRIAR = (MODULO_CALENDARIO, Recurso.TIPO_SALA, Acao.CRIAR)
    TIPO_SALA_EDITAR = (MODULO_CALENDARIO, Recurso.TIPO_SALA, Acao.EDITAR)
    TIPO_SALA_EXCLUIR = (MODULO_CALENDARIO, Recurso.TIPO_SALA, Acao.EXCLUIR)

    INTERESSADO_LER = (MODULO_CALENDARIO, Recurso.INTERESSADO, Acao.LER)
    INTERESSADO_CRIAR = (MODULO_CALENDARIO, Recurso.INTERESSADO, Acao.CRIAR)
    INTERESSADO_EDITAR = (MODULO_CALENDARIO, Recurso.INTERESSADO, Acao.EDITAR)
    INTERESSADO_EXCLUIR = (MODULO_CALENDARIO, Recurso.INTERESSADO, Acao.EXCLUIR)

    RESERVA_LER = (MODULO_CALENDARIO, Recurso.RESERVA, Acao.LER)
    RESERVA_CRIAR = (MODULO_CALENDARIO, Recurso.RESERVA, Acao.CRIAR)
    RESERVA_EDITAR = (MODULO_CALENDARIO, Recurso.RESERVA, Acao.EDITAR)
    RESERVA_EXCLUIR = (MODULO_CALENDARIO, Recurso.RESERVA, Acao.EXCLUIR)

    INSCRICAO_LER = (MODULO_CALENDARIO, Recurso.INSCRICAO, Acao.LER)
    INSCRICAO_EXCLUIR = (MODULO_CALENDARIO, Recurso.INSCRICAO, Acao.EXCLUIR)

    ADMIN = (MODULO_CALENDARIO, Recurso.ADMIN, Acao.TOTAL)

    USUARIO_LISTAR = (MODULO_AUTENTICACAO, Recurso.USUARIO, Acao.LISTAR)

    @property
    def modulo(self) -> str:
        return self.value[0]

    @property
    def claim(self) -> str:
        """String exata esperada no token."""
        _, recurso, acao = self.value
        if recurso is Recurso.USUARIO:
            return f"{acao.value}{recurso.value}"   # "ListarUsuario"
        return f"{recurso.value}{acao.value}"

    @classmethod
    def do_modulo(cls, modulo: str) -> list["Capacidade"]:
        return [c for c in cls if c.modulo == modulo]


ROTULOS = {
    Capacidade.ADMIN: "Administrador (acesso total)",
    Capacidade.EVENTO_LER: "Ver eventos",
    Capacidade.EVENTO_CRIAR: "Criar eventos",
    Capacidade.EVENTO_EDITAR: "Editar eventos",
    Capacidade.EVENTO_EXCLUIR: "Excluir eventos",
    Capacidade.TIPO_EVENTO_LER: "Ver tipos de evento",
    Capacidade.TIPO_EVENTO_CRIAR: "Criar tipos de evento",
    Capacidade.TIPO_EVENTO_EDITAR: "Editar tipos de evento",
    Capacidade.TIPO_EVENTO_EXCLUIR: "Excluir tipos de evento",
    Capacidade.SALA_LER: "Ver reservas de sala",
    Capacidade.SALA_CRIAR: "Criar reservas de sala",
    Capacidade.SALA_EDITAR: "Editar reservas de sala",
    Capacidade.SALA_EXCLUIR: "Excluir reservas de sala",
    Capacidade.SALA_APROVAR: "Aprovar solicitações de sala",
    Capacidade.TIPO_SALA_LER: "Ver tipos de sala",
    Capacidade.TIPO_SALA_CRIAR: "Criar tipos de sala",
    Capacidade.TIPO_SALA_EDITAR: "Editar tipos de sala",
    Capacidade.TIPO_SALA_EXCLUIR: "Excluir tipos de sala",
    Capacidade.INTERESSADO_LER: "Ver contratantes",
    Capacidade.INTERESSADO_CRIAR: "Criar contratantes",
    Capacidade.INTERESSADO_EDITAR: "Editar contratantes",
    Capacidade.INTERESSADO_EXCLUIR: "Excluir contratantes",
    Capacidade.RESERVA_LER: "Ver contratos",
    Capacidade.RESERVA_CRIAR: "Criar contratos",
    Capacidade.RESERVA_EDITAR: "Editar contratos",
    Capacidade.RESERVA_EXCLUIR: "Excluir contratos",
    Capacidade.INSCRICAO_LER: "Ver inscrições",
    Capacidade.INSCRICAO_EXCLUIR: "Excluir inscrições",
}


class AcessoNegado(Exception):
    """Ação barrada no cliente: falta a claim correspondente."""

    def __init__(self, capacidade: Capacidade):
        self.capacidade = capacidade
        super().__init__(
            f"Acesso negado: você não tem permissão ({capacidade.claim})."
        )


class ConjuntoCapacidades:
    """Calculado uma vez por sessão a partir dos buckets de claims do token."""

    def __init__(self, claims: Mapping[str, Iterable[str]] | None = None):
        claims = claims or {}
        por_modulo = {modulo: set(valores) for modulo, valores in claims.items()}
        self._capacidades = frozenset(
            c for c in Capacidade if c.claim in por_modulo.get(c.modulo, ())
        )

    def pode(self, capacidade: Capacidade) -> bool:
        return capacidade in self._capacidades

    def __contains__(self, capacidade) -> bool:
        return self.pode(capacidade)

    def __iter__(self):
        return iter(sorted(self._capacidades, key=lambda c: c.name))

    def __len__(self) -> int:
        return len(self._capacidades)

    def __getitem__(self, nome: str) -> bool:
        # Acesso nos templates: {{ capacidades.EVENTO_CRIAR }}
        try:
            return self.pode(Capacidade[nome])
        except KeyError:
            raise KeyError(nome)

    @property
    def pode_ver_calendario(self) -> bool:
        return self.pode(Capacidade.EVENTO_LER) or self.pode(Capacidade.SALA_LER)


def exigir(sessao, capacidade: Capacidade) -> None:
    if not sessao.capacidades.pode(capacidade):
        logger.info("Ação barrada por falta de claim %s (usuario=%s)", capacidade.claim, sessao.email)
        raise AcessoNegado(capacidade)


def executar(sessao, capacidade: Capacidade, chamada, *args, **kwargs):
    """
    Despacha uma mutação só se a sessão tiver a capacidade.
    Sem a claim, ``AcessoNegado`` é levantado e ``chamada`` nunca é invocada.
    """
    exigir(sessao, capacidade)
    return chamada(*args, **kwargs)


def requer_capacidade(*capacidades: Capacidade, destino="calendario:dashboard", metodos=None):
    """
    Decorator de view: barra a tela inteira quando falta alguma capacidade.

    Com ``metodos`` (ex.: ``("POST",)``) só esses métodos são barrados, antes
    de a view tocar na API. ``destino`` é um nome de URL ou uma função que
    recebe os kwargs da view e devolve a URL.
    """

    def decorator(view):
        @wraps(view)
        def _wrapped(request, *args, **kwargs):
            if metodos is None or request.method in metodos:
                for capacidade in capacidades:
                    if not request.sessao.capacidades.pode(capacidade):
                        messages.error(request, str(AcessoNegado(capacidade)))
                        return redirect(destino(**kwargs) if callable(destino) else destino)
            return view(request, *args, **kwargs)
        return _wrapped

    return decorator

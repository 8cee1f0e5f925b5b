# calendario/services/recorrencia.py
"""
Escopo de edição/exclusão de eventos recorrentes.

A expansão da série é feita pelo backend; aqui só decidimos quando perguntar
e qual inteiro mandar em ``?scope=``.
"""
from __future__ import annotations

from django.db import models

EDITAR = "editar"
EXCLUIR = "excluir"


class EscopoEdicao(models.IntegerChoices):
    ESTE           = 0, "Apenas este evento"
    ESTE_E_FUTUROS = 1, "Este e os próximos eventos"
    TODOS          = 2, "Todos os eventos da série"


class EscopoExclusao(models.IntegerChoices):
    ESTE           = 0, "Apenas esta ocorrência"
    ESTE_E_FUTUROS = 1, "Esta e as próximas ocorrências"
    TODOS          = 2, "Todas as ocorrências"


_DESCRICOES = {
    (EDITAR, 0): "As alterações serão aplicadas somente a esta ocorrência, que deixa de seguir a série.",
    (EDITAR, 1): "As alterações valem para esta ocorrência e todas as seguintes.",
    (EDITAR, 2): "As alterações valem para a série inteira, inclusive ocorrências passadas.",
    (EXCLUIR, 0): "Somente esta ocorrência será removida.",
    (EXCLUIR, 1): "Esta ocorrência e todas as seguintes serão removidas.",
    (EXCLUIR, 2): "A série inteira será removida, inclusive ocorrências passadas.",
}


def _enum(tipo: str):
    if tipo == EDITAR:
        return EscopoEdicao
    if tipo == EXCLUIR:
        return EscopoExclusao
    raise ValueError(f"tipo de escopo desconhecido: {tipo!r}")


def exige_escopo(evento) -> bool:
    """Pergunta o escopo só para raiz de série ou ocorrência gerada."""
    return evento.e_recorrente


def opcoes_escopo(tipo: str) -> list[dict]:
    return [
        {"valor": int(m), "rotulo": m.label, "descricao": _DESCRICOES[(tipo, int(m))]}
        for m in _enum(tipo)
    ]


def resolver_escopo(tipo: str, valor):
    """Valida a escolha do usuário e devolve o membro do enum; ``ValueError`` se inválida."""
    enum_cls = _enum(tipo)
    try:
        return enum_cls(int(valor))
    except (TypeError, ValueError):
        raise ValueError(f"escopo inválido: {valor!r}")

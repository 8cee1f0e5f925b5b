# calendario/services/agregador.py
"""
Junta eventos e reservas de sala num único conjunto de itens de calendário.

Salas já vinculadas a um evento (``evento.sala.id``) não aparecem sozinhas:
são exibidas junto do evento dono.
"""
from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Optional

from .periodo import filtrar_do_dia, fim_exclusivo

MAX_POR_DIA = 3

COR_SALA_PADRAO = "#22c55e"
COR_EVENTO_PADRAO = "#6b7280"

BLOCO = "bloco"   # dia inteiro: bloco sólido na cor do tipo
PONTO = "ponto"   # com horário: bolinha colorida + faixa de horário


@dataclass
class ItemCalendario:
    tipo: str             # "evento" | "sala"
    id: int
    titulo: str
    inicio: datetime
    fim: datetime
    all_day: bool
    cor: str
    modo: str
    origem: object = None

    @property
    def horario(self) -> str:
        if self.all_day:
            return "Dia inteiro"
        return f"{self.inicio:%H:%M} - {self.fim:%H:%M}"


def _indice_tipos(tipos_de_sala) -> dict:
    if tipos_de_sala is None:
        return {}
    if isinstance(tipos_de_sala, dict):
        return tipos_de_sala
    return {t.id: t for t in tipos_de_sala}


def _tipo_da_sala(sala, tipos: dict):
    return tipos.get(sala.tipo_de_sala_id) or sala.tipo_de_sala


def salas_vinculadas(eventos) -> set:
    return {e.sala.id for e in eventos if e.sala is not None and e.sala.id}


def salas_independentes(eventos, salas) -> list:
    vinculadas = salas_vinculadas(eventos)
    return [s for s in salas if s.id not in vinculadas]


def _item_evento(evento, tipos: dict) -> ItemCalendario:
    titulo = evento.titulo
    if evento.sala is not None and evento.sala.id:
        tipo = _tipo_da_sala(evento.sala, tipos)
        titulo = f"{evento.titulo} {tipo.nome if tipo and tipo.nome else 'Sala'}"
    cor = evento.tipo_evento.cor if evento.tipo_evento and evento.tipo_evento.cor else COR_EVENTO_PADRAO
    return ItemCalendario(
        tipo="evento",
        id=evento.id,
        titulo=titulo,
        inicio=evento.inicio,
        fim=evento.fim,
        all_day=evento.all_day,
        cor=cor,
        modo=BLOCO if evento.all_day else PONTO,
        origem=evento,
    )


def _item_sala(sala, tipos: dict) -> ItemCalendario:
    tipo = _tipo_da_sala(sala, tipos)
    nome = tipo.nome if tipo and tipo.nome else "Sala"
    return ItemCalendario(
        tipo="sala",
        id=sala.id,
        titulo=f"{nome} - {sala.descricao or 'Reserva'}",
        inicio=sala.inicio,
        fim=sala.fim,
        all_day=sala.all_day,
        cor=(tipo.cor if tipo and tipo.cor else COR_SALA_PADRAO),
        modo=BLOCO if sala.all_day else PONTO,
        origem=sala,
    )


def montar_itens(eventos: Iterable, salas: Iterable, tipos_de_sala=None) -> list[ItemCalendario]:
    """Eventos primeiro, depois salas independentes; ordem de origem preservada."""
    eventos = list(eventos)
    tipos = _indice_tipos(tipos_de_sala)
    itens = [_item_evento(e, tipos) for e in eventos]
    itens += [_item_sala(s, tipos) for s in salas_independentes(eventos, list(salas))]
    return itens


@dataclass
class CelulaDia:
    dia: date
    visiveis: list
    excedente: int = 0
    do_mes: bool = True
    hoje: bool = False

    @property
    def rotulo_excedente(self) -> Optional[str]:
        return f"+{self.excedente} mais" if self.excedente > 0 else None


def celula_do_dia(itens, dia: date, limite: int = MAX_POR_DIA) -> CelulaDia:
    do_dia = filtrar_do_dia(itens, dia)
    return CelulaDia(dia=dia, visiveis=do_dia[:limite], excedente=max(0, len(do_dia) - limite))


def montar_mes(ano: int, mes: int, itens, hoje: Optional[date] = None) -> list[list[CelulaDia]]:
    """Semanas (domingo a sábado) cobrindo o mês, com dias vizinhos para completar."""
    itens = list(itens)
    semanas = []
    for semana in calendar.Calendar(firstweekday=calendar.SUNDAY).monthdatescalendar(ano, mes):
        linha = []
        for dia in semana:
            celula = celula_do_dia(itens, dia)
            celula.do_mes = dia.month == mes
            celula.hoje = dia == hoje
            linha.append(celula)
        semanas.append(linha)
    return semanas


def para_fullcalendar(itens: Iterable[ItemCalendario]) -> list[dict]:
    saida = []
    for item in itens:
        fim = fim_exclusivo(item.fim, item.all_day)
        if item.all_day:
            inicio_txt = item.inicio.date().isoformat()
            fim_txt = fim.date().isoformat() if fim else None
        else:
            inicio_txt = item.inicio.isoformat()
            fim_txt = fim.isoformat() if fim else None
        saida.append({
            "id": f"{item.tipo}-{item.id}",
            "title": item.titulo,
            "start": inicio_txt,
            "end": fim_txt,
            "allDay": item.all_day,
            "backgroundColor": item.cor if item.modo == BLOCO else "transparent",
            "borderColor": item.cor,
            "textColor": "#ffffff" if item.modo == BLOCO else item.cor,
            "display": "block" if item.modo == BLOCO else "list-item",
            "extendedProps": {"tipo": item.tipo, "id": item.id},
        })
    return saida

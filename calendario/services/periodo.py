# calendario/services/periodo.py
"""
Casamento de itens (eventos / salas) com um dia ou período.

- Dia inteiro: ocorre em todo dia de [início, fim], inclusive nas pontas.
- Com horário: ocorre só no dia do início (não se espalha por vários dias).
"""
from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterable, TypeVar

from django.utils import timezone

T = TypeVar("T")


def _dia(valor) -> date:
    if isinstance(valor, datetime):
        if timezone.is_aware(valor):
            valor = timezone.localtime(valor)
        return valor.date()
    return valor


def ocorre_no_dia(inicio, fim, all_day: bool, dia: date) -> bool:
    inicio_d = _dia(inicio)
    fim_d = _dia(fim) if fim is not None else inicio_d
    if all_day:
        return inicio_d <= dia <= max(inicio_d, fim_d)
    return inicio_d == dia


def ocorre_no_periodo(inicio, fim, all_day: bool, de: date, ate: date) -> bool:
    """Janela [de, ate] inclusiva (ex.: mês visível)."""
    inicio_d = _dia(inicio)
    fim_d = _dia(fim) if fim is not None else inicio_d
    if all_day:
        return inicio_d <= ate and max(inicio_d, fim_d) >= de
    return de <= inicio_d <= ate


def filtrar_do_dia(itens: Iterable[T], dia: date) -> list[T]:
    """Itens com atributos ``inicio``, ``fim`` e ``all_day``."""
    return [i for i in itens if ocorre_no_dia(i.inicio, i.fim, i.all_day, dia)]


def filtrar_do_periodo(itens: Iterable[T], de: date, ate: date) -> list[T]:
    return [i for i in itens if ocorre_no_periodo(i.inicio, i.fim, i.all_day, de, ate)]


def fim_exclusivo(fim, all_day: bool):
    """A biblioteca de calendário trata o fim como exclusivo: soma 1 dia nos de dia inteiro."""
    if fim is None or not all_day:
        return fim
    return fim + timedelta(days=1)

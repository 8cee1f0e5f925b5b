# calendario/services/parcelas.py
"""
Plano de parcelas de um contrato (Reserva), sempre em centavos.

O que sobra da divisão (total - sinal) / quantidade vai inteiro para a
primeira parcela, então a soma fecha exatamente no restante.
"""
from __future__ import annotations

from dataclasses import replace
from datetime import date, timedelta
from typing import Optional

from calendario.models import Parcela

INTERVALO_DIAS = 30


def restante(valor_total: Optional[int], valor_sinal: Optional[int]) -> int:
    return max(0, (valor_total or 0) - (valor_sinal or 0))


def distribuir(parcelas: list[Parcela], valor_total: Optional[int],
               valor_sinal: Optional[int]) -> list[Parcela]:
    if not parcelas:
        return []
    falta = restante(valor_total, valor_sinal)
    base, sobra = divmod(falta, len(parcelas))
    return [
        replace(p, valor=base + sobra if i == 0 else base)
        for i, p in enumerate(parcelas)
    ]


def adicionar_parcela(parcelas: list[Parcela], hoje: date) -> list[Parcela]:
    """Nova parcela 30 dias após a última (ou hoje, se for a primeira), com valor 0."""
    vencimento = hoje
    if parcelas and parcelas[-1].data_vencimento:
        vencimento = parcelas[-1].data_vencimento + timedelta(days=INTERVALO_DIAS)
    nova = Parcela(numero=len(parcelas) + 1, valor=0, data_vencimento=vencimento)
    return [replace(p) for p in parcelas] + [nova]


def remover_parcela(parcelas: list[Parcela], numero: int) -> list[Parcela]:
    restantes = [p for p in parcelas if p.numero != numero]
    return [replace(p, numero=i) for i, p in enumerate(restantes, start=1)]


def gerar_parcelas(quantidade: int, primeiro_vencimento: date) -> list[Parcela]:
    return [
        Parcela(
            numero=i + 1,
            valor=0,
            data_vencimento=primeiro_vencimento + timedelta(days=INTERVALO_DIAS * i),
        )
        for i in range(max(0, quantidade))
    ]


def soma(parcelas: list[Parcela]) -> int:
    return sum(p.valor for p in parcelas)

from datetime import date

import pytest

from calendario.models import Parcela
from calendario.services.parcelas import (
    adicionar_parcela, distribuir, gerar_parcelas, remover_parcela, restante, soma,
)


def _plano(n, inicio=date(2024, 7, 10)):
    return gerar_parcelas(n, inicio)


def test_sobra_vai_para_a_primeira_parcela():
    parcelas = distribuir(_plano(3), 100000, 20000)
    assert [p.valor for p in parcelas] == [26668, 26666, 26666]
    assert soma(parcelas) == 80000


@pytest.mark.parametrize("total, sinal, n", [
    (100000, 20000, 3),
    (99999, 0, 7),
    (1, 0, 4),
    (500000, 123456, 12),
    (0, 0, 2),
])
def test_soma_fecha_no_restante(total, sinal, n):
    parcelas = distribuir(_plano(n), total, sinal)
    assert soma(parcelas) == restante(total, sinal)
    assert all(p.valor >= 0 for p in parcelas)


def test_sem_parcelas_e_valores_ausentes():
    assert distribuir([], 100000, 0) == []
    assert [p.valor for p in distribuir(_plano(2), None, None)] == [0, 0]
    # sinal maior que o total não gera parcelas negativas
    assert [p.valor for p in distribuir(_plano(2), 1000, 5000)] == [0, 0]


def test_distribuir_nao_altera_a_lista_original():
    originais = _plano(2)
    distribuir(originais, 1000, 0)
    assert [p.valor for p in originais] == [0, 0]


def test_gerar_parcelas_a_cada_30_dias():
    parcelas = _plano(3)
    assert [p.numero for p in parcelas] == [1, 2, 3]
    assert [p.data_vencimento for p in parcelas] == [date(2024, 7, 10), date(2024, 8, 9), date(2024, 9, 8)]
    assert gerar_parcelas(0, date(2024, 7, 10)) == []


def test_adicionar_parcela():
    hoje = date(2024, 6, 1)
    primeira = adicionar_parcela([], hoje)
    assert primeira == [Parcela(numero=1, valor=0, data_vencimento=hoje)]

    parcelas = adicionar_parcela(_plano(2), hoje)
    assert [p.numero for p in parcelas] == [1, 2, 3]
    assert parcelas[-1].data_vencimento == date(2024, 9, 8)
    assert parcelas[-1].valor == 0


def test_remover_parcela_renumera():
    parcelas = remover_parcela(_plano(4), 2)
    assert [p.numero for p in parcelas] == [1, 2, 3]
    assert [p.data_vencimento for p in parcelas] == [date(2024, 7, 10), date(2024, 9, 8), date(2024, 10, 8)]

    assert remover_parcela(_plano(1), 1) == []

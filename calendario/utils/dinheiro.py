# calendario/utils/dinheiro.py
"""
Valores monetários circulam como ``int`` em centavos.
Só convertemos nas bordas: JSON da API (reais com 2 casas) e tela ("R$ 1.234,56").
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
import re
from typing import Optional

CENT = Decimal("0.01")


def para_centavos(valor) -> int:
    """
    Converte número/str/Decimal/None em centavos.
    Aceita "1.234,56", "1234,56", "1234.56", "R$ 10", 10, 10.5, Decimal("10.50").
    """
    if valor is None or valor == "":
        return 0
    if isinstance(valor, bool):
        raise ValueError("valor monetário inválido")
    if isinstance(valor, int):
        return valor * 100
    if isinstance(valor, (float, Decimal)):
        d = Decimal(str(valor))
    else:
        texto = re.sub(r"[^\d,.\-]", "", str(valor))
        if "," in texto:
            # formato BR: ponto de milhar, vírgula decimal
            texto = texto.replace(".", "").replace(",", ".")
        if texto in ("", "-", "."):
            return 0
        try:
            d = Decimal(texto)
        except InvalidOperation:
            raise ValueError(f"valor monetário inválido: {valor!r}")
    return int((d.quantize(CENT, rounding=ROUND_HALF_UP) * 100).to_integral_value())


def centavos_para_decimal(centavos: int) -> Decimal:
    return (Decimal(int(centavos or 0)) / 100).quantize(CENT)


def centavos_para_api(centavos: Optional[int]):
    if centavos is None:
        return None
    return float(centavos_para_decimal(centavos))


def formatar_reais(centavos: Optional[int]) -> str:
    d = centavos_para_decimal(centavos or 0)
    sinal = "-" if d < 0 else ""
    inteiro, frac = f"{abs(d):.2f}".split(".")
    grupos = []
    while len(inteiro) > 3:
        grupos.insert(0, inteiro[-3:])
        inteiro = inteiro[:-3]
    grupos.insert(0, inteiro)
    return f"{sinal}R$ {'.'.join(grupos)},{frac}"


def formatar_campo(centavos: Optional[int]) -> str:
    """Valor para preencher input de formulário: "1234,56"."""
    return f"{centavos_para_decimal(centavos or 0):.2f}".replace(".", ",")



# calendario/services/exportacao.py
"""Exportação de inscrições em CSV e links públicos de inscrição."""
from __future__ import annotations

import csv
import re
from datetime import date
from io import StringIO
from typing import Iterable, Optional

BOM = "\ufeff"

CABECALHO = ["Nome", "Email", "Telefone", "Nome do Pai", "Nome da Mãe"]


def _campo(valor) -> str:
    return "" if valor is None else str(valor)


def gerar_csv(inscricoes: Iterable) -> str:
    """Texto completo (com BOM) pronto para gravar em UTF-8."""
    buffer = StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CABECALHO)
    for ins in inscricoes:
        writer.writerow([
            _campo(ins.nome),
            _campo(ins.email),
            _campo(ins.telefone),
            _campo(ins.nome_pai),
            _campo(ins.nome_mae),
        ])
    # linhas separadas por "\n", sem terminador depois da última
    return BOM + buffer.getvalue().removesuffix("\n")


def nome_arquivo(titulo: Optional[str], hoje: date) -> str:
    slug = re.sub(r"[^a-zA-Z0-9]", "_", titulo) if titulo else "evento"
    return f"inscricoes_{slug}_{hoje.isoformat()}.csv"


def link_inscricao(evento, base_url: str) -> Optional[str]:
    if not evento.inscricao_ativa:
        return None
    base = (base_url or "").rstrip("/")
    if evento.slug and evento.filial_id:
        return f"{base}/inscricao/{evento.filial_id}/{evento.slug}"
    if evento.id:
        return f"{base}/inscricao/{evento.id}"
    return None

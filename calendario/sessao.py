# calendario/sessao.py
"""
Sessão do usuário logado: token JWT, empresa, filiais e capacidades.

O objeto é montado explicitamente (``init``) a partir do que está guardado na
sessão Django e encerrado com ``teardown``. Não há singleton: o middleware
cria um por requisição e o pendura em ``request.sessao``.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional

from jose import jwt
from jose.exceptions import JOSEError

from integracoes.ecclesia import ClienteAgenda, ClienteAutenticacao

from .permissoes import ConjuntoCapacidades

logger = logging.getLogger(__name__)

CHAVE_TOKEN = "auth_token"
CHAVE_FILIAL = "filial_selecionada"

# claims de identidade/registro que não são buckets de permissão
_CLAIMS_RESERVADAS = {
    "sub", "email", "name", "jti", "iss", "aud", "exp", "nbf", "iat",
    "EmpresaId", "EmpresaName",
}


@dataclass(frozen=True)
class Filial:
    id: int
    nome: str
    documento: str


def decodificar_token(token: str) -> dict:
    """Payload do JWT sem verificar assinatura (quem valida é a API)."""
    return jwt.get_unverified_claims(token)


def extrair_filiais(payload: dict) -> list[Filial]:
    filiais = []
    for chave, valor in payload.items():
        if not chave.startswith("Filial"):
            continue
        try:
            indice = int(chave[len("Filial"):])
        except ValueError:
            continue
        if isinstance(valor, (list, tuple)) and len(valor) >= 2:
            filiais.append(Filial(id=indice, nome=str(valor[0]), documento=str(valor[1])))
    return sorted(filiais, key=lambda f: f.id)


def extrair_claims(payload: dict) -> dict[str, list[str]]:
    """Buckets por módulo ("Calendario": [...]). Claim única vira lista de um item."""
    claims: dict[str, list[str]] = {}
    for chave, valor in payload.items():
        if chave.startswith("Filial") or chave in _CLAIMS_RESERVADAS:
            continue
        if isinstance(valor, list) and valor and all(isinstance(v, str) for v in valor):
            claims[chave] = list(valor)
        elif isinstance(valor, str):
            claims[chave] = [valor]
    return claims


class SessaoParoquial:
    def __init__(self, armazenamento):
        # armazenamento = request.session (ou qualquer dict-like)
        self._armazenamento = armazenamento
        self.token: Optional[str] = None
        self.payload: dict = {}
        self.filiais: list[Filial] = []
        self.filial_id: int = 1
        self.claims: dict[str, list[str]] = {}
        self.capacidades = ConjuntoCapacidades()
        self._clientes: dict[tuple, object] = {}

    # ------------------------------------------------------------
    # Ciclo de vida
    # ------------------------------------------------------------
    def init(self) -> "SessaoParoquial":
        token = self._armazenamento.get(CHAVE_TOKEN)
        if not token:
            return self
        try:
            payload = decodificar_token(token)
        except (JOSEError, ValueError) as e:
            logger.warning("Token inválido na sessão, descartando: %s", e)
            self.teardown()
            return self

        self.token = token
        self.payload = payload
        self.filiais = extrair_filiais(payload)
        self.claims = extrair_claims(payload)
        self.capacidades = ConjuntoCapacidades(self.claims)

        ids = {f.id for f in self.filiais}
        salva = self._armazenamento.get(CHAVE_FILIAL)
        if salva in ids:
            self.filial_id = salva
        elif self.filiais:
            self.filial_id = self.filiais[0].id
            self._armazenamento[CHAVE_FILIAL] = self.filial_id
        return self

    def entrar(self, token: str) -> "SessaoParoquial":
        """Guarda um token recém-obtido no login e reinicializa."""
        self._armazenamento[CHAVE_TOKEN] = token
        self._armazenamento.pop(CHAVE_FILIAL, None)
        return self.init()

    def teardown(self) -> None:
        self.fechar()
        self._armazenamento.pop(CHAVE_TOKEN, None)
        self._armazenamento.pop(CHAVE_FILIAL, None)
        self.token = None
        self.payload = {}
        self.filiais = []
        self.filial_id = 1
        self.claims = {}
        self.capacidades = ConjuntoCapacidades()

    # ------------------------------------------------------------
    # Estado
    # ------------------------------------------------------------
    @property
    def token_valido(self) -> bool:
        exp = self.payload.get("exp")
        try:
            return exp is not None and float(exp) > time.time()
        except (TypeError, ValueError):
            return False

    @property
    def autenticada(self) -> bool:
        return bool(self.token) and self.token_valido

    @property
    def empresa_id(self) -> Optional[int]:
        try:
            return int(self.payload.get("EmpresaId"))
        except (TypeError, ValueError):
            return None

    @property
    def empresa_nome(self) -> str:
        return self.payload.get("EmpresaName") or ""

    @property
    def email(self) -> str:
        return self.payload.get("email") or self.payload.get("sub") or ""

    @property
    def filial(self) -> Optional[Filial]:
        return next((f for f in self.filiais if f.id == self.filial_id), None)

    def selecionar_filial(self, filial_id: int) -> bool:
        if filial_id not in {f.id for f in self.filiais}:
            return False
        self.filial_id = filial_id
        self._armazenamento[CHAVE_FILIAL] = filial_id
        return True

    # ------------------------------------------------------------
    # Clientes da API
    # ------------------------------------------------------------
    # Um cliente por (token, filial) durante a requisição; o middleware fecha.
    def cliente(self) -> ClienteAgenda:
        chave = ("agenda", self.token, self.filial_id)
        if chave not in self._clientes:
            self._clientes[chave] = ClienteAgenda(self.token, self.filial_id)
        return self._clientes[chave]

    def cliente_autenticacao(self) -> ClienteAutenticacao:
        chave = ("autenticacao", self.token)
        if chave not in self._clientes:
            self._clientes[chave] = ClienteAutenticacao(self.token)
        return self._clientes[chave]

    def fechar(self) -> None:
        for cliente in self._clientes.values():
            cliente.close()
        self._clientes.clear()

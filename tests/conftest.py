"""Fixtures da suíte da Agenda Paroquial.

- ``gerar_token``: JWT de teste com claims/filiais (assinatura irrelevante; o app não verifica);
- ``logar``: client de teste com o token já guardado na sessão;
- ``api``: API remota falsa, via monkeypatch em ``requests.Session.request``,
  que registra todas as chamadas.
"""

from __future__ import annotations

import json
import time
from urllib.parse import urlsplit

import pytest
import requests
from django.core.cache import cache
from jose import jwt

from calendario.sessao import CHAVE_TOKEN

API_AGENDA = "http://agenda.test/api"
API_AUTH = "http://auth.test/api"


@pytest.fixture(autouse=True)
def _apis_de_teste(settings):
    settings.AGENDA_API_URL = API_AGENDA
    settings.AUTH_API_URL = API_AUTH
    settings.SITE_DOMAIN = "https://agenda.paroquia.test"
    cache.clear()
    yield
    cache.clear()


# =============================================================================
# Token
# =============================================================================
@pytest.fixture
def gerar_token():
    def _gerar(capacidades=(), exp_em=3600, filiais=None, **extra):
        payload = {
            "sub": "ana@paroquia.org",
            "email": "ana@paroquia.org",
            "EmpresaId": "7",
            "EmpresaName": "Paróquia São José",
            "exp": int(time.time()) + exp_em,
        }
        for indice, (nome, documento) in (filiais or {1: ("Matriz", "11.111.111/0001-11")}).items():
            payload[f"Filial{indice}"] = [nome, documento]
        for cap in capacidades:
            payload.setdefault(cap.modulo, []).append(cap.claim)
        payload.update(extra)
        return jwt.encode(payload, "segredo-qualquer", algorithm="HS256")

    return _gerar


@pytest.fixture
def logar(client, gerar_token):
    def _logar(*capacidades, **kwargs):
        session = client.session
        session[CHAVE_TOKEN] = gerar_token(capacidades, **kwargs)
        session.save()
        return client

    return _logar


# =============================================================================
# API falsa
# =============================================================================
def resposta(status=200, corpo=None, content_type="application/json", url=""):
    r = requests.Response()
    r.status_code = status
    r.url = url
    r.encoding = "utf-8"
    if corpo is None:
        r._content = b""
    elif isinstance(corpo, (bytes, str)):
        r._content = corpo.encode() if isinstance(corpo, str) else corpo
        r.headers["Content-Type"] = content_type
    else:
        r._content = json.dumps(corpo).encode()
        r.headers["Content-Type"] = content_type
    return r


class ApiFake:
    """Rotas por (MÉTODO, caminho sem o prefixo /api). Não registrada = 404."""

    def __init__(self):
        self.rotas = {}
        self.chamadas = []

    def responder(self, metodo, caminho, corpo=None, status=200):
        self.rotas[(metodo.upper(), caminho)] = (status, corpo)

    def __call__(self, session, method, url, **kwargs):
        caminho = urlsplit(url).path
        if caminho.startswith("/api"):
            caminho = caminho[len("/api"):]
        self.chamadas.append({
            "metodo": method.upper(),
            "caminho": caminho,
            "host": urlsplit(url).netloc,
            "params": kwargs.get("params"),
            "json": kwargs.get("json"),
            "headers": dict(session.headers),
            "timeout": kwargs.get("timeout"),
        })
        status, corpo = self.rotas.get((method.upper(), caminho), (404, {"message": "Rota não encontrada"}))
        return resposta(status, corpo, url=url)

    def feitas(self, metodo=None, caminho=None):
        return [
            c for c in self.chamadas
            if (metodo is None or c["metodo"] == metodo) and (caminho is None or c["caminho"] == caminho)
        ]

    @property
    def mutacoes(self):
        return [c for c in self.chamadas if c["metodo"] in ("POST", "PUT", "DELETE")]


@pytest.fixture
def api(monkeypatch):
    fake = ApiFake()

    def _request(self, method, url, **kwargs):
        return fake(self, method, url, **kwargs)

    monkeypatch.setattr(requests.Session, "request", _request)
    return fake


# =============================================================================
# Dados de exemplo (JSON como a API devolve)
# =============================================================================
@pytest.fixture
def evento_json():
    def _evento(id=10, **kwargs):
        dados = {
            "id": id,
            "titulo": "Missa de Natal",
            "descricao": "Celebração",
            "dataInicio": "2024-12-24T22:00:00",
            "dataFim": "2024-12-24T23:30:00",
            "allDay": False,
            "tipoEventoId": 1,
            "tipoEvento": {"id": 1, "nome": "Missa", "cor": "#1d4ed8", "categoriaContrato": 0},
            "inscricaoAtiva": False,
            "nomeFormulario": None,
            "slug": None,
            "nivelCompartilhamento": 0,
            "filialId": 1,
            "recorrencia": 0,
            "fimRecorrencia": None,
            "eventoPaiId": None,
            "sala": None,
        }
        dados.update(kwargs)
        return dados

    return _evento

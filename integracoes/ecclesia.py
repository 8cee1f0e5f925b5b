# integracoes/ecclesia.py
"""
Clientes HTTP das APIs remotas:

- ``ClienteAgenda``: API da Agenda Paroquial, sempre escopada por filial
  (``/{filialId}/Eventos``, ``/{filialId}/Salas`` ...).
- ``ClienteAutenticacao``: login, usuários e senha (API de Autenticação).

Nenhum estado é guardado aqui além da sessão ``requests``; quem chama decide
quando buscar de novo.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Optional

import requests
from django.conf import settings

logger = logging.getLogger(__name__)


def _agenda_url() -> str:
    return getattr(settings, "AGENDA_API_URL", "").rstrip("/")


def _auth_url() -> str:
    return getattr(settings, "AUTH_API_URL", "").rstrip("/")


def _timeout() -> int:
    return int(getattr(settings, "API_TIMEOUT", 30))


class ApiError(Exception):
    """Resposta não-2xx (ou falha de rede, com status 0) da API remota."""

    def __init__(self, status: int, corpo: str = ""):
        self.status = status
        self.corpo = corpo or ""
        super().__init__(f"API Error: {status} - {self.corpo}")

    @property
    def mensagem(self) -> str:
        """Mensagem amigável: campo ``message`` do JSON, se houver; senão o texto cru."""
        texto = self.corpo.strip()
        if not texto:
            if self.status == 0:
                return "Não foi possível conectar ao servidor."
            return f"Erro {self.status} ao comunicar com o servidor."
        try:
            dados = json.loads(texto)
        except ValueError:
            return texto
        if isinstance(dados, dict):
            for chave in ("message", "mensagem", "title", "detail"):
                valor = dados.get(chave)
                if isinstance(valor, str) and valor.strip():
                    return valor.strip()
        return texto


def _interpretar(r: requests.Response) -> Any:
    # 204 / corpo vazio / não-JSON: trata como objeto vazio
    if r.status_code == 204 or not r.content:
        return {}
    if "application/json" not in (r.headers.get("Content-Type") or ""):
        return {}
    try:
        return r.json()
    except ValueError:
        return {}


class _ClienteBase:
    base_url = ""

    def __init__(self, token: Optional[str] = None, base_url: Optional[str] = None,
                 timeout: Optional[int] = None):
        self.token = token
        if base_url is not None:
            self.base_url = base_url.rstrip("/")
        self.timeout = timeout or _timeout()
        self.http = requests.Session()
        self.http.headers.update({"Content-Type": "application/json"})
        if token:
            self.http.headers["Authorization"] = f"Bearer {token}"

    def close(self) -> None:
        self.http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _url(self, caminho: str) -> str:
        return f"{self.base_url}{caminho}"

    def _request(self, metodo: str, caminho: str, *, json_body: Any = None,
                 params: Optional[dict] = None) -> Any:
        url = self._url(caminho)
        try:
            r = self.http.request(metodo, url, json=json_body, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("Falha de rede em %s %s: %s", metodo, url, e)
            raise ApiError(0, "") from e

        logger.debug("%s %s -> %s", metodo, url, r.status_code)
        try:
            r.raise_for_status()
        except requests.HTTPError as e:
            logger.warning("API %s %s falhou: %s %s", metodo, url, r.status_code, r.text)
            raise ApiError(r.status_code, r.text) from e
        return _interpretar(r)

    def _get(self, caminho: str, params: Optional[dict] = None) -> Any:
        return self._request("GET", caminho, params=params)

    def _post(self, caminho: str, dados: Any) -> Any:
        return self._request("POST", caminho, json_body=dados)

    def _put(self, caminho: str, dados: Any, params: Optional[dict] = None) -> Any:
        return self._request("PUT", caminho, json_body=dados, params=params)

    def _delete(self, caminho: str, params: Optional[dict] = None) -> Any:
        return self._request("DELETE", caminho, params=params)


def _params_escopo(escopo) -> Optional[dict]:
    if escopo is None:
        return None
    return {"scope": int(escopo)}


def _lista(dados: Any) -> list:
    return dados if isinstance(dados, list) else []


# -----------------------------------------------------------------------------
# Agenda Paroquial
# -----------------------------------------------------------------------------
class ClienteAgenda(_ClienteBase):
    def __init__(self, token: Optional[str], filial_id: int, base_url: Optional[str] = None,
                 timeout: Optional[int] = None):
        self.base_url = _agenda_url()
        super().__init__(token=token, base_url=base_url, timeout=timeout)
        self.filial_id = int(filial_id)

    def _url(self, caminho: str) -> str:
        return f"{self.base_url}/{self.filial_id}{caminho}"

    # ----- Eventos -----
    def listar_eventos(self, nivel=None) -> list:
        params = {"nivelCompartilhamento": int(nivel)} if nivel is not None else None
        return _lista(self._get("/Eventos", params=params))

    def listar_eventos_publicos(self) -> list:
        return _lista(self._get("/Eventos/Publicos"))

    def obter_evento(self, evento_id: int) -> dict:
        return self._get(f"/Eventos/{evento_id}")

    def obter_evento_por_slug(self, slug: str) -> dict:
        return self._get(f"/Eventos/Slug/{slug}")

    def criar_evento(self, payload: dict) -> dict:
        return self._post("/Eventos", payload)

    def atualizar_evento(self, evento_id: int, payload: dict, escopo=None) -> dict:
        return self._put(f"/Eventos/{evento_id}", payload, params=_params_escopo(escopo))

    def excluir_evento(self, evento_id: int, escopo=None) -> dict:
        return self._delete(f"/Eventos/{evento_id}", params=_params_escopo(escopo))

    # ----- Salas (reservas de sala) -----
    def listar_salas(self) -> list:
        return _lista(self._get("/Salas"))

    def listar_salas_pendentes(self) -> list:
        return _lista(self._get("/Salas/Pendentes"))

    def obter_sala(self, sala_id: int) -> dict:
        return self._get(f"/Salas/{sala_id}")

    def criar_sala(self, payload: dict) -> dict:
        return self._post("/Salas", payload)

    def atualizar_sala(self, sala_id: int, payload: dict, escopo=None) -> dict:
        return self._put(f"/Salas/{sala_id}", payload, params=_params_escopo(escopo))

    def atualizar_status_sala(self, sala_id: int, status) -> dict:
        return self._put(f"/Salas/{sala_id}/Status", {"id": sala_id, "status": int(status)})

    def excluir_sala(self, sala_id: int, escopo=None) -> dict:
        return self._delete(f"/Salas/{sala_id}", params=_params_escopo(escopo))

    # ----- Tipos de evento -----
    def listar_tipos_evento(self) -> list:
        return _lista(self._get("/TiposEventos"))

    def listar_tipos_evento_global(self) -> list:
        return _lista(self._get("/TiposEventoGlobal"))

    def criar_tipo_evento(self, payload: dict) -> dict:
        return self._post("/TiposEventos", payload)

    def atualizar_tipo_evento(self, tipo_id: int, payload: dict) -> dict:
        return self._put(f"/TiposEventos/{tipo_id}", payload)

    def excluir_tipo_evento(self, tipo_id: int) -> dict:
        return self._delete(f"/TiposEventos/{tipo_id}")

    # ----- Tipos de sala -----
    def listar_tipos_sala(self) -> list:
        return _lista(self._get("/TiposDeSalas"))

    def criar_tipo_sala(self, payload: dict) -> dict:
        return self._post("/TiposDeSalas", payload)

    def atualizar_tipo_sala(self, tipo_id: int, payload: dict) -> dict:
        return self._put(f"/TiposDeSalas/{tipo_id}", payload)

    def excluir_tipo_sala(self, tipo_id: int) -> dict:
        return self._delete(f"/TiposDeSalas/{tipo_id}")

    # ----- Interessados (contratantes) -----
    def listar_interessados(self) -> list:
        return _lista(self._get("/Interessados"))

    def obter_interessado(self, interessado_id: int) -> dict:
        return self._get(f"/Interessados/{interessado_id}")

    def criar_interessado(self, payload: dict) -> dict:
        return self._post("/Interessados", payload)

    def atualizar_interessado(self, interessado_id: int, payload: dict) -> dict:
        return self._put(f"/Interessados/{interessado_id}", payload)

    def excluir_interessado(self, interessado_id: int) -> dict:
        return self._delete(f"/Interessados/{interessado_id}")

    # ----- Reservas (contratos) -----
    def listar_reservas(self) -> list:
        return _lista(self._get("/Reservas"))

    def obter_reserva(self, reserva_id: int) -> dict:
        return self._get(f"/Reservas/{reserva_id}")

    def atualizar_reserva(self, reserva_id: int, payload: dict) -> dict:
        return self._put(f"/Reservas/{reserva_id}", payload)

    # ----- Inscrições -----
    def listar_inscricoes(self, evento_id: int) -> list:
        return _lista(self._get(f"/FichaInscricaoBatismos/Evento/{evento_id}"))


# -----------------------------------------------------------------------------
# Endpoints públicos (sem token)
# -----------------------------------------------------------------------------
def _publico(filial_id: int) -> ClienteAgenda:
    return ClienteAgenda(None, filial_id)


def obter_evento_publico(filial_id: int, slug: str) -> dict:
    with _publico(filial_id) as cliente:
        return cliente._get(f"/Eventos/publico/{slug}")


def obter_evento_publico_por_id(filial_id: int, evento_id: int) -> dict:
    with _publico(filial_id) as cliente:
        return cliente._get(f"/Eventos/{evento_id}")


def listar_eventos_publicos_filial(filial_id: int) -> list:
    with _publico(filial_id) as cliente:
        return _lista(cliente._get("/Eventos/Publicos"))


def enviar_ficha_batismo(filial_id: int, payload: dict) -> dict:
    with _publico(filial_id) as cliente:
        return cliente._post("/FichaInscricaoBatismos", payload)


# -----------------------------------------------------------------------------
# Autenticação / usuários
# -----------------------------------------------------------------------------
class ClienteAutenticacao(_ClienteBase):
    def __init__(self, token: Optional[str] = None, base_url: Optional[str] = None,
                 timeout: Optional[int] = None):
        self.base_url = _auth_url()
        super().__init__(token=token, base_url=base_url, timeout=timeout)

    def autenticar(self, email: str, senha: str) -> str:
        """Retorna o token JWT; ``ApiError`` se o login falhar ou não vier token."""
        dados = self._post("/Autenticacao/LogIn", {"email": email, "senha": senha})
        token = dados.get("token") if isinstance(dados, dict) else None
        if not token:
            raise ApiError(401, json.dumps({"message": "Token não retornado pelo servidor."}))
        return token

    def listar_usuarios(self) -> list:
        return _lista(self._get("/Usuarios/ListarUsuarios"))

    def cadastrar_usuario(self, email: str, nome: str, empresa_id: int, claims: list[str]) -> dict:
        return self._post("/Autenticacao/Cadastro", {
            "email": email,
            "nome": nome,
            "empresaId": int(empresa_id),
            "claims": [{"type": "Calendario", "value": c} for c in claims],
            "filiais": [],
        })

    def atualizar_usuario(self, email: str, nome: str, acessos: list[dict]) -> dict:
        return self._put(f"/Usuarios/AtualizarUsuario/{email}", {
            "email": email,
            "nome": nome,
            "acessos": acessos,
        })

    def alterar_senha(self, senha_atual: str, nova_senha: str, confirmacao: str) -> dict:
        return self._post("/Autenticacao/ChangePassword", {
            "oldPassword": senha_atual,
            "newPassword": nova_senha,
            "confirmPassword": confirmacao,
        })

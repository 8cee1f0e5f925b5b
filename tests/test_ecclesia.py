import pytest
import requests

from calendario.services.recorrencia import EscopoEdicao, EscopoExclusao
from integracoes.ecclesia import (
    ApiError, ClienteAgenda, ClienteAutenticacao, enviar_ficha_batismo, obter_evento_publico,
)


def test_rotas_escopadas_por_filial_com_bearer(api):
    api.responder("GET", "/3/Eventos", [{"id": 1}])
    cliente = ClienteAgenda("tok", 3)

    assert cliente.listar_eventos() == [{"id": 1}]
    chamada = api.chamadas[0]
    assert chamada["host"] == "agenda.test"
    assert chamada["caminho"] == "/3/Eventos"
    assert chamada["headers"]["Authorization"] == "Bearer tok"
    assert chamada["timeout"] == 30


def test_filtro_de_nivel_vai_na_query(api):
    api.responder("GET", "/1/Eventos", [])
    ClienteAgenda("tok", 1).listar_eventos(nivel=2)
    assert api.chamadas[0]["params"] == {"nivelCompartilhamento": 2}


def test_escopo_de_recorrencia_na_query(api):
    api.responder("PUT", "/1/Eventos/9", {"id": 9})
    api.responder("DELETE", "/1/Eventos/9", None, status=204)
    cliente = ClienteAgenda("tok", 1)

    cliente.atualizar_evento(9, {"titulo": "x"}, escopo=EscopoEdicao.TODOS)
    assert cliente.excluir_evento(9, escopo=EscopoExclusao.ESTE) == {}
    cliente.excluir_evento(9)

    put, delete_com_escopo, delete_simples = api.chamadas
    assert put["params"] == {"scope": 2}
    assert put["json"] == {"titulo": "x"}
    assert delete_com_escopo["params"] == {"scope": 0}
    assert delete_simples["params"] is None


def test_lista_nao_json_vira_lista_vazia(api):
    api.responder("GET", "/1/Salas", "ok")
    assert ClienteAgenda("tok", 1).listar_salas() == []


def test_erro_http_vira_api_error_com_mensagem(api):
    api.responder("POST", "/1/Eventos", {"message": "Conflito de horário na sala."}, status=409)
    with pytest.raises(ApiError) as exc:
        ClienteAgenda("tok", 1).criar_evento({"titulo": "x"})
    assert exc.value.status == 409
    assert exc.value.mensagem == "Conflito de horário na sala."


@pytest.mark.parametrize("status, corpo, mensagem", [
    (400, '{"title": "One or more validation errors occurred."}', "One or more validation errors occurred."),
    (500, "Internal Server Error", "Internal Server Error"),
    (500, "", "Erro 500 ao comunicar com o servidor."),
    (0, "", "Não foi possível conectar ao servidor."),
    (400, "[1, 2]", "[1, 2]"),
])
def test_mensagem_amigavel(status, corpo, mensagem):
    assert ApiError(status, corpo).mensagem == mensagem


def test_falha_de_rede_vira_status_zero(monkeypatch):
    def _falha(self, method, url, **kwargs):
        raise requests.ConnectionError("recusada")

    monkeypatch.setattr(requests.Session, "request", _falha)
    with pytest.raises(ApiError) as exc:
        ClienteAgenda("tok", 1).listar_eventos()
    assert exc.value.status == 0


def test_publicos_sem_token(api):
    api.responder("GET", "/2/Eventos/publico/batismo", {"id": 5})
    api.responder("POST", "/2/FichaInscricaoBatismos", {"id": 77})

    assert obter_evento_publico(2, "batismo") == {"id": 5}
    assert enviar_ficha_batismo(2, {"nome": "Maria"}) == {"id": 77}
    assert all("Authorization" not in c["headers"] for c in api.chamadas)


def test_login_devolve_token(api):
    api.responder("POST", "/Autenticacao/LogIn", {"token": "abc.def.ghi"})
    assert ClienteAutenticacao().autenticar("ana@paroquia.org", "segredo") == "abc.def.ghi"
    chamada = api.chamadas[0]
    assert chamada["host"] == "auth.test"
    assert chamada["json"] == {"email": "ana@paroquia.org", "senha": "segredo"}


def test_login_sem_token_na_resposta(api):
    api.responder("POST", "/Autenticacao/LogIn", {"sucesso": True})
    with pytest.raises(ApiError) as exc:
        ClienteAutenticacao().autenticar("ana@paroquia.org", "segredo")
    assert exc.value.status == 401
    assert exc.value.mensagem == "Token não retornado pelo servidor."


def test_cadastro_de_usuario_envia_claims_do_calendario(api):
    api.responder("POST", "/Autenticacao/Cadastro", {})
    ClienteAutenticacao("tok").cadastrar_usuario("novo@paroquia.org", "Novo", 7, ["EventoLer", "SalaLer"])
    assert api.chamadas[0]["json"] == {
        "email": "novo@paroquia.org",
        "nome": "Novo",
        "empresaId": 7,
        "claims": [{"type": "Calendario", "value": "EventoLer"}, {"type": "Calendario", "value": "SalaLer"}],
        "filiais": [],
    }

import pytest
from django.contrib.messages import get_messages

from calendario.permissoes import Capacidade
from calendario.sessao import CHAVE_FILIAL, CHAVE_TOKEN

TIPOS_EVENTO = [{"id": 1, "nome": "Missa", "cor": "#1d4ed8", "categoriaContrato": 0}]

DADOS_EVENTO = {
    "titulo": "Missa de Natal",
    "tipo_evento_id": "1",
    "nivel_compartilhamento": "0",
    "recorrencia": "0",
    "data_inicio": "2024-12-24",
    "hora_inicio": "22:00",
    "data_fim": "2024-12-24",
    "hora_fim": "23:30",
}


def _mensagens(resp):
    return [str(m) for m in get_messages(resp.wsgi_request)]


# =============================================================================
# Sessão / login
# =============================================================================
def test_sem_login_redireciona_com_next(client):
    resp = client.get("/eventos/")
    assert resp.status_code == 302
    assert resp.url == "/login/?next=/eventos/"


def test_token_expirado_volta_para_o_login(logar):
    client = logar(Capacidade.EVENTO_LER, exp_em=-60)
    resp = client.get("/")
    assert resp.status_code == 302
    assert resp.url.startswith("/login/")
    assert "Sua sessão expirou. Entre novamente." in _mensagens(resp)
    assert CHAVE_TOKEN not in client.session


def test_login_guarda_token_e_respeita_next(client, api, gerar_token):
    token = gerar_token([Capacidade.EVENTO_LER])
    api.responder("POST", "/Autenticacao/LogIn", {"token": token})

    resp = client.post("/login/", {"email": "ana@paroquia.org", "senha": "segredo", "next": "/eventos/"})
    assert resp.status_code == 302
    assert resp.url == "/eventos/"
    assert client.session[CHAVE_TOKEN] == token
    assert client.session[CHAVE_FILIAL] == 1


def test_login_ignora_next_externo(client, api, gerar_token):
    api.responder("POST", "/Autenticacao/LogIn", {"token": gerar_token()})
    resp = client.post("/login/", {"email": "ana@paroquia.org", "senha": "x", "next": "https://outro.site/"})
    assert resp.url == "/"


def test_login_com_senha_errada(client, api):
    api.responder("POST", "/Autenticacao/LogIn", {"message": "Unauthorized"}, status=401)
    resp = client.post("/login/", {"email": "ana@paroquia.org", "senha": "errada"})
    assert resp.status_code == 200
    assert "E-mail ou senha inválidos." in _mensagens(resp)
    assert CHAVE_TOKEN not in client.session


def test_logout(logar):
    client = logar(Capacidade.EVENTO_LER)
    resp = client.get("/logout/")
    assert resp.url == "/login/"
    assert CHAVE_TOKEN not in client.session


def test_selecionar_filial(logar):
    client = logar(filiais={1: ("Matriz", "a"), 4: ("Capela", "b")})
    client.post("/filial/", {"filial": "4"})
    assert client.session[CHAVE_FILIAL] == 4

    resp = client.post("/filial/", {"filial": "9"})
    assert client.session[CHAVE_FILIAL] == 4
    assert "Filial não disponível para o seu usuário." in _mensagens(resp)


# =============================================================================
# Calendário
# =============================================================================
def test_dashboard_monta_o_mes(logar, api, evento_json):
    client = logar(Capacidade.EVENTO_LER, Capacidade.SALA_LER)
    api.responder("GET", "/1/Eventos", [evento_json()])
    api.responder("GET", "/1/Salas", [])
    api.responder("GET", "/1/TiposDeSalas", [])

    resp = client.get("/?ano=2024&mes=12")
    assert resp.status_code == 200
    assert resp.context["nome_mes"] == "Dezembro"
    celula = next(c for semana in resp.context["semanas"] for c in semana if c.dia.day == 24 and c.do_mes)
    assert [i.titulo for i in celula.visiveis] == ["Missa de Natal"]


def test_dashboard_sem_leitura_nao_consulta_a_api(logar, api):
    client = logar(Capacidade.EVENTO_CRIAR)
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.context["calendario_bloqueado"] is True
    assert api.chamadas == []


def test_feed_json_filtra_periodo(logar, api, evento_json):
    client = logar(Capacidade.EVENTO_LER)
    api.responder("GET", "/1/Eventos", [
        evento_json(),
        evento_json(id=11, titulo="Reunião", dataInicio="2025-01-05T19:00:00", dataFim="2025-01-05T20:00:00"),
        # "end" é exclusivo: o dia 31 fica de fora
        evento_json(id=12, titulo="Te Deum", dataInicio="2024-12-31T10:00:00", dataFim="2024-12-31T11:00:00"),
        evento_json(id=13, titulo="Vigília", dataInicio="2024-12-30T20:00:00", dataFim="2024-12-30T21:00:00"),
    ])
    resp = client.get("/calendario.json?start=2024-12-01&end=2024-12-31")
    assert [e["id"] for e in resp.json()] == ["evento-10", "evento-13"]
    # sem SalaLer as salas nem são buscadas
    assert not api.feitas(caminho="/1/Salas")


# =============================================================================
# Eventos
# =============================================================================
def test_criar_sem_claim_nao_chama_a_api(logar, api):
    client = logar(Capacidade.EVENTO_LER)
    api.responder("GET", "/1/TiposEventos", TIPOS_EVENTO)

    resp = client.post("/eventos/novo/", DADOS_EVENTO)
    assert resp.url == "/eventos/"
    assert api.chamadas == []
    assert "Acesso negado: você não tem permissão (EventoCriar)." in _mensagens(resp)


def test_criar_evento(logar, api):
    client = logar(Capacidade.EVENTO_CRIAR)
    api.responder("GET", "/1/TiposEventos", TIPOS_EVENTO)
    api.responder("POST", "/1/Eventos", {"id": 99})

    resp = client.post("/eventos/novo/", DADOS_EVENTO)
    assert resp.status_code == 302
    assert resp.url == "/eventos/"
    (post,) = api.mutacoes
    assert post["caminho"] == "/1/Eventos"
    assert post["json"]["titulo"] == "Missa de Natal"
    assert post["json"]["dataInicio"] == "2024-12-25T01:00:00.000Z"


def test_criar_com_sala_exige_sala_criar(logar, api):
    client = logar(Capacidade.EVENTO_CRIAR, Capacidade.TIPO_SALA_LER)
    api.responder("GET", "/1/TiposEventos", TIPOS_EVENTO)
    api.responder("GET", "/1/TiposDeSalas", [{"id": 3, "nome": "Salão"}])

    dados = dict(DADOS_EVENTO, vincular_sala="on", tipo_de_sala_id="3", descricao_sala="Ceia")
    resp = client.post("/eventos/novo/", dados)
    assert api.chamadas == []
    assert "Acesso negado: você não tem permissão (SalaCriar)." in _mensagens(resp)


def test_criar_com_novo_contratante_exige_interessado_criar(logar, api):
    client = logar(Capacidade.EVENTO_CRIAR)
    resp = client.post("/eventos/novo/", dict(DADOS_EVENTO, novo_interessado="on"))
    assert resp.url == "/eventos/"
    assert api.chamadas == []
    assert "Acesso negado: você não tem permissão (InteressadoCriar)." in _mensagens(resp)


def test_erro_da_api_vira_mensagem(logar, api):
    client = logar(Capacidade.EVENTO_CRIAR)
    api.responder("GET", "/1/TiposEventos", TIPOS_EVENTO)
    api.responder("POST", "/1/Eventos", {"message": "Conflito de horário."}, status=409)

    resp = client.post("/eventos/novo/", DADOS_EVENTO)
    assert resp.status_code == 200
    assert "Conflito de horário." in _mensagens(resp)


def test_editar_evento_simples_sem_escopo(logar, api, evento_json):
    client = logar(Capacidade.EVENTO_LER, Capacidade.EVENTO_EDITAR)
    api.responder("GET", "/1/Eventos/10", evento_json())
    api.responder("GET", "/1/TiposEventos", TIPOS_EVENTO)
    api.responder("PUT", "/1/Eventos/10", {"id": 10})

    resp = client.post("/eventos/10/editar/", dict(DADOS_EVENTO, titulo="Missa do Galo"))
    assert resp.url == "/eventos/10/"
    (put,) = api.mutacoes
    assert put["params"] is None
    assert put["json"]["id"] == 10
    assert put["json"]["titulo"] == "Missa do Galo"


def test_editar_evento_recorrente_pergunta_o_escopo(logar, api, evento_json):
    client = logar(Capacidade.EVENTO_LER, Capacidade.EVENTO_EDITAR)
    api.responder("GET", "/1/Eventos/10", evento_json(recorrencia=2, fimRecorrencia="2025-03-01"))
    api.responder("GET", "/1/TiposEventos", TIPOS_EVENTO)
    api.responder("PUT", "/1/Eventos/10", {"id": 10})

    resp = client.post("/eventos/10/editar/", dict(DADOS_EVENTO, titulo="Missa do Galo"))
    assert resp.url == "/eventos/10/escopo/editar/"
    assert api.mutacoes == []
    assert client.session["evento_edicao_pendente:10"]["titulo"] == "Missa do Galo"

    resp = client.get("/eventos/10/escopo/editar/")
    assert [o["valor"] for o in resp.context["opcoes"]] == [0, 1, 2]

    resp = client.post("/eventos/10/escopo/editar/", {"escopo": "1"})
    assert resp.url == "/eventos/"
    (put,) = api.mutacoes
    assert put["params"] == {"scope": 1}
    assert put["json"]["titulo"] == "Missa do Galo"
    assert "evento_edicao_pendente:10" not in client.session


def test_cancelar_escopo_descarta_alteracao(logar, api, evento_json):
    client = logar(Capacidade.EVENTO_LER, Capacidade.EVENTO_EDITAR)
    api.responder("GET", "/1/Eventos/10", evento_json(eventoPaiId=3))
    api.responder("GET", "/1/TiposEventos", TIPOS_EVENTO)

    client.post("/eventos/10/editar/", DADOS_EVENTO)
    resp = client.post("/eventos/10/escopo/editar/", {"cancelar": "1"})
    assert resp.url == "/eventos/10/"
    assert api.mutacoes == []
    assert "evento_edicao_pendente:10" not in client.session


def test_escopo_sem_alteracao_pendente(logar, api, evento_json):
    client = logar(Capacidade.EVENTO_LER, Capacidade.EVENTO_EDITAR)
    api.responder("GET", "/1/Eventos/10", evento_json(recorrencia=1, fimRecorrencia="2025-01-10"))
    resp = client.get("/eventos/10/escopo/editar/")
    assert resp.url == "/eventos/10/editar/"


def test_excluir_evento_recorrente(logar, api, evento_json):
    client = logar(Capacidade.EVENTO_LER, Capacidade.EVENTO_EXCLUIR)
    api.responder("GET", "/1/Eventos/10", evento_json(eventoPaiId=3))
    api.responder("DELETE", "/1/Eventos/10", None, status=204)

    resp = client.get("/eventos/10/excluir/")
    assert resp.url == "/eventos/10/escopo/excluir/"

    resp = client.post("/eventos/10/escopo/excluir/", {"escopo": "2"})
    assert resp.url == "/eventos/"
    (delete,) = api.mutacoes
    assert delete["metodo"] == "DELETE"
    assert delete["params"] == {"scope": 2}


def test_excluir_recorrente_sem_claim(logar, api, evento_json):
    client = logar(Capacidade.EVENTO_LER)
    api.responder("GET", "/1/Eventos/10", evento_json(eventoPaiId=3))

    resp = client.post("/eventos/10/escopo/excluir/", {"escopo": "0"})
    assert resp.url == "/eventos/10/"
    assert api.chamadas == []
    assert "Acesso negado: você não tem permissão (EventoExcluir)." in _mensagens(resp)


def test_excluir_evento_sem_claim_nao_consulta_a_api(logar, api, evento_json):
    client = logar(Capacidade.EVENTO_LER)
    api.responder("GET", "/1/Eventos/10", evento_json())

    resp = client.post("/eventos/10/excluir/")
    assert resp.url == "/eventos/10/"
    assert api.chamadas == []
    assert "Acesso negado: você não tem permissão (EventoExcluir)." in _mensagens(resp)


def test_editar_evento_sem_claim_nao_consulta_a_api(logar, api):
    client = logar(Capacidade.EVENTO_LER)
    resp = client.post("/eventos/10/editar/", DADOS_EVENTO)
    assert resp.url == "/eventos/10/"
    assert api.chamadas == []


@pytest.mark.parametrize("url, destino", [
    ("/salas/nova/", "/salas/"),
    ("/salas/5/editar/", "/salas/5/"),
    ("/salas/5/excluir/", "/salas/5/"),
    ("/tipos-evento/novo/", "/tipos-evento/"),
    ("/tipos-evento/3/editar/", "/tipos-evento/"),
    ("/tipos-evento/3/excluir/", "/tipos-evento/"),
    ("/tipos-sala/novo/", "/tipos-sala/"),
    ("/tipos-sala/3/editar/", "/tipos-sala/"),
    ("/tipos-sala/3/excluir/", "/tipos-sala/"),
    ("/interessados/novo/", "/interessados/"),
    ("/interessados/8/editar/", "/interessados/"),
    ("/interessados/8/excluir/", "/interessados/"),
    ("/usuarios/novo/", "/usuarios/"),
])
def test_mutacao_sem_claim_nao_consulta_a_api(logar, api, url, destino):
    client = logar()
    resp = client.post(url, {})
    assert resp.status_code == 302
    assert resp.url == destino
    assert api.chamadas == []
    assert any(m.startswith("Acesso negado") for m in _mensagens(resp))


def test_excluir_evento_simples(logar, api, evento_json):
    client = logar(Capacidade.EVENTO_LER, Capacidade.EVENTO_EXCLUIR)
    api.responder("GET", "/1/Eventos/10", evento_json())
    api.responder("DELETE", "/1/Eventos/10", None, status=204)

    assert client.get("/eventos/10/excluir/").status_code == 200
    resp = client.post("/eventos/10/excluir/")
    assert resp.url == "/eventos/"
    assert api.mutacoes[0]["params"] is None


def test_evento_inexistente_da_404(logar, api):
    client = logar(Capacidade.EVENTO_LER)
    assert client.get("/eventos/404/").status_code == 404


def test_tela_sem_leitura_e_barrada(logar, api):
    client = logar(Capacidade.EVENTO_CRIAR)
    resp = client.get("/eventos/")
    assert resp.url == "/"
    assert "Acesso negado: você não tem permissão (EventoLer)." in _mensagens(resp)
    assert api.chamadas == []


# =============================================================================
# Solicitações de sala
# =============================================================================
def test_contagem_de_pendentes_em_cache(logar, api):
    client = logar(Capacidade.SALA_APROVAR)
    api.responder("GET", "/1/Salas/Pendentes", [{"id": 5}, {"id": 6}])
    api.responder("PUT", "/1/Salas/5/Status", {})

    assert client.get("/salas/pendentes/contagem/").json() == {"total": 2}
    assert client.get("/salas/pendentes/contagem/").json() == {"total": 2}
    assert len(api.feitas("GET", "/1/Salas/Pendentes")) == 1

    resp = client.post("/salas/5/aprovar/")
    assert resp.url == "/salas/pendentes/"
    assert api.feitas("PUT")[0]["json"] == {"id": 5, "status": 1}

    client.get("/salas/pendentes/contagem/")
    assert len(api.feitas("GET", "/1/Salas/Pendentes")) == 2


def test_contagem_sem_claim(logar, api):
    client = logar(Capacidade.SALA_LER)
    assert client.get("/salas/pendentes/contagem/").json() == {"total": 0}
    assert api.chamadas == []


def test_rejeitar_sem_claim(logar, api):
    client = logar(Capacidade.SALA_LER)
    resp = client.post("/salas/5/rejeitar/")
    assert resp.url == "/salas/pendentes/"
    assert api.chamadas == []
    assert "Acesso negado: você não tem permissão (SalaAprovar)." in _mensagens(resp)


# =============================================================================
# Contratos
# =============================================================================
RESERVA = {
    "id": 3, "eventoId": 10, "interessadoId": 8, "status": 0,
    "valorTotal": 1000.0, "valorSinal": 200.0, "tituloEvento": "Casamento",
    "parcelas": [
        {"id": 11, "numeroParcela": 1, "valor": 400.0, "dataVencimento": "2024-07-10", "isSinal": False},
        {"id": 12, "numeroParcela": 2, "valor": 400.0, "dataVencimento": "2024-08-09", "isSinal": False},
    ],
}


def _post_reserva(acao, **extra):
    dados = {
        "acao": acao,
        "status": "1",
        "valor_total": "1.000,00",
        "valor_sinal": "200,00",
        "parcelas-TOTAL_FORMS": "2",
        "parcelas-INITIAL_FORMS": "2",
        "parcelas-0-id": "11",
        "parcelas-0-numero": "1",
        "parcelas-0-data_vencimento": "2024-07-10",
        "parcelas-1-id": "12",
        "parcelas-1-numero": "2",
        "parcelas-1-data_vencimento": "2024-08-09",
    }
    dados.update(extra)
    return dados


def test_adicionar_parcela_redistribui_sem_salvar(logar, api):
    client = logar(Capacidade.RESERVA_LER)
    api.responder("GET", "/1/Reservas/3", RESERVA)

    resp = client.post("/reservas/3/", _post_reserva("adicionar"))
    assert resp.status_code == 200
    assert [valor for _, valor in resp.context["linhas"]] == [26668, 26666, 26666]
    assert resp.context["total_parcelas"] == 80000
    assert api.mutacoes == []


def test_remover_parcela(logar, api):
    client = logar(Capacidade.RESERVA_LER)
    api.responder("GET", "/1/Reservas/3", RESERVA)

    resp = client.post("/reservas/3/", _post_reserva("remover:1"))
    assert [valor for _, valor in resp.context["linhas"]] == [80000]
    assert resp.context["formset"].forms[0].initial["numero"] == 1


def test_salvar_contrato(logar, api):
    client = logar(Capacidade.RESERVA_LER, Capacidade.RESERVA_EDITAR)
    api.responder("GET", "/1/Reservas/3", RESERVA)
    api.responder("PUT", "/1/Reservas/3", {})

    resp = client.post("/reservas/3/", _post_reserva("salvar", valor_total="1.000,01"))
    assert resp.url == "/reservas/3/"
    (put,) = api.mutacoes
    assert put["json"]["status"] == 1
    assert put["json"]["valorTotal"] == 1000.01
    assert [p["valor"] for p in put["json"]["parcelas"]] == [400.01, 400.0]
    assert [p["id"] for p in put["json"]["parcelas"]] == [11, 12]


def test_salvar_contrato_sem_claim(logar, api):
    client = logar(Capacidade.RESERVA_LER)
    api.responder("GET", "/1/Reservas/3", RESERVA)

    resp = client.post("/reservas/3/", _post_reserva("salvar"))
    assert resp.url == "/reservas/3/"
    assert api.chamadas == []
    assert "Acesso negado: você não tem permissão (ReservaEditar)." in _mensagens(resp)


def test_salvar_contrato_preserva_padre_responsavel(logar, api):
    client = logar(Capacidade.RESERVA_LER, Capacidade.RESERVA_EDITAR)
    api.responder("GET", "/1/Reservas/3", dict(RESERVA, nomePadreResponsavel="Pe. João", documentoPadre="123"))
    api.responder("PUT", "/1/Reservas/3", {})

    resp = client.get("/reservas/3/")
    assert resp.context["form"].initial["nome_padre_responsavel"] == "Pe. João"

    client.post("/reservas/3/", _post_reserva("salvar", nome_padre_responsavel="Pe. João"))
    (put,) = api.mutacoes
    assert put["json"]["nomePadreResponsavel"] == "Pe. João"
    assert put["json"]["documentoPadre"] == "123"


# =============================================================================
# Inscrições
# =============================================================================
def test_exportar_csv(logar, api, evento_json):
    client = logar(Capacidade.INSCRICAO_LER)
    api.responder("GET", "/1/Eventos/10", evento_json())
    api.responder("GET", "/1/FichaInscricaoBatismos/Evento/10", [
        {"id": 1, "eventoId": 10, "nome": "Maria", "email": "m@x.com", "telefone": "11",
         "nomePai": "José", "nomeMae": "Ana"},
    ])

    resp = client.get("/eventos/10/inscricoes.csv")
    assert resp["Content-Type"] == "text/csv; charset=utf-8"
    assert resp["Content-Disposition"].startswith('attachment; filename="inscricoes_Missa_de_Natal_')
    texto = resp.content.decode("utf-8")
    assert texto.startswith("\ufeffNome,Email,Telefone,Nome do Pai,Nome da Mãe\n")
    assert "Maria,m@x.com,11,José,Ana" in texto


def test_exportar_csv_com_erro_da_api(logar, api):
    client = logar(Capacidade.INSCRICAO_LER)
    resp = client.get("/eventos/10/inscricoes.csv")
    assert resp.url == "/eventos/10/inscricoes/"


# =============================================================================
# Usuários
# =============================================================================
def test_editar_acessos_preserva_outros_modulos(logar, api):
    client = logar(Capacidade.ADMIN, Capacidade.USUARIO_LISTAR)
    api.responder("GET", "/Usuarios/ListarUsuarios", [{
        "email": "bia@paroquia.org", "nome": "Bia",
        "acessos": [{"modulo": "Calendario", "acesso": "EventoCriar"}, {"modulo": "Financeiro", "acesso": "Ler"}],
    }])
    api.responder("PUT", "/Usuarios/AtualizarUsuario/bia@paroquia.org", {})

    resp = client.post("/usuarios/bia@paroquia.org/", {"nome": "Bia", "acessos": ["EventoLer", "SalaLer"]})
    assert resp.url == "/usuarios/"
    (put,) = api.mutacoes
    assert put["host"] == "auth.test"
    assert put["json"]["acessos"] == [
        {"modulo": "Financeiro", "acesso": "Ler"},
        {"modulo": "Calendario", "acesso": "EventoLer"},
        {"modulo": "Calendario", "acesso": "SalaLer"},
    ]


def test_cadastrar_usuario_exige_admin(logar, api):
    client = logar(Capacidade.USUARIO_LISTAR)
    client.post("/usuarios/novo/", {"nome": "Novo", "email": "novo@paroquia.org", "claims": ["EventoLer"]})
    assert api.mutacoes == []


def test_editar_acessos_exige_listar_usuarios(logar, api):
    client = logar(Capacidade.ADMIN)
    resp = client.get("/usuarios/bia@paroquia.org/")
    assert resp.url == "/"
    assert api.chamadas == []
    assert "Acesso negado: você não tem permissão (ListarUsuario)." in _mensagens(resp)


# =============================================================================
# Área pública
# =============================================================================
FICHA = {
    "nome": "maria da silva", "sexo": "F", "data_nascimento": "2024-01-10", "email": "m@x.com",
    "telefone": "11999999999", "nome_mae": "Ana",
}


@pytest.fixture
def evento_publico(api, evento_json):
    def _registrar(**kwargs):
        dados = evento_json(inscricaoAtiva=True, nomeFormulario=0, slug="batismo", filialId=2)
        dados.update(kwargs)
        api.responder("GET", "/2/Eventos/publico/batismo", dados)
        return dados

    return _registrar


def test_inscricao_publica(client, api, evento_publico):
    evento_publico()
    api.responder("POST", "/2/FichaInscricaoBatismos", {"id": 77})

    assert "form" in client.get("/inscricao/2/batismo/").context

    resp = client.post("/inscricao/2/batismo/", FICHA)
    assert resp.context["titulo"] == "Inscrição realizada!"
    (post,) = api.mutacoes
    assert post["json"]["eventoId"] == 10
    assert post["json"]["nome"] == "Maria Da Silva"
    assert "Authorization" not in post["headers"]


def test_inscricao_encerrada(client, evento_publico):
    evento_publico(inscricaoAtiva=False)
    assert client.get("/inscricao/2/batismo/").context["titulo"] == "Inscrições encerradas"


def test_formulario_nao_disponivel(client, evento_publico):
    evento_publico(nomeFormulario=2)
    assert client.get("/inscricao/2/batismo/").context["titulo"] == "Formulário não disponível"


def test_evento_publico_inexistente(client, api):
    resp = client.get("/inscricao/2/nao-existe/")
    assert resp.status_code == 404
    assert resp.context["titulo"] == "Evento não encontrado"


def test_inscricao_por_id(client, api, evento_json):
    api.responder("GET", "/3/Eventos/10", evento_json(inscricaoAtiva=True, nomeFormulario=0, filialId=3))
    resp = client.get("/inscricao/10/?filial=3")
    assert resp.status_code == 200
    assert resp.context["evento"].id == 10

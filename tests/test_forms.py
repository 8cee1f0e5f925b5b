from datetime import date, timedelta

from django.utils import timezone

from calendario.forms import (
    AlterarSenhaForm, CampoReais, EventoCriacaoForm, FichaBatismoForm, InteressadoForm,
    ReservaForm, TipoDeSalaEdicaoForm, TipoDeSalaForm, TipoEventoEdicaoForm,
)
from calendario.models import Interessado, TipoContrato, TipoDeSala, TipoEvento

TIPOS_EVENTO = [
    TipoEvento(id=1, nome="Missa", cor="#1d4ed8"),
    TipoEvento(id=2, nome="Casamento", cor="#db2777", categoria_contrato=TipoContrato.CASAMENTO),
]
TIPOS_SALA = [TipoDeSala(id=3, nome="Salão")]
INTERESSADOS = [Interessado(id=8, nome="Carlos")]


def _evento_form(**dados):
    base = {
        "titulo": "Missa",
        "tipo_evento_id": "1",
        "nivel_compartilhamento": "0",
        "recorrencia": "0",
        "data_inicio": "2024-06-01",
        "hora_inicio": "19:00",
        "data_fim": "2024-06-01",
        "hora_fim": "20:00",
    }
    base.update(dados)
    return EventoCriacaoForm(base, tipos_evento=TIPOS_EVENTO, tipos_de_sala=TIPOS_SALA,
                             interessados=INTERESSADOS)


def test_evento_simples_valido():
    form = _evento_form()
    assert form.is_valid(), form.errors
    payload = form.payload_criacao()
    assert payload["dataInicio"] == "2024-06-01T22:00:00.000Z"
    assert payload["dataFim"] == "2024-06-01T23:00:00.000Z"
    assert payload["allDay"] is False
    assert payload["recorrencia"] == 0
    assert payload["fimRecorrencia"] is None
    assert payload["novaSala"] is None
    assert payload["reserva"] is None


def test_fim_antes_do_inicio():
    form = _evento_form(hora_fim="18:00")
    assert not form.is_valid()
    assert "data_fim" in form.errors


def test_horarios_obrigatorios_fora_do_dia_inteiro():
    form = _evento_form(hora_inicio="", hora_fim="")
    assert not form.is_valid()
    assert {"hora_inicio", "hora_fim"} <= set(form.errors)


def test_dia_inteiro_vai_de_meia_noite_ao_fim_do_dia():
    form = _evento_form(all_day="on", hora_inicio="", hora_fim="", data_fim="2024-06-03")
    assert form.is_valid(), form.errors
    inicio, fim = form.periodo()
    assert (inicio.hour, inicio.minute) == (0, 0)
    assert (fim.date(), fim.hour, fim.minute, fim.second) == (date(2024, 6, 3), 23, 59, 59)


def test_recorrencia_exige_data_final_posterior():
    assert "fim_recorrencia" in _evento_form(recorrencia="2").errors
    assert "fim_recorrencia" in _evento_form(recorrencia="2", fim_recorrencia="2024-05-01").errors

    form = _evento_form(recorrencia="2", fim_recorrencia="2024-08-01")
    assert form.is_valid(), form.errors
    assert form.payload_criacao()["fimRecorrencia"] == "2024-08-01"


def test_inscricao_ativa_exige_formulario_e_slug():
    form = _evento_form(inscricao_ativa="on")
    assert not form.is_valid()
    assert {"nome_formulario", "slug"} <= set(form.errors)


def test_sala_vinculada_entra_no_payload():
    form = _evento_form(vincular_sala="on", tipo_de_sala_id="3", descricao_sala="Ensaio do coral")
    assert form.is_valid(), form.errors
    nova_sala = form.payload_criacao()["novaSala"]
    assert nova_sala["tipoDeSalaId"] == 3
    assert nova_sala["descricao"] == "Ensaio do coral"
    assert nova_sala["dataInicio"] == "2024-06-01T22:00:00.000Z"


def test_tipo_com_contrato_exige_contratante_e_valores():
    form = _evento_form(tipo_evento_id="2")
    assert not form.is_valid()
    assert {"interessado_id", "valor_total"} <= set(form.errors)

    form = _evento_form(tipo_evento_id="2", interessado_id="8", valor_total="1.000,00", valor_sinal="2.000,00")
    assert "valor_sinal" in form.errors

    form = _evento_form(tipo_evento_id="2", interessado_id="8", valor_total="1.000,00", numero_parcelas="3")
    assert "primeiro_vencimento" in form.errors


def test_payload_do_contrato():
    form = _evento_form(tipo_evento_id="2", interessado_id="8", valor_total="1.000,00",
                        valor_sinal="200,00", quantidade_participantes="150")
    assert form.is_valid(), form.errors
    assert form.exige_contrato
    reserva = form.payload_criacao()["reserva"]
    assert reserva["valorTotal"] == 1000.0
    assert reserva["valorSinal"] == 200.0
    assert reserva["quantidadeParticipantes"] == 150
    assert reserva["parcelas"] is None


def test_campo_reais():
    campo = CampoReais(required=False)
    assert campo.clean("1.234,56") == 123456
    assert campo.clean("") is None
    assert campo.prepare_value(123456) == "1234,56"
    assert not ReservaForm({"status": "0", "valor_total": "-10"}).is_valid()


def test_reserva_sinal_maior_que_total():
    form = ReservaForm({"status": "1", "valor_total": "100,00", "valor_sinal": "150,00"})
    assert not form.is_valid()
    assert "valor_sinal" in form.errors


def test_interessado_documento_e_cep():
    dados = {"nome": " Carlos ", "documento": "123.456.789-01", "telefone": "11", "email": "c@x.com",
             "cep": "01001-000", "ponto_referencia": "", "email_financeiro": ""}
    form = InteressadoForm(dados)
    assert form.is_valid(), form.errors
    payload = form.payload()
    assert payload["documento"] == "12345678901"
    assert payload["cep"] == "01001000"
    assert payload["nome"] == "Carlos"
    assert payload["pontoReferencia"] is None
    assert "ponto_referencia" not in payload

    assert "documento" in InteressadoForm(dict(dados, documento="123")).errors
    assert "cep" in InteressadoForm(dict(dados, cep="123")).errors


def test_formularios_de_edicao_de_tipos():
    form = TipoEventoEdicaoForm({"nome": "Missa", "cor": "#ABCDEF"})
    assert form.is_valid(), form.errors
    tipo = TipoEvento(id=4, nome="Antigo", categoria_contrato=TipoContrato.DIVERSO)
    assert form.payload(tipo) == {"nome": "Missa", "cor": "#abcdef", "categoriaContrato": 2, "id": 4}

    assert set(TipoDeSalaEdicaoForm.base_fields) == {"nome", "cor", "capacidade"}
    assert "cor" in TipoDeSalaForm({"nome": "Salão", "cor": "verde", "capacidade": "10"}).errors


def test_tipo_de_sala_equipamentos():
    form = TipoDeSalaForm({"nome": "Salão", "cor": "#22c55e", "capacidade": "80",
                           "equipamentos": "Projetor, Som , ,Cadeiras"})
    assert form.is_valid(), form.errors
    assert form.payload()["equipamentos"] == ["Projetor", "Som", "Cadeiras"]


def test_alterar_senha():
    form = AlterarSenhaForm({"senha_atual": "abcdef", "nova_senha": "abcdef", "confirmacao": "xyzxyz"})
    assert not form.is_valid()
    assert {"nova_senha", "confirmacao"} <= set(form.errors)


def test_ficha_batismo():
    dados = {"nome": "maria da silva", "sexo": "F", "data_nascimento": "2024-01-10", "email": "m@x.com",
             "telefone": "11999999999", "nome_mae": "Ana", "cpf": "123.456.789-01"}
    form = FichaBatismoForm(dados)
    assert form.is_valid(), form.errors
    payload = form.payload(10)
    assert payload["nome"] == "Maria Da Silva"
    assert payload["eventoId"] == 10
    assert payload["cpf"] == "12345678901"
    assert payload["dataNascimento"] == "2024-01-10"

    amanha = (timezone.localdate() + timedelta(days=1)).isoformat()
    assert "data_nascimento" in FichaBatismoForm(dict(dados, data_nascimento=amanha)).errors

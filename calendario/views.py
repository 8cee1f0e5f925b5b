# calendario/views.py
import logging
from dataclasses import replace
from datetime import date, timedelta
from functools import wraps
from urllib.parse import quote

from django.conf import settings
from django.contrib import messages
from django.core.cache import cache
from django.http import Http404, HttpResponse, JsonResponse
from django.shortcuts import redirect, render
from django.urls import reverse
from django.utils import timezone
from django.utils.dateparse import parse_date
from django.utils.http import url_has_allowed_host_and_scheme
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from integracoes.ecclesia import (
    ApiError, ClienteAutenticacao, enviar_ficha_batismo, listar_eventos_publicos_filial,
    obter_evento_publico, obter_evento_publico_por_id,
)

from .forms import (
    AlterarSenhaForm, EscopoForm, EventoCriacaoForm, EventoForm, FichaBatismoForm,
    InteressadoForm, LoginForm, ParcelaFormSet, ReservaForm, SalaForm, TipoDeSalaEdicaoForm,
    TipoDeSalaForm, TipoEventoEdicaoForm, TipoEventoForm, UsuarioAcessosForm,
    UsuarioCadastroForm, parcelas_iniciais,
)
from .models import (
    Evento, FichaInscricao, Interessado, NivelCompartilhamento, NomeFormulario, Parcela,
    Reserva, Sala, StatusReserva, StatusSala, TipoDeSala, TipoEvento, Usuario,
)
from .permissoes import (
    MODULO_CALENDARIO, AcessoNegado, Capacidade, executar, exigir, requer_capacidade,
)
from .services.agregador import celula_do_dia, montar_itens, montar_mes, para_fullcalendar
from .services.exportacao import gerar_csv, link_inscricao, nome_arquivo
from .services.parcelas import adicionar_parcela, distribuir, gerar_parcelas, remover_parcela, soma
from .services.periodo import filtrar_do_dia, filtrar_do_periodo
from .services.recorrencia import EDITAR, EXCLUIR, exige_escopo, opcoes_escopo, resolver_escopo

logger = logging.getLogger(__name__)

MESES = [
    "Janeiro", "Fevereiro", "Março", "Abril", "Maio", "Junho",
    "Julho", "Agosto", "Setembro", "Outubro", "Novembro", "Dezembro",
]


# =============================================================================
# Helpers
# =============================================================================
def sessao_obrigatoria(view):
    """Sem token válido (ausente ou expirado) manda para o login."""

    @wraps(view)
    def _wrapped(request, *args, **kwargs):
        sessao = request.sessao
        if not sessao.autenticada:
            if sessao.token:
                sessao.teardown()
                messages.warning(request, "Sua sessão expirou. Entre novamente.")
            login_url = reverse("calendario:login")
            return redirect(f"{login_url}?next={quote(request.get_full_path())}")
        return view(request, *args, **kwargs)

    return _wrapped


def _mutar(request, capacidade, chamada, *args, sucesso=None, **kwargs):
    """
    Dispara a mutação via ``executar``. Retorna (ok, resposta);
    AcessoNegado e ApiError viram mensagem e nunca sobem da view.
    """
    try:
        resposta = executar(request.sessao, capacidade, chamada, *args, **kwargs)
    except AcessoNegado as e:
        messages.error(request, str(e))
        return False, None
    except ApiError as e:
        messages.error(request, e.mensagem)
        return False, None
    if sucesso:
        messages.success(request, sucesso)
    return True, resposta


def _listar(request, chamada, construtor, *args):
    try:
        return [construtor(d) for d in chamada(*args)]
    except ApiError as e:
        messages.error(request, e.mensagem)
        return []


def _obter(request, chamada, construtor, pk):
    """Entidade ou None (erro já reportado); 404 da API vira Http404."""
    try:
        dados = chamada(pk)
    except ApiError as e:
        if e.status == 404:
            raise Http404(e.mensagem)
        messages.error(request, e.mensagem)
        return None
    if not dados:
        raise Http404("Registro não encontrado.")
    return construtor(dados)


def _filtrar_texto(itens, termo, *campos):
    termo = (termo or "").strip().casefold()
    if not termo:
        return list(itens)
    return [
        i for i in itens
        if any(termo in (getattr(i, c) or "").casefold() for c in campos)
    ]


def _pode(request, capacidade):
    return request.sessao.capacidades.pode(capacidade)


def _com_pk(nome):
    """Destino de redirect que reaproveita o ``pk`` da URL."""
    return lambda pk, **_: reverse(nome, args=[pk])


def _negar(request, erro, destino, *args, **kwargs):
    messages.error(request, str(erro))
    return redirect(destino, *args, **kwargs)


# =============================================================================
# Autenticação
# =============================================================================
@require_http_methods(["GET", "POST"])
def login_view(request):
    sessao = request.sessao
    if sessao.autenticada:
        return redirect("calendario:dashboard")

    destino = request.POST.get("next") or request.GET.get("next") or ""
    if request.method == "POST":
        form = LoginForm(request.POST)
        if form.is_valid():
            try:
                with ClienteAutenticacao() as autenticacao:
                    token = autenticacao.autenticar(form.cleaned_data["email"], form.cleaned_data["senha"])
            except ApiError as e:
                logger.info("Falha de login para %s: %s", form.cleaned_data["email"], e.status)
                messages.error(request, e.mensagem if e.status not in (401, 403) else "E-mail ou senha inválidos.")
            else:
                request.session.cycle_key()
                sessao.entrar(token)
                if not sessao.autenticada:
                    sessao.teardown()
                    messages.error(request, "Token recebido é inválido ou já expirou.")
                else:
                    logger.info("Login de %s (empresa %s)", sessao.email, sessao.empresa_id)
                    if destino and url_has_allowed_host_and_scheme(destino, allowed_hosts={request.get_host()}):
                        return redirect(destino)
                    return redirect("calendario:dashboard")
    else:
        form = LoginForm()
    return render(request, "calendario/login.html", {"form": form, "next": destino})


def logout_view(request):
    request.sessao.teardown()
    messages.info(request, "Você saiu do sistema.")
    return redirect("calendario:login")


@sessao_obrigatoria
@require_POST
def selecionar_filial(request):
    try:
        filial_id = int(request.POST.get("filial") or 0)
    except ValueError:
        filial_id = 0
    if not request.sessao.selecionar_filial(filial_id):
        messages.error(request, "Filial não disponível para o seu usuário.")
    else:
        messages.success(request, f"Filial alterada para {request.sessao.filial.nome}.")
    return redirect("calendario:dashboard")


@sessao_obrigatoria
@require_http_methods(["GET", "POST"])
def alterar_senha(request):
    if request.method == "POST":
        form = AlterarSenhaForm(request.POST)
        if form.is_valid():
            try:
                request.sessao.cliente_autenticacao().alterar_senha(
                    form.cleaned_data["senha_atual"],
                    form.cleaned_data["nova_senha"],
                    form.cleaned_data["confirmacao"],
                )
            except ApiError as e:
                messages.error(request, e.mensagem)
            else:
                messages.success(request, "Senha alterada com sucesso!")
                return redirect("calendario:dashboard")
    else:
        form = AlterarSenhaForm()
    return render(request, "calendario/form.html", {
        "form": form, "titulo": "Alterar senha", "voltar": reverse("calendario:dashboard"),
    })


# =============================================================================
# Calendário
# =============================================================================
def _itens_calendario(request):
    """Itens agregados respeitando o que o usuário pode ler."""
    cliente = request.sessao.cliente()
    eventos, salas, tipos_sala = [], [], []
    if _pode(request, Capacidade.EVENTO_LER):
        eventos = _listar(request, cliente.listar_eventos, Evento.from_api)
    if _pode(request, Capacidade.SALA_LER):
        salas = _listar(request, cliente.listar_salas, Sala.from_api)
        tipos_sala = _listar(request, cliente.listar_tipos_sala, TipoDeSala.from_api)
    return montar_itens(eventos, salas, tipos_sala)


def _mes_da_requisicao(request, hoje):
    try:
        ano = int(request.GET.get("ano") or hoje.year)
        mes = int(request.GET.get("mes") or hoje.month)
    except ValueError:
        return hoje.year, hoje.month
    if not 1 <= mes <= 12 or not 1 <= ano <= 9999:
        return hoje.year, hoje.month
    return ano, mes


@sessao_obrigatoria
@require_GET
def dashboard(request):
    hoje = timezone.localdate()
    ano, mes = _mes_da_requisicao(request, hoje)
    capacidades = request.sessao.capacidades

    semanas = []
    if capacidades.pode_ver_calendario:
        semanas = montar_mes(ano, mes, _itens_calendario(request), hoje)

    anterior = (ano - 1, 12) if mes == 1 else (ano, mes - 1)
    proximo = (ano + 1, 1) if mes == 12 else (ano, mes + 1)
    return render(request, "calendario/mes.html", {
        "semanas": semanas,
        "ano": ano,
        "mes": mes,
        "nome_mes": MESES[mes - 1],
        "anterior": anterior,
        "proximo": proximo,
        "hoje": hoje,
        "dias_semana": ["Dom", "Seg", "Ter", "Qua", "Qui", "Sex", "Sáb"],
        "calendario_bloqueado": not capacidades.pode_ver_calendario,
    })


@sessao_obrigatoria
@require_GET
def dia(request, ano, mes, dia):
    try:
        data = date(ano, mes, dia)
    except ValueError:
        raise Http404("Data inválida.")
    itens = filtrar_do_dia(_itens_calendario(request), data)
    return render(request, "calendario/dia.html", {
        "data": data,
        "itens": itens,
        "celula": celula_do_dia(itens, data),
    })


@sessao_obrigatoria
@require_GET
def calendario_json(request):
    """Feed da biblioteca de calendário: ?start=YYYY-MM-DD&end=YYYY-MM-DD (end exclusivo)."""
    inicio = parse_date((request.GET.get("start") or "")[:10])
    fim = parse_date((request.GET.get("end") or "")[:10])
    itens = _itens_calendario(request)
    if inicio and fim:
        itens = filtrar_do_periodo(itens, inicio, fim - timedelta(days=1))
    return JsonResponse(para_fullcalendar(itens), safe=False)


# =============================================================================
# Solicitações de sala pendentes
# =============================================================================
def _chave_pendentes(request):
    return f"salas_pendentes:{request.sessao.empresa_id}:{request.sessao.filial_id}"


@sessao_obrigatoria
@require_GET
def salas_pendentes_contagem(request):
    if not _pode(request, Capacidade.SALA_APROVAR):
        return JsonResponse({"total": 0})
    chave = _chave_pendentes(request)
    total = cache.get(chave)
    if total is None:
        try:
            total = len(request.sessao.cliente().listar_salas_pendentes())
        except ApiError as e:
            logger.warning("Falha ao contar salas pendentes: %s", e)
            return JsonResponse({"total": 0, "erro": e.mensagem}, status=502)
        cache.set(chave, total, settings.PENDENTES_CACHE_TTL)
    return JsonResponse({"total": total})


@sessao_obrigatoria
@requer_capacidade(Capacidade.SALA_APROVAR)
@require_GET
def salas_pendentes(request):
    cliente = request.sessao.cliente()
    pendentes = _listar(request, cliente.listar_salas_pendentes, Sala.from_api)
    tipos = {t.id: t for t in _listar(request, cliente.listar_tipos_sala, TipoDeSala.from_api)}
    for sala in pendentes:
        sala.tipo_de_sala = tipos.get(sala.tipo_de_sala_id) or sala.tipo_de_sala
    return render(request, "calendario/pendentes.html", {"pendentes": pendentes})


def _decidir_sala(request, pk, status, sucesso):
    ok, _ = _mutar(
        request, Capacidade.SALA_APROVAR,
        request.sessao.cliente().atualizar_status_sala, pk, status,
        sucesso=sucesso,
    )
    if ok:
        cache.delete(_chave_pendentes(request))
    return redirect("calendario:salas_pendentes")


@sessao_obrigatoria
@requer_capacidade(Capacidade.SALA_APROVAR, destino="calendario:salas_pendentes")
@require_POST
def sala_aprovar(request, pk):
    return _decidir_sala(request, pk, StatusSala.APROVADO, "Solicitação aprovada.")


@sessao_obrigatoria
@requer_capacidade(Capacidade.SALA_APROVAR, destino="calendario:salas_pendentes")
@require_POST
def sala_rejeitar(request, pk):
    return _decidir_sala(request, pk, StatusSala.REJEITADO, "Solicitação rejeitada.")


# =============================================================================
# Eventos
# =============================================================================
def _chave_edicao(pk):
    return f"evento_edicao_pendente:{pk}"


def _opcoes_evento(request):
    cliente = request.sessao.cliente()
    return {"tipos_evento": _listar(request, cliente.listar_tipos_evento, TipoEvento.from_api)}


@sessao_obrigatoria
@requer_capacidade(Capacidade.EVENTO_LER)
@require_GET
def eventos_lista(request):
    nivel = request.GET.get("nivel")
    try:
        nivel = NivelCompartilhamento(int(nivel)) if nivel not in (None, "") else None
    except ValueError:
        nivel = None
    eventos = _listar(request, request.sessao.cliente().listar_eventos, Evento.from_api, nivel)
    eventos = _filtrar_texto(eventos, request.GET.get("q"), "titulo", "descricao")
    linhas = [(e, link_inscricao(e, settings.SITE_DOMAIN)) for e in eventos]
    return render(request, "calendario/eventos_lista.html", {
        "linhas": linhas,
        "nivel": nivel,
        "niveis": NivelCompartilhamento.choices,
        "q": request.GET.get("q", ""),
    })


@sessao_obrigatoria
@requer_capacidade(Capacidade.EVENTO_LER)
@require_GET
def evento_ver(request, pk):
    evento = _obter(request, request.sessao.cliente().obter_evento, Evento.from_api, pk)
    if evento is None:
        return redirect("calendario:eventos")
    return render(request, "calendario/evento_detalhe.html", {
        "evento": evento,
        "link": link_inscricao(evento, settings.SITE_DOMAIN),
        "recorrente": exige_escopo(evento),
    })


@sessao_obrigatoria
@requer_capacidade(Capacidade.EVENTO_CRIAR, destino="calendario:eventos", metodos=("POST",))
@require_http_methods(["GET", "POST"])
def evento_novo(request):
    sessao = request.sessao
    if request.method == "POST":
        try:
            if request.POST.get("vincular_sala"):
                exigir(sessao, Capacidade.SALA_CRIAR)
            if request.POST.get("novo_interessado"):
                exigir(sessao, Capacidade.INTERESSADO_CRIAR)
        except AcessoNegado as e:
            return _negar(request, e, "calendario:eventos")

    cliente = sessao.cliente()
    opcoes = _opcoes_evento(request)
    if _pode(request, Capacidade.TIPO_SALA_LER) or _pode(request, Capacidade.SALA_CRIAR):
        opcoes["tipos_de_sala"] = _listar(request, cliente.listar_tipos_sala, TipoDeSala.from_api)
    if _pode(request, Capacidade.INTERESSADO_LER):
        opcoes["interessados"] = _listar(request, cliente.listar_interessados, Interessado.from_api)

    if request.method == "POST":
        form = EventoCriacaoForm(request.POST, **opcoes)
        interessado_form = InteressadoForm(request.POST, prefix="interessado")
        novo_interessado = bool(request.POST.get("novo_interessado"))
        valido = form.is_valid()
        valido = (not novo_interessado or interessado_form.is_valid()) and valido
        if valido:
            try:
                interessado_id = None
                if novo_interessado:
                    criado = executar(sessao, Capacidade.INTERESSADO_CRIAR,
                                      cliente.criar_interessado, interessado_form.payload())
                    interessado_id = criado.get("id") if isinstance(criado, dict) else None

                parcelas = []
                c = form.cleaned_data
                if form.exige_contrato and (c.get("numero_parcelas") or 0) > 0:
                    parcelas = distribuir(
                        gerar_parcelas(c["numero_parcelas"], c["primeiro_vencimento"]),
                        c.get("valor_total"), c.get("valor_sinal"),
                    )
                executar(sessao, Capacidade.EVENTO_CRIAR, cliente.criar_evento,
                         form.payload_criacao(interessado_id, parcelas))
            except AcessoNegado as e:
                messages.error(request, str(e))
            except ApiError as e:
                messages.error(request, e.mensagem)
            else:
                messages.success(request, "Evento criado com sucesso!")
                return redirect("calendario:eventos")
        if not novo_interessado:
            interessado_form = InteressadoForm(prefix="interessado")
    else:
        inicial = {}
        data = parse_date(request.GET.get("data") or "")
        if data:
            inicial = {"data_inicio": data, "data_fim": data}
        form = EventoCriacaoForm(initial=inicial, **opcoes)
        interessado_form = InteressadoForm(prefix="interessado")

    return render(request, "calendario/evento_form.html", {
        "form": form,
        "interessado_form": interessado_form,
        "titulo": "Novo evento",
    })


@sessao_obrigatoria
@requer_capacidade(Capacidade.EVENTO_EDITAR, destino=_com_pk("calendario:evento_ver"), metodos=("POST",))
@require_http_methods(["GET", "POST"])
def evento_editar(request, pk):
    cliente = request.sessao.cliente()
    evento = _obter(request, cliente.obter_evento, Evento.from_api, pk)
    if evento is None:
        return redirect("calendario:eventos")
    opcoes = _opcoes_evento(request)

    if request.method == "POST":
        form = EventoForm(request.POST, **opcoes)
        if form.is_valid():
            payload = form.payload_atualizacao(evento)
            if exige_escopo(evento):
                request.session[_chave_edicao(pk)] = payload
                return redirect("calendario:evento_escopo", pk=pk, tipo=EDITAR)

            ok, _ = _mutar(request, Capacidade.EVENTO_EDITAR, cliente.atualizar_evento, pk, payload,
                           sucesso="Evento atualizado com sucesso!")
            if ok:
                return redirect("calendario:evento_ver", pk=pk)
    else:
        form = EventoForm(initial=EventoForm.inicial(evento), **opcoes)

    return render(request, "calendario/evento_form.html", {
        "form": form,
        "evento": evento,
        "titulo": f"Editar evento: {evento.titulo}",
    })


@sessao_obrigatoria
@require_http_methods(["GET", "POST"])
def evento_escopo(request, pk, tipo):
    """Diálogo "este / este e os próximos / todos" para eventos recorrentes."""
    if tipo not in (EDITAR, EXCLUIR):
        raise Http404
    if request.method == "POST" and "cancelar" not in request.POST:
        try:
            exigir(request.sessao, Capacidade.EVENTO_EDITAR if tipo == EDITAR else Capacidade.EVENTO_EXCLUIR)
        except AcessoNegado as e:
            return _negar(request, e, "calendario:evento_ver", pk=pk)
    cliente = request.sessao.cliente()
    evento = _obter(request, cliente.obter_evento, Evento.from_api, pk)
    if evento is None:
        return redirect("calendario:eventos")
    if not exige_escopo(evento):
        return redirect("calendario:evento_editar" if tipo == EDITAR else "calendario:evento_excluir", pk=pk)

    chave = _chave_edicao(pk)
    if tipo == EDITAR and chave not in request.session:
        messages.warning(request, "Nenhuma alteração pendente para este evento.")
        return redirect("calendario:evento_editar", pk=pk)

    if request.method == "POST":
        if "cancelar" in request.POST:
            request.session.pop(chave, None)
            return redirect("calendario:evento_ver", pk=pk)
        form = EscopoForm(request.POST, tipo=tipo)
        if form.is_valid():
            escopo = resolver_escopo(tipo, form.cleaned_data["escopo"])
            if tipo == EDITAR:
                ok, _ = _mutar(request, Capacidade.EVENTO_EDITAR, cliente.atualizar_evento,
                               pk, request.session[chave], escopo=escopo,
                               sucesso="Evento atualizado com sucesso!")
                if ok:
                    request.session.pop(chave, None)
                    return redirect("calendario:eventos")
                return redirect("calendario:evento_editar", pk=pk)

            ok, _ = _mutar(request, Capacidade.EVENTO_EXCLUIR, cliente.excluir_evento, pk, escopo=escopo,
                           sucesso="Evento excluído com sucesso!")
            if ok:
                return redirect("calendario:eventos")
            return redirect("calendario:evento_ver", pk=pk)
    else:
        form = EscopoForm(tipo=tipo)

    return render(request, "calendario/escopo_recorrencia.html", {
        "form": form,
        "evento": evento,
        "tipo": tipo,
        "opcoes": opcoes_escopo(tipo),
    })


@sessao_obrigatoria
@requer_capacidade(Capacidade.EVENTO_EXCLUIR, destino=_com_pk("calendario:evento_ver"), metodos=("POST",))
@require_http_methods(["GET", "POST"])
def evento_excluir(request, pk):
    cliente = request.sessao.cliente()
    evento = _obter(request, cliente.obter_evento, Evento.from_api, pk)
    if evento is None:
        return redirect("calendario:eventos")
    if exige_escopo(evento):
        # a escolha do escopo já funciona como confirmação
        return redirect("calendario:evento_escopo", pk=pk, tipo=EXCLUIR)

    if request.method == "POST":
        ok, _ = _mutar(request, Capacidade.EVENTO_EXCLUIR, cliente.excluir_evento, pk,
                       sucesso="Evento excluído com sucesso!")
        if ok:
            return redirect("calendario:eventos")
        return redirect("calendario:evento_ver", pk=pk)
    return render(request, "calendario/confirmar_exclusao.html", {
        "obj": evento.titulo, "tipo": "Evento", "voltar": reverse("calendario:evento_ver", args=[pk]),
    })


# =============================================================================
# Salas (reservas de sala)
# =============================================================================
def _tipos_sala(request):
    return _listar(request, request.sessao.cliente().listar_tipos_sala, TipoDeSala.from_api)


@sessao_obrigatoria
@requer_capacidade(Capacidade.SALA_LER)
@require_GET
def salas_lista(request):
    cliente = request.sessao.cliente()
    salas = _listar(request, cliente.listar_salas, Sala.from_api)
    tipos = {t.id: t for t in _tipos_sala(request)}
    for sala in salas:
        sala.tipo_de_sala = tipos.get(sala.tipo_de_sala_id) or sala.tipo_de_sala
    status = request.GET.get("status")
    if status not in (None, ""):
        salas = [s for s in salas if str(int(s.status)) == status]
    return render(request, "calendario/salas_lista.html", {
        "salas": salas, "status": status, "status_choices": StatusSala.choices,
    })


@sessao_obrigatoria
@requer_capacidade(Capacidade.SALA_LER)
@require_GET
def sala_ver(request, pk):
    sala = _obter(request, request.sessao.cliente().obter_sala, Sala.from_api, pk)
    if sala is None:
        return redirect("calendario:salas")
    if sala.tipo_de_sala is None:
        sala.tipo_de_sala = next((t for t in _tipos_sala(request) if t.id == sala.tipo_de_sala_id), None)
    return render(request, "calendario/sala_detalhe.html", {"sala": sala})


@sessao_obrigatoria
@requer_capacidade(Capacidade.SALA_CRIAR, destino="calendario:salas", metodos=("POST",))
@require_http_methods(["GET", "POST"])
def sala_nova(request):
    tipos = _tipos_sala(request)
    if request.method == "POST":
        form = SalaForm(request.POST, tipos_de_sala=tipos)
        if form.is_valid():
            ok, _ = _mutar(request, Capacidade.SALA_CRIAR, request.sessao.cliente().criar_sala,
                           form.payload(), sucesso="Reserva de sala criada com sucesso!")
            if ok:
                return redirect("calendario:salas")
    else:
        inicial = {}
        data = parse_date(request.GET.get("data") or "")
        if data:
            inicial = {"data_inicio": data, "data_fim": data}
        form = SalaForm(initial=inicial, tipos_de_sala=tipos)
    return render(request, "calendario/form.html", {
        "form": form, "titulo": "Nova reserva de sala", "voltar": reverse("calendario:salas"),
    })


@sessao_obrigatoria
@requer_capacidade(Capacidade.SALA_EDITAR, destino=_com_pk("calendario:sala_ver"), metodos=("POST",))
@require_http_methods(["GET", "POST"])
def sala_editar(request, pk):
    cliente = request.sessao.cliente()
    sala = _obter(request, cliente.obter_sala, Sala.from_api, pk)
    if sala is None:
        return redirect("calendario:salas")
    tipos = _tipos_sala(request)
    if request.method == "POST":
        form = SalaForm(request.POST, tipos_de_sala=tipos)
        if form.is_valid():
            ok, _ = _mutar(request, Capacidade.SALA_EDITAR, cliente.atualizar_sala, pk,
                           form.payload(sala), sucesso="Reserva de sala atualizada!")
            if ok:
                return redirect("calendario:sala_ver", pk=pk)
    else:
        form = SalaForm(initial=SalaForm.inicial(sala), tipos_de_sala=tipos)
    return render(request, "calendario/form.html", {
        "form": form, "titulo": "Editar reserva de sala", "voltar": reverse("calendario:sala_ver", args=[pk]),
    })


@sessao_obrigatoria
@requer_capacidade(Capacidade.SALA_EXCLUIR, destino=_com_pk("calendario:sala_ver"), metodos=("POST",))
@require_http_methods(["GET", "POST"])
def sala_excluir(request, pk):
    cliente = request.sessao.cliente()
    sala = _obter(request, cliente.obter_sala, Sala.from_api, pk)
    if sala is None:
        return redirect("calendario:salas")
    if request.method == "POST":
        ok, _ = _mutar(request, Capacidade.SALA_EXCLUIR, cliente.excluir_sala, pk,
                       sucesso="Reserva de sala excluída.")
        if ok:
            return redirect("calendario:salas")
        return redirect("calendario:sala_ver", pk=pk)
    return render(request, "calendario/confirmar_exclusao.html", {
        "obj": sala.descricao or f"Sala #{sala.id}", "tipo": "Reserva de sala",
        "voltar": reverse("calendario:sala_ver", args=[pk]),
    })


# =============================================================================
# Tipos de evento / tipos de sala
# =============================================================================
@sessao_obrigatoria
@requer_capacidade(Capacidade.TIPO_EVENTO_LER)
@require_GET
def tipos_evento_lista(request):
    cliente = request.sessao.cliente()
    return render(request, "calendario/tipos_evento.html", {
        "tipos": _listar(request, cliente.listar_tipos_evento, TipoEvento.from_api),
        "globais": _listar(request, cliente.listar_tipos_evento_global, TipoEvento.from_api),
    })


@sessao_obrigatoria
@requer_capacidade(Capacidade.TIPO_EVENTO_CRIAR, destino="calendario:tipos_evento", metodos=("POST",))
@require_http_methods(["GET", "POST"])
def tipo_evento_novo(request):
    form = TipoEventoForm(request.POST or None)
    if request.method == "POST" and form.is_valid():
        ok, _ = _mutar(request, Capacidade.TIPO_EVENTO_CRIAR, request.sessao.cliente().criar_tipo_evento,
                       form.payload(), sucesso="Tipo de evento criado!")
        if ok:
            return redirect("calendario:tipos_evento")
    return render(request, "calendario/form.html", {
        "form": form, "titulo": "Novo tipo de evento", "voltar": reverse("calendario:tipos_evento"),
    })


def _tipo_evento(request, pk):
    tipo = next((t for t in _listar(request, request.sessao.cliente().listar_tipos_evento, TipoEvento.from_api)
                 if t.id == pk), None)
    if tipo is None:
        raise Http404("Tipo de evento não encontrado.")
    return tipo


@sessao_obrigatoria
@requer_capacidade(Capacidade.TIPO_EVENTO_EDITAR, destino="calendario:tipos_evento", metodos=("POST",))
@require_http_methods(["GET", "POST"])
def tipo_evento_editar(request, pk):
    tipo = _tipo_evento(request, pk)
    if request.method == "POST":
        form = TipoEventoEdicaoForm(request.POST)
        if form.is_valid():
            ok, _ = _mutar(request, Capacidade.TIPO_EVENTO_EDITAR, request.sessao.cliente().atualizar_tipo_evento,
                           pk, form.payload(tipo), sucesso="Tipo de evento atualizado!")
            if ok:
                return redirect("calendario:tipos_evento")
    else:
        form = TipoEventoEdicaoForm(initial={"nome": tipo.nome, "cor": tipo.cor})
    return render(request, "calendario/form.html", {
        "form": form, "titulo": f"Editar tipo: {tipo.nome}", "voltar": reverse("calendario:tipos_evento"),
    })


@sessao_obrigatoria
@requer_capacidade(Capacidade.TIPO_EVENTO_EXCLUIR, destino="calendario:tipos_evento", metodos=("POST",))
@require_http_methods(["GET", "POST"])
def tipo_evento_excluir(request, pk):
    tipo = _tipo_evento(request, pk)
    if request.method == "POST":
        _mutar(request, Capacidade.TIPO_EVENTO_EXCLUIR, request.sessao.cliente().excluir_tipo_evento, pk,
               sucesso="Tipo de evento excluído.")
        return redirect("calendario:tipos_evento")
    return render(request, "calendario/confirmar_exclusao.html", {
        "obj": tipo.nome, "tipo": "Tipo de evento", "voltar": reverse("calendario:tipos_evento"),
    })


@sessao_obrigatoria
@requer_capacidade(Capacidade.TIPO_SALA_LER)
@require_GET
def tipos_sala_lista(request):
    return render(request, "calendario/tipos_sala.html", {"tipos": _tipos_sala(request)})


@sessao_obrigatoria
@requer_capacidade(Capacidade.TIPO_SALA_CRIAR, destino="calendario:tipos_sala", metodos=("POST",))
@require_http_methods(["GET", "POST"])
def tipo_sala_novo(request):
    form = TipoDeSalaForm(request.POST or None)
    if request.method == "POST" and form.is_valid():
        ok, _ = _mutar(request, Capacidade.TIPO_SALA_CRIAR, request.sessao.cliente().criar_tipo_sala,
                       form.payload(), sucesso="Tipo de sala criado!")
        if ok:
            return redirect("calendario:tipos_sala")
    return render(request, "calendario/form.html", {
        "form": form, "titulo": "Novo tipo de sala", "voltar": reverse("calendario:tipos_sala"),
    })


def _tipo_sala(request, pk):
    tipo = next((t for t in _tipos_sala(request) if t.id == pk), None)
    if tipo is None:
        raise Http404("Tipo de sala não encontrado.")
    return tipo


@sessao_obrigatoria
@requer_capacidade(Capacidade.TIPO_SALA_EDITAR, destino="calendario:tipos_sala", metodos=("POST",))
@require_http_methods(["GET", "POST"])
def tipo_sala_editar(request, pk):
    tipo = _tipo_sala(request, pk)
    if request.method == "POST":
        form = TipoDeSalaEdicaoForm(request.POST)
        if form.is_valid():
            ok, _ = _mutar(request, Capacidade.TIPO_SALA_EDITAR, request.sessao.cliente().atualizar_tipo_sala,
                           pk, form.payload(tipo), sucesso="Tipo de sala atualizado!")
            if ok:
                return redirect("calendario:tipos_sala")
    else:
        form = TipoDeSalaEdicaoForm(initial=TipoDeSalaForm.inicial(tipo))
    return render(request, "calendario/form.html", {
        "form": form, "titulo": f"Editar tipo de sala: {tipo.nome}", "voltar": reverse("calendario:tipos_sala"),
    })


@sessao_obrigatoria
@requer_capacidade(Capacidade.TIPO_SALA_EXCLUIR, destino="calendario:tipos_sala", metodos=("POST",))
@require_http_methods(["GET", "POST"])
def tipo_sala_excluir(request, pk):
    tipo = _tipo_sala(request, pk)
    if request.method == "POST":
        _mutar(request, Capacidade.TIPO_SALA_EXCLUIR, request.sessao.cliente().excluir_tipo_sala, pk,
               sucesso="Tipo de sala excluído.")
        return redirect("calendario:tipos_sala")
    return render(request, "calendario/confirmar_exclusao.html", {
        "obj": tipo.nome, "tipo": "Tipo de sala", "voltar": reverse("calendario:tipos_sala"),
    })


# =============================================================================
# Interessados (contratantes)
# =============================================================================
@sessao_obrigatoria
@requer_capacidade(Capacidade.INTERESSADO_LER)
@require_GET
def interessados_lista(request):
    interessados = _listar(request, request.sessao.cliente().listar_interessados, Interessado.from_api)
    q = request.GET.get("q", "")
    return render(request, "calendario/interessados_lista.html", {
        "interessados": _filtrar_texto(interessados, q, "nome", "documento", "email"),
        "q": q,
    })


@sessao_obrigatoria
@requer_capacidade(Capacidade.INTERESSADO_CRIAR, destino="calendario:interessados", metodos=("POST",))
@require_http_methods(["GET", "POST"])
def interessado_novo(request):
    form = InteressadoForm(request.POST or None)
    if request.method == "POST" and form.is_valid():
        ok, _ = _mutar(request, Capacidade.INTERESSADO_CRIAR, request.sessao.cliente().criar_interessado,
                       form.payload(), sucesso="Contratante cadastrado!")
        if ok:
            return redirect("calendario:interessados")
    return render(request, "calendario/form.html", {
        "form": form, "titulo": "Novo contratante", "voltar": reverse("calendario:interessados"),
    })


@sessao_obrigatoria
@requer_capacidade(Capacidade.INTERESSADO_EDITAR, destino="calendario:interessados", metodos=("POST",))
@require_http_methods(["GET", "POST"])
def interessado_editar(request, pk):
    cliente = request.sessao.cliente()
    interessado = _obter(request, cliente.obter_interessado, Interessado.from_api, pk)
    if interessado is None:
        return redirect("calendario:interessados")
    if request.method == "POST":
        form = InteressadoForm(request.POST)
        if form.is_valid():
            ok, _ = _mutar(request, Capacidade.INTERESSADO_EDITAR, cliente.atualizar_interessado, pk,
                           form.payload(interessado), sucesso="Contratante atualizado!")
            if ok:
                return redirect("calendario:interessados")
    else:
        form = InteressadoForm(initial=InteressadoForm.inicial(interessado))
    return render(request, "calendario/form.html", {
        "form": form, "titulo": f"Editar contratante: {interessado.nome}",
        "voltar": reverse("calendario:interessados"),
    })


@sessao_obrigatoria
@requer_capacidade(Capacidade.INTERESSADO_EXCLUIR, destino="calendario:interessados", metodos=("POST",))
@require_http_methods(["GET", "POST"])
def interessado_excluir(request, pk):
    cliente = request.sessao.cliente()
    interessado = _obter(request, cliente.obter_interessado, Interessado.from_api, pk)
    if interessado is None:
        return redirect("calendario:interessados")
    if request.method == "POST":
        _mutar(request, Capacidade.INTERESSADO_EXCLUIR, cliente.excluir_interessado, pk,
               sucesso="Contratante excluído.")
        return redirect("calendario:interessados")
    return render(request, "calendario/confirmar_exclusao.html", {
        "obj": interessado.nome, "tipo": "Contratante", "voltar": reverse("calendario:interessados"),
    })


# =============================================================================
# Reservas (contratos) e parcelas
# =============================================================================
@sessao_obrigatoria
@requer_capacidade(Capacidade.RESERVA_LER)
@require_GET
def reservas_lista(request):
    reservas = _listar(request, request.sessao.cliente().listar_reservas, Reserva.from_api)
    status = request.GET.get("status")
    if status not in (None, ""):
        reservas = [r for r in reservas if str(int(r.status)) == status]
    q = request.GET.get("q", "")
    return render(request, "calendario/reservas_lista.html", {
        "reservas": _filtrar_texto(reservas, q, "nome_interessado", "titulo_evento"),
        "status": status,
        "status_choices": StatusReserva.choices,
        "q": q,
    })


def _parcelas_do_formset(formset):
    parcelas = [
        Parcela(
            id=f.cleaned_data.get("id") or 0,
            numero=f.cleaned_data["numero"],
            valor=0,
            data_vencimento=f.cleaned_data["data_vencimento"],
            is_sinal=bool(f.cleaned_data.get("is_sinal")),
        )
        for f in formset.forms
    ]
    return sorted(parcelas, key=lambda p: p.numero)


@sessao_obrigatoria
@requer_capacidade(Capacidade.RESERVA_LER)
@require_http_methods(["GET", "POST"])
def reserva_detalhe(request, pk):
    """
    Contrato + editor de parcelas. Cada submissão (adicionar, remover, salvar)
    redistribui os valores a partir do total e do sinal informados.
    """
    if request.method == "POST" and request.POST.get("acao", "salvar") == "salvar":
        try:
            exigir(request.sessao, Capacidade.RESERVA_EDITAR)
        except AcessoNegado as e:
            return _negar(request, e, "calendario:reserva_detalhe", pk=pk)
    cliente = request.sessao.cliente()
    reserva = _obter(request, cliente.obter_reserva, Reserva.from_api, pk)
    if reserva is None:
        return redirect("calendario:reservas")

    parcelas = reserva.parcelas
    if request.method == "POST":
        form = ReservaForm(request.POST)
        formset = ParcelaFormSet(request.POST, prefix="parcelas")
        acao = request.POST.get("acao", "salvar")
        if form.is_valid() and formset.is_valid():
            c = form.cleaned_data
            parcelas = _parcelas_do_formset(formset)
            if acao == "adicionar":
                parcelas = adicionar_parcela(parcelas, timezone.localdate())
            elif acao.startswith("remover:"):
                try:
                    parcelas = remover_parcela(parcelas, int(acao.split(":", 1)[1]))
                except ValueError:
                    messages.error(request, "Parcela inválida.")
            parcelas = distribuir(parcelas, c.get("valor_total"), c.get("valor_sinal"))

            if acao == "salvar":
                atualizada = replace(
                    reserva,
                    status=StatusReserva(c["status"]),
                    valor_total=c.get("valor_total"),
                    valor_sinal=c.get("valor_sinal"),
                    data_vencimento_sinal=c.get("data_vencimento_sinal"),
                    quantidade_participantes=c.get("quantidade_participantes"),
                    nome_padre_responsavel=c.get("nome_padre_responsavel") or None,
                    observacoes=c.get("observacoes") or None,
                    parcelas=parcelas,
                )
                ok, _ = _mutar(request, Capacidade.RESERVA_EDITAR, cliente.atualizar_reserva, pk,
                               atualizada.to_api(), sucesso="Contrato atualizado com sucesso!")
                if ok:
                    return redirect("calendario:reserva_detalhe", pk=pk)
            formset = ParcelaFormSet(initial=parcelas_iniciais(parcelas), prefix="parcelas")
        else:
            parcelas = []
    else:
        form = ReservaForm(initial=ReservaForm.inicial(reserva))
        formset = ParcelaFormSet(initial=parcelas_iniciais(parcelas), prefix="parcelas")

    valores = [p.valor for p in parcelas] if len(parcelas) == len(formset.forms) else [None] * len(formset.forms)
    return render(request, "calendario/reserva_detalhe.html", {
        "reserva": reserva,
        "form": form,
        "formset": formset,
        "linhas": list(zip(formset.forms, valores)),
        "total_parcelas": soma(parcelas),
    })


# =============================================================================
# Inscrições
# =============================================================================
def _inscricoes_do_evento(request, pk):
    cliente = request.sessao.cliente()
    evento = _obter(request, cliente.obter_evento, Evento.from_api, pk)
    if evento is None:
        return None, []
    return evento, _listar(request, cliente.listar_inscricoes, FichaInscricao.from_api, pk)


@sessao_obrigatoria
@requer_capacidade(Capacidade.INSCRICAO_LER)
@require_GET
def inscricoes_lista(request, pk):
    evento, inscricoes = _inscricoes_do_evento(request, pk)
    if evento is None:
        return redirect("calendario:eventos")
    q = request.GET.get("q", "")
    return render(request, "calendario/inscricoes.html", {
        "evento": evento,
        "inscricoes": _filtrar_texto(inscricoes, q, "nome", "email"),
        "total": len(inscricoes),
        "q": q,
        "link": link_inscricao(evento, settings.SITE_DOMAIN),
    })


@sessao_obrigatoria
@requer_capacidade(Capacidade.INSCRICAO_LER)
@require_GET
def inscricoes_csv(request, pk):
    cliente = request.sessao.cliente()
    try:
        evento = Evento.from_api(cliente.obter_evento(pk))
        inscricoes = [FichaInscricao.from_api(d) for d in cliente.listar_inscricoes(pk)]
    except ApiError as e:
        messages.error(request, e.mensagem)
        return redirect("calendario:inscricoes", pk=pk)
    inscricoes = _filtrar_texto(inscricoes, request.GET.get("q"), "nome", "email")
    resp = HttpResponse(gerar_csv(inscricoes), content_type="text/csv; charset=utf-8")
    resp["Content-Disposition"] = f'attachment; filename="{nome_arquivo(evento.titulo, timezone.localdate())}"'
    return resp


# =============================================================================
# Usuários
# =============================================================================
def _usuarios(request):
    return _listar(request, request.sessao.cliente_autenticacao().listar_usuarios, Usuario.from_api)


@sessao_obrigatoria
@requer_capacidade(Capacidade.USUARIO_LISTAR)
@require_GET
def usuarios_lista(request):
    usuarios = _usuarios(request)
    q = request.GET.get("q", "")
    linhas = [(u, u.acessos_do_modulo(MODULO_CALENDARIO)) for u in _filtrar_texto(usuarios, q, "nome", "email")]
    return render(request, "calendario/usuarios.html", {"linhas": linhas, "q": q})


@sessao_obrigatoria
@requer_capacidade(Capacidade.ADMIN, destino="calendario:usuarios", metodos=("POST",))
@require_http_methods(["GET", "POST"])
def usuario_novo(request):
    sessao = request.sessao
    form = UsuarioCadastroForm(request.POST or None)
    if request.method == "POST" and form.is_valid():
        if sessao.empresa_id is None:
            messages.error(request, "Empresa não identificada no token.")
        else:
            c = form.cleaned_data
            ok, _ = _mutar(request, Capacidade.ADMIN, sessao.cliente_autenticacao().cadastrar_usuario,
                           c["email"], c["nome"], sessao.empresa_id, c["claims"],
                           sucesso="Usuário cadastrado! A senha inicial é enviada por e-mail.")
            if ok:
                return redirect("calendario:usuarios")
    return render(request, "calendario/form.html", {
        "form": form, "titulo": "Cadastrar usuário", "voltar": reverse("calendario:usuarios"),
    })


@sessao_obrigatoria
@requer_capacidade(Capacidade.USUARIO_LISTAR)
@requer_capacidade(Capacidade.ADMIN, destino="calendario:usuarios", metodos=("POST",))
@require_http_methods(["GET", "POST"])
def usuario_editar(request, email):
    usuario = next((u for u in _usuarios(request) if u.email.lower() == email.lower()), None)
    if usuario is None:
        raise Http404("Usuário não encontrado.")

    if request.method == "POST":
        form = UsuarioAcessosForm(request.POST)
        if form.is_valid():
            acessos = usuario.com_acessos_do_modulo(MODULO_CALENDARIO, form.cleaned_data["acessos"])
            ok, _ = _mutar(request, Capacidade.ADMIN, request.sessao.cliente_autenticacao().atualizar_usuario,
                           usuario.email, form.cleaned_data["nome"], [a.to_api() for a in acessos],
                           sucesso="Acessos atualizados!")
            if ok:
                return redirect("calendario:usuarios")
    else:
        form = UsuarioAcessosForm(initial={
            "nome": usuario.nome,
            "acessos": usuario.acessos_do_modulo(MODULO_CALENDARIO),
        })
    return render(request, "calendario/form.html", {
        "form": form, "titulo": f"Acessos de {usuario.email}", "voltar": reverse("calendario:usuarios"),
    })


# =============================================================================
# Área pública (sem login)
# =============================================================================
@require_GET
def eventos_publicos(request, filial_id):
    try:
        eventos = [Evento.from_api(d) for d in listar_eventos_publicos_filial(filial_id)]
    except ApiError as e:
        logger.warning("Falha ao listar eventos públicos da filial %s: %s", filial_id, e)
        eventos = []
        messages.error(request, e.mensagem)
    linhas = [(e, link_inscricao(e, settings.SITE_DOMAIN)) for e in eventos]
    return render(request, "calendario/publico/eventos.html", {"linhas": linhas, "filial_id": filial_id})


def _mensagem_publica(request, titulo, texto, status=200):
    return render(request, "calendario/publico/mensagem.html",
                  {"titulo": titulo, "texto": texto}, status=status)


def _ficha_publica(request, evento, filial_id):
    if not evento.inscricao_ativa:
        return _mensagem_publica(request, "Inscrições encerradas",
                                 "As inscrições para este evento não estão mais ativas.")
    if evento.nome_formulario != NomeFormulario.PREPARACAO_BATISMO:
        return _mensagem_publica(request, "Formulário não disponível",
                                 "O formulário para este evento ainda não foi configurado.")

    if request.method == "POST":
        form = FichaBatismoForm(request.POST)
        if form.is_valid():
            try:
                enviar_ficha_batismo(filial_id, form.payload(evento.id))
            except ApiError as e:
                messages.error(request, e.mensagem)
            else:
                logger.info("Inscrição recebida para evento %s (filial %s)", evento.id, filial_id)
                return _mensagem_publica(request, "Inscrição realizada!",
                                         f"Sua inscrição em \"{evento.titulo}\" foi enviada com sucesso.")
    else:
        form = FichaBatismoForm()
    return render(request, "calendario/publico/inscricao.html", {"form": form, "evento": evento})


@require_http_methods(["GET", "POST"])
def inscricao_publica(request, filial_id, slug):
    try:
        dados = obter_evento_publico(filial_id, slug)
    except ApiError as e:
        logger.info("Evento público %s/%s indisponível: %s", filial_id, slug, e.status)
        dados = None
    if not dados:
        return _mensagem_publica(request, "Evento não encontrado",
                                 "O link de inscrição que você está tentando acessar não existe ou expirou.",
                                 status=404)
    return _ficha_publica(request, Evento.from_api(dados), filial_id)


@require_http_methods(["GET", "POST"])
def inscricao_por_id(request, pk):
    try:
        filial_id = int(request.GET.get("filial") or settings.FILIAL_PADRAO)
    except ValueError:
        filial_id = settings.FILIAL_PADRAO
    try:
        dados = obter_evento_publico_por_id(filial_id, pk)
    except ApiError as e:
        logger.info("Evento público %s (filial %s) indisponível: %s", pk, filial_id, e.status)
        dados = None
    if not dados:
        return _mensagem_publica(request, "Evento não encontrado",
                                 "O link de inscrição que você está tentando acessar não existe ou expirou.",
                                 status=404)
    evento = Evento.from_api(dados)
    return _ficha_publica(request, evento, evento.filial_id or filial_id)

from django.urls import path

from . import views

app_name = "calendario"

urlpatterns = [
    # Autenticação
    path("login/", views.login_view, name="login"),
    path("logout/", views.logout_view, name="logout"),
    path("filial/", views.selecionar_filial, name="selecionar_filial"),
    path("senha/", views.alterar_senha, name="alterar_senha"),

    # Calendário
    path("", views.dashboard, name="dashboard"),
    path("dia/<int:ano>/<int:mes>/<int:dia>/", views.dia, name="dia"),
    path("calendario.json", views.calendario_json, name="calendario_json"),

    # Solicitações de sala
    path("salas/pendentes/", views.salas_pendentes, name="salas_pendentes"),
    path("salas/pendentes/contagem/", views.salas_pendentes_contagem, name="salas_pendentes_contagem"),
    path("salas/<int:pk>/aprovar/", views.sala_aprovar, name="sala_aprovar"),
    path("salas/<int:pk>/rejeitar/", views.sala_rejeitar, name="sala_rejeitar"),

    # Eventos
    path("eventos/", views.eventos_lista, name="eventos"),
    path("eventos/novo/", views.evento_novo, name="evento_novo"),
    path("eventos/<int:pk>/", views.evento_ver, name="evento_ver"),
    path("eventos/<int:pk>/editar/", views.evento_editar, name="evento_editar"),
    path("eventos/<int:pk>/excluir/", views.evento_excluir, name="evento_excluir"),
    path("eventos/<int:pk>/escopo/<str:tipo>/", views.evento_escopo, name="evento_escopo"),
    path("eventos/<int:pk>/inscricoes/", views.inscricoes_lista, name="inscricoes"),
    path("eventos/<int:pk>/inscricoes.csv", views.inscricoes_csv, name="inscricoes_csv"),

    # Salas
    path("salas/", views.salas_lista, name="salas"),
    path("salas/nova/", views.sala_nova, name="sala_nova"),
    path("salas/<int:pk>/", views.sala_ver, name="sala_ver"),
    path("salas/<int:pk>/editar/", views.sala_editar, name="sala_editar"),
    path("salas/<int:pk>/excluir/", views.sala_excluir, name="sala_excluir"),

    # Tipos
    path("tipos-evento/", views.tipos_evento_lista, name="tipos_evento"),
    path("tipos-evento/novo/", views.tipo_evento_novo, name="tipo_evento_novo"),
    path("tipos-evento/<int:pk>/editar/", views.tipo_evento_editar, name="tipo_evento_editar"),
    path("tipos-evento/<int:pk>/excluir/", views.tipo_evento_excluir, name="tipo_evento_excluir"),
    path("tipos-sala/", views.tipos_sala_lista, name="tipos_sala"),
    path("tipos-sala/novo/", views.tipo_sala_novo, name="tipo_sala_novo"),
    path("tipos-sala/<int:pk>/editar/", views.tipo_sala_editar, name="tipo_sala_editar"),
    path("tipos-sala/<int:pk>/excluir/", views.tipo_sala_excluir, name="tipo_sala_excluir"),

    # Interessados (contratantes)
    path("interessados/", views.interessados_lista, name="interessados"),
    path("interessados/novo/", views.interessado_novo, name="interessado_novo"),
    path("interessados/<int:pk>/editar/", views.interessado_editar, name="interessado_editar"),
    path("interessados/<int:pk>/excluir/", views.interessado_excluir, name="interessado_excluir"),

    # Reservas (contratos)
    path("reservas/", views.reservas_lista, name="reservas"),
    path("reservas/<int:pk>/", views.reserva_detalhe, name="reserva_detalhe"),

    # Usuários
    path("usuarios/", views.usuarios_lista, name="usuarios"),
    path("usuarios/novo/", views.usuario_novo, name="usuario_novo"),
    path("usuarios/<str:email>/", views.usuario_editar, name="usuario_editar"),

    # Público
    path("publico/<int:filial_id>/eventos/", views.eventos_publicos, name="eventos_publicos"),
    path("inscricao/<int:filial_id>/<slug:slug>/", views.inscricao_publica, name="inscricao_publica"),
    path("inscricao/<int:pk>/", views.inscricao_por_id, name="inscricao_por_id"),
]

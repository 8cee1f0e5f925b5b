from django.conf import settings

from .permissoes import Capacidade


def sessao_context(request):
    """
    Disponibiliza para os templates:
      - sessao (SessaoParoquial do middleware)
      - capacidades (ConjuntoCapacidades; {{ capacidades.EVENTO_CRIAR }})
      - filiais / filial_atual
      - site_domain (base dos links públicos de inscrição)
    """
    sessao = getattr(request, "sessao", None)
    if sessao is None or not sessao.autenticada:
        return {"sessao": sessao, "site_domain": settings.SITE_DOMAIN}

    return {
        "sessao": sessao,
        "capacidades": sessao.capacidades,
        "filiais": sessao.filiais,
        "filial_atual": sessao.filial,
        "pode_aprovar_salas": sessao.capacidades.pode(Capacidade.SALA_APROVAR),
        "site_domain": settings.SITE_DOMAIN,
    }

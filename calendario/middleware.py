from .sessao import SessaoParoquial


class SessaoParoquialMiddleware:
    """Monta ``request.sessao`` a partir do token guardado na sessão Django."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request.sessao = SessaoParoquial(request.session).init()
        try:
            return self.get_response(request)
        finally:
            request.sessao.fechar()

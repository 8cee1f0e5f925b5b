# calendario/management/commands/exportar_inscricoes.py
import os

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from calendario.models import Evento, FichaInscricao
from calendario.services.exportacao import gerar_csv, nome_arquivo
from integracoes.ecclesia import ApiError, ClienteAgenda


class Command(BaseCommand):
    help = "Exporta as inscrições de um evento em CSV (mesmo formato do botão da tela)."

    def add_arguments(self, parser):
        parser.add_argument("--token", default=os.getenv("AGENDA_API_TOKEN"),
                            help="Token JWT (ou AGENDA_API_TOKEN).")
        parser.add_argument("--filial", type=int, required=True)
        parser.add_argument("--evento", type=int, required=True)
        parser.add_argument("--saida", help="Arquivo de saída; padrão: inscricoes_<titulo>_<data>.csv")

    def handle(self, *args, **opts):
        if not opts["token"]:
            raise CommandError("Informe --token ou defina AGENDA_API_TOKEN.")

        try:
            with ClienteAgenda(opts["token"], opts["filial"]) as cliente:
                evento = Evento.from_api(cliente.obter_evento(opts["evento"]))
                inscricoes = [FichaInscricao.from_api(d) for d in cliente.listar_inscricoes(opts["evento"])]
        except ApiError as e:
            raise CommandError(f"Falha na API ({e.status}): {e.mensagem}")

        saida = opts["saida"] or nome_arquivo(evento.titulo, timezone.localdate())
        with open(saida, "w", encoding="utf-8", newline="") as f:
            f.write(gerar_csv(inscricoes))

        self.stdout.write(self.style.SUCCESS(f"✅ {len(inscricoes)} inscrição(ões) exportada(s) em {saida}"))

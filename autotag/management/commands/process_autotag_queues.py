from django.core.management.base import BaseCommand

from autotag.services import factory
from autotag.workers import run_queues


class Command(BaseCommand):
    help = "Procesa las colas de image auto tag (pensado para cron)."

    def add_arguments(self, parser):
        parser.add_argument("--limit", type=int, default=None,
                            help="Máximo de trabajos por cola en esta corrida")

    def handle(self, *args, **options):
        report = run_queues(factory.get_entity_operations(), limit=options["limit"])
        self.stdout.write(f"Procesados: {report.processed}, fallidos: {report.failed}")
        for err in report.errors:
            self.stderr.write(err)

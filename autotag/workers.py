# autotag/workers.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Protocol

from django.apps import apps

from autotag import queues
from autotag.exceptions import AutoTagError
from autotag.models import QueueItem
from autotag.services.entity_operations import EntityOperations

logger = logging.getLogger(__name__)


@dataclass
class WorkResult:
    ok: bool
    detail: str = ""


class QueueWorker(Protocol):
    def process(self, item: QueueItem) -> WorkResult: ...


def _load(item: QueueItem):
    model = apps.get_model(item.entity_type)
    return model.objects.filter(pk=item.entity_id).first()


class ProcessPersonWorker:
    def __init__(self, operations: EntityOperations):
        self.operations = operations

    def process(self, item: QueueItem) -> WorkResult:
        person = _load(item)
        if person is None:
            return WorkResult(True, "la persona ya no existe")
        res = self.operations.sync_person(person)
        return WorkResult(True, f"escrituras remotas: {res.remote_writes}")


class DetectFacesWorker:
    def __init__(self, operations: EntityOperations):
        self.operations = operations

    def process(self, item: QueueItem) -> WorkResult:
        entity = _load(item)
        if entity is None:
            return WorkResult(True, "la entidad ya no existe")
        people = self.operations.find_faces_and_tag(entity, item.field_name)
        return WorkResult(True, f"{len(people)} persona(s) reconocida(s)")


class DeletedEntityWorker:
    def __init__(self, operations: EntityOperations):
        self.operations = operations

    def process(self, item: QueueItem) -> WorkResult:
        deleted = self.operations.delete_entity(item.entity_type, item.entity_id)
        return WorkResult(True, f"{deleted} mapa(s) eliminado(s)")


WORKERS: Dict[str, Callable[[EntityOperations], QueueWorker]] = {
    queues.PROCESS_PERSON: ProcessPersonWorker,
    queues.DETECT_FACES: DetectFacesWorker,
    queues.DELETED_ENTITY: DeletedEntityWorker,
}


@dataclass
class RunReport:
    processed: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)


def run_queues(operations: EntityOperations, limit: Optional[int] = None,
               queue_names=queues.QUEUE_NAMES) -> RunReport:
    """
    Procesa las colas un trabajo por paso, hasta ``limit`` trabajos por cola.

    Un trabajo que falla, sea cual sea el error, se devuelve a la cola con
    un intento más y no se reintenta en esta corrida.
    """
    report = RunReport()
    max_attempts = operations.config.queue_max_attempts
    claim_timeout = operations.config.queue_claim_timeout
    for name in queue_names:
        worker = WORKERS[name](operations)
        failed_ids: List[int] = []
        count = 0
        while limit is None or count < limit:
            item = queues.claim(name, exclude_ids=failed_ids, claim_timeout=claim_timeout)
            if item is None:
                break
            count += 1
            try:
                result = worker.process(item)
            except Exception as e:
                if isinstance(e, (AutoTagError, LookupError)):
                    logger.warning("Falló %s: %s", item, e)
                else:
                    logger.exception("Error inesperado procesando %s", item)
                report.failed += 1
                report.errors.append(f"{item}: {e}")
                failed_ids.append(item.pk)
                queues.release(item, str(e), max_attempts)
                continue
            logger.info("Procesado %s: %s", item, result.detail)
            queues.done(item)
            report.processed += 1
    return report

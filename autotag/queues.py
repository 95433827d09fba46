# autotag/queues.py
"""
Colas nombradas respaldadas por la tabla autotag_queue.

Un worker reclama un trabajo marcando ``claimed_at`` con un UPDATE
condicional, así dos corridas concurrentes nunca procesan la misma fila.
Si el trabajo se vuelve a encolar mientras está reclamado, ``version`` sube
y ``done`` lo deja pendiente en vez de borrarlo.
"""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Optional

from django.db.models import F, Q
from django.utils import timezone

from autotag.models import QueueItem

logger = logging.getLogger(__name__)

PROCESS_PERSON = QueueItem.Queue.PROCESS_PERSON.value
DETECT_FACES = QueueItem.Queue.DETECT_FACES.value
DELETED_ENTITY = QueueItem.Queue.DELETED_ENTITY.value

QUEUE_NAMES = (PROCESS_PERSON, DETECT_FACES, DELETED_ENTITY)

# candidatos revisados por llamada a claim()
CLAIM_BATCH = 20


def enqueue(queue_name: str, entity_type: str, entity_id: int, field_name: str = "") -> QueueItem:
    """Encola un trabajo; si ya hay uno pendiente igual se devuelve ese."""
    key = {
        "queue_name": queue_name,
        "entity_type": entity_type,
        "entity_id": int(entity_id),
        "field_name": field_name or "",
    }
    for _ in range(3):
        item, created = QueueItem.objects.get_or_create(**key)
        if created:
            logger.debug("Encolado %s", item)
            return item
        # 0 filas: un worker la borró entre el get y el update; se vuelve a crear
        if QueueItem.objects.filter(pk=item.pk).update(version=F("version") + 1):
            return item
    return item


def number_of_items(queue_name: str) -> int:
    return QueueItem.objects.filter(queue_name=queue_name).count()


def delete_queue(queue_name: str) -> int:
    deleted, _ = QueueItem.objects.filter(queue_name=queue_name).delete()
    return deleted


def _free(now, claim_timeout: float) -> Q:
    return Q(claimed_at__isnull=True) | Q(claimed_at__lt=now - timedelta(seconds=claim_timeout))


def claim(queue_name: str, exclude_ids=(), claim_timeout: float = 3600.0) -> Optional[QueueItem]:
    """Reclama el trabajo libre más antiguo de la cola, o None."""
    now = timezone.now()
    candidates = (
        QueueItem.objects.filter(_free(now, claim_timeout), queue_name=queue_name)
        .exclude(pk__in=list(exclude_ids))
        .order_by("id")
        .values_list("pk", flat=True)[:CLAIM_BATCH]
    )
    for pk in list(candidates):
        if QueueItem.objects.filter(_free(now, claim_timeout), pk=pk).update(claimed_at=now):
            item = QueueItem.objects.filter(pk=pk).first()
            if item is not None:
                return item
    return None


def done(item: QueueItem) -> bool:
    """Borra el trabajo procesado. False si se reencoló mientras corría."""
    deleted, _ = QueueItem.objects.filter(pk=item.pk, version=item.version).delete()
    if deleted:
        return True
    QueueItem.objects.filter(pk=item.pk).update(claimed_at=None)
    logger.debug("%s se reencoló durante el proceso; queda pendiente", item)
    return False


def release(item: QueueItem, error: str, max_attempts: int) -> bool:
    """Devuelve el trabajo a la cola tras un fallo. False si se descartó."""
    item.attempts += 1
    item.last_error = error[:2000]
    if item.attempts >= max_attempts:
        deleted, _ = QueueItem.objects.filter(pk=item.pk, version=item.version).delete()
        if deleted:
            logger.error("Descartado %s tras %d intentos: %s", item, item.attempts, error)
            return False
        # llegó un cambio nuevo: se reintenta desde cero
        item.attempts = 0
    QueueItem.objects.filter(pk=item.pk).update(
        attempts=item.attempts, last_error=item.last_error, claimed_at=None,
    )
    return True

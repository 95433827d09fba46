# autotag/services/operations.py
"""Operaciones de administración: entrenamiento, reset, reenvío masivo, colas."""
from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional

from django.apps import apps

from autotag import queues
from autotag.config import FILE_ENTITY_TYPE
from autotag.exceptions import FaceServiceError
from autotag.services.entity_operations import EntityOperations
from autotag.services.face_client import TrainingStatus
from autotag.workers import RunReport, run_queues

logger = logging.getLogger(__name__)

GROUP_DESCRIPTION = "Grupo creado automáticamente por image auto tag."


class AutoTagOperations:
    def __init__(self, operations: EntityOperations):
        self.operations = operations
        self.client = operations.client
        self.store = operations.store
        self.config = operations.config

    @property
    def person_model(self):
        return apps.get_model(self.config.person_entity_bundle)

    # ---------- entrenamiento ----------
    def training_status(self) -> TrainingStatus:
        return self.client.get_training_status()

    def run_training(self) -> None:
        self.operations.image_auto_tag.train_people()
        logger.info("Entrenamiento del person group %s lanzado", self.config.person_group_id)

    # ---------- estado ----------
    def queue_counts(self) -> Dict[str, int]:
        return {name: queues.number_of_items(name) for name in queues.QUEUE_NAMES}

    def submission_progress(self) -> Dict[str, int]:
        total = self.person_model.objects.count()
        mapped = self.store.count(self.config.person_entity_type)
        percent = int(100 * mapped / total) if total else 100
        return {"submitted": mapped, "total": total, "percent": percent}

    def remote_people(self):
        return self.client.list_people()

    # ---------- envío ----------
    def submit_people(self, people: Iterable) -> int:
        count = 0
        for person in people:
            self.operations.sync_person(person)
            count += 1
        self.run_training()
        return count

    def submit_missing_people(self) -> int:
        mapped = self.store.mapped_local_ids(self.config.person_entity_type)
        missing = self.person_model.objects.exclude(pk__in=mapped).order_by("pk")
        return self.submit_people(missing)

    def submit_all_people(self) -> int:
        return self.submit_people(self.person_model.objects.order_by("pk"))

    def queue_all_people(self) -> int:
        queues.delete_queue(queues.PROCESS_PERSON)
        count = 0
        for pk in self.person_model.objects.order_by("pk").values_list("pk", flat=True):
            queues.enqueue(queues.PROCESS_PERSON, self.config.person_entity_type, pk)
            count += 1
        return count

    # ---------- reset ----------
    def reset(self) -> int:
        """Borra y recrea el person group remoto y todos los mapas locales."""
        try:
            self.client.delete_person_group()
        except FaceServiceError as e:
            if e.status_code != 404:
                raise
            logger.info("El person group %s no existía", self.config.person_group_id)
        self.client.create_person_group(GROUP_DESCRIPTION)
        maps = self.store.filter(local_entity_type__in=[self.config.person_entity_type, FILE_ENTITY_TYPE])
        deleted = self.store.delete(maps)
        logger.warning("Reset de datos remotos: %d mapa(s) eliminado(s)", deleted)
        return deleted

    def reset_and_resync(self) -> int:
        self.reset()
        return self.submit_all_people()

    def reset_and_queue(self) -> int:
        self.reset()
        return self.queue_all_people()

    def run_queues(self, limit: Optional[int] = None) -> RunReport:
        return run_queues(self.operations, limit=limit)

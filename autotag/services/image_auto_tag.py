# autotag/services/image_auto_tag.py
"""
Punto de entrada de la funcionalidad de auto-tag.

Envuelve al cliente remoto y a la tabla de mapeo con operaciones expresadas
en términos de entidades locales: crear la persona remota de una entidad,
subir sus caras, detectar e identificar las caras de una imagen.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from autotag.config import FILE_ENTITY_TYPE, IDENTIFY_BATCH_LIMIT, AutoTagConfig
from autotag.models import PersonMap
from autotag.services.face_client import FaceServiceClient, IdentifyResult
from autotag.services.person_map_store import PersonMapStore

logger = logging.getLogger(__name__)


def entity_type_of(entity) -> str:
    return entity._meta.label_lower


def entity_label(entity) -> str:
    return str(entity)


class ImageAutoTag:
    def __init__(self, client: FaceServiceClient, store: PersonMapStore, config: AutoTagConfig):
        self.client = client
        self.store = store
        self.config = config

    # ---------- helpers de entidad ----------
    def image_files(self, person) -> list:
        """Archivos del campo de imágenes configurado, en orden estable."""
        value = getattr(person, self.config.person_image_field)
        if value is None:
            return []
        if hasattr(value, "all"):
            return list(value.all().order_by("pk"))
        return [value]

    def person_map_for(self, entity) -> Optional[PersonMap]:
        return self.store.find(entity.pk, entity_type_of(entity))

    # ---------- personas ----------
    def create_person(self, entity) -> PersonMap:
        person_id = self.client.create_person(entity_label(entity))
        logger.info("Persona remota %s creada para %s:%s", person_id, entity_type_of(entity), entity.pk)
        return self.store.create(person_id, entity.pk, entity_type_of(entity))

    def add_face(self, person_id: str, image) -> PersonMap:
        face_id = self.client.add_face(person_id, image.uri)
        logger.info("Cara %s añadida a la persona %s (file:%s)", face_id, person_id, image.pk)
        return self.store.create(face_id, image.pk, FILE_ENTITY_TYPE)

    def create_faces(self, entity) -> List[PersonMap]:
        """Sube cada imagen del campo de caras. Sin mapeo de persona no hace nada."""
        person_map = self.person_map_for(entity)
        if person_map is None:
            logger.warning("create_faces: %s:%s no tiene persona remota", entity_type_of(entity), entity.pk)
            return []
        return [self.add_face(person_map.foreign_id, image) for image in self.image_files(entity)]

    def train_people(self) -> None:
        self.client.train_person_group()

    # ---------- detección / identificación ----------
    def detect_faces(self, entity, field_name: str) -> List[str]:
        file_entity = getattr(entity, field_name, None)
        if file_entity is None or not getattr(file_entity, "uri", ""):
            return []
        return self.client.detect_faces(file_entity.uri)

    def _top_person_ids(self, results: List[IdentifyResult]) -> List[str]:
        person_ids: List[str] = []
        for result in results:
            if not result.candidates:
                continue
            # El primer candidato gana
            top = result.candidates[0]
            if self.config.min_confidence is not None and top.confidence < self.config.min_confidence:
                logger.debug("Candidato %s descartado (confianza %.2f)", top.person_id, top.confidence)
                continue
            if top.person_id not in person_ids:
                person_ids.append(top.person_id)
        return person_ids

    def identify_faces(self, face_ids: List[str]) -> list:
        if not face_ids:
            return []
        results = self.client.identify_faces(list(face_ids)[:IDENTIFY_BATCH_LIMIT])
        person_ids = self._top_person_ids(results)
        if not person_ids:
            return []

        maps = self.store.filter(
            foreign_id__in=person_ids,
            local_entity_type=self.config.person_entity_type,
        )
        order = {pid: i for i, pid in enumerate(person_ids)}
        maps.sort(key=lambda m: order[m.foreign_id])
        return self.store.load_local_entities(maps)

    def detect_and_identify_faces(self, entity, field_name: str) -> list:
        return self.identify_faces(self.detect_faces(entity, field_name))

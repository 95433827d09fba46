# autotag/services/entity_operations.py
"""
Operaciones usadas desde los hooks de entidad y desde los workers de cola.

``sync_person`` converge el estado remoto (persona + caras persistidas) con
la entidad local; ``find_faces_and_tag`` rellena el campo de tags de una
entidad con las personas reconocidas en su imagen; ``delete_entity`` limpia
la tabla de mapeo.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Set

from autotag.config import FILE_ENTITY_TYPE
from autotag.services.face_client import RemotePerson
from autotag.services.image_auto_tag import ImageAutoTag, entity_label, entity_type_of

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PersonSnapshot:
    """Último estado conocido de una persona; None en un campo = desconocido."""
    label: Optional[str] = None
    image_ids: Optional[FrozenSet[int]] = None


@dataclass
class SyncResult:
    created: bool = False
    renamed: bool = False
    faces_added: int = 0
    faces_deleted: int = 0

    @property
    def remote_writes(self) -> int:
        return int(self.created) + int(self.renamed) + self.faces_added + self.faces_deleted


class EntityOperations:
    def __init__(self, image_auto_tag: ImageAutoTag):
        self.image_auto_tag = image_auto_tag
        self.client = image_auto_tag.client
        self.store = image_auto_tag.store
        self.config = image_auto_tag.config

    # ---------- detección ----------
    def find_faces_and_tag(self, entity, field_name: str) -> list:
        """Asigna las personas reconocidas al campo de tags; nunca lo vacía."""
        tag_field = self.config.tag_field_for(entity_type_of(entity), field_name)
        if not tag_field:
            logger.warning("%s.%s no tiene campo de tags configurado", entity_type_of(entity), field_name)
            return []
        people = self.image_auto_tag.detect_and_identify_faces(entity, field_name)
        if people:
            getattr(entity, tag_field).set(people)
            logger.info("%s:%s etiquetado con %d persona(s)", entity_type_of(entity), entity.pk, len(people))
        return people

    # ---------- personas ----------
    def sync_person(self, person, original: Optional[PersonSnapshot] = None) -> SyncResult:
        result = SyncResult()
        person_map = self.image_auto_tag.person_map_for(person)

        # Sin registro remoto: se crea persona + caras
        if person_map is None:
            self.image_auto_tag.create_person(person)
            result.created = True
            result.faces_added = len(self.image_auto_tag.create_faces(person))
            return result

        person_id = person_map.foreign_id
        label = entity_label(person)
        images = self.image_auto_tag.image_files(person)
        image_ids = frozenset(img.pk for img in images)

        name_changed: Optional[bool] = None
        if original is not None and original.label is not None:
            name_changed = original.label != label
        faces_changed = original is None or original.image_ids != image_ids

        remote: Optional[RemotePerson] = None
        if name_changed is None or faces_changed:
            remote = self.client.get_person(person_id)
            if name_changed is None:
                name_changed = remote.name != label

        if name_changed:
            self.client.update_person(person_id, label)
            result.renamed = True
            logger.info("Persona remota %s renombrada a %r", person_id, label)

        if faces_changed:
            added, deleted = self._reconcile_faces(person_id, images, remote)
            result.faces_added, result.faces_deleted = added, deleted
        return result

    def _reconcile_faces(self, person_id: str, images: list, remote: RemotePerson):
        """
        Diff simétrico entre imágenes locales y caras persistidas remotas.

        - imagen sin mapa                     -> add_face + mapa
        - imagen con mapa cuya cara no existe -> se borra el mapa y se vuelve a subir
        - cara remota sin imagen local actual -> delete_face + se borra su mapa
        """
        remote_ids: Set[str] = set(remote.face_ids)
        file_maps = {
            m.local_id: m
            for m in self.store.filter(
                local_entity_type=FILE_ENTITY_TYPE,
                local_id__in=[img.pk for img in images],
            )
        }

        keep: Set[str] = set()
        added = 0
        for image in images:
            face_map = file_maps.get(image.pk)
            if face_map is not None and face_map.foreign_id not in remote_ids:
                logger.warning("Cara %s (file:%s) ya no existe en remoto; se vuelve a subir",
                               face_map.foreign_id, image.pk)
                self.store.delete([face_map])
                face_map = None
            if face_map is None:
                face_map = self.image_auto_tag.add_face(person_id, image)
                added += 1
            keep.add(face_map.foreign_id)

        stale: List[str] = sorted(remote_ids - keep)
        for face_id in stale:
            self.client.delete_face(person_id, face_id)
            logger.info("Cara remota %s eliminada de la persona %s", face_id, person_id)
        if stale:
            self.store.delete(self.store.filter(local_entity_type=FILE_ENTITY_TYPE, foreign_id__in=stale))
        return added, len(stale)

    # ---------- borrado ----------
    def delete_entity(self, entity_type: str, entity_id: int) -> int:
        """
        Borra los mapas de la entidad local.

        El registro remoto (persona o cara) NO se borra.
        """
        maps = self.store.filter(local_id=int(entity_id), local_entity_type=entity_type)
        deleted = self.store.delete(maps)
        if deleted:
            logger.info("%d mapa(s) eliminado(s) para %s:%s", deleted, entity_type, entity_id)
        # TODO: borrar también la persona/cara remota (delete_person / delete_face)
        return deleted

# autotag/services/person_map_store.py
from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Set

from django.apps import apps
from django.db import DatabaseError

from autotag.exceptions import MappingLookupError
from autotag.models import PersonMap


class PersonMapStore:
    """Acceso a la tabla de mapeo; aísla al reconciliador del ORM."""

    def __init__(self, file_entity_model: str = "content.imagefile", file_entity_type: str = "file"):
        self.file_entity_model = file_entity_model
        self.file_entity_type = file_entity_type

    def create(self, foreign_id: str, local_id: int, local_entity_type: str) -> PersonMap:
        return PersonMap.objects.create(
            foreign_id=foreign_id,
            local_id=int(local_id),
            local_entity_type=local_entity_type,
        )

    def filter(self, **conditions) -> List[PersonMap]:
        """Condiciones por igualdad; ``campo__in=[...]`` para listas."""
        try:
            return list(PersonMap.objects.filter(**conditions))
        except DatabaseError as e:
            raise MappingLookupError(f"Error consultando person maps {conditions}: {e}") from e

    def find(self, local_id: int, local_entity_type: str) -> Optional[PersonMap]:
        """None significa 'aún no mapeado'; un fallo de BD es MappingLookupError."""
        rows = self.filter(local_id=int(local_id), local_entity_type=local_entity_type)
        return rows[0] if rows else None

    def load_multiple(self, ids: Iterable[int]) -> List[PersonMap]:
        return list(PersonMap.objects.filter(pk__in=list(ids)))

    def delete(self, maps: Iterable[PersonMap]) -> int:
        pks = [m.pk for m in maps]
        if not pks:
            return 0
        deleted, _ = PersonMap.objects.filter(pk__in=pks).delete()
        return deleted

    def count(self, local_entity_type: str) -> int:
        return PersonMap.objects.filter(local_entity_type=local_entity_type).count()

    def mapped_local_ids(self, local_entity_type: str) -> Set[int]:
        return set(
            PersonMap.objects.filter(local_entity_type=local_entity_type)
            .values_list("local_id", flat=True)
        )

    def _model_for(self, entity_type: str):
        label = self.file_entity_model if entity_type == self.file_entity_type else entity_type
        return apps.get_model(label)

    def load_local_entities(self, maps: Iterable[PersonMap]) -> List:
        """Entidades locales de los mapas, en el mismo orden; se omiten las que ya no existen."""
        maps = list(maps)
        by_type: Dict[str, List[int]] = defaultdict(list)
        for m in maps:
            by_type[m.local_entity_type].append(m.local_id)
        loaded = {
            entity_type: self._model_for(entity_type).objects.in_bulk(ids)
            for entity_type, ids in by_type.items()
        }
        out = []
        for m in maps:
            entity = loaded[m.local_entity_type].get(m.local_id)
            if entity is not None:
                out.append(entity)
        return out

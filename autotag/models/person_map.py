# autotag/models/person_map.py
from django.db import models


class PersonMap(models.Model):
    """
    Correlaciona un id remoto (persona o cara persistida) con una entidad local.

    - local_entity_type = label del modelo persona -> foreign_id es un personId
    - local_entity_type = "file"                   -> foreign_id es un persistedFaceId
    """
    foreign_id = models.CharField(max_length=128, db_index=True)
    local_id = models.PositiveBigIntegerField()
    local_entity_type = models.CharField(max_length=100)
    created = models.DateTimeField(auto_now_add=True)
    changed = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "autotag_person_map"
        ordering = ["id"]
        constraints = [
            models.UniqueConstraint(
                fields=["local_id", "local_entity_type"],
                name="person_map_unique_local_entity",
            ),
        ]
        indexes = [models.Index(fields=["local_entity_type", "local_id"], name="person_map_local_idx")]

    def __str__(self):
        return f"{self.local_entity_type}:{self.local_id} -> {self.foreign_id}"

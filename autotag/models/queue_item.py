# autotag/models/queue_item.py
from django.db import models


class QueueItem(models.Model):
    """Una fila por trabajo pendiente; el worker la borra al terminar."""

    class Queue(models.TextChoices):
        PROCESS_PERSON = "autotag_process_person", "Process person"
        DETECT_FACES = "autotag_detect_faces", "Detect faces"
        DELETED_ENTITY = "autotag_deleted_entity", "Deleted entity"

    queue_name = models.CharField(max_length=64, choices=Queue.choices)
    entity_type = models.CharField(max_length=100)
    entity_id = models.PositiveBigIntegerField()
    field_name = models.CharField(max_length=100, blank=True, default="")

    attempts = models.PositiveIntegerField(default=0)
    last_error = models.TextField(blank=True, default="")
    # reclamado por un worker; None = libre
    claimed_at = models.DateTimeField(null=True, blank=True)
    # sube con cada enqueue repetido; done() solo borra la versión procesada
    version = models.PositiveIntegerField(default=0)
    created = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "autotag_queue"
        ordering = ["id"]
        constraints = [
            models.UniqueConstraint(
                fields=["queue_name", "entity_type", "entity_id", "field_name"],
                name="queue_item_unique_work",
            ),
        ]
        indexes = [models.Index(fields=["queue_name", "id"], name="queue_item_queue_idx")]

    @property
    def data(self) -> dict:
        item = {"entityId": self.entity_id, "entityType": self.entity_type}
        if self.field_name:
            item["fieldName"] = self.field_name
        return item

    def __str__(self):
        return f"{self.queue_name} {self.entity_type}:{self.entity_id} (intentos={self.attempts})"

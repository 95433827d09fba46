from .person_map import PersonMap
from .queue_item import QueueItem

__all__ = ["PersonMap", "QueueItem"]

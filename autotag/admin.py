from django.contrib import admin
from autotag.models import PersonMap, QueueItem


@admin.register(PersonMap)
class PersonMapAdmin(admin.ModelAdmin):
    list_display = ("id", "foreign_id", "local_entity_type", "local_id", "created", "changed")
    search_fields = ("foreign_id", "local_entity_type")
    list_filter = ("local_entity_type",)
    readonly_fields = ("created", "changed")


@admin.register(QueueItem)
class QueueItemAdmin(admin.ModelAdmin):
    list_display = ("id", "queue_name", "entity_type", "entity_id", "field_name", "attempts", "created")
    list_filter = ("queue_name",)
    search_fields = ("entity_type", "last_error")

# autotag/signals.py
"""
Hooks de entidad.

- persona guardada / sus caras cambian -> sync_person (o cola process_person)
- entidad con imagen de detección guardada -> find_faces_and_tag (o cola detect_faces)
- persona o archivo borrado -> delete_entity (o cola deleted_entity)
"""
from __future__ import annotations

import logging

from django.apps import apps
from django.db.models.signals import m2m_changed, post_delete, post_init, post_save, pre_save

from autotag import queues
from autotag.config import FILE_ENTITY_TYPE, get_config
from autotag.services import factory
from autotag.services.entity_operations import PersonSnapshot
from autotag.services.image_auto_tag import entity_label, entity_type_of

logger = logging.getLogger(__name__)

DISPATCH_PREFIX = "autotag"


def _enabled(cfg) -> bool:
    if not cfg.is_configured:
        logger.debug("image auto tag sin configurar; hook ignorado")
        return False
    return True


def _source_attname(instance, field_name: str) -> str:
    return instance._meta.get_field(field_name).attname


# ---------- estado original ----------
def remember_state(sender, instance, **kwargs):
    cfg = get_config()
    label = sender._meta.label_lower
    if label == cfg.person_entity_bundle:
        instance._autotag_label = entity_label(instance) if instance.pk else None
    sources = cfg.detection_fields.get(label)
    if sources:
        instance._autotag_sources = {
            f: getattr(instance, _source_attname(instance, f), None) for f in sources
        }


def forget_unloaded_label(sender, instance, raw=False, **kwargs):
    # Person(pk=..., name=...) sin cargar: el nombre previo es desconocido
    if instance._state.adding:
        instance._autotag_label = None


# ---------- personas ----------
def person_saved(sender, instance, created, raw=False, **kwargs):
    cfg = get_config()
    if raw or not _enabled(cfg):
        return
    if not cfg.synchronous:
        queues.enqueue(queues.PROCESS_PERSON, entity_type_of(instance), instance.pk)
    else:
        ops = factory.get_entity_operations()
        original = None
        if not created:
            image_ids = frozenset(img.pk for img in ops.image_auto_tag.image_files(instance))
            original = PersonSnapshot(label=getattr(instance, "_autotag_label", None), image_ids=image_ids)
        ops.sync_person(instance, original)
    instance._autotag_label = entity_label(instance)


def person_faces_changed(sender, instance, action, reverse, model, pk_set, **kwargs):
    cfg = get_config()
    if not _enabled(cfg):
        return
    if reverse and action == "pre_clear":
        # post_clear llega sin pk_set: se recuerdan las personas afectadas
        instance._autotag_cleared = set(
            model.objects.filter(**{cfg.person_image_field: instance}).values_list("pk", flat=True)
        )
        return
    if action not in ("post_add", "post_remove", "post_clear"):
        return

    if reverse:
        if action == "post_clear":
            pk_set = getattr(instance, "_autotag_cleared", set())
        if not pk_set:
            return
        person_model = apps.get_model(cfg.person_entity_bundle)
        people = list(person_model.objects.filter(pk__in=pk_set))
    else:
        people = [instance]

    for person in people:
        if not cfg.synchronous:
            queues.enqueue(queues.PROCESS_PERSON, entity_type_of(person), person.pk)
            continue
        # nombre sin cambios, caras cambiadas
        snapshot = PersonSnapshot(label=entity_label(person), image_ids=None)
        factory.get_entity_operations().sync_person(person, snapshot)


# ---------- detección ----------
def tagged_entity_saved(sender, instance, created, raw=False, **kwargs):
    cfg = get_config()
    if raw or not _enabled(cfg):
        return
    label = entity_type_of(instance)
    previous = getattr(instance, "_autotag_sources", {})
    current = {}
    for source_field in cfg.detection_fields.get(label, {}):
        value = getattr(instance, _source_attname(instance, source_field), None)
        current[source_field] = value
        if value is None or (not created and previous.get(source_field) == value):
            continue
        if cfg.synchronous:
            factory.get_entity_operations().find_faces_and_tag(instance, source_field)
        else:
            queues.enqueue(queues.DETECT_FACES, label, instance.pk, source_field)
    instance._autotag_sources = current


# ---------- borrado ----------
def entity_deleted(sender, instance, **kwargs):
    cfg = get_config()
    if not _enabled(cfg):
        return
    label = entity_type_of(instance)
    entity_type = FILE_ENTITY_TYPE if label == cfg.file_entity_model else label
    if cfg.synchronous:
        factory.get_entity_operations().delete_entity(entity_type, instance.pk)
    else:
        queues.enqueue(queues.DELETED_ENTITY, entity_type, instance.pk)


def connect() -> None:
    """Conecta los hooks a los modelos configurados (se llama desde AppConfig.ready)."""
    cfg = get_config()
    person_model = apps.get_model(cfg.person_entity_bundle)
    file_model = apps.get_model(cfg.file_entity_model)

    post_init.connect(remember_state, sender=person_model, dispatch_uid=f"{DISPATCH_PREFIX}_init_person")
    pre_save.connect(forget_unloaded_label, sender=person_model, dispatch_uid=f"{DISPATCH_PREFIX}_person_pre_save")
    post_save.connect(person_saved, sender=person_model, dispatch_uid=f"{DISPATCH_PREFIX}_person_saved")
    post_delete.connect(entity_deleted, sender=person_model, dispatch_uid=f"{DISPATCH_PREFIX}_person_deleted")
    post_delete.connect(entity_deleted, sender=file_model, dispatch_uid=f"{DISPATCH_PREFIX}_file_deleted")

    faces = getattr(person_model, cfg.person_image_field, None)
    through = getattr(faces, "through", None)
    if through is not None:
        m2m_changed.connect(person_faces_changed, sender=through, dispatch_uid=f"{DISPATCH_PREFIX}_faces_changed")

    for label in cfg.detection_fields:
        model = apps.get_model(label)
        post_init.connect(remember_state, sender=model, dispatch_uid=f"{DISPATCH_PREFIX}_init_{label}")
        post_save.connect(tagged_entity_saved, sender=model, dispatch_uid=f"{DISPATCH_PREFIX}_saved_{label}")

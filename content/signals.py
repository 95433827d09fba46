# content/signals.py
"""Una imagen de cara pertenece a una sola persona (su mapeo remoto es único)."""
from django.core.exceptions import ValidationError
from django.db.models.signals import m2m_changed
from django.dispatch import receiver

from .models import Person

SHARED_FACE_MSG = "La imagen {image} ya es una cara de otra persona."


def face_owners(image_ids, exclude_person=None):
    """{image_id: person_id} de las imágenes que ya pertenecen a alguien."""
    qs = Person.faces.through.objects.filter(imagefile_id__in=list(image_ids))
    if exclude_person is not None:
        qs = qs.exclude(person_id=exclude_person)
    return dict(qs.values_list("imagefile_id", "person_id"))


@receiver(m2m_changed, sender=Person.faces.through, dispatch_uid="content_exclusive_faces")
def check_exclusive_faces(sender, instance, action, reverse, pk_set, **kwargs):
    if action != "pre_add" or not pk_set:
        return
    if reverse:
        # instance = ImageFile, pk_set = personas
        owners = set(face_owners([instance.pk]).values()) | set(pk_set)
        if len(owners) > 1:
            raise ValidationError(SHARED_FACE_MSG.format(image=instance.pk))
        return
    taken = face_owners(pk_set, exclude_person=instance.pk)
    if taken:
        raise ValidationError(SHARED_FACE_MSG.format(image=min(taken)))

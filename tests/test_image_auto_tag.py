import dataclasses

import pytest

from autotag.config import FILE_ENTITY_TYPE
from autotag.models import PersonMap
from autotag.services import factory
from autotag.services.face_client import Candidate, IdentifyResult
from content.models import Article, ImageFile, Person

pytestmark = pytest.mark.django_db


@pytest.fixture
def person():
    p = Person.objects.create(name="Test person")
    PersonMap.objects.create(foreign_id="pid1", local_id=p.pk, local_entity_type="content.person")
    return p


@pytest.fixture
def article():
    image = ImageFile.objects.create(uri="public/fakefileToTag.jpeg")
    return Article.objects.create(title="test article", image=image)


def _identified(*pairs):
    return [IdentifyResult(face_id, [Candidate(pid, conf) for pid, conf in cands]) for face_id, cands in pairs]


def test_detect_then_identify_returns_mapped_person(ops, face_client, person, article):
    face_client.detect_faces.return_value = ["dummy_detected_face_id"]
    face_client.identify_faces.return_value = _identified(("dummy_detected_face_id", [("pid1", 0.92)]))

    people = ops.image_auto_tag.detect_and_identify_faces(article, "image")

    assert people == [person]
    face_client.detect_faces.assert_called_once_with("public/fakefileToTag.jpeg")
    face_client.identify_faces.assert_called_once_with(["dummy_detected_face_id"])


def test_identify_sends_at_most_ten_faces(ops, face_client):
    face_ids = [f"d{i}" for i in range(15)]

    ops.image_auto_tag.identify_faces(face_ids)

    face_client.identify_faces.assert_called_once_with(face_ids[:10])


def test_no_detected_faces_skips_identify(ops, face_client, article):
    assert ops.image_auto_tag.detect_and_identify_faces(article, "image") == []
    face_client.identify_faces.assert_not_called()


def test_entity_without_image_skips_detection(ops, face_client):
    article = Article.objects.create(title="sin imagen")

    assert ops.image_auto_tag.detect_and_identify_faces(article, "image") == []
    face_client.detect_faces.assert_not_called()


def test_only_first_candidate_counts(ops, face_client, person, article):
    other = Person.objects.create(name="Otra")
    PersonMap.objects.create(foreign_id="pid2", local_id=other.pk, local_entity_type="content.person")
    face_client.identify_faces.return_value = _identified(("d1", [("pid1", 0.10), ("pid2", 0.99)]))

    assert ops.image_auto_tag.identify_faces(["d1"]) == [person]


def test_people_keep_candidate_order_without_duplicates(ops, face_client, person):
    other = Person.objects.create(name="Otra")
    PersonMap.objects.create(foreign_id="pid2", local_id=other.pk, local_entity_type="content.person")
    face_client.identify_faces.return_value = _identified(
        ("d1", [("pid2", 0.8)]), ("d2", [("pid1", 0.8)]), ("d3", [("pid2", 0.7)]), ("d4", []),
    )

    assert ops.image_auto_tag.identify_faces(["d1", "d2", "d3", "d4"]) == [other, person]


def test_unknown_person_ids_are_ignored(ops, face_client, person):
    # un mapa de cara con el mismo id no es una persona
    PersonMap.objects.create(foreign_id="pid9", local_id=1, local_entity_type=FILE_ENTITY_TYPE)
    face_client.identify_faces.return_value = _identified(("d1", [("pid9", 0.9)]))

    assert ops.image_auto_tag.identify_faces(["d1"]) == []


def test_min_confidence_discards_weak_matches(config, face_client, person):
    ops = factory.get_entity_operations(config=dataclasses.replace(config, min_confidence=0.5),
                                        client=face_client)
    face_client.identify_faces.return_value = _identified(("d1", [("pid1", 0.3)]))

    assert ops.image_auto_tag.identify_faces(["d1"]) == []


def test_find_faces_and_tag_sets_tag_field(ops, face_client, person, article):
    face_client.detect_faces.return_value = ["d1"]
    face_client.identify_faces.return_value = _identified(("d1", [("pid1", 0.92)]))

    assert ops.find_faces_and_tag(article, "image") == [person]
    assert list(article.people.all()) == [person]


def test_find_faces_and_tag_keeps_existing_tags_when_nobody_matches(ops, face_client, person, article):
    article.people.add(person)
    face_client.detect_faces.return_value = ["d1"]

    assert ops.find_faces_and_tag(article, "image") == []
    assert list(article.people.all()) == [person]


def test_unconfigured_source_field_is_ignored(ops, face_client, article):
    assert ops.find_faces_and_tag(article, "title") == []
    face_client.detect_faces.assert_not_called()

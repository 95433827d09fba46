import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from autotag import queues
from autotag.exceptions import FaceServiceError, PersonGroupNotFound
from autotag.models import PersonMap
from autotag.services.face_client import RemotePerson, TrainingStatus
from autotag.services.operations import GROUP_DESCRIPTION
from content.models import ImageFile, Person

pytestmark = pytest.mark.django_db


@pytest.fixture
def api(patched_client):
    user = get_user_model().objects.create_user("admin", password="x", is_staff=True)
    client = APIClient()
    client.force_authenticate(user)
    return client


@pytest.fixture
def mapped_person():
    p = Person.objects.create(name="Mapeada")
    PersonMap.objects.create(foreign_id="pid1", local_id=p.pk, local_entity_type="content.person")
    return p


def test_requires_staff_user(patched_client):
    user = get_user_model().objects.create_user("vecino", password="x")
    client = APIClient()
    client.force_authenticate(user)

    assert client.get("/api/autotag/status/").status_code == 403


def test_training_never_trained(api, patched_client):
    patched_client.get_training_status.return_value = TrainingStatus("Never trained")

    r = api.get("/api/autotag/training/")

    assert r.status_code == 200
    assert r.data["status"] == "Never trained"
    assert r.data["last_trained"] is None


def test_training_missing_group_is_a_conflict(api, patched_client):
    patched_client.get_training_status.side_effect = PersonGroupNotFound("not found", status_code=404)

    assert api.get("/api/autotag/training/").status_code == 409


def test_start_training(api, patched_client):
    r = api.post("/api/autotag/training/")

    assert r.status_code == 202
    patched_client.train_person_group.assert_called_once_with()


def test_remote_error_is_reported(api, patched_client):
    patched_client.train_person_group.side_effect = FaceServiceError("Service down", status_code=503)

    r = api.post("/api/autotag/training/")

    assert r.status_code == 502
    assert r.data["ok"] is False
    assert "Código 503: Service down" in r.data["detail"]


def test_status_reports_queues_and_progress(api, mapped_person):
    Person.objects.create(name="Sin mapa")
    queues.enqueue(queues.DETECT_FACES, "content.article", 1, "image")

    r = api.get("/api/autotag/status/")

    assert r.status_code == 200
    assert r.data["queues"][queues.DETECT_FACES] == 1
    assert r.data["queues"][queues.PROCESS_PERSON] == 0
    assert r.data["people"] == {"submitted": 1, "total": 2, "percent": 50}


def test_status_without_people_is_complete(api):
    r = api.get("/api/autotag/status/")
    assert r.data["people"]["percent"] == 100


def test_submit_missing_people(api, patched_client, mapped_person):
    Person.objects.create(name="Nueva")

    r = api.post("/api/autotag/people/submit-missing/")

    assert r.status_code == 200
    assert r.data["submitted"] == 1
    patched_client.create_person.assert_called_once_with("Nueva")
    patched_client.train_person_group.assert_called_once_with()


def test_reset_recreates_group_and_drops_maps(api, patched_client, mapped_person):
    PersonMap.objects.create(foreign_id="face1", local_id=1, local_entity_type="file")

    r = api.post("/api/autotag/people/reset/")

    assert r.status_code == 200
    assert r.data["deleted_maps"] == 2
    patched_client.delete_person_group.assert_called_once_with()
    patched_client.create_person_group.assert_called_once_with(GROUP_DESCRIPTION)
    assert PersonMap.objects.count() == 0


def test_reset_tolerates_missing_group(api, patched_client):
    patched_client.delete_person_group.side_effect = FaceServiceError("gone", status_code=404)

    assert api.post("/api/autotag/people/reset/").status_code == 200
    patched_client.create_person_group.assert_called_once()


def test_reset_and_resync(api, patched_client, mapped_person):
    mapped_person.faces.add(ImageFile.objects.create(uri="public/fakefile.jpeg"))

    r = api.post("/api/autotag/people/reset-and-resync/")

    assert r.data["submitted"] == 1
    patched_client.create_person.assert_called_once_with("Mapeada")
    patched_client.add_face.assert_called_once_with("dummy_person_id", "public/fakefile.jpeg")
    assert PersonMap.objects.get(local_entity_type="content.person").foreign_id == "dummy_person_id"


def test_reset_and_queue(api, patched_client, mapped_person):
    Person.objects.create(name="Otra")

    r = api.post("/api/autotag/people/reset-and-queue/")

    assert r.data["queued"] == 2
    assert queues.number_of_items(queues.PROCESS_PERSON) == 2
    patched_client.create_person.assert_not_called()


def test_run_queues_endpoint(api):
    queues.enqueue(queues.DELETED_ENTITY, "file", 1)

    r = api.post("/api/autotag/queues/run/", {"limit": 5}, format="json")

    assert r.status_code == 200
    assert r.data["processed"] == 1
    assert r.data["ok"] is True


def test_remote_people(api, patched_client):
    patched_client.list_people.return_value = [RemotePerson("pid1", "Test person", ["f1", "f2"])]

    r = api.get("/api/autotag/people/remote/")

    assert r.data == [{"person_id": "pid1", "name": "Test person", "images": 2}]


def test_person_maps_can_be_filtered(api, mapped_person):
    PersonMap.objects.create(foreign_id="face1", local_id=1, local_entity_type="file")

    r = api.get("/api/autotag/maps/", {"local_entity_type": "file"})

    assert [m["foreign_id"] for m in r.data] == ["face1"]

"""
Fixtures compartidos.

Por defecto image auto tag queda SIN credenciales, así que los hooks de
entidad no hacen nada; ``hooks_on`` / ``hooks_queued`` los activan con un
cliente remoto simulado.
"""
import itertools
from unittest.mock import MagicMock

import pytest

from autotag.config import AutoTagConfig
from autotag.services import factory
from autotag.services.face_client import AzureFaceClient, RemotePerson

BASE_SETTINGS = {
    "PERSON_GROUP_ID": "test_people",
    "PERSON_ENTITY_BUNDLE": "content.person",
    "PERSON_IMAGE_FIELD": "faces",
    "FILE_ENTITY_MODEL": "content.imagefile",
    "DETECTION_FIELDS": {"content.article": {"image": "people"}},
    "MAX_RETRIES": 0,
    "QUEUE_MAX_ATTEMPTS": 3,
}


@pytest.fixture(autouse=True)
def autotag_settings(settings):
    settings.IMAGE_AUTO_TAG = {**BASE_SETTINGS, "AZURE_ENDPOINT": "", "AZURE_SERVICE_KEY": ""}
    factory.reset_services()
    yield settings
    factory.reset_services()


@pytest.fixture
def config():
    return AutoTagConfig(
        azure_endpoint="https://example.com/face/v1.0/",
        azure_service_key="dummy_service_key",
        person_group_id="test_people",
        detection_fields={"content.article": {"image": "people"}},
        max_retries=0,
        queue_max_attempts=3,
    )


@pytest.fixture
def face_client():
    client = MagicMock(spec=AzureFaceClient)
    client.create_person.return_value = "dummy_person_id"
    counter = itertools.count(1)
    client.add_face.side_effect = lambda person_id, uri: f"face-{next(counter)}"
    client.get_person.return_value = RemotePerson("dummy_person_id", "Test person", [])
    client.detect_faces.return_value = []
    client.identify_faces.return_value = []
    return client


@pytest.fixture
def ops(config, face_client):
    return factory.get_entity_operations(config=config, client=face_client)


@pytest.fixture
def patched_client(monkeypatch, face_client):
    monkeypatch.setattr(factory, "get_face_client", lambda config=None: face_client)
    return face_client


def _enable(settings, synchronous):
    settings.IMAGE_AUTO_TAG = {
        **BASE_SETTINGS,
        "AZURE_ENDPOINT": "https://example.com/face/v1.0/",
        "AZURE_SERVICE_KEY": "dummy_service_key",
        "SYNCHRONOUS": synchronous,
    }


@pytest.fixture
def hooks_on(autotag_settings, patched_client):
    _enable(autotag_settings, True)
    return patched_client


@pytest.fixture
def hooks_queued(autotag_settings, patched_client):
    _enable(autotag_settings, False)
    return patched_client

import json
from unittest.mock import MagicMock

import pytest
import requests

from autotag.config import AutoTagConfig
from autotag.exceptions import FaceServiceError, ImageLoadError, PersonGroupNotFound
from autotag.services.face_client import NEVER_TRAINED, AzureFaceClient, Candidate

ENDPOINT = "https://example.com/face/v1.0"


def _resp(status=200, payload=None, content=None, reason="OK"):
    resp = MagicMock()
    resp.status_code = status
    resp.reason = reason
    if payload is not None:
        resp.content = json.dumps(payload).encode()
        resp.json.return_value = payload
    else:
        resp.content = content or b""
        resp.json.side_effect = ValueError("no json")
    return resp


def _error(status, code, message="error"):
    return _resp(status, {"error": {"code": code, "message": message}}, reason="Error")


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    sleeps = []
    monkeypatch.setattr("autotag.services.retry.time.sleep", sleeps.append)
    return sleeps


@pytest.fixture
def session():
    s = MagicMock()
    s.headers = {}
    return s


@pytest.fixture
def client(session):
    config = AutoTagConfig(
        azure_endpoint=ENDPOINT,
        azure_service_key="dummy_service_key",
        person_group_id="grp",
        max_retries=2,
        retry_base_delay=0.0,
    )
    return AzureFaceClient(config, session=session, image_loader=lambda uri: b"image-bytes")


def _call(session, index=-1):
    args, kwargs = session.request.call_args_list[index]
    return args[0], args[1], kwargs


def test_session_carries_subscription_key(client, session):
    assert session.headers["Ocp-Apim-Subscription-Key"] == "dummy_service_key"
    assert session.headers["Content-Type"] == "application/json"


def test_create_person_posts_name_and_returns_id(client, session):
    session.request.return_value = _resp(200, {"personId": "pid1"})

    assert client.create_person("Test person") == "pid1"

    method, url, kwargs = _call(session)
    assert method == "POST"
    assert url == f"{ENDPOINT}/persongroups/grp/persons"
    assert kwargs["json"] == {"name": "Test person"}
    assert kwargs["timeout"] == 30.0


def test_create_person_without_id_is_an_error(client, session):
    session.request.return_value = _resp(200, {})
    with pytest.raises(FaceServiceError):
        client.create_person("Test person")


def test_add_face_uploads_image_bytes(client, session):
    session.request.return_value = _resp(200, {"persistedFaceId": "face1"})

    assert client.add_face("pid1", "s3://bucket/faces/a.jpg") == "face1"

    method, url, kwargs = _call(session)
    assert method == "POST"
    assert url == f"{ENDPOINT}/persongroups/grp/persons/pid1/persistedFaces"
    assert kwargs["data"] == b"image-bytes"
    assert kwargs["headers"] == {"Content-Type": "application/octet-stream"}


def test_delete_face_uses_delete(client, session):
    session.request.return_value = _resp(200, content=b"")

    client.delete_face("pid1", "face1")

    method, url, _ = _call(session)
    assert method == "DELETE"
    assert url == f"{ENDPOINT}/persongroups/grp/persons/pid1/persistedFaces/face1"


def test_update_person_patches_name(client, session):
    session.request.return_value = _resp(200, content=b"")

    client.update_person("pid1", "Nuevo")

    method, _, kwargs = _call(session)
    assert method == "PATCH"
    assert kwargs["json"] == {"name": "Nuevo"}


def test_get_person_maps_persisted_faces(client, session):
    session.request.return_value = _resp(200, {
        "personId": "pid1", "name": "Test person", "persistedFaceIds": ["f1", "f2"],
    })

    person = client.get_person("pid1")

    assert person.person_id == "pid1"
    assert person.name == "Test person"
    assert person.face_ids == ["f1", "f2"]


def test_training_status_never_trained(client, session):
    session.request.return_value = _error(404, "PersonGroupNotTrained")

    status = client.get_training_status()

    assert status.status == NEVER_TRAINED
    assert session.request.call_count == 1


def test_training_status_missing_group(client, session):
    session.request.return_value = _error(404, "PersonGroupNotFound")
    with pytest.raises(PersonGroupNotFound):
        client.get_training_status()


def test_training_status_succeeded(client, session):
    session.request.return_value = _resp(200, {
        "status": "succeeded", "lastActionDateTime": "2024-01-02T03:04:05Z",
    })

    status = client.get_training_status()

    assert status.status == "succeeded"
    assert status.last_trained == "2024-01-02T03:04:05Z"


def test_detect_faces_returns_face_ids(client, session):
    session.request.return_value = _resp(200, [{"faceId": "d1"}, {"faceId": "d2"}])

    assert client.detect_faces("public/tag.jpeg") == ["d1", "d2"]

    method, url, kwargs = _call(session)
    assert (method, url) == ("POST", f"{ENDPOINT}/detect")
    assert kwargs["params"]["returnFaceId"] == "true"


def test_identify_faces_parses_candidates(client, session):
    session.request.return_value = _resp(200, [
        {"faceId": "d1", "candidates": [{"personId": "pid1", "confidence": 0.92}]},
        {"faceId": "d2", "candidates": []},
    ])

    results = client.identify_faces(["d1", "d2"])

    assert results[0].candidates == [Candidate("pid1", 0.92)]
    assert results[1].candidates == []
    _, _, kwargs = _call(session)
    assert kwargs["json"] == {"faceIds": ["d1", "d2"], "personGroupId": "grp"}


def test_transient_errors_are_retried(client, session, no_sleep):
    session.request.side_effect = [
        _error(503, "ServiceUnavailable"),
        _resp(200, {"personId": "pid1"}),
    ]

    assert client.create_person("Test person") == "pid1"
    assert session.request.call_count == 2
    assert len(no_sleep) == 1


def test_network_errors_are_retried(client, session):
    session.request.side_effect = [requests.ConnectionError("caído"), _resp(200, [])]

    assert client.list_person_groups() == []
    assert session.request.call_count == 2


def test_client_errors_are_not_retried(client, session):
    session.request.return_value = _error(400, "BadArgument", "bad name")

    with pytest.raises(FaceServiceError) as exc:
        client.create_person("")

    assert exc.value.status_code == 400
    assert exc.value.code == "BadArgument"
    assert session.request.call_count == 1


def test_retries_are_bounded(client, session):
    session.request.return_value = _error(429, "RateLimitExceeded")

    with pytest.raises(FaceServiceError):
        client.train_person_group()

    # 1 intento + max_retries
    assert session.request.call_count == 3


def test_malformed_json_is_an_error(client, session):
    session.request.return_value = _resp(200, content=b"<html>")
    with pytest.raises(FaceServiceError):
        client.list_people()


def test_service_status_creates_missing_group_once(client, session):
    session.request.side_effect = [_resp(200, []), _resp(200, content=b"")]

    assert client.service_status() is True
    assert client.service_status() is True

    assert session.request.call_count == 2
    method, url, _ = _call(session)
    assert (method, url) == ("PUT", f"{ENDPOINT}/persongroups/grp")


def test_service_status_false_on_bad_credentials(client, session):
    session.request.return_value = _error(401, "Unspecified", "Access denied")
    assert client.service_status() is False


def test_test_credentials(session):
    session.get.return_value = _resp(200, [])
    assert AzureFaceClient.test_credentials(ENDPOINT, "key", session=session) is True

    session.get.return_value = _resp(401, {"error": {"code": "401"}})
    assert AzureFaceClient.test_credentials(ENDPOINT, "key", session=session) is False


def test_get_person_group_missing(client, session):
    session.request.return_value = _error(404, "PersonGroupNotFound")
    with pytest.raises(PersonGroupNotFound):
        client.get_person_group()


def test_get_person_group(client, session):
    session.request.return_value = _resp(200, {"personGroupId": "grp", "name": "people"})
    assert client.get_person_group()["personGroupId"] == "grp"


def test_unreadable_image_is_an_image_load_error(client, session):
    def missing(uri):
        raise FileNotFoundError(uri)

    client.image_loader = missing

    with pytest.raises(ImageLoadError, match="missing.jpg"):
        client.add_face("p1", "/nonexistent/missing.jpg")
    session.request.assert_not_called()

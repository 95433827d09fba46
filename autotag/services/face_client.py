# autotag/services/face_client.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol

import requests
from botocore.exceptions import BotoCoreError, ClientError

from autotag.config import AutoTagConfig
from autotag.exceptions import FaceServiceError, ImageLoadError, PersonGroupNotFound
from autotag.services import storage
from autotag.services.retry import retry_on_exception

logger = logging.getLogger(__name__)

NEVER_TRAINED = "Never trained"


# ---------------------------
# Tipos devueltos
# ---------------------------
@dataclass(frozen=True)
class RemotePerson:
    person_id: str
    name: str
    face_ids: List[str] = field(default_factory=list)
    user_data: Optional[str] = None


@dataclass(frozen=True)
class TrainingStatus:
    status: str
    last_trained: Optional[str] = None
    message: Optional[str] = None


@dataclass(frozen=True)
class Candidate:
    person_id: str
    confidence: float


@dataclass(frozen=True)
class IdentifyResult:
    face_id: str
    candidates: List[Candidate] = field(default_factory=list)


class FaceServiceClient(Protocol):
    """Lo que el reconciliador y el pipeline consumen del servicio remoto."""

    def service_status(self) -> bool: ...
    def create_person_group(self, name: str) -> None: ...
    def delete_person_group(self) -> None: ...
    def list_person_groups(self) -> List[Dict[str, Any]]: ...
    def get_person_group(self) -> Dict[str, Any]: ...
    def create_person(self, name: str) -> str: ...
    def get_person(self, person_id: str) -> RemotePerson: ...
    def update_person(self, person_id: str, name: str) -> None: ...
    def delete_person(self, person_id: str) -> None: ...
    def list_people(self) -> List[RemotePerson]: ...
    def add_face(self, person_id: str, file_uri: str) -> str: ...
    def delete_face(self, person_id: str, face_id: str) -> None: ...
    def train_person_group(self) -> None: ...
    def get_training_status(self) -> TrainingStatus: ...
    def detect_faces(self, file_uri: str) -> List[str]: ...
    def identify_faces(self, face_ids: List[str]) -> List[IdentifyResult]: ...


def _person_from_json(data: Dict[str, Any]) -> RemotePerson:
    return RemotePerson(
        person_id=data.get("personId", ""),
        name=data.get("name", ""),
        face_ids=list(data.get("persistedFaceIds") or []),
        user_data=data.get("userData"),
    )


def _max_retries(client, *args, **kwargs) -> int:
    return client.config.max_retries


def _base_delay(client, *args, **kwargs) -> float:
    return client.config.retry_base_delay


# ---------------------------
# Azure Face API (REST)
# ---------------------------
class AzureFaceClient:
    """
    Cliente REST de Azure Face API limitado a un person group.

    Todas las rutas son relativas a ``config.azure_endpoint``
    (p.ej. ``https://<recurso>.cognitiveservices.azure.com/face/v1.0/``).
    """

    def __init__(self, config: AutoTagConfig, session: Optional[requests.Session] = None,
                 image_loader: Callable[[str], bytes] = storage.read_image):
        self.config = config
        self.base_url = config.azure_endpoint.rstrip("/") + "/"
        self.group_id = config.person_group_id
        self.image_loader = image_loader
        self.session = session or requests.Session()
        self.session.headers.update({
            "Content-Type": "application/json",
            "Ocp-Apim-Subscription-Key": config.azure_service_key,
        })
        self._status: Optional[bool] = None

    # ---------- transporte ----------
    @retry_on_exception(max_retries=_max_retries, initial_delay=_base_delay)
    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = self.base_url + path
        kwargs.setdefault("timeout", self.config.timeout)
        logger.debug("Azure %s %s", method, path)
        try:
            resp = self.session.request(method, url, **kwargs)
        except requests.RequestException as e:
            raise FaceServiceError(f"{method} {path}: {e}") from e

        if not 200 <= resp.status_code < 300:
            code, message = self._error_details(resp)
            raise FaceServiceError(f"{method} {path}: {message}", status_code=resp.status_code, code=code)

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise FaceServiceError(f"{method} {path}: JSON inválido", status_code=resp.status_code) from e

    @staticmethod
    def _error_details(resp) -> tuple:
        try:
            err = (resp.json() or {}).get("error") or {}
        except ValueError:
            err = {}
        return err.get("code"), err.get("message") or resp.reason or "error"

    def _group_path(self, suffix: str = "") -> str:
        return f"persongroups/{self.group_id}{suffix}"

    def _image_body(self, file_uri: str) -> Dict[str, Any]:
        try:
            data = self.image_loader(file_uri)
        except (OSError, ValueError, ClientError, BotoCoreError) as e:
            raise ImageLoadError(f"No se pudo leer la imagen {file_uri}: {e}") from e
        return {
            "data": data,
            "headers": {"Content-Type": "application/octet-stream"},
        }

    # ---------- credenciales / estado ----------
    @classmethod
    def test_credentials(cls, endpoint: str, service_key: str, session: Optional[requests.Session] = None) -> bool:
        s = session or requests.Session()
        try:
            resp = s.get(endpoint.rstrip("/") + "/persongroups",
                         headers={"Ocp-Apim-Subscription-Key": service_key}, timeout=10)
        except requests.RequestException as e:
            logger.warning("No se pudo validar credenciales de Azure: %s", e)
            return False
        return resp.status_code == 200

    def service_status(self) -> bool:
        """Credenciales válidas y person group existente (lo crea si falta). Se cachea."""
        if self._status is None:
            try:
                groups = self.list_person_groups()
                if not any(g.get("personGroupId") == self.group_id for g in groups):
                    self.create_person_group(self.group_id)
                self._status = True
            except FaceServiceError as e:
                logger.error("Azure no disponible con la configuración actual: %s", e)
                self._status = False
        return self._status

    # ---------- person groups ----------
    def list_person_groups(self) -> List[Dict[str, Any]]:
        return self._request("GET", "persongroups") or []

    def create_person_group(self, name: str) -> None:
        self._request("PUT", self._group_path(), json={"name": name})

    def delete_person_group(self) -> None:
        self._request("DELETE", self._group_path())

    def get_person_group(self) -> Dict[str, Any]:
        try:
            return self._request("GET", self._group_path()) or {}
        except FaceServiceError as e:
            if e.status_code == 404:
                raise PersonGroupNotFound(e.message, status_code=404, code=e.code) from e
            raise

    # ---------- personas ----------
    def create_person(self, name: str) -> str:
        data = self._request("POST", self._group_path("/persons"), json={"name": name}) or {}
        person_id = data.get("personId")
        if not person_id:
            raise FaceServiceError("create_person: respuesta sin personId")
        return person_id

    def get_person(self, person_id: str) -> RemotePerson:
        return _person_from_json(self._request("GET", self._group_path(f"/persons/{person_id}")) or {})

    def update_person(self, person_id: str, name: str) -> None:
        self._request("PATCH", self._group_path(f"/persons/{person_id}"), json={"name": name})

    def delete_person(self, person_id: str) -> None:
        self._request("DELETE", self._group_path(f"/persons/{person_id}"))

    def list_people(self) -> List[RemotePerson]:
        return [_person_from_json(p) for p in (self._request("GET", self._group_path("/persons")) or [])]

    # ---------- caras ----------
    def add_face(self, person_id: str, file_uri: str) -> str:
        data = self._request("POST", self._group_path(f"/persons/{person_id}/persistedFaces"),
                             **self._image_body(file_uri)) or {}
        face_id = data.get("persistedFaceId")
        if not face_id:
            raise FaceServiceError("add_face: respuesta sin persistedFaceId")
        return face_id

    def delete_face(self, person_id: str, face_id: str) -> None:
        self._request("DELETE", self._group_path(f"/persons/{person_id}/persistedFaces/{face_id}"))

    # ---------- entrenamiento ----------
    def train_person_group(self) -> None:
        self._request("POST", self._group_path("/train"))

    def get_training_status(self) -> TrainingStatus:
        try:
            data = self._request("GET", self._group_path("/training")) or {}
        except FaceServiceError as e:
            if e.status_code != 404:
                raise
            if e.code == "PersonGroupNotTrained":
                return TrainingStatus(status=NEVER_TRAINED)
            raise PersonGroupNotFound(e.message, status_code=404, code=e.code) from e
        return TrainingStatus(
            status=data.get("status", ""),
            last_trained=data.get("lastActionDateTime"),
            message=data.get("message"),
        )

    # ---------- detección / identificación ----------
    def detect_faces(self, file_uri: str) -> List[str]:
        data = self._request("POST", "detect",
                             params={"returnFaceId": "true", "returnFaceLandmarks": "false"},
                             **self._image_body(file_uri)) or []
        return [d["faceId"] for d in data if d.get("faceId")]

    def identify_faces(self, face_ids: List[str]) -> List[IdentifyResult]:
        data = self._request("POST", "identify",
                             json={"faceIds": list(face_ids), "personGroupId": self.group_id}) or []
        return [
            IdentifyResult(
                face_id=r.get("faceId", ""),
                candidates=[
                    Candidate(person_id=c["personId"], confidence=float(c.get("confidence", 0.0)))
                    for c in (r.get("candidates") or [])
                ],
            )
            for r in data
        ]

# autotag/config.py
from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from types import MappingProxyType
from typing import Mapping, Optional

from django.conf import settings
from django.core.signals import setting_changed
from django.dispatch import receiver

from autotag.exceptions import ConfigurationError

# Tipo local de los mapeos de caras (imágenes)
FILE_ENTITY_TYPE = "file"

# Límite del endpoint /identify de Azure
IDENTIFY_BATCH_LIMIT = 10

DEFAULT_PERSON_GROUP = "django_image_auto_tag_people"


def _getenv(name: str, default: str = "") -> str:
    return os.getenv(name, default).strip()


def _as_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


@dataclass(frozen=True)
class AutoTagConfig:
    azure_endpoint: str = ""
    azure_service_key: str = ""
    person_group_id: str = DEFAULT_PERSON_GROUP
    person_entity_bundle: str = "content.person"
    person_image_field: str = "faces"
    file_entity_model: str = "content.imagefile"
    # {"content.article": {"image": "people"}}
    detection_fields: Mapping[str, Mapping[str, str]] = field(default_factory=dict)
    synchronous: bool = True
    min_confidence: Optional[float] = None
    max_retries: int = 3
    retry_base_delay: float = 1.0
    timeout: float = 30.0
    queue_max_attempts: int = 5
    # segundos tras los que un trabajo reclamado se considera abandonado
    queue_claim_timeout: float = 3600.0

    @classmethod
    def from_settings(cls) -> "AutoTagConfig":
        raw = dict(getattr(settings, "IMAGE_AUTO_TAG", {}) or {})
        detection = {
            label.lower(): MappingProxyType(dict(fields))
            for label, fields in (raw.get("DETECTION_FIELDS") or {}).items()
        }
        min_conf = raw.get("MIN_CONFIDENCE")
        cfg = cls(
            azure_endpoint=raw.get("AZURE_ENDPOINT", _getenv("AZURE_FACE_ENDPOINT")),
            azure_service_key=raw.get("AZURE_SERVICE_KEY", _getenv("AZURE_FACE_KEY")),
            person_group_id=raw.get("PERSON_GROUP_ID", _getenv("AZURE_PERSON_GROUP_ID", DEFAULT_PERSON_GROUP)),
            person_entity_bundle=str(raw.get("PERSON_ENTITY_BUNDLE", "content.person")).lower(),
            person_image_field=raw.get("PERSON_IMAGE_FIELD", "faces"),
            file_entity_model=str(raw.get("FILE_ENTITY_MODEL", "content.imagefile")).lower(),
            detection_fields=MappingProxyType(detection),
            synchronous=_as_bool(raw.get("SYNCHRONOUS", _getenv("IMAGE_AUTO_TAG_SYNCHRONOUS", "true"))),
            min_confidence=float(min_conf) if min_conf is not None else None,
            max_retries=int(raw.get("MAX_RETRIES", 3)),
            retry_base_delay=float(raw.get("RETRY_BASE_DELAY", 1.0)),
            timeout=float(raw.get("TIMEOUT", 30.0)),
            queue_max_attempts=int(raw.get("QUEUE_MAX_ATTEMPTS", 5)),
            queue_claim_timeout=float(raw.get("QUEUE_CLAIM_TIMEOUT", 3600.0)),
        )
        if "." not in cfg.person_entity_bundle:
            raise ConfigurationError(
                f"PERSON_ENTITY_BUNDLE debe ser 'app_label.model', no {cfg.person_entity_bundle!r}"
            )
        return cfg

    @property
    def is_configured(self) -> bool:
        return bool(self.azure_endpoint and self.azure_service_key)

    @property
    def person_entity_type(self) -> str:
        return self.person_entity_bundle

    def tag_field_for(self, model_label: str, source_field: str) -> Optional[str]:
        return self.detection_fields.get(model_label.lower(), {}).get(source_field)


@lru_cache(maxsize=1)
def get_config() -> AutoTagConfig:
    return AutoTagConfig.from_settings()


@receiver(setting_changed)
def _reset_config(sender, setting, **kwargs):
    if setting == "IMAGE_AUTO_TAG":
        get_config.cache_clear()

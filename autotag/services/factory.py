# autotag/services/factory.py
"""Composición: aquí se elige la implementación concreta del cliente remoto."""
from __future__ import annotations

from typing import Optional

from django.core.signals import setting_changed
from django.dispatch import receiver

from autotag.config import FILE_ENTITY_TYPE, AutoTagConfig, get_config
from autotag.services.entity_operations import EntityOperations
from autotag.services.face_client import AzureFaceClient, FaceServiceClient
from autotag.services.image_auto_tag import ImageAutoTag
from autotag.services.person_map_store import PersonMapStore

_client: Optional[FaceServiceClient] = None


def get_face_client(config: Optional[AutoTagConfig] = None) -> FaceServiceClient:
    global _client
    if config is not None:
        return AzureFaceClient(config)
    if _client is None:
        _client = AzureFaceClient(get_config())
    return _client


def reset_services() -> None:
    global _client
    _client = None
    get_config.cache_clear()


def build_image_auto_tag(config: Optional[AutoTagConfig] = None,
                         client: Optional[FaceServiceClient] = None,
                         store: Optional[PersonMapStore] = None) -> ImageAutoTag:
    if client is None:
        client = get_face_client(config)
    config = config or get_config()
    return ImageAutoTag(
        client=client,
        store=store or PersonMapStore(config.file_entity_model, FILE_ENTITY_TYPE),
        config=config,
    )


def get_entity_operations(config: Optional[AutoTagConfig] = None,
                          client: Optional[FaceServiceClient] = None,
                          store: Optional[PersonMapStore] = None) -> EntityOperations:
    return EntityOperations(build_image_auto_tag(config, client, store))


@receiver(setting_changed)
def _reset_on_settings(sender, setting, **kwargs):
    if setting == "IMAGE_AUTO_TAG":
        reset_services()

# autotag/exceptions.py
from __future__ import annotations

from typing import Optional


class AutoTagError(Exception):
    """Base de todos los errores de image auto tag."""


class ConfigurationError(AutoTagError):
    pass


class FaceServiceError(AutoTagError):
    """
    Error de transporte contra el servicio remoto de caras.

    Cubre fallo de red, status no-2xx y JSON malformado. ``status_code`` es
    None cuando no hubo respuesta HTTP (timeout, conexión rechazada).
    """

    def __init__(self, message: str, status_code: Optional[int] = None, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code

    @property
    def retryable(self) -> bool:
        if self.status_code is None:
            return True
        return self.status_code == 429 or self.status_code >= 500

    def __str__(self):
        if self.status_code is None:
            return self.message
        return f"[{self.status_code}] {self.message}"


class PersonGroupNotFound(FaceServiceError):
    pass


class MappingLookupError(AutoTagError):
    """La tabla de mapeo falló al consultarse (distinto de 'aún no mapeado')."""


class ImageLoadError(AutoTagError):
    """No se pudieron leer los bytes de la imagen (ruta local o S3)."""

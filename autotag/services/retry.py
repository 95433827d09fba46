# autotag/services/retry.py
"""
Reintentos con backoff exponencial para llamadas al servicio remoto.

Solo se reintentan errores transitorios (FaceServiceError.retryable):
red caída, timeouts, 429 y 5xx. El resto se propaga en el primer intento.
"""
from __future__ import annotations

import functools
import logging
import random
import time
from typing import Callable, Tuple, Type

from autotag.exceptions import FaceServiceError

logger = logging.getLogger(__name__)


def backoff_delay(attempt: int, initial_delay: float, max_delay: float,
                  exponential_base: float = 2.0, jitter: bool = True) -> float:
    delay = min(initial_delay * (exponential_base ** attempt), max_delay)
    if jitter:
        delay = delay * (0.5 + random.random())
    return delay


def retry_on_exception(
    max_retries: int | Callable[..., int] = 3,
    initial_delay: float | Callable[..., float] = 1.0,
    max_delay: float = 30.0,
    exponential_base: float = 2.0,
    jitter: bool = True,
    exceptions: Tuple[Type[Exception], ...] = (FaceServiceError,),
    sleep: Callable[[float], None] | None = None,
) -> Callable:
    """
    Decorador de reintento.

    ``max_retries`` e ``initial_delay`` aceptan un callable que recibe los
    mismos argumentos que la función decorada (p.ej. ``self``), para leerlos
    de la configuración de la instancia.
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            retries = max_retries(*args) if callable(max_retries) else max_retries
            base = initial_delay(*args) if callable(initial_delay) else initial_delay

            for attempt in range(retries + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if not getattr(e, "retryable", True):
                        raise
                    if attempt >= retries:
                        logger.error("%s: %d intentos fallidos. Último error: %s",
                                     func.__name__, retries + 1, e)
                        raise
                    delay = backoff_delay(attempt, base, max_delay, exponential_base, jitter)
                    logger.warning("%s: intento %d/%d falló: %s. Reintentando en %.2fs",
                                   func.__name__, attempt + 1, retries + 1, e, delay)
                    (sleep or time.sleep)(delay)

        return wrapper
    return decorator

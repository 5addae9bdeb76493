"""Wrapper de httpx.

- Estandariza timeouts (conexión y lectura), headers y reintentos.
- Traduce excepciones de httpx a la taxonomía del dominio
  (`NetworkError`, `NotFoundError`).
- Se puede sustituir el transporte en tests (`httpx.MockTransport`).
"""

from __future__ import annotations

import asyncio
import logging
import random

import httpx

from core.config import AppSettings
from core.domain.errors import NetworkError, NotFoundError

logger = logging.getLogger(__name__)

# Status que merecen reintento (rate limit y errores de servidor).
_RETRYABLE_STATUS = {429, 500, 502, 503, 504}


def build_async_client(
    settings: AppSettings | None = None,
    *,
    extra_headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` con timeouts explícitos.

    Ninguna petición puede bloquear indefinidamente: connect/read/write/pool
    llevan timeout.
    """

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "application/xml,text/xml;q=0.9,*/*;q=0.8",
    }
    if extra_headers:
        headers.update(extra_headers)
    timeout = httpx.Timeout(
        settings.http_read_timeout_seconds,
        connect=settings.http_connect_timeout_seconds,
    )
    return httpx.AsyncClient(
        timeout=timeout,
        follow_redirects=True,
        headers=headers,
        transport=transport,
    )


def _retry_after_seconds(response: httpx.Response | None) -> float | None:
    if response is None:
        return None
    value = response.headers.get("retry-after")
    if not value:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        return None


async def fetch_bytes(
    client: httpx.AsyncClient,
    url: str,
    *,
    max_retries: int = 3,
    backoff_seconds: float = 1.25,
) -> bytes:
    """GET con reintentos; devuelve el cuerpo crudo.

    - 404 -> `NotFoundError` (sin reintento).
    - Timeouts, errores de transporte, 429 y 5xx -> reintento con backoff
      exponencial + jitter; agotados los intentos, `NetworkError(retryable=True)`.
    - Otros status no exitosos y el resto de `httpx.HTTPError` (bucles de
      redirección, errores de decodificación) -> `NetworkError(retryable=False)`.
    """

    last_error: NetworkError | None = None
    for attempt in range(max_retries + 1):
        response: httpx.Response | None = None
        try:
            response = await client.get(url)
        except httpx.TimeoutException as exc:
            last_error = NetworkError(f"Timeout fetching {url}: {exc}", url=url)
        except httpx.TransportError as exc:
            last_error = NetworkError(f"Transport error fetching {url}: {exc}", url=url)
        except httpx.HTTPError as exc:
            # TooManyRedirects, DecodingError...: repetir no cambia el resultado.
            raise NetworkError(
                f"{type(exc).__name__} fetching {url}: {exc}",
                url=url,
                retryable=False,
            ) from exc
        else:
            status = response.status_code
            if 200 <= status < 300:
                return response.content
            if status == 404:
                raise NotFoundError(f"Not found: {url}", url=url)
            retryable = status in _RETRYABLE_STATUS
            last_error = NetworkError(
                f"HTTP {status} fetching {url}",
                url=url,
                status_code=status,
                retryable=retryable,
            )
            if not retryable:
                raise last_error

        if attempt >= max_retries:
            break
        retry_after = _retry_after_seconds(response)
        base = retry_after if retry_after is not None else (backoff_seconds * (2**attempt))
        delay = base + random.uniform(0.0, 0.35) if backoff_seconds > 0 else 0.0
        logger.debug("Retrying %s in %.2fs (attempt %d): %s", url, delay, attempt + 1, last_error)
        await asyncio.sleep(delay)

    if last_error is None:
        raise NetworkError(f"No request attempted for {url} (max_retries={max_retries})", url=url)
    raise last_error

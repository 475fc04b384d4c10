"""Shared JSON request helper for source adapters."""

from __future__ import annotations

from typing import Any

import httpx

from movie_trends.ports.sources import SourceDegraded, SourceError


async def request_json(
    http: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    timeout: float,
    error_cls: type[SourceError] = SourceDegraded,
    **kwargs: Any,
) -> dict[str, Any]:
    try:
        response = await http.request(method, url, timeout=timeout, **kwargs)
        response.raise_for_status()
        data = response.json()
    except httpx.HTTPStatusError as exc:
        raise error_cls(f"{url} returned HTTP {exc.response.status_code}") from exc
    except httpx.HTTPError as exc:
        raise error_cls(f"{url} request failed: {type(exc).__name__}") from exc
    except ValueError as exc:
        raise error_cls(f"{url} returned invalid JSON") from exc
    if not isinstance(data, dict):
        raise error_cls(f"{url} returned unexpected payload")
    return data

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from domcheck import __version__
from domcheck.cache import Cache, CacheHit, make_cache_key
from domcheck.errors import DomcheckError, ExitCode

DEFAULT_USER_AGENT = f"domcheck/{__version__}"


@dataclass(frozen=True, slots=True)
class FetchSettings:
    timeout: float
    proxy: str | None
    cache: Cache
    max_bytes: int = 64 * 1024 * 1024


@dataclass(frozen=True, slots=True)
class FetchResult:
    url: str
    final_url: str
    status: int
    body: bytes
    cache_hit: CacheHit | None

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


def _http_error(*, url: str, final_url: str, status: int) -> DomcheckError:
    details: dict[str, Any] = {"url": url, "final_url": final_url, "status": status}
    if status == 404:
        return DomcheckError(
            code="not_found",
            message="block-list URL returned 404 (not found)",
            exit_code=ExitCode.NOT_FOUND,
            details=details,
        )
    if status in {401, 403, 429}:
        return DomcheckError(
            code="access_denied",
            message=f"block-list download denied (HTTP {status})",
            exit_code=ExitCode.RUNTIME_ERROR,
            details=details,
        )
    return DomcheckError(
        code="http_error",
        message=f"block-list download failed (HTTP {status})",
        exit_code=ExitCode.RUNTIME_ERROR,
        details=details,
    )


def fetch_list(url: str, *, settings: FetchSettings) -> FetchResult:
    cache_key = make_cache_key(url)
    hit = settings.cache.get(key=cache_key)
    if hit is not None:
        return FetchResult(
            url=url,
            final_url=str(hit.meta.get("final_url") or url),
            status=int(hit.meta.get("status", 200) or 200),
            body=hit.body_path.read_bytes(),
            cache_hit=hit,
        )

    client_args: dict[str, Any] = {
        "timeout": httpx.Timeout(timeout=settings.timeout),
        "follow_redirects": True,
    }
    if settings.proxy:
        client_args["proxy"] = settings.proxy
    headers = {"user-agent": DEFAULT_USER_AGENT, "accept": "text/plain,*/*"}

    try:
        with httpx.Client(**client_args) as client:
            resp = client.get(url, headers=headers)
    except httpx.TransportError as e:
        raise DomcheckError(
            code="network_error",
            message=f"could not download block-list: {e}",
            exit_code=ExitCode.RUNTIME_ERROR,
            details={"url": url},
        ) from e

    status = resp.status_code
    final_url = str(resp.url)
    if status >= 400:
        raise _http_error(url=url, final_url=final_url, status=status)

    body = resp.content
    if settings.max_bytes and len(body) > settings.max_bytes:
        raise DomcheckError(
            code="too_large",
            message=f"block-list exceeded max size ({settings.max_bytes} bytes)",
            exit_code=ExitCode.RUNTIME_ERROR,
            details={"url": url, "bytes": len(body), "max_bytes": settings.max_bytes},
        )

    meta = {
        "status": status,
        "final_url": final_url,
        "bytes": len(body),
        "etag": resp.headers.get("etag"),
        "last_modified": resp.headers.get("last-modified"),
    }
    settings.cache.put(key=cache_key, meta=meta, body=body)
    return FetchResult(url=url, final_url=final_url, status=status, body=body, cache_hit=None)

from __future__ import annotations

import hashlib
import json
import time
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any


@dataclass(frozen=True, slots=True)
class CacheSettings:
    cache_dir: Path
    ttl: timedelta
    max_mb: int
    enabled: bool = True
    fresh: bool = False


@dataclass(frozen=True, slots=True)
class CacheHit:
    key: str
    meta: dict[str, Any]
    body_path: Path

    def read_text(self) -> str:
        return self.body_path.read_bytes().decode("utf-8", errors="replace")


def make_cache_key(url: str) -> str:
    return hashlib.sha256(f"list:{url}".encode("utf-8")).hexdigest()


class Cache:
    """Downloaded block-lists on disk: ``<key>.json`` metadata next to ``<key>.body``."""

    def __init__(self, settings: CacheSettings) -> None:
        self._settings = settings
        self._lists_dir = settings.cache_dir / "lists"
        self._lists_dir.mkdir(parents=True, exist_ok=True)

    def _paths(self, key: str) -> tuple[Path, Path]:
        return self._lists_dir / f"{key}.json", self._lists_dir / f"{key}.body"

    def _expired(self, created_at: float, now: float) -> bool:
        return (now - created_at) > self._settings.ttl.total_seconds()

    def get(self, *, key: str) -> CacheHit | None:
        if not self._settings.enabled or self._settings.fresh:
            return None

        meta_path, body_path = self._paths(key)
        if not meta_path.exists() or not body_path.exists():
            return None

        meta = self._read_meta(meta_path)
        created_at = None if meta is None else meta.get("created_at")
        if not isinstance(created_at, (int, float)) or self._expired(created_at, time.time()):
            self._discard(meta_path, body_path)
            return None

        # refresh access time so eviction drops the stalest lists first
        meta["last_accessed"] = time.time()
        try:
            meta_path.write_text(json.dumps(meta, ensure_ascii=False), encoding="utf-8")
        except OSError:
            pass

        return CacheHit(key=key, meta=meta, body_path=body_path)

    def put(self, *, key: str, meta: dict[str, Any], body: bytes) -> Path | None:
        if not self._settings.enabled:
            return None

        now = time.time()
        meta_path, body_path = self._paths(key)
        body_path.write_bytes(body)
        meta_path.write_text(
            json.dumps({**meta, "created_at": now, "last_accessed": now}, ensure_ascii=False),
            encoding="utf-8",
        )
        self.prune()
        return body_path

    def prune(self) -> None:
        if not self._settings.enabled:
            return

        now = time.time()
        entries: list[tuple[float, int, Path, Path]] = []
        total_bytes = 0

        for meta_path in self._lists_dir.glob("*.json"):
            body_path = meta_path.with_suffix(".body")
            meta = self._read_meta(meta_path) if body_path.exists() else None
            if meta is None:
                self._discard(meta_path, body_path)
                continue

            created_at = meta.get("created_at")
            last_accessed = meta.get("last_accessed", created_at)
            if (
                not isinstance(created_at, (int, float))
                or not isinstance(last_accessed, (int, float))
                or self._expired(created_at, now)
            ):
                self._discard(meta_path, body_path)
                continue

            size = meta_path.stat().st_size + body_path.stat().st_size
            total_bytes += size
            entries.append((float(last_accessed), size, meta_path, body_path))

        budget = int(self._settings.max_mb * 1024 * 1024)
        if total_bytes <= budget:
            return

        entries.sort(key=lambda entry: entry[0])
        for _last_accessed, size, meta_path, body_path in entries:
            self._discard(meta_path, body_path)
            total_bytes -= size
            if total_bytes <= budget:
                break

    @staticmethod
    def _read_meta(meta_path: Path) -> dict[str, Any] | None:
        try:
            meta = json.loads(meta_path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return None
        return meta if isinstance(meta, dict) else None

    @staticmethod
    def _discard(*paths: Path) -> None:
        for path in paths:
            try:
                path.unlink()
            except OSError:
                continue

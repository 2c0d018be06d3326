from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class CacheMeta:
    lookups: int
    hits: int

    def to_dict(self) -> dict[str, Any]:
        return {"lookups": self.lookups, "hits": self.hits}


@dataclass(frozen=True, slots=True)
class EnvelopeMeta:
    duration_ms: int
    cache: CacheMeta | None = None
    sources: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "duration_ms": self.duration_ms,
            "cache": None if self.cache is None else self.cache.to_dict(),
            "sources": self.sources,
        }


def make_envelope(
    *,
    ok: bool,
    command: str,
    version: str,
    data: Any,
    warnings: list[str],
    error: dict[str, Any] | None,
    meta: EnvelopeMeta,
) -> dict[str, Any]:
    return {
        "ok": ok,
        "command": command,
        "version": version,
        "data": data,
        "warnings": warnings,
        "error": error,
        "meta": meta.to_dict(),
    }


def print_json(payload: dict[str, Any], *, pretty: bool) -> None:
    if pretty:
        json.dump(payload, sys.stdout, ensure_ascii=False, indent=2)
    else:
        json.dump(payload, sys.stdout, ensure_ascii=False, separators=(",", ":"))
    sys.stdout.write("\n")

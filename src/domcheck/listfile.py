from __future__ import annotations

import ipaddress
import sys
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from domcheck.domain import Domain
from domcheck.errors import DomcheckError, ExitCode
from domcheck.fetch.http import FetchSettings, fetch_list

_SINKHOLE_ADDRESSES = {"0.0.0.0", "127.0.0.1", "::1", "::"}
_COMMENT_PREFIXES = ("#", "!")


@dataclass(frozen=True, slots=True)
class LoadedList:
    source: str
    domains: list[Domain]
    cache_hit: bool = False


def _is_ip_address(value: str) -> bool:
    try:
        ipaddress.ip_address(value)
    except ValueError:
        return False
    return True


def iter_entries(text: str) -> Iterator[tuple[int, str]]:
    """Yield ``(line_number, entry)`` for every domain-bearing line.

    Accepts plain one-per-line lists and hosts-file lines such as
    ``0.0.0.0 ads.example www.ads.example``, where every name after the
    address is blocked. Comments start with ``#`` or ``!``.
    """
    for line_number, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith(_COMMENT_PREFIXES):
            continue
        if "#" in line:
            line = line.split("#", 1)[0].strip()
            if not line:
                continue

        fields = line.split()
        if len(fields) >= 2 and fields[0] in _SINKHOLE_ADDRESSES:
            entries = fields[1:]
        else:
            entries = fields[:1]

        for entry in entries:
            if not _is_ip_address(entry):
                yield line_number, entry


def parse_blocklist_text(text: str, *, source: str | None = None) -> list[Domain]:
    return [
        Domain.parse(entry, position=line_number, source=source)
        for line_number, entry in iter_entries(text)
    ]


def is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def load_source(source: str, *, fetch_settings: FetchSettings | None = None) -> LoadedList:
    """Load a block-list from ``-`` (stdin), an http(s) URL, or a file path."""
    if source == "-":
        domains = parse_blocklist_text(sys.stdin.read(), source="stdin")
        return LoadedList(source=source, domains=domains)

    if is_url(source):
        if fetch_settings is None:
            raise DomcheckError(
                code="invalid_usage",
                message=f"remote block-list requires fetch settings: {source}",
                exit_code=ExitCode.INVALID_USAGE,
            )
        res = fetch_list(source, settings=fetch_settings)
        return LoadedList(
            source=source,
            domains=parse_blocklist_text(res.text, source=source),
            cache_hit=res.cache_hit is not None,
        )

    path = Path(source).expanduser()
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise DomcheckError(
            code="not_found",
            message=f"block-list file not found: {source}",
            exit_code=ExitCode.NOT_FOUND,
            details={"path": str(path)},
        ) from e
    except IsADirectoryError as e:
        raise DomcheckError(
            code="invalid_usage",
            message=f"block-list path is a directory: {source}",
            exit_code=ExitCode.INVALID_USAGE,
            details={"path": str(path)},
        ) from e
    return LoadedList(source=source, domains=parse_blocklist_text(text, source=source))

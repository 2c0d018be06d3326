from __future__ import annotations

from bisect import bisect_right
from collections.abc import Iterable, Iterator

from domcheck.domain import Domain, parse_domains


def minimize(domains: Iterable[Domain]) -> tuple[Domain, ...]:
    """Sort ``domains`` and drop every entry already covered by a kept one.

    After sorting, all descendants of an entry follow it contiguously, so
    comparing against the last kept entry is enough.
    """
    kept: list[Domain] = []
    for domain in sorted(domains):
        if kept and domain.is_subdomain(kept[-1]):
            continue
        kept.append(domain)
    return tuple(kept)


class BlockList:
    """Minimal sorted set of blocked domains; read-only once built."""

    __slots__ = ("_domains", "_input_count")

    def __init__(self, domains: Iterable[Domain] = ()) -> None:
        materialized = list(domains)
        self._input_count = len(materialized)
        self._domains = minimize(materialized)

    @classmethod
    def from_names(cls, names: Iterable[str], *, source: str | None = None) -> BlockList:
        return cls(parse_domains(names, source=source))

    @property
    def domains(self) -> tuple[Domain, ...]:
        return self._domains

    @property
    def input_count(self) -> int:
        return self._input_count

    @property
    def dropped(self) -> int:
        return self._input_count - len(self._domains)

    def match(self, domain: Domain) -> Domain | None:
        """Return the entry that blocks ``domain``, or None when it is allowed."""
        pos = bisect_right(self._domains, domain)
        if pos == 0:
            # Every entry sorts after the query, so none can be its ancestor.
            return None
        candidate = self._domains[pos - 1]
        if domain.is_subdomain(candidate):
            return candidate
        return None

    def is_forbidden(self, domain: Domain) -> bool:
        return self.match(domain) is not None

    def __contains__(self, domain: object) -> bool:
        if not isinstance(domain, Domain):
            return False
        return self.is_forbidden(domain)

    def __iter__(self) -> Iterator[Domain]:
        return iter(self._domains)

    def __len__(self) -> int:
        return len(self._domains)

    def __repr__(self) -> str:
        return f"BlockList({[d.name for d in self._domains]!r})"

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from domcheck.errors import DomcheckError, ExitCode

SEPARATOR = "."


def _malformed(value: str, *, position: int | None, source: str | None) -> DomcheckError:
    where = ""
    if source is not None and position is not None:
        where = f" ({source}, position {position})"
    elif position is not None:
        where = f" (position {position})"
    elif source is not None:
        where = f" ({source})"
    return DomcheckError(
        code="malformed_domain",
        message=f"malformed domain {value!r}{where}: expected non-empty dot-separated labels",
        exit_code=ExitCode.INVALID_USAGE,
        details={"value": value, "position": position, "source": source},
    )


@dataclass(frozen=True, slots=True, order=True)
class Domain:
    """A domain name stored root-first.

    ``labels`` is the normalized form: ``"a.b.gdz.ru"`` is held as
    ``("ru", "gdz", "b", "a")``. A domain is a subdomain of another exactly
    when the other's labels are a prefix of its own, and plain tuple ordering
    sorts every domain directly after its ancestors.
    """

    labels: tuple[str, ...]

    @classmethod
    def parse(
        cls, value: str, *, position: int | None = None, source: str | None = None
    ) -> Domain:
        if not value:
            raise _malformed(value, position=position, source=source)
        parts = value.split(SEPARATOR)
        if any(not part for part in parts):
            raise _malformed(value, position=position, source=source)
        return cls(labels=tuple(reversed(parts)))

    @property
    def name(self) -> str:
        return SEPARATOR.join(reversed(self.labels))

    @property
    def reversed_key(self) -> str:
        """Character-reversed name plus a trailing separator (``gdz.ru`` -> ``ur.zdg.``)."""
        return self.name[::-1] + SEPARATOR

    @property
    def depth(self) -> int:
        return len(self.labels)

    def is_subdomain(self, other: Domain) -> bool:
        """True when ``self`` is ``other`` or any descendant of it."""
        prefix = other.labels
        if len(prefix) > len(self.labels):
            return False
        return self.labels[: len(prefix)] == prefix

    def parent(self) -> Domain | None:
        if len(self.labels) <= 1:
            return None
        return Domain(labels=self.labels[:-1])

    def child(self, label: str) -> Domain:
        if not label or SEPARATOR in label:
            raise _malformed(f"{label}{SEPARATOR}{self.name}", position=None, source=None)
        return Domain(labels=(*self.labels, label))

    def __str__(self) -> str:
        return self.name


def parse_domains(values: Iterable[str], *, source: str | None = None) -> list[Domain]:
    return [
        Domain.parse(value, position=position, source=source)
        for position, value in enumerate(values, start=1)
    ]

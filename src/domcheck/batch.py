"""Count-prefixed batch format.

Input is a count N, N blocked domains, a count M, then M query domains, one
per line. Output is one ``Bad`` or ``Good`` token per query, in order.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import TextIO

from domcheck.blocklist import BlockList
from domcheck.domain import Domain
from domcheck.errors import DomcheckError, ExitCode

BAD = "Bad"
GOOD = "Good"


@dataclass(frozen=True, slots=True)
class Batch:
    blocked: list[Domain]
    queries: list[Domain]


def verdict(forbidden: bool) -> str:
    return BAD if forbidden else GOOD


def _lines(stream: TextIO) -> Iterator[str]:
    for line in stream:
        yield line.strip()


def _read_count(lines: Iterator[str], *, section: str) -> int:
    line = next(lines, None)
    if line is None:
        raise DomcheckError(
            code="unexpected_eof",
            message=f"input ended before the {section} count",
            exit_code=ExitCode.INVALID_USAGE,
            details={"section": section},
        )
    try:
        count = int(line)
    except ValueError:
        count = -1
    if count < 0:
        raise DomcheckError(
            code="invalid_count",
            message=f"invalid {section} count: {line!r} (expected a non-negative integer)",
            exit_code=ExitCode.INVALID_USAGE,
            details={"section": section, "value": line},
        )
    return count


def _read_section(lines: Iterator[str], *, section: str) -> list[Domain]:
    count = _read_count(lines, section=section)
    domains: list[Domain] = []
    for position in range(1, count + 1):
        line = next(lines, None)
        if line is None:
            raise DomcheckError(
                code="unexpected_eof",
                message=f"input ended after {position - 1} of {count} {section} domains",
                exit_code=ExitCode.INVALID_USAGE,
                details={"section": section, "expected": count, "read": position - 1},
            )
        domains.append(Domain.parse(line, position=position, source=section))
    return domains


def read_batch(stream: TextIO) -> Batch:
    lines = _lines(stream)
    blocked = _read_section(lines, section="blocked")
    queries = _read_section(lines, section="queries")
    return Batch(blocked=blocked, queries=queries)


@dataclass(frozen=True, slots=True)
class Judgement:
    blocklist: BlockList
    queries: list[Domain]
    matches: list[Domain | None]

    @property
    def verdicts(self) -> list[str]:
        return [verdict(match is not None) for match in self.matches]


def judge(batch: Batch) -> Judgement:
    blocklist = BlockList(batch.blocked)
    matches = [blocklist.match(domain) for domain in batch.queries]
    return Judgement(blocklist=blocklist, queries=batch.queries, matches=matches)


def write_verdicts(stream: TextIO, verdicts: Iterable[str]) -> None:
    for token in verdicts:
        stream.write(f"{token}\n")

from __future__ import annotations

import argparse
from dataclasses import dataclass, field

from domcheck.blocklist import BlockList
from domcheck.cli_support import cache_from_args, debug
from domcheck.domain import Domain, parse_domains
from domcheck.errors import DomcheckError, ExitCode
from domcheck.fetch.http import FetchSettings
from domcheck.listfile import is_url, load_source
from domcheck.output import CacheMeta


@dataclass(slots=True)
class LoadedBlockList:
    blocklist: BlockList
    sources: list[str] = field(default_factory=list)
    cache_lookups: int = 0
    cache_hits: int = 0

    def cache_meta(self) -> CacheMeta | None:
        if not self.cache_lookups:
            return None
        return CacheMeta(lookups=self.cache_lookups, hits=self.cache_hits)


def add_blocklist_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-b",
        "--blocklist",
        action="append",
        default=[],
        help="Block-list source: file path, http(s) URL, or '-' for stdin (repeatable)",
    )
    parser.add_argument(
        "-d",
        "--block",
        action="append",
        default=[],
        help="Blocked domain given inline (repeatable)",
    )


def fetch_settings_from_args(args: argparse.Namespace) -> FetchSettings:
    return FetchSettings(
        timeout=float(args.timeout),
        proxy=args.proxy,
        cache=cache_from_args(args),
    )


def load_blocklist_from_args(args: argparse.Namespace) -> LoadedBlockList:
    sources = [str(s) for s in getattr(args, "blocklist", []) or []]
    inline = [str(d) for d in getattr(args, "block", []) or []]
    if not sources and not inline:
        raise DomcheckError(
            code="invalid_usage",
            message="no block-list given (use --blocklist SOURCE or --block DOMAIN)",
            exit_code=ExitCode.INVALID_USAGE,
        )
    if sources.count("-") > 1:
        raise DomcheckError(
            code="invalid_usage",
            message="stdin ('-') can only be used as one block-list source",
            exit_code=ExitCode.INVALID_USAGE,
        )

    fetch_settings = fetch_settings_from_args(args) if any(map(is_url, sources)) else None

    domains: list[Domain] = parse_domains(inline, source="--block")
    loaded = LoadedBlockList(blocklist=BlockList())
    for source in sources:
        entries = load_source(source, fetch_settings=fetch_settings)
        if is_url(source):
            loaded.cache_lookups += 1
            loaded.cache_hits += int(entries.cache_hit)
        debug(
            args,
            f"loaded {len(entries.domains)} entries from {source}"
            + (" (cache hit)" if entries.cache_hit else ""),
        )
        domains.extend(entries.domains)
        loaded.sources.append(source)

    loaded.blocklist = BlockList(domains)
    debug(
        args,
        f"block-list: {loaded.blocklist.input_count} entries, "
        f"{len(loaded.blocklist)} after pruning ({loaded.blocklist.dropped} redundant)",
    )
    return loaded

from __future__ import annotations

import argparse
import sys
import time

from domcheck.cli_support import append_warning, envelope_and_exit, wants_json, wants_plain
from domcheck.commands.support import add_blocklist_flags, load_blocklist_from_args
from domcheck.errors import ExitCode
from domcheck.output import EnvelopeMeta


def register(
    subparsers: argparse._SubParsersAction, *, parents: list[argparse.ArgumentParser]
) -> None:
    p = subparsers.add_parser(
        "prune", parents=parents, help="Print the minimal set of blocked domains"
    )
    p.set_defaults(_handler=run)
    add_blocklist_flags(p)


def run(*, args: argparse.Namespace, start: float, warnings: list[str]) -> int:
    loaded = load_blocklist_from_args(args)
    blocklist = loaded.blocklist
    if not len(blocklist):
        append_warning(warnings, "block-list is empty; every domain is allowed")

    if not wants_json(args):
        for domain in blocklist:
            print(domain.name)
        if not (wants_plain(args) or args.quiet):
            print(
                f"{len(blocklist)} of {blocklist.input_count} entries kept "
                f"({blocklist.dropped} redundant)",
                file=sys.stderr,
            )
            for w in warnings:
                print(f"warning: {w}", file=sys.stderr)
        return ExitCode.OK

    data = {
        "domains": [d.name for d in blocklist],
        "input_count": blocklist.input_count,
        "minimal_count": len(blocklist),
        "dropped": blocklist.dropped,
    }
    meta = EnvelopeMeta(
        duration_ms=int((time.time() - start) * 1000),
        cache=loaded.cache_meta(),
        sources=list(loaded.sources),
    )
    return envelope_and_exit(
        args=args,
        command="prune",
        ok=True,
        data=data,
        warnings=warnings,
        error=None,
        meta=meta,
    )

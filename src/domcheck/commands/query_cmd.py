from __future__ import annotations

import argparse
import time

from domcheck.batch import verdict
from domcheck.cli_support import envelope_and_exit, wants_json, wants_plain
from domcheck.commands.support import add_blocklist_flags, load_blocklist_from_args
from domcheck.domain import parse_domains
from domcheck.errors import DomcheckError, ExitCode
from domcheck.output import EnvelopeMeta


def register(
    subparsers: argparse._SubParsersAction, *, parents: list[argparse.ArgumentParser]
) -> None:
    p = subparsers.add_parser(
        "query", parents=parents, help="Check domains against one or more block-lists"
    )
    p.set_defaults(_handler=run)

    p.add_argument("domains", nargs="+", help="Domain(s) to check")
    add_blocklist_flags(p)
    p.add_argument(
        "--fail-on-bad",
        action="store_true",
        help=f"Exit {ExitCode.FORBIDDEN} when any queried domain is blocked",
    )


def run(*, args: argparse.Namespace, start: float, warnings: list[str]) -> int:
    queries = parse_domains([str(d) for d in args.domains], source="query")
    loaded = load_blocklist_from_args(args)
    blocklist = loaded.blocklist

    results: list[dict[str, object]] = []
    for domain in queries:
        parent = blocklist.match(domain)
        results.append(
            {
                "domain": domain.name,
                "verdict": verdict(parent is not None),
                "forbidden": parent is not None,
                "blocked_by": None if parent is None else parent.name,
            }
        )

    bad = sum(1 for r in results if r["forbidden"])
    failed = bool(args.fail_on_bad and bad)

    if wants_plain(args):
        for r in results:
            print(r["verdict"])
        return ExitCode.FORBIDDEN if failed else ExitCode.OK

    if not wants_json(args):
        for r in results:
            line = f"{r['verdict']:<4} {r['domain']}"
            if r["blocked_by"] and r["blocked_by"] != r["domain"]:
                line += f" (blocked by {r['blocked_by']})"
            print(line)
        if not args.quiet:
            print(f"{bad} bad, {len(results) - bad} good ({len(blocklist)} blocked roots)")
        return ExitCode.FORBIDDEN if failed else ExitCode.OK

    data = {
        "results": results,
        "blocklist": {
            "input_count": blocklist.input_count,
            "minimal_count": len(blocklist),
            "dropped": blocklist.dropped,
        },
    }
    meta = EnvelopeMeta(
        duration_ms=int((time.time() - start) * 1000),
        cache=loaded.cache_meta(),
        sources=list(loaded.sources),
    )
    error = None
    if failed:
        error = DomcheckError(
            code="forbidden",
            message=f"{bad} queried domain(s) blocked",
            exit_code=ExitCode.FORBIDDEN,
            details={"bad": bad, "total": len(results)},
        )
    return envelope_and_exit(
        args=args,
        command="query",
        ok=not failed,
        data=data,
        warnings=warnings,
        error=error,
        meta=meta,
    )

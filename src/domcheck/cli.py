from __future__ import annotations

import argparse
import sys
import time

import domcheck.commands.check_cmd as check_cmd
import domcheck.commands.prune_cmd as prune_cmd
import domcheck.commands.query_cmd as query_cmd
from domcheck import __version__
from domcheck.cli_support import add_global_flags, envelope_and_exit, wants_json
from domcheck.errors import DomcheckError
from domcheck.output import EnvelopeMeta

_COMMANDS = (check_cmd, query_cmd, prune_cmd)


def build_parser() -> argparse.ArgumentParser:
    global_root = argparse.ArgumentParser(add_help=False)
    add_global_flags(global_root, suppress_defaults=False)

    global_sub = argparse.ArgumentParser(add_help=False)
    add_global_flags(global_sub, suppress_defaults=True)

    parser = argparse.ArgumentParser(
        prog="domcheck",
        parents=[global_root],
        description="Check domains against block-lists (a domain blocks all its subdomains).",
    )
    parser.add_argument("--version", action="version", version=__version__)
    subparsers = parser.add_subparsers(dest="command", required=True)
    for module in _COMMANDS:
        module.register(subparsers, parents=[global_sub])
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    command = str(args.command)
    start = time.time()
    warnings: list[str] = []

    try:
        return int(args._handler(args=args, start=start, warnings=warnings))
    except DomcheckError as e:
        if wants_json(args):
            return envelope_and_exit(
                args=args,
                command=command,
                ok=False,
                data={},
                warnings=warnings,
                error=e,
                meta=EnvelopeMeta(duration_ms=int((time.time() - start) * 1000)),
            )
        print(f"error: {e.message}", file=sys.stderr)
        if e.details and args.verbose:
            print(f"details: {e.details}", file=sys.stderr)
        return e.exit_code


if __name__ == "__main__":
    raise SystemExit(main())

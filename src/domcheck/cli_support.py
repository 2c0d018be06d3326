from __future__ import annotations

import argparse
import sys
from pathlib import Path

from domcheck import __version__
from domcheck.cache import Cache, CacheSettings
from domcheck.errors import DomcheckError, ExitCode
from domcheck.output import EnvelopeMeta, make_envelope, print_json
from domcheck.timeutil import parse_duration


def wants_json(args: argparse.Namespace) -> bool:
    return bool(getattr(args, "json", False) or getattr(args, "pretty", False))


def wants_plain(args: argparse.Namespace) -> bool:
    return bool(getattr(args, "plain", False) and not wants_json(args))


def append_warning(warnings: list[str], message: str) -> None:
    if message not in warnings:
        warnings.append(message)


def debug(args: argparse.Namespace, message: str) -> None:
    if getattr(args, "verbose", False):
        print(message, file=sys.stderr)


def add_global_flags(parser: argparse.ArgumentParser, *, suppress_defaults: bool) -> None:
    def default(value):
        return argparse.SUPPRESS if suppress_defaults else value

    parser.add_argument(
        "--json",
        action="store_true",
        default=default(False),
        help="Output machine-readable JSON",
    )
    parser.add_argument(
        "--pretty",
        action="store_true",
        default=default(False),
        help="Pretty-print JSON (implies --json)",
    )
    parser.add_argument(
        "--plain",
        action="store_true",
        default=default(False),
        help="Stable text output for piping",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        default=default(False),
        help="Reduce non-essential output",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        default=default(False),
        help="Verbose diagnostics to stderr",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=default(15.0),
        help="Network timeout in seconds for remote block-lists",
    )
    parser.add_argument(
        "--proxy",
        type=str,
        default=default(None),
        help="HTTP(S) proxy URL",
    )
    parser.add_argument(
        "--cache-dir",
        type=str,
        default=default("~/.cache/domcheck"),
        help="Cache directory for downloaded block-lists",
    )
    parser.add_argument(
        "--no-cache",
        action="store_true",
        default=default(False),
        help="Disable cache",
    )
    parser.add_argument(
        "--fresh",
        action="store_true",
        default=default(False),
        help="Bypass cache reads",
    )
    parser.add_argument(
        "--cache-max-mb",
        type=int,
        default=default(256),
        help="Cache size budget in MB",
    )
    parser.add_argument(
        "--cache-ttl",
        type=str,
        default=default("1d"),
        help="Cache TTL (e.g. 6h, 1d)",
    )


def cache_from_args(args: argparse.Namespace) -> Cache:
    cache_dir = Path(str(args.cache_dir)).expanduser()
    try:
        ttl = parse_duration(str(args.cache_ttl))
    except ValueError as e:
        raise DomcheckError(
            code="invalid_usage",
            message=str(e),
            exit_code=ExitCode.INVALID_USAGE,
        ) from e
    return Cache(
        CacheSettings(
            cache_dir=cache_dir,
            ttl=ttl,
            max_mb=int(args.cache_max_mb),
            enabled=not bool(args.no_cache),
            fresh=bool(args.fresh),
        )
    )


def print_envelope(args: argparse.Namespace, payload: dict) -> None:
    if not wants_json(args):
        return
    print_json(payload, pretty=bool(getattr(args, "pretty", False)))


def envelope_and_exit(
    *,
    args: argparse.Namespace,
    command: str,
    ok: bool,
    data: object,
    warnings: list[str],
    error: DomcheckError | None,
    meta: EnvelopeMeta,
) -> int:
    payload = make_envelope(
        ok=ok,
        command=command,
        version=__version__,
        data=data,
        warnings=warnings,
        error=None if error is None else error.to_error_dict(),
        meta=meta,
    )
    print_envelope(args, payload)
    return ExitCode.OK if ok else (error.exit_code if error is not None else ExitCode.RUNTIME_ERROR)

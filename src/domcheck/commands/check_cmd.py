from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path

from domcheck.batch import Batch, judge, read_batch, verdict, write_verdicts
from domcheck.cli_support import debug, envelope_and_exit, wants_json
from domcheck.errors import DomcheckError, ExitCode
from domcheck.output import EnvelopeMeta


def register(
    subparsers: argparse._SubParsersAction, *, parents: list[argparse.ArgumentParser]
) -> None:
    p = subparsers.add_parser(
        "check",
        parents=parents,
        help="Answer a count-prefixed batch (block-list, then queries) with Good/Bad",
    )
    p.set_defaults(_handler=run)
    p.add_argument(
        "input",
        nargs="?",
        default="-",
        help="Batch file, or '-' for stdin (default)",
    )


def _read_input(source: str) -> Batch:
    if source == "-":
        return read_batch(sys.stdin)
    path = Path(source).expanduser()
    try:
        with path.open(encoding="utf-8") as f:
            return read_batch(f)
    except FileNotFoundError as e:
        raise DomcheckError(
            code="not_found",
            message=f"input file not found: {source}",
            exit_code=ExitCode.NOT_FOUND,
            details={"path": str(path)},
        ) from e
    except IsADirectoryError as e:
        raise DomcheckError(
            code="invalid_usage",
            message=f"input path is a directory: {source}",
            exit_code=ExitCode.INVALID_USAGE,
            details={"path": str(path)},
        ) from e


def run(*, args: argparse.Namespace, start: float, warnings: list[str]) -> int:
    batch = _read_input(str(args.input))
    judgement = judge(batch)
    debug(
        args,
        f"{len(batch.blocked)} blocked entries, {len(judgement.blocklist)} after pruning; "
        f"{len(batch.queries)} queries",
    )

    if not wants_json(args):
        write_verdicts(sys.stdout, judgement.verdicts)
        return ExitCode.OK

    data = {
        "verdicts": [
            {
                "domain": domain.name,
                "verdict": verdict(parent is not None),
                "blocked_by": None if parent is None else parent.name,
            }
            for domain, parent in zip(judgement.queries, judgement.matches)
        ],
        "blocked": len(batch.blocked),
        "minimal": [d.name for d in judgement.blocklist],
    }
    meta = EnvelopeMeta(
        duration_ms=int((time.time() - start) * 1000),
        sources=[str(args.input)],
    )
    return envelope_and_exit(
        args=args,
        command="check",
        ok=True,
        data=data,
        warnings=warnings,
        error=None,
        meta=meta,
    )

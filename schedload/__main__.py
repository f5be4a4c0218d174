"""
Command-line launcher.

    python -m schedload [options] DIRECTIVES [SCRIPT [ARGS...]]

Starts the driver in the background, then runs SCRIPT in the foreground
as __main__ (the way `python -m cProfile script.py` does). Without a
script the launcher just waits for the timeline to finish.

Exit status 2 means the directive file could not be read.
"""

from __future__ import annotations

import argparse
import logging
import runpy
import sys
from pathlib import Path

from schedload.config import DriverSettings, get_settings
from schedload.errors import DirectiveFileError
from schedload.logging_setup import configure_logging
from schedload.registry import ResolutionPolicy
from schedload.runtime import start

logger = logging.getLogger("schedload.cli")

EXIT_STARTUP_FAILURE = 2
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m schedload",
        description="Load modules on a schedule through loaders discovered at runtime.",
    )
    parser.add_argument("directives", help="Directive file describing the schedule")
    parser.add_argument("script", nargs="?", help="Script to run in the foreground")
    parser.add_argument("script_args", nargs=argparse.REMAINDER, help="Arguments for the script")
    parser.add_argument(
        "--verbose",
        action="store_true",
        default=None,
        help="Log progress and run the diagnostics reporter",
    )
    parser.add_argument(
        "--reporter-period",
        type=int,
        metavar="MS",
        help="Diagnostics reporter period in milliseconds",
    )
    parser.add_argument(
        "--report-filter",
        metavar="TEXT",
        help="Also report loaded modules whose name contains TEXT",
    )
    parser.add_argument(
        "--policy",
        choices=[policy.value for policy in ResolutionPolicy],
        help="Label spaces consulted when resolving loader labels",
    )
    return parser


def resolve_settings(args: argparse.Namespace) -> DriverSettings:
    """Environment settings with command-line overrides applied."""
    overrides = {
        "verbose": args.verbose,
        "reporter_period_ms": args.reporter_period,
        "report_name_filter": args.report_filter,
        "resolution_policy": args.policy,
    }
    values = get_settings().model_dump()
    values.update({key: value for key, value in overrides.items() if value is not None})
    return DriverSettings(**values)


def _run_script(script: str, script_args: list[str]) -> None:
    path = Path(script)
    sys.argv = [script, *script_args]
    sys.path.insert(0, str(path.resolve().parent))
    runpy.run_path(str(path), run_name="__main__")


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = resolve_settings(args)
    configure_logging(settings.verbose)

    try:
        driver = start(args.directives, settings=settings)
    except DirectiveFileError as e:
        logger.error(f"[cli] {e}")
        return EXIT_STARTUP_FAILURE

    try:
        if args.script:
            _run_script(args.script, args.script_args)
        else:
            driver.wait()
    except KeyboardInterrupt:
        logger.warning("[cli] Interrupted")
        return EXIT_INTERRUPTED
    finally:
        driver.stop(timeout=1.0)
    return 0


if __name__ == "__main__":
    sys.exit(main())

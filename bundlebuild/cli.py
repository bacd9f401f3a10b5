"""CLI entrypoints for bundlebuild commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import POLICY_STRICT, SKIPPABLE_PHASES, load_config
from .logging import configure_logging
from .pipeline import BuildPipeline
from .targets import ConfigurationError, derive_bundles


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Build directory holding .bundlebuild.yml (defaults to current directory).",
    )
    parser.add_argument(
        "--build-file",
        type=Path,
        default=None,
        help="Optimizer build profile passed to r.js -o (defaults to orion.build.js).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bundlebuild",
        description="Optimize page modules across bundles and publish the results in place.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser(
        "run",
        help="Stage bundles, optimize every target, rewrite HTML and publish.",
    )
    _add_verbose_option(run_parser, suppress_default=True)
    _add_path_argument(run_parser)
    run_parser.add_argument(
        "--strict",
        action="store_true",
        help="Stop after the first phase with failures and exit non-zero.",
    )
    run_parser.add_argument(
        "--skip",
        action="append",
        choices=SKIPPABLE_PHASES,
        default=[],
        help="Skip a phase (repeatable).",
    )
    run_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Log the commands that would run without executing them.",
    )
    run_parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write the build log to this file.",
    )

    targets_parser = subparsers.add_parser(
        "targets",
        help="List optimize targets and the bundles they reference.",
    )
    _add_verbose_option(targets_parser, suppress_default=True)
    _add_path_argument(targets_parser)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for bundlebuild commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose),
        log_file=getattr(args, "log_file", None),
    )

    try:
        config = load_config(
            Path(args.path),
            build_file=args.build_file,
            failure_policy=POLICY_STRICT if getattr(args, "strict", False) else None,
            skip=getattr(args, "skip", None),
        )
        pipeline = BuildPipeline(config, dry_run=bool(getattr(args, "dry_run", False)))
        if args.command == "targets":
            targets = pipeline.load_targets()
        else:
            report = pipeline.run()
    except ConfigurationError as exc:
        parser.exit(1, f"{exc}\n")
    except Exception as exc:  # pragma: no cover - defensive guard
        parser.exit(1, f"bundlebuild {args.command} failed: {exc}\nRun with --verbose for more details.\n")

    if args.command == "targets":
        for target in targets:
            print(f"{target.bundle}\t{target.module_name}")
        print(f"bundles: {', '.join(derive_bundles(targets)) or '(none)'}")
        return

    failures = report.failures
    if report.aborted_after is not None:
        parser.exit(
            1,
            f"Build stopped after the {report.aborted_after} phase with {len(failures)} failure(s).\n",
        )
    if failures:
        print(f"{len(failures)} step(s) failed; see the log above.")
    print("Done.")


if __name__ == "__main__":
    main(sys.argv[1:])

from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Sequence
from pathlib import Path

from zip_standardizer.config import DEFAULT_OUTPUT_NAME, configure_logging, get_default_threshold
from zip_standardizer.models import Cancelled, StandardizerError, SubmissionGroup
from zip_standardizer.services import (
    analyze_with_reader,
    build_preset_template,
    list_presets,
    open_reader,
    rebuild,
)
from zip_standardizer.utils import display_groups, format_bytes


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="zip-standardizer",
        description="Check submitted projects against a template and repackage them.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def _add_analysis_arguments(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("archive", type=Path, help="ZIP archive (or directory) to scan")
        sub.add_argument("--preset", required=True, choices=list_presets())
        sub.add_argument("--student-root", default="", help="Folder holding the submissions")
        sub.add_argument("--projects", type=int, default=1, help="Projects expected per student")
        sub.add_argument("--threshold", type=float, default=None, help="Minimum score (0-100)")

    analyze_parser = subparsers.add_parser("analyze", help="List detected projects")
    _add_analysis_arguments(analyze_parser)
    analyze_parser.add_argument("-v", "--verbose", action="store_true")

    rebuild_parser = subparsers.add_parser("rebuild", help="Repackage detected projects")
    _add_analysis_arguments(rebuild_parser)
    rebuild_parser.add_argument("output", type=Path, nargs="?", default=Path(DEFAULT_OUTPUT_NAME))

    return parser


def _analyze(args: argparse.Namespace) -> list[SubmissionGroup]:
    threshold = get_default_threshold() if args.threshold is None else args.threshold
    return asyncio.run(
        analyze_with_reader(
            build_preset_template(args.preset),
            open_reader(args.archive),
            student_root_path=args.student_root,
            projects_per_student=args.projects,
            similarity_threshold=threshold,
        )
    )


def _print_progress(ratio: float, current_path: str | None) -> None:
    suffix = f" {current_path}" if current_path else ""
    print(f"\r   {ratio:6.1%}{suffix[:60]:<61}", end="", flush=True)


def run_cli(argv: Sequence[str] | None = None) -> int:
    """Run the analyze / rebuild commands.

    Returns:
        Exit code (0 for success, 1 for failure).
    """
    args = build_parser().parse_args(argv)
    configure_logging()

    try:
        groups = _analyze(args)
    except (StandardizerError, FileNotFoundError, ValueError) as exc:
        print(f"\n❌ Error: {exc}")
        return 1

    display_groups(groups, verbose=getattr(args, "verbose", False))

    if args.command == "analyze":
        return 0

    if args.archive.is_dir():
        print("\n❌ Error: rebuilding requires a ZIP archive as source")
        return 1

    print(f"\n📦 Writing: {args.output}")
    try:
        data = rebuild(
            args.archive.read_bytes(),
            groups,
            output_name=args.output.name,
            on_progress=_print_progress,
        )
    except Cancelled:
        print("\n⚠️  Rebuild cancelled.")
        return 1
    except StandardizerError as exc:
        print(f"\n❌ Error: {exc}")
        return 1

    args.output.write_bytes(data)
    print(f"\n✅ Done ({format_bytes(len(data))})")
    return 0


def main() -> int:
    """Entry point for the CLI application."""
    try:
        return run_cli()
    except KeyboardInterrupt:
        print("\n\n⚠️  Interrupted by user. Exiting.")
        return 130


if __name__ == "__main__":
    sys.exit(main())

"""
Command-line interface for batch change requests.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from ..exceptions import LiftEditorError
from ..repository import LiftRepository
from .executor import execute_change_request
from .parser import ParseError, load_change_request
from .schema import BatchResult, ChangeRequest, ValidationResult
from .validator import validate_change_request


def main(argv: Optional[list] = None) -> int:
    """Main entry point for lift-batch CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
        )

    return args.func(args)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="lift-batch",
        description="Batch change request tool for LIFT lexicon files",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s (lift-editor)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log progress to stderr",
    )

    subparsers = parser.add_subparsers(title="commands", dest="command")

    # validate command
    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate a change request file",
    )
    validate_parser.add_argument(
        "file",
        type=Path,
        help="YAML file containing change request",
    )
    validate_parser.add_argument(
        "--lift",
        type=Path,
        help="LIFT file to check references against (overrides the request)",
    )
    validate_parser.add_argument(
        "--no-check-refs",
        action="store_true",
        help="Skip referential validation (entry and sense existence checks)",
    )
    validate_parser.set_defaults(func=cmd_validate)

    # apply command
    apply_parser = subparsers.add_parser(
        "apply",
        help="Apply changes from a request file",
    )
    apply_parser.add_argument(
        "file",
        type=Path,
        help="YAML file containing change request",
    )
    apply_parser.add_argument(
        "--lift",
        type=Path,
        help="LIFT file to modify (overrides the request)",
    )
    apply_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Simulate execution without making changes",
    )
    apply_parser.add_argument(
        "--yes", "-y",
        action="store_true",
        help="Skip confirmation prompt",
    )
    apply_parser.set_defaults(func=cmd_apply)

    return parser


def _load(args: argparse.Namespace) -> Optional[ChangeRequest]:
    try:
        request = load_change_request(args.file)
    except ParseError as e:
        print(f"\n  [PARSE ERROR] {e}")
        if e.line:
            print(f"               Line: {e.line}")
        return None
    except FileNotFoundError as e:
        print(f"\n  [ERROR] {e}")
        return None

    if args.lift:
        request.lift_file = args.lift
    return request


def _open(path: Path) -> Optional[LiftRepository]:
    try:
        return LiftRepository(path)
    except LiftEditorError as e:
        print(f"\n  [ERROR] Cannot open {path}: {e}")
        return None


def cmd_validate(args: argparse.Namespace) -> int:
    """Handle validate command."""
    print(f"\nValidating {args.file}...")

    request = _load(args)
    if request is None:
        return 1

    print(f"  LIFT file: {request.lift_file or '(none)'}")
    print(f"  Changes: {len(request.changes)}")

    repository = None
    if not args.no_check_refs:
        if request.lift_file is None:
            print("\n  [ERROR] No LIFT file given; use --lift or --no-check-refs")
            return 1
        repository = _open(request.lift_file)
        if repository is None:
            return 1

    try:
        result = validate_change_request(request, repository)
    finally:
        if repository is not None:
            repository.close()

    print("\nValidation Results:")
    _print_validation_result(result)

    if result.is_valid:
        print("\nValidation passed!")
        return 0
    print(f"\nFound {result.error_count} error(s), {result.warning_count} warning(s)")
    return 1


def cmd_apply(args: argparse.Namespace) -> int:
    """Handle apply command."""
    print(f"\nLoading {args.file}...")

    request = _load(args)
    if request is None:
        return 1
    if request.lift_file is None:
        print("\n  [ERROR] No LIFT file given; use --lift")
        return 1

    print(f"  LIFT file: {request.lift_file}")
    print(f"  Changes: {len(request.changes)}")
    if request.description:
        print(f"  Description: \"{request.description}\"")

    repository = _open(request.lift_file)
    if repository is None:
        return 1

    with repository:
        print("\nValidating...")
        validation = validate_change_request(request, repository)

        if not validation.is_valid:
            print("\nValidation failed:")
            _print_validation_result(validation)
            print(f"\nFound {validation.error_count} error(s). Fix errors before applying.")
            return 1

        if validation.warning_count > 0:
            print("\nWarnings:")
            _print_validation_result(validation, warnings_only=True)

        # Confirm unless --yes or --dry-run
        if args.dry_run:
            print("\n[DRY RUN] Simulating execution...")
        elif not args.yes:
            response = input(
                f"\nApply {len(request.changes)} changes to {request.lift_file}? [y/N] "
            )
            if response.lower() not in ("y", "yes"):
                print("Aborted.")
                return 1

        print(f"\n{'Simulating' if args.dry_run else 'Applying'} changes...")
        try:
            result = execute_change_request(request, repository, dry_run=args.dry_run)
        except LiftEditorError as e:
            print(f"\n  [ERROR] {e}")
            return 1

    _print_batch_result(result)

    if result.failure_count > 0:
        return 1
    return 0


def _print_validation_result(
    result: ValidationResult,
    warnings_only: bool = False,
) -> None:
    """Print validation errors and warnings."""
    issues = [] if warnings_only else [("ERROR", e) for e in result.errors]
    issues += [("WARNING", w) for w in result.warnings]
    for label, issue in issues:
        where = f" (line {issue.line_number})" if issue.line_number else ""
        print(f"  [{label}] #{issue.index + 1}{where} {issue.operation}: {issue.message}")
    if not issues:
        print("  No issues found.")


def _print_batch_result(result: BatchResult) -> None:
    """Print the outcome of each change and the totals."""
    for change in result.changes:
        status = "OK" if change.success else "FAILED"
        target = f" [{change.target}]" if change.target else ""
        print(f"  [{status}] #{change.index + 1} {change.operation}{target}: {change.message}")

    print(
        f"\nApplied {result.success_count}/{result.total_count} changes "
        f"({result.failure_count} failed), saved {result.saved_count} entries "
        f"in {result.duration_seconds:.2f}s"
    )


if __name__ == "__main__":
    sys.exit(main())

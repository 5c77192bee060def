#!/usr/bin/env python3
"""
FromSuper CLI

Build-time command line for generating conversions.

Usage:
    # Targets come from fromsuper.yaml (auto-detected from the current
    # directory upwards) unless an INPUT OUTPUT pair is given.

    fromsuper generate                      # write every configured target
    fromsuper generate --check-only         # fail if outputs are stale (for CI)
    fromsuper generate models.py out.py     # one-off target, language from suffix
    fromsuper inspect models.py             # show resolved mappings per schema
"""

import argparse
import logging
import sys
from pathlib import Path

from ..build import build_target, check_output, write_file
from ..config import CONFIG_FILENAME, ConfigError, TargetConfig, load_config
from ..engine import GenerationError, generate
from ..frontend import DeclarationSyntaxError, infer_language, read_declarations


def _find_project_root(start: Path | None = None) -> Path:
    """Walk up from start directory to find fromsuper.yaml."""
    current = start or Path.cwd()
    for candidate in [current] + list(current.parents):
        if (candidate / CONFIG_FILENAME).exists():
            return candidate
    return current  # fallback to cwd


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.ERROR,
        format="%(levelname)s %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# generate
# ---------------------------------------------------------------------------


def _targets_from_args(args: argparse.Namespace) -> tuple[list[TargetConfig], str]:
    project_root = Path(args.project_root) if args.project_root else _find_project_root()
    config = load_config(project_root, args.config)
    marker = args.marker or config.marker

    if args.input:
        if not args.output:
            raise ConfigError("OUTPUT is required when INPUT is given")
        language = args.language or infer_language(args.input)
        target = TargetConfig(
            input=Path(args.input),
            output=Path(args.output),
            language=language,
            imports=list(args.imports or []),
        )
        return [target], marker

    return config.targets, marker


def cmd_generate(args: argparse.Namespace) -> int:
    """Generate (or check) every target."""
    try:
        targets, marker = _targets_from_args(args)
    except (ConfigError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if not targets:
        print(f"No targets configured. Add some to {CONFIG_FILENAME} or pass INPUT OUTPUT.")
        return 1

    print("=" * 60)
    print("FromSuper Conversion Generator")
    print("=" * 60)

    failed = False
    for index, target in enumerate(targets, start=1):
        print(f"\n[{index}/{len(targets)}] {target.input} -> {target.output} ({target.language})")

        try:
            result = build_target(target, marker=marker)
        except (DeclarationSyntaxError, OSError) as exc:
            print(f"  ERROR: {exc}", file=sys.stderr)
            failed = True
            continue

        print(f"  Found {result.schema_count} target schema(s)")
        for artifact in result.report.artifacts:
            print(f"  {artifact.target_name}: {artifact.entry_point} from {artifact.source}")
        for diagnostic in result.report.diagnostics:
            print(f"  ERROR: {diagnostic.format()}", file=sys.stderr)
        if not result.ok:
            failed = True

        if args.check_only:
            problem = check_output(result)
            if problem:
                print(f"  ERROR: {problem}", file=sys.stderr)
                print("  Run: fromsuper generate", file=sys.stderr)
                failed = True
            else:
                print("  OK: generated file matches committed version")
        else:
            write_file(target.output, result.content)
            print(f"  Wrote {target.output}")

    print("\n" + "=" * 60)
    print("Generation failed" if failed else "Generation complete")
    print("=" * 60)
    return 1 if failed else 0


# ---------------------------------------------------------------------------
# inspect
# ---------------------------------------------------------------------------


def cmd_inspect(args: argparse.Namespace) -> int:
    """Show how each marked schema in one file resolves."""
    try:
        declarations = read_declarations(args.input, language=args.language, marker=args.marker)
    except (DeclarationSyntaxError, OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if not declarations:
        print(f"No schemas marked with '{args.marker}' in {args.input}.")
        return 0

    failed = False
    for decl in declarations:
        schema = decl.schema
        print(f"\n{schema.name} ({schema.location})")
        try:
            artifact = generate(schema, decl.directive, decl.field_directives)
        except GenerationError as exc:
            print(f"  ERROR: {exc}", file=sys.stderr)
            failed = True
            continue

        print(f"  Source     : {artifact.source}")
        print(f"  Conversion : {artifact.entry_point} ({artifact.kind.value})")
        if artifact.source.free_params:
            print(f"  Generic in : {', '.join(artifact.source.free_params)}")
        if artifact.lifetime_params:
            print(f"  Lifetimes  : {', '.join(artifact.lifetime_params)}")
        print(f"  {'Field':<20} {'Source Field':<20} {'Unpack':<8} {'Type'}")
        print("  " + "-" * 70)
        for m in artifact.fields:
            print(f"  {m.target_field:<20} {m.source_field:<20} {'yes' if m.unpack else 'no':<8} {m.type}")

    return 1 if failed else 0


# ---------------------------------------------------------------------------
# Main CLI
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="fromsuper",
        description="Generate conversions from wide source records to narrow target records",
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    # generate
    p_generate = subparsers.add_parser("generate", parents=[common], help="Generate conversion code")
    p_generate.add_argument("input", nargs="?", help="Declaration file (overrides configured targets)")
    p_generate.add_argument("output", nargs="?", help="Generated file to write")
    p_generate.add_argument("--config", metavar="PATH", help=f"Path to {CONFIG_FILENAME}")
    p_generate.add_argument(
        "--project-root",
        metavar="PATH",
        help=f"Root for relative paths (default: auto-detect from {CONFIG_FILENAME})",
    )
    p_generate.add_argument("--language", choices=["python", "rust"], help="Input language")
    p_generate.add_argument("--marker", help="Directive marker name (default: fromsuper)")
    p_generate.add_argument(
        "--import",
        dest="imports",
        action="append",
        metavar="LINE",
        help="Import line for the generated file (repeatable)",
    )
    p_generate.add_argument(
        "--check-only",
        action="store_true",
        help="Check if generated files match committed versions (for CI)",
    )
    p_generate.set_defaults(func=cmd_generate)

    # inspect
    p_inspect = subparsers.add_parser("inspect", parents=[common], help="Show resolved mappings for a file")
    p_inspect.add_argument("input", help="Declaration file")
    p_inspect.add_argument("--language", choices=["python", "rust"], help="Input language")
    p_inspect.add_argument("--marker", default="fromsuper", help="Directive marker name")
    p_inspect.set_defaults(func=cmd_inspect)

    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()

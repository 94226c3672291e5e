#!/usr/bin/env python3
"""
Run a multi-seed (or extended-sequence) parity validation.

Drives the implementation under test (an in-process engine factory given
as "module:callable") and the reference interpreter through the same
command lists, then prints a text, JSON or Markdown summary.

Usage:
  python scripts/run_parity_validation.py --engine mygame.engine:create_engine \
      [--config config/parity.yaml] [--seeds 1,2] [--extended N] \
      [--sequences DIR] [--format text|json|markdown] [--verbose]

Exit codes: 0 passed, 1 failed, 2 configuration error.
"""

import argparse
import dataclasses
import importlib
import json
import logging
import sys
from pathlib import Path
from typing import Callable, List, Optional, Sequence

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from transcript_parity.comparison import DiffReporter, TranscriptComparator  # noqa: E402
from transcript_parity.config import load_settings, validate_reference_config  # noqa: E402
from transcript_parity.exceptions import ConfigurationError, SequenceParseError  # noqa: E402
from transcript_parity.recording import EngineRecorder, ReferenceRecorder  # noqa: E402
from transcript_parity.validation import ParityValidator, SequenceLoader  # noqa: E402

EXIT_PASSED = 0
EXIT_FAILED = 1
EXIT_CONFIG_ERROR = 2


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the validation script."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def parse_seeds(raw: str) -> List[int]:
    try:
        return [int(part) for part in raw.split(",") if part.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"seeds must be comma-separated integers: {raw!r}")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Validate behavioral parity against the reference interpreter"
    )
    parser.add_argument(
        "--engine",
        required=True,
        help="Engine factory for the implementation under test, as module:callable",
    )
    parser.add_argument("--config", help="YAML settings file")
    parser.add_argument("--seeds", type=parse_seeds, help="Comma-separated seeds (overrides config)")
    parser.add_argument(
        "--extended",
        type=int,
        metavar="N",
        help="Run one extended sequence of at least N commands (first seed)",
    )
    parser.add_argument("--sequences", help="Directory of command-sequence files")
    parser.add_argument(
        "--format",
        choices=("text", "json", "markdown"),
        default="text",
        help="Output format (default: text)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    return parser.parse_args(argv)


def load_engine_factory(spec: str) -> Callable:
    """
    Import "package.module:callable".

    Raises:
        ConfigurationError: If the spec is malformed or cannot be imported
    """
    module_name, _, attribute = spec.partition(":")
    if not module_name or not attribute:
        raise ConfigurationError(f"Engine must be given as module:callable, got {spec!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"Cannot import engine module {module_name!r}: {e}") from e
    try:
        factory = getattr(module, attribute)
    except AttributeError as e:
        raise ConfigurationError(f"{module_name!r} has no attribute {attribute!r}") from e
    if not callable(factory):
        raise ConfigurationError(f"{spec!r} is not callable")
    return factory


def build_validator(args: argparse.Namespace) -> ParityValidator:
    """Resolve settings, sequences and recorders into a validator."""
    logger = logging.getLogger(__name__)
    settings = load_settings(args.config)

    errors, warnings = validate_reference_config(settings.reference)
    for warning in warnings:
        logger.warning(warning)
    if errors:
        raise ConfigurationError("; ".join(errors))

    parity = settings.parity
    sequence_dir = args.sequences or settings.sequence_dir
    if sequence_dir:
        sequences = SequenceLoader().load_directory(sequence_dir)
        parity = dataclasses.replace(parity, command_sequences=tuple(sequences))
    if args.seeds:
        parity = dataclasses.replace(parity, seeds=tuple(args.seeds))

    comparator = TranscriptComparator(parity.comparison, profile=settings.profile)
    return ParityValidator(
        parity,
        implementation=EngineRecorder(load_engine_factory(args.engine)),
        reference=ReferenceRecorder(settings.reference),
        comparator=comparator,
    )


def run_extended(validator: ParityValidator, args: argparse.Namespace) -> int:
    seed = validator.config.seeds[0]
    result = validator.run_extended_sequence(seed, args.extended)

    if args.format == "json":
        print(json.dumps(result.to_dict(), indent=2, default=str))
    else:
        print(f"Extended sequence (seed {result.seed}): {result.command_count} commands")
        print(f"Differences: {len(result.differences)}")
        print(f"Logic differences: {'yes' if result.has_logic_differences else 'no'}")
        if not result.reference_available:
            print(f"NOTE: {result.error}")
        elif result.error:
            print(f"ERROR: {result.error}")

    passed = result.success and not result.has_logic_differences
    return EXIT_PASSED if passed else EXIT_FAILED


def run_seeds(validator: ParityValidator, args: argparse.Namespace) -> int:
    results = validator.run_with_seeds()
    reporter = DiffReporter()

    if args.format == "json":
        print(json.dumps(results.to_dict(), indent=2, default=str))
    elif args.format == "markdown":
        print(reporter.generate_aggregate_summary(results))
    else:
        print(results.summary)
        print()
        for line in reporter.generate_seed_lines(results):
            print(line)

    return EXIT_PASSED if results.passed else EXIT_FAILED


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(verbose=args.verbose)
    logger = logging.getLogger(__name__)

    try:
        validator = build_validator(args)
        if args.extended is not None:
            return run_extended(validator, args)
        return run_seeds(validator, args)
    except (ConfigurationError, SequenceParseError) as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIG_ERROR


if __name__ == "__main__":
    sys.exit(main())

"""
Command-line runner for hmscript programs.

Usage:
    python -m hmscript [FILE] [-v] [--seed N] [--max-iterations N]

FILE defaults to ``program.hm`` in the current directory.

Exit status:
    0  program ran to completion
    1  source could not be loaded or has no main class
    2  run aborted by a numeric conversion failure
    3  a while loop exceeded --max-iterations
"""

import argparse
import logging
import sys

from hmscript import run_program
from hmscript.interpret import DEFAULT_SOURCE, ConversionError, IterationLimitExceeded


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hmscript",
        description="Run an hmscript program.",
    )
    parser.add_argument(
        "file",
        nargs="?",
        default=DEFAULT_SOURCE,
        help=f"Program source (default: {DEFAULT_SOURCE})",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log interpreter activity to stderr",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for random.rng()",
    )
    parser.add_argument(
        "--max-iterations",
        type=int,
        default=None,
        help="Abort a while loop after this many passes",
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        interp = run_program(
            args.file,
            seed=args.seed,
            max_iterations=args.max_iterations,
        )
    except ConversionError as e:
        sys.stdout.flush()
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except IterationLimitExceeded as e:
        sys.stdout.flush()
        print(f"Error: {e}", file=sys.stderr)
        return 3

    return 0 if interp is not None else 1


if __name__ == "__main__":
    sys.exit(main())

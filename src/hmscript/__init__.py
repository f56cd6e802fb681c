"""hmscript: a substring-driven interpreter for ``.hm`` programs.

Entry point::

    from hmscript import run_program

    interp = run_program("program.hm")
    print(interp["total"])
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

from hmscript.interpret import (
    DEFAULT_SOURCE,
    ConversionError,
    HmScriptError,
    Interpreter,
    SourceError,
)

logger = logging.getLogger(__name__)


def run_program(
    path: str = DEFAULT_SOURCE,
    *,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
    seed: int | None = None,
    max_iterations: int | None = None,
) -> Interpreter | None:
    """Load and run a program file.

    Parameters
    ----------
    path
        Source file (default ``program.hm``).
    stdin, stdout
        Streams for ``input`` / ``print``.
    stderr
        Where diagnostics are written. Defaults to ``sys.stderr``.
    seed
        Seed for ``random.rng()``.
    max_iterations
        Per-``while`` iteration cap; unbounded by default.

    Returns
    -------
    Interpreter or None
        The finished interpreter, or None when the source could not be
        loaded (a diagnostic has been written and nothing ran).
        ConversionError propagates: it aborts the run.
    """
    err = stderr if stderr is not None else sys.stderr
    try:
        interp = Interpreter.from_file(
            path,
            stdin=stdin,
            stdout=stdout,
            seed=seed,
            max_iterations=max_iterations,
        )
    except SourceError as exc:
        logger.debug("%s: %s", path, exc)
        err.write(f"Error: {exc}\n")
        return None

    interp.run()
    return interp


__all__ = [
    "ConversionError",
    "HmScriptError",
    "Interpreter",
    "SourceError",
    "run_program",
]

"""Interpreter: the user-facing object for one program run.

Wires a loaded ``Program`` to a fresh environment, evaluator and block
executor, and provides item-style access to program variables.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TextIO

from hmscript.model.program import Program
from hmscript.model.values import Value

from ._builtins import RuntimeIO
from ._environment import Environment
from ._evaluator import ExpressionEvaluator
from ._executor import BlockExecutor
from ._source import parse_program, read_source


class Interpreter:
    """Runs the main class body of a program.

    Parameters
    ----------
    program : Program
        Result of the source pre-pass.
    stdin, stdout : TextIO, optional
        Streams for ``input`` / ``print``. Default to the process streams.
    seed : int, optional
        Seed for ``random.rng()``.
    max_iterations : int, optional
        Per-``while`` iteration cap; unbounded when None.
    """

    def __init__(
        self,
        program: Program,
        *,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
        seed: int | None = None,
        max_iterations: int | None = None,
    ) -> None:
        self.program = program
        self.io = RuntimeIO(stdin=stdin, stdout=stdout, seed=seed)
        self.env = Environment()
        self.evaluator = ExpressionEvaluator(self.env, program.classes, self.io)
        self.executor = BlockExecutor(self.evaluator, max_iterations=max_iterations)

    @classmethod
    def from_source(cls, text: str, path: str = "<string>", **kwargs) -> Interpreter:
        """Build an interpreter from program text. Raises SourceError."""
        return cls(parse_program(text.splitlines(), path=path), **kwargs)

    @classmethod
    def from_file(cls, path: str, **kwargs) -> Interpreter:
        """Build an interpreter from a source file. Raises SourceError."""
        return cls(parse_program(read_source(path), path=path), **kwargs)

    # -----------------------------------------------------------------------
    # Execution
    # -----------------------------------------------------------------------

    def run(self) -> None:
        """Execute the main class body."""
        self.executor.execute(self.program.main_body)

    def execute(self, lines: str | Sequence[str]) -> None:
        """Execute extra source lines against the current environment."""
        if isinstance(lines, str):
            lines = lines.splitlines()
        self.executor.execute(lines)

    def evaluate(self, expr: str) -> Value:
        return self.evaluator.evaluate(expr)

    # -----------------------------------------------------------------------
    # Variable access
    # -----------------------------------------------------------------------

    @property
    def variables(self) -> dict[str, Value]:
        """Snapshot of every bound variable."""
        return self.env.snapshot()

    def __contains__(self, name: str) -> bool:
        return name in self.env

    def __getitem__(self, name: str) -> Value:
        if name not in self.env:
            raise KeyError(
                f"no variable {name!r}. Available: {self.env.names()}"
            )
        return self.env.get(name)

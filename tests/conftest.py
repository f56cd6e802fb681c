"""Shared test helpers for the hmscript test suite."""

import io
import textwrap

from hmscript.interpret import (
    Environment,
    ExpressionEvaluator,
    Interpreter,
    RuntimeIO,
    StatementDispatcher,
)
from hmscript.interpret._values import make_int, make_list, make_str


def make_evaluator(stdin: str = "", classes=None, seed: int = 0, **bindings):
    """Evaluator over a fresh environment seeded with *bindings*.

    ``print`` output is collected in ``evaluator.io.stdout`` (a StringIO).
    """
    runtime = RuntimeIO(stdin=io.StringIO(stdin), stdout=io.StringIO(), seed=seed)
    return ExpressionEvaluator(Environment(bindings), classes=classes, io=runtime)


def make_dispatcher(stdin: str = "", classes=None, **bindings) -> StatementDispatcher:
    return StatementDispatcher(make_evaluator(stdin=stdin, classes=classes, **bindings))


def output_of(evaluator: ExpressionEvaluator) -> str:
    return evaluator.io.stdout.getvalue()


def program(body: str, *, classes: str = "", main: str = "Main") -> str:
    """Wrap statement lines in a main class declaration."""
    return (
        f"${main}\n"
        f"{textwrap.dedent(classes)}\n"
        f"class {main} {{\n"
        f"{textwrap.dedent(body)}\n"
        f"}}\n"
    )


def run(body: str, *, classes: str = "", stdin: str = "", **kwargs):
    """Run *body* as a main class; return ``(interpreter, stdout text)``."""
    out = io.StringIO()
    interp = Interpreter.from_source(
        program(body, classes=classes),
        stdin=io.StringIO(stdin),
        stdout=out,
        seed=0,
        **kwargs,
    )
    interp.run()
    return interp, out.getvalue()


def ints(*values):
    """Shorthand for a list value of ints."""
    return make_list([make_int(v) for v in values])


def strs(*values):
    return make_list([make_str(v) for v in values])

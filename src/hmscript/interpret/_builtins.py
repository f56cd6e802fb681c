"""Builtin functions and pseudo-namespaces for the interpreter.

Each builtin is a plain function ``(args, io) -> Value`` where ``args`` are
already-evaluated argument values and ``io`` is the run's ``RuntimeIO``.
"""

from __future__ import annotations

import math
import random
import sys
from collections.abc import Callable
from typing import TextIO

from hmscript.model.values import NONE, Value, ValueKind

from ._values import (
    as_number,
    make_bool,
    make_float,
    make_int,
    make_str,
    parse_float,
    parse_int,
    to_bool,
    to_string,
)


class RuntimeIO:
    """Standard streams and random source for one program run.

    Parameters
    ----------
    stdin, stdout : TextIO, optional
        Streams used by ``input`` and ``print``. Default to the process
        streams at construction time.
    seed : int, optional
        Seed for ``random.rng()``. ``None`` seeds from system entropy.
    """

    def __init__(
        self,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
        seed: int | None = None,
    ) -> None:
        self.stdin = stdin if stdin is not None else sys.stdin
        self.stdout = stdout if stdout is not None else sys.stdout
        self.rng = random.Random(seed)

    def write(self, text: str) -> None:
        self.stdout.write(text)
        self.stdout.flush()

    def read_line(self) -> str:
        """Read one line without its terminator. EOF reads as ""."""
        return self.stdin.readline().rstrip("\r\n")


Builtin = Callable[[list[Value], RuntimeIO], Value]


# ---------------------------------------------------------------------------
# I/O
# ---------------------------------------------------------------------------

def _print(args: list[Value], io: RuntimeIO) -> Value:
    """print(a, b, ...): no separator, no trailing newline."""
    for arg in args:
        io.write(to_string(arg))
    return NONE


def _input(args: list[Value], io: RuntimeIO) -> Value:
    return make_str(io.read_line())


# ---------------------------------------------------------------------------
# Conversions
# ---------------------------------------------------------------------------

def _int(args: list[Value], io: RuntimeIO) -> Value:
    """int(x): strings are parsed (fatal on bad text), floats truncate."""
    if not args:
        return make_int(0)
    arg = args[0]
    if arg.kind == ValueKind.STRING:
        return make_int(parse_int(arg.value))
    if arg.kind == ValueKind.FLOAT:
        if math.isnan(arg.value) or math.isinf(arg.value):
            return make_int(0)
        return make_int(int(arg.value))
    if arg.kind == ValueKind.BOOL:
        return make_int(1 if arg.value else 0)
    if arg.kind == ValueKind.INT:
        return make_int(arg.value)
    return make_int(0)


def _float(args: list[Value], io: RuntimeIO) -> Value:
    if not args:
        return make_float(0.0)
    arg = args[0]
    if arg.kind in (ValueKind.INT, ValueKind.FLOAT):
        return make_float(arg.value)
    if arg.kind == ValueKind.STRING:
        return make_float(parse_float(arg.value))
    if arg.kind == ValueKind.BOOL:
        return make_float(1.0 if arg.value else 0.0)
    return make_float(0.0)


def _bool(args: list[Value], io: RuntimeIO) -> Value:
    return make_bool(to_bool(args[0]) if args else False)


# ---------------------------------------------------------------------------
# Math
# ---------------------------------------------------------------------------

def _round_half_away(value: float) -> float:
    if math.isnan(value) or math.isinf(value):
        return value
    return math.copysign(math.floor(abs(value) + 0.5), value)


def _round(args: list[Value], io: RuntimeIO) -> Value:
    """round(value, digits): half away from zero at the given precision."""
    if len(args) < 2:
        return NONE
    digits = args[1].value if args[1].kind == ValueKind.INT else 0
    multiplier = 10.0 ** digits
    return make_float(_round_half_away(as_number(args[0]) * multiplier) / multiplier)


def _ceil(args: list[Value], io: RuntimeIO) -> Value:
    if not args:
        return NONE
    value = float(as_number(args[0]))
    if math.isnan(value) or math.isinf(value):
        return make_float(value)
    return make_float(math.ceil(value))


BUILTIN_FUNCTIONS: dict[str, Builtin] = {
    "print": _print,
    "input": _input,
    "int": _int,
    "float": _float,
    "bool": _bool,
    "round": _round,
    "ceil": _ceil,
}


# ---------------------------------------------------------------------------
# Pseudo-namespaces (``math.sqrt(x)``, ``random.rng()``)
# ---------------------------------------------------------------------------

def _math_sqrt(args: list[Value], io: RuntimeIO) -> Value:
    value = float(as_number(args[0])) if args else 0.0
    if value < 0:
        return make_float(math.nan)
    return make_float(math.sqrt(value))


def _random_rng(args: list[Value], io: RuntimeIO) -> Value:
    """random.rng(): 0 or 1."""
    return make_int(io.rng.randint(0, 1))


NAMESPACE_FUNCTIONS: dict[tuple[str, str], Builtin] = {
    ("math", "sqrt"): _math_sqrt,
    ("random", "rng"): _random_rng,
}

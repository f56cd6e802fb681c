"""Value system for the interpreter.

Provides errors, literal parsing, display/truth conversions and the
numeric coercion rules shared by the evaluator and the dispatcher.
"""

from __future__ import annotations

import re

from hmscript.model.values import (
    NONE,
    BoolValue,
    FloatValue,
    IntValue,
    ListValue,
    StringValue,
    Value,
    ValueKind,
)


class HmScriptError(Exception):
    """Base class for interpreter errors."""


class ConversionError(HmScriptError):
    """Numeric text could not be converted. Aborts the run.

    ``line`` is the source statement being executed, filled in by the
    block executor.
    """

    def __init__(self, message: str, line: str | None = None):
        super().__init__(message if line is None else f"{message} in {line!r}")
        self.line = line


class SourceError(HmScriptError):
    """The program source could not be loaded or has no main class."""


class IterationLimitExceeded(HmScriptError):
    """A ``while`` loop ran past the configured iteration limit."""


# ---------------------------------------------------------------------------
# Literal patterns
# ---------------------------------------------------------------------------

INT_LITERAL_RE = re.compile(r"-?[0-9]+")
FLOAT_LITERAL_RE = re.compile(r"-?[0-9]+\.[0-9]+")

_INT_PREFIX_RE = re.compile(r"\s*([+-]?\d+)")
_FLOAT_PREFIX_RE = re.compile(
    r"\s*([+-]?(?:\d+\.?\d*(?:[eE][+-]?\d+)?|\.\d+(?:[eE][+-]?\d+)?|inf(?:inity)?|nan))",
    re.IGNORECASE,
)

INT_MIN = -(2 ** 31)
INT_MAX = 2 ** 31 - 1

_ESCAPES = {"n": "\n", "t": "\t", "\\": "\\", '"': '"'}


# ---------------------------------------------------------------------------
# Constructors
# ---------------------------------------------------------------------------

def wrap_int32(value: int) -> int:
    """Wrap an arbitrary Python int into the signed 32-bit range."""
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value > INT_MAX else value


def make_int(value: int) -> IntValue:
    return IntValue(value=wrap_int32(int(value)))


def make_float(value: float) -> FloatValue:
    return FloatValue(value=float(value))


def make_str(value: str) -> StringValue:
    return StringValue(value=value)


def make_bool(value: bool) -> BoolValue:
    return BoolValue(value=bool(value))


def make_list(items: list[Value] | None = None) -> ListValue:
    return ListValue(items=list(items or []))


# ---------------------------------------------------------------------------
# Numeric text parsing
# ---------------------------------------------------------------------------

def parse_int(text: str) -> int:
    """Parse the leading integer of *text*.

    Leading whitespace and trailing garbage are accepted (``"12ab"`` -> 12).
    No leading digits, or a value outside the 32-bit range, raises
    ConversionError.
    """
    m = _INT_PREFIX_RE.match(text)
    if m is None:
        raise ConversionError(f"invalid integer: {text!r}")
    result = int(m.group(1))
    if not INT_MIN <= result <= INT_MAX:
        raise ConversionError(f"integer out of range: {text!r}")
    return result


def parse_float(text: str) -> float:
    """Parse the leading floating-point number of *text*."""
    m = _FLOAT_PREFIX_RE.match(text)
    if m is None:
        raise ConversionError(f"invalid float: {text!r}")
    return float(m.group(1))


def parse_number_literal(text: str) -> Value | None:
    """Return an int/float value if *text* is a bare numeric literal."""
    if INT_LITERAL_RE.fullmatch(text):
        return IntValue(value=parse_int(text))
    if FLOAT_LITERAL_RE.fullmatch(text):
        return FloatValue(value=parse_float(text))
    return None


def unescape(text: str) -> str:
    r"""Resolve ``\n``, ``\t``, ``\\`` and ``\"``; other escapes are kept verbatim."""
    out = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == "\\" and i + 1 < len(text):
            nxt = text[i + 1]
            out.append(_ESCAPES.get(nxt, ch + nxt))
            i += 2
            continue
        out.append(ch)
        i += 1
    return "".join(out)


# ---------------------------------------------------------------------------
# Conversions
# ---------------------------------------------------------------------------

def to_string(value: Value) -> str:
    """Render the display form of a value."""
    kind = value.kind
    if kind == ValueKind.INT:
        return str(value.value)
    if kind == ValueKind.FLOAT:
        return f"{value.value:f}"
    if kind == ValueKind.STRING:
        return value.value
    if kind == ValueKind.BOOL:
        return "true" if value.value else "false"
    if kind == ValueKind.LIST:
        return "[" + ", ".join(to_string(v) for v in value.items) + "]"
    # MAP / CLASS_INSTANCE / NONE
    return "none"


def to_bool(value: Value) -> bool:
    """Truthiness: nonzero numbers, nonempty strings, true booleans."""
    kind = value.kind
    if kind == ValueKind.BOOL:
        return value.value
    if kind in (ValueKind.INT, ValueKind.FLOAT):
        return value.value != 0
    if kind == ValueKind.STRING:
        return value.value != ""
    return False


def as_number(value: Value) -> float:
    """Numeric view used by math helpers: int/float as is, anything else 0."""
    if value.kind in (ValueKind.INT, ValueKind.FLOAT):
        return value.value
    return 0


def is_numeric(value: Value) -> bool:
    return value.kind in (ValueKind.INT, ValueKind.FLOAT)


# ---------------------------------------------------------------------------
# Binary operations
# ---------------------------------------------------------------------------

def arithmetic(left: Value, op: str, right: Value) -> Value:
    """Apply ``+ - * /`` with the int/float coercion rules.

    int op int stays int (division truncates toward zero, result wraps to
    32 bits). If either side is a float both widen to float. Any other
    pairing, and division by zero, yields none.
    """
    if left.kind == ValueKind.INT and right.kind == ValueKind.INT:
        a, b = left.value, right.value
        if op == "+":
            return make_int(a + b)
        if op == "-":
            return make_int(a - b)
        if op == "*":
            return make_int(a * b)
        if op == "/":
            if b == 0:
                return NONE
            # truncate toward zero
            q = abs(a) // abs(b)
            return make_int(q if (a < 0) == (b < 0) else -q)
        return NONE

    if is_numeric(left) and is_numeric(right):
        a, b = float(left.value), float(right.value)
        if op == "+":
            return make_float(a + b)
        if op == "-":
            return make_float(a - b)
        if op == "*":
            return make_float(a * b)
        if op == "/":
            if b == 0.0:
                return NONE
            return make_float(a / b)
    return NONE


def compare(left: Value, op: str, right: Value) -> BoolValue:
    """Apply a comparison operator. Unsupported pairings yield false."""
    if is_numeric(left) and is_numeric(right):
        a, b = left.value, right.value
        if ValueKind.FLOAT in (left.kind, right.kind):
            a, b = float(a), float(b)
        if op == "==":
            return make_bool(a == b)
        if op == "!=":
            return make_bool(a != b)
        if op == "<":
            return make_bool(a < b)
        if op == ">":
            return make_bool(a > b)
        if op == "<=":
            return make_bool(a <= b)
        if op == ">=":
            return make_bool(a >= b)
    elif left.kind == ValueKind.STRING and right.kind == ValueKind.STRING and op == "==":
        return make_bool(left.value == right.value)
    return make_bool(False)

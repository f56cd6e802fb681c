"""Statement dispatcher: one source line -> at most one environment change.

Shapes are tried in order and the first match wins:

- ``<type> <name> = <expr>``        typed declaration with initializer
- ``<type> <name>``                 typed declaration (default value)
- ``<name> = <expr>``               assignment
- ``<name>.<field> = <expr>``       field assignment on a class instance
- ``<name>[<index>] = <expr>``      element assignment on a list or map
- ``<name>++``                      integer increment
- ``<name> *= <expr>``              integer multiply
- anything containing ``(``         call, result discarded

Everything else, and every shape applied to an unsuitable value, is a no-op.
"""

from __future__ import annotations

import logging
import re

from hmscript.model.values import (
    NONE,
    ListValue,
    MapValue,
    Value,
    ValueKind,
)

from ._evaluator import ExpressionEvaluator
from ._values import make_int, wrap_int32

logger = logging.getLogger(__name__)


TYPED_INIT_RE = re.compile(r"([A-Za-z_]\w*(?:\[\])?)\s+(\w+)\s*=(?!=)\s*(.+)")
TYPED_DECL_RE = re.compile(r"(int|float|str|bool|map)(\[\])?\s+(\w+)")
ASSIGN_RE = re.compile(r"(\w+)\s*=(?!=)\s*(.+)")
_MEMBER_ASSIGN_RE = re.compile(r"(\w+)\.(\w+)\s*=(?!=)\s*(.+)")
_INDEX_ASSIGN_RE = re.compile(r"(\w+)\[(.+)\]\s*=(?!=)\s*(.+)")


def strip_comment(line: str) -> str:
    """Drop everything from the first ``//``."""
    pos = line.find("//")
    return line[:pos] if pos != -1 else line


def declared_default(type_name: str, is_array: bool) -> Value:
    """Default value bound by a declaration without initializer."""
    if is_array:
        return ListValue()
    if type_name == "map":
        return MapValue()
    if type_name == "int":
        return make_int(0)
    return NONE


class StatementDispatcher:
    """Executes single statements against the evaluator's environment."""

    def __init__(self, evaluator: ExpressionEvaluator) -> None:
        self.evaluator = evaluator
        self.env = evaluator.env

    def execute(self, line: str) -> None:
        stmt = strip_comment(line).strip()
        if not stmt:
            return

        m = TYPED_INIT_RE.fullmatch(stmt)
        if m:
            self.env.set(m.group(2), self.evaluator.evaluate(m.group(3)))
            return

        m = TYPED_DECL_RE.fullmatch(stmt)
        if m:
            self.env.set(m.group(3), declared_default(m.group(1), bool(m.group(2))))
            return

        m = ASSIGN_RE.fullmatch(stmt)
        if m:
            self.env.set(m.group(1), self.evaluator.evaluate(m.group(2)))
            return

        m = _MEMBER_ASSIGN_RE.fullmatch(stmt)
        if m:
            self._assign_member(m.group(1), m.group(2), m.group(3))
            return

        m = _INDEX_ASSIGN_RE.fullmatch(stmt)
        if m:
            self._assign_index(m.group(1), m.group(2), m.group(3))
            return

        if "++" in stmt:
            target = self.env.ref(stmt[:stmt.find("++")].strip())
            if target is not None and target.kind == ValueKind.INT:
                target.value = wrap_int32(target.value + 1)
            return

        if "*=" in stmt:
            pos = stmt.find("*=")
            value = self.evaluator.evaluate(stmt[pos + 2:])
            target = self.env.ref(stmt[:pos].strip())
            if (
                target is not None
                and target.kind == ValueKind.INT
                and value.kind == ValueKind.INT
            ):
                target.value = wrap_int32(target.value * value.value)
            return

        if "(" in stmt:
            self.evaluator.call(stmt)
            return

        logger.debug("unrecognized statement ignored: %r", stmt)

    def _assign_member(self, name: str, field: str, expr: str) -> None:
        target = self.env.ref(name)
        if target is None or target.kind != ValueKind.CLASS_INSTANCE:
            return
        target.instance_vars[field] = self.evaluator.evaluate(expr)

    def _assign_index(self, name: str, index_expr: str, expr: str) -> None:
        target = self.env.ref(name)
        if target is None:
            return
        index = self.evaluator.evaluate(index_expr)
        if target.kind == ValueKind.MAP and index.kind == ValueKind.STRING:
            target.items[index.value] = self.evaluator.evaluate(expr)
        elif target.kind == ValueKind.LIST and index.kind == ValueKind.INT:
            i = index.value + len(target.items) if index.value < 0 else index.value
            if 0 <= i < len(target.items):
                target.items[i] = self.evaluator.evaluate(expr)

"""Expression evaluator: substring-driven recursive evaluation.

There is no tokenizer and no expression tree. ``ExpressionEvaluator.evaluate``
classifies the trimmed text by structural signals, tested in a fixed order,
and recurses on substrings. The order of the checks in ``evaluate`` is the
precedence table of the language:

 1. ``"..."`` string literal (unescape, then ``{expr}`` interpolation)
 2. ``true`` / ``false``
 3. integer / decimal literal
 4. list comprehension      (``[`` and `` for ``)
 5. call                    (``(`` and no ``[``)
 6. index / slice / list literal (``[`` and ``]``)
 7. member access           (``.``)
 8. ternary                 (``?`` and ``:``)
 9. `` or `` then `` and ``
10. ``== != <= >=`` then ``< >``
11. ``+ - * /``
12. identifier lookup

Nothing here raises for a malformed or ill-typed expression; those degrade
to none / false. Only numeric text conversion (``ConversionError``) escapes.
"""

from __future__ import annotations

import logging
import re

from hmscript.model.values import (
    NONE,
    ClassDefinition,
    Value,
    ValueKind,
    copy_value,
)

from ._builtins import BUILTIN_FUNCTIONS, NAMESPACE_FUNCTIONS, RuntimeIO
from ._environment import Environment
from ._values import (
    arithmetic,
    compare,
    make_bool,
    make_int,
    make_list,
    make_str,
    parse_int,
    parse_number_literal,
    to_bool,
    to_string,
    unescape,
)

logger = logging.getLogger(__name__)

_INTERPOLATION_RE = re.compile(r"\{([^}]+)\}")

_COMPARISON_OPS = ("==", "!=", "<=", ">=")
_ARITHMETIC_OPS = ("+", "-", "*", "/")


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------

def split_args(text: str) -> list[str]:
    """Split on commas outside string literals, parentheses and brackets."""
    if not text.strip():
        return []
    parts: list[str] = []
    depth = 0
    in_string = False
    current: list[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if in_string:
            current.append(ch)
            if ch == "\\" and i + 1 < len(text):
                current.append(text[i + 1])
                i += 2
                continue
            if ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
            current.append(ch)
        elif ch in "([":
            depth += 1
            current.append(ch)
        elif ch in ")]":
            depth -= 1
            current.append(ch)
        elif ch == "," and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
        i += 1
    parts.append("".join(current))
    return [p.strip() for p in parts]


def loop_var_name(decl: str) -> str:
    """``int i`` -> ``i``; ``i`` -> ``i``. Only the last word is bound."""
    words = decl.split()
    return words[-1] if words else ""


def iteration_items(iterable: Value) -> list[Value]:
    """Items visited when looping over a value.

    int n -> 0..n-1, string -> one-character strings, list -> its elements.
    Any other value iterates nothing.
    """
    if iterable.kind == ValueKind.INT:
        return [make_int(i) for i in range(iterable.value)]
    if iterable.kind == ValueKind.STRING:
        return [make_str(ch) for ch in iterable.value]
    if iterable.kind == ValueKind.LIST:
        return [copy_value(item) for item in iterable.items]
    return []


def _split_point(expr: str, op: str) -> int:
    """First index past 0 where *op* acts as a binary operator, or -1.

    A ``-`` directly after another operator is a sign (``7 / -2``).
    """
    pos = expr.find(op, 1)
    while pos != -1 and op == "-" and expr[:pos].rstrip()[-1:] in ("", *_ARITHMETIC_OPS):
        pos = expr.find(op, pos + 1)
    return pos


def _call_parts(text: str) -> tuple[str, str]:
    """``name(args)`` -> (``name``, ``args``). Missing ``)`` reads to the end."""
    paren = text.find("(")
    close = text.rfind(")")
    inner = text[paren + 1:close] if close > paren else text[paren + 1:]
    return text[:paren].strip(), inner


class ExpressionEvaluator:
    """Evaluates expression text against an Environment.

    Parameters
    ----------
    env : Environment
        The shared variable store. Read and written in place.
    classes : dict[str, ClassDefinition]
        Registry consulted when a call names a declared class.
    io : RuntimeIO
        Streams and random source used by builtins.
    """

    def __init__(
        self,
        env: Environment,
        classes: dict[str, ClassDefinition] | None = None,
        io: RuntimeIO | None = None,
    ) -> None:
        self.env = env
        self.classes = classes if classes is not None else {}
        self.io = io if io is not None else RuntimeIO()

    # -----------------------------------------------------------------------
    # Entry point
    # -----------------------------------------------------------------------

    def evaluate(self, expr: str) -> Value:
        expr = expr.strip()

        if len(expr) >= 2 and expr[0] == '"' and expr[-1] == '"':
            return make_str(self.string_literal(expr))
        if expr == "true":
            return make_bool(True)
        if expr == "false":
            return make_bool(False)

        number = parse_number_literal(expr)
        if number is not None:
            return number

        if "[" in expr and " for " in expr:
            return self._eval_comprehension(expr)
        if "(" in expr and "[" not in expr:
            return self.call(expr)
        if "[" in expr and "]" in expr:
            return self._eval_index(expr)
        if "." in expr:
            return self._eval_member(expr)
        if "?" in expr and ":" in expr:
            return self._eval_ternary(expr)

        pos = expr.find(" or ")
        if pos != -1:
            left = to_bool(self.evaluate(expr[:pos]))
            right = to_bool(self.evaluate(expr[pos + 4:]))
            return make_bool(left or right)
        pos = expr.find(" and ")
        if pos != -1:
            left = to_bool(self.evaluate(expr[:pos]))
            right = to_bool(self.evaluate(expr[pos + 5:]))
            return make_bool(left and right)

        for op in _COMPARISON_OPS:
            pos = expr.find(op)
            if pos > 0:
                return compare(
                    self.evaluate(expr[:pos]), op, self.evaluate(expr[pos + len(op):]),
                )
        for op in ("<", ">"):
            pos = expr.find(op)
            if pos > 0 and (pos + 1 >= len(expr) or expr[pos + 1] != "="):
                return compare(
                    self.evaluate(expr[:pos]), op, self.evaluate(expr[pos + 1:]),
                )

        # Split at the first occurrence past position 0, so chains group
        # to the right: "10 - 2 - 3" is 10 - (2 - 3).
        for op in _ARITHMETIC_OPS:
            pos = _split_point(expr, op)
            if pos != -1 and pos < len(expr) - 1:
                return arithmetic(
                    self.evaluate(expr[:pos]), op, self.evaluate(expr[pos + 1:]),
                )

        return self.env.get(expr)

    # -----------------------------------------------------------------------
    # Strings
    # -----------------------------------------------------------------------

    def string_literal(self, literal: str) -> str:
        """Strip the quotes, resolve escapes, then interpolate."""
        return self.interpolate(unescape(literal[1:-1]))

    def interpolate(self, text: str) -> str:
        """Replace each ``{expr}`` with the string form of its value.

        Scans left to right; substituted text is never rescanned. A ``{``
        without a closing ``}`` and an empty ``{}`` are kept literally.
        """
        pos = 0
        while True:
            m = _INTERPOLATION_RE.search(text, pos)
            if m is None:
                return text
            rendered = to_string(self.evaluate(m.group(1)))
            text = text[:m.start()] + rendered + text[m.end():]
            pos = m.start() + len(rendered)

    # -----------------------------------------------------------------------
    # Comprehension
    # -----------------------------------------------------------------------

    def _eval_comprehension(self, expr: str) -> Value:
        start = expr.find("[")
        end = expr.rfind("]")
        body = expr[start + 1:end] if end > start else expr[start + 1:]
        for_pos = body.find(" for ")
        in_pos = body.find(" in ", for_pos + 1)
        if for_pos == -1 or in_pos == -1:
            return NONE

        output_expr = body[:for_pos].strip()
        var_name = loop_var_name(body[for_pos + 5:in_pos])
        iterable = self.evaluate(body[in_pos + 4:])

        result = make_list()
        with self.env.scoped_binding(var_name):
            for item in iteration_items(iterable):
                self.env.set(var_name, item)
                result.items.append(self.evaluate(output_expr))
        return result

    # -----------------------------------------------------------------------
    # Calls
    # -----------------------------------------------------------------------

    def call(self, expr: str) -> Value:
        """Evaluate *expr* as ``name(args)`` regardless of what else it contains."""
        name, args_text = _call_parts(expr)

        # obj.method(...) goes through member access
        if "." in name:
            return self._eval_member(expr)

        builtin = BUILTIN_FUNCTIONS.get(name)
        if builtin is not None:
            args = [self.evaluate(a) for a in split_args(args_text)]
            return builtin(args, self.io)

        class_def = self.classes.get(name)
        if class_def is not None:
            return class_def.instantiate()

        logger.debug("call to unknown function %r yields none", name)
        return NONE

    # -----------------------------------------------------------------------
    # Index / slice / list literal
    # -----------------------------------------------------------------------

    def _eval_index(self, expr: str) -> Value:
        bracket = expr.find("[")
        prefix = expr[:bracket].strip()
        close = expr.rfind("]")
        inner = expr[bracket + 1:close]

        if not prefix:
            if bracket == 0 and close == len(expr) - 1:
                return make_list([self.evaluate(e) for e in split_args(inner)])
            return NONE

        target = self.env.ref(prefix)
        if target is None:
            if prefix.count("(") != prefix.count(")"):
                return NONE
            target = self.evaluate(prefix)

        if ":" in inner:
            return self._slice(target, inner)
        return self._index(target, self.evaluate(inner))

    def _slice(self, target: Value, inner: str) -> Value:
        if target.kind not in (ValueKind.STRING, ValueKind.LIST):
            return NONE
        parts = [p.strip() for p in inner.split(":")]
        seq = target.value if target.kind == ValueKind.STRING else target.items

        if len(parts) == 3 and parts[0] == "" and parts[1] == "" and parts[2] == "-1":
            picked = seq[::-1]
        else:
            start = parse_int(parts[0]) if parts[0] else 0
            end = parse_int(parts[1]) if parts[1] else len(seq)
            picked = seq[start:end]

        if target.kind == ValueKind.STRING:
            return make_str(picked)
        return make_list([copy_value(v) for v in picked])

    @staticmethod
    def _index(target: Value, index: Value) -> Value:
        if target.kind == ValueKind.MAP:
            if index.kind == ValueKind.STRING and index.value in target.items:
                return copy_value(target.items[index.value])
            return NONE
        if index.kind != ValueKind.INT:
            return NONE
        if target.kind == ValueKind.LIST:
            seq = target.items
        elif target.kind == ValueKind.STRING:
            seq = target.value
        else:
            return NONE

        i = index.value + len(seq) if index.value < 0 else index.value
        if not 0 <= i < len(seq):
            return NONE
        if target.kind == ValueKind.STRING:
            return make_str(seq[i])
        return copy_value(seq[i])

    # -----------------------------------------------------------------------
    # Member access
    # -----------------------------------------------------------------------

    def _eval_member(self, expr: str) -> Value:
        dot = expr.find(".")
        obj_name = expr[:dot].strip()
        member = expr[dot + 1:].strip()

        obj = self.env.ref(obj_name)
        if obj is not None:
            result = self._member_of(obj, member)
            if result is not None:
                return result

        if "(" in member:
            method, args_text = _call_parts(member)
            func = NAMESPACE_FUNCTIONS.get((obj_name, method))
            if func is not None:
                args = [self.evaluate(a) for a in split_args(args_text)]
                return func(args, self.io)

        return NONE

    def _member_of(self, obj: Value, member: str) -> Value | None:
        """Resolve *member* on a bound value, or None if it has no such member."""
        if obj.kind == ValueKind.STRING:
            if "lower" in member:
                return make_str(obj.value.lower())
            if "upper" in member:
                return make_str(obj.value.upper())
            if member in ("len", "len()"):
                return make_int(len(obj.value))
            return None

        if obj.kind == ValueKind.LIST:
            if member in ("len", "len()"):
                return make_int(len(obj.items))
            if member in ("sum", "sum()"):
                total = 0
                for item in obj.items:
                    if item.kind == ValueKind.INT:
                        total += item.value
                    elif item.kind == ValueKind.BOOL:
                        total += int(item.value)
                return make_int(total)
            if member.startswith("append("):
                _, arg_text = _call_parts(member)
                obj.items.append(self.evaluate(arg_text))
                return NONE
            return None

        if obj.kind == ValueKind.MAP:
            if member in ("len", "len()"):
                return make_int(len(obj.items))
            return None

        if obj.kind == ValueKind.CLASS_INSTANCE:
            if member in obj.instance_vars:
                return copy_value(obj.instance_vars[member])
            return None

        return None

    # -----------------------------------------------------------------------
    # Ternary
    # -----------------------------------------------------------------------

    def _eval_ternary(self, expr: str) -> Value:
        q = expr.find("?")
        c = expr.find(":", q)
        if c == -1:
            return NONE
        if to_bool(self.evaluate(expr[:q])):
            return self.evaluate(expr[q + 1:c])
        return self.evaluate(expr[c + 1:])

"""Source loading and the class-registry pre-pass.

Program text layout::

    $Main                   main class declaration
    #math / @util           import directives (recorded, never resolved)
    class Point {           class block: fields and fn signatures
        int x = 0
        fn move(int dx) { ... }
    }
    class Main {            main class: its body is the program
        ...
    }
"""

from __future__ import annotations

import io
import logging
import re
from collections.abc import Sequence

from hmscript.model.program import Program
from hmscript.model.values import ClassDefinition, MethodDefinition

from ._builtins import RuntimeIO
from ._environment import Environment
from ._evaluator import ExpressionEvaluator, loop_var_name
from ._executor import extract_block
from ._statements import (
    ASSIGN_RE,
    TYPED_DECL_RE,
    TYPED_INIT_RE,
    declared_default,
    strip_comment,
)
from ._values import SourceError

logger = logging.getLogger(__name__)

DEFAULT_SOURCE = "program.hm"

_CLASS_RE = re.compile(r"class\s+(\w+)\s*\{?")
_FN_RE = re.compile(r"fn\s+(\w+)\s*\(([^)]*)\)")


def read_source(path: str) -> list[str]:
    """Read a source file into lines (without terminators)."""
    try:
        with open(path, encoding="utf-8") as f:
            return f.read().splitlines()
    except OSError as exc:
        raise SourceError(f"Could not open file {path}") from exc


def parse_program(lines: Sequence[str], path: str = "") -> Program:
    """Run the pre-pass over *lines*.

    Finds the main class declaration and import directives, registers every
    class block, and extracts the main class body. Raises SourceError when
    there is no main class or it is never defined.
    """
    main_class: str | None = None
    imports: list[str] = []
    for raw in lines:
        ln = strip_comment(raw).strip()
        if ln.startswith("$"):
            main_class = ln[1:].strip()
        elif ln.startswith(("#", "@")):
            imports.append(ln)
            logger.debug("import directive recorded, not resolved: %r", ln)

    classes = register_classes(lines, main_class)

    if not main_class or main_class not in classes:
        raise SourceError("Main class not found")

    return Program(
        path=path,
        main_class=main_class,
        imports=imports,
        classes=classes,
        main_body=main_body(lines, main_class),
    )


# ---------------------------------------------------------------------------
# Class registry
# ---------------------------------------------------------------------------

def register_classes(
    lines: Sequence[str],
    main_class: str | None = None,
) -> dict[str, ClassDefinition]:
    """Build a ClassDefinition for every top-level ``class Name {`` block.

    Field defaults are evaluated in a scratch environment with no console
    attached; earlier classes are visible for nested instantiation. The
    main class body is the program, so its statements are not evaluated
    as field defaults.
    """
    classes: dict[str, ClassDefinition] = {}
    i = 0
    while i < len(lines):
        ln = strip_comment(lines[i]).strip()
        m = _CLASS_RE.match(ln)
        if m is None:
            i += 1
            continue
        name = m.group(1)
        body, i = extract_block(lines, i)
        classes[name] = _build_class(name, body, classes, name == main_class)
        logger.debug(
            "registered class %s (%d fields, %d methods)",
            name, len(classes[name].variables), len(classes[name].methods),
        )
        i += 1
    return classes


def _build_class(
    name: str,
    body: Sequence[str],
    known: dict[str, ClassDefinition],
    is_main: bool,
) -> ClassDefinition:
    class_def = ClassDefinition(name=name)
    evaluator = ExpressionEvaluator(
        Environment(),
        classes=known,
        io=RuntimeIO(stdin=io.StringIO(), stdout=io.StringIO(), seed=0),
    )

    for kind, start, block in _top_level(body):
        if kind == "fn":
            method = _parse_method(strip_comment(body[start]).strip(), block)
            if method is not None:
                class_def.methods[method.name] = method
        elif kind == "line" and not is_main:
            _parse_field(strip_comment(body[start]).strip(), class_def, evaluator)
    return class_def


def _parse_method(header: str, block: Sequence[str]) -> MethodDefinition | None:
    m = _FN_RE.match(header)
    if m is None:
        return None
    params = [loop_var_name(p) for p in m.group(2).split(",") if p.strip()]
    return MethodDefinition(name=m.group(1), params=params, body=list(block))


def _parse_field(
    line: str,
    class_def: ClassDefinition,
    evaluator: ExpressionEvaluator,
) -> None:
    m = TYPED_INIT_RE.fullmatch(line)
    if m:
        class_def.variables[m.group(2)] = evaluator.evaluate(m.group(3))
        return
    m = TYPED_DECL_RE.fullmatch(line)
    if m:
        class_def.variables[m.group(3)] = declared_default(m.group(1), bool(m.group(2)))
        return
    m = ASSIGN_RE.fullmatch(line)
    if m:
        class_def.variables[m.group(1)] = evaluator.evaluate(m.group(2))


def _top_level(body: Sequence[str]):
    """Yield ``(kind, index, block)`` for each depth-0 line of a class body.

    ``kind`` is ``"fn"`` for a method header (``block`` is its body),
    ``"block"`` for any other brace-opening line (``block`` is skipped
    over) and ``"line"`` otherwise.
    """
    i = 0
    while i < len(body):
        ln = strip_comment(body[i]).strip()
        if not ln:
            i += 1
            continue
        if ln.startswith("fn "):
            block, end = extract_block(body, i)
            yield "fn", i, block
            i = end + 1
        elif "{" in ln and "}" not in ln:
            block, end = extract_block(body, i)
            yield "block", i, block
            i = end + 1
        else:
            yield "line", i, ()
            i += 1


# ---------------------------------------------------------------------------
# Main body
# ---------------------------------------------------------------------------

def main_body(lines: Sequence[str], main_class: str) -> list[str]:
    """Lines of the main class body with ``fn`` blocks removed."""
    for i, raw in enumerate(lines):
        m = _CLASS_RE.match(strip_comment(raw).strip())
        if m is None or m.group(1) != main_class:
            continue
        body, _ = extract_block(lines, i)
        kept: list[str] = []
        j = 0
        while j < len(body):
            if strip_comment(body[j]).strip().startswith("fn "):
                _, end = extract_block(body, j)
                j = end + 1
                continue
            kept.append(body[j])
            j += 1
        return kept
    return []

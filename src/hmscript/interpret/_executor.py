"""Block executor: drives ``while`` / ``for`` over raw source lines.

A loop body is captured once as an immutable tuple of lines (a ``Block``)
and re-executed from a fresh cursor on every pass. Lines that are not loop
headers or ``return`` go to the ``StatementDispatcher``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from ._evaluator import ExpressionEvaluator, iteration_items, loop_var_name
from ._statements import StatementDispatcher, strip_comment
from ._values import ConversionError, IterationLimitExceeded, to_bool

logger = logging.getLogger(__name__)

Block = tuple[str, ...]

_WHILE_RE = re.compile(r"while\b")
_FOR_RE = re.compile(r"for\b")
_RETURN_RE = re.compile(r"return\b")


# ---------------------------------------------------------------------------
# Block extraction
# ---------------------------------------------------------------------------

def extract_block(lines: Sequence[str], header_index: int) -> tuple[Block, int]:
    """Capture the brace-delimited body following a header line.

    The opening ``{`` may end the header line or sit on a later line.
    Nesting is tracked with one counter step per line containing ``{`` or
    ``}``. Returns the body and the index of the closing-brace line (or
    ``len(lines)`` when the block is never closed).
    """
    i = header_index + 1
    if "{" not in strip_comment(lines[header_index]):
        while i < len(lines) and "{" not in strip_comment(lines[i]):
            i += 1
        i += 1

    depth = 1
    body: list[str] = []
    while i < len(lines):
        text = strip_comment(lines[i])
        if "{" in text:
            depth += 1
        if "}" in text:
            depth -= 1
            if depth == 0:
                break
        body.append(lines[i])
        i += 1
    return tuple(body), i


def header_expr(header: str, keyword: str) -> str:
    """``while (x < 3) {`` -> ``x < 3``."""
    head = header[:header.rfind("{")] if "{" in header else header
    head = head.strip()[len(keyword):].strip()
    if head.startswith("(") and head.endswith(")"):
        head = head[1:-1]
    return head.strip()


# ---------------------------------------------------------------------------
# BlockExecutor
# ---------------------------------------------------------------------------

class BlockExecutor:
    """Runs a sequence of source lines.

    Parameters
    ----------
    evaluator : ExpressionEvaluator
        Shared evaluator; its environment is the program's only state.
    max_iterations : int, optional
        Cap on passes of a single ``while`` loop. ``None`` (default) means
        unbounded.
    """

    def __init__(
        self,
        evaluator: ExpressionEvaluator,
        max_iterations: int | None = None,
    ) -> None:
        self.evaluator = evaluator
        self.env = evaluator.env
        self.dispatcher = StatementDispatcher(evaluator)
        self.max_iterations = max_iterations

    def execute(self, lines: Sequence[str]) -> None:
        i = 0
        while i < len(lines):
            line = strip_comment(lines[i]).strip()
            if not line:
                i += 1
                continue

            try:
                if _WHILE_RE.match(line):
                    body, i = extract_block(lines, i)
                    self._exec_while(header_expr(line, "while"), body)
                elif _FOR_RE.match(line):
                    body, i = extract_block(lines, i)
                    self._exec_for(header_expr(line, "for"), body)
                elif _RETURN_RE.match(line):
                    logger.debug("return ignored: %r", line)
                else:
                    self.dispatcher.execute(line)
            except ConversionError as exc:
                if exc.line is None:
                    raise ConversionError(str(exc), line=line) from exc
                raise
            i += 1

    def _exec_while(self, condition: str, body: Block) -> None:
        logger.debug("while (%s): %d body lines", condition, len(body))
        passes = 0
        while to_bool(self.evaluator.evaluate(condition)):
            if self.max_iterations is not None and passes >= self.max_iterations:
                raise IterationLimitExceeded(
                    f"while ({condition}) exceeded {self.max_iterations} iterations"
                )
            self.execute(body)
            passes += 1

    def _exec_for(self, header: str, body: Block) -> None:
        in_pos = header.find(" in ")
        if in_pos == -1:
            logger.debug("for header without ' in ' skipped: %r", header)
            return
        var_name = loop_var_name(header[:in_pos])
        iterable = self.evaluator.evaluate(header[in_pos + 4:])
        items = iteration_items(iterable)
        logger.debug("for %s: %d items", var_name, len(items))

        # The loop variable stays bound to its last value afterward.
        for item in items:
            self.env.set(var_name, item)
            self.execute(body)

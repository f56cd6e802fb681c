"""Interpreter runtime: evaluator, dispatcher, executor and source pre-pass."""

from __future__ import annotations

from ._builtins import RuntimeIO
from ._context import Interpreter
from ._environment import Environment
from ._evaluator import ExpressionEvaluator
from ._executor import BlockExecutor
from ._source import DEFAULT_SOURCE, parse_program, read_source
from ._statements import StatementDispatcher
from ._values import (
    ConversionError,
    HmScriptError,
    IterationLimitExceeded,
    SourceError,
    to_bool,
    to_string,
)

__all__ = [
    "BlockExecutor",
    "ConversionError",
    "DEFAULT_SOURCE",
    "Environment",
    "ExpressionEvaluator",
    "HmScriptError",
    "Interpreter",
    "IterationLimitExceeded",
    "RuntimeIO",
    "SourceError",
    "StatementDispatcher",
    "parse_program",
    "read_source",
    "to_bool",
    "to_string",
]

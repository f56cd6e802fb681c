"""Runtime values and class definitions.

Two distinct concepts live here:
- Value: the closed set of runtime data variants (int, float, str, bool,
  map, list, class instance, none), discriminated on ``kind``.
- ClassDefinition: a declared class as recorded by the source pre-pass.
  Instances hold a snapshot of their definition plus their own fields.

Values are copied on assignment. Use ``copy_value`` rather than sharing a
model between two environment entries.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class ValueKind(str, Enum):
    """Runtime variant tags."""

    INT = "int"
    FLOAT = "float"
    STRING = "string"
    BOOL = "bool"
    MAP = "map"
    LIST = "list"
    CLASS_INSTANCE = "class_instance"
    NONE = "none"


# ---------------------------------------------------------------------------
# Scalar variants
# ---------------------------------------------------------------------------

class IntValue(BaseModel):
    """32-bit signed integer."""

    kind: Literal[ValueKind.INT] = ValueKind.INT
    value: int = 0


class FloatValue(BaseModel):
    """Double-precision float."""

    kind: Literal[ValueKind.FLOAT] = ValueKind.FLOAT
    value: float = 0.0


class StringValue(BaseModel):
    kind: Literal[ValueKind.STRING] = ValueKind.STRING
    value: str = ""


class BoolValue(BaseModel):
    kind: Literal[ValueKind.BOOL] = ValueKind.BOOL
    value: bool = False


class NoneValue(BaseModel):
    """Absence of a value. Unresolved names and void calls produce this."""

    kind: Literal[ValueKind.NONE] = ValueKind.NONE


# ---------------------------------------------------------------------------
# Container variants
# ---------------------------------------------------------------------------

class MapValue(BaseModel):
    """String-keyed mapping. Only created by ``map`` declarations."""

    kind: Literal[ValueKind.MAP] = ValueKind.MAP
    items: dict[str, Value] = Field(default_factory=dict)


class ListValue(BaseModel):
    """Ordered sequence of values. ``append`` mutates ``items`` in place."""

    kind: Literal[ValueKind.LIST] = ValueKind.LIST
    items: list[Value] = Field(default_factory=list)


class InstanceValue(BaseModel):
    """An instance of a declared class.

    ``class_def`` is a snapshot of the definition at instantiation time;
    ``instance_vars`` starts as a copy of its defaults and is mutated per instance.
    """

    kind: Literal[ValueKind.CLASS_INSTANCE] = ValueKind.CLASS_INSTANCE
    class_def: ClassDefinition
    instance_vars: dict[str, Value] = Field(default_factory=dict)


Value = Annotated[
    Union[
        IntValue,
        FloatValue,
        StringValue,
        BoolValue,
        MapValue,
        ListValue,
        InstanceValue,
        NoneValue,
    ],
    Field(discriminator="kind"),
]


# ---------------------------------------------------------------------------
# Class definitions
# ---------------------------------------------------------------------------

class MethodDefinition(BaseModel):
    """A ``fn`` declared inside a class body.

    The body is kept as raw source lines. Methods are recorded for
    introspection only; the interpreter never invokes them.
    """

    name: str
    params: list[str] = Field(default_factory=list)
    body: list[str] = Field(default_factory=list)


class ClassDefinition(BaseModel):
    """A ``class Name { ... }`` block found by the source pre-pass."""

    name: str
    variables: dict[str, Value] = Field(default_factory=dict)
    methods: dict[str, MethodDefinition] = Field(default_factory=dict)

    def instantiate(self) -> InstanceValue:
        """Create an instance with its own copy of the field defaults.

        No constructor logic runs.
        """
        return InstanceValue(
            class_def=self.model_copy(deep=True),
            instance_vars={name: copy_value(v) for name, v in self.variables.items()},
        )


def copy_value(value: Value) -> Value:
    """Return an independent deep copy of *value*."""
    return value.model_copy(deep=True)


for _model in (MapValue, ListValue, InstanceValue, ClassDefinition):
    _model.model_rebuild()

NONE = NoneValue()

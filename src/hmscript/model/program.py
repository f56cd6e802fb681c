"""A loaded program: the result of the source pre-pass."""

from __future__ import annotations

from pydantic import BaseModel, Field

from .values import ClassDefinition


class Program(BaseModel):
    """Everything the pre-pass extracts from one source file.

    ``main_body`` holds the raw lines of the main class with its ``fn``
    blocks removed; it is what the block executor runs.
    """

    path: str = ""
    main_class: str | None = None
    imports: list[str] = Field(default_factory=list)
    classes: dict[str, ClassDefinition] = Field(default_factory=dict)
    main_body: list[str] = Field(default_factory=list)

"""The process-wide variable store.

There is no lexical nesting: every statement, expression and loop reads and
writes one flat mapping. Constructs that shadow a name temporarily use
``scoped_binding`` to put the previous binding back afterward.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from hmscript.model.values import NONE, Value, copy_value


class Environment:
    """Flat name -> Value mapping with copy-on-read semantics.

    ``get`` returns a copy so that ``a = b`` never aliases. ``ref`` returns
    the stored value itself and is used by in-place mutations
    (``append``, ``++``, member assignment).
    """

    def __init__(self, initial: dict[str, Value] | None = None) -> None:
        self._vars: dict[str, Value] = dict(initial or {})

    def __contains__(self, name: str) -> bool:
        return name in self._vars

    def __len__(self) -> int:
        return len(self._vars)

    def get(self, name: str) -> Value:
        """Copy of the binding for *name*, or none when unbound."""
        if name in self._vars:
            return copy_value(self._vars[name])
        return NONE

    def ref(self, name: str) -> Value | None:
        """The stored value for *name* (not a copy), or None when unbound."""
        return self._vars.get(name)

    def set(self, name: str, value: Value) -> None:
        self._vars[name] = value

    def unset(self, name: str) -> None:
        self._vars.pop(name, None)

    def names(self) -> list[str]:
        return sorted(self._vars)

    def snapshot(self) -> dict[str, Value]:
        """Independent copy of every binding."""
        return {name: copy_value(v) for name, v in self._vars.items()}

    @contextmanager
    def scoped_binding(self, name: str) -> Iterator[None]:
        """Restore *name* to its prior state (or unbind it) on exit."""
        had_binding = name in self._vars
        previous = self._vars.get(name)
        try:
            yield
        finally:
            if had_binding:
                self._vars[name] = previous
            else:
                self.unset(name)

"""
Lexically scoped type environment for wu semantic analysis.

Classes:
    Frame: One scope's name → type bindings, tagged with a nesting depth.
    SymTab: Stack of active frames plus an archive of popped frames, per-type
        method registries and foreign-module import bindings.

Frames live in a store owned by the SymTab and are addressed by integer
handle. The active stack and the archive hold handles, so popping a scope into
the archive and restoring it later moves a handle instead of copying bindings.
`push_scope` and `put_frame` add a slot to the store; `install_frame` overwrites
the innermost frame's slot, so a displaced frame is no longer held by the table.

Type values are opaque here: they only need equality and `str()`. They are
stored and returned exactly as given.

Failure classes:
    - `lookup`, `lookup_methods` and `lookup_module` return None when absent.
    - `force_lookup_method`, popping the global frame and restoring from an
      empty archive raise `AssertionError`: the caller skipped a check it was
      required to make first.

Example:
    >>> table = SymTab()
    >>> table.push_scope()
    >>> table.assign("x", "int")
    >>> table.lookup("x")
    'int'
"""

import logging
from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any

logger = logging.getLogger(__name__)

# Opaque to the table; owned by the type checker.
Type = Any


class Frame:
    """Bindings of a single lexical scope.

    Attributes:
        table (dict[str, Type]): Name → type bindings.
        depth (int): Nesting depth the frame was created at.
    """

    def __init__(self, depth: int = 0, bindings: Mapping[str, Type] | None = None):
        self.table: dict[str, Type] = dict(bindings or {})
        self.depth = depth

    def get(self, name: str) -> Type | None:
        return self.table.get(name)

    def assign(self, name: str, type_: Type) -> None:
        self.table[name] = type_

    def __contains__(self, name: object) -> bool:
        return name in self.table

    def __len__(self) -> int:
        return len(self.table)

    def __iter__(self) -> Iterator[str]:
        return iter(self.table)

    def __repr__(self) -> str:
        return f"Frame(depth={self.depth}, names={sorted(self.table)})"

    def debug(self) -> None:
        logger.debug("======= frame @ %d", self.depth)
        for name, type_ in self.table.items():
            logger.debug("%s = %s", name, type_)


class SymTab:
    """Scope stack and registries consulted by the type checker.

    Attributes:
        depth (int): Current nesting depth; tags frames made by `push_scope`.
        implementations (dict[str, dict[str, Type]]): Type id → method name → type.
        foreign_imports (dict[str, dict[str, Type]]): Module id → exported name → type.
    """

    def __init__(self, bindings: Mapping[str, Type] | None = None) -> None:
        self._frames: list[Frame] = []
        self._active: list[int] = []
        self._archive: list[int] = []

        self.depth = 0
        self.implementations: dict[str, dict[str, Type]] = {}
        self.foreign_imports: dict[str, dict[str, Type]] = {}

        self._active.append(self._store(Frame(0, bindings)))

    @classmethod
    def from_bindings(cls, bindings: Mapping[str, Type]) -> "SymTab":
        """Creates a table whose global frame starts with `bindings`."""
        return cls(bindings)

    def _store(self, frame: Frame) -> int:
        self._frames.append(frame)
        return len(self._frames) - 1

    # Frames

    @property
    def current_frame(self) -> Frame:
        return self._frames[self._active[-1]]

    @property
    def frames(self) -> list[Frame]:
        """Active frames, outermost first."""
        return [self._frames[handle] for handle in self._active]

    @property
    def archived(self) -> list[Frame]:
        """Archived frames, most recently archived last."""
        return [self._frames[handle] for handle in self._archive]

    def assign(self, name: str, type_: Type) -> None:
        self.current_frame.assign(name, type_)

    def lookup(self, name: str) -> Type | None:
        for handle in reversed(self._active):
            frame = self._frames[handle]
            if name in frame:
                return frame.get(name)
        return None

    def push_scope(self) -> None:
        self._active.append(self._store(Frame(self.depth)))

    def pop_scope(self) -> Frame:
        """Moves the innermost frame to the archive and returns it."""
        if len(self._active) == 1:
            raise AssertionError("cannot pop the global frame")
        handle = self._active.pop()
        self._archive.append(handle)
        return self._frames[handle]

    def restore_archived_frame(self) -> Frame:
        """Moves the most recently archived frame back onto the active stack."""
        if not self._archive:
            raise AssertionError("no archived frame to restore")
        handle = self._archive.pop()
        self._active.append(handle)
        return self._frames[handle]

    def put_frame(self, frame: Frame) -> None:
        """Pushes an externally built frame as the new innermost scope."""
        self._active.append(self._store(frame))

    def install_frame(self, frame: Frame) -> Frame:
        """Replaces the innermost active frame in its slot; returns the frame it displaced."""
        handle = self._active[-1]
        displaced = self._frames[handle]
        self._frames[handle] = frame
        return displaced

    def enter_nesting(self) -> None:
        self.depth += 1

    def exit_nesting(self) -> None:
        if self.depth > 0:
            self.depth -= 1

    # Implementations

    def register_method(self, type_id: str, method_name: str, type_: Type) -> None:
        self.implementations.setdefault(type_id, {})[method_name] = type_

    def lookup_methods(self, type_id: str) -> Mapping[str, Type] | None:
        methods = self.implementations.get(type_id)
        return MappingProxyType(methods) if methods is not None else None

    def force_lookup_method(self, type_id: str, method_name: str) -> Type:
        """Returns a method type the caller has already verified exists.

        Raises:
            AssertionError: If the type has no registry or lacks the method.
        """
        methods = self.implementations.get(type_id)
        if methods is None:
            raise AssertionError(f"no implementations registered for '{type_id}'")
        if method_name not in methods:
            raise AssertionError(f"'{type_id}' has no method '{method_name}'")
        return methods[method_name]

    # Foreign imports

    def import_module(self, module_id: str, bindings: Mapping[str, Type]) -> None:
        self.foreign_imports[module_id] = dict(bindings)

    def lookup_module(self, module_id: str) -> Mapping[str, Type] | None:
        exports = self.foreign_imports.get(module_id)
        return MappingProxyType(exports) if exports is not None else None

    def debug(self) -> None:
        """Logs every active frame, outermost first."""
        logger.debug(
            "symtab: %d active, %d archived, depth %d",
            len(self._active),
            len(self._archive),
            self.depth,
        )
        for frame in self.frames:
            frame.debug()


__all__ = ["Frame", "SymTab", "Type"]

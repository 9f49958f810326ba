"""The value type that crosses the scripting boundary.

A :class:`Handle` owns at most one object tree.  Lua copies and aliases
handles freely, so every operation clones the tree before transforming it;
two handles never share nodes.  An empty handle stands for a failed
construction and stays empty through every operation.
"""

from __future__ import annotations

from typing import Callable, Dict, Optional

from luacsg.objects import ImplicitObject


class Handle:

    __slots__ = ("o",)

    def __init__(self, o: Optional[ImplicitObject] = None):
        self.o = o

    @property
    def is_empty(self) -> bool:
        return self.o is None

    def as_object(self) -> Optional[ImplicitObject]:
        """An independent copy of the owned tree, or ``None``."""
        if self.o is None:
            return None
        return self.o.clone()

    def _map(self, fn: Callable[[ImplicitObject], ImplicitObject]) -> "Handle":
        if self.o is None:
            return Handle()
        return Handle(fn(self.o.clone()))

    def translate(self, x: float, y: float, z: float) -> "Handle":
        return self._map(lambda o: o.translate(x, y, z))

    def rotate(self, x: float, y: float, z: float) -> "Handle":
        return self._map(lambda o: o.rotate(x, y, z))

    def scale(self, x: float, y: float, z: float) -> "Handle":
        return self._map(lambda o: o.scale(x, y, z))

    def clone(self) -> "Handle":
        return self._map(lambda o: o)

    def __repr__(self) -> str:
        return f"Handle({self.o!r})"

    __str__ = __repr__


## the only attributes a script may reach on a handle
SCRIPT_METHODS: Dict[str, Callable] = {
    "translate": Handle.translate,
    "rotate": Handle.rotate,
    "scale": Handle.scale,
    "clone": Handle.clone,
}

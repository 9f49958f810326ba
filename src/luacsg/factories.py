"""
Native factory layer: host-side constructors bound into the Lua runtime.

Factories are total functions.  Numeric arguments that are not numbers are
read as 0, and geometrically degenerate input produces an empty handle plus
a message on the console instead of an exception.  Argument *shape*
checking is the job of the Lua alias layer (see :mod:`luacsg.aliases`).

User-facing factories live in the script environment table; the ones the
aliases wrap are bound as hidden globals (``__Box`` etc.) that scripts
cannot see.
"""

import logging
from math import isfinite
from typing import Any, Callable, Dict, List, Optional

import lupa

from .bbox import INFINITY, NEG_INFINITY, BoundingBox
from .errors import ConstructionError, ScriptError
from .geom import float_epsilon, isgoodnum
from .handle import SCRIPT_METHODS, Handle
from .mesh import Mesh
from .objects import (
    Cone, Cylinder, Bender, ImplicitObject, Intersection, NormalPlane,
    PlaneNegX, PlaneNegY, PlaneNegZ, PlaneX, PlaneY, PlaneZ, Sphere,
    Twister, Union,
)

logger = logging.getLogger(__name__)

MESH_WARNING = "Warning: Mesh support is slow, every evaluation visits every triangle!"


def _number(value: Any) -> float:
    """Numeric coercion: anything that is not a number reads as 0."""
    if isgoodnum(value):
        return float(value)
    return 0.0


def _handle_arg(func_name: str, value: Any) -> Handle:
    if not isinstance(value, Handle):
        raise ScriptError(f"{func_name} expects an object, got {lupa.lua_type(value) or type(value).__name__}")
    return value


def build_box(x: float, y: float, z: float, smooth: float = 0.0) -> ImplicitObject:
    """Axis-aligned box as the smoothed intersection of six half-spaces."""
    if not all(isfinite(v) for v in (x, y, z)):
        raise ConstructionError(f"box dimensions must be finite, got ({x}, {y}, {z})")
    if x <= 0 or y <= 0 or z <= 0:
        raise ConstructionError(f"box dimensions must be positive, got ({x}, {y}, {z})")
    return Intersection([
        PlaneX(x / 2.0),
        PlaneY(y / 2.0),
        PlaneZ(z / 2.0),
        PlaneNegX(x / 2.0),
        PlaneNegY(y / 2.0),
        PlaneNegZ(z / 2.0),
    ], smooth)


def build_cylinder(length: float, radius1: float, radius2: float,
                   smooth: float = 0.0) -> ImplicitObject:
    """Capped cylinder, or capped cone when the end radii differ.

    ``radius1`` is the radius at ``z = -length/2``, ``radius2`` at
    ``z = +length/2``.
    """
    if not all(isfinite(v) for v in (length, radius1, radius2)):
        raise ConstructionError(
            f"length and radii must be finite, got {length}, {radius1} and {radius2}")
    if length <= 0:
        raise ConstructionError(f"length must be positive, got {length}")
    if radius1 < 0 or radius2 < 0:
        raise ConstructionError(f"radii must not be negative, got {radius1} and {radius2}")

    if abs(radius1 - radius2) < float_epsilon:
        body: ImplicitObject = Cylinder(radius1)
    else:
        slope = abs(radius2 - radius1) / length
        if radius1 < radius2:
            offset = -radius1 / slope - length * 0.5
        else:
            offset = radius2 / slope + length * 0.5
        body = Cone(slope, offset)
        rmax = max(radius1, radius2)
        body.set_bbox(BoundingBox((-rmax, -rmax, NEG_INFINITY), (rmax, rmax, INFINITY)))

    return Intersection([
        body,
        PlaneZ(length / 2.0),
        PlaneNegZ(length / 2.0),
    ], smooth)


class NativeFactories:
    """Constructors exposed to scripts, reporting through ``console``."""

    def __init__(self, console, mesh_warning: bool = True):
        self.console = console
        self.mesh_warning = mesh_warning

    def _degrade(self, name: str, error: Exception) -> Handle:
        message = f"Could not build {name}: {error}"
        logger.debug(message)
        self.console.send(message)
        return Handle()

    def _guarded(self, name: str, build: Callable[[], ImplicitObject]) -> Handle:
        try:
            return Handle(build())
        except ConstructionError as e:
            return self._degrade(name, e)

    # --- primitives ---

    def _plane_factory(self, cls) -> Callable[[Any], Handle]:
        def factory(d=None):
            return self._guarded(cls.__name__, lambda: cls(_number(d)))
        factory.__name__ = cls.__name__
        return factory

    def sphere(self, radius=None) -> Handle:
        return self._guarded("Sphere", lambda: Sphere(_number(radius)))

    def icylinder(self, radius=None) -> Handle:
        return self._guarded("iCylinder", lambda: Cylinder(_number(radius)))

    def icone(self, slope=None) -> Handle:
        return self._guarded("iCone", lambda: Cone(_number(slope), 0.0))

    # --- deformations ---

    def bend(self, o=None, width=None) -> Handle:
        obj = _handle_arg("Bend", o).as_object()
        if obj is None:
            return Handle()
        return self._guarded("Bend", lambda: Bender(obj, _number(width)))

    def twist(self, o=None, height=None) -> Handle:
        obj = _handle_arg("Twist", o).as_object()
        if obj is None:
            return Handle()
        return self._guarded("Twist", lambda: Twister(obj, _number(height)))

    # --- object lists ---

    def _objects(self, func_name: str, objs) -> Optional[List[ImplicitObject]]:
        """Clone the trees of a Lua list of handles; ``None`` if any is empty."""
        if lupa.lua_type(objs) != "table":
            raise ScriptError(f"{func_name} expects a table of objects")
        items = [_handle_arg(func_name, objs[i]) for i in range(1, len(objs) + 1)]
        if any(h.is_empty for h in items):
            return None
        return [h.as_object() for h in items]

    def _combine(self, name: str, objs, smooth, combine) -> Handle:
        children = self._objects(name, objs)
        if children is None:
            return Handle()
        return self._guarded(name, lambda: self._non_empty(name, combine(children, _number(smooth))))

    @staticmethod
    def _non_empty(name: str, obj: Optional[ImplicitObject]) -> ImplicitObject:
        if obj is None:
            raise ConstructionError(f"{name} needs at least one object")
        return obj

    def union(self, objs=None, smooth=None) -> Handle:
        return self._combine("Union", objs, smooth, Union.from_list)

    def intersection(self, objs=None, smooth=None) -> Handle:
        return self._combine("Intersection", objs, smooth, Intersection.from_list)

    def difference(self, objs=None, smooth=None) -> Handle:
        return self._combine("Difference", objs, smooth, Intersection.difference_from_list)

    # --- files ---

    def mesh(self, filename=None) -> Handle:
        try:
            mesh = Mesh.from_file(str(filename))
        except (OSError, ValueError) as e:
            logger.debug("mesh %r failed to load: %s", filename, e)
            self.console.send(f"Could not read mesh: {e}")
            return Handle()
        if self.mesh_warning:
            self.console.send(MESH_WARNING)
        return Handle(mesh)

    # --- hidden constructors wrapped by the alias layer ---

    def box(self, x=None, y=None, z=None, smooth=None) -> Handle:
        return self._guarded("Box", lambda: build_box(
            _number(x), _number(y), _number(z), _number(smooth)))

    def cylinder(self, length=None, radius1=None, radius2=None, smooth=None) -> Handle:
        return self._guarded("Cylinder", lambda: build_cylinder(
            _number(length), _number(radius1), _number(radius2), _number(smooth)))

    def plane_hessian(self, nx=None, ny=None, nz=None, p=None) -> Handle:
        return self._guarded("PlaneHessian", lambda: NormalPlane.from_normal_and_p(
            (_number(nx), _number(ny), _number(nz)), _number(p)))

    def plane_3_points(self, ax=None, ay=None, az=None,
                       bx=None, by=None, bz=None,
                       cx=None, cy=None, cz=None) -> Handle:
        a = (_number(ax), _number(ay), _number(az))
        b = (_number(bx), _number(by), _number(bz))
        c = (_number(cx), _number(cy), _number(cz))
        return self._guarded("Plane3Points", lambda: NormalPlane.from_3_points(a, b, c))

    # --- handle methods ---

    def _method(self, name: str, method: Callable[..., Handle]) -> Callable[..., Handle]:
        def call(handle, *args):
            try:
                return method(handle, *args)
            except ConstructionError as e:
                return self._degrade(name, e)
        call.__name__ = name
        return call

    def script_methods(self) -> Dict[str, Callable[..., Handle]]:
        """Handle methods as scripts see them, degrading like the factories."""
        return {name: self._method(name, method) for name, method in SCRIPT_METHODS.items()}

    # --- registration ---

    def public_functions(self) -> Dict[str, Callable]:
        functions = {cls.__name__: self._plane_factory(cls)
                     for cls in (PlaneX, PlaneY, PlaneZ, PlaneNegX, PlaneNegY, PlaneNegZ)}
        functions.update({
            "Sphere": self.sphere,
            "iCylinder": self.icylinder,
            "iCone": self.icone,
            "Bend": self.bend,
            "Twist": self.twist,
            "Mesh": self.mesh,
            "Union": self.union,
            "Intersection": self.intersection,
            "Difference": self.difference,
        })
        return functions

    def hidden_functions(self) -> Dict[str, Callable]:
        return {
            "__Box": self.box,
            "__Cylinder": self.cylinder,
            "__PlaneHessian": self.plane_hessian,
            "__Plane3Points": self.plane_3_points,
        }

    def export(self, lua: "lupa.LuaRuntime", env) -> None:
        """Bind public factories into ``env`` and hidden ones into globals."""
        for name, func in self.public_functions().items():
            env[name] = func
        g = lua.globals()
        for name, func in self.hidden_functions().items():
            g[name] = func

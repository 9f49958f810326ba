"""Implicit-surface object tree.

Every node is an :class:`ImplicitObject`: a scalar field that is negative
inside the solid, positive outside and zero on its surface, together with a
finite axis-aligned bounding box.  Nodes own their children exclusively;
composites and transforms take ownership of the nodes passed to them, so
callers that want to keep using a node should hand over a :meth:`clone`.

Transforms follow the usual implicit-surface law: for a transformed node
``n2 = n.translate(...)``, ``n2.evaluate(p) == n.evaluate(T^-1 p)``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from copy import deepcopy
from functools import reduce
from math import atan2, cos, hypot, isfinite, sin, sqrt
from typing import Any, Dict, Iterable, List, Optional, Sequence

from luacsg.bbox import INFINITY, NEG_INFINITY, BoundingBox
from luacsg.errors import ConstructionError
from luacsg.geom import (
    clamp, cross, dot, epsilon, mag, mix, normalize, pi2, sub, vec3,
)
from luacsg.xform import MatrixStack


# -----------------------------------------------------------------------------
# Field combinators
# -----------------------------------------------------------------------------

def smooth_max(a: float, b: float, r: float) -> float:
    """Polynomial smooth maximum; exactly ``max(a, b)`` for ``r == 0``."""
    if r <= 0.0:
        return max(a, b)
    h = clamp(0.5 - 0.5 * (b - a) / r, 0.0, 1.0)
    return mix(b, a, h) + r * h * (1.0 - h)


def smooth_min(a: float, b: float, r: float) -> float:
    """Polynomial smooth minimum; exactly ``min(a, b)`` for ``r == 0``."""
    if r <= 0.0:
        return min(a, b)
    h = clamp(0.5 + 0.5 * (b - a) / r, 0.0, 1.0)
    return mix(b, a, h) - r * h * (1.0 - h)


def _finite(what: str, value: float) -> float:
    value = float(value)
    if not isfinite(value):
        raise ConstructionError(f"{what} must be a finite number, got {value}")
    return value


def _finite3(what: str, v: Sequence[float]):
    return tuple(_finite(what, c) for c in vec3(v))


# -----------------------------------------------------------------------------
# Base class
# -----------------------------------------------------------------------------

class ImplicitObject(ABC):
    """Common contract of all object-tree nodes."""

    def __init__(self):
        self._bbox: Optional[BoundingBox] = None

    @abstractmethod
    def evaluate(self, p: Sequence[float]) -> float:
        """Field value at ``p``."""

    @abstractmethod
    def _natural_bbox(self) -> BoundingBox:
        """Box derived from the node's own parameters."""

    def bbox(self) -> BoundingBox:
        if self._bbox is not None:
            return self._bbox
        return self._natural_bbox()

    def bounding_box(self) -> BoundingBox:
        return self.bbox()

    def set_bbox(self, box: BoundingBox) -> None:
        """Override the reported box, e.g. to bound an infinite primitive."""
        self._bbox = box

    def clone(self) -> "ImplicitObject":
        return deepcopy(self)

    def translate(self, x: float, y: float, z: float) -> "ImplicitObject":
        return AffineTransformer(self).translate(x, y, z)

    def rotate(self, x: float, y: float, z: float) -> "ImplicitObject":
        return AffineTransformer(self).rotate(x, y, z)

    def scale(self, x: float, y: float, z: float) -> "ImplicitObject":
        return AffineTransformer(self).scale(x, y, z)

    def _params(self) -> Dict[str, Any]:
        return {}

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}={v!r}" for k, v in self._params().items())
        return f"{type(self).__name__}({fields})"


# -----------------------------------------------------------------------------
# Planes
# -----------------------------------------------------------------------------

class _AxisPlane(ImplicitObject):
    """Half-space bounded by an axis-aligned plane at distance ``d``.

    The positive variants keep ``coord <= d``, the negative ones keep
    ``coord >= -d``.
    """
    axis = 0
    negative = False

    def __init__(self, d: float):
        super().__init__()
        self.d = _finite("plane distance", d)

    def evaluate(self, p):
        v = vec3(p)[self.axis]
        if self.negative:
            v = -v
        return v - self.d

    def _natural_bbox(self):
        lo = [NEG_INFINITY] * 3
        hi = [INFINITY] * 3
        if self.negative:
            lo[self.axis] = -self.d
        else:
            hi[self.axis] = self.d
        return BoundingBox(lo, hi)

    def _params(self):
        return {"d": self.d}


class PlaneX(_AxisPlane):
    axis = 0


class PlaneY(_AxisPlane):
    axis = 1


class PlaneZ(_AxisPlane):
    axis = 2


class PlaneNegX(_AxisPlane):
    axis = 0
    negative = True


class PlaneNegY(_AxisPlane):
    axis = 1
    negative = True


class PlaneNegZ(_AxisPlane):
    axis = 2
    negative = True


class NormalPlane(ImplicitObject):
    """Half-space in Hessian normal form: ``n . x - p <= 0`` is inside.

    The normal is normalized on construction; ``p`` is the signed distance
    of the plane from the origin along that unit normal.
    """

    def __init__(self, normal: Sequence[float], p: float):
        super().__init__()
        try:
            self.normal = normalize(_finite3("plane normal", normal))
        except ValueError as e:
            raise ConstructionError("plane normal must not be a zero vector") from e
        self.p = _finite("plane offset", p)

    @classmethod
    def from_normal_and_p(cls, normal, p) -> "NormalPlane":
        return cls(normal, p)

    @classmethod
    def from_3_points(cls, a, b, c) -> "NormalPlane":
        """Plane through three points, normal along ``(b - a) x (c - a)``."""
        a, b, c = (_finite3("plane point", v) for v in (a, b, c))
        n = cross(sub(b, a), sub(c, a))
        if mag(n) < epsilon:
            raise ConstructionError("the three points are collinear")
        n = normalize(n)
        return cls(n, dot(n, a))

    def evaluate(self, p):
        return dot(self.normal, vec3(p)) - self.p

    def _natural_bbox(self):
        return BoundingBox.infinity()

    def _params(self):
        return {"normal": self.normal, "p": self.p}


# -----------------------------------------------------------------------------
# Round primitives
# -----------------------------------------------------------------------------

class Sphere(ImplicitObject):
    """Sphere of ``radius`` centered at the origin."""

    def __init__(self, radius: float):
        super().__init__()
        self.radius = _finite("sphere radius", radius)

    def evaluate(self, p):
        x, y, z = vec3(p)
        return sqrt(x * x + y * y + z * z) - self.radius

    def _natural_bbox(self):
        r = abs(self.radius)
        return BoundingBox((-r, -r, -r), (r, r, r))

    def _params(self):
        return {"radius": self.radius}


class Cylinder(ImplicitObject):
    """Infinite cylinder of ``radius`` along the Z axis."""

    def __init__(self, radius: float):
        super().__init__()
        self.radius = _finite("cylinder radius", radius)

    def evaluate(self, p):
        x, y, _ = vec3(p)
        return hypot(x, y) - self.radius

    def _natural_bbox(self):
        r = abs(self.radius)
        return BoundingBox((-r, -r, NEG_INFINITY), (r, r, INFINITY))

    def _params(self):
        return {"radius": self.radius}


class Cone(ImplicitObject):
    """Infinite double cone along Z with its apex at ``z = offset``.

    The cross-section radius at height ``z`` is ``slope * |z - offset|``.
    The field is scaled by ``1 / sqrt(1 + slope^2)`` so that it measures
    distance perpendicular to the cone wall.
    """

    def __init__(self, slope: float, offset: float = 0.0):
        super().__init__()
        self.slope = _finite("cone slope", slope)
        self.offset = _finite("cone offset", offset)
        self._distance_multiplier = 1.0 / sqrt(1.0 + self.slope * self.slope)

    def radius_at(self, z: float) -> float:
        return self.slope * abs(z - self.offset)

    def evaluate(self, p):
        x, y, z = vec3(p)
        return (hypot(x, y) - self.radius_at(z)) * self._distance_multiplier

    def _natural_bbox(self):
        return BoundingBox.infinity()

    def _params(self):
        return {"slope": self.slope, "offset": self.offset}


# -----------------------------------------------------------------------------
# Composites
# -----------------------------------------------------------------------------

class _Composite(ImplicitObject):
    """N-ary combination of children, folded left to right.

    A child of the same type and smoothing radius is merged into this node
    instead of nested, so that composites built up one object at a time keep
    a flat tree.  With a nonzero radius the blend is not associative, and
    only a leading child is merged, which leaves the fold order unchanged.
    """

    def __init__(self, children: Iterable[ImplicitObject], smooth: float = 0.0):
        super().__init__()
        children = list(children)
        if not children:
            raise ConstructionError(f"{type(self).__name__} needs at least one object")
        smooth = _finite("smoothing radius", smooth)
        if smooth < 0.0:
            raise ConstructionError(f"smoothing radius must be >= 0, got {smooth}")
        self.smooth = smooth
        self.children: List[ImplicitObject] = []
        for i, child in enumerate(children):
            if self._absorbs(child, leading=(i == 0)):
                self.children.extend(child.children)
            else:
                self.children.append(child)

    def _absorbs(self, child: ImplicitObject, leading: bool) -> bool:
        return (type(child) is type(self)
                and child.smooth == self.smooth
                and child._bbox is None
                and (leading or self.smooth == 0.0))

    @classmethod
    def from_list(cls, children: Iterable[ImplicitObject], smooth: float = 0.0):
        """Build the composite, or return ``None`` for an empty list."""
        children = list(children)
        if not children:
            return None
        return cls(children, smooth)

    def _params(self):
        return {"smooth": self.smooth, "children": self.children}


class Intersection(_Composite):
    """Region inside every child; corners blended by ``smooth``."""

    def evaluate(self, p):
        p = vec3(p)
        values = (c.evaluate(p) for c in self.children)
        return reduce(lambda a, b: smooth_max(a, b, self.smooth), values)

    def _natural_bbox(self):
        return reduce(lambda a, b: a.intersection(b), (c.bbox() for c in self.children))

    @classmethod
    def difference_from_list(cls, children: Iterable[ImplicitObject],
                             smooth: float = 0.0) -> Optional["Intersection"]:
        """The first child with every later child cut away."""
        children = list(children)
        if not children:
            return None
        return cls([children[0]] + [Negation(c) for c in children[1:]], smooth)


class Union(_Composite):
    """Region inside any child; joins blended by ``smooth``."""

    def evaluate(self, p):
        p = vec3(p)
        values = (c.evaluate(p) for c in self.children)
        return reduce(lambda a, b: smooth_min(a, b, self.smooth), values)

    def _natural_bbox(self):
        return reduce(lambda a, b: a.union(b), (c.bbox() for c in self.children))


class Negation(ImplicitObject):
    """Complement of ``child``."""

    def __init__(self, child: ImplicitObject):
        super().__init__()
        self.child = child

    def evaluate(self, p):
        return -self.child.evaluate(p)

    def _natural_bbox(self):
        return BoundingBox.infinity()

    def _params(self):
        return {"child": self.child}


# -----------------------------------------------------------------------------
# Deformations
# -----------------------------------------------------------------------------

class Bender(ImplicitObject):
    """Wrap ``child`` around the Z axis.

    The child's X axis is rolled onto circles around Z, ``width`` units of X
    making one full turn; the child's Y coordinate becomes the radius.
    """

    def __init__(self, child: ImplicitObject, width: float):
        super().__init__()
        width = _finite("bend width", width)
        if abs(width) < epsilon:
            raise ConstructionError("bend width must not be zero")
        self.child = child
        self.width = width

    def evaluate(self, p):
        x, y, z = vec3(p)
        phi = atan2(y, x)
        return self.child.evaluate((phi * self.width / pi2, hypot(x, y), z))

    def _natural_bbox(self):
        cb = self.child.bbox()
        r = max(abs(cb.min[1]), abs(cb.max[1]))
        return BoundingBox((-r, -r, cb.min[2]), (r, r, cb.max[2]))

    def _params(self):
        return {"width": self.width, "child": self.child}


class Twister(ImplicitObject):
    """Twist ``child`` about Z by one full turn every ``height`` units."""

    def __init__(self, child: ImplicitObject, height: float):
        super().__init__()
        height = _finite("twist height", height)
        if abs(height) < epsilon:
            raise ConstructionError("twist height must not be zero")
        self.child = child
        self.height = height

    def evaluate(self, p):
        x, y, z = vec3(p)
        a = -pi2 * z / self.height
        ca, sa = cos(a), sin(a)
        return self.child.evaluate((x * ca - y * sa, x * sa + y * ca, z))

    def _natural_bbox(self):
        cb = self.child.bbox()
        r = max(hypot(x, y) for x in (cb.min[0], cb.max[0])
                for y in (cb.min[1], cb.max[1]))
        return BoundingBox((-r, -r, cb.min[2]), (r, r, cb.max[2]))

    def _params(self):
        return {"height": self.height, "child": self.child}


# -----------------------------------------------------------------------------
# Affine transforms
# -----------------------------------------------------------------------------

class AffineTransformer(ImplicitObject):
    """``child`` placed by a composed translate/rotate/scale transform.

    Further transforms of a transformer fold into its matrix stack instead
    of nesting another node.
    """

    def __init__(self, child: ImplicitObject, stack: Optional[MatrixStack] = None):
        super().__init__()
        self.child = child
        self.stack = stack if stack is not None else MatrixStack()

    def evaluate(self, p):
        return self.child.evaluate(self.stack.to_object(p))

    def _natural_bbox(self):
        return self.child.bbox().transform(self.stack.forward)

    def translate(self, x, y, z):
        if self._bbox is not None:
            return super().translate(x, y, z)
        return AffineTransformer(self.child, self.stack.push_translation((x, y, z)))

    def rotate(self, x, y, z):
        if self._bbox is not None:
            return super().rotate(x, y, z)
        return AffineTransformer(self.child, self.stack.push_rotation(x, y, z))

    def scale(self, x, y, z):
        if self._bbox is not None:
            return super().scale(x, y, z)
        try:
            stack = self.stack.push_scale(x, y, z)
        except ValueError as e:
            raise ConstructionError(str(e)) from e
        return AffineTransformer(self.child, stack)

    def _params(self):
        return {"matrix": self.stack.forward.m, "child": self.child}

"""Axis-aligned bounding boxes for the object tree.

Unbounded primitives (planes, infinite cylinders and cones) report boxes
that reach :data:`INFINITY`, a large but finite sentinel, so that box
arithmetic further down the pipeline never produces ``inf`` or ``nan``.
"""

from __future__ import annotations

from dataclasses import dataclass
from itertools import product
from typing import Iterable, Sequence, Tuple

from luacsg.geom import vec3

Vec3 = Tuple[float, float, float]

INFINITY = 1e10
NEG_INFINITY = -1e10


def _clamp(v: float) -> float:
    return max(NEG_INFINITY, min(INFINITY, v))


@dataclass(frozen=True)
class BoundingBox:
    """Immutable axis-aligned box given by its ``min`` and ``max`` corners."""

    min: Vec3
    max: Vec3

    def __post_init__(self):
        object.__setattr__(self, 'min', tuple(_clamp(v) for v in vec3(self.min)))
        object.__setattr__(self, 'max', tuple(_clamp(v) for v in vec3(self.max)))

    @classmethod
    def infinity(cls) -> "BoundingBox":
        """The box covering all of (sentinel-bounded) space."""
        return cls((NEG_INFINITY,) * 3, (INFINITY,) * 3)

    @classmethod
    def from_points(cls, points: Iterable[Sequence[float]]) -> "BoundingBox":
        pts = [vec3(p) for p in points]
        if not pts:
            raise ValueError("cannot build a bounding box from no points")
        return cls(
            tuple(min(p[i] for p in pts) for i in range(3)),
            tuple(max(p[i] for p in pts) for i in range(3)),
        )

    @property
    def dim(self) -> Vec3:
        return tuple(self.max[i] - self.min[i] for i in range(3))

    @property
    def is_empty(self) -> bool:
        return any(self.min[i] > self.max[i] for i in range(3))

    def corners(self) -> Iterable[Vec3]:
        return product(*zip(self.min, self.max))

    def contains(self, p: Sequence[float], tol: float = 0.0) -> bool:
        x = vec3(p)
        return all(self.min[i] - tol <= x[i] <= self.max[i] + tol for i in range(3))

    def intersection(self, other: "BoundingBox") -> "BoundingBox":
        return BoundingBox(
            tuple(max(self.min[i], other.min[i]) for i in range(3)),
            tuple(min(self.max[i], other.max[i]) for i in range(3)),
        )

    def union(self, other: "BoundingBox") -> "BoundingBox":
        return BoundingBox(
            tuple(min(self.min[i], other.min[i]) for i in range(3)),
            tuple(max(self.max[i], other.max[i]) for i in range(3)),
        )

    def transform(self, matrix) -> "BoundingBox":
        """Box enclosing the eight corners mapped through ``matrix``."""
        return BoundingBox.from_points(matrix.apply(c) for c in self.corners())

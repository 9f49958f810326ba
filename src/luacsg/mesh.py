"""Triangle-mesh object node.

A :class:`Mesh` evaluates to the signed distance of the closest triangle.
Inside/outside is decided by ray-casting parity, so meshes should be closed
for the sign to be meaningful.  Every evaluation visits every triangle,
which makes meshes far slower than the analytic primitives.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from luacsg.bbox import BoundingBox
from luacsg.errors import ConstructionError
from luacsg.geom import vec3
from luacsg.io.stl import Triangle, read_stl
from luacsg.objects import ImplicitObject

# skewed so that rays rarely graze shared edges or vertices exactly
_RAY_DIRECTION = np.array([0.8726, 0.4123, 0.2617])
_RAY_DIRECTION = _RAY_DIRECTION / np.linalg.norm(_RAY_DIRECTION)
_RAY_EPS = 1e-12


def _segment_distances(p: np.ndarray, u: np.ndarray, v: np.ndarray) -> np.ndarray:
    """Distance from ``p`` to each segment ``u[i] -> v[i]``."""
    e = v - u
    ee = np.einsum('ij,ij->i', e, e)
    with np.errstate(divide='ignore', invalid='ignore'):
        t = np.where(ee > 0.0, np.einsum('ij,ij->i', p - u, e) / ee, 0.0)
    t = np.clip(t, 0.0, 1.0)
    closest = u + t[:, None] * e
    return np.linalg.norm(p - closest, axis=1)


def triangle_distances(p: np.ndarray, tris: np.ndarray) -> np.ndarray:
    """Unsigned distance from ``p`` to each triangle of an ``(n, 3, 3)`` array."""
    a, b, c = tris[:, 0], tris[:, 1], tris[:, 2]
    n = np.cross(b - a, c - a)
    nn = np.einsum('ij,ij->i', n, n)

    # the projection of p lies inside the triangle when p sits on the
    # inner side of all three edges
    inside = np.ones(len(tris), dtype=bool)
    for u, v in ((a, b), (b, c), (c, a)):
        side = np.einsum('ij,ij->i', np.cross(v - u, p - u), n)
        inside &= side >= 0.0

    with np.errstate(divide='ignore', invalid='ignore'):
        plane = np.abs(np.einsum('ij,ij->i', p - a, n)) / np.sqrt(nn)

    edges = np.minimum(
        _segment_distances(p, a, b),
        np.minimum(_segment_distances(p, b, c), _segment_distances(p, c, a)),
    )
    return np.where(inside & (nn > 0.0), plane, edges)


def ray_crossings(p: np.ndarray, tris: np.ndarray,
                  direction: np.ndarray = _RAY_DIRECTION) -> int:
    """Number of triangles hit by the ray from ``p`` along ``direction``."""
    a = tris[:, 0]
    e1 = tris[:, 1] - a
    e2 = tris[:, 2] - a
    h = np.cross(direction, e2)
    det = np.einsum('ij,ij->i', e1, h)
    valid = np.abs(det) > _RAY_EPS
    with np.errstate(divide='ignore', invalid='ignore'):
        f = np.where(valid, 1.0 / det, 0.0)
        s = p - a
        u = f * np.einsum('ij,ij->i', s, h)
        q = np.cross(s, e1)
        v = f * (q @ direction)
        t = f * np.einsum('ij,ij->i', e2, q)
    hits = valid & (u >= 0.0) & (v >= 0.0) & (u + v <= 1.0) & (t > _RAY_EPS)
    return int(np.count_nonzero(hits))


class Mesh(ImplicitObject):
    """Closed triangle mesh given as an ``(n, 3, 3)`` array of vertices."""

    def __init__(self, triangles):
        super().__init__()
        tris = np.asarray(triangles, dtype=float)
        if tris.ndim != 3 or tris.shape[1:] != (3, 3) or len(tris) == 0:
            raise ConstructionError(
                f"mesh needs an (n, 3, 3) vertex array, got shape {tris.shape}")
        self.triangles = tris

    @classmethod
    def from_triangles(cls, triangles: Sequence[Triangle]) -> "Mesh":
        return cls([[t.v0, t.v1, t.v2] for t in triangles])

    @classmethod
    def from_file(cls, path) -> "Mesh":
        """Load an STL file; raises ``OSError`` or ``ValueError`` on failure."""
        return cls.from_triangles(read_stl(path))

    def evaluate(self, p):
        p = np.asarray(vec3(p))
        d = float(np.min(triangle_distances(p, self.triangles)))
        if ray_crossings(p, self.triangles) % 2 == 1:
            return -d
        return d

    def _natural_bbox(self):
        pts = self.triangles.reshape(-1, 3)
        return BoundingBox(tuple(pts.min(axis=0)), tuple(pts.max(axis=0)))

    def _params(self):
        return {"triangles": len(self.triangles)}

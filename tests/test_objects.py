"""
Tests for the implicit object tree (primitives, composites, transforms).
"""

import math

import pytest

from luacsg.bbox import INFINITY, NEG_INFINITY, BoundingBox
from luacsg.errors import ConstructionError
from luacsg.objects import (
    AffineTransformer, Bender, Cone, Cylinder, Intersection, Negation,
    NormalPlane, PlaneNegX, PlaneNegY, PlaneNegZ, PlaneX, PlaneY, PlaneZ,
    Sphere, Twister, Union, smooth_max, smooth_min,
)

SAMPLES = [
    (0.0, 0.0, 0.0),
    (1.5, -0.25, 0.75),
    (-2.0, 3.0, 1.0),
    (0.1, 0.2, -4.0),
    (5.0, 5.0, 5.0),
]


def box(x, y, z, smooth=0.0):
    return Intersection([
        PlaneX(x / 2), PlaneY(y / 2), PlaneZ(z / 2),
        PlaneNegX(x / 2), PlaneNegY(y / 2), PlaneNegZ(z / 2),
    ], smooth)


# --- Bounding boxes ---

class TestBoundingBox:

    def test_sentinel_clamp(self):
        b = BoundingBox((-math.inf, 0, 0), (1e20, 1, 1))
        assert b.min[0] == NEG_INFINITY
        assert b.max[0] == INFINITY

    def test_intersection_and_union(self):
        a = BoundingBox((0, 0, 0), (2, 2, 2))
        b = BoundingBox((1, -1, 1), (3, 1, 3))
        assert a.intersection(b) == BoundingBox((1, 0, 1), (2, 1, 2))
        assert a.union(b) == BoundingBox((0, -1, 0), (3, 2, 3))

    def test_contains_and_dim(self):
        b = BoundingBox((-1, -2, -3), (1, 2, 3))
        assert b.contains((0, 0, 0))
        assert not b.contains((0, 2.5, 0))
        assert b.dim == (2, 4, 6)
        assert not b.is_empty
        assert BoundingBox((1, 0, 0), (0, 1, 1)).is_empty

    def test_from_points(self):
        b = BoundingBox.from_points([(1, 2, 3), (-1, 5, 0)])
        assert b == BoundingBox((-1, 2, 0), (1, 5, 3))
        with pytest.raises(ValueError):
            BoundingBox.from_points([])


# --- Primitives ---

class TestPlanes:

    def test_axis_planes(self):
        assert PlaneX(1).evaluate((3, 0, 0)) == 2
        assert PlaneX(1).evaluate((0, 0, 0)) == -1
        assert PlaneNegX(1).evaluate((-3, 0, 0)) == 2
        assert PlaneNegX(1).evaluate((0, 0, 0)) == -1
        assert PlaneY(2).evaluate((0, 2, 0)) == 0
        assert PlaneNegZ(2).evaluate((0, 0, -2)) == 0

    def test_axis_plane_boxes(self):
        assert PlaneZ(2).bbox().max[2] == 2
        assert PlaneZ(2).bbox().min[2] == NEG_INFINITY
        assert PlaneNegY(3).bbox().min[1] == -3
        assert PlaneNegY(3).bbox().max[1] == INFINITY

    def test_hessian_plane(self):
        plane = NormalPlane.from_normal_and_p((0, 0, 2), 1)
        assert plane.normal == (0, 0, 1)
        assert plane.evaluate((5, 5, 1)) == 0
        assert plane.evaluate((0, 0, 3)) == 2
        assert plane.bbox() == BoundingBox.infinity()

    def test_three_point_plane(self):
        plane = NormalPlane.from_3_points((0, 0, 1), (1, 0, 1), (0, 1, 1))
        assert plane.evaluate((0.3, 0.7, 1)) == pytest.approx(0)
        assert plane.evaluate((0, 0, 2)) == pytest.approx(1)
        assert plane.evaluate((0, 0, 0)) == pytest.approx(-1)

    def test_degenerate_planes(self):
        with pytest.raises(ConstructionError):
            NormalPlane((0, 0, 0), 1)
        with pytest.raises(ConstructionError):
            NormalPlane.from_3_points((0, 0, 0), (1, 1, 1), (2, 2, 2))

    def test_non_finite_planes(self):
        with pytest.raises(ConstructionError):
            NormalPlane((math.nan, 0, 1), 1)
        with pytest.raises(ConstructionError):
            NormalPlane((0, 0, 1), math.inf)
        with pytest.raises(ConstructionError):
            NormalPlane.from_3_points((0, 0, 0), (1, 0, 0), (0, math.nan, 0))
        with pytest.raises(ConstructionError):
            PlaneX(math.nan)


class TestRoundPrimitives:

    @pytest.mark.parametrize("make", [Sphere, Cylinder, Cone, lambda v: Cone(1, v)])
    def test_non_finite_parameters_rejected(self, make):
        for value in (math.nan, math.inf):
            with pytest.raises(ConstructionError):
                make(value)

    @pytest.mark.parametrize("radius", [0.5, 1.0, 3.25])
    def test_sphere(self, radius):
        s = Sphere(radius)
        box = s.bbox()
        for axis in range(3):
            assert box.min[axis] <= -radius
            assert box.max[axis] >= radius
        for direction in [(1, 0, 0), (0, -1, 0), (0.6, 0.0, 0.8)]:
            p = tuple(radius * d for d in direction)
            assert abs(s.evaluate(p)) < 1e-9
        assert s.evaluate((0, 0, 0)) == -radius
        assert s.bounding_box() == box

    def test_cylinder(self):
        c = Cylinder(2)
        assert c.evaluate((2, 0, 100)) == 0
        assert c.evaluate((0, 0, -50)) == -2
        assert c.bbox() == BoundingBox((-2, -2, NEG_INFINITY), (2, 2, INFINITY))

    def test_cone(self):
        c = Cone(0.5, 1.0)
        assert c.radius_at(1.0) == 0
        assert c.radius_at(5.0) == 2.0
        assert c.evaluate((2, 0, 5)) == pytest.approx(0)
        assert c.evaluate((0, 0, 5)) < 0
        assert c.evaluate((3, 0, 5)) > 0
        assert c.bbox() == BoundingBox.infinity()


# --- Composites ---

class TestCombinators:

    def test_hard_limits(self):
        assert smooth_max(1.0, 2.0, 0.0) == 2.0
        assert smooth_min(1.0, 2.0, 0.0) == 1.0

    def test_smooth_blends_near_equal_values(self):
        assert smooth_max(1.0, 1.0, 0.5) > 1.0
        assert smooth_min(1.0, 1.0, 0.5) < 1.0
        # far apart values are untouched
        assert smooth_max(0.0, 10.0, 0.5) == 10.0
        assert smooth_min(0.0, 10.0, 0.5) == 0.0


class TestComposites:

    def test_box_inside_outside(self):
        b = box(2, 4, 6)
        assert b.evaluate((0, 0, 0)) < 0
        assert b.evaluate((0.99, 1.99, 2.99)) < 0
        assert b.evaluate((1.01, 0, 0)) > 0
        assert b.evaluate((0, -2.01, 0)) > 0
        assert b.evaluate((0, 0, 3.01)) > 0
        assert b.evaluate((1, 0, 0)) == 0
        assert b.bbox() == BoundingBox((-1, -2, -3), (1, 2, 3))

    def test_intersection_rejects_bad_input(self):
        with pytest.raises(ConstructionError):
            Intersection([])
        with pytest.raises(ConstructionError):
            Intersection([Sphere(1)], -0.5)
        with pytest.raises(ConstructionError):
            Union([Sphere(1)], math.nan)
        assert Intersection.from_list([]) is None

    def test_union(self):
        u = Union([Sphere(1), Sphere(1).translate(3, 0, 0)])
        assert u.evaluate((0, 0, 0)) == -1
        assert u.evaluate((3, 0, 0)) == pytest.approx(-1)
        assert u.evaluate((1.5, 0, 0)) > 0
        assert u.bbox() == BoundingBox((-1, -1, -1), (4, 1, 1))

    def test_difference(self):
        d = Intersection.difference_from_list([Sphere(2), Sphere(1)])
        assert d.evaluate((0, 0, 0)) > 0
        assert d.evaluate((1.5, 0, 0)) < 0
        assert d.evaluate((2.5, 0, 0)) > 0
        assert d.bbox() == Sphere(2).bbox()
        assert Intersection.difference_from_list([]) is None

    def test_negation(self):
        n = Negation(Sphere(1))
        assert n.evaluate((0, 0, 0)) == 1
        assert n.bbox() == BoundingBox.infinity()

    def test_smoothing_rounds_corners(self):
        sharp = box(2, 2, 2)
        round_ = box(2, 2, 2, 0.5)
        corner = (0.95, 0.95, 0.95)
        assert sharp.evaluate(corner) < 0
        assert round_.evaluate(corner) > sharp.evaluate(corner)

    def test_nested_same_kind_is_flattened(self):
        a, b, c = Sphere(1), Sphere(1).translate(2, 0, 0), Sphere(1).translate(4, 0, 0)
        u = Union([Union([a, b], 0.3), c], 0.3)
        assert u.children == [a, b, c]
        i = Intersection([Sphere(3), Intersection([Sphere(2), a])])
        assert len(i.children) == 3

    def test_flattening_keeps_the_field(self):
        parts = [Sphere(1).translate(1.2 * k, 0, 0) for k in range(4)]
        nested = Union([Union([Union(parts[:2], 0.4), parts[2]], 0.4), parts[3]], 0.4)
        for p in SAMPLES + [(0.6, 0, 0), (2.4, 0.3, 0)]:
            expected = parts[0].evaluate(p)
            for part in parts[1:]:
                expected = smooth_min(expected, part.evaluate(p), 0.4)
            assert nested.evaluate(p) == pytest.approx(expected)
        assert len(nested.children) == 4

    def test_flattening_needs_matching_composites(self):
        inner = Union([Sphere(1), Sphere(2)], 0.5)
        assert Union([inner, Sphere(3)], 0.2).children[0] is inner
        assert Intersection([inner, Sphere(3)], 0.5).children[0] is inner
        # a smoothed blend is only merged from the leading position
        assert Union([Sphere(3), inner], 0.5).children[1] is inner
        hard = Union([Sphere(1), Sphere(2)])
        assert len(Union([Sphere(3), hard]).children) == 3
        boxed = Union([Sphere(1), Sphere(2)])
        boxed.set_bbox(BoundingBox((-1, -1, -1), (1, 1, 1)))
        assert Union([boxed, Sphere(3)]).children[0] is boxed

    def test_deep_chain_stays_flat(self):
        o = Sphere(1)
        for k in range(1, 600):
            o = Union([o, Sphere(1).translate(k, 0, 0)])
        assert len(o.children) == 600
        assert o.clone().evaluate((599, 0, 0)) == pytest.approx(-1)


# --- Deformations ---

class TestDeformations:

    def test_bend_maps_x_to_angle(self):
        bar = box(4, 0.5, 1).translate(0, 2, 0)
        bent = Bender(bar, 8)
        # a point on the positive X axis at radius 2 is phi = 0 -> x = 0
        assert bent.evaluate((2, 0, 0)) < 0
        # phi = pi/2 maps to x = 2, the end face of the bar
        assert bent.evaluate((0, 2, 0)) == pytest.approx(0, abs=1e-9)
        assert bent.evaluate((-2, 0, 0)) > 0
        b = bent.bbox()
        assert b.max[0] == pytest.approx(2.25)
        assert b.min[2] == pytest.approx(-0.5)

    def test_twist_rotates_with_height(self):
        bar = box(2, 0.2, 4)
        twisted = Twister(bar, 4)
        assert twisted.evaluate((0.9, 0, 0)) < 0
        # a quarter turn at z = 1: the bar now lies along Y
        assert twisted.evaluate((0, 0.9, 1)) < 0
        assert twisted.evaluate((0.9, 0, 1)) > 0
        r = math.hypot(1, 0.1)
        assert twisted.bbox().max[0] == pytest.approx(r)

    def test_zero_parameters_rejected(self):
        with pytest.raises(ConstructionError):
            Bender(Sphere(1), 0)
        with pytest.raises(ConstructionError):
            Twister(Sphere(1), 0)

    @pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf])
    def test_non_finite_parameters_rejected(self, value):
        with pytest.raises(ConstructionError):
            Bender(Sphere(1), value)
        with pytest.raises(ConstructionError):
            Twister(Sphere(1), value)


# --- Transforms ---

class TestTransforms:

    def test_translate_law(self):
        s = Sphere(1)
        t = s.translate(1, 2, 3)
        for p in SAMPLES:
            q = (p[0] - 1, p[1] - 2, p[2] - 3)
            assert t.evaluate(p) == pytest.approx(s.evaluate(q))
        assert t.bbox().min == pytest.approx((0, 1, 2))

    def test_translations_compose(self):
        o = Union([box(1, 2, 3), Sphere(1).translate(2, 0, 0)], 0.2)
        twice = o.clone().translate(1, -2, 0.5).translate(-3, 1, 2)
        once = o.clone().translate(-2, -1, 2.5)
        assert isinstance(twice, AffineTransformer)
        assert not isinstance(twice.child, AffineTransformer)
        for p in SAMPLES:
            assert twice.evaluate(p) == pytest.approx(once.evaluate(p))

    def test_rotate(self):
        bar = box(4, 1, 1)
        turned = bar.rotate(0, 0, math.pi / 2)
        assert turned.evaluate((0, 1.9, 0)) < 0
        assert turned.evaluate((1.9, 0, 0)) > 0
        assert turned.bbox().max[1] == pytest.approx(2)

    def test_scale(self):
        s = Sphere(1).scale(2, 1, 1)
        assert s.evaluate((1.9, 0, 0)) < 0
        assert s.evaluate((0, 1.1, 0)) > 0
        assert s.bbox().max == pytest.approx((2, 1, 1))
        with pytest.raises(ConstructionError):
            Sphere(1).scale(0, 1, 1)

    def test_transform_does_not_touch_receiver(self):
        s = Sphere(1)
        s.translate(5, 0, 0)
        assert s.evaluate((0, 0, 0)) == -1

    def test_unbounded_box_stays_finite(self):
        c = Cylinder(1).rotate(0.3, 0.4, 0.5)
        b = c.bbox()
        assert all(NEG_INFINITY <= v <= INFINITY for v in b.min + b.max)


class TestBboxOverride:

    def test_override_and_clone(self):
        c = Cone(0.5, -3)
        box_ = BoundingBox((-3, -3, NEG_INFINITY), (3, 3, INFINITY))
        c.set_bbox(box_)
        assert c.bbox() == box_
        copy = c.clone()
        assert copy.bbox() == box_
        assert copy is not c

    def test_override_survives_transform(self):
        c = Cone(1, 0)
        c.set_bbox(BoundingBox((-1, -1, -1), (1, 1, 1)))
        moved = c.translate(1, 0, 0)
        assert moved.bbox().max == pytest.approx((2, 1, 1))
        again = moved.translate(1, 0, 0)
        assert again.bbox().max == pytest.approx((3, 1, 1))

    def test_repr(self):
        assert repr(Sphere(2)) == "Sphere(radius=2.0)"
        assert "PlaneX(d=0.5)" in repr(box(1, 1, 1))

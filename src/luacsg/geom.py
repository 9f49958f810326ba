"""Scalar and 3-vector helpers shared by the object tree.

Points and vectors are plain ``(x, y, z)`` tuples.  The 4x4 matrix code in
:mod:`luacsg.xform` works on homogeneous ``[x, y, z, w]`` lists; :func:`homo`
brings those back to points.
"""

from math import pi, sqrt

epsilon = 0.000005
pi2 = 2.0 * pi

## machine epsilon, used where radii are compared for exact equality
float_epsilon = 2.220446049250313e-16


## operations on scalars
## ---------------------

def isgoodnum(n):
    """ determine if an argument is actually a scalar number, and not boolean
    """
    return (not isinstance(n, bool)) and isinstance(n, (int, float))


def close(a, b):
    """ are two scalars the same within epsilon
    """
    return abs(a - b) < epsilon


def clamp(x, lo, hi):
    return max(lo, min(hi, x))


def mix(a, b, t):
    """ linear interpolation from ``a`` (t=0) to ``b`` (t=1)"""
    return a * (1.0 - t) + b * t


## operations on vectors
## ---------------------

def vec3(p):
    """ coerce a 3-or-more sequence into an ``(x, y, z)`` float tuple"""
    if len(p) < 3:
        raise ValueError('expected at least three coordinates, got {}'.format(p))
    return (float(p[0]), float(p[1]), float(p[2]))


def homo(a):
    """ divide through by ``w`` and drop it"""
    w = a[3]
    if w == 0:
        return (a[0], a[1], a[2])
    return (a[0] / w, a[1] / w, a[2] / w)


def sub(a, b):
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def scale3(a, c):
    return (a[0] * c, a[1] * c, a[2] * c)


def dot(a, b):
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def dot4(a, b):
    """ 4 vect dot product"""
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2] + a[3] * b[3]


def cross(a, b):
    return (a[1] * b[2] - a[2] * b[1],
            a[2] * b[0] - a[0] * b[2],
            a[0] * b[1] - a[1] * b[0])


def mag(a):
    """ compute the magnitude of 3 vector ``a``"""
    return sqrt(a[0] * a[0] + a[1] * a[1] + a[2] * a[2])


def normalize(a):
    """ unit vector along ``a``; raises ``ValueError`` for a zero vector"""
    m = mag(a)
    if m < epsilon:
        raise ValueError('cannot normalize a zero-length vector')
    return scale3(a, 1.0 / m)

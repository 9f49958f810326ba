## generalized matrix transformation operations for 3D homogeneous
## coordinates in luacsg

## Copyright (c) 2020 Richard W. DeVaul
## Copyright (c) 2020 yapCAD contributors
## All rights reserved

# Permission is hereby granted, free of charge, to any person
# obtaining a copy of this software and associated documentation files
# (the "Software"), to deal in the Software without restriction,
# including without limitation the rights to use, copy, modify, merge,
# publish, distribute, sublicense, and/or sell copies of the Software,
# and to permit persons to whom the Software is furnished to do so,
# subject to the following conditions:
#
# The above copyright notice and this permission notice shall be
# included in all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND,
# EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF
# MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND
# NONINFRINGEMENT. IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT HOLDERS
# BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN
# ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN
# CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

from math import cos, isfinite, sin

import luacsg.geom as geom

## a matrix is represented as a list of four four vectors. In a
## matrix, vectors represent rows unless the transpose property is
## true.  Operations like Mx imply a column vector.

## Matrix is the lightweight foundation class.  MatrixStack captures a
## series of transformations together with their inverses, which are
## composed analytically rather than by numeric inversion.


class Matrix:
    """4x4 transformation matrix class for transforming homogemenous 3D coordinates"""

    def __init__(self, a=False, trans=False):
        self.m = [[1, 0, 0, 0],
                  [0, 1, 0, 0],
                  [0, 0, 1, 0],
                  [0, 0, 0, 1]]
        self.trans = False

        if isinstance(a, Matrix):
            for i in range(4):
                self.setrow(i, list(a.getrow(i)))

        elif isinstance(a, (tuple, list)):
            if len(a) == 4 and all(isinstance(r, (tuple, list)) and len(r) == 4 for r in a):
                for i in range(4):
                    for j in range(4):
                        x = a[i][j]
                        if geom.isgoodnum(x):
                            self.m[i][j] = x
                        else:
                            raise ValueError('bad element in matrix initialization: {}'.format(x))
            elif len(a) == 16:
                for i in range(4):
                    for j in range(4):
                        x = a[i * 4 + j]
                        if geom.isgoodnum(x):
                            self.m[i][j] = x
                        else:
                            raise ValueError('bad element in matrix initialization: {}'.format(x))
            else:
                raise ValueError('bad thing used in attempt to initialize matrix: {}'.format(a))
        elif a is not False:
            raise ValueError('bad thing used in attempt to initialize matrix: {}'.format(a))
        self.trans = trans

    def __repr__(self):
        return "Matrix({},{},{},{},{})".format(self.m[0], self.m[1],
                                               self.m[2], self.m[3], self.trans)

    #set value indexed by i,j
    def set(self, i, j, x):
        if i < 0 or i > 3 or j < 0 or j > 3:
            raise ValueError('bad index passed to set: {},{}'.format(i, j))
        if geom.isgoodnum(x):
            if self.trans:
                self.m[j][i] = x
            else:
                self.m[i][j] = x
        else:
            raise ValueError('bad value passed to set: {}'.format(x))

    def getrow(self, i):
        if i < 0 or i > 3:
            raise ValueError('bad row passed to getrow: {}'.format(i))
        if self.trans:
            return [self.m[0][i],
                    self.m[1][i],
                    self.m[2][i],
                    self.m[3][i]]
        else:
            return list(self.m[i])

    def getcol(self, j):
        if j < 0 or j > 3:
            raise ValueError('bad column passed to getcol: {}'.format(j))
        if not self.trans:
            return [self.m[0][j],
                    self.m[1][j],
                    self.m[2][j],
                    self.m[3][j]]
        else:
            return list(self.m[j])

    def setrow(self, i, x):
        if len(x) != 4:
            raise ValueError('bad non-vector passed to setrow: {}'.format(x))
        if i < 0 or i > 3:
            raise ValueError('bad row index passed to setrow: {}'.format(i))
        if self.trans:
            for j in range(4):
                self.m[j][i] = x[j]
        else:
            self.m[i] = list(x)

    # matrix multiply.  If x is a matrix, compute MX.  If X is a
    # 4-vector, compute Mx. If x is a scalar, compute xM.  Respects
    # transpose flag.

    def mul(self, x):
        if isinstance(x, Matrix):
            result = Matrix()
            for i in range(4):
                for j in range(4):
                    result.set(i, j,
                               geom.dot4(self.getrow(i), x.getcol(j)))
            return result
        elif isinstance(x, (tuple, list)) and len(x) == 4:
            return [geom.dot4(self.getrow(i), x) for i in range(4)]
        elif geom.isgoodnum(x):
            result = Matrix()
            for i in range(4):
                result.setrow(i, [v * x for v in self.getrow(i)])
            return result

        raise ValueError('bad thing passed to mul(): {}'.format(x))

    def apply(self, p):
        """ transform the 3D point ``p``, returning an ``(x, y, z)`` tuple"""
        x, y, z = geom.vec3(p)
        return geom.homo(self.mul([x, y, z, 1.0]))


# return the generalized 4x4 arbitrary axis rotation matrix; angle in
# radians, right-handed about ``axis``
def Rotation(axis, angle, inverse=False):
    m = geom.mag(axis)
    u = axis
    if m < geom.epsilon:
        raise ValueError('zero-length rotation axis not allowed')
    if not geom.close(m, 1.0):
        u = geom.scale3(axis, 1.0 / m)

    if inverse:
        angle *= -1.0

    ux = u[0]
    uy = u[1]
    uz = u[2]

    cang = cos(angle)
    cmin = 1.0 - cang
    sang = sin(angle)

    # see http://www.opengl-tutorial.org/assets/faq_quaternions/index.html#Q38
    R = [[cang + ux*ux*cmin, ux*uy*cmin - uz*sang, ux*uz*cmin + uy*sang, 0],
         [uy*ux*cmin + uz*sang, cang + uy*uy*cmin, uy*uz*cmin - ux*sang, 0],
         [uz*ux*cmin - uy*sang, uz*uy*cmin + ux*sang, cang + uz*uz*cmin, 0],
         [0, 0, 0, 1]]

    return Matrix(R)


# roll about X, then pitch about Y, then yaw about Z (Rz * Ry * Rx)
def EulerRotation(x, y, z, inverse=False):
    rx = Rotation((1.0, 0.0, 0.0), x)
    ry = Rotation((0.0, 1.0, 0.0), y)
    rz = Rotation((0.0, 0.0, 1.0), z)
    R = rz.mul(ry).mul(rx)
    if inverse:
        # pure rotation, so the inverse is the transpose
        return Matrix(R, True)
    return R


def Translation(delta, inverse=False):
    dx, dy, dz = geom.vec3(delta)
    if inverse:
        dx, dy, dz = -dx, -dy, -dz
    T = [[1, 0, 0, dx],
         [0, 1, 0, dy],
         [0, 0, 1, dz],
         [0, 0, 0, 1]]
    return Matrix(T)


def Scale(x, y, z, inverse=False):
    if not all(geom.isgoodnum(v) and isfinite(v) for v in (x, y, z)):
        raise ValueError('bad scaling values passed to Scale: {}'.format((x, y, z)))

    if inverse:
        if x == 0 or y == 0 or z == 0:
            raise ValueError('cannot invert a scale with a zero factor: {}'.format((x, y, z)))
        x, y, z = 1.0 / x, 1.0 / y, 1.0 / z

    S = [[x, 0, 0, 0],
         [0, y, 0, 0],
         [0, 0, z, 0],
         [0, 0, 0, 1.0]]
    return Matrix(S)


class MatrixStack:
    """A composed transformation and its analytic inverse.

    ``forward`` maps object space to world space, ``inverse`` maps world
    space back to object space.  Each ``push_*`` applies a new
    transformation after the ones already on the stack and returns a new
    stack; the receiver is left untouched.
    """

    def __init__(self, forward=None, inverse=None):
        self.forward = forward if forward is not None else Matrix()
        self.inverse = inverse if inverse is not None else Matrix()

    def __repr__(self):
        return "MatrixStack({!r})".format(self.forward)

    ## stacks are never modified after construction, so copies can share one
    def __deepcopy__(self, memo):
        return self

    def push(self, m, minv):
        return MatrixStack(m.mul(self.forward), self.inverse.mul(minv))

    def push_translation(self, delta):
        return self.push(Translation(delta), Translation(delta, inverse=True))

    def push_rotation(self, x, y, z):
        return self.push(EulerRotation(x, y, z), EulerRotation(x, y, z, inverse=True))

    def push_scale(self, x, y, z):
        return self.push(Scale(x, y, z), Scale(x, y, z, inverse=True))

    def to_object(self, p):
        return self.inverse.apply(p)

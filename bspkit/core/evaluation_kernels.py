#---------------------------------------------------------------------------#
# This file is part of BSPKIT which is released under MIT License. See the  #
# LICENSE file for full license details.                                    #
#---------------------------------------------------------------------------#

# Pyccelisable evaluation of B-spline and NURBS curves, surfaces and volumes.
#
# Layout of the arrays:
#   . control points: (n1+1, [n2+1, [n3+1,]] d)
#   . weights       : (n1+1, [n2+1, [n3+1]])
#   . output        : (r1, [r2, [r3,]] d) for values,
#                     (r1, [r2, [r3,]] nb_partials, d) for derivatives.

import numpy as np

from bspkit.core.knots_kernels import find_span_p
from bspkit.core.knots_kernels import find_mult_p
from bspkit.core.basis_kernels import basis_funs_p
from bspkit.core.basis_kernels import basis_funs_all_ders_p


# =============================================================================
def curve_point_p(knots: 'float[:]', degree: int, points: 'float[:,:]', x: float, out: 'float[:]'):
    """
    Evaluate a non-rational B-spline curve at x. See Algorithm A3.1 in [1].

    Parameters
    ----------
    knots : array_like
        Knots sequence.

    degree : int
        Polynomial degree.

    points : array_like
        Control points, shape (n+1, d).

    x : float
        Evaluation point.

    out : array
        Point on the curve, shape (d,).

    References
    ----------
    .. [1] L. Piegl and W. Tiller. The NURBS Book, 2nd ed.,
        Springer-Verlag Berlin Heidelberg GmbH, 1997.
    """
    p     = degree
    basis = np.zeros(p + 1)

    span = find_span_p(knots, p, x)
    basis_funs_p(knots, p, x, span, basis)

    out[:] = 0.0
    for j in range(p + 1):
        out[:] += basis[j] * points[span - p + j, :]


# =============================================================================
def surface_point_p(knots1: 'float[:]', degree1: int, knots2: 'float[:]', degree2: int,
                    points: 'float[:,:,:]', x1: float, x2: float, out: 'float[:]'):
    """
    Evaluate a non-rational tensor-product B-spline surface at (x1, x2).
    See Algorithm A3.5 in The NURBS Book.

    points has shape (n1+1, n2+1, d), out has shape (d,).
    """
    p1 = degree1
    p2 = degree2

    basis1 = np.zeros(p1 + 1)
    basis2 = np.zeros(p2 + 1)

    span1 = find_span_p(knots1, p1, x1)
    basis_funs_p(knots1, p1, x1, span1, basis1)
    span2 = find_span_p(knots2, p2, x2)
    basis_funs_p(knots2, p2, x2, span2, basis2)

    out[:] = 0.0
    for j1 in range(p1 + 1):
        for j2 in range(p2 + 1):
            out[:] += basis1[j1] * basis2[j2] * points[span1 - p1 + j1, span2 - p2 + j2, :]


# =============================================================================
def curve_point_corner_cut_p(knots: 'float[:]', degree: int, points: 'float[:,:]', x: float, out: 'float[:]'):
    """
    Evaluate a B-spline curve at x by corner cutting, i.e. by inserting x
    until its multiplicity reaches the degree. See Algorithm A5.2 in
    The NURBS Book.

    Points on the left/right boundary, and knots of full multiplicity, are
    taken directly from the control polygon.
    """
    p  = degree
    n  = len(knots) - p - 2
    d  = points.shape[1]
    Rw = np.zeros((p + 1, d))

    if x <= knots[p]:
        uu = knots[p]
        k  = p
        s  = find_mult_p(knots, p, uu, p)
        if s >= p:
            out[:] = points[0, :]
            return
    elif x >= knots[n+1]:
        uu = knots[n+1]
        k  = n + 1
        s  = find_mult_p(knots, p, uu, n)
        if s >= p:
            out[:] = points[n, :]
            return
    else:
        uu = x
        k  = find_span_p(knots, p, uu)
        s  = find_mult_p(knots, p, uu, k)
        if s >= p:
            out[:] = points[k - p, :]
            return

    r = p - s
    for i in range(r + 1):
        Rw[i, :] = points[k - p + i, :]

    for j in range(1, r + 1):
        for i in range(r - j + 1):
            alpha    = (uu - knots[k - p + j + i]) / (knots[i + k + 1] - knots[k - p + j + i])
            Rw[i, :] = alpha * Rw[i + 1, :] + (1.0 - alpha) * Rw[i, :]

    out[:] = Rw[0, :]


# =============================================================================
def evaluate_1d_p(knots: 'float[:]', degree: int, points: 'float[:,:]', weights: 'float[:]',
                  x: 'float[:]', out: 'float[:,:]'):
    """
    Evaluate a NURBS curve at all locations of x.

    Every control point contributes basis * weight * point, the sum is
    divided by w = sum(basis * weight).

    Parameters
    ----------
    knots : array_like
        Knots sequence.

    degree : int
        Polynomial degree.

    points : array_like
        Control points (not multiplied by the weights), shape (n+1, d).

    weights : array_like
        Weights, shape (n+1,).

    x : array_like
        Evaluation points.

    out : array
        Values, shape (len(x), d).
    """
    p     = degree
    nx    = x.shape[0]
    basis = np.zeros(p + 1)

    for i in range(nx):
        span = find_span_p(knots, p, x[i])
        basis_funs_p(knots, p, x[i], span, basis)

        # compute w = sum wi Ni
        w = 0.0
        for j in range(p + 1):
            w += basis[j] * weights[span - p + j]

        out[i, :] = 0.0
        for j in range(p + 1):
            out[i, :] += basis[j] * weights[span - p + j] * points[span - p + j, :]
        out[i, :] = out[i, :] / w


# =============================================================================
def evaluate_normal_1d_p(normalize: bool, knots: 'float[:]', degree: int, points: 'float[:,:]',
                         weights: 'float[:]', x: 'float[:]', out: 'float[:,:]'):
    """
    Evaluate sum(basis * weight * point) at all locations of x, where basis
    are B-splines, or M-splines if normalize is True. There is no rational
    division.
    """
    p     = degree
    nx    = x.shape[0]
    basis = np.zeros(p + 1)

    for i in range(nx):
        span = find_span_p(knots, p, x[i])
        basis_funs_p(knots, p, x[i], span, basis)

        o = span - p
        if normalize:
            for j in range(p + 1):
                basis[j] *= (p + 1) / (knots[o + j + p + 1] - knots[o + j])

        out[i, :] = 0.0
        for j in range(p + 1):
            out[i, :] += basis[j] * weights[o + j] * points[o + j, :]


# =============================================================================
def evaluate_deriv_1d_p(nderiv: int, knots: 'float[:]', degree: int, points: 'float[:,:]',
                        weights: 'float[:]', x: 'float[:]', out: 'float[:,:,:]'):
    """
    Evaluate a NURBS curve and its derivatives up to order nderiv <= 2 at
    all locations of x.

    out has shape (len(x), N+1, d) with N <= nderiv; out[:, k] holds the
    k-th derivative.
    """
    p  = degree
    nx = x.shape[0]
    N  = out.shape[1] - 1
    d  = points.shape[1]

    dbasis  = np.zeros((nderiv + 1, p + 1))
    Rdbasis = np.zeros((3, p + 1))
    w       = np.zeros(nderiv + 1)
    C       = np.zeros(d)

    for i in range(nx):
        span = find_span_p(knots, p, x[i])
        basis_funs_all_ders_p(knots, p, x[i], span, nderiv, False, dbasis)

        # compute w = sum wi Ni
        # and w' = sum wi Ni'
        w[:] = 0.0
        for j in range(p + 1):
            w[:] += dbasis[:, j] * weights[span - p + j]

        # compute Nurbs
        Rdbasis[:, :] = 0.0
        Rdbasis[0, :] = dbasis[0, :] / w[0]

        if nderiv >= 1:
            Rdbasis[1, :] = dbasis[1, :] / w[0] - dbasis[0, :] * w[1] / w[0]**2

        if nderiv >= 2:
            Rdbasis[2, :] = dbasis[2, :] / w[0]               \
                          - 2 * dbasis[1, :] * w[1] / w[0]**2 \
                          - dbasis[0, :] * w[2] / w[0]**2     \
                          + 2 * dbasis[0, :] * w[1]**2 / w[0]**3

        for deriv in range(N + 1):
            C[:] = 0.0
            for j in range(p + 1):
                C[:] += Rdbasis[deriv, j] * weights[span - p + j] * points[span - p + j, :]
            out[i, deriv, :] = C


# =============================================================================
def evaluate_2d_p(knots1: 'float[:]', degree1: int, knots2: 'float[:]', degree2: int,
                  points: 'float[:,:,:]', weights: 'float[:,:]',
                  x1: 'float[:]', x2: 'float[:]', out: 'float[:,:,:]'):
    """
    Evaluate a NURBS surface on the tensor grid x1 x x2.

    Spans and basis functions are computed once per site and per direction.
    out has shape (len(x1), len(x2), d).
    """
    p1 = degree1
    p2 = degree2
    n1 = x1.shape[0]
    n2 = x2.shape[0]
    d  = points.shape[2]

    spans1 = np.zeros(n1, dtype=int)
    spans2 = np.zeros(n2, dtype=int)
    basis1 = np.zeros((n1, p1 + 1))
    basis2 = np.zeros((n2, p2 + 1))
    C      = np.zeros(d)

    for i1 in range(n1):
        spans1[i1] = find_span_p(knots1, p1, x1[i1])
        basis_funs_p(knots1, p1, x1[i1], spans1[i1], basis1[i1, :])
    for i2 in range(n2):
        spans2[i2] = find_span_p(knots2, p2, x2[i2])
        basis_funs_p(knots2, p2, x2[i2], spans2[i2], basis2[i2, :])

    for i2 in range(n2):
        o2 = spans2[i2] - p2
        for i1 in range(n1):
            o1 = spans1[i1] - p1

            w = 0.0
            for j2 in range(p2 + 1):
                for j1 in range(p1 + 1):
                    M  = basis1[i1, j1] * basis2[i2, j2]
                    w += M * weights[o1 + j1, o2 + j2]

            C[:] = 0.0
            for j2 in range(p2 + 1):
                for j1 in range(p1 + 1):
                    M     = basis1[i1, j1] * basis2[i2, j2]
                    C[:] += M * weights[o1 + j1, o2 + j2] * points[o1 + j1, o2 + j2, :]

            out[i1, i2, :] = C / w


# =============================================================================
def evaluate_normal_2d_p(normalize1: bool, normalize2: bool,
                         knots1: 'float[:]', degree1: int, knots2: 'float[:]', degree2: int,
                         points: 'float[:,:,:]', weights: 'float[:,:]',
                         x1: 'float[:]', x2: 'float[:]', out: 'float[:,:,:]'):
    """
    Evaluate sum(basis * weight * point) on the tensor grid x1 x x2, using
    M-splines in the directions where normalize1/normalize2 is True.
    """
    p1 = degree1
    p2 = degree2
    n1 = x1.shape[0]
    n2 = x2.shape[0]
    d  = points.shape[2]

    spans1 = np.zeros(n1, dtype=int)
    spans2 = np.zeros(n2, dtype=int)
    basis1 = np.zeros((n1, p1 + 1))
    basis2 = np.zeros((n2, p2 + 1))
    C      = np.zeros(d)

    for i1 in range(n1):
        spans1[i1] = find_span_p(knots1, p1, x1[i1])
        basis_funs_p(knots1, p1, x1[i1], spans1[i1], basis1[i1, :])
        if normalize1:
            o1 = spans1[i1] - p1
            for j1 in range(p1 + 1):
                basis1[i1, j1] *= (p1 + 1) / (knots1[o1 + j1 + p1 + 1] - knots1[o1 + j1])

    for i2 in range(n2):
        spans2[i2] = find_span_p(knots2, p2, x2[i2])
        basis_funs_p(knots2, p2, x2[i2], spans2[i2], basis2[i2, :])
        if normalize2:
            o2 = spans2[i2] - p2
            for j2 in range(p2 + 1):
                basis2[i2, j2] *= (p2 + 1) / (knots2[o2 + j2 + p2 + 1] - knots2[o2 + j2])

    for i2 in range(n2):
        o2 = spans2[i2] - p2
        for i1 in range(n1):
            o1 = spans1[i1] - p1

            C[:] = 0.0
            for j2 in range(p2 + 1):
                for j1 in range(p1 + 1):
                    M     = basis1[i1, j1] * basis2[i2, j2]
                    C[:] += M * weights[o1 + j1, o2 + j2] * points[o1 + j1, o2 + j2, :]

            out[i1, i2, :] = C


# =============================================================================
def evaluate_deriv_2d_p(nderiv: int, knots1: 'float[:]', degree1: int, knots2: 'float[:]', degree2: int,
                        points: 'float[:,:,:]', weights: 'float[:,:]',
                        x1: 'float[:]', x2: 'float[:]', out: 'float[:,:,:,:]'):
    """
    Evaluate a NURBS surface and its partial derivatives up to order
    nderiv <= 2 on the tensor grid x1 x x2.

    out has shape (len(x1), len(x2), N+1, d) where the partials are stored in
    the order: value, x, y, xx, xy, yy (N = 0, 2 or 5).
    """
    p1 = degree1
    p2 = degree2
    n1 = x1.shape[0]
    n2 = x2.shape[0]
    N  = out.shape[2] - 1
    d  = points.shape[2]

    spans1  = np.zeros(n1, dtype=int)
    spans2  = np.zeros(n2, dtype=int)
    dbasis1 = np.zeros((n1, nderiv + 1, p1 + 1))
    dbasis2 = np.zeros((n2, nderiv + 1, p2 + 1))

    # Rdbasis(0) => Rij
    # Rdbasis(1) => dx Rij
    # Rdbasis(2) => dy Rij
    Rdbasis = np.zeros(6)
    C       = np.zeros((N + 1, d))

    out[:, :, :, :] = 0.0

    for i1 in range(n1):
        spans1[i1] = find_span_p(knots1, p1, x1[i1])
        basis_funs_all_ders_p(knots1, p1, x1[i1], spans1[i1], nderiv, False, dbasis1[i1, :, :])
    for i2 in range(n2):
        spans2[i2] = find_span_p(knots2, p2, x2[i2])
        basis_funs_all_ders_p(knots2, p2, x2[i2], spans2[i2], nderiv, False, dbasis2[i2, :, :])

    M = 0.0 ; Mx  = 0.0 ; My  = 0.0
    Mxx = 0.0 ; Mxy = 0.0 ; Myy = 0.0

    # compute
    # w   = sum wij Ni   Nj
    # wx  = sum wij Ni'  Nj
    # wy  = sum wij Ni   Nj'
    # wxx = sum wij Ni'' Nj
    # wxy = sum wij Ni'  Nj'
    # wyy = sum wij Ni   Nj''
    for i2 in range(n2):
        o2 = spans2[i2] - p2
        for i1 in range(n1):
            o1 = spans1[i1] - p1

            # --- compute w and its derivatives
            w   = 0.0 ; wx  = 0.0 ; wy  = 0.0
            wxx = 0.0 ; wxy = 0.0 ; wyy = 0.0
            for j2 in range(p2 + 1):
                for j1 in range(p1 + 1):
                    weight = weights[o1 + j1, o2 + j2]

                    M  = dbasis1[i1, 0, j1] * dbasis2[i2, 0, j2]
                    w += M * weight

                    if nderiv >= 1:
                        Mx = dbasis1[i1, 1, j1] * dbasis2[i2, 0, j2]
                        My = dbasis1[i1, 0, j1] * dbasis2[i2, 1, j2]

                        wx += Mx * weight
                        wy += My * weight

                    if nderiv >= 2:
                        Mxx = dbasis1[i1, 2, j1] * dbasis2[i2, 0, j2]
                        Mxy = dbasis1[i1, 1, j1] * dbasis2[i2, 1, j2]
                        Myy = dbasis1[i1, 0, j1] * dbasis2[i2, 2, j2]

                        wxx += Mxx * weight
                        wxy += Mxy * weight
                        wyy += Myy * weight

            # compute Nurbs and their derivatives
            C[:, :] = 0.0
            for j2 in range(p2 + 1):
                for j1 in range(p1 + 1):
                    M = dbasis1[i1, 0, j1] * dbasis2[i2, 0, j2]
                    Rdbasis[0] = M / w

                    if nderiv >= 1:
                        Mx = dbasis1[i1, 1, j1] * dbasis2[i2, 0, j2]
                        My = dbasis1[i1, 0, j1] * dbasis2[i2, 1, j2]

                        Rdbasis[1] = Mx / w - M * wx / w**2
                        Rdbasis[2] = My / w - M * wy / w**2

                    if nderiv >= 2:
                        Mxx = dbasis1[i1, 2, j1] * dbasis2[i2, 0, j2]
                        Mxy = dbasis1[i1, 1, j1] * dbasis2[i2, 1, j2]
                        Myy = dbasis1[i1, 0, j1] * dbasis2[i2, 2, j2]

                        Rdbasis[3] = Mxx / w                \
                                   - 2 * Mx * wx / w**2     \
                                   - M * wxx / w**2         \
                                   + 2 * M * wx**2 / w**3

                        Rdbasis[4] = Mxy / w                \
                                   - Mx * wy / w**2         \
                                   - My * wx / w**2         \
                                   - M * wxy / w**2         \
                                   + 2 * M * wx * wy / w**3

                        Rdbasis[5] = Myy / w                \
                                   - 2 * My * wy / w**2     \
                                   - M * wyy / w**2         \
                                   + 2 * M * wy**2 / w**3

                    for deriv in range(N + 1):
                        C[deriv, :] += Rdbasis[deriv] * points[o1 + j1, o2 + j2, :] * weights[o1 + j1, o2 + j2]

            out[i1, i2, :, :] = C


# =============================================================================
def evaluate_3d_p(knots1: 'float[:]', degree1: int, knots2: 'float[:]', degree2: int,
                  knots3: 'float[:]', degree3: int,
                  points: 'float[:,:,:,:]', weights: 'float[:,:,:]',
                  x1: 'float[:]', x2: 'float[:]', x3: 'float[:]', out: 'float[:,:,:,:]'):
    """
    Evaluate a NURBS volume on the tensor grid x1 x x2 x x3.

    out has shape (len(x1), len(x2), len(x3), d).
    """
    p1 = degree1
    p2 = degree2
    p3 = degree3
    n1 = x1.shape[0]
    n2 = x2.shape[0]
    n3 = x3.shape[0]
    d  = points.shape[3]

    spans1 = np.zeros(n1, dtype=int)
    spans2 = np.zeros(n2, dtype=int)
    spans3 = np.zeros(n3, dtype=int)
    basis1 = np.zeros((n1, p1 + 1))
    basis2 = np.zeros((n2, p2 + 1))
    basis3 = np.zeros((n3, p3 + 1))
    C      = np.zeros(d)

    for i1 in range(n1):
        spans1[i1] = find_span_p(knots1, p1, x1[i1])
        basis_funs_p(knots1, p1, x1[i1], spans1[i1], basis1[i1, :])
    for i2 in range(n2):
        spans2[i2] = find_span_p(knots2, p2, x2[i2])
        basis_funs_p(knots2, p2, x2[i2], spans2[i2], basis2[i2, :])
    for i3 in range(n3):
        spans3[i3] = find_span_p(knots3, p3, x3[i3])
        basis_funs_p(knots3, p3, x3[i3], spans3[i3], basis3[i3, :])

    for i3 in range(n3):
        o3 = spans3[i3] - p3
        for i2 in range(n2):
            o2 = spans2[i2] - p2
            for i1 in range(n1):
                o1 = spans1[i1] - p1

                w = 0.0
                for j1 in range(p1 + 1):
                    for j2 in range(p2 + 1):
                        for j3 in range(p3 + 1):
                            M  = basis1[i1, j1] * basis2[i2, j2] * basis3[i3, j3]
                            w += M * weights[o1 + j1, o2 + j2, o3 + j3]

                C[:] = 0.0
                for j1 in range(p1 + 1):
                    for j2 in range(p2 + 1):
                        for j3 in range(p3 + 1):
                            M     = basis1[i1, j1] * basis2[i2, j2] * basis3[i3, j3]
                            C[:] += M * weights[o1 + j1, o2 + j2, o3 + j3] * points[o1 + j1, o2 + j2, o3 + j3, :]

                out[i1, i2, i3, :] = C / w


# =============================================================================
def evaluate_normal_3d_p(normalize1: bool, normalize2: bool, normalize3: bool,
                         knots1: 'float[:]', degree1: int, knots2: 'float[:]', degree2: int,
                         knots3: 'float[:]', degree3: int,
                         points: 'float[:,:,:,:]', weights: 'float[:,:,:]',
                         x1: 'float[:]', x2: 'float[:]', x3: 'float[:]', out: 'float[:,:,:,:]'):
    """
    Evaluate sum(basis * weight * point) on the tensor grid x1 x x2 x x3,
    using M-splines in the directions where the corresponding flag is True.
    """
    p1 = degree1
    p2 = degree2
    p3 = degree3
    n1 = x1.shape[0]
    n2 = x2.shape[0]
    n3 = x3.shape[0]
    d  = points.shape[3]

    spans1 = np.zeros(n1, dtype=int)
    spans2 = np.zeros(n2, dtype=int)
    spans3 = np.zeros(n3, dtype=int)
    basis1 = np.zeros((n1, p1 + 1))
    basis2 = np.zeros((n2, p2 + 1))
    basis3 = np.zeros((n3, p3 + 1))
    C      = np.zeros(d)

    for i1 in range(n1):
        spans1[i1] = find_span_p(knots1, p1, x1[i1])
        basis_funs_p(knots1, p1, x1[i1], spans1[i1], basis1[i1, :])
        if normalize1:
            o1 = spans1[i1] - p1
            for j1 in range(p1 + 1):
                basis1[i1, j1] *= (p1 + 1) / (knots1[o1 + j1 + p1 + 1] - knots1[o1 + j1])

    for i2 in range(n2):
        spans2[i2] = find_span_p(knots2, p2, x2[i2])
        basis_funs_p(knots2, p2, x2[i2], spans2[i2], basis2[i2, :])
        if normalize2:
            o2 = spans2[i2] - p2
            for j2 in range(p2 + 1):
                basis2[i2, j2] *= (p2 + 1) / (knots2[o2 + j2 + p2 + 1] - knots2[o2 + j2])

    for i3 in range(n3):
        spans3[i3] = find_span_p(knots3, p3, x3[i3])
        basis_funs_p(knots3, p3, x3[i3], spans3[i3], basis3[i3, :])
        if normalize3:
            o3 = spans3[i3] - p3
            for j3 in range(p3 + 1):
                basis3[i3, j3] *= (p3 + 1) / (knots3[o3 + j3 + p3 + 1] - knots3[o3 + j3])

    for i3 in range(n3):
        o3 = spans3[i3] - p3
        for i2 in range(n2):
            o2 = spans2[i2] - p2
            for i1 in range(n1):
                o1 = spans1[i1] - p1

                C[:] = 0.0
                for j1 in range(p1 + 1):
                    for j2 in range(p2 + 1):
                        for j3 in range(p3 + 1):
                            M     = basis1[i1, j1] * basis2[i2, j2] * basis3[i3, j3]
                            C[:] += M * weights[o1 + j1, o2 + j2, o3 + j3] * points[o1 + j1, o2 + j2, o3 + j3, :]

                out[i1, i2, i3, :] = C


# =============================================================================
def evaluate_deriv_3d_p(nderiv: int, knots1: 'float[:]', degree1: int, knots2: 'float[:]', degree2: int,
                        knots3: 'float[:]', degree3: int,
                        points: 'float[:,:,:,:]', weights: 'float[:,:,:]',
                        x1: 'float[:]', x2: 'float[:]', x3: 'float[:]', out: 'float[:,:,:,:,:]'):
    """
    Evaluate a NURBS volume and its partial derivatives up to order
    nderiv <= 2 on the tensor grid x1 x x2 x x3.

    out has shape (len(x1), len(x2), len(x3), N+1, d) where the partials are
    stored in the order: value, x, y, z, xx, yy, zz, xy, yz, zx
    (N = 0, 3 or 9).
    """
    p1 = degree1
    p2 = degree2
    p3 = degree3
    n1 = x1.shape[0]
    n2 = x2.shape[0]
    n3 = x3.shape[0]
    N  = out.shape[3] - 1
    d  = points.shape[3]

    spans1  = np.zeros(n1, dtype=int)
    spans2  = np.zeros(n2, dtype=int)
    spans3  = np.zeros(n3, dtype=int)
    dbasis1 = np.zeros((n1, nderiv + 1, p1 + 1))
    dbasis2 = np.zeros((n2, nderiv + 1, p2 + 1))
    dbasis3 = np.zeros((n3, nderiv + 1, p3 + 1))

    Rdbasis = np.zeros(10)
    C       = np.zeros((N + 1, d))

    out[:, :, :, :, :] = 0.0

    for i1 in range(n1):
        spans1[i1] = find_span_p(knots1, p1, x1[i1])
        basis_funs_all_ders_p(knots1, p1, x1[i1], spans1[i1], nderiv, False, dbasis1[i1, :, :])
    for i2 in range(n2):
        spans2[i2] = find_span_p(knots2, p2, x2[i2])
        basis_funs_all_ders_p(knots2, p2, x2[i2], spans2[i2], nderiv, False, dbasis2[i2, :, :])
    for i3 in range(n3):
        spans3[i3] = find_span_p(knots3, p3, x3[i3])
        basis_funs_all_ders_p(knots3, p3, x3[i3], spans3[i3], nderiv, False, dbasis3[i3, :, :])

    M   = 0.0
    Mx  = 0.0 ; My  = 0.0 ; Mz  = 0.0
    Mxx = 0.0 ; Myy = 0.0 ; Mzz = 0.0
    Mxy = 0.0 ; Myz = 0.0 ; Mzx = 0.0

    for i3 in range(n3):
        o3 = spans3[i3] - p3
        for i2 in range(n2):
            o2 = spans2[i2] - p2
            for i1 in range(n1):
                o1 = spans1[i1] - p1

                # --- compute w and its derivatives
                w   = 0.0
                wx  = 0.0 ; wy  = 0.0 ; wz  = 0.0
                wxx = 0.0 ; wyy = 0.0 ; wzz = 0.0
                wxy = 0.0 ; wyz = 0.0 ; wzx = 0.0
                for j3 in range(p3 + 1):
                    for j2 in range(p2 + 1):
                        for j1 in range(p1 + 1):
                            weight = weights[o1 + j1, o2 + j2, o3 + j3]

                            M  = dbasis1[i1, 0, j1] * dbasis2[i2, 0, j2] * dbasis3[i3, 0, j3]
                            w += M * weight

                            if nderiv >= 1:
                                Mx = dbasis1[i1, 1, j1] * dbasis2[i2, 0, j2] * dbasis3[i3, 0, j3]
                                My = dbasis1[i1, 0, j1] * dbasis2[i2, 1, j2] * dbasis3[i3, 0, j3]
                                Mz = dbasis1[i1, 0, j1] * dbasis2[i2, 0, j2] * dbasis3[i3, 1, j3]

                                wx += Mx * weight
                                wy += My * weight
                                wz += Mz * weight

                            if nderiv >= 2:
                                Mxx = dbasis1[i1, 2, j1] * dbasis2[i2, 0, j2] * dbasis3[i3, 0, j3]
                                Myy = dbasis1[i1, 0, j1] * dbasis2[i2, 2, j2] * dbasis3[i3, 0, j3]
                                Mzz = dbasis1[i1, 0, j1] * dbasis2[i2, 0, j2] * dbasis3[i3, 2, j3]

                                Mxy = dbasis1[i1, 1, j1] * dbasis2[i2, 1, j2] * dbasis3[i3, 0, j3]
                                Myz = dbasis1[i1, 0, j1] * dbasis2[i2, 1, j2] * dbasis3[i3, 1, j3]
                                Mzx = dbasis1[i1, 1, j1] * dbasis2[i2, 0, j2] * dbasis3[i3, 1, j3]

                                wxx += Mxx * weight
                                wyy += Myy * weight
                                wzz += Mzz * weight

                                wxy += Mxy * weight
                                wyz += Myz * weight
                                wzx += Mzx * weight

                # compute Nurbs and their derivatives
                C[:, :] = 0.0
                for j3 in range(p3 + 1):
                    for j2 in range(p2 + 1):
                        for j1 in range(p1 + 1):
                            M = dbasis1[i1, 0, j1] * dbasis2[i2, 0, j2] * dbasis3[i3, 0, j3]
                            Rdbasis[0] = M / w

                            if nderiv >= 1:
                                Mx = dbasis1[i1, 1, j1] * dbasis2[i2, 0, j2] * dbasis3[i3, 0, j3]
                                My = dbasis1[i1, 0, j1] * dbasis2[i2, 1, j2] * dbasis3[i3, 0, j3]
                                Mz = dbasis1[i1, 0, j1] * dbasis2[i2, 0, j2] * dbasis3[i3, 1, j3]

                                Rdbasis[1] = Mx / w - M * wx / w**2
                                Rdbasis[2] = My / w - M * wy / w**2
                                Rdbasis[3] = Mz / w - M * wz / w**2

                            if nderiv >= 2:
                                Mxx = dbasis1[i1, 2, j1] * dbasis2[i2, 0, j2] * dbasis3[i3, 0, j3]
                                Myy = dbasis1[i1, 0, j1] * dbasis2[i2, 2, j2] * dbasis3[i3, 0, j3]
                                Mzz = dbasis1[i1, 0, j1] * dbasis2[i2, 0, j2] * dbasis3[i3, 2, j3]

                                Mxy = dbasis1[i1, 1, j1] * dbasis2[i2, 1, j2] * dbasis3[i3, 0, j3]
                                Myz = dbasis1[i1, 0, j1] * dbasis2[i2, 1, j2] * dbasis3[i3, 1, j3]
                                Mzx = dbasis1[i1, 1, j1] * dbasis2[i2, 0, j2] * dbasis3[i3, 1, j3]

                                Rdbasis[4] = Mxx / w                \
                                           - 2 * Mx * wx / w**2     \
                                           - M * wxx / w**2         \
                                           + 2 * M * wx**2 / w**3

                                Rdbasis[5] = Myy / w                \
                                           - 2 * My * wy / w**2     \
                                           - M * wyy / w**2         \
                                           + 2 * M * wy**2 / w**3

                                Rdbasis[6] = Mzz / w                \
                                           - 2 * Mz * wz / w**2     \
                                           - M * wzz / w**2         \
                                           + 2 * M * wz**2 / w**3

                                Rdbasis[7] = Mxy / w                \
                                           - Mx * wy / w**2         \
                                           - My * wx / w**2         \
                                           - M * wxy / w**2         \
                                           + 2 * M * wx * wy / w**3

                                Rdbasis[8] = Myz / w                \
                                           - My * wz / w**2         \
                                           - Mz * wy / w**2         \
                                           - M * wyz / w**2         \
                                           + 2 * M * wy * wz / w**3

                                Rdbasis[9] = Mzx / w                \
                                           - Mz * wx / w**2         \
                                           - Mx * wz / w**2         \
                                           - M * wzx / w**2         \
                                           + 2 * M * wz * wx / w**3

                            for deriv in range(N + 1):
                                C[deriv, :] += Rdbasis[deriv] * points[o1 + j1, o2 + j2, o3 + j3, :] \
                                                              * weights[o1 + j1, o2 + j2, o3 + j3]

                out[i1, i2, i3, :, :] = C

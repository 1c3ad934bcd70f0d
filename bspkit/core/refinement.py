#---------------------------------------------------------------------------#
# This file is part of BSPKIT which is released under MIT License. See the  #
# LICENSE file for full license details.                                    #
#---------------------------------------------------------------------------#
"""
Refinement and coarsening of B-spline curves: knot insertion, knot
refinement, knot removal, degree elevation, clamping and unclamping.

Every function returns a new knots sequence and new control points, the
inputs are left untouched. Rational curves must be passed in homogeneous
form (see bspkit.core.evaluation.to_homogeneous).

References
----------
[1] L. Piegl and W. Tiller. The NURBS Book, 2nd ed.,
    Springer-Verlag Berlin Heidelberg GmbH, 1997.

"""
import logging

import numpy as np
from scipy.special import comb

from bspkit.settings import get_default
from bspkit.utilities.checks import (check_degree,
                                     check_knots,
                                     check_points,
                                     check_sites)

from bspkit.core.knots_kernels import find_span_mult_p
from bspkit.core.refinement_kernels import (insert_knot_p,
                                            refine_knot_vector_p,
                                            remove_knot_p,
                                            clamp_knots_p,
                                            unclamp_knots_p,
                                            degree_elevate_p)

__all__ = ('insert_knot',
           'refine_knot_vector',
           'remove_knot',
           'degree_elevate',
           'clamp_knots',
           'unclamp_knots',
           'bezier_elevation_ratios')

logger = logging.getLogger(__name__)

#==============================================================================
def _check_curve(knots, degree, points, minimum_degree=0):
    degree = check_degree(degree, minimum=minimum_degree)
    knots  = check_knots(knots, degree)
    points = check_points(points, len(knots) - degree - 1)
    return knots, degree, points

#==============================================================================
def insert_knot(knots, degree, points, x, times=1):
    """
    Insert the knot x into the curve, the given number of times.
    See Algorithm A5.1 in [1].

    Parameters
    ----------
    knots : array_like
        Knots sequence.

    degree : int
        Polynomial degree.

    points : array_like
        Control points, shape (n+1, d).

    x : float
        Knot to be inserted, strictly inside the domain (knots[p], knots[n+1]).
        The ends of the domain are changed with clamp_knots instead.

    times : int
        Number of insertions.

    Returns
    -------
    knots : numpy.ndarray
        New knots sequence, of length n+p+2+times.

    points : numpy.ndarray
        New control points, shape (n+1+times, d).

    Raises
    ------
    ValueError
        If x is not inside the domain, or if its final multiplicity would
        exceed the degree.

    """
    knots, degree, points = _check_curve(knots, degree, points)
    x = float(x)

    if times < 0:
        raise ValueError("Cannot insert a knot a negative number of times: {}".format(times))
    if times == 0:
        return knots.copy(), points.copy()

    n = points.shape[0] - 1
    if not knots[degree] < x < knots[n + 1]:
        raise ValueError("Knot {} is not inside the domain ({}, {})".format(x, knots[degree], knots[n + 1]))

    span, mult = find_span_mult_p(knots, degree, x)
    if times + mult > degree:
        raise ValueError("Cannot insert knot {} {} times: its multiplicity {} would exceed the degree {}"
                         .format(x, times, mult, degree))

    knots_out  = np.zeros(len(knots) + times)
    points_out = np.zeros((points.shape[0] + times, points.shape[1]))
    insert_knot_p(knots, degree, points, x, span, mult, int(times), knots_out, points_out)

    return knots_out, points_out

#==============================================================================
def refine_knot_vector(knots, degree, points, x):
    """
    Insert all the values of x into the knots sequence.
    See Algorithm A5.4 in [1].

    Parameters
    ----------
    knots : array_like
        Knots sequence.

    degree : int
        Polynomial degree.

    points : array_like
        Control points, shape (n+1, d).

    x : array_like
        Knots to be inserted, sorted in non-decreasing order and strictly
        inside the domain (knots[p], knots[n+1]).

    Returns
    -------
    knots : numpy.ndarray
        New knots sequence, of length n+p+2+len(x).

    points : numpy.ndarray
        New control points, shape (n+1+len(x), d).

    Raises
    ------
    ValueError
        If x is not sorted, leaves the domain, or would raise the
        multiplicity of a knot above the degree.

    """
    knots, degree, points = _check_curve(knots, degree, points)
    x = check_sites(x)

    if x.shape[0] == 0:
        return knots.copy(), points.copy()

    n = points.shape[0] - 1
    if not np.all(np.diff(x) >= 0):
        raise ValueError("Knots to insert must be sorted: {}".format(x))
    if x[0] <= knots[degree] or x[-1] >= knots[n + 1]:
        raise ValueError("Knots {} are not inside the domain ({}, {})".format(x, knots[degree], knots[n + 1]))

    values, counts = np.unique(x, return_counts=True)
    for value, count in zip(values, counts):
        mult = np.count_nonzero(knots == value)
        if count + mult > degree:
            raise ValueError("Cannot insert knot {} {} times: its multiplicity {} would exceed the degree {}"
                             .format(value, count, mult, degree))

    r = x.shape[0]
    knots_out  = np.zeros(len(knots) + r)
    points_out = np.zeros((points.shape[0] + r, points.shape[1]))
    refine_knot_vector_p(knots, degree, points, x, knots_out, points_out)

    return knots_out, points_out

#==============================================================================
def remove_knot(knots, degree, points, x, num=1, tol=None):
    """
    Remove the interior knot x up to num times, as long as the curve does
    not move by more than tol. See Algorithm A5.8 in [1].

    Removing fewer knots than requested is not an error: the number of knots
    actually removed is returned.

    Parameters
    ----------
    knots : array_like
        Knots sequence.

    degree : int
        Polynomial degree.

    points : array_like
        Control points, shape (n+1, d).

    x : float
        Knot to be removed.

    num : int
        Number of removals to attempt.

    tol : float, optional
        Maximum displacement of the control points; the default is the
        'remove_tol' setting.

    Returns
    -------
    knots : numpy.ndarray
        New knots sequence, of length n+p+2-t.

    points : numpy.ndarray
        New control points, shape (n+1-t, d).

    t : int
        Number of knots removed.

    """
    knots, degree, points = _check_curve(knots, degree, points)
    x = float(x)

    if tol is None:
        tol = get_default('remove_tol')
    if tol < 0:
        raise ValueError("Cannot accept negative tolerance: {}".format(tol))
    if num < 0:
        raise ValueError("Cannot remove a knot a negative number of times: {}".format(num))

    n = points.shape[0] - 1
    if num == 0 or x <= knots[degree] or x >= knots[n + 1]:
        return knots.copy(), points.copy(), 0

    span, mult = find_span_mult_p(knots, degree, x)
    if mult == 0:
        logger.debug("Knot %s is not in the knots sequence, nothing to remove", x)
        return knots.copy(), points.copy(), 0

    num = min(int(num), mult)

    knots_out  = np.zeros_like(knots)
    points_out = np.zeros_like(points)
    t = remove_knot_p(knots, degree, points, x, span, mult, num, float(tol), knots_out, points_out)

    if t < num:
        logger.debug("Knot %s removed %d times out of %d requested (tol=%s)", x, t, num, tol)

    return knots_out[:len(knots) - t].copy(), points_out[:points.shape[0] - t].copy(), t

#==============================================================================
def bezier_elevation_ratios(degree, t):
    """
    Coefficients of the degree elevation of a Bezier curve from degree p to
    degree p+t: bezalfs[i,j] = C(p,j) C(t,i-j) / C(p+t,i).

    Returns
    -------
    bezalfs : numpy.ndarray
        Shape (p+t+1, p+1).

    """
    p  = degree
    ph = p + t

    bezalfs = np.zeros((ph + 1, p + 1))
    bezalfs[0, 0]  = 1.0
    bezalfs[ph, p] = 1.0

    for i in range(1, ph // 2 + 1):
        inv = 1.0 / comb(ph, i, exact=True)
        for j in range(max(0, i - t), min(p, i) + 1):
            bezalfs[i, j] = inv * comb(p, j, exact=True) * comb(t, i - j, exact=True)

    for i in range(ph // 2 + 1, ph):
        for j in range(max(0, i - t), min(p, i) + 1):
            bezalfs[i, j] = bezalfs[ph - i, p - j]

    return bezalfs

#==============================================================================
def degree_elevate(knots, degree, points, t=1):
    """
    Raise the degree of a clamped curve by t, without changing its shape.
    See Algorithm A5.9 in [1].

    Parameters
    ----------
    knots : array_like
        Clamped knots sequence.

    degree : int
        Polynomial degree (>= 1).

    points : array_like
        Control points, shape (n+1, d).

    t : int
        Degree increment.

    Returns
    -------
    knots : numpy.ndarray
        New knots sequence, where each distinct knot has its multiplicity
        increased by t.

    points : numpy.ndarray
        New control points, shape (nh+1, d) with nh = n + t * (number of
        non-empty knot intervals).

    """
    knots, degree, points = _check_curve(knots, degree, points, minimum_degree=1)

    if t < 0:
        raise ValueError("Cannot decrease the degree: t = {}".format(t))
    if t == 0:
        return knots.copy(), points.copy()

    p = degree
    if knots[0] != knots[p] or knots[-1] != knots[-1 - p]:
        raise ValueError("Degree elevation needs a clamped knots sequence: {}".format(knots))

    n  = points.shape[0] - 1
    ne = len(np.unique(knots)) - 1
    nh = n + t * ne

    logger.debug("Degree elevation from %d to %d: %d -> %d control points", p, p + t, n + 1, nh + 1)

    bezalfs    = bezier_elevation_ratios(p, int(t))
    knots_out  = np.zeros(nh + p + t + 2)
    points_out = np.zeros((nh + 1, points.shape[1]))
    degree_elevate_p(knots, p, points, int(t), bezalfs, knots_out, points_out)

    return knots_out, points_out

#==============================================================================
def clamp_knots(knots, degree, points, left=True, right=True):
    """
    Clamp a curve at the left and/or right end of its domain, so that it
    interpolates its end control points. The curve is unchanged on
    [knots[p], knots[n+1]].

    Returns
    -------
    knots : numpy.ndarray
        New knots sequence, same length.

    points : numpy.ndarray
        New control points, same shape.

    """
    knots, degree, points = _check_curve(knots, degree, points)

    knots_out  = np.zeros_like(knots)
    points_out = np.zeros_like(points)
    clamp_knots_p(knots, degree, points, bool(left), bool(right), knots_out, points_out)

    return knots_out, points_out

#==============================================================================
def unclamp_knots(knots, degree, points, left=True, right=True):
    """
    Unclamp a clamped curve at the left and/or right end of its domain. See
    Algorithm A12.1 in [1]. The curve is unchanged on [knots[p], knots[n+1]].

    Returns
    -------
    knots : numpy.ndarray
        New knots sequence, same length.

    points : numpy.ndarray
        New control points, same shape.

    """
    knots, degree, points = _check_curve(knots, degree, points)

    knots_out  = np.zeros_like(knots)
    points_out = np.zeros_like(points)
    unclamp_knots_p(knots, degree, points, bool(left), bool(right), knots_out, points_out)

    return knots_out, points_out

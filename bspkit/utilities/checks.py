#---------------------------------------------------------------------------#
# This file is part of BSPKIT which is released under MIT License. See the  #
# LICENSE file for full license details.                                    #
#---------------------------------------------------------------------------#
"""
Validation of the arguments received by the user-facing functions.

The kernels (modules ending in '_kernels.py') never check their inputs:
every check happens here, before any output array is allocated.
"""
import numpy as np

from bspkit.settings import get_default

__all__ = ('DegenerateKnotIntervalError',
           'checks_enabled',
           'check_degree',
           'check_knots',
           'check_points',
           'check_weights',
           'check_nderiv',
           'check_sites')

#==============================================================================
class DegenerateKnotIntervalError(ValueError):
    """
    Raised when the parametric domain [knots[p], knots[n+1]] of a spline has
    zero length, so that no basis function can be evaluated on it.
    """

#==============================================================================
def checks_enabled():
    return bool(get_default('check_args'))

#==============================================================================
def check_degree(degree, *, minimum=0):
    """
    Check that the spline degree is an integer in [minimum, max_degree].
    """
    if isinstance(degree, bool) or not isinstance(degree, (int, np.integer)):
        raise TypeError("Degree {} must be integer, got type {} instead".format(degree, type(degree)))
    if degree < 0:
        raise ValueError("Cannot accept negative degree: {}".format(degree))
    if degree < minimum:
        raise ValueError("Degree must be at least {}, got {}".format(minimum, degree))

    max_degree = get_default('max_degree')
    if degree > max_degree:
        raise ValueError("Cannot accept degree {} larger than {}".format(degree, max_degree))

    return int(degree)

#==============================================================================
def check_knots(knots, degree):
    """
    Convert the knots sequence to a 1D float array and check that it is
    non-decreasing, long enough for the given degree and that it defines a
    domain of non-zero length.

    Returns
    -------
    knots : numpy.ndarray
        Contiguous float64 copy of the input (no copy if already suitable).
    """
    knots = np.ascontiguousarray(knots, dtype=float)

    if not checks_enabled():
        return knots

    if knots.ndim != 1:
        raise ValueError("Knots sequence must be 1D, got array of shape {}".format(knots.shape))

    if len(knots) < 2 * degree + 2:
        raise ValueError("Knots sequence of length {} is too short for degree {}".format(len(knots), degree))

    if not np.all(np.diff(knots) >= 0):
        raise ValueError("Cannot accept knot sequence: {}".format(knots))

    if knots[degree] == knots[-1 - degree]:
        raise DegenerateKnotIntervalError(
            "Domain [{}, {}] has zero length".format(knots[degree], knots[-1 - degree]))

    return knots

#==============================================================================
def check_points(points, *nbasis):
    """
    Convert control points to a float array of shape (*nbasis, d).

    A 1D array is accepted for curves and interpreted as scalar coefficients
    (d = 1).
    """
    points = np.ascontiguousarray(points, dtype=float)

    if len(nbasis) == 1 and points.ndim == 1:
        points = points.reshape(-1, 1)

    if not checks_enabled():
        return points

    if points.ndim != len(nbasis) + 1 or points.shape[:-1] != tuple(nbasis):
        raise ValueError("Control points must have shape {} + (d,), got {}".format(tuple(nbasis), points.shape))

    return points

#==============================================================================
def check_weights(weights, *nbasis):
    """
    Convert weights to a float array of shape nbasis and check positivity.
    Return an array of ones when weights is None.
    """
    if weights is None:
        return np.ones(nbasis)

    weights = np.ascontiguousarray(weights, dtype=float)

    if not checks_enabled():
        return weights

    if weights.shape != tuple(nbasis):
        raise ValueError("Weights must have shape {}, got {}".format(tuple(nbasis), weights.shape))

    if not np.all(weights > 0):
        raise ValueError("Cannot accept non-positive weights: {}".format(weights))

    return weights

#==============================================================================
def check_nderiv(nderiv, maximum=2):
    if isinstance(nderiv, bool) or not isinstance(nderiv, (int, np.integer)):
        raise TypeError("Derivative order {} must be integer, got type {} instead".format(nderiv, type(nderiv)))
    if not 0 <= nderiv <= maximum:
        raise ValueError("Derivative order must be in [0, {}], got {}".format(maximum, nderiv))
    return int(nderiv)

#==============================================================================
def check_sites(x):
    """
    Convert evaluation sites to a contiguous 1D float array.
    """
    x = np.ascontiguousarray(x, dtype=float)
    if x.ndim == 0:
        x = x.reshape(1)
    if x.ndim != 1:
        raise ValueError("Evaluation sites must be a 1D array, got shape {}".format(x.shape))
    return x

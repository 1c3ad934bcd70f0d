#---------------------------------------------------------------------------#
# This file is part of BSPKIT which is released under MIT License. See the  #
# LICENSE file for full license details.                                    #
#---------------------------------------------------------------------------#
"""
Evaluation of B-spline and NURBS curves, surfaces and volumes, and of their
first and second derivatives.

Tensor-product objects are described by tuples with one entry per parametric
direction: knots=(knots1, knots2), degrees=(p1, p2), x=(x1, x2). Evaluation
always takes place on the tensor grid x1 x x2 (x x3).

Control points are never multiplied by the weights: a NURBS object is
described by its points of shape (n1+1, ..., d) and weights of shape
(n1+1, ...). Use to_homogeneous/from_homogeneous to switch to the
homogeneous representation Pw = (w*P, w) used by the refinement algorithms.
"""
import numpy as np

from bspkit.utilities.checks import (check_degree,
                                     check_knots,
                                     check_points,
                                     check_weights,
                                     check_nderiv,
                                     check_sites)

from bspkit.core.evaluation_kernels import (curve_point_p,
                                            surface_point_p,
                                            curve_point_corner_cut_p,
                                            evaluate_1d_p,
                                            evaluate_2d_p,
                                            evaluate_3d_p,
                                            evaluate_normal_1d_p,
                                            evaluate_normal_2d_p,
                                            evaluate_normal_3d_p,
                                            evaluate_deriv_1d_p,
                                            evaluate_deriv_2d_p,
                                            evaluate_deriv_3d_p)

__all__ = ('curve_point',
           'surface_point',
           'curve_point_corner_cut',
           'evaluate_1d',
           'evaluate_2d',
           'evaluate_3d',
           'evaluate_normal_1d',
           'evaluate_normal_2d',
           'evaluate_normal_3d',
           'evaluate_deriv_1d',
           'evaluate_deriv_2d',
           'evaluate_deriv_3d',
           'to_homogeneous',
           'from_homogeneous')

# Number of partial derivatives of order <= nderiv, for nderiv = 0, 1, 2
NB_PARTIALS = {1: (1, 2, 3),
               2: (1, 3, 6),
               3: (1, 4, 10)}

#==============================================================================
def _check_curve( knots, degree, points, weights=None ):
    degree = check_degree( degree )
    knots  = check_knots( knots, degree )
    nb     = len( knots ) - degree - 1
    points = check_points( points, nb )

    if weights is None:
        return knots, degree, points

    weights = check_weights( weights, nb )
    return knots, degree, points, weights

#==============================================================================
def _check_tensor( knots, degrees, points, weights, x, ldim ):
    if len( knots ) != ldim or len( degrees ) != ldim or len( x ) != ldim:
        raise ValueError( "Expected knots, degrees and sites for {} directions".format( ldim ) )

    degrees = tuple( check_degree( p ) for p in degrees )
    knots   = tuple( check_knots( T, p ) for T, p in zip( knots, degrees ) )
    nbasis  = tuple( len( T ) - p - 1 for T, p in zip( knots, degrees ) )
    points  = check_points( points, *nbasis )
    weights = check_weights( weights, *nbasis )
    x       = tuple( check_sites( xi ) for xi in x )

    return knots, degrees, points, weights, x

#==============================================================================
def curve_point( knots, degree, points, x ):
    """
    Point of a non-rational B-spline curve. See Algorithm A3.1 in The NURBS
    Book.

    Parameters
    ----------
    knots : array_like
        Knots sequence.

    degree : int
        Polynomial degree.

    points : array_like
        Control points, shape (n+1, d).

    x : float
        Parameter value.

    Returns
    -------
    C : numpy.ndarray
        Point of the curve, shape (d,).

    """
    knots, degree, points = _check_curve( knots, degree, points )

    out = np.zeros( points.shape[1] )
    curve_point_p( knots, degree, points, float( x ), out )

    return out

#==============================================================================
def surface_point( knots, degrees, points, x ):
    """
    Point of a non-rational tensor-product B-spline surface. See Algorithm
    A3.5 in The NURBS Book.

    Parameters
    ----------
    knots : (array_like, array_like)
        Knots sequences in each direction.

    degrees : (int, int)
        Polynomial degrees in each direction.

    points : array_like
        Control points, shape (n1+1, n2+1, d).

    x : (float, float)
        Parameter values.

    Returns
    -------
    S : numpy.ndarray
        Point of the surface, shape (d,).

    """
    knots, degrees, points, _, _ = _check_tensor( knots, degrees, points, None, x, 2 )

    out = np.zeros( points.shape[2] )
    surface_point_p( knots[0], degrees[0], knots[1], degrees[1], points,
                     float( x[0] ), float( x[1] ), out )

    return out

#==============================================================================
def curve_point_corner_cut( knots, degree, points, x ):
    """
    Point of a B-spline curve computed by corner cutting, i.e. by inserting x
    until the curve passes through a control point. See Algorithm A5.2 in
    The NURBS Book. Parameter values outside the domain are clamped.

    For a rational curve pass the homogeneous points (see to_homogeneous) and
    project the result.
    """
    knots, degree, points = _check_curve( knots, degree, points )

    out = np.zeros( points.shape[1] )
    curve_point_corner_cut_p( knots, degree, points, float( x ), out )

    return out

#==============================================================================
def evaluate_1d( knots, degree, points, x, weights=None ):
    """
    Evaluate a NURBS curve at the parameter values x.

    Parameters
    ----------
    knots : array_like
        Knots sequence.

    degree : int
        Polynomial degree.

    points : array_like
        Control points, shape (n+1, d).

    x : array_like
        Parameter values.

    weights : array_like, optional
        Weights of the control points, shape (n+1,); all ones by default.

    Returns
    -------
    C : numpy.ndarray
        Points of the curve, shape (len(x), d).

    """
    knots, degree, points = _check_curve( knots, degree, points )
    weights = check_weights( weights, points.shape[0] )
    x       = check_sites( x )

    out = np.zeros( (x.shape[0], points.shape[1]) )
    evaluate_1d_p( knots, degree, points, weights, x, out )

    return out

#==============================================================================
def evaluate_2d( knots, degrees, points, x, weights=None ):
    """
    Evaluate a NURBS surface on the tensor grid x[0] x x[1].

    Returns
    -------
    S : numpy.ndarray
        Shape (len(x[0]), len(x[1]), d).

    """
    knots, degrees, points, weights, x = _check_tensor( knots, degrees, points, weights, x, 2 )

    out = np.zeros( (x[0].shape[0], x[1].shape[0], points.shape[2]) )
    evaluate_2d_p( knots[0], degrees[0], knots[1], degrees[1], points, weights, x[0], x[1], out )

    return out

#==============================================================================
def evaluate_3d( knots, degrees, points, x, weights=None ):
    """
    Evaluate a NURBS volume on the tensor grid x[0] x x[1] x x[2].

    Returns
    -------
    V : numpy.ndarray
        Shape (len(x[0]), len(x[1]), len(x[2]), d).

    """
    knots, degrees, points, weights, x = _check_tensor( knots, degrees, points, weights, x, 3 )

    out = np.zeros( (x[0].shape[0], x[1].shape[0], x[2].shape[0], points.shape[3]) )
    evaluate_3d_p( knots[0], degrees[0], knots[1], degrees[1], knots[2], degrees[2],
                   points, weights, x[0], x[1], x[2], out )

    return out

#==============================================================================
def evaluate_normal_1d( knots, degree, points, x, weights=None, normalize=True ):
    """
    Evaluate sum_i w_i B_i(x) P_i, where B_i are M-splines if normalize is
    True and B-splines otherwise. The result is not divided by the weight
    function.

    Returns
    -------
    C : numpy.ndarray
        Shape (len(x), d).

    """
    knots, degree, points = _check_curve( knots, degree, points )
    weights = check_weights( weights, points.shape[0] )
    x       = check_sites( x )

    out = np.zeros( (x.shape[0], points.shape[1]) )
    evaluate_normal_1d_p( bool( normalize ), knots, degree, points, weights, x, out )

    return out

#==============================================================================
def evaluate_normal_2d( knots, degrees, points, x, weights=None, normalize=(True, True) ):
    """
    Tensor-product version of evaluate_normal_1d; normalize holds one flag
    per direction.
    """
    knots, degrees, points, weights, x = _check_tensor( knots, degrees, points, weights, x, 2 )
    n1, n2 = (bool( flag ) for flag in normalize)

    out = np.zeros( (x[0].shape[0], x[1].shape[0], points.shape[2]) )
    evaluate_normal_2d_p( n1, n2, knots[0], degrees[0], knots[1], degrees[1],
                          points, weights, x[0], x[1], out )

    return out

#==============================================================================
def evaluate_normal_3d( knots, degrees, points, x, weights=None, normalize=(True, True, True) ):
    """
    Tensor-product version of evaluate_normal_1d; normalize holds one flag
    per direction.
    """
    knots, degrees, points, weights, x = _check_tensor( knots, degrees, points, weights, x, 3 )
    n1, n2, n3 = (bool( flag ) for flag in normalize)

    out = np.zeros( (x[0].shape[0], x[1].shape[0], x[2].shape[0], points.shape[3]) )
    evaluate_normal_3d_p( n1, n2, n3, knots[0], degrees[0], knots[1], degrees[1], knots[2], degrees[2],
                          points, weights, x[0], x[1], x[2], out )

    return out

#==============================================================================
def evaluate_deriv_1d( knots, degree, points, x, nderiv=1, weights=None ):
    """
    Evaluate a NURBS curve and its derivatives up to order nderiv.

    Parameters
    ----------
    knots : array_like
        Knots sequence.

    degree : int
        Polynomial degree.

    points : array_like
        Control points, shape (n+1, d).

    x : array_like
        Parameter values.

    nderiv : int
        Maximum derivative order, in {0, 1, 2}.

    weights : array_like, optional
        Weights of the control points; all ones by default.

    Returns
    -------
    ders : numpy.ndarray
        Shape (len(x), nderiv+1, d); ders[:,k] is the k-th derivative.

    """
    knots, degree, points = _check_curve( knots, degree, points )
    weights = check_weights( weights, points.shape[0] )
    x       = check_sites( x )
    nderiv  = check_nderiv( nderiv )

    out = np.zeros( (x.shape[0], NB_PARTIALS[1][nderiv], points.shape[1]) )
    evaluate_deriv_1d_p( nderiv, knots, degree, points, weights, x, out )

    return out

#==============================================================================
def evaluate_deriv_2d( knots, degrees, points, x, nderiv=1, weights=None ):
    """
    Evaluate a NURBS surface and its partial derivatives up to order nderiv
    on the tensor grid x[0] x x[1].

    Returns
    -------
    ders : numpy.ndarray
        Shape (len(x[0]), len(x[1]), N, d) with N = 1, 3 or 6. The partial
        derivatives are stored in the order: value, x, y, xx, xy, yy.

    """
    knots, degrees, points, weights, x = _check_tensor( knots, degrees, points, weights, x, 2 )
    nderiv = check_nderiv( nderiv )

    out = np.zeros( (x[0].shape[0], x[1].shape[0], NB_PARTIALS[2][nderiv], points.shape[2]) )
    evaluate_deriv_2d_p( nderiv, knots[0], degrees[0], knots[1], degrees[1],
                         points, weights, x[0], x[1], out )

    return out

#==============================================================================
def evaluate_deriv_3d( knots, degrees, points, x, nderiv=1, weights=None ):
    """
    Evaluate a NURBS volume and its partial derivatives up to order nderiv
    on the tensor grid x[0] x x[1] x x[2].

    Returns
    -------
    ders : numpy.ndarray
        Shape (len(x[0]), len(x[1]), len(x[2]), N, d) with N = 1, 4 or 10.
        The partial derivatives are stored in the order:
        value, x, y, z, xx, yy, zz, xy, yz, zx.

    """
    knots, degrees, points, weights, x = _check_tensor( knots, degrees, points, weights, x, 3 )
    nderiv = check_nderiv( nderiv )

    out = np.zeros( (x[0].shape[0], x[1].shape[0], x[2].shape[0], NB_PARTIALS[3][nderiv], points.shape[3]) )
    evaluate_deriv_3d_p( nderiv, knots[0], degrees[0], knots[1], degrees[1], knots[2], degrees[2],
                         points, weights, x[0], x[1], x[2], out )

    return out

#==============================================================================
def to_homogeneous( points, weights ):
    """
    Homogeneous control points Pw = (w*P, w).

    Parameters
    ----------
    points : array_like
        Control points, shape (..., d).

    weights : array_like
        Weights, shape (...).

    Returns
    -------
    Pw : numpy.ndarray
        Shape (..., d+1).

    """
    points  = np.asarray( points , dtype=float )
    weights = np.asarray( weights, dtype=float )

    if weights.shape != points.shape[:-1]:
        raise ValueError( "Weights of shape {} do not match points of shape {}".format( weights.shape, points.shape ) )

    return np.concatenate( (points * weights[..., None], weights[..., None]), axis=-1 )

#==============================================================================
def from_homogeneous( points_w ):
    """
    Inverse of to_homogeneous.

    Returns
    -------
    points : numpy.ndarray
        Shape (..., d).

    weights : numpy.ndarray
        Shape (...).

    """
    points_w = np.asarray( points_w, dtype=float )
    weights  = points_w[..., -1].copy()
    points   = points_w[..., :-1] / weights[..., None]

    return points, weights

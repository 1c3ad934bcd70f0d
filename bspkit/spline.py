#---------------------------------------------------------------------------#
# This file is part of BSPKIT which is released under MIT License. See the  #
# LICENSE file for full license details.                                    #
#---------------------------------------------------------------------------#
"""
Immutable B-spline / NURBS objects built on top of the functions of
bspkit.core. Every transforming method returns a new object.
"""
import numpy as np

from bspkit.utilities.checks import (check_degree,
                                     check_knots,
                                     check_points,
                                     check_weights)
from bspkit.core.bsplines    import (greville,
                                     breakpoints,
                                     collocation_matrix)
from bspkit.core.evaluation  import (evaluate_1d,
                                     evaluate_2d,
                                     evaluate_3d,
                                     evaluate_deriv_1d,
                                     evaluate_deriv_2d,
                                     evaluate_deriv_3d,
                                     to_homogeneous,
                                     from_homogeneous)
from bspkit.core.refinement  import (insert_knot,
                                     refine_knot_vector,
                                     remove_knot,
                                     degree_elevate,
                                     clamp_knots,
                                     unclamp_knots)

__all__ = ('SplineCurve', 'SplineSurface', 'SplineVolume')

#===============================================================================
def _frozen( array ):
    array = np.array( array, dtype=float )
    array.flags.writeable = False
    return array

#===============================================================================
class SplineCurve:
    """
    B-spline or NURBS curve in d dimensions.

    Parameters
    ----------
    degree : int
        Polynomial degree.

    knots : array_like
        Knots sequence, of length n+p+2.

    points : array_like
        Control points, shape (n+1, d). A 1D array is a scalar spline.

    weights : array_like, optional
        Positive weights, shape (n+1,). If given the curve is rational.

    """
    def __init__( self, degree, knots, points, weights=None ):

        degree = check_degree( degree )
        knots  = check_knots( knots, degree )
        nb     = len( knots ) - degree - 1
        points = check_points( points, nb )

        self._degree  = degree
        self._knots   = _frozen( knots )
        self._points  = _frozen( points )
        self._weights = None if weights is None else _frozen( check_weights( weights, nb ) )

    #--------------------------------------------------------------------------
    # Read-only attributes
    #--------------------------------------------------------------------------
    @property
    def degree( self ):
        """ Polynomial degree.
        """
        return self._degree

    @property
    def knots( self ):
        """ Knots sequence.
        """
        return self._knots

    @property
    def points( self ):
        """ Control points, shape (nbasis, dim).
        """
        return self._points

    @property
    def weights( self ):
        """ Weights of the control points (all ones for a non-rational curve).
        """
        if self._weights is None:
            return np.ones( self.nbasis )
        return self._weights

    @property
    def rational( self ):
        """ True if the curve was given weights.
        """
        return self._weights is not None

    @property
    def nbasis( self ):
        return self._points.shape[0]

    @property
    def dim( self ):
        """ Dimension of the physical space.
        """
        return self._points.shape[1]

    @property
    def domain( self ):
        """ Parametric domain (knots[p], knots[n+1]).
        """
        p = self._degree
        return self._knots[p], self._knots[self.nbasis]

    @property
    def greville( self ):
        """ Greville abscissae of the basis functions.
        """
        return greville( self._knots, self._degree )

    @property
    def breaks( self ):
        """ Distinct knots inside the domain.
        """
        return breakpoints( self._knots, self._degree )

    #--------------------------------------------------------------------------
    # Evaluation
    #--------------------------------------------------------------------------
    def evaluate( self, x ):
        """
        Points of the curve at the parameter values x.

        Returns an array of shape (d,) if x is a scalar, and (len(x), d)
        otherwise.
        """
        values = evaluate_1d( self._knots, self._degree, self._points, np.atleast_1d( x ), self._weights )
        return values[0] if np.ndim( x ) == 0 else values

    __call__ = evaluate

    def derivatives( self, x, nderiv=1 ):
        """
        Curve and derivatives up to order nderiv (<= 2) at the parameter
        values x, as an array of shape (len(x), nderiv+1, d).
        """
        return evaluate_deriv_1d( self._knots, self._degree, self._points, np.atleast_1d( x ),
                                  nderiv, self._weights )

    def collocation_matrix( self, xgrid=None, sparse=False ):
        """
        Values of the basis functions at xgrid (Greville abscissae by
        default), one row per site.
        """
        if xgrid is None:
            xgrid = self.greville
        return collocation_matrix( self._knots, self._degree, xgrid, sparse=sparse )

    #--------------------------------------------------------------------------
    # Transformations
    #--------------------------------------------------------------------------
    def _control_points( self ):
        if self.rational:
            return to_homogeneous( self._points, self._weights )
        return self._points

    def _new( self, degree, knots, points ):
        if self.rational:
            points, weights = from_homogeneous( points )
            return SplineCurve( degree, knots, points, weights )
        return SplineCurve( degree, knots, points )

    def insert_knot( self, x, times=1 ):
        """ Insert the knot x the given number of times.
        """
        knots, points = insert_knot( self._knots, self._degree, self._control_points(), x, times )
        return self._new( self._degree, knots, points )

    def refine( self, x ):
        """ Insert all the (sorted) values of x into the knots sequence.
        """
        knots, points = refine_knot_vector( self._knots, self._degree, self._control_points(), x )
        return self._new( self._degree, knots, points )

    def remove_knot( self, x, num=1, tol=None ):
        """
        Remove the knot x up to num times within tolerance tol.
        Return the new curve and the number of knots removed.
        """
        knots, points, t = remove_knot( self._knots, self._degree, self._control_points(), x, num, tol )
        return self._new( self._degree, knots, points ), t

    def elevate_degree( self, t=1 ):
        """ Raise the degree by t; the knots sequence must be clamped.
        """
        knots, points = degree_elevate( self._knots, self._degree, self._control_points(), t )
        return self._new( self._degree + t, knots, points )

    def clamp( self, left=True, right=True ):
        knots, points = clamp_knots( self._knots, self._degree, self._control_points(), left, right )
        return self._new( self._degree, knots, points )

    def unclamp( self, left=True, right=True ):
        knots, points = unclamp_knots( self._knots, self._degree, self._control_points(), left, right )
        return self._new( self._degree, knots, points )

    #--------------------------------------------------------------------------
    def __repr__( self ):
        kind = 'NURBS' if self.rational else 'B-spline'
        return '{}({} curve, degree={}, nbasis={}, dim={})'.format(
            type( self ).__name__, kind, self.degree, self.nbasis, self.dim )

#===============================================================================
class TensorSpline:
    """
    Tensor-product B-spline or NURBS object with ldim parametric directions.

    Parameters
    ----------
    degrees : sequence of int
        Polynomial degree in each direction.

    knots : sequence of array_like
        Knots sequence in each direction.

    points : array_like
        Control points, shape (n1+1, ..., d).

    weights : array_like, optional
        Positive weights, shape (n1+1, ...). If given the object is rational.

    """
    ldim = None

    _evaluate       = None
    _evaluate_deriv = None

    def __init__( self, degrees, knots, points, weights=None ):

        if len( degrees ) != self.ldim or len( knots ) != self.ldim:
            raise ValueError( '{} needs {} degrees and {} knots sequences'.format(
                type( self ).__name__, self.ldim, self.ldim ) )

        degrees = tuple( check_degree( p ) for p in degrees )
        knots   = tuple( check_knots( T, p ) for T, p in zip( knots, degrees ) )
        nbasis  = tuple( len( T ) - p - 1 for T, p in zip( knots, degrees ) )
        points  = check_points( points, *nbasis )

        self._degrees = degrees
        self._knots   = tuple( _frozen( T ) for T in knots )
        self._points  = _frozen( points )
        self._weights = None if weights is None else _frozen( check_weights( weights, *nbasis ) )

    @property
    def degrees( self ):
        return self._degrees

    @property
    def knots( self ):
        return self._knots

    @property
    def points( self ):
        return self._points

    @property
    def weights( self ):
        """ Weights of the control points (all ones for a non-rational object).
        """
        if self._weights is None:
            return np.ones( self.nbasis )
        return self._weights

    @property
    def rational( self ):
        return self._weights is not None

    @property
    def nbasis( self ):
        """ Number of basis functions in each direction.
        """
        return self._points.shape[:-1]

    @property
    def dim( self ):
        """ Dimension of the physical space.
        """
        return self._points.shape[-1]

    @property
    def domain( self ):
        """ Parametric domain in each direction.
        """
        return tuple( (T[p], T[n]) for T, p, n in zip( self._knots, self._degrees, self.nbasis ) )

    def evaluate( self, *x ):
        """
        Values on the tensor grid x[0] x x[1] (x x[2]).

        Returns an array of shape (len(x[0]), ..., d), or (d,) if every x[i]
        is a scalar.
        """
        scalar = all( np.ndim( xi ) == 0 for xi in x )
        sites  = tuple( np.atleast_1d( xi ) for xi in x )
        values = self._evaluate( self._knots, self._degrees, self._points, sites, self._weights )
        return values[(0,) * self.ldim] if scalar else values

    __call__ = evaluate

    def derivatives( self, *x, nderiv=1 ):
        """
        Values and partial derivatives up to order nderiv (<= 2) on the
        tensor grid, shape (len(x[0]), ..., N, d).
        """
        sites = tuple( np.atleast_1d( xi ) for xi in x )
        return self._evaluate_deriv( self._knots, self._degrees, self._points, sites, nderiv, self._weights )

    def __repr__( self ):
        kind = 'NURBS' if self.rational else 'B-spline'
        return '{}({}, degrees={}, nbasis={}, dim={})'.format(
            type( self ).__name__, kind, self.degrees, self.nbasis, self.dim )

#===============================================================================
class SplineSurface( TensorSpline ):
    """
    B-spline or NURBS surface. Partial derivatives are ordered as
    value, x, y, xx, xy, yy.
    """
    ldim = 2

    _evaluate       = staticmethod( evaluate_2d )
    _evaluate_deriv = staticmethod( evaluate_deriv_2d )

#===============================================================================
class SplineVolume( TensorSpline ):
    """
    B-spline or NURBS volume. Partial derivatives are ordered as
    value, x, y, z, xx, yy, zz, xy, yz, zx.
    """
    ldim = 3

    _evaluate       = staticmethod( evaluate_3d )
    _evaluate_deriv = staticmethod( evaluate_deriv_3d )

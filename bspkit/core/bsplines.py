#---------------------------------------------------------------------------#
# This file is part of BSPKIT which is released under MIT License. See the  #
# LICENSE file for full license details.                                    #
#---------------------------------------------------------------------------#
"""
Basic module that provides the means for evaluating the B-Splines basis
functions and their derivatives, for querying knot sequences and for building
the matrices associated to a spline space.

The functions in this module check their arguments, allocate the output arrays
and call the pyccelisable kernels of the same name (with suffix '_p').

References
----------
[1] L. Piegl and W. Tiller. The NURBS Book, 2nd ed.,
    Springer-Verlag Berlin Heidelberg GmbH, 1997.

"""
import numpy as np
from scipy.sparse import csr_matrix

from bspkit.settings import get_default
from bspkit.utilities.checks import (check_degree,
                                     check_knots,
                                     check_sites)

from bspkit.core.knots_kernels import (find_span_p,
                                       find_spans_p,
                                       find_mult_p,
                                       find_span_mult_p,
                                       find_nonzero_elements_p,
                                       span_index_p,
                                       greville_p,
                                       symmetrize_knots_p,
                                       elements_spans_p)

from bspkit.core.basis_kernels import (basis_funs_p,
                                       basis_funs_all_ders_p,
                                       eval_splines_ders_p,
                                       basis_integrals_p)

from bspkit.core.matrices_kernels import (derivative_matrix_p,
                                          collocation_matrix_p,
                                          collocation_periodic_matrix_p,
                                          symbol_stiffness_p)

__all__ = ['find_span',
           'find_mult',
           'find_span_mult',
           'find_nonzero_elements',
           'span_index',
           'greville',
           'symmetrize_knots',
           'elements_spans',
           'breakpoints',
           'make_knots',
           'basis_funs',
           'basis_funs_all_ders',
           'eval_splines_ders',
           'basis_integrals',
           'derivative_matrix',
           'collocation_matrix',
           'symbol_stiffness_matrix']

#==============================================================================
def find_span( knots, degree, x ):
    """
    Determine the knot span index at location x, given the B-Splines' knot
    sequence and polynomial degree. See Algorithm A2.1 in [1].

    For a degree p, the knot span index i identifies the indices [i-p:i] of all
    p+1 non-zero basis functions at a given location x.

    Locations on the right boundary, or beyond it, belong to the last span;
    locations on the left boundary, or before it, belong to the first one.

    Parameters
    ----------
    knots : array_like
        Knots sequence.

    degree : int
        Polynomial degree of B-splines.

    x : float or array_like
        Location(s) of interest.

    Returns
    -------
    span : int or numpy.ndarray of int
        Knot span index, with the same shape as x.

    """
    degree = check_degree( degree )
    knots  = check_knots( knots, degree )

    if np.ndim( x ) == 0:
        return find_span_p( knots, degree, float( x ) )

    x   = check_sites( x )
    out = np.zeros( x.shape[0], dtype=int )
    find_spans_p( knots, degree, x, out )

    return out

#==============================================================================
def find_mult( knots, degree, x, span=None ):
    """
    Multiplicity of x in the knots sequence.

    Only the knots knots[span-p:span+p+2] are inspected and they are compared
    to x with exact floating point equality.

    Parameters
    ----------
    knots : array_like
        Knots sequence.

    degree : int
        Polynomial degree of B-splines.

    x : float
        Knot value of interest.

    span : int, optional
        Knot span index of x; computed with find_span if not given.

    Returns
    -------
    mult : int
        Number of knots equal to x.

    """
    degree = check_degree( degree )
    knots  = check_knots( knots, degree )

    if span is None:
        span = find_span_p( knots, degree, float( x ) )

    return find_mult_p( knots, degree, float( x ), int( span ) )

#==============================================================================
def find_span_mult( knots, degree, x ):
    """
    Knot span index and multiplicity of x.

    Returns
    -------
    span : int
        Knot span index.

    mult : int
        Multiplicity of x.

    """
    degree = check_degree( degree )
    knots  = check_knots( knots, degree )

    return find_span_mult_p( knots, degree, float( x ) )

#==============================================================================
def find_nonzero_elements( knots, degree ):
    """
    Distinct values of the knots sequence, in increasing order.

    Parameters
    ----------
    knots : array_like
        Knots sequence.

    degree : int
        Polynomial degree of B-splines.

    Returns
    -------
    n_elements : int
        Number of non-empty elements (i.e. number of distinct values - 1).

    grid : numpy.ndarray
        Array of the same length as knots; its first n_elements+1 entries are
        the element edges, the other ones are equal to -1e7.

    """
    degree = check_degree( degree )
    knots  = check_knots( knots, degree )

    grid       = np.zeros( len( knots ) )
    n_elements = find_nonzero_elements_p( knots, degree, grid )

    return n_elements, grid

#==============================================================================
def span_index( knots, degree, size ):
    """
    Span indices of the first non-empty knot intervals [knots[k], knots[k+1]],
    with degree <= k <= n.

    Parameters
    ----------
    knots : array_like
        Knots sequence.

    degree : int
        Polynomial degree of B-splines.

    size : int
        Maximum number of indices to compute.

    Returns
    -------
    spans : numpy.ndarray of int
        Array of length size; slots which could not be filled are -1.

    """
    degree = check_degree( degree )
    knots  = check_knots( knots, degree )

    if size < 0:
        raise ValueError( "Cannot accept negative size: {}".format( size ) )

    out = np.full( size, -1, dtype=int )
    span_index_p( knots, degree, out )

    return out

#==============================================================================
def greville( knots, degree ):
    """
    Compute coordinates of all Greville points: the Greville abscissa of the
    i-th basis function is the average of the p knots knots[i+1:i+p+1].

    Parameters
    ----------
    knots : 1D array_like
        Knots sequence.

    degree : int
        Polynomial degree of B-splines (>= 1).

    Returns
    -------
    xg : numpy.ndarray (1D)
        Abscissas of all Greville points.

    """
    degree = check_degree( degree, minimum=1 )
    knots  = check_knots( knots, degree )

    out = np.zeros( len( knots ) - degree - 1 )
    greville_p( knots, degree, out )

    return out

#==============================================================================
def symmetrize_knots( knots, degree, r=None ):
    """
    Extend a knots sequence by periodicity, for periodic interpolation.

    The r+1 knots at each end are replaced by the interior knots found at the
    other end of the domain, shifted by one period.

    Parameters
    ----------
    knots : 1D array_like
        Knots sequence.

    degree : int
        Polynomial degree of B-splines.

    r : int, optional
        Regularity of the splines at the domain boundary, in [-1, degree-1].
        Default is degree-1 (maximum regularity).

    Returns
    -------
    T : numpy.ndarray (1D)
        Symmetrized knots sequence, of the same length as knots.

    """
    degree = check_degree( degree )
    knots  = check_knots( knots, degree )

    if r is None:
        r = degree - 1
    if not -1 <= r <= degree - 1:
        raise ValueError( "Regularity must be in [-1, {}], got {}".format( degree-1, r ) )

    out = np.zeros_like( knots )
    symmetrize_knots_p( knots, degree, int( r ), out )

    return out

#===============================================================================
def elements_spans( knots, degree, return_basis_elements=False ):
    """
    Compute the index of the last non-vanishing spline on each grid element
    (cell). The length of the returned array is the number of cells.

    Parameters
    ----------
    knots : 1D array_like
        Knots sequence.

    degree : int
        Polynomial degree of B-splines.

    return_basis_elements : bool
        If True, also return the index of the element where each basis
        function starts (-1 for the first degree basis functions).

    Returns
    -------
    spans : numpy.ndarray (1D)
        Index of last non-vanishing spline on each grid element.

    basis_elements : numpy.ndarray (1D)
        Only returned if return_basis_elements is True.

    Examples
    --------
    >>> import numpy as np
    >>> from bspkit.core.bsplines import make_knots, elements_spans

    >>> p = 3 ; n = 8
    >>> grid  = np.arange( n-p+1 )
    >>> knots = make_knots( breaks=grid, degree=p, periodic=False )
    >>> spans = elements_spans( knots=knots, degree=p )
    >>> spans
    array([3, 4, 5, 6, 7])

    """
    degree = check_degree( degree )
    knots  = check_knots( knots, degree )

    nb             = len( knots ) - degree - 1
    spans          = np.zeros( nb, dtype=int )
    basis_elements = np.zeros( nb, dtype=int )
    ne = elements_spans_p( knots, degree, spans, basis_elements )

    if return_basis_elements:
        return spans[:ne], basis_elements
    else:
        return spans[:ne]

#==============================================================================
def breakpoints( knots, degree ):
    """
    Determine breakpoints' coordinates.

    Parameters
    ----------
    knots : 1D array_like
        Knots sequence.

    degree : int
        Polynomial degree of B-splines.

    Returns
    -------
    breaks : numpy.ndarray (1D)
        Abscissas of all breakpoints.

    """
    degree = check_degree( degree )
    knots  = check_knots( knots, degree )

    return np.unique( knots[degree:len( knots )-degree] )

#===============================================================================
def make_knots( breaks, degree, periodic=False ):
    """
    Create spline knots from breakpoints, with appropriate boundary conditions.
    Let p be spline degree. If domain is periodic, knot sequence is extended
    by periodicity so that first p basis functions are identical to last p.
    Otherwise, knot sequence is clamped (i.e. endpoints are repeated p times).

    Parameters
    ----------
    breaks : array_like
        Coordinates of breakpoints (= cell edges); given in increasing order and
        with no duplicates.

    degree : int
        Spline degree (= polynomial degree within each interval).

    periodic : bool
        True if domain is periodic, False otherwise.

    Result
    ------
    T : numpy.ndarray (1D)
        Coordinates of spline knots.

    """
    degree = check_degree( degree )
    breaks = np.asarray( breaks, dtype=float )

    # Consistency checks
    if not isinstance( periodic, bool ):
        raise TypeError( "Cannot accept non-boolean 'periodic' parameter: {}".format( periodic ) )
    if breaks.ndim != 1 or len( breaks ) < 2:
        raise ValueError( "Need at least two breakpoints, got {}".format( breaks ) )
    if not np.all( np.diff( breaks ) > 0 ):
        raise ValueError( "Breakpoints must be ordered, with no repetitions: {}".format( breaks ) )
    if periodic and len( breaks ) <= degree:
        raise ValueError( "Periodic knots of degree {} need more than {} breakpoints".format( degree, degree ) )

    p = degree
    T = np.zeros( len( breaks )+2*p )
    T[p:len( T )-p] = breaks

    if periodic:
        period = breaks[-1]-breaks[0]
        T[0:p] = [xi-period for xi in breaks[len( breaks )-p-1:-1]]
        T[len( T )-p:] = [xi+period for xi in breaks[1:p+1]]
    else:
        T[0:p] = breaks[ 0]
        T[len( T )-p:] = breaks[-1]

    return T

#==============================================================================
def basis_funs( knots, degree, x, span=None ):
    """
    Compute the non-vanishing B-splines at location x, given the knot sequence,
    polynomial degree and knot span. See Algorithm A2.2 in [1].

    Parameters
    ----------
    knots : array_like
        Knots sequence.

    degree : int
        Polynomial degree of B-splines.

    x : float
        Evaluation point.

    span : int, optional
        Knot span index; computed with find_span if not given.

    Results
    -------
    values : numpy.ndarray
        Values of p+1 non-vanishing B-Splines at location x.

    """
    degree = check_degree( degree )
    knots  = check_knots( knots, degree )
    x      = float( x )

    if span is None:
        span = find_span_p( knots, degree, x )

    out = np.zeros( degree+1 )
    basis_funs_p( knots, degree, x, int( span ), out )

    return out

#==============================================================================
def basis_funs_all_ders( knots, degree, x, span, n, normalization=False ):
    """
    Evaluate value and n derivatives at x of all basis functions with
    support in interval [x_{span-1}, x_{span}]. See Algorithm A2.3 in [1].

    ders[i,j] = (d/dx)^i B_k(x) with k=(span-degree+j),
                for 0 <= i <= n and 0 <= j <= degree+1.

    Parameters
    ----------
    knots : array_like
        Knots sequence.

    degree : int
        Polynomial degree of B-splines.

    x : float
        Evaluation point.

    span : int
        Knot span index.

    n : int
        Max derivative of interest. Derivatives of order > degree are zero.

    normalization : bool
        False for B-splines, True for M-splines.

    Results
    -------
    ders : numpy.ndarray (n+1,degree+1)
        2D array of n+1 (from 0-th to n-th) derivatives at x of all (degree+1)
        non-vanishing basis functions in given span.

    """
    degree = check_degree( degree )
    knots  = check_knots( knots, degree )

    if n < 0:
        raise ValueError( "Cannot accept negative derivative order: {}".format( n ) )

    out = np.zeros( (n+1, degree+1) )
    basis_funs_all_ders_p( knots, degree, float( x ), int( span ), int( n ), bool( normalization ), out )

    return out

#==============================================================================
def eval_splines_ders( knots, degree, nders, tau ):
    """
    Evaluate all non-vanishing B-splines and their first nders derivatives at
    the sites tau.

    Returns
    -------
    ders : numpy.ndarray (len(tau), nders+1, degree+1)
        ders[i,k,j] is the k-th derivative, at tau[i], of the basis function
        of index span_i-degree+j.

    """
    degree = check_degree( degree )
    knots  = check_knots( knots, degree )
    tau    = check_sites( tau )

    if nders < 0:
        raise ValueError( "Cannot accept negative derivative order: {}".format( nders ) )

    out = np.zeros( (tau.shape[0], nders+1, degree+1) )
    eval_splines_ders_p( knots, degree, int( nders ), tau, out )

    return out

#==============================================================================
def basis_integrals( knots, degree ):
    """
    Return the integral of each B-spline basis function over the real line:

    K[i] = int_{-inf}^{+inf} B[i](x) dx = (T[i+p+1]-T[i]) / (p+1).

    This array can be used to convert B-splines to M-splines, which have unit
    integral over the real line but no partition-of-unity property.

    Parameters
    ----------
    knots : 1D array_like
        Knots sequence.

    degree : int
        Polynomial degree of B-splines.

    Returns
    -------
    K : 1D numpy.ndarray
        Array with the integrals of each B-spline basis function.

    """
    degree = check_degree( degree )
    knots  = check_knots( knots, degree )

    out = np.zeros( len( knots ) - degree - 1 )
    basis_integrals_p( knots, degree, out )

    return out

#==============================================================================
def derivative_matrix( knots, degree, normalize=False, sparse=False ):
    """
    Matrix D of the derivative operator on the spline coefficients.

    D is lower bidiagonal: row i holds a_i on the diagonal and -a_i on the
    sub-diagonal, where a_i = p / (knots[i+p+1] - knots[i]) unless normalize
    is True (then a_i = 1).

    Parameters
    ----------
    knots : 1D array_like
        Knots sequence.

    degree : int
        Polynomial degree of B-splines (>= 1).

    normalize : bool
        Omit the scaling factors p / (knots[i+p+1] - knots[i]).

    sparse : bool
        Return a scipy.sparse.csr_matrix instead of a dense array.

    Returns
    -------
    mat : numpy.ndarray or scipy.sparse.csr_matrix
        Square matrix of size len(knots)-degree-1.

    """
    degree = check_degree( degree, minimum=1 )
    knots  = check_knots( knots, degree )

    nb  = len( knots ) - degree - 1
    out = np.zeros( (nb, nb) )
    derivative_matrix_p( knots, degree, bool( normalize ), out )

    return csr_matrix( out ) if sparse else out

#==============================================================================
def collocation_matrix( knots, degree, xgrid, periodic=False, r=None, sparse=False ):
    """
    Compute the collocation matrix C_ij = B_j(x_i), which contains the
    values of each B-spline basis function B_j at all locations x_i.

    Parameters
    ----------
    knots : 1D array_like
        Knots sequence. In the periodic case it must be symmetrized
        (see symmetrize_knots and make_knots).

    degree : int
        Polynomial degree of B-splines.

    xgrid : 1D array_like
        Evaluation points.

    periodic : bool
        True if domain is periodic, False otherwise.

    r : int, optional
        Regularity at the periodic boundary; default is degree-1. The last
        r+1 basis functions are identified with the first ones.

    sparse : bool
        Return a scipy.sparse.csr_matrix instead of a dense array.

    Returns
    -------
    mat : numpy.ndarray or scipy.sparse.csr_matrix
        Collocation matrix: values of all basis functions on each point in xgrid.

    """
    degree = check_degree( degree )
    knots  = check_knots( knots, degree )
    xgrid  = check_sites( xgrid )
    tol    = get_default( 'roundoff_tol' )

    # Number of basis functions (in periodic case remove r+1 repeated elements)
    nb = len( knots ) - degree - 1
    nx = len( xgrid )

    if periodic:
        if r is None:
            r = degree - 1
        if not -1 <= r <= degree - 1:
            raise ValueError( "Regularity must be in [-1, {}], got {}".format( degree-1, r ) )
        out = np.zeros( (nx, nb-(r+1)) )
        collocation_periodic_matrix_p( knots, degree, int( r ), xgrid, tol, out )
    else:
        out = np.zeros( (nx, nb) )
        collocation_matrix_p( knots, degree, xgrid, tol, out )

    return csr_matrix( out ) if sparse else out

#==============================================================================
def symbol_stiffness_matrix( degree, size ):
    """
    Symbol of the stiffness operator: banded Toeplitz matrix whose entries
    are the values of the B-splines of degree 2p-1 at the integer knots of a
    uniform sequence.

    Parameters
    ----------
    degree : int
        Polynomial degree p >= 1.

    size : int
        Number of rows and columns.

    Returns
    -------
    mat : numpy.ndarray (size, size)

    """
    degree = check_degree( degree, minimum=1 )

    if size < 0:
        raise ValueError( "Cannot accept negative size: {}".format( size ) )

    out = np.zeros( (size, size) )
    symbol_stiffness_p( degree, out )

    return out

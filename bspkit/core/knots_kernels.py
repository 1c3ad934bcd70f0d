#---------------------------------------------------------------------------#
# This file is part of BSPKIT which is released under MIT License. See the  #
# LICENSE file for full license details.                                    #
#---------------------------------------------------------------------------#

# Pyccelisable queries on knot sequences. No argument is checked here: the
# functions in bspkit.core.bsplines validate inputs and allocate the outputs.

import numpy as np


# =============================================================================
def find_span_p(knots: 'float[:]', degree: int, x: float):
    """
    Determine the knot span index at location x, given the B-Splines' knot
    sequence and polynomial degree. See Algorithm A2.1 in [1].

    For a degree p, the knot span index i identifies the indices [i-p:i] of all
    p+1 non-zero basis functions at a given location x.

    Parameters
    ----------
    knots : array_like
        Knots sequence.

    degree : int
        Polynomial degree of B-splines.

    x : float
        Location of interest.

    Returns
    -------
    span : int
        Knot span index.

    References
    ----------
    .. [1] L. Piegl and W. Tiller. The NURBS Book, 2nd ed.,
        Springer-Verlag Berlin Heidelberg GmbH, 1997.
    """
    # last knot on the left boundary
    low  = degree
    # first knot on the right boundary
    high = len(knots)-1-degree

    # Check if point is exactly on left/right boundary, or outside domain
    if x >= knots[high]: return high-1
    if x <= knots[low ]: return low

    # Perform binary search
    span = (low+high)//2
    while x < knots[span] or x >= knots[span+1]:
        if x < knots[span]:
           high = span
        else:
           low  = span
        span = (low+high)//2

    return span


# =============================================================================
def find_spans_p(knots: 'float[:]', degree: int, x: 'float[:]', out: 'int[:]'):
    """
    Determine the knot span index at a set of locations x.

    Parameters
    ----------
    knots : array_like
        Knots sequence.

    degree : int
        Polynomial degree of B-splines.

    x : array_like of floats
        Locations of interest.

    out : array
        The result will be inserted into this array.
        It should be of the appropriate shape and dtype.
    """
    n = x.shape[0]

    for i in range(n):
        out[i] = find_span_p(knots, degree, x[i])


# =============================================================================
def find_mult_p(knots: 'float[:]', degree: int, x: float, span: int):
    """
    Count how many times x appears in knots[span-p:span+p+2].

    The comparison is an exact floating point equality: knots that are meant
    to coincide with x must be passed with the very same value.

    Parameters
    ----------
    knots : array_like
        Knots sequence.

    degree : int
        Polynomial degree of B-splines.

    x : float
        Knot value of interest.

    span : int
        Knot span index used as starting point of the search.

    Returns
    -------
    mult : int
        Multiplicity of x.
    """
    first = max(span - degree, 0)
    last  = min(span + degree + 1, len(knots) - 1)

    mult = 0
    for j in range(first, last + 1):
        if x == knots[j]:
            mult += 1

    return mult


# =============================================================================
def find_span_mult_p(knots: 'float[:]', degree: int, x: float):
    """
    Span index and multiplicity of the knot x.

    Returns
    -------
    span : int
        Knot span index.

    mult : int
        Multiplicity of x.
    """
    span = find_span_p(knots, degree, x)
    mult = find_mult_p(knots, degree, x, span)

    return span, mult


# =============================================================================
def find_nonzero_elements_p(knots: 'float[:]', degree: int, out: 'float[:]'):
    """
    Collect the distinct knot values, in increasing order, starting from the
    smallest knot. These are the edges of the non-empty elements.

    Parameters
    ----------
    knots : array_like
        Knots sequence.

    degree : int
        Polynomial degree of B-splines.

    out : array
        Must have the same length as knots. Slots which are not needed keep
        the sentinel value -1e7.

    Returns
    -------
    n_elements : int
        Number of non-empty elements, i.e. index of the last value written.
    """
    nk = len(knots)

    out[:] = -10000000.0

    i_current = 0
    out[i_current] = np.min(knots)
    for i in range(1, nk):
        min_current = np.min(knots[i:])
        if min_current > out[i_current]:
            i_current += 1
            out[i_current] = min_current

    return i_current


# =============================================================================
def span_index_p(knots: 'float[:]', degree: int, out: 'int[:]'):
    """
    Write the span index of every non-empty knot interval [knots[k], knots[k+1])
    with degree <= k <= n, stopping as soon as out is full.

    Returns
    -------
    count : int
        Number of indices written into out.
    """
    size = out.shape[0]
    n    = len(knots) - degree - 2

    count = 0
    if size == 0:
        return count

    for k in range(degree, n + 1):
        if knots[k] != knots[k+1]:
            out[count] = k
            count += 1
            if count >= size:
                break

    return count


# =============================================================================
def greville_p(knots: 'float[:]', degree: int, out: 'float[:]'):
    """
    Compute the Greville abscissae: average of the p knots knots[i+1:i+p+1]
    associated to each basis function.

    Parameters
    ----------
    knots : array_like
        Knots sequence.

    degree : int
        Polynomial degree of B-splines (>= 1).

    out : array
        Abscissae, of length len(knots)-degree-1.
    """
    p  = degree
    nb = len(knots) - p - 1

    for i in range(nb):
        s = 0.0
        for j in range(i + 1, i + p + 1):
            s += knots[j]
        out[i] = s / p


# =============================================================================
def symmetrize_knots_p(knots: 'float[:]', degree: int, r: int, out: 'float[:]'):
    """
    Extend a knot sequence by periodicity: the r+1 knots closest to each
    boundary are replaced by the interior knots of the opposite side, shifted
    by one period. Needed for periodic interpolation.

    Parameters
    ----------
    knots : array_like
        Knots sequence, of length nb+degree+1.

    degree : int
        Polynomial degree of B-splines.

    r : int
        Regularity of the spline space at the extremities.

    out : array
        Symmetrized knots, same length as knots.
    """
    p  = degree
    nb = len(knots) - p - 1
    nu = r + 1

    period = knots[nb] - knots[p]

    for i in range(nu):
        out[i] = knots[nb - nu + i] - period

    for i in range(nu, p + 1):
        out[i] = knots[p]

    for i in range(p + 1, nb + p + 1 - nu):
        out[i] = knots[i]

    for i in range(1, nu + 1):
        out[nb + p - nu + i] = knots[p + i] + period


# =============================================================================
def elements_spans_p(knots: 'float[:]', degree: int, spans: 'int[:]', basis_elements: 'int[:]'):
    """
    For every non-empty element, store the index of the last non-vanishing
    basis function (i.e. the span of its left edge). For every basis function
    k with degree <= k < nb, store the index of the element it starts in.

    Parameters
    ----------
    knots : array_like
        Knots sequence.

    degree : int
        Polynomial degree of B-splines.

    spans : array of int
        Output of length nb; unused slots are set to -1.

    basis_elements : array of int
        Output of length nb; unused slots are set to -1.

    Returns
    -------
    ne : int
        Number of non-empty elements.
    """
    nb = len(knots) - degree - 1

    spans[:]          = -1
    basis_elements[:] = -1

    ie = 0
    for k in range(degree, nb):
        basis_elements[k] = ie
        # we check if the element has zero measure
        if knots[k] != knots[k+1]:
            spans[ie] = k
            ie += 1

    return ie

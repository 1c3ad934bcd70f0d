#---------------------------------------------------------------------------#
# This file is part of BSPKIT which is released under MIT License. See the  #
# LICENSE file for full license details.                                    #
#---------------------------------------------------------------------------#

# Pyccelisable evaluation of the non-vanishing B-splines and of their
# derivatives at given locations.

import numpy as np

from bspkit.core.knots_kernels import find_span_p


# =============================================================================
def basis_funs_p(knots: 'float[:]', degree: int, x: float, span: int, out: 'float[:]'):
    """
    Compute the non-vanishing B-splines at a unique location.

    Parameters
    ----------
    knots : array_like of floats
        Knots sequence.

    degree : int
        Polynomial degree of B-splines.

    x : float
        Evaluation point.

    span : int
        Knot span index.

    out : array
        The result will be inserted into this array.
        It should be of the appropriate shape and dtype.

    Notes
    -----
    The original Algorithm A2.2 in The NURBS Book [1] is here slightly improved
    by using 'left' and 'right' temporary arrays that are one element shorter.

    References
    ----------
    .. [1] L. Piegl and W. Tiller. The NURBS Book, 2nd ed.,
        Springer-Verlag Berlin Heidelberg GmbH, 1997.
    """
    left  = np.zeros(degree, dtype=float)
    right = np.zeros(degree, dtype=float)

    out[0] = 1.0
    for j in range(degree):
        left[j]  = x - knots[span - j]
        right[j] = knots[span + 1 + j] - x
        saved    = 0.0
        for r in range(j + 1):
            temp   = out[r] / (right[r] + left[j - r])
            out[r] = saved + right[r] * temp
            saved  = left[j - r] * temp
        out[j + 1] = saved


# =============================================================================
def basis_funs_array_p(knots: 'float[:]', degree: int, x: 'float[:]', span: 'int[:]', out: 'float[:,:]'):
    """
    Compute the non-vanishing B-splines at locations in x, given the knot sequence,
    polynomial degree and knot span. See Algorithm A2.2 in [1].

    Parameters
    ----------
    knots : array_like of floats
        Knots sequence.

    degree : int
        Polynomial degree of B-splines.

    x : array_like of floats
        Evaluation points.

    span : array_like of int
        Knot span indexes.

    out : array
        The result will be inserted into this array.
        It should be of the appropriate shape and dtype.
    """
    n = x.shape[0]
    for i in range(n):
        basis_funs_p(knots, degree, x[i], span[i], out[i, :])


# =============================================================================
def basis_funs_all_ders_p(knots: 'float[:]', degree: int, x: float, span: int, n: int, normalization: bool,
                          out: 'float[:,:]'):
    """
    Evaluate value and n derivatives at x of all basis functions with
    support in interval :math:`[x_{span-1}, x_{span}]`.

    If called with normalization=True, this uses M-splines instead of B-splines.

    Fills a 2D array with n+1 (from 0-th to n-th) derivatives at x
    of all (degree+1) non-vanishing basis functions in given span.

    .. math::
        ders[i,j] = \\frac{d^i}{dx^i} B_k(x) \\, \\text{with} k=(span-degree+j),
        \\forall (i,j),  0 \\leq i \\leq n \\, 0 \\leq j \\leq \\text{degree}.

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
        Max derivative of interest.

    normalization: bool
        Set to False to get B-Splines and True to get M-Splines

    out : array
        The result will be inserted into this array.
        It should be of the appropriate shape and dtype.

    Notes
    -----
    This is Algorithm A2.3 in The NURBS Book [1] with 'left' and 'right'
    arrays one element shorter. The knot differences are kept in the lower
    triangular part of 'ndu' and divided by, exactly as in basis_funs_p,
    so that the 0-th derivative is bit-for-bit equal to its output.

    Derivatives of order higher than degree are zero.

    References
    ----------
    .. [1] L. Piegl and W. Tiller. The NURBS Book, 2nd ed.,
        Springer-Verlag Berlin Heidelberg GmbH, 1997.
    """
    left  = np.empty(degree)
    right = np.empty(degree)
    ndu   = np.empty((degree+1, degree+1))
    a     = np.empty((2, degree+1))

    # Number of derivatives that need to be effectively computed
    # Derivatives higher than degree are = 0.
    ne = min(n, degree)

    # Compute nonzero basis functions and knot differences for splines
    # up to degree, which are needed to compute derivatives.
    # Store values in 2D temporary array 'ndu' (square matrix).
    ndu[0, 0] = 1.0
    for j in range(degree):
        left[j]  = x - knots[span-j]
        right[j] = knots[span+1+j] - x
        saved    = 0.0
        for r in range(j+1):
            # save knot differences into lower triangular part of ndu
            ndu[j + 1, r] = right[r] + left[j - r]
            # compute basis functions and save them into upper triangular part of ndu
            temp          = ndu[r, j] / ndu[j + 1, r]
            ndu[r, j + 1] = saved + right[r] * temp
            saved         = left[j - r] * temp
        ndu[j + 1, j + 1] = saved

    out[:, :] = 0.0

    # Compute derivatives in 2D output array 'out'
    for r in range(degree+1):
        out[0, r] = ndu[r, degree]

    for r in range(degree+1):

        s1 = 0
        s2 = 1
        a[0, 0] = 1.0
        for k in range(1, ne + 1):
            d  = 0.0
            rk = r-k
            pk = degree-k
            if r >= k:
                a[s2, 0] = a[s1, 0] / ndu[pk + 1, rk]
                d = a[s2, 0] * ndu[rk, pk]

            j1 = 1   if (rk  > -1 ) else -rk
            j2 = k-1 if (r-1 <= pk) else degree-r

            for j in range(j1, j2 + 1):
                a[s2, j] = (a[s1, j] - a[s1, j - 1]) / ndu[pk + 1, rk + j]
                d += a[s2, j] * ndu[rk + j, pk]

            if r <= pk:
                a[s2, k] = - a[s1, k - 1] / ndu[pk + 1, r]
                d += a[s2, k] * ndu[r, pk]

            out[k, r] = d
            j  = s1
            s1 = s2
            s2 = j

    # Multiply derivatives by correct factors
    r = degree
    for k in range(1, ne+1):
        out[k, :] = out[k, :] * r
        r = r * (degree-k)

    if normalization:
        for i in range(degree + 1):
            out[:, i] *= (degree + 1) / (knots[i + span + 1] - knots[i + span - degree])


# =============================================================================
def eval_splines_ders_p(knots: 'float[:]', degree: int, nders: int, tau: 'float[:]', out: 'float[:,:,:]'):
    """
    Evaluate the non-vanishing B-splines and their first nders derivatives
    at every site of tau. The span of each site is searched for.

    Parameters
    ----------
    knots : array_like
        Knots sequence.

    degree : int
        Polynomial degree of B-splines.

    nders : int
        Max derivative of interest.

    tau : array_like
        Evaluation sites.

    out : array
        Array of shape (len(tau), nders+1, degree+1).
    """
    nt = tau.shape[0]
    for i in range(nt):
        span = find_span_p(knots, degree, tau[i])
        basis_funs_all_ders_p(knots, degree, tau[i], span, nders, False, out[i, :, :])


# =============================================================================
def basis_integrals_p(knots: 'float[:]', degree: int, out: 'float[:]'):
    """
    Return the integral of each B-spline basis function over the real line:

    :math: K[i] := \\int_{-\\infty}^{+\\infty} B[i](x) dx = (T[i+p+1]-T[i]) / (p+1).

    This array can be used to convert B-splines to M-splines, which have unit
    integral over the real line but no partition-of-unity property.

    Parameters
    ----------
    knots : array_like
        Knots sequence.

    degree : int
        Polynomial degree of B-splines.

    out : array
        The result will be inserted into this array.
        It should be of the appropriate shape and dtype.
    """
    T = knots
    p = degree
    n = len(T)-p-1
    for i in range(n):
        out[i] = (T[i + p + 1] - T[i])/ (p + 1)

#---------------------------------------------------------------------------#
# This file is part of BSPKIT which is released under MIT License. See the  #
# LICENSE file for full license details.                                    #
#---------------------------------------------------------------------------#

# Pyccelisable assembly of dense matrices built from B-splines: derivative,
# collocation (plain and periodic) and stiffness symbol.

import numpy as np

from bspkit.core.knots_kernels import find_span_p
from bspkit.core.knots_kernels import find_spans_p
from bspkit.core.basis_kernels import basis_funs_p
from bspkit.core.basis_kernels import basis_funs_array_p


# =============================================================================
def derivative_matrix_p(knots: 'float[:]', degree: int, normalize: bool, out: 'float[:,:]'):
    """
    Bidiagonal matrix of the linear map from the coefficients of a spline to
    the coefficients of its derivative.

    Row i holds a_i on the diagonal and -a_i on the sub-diagonal, with
    a_i = p / (knots[i+p+1] - knots[i]), or a_i = 1 if normalize is True.

    Parameters
    ----------
    knots : array_like
        Knots sequence.

    degree : int
        Polynomial degree of B-splines.

    normalize : bool
        If True, do not multiply the rows by the scaling factors.

    out : array
        Square matrix of size nb = len(knots)-degree-1.
    """
    p  = degree
    nb = len(knots) - p - 1

    out[:, :] = 0.0

    for i in range(nb):
        if normalize:
            alpha = 1.0
        else:
            alpha = p / (knots[i + p + 1] - knots[i])

        out[i, i] = alpha
        if i > 0:
            out[i, i - 1] = -alpha


# =============================================================================
def collocation_matrix_p(knots: 'float[:]', degree: int, xgrid: 'float[:]', tol: float, out: 'float[:,:]'):
    """
    Compute the collocation matrix :math:`C_ij = B_j(x_i)`, which contains the
    values of each B-spline basis function :math:`B_j` at all locations :math:`x_i`.

    Parameters
    ----------
    knots : array_like
        Knots sequence.

    degree : int
        Polynomial degree of spline space.

    xgrid : array_like
        Evaluation points.

    tol : float
        Entries smaller than tol in absolute value are set to zero.

    out : array
        The result will be inserted into this array.
        It should be of shape (len(xgrid), len(knots)-degree-1).
    """
    nb = len(knots) - degree - 1
    nx = len(xgrid)

    basis = np.zeros((nx, degree + 1))
    spans = np.zeros(nx, dtype=int)
    find_spans_p(knots, degree, xgrid, spans)
    basis_funs_array_p(knots, degree, xgrid, spans, basis)

    out[:, :] = 0.0

    # Fill in non-zero matrix values
    for i in range(nx):
        out[i, spans[i] - degree:spans[i] + 1] = basis[i, :]

    # Mitigate round-off errors
    for x in range(nx):
        for y in range(nb):
            if abs(out[x, y]) < tol:
                out[x, y] = 0.0


# =============================================================================
def collocation_periodic_matrix_p(knots: 'float[:]', degree: int, r: int, xgrid: 'float[:]', tol: float,
                                  out: 'float[:,:]'):
    """
    Compute the collocation matrix of a periodic spline space with regularity
    r at the extremities. The knots are expected to be symmetrized.

    The column index of every basis function is wrapped modulo
    nb - (r+1), where nb = len(knots)-degree-1, which is the number of
    columns of out.
    """
    nb = len(knots) - degree - 1 - (r + 1)
    nx = len(xgrid)

    basis = np.zeros((nx, degree + 1))
    spans = np.zeros(nx, dtype=int)
    find_spans_p(knots, degree, xgrid, spans)
    basis_funs_array_p(knots, degree, xgrid, spans, basis)

    out[:, :] = 0.0

    for i in range(nx):
        for j in range(degree + 1):
            actual_j = (spans[i] - degree + j) % nb
            out[i, actual_j] = basis[i, j]

    # Mitigate round-off errors
    for x in range(nx):
        for y in range(nb):
            if abs(out[x, y]) < tol:
                out[x, y] = 0.0


# =============================================================================
def symbol_stiffness_p(degree: int, out: 'float[:,:]'):
    """
    Banded Toeplitz matrix used as symbol of the stiffness operator.

    The band is filled with the values, at the integer site 2p-1, of the
    B-splines of degree 2p-1 on the uniform knots sequence
    [-(2p-1), ..., 3(2p-1)+1]. Entries with |i-j| > p, and the one band with
    j-i = -p, are zero.

    Parameters
    ----------
    degree : int
        Polynomial degree p >= 1 of the underlying spline space.

    out : array
        Square matrix of any size.
    """
    p     = degree
    p_new = 2 * p - 1
    n     = 2 * p_new + 1
    nt    = out.shape[0]

    knots = np.zeros(p_new + n + 1)
    batx  = np.zeros(p_new + 1)

    for i in range(p_new + n + 1):
        knots[i] = -p_new + i

    x    = 1.0 * p_new
    span = find_span_p(knots, p_new, x)
    basis_funs_p(knots, p_new, x, span, batx)

    out[:, :] = 0.0
    for i in range(nt):
        for j in range(nt):
            if abs(i - j) <= p and p - i + j != 0:
                out[i, j] = batx[p - i + j - 1]

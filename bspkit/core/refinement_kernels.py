#---------------------------------------------------------------------------#
# This file is part of BSPKIT which is released under MIT License. See the  #
# LICENSE file for full license details.                                    #
#---------------------------------------------------------------------------#

# Pyccelisable knot insertion, knot refinement, knot removal, clamping and
# degree elevation of B-spline curves.
#
# Control points have shape (n+1, d). For rational curves these are the
# homogeneous points Pw = (w*P, w). Every function reads its inputs and writes
# the transformed curve into the output arrays; inputs are never modified.

import numpy as np

from bspkit.core.knots_kernels import find_span_p
from bspkit.core.knots_kernels import find_mult_p


# =============================================================================
def insert_knot_p(knots: 'float[:]', degree: int, points: 'float[:,:]', x: float,
                  span: int, mult: int, times: int,
                  knots_out: 'float[:]', points_out: 'float[:,:]'):
    """
    Insert the knot x a given number of times (Boehm's algorithm).
    See Algorithm A5.1 in [1].

    Parameters
    ----------
    knots : array_like
        Knots sequence, of length n+p+2.

    degree : int
        Polynomial degree.

    points : array_like
        Control points, shape (n+1, d).

    x : float
        Knot to be inserted.

    span : int
        Knot span index of x.

    mult : int
        Multiplicity of x in the knots sequence.

    times : int
        Number of insertions; times + mult must not exceed degree.

    knots_out : array
        New knots sequence, of length n+p+2+times.

    points_out : array
        New control points, shape (n+1+times, d).

    References
    ----------
    .. [1] L. Piegl and W. Tiller. The NURBS Book, 2nd ed.,
        Springer-Verlag Berlin Heidelberg GmbH, 1997.
    """
    p  = degree
    k  = span
    s  = mult
    r  = times
    n  = points.shape[0] - 1
    d  = points.shape[1]
    Rw = np.zeros((p + 1, d))

    # Load new knot vector
    for i in range(k + 1):
        knots_out[i] = knots[i]
    for i in range(1, r + 1):
        knots_out[k + i] = x
    for i in range(k + 1, n + p + 2):
        knots_out[i + r] = knots[i]

    # Save unaltered control points
    for i in range(k - p + 1):
        points_out[i, :] = points[i, :]
    for i in range(k - s, n + 1):
        points_out[i + r, :] = points[i, :]
    for i in range(p - s + 1):
        Rw[i, :] = points[k - p + i, :]

    # Insert the knot r times
    for j in range(1, r + 1):
        idx = k - p + j
        for i in range(p - j - s + 1):
            alpha    = (x - knots[idx + i]) / (knots[i + k + 1] - knots[idx + i])
            Rw[i, :] = alpha * Rw[i + 1, :] + (1.0 - alpha) * Rw[i, :]
        points_out[idx, :]           = Rw[0, :]
        points_out[k + r - j - s, :] = Rw[p - j - s, :]

    # Load remaining control points
    idx = k - p + r
    for i in range(idx + 1, k - s):
        points_out[i, :] = Rw[i - idx, :]


# =============================================================================
def refine_knot_vector_p(knots: 'float[:]', degree: int, points: 'float[:,:]', x: 'float[:]',
                         knots_out: 'float[:]', points_out: 'float[:,:]'):
    """
    Insert all the knots of the sorted array x at once. See Algorithm A5.4
    in The NURBS Book.

    knots_out has length n+p+2+len(x), points_out has shape (n+1+len(x), d).
    The new knots are processed from the last one backwards.
    """
    p = degree
    n = points.shape[0] - 1
    m = n + p + 1
    r = x.shape[0] - 1

    a = find_span_p(knots, p, x[0])
    b = find_span_p(knots, p, x[r]) + 1

    for j in range(a - p + 1):
        points_out[j, :] = points[j, :]
    for j in range(b - 1, n + 1):
        points_out[j + r + 1, :] = points[j, :]
    for j in range(a + 1):
        knots_out[j] = knots[j]
    for j in range(b + p, m + 1):
        knots_out[j + r + 1] = knots[j]

    i = b + p - 1
    k = b + p + r
    for j in range(r, -1, -1):
        while x[j] <= knots[i] and i > a:
            points_out[k - p - 1, :] = points[i - p - 1, :]
            knots_out[k] = knots[i]
            k = k - 1
            i = i - 1

        points_out[k - p - 1, :] = points_out[k - p, :]
        for l in range(1, p + 1):
            idx   = k - p + l
            alpha = knots_out[k + l] - x[j]
            if abs(alpha) == 0.0:
                points_out[idx - 1, :] = points_out[idx, :]
            else:
                alpha = alpha / (knots_out[k + l] - knots[i - p + l])
                points_out[idx - 1, :] = alpha * points_out[idx - 1, :] + (1.0 - alpha) * points_out[idx, :]

        knots_out[k] = x[j]
        k = k - 1


# =============================================================================
def remove_knot_p(knots: 'float[:]', degree: int, points: 'float[:,:]', x: float,
                  span: int, mult: int, num: int, tol: float,
                  knots_out: 'float[:]', points_out: 'float[:,:]'):
    """
    Try to remove the interior knot x up to num times. See Algorithm A5.8
    in [1].

    Each removal is accepted only if the control points rebuilt from both
    sides of the affected window agree within tol (Euclidean distance).
    The loop stops at the first rejected removal.

    Parameters
    ----------
    knots : array_like
        Knots sequence, of length n+p+2.

    degree : int
        Polynomial degree.

    points : array_like
        Control points, shape (n+1, d).

    x : float
        Knot to be removed.

    span : int
        Knot span index of x, i.e. index of its last occurrence.

    mult : int
        Multiplicity of x.

    num : int
        Number of removals to attempt, at most mult.

    tol : float
        Tolerance on the displacement of the control points.

    knots_out : array
        Same shape as knots. On exit its first n+p+2-t entries hold the
        new knots sequence.

    points_out : array
        Same shape as points. On exit its first n+1-t rows hold the new
        control points.

    Returns
    -------
    t : int
        Number of knots actually removed.

    References
    ----------
    .. [1] L. Piegl and W. Tiller. The NURBS Book, 2nd ed.,
        Springer-Verlag Berlin Heidelberg GmbH, 1997.
    """
    p   = degree
    n   = points.shape[0] - 1
    d   = points.shape[1]
    m   = n + p + 1
    order = p + 1
    r   = span
    s   = mult

    knots_out[:]     = knots[:]
    points_out[:, :] = points[:, :]

    temp  = np.zeros((2 * p + 1, d))
    fout  = (2 * r - s - p) // 2
    first = r - p
    last  = r - s

    t = 0
    while t < num:
        off = first - 1
        temp[0, :]              = points_out[off, :]
        temp[last + 1 - off, :] = points_out[last + 1, :]

        i  = first
        ii = 1
        j  = last
        jj = last - off
        while j - i > t:
            alfi = (x - knots_out[i]) / (knots_out[i + order + t] - knots_out[i])
            alfj = (x - knots_out[j - t]) / (knots_out[j + order] - knots_out[j - t])
            temp[ii, :] = (points_out[i, :] - (1.0 - alfi) * temp[ii - 1, :]) / alfi
            temp[jj, :] = (points_out[j, :] - alfj * temp[jj + 1, :]) / (1.0 - alfj)
            i  = i + 1
            ii = ii + 1
            j  = j - 1
            jj = jj - 1

        # Distance between the two reconstructions
        dist = 0.0
        if j - i < t:
            for l in range(d):
                dist += (temp[ii - 1, l] - temp[jj + 1, l])**2
        else:
            alfi = (x - knots_out[i]) / (knots_out[i + order + t] - knots_out[i])
            for l in range(d):
                dist += (points_out[i, l] - alfi * temp[ii + t + 1, l] - (1.0 - alfi) * temp[ii - 1, l])**2

        if np.sqrt(dist) > tol:
            break

        # Removal accepted: save new control points
        i = first
        j = last
        while j - i > t:
            points_out[i, :] = temp[i - off, :]
            points_out[j, :] = temp[j - off, :]
            i = i + 1
            j = j - 1

        first = first - 1
        last  = last + 1
        t     = t + 1

    if t == 0:
        return t

    # Shift knots
    for k in range(r + 1, m + 1):
        knots_out[k - t] = knots_out[k]

    # Pj thru Pi will be overwritten
    j = fout
    i = j
    for k in range(1, t):
        if k % 2 == 1:
            i = i + 1
        else:
            j = j - 1

    # Shift control points
    for k in range(i + 1, n + 1):
        points_out[j, :] = points_out[k, :]
        j = j + 1

    return t


# =============================================================================
def clamp_end_p(knots: 'float[:]', degree: int, points: 'float[:,:]', k: int, s: int, left: bool):
    """
    Insert the end knot knots[k] until its multiplicity is degree, and keep in
    points only the control points of the clamped curve. Works in place on
    points; knots is not modified.

    k is the index of the last occurrence of the end knot (degree for the
    left end), s is its current multiplicity.
    """
    p = degree
    n = points.shape[0] - 1
    d = points.shape[1]

    if s >= p:
        return

    r = p - s

    knots_ins  = np.zeros(len(knots) + r)
    points_ins = np.zeros((n + 1 + r, d))
    insert_knot_p(knots, p, points, knots[k], k, s, r, knots_ins, points_ins)

    # The clamped curve drops the first (left) or last (right) r points
    if left:
        for i in range(n + 1):
            points[i, :] = points_ins[i + r, :]
    else:
        for i in range(n + 1):
            points[i, :] = points_ins[i, :]


# =============================================================================
def clamp_knots_p(knots: 'float[:]', degree: int, points: 'float[:,:]', left: bool, right: bool,
                  knots_out: 'float[:]', points_out: 'float[:,:]'):
    """
    Clamp a curve at its left and/or right end: the end knot is given
    multiplicity degree+1 and the control points are changed accordingly,
    without modifying the curve on its domain. See Section 12.3 in The NURBS
    Book.
    """
    p = degree
    n = points.shape[0] - 1

    knots_out[:]     = knots[:]
    points_out[:, :] = points[:, :]

    if left:
        s = find_mult_p(knots_out, p, knots_out[p], p)
        clamp_end_p(knots_out, p, points_out, p, s, True)
        for i in range(p):
            knots_out[i] = knots_out[p]

    if right:
        ub = knots_out[n + 1]
        s  = find_mult_p(knots_out, p, ub, n)
        # last occurrence of the end knot
        k = n + 1
        while k < n + p + 1 and knots_out[k + 1] == ub:
            k = k + 1
        clamp_end_p(knots_out, p, points_out, k, s, False)
        for i in range(n + 2, n + p + 2):
            knots_out[i] = ub


# =============================================================================
def unclamp_knots_p(knots: 'float[:]', degree: int, points: 'float[:,:]', left: bool, right: bool,
                    knots_out: 'float[:]', points_out: 'float[:,:]'):
    """
    Unclamp a clamped curve at its left and/or right end. The new end knots
    are obtained by periodic extension of the interior knot spacing.
    See Algorithm A12.1 in The NURBS Book.
    """
    p = degree
    n = points.shape[0] - 1

    U  = knots_out
    Pw = points_out

    U[:]     = knots[:]
    Pw[:, :] = points[:, :]

    if left:
        for i in range(p - 1):
            U[p - i - 1] = U[p - i] - (U[n - i + 1] - U[n - i])
            k = p - 1
            for j in range(i, -1, -1):
                alpha    = (U[p] - U[k]) / (U[p + j + 1] - U[k])
                Pw[j, :] = (Pw[j, :] - alpha * Pw[j + 1, :]) / (1.0 - alpha)
                k = k - 1
        # Set first knot
        U[0] = U[1] - (U[n - p + 2] - U[n - p + 1])

    if right:
        for i in range(p - 1):
            U[n + i + 2] = U[n + i + 1] + (U[p + i + 1] - U[p + i])
            for j in range(i, -1, -1):
                alpha        = (U[n + 1] - U[n - j]) / (U[n - j + i + 2] - U[n - j])
                Pw[n - j, :] = (Pw[n - j, :] - (1.0 - alpha) * Pw[n - j - 1, :]) / alpha
        # Set last knot
        U[n + p + 1] = U[n + p] + (U[2 * p] - U[2 * p - 1])


# =============================================================================
def degree_elevate_p(knots: 'float[:]', degree: int, points: 'float[:,:]', t: int,
                     bezalfs: 'float[:,:]', knots_out: 'float[:]', points_out: 'float[:,:]'):
    """
    Raise the degree of a clamped curve by t. See Algorithm A5.9 in [1].

    The curve is decomposed into Bezier segments on the fly, every segment is
    degree elevated and the superfluous knots are removed again.

    Parameters
    ----------
    knots : array_like
        Knots sequence, of length n+p+2.

    degree : int
        Polynomial degree p >= 1.

    points : array_like
        Control points, shape (n+1, d).

    t : int
        Degree increment (>= 1).

    bezalfs : array_like
        Degree elevation coefficients of Bezier curves, shape (p+t+1, p+1):
        bezalfs[i,j] = C(p,j) C(t,i-j) / C(p+t,i).

    knots_out : array
        New knots sequence, of length nh+p+t+2.

    points_out : array
        New control points, shape (nh+1, d).

    References
    ----------
    .. [1] L. Piegl and W. Tiller. The NURBS Book, 2nd ed.,
        Springer-Verlag Berlin Heidelberg GmbH, 1997.
    """
    p  = degree
    n  = points.shape[0] - 1
    d  = points.shape[1]
    m  = n + p + 1
    ph = p + t

    U  = knots
    Pw = points
    Uh = knots_out
    Qw = points_out

    bpts     = np.zeros((p + 1, d))
    ebpts    = np.zeros((ph + 1, d))
    nextbpts = np.zeros((max(p - 1, 1), d))
    alfs     = np.zeros(max(p - 1, 1))

    kind = ph + 1
    cind = 1
    r    = -1
    a    = p
    b    = p + 1
    ua   = U[a]

    for i in range(ph + 1):
        Uh[i] = ua
    Qw[0, :] = Pw[0, :]
    for i in range(p + 1):
        bpts[i, :] = Pw[i, :]

    # Big loop thru knot vector
    while b < m:
        i = b
        while b < m and U[b] == U[b + 1]:
            b = b + 1
        mul  = b - i + 1
        oldr = r
        r    = p - mul
        ub   = U[b]

        # Insert knot U[b] r times
        lbz = (oldr + 2) // 2 if oldr > 0 else 1
        rbz = ph - (r + 1) // 2 if r > 0 else ph

        if r > 0:
            for k in range(p, mul, -1):
                alfs[k - mul - 1] = (ub - ua) / (U[a + k] - ua)
            for j in range(1, r + 1):
                s = mul + j
                for k in range(p, s - 1, -1):
                    bpts[k, :] = alfs[k - s] * bpts[k, :] + (1.0 - alfs[k - s]) * bpts[k - 1, :]
                nextbpts[r - j, :] = bpts[p, :]

        # Degree elevate Bezier
        for i in range(lbz, ph + 1):
            ebpts[i, :] = 0.0
            for j in range(max(0, i - t), min(p, i) + 1):
                ebpts[i, :] += bezalfs[i, j] * bpts[j, :]

        # Remove knot U[a] oldr times
        if oldr > 1:
            first = kind - 2
            last  = kind
            den   = ub - ua
            bet   = (ub - Uh[kind - 1]) / den
            for tr in range(1, oldr):
                i  = first
                j  = last
                kj = j - kind + 1
                while j - i > tr:
                    if i < cind:
                        alf      = (ub - Uh[i]) / (ua - Uh[i])
                        Qw[i, :] = alf * Qw[i, :] + (1.0 - alf) * Qw[i - 1, :]
                    if j >= lbz:
                        if j - tr <= kind - ph + oldr:
                            gam           = (ub - Uh[j - tr]) / den
                            ebpts[kj, :] = gam * ebpts[kj, :] + (1.0 - gam) * ebpts[kj + 1, :]
                        else:
                            ebpts[kj, :] = bet * ebpts[kj, :] + (1.0 - bet) * ebpts[kj + 1, :]
                    i  = i + 1
                    j  = j - 1
                    kj = kj - 1
                first = first - 1
                last  = last + 1

        # Load knot ua
        if a != p:
            for i in range(ph - oldr):
                Uh[kind] = ua
                kind = kind + 1

        # Load control points into Qw
        for j in range(lbz, rbz + 1):
            Qw[cind, :] = ebpts[j, :]
            cind = cind + 1

        if b < m:
            # Set up for next pass thru loop
            for j in range(r):
                bpts[j, :] = nextbpts[j, :]
            for j in range(r, p + 1):
                bpts[j, :] = Pw[b - p + j, :]
            a  = b
            b  = b + 1
            ua = ub
        else:
            # End knots
            for i in range(ph + 1):
                Uh[kind + i] = ub

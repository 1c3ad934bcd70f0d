#---------------------------------------------------------------------------#
# This file is part of BSPKIT which is released under MIT License. See the  #
# LICENSE file for full license details.                                    #
#---------------------------------------------------------------------------#
import numpy as np
import pytest

from bspkit.core.bsplines   import (make_knots,
                                    find_span,
                                    basis_funs,
                                    basis_integrals,
                                    collocation_matrix)
from bspkit.core.evaluation import (curve_point,
                                    surface_point,
                                    curve_point_corner_cut,
                                    evaluate_1d,
                                    evaluate_2d,
                                    evaluate_3d,
                                    evaluate_normal_1d,
                                    evaluate_normal_2d,
                                    evaluate_normal_3d,
                                    evaluate_deriv_1d,
                                    evaluate_deriv_2d,
                                    evaluate_deriv_3d,
                                    to_homogeneous,
                                    from_homogeneous)

# The pytest-xdist plugin requires that every worker sees the same parameters
# in the unit tests. As in this module random parameters are used, here we set
# the same random seed for all workers.
np.random.seed(0)

RTOL = 1e-11
ATOL = 1e-11

# Tolerances for comparisons with centered finite differences
H       = 1e-6
FD_RTOL = 1e-5
FD_ATOL = 1e-5

#==============================================================================
def quarter_circle():
    knots   = [0, 0, 0, 1, 1, 1]
    points  = [(1, 0), (1, 1), (0, 1)]
    weights = [1, 1 / np.sqrt(2), 1]
    return knots, 2, points, weights

def random_curve(degree, nbreaks, dim):
    knots   = make_knots(np.linspace(0, 1, nbreaks), degree)
    nb      = len(knots) - degree - 1
    points  = np.random.random((nb, dim))
    weights = 0.5 + np.random.random(nb)
    return knots, points, weights

#==============================================================================
def test_curve_point_scenario():
    knots  = [0, 0, 0, 1, 1, 1]
    points = [(0, 0), (1, 2), (2, 0)]

    assert np.allclose(curve_point(knots, 2, points, 0.5), [1, 1], atol=ATOL, rtol=RTOL)
    assert np.allclose(curve_point(knots, 2, points, 0.0), [0, 0], atol=ATOL, rtol=RTOL)
    assert np.allclose(curve_point(knots, 2, points, 1.0), [2, 0], atol=ATOL, rtol=RTOL)

    out = evaluate_1d(knots, 2, points, [0.0, 0.5, 1.0])
    assert np.allclose(out, [[0, 0], [1, 1], [2, 0]], atol=ATOL, rtol=RTOL)

def test_scalar_coefficients():
    knots = [0, 0, 0, 1, 1, 1]

    # 1D coefficients describe a scalar spline
    out = evaluate_1d(knots, 2, [0, 2, 0], [0.5])
    assert out.shape == (1, 1)
    assert np.allclose(out, 1.0, atol=ATOL, rtol=RTOL)

#==============================================================================
@pytest.mark.parametrize('degree', (1, 2, 3, 4))
@pytest.mark.parametrize('dim', (1, 2, 3))
def test_curve_point(degree, dim):
    knots, points, _ = random_curve(degree, 6, dim)

    for x in np.random.random(5):
        span     = find_span(knots, degree, x)
        basis    = basis_funs(knots, degree, x, span)
        expected = basis @ points[span-degree:span+1]

        assert np.allclose(curve_point(knots, degree, points, x), expected, atol=ATOL, rtol=RTOL)

#==============================================================================
def test_surface_point():
    p1, p2 = 2, 3
    k1 = make_knots(np.linspace(0, 1, 4), p1)
    k2 = make_knots(np.linspace(0, 1, 3), p2)
    n1 = len(k1) - p1 - 1
    n2 = len(k2) - p2 - 1
    points = np.random.random((n1, n2, 3))

    x1 = np.random.random(4)
    x2 = np.random.random(3)
    grid = evaluate_2d((k1, k2), (p1, p2), points, (x1, x2))

    assert grid.shape == (4, 3, 3)
    for i1, u in enumerate(x1):
        for i2, v in enumerate(x2):
            s1 = find_span(k1, p1, u)
            s2 = find_span(k2, p2, v)
            b1 = basis_funs(k1, p1, u, s1)
            b2 = basis_funs(k2, p2, v, s2)
            expected = np.einsum('a,b,abd->d', b1, b2, points[s1-p1:s1+1, s2-p2:s2+1])

            out = surface_point((k1, k2), (p1, p2), points, (u, v))
            assert np.allclose(out, expected, atol=ATOL, rtol=RTOL)
            assert np.allclose(grid[i1, i2], expected, atol=ATOL, rtol=RTOL)

#==============================================================================
def test_quarter_circle():
    knots, degree, points, weights = quarter_circle()
    x = np.linspace(0, 1, 21)

    out = evaluate_1d(knots, degree, points, x, weights)
    assert np.allclose(np.linalg.norm(out, axis=1), 1.0, atol=ATOL, rtol=RTOL)

    # Unit speed direction: tangent orthogonal to radius
    ders = evaluate_deriv_1d(knots, degree, points, x, nderiv=1, weights=weights)
    assert np.allclose(ders[:, 0], out, atol=ATOL, rtol=RTOL)
    assert np.allclose(np.einsum('id,id->i', ders[:, 0], ders[:, 1]), 0.0, atol=1e-10)

#==============================================================================
@pytest.mark.parametrize('degree', (1, 2, 3, 4))
def test_unit_weights(degree):
    knots, points, _ = random_curve(degree, 5, 2)
    x = np.random.random(10)

    rational = evaluate_1d(knots, degree, points, x, np.ones(len(points)))
    expected = collocation_matrix(knots, degree, x) @ points

    assert np.allclose(rational, expected, atol=ATOL, rtol=RTOL)
    assert np.allclose(evaluate_1d(knots, degree, points, x), expected, atol=ATOL, rtol=RTOL)

#==============================================================================
@pytest.mark.parametrize('degree', (2, 3))
@pytest.mark.parametrize('rational', (False, True))
def test_evaluate_deriv_1d(degree, rational):
    knots, points, weights = random_curve(degree, 5, 3)
    if not rational:
        weights = None

    x    = np.array([0.1, 0.3, 0.6, 0.9])
    ders = evaluate_deriv_1d(knots, degree, points, x, nderiv=2, weights=weights)
    assert ders.shape == (4, 3, 3)

    assert np.allclose(ders[:, 0], evaluate_1d(knots, degree, points, x, weights), atol=ATOL, rtol=RTOL)

    plus  = evaluate_deriv_1d(knots, degree, points, x + H, nderiv=1, weights=weights)
    minus = evaluate_deriv_1d(knots, degree, points, x - H, nderiv=1, weights=weights)
    fd    = (plus - minus) / (2 * H)

    assert np.allclose(ders[:, 1], fd[:, 0], atol=FD_ATOL, rtol=FD_RTOL)
    assert np.allclose(ders[:, 2], fd[:, 1], atol=FD_ATOL, rtol=FD_RTOL)

    # Lower orders are a prefix of higher orders
    ders0 = evaluate_deriv_1d(knots, degree, points, x, nderiv=0, weights=weights)
    assert ders0.shape == (4, 1, 3)
    assert np.allclose(ders0[:, 0], ders[:, 0], atol=ATOL, rtol=RTOL)

#==============================================================================
@pytest.mark.parametrize('rational', (False, True))
def test_evaluate_deriv_2d(rational):
    p1, p2 = 2, 3
    k1 = make_knots(np.linspace(0, 1, 4), p1)
    k2 = make_knots(np.linspace(0, 1, 3), p2)
    n1 = len(k1) - p1 - 1
    n2 = len(k2) - p2 - 1

    points  = np.random.random((n1, n2, 3))
    weights = 0.5 + np.random.random((n1, n2)) if rational else None

    x1 = np.array([0.1, 0.45, 0.8])
    x2 = np.array([0.2, 0.7])
    knots   = (k1, k2)
    degrees = (p1, p2)

    ders = evaluate_deriv_2d(knots, degrees, points, (x1, x2), nderiv=2, weights=weights)
    assert ders.shape == (3, 2, 6, 3)

    values = evaluate_2d(knots, degrees, points, (x1, x2), weights)
    assert np.allclose(ders[:, :, 0], values, atol=ATOL, rtol=RTOL)

    d1 = lambda u, v: evaluate_deriv_2d(knots, degrees, points, (u, v), nderiv=1, weights=weights)

    fd_x = (d1(x1 + H, x2) - d1(x1 - H, x2)) / (2 * H)
    fd_y = (d1(x1, x2 + H) - d1(x1, x2 - H)) / (2 * H)

    # value, x, y, xx, xy, yy
    assert np.allclose(ders[:, :, 1], fd_x[:, :, 0], atol=FD_ATOL, rtol=FD_RTOL)
    assert np.allclose(ders[:, :, 2], fd_y[:, :, 0], atol=FD_ATOL, rtol=FD_RTOL)
    assert np.allclose(ders[:, :, 3], fd_x[:, :, 1], atol=FD_ATOL, rtol=FD_RTOL)
    assert np.allclose(ders[:, :, 4], fd_x[:, :, 2], atol=FD_ATOL, rtol=FD_RTOL)
    assert np.allclose(ders[:, :, 5], fd_y[:, :, 2], atol=FD_ATOL, rtol=FD_RTOL)

#==============================================================================
@pytest.mark.parametrize('rational', (False, True))
def test_evaluate_deriv_3d(rational):
    p1, p2, p3 = 2, 1, 3
    k1 = make_knots(np.linspace(0, 1, 4), p1)
    k2 = make_knots(np.linspace(0, 1, 3), p2)
    k3 = make_knots(np.linspace(0, 1, 2), p3)
    nb = tuple(len(k) - p - 1 for k, p in zip((k1, k2, k3), (p1, p2, p3)))

    points  = np.random.random(nb + (3,))
    weights = 0.5 + np.random.random(nb) if rational else None

    x1 = np.array([0.1, 0.45, 0.8])
    x2 = np.array([0.2, 0.7])
    x3 = np.array([0.35, 0.6])
    knots   = (k1, k2, k3)
    degrees = (p1, p2, p3)

    ders = evaluate_deriv_3d(knots, degrees, points, (x1, x2, x3), nderiv=2, weights=weights)
    assert ders.shape == (3, 2, 2, 10, 3)

    values = evaluate_3d(knots, degrees, points, (x1, x2, x3), weights)
    assert np.allclose(ders[..., 0, :], values, atol=ATOL, rtol=RTOL)

    d1 = lambda u, v, w: evaluate_deriv_3d(knots, degrees, points, (u, v, w), nderiv=1, weights=weights)

    fd_x = (d1(x1 + H, x2, x3) - d1(x1 - H, x2, x3)) / (2 * H)
    fd_y = (d1(x1, x2 + H, x3) - d1(x1, x2 - H, x3)) / (2 * H)
    fd_z = (d1(x1, x2, x3 + H) - d1(x1, x2, x3 - H)) / (2 * H)

    # value, x, y, z, xx, yy, zz, xy, yz, zx
    expected = {1: fd_x[..., 0, :],
                2: fd_y[..., 0, :],
                3: fd_z[..., 0, :],
                4: fd_x[..., 1, :],
                5: fd_y[..., 2, :],
                6: fd_z[..., 3, :],
                7: fd_x[..., 2, :],
                8: fd_y[..., 3, :],
                9: fd_z[..., 1, :]}

    for slot, fd in expected.items():
        assert np.allclose(ders[..., slot, :], fd, atol=FD_ATOL, rtol=FD_RTOL)

#==============================================================================
def test_evaluate_deriv_order():
    knots, degree, points, weights = quarter_circle()

    with pytest.raises(ValueError):
        evaluate_deriv_1d(knots, degree, points, [0.5], nderiv=3, weights=weights)
    with pytest.raises(TypeError):
        evaluate_deriv_1d(knots, degree, points, [0.5], nderiv=1.0)
    with pytest.raises(ValueError):
        evaluate_deriv_2d((knots, knots), (2, 2), np.zeros((3, 3, 2)), ([0.5], [0.5]), nderiv=3)

def test_invalid_weights():
    knots, degree, points, _ = quarter_circle()

    with pytest.raises(ValueError):
        evaluate_1d(knots, degree, points, [0.5], [1, 0, 1])
    with pytest.raises(ValueError):
        evaluate_1d(knots, degree, points, [0.5], [1, 1])
    with pytest.raises(ValueError):
        evaluate_1d(knots, degree, points[:2], [0.5])

#==============================================================================
@pytest.mark.parametrize('degree', (1, 2, 3))
@pytest.mark.parametrize('normalize', (False, True))
def test_evaluate_normal_1d(degree, normalize):
    knots, points, weights = random_curve(degree, 6, 2)
    x = np.random.random(8)

    coeffs = weights[:, None] * points
    if normalize:
        coeffs = coeffs / basis_integrals(knots, degree)[:, None]
    expected = collocation_matrix(knots, degree, x) @ coeffs

    out = evaluate_normal_1d(knots, degree, points, x, weights, normalize)
    assert np.allclose(out, expected, atol=ATOL, rtol=RTOL)

#==============================================================================
@pytest.mark.parametrize('normalize', ((False, False), (True, False), (True, True)))
def test_evaluate_normal_2d(normalize):
    p1, p2 = 2, 3
    k1 = make_knots(np.linspace(0, 1, 4), p1)
    k2 = make_knots(np.linspace(0, 1, 3), p2)
    n1 = len(k1) - p1 - 1
    n2 = len(k2) - p2 - 1

    points  = np.random.random((n1, n2, 2))
    weights = 0.5 + np.random.random((n1, n2))
    x1 = np.random.random(5)
    x2 = np.random.random(4)

    C1 = collocation_matrix(k1, p1, x1)
    C2 = collocation_matrix(k2, p2, x2)
    if normalize[0]:
        C1 = C1 / basis_integrals(k1, p1)
    if normalize[1]:
        C2 = C2 / basis_integrals(k2, p2)
    expected = np.einsum('ia,jb,abd->ijd', C1, C2, weights[..., None] * points)

    out = evaluate_normal_2d((k1, k2), (p1, p2), points, (x1, x2), weights, normalize)
    assert np.allclose(out, expected, atol=ATOL, rtol=RTOL)

#==============================================================================
@pytest.mark.parametrize('normalize', ((False, False, False), (True, False, True)))
def test_evaluate_normal_3d(normalize):
    degrees = (1, 2, 2)
    knots   = tuple(make_knots(np.linspace(0, 1, 3), p) for p in degrees)
    nb      = tuple(len(k) - p - 1 for k, p in zip(knots, degrees))

    points  = np.random.random(nb + (3,))
    weights = 0.5 + np.random.random(nb)
    x       = tuple(np.random.random(3) for _ in degrees)

    C = []
    for k, p, xi, flag in zip(knots, degrees, x, normalize):
        Ci = collocation_matrix(k, p, xi)
        C.append(Ci / basis_integrals(k, p) if flag else Ci)
    expected = np.einsum('ia,jb,kc,abcd->ijkd', *C, weights[..., None] * points)

    out = evaluate_normal_3d(knots, degrees, points, x, weights, normalize)
    assert np.allclose(out, expected, atol=ATOL, rtol=RTOL)

    # Without weights nor normalization this is the non-rational volume
    out = evaluate_normal_3d(knots, degrees, points, x, normalize=(False, False, False))
    assert np.allclose(out, evaluate_3d(knots, degrees, points, x), atol=ATOL, rtol=RTOL)

#==============================================================================
@pytest.mark.parametrize('degree', (1, 2, 3, 4))
def test_curve_point_corner_cut(degree):
    knots, points, _ = random_curve(degree, 6, 2)

    for x in np.r_[0.0, np.random.random(6), 0.4, 1.0]:
        expected = curve_point(knots, degree, points, x)
        out      = curve_point_corner_cut(knots, degree, points, x)
        assert np.allclose(out, expected, atol=ATOL, rtol=RTOL)

    # Sites outside the domain are clamped to its boundary
    assert np.allclose(curve_point_corner_cut(knots, degree, points, -1.0), points[0], atol=ATOL, rtol=RTOL)
    assert np.allclose(curve_point_corner_cut(knots, degree, points, 2.0), points[-1], atol=ATOL, rtol=RTOL)

def test_curve_point_corner_cut_unclamped():
    degree = 3
    knots  = np.arange(12) / 11
    points = np.random.random((8, 2))

    for x in np.r_[knots[degree], np.random.uniform(knots[degree], knots[8], 5), knots[8]]:
        expected = curve_point(knots, degree, points, x)
        out      = curve_point_corner_cut(knots, degree, points, x)
        assert np.allclose(out, expected, atol=ATOL, rtol=RTOL)

def test_curve_point_corner_cut_full_multiplicity():
    knots  = [0, 0, 0, 1, 1, 2, 2, 2]
    points = np.random.random((5, 3))

    assert np.allclose(curve_point_corner_cut(knots, 2, points, 1.0), points[2], atol=ATOL, rtol=RTOL)
    assert np.allclose(curve_point(knots, 2, points, 1.0), points[2], atol=ATOL, rtol=RTOL)

def test_curve_point_corner_cut_rational():
    knots, degree, points, weights = quarter_circle()
    pw = to_homogeneous(points, weights)

    for x in (0.0, 0.3, 0.5, 1.0):
        cw = curve_point_corner_cut(knots, degree, pw, x)
        c, _ = from_homogeneous(cw)
        assert np.allclose(c, evaluate_1d(knots, degree, points, [x], weights)[0], atol=ATOL, rtol=RTOL)

#==============================================================================
def test_homogeneous():
    points  = np.random.random((4, 3, 2))
    weights = 0.5 + np.random.random((4, 3))

    pw = to_homogeneous(points, weights)
    assert pw.shape == (4, 3, 3)
    assert np.allclose(pw[..., -1], weights, atol=ATOL, rtol=RTOL)
    assert np.allclose(pw[..., :-1], points * weights[..., None], atol=ATOL, rtol=RTOL)

    p, w = from_homogeneous(pw)
    assert np.allclose(p, points, atol=ATOL, rtol=RTOL)
    assert np.allclose(w, weights, atol=ATOL, rtol=RTOL)

    with pytest.raises(ValueError):
        to_homogeneous(points, weights[:3])

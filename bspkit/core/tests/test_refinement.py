#---------------------------------------------------------------------------#
# This file is part of BSPKIT which is released under MIT License. See the  #
# LICENSE file for full license details.                                    #
#---------------------------------------------------------------------------#
import logging

import numpy as np
import pytest

from bspkit.core.bsplines   import make_knots, find_mult
from bspkit.core.evaluation import (evaluate_1d,
                                    to_homogeneous,
                                    from_homogeneous)
from bspkit.core.refinement import (insert_knot,
                                    refine_knot_vector,
                                    remove_knot,
                                    degree_elevate,
                                    bezier_elevation_ratios,
                                    clamp_knots,
                                    unclamp_knots)

# The pytest-xdist plugin requires that every worker sees the same parameters
# in the unit tests. As in this module random parameters are used, here we set
# the same random seed for all workers.
np.random.seed(0)

RTOL = 1e-11
ATOL = 1e-11

#==============================================================================
def random_curve(degree, breaks, dim=2):
    knots  = make_knots(np.asarray(breaks, dtype=float), degree)
    nb     = len(knots) - degree - 1
    points = np.random.random((nb, dim))
    return knots, points

def same_curve(knots1, points1, knots2, points2, degree1, degree2=None, x=None):
    if degree2 is None:
        degree2 = degree1
    if x is None:
        x = np.linspace(knots1[degree1], knots1[len(knots1)-degree1-1], 41)
    c1 = evaluate_1d(knots1, degree1, points1, x)
    c2 = evaluate_1d(knots2, degree2, points2, x)
    return np.allclose(c1, c2, atol=1e-10, rtol=1e-10)

###############################################################################
# Knot insertion
###############################################################################

def test_insert_knot_nurbs_book_example():
    # Example 5.1 in The NURBS Book
    knots  = [0, 0, 0, 0, 1, 2, 3, 4, 5, 5, 5, 5]
    points = np.random.random((8, 3))

    new_knots, new_points = insert_knot(knots, 3, points, 2.5)

    assert np.allclose(new_knots, [0, 0, 0, 0, 1, 2, 2.5, 3, 4, 5, 5, 5, 5], atol=ATOL, rtol=RTOL)
    assert new_points.shape == (9, 3)

    P = points
    assert np.allclose(new_points[:3], P[:3], atol=ATOL, rtol=RTOL)
    assert np.allclose(new_points[3], 5/6 * P[3] + 1/6 * P[2], atol=ATOL, rtol=RTOL)
    assert np.allclose(new_points[4], 1/2 * P[4] + 1/2 * P[3], atol=ATOL, rtol=RTOL)
    assert np.allclose(new_points[5], 1/6 * P[5] + 5/6 * P[4], atol=ATOL, rtol=RTOL)
    assert np.allclose(new_points[6:], P[5:], atol=ATOL, rtol=RTOL)

#==============================================================================
@pytest.mark.parametrize('degree', (1, 2, 3, 4))
@pytest.mark.parametrize('x', (np.random.random(), np.random.random(), 0.4))
def test_insert_knot(degree, x):
    knots, points = random_curve(degree, np.linspace(0, 1, 6))
    mult = find_mult(knots, degree, x)

    for times in range(1, degree - mult + 1):
        new_knots, new_points = insert_knot(knots, degree, points, x, times)

        assert len(new_knots) == len(knots) + times
        assert new_points.shape == (len(points) + times, 2)
        assert find_mult(new_knots, degree, x) == mult + times
        assert same_curve(knots, points, new_knots, new_points, degree)

def test_insert_knot_does_not_modify_inputs():
    knots, points = random_curve(3, np.linspace(0, 1, 5))
    knots_copy  = knots.copy()
    points_copy = points.copy()

    insert_knot(knots, 3, points, 0.3, 2)

    assert np.array_equal(knots, knots_copy)
    assert np.array_equal(points, points_copy)

def test_insert_knot_errors():
    knots, points = random_curve(2, np.linspace(0, 1, 5))

    # Multiplicity would exceed the degree
    with pytest.raises(ValueError):
        insert_knot(knots, 2, points, 0.3, 3)
    with pytest.raises(ValueError):
        insert_knot(knots, 2, points, 0.25, 2)
    # Outside the domain
    with pytest.raises(ValueError):
        insert_knot(knots, 2, points, 1.5)
    with pytest.raises(ValueError):
        insert_knot(knots, 2, points, 0.3, -1)

    new_knots, new_points = insert_knot(knots, 2, points, 0.3, 0)
    assert np.array_equal(new_knots, knots)
    assert np.array_equal(new_points, points)
    assert new_points is not points

#==============================================================================
@pytest.mark.parametrize('x', (2.0, 5.0))
def test_insert_knot_unclamped_domain_ends(x):
    degree = 2
    knots  = np.arange(8.0)
    points = np.random.random((5, 2))

    # The ends of the domain [2, 5] are moved by clamping, not by insertion
    with pytest.raises(ValueError):
        insert_knot(knots, degree, points, x)
    with pytest.raises(ValueError):
        refine_knot_vector(knots, degree, points, [x])

@pytest.mark.parametrize('x', (2.5, 4.5))
def test_insert_knot_unclamped_near_domain_ends(x):
    degree = 2
    knots  = np.arange(8.0)
    points = np.random.random((5, 2))

    new_knots, new_points = insert_knot(knots, degree, points, x)

    assert np.array_equal(new_knots, np.sort(np.r_[knots, x]))
    assert new_points.shape == (6, 2)

    # Only the two control points around the new knot are combined
    i = 1 if x == 2.5 else 3
    a = 0.75
    assert np.allclose(new_points[:i], points[:i], atol=ATOL, rtol=RTOL)
    assert np.allclose(new_points[i], a * points[i] + (1 - a) * points[i-1], atol=ATOL, rtol=RTOL)
    assert np.allclose(new_points[i+1], (1 - a) * points[i+1] + a * points[i], atol=ATOL, rtol=RTOL)
    assert np.allclose(new_points[i+2:], points[i+1:], atol=ATOL, rtol=RTOL)

    # Same curve on the whole domain [2, 5], end points included
    xgrid = np.linspace(2.0, 5.0, 31)
    assert same_curve(knots, points, new_knots, new_points, degree, x=xgrid)
    assert np.all(np.isfinite(evaluate_1d(new_knots, degree, new_points, [2.0, 5.0])))

def test_insert_knot_unclamped_full_multiplicity():
    degree = 3
    knots  = np.arange(10.0)
    points = np.random.random((6, 2))
    xgrid  = np.linspace(3.0, 6.0, 31)

    new_knots, new_points = insert_knot(knots, degree, points, 5.5, 3)
    assert find_mult(new_knots, degree, 5.5) == 3
    assert same_curve(knots, points, new_knots, new_points, degree, x=xgrid)

    with pytest.raises(ValueError):
        insert_knot(new_knots, degree, new_points, 5.5)

###############################################################################
# Knot refinement
###############################################################################

@pytest.mark.parametrize('degree', (1, 2, 3))
def test_refine_knot_vector(degree):
    knots, points = random_curve(degree, np.linspace(0, 1, 6))
    x = np.sort(np.random.random(5))

    new_knots, new_points = refine_knot_vector(knots, degree, points, x)

    assert np.allclose(new_knots, np.sort(np.r_[knots, x]), atol=ATOL, rtol=RTOL)
    assert new_points.shape == (len(points) + 5, 2)
    assert same_curve(knots, points, new_knots, new_points, degree)

#==============================================================================
def test_refine_equals_repeated_insertion():
    degree = 3
    knots, points = random_curve(degree, np.linspace(0, 1, 6))
    x = [0.1, 0.3, 0.3, 0.55, 0.9]

    ref_knots, ref_points = knots, points
    for xi in x:
        ref_knots, ref_points = insert_knot(ref_knots, degree, ref_points, xi)

    new_knots, new_points = refine_knot_vector(knots, degree, points, x)

    assert np.allclose(new_knots, ref_knots, atol=ATOL, rtol=RTOL)
    assert np.allclose(new_points, ref_points, atol=ATOL, rtol=RTOL)

def test_refine_knot_vector_errors():
    knots, points = random_curve(2, np.linspace(0, 1, 5))

    with pytest.raises(ValueError):
        refine_knot_vector(knots, 2, points, [0.5, 0.2])
    with pytest.raises(ValueError):
        refine_knot_vector(knots, 2, points, [0.5, 1.2])

    new_knots, new_points = refine_knot_vector(knots, 2, points, [])
    assert np.array_equal(new_knots, knots)
    assert np.array_equal(new_points, points)

def test_refine_knot_vector_multiplicity_errors():
    knots  = [0, 0, 0, 0.5, 1, 1, 1]
    points = np.random.random((4, 2))

    # Interior knot above the degree
    with pytest.raises(ValueError):
        refine_knot_vector(knots, 2, points, [0.5, 0.5, 0.5])
    with pytest.raises(ValueError):
        refine_knot_vector(knots, 2, points, [0.2, 0.2, 0.2])
    # Ends of the domain
    with pytest.raises(ValueError):
        refine_knot_vector(knots, 2, points, [1.0])
    with pytest.raises(ValueError):
        refine_knot_vector(knots, 2, points, [0.0, 0.3])

    new_knots, new_points = refine_knot_vector(knots, 2, points, [0.5])
    assert np.allclose(new_knots, [0, 0, 0, 0.5, 0.5, 1, 1, 1], atol=ATOL, rtol=RTOL)
    assert same_curve(knots, points, new_knots, new_points, 2)

def test_refine_knot_vector_unclamped():
    degree = 2
    knots  = np.arange(8.0)
    points = np.random.random((5, 2))
    x      = [2.5, 3.5, 3.5, 4.5]

    ref_knots, ref_points = knots, points
    for xi in x:
        ref_knots, ref_points = insert_knot(ref_knots, degree, ref_points, xi)

    new_knots, new_points = refine_knot_vector(knots, degree, points, x)

    assert np.allclose(new_knots, ref_knots, atol=ATOL, rtol=RTOL)
    assert np.allclose(new_points, ref_points, atol=ATOL, rtol=RTOL)
    assert same_curve(knots, points, new_knots, new_points, degree, x=np.linspace(2.0, 5.0, 31))

###############################################################################
# Knot removal
###############################################################################

def test_remove_knot_exact_round_trip():
    knots  = [0, 0, 0, 1, 2, 2, 2]
    points = [(0, 0), (1, 2), (3, 1), (4, 0)]

    ins_knots, ins_points = insert_knot(knots, 2, points, 0.5)
    new_knots, new_points, t = remove_knot(ins_knots, 2, ins_points, 0.5, num=1, tol=0.0)

    assert t == 1
    assert np.array_equal(new_knots, knots)
    assert np.array_equal(new_points, np.asarray(points, dtype=float))

#==============================================================================
@pytest.mark.parametrize('degree', (2, 3, 4))
def test_remove_knot_round_trip(degree):
    knots, points = random_curve(degree, np.linspace(0, 1, 5), dim=3)

    ins_knots, ins_points = insert_knot(knots, degree, points, 0.3, 2)
    new_knots, new_points, t = remove_knot(ins_knots, degree, ins_points, 0.3, num=5)

    # Removal stops at the multiplicity of the knot
    assert t == 2
    assert np.allclose(new_knots, knots, atol=ATOL, rtol=RTOL)
    assert np.allclose(new_points, points, atol=1e-9, rtol=1e-9)

#==============================================================================
def test_remove_knot_partial(caplog):
    degree = 3
    knots, points = random_curve(degree, np.linspace(0, 1, 5))

    # Knot 0.5 has multiplicity 2 afterwards but only the inserted copy can go
    ins_knots, ins_points = insert_knot(knots, degree, points, 0.5)

    with caplog.at_level(logging.DEBUG, logger='bspkit.core.refinement'):
        new_knots, new_points, t = remove_knot(ins_knots, degree, ins_points, 0.5, num=2)

    assert t == 1
    assert np.allclose(new_knots, knots, atol=ATOL, rtol=RTOL)
    assert same_curve(knots, points, new_knots, new_points, degree)
    assert 'removed 1 times out of 2' in caplog.text

#==============================================================================
def test_remove_knot_rejected():
    degree = 2
    knots  = [0, 0, 0, 1, 2, 2, 2]
    points = [(0, 0), (1, 3), (2, -1), (3, 2)]

    new_knots, new_points, t = remove_knot(knots, degree, points, 1.0)

    assert t == 0
    assert np.array_equal(new_knots, knots)
    assert np.array_equal(new_points, np.asarray(points, dtype=float))

def test_remove_knot_nothing_to_do():
    knots, points = random_curve(2, np.linspace(0, 1, 5))

    # Not a knot, boundary knot, no removal requested
    for x, num in ((0.33, 1), (0.0, 1), (1.0, 1), (0.5, 0)):
        new_knots, new_points, t = remove_knot(knots, 2, points, x, num)
        assert t == 0
        assert np.array_equal(new_knots, knots)
        assert np.array_equal(new_points, points)

    with pytest.raises(ValueError):
        remove_knot(knots, 2, points, 0.5, tol=-1.0)
    with pytest.raises(ValueError):
        remove_knot(knots, 2, points, 0.5, num=-1)

###############################################################################
# Degree elevation
###############################################################################

def test_bezier_elevation_ratios():
    bezalfs = bezier_elevation_ratios(2, 1)

    expected = [[1  , 0  , 0  ],
                [1/3, 2/3, 0  ],
                [0  , 2/3, 1/3],
                [0  , 0  , 1  ]]
    assert np.allclose(bezalfs, expected, atol=ATOL, rtol=RTOL)

    # Rows are convex combinations
    for p, t in ((1, 1), (3, 2), (4, 3)):
        assert np.allclose(bezier_elevation_ratios(p, t).sum(axis=1), 1.0, atol=ATOL, rtol=RTOL)

#==============================================================================
def test_degree_elevate_bezier():
    new_knots, new_points = degree_elevate([0, 0, 1, 1], 1, [(0, 0), (2, 2)])

    assert np.allclose(new_knots, [0, 0, 0, 1, 1, 1], atol=ATOL, rtol=RTOL)
    assert np.allclose(new_points, [(0, 0), (1, 1), (2, 2)], atol=ATOL, rtol=RTOL)

def test_degree_elevate_knots():
    knots  = [0, 0, 0, 0.5, 1, 1, 1]
    points = np.random.random((4, 2))

    new_knots, new_points = degree_elevate(knots, 2, points, 1)

    assert np.allclose(new_knots, [0, 0, 0, 0, 0.5, 0.5, 1, 1, 1, 1], atol=ATOL, rtol=RTOL)
    assert new_points.shape == (6, 2)
    assert same_curve(knots, points, new_knots, new_points, 2, 3)

#==============================================================================
@pytest.mark.parametrize('degree', (1, 2, 3))
@pytest.mark.parametrize('t', (1, 2, 3))
@pytest.mark.parametrize('breaks', (np.linspace(0, 1, 2),
                                    np.linspace(0, 1, 5),
                                    np.r_[0, np.sort(np.random.random(4)), 1]))
def test_degree_elevate(degree, t, breaks):
    knots, points = random_curve(degree, breaks, dim=3)
    ne = len(breaks) - 1

    new_knots, new_points = degree_elevate(knots, degree, points, t)

    assert new_points.shape == (len(points) + t * ne, 3)
    assert len(new_knots) == len(new_points) + degree + t + 1
    assert same_curve(knots, points, new_knots, new_points, degree, degree + t)

def test_degree_elevate_repeated_knots():
    degree = 3
    knots  = [0, 0, 0, 0, 0.3, 0.3, 0.6, 1, 1, 1, 1]
    points = np.random.random((7, 2))

    new_knots, new_points = degree_elevate(knots, degree, points, 1)

    assert np.allclose(new_knots, [0] * 5 + [0.3] * 3 + [0.6] * 2 + [1] * 5, atol=ATOL, rtol=RTOL)
    assert same_curve(knots, points, new_knots, new_points, degree, degree + 1)

def test_degree_elevate_rational():
    knots   = [0, 0, 0, 1, 1, 1]
    points  = [(1, 0), (1, 1), (0, 1)]
    weights = [1, 1 / np.sqrt(2), 1]

    new_knots, new_pw = degree_elevate(knots, 2, to_homogeneous(points, weights), 1)
    new_points, new_weights = from_homogeneous(new_pw)

    x   = np.linspace(0, 1, 21)
    out = evaluate_1d(new_knots, 3, new_points, x, new_weights)
    assert np.allclose(np.linalg.norm(out, axis=1), 1.0, atol=ATOL, rtol=RTOL)

def test_degree_elevate_errors():
    knots, points = random_curve(2, np.linspace(0, 1, 4))

    with pytest.raises(ValueError):
        degree_elevate(knots, 2, points, -1)
    with pytest.raises(ValueError):
        degree_elevate(np.arange(9) / 8, 2, np.zeros((6, 2)), 1)
    with pytest.raises(ValueError):
        degree_elevate([0, 0.5, 1], 0, np.zeros((2, 2)), 1)

    new_knots, new_points = degree_elevate(knots, 2, points, 0)
    assert np.array_equal(new_knots, knots)
    assert np.array_equal(new_points, points)

###############################################################################
# Clamping and unclamping
###############################################################################

@pytest.mark.parametrize('degree', (1, 2, 3, 4))
@pytest.mark.parametrize(('left', 'right'), ((True, True), (True, False), (False, True)))
def test_clamp_knots(degree, left, right):
    nb     = degree + 5
    knots  = np.arange(nb + degree + 1) / (nb + degree)
    points = np.random.random((nb, 2))

    new_knots, new_points = clamp_knots(knots, degree, points, left, right)

    assert new_knots.shape == knots.shape
    assert new_points.shape == points.shape
    assert same_curve(knots, points, new_knots, new_points, degree)

    if left:
        assert np.all(new_knots[:degree+1] == knots[degree])
        assert np.allclose(evaluate_1d(knots, degree, points, [knots[degree]])[0], new_points[0],
                           atol=ATOL, rtol=RTOL)
    else:
        assert np.array_equal(new_knots[:degree+1], knots[:degree+1])

    if right:
        assert np.all(new_knots[nb:] == knots[nb])
        assert np.allclose(evaluate_1d(knots, degree, points, [knots[nb]])[0], new_points[-1],
                           atol=ATOL, rtol=RTOL)

def test_clamp_knots_double_end_knots():
    degree = 3
    knots  = [0, 0.1, 0.2, 0.2, 0.3, 0.4, 0.5, 0.6, 0.6, 0.7, 0.8]
    points = np.random.random((7, 2))

    new_knots, new_points = clamp_knots(knots, degree, points)

    assert np.allclose(new_knots, [0.2] * 4 + [0.3, 0.4, 0.5] + [0.6] * 4, atol=ATOL, rtol=RTOL)
    assert same_curve(knots, points, new_knots, new_points, degree)

#==============================================================================
@pytest.mark.parametrize('degree', (2, 3, 4))
def test_unclamp_knots(degree):
    knots, points = random_curve(degree, np.linspace(0, 1, 5))

    new_knots, new_points = unclamp_knots(knots, degree, points)

    # Knots are extended with the spacing found at the opposite end
    h = 0.25
    assert np.allclose(new_knots[:degree+1], np.arange(-degree, 1) * h, atol=ATOL, rtol=RTOL)
    assert np.allclose(new_knots[len(knots)-degree-1:], 1 + np.arange(degree+1) * h, atol=ATOL, rtol=RTOL)
    assert same_curve(knots, points, new_knots, new_points, degree)

    # Clamping recovers the original curve
    clamped_knots, clamped_points = clamp_knots(new_knots, degree, new_points)
    assert np.allclose(clamped_knots, knots, atol=ATOL, rtol=RTOL)
    assert np.allclose(clamped_points, points, atol=1e-10, rtol=1e-10)

def test_clamp_already_clamped():
    knots, points = random_curve(3, np.linspace(0, 1, 4))

    new_knots, new_points = clamp_knots(knots, 3, points)

    assert np.array_equal(new_knots, knots)
    assert np.array_equal(new_points, points)

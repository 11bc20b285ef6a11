import numpy as np
import pytest
from sph2d.boundary import Domain
from sph2d.errors import ConfigError
from sph2d.grid import (ABSENT, PRIME_A, PRIME_B, SpatialGrid, cell_coord,
                        cell_hash, cell_key)


def test_cell_coord():
    """
    Cell coordinates are the floor of position / radius on both axes,
    including negative positions.
    """
    assert cell_coord((0.0, 0.0), 0.5) == (0, 0)
    assert cell_coord((1.2, 0.49), 0.5) == (2, 0)
    assert cell_coord((-0.1, -0.5), 0.5) == (-1, -1)
    assert cell_coord((-0.51, 2.0), 0.5) == (-2, 4)


def test_cell_hash_and_key():
    """
    The hash combines both coordinates with two primes; the key is always a
    valid bucket even for negative coordinates.
    """
    assert cell_hash((1, 0)) == PRIME_A
    assert cell_hash((0, 1)) == PRIME_B
    assert cell_hash((2, -3)) == 2 * PRIME_A - 3 * PRIME_B

    num_cells = 12
    for cx in range(-20, 21):
        for cy in range(-20, 21):
            key = cell_key((cx, cy), num_cells)
            assert 0 <= key < num_cells


def test_grid_dimensions():
    """
    Rows and columns are the domain extents divided by the radius, rounded
    up, and are recomputed when the radius changes.
    """
    grid = SpatialGrid(Domain(16, 9), 0.35)
    assert (grid.rows, grid.cols) == (26, 46)
    assert grid.num_cells == 26 * 46

    grid.set_radius(1.0)
    assert (grid.rows, grid.cols) == (9, 16)
    assert grid.num_cells == 144


@pytest.mark.parametrize("radius", [0.0, -0.5, float("nan"), float("inf")])
def test_invalid_radius_is_rejected(radius):
    with pytest.raises(ConfigError):
        SpatialGrid(Domain(4, 4), radius)


def test_invalid_radius_keeps_previous_dimensions():
    grid = SpatialGrid(Domain(4, 4), 0.5)
    with pytest.raises(ConfigError):
        grid.set_radius(-1.0)
    assert grid.radius == 0.5
    assert (grid.rows, grid.cols) == (8, 8)


def test_rebuild_sorted_table():
    """
    After a rebuild the (index, key) table is sorted by key, equal keys keep
    particle order, and the start table points at the first entry of each
    key.
    """
    grid = SpatialGrid(Domain(4, 4), 1.0)
    positions = np.array([
        [0.5, 0.5],
        [-1.5, 1.2],
        [0.6, 0.4],
        [1.5, -1.5],
        [0.1, 0.9],
    ])
    grid.rebuild(positions)

    assert np.all(np.diff(grid.sorted_keys) >= 0)
    assert sorted(grid.sorted_indices.tolist()) == [0, 1, 2, 3, 4]

    key_origin = cell_key(cell_coord(positions[0], 1.0), grid.num_cells)
    same_cell = [
        int(i) for i, k in zip(grid.sorted_indices, grid.sorted_keys)
        if k == key_origin
    ]
    assert same_cell == [0, 2, 4]

    for key in np.unique(grid.sorted_keys):
        start = grid.start_index(int(key))
        assert grid.sorted_keys[start] == key
        assert start == 0 or grid.sorted_keys[start - 1] != key

    used = set(grid.sorted_keys.tolist())
    for key in range(grid.num_cells):
        if key not in used:
            assert grid.start_index(key) == ABSENT


def test_rebuild_takes_a_snapshot():
    """
    Moving the source array after a rebuild does not change query results.
    """
    grid = SpatialGrid(Domain(4, 4), 1.0)
    positions = np.array([[0.0, 0.0], [0.5, 0.0]])
    grid.rebuild(positions)
    positions[1] = [1.9, 1.9]
    assert grid.query((0.0, 0.0)) == {0, 1}


def test_query_radius_is_strict():
    """
    A particle exactly at the radius is not a neighbour; the query point's
    own particle is.
    """
    grid = SpatialGrid(Domain(10, 10), 1.0)
    grid.rebuild(np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 0.999], [3.0,
                                                                   3.0]]))
    assert grid.query((0.0, 0.0)) == {0, 2}


def test_query_empty_neighbourhood():
    grid = SpatialGrid(Domain(10, 10), 0.5)
    grid.rebuild(np.array([[4.0, 4.0]]))
    assert grid.query((-4.0, -4.0)) == set()
    assert grid.query_indices((-4.0, -4.0)).shape == (0,)


def test_query_matches_brute_force():
    """
    For random particles the grid query returns exactly the indices an
    exhaustive scan returns with the same threshold.
    """
    rng = np.random.default_rng(42)
    domain = Domain(8, 6)
    radius = 0.6
    grid = SpatialGrid(domain, radius)
    positions = rng.uniform(low=(-4, -3), high=(4, 3), size=(400, 2))
    grid.rebuild(positions)

    for point in np.vstack((positions[:50], rng.uniform(-4, 4, (50, 2)))):
        expected = {
            j
            for j in range(len(positions))
            if np.sqrt(np.sum((positions[j] - point)**2)) < radius
        }
        assert grid.query(point) == expected
        assert grid.brute_force_query(point) == expected


def test_query_with_colliding_keys():
    """
    With very few buckets many distant cells share a key. The distance check
    must still filter them out and no index may be reported twice.
    """
    rng = np.random.default_rng(7)
    grid = SpatialGrid(Domain(0.5, 0.5), 0.35)
    assert grid.num_cells == 4
    positions = rng.uniform(-3, 3, size=(300, 2))
    grid.rebuild(positions)

    for point in positions[:60]:
        found = grid.query_indices(point)
        assert len(found) == len(set(found.tolist()))
        assert set(found.tolist()) == grid.brute_force_query(point)


def test_single_cell_grid():
    """
    A grid with one bucket still answers correctly.
    """
    grid = SpatialGrid(Domain(1, 1), 5.0)
    assert grid.num_cells == 1
    positions = np.array([[0.0, 0.0], [4.0, 0.0], [6.0, 0.0]])
    grid.rebuild(positions)
    assert grid.query((0.0, 0.0)) == {0, 1}


def test_candidates_toggle():
    """
    Both neighbour-search paths produce the same candidate set.
    """
    rng = np.random.default_rng(3)
    grid = SpatialGrid(Domain(4, 4), 0.5)
    positions = rng.uniform(-2, 2, size=(120, 2))
    grid.rebuild(positions)
    for point in positions[:20]:
        grid_set = set(grid.candidates(point, True).tolist())
        brute_set = set(grid.candidates(point, False).tolist())
        assert grid_set == brute_set

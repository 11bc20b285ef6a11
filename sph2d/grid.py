"""
grid.py  – sorted spatial hash grid for SPH neighbour queries

Public interface
----------------
    SpatialGrid(domain, radius)
    SpatialGrid.rebuild(positions)
    SpatialGrid.query(point)               -> set of particle indices
    SpatialGrid.query_indices(point)       -> int64 array (same content)
    SpatialGrid.brute_force_query(point)   -> set, exhaustive reference scan

Cells are ``radius`` wide, so every particle closer than ``radius`` to a
point lives in one of the 3x3 cells around it. Cell coordinates are hashed
with two primes and folded into ``rows * cols`` buckets; distinct cells may
share a bucket, which the exact distance check makes harmless.
"""

import math

import numpy as np
from numba import njit

from sph2d.errors import ConfigError

PRIME_A = 4591
PRIME_B = 3643
ABSENT = -1

# -------------------------------------------------------------------------
# 1.  Helpers: position  ⇨  cell coordinate  ⇨  cell key
# -------------------------------------------------------------------------


@njit(inline="always")
def _cell_coord(x, y, radius):
    return np.int64(np.floor(x / radius)), np.int64(np.floor(y / radius))


@njit(inline="always")
def _cell_hash(cx, cy):
    return cx * PRIME_A + cy * PRIME_B


@njit(inline="always")
def _cell_key(cx, cy, num_cells):
    # numba follows Python semantics: the result is in [0, num_cells)
    return _cell_hash(cx, cy) % num_cells


def cell_coord(pos, radius):
    """Floor division of a 2D position by the cell size."""
    return (int(math.floor(pos[0] / radius)),
            int(math.floor(pos[1] / radius)))


def cell_hash(coord):
    return coord[0] * PRIME_A + coord[1] * PRIME_B


def cell_key(coord, num_cells):
    return cell_hash(coord) % num_cells


# -------------------------------------------------------------------------
# 2.  Rebuild: keys for all particles, then the start table
# -------------------------------------------------------------------------


@njit
def compute_cell_keys_numba(positions, radius, num_cells):
    n = positions.shape[0]
    keys = np.empty(n, dtype=np.int64)
    for i in range(n):
        cx, cy = _cell_coord(positions[i, 0], positions[i, 1], radius)
        keys[i] = _cell_key(cx, cy, num_cells)
    return keys


@njit
def build_start_indices_numba(sorted_keys, num_cells):
    """
    start_indices[key] = first position of ``key`` in ``sorted_keys``,
    ABSENT when no particle falls into that bucket.
    """
    start_indices = np.full(num_cells, ABSENT, dtype=np.int64)
    prev = ABSENT
    for s in range(sorted_keys.shape[0]):
        key = sorted_keys[s]
        if key != prev:
            start_indices[key] = s
            prev = key
    return start_indices


# -------------------------------------------------------------------------
# 3.  Queries
# -------------------------------------------------------------------------


@njit
def query_numba(px, py, positions, sorted_indices, sorted_keys,
                start_indices, radius, num_cells):
    cx, cy = _cell_coord(px, py, radius)
    probed = np.empty(9, dtype=np.int64)
    n_probed = 0
    found = np.empty(sorted_indices.shape[0], dtype=np.int64)
    count = 0

    for ox in range(-1, 2):
        for oy in range(-1, 2):
            key = _cell_key(cx + ox, cy + oy, num_cells)

            # two offsets folded onto the same bucket: scan it once
            seen = False
            for k in range(n_probed):
                if probed[k] == key:
                    seen = True
                    break
            if seen:
                continue
            probed[n_probed] = key
            n_probed += 1

            start = start_indices[key]
            if start == ABSENT:
                continue
            for s in range(start, sorted_keys.shape[0]):
                if sorted_keys[s] != key:
                    break
                j = sorted_indices[s]
                dx = positions[j, 0] - px
                dy = positions[j, 1] - py
                if np.sqrt(dx * dx + dy * dy) < radius:
                    found[count] = j
                    count += 1
    return found[:count]


@njit
def brute_force_query_numba(px, py, positions, radius):
    n = positions.shape[0]
    found = np.empty(n, dtype=np.int64)
    count = 0
    for j in range(n):
        dx = positions[j, 0] - px
        dy = positions[j, 1] - py
        if np.sqrt(dx * dx + dy * dy) < radius:
            found[count] = j
            count += 1
    return found[:count]


# -------------------------------------------------------------------------
# 4.  OOP wrapper
# -------------------------------------------------------------------------


class SpatialGrid:
    """
    Hash grid rebuilt from scratch every step; holds no state across
    rebuilds other than its dimensions.
    """

    def __init__(self, domain, radius: float):
        self.width = float(domain.width)
        self.height = float(domain.height)
        self.radius = None
        self.rows = 0
        self.cols = 0
        self.num_cells = 0
        self.set_radius(radius)

        self.positions = np.zeros((0, 2), dtype=np.float64)
        self.sorted_indices = np.zeros(0, dtype=np.int64)
        self.sorted_keys = np.zeros(0, dtype=np.int64)
        self.start_indices = np.full(self.num_cells, ABSENT, dtype=np.int64)

    def set_radius(self, radius: float):
        """Change the cell size and recompute rows/cols."""
        if not math.isfinite(radius) or radius <= 0:
            raise ConfigError(
                f"smoothing_radius must be positive, got {radius}")
        self.radius = float(radius)
        self.rows = int(math.ceil(self.height / self.radius))
        self.cols = int(math.ceil(self.width / self.radius))
        self.num_cells = self.rows * self.cols

    def rebuild(self, positions):
        """
        Index a snapshot of ``positions`` ((n, 2) array). Ties between equal
        keys keep particle index order (stable sort).
        """
        self.positions = np.array(positions, dtype=np.float64, copy=True)
        keys = compute_cell_keys_numba(self.positions, self.radius,
                                       self.num_cells)
        self.sorted_indices = np.argsort(keys, kind="stable").astype(
            np.int64)
        self.sorted_keys = keys[self.sorted_indices]
        self.start_indices = build_start_indices_numba(
            self.sorted_keys, self.num_cells)

    def start_index(self, key: int) -> int:
        return int(self.start_indices[key])

    def query_indices(self, point) -> np.ndarray:
        return query_numba(
            float(point[0]),
            float(point[1]),
            self.positions,
            self.sorted_indices,
            self.sorted_keys,
            self.start_indices,
            self.radius,
            self.num_cells,
        )

    def query(self, point) -> set:
        return set(self.query_indices(point).tolist())

    def brute_force_indices(self, point) -> np.ndarray:
        return brute_force_query_numba(float(point[0]), float(point[1]),
                                       self.positions, self.radius)

    def brute_force_query(self, point) -> set:
        return set(self.brute_force_indices(point).tolist())

    def candidates(self, point, use_spatial_grid=True) -> np.ndarray:
        """
        Neighbour candidates for the density and force passes: the grid
        query, or an exhaustive scan when the grid is switched off.
        """
        if use_spatial_grid:
            return self.query_indices(point)
        return self.brute_force_indices(point)

    def __repr__(self):
        return (f"SpatialGrid(radius={self.radius}, rows={self.rows}, "
                f"cols={self.cols})")

import numpy as np

from sph2d.sph_accelerated import (compute_densities_numba,
                                   compute_density_numba,
                                   density_to_pressure_numba,
                                   shared_pressure_numba)


def compute_density(point, grid, particles, use_spatial_grid=True):
    """
    SPH density estimate at ``point``.

    :param point: (x, y) sample location.
    :param grid: SpatialGrid rebuilt from the current particle positions.
    :param particles: Particles instance supplying the masses.
    :param use_spatial_grid: Query the grid (True) or scan every particle.
    :return: Sum of kernel(grid.radius, distance) * mass over the
    neighbours. A particle sampled at its own position includes itself.
    """
    candidates = grid.candidates(point, use_spatial_grid)
    return compute_density_numba(float(point[0]), float(point[1]),
                                 grid.positions, particles.mass, candidates,
                                 grid.radius)


def compute_densities(grid, particles, params):
    """
    Fill ``particles.density`` for every particle from the position snapshot
    held by ``grid`` and return the array.
    """
    densities = compute_densities_numba(
        grid.positions,
        particles.mass,
        grid.sorted_indices,
        grid.sorted_keys,
        grid.start_indices,
        grid.radius,
        grid.num_cells,
        bool(params.use_spatial_grid),
    )
    particles.density[:] = densities
    return particles.density


def density_to_pressure(density, target_density, pressure_multiplier):
    """Linear equation of state; negative when below the target density."""
    return density_to_pressure_numba(float(density), float(target_density),
                                     float(pressure_multiplier))


def shared_pressure(density_a, density_b, target_density,
                    pressure_multiplier):
    """Mean of the two pressures, so pairwise forces are equal and opposite."""
    return shared_pressure_numba(float(density_a), float(density_b),
                                 float(target_density),
                                 float(pressure_multiplier))


def mean_density(particles):
    if particles.num_particles == 0:
        return 0.0
    return float(np.mean(particles.density))

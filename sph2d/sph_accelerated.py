import numpy as np
from numba import njit

from sph2d.grid import brute_force_query_numba, query_numba
from sph2d.kernels import (density_kernel, density_kernel_derivative,
                           viscosity_kernel)


@njit
def density_to_pressure_numba(density, target_density, pressure_multiplier):
    return pressure_multiplier * (density - target_density)


@njit
def shared_pressure_numba(density_a, density_b, target_density,
                          pressure_multiplier):
    pressure_a = density_to_pressure_numba(density_a, target_density,
                                           pressure_multiplier)
    pressure_b = density_to_pressure_numba(density_b, target_density,
                                           pressure_multiplier)
    return (pressure_a + pressure_b) / 2.0


@njit
def _candidates(px, py, positions, sorted_indices, sorted_keys,
                start_indices, radius, num_cells, use_spatial_grid):
    if use_spatial_grid:
        return query_numba(px, py, positions, sorted_indices, sorted_keys,
                           start_indices, radius, num_cells)
    # exhaustive scan; same distance filter as the grid path
    return brute_force_query_numba(px, py, positions, radius)


@njit
def compute_density_numba(px, py, positions, masses, candidates, radius):
    density = 0.0
    for k in range(candidates.shape[0]):
        j = candidates[k]
        dx = positions[j, 0] - px
        dy = positions[j, 1] - py
        dist = np.sqrt(dx * dx + dy * dy)
        density += density_kernel(radius, dist) * masses[j]
    return density


@njit
def compute_densities_numba(positions, masses, sorted_indices, sorted_keys,
                            start_indices, radius, num_cells,
                            use_spatial_grid):
    n = positions.shape[0]
    densities = np.empty(n, dtype=np.float64)
    for i in range(n):
        px = positions[i, 0]
        py = positions[i, 1]
        candidates = _candidates(px, py, positions, sorted_indices,
                                 sorted_keys, start_indices, radius,
                                 num_cells, use_spatial_grid)
        densities[i] = compute_density_numba(px, py, positions, masses,
                                             candidates, radius)
    return densities


@njit
def compute_pressure_force_numba(i, positions, masses, densities, candidates,
                                 radius, target_density, pressure_multiplier,
                                 random_dir):
    px = positions[i, 0]
    py = positions[i, 1]
    rho_i = densities[i]
    fx = 0.0
    fy = 0.0
    for k in range(candidates.shape[0]):
        j = candidates[k]
        if j == i:
            continue
        rho_j = densities[j]
        if not rho_j > 0.0:
            continue
        dx = positions[j, 0] - px
        dy = positions[j, 1] - py
        dist = np.sqrt(dx * dx + dy * dy)
        if dist == 0.0:
            dir_x = random_dir[0]
            dir_y = random_dir[1]
        else:
            dir_x = dx / dist
            dir_y = dy / dist
        slope = density_kernel_derivative(dist, radius)
        shared = shared_pressure_numba(rho_j, rho_i, target_density,
                                       pressure_multiplier)
        scale = shared * slope * masses[j] / rho_j
        fx += dir_x * scale
        fy += dir_y * scale
    return np.array([fx, fy])


@njit
def compute_viscosity_force_numba(i, positions, velocities, candidates,
                                  radius, viscosity_strength):
    px = positions[i, 0]
    py = positions[i, 1]
    fx = 0.0
    fy = 0.0
    for k in range(candidates.shape[0]):
        j = candidates[k]
        if j == i:
            continue
        dx = positions[j, 0] - px
        dy = positions[j, 1] - py
        influence = viscosity_kernel(np.sqrt(dx * dx + dy * dy), radius)
        fx += (velocities[j, 0] - velocities[i, 0]) * influence
        fy += (velocities[j, 1] - velocities[i, 1]) * influence
    return np.array([fx * viscosity_strength, fy * viscosity_strength])


@njit
def compute_interaction_force_numba(ix, iy, px, py, vx, vy,
                                    interaction_radius, strength):
    offset_x = ix - px
    offset_y = iy - py
    sqr_dst = offset_x * offset_x + offset_y * offset_y
    if sqr_dst >= interaction_radius * interaction_radius:
        return np.zeros(2)
    dist = np.sqrt(sqr_dst)
    dir_x = 0.0
    dir_y = 0.0
    if dist > 0.0:
        dir_x = offset_x / dist
        dir_y = offset_y / dist
    center_t = 1.0 - dist / interaction_radius
    return np.array([(dir_x * strength - vx) * center_t,
                     (dir_y * strength - vy) * center_t])


@njit
def compute_accelerations_numba(positions, velocities, masses, densities,
                                sorted_indices, sorted_keys, start_indices,
                                radius, num_cells, use_spatial_grid,
                                target_density, pressure_multiplier,
                                viscosity_strength, has_interaction,
                                interaction_x, interaction_y,
                                interaction_radius, interaction_strength,
                                random_dirs):
    """
    Pressure, viscosity and interaction accelerations (force / density_i)
    for every particle, read from one position/velocity/density snapshot.
    Particles without a positive density get a zero acceleration.
    """
    n = positions.shape[0]
    accelerations = np.zeros((n, 2), dtype=np.float64)
    for i in range(n):
        rho_i = densities[i]
        if not rho_i > 0.0:
            continue
        px = positions[i, 0]
        py = positions[i, 1]
        candidates = _candidates(px, py, positions, sorted_indices,
                                 sorted_keys, start_indices, radius,
                                 num_cells, use_spatial_grid)
        force = compute_pressure_force_numba(i, positions, masses, densities,
                                             candidates, radius,
                                             target_density,
                                             pressure_multiplier,
                                             random_dirs[i])
        if viscosity_strength > 0.0:
            force += compute_viscosity_force_numba(i, positions, velocities,
                                                   candidates, radius,
                                                   viscosity_strength)
        if has_interaction:
            force += compute_interaction_force_numba(
                interaction_x, interaction_y, px, py, velocities[i, 0],
                velocities[i, 1], interaction_radius, interaction_strength)
        accelerations[i, 0] = force[0] / rho_i
        accelerations[i, 1] = force[1] / rho_i
    return accelerations

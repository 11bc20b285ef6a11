import numpy as np

from sph2d.sph_accelerated import (compute_interaction_force_numba,
                                   compute_pressure_force_numba,
                                   compute_viscosity_force_numba)


def random_direction(rng):
    """
    Uniformly distributed unit vector drawn from ``rng``
    (a numpy.random.Generator).
    """
    angle = rng.uniform(0.0, 2.0 * np.pi)
    return np.array([np.cos(angle), np.sin(angle)], dtype=np.float64)


def random_directions(rng, n):
    angles = rng.uniform(0.0, 2.0 * np.pi, size=n)
    return np.column_stack((np.cos(angles), np.sin(angles)))


def compute_pressure_force(i, grid, particles, densities, params, rng):
    """
    Pressure force on particle ``i``.

    :param i: Particle index.
    :param grid: SpatialGrid rebuilt from the current positions.
    :param particles: Particles instance.
    :param densities: Densities computed in the same step.
    :param params: SimulationParams (equation of state, grid toggle).
    :param rng: numpy.random.Generator used when two particles coincide.
    :return: (2,) force vector. Zero when ``i`` has no other neighbour.
    """
    point = grid.positions[i]
    candidates = grid.candidates(point, params.use_spatial_grid)
    return compute_pressure_force_numba(
        int(i),
        grid.positions,
        particles.mass,
        np.asarray(densities, dtype=np.float64),
        candidates,
        grid.radius,
        float(params.target_density),
        float(params.pressure_multiplier),
        random_direction(rng),
    )


def compute_viscosity_force(i, grid, velocities, params):
    """
    Viscosity force on particle ``i``: neighbours' relative velocities
    weighted by the viscosity kernel, scaled by ``viscosity_strength``.
    """
    point = grid.positions[i]
    candidates = grid.candidates(point, params.use_spatial_grid)
    return compute_viscosity_force_numba(
        int(i),
        grid.positions,
        np.asarray(velocities, dtype=np.float64),
        candidates,
        grid.radius,
        float(params.viscosity_strength),
    )


def compute_interaction_force(point, position, velocity, params):
    """
    Pull (positive strength) or push (negative strength) towards an external
    interaction point, fading to zero at ``interaction_radius``.
    """
    if point is None or params.interaction_radius <= 0:
        return np.zeros(2)
    return compute_interaction_force_numba(
        float(point[0]),
        float(point[1]),
        float(position[0]),
        float(position[1]),
        float(velocity[0]),
        float(velocity[1]),
        float(params.interaction_radius),
        float(params.interaction_strength),
    )

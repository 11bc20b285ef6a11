import numpy as np
from numba import njit

from sph2d.errors import ConfigError


class Domain:

    def __init__(self, width, height):
        """
        Rectangular simulation domain centred on the origin.

        :param width: Horizontal extent.
        :param height: Vertical extent.
        """
        if not (np.isfinite(width) and np.isfinite(height)):
            raise ConfigError("Domain extents must be finite")
        if width <= 0 or height <= 0:
            raise ConfigError(
                f"Domain extents must be positive, got ({width}, {height})")
        self.width = float(width)
        self.height = float(height)

    @property
    def size(self):
        return np.array([self.width, self.height], dtype=np.float64)

    def half_bounds(self, particle_radius):
        return self.size / 2.0 - particle_radius

    def __repr__(self):
        return f"Domain(width={self.width}, height={self.height})"


@njit
def _point_in_triangle(px, py, x1, y1, x2, y2, x3, y3):
    denom = (y2 - y3) * (x1 - x3) + (x3 - x2) * (y1 - y3)
    if denom == 0.0:
        return False
    alpha = ((y2 - y3) * (px - x3) + (x3 - x2) * (py - y3)) / denom
    beta = ((y3 - y1) * (px - x3) + (x1 - x3) * (py - y3)) / denom
    gamma = 1.0 - alpha - beta
    return alpha > 0.0 and beta > 0.0 and gamma > 0.0


@njit
def resolve_collisions_numba(positions, velocities, half_bounds, damping,
                             width, height, slope_size):
    """
    Clamp every particle into the box [-half_bounds, half_bounds] and
    reflect the velocity component of each axis that was hit. Axes are
    resolved independently so corners bounce on both.
    """
    n = positions.shape[0]
    for i in range(n):
        for d in range(2):
            if abs(positions[i, d]) > half_bounds[d]:
                if positions[i, d] < 0.0:
                    positions[i, d] = -half_bounds[d]
                else:
                    positions[i, d] = half_bounds[d]
                velocities[i, d] = -velocities[i, d] * damping

        if slope_size <= 0.0:
            continue

        # slope between (left, bottom + s) and (left + s, bottom)
        x1 = -width / 2.0
        y1 = -height / 2.0
        x2 = x1
        y2 = y1 + slope_size
        x3 = x1 + slope_size
        y3 = y1
        if _point_in_triangle(positions[i, 0], positions[i, 1], x1, y1, x2,
                              y2, x3, y3):
            dx = x3 - x2
            dy = y3 - y2
            t = ((positions[i, 0] - x2) * dx +
                 (positions[i, 1] - y2) * dy) / (dx * dx + dy * dy)
            positions[i, 0] = x2 + t * dx
            positions[i, 1] = y2 + t * dy
            nx = 1.0 / np.sqrt(2.0)
            ny = nx
            dot = velocities[i, 0] * nx + velocities[i, 1] * ny
            velocities[i, 0] = (velocities[i, 0] - 2.0 * dot * nx) * damping
            velocities[i, 1] = (velocities[i, 1] - 2.0 * dot * ny) * damping
            # a slope longer than a wall puts the line partly outside the box
            for d in range(2):
                positions[i, d] = min(max(positions[i, d], -half_bounds[d]),
                                      half_bounds[d])


def resolve_collisions(particles, domain, params):
    """
    Apply wall (and optional slope) collisions to every particle in place.

    :param particles: Particles instance.
    :param domain: Domain the particles must stay in.
    :param params: SimulationParams supplying damping, particle radius and
    slope size.
    """
    resolve_collisions_numba(
        particles.position,
        particles.velocity,
        domain.half_bounds(params.particle_radius),
        float(params.collision_damping),
        domain.width,
        domain.height,
        float(params.slope_size),
    )

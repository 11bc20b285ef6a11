import numpy as np

from sph2d.errors import ConfigError
from sph2d.particles import Particles


class GridLayout:

    def __init__(self,
                 columns,
                 rows,
                 spacing,
                 center=(0.0, 0.0),
                 staggered=False,
                 limit=None):
        """
        Rectangular block of particles centred on ``center``.

        :param columns: Number of particles along x.
        :param rows: Number of particles along y.
        :param spacing: Distance between neighbouring particles.
        :param center: (x, y) centre of the block.
        :param staggered: Shift every other row by half a spacing.
        :param limit: Stop after this many particles (row-major over
        columns), None places the full block.
        """
        if columns <= 0 or rows <= 0:
            raise ConfigError(
                f"Layout needs at least one row and column, got "
                f"{columns}x{rows}")
        if not spacing > 0:
            raise ConfigError(f"Layout spacing must be positive, got "
                              f"{spacing}")
        self.columns = int(columns)
        self.rows = int(rows)
        self.spacing = float(spacing)
        self.center = (float(center[0]), float(center[1]))
        self.staggered = staggered
        self.limit = limit

    @property
    def count(self):
        full = self.columns * self.rows
        if self.limit is None:
            return full
        return min(full, int(self.limit))

    def positions(self):
        """(count, 2) array of particle positions."""
        x0 = self.center[0] - (self.columns - 1) * self.spacing / 2.0
        y0 = self.center[1] - (self.rows - 1) * self.spacing / 2.0
        positions = np.empty((self.count, 2), dtype=np.float64)
        idx = 0
        for i in range(self.columns):
            for j in range(self.rows):
                if idx >= self.count:
                    return positions
                x_offset = (j % 2) * (self.spacing / 2) if self.staggered \
                    else 0.0
                positions[idx] = (x0 + i * self.spacing + x_offset,
                                  y0 + j * self.spacing)
                idx += 1
        return positions

    def __repr__(self):
        return (f"GridLayout(columns={self.columns}, rows={self.rows}, "
                f"spacing={self.spacing}, count={self.count})")


def particles_init(particle_count, layout, mass):
    """
    Create the particle store from a layout rule.

    :param particle_count: Number of particles the caller expects.
    :param layout: Layout rule exposing ``count`` and ``positions()``.
    :param mass: Mass of each particle.
    :return: A Particles instance at rest.
    """
    if particle_count != layout.count:
        raise ConfigError(
            f"particle_count={particle_count} does not match the "
            f"{layout.count} particles produced by {layout!r}")
    return Particles.from_positions(layout.positions(), mass=mass)

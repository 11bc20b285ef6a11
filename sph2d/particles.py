import numpy as np


class Particles:

    def __init__(self, num_particles: int = 0, mass: float = 1.0):
        """
        A fixed-size collection of particles for a 2D Smoothed Particle
        Hydrodynamics (SPH) simulation. Uses a Structure of Arrays (SoA)
        layout; a particle's identity is its row index and the arrays are
        never resized after construction.
        """
        self.num_particles = num_particles

        self.position = np.zeros((num_particles, 2), dtype=np.float64)
        self.velocity = np.zeros((num_particles, 2), dtype=np.float64)
        self.mass = np.full(num_particles, mass, dtype=np.float64)
        # recomputed every step by the density pass
        self.density = np.zeros(num_particles, dtype=np.float64)

    @classmethod
    def from_positions(cls, positions, mass=1.0, velocities=None):
        """
        Build a particle store from an (n, 2) array-like of positions.

        :param positions: Initial positions.
        :param mass: Mass given to every particle.
        :param velocities: Optional (n, 2) initial velocities (zero if None).
        """
        positions = np.asarray(positions, dtype=np.float64).reshape(-1, 2)
        particles = cls(positions.shape[0], mass=mass)
        particles.position[:] = positions
        if velocities is not None:
            particles.velocity[:] = np.asarray(velocities,
                                               dtype=np.float64).reshape(
                                                   -1, 2)
        return particles

    def set_mass(self, mass: float):
        self.mass.fill(mass)

    def copy(self):
        other = Particles(self.num_particles)
        other.position[:] = self.position
        other.velocity[:] = self.velocity
        other.mass[:] = self.mass
        other.density[:] = self.density
        return other

    def __repr__(self):
        return f"Particles(num={self.num_particles})"

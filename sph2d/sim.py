import logging
import math

import numpy as np

from sph2d.boundary import Domain, resolve_collisions
from sph2d.config import SimulationParams
from sph2d.density import compute_densities, mean_density
from sph2d.errors import ConfigError, NumericAnomaly
from sph2d.forces import random_directions
from sph2d.grid import SpatialGrid
from sph2d.particle_init import particles_init
from sph2d.sph_accelerated import compute_accelerations_numba

logger = logging.getLogger(__name__)


def log_anomaly(anomaly: NumericAnomaly):
    logger.warning(
        "[Force] particle %d has density %r at step %d, pressure term "
        "skipped", anomaly.particle_index, anomaly.density, anomaly.step)


def is_valid_delta(delta_seconds) -> bool:
    delta = float(delta_seconds)
    return math.isfinite(delta) and delta > 0.0


def _check_params(domain: Domain, params: SimulationParams):
    if not isinstance(params, SimulationParams):
        raise ConfigError(f"Expected SimulationParams, got {params!r}")
    params.validate()
    if params.particle_radius > min(domain.width, domain.height) / 2.0:
        raise ConfigError(
            f"particle_radius={params.particle_radius} does not fit in "
            f"{domain!r}")


class SimulationState:

    def __init__(self,
                 particles,
                 domain: Domain,
                 params: SimulationParams,
                 rng=None,
                 on_anomaly=None):
        """
        Everything one simulation owns: particle store, spatial grid, live
        parameters and random source. Only the step functions mutate it; a
        renderer reads ``positions`` between steps.

        :param particles: Particles instance (fixed size).
        :param domain: Domain the particles are kept in.
        :param params: Live SimulationParams.
        :param rng: numpy Generator or seed for the coincident-particle
        direction, a fresh unseeded Generator when None.
        :param on_anomaly: Callable receiving NumericAnomaly records, logs a
        warning when None.
        """
        _check_params(domain, params)
        self.particles = particles
        self.num_particles = particles.num_particles
        self.domain = domain
        self.params = params
        self.grid = SpatialGrid(domain, params.smoothing_radius)
        self.rng = np.random.default_rng(rng)
        self.on_anomaly = on_anomaly if on_anomaly is not None else \
            log_anomaly
        self.interaction_point = None
        self.sim_time = 0.0
        self.step_count = 0
        self.mean_density = 0.0
        self.particles.set_mass(params.particle_mass)

    @property
    def positions(self):
        return self.particles.position

    @property
    def velocities(self):
        return self.particles.velocity

    @property
    def densities(self):
        return self.particles.density

    def sync_parameters(self):
        """
        Validate the live parameters and propagate them to the grid and the
        particle masses. Nothing is changed if validation fails.
        """
        _check_params(self.domain, self.params)
        if self.params.smoothing_radius != self.grid.radius:
            self.grid.set_radius(self.params.smoothing_radius)
            logger.debug("[Grid] radius %.4f -> %dx%d cells",
                         self.grid.radius, self.grid.rows, self.grid.cols)
        self.particles.set_mass(self.params.particle_mass)

    def set_parameters(self, params: SimulationParams):
        _check_params(self.domain, params)
        self.params = params
        self.sync_parameters()

    def find_neighbors(self):
        self.grid.rebuild(self.particles.position)

    def apply_gravity(self, dt):
        self.particles.velocity[:, 1] -= self.params.gravity * dt

    def compute_density(self):
        compute_densities(self.grid, self.particles, self.params)
        self.mean_density = mean_density(self.particles)

    def report_anomalies(self):
        bad = np.flatnonzero(~(self.particles.density > 0.0))
        for i in bad:
            self.on_anomaly(
                NumericAnomaly(int(i), float(self.particles.density[i]),
                               self.step_count))
        return bad

    def apply_forces(self, dt):
        """
        Pressure (and optional viscosity / interaction) accelerations from
        the snapshot taken after the density pass, added to velocity.
        """
        params = self.params
        point = self.interaction_point
        has_interaction = point is not None and params.interaction_radius > 0
        ix, iy = (float(point[0]), float(point[1])) if has_interaction \
            else (0.0, 0.0)
        accelerations = compute_accelerations_numba(
            self.grid.positions,
            self.particles.velocity,
            self.particles.mass,
            self.particles.density,
            self.grid.sorted_indices,
            self.grid.sorted_keys,
            self.grid.start_indices,
            self.grid.radius,
            self.grid.num_cells,
            bool(params.use_spatial_grid),
            float(params.target_density),
            float(params.pressure_multiplier),
            float(params.viscosity_strength),
            has_interaction,
            ix,
            iy,
            float(params.interaction_radius),
            float(params.interaction_strength),
            random_directions(self.rng, self.num_particles),
        )
        self.particles.velocity += accelerations * dt

    def integrate(self, dt):
        self.particles.position += self.particles.velocity * dt

    def apply_boundary(self):
        resolve_collisions(self.particles, self.domain, self.params)

    def update(self, dt) -> bool:
        """
        Advance by ``dt`` seconds. Returns False (and changes nothing) when
        ``dt`` is not a finite positive number.
        """
        self.sync_parameters()
        if not is_valid_delta(dt):
            logger.debug("[Step] skipped, delta=%r", dt)
            return False
        dt = float(dt)

        self.find_neighbors()
        self.apply_gravity(dt)
        self.compute_density()
        self.report_anomalies()
        self.apply_forces(dt)
        self.integrate(dt)
        self.apply_boundary()

        self.sim_time += dt
        self.step_count += 1
        return True

    def __repr__(self):
        return (f"SimulationState(num_particles={self.num_particles}, "
                f"step_count={self.step_count}, sim_time={self.sim_time:.4f})")


# -------------------------------------------------------------------------
# Functional interface used by renderers and runners
# -------------------------------------------------------------------------


def initialize(particle_count,
               initial_layout,
               domain_bounds,
               params: SimulationParams,
               rng=None,
               on_anomaly=None) -> SimulationState:
    """
    Build a simulation at rest.

    :param particle_count: Expected number of particles, must equal
    ``initial_layout.count``.
    :param initial_layout: Layout rule (e.g. GridLayout).
    :param domain_bounds: Domain or (width, height) centred on the origin.
    :param params: SimulationParams.
    :param rng: numpy Generator or seed.
    :param on_anomaly: Optional NumericAnomaly callback.
    """
    if isinstance(domain_bounds, Domain):
        domain = domain_bounds
    else:
        width, height = domain_bounds
        domain = Domain(width, height)
    _check_params(domain, params)
    particles = particles_init(particle_count, initial_layout,
                               params.particle_mass)
    state = SimulationState(particles, domain, params, rng=rng,
                            on_anomaly=on_anomaly)
    logger.info("[Init] %d particles in %r, grid %dx%d",
                state.num_particles, domain, state.grid.rows,
                state.grid.cols)
    return state


def step(state: SimulationState, delta_seconds, params=None):
    """
    Advance ``state`` in place by ``delta_seconds`` and return it.

    Raises ConfigError for invalid parameters before touching the state. A
    non-finite or non-positive delta leaves the state untouched.
    """
    if params is not None and params is not state.params:
        state.set_parameters(params)
    state.update(delta_seconds)
    return state


def positions(state: SimulationState) -> np.ndarray:
    """(N, 2) copy of the particle positions, row i is particle i."""
    return state.particles.position.copy()


def set_parameters(state: SimulationState, params: SimulationParams):
    state.set_parameters(params)


def set_interaction_point(state: SimulationState, point):
    """Move the external interaction point, None switches it off."""
    if point is None:
        state.interaction_point = None
        return
    x, y = float(point[0]), float(point[1])
    if not (math.isfinite(x) and math.isfinite(y)):
        raise ConfigError(f"Interaction point must be finite, got {point}")
    state.interaction_point = (x, y)
